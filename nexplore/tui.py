from typing import Optional

from rich.text import Text
from textual import events
from textual.app import App, ComposeResult
from textual.containers import Horizontal
from textual.widgets import Footer, Header, Static

from .debug import get_logger
from .engine import InteractionEngine, ViewModel
from .keymap import Key, KeyEvent, explorer_bindings, translate_key
from .render import render_details, render_status, render_title, render_tree
from .version import __version__
from .widgets import DetailsPane, TreePane


class ExplorerApp(App):
    """Textual host: feeds keys to the engine and draws each view model."""

    TITLE = "nexplore"
    SUB_TITLE = f"v{__version__}"

    CSS = """
    #explorer-main { height: 1fr; width: 1fr; }
    #tree { width: 55%; height: 1fr; }
    #details { width: 45%; height: 1fr; border-left: solid steelblue; padding: 0 1; }
    #tips { height: 1; padding: 0 1; }
    """

    BINDINGS = explorer_bindings()

    def __init__(self, engine: InteractionEngine) -> None:
        super().__init__()
        self.logr = get_logger("tui")
        self.engine = engine

    def compose(self) -> ComposeResult:
        yield Header()
        self.tree_pane = TreePane(id="tree")
        self.details_pane = DetailsPane(id="details")
        yield Horizontal(self.tree_pane, self.details_pane, id="explorer-main")
        self.tips_bar = Static("", id="tips")
        yield self.tips_bar
        yield Footer()

    def on_mount(self) -> None:
        vm = self.engine.view_model()
        self.sub_title = render_title(vm)
        self.logr.debug("on_mount: file=%s", vm.file_name)
        self.redraw()

        def _focus_tree() -> None:
            try:
                self.tree_pane.focus()
            except Exception as e:
                self.logr.debug("on_mount: tree.focus failed: %s", e)

        try:
            self.call_after_refresh(_focus_tree)
        except Exception:
            _focus_tree()

    # ---- Event routing ----
    def dispatch_key_event(self, event: events.Key) -> bool:
        key_event = translate_key(event)
        if key_event is None:
            return False
        self.handle_logical_key(key_event)
        return True

    def handle_logical_key(self, key_event: KeyEvent) -> None:
        if not self.engine.handle(key_event):
            self.exit(return_code=0)
            return
        self.redraw()

    def action_dispatch(self, name: str) -> None:
        try:
            key = Key(name)
        except ValueError:
            self.logr.debug("action_dispatch: unknown key %s", name)
            return
        self.handle_logical_key(KeyEvent(key))

    def on_tree_resize(self, height: int) -> None:
        self.engine.handle_resize(height)
        self.redraw()

    # ---- Drawing ----
    def redraw(self, vm: Optional[ViewModel] = None) -> None:
        vm = vm or self.engine.view_model()
        self.tree_pane.update(render_tree(vm))
        self.details_pane.show(vm.selection, render_details(vm.selection))
        self.tips_bar.update(Text(render_status(vm)))
