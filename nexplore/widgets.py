from __future__ import annotations

import os
from typing import Any, Optional

from textual import events
from textual.widgets import RichLog, Static

from .debug import get_logger
from .keymap import Key, KeyEvent


class TreePane(Static):
    """Draws the tree rows handed to it and forwards every key to the app.

    The pane does no scrolling of its own: the engine already slices the rows
    to the viewport, so the pane only reports its height back on resize.
    """

    DEFAULT_CSS = """
    TreePane {
        overflow: hidden;
    }
    """

    def __init__(self, *, id: Optional[str] = None) -> None:
        super().__init__("", id=id)
        try:
            self.can_focus = True  # type: ignore[assignment]
        except Exception:
            pass
        self._debug_keys = bool(os.environ.get("NEXPLORE_DEBUG_KEYS"))
        self._logr = get_logger("pane")

    def on_key(self, event: events.Key) -> None:  # type: ignore[override]
        if self._debug_keys:
            self._logr.debug(
                "tree.on_key: key=%s char=%s",
                getattr(event, "key", None),
                getattr(event, "character", None),
            )
        handler = getattr(self.app, "dispatch_key_event", None)
        if handler and handler(event):
            event.stop()
            event.prevent_default()

    def on_resize(self, event: events.Resize) -> None:
        handler = getattr(self.app, "on_tree_resize", None)
        if handler:
            handler(event.size.height)

    def on_mouse_scroll_up(self, event: events.MouseScrollUp) -> None:
        self._send(KeyEvent(Key.UP))
        event.stop()

    def on_mouse_scroll_down(self, event: events.MouseScrollDown) -> None:
        self._send(KeyEvent(Key.DOWN))
        event.stop()

    def _send(self, key_event: KeyEvent) -> None:
        handler = getattr(self.app, "handle_logical_key", None)
        if handler:
            handler(key_event)


class DetailsPane(RichLog):
    """Attribute and dataset summary of the selected node."""

    DEFAULT_CSS = """
    DetailsPane {
        overflow-y: auto;
        overflow-x: hidden;
    }
    """

    def __init__(self, *, id: Optional[str] = None) -> None:
        super().__init__(id=id, wrap=True, highlight=False, markup=False, auto_scroll=False, max_lines=None)
        self._shown: Any = None

    def show(self, key: Any, renderable: Any) -> None:
        """Replace the content unless ``key`` says it is already shown."""
        if key == self._shown:
            return
        self._shown = key
        self.clear()
        self.write(renderable)
        self.scroll_home(animate=False)
