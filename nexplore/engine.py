"""Input-driven state machine tying the store, search and view together.

One key (or resize) is processed to completion per call; the caller then asks
for a fresh :class:`ViewModel` and draws it. Nothing here draws.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, NamedTuple, Optional, Tuple

from .config import ExplorerConfig
from .debug import get_logger
from .errors import FetchFailedError, InvalidPatternError
from .keymap import BROWSE_CHARS, HELP_CHARS, Key, KeyEvent
from .provider import LinkKind, NodeKind
from .search import SearchEngine, Span, Visibility
from .tree_store import ChildState, Metadata, TreeStore
from .view import NO_SELECTION, Row, ViewController


class Mode(Enum):
    BROWSE = "browse"
    SEARCH_INPUT = "search"
    HELP = "help"


class RowView(NamedTuple):
    node_id: int
    name: str
    depth: int
    kind: NodeKind
    visibility: Visibility
    expanded: bool
    child_state: ChildState
    link: LinkKind
    nx_class: Optional[str]
    error: Optional[str]
    spans: Tuple[Span, ...]
    selected: bool


class SelectionView(NamedTuple):
    path: str
    kind: NodeKind
    link: LinkKind
    target: Optional[str]
    child_state: ChildState
    child_count: Optional[int]
    metadata: Optional[Metadata]
    error: Optional[str]


@dataclass(frozen=True)
class ViewModel:
    visible_rows: Tuple[Row, ...]
    window: Tuple[RowView, ...]
    cursor_index: int
    scroll_offset: int
    mode: Mode
    status_message: str
    pattern_text: str
    pattern_error: Optional[str]
    active_pattern: str
    match_counter: str
    search_attributes: bool
    ignore_case: bool
    selection: Optional[SelectionView]
    file_name: str
    file_size: Optional[int]


Handler = Callable[[KeyEvent], None]


class InteractionEngine:
    def __init__(self, store: TreeStore, config: Optional[ExplorerConfig] = None, height: int = 1) -> None:
        self.logr = get_logger("engine")
        self.store = store
        self.config = config or ExplorerConfig()
        self.search = SearchEngine(
            store,
            search_attributes=self.config.search_attributes,
            ignore_case=self.config.ignore_case,
        )
        self.view = ViewController(store, self.search, height)
        self.mode = Mode.BROWSE
        self.buffer = ""
        self.pattern_error: Optional[str] = None
        self.status_message = ""
        self.running = True
        self._help_return = Mode.BROWSE
        self._metadata_for: Optional[int] = None
        self._transitions = self._build_transitions()
        self._load_selected_metadata()

    def _build_transitions(self) -> Dict[Mode, Dict[Key, Handler]]:
        return {
            Mode.BROWSE: {
                Key.UP: lambda e: self.view.move_cursor(-1),
                Key.DOWN: lambda e: self.view.move_cursor(1),
                Key.PAGE_UP: lambda e: self.view.page(-1),
                Key.PAGE_DOWN: lambda e: self.view.page(1),
                Key.HOME: lambda e: self.view.home(),
                Key.END: lambda e: self.view.end(),
                Key.RIGHT: self._on_right,
                Key.LEFT: self._on_left,
                Key.ENTER: self._on_toggle,
                Key.ESCAPE: self._on_browse_escape,
                Key.SEARCH: self._on_enter_search,
                Key.HELP: self._on_help,
                Key.NEXT_MATCH: lambda e: self._on_match(1),
                Key.PREV_MATCH: lambda e: self._on_match(-1),
                Key.EXPAND_ALL: self._on_expand_all,
                Key.TOGGLE_ATTRS: self._on_toggle_attrs,
                Key.TOGGLE_CASE: self._on_toggle_case,
                Key.QUIT: self._on_quit,
                Key.FORCE_QUIT: self._on_quit,
            },
            Mode.SEARCH_INPUT: {
                Key.CHAR: self._on_search_char,
                Key.BACKSPACE: self._on_search_backspace,
                Key.ENTER: self._on_search_confirm,
                Key.ESCAPE: self._on_search_cancel,
                Key.DOWN: lambda e: self._on_match(1),
                Key.UP: lambda e: self._on_match(-1),
                Key.HELP: self._on_help,
                Key.FORCE_QUIT: self._on_quit,
            },
            Mode.HELP: {
                Key.HELP: self._on_help_close,
                Key.ESCAPE: self._on_help_close,
                Key.QUIT: self._on_quit,
                Key.FORCE_QUIT: self._on_quit,
            },
        }

    # ---- Event entry points ----
    def _resolve(self, event: KeyEvent) -> Key:
        if event.key is not Key.CHAR:
            return event.key
        if self.mode is Mode.BROWSE:
            return BROWSE_CHARS.get(event.char, Key.CHAR)
        if self.mode is Mode.HELP:
            return HELP_CHARS.get(event.char, Key.CHAR)
        return Key.CHAR

    def handle(self, event: KeyEvent) -> bool:
        """Process one key. Returns False once the loop should stop."""
        if not self.running:
            return False
        key = self._resolve(event)
        handler = self._transitions[self.mode].get(key)
        if handler is None:
            return self.running
        self.status_message = ""
        handler(event)
        if self.running:
            self._load_selected_metadata()
        return self.running

    def handle_resize(self, height: int) -> None:
        self.view.on_resize(height)

    def _set_mode(self, mode: Mode) -> None:
        if mode is not self.mode:
            self.logr.debug("mode: %s -> %s", self.mode.value, mode.value)
        self.mode = mode

    # ---- Browse ----
    def _selected_node(self):
        node_id = self.view.selected_id()
        return self.store.node(node_id) if node_id is not None else None

    def _expand(self, node_id: int) -> None:
        try:
            self.store.expand(node_id)
        except FetchFailedError as exc:
            self.status_message = str(exc)

    def _on_right(self, event: KeyEvent) -> None:
        node = self._selected_node()
        if node is None or not node.is_group:
            return
        if not node.expanded:
            self._expand(node.id)
            return
        rows = self.view.visible_rows()
        nxt = self.view.cursor_index + 1
        if nxt < len(rows) and self.store.node(rows[nxt].node_id).parent == node.id:
            self.view.move_cursor(1)

    def _on_left(self, event: KeyEvent) -> None:
        node = self._selected_node()
        if node is None:
            return
        if node.is_group and node.expanded:
            self.store.collapse(node.id)
            return
        parent_idx = self.view.parent_index()
        if parent_idx is not None:
            self.view.move_cursor(parent_idx - self.view.cursor_index)

    def _on_toggle(self, event: KeyEvent) -> None:
        node = self._selected_node()
        if node is None or not node.is_group:
            return
        if node.expanded:
            self.store.collapse(node.id)
        else:
            self._expand(node.id)

    def _on_browse_escape(self, event: KeyEvent) -> None:
        if self.search.active:
            self.search.clear_pattern()
            self.status_message = "Filter cleared"

    def _on_expand_all(self, event: KeyEvent) -> None:
        node = self._selected_node()
        if node is None or not node.is_group:
            return
        result = self.store.expand_all(node.id, self.config.expand_all_limit)
        parts = [f"Expanded {node.path}: {result.fetched} group(s) read"]
        if result.failures:
            parts.append(f"{len(result.failures)} failed")
        if result.skipped_links:
            parts.append(f"{result.skipped_links} link(s) not followed")
        if result.truncated:
            parts.append(f"stopped at limit {self.config.expand_all_limit}")
        self.status_message = ", ".join(parts)

    def _on_match(self, direction: int) -> None:
        if not self.search.active:
            return
        if not self.view.next_match(direction):
            self.status_message = "No further matches"

    def _on_toggle_attrs(self, event: KeyEvent) -> None:
        self.search.set_options(search_attributes=not self.search.search_attributes)
        state = "on" if self.search.search_attributes else "off"
        self.status_message = f"Attribute search {state} (only attributes already read are searched)"

    def _on_toggle_case(self, event: KeyEvent) -> None:
        self.search.set_options(ignore_case=not self.search.ignore_case)
        self.status_message = "Ignoring case" if self.search.ignore_case else "Case sensitive"

    def _on_quit(self, event: KeyEvent) -> None:
        if self.mode is Mode.SEARCH_INPUT or (self.mode is Mode.HELP and self._help_return is Mode.SEARCH_INPUT):
            self._cancel_search()
        self._set_mode(Mode.BROWSE)
        self.running = False
        self.logr.debug("quit")

    # ---- Search input ----
    def _on_enter_search(self, event: KeyEvent) -> None:
        self.buffer = ""
        self.pattern_error = None
        self._set_mode(Mode.SEARCH_INPUT)

    def _apply_buffer(self) -> None:
        if not self.buffer:
            self.search.clear_pattern()
            self.pattern_error = None
            return
        try:
            self.search.set_pattern(self.buffer)
        except InvalidPatternError as exc:
            self.pattern_error = str(exc)
            return
        self.pattern_error = None
        self._select_first_match()

    def _select_first_match(self) -> None:
        rows = self.view.visible_rows()
        current = self.view.selected_row()
        if current is not None and current.kind is Visibility.MATCH:
            return
        for i, row in enumerate(rows):
            if row.kind is Visibility.MATCH:
                self.view.move_cursor(i - self.view.cursor_index)
                return

    def _on_search_char(self, event: KeyEvent) -> None:
        if not event.char:
            return
        self.buffer += event.char
        self._apply_buffer()

    def _on_search_backspace(self, event: KeyEvent) -> None:
        if not self.buffer:
            return
        self.buffer = self.buffer[:-1]
        self._apply_buffer()

    def _on_search_confirm(self, event: KeyEvent) -> None:
        self.pattern_error = None
        self.buffer = ""
        self._set_mode(Mode.BROWSE)
        if self.search.active:
            total = len(self.search.match_set().ordered)
            self.status_message = f"Filter: '{self.search.pattern}' ({total} match(es) in loaded nodes)"

    def _cancel_search(self) -> None:
        self.buffer = ""
        self.pattern_error = None
        self.search.clear_pattern()

    def _on_search_cancel(self, event: KeyEvent) -> None:
        self._cancel_search()
        self._set_mode(Mode.BROWSE)

    # ---- Help ----
    def _on_help(self, event: KeyEvent) -> None:
        self._help_return = self.mode
        self._set_mode(Mode.HELP)

    def _on_help_close(self, event: KeyEvent) -> None:
        self._set_mode(self._help_return)

    # ---- Metadata of the selection ----
    def _load_selected_metadata(self) -> None:
        node_id = self.view.selected_id()
        if node_id is None or node_id == self._metadata_for:
            return
        self._metadata_for = node_id
        try:
            self.store.metadata_of(node_id)
        except FetchFailedError as exc:
            self.status_message = str(exc)

    # ---- View model ----
    def _row_view(self, row: Row, selected: bool) -> RowView:
        node = self.store.node(row.node_id)
        spans = tuple(self.search.spans(node.name)) if row.kind is Visibility.MATCH else ()
        return RowView(
            node_id=node.id,
            name=node.name,
            depth=row.depth,
            kind=node.kind,
            visibility=row.kind,
            expanded=node.expanded,
            child_state=node.child_state,
            link=node.link,
            nx_class=node.nx_class,
            error=str(node.fetch_error) if node.fetch_error else None,
            spans=spans,
            selected=selected,
        )

    def _selection_view(self) -> Optional[SelectionView]:
        node = self._selected_node()
        if node is None:
            return None
        error = node.fetch_error or node.metadata_error
        child_count = len(node.children) if node.child_state is ChildState.FETCHED else None
        return SelectionView(
            path=node.path,
            kind=node.kind,
            link=node.link,
            target=node.target,
            child_state=node.child_state,
            child_count=child_count,
            metadata=node.metadata,
            error=str(error) if error else None,
        )

    def view_model(self) -> ViewModel:
        rows = self.view.visible_rows()
        offset = self.view.scroll_offset
        window = tuple(
            self._row_view(row, offset + i == self.view.cursor_index)
            for i, row in enumerate(self.view.window())
        )
        selected = self.view.selected_id()
        return ViewModel(
            visible_rows=rows,
            window=window,
            cursor_index=self.view.cursor_index if rows else NO_SELECTION,
            scroll_offset=offset,
            mode=self.mode,
            status_message=self.status_message,
            pattern_text=self.buffer,
            pattern_error=self.pattern_error,
            active_pattern=self.search.pattern,
            match_counter=self.search.counter_text(selected) if self.search.active else "",
            search_attributes=self.search.search_attributes,
            ignore_case=self.search.ignore_case,
            selection=self._selection_view(),
            file_name=os.path.basename(self.store.file_path),
            file_size=self.store.file_size,
        )
