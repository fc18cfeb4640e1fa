"""Flattened visible rows plus cursor and scroll bookkeeping."""

from __future__ import annotations

from typing import List, NamedTuple, Optional, Tuple

from .debug import get_logger
from .search import SearchEngine, Visibility
from .tree_store import ROOT_ID, ChildState, TreeStore

NO_SELECTION = -1


class Row(NamedTuple):
    node_id: int
    depth: int
    kind: Visibility


class ViewController:
    """Projects the tree through expansion and filter state onto rows.

    ``visible_rows`` is cached against the store and search generations, so
    cursor movement never walks the tree. The cursor is either a valid index
    or ``NO_SELECTION`` when there are no rows.
    """

    def __init__(self, store: TreeStore, search: SearchEngine, height: int = 1) -> None:
        self.logr = get_logger("view")
        self.store = store
        self.search = search
        self.visible_height = max(1, height)
        self._cursor = NO_SELECTION
        self._scroll = 0
        self._rows: Tuple[Row, ...] = ()
        self._rows_key: Optional[tuple] = None
        self._selected_id: Optional[int] = None
        self.refresh()

    # ---- Rows ----
    def visible_rows(self) -> Tuple[Row, ...]:
        key = (self.store.generation, self.search.cache_key())
        if key != self._rows_key:
            self._rows = self._build_rows()
            self._rows_key = key
            self._sync_cursor()
        return self._rows

    def refresh(self) -> None:
        """Recompute rows if stale and re-clamp the cursor."""
        self.visible_rows()
        self._sync_cursor()

    def _build_rows(self) -> Tuple[Row, ...]:
        store = self.store
        search = self.search
        filtering = search.active
        rows: List[Row] = []
        root = store.root
        if not root.expanded:
            return ()
        stack = [(child, 0) for child in reversed(root.children)]
        while stack:
            node_id, depth = stack.pop()
            kind = search.visibility(node_id) if filtering else Visibility.PLAIN
            if kind is Visibility.HIDDEN:
                continue
            rows.append(Row(node_id, depth, kind))
            node = store.node(node_id)
            if node.expanded and node.child_state is ChildState.FETCHED:
                stack.extend((child, depth + 1) for child in reversed(node.children))
        self.logr.debug("rows: count=%d filter=%r", len(rows), search.pattern)
        return tuple(rows)

    def __len__(self) -> int:
        return len(self.visible_rows())

    # ---- Selection ----
    @property
    def cursor_index(self) -> int:
        """Row index of the cursor, or ``NO_SELECTION``; always valid for the current rows."""
        self.visible_rows()
        return self._cursor

    @property
    def scroll_offset(self) -> int:
        self.visible_rows()
        return self._scroll

    @property
    def has_selection(self) -> bool:
        return self.cursor_index != NO_SELECTION

    def selected_row(self) -> Optional[Row]:
        rows = self.visible_rows()
        if self._cursor == NO_SELECTION:
            return None
        return rows[self._cursor]

    def selected_id(self) -> Optional[int]:
        row = self.selected_row()
        return row.node_id if row is not None else None

    def index_of(self, node_id: int) -> Optional[int]:
        for i, row in enumerate(self.visible_rows()):
            if row.node_id == node_id:
                return i
        return None

    def select_id(self, node_id: int) -> bool:
        idx = self.index_of(node_id)
        if idx is None:
            return False
        self._set_cursor(idx)
        return True

    def _set_cursor(self, index: int) -> None:
        rows = self._rows
        if not rows:
            self._cursor = NO_SELECTION
            self._selected_id = None
            self._scroll = 0
            return
        self._cursor = max(0, min(index, len(rows) - 1))
        self._selected_id = rows[self._cursor].node_id
        self.ensure_cursor_visible()

    def _sync_cursor(self) -> None:
        """Keep the cursor on the same node across recomputes when possible."""
        rows = self._rows
        if not rows:
            self._set_cursor(NO_SELECTION)
            return
        if self._selected_id is not None:
            if 0 <= self._cursor < len(rows) and rows[self._cursor].node_id == self._selected_id:
                self.ensure_cursor_visible()
                return
            for i, row in enumerate(rows):
                if row.node_id == self._selected_id:
                    self._set_cursor(i)
                    return
        if self._cursor == NO_SELECTION:
            self._set_cursor(0)
        else:
            self._set_cursor(self._cursor)

    # ---- Navigation ----
    def move_cursor(self, delta: int) -> None:
        rows = self.visible_rows()
        if not rows or self._cursor == NO_SELECTION:
            return
        self._set_cursor(self._cursor + delta)

    def page(self, direction: int) -> None:
        step = max(self.visible_height - 1, 1)
        self.move_cursor(step if direction > 0 else -step)

    def home(self) -> None:
        if self.visible_rows():
            self._set_cursor(0)

    def end(self) -> None:
        rows = self.visible_rows()
        if rows:
            self._set_cursor(len(rows) - 1)

    def ensure_cursor_visible(self) -> None:
        rows = self._rows
        height = self.visible_height
        if self._cursor == NO_SELECTION:
            self._scroll = 0
            return
        if self._cursor < self._scroll:
            self._scroll = self._cursor
        elif self._cursor > self._scroll + height - 1:
            self._scroll = self._cursor - height + 1
        # No blank space below the last row
        self._scroll = max(0, min(self._scroll, max(len(rows) - height, 0)))

    def on_resize(self, height: int) -> None:
        self.visible_height = max(1, int(height))
        self.visible_rows()
        self.ensure_cursor_visible()
        self.logr.debug("resize: height=%d cursor=%d scroll=%d", self.visible_height, self._cursor, self._scroll)

    def window(self) -> Tuple[Row, ...]:
        """Rows currently inside the viewport."""
        rows = self.visible_rows()
        return rows[self._scroll:self._scroll + self.visible_height]

    # ---- Match navigation ----
    def next_match(self, direction: int) -> bool:
        """Move to the next (or previous) matching row; no wraparound."""
        rows = self.visible_rows()
        if not rows or self._cursor == NO_SELECTION:
            return False
        step = 1 if direction > 0 else -1
        i = self._cursor + step
        while 0 <= i < len(rows):
            if rows[i].kind is Visibility.MATCH:
                self._set_cursor(i)
                return True
            i += step
        return False

    def parent_index(self) -> Optional[int]:
        node_id = self.selected_id()
        if node_id is None:
            return None
        parent = self.store.node(node_id).parent
        if parent is None or parent == ROOT_ID:
            return None
        return self.index_of(parent)
