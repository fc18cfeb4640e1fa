from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, List, Optional, Pattern, Tuple

from .debug import get_logger
from .errors import InvalidPatternError
from .tree_store import ChildState, Node, TreeStore

Span = Tuple[int, int]  # (start_col, end_col) within a node name


class Visibility(Enum):
    PLAIN = "plain"  # no filter active
    MATCH = "match"
    CONTEXT = "context"  # ancestor kept so a match stays reachable
    UNDECIDABLE = "undecidable"  # group not fetched yet; expand to search inside
    HIDDEN = "hidden"


@dataclass(frozen=True)
class MatchSet:
    matches: FrozenSet[int] = frozenset()
    ordered: Tuple[int, ...] = ()  # matches in depth-first order
    ancestors: Dict[int, Tuple[int, ...]] = field(default_factory=dict)
    reachable: FrozenSet[int] = frozenset()
    undecidable: FrozenSet[int] = frozenset()


EMPTY_MATCH_SET = MatchSet()


@dataclass
class SearchEngine:
    """Compiled name/attribute filter over the fetched part of the tree.

    - ``set_pattern`` compiles a regex; on failure nothing changes.
    - Names match anywhere (``re.search``) within the last path segment.
    - Cached attribute values are searched only when ``search_attributes``
      is on; attributes that were never read count as non-matching.
    - The match set is rebuilt wholesale when the pattern, the options or the
      fetched structure change.
    """

    store: TreeStore
    search_attributes: bool = False
    ignore_case: bool = False
    pattern: str = ""
    generation: int = 0
    _regex: Optional[Pattern[str]] = field(default=None, repr=False)
    _cached_key: Optional[tuple] = field(default=None, repr=False)
    _cached: MatchSet = field(default=EMPTY_MATCH_SET, repr=False)

    def __post_init__(self) -> None:
        self.logr = get_logger("search")

    @property
    def active(self) -> bool:
        return self._regex is not None

    def _flags(self) -> int:
        return re.IGNORECASE if self.ignore_case else 0

    def _compile(self, text: str, flags: int) -> Pattern[str]:
        try:
            return re.compile(text, flags)
        except re.error as exc:
            raise InvalidPatternError(text, exc.msg, exc.pos) from exc

    def set_pattern(self, text: str) -> None:
        """Activate ``text`` as the filter. Empty text clears the filter."""
        text = text or ""
        if not text:
            self.clear_pattern()
            return
        regex = self._compile(text, self._flags())
        self.pattern = text
        self._regex = regex
        self.generation += 1
        self.logr.debug("set_pattern: %r flags=%s", text, self._flags())

    def clear_pattern(self) -> None:
        if self._regex is None and not self.pattern:
            return
        self.pattern = ""
        self._regex = None
        self.generation += 1
        self.logr.debug("clear_pattern")

    def set_options(self, *, search_attributes: Optional[bool] = None, ignore_case: Optional[bool] = None) -> None:
        if search_attributes is not None:
            self.search_attributes = search_attributes
        if ignore_case is not None:
            self.ignore_case = ignore_case
        if self._regex is not None:
            self._regex = self._compile(self.pattern, self._flags())
        self.generation += 1

    # ---- Matching ----
    def matches(self, node_id: int) -> bool:
        return self._matches_node(self.store.node(node_id))

    def _matches_node(self, node: Node) -> bool:
        regex = self._regex
        if regex is None:
            return False
        if regex.search(node.name):
            return True
        if self.search_attributes and node.metadata is not None:
            for value in node.metadata.attributes.values():
                if regex.search(str(value)):
                    return True
        return False

    def spans(self, name: str) -> List[Span]:
        """Character ranges of ``name`` to highlight."""
        if self._regex is None:
            return []
        return [(m.start(), m.end()) for m in self._regex.finditer(name) if m.end() > m.start()]

    def cache_key(self) -> tuple:
        meta = self.store.metadata_generation if self.search_attributes else 0
        return (self.generation, self.store.generation, meta)

    def match_set(self) -> MatchSet:
        if not self.active:
            return EMPTY_MATCH_SET
        key = self.cache_key()
        if key == self._cached_key:
            return self._cached
        store = self.store
        matches: List[int] = []
        ancestors: Dict[int, Tuple[int, ...]] = {}
        reachable = set()
        undecidable = set()
        for node_id in store.walk_fetched():
            node = store.node(node_id)
            is_match = self._matches_node(node)
            unknown = node.is_group and node.child_state is not ChildState.FETCHED
            if not (is_match or unknown):
                continue
            chain = store.ancestors(node_id)
            if is_match:
                matches.append(node_id)
                ancestors[node_id] = chain
            if unknown:
                undecidable.add(node_id)
            reachable.update(chain)
        self._cached = MatchSet(
            matches=frozenset(matches),
            ordered=tuple(matches),
            ancestors=ancestors,
            reachable=frozenset(reachable),
            undecidable=frozenset(undecidable),
        )
        self._cached_key = key
        self.logr.debug(
            "match_set: pattern=%r matches=%d undecidable=%d",
            self.pattern,
            len(matches),
            len(undecidable),
        )
        return self._cached

    def visibility(self, node_id: int) -> Visibility:
        if not self.active:
            return Visibility.PLAIN
        ms = self.match_set()
        if node_id in ms.matches:
            return Visibility.MATCH
        if node_id in ms.undecidable:
            return Visibility.UNDECIDABLE
        if node_id in ms.reachable:
            return Visibility.CONTEXT
        return Visibility.HIDDEN

    def counter(self, node_id: Optional[int]) -> Tuple[int, int]:
        """Return (current_match_1_based, total_matches)."""
        ms = self.match_set()
        if not ms.ordered:
            return (0, 0)
        if node_id is None or node_id not in ms.matches:
            return (0, len(ms.ordered))
        return (ms.ordered.index(node_id) + 1, len(ms.ordered))

    def counter_text(self, node_id: Optional[int] = None) -> str:
        a, b = self.counter(node_id)
        return f"{a}/{b}" if b else "0/0"
