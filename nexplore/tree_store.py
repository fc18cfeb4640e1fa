"""Lazily materialized node arena over an open file.

Nodes live in a single list indexed by stable integer ids. Children are
fetched from the :class:`~nexplore.provider.DataProvider` on first expansion
and kept for the whole session; collapsing never discards them, so every
group is listed at most once per successful fetch.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterator, List, NamedTuple, Optional, Set, Tuple

from .debug import get_logger
from .errors import FetchFailedError, ReadError
from .provider import (
    AttrValue,
    DataProvider,
    DatasetSummary,
    LinkKind,
    NodeKind,
    base_name,
    join_path,
)

ROOT_ID = 0


class ChildState(Enum):
    NOT_FETCHED = "not-fetched"
    FETCHING = "fetching"
    FETCHED = "fetched"
    FETCH_FAILED = "fetch-failed"


class Metadata(NamedTuple):
    attributes: Dict[str, AttrValue]
    summary: Optional[DatasetSummary] = None


@dataclass
class Node:
    id: int
    path: str
    name: str
    kind: NodeKind
    parent: Optional[int]
    link: LinkKind = LinkKind.HARD
    target: Optional[str] = None
    child_state: ChildState = ChildState.NOT_FETCHED
    children: Tuple[int, ...] = ()
    fetch_error: Optional[FetchFailedError] = None
    expanded: bool = False
    metadata: Optional[Metadata] = None
    metadata_error: Optional[FetchFailedError] = None

    @property
    def is_group(self) -> bool:
        return self.kind is NodeKind.GROUP

    @property
    def canonical_path(self) -> str:
        return self.target or self.path

    @property
    def nx_class(self) -> Optional[str]:
        """NeXus class from cached attributes; never fetches."""
        if self.metadata is None:
            return None
        value = self.metadata.attributes.get("NX_class")
        return str(value) if value is not None else None


class ExpandAllResult(NamedTuple):
    fetched: int
    failures: Tuple[FetchFailedError, ...]
    skipped_links: int
    truncated: bool


class TreeStore:
    """Single owner of the session: provider handle plus node arena."""

    def __init__(self, provider: DataProvider, handle: Any, file_path: str) -> None:
        self.logr = get_logger("tree")
        self.provider = provider
        self.handle = handle
        self.file_path = file_path
        self.file_size: Optional[int] = provider.file_size(handle)
        self._nodes: List[Node] = []
        self._by_path: Dict[str, int] = {}
        self._closed = False
        # Bumped on structural changes (expansion, fetched children).
        self.generation = 0
        # Bumped whenever attributes get cached.
        self.metadata_generation = 0
        self.fetch_count = 0
        self.metadata_fetch_count = 0
        self._new_node("/", NodeKind.GROUP, None)

    @classmethod
    def open(cls, path: str, provider: DataProvider) -> "TreeStore":
        """Open ``path`` and list the root group.

        Any failure here is fatal for the session and is raised as the
        provider's open error, or :class:`ReadError` if the root cannot be
        listed.
        """
        handle = provider.open(path)
        store = cls(provider, handle, path)
        try:
            store.expand(ROOT_ID)
        except FetchFailedError as exc:
            store.close()
            raise ReadError(f"Unable to read the root group of '{path}': {exc.cause}") from exc
        store.logr.debug("open: path=%s root_children=%d", path, len(store.root.children))
        return store

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self.provider.close(self.handle)
        self.logr.debug("close: path=%s nodes=%d", self.file_path, len(self._nodes))

    def __enter__(self) -> "TreeStore":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def __len__(self) -> int:
        return len(self._nodes)

    # ---- Lookup ----
    @property
    def root(self) -> Node:
        return self._nodes[ROOT_ID]

    def node(self, node_id: int) -> Node:
        try:
            return self._nodes[node_id]
        except IndexError:
            raise KeyError(f"Unknown node id {node_id}") from None

    def id_for_path(self, path: str) -> Optional[int]:
        return self._by_path.get(path)

    def ancestors(self, node_id: int) -> Tuple[int, ...]:
        """Ids from the parent up to and including the root."""
        out: List[int] = []
        parent = self.node(node_id).parent
        while parent is not None:
            out.append(parent)
            parent = self._nodes[parent].parent
        return tuple(out)

    def depth(self, node_id: int) -> int:
        """Display depth; children of the root sit at depth 0."""
        return max(len(self.ancestors(node_id)) - 1, 0)

    def walk_fetched(self, start: int = ROOT_ID) -> Iterator[int]:
        """Depth-first pre-order over fetched descendants, ignoring expansion."""
        stack = list(reversed(self.node(start).children))
        while stack:
            node_id = stack.pop()
            yield node_id
            node = self._nodes[node_id]
            if node.child_state is ChildState.FETCHED:
                stack.extend(reversed(node.children))

    # ---- Expansion ----
    def expand(self, node_id: int) -> None:
        """Expand a group, fetching its children the first time.

        Raises :class:`FetchFailedError` and leaves ``expanded`` untouched when
        the fetch fails. A failed node is fetched again on the next call.
        """
        node = self.node(node_id)
        if not node.is_group or node.expanded:
            return
        if node.child_state is not ChildState.FETCHED:
            self._fetch_children(node)
        node.expanded = True
        self.generation += 1

    def collapse(self, node_id: int) -> None:
        node = self.node(node_id)
        if not node.expanded:
            return
        node.expanded = False
        self.generation += 1

    def toggle(self, node_id: int) -> None:
        if self.node(node_id).expanded:
            self.collapse(node_id)
        else:
            self.expand(node_id)

    def children_of(self, node_id: int) -> Tuple[int, ...]:
        """Cached children, fetched synchronously on first use."""
        node = self.node(node_id)
        if not node.is_group:
            return ()
        if node.child_state is not ChildState.FETCHED:
            self._fetch_children(node)
        return node.children

    def expand_all(self, node_id: int, limit: int) -> ExpandAllResult:
        """Recursively expand ``node_id`` and every group below it.

        At most ``limit`` provider fetches are issued. Links whose target was
        already visited, or that point at one of their own ancestors, are not
        entered.
        """
        start_fetches = self.fetch_count
        visited: Set[str] = set()
        failures: List[FetchFailedError] = []
        skipped = 0
        truncated = False
        stack = [node_id]
        while stack:
            node = self.node(stack.pop())
            if not node.is_group:
                continue
            key = node.canonical_path
            if key in visited or self._links_to_ancestor(node):
                skipped += 1
                self.logr.debug("expand_all: not entering %s -> %s", node.path, key)
                continue
            visited.add(key)
            if node.child_state is not ChildState.FETCHED and self.fetch_count - start_fetches >= limit:
                truncated = True
                break
            try:
                self.expand(node.id)
            except FetchFailedError as exc:
                failures.append(exc)
                continue
            stack.extend(reversed(node.children))
        result = ExpandAllResult(self.fetch_count - start_fetches, tuple(failures), skipped, truncated)
        self.logr.debug("expand_all: root=%s result=%s", self.node(node_id).path, result)
        return result

    def _links_to_ancestor(self, node: Node) -> bool:
        target = node.target
        if target is None:
            return False
        if target == "/" or node.path == target or node.path.startswith(target.rstrip("/") + "/"):
            return True
        return any(self._nodes[a].canonical_path == target for a in self.ancestors(node.id))

    # ---- Metadata ----
    def metadata_of(self, node_id: int) -> Metadata:
        """Attributes (and dataset summary) for a node, cached after first read."""
        node = self.node(node_id)
        if node.metadata is not None:
            return node.metadata
        if node.kind is NodeKind.BROKEN:
            # Nothing behind the link to read
            node.metadata = Metadata({})
            return node.metadata
        try:
            attributes = dict(self.provider.read_attributes(self.handle, node.path))
            summary = None
            if node.kind is NodeKind.DATASET:
                summary = self.provider.read_dataset_summary(self.handle, node.path)
        except Exception as exc:
            err = FetchFailedError(node.path, exc)
            node.metadata_error = err
            self.logr.warning("metadata_of: %s", err)
            raise err from exc
        node.metadata = Metadata(attributes, summary)
        node.metadata_error = None
        self.metadata_fetch_count += 1
        self.metadata_generation += 1
        return node.metadata

    def cached_metadata(self, node_id: int) -> Optional[Metadata]:
        return self.node(node_id).metadata

    # ---- Internals ----
    def _new_node(
        self,
        path: str,
        kind: NodeKind,
        parent: Optional[int],
        link: LinkKind = LinkKind.HARD,
        target: Optional[str] = None,
    ) -> Node:
        node = Node(
            id=len(self._nodes),
            path=path,
            name=base_name(path),
            kind=kind,
            parent=parent,
            link=link,
            target=target,
        )
        self._nodes.append(node)
        self._by_path[path] = node.id
        return node

    def _fetch_children(self, node: Node) -> None:
        node.child_state = ChildState.FETCHING
        try:
            entries = list(self.provider.list_children(self.handle, node.path))
        except Exception as exc:
            err = FetchFailedError(node.path, exc)
            node.child_state = ChildState.FETCH_FAILED
            node.fetch_error = err
            self.generation += 1
            self.logr.warning("fetch: %s", err)
            raise err from exc
        except BaseException:
            node.child_state = ChildState.NOT_FETCHED
            raise
        children = []
        for entry in entries:
            child = self._new_node(
                join_path(node.path, entry.name),
                entry.kind,
                node.id,
                link=entry.link,
                target=entry.target,
            )
            children.append(child.id)
        node.children = tuple(children)
        node.child_state = ChildState.FETCHED
        node.fetch_error = None
        self.fetch_count += 1
        self.generation += 1
        self.logr.debug("fetch: path=%s children=%d", node.path, len(children))
