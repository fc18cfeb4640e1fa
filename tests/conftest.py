from collections import Counter
from typing import Dict, Iterable, List, Optional

import pytest

from nexplore.errors import ReadError
from nexplore.provider import ChildEntry, DataProvider, DatasetSummary, LinkKind, NodeKind
from nexplore.tree_store import TreeStore


def G(name: str, link: LinkKind = LinkKind.HARD, target: Optional[str] = None) -> ChildEntry:
    return ChildEntry(name, NodeKind.GROUP, link, target)


def D(name: str) -> ChildEntry:
    return ChildEntry(name, NodeKind.DATASET)


class FakeProvider(DataProvider):
    """In-memory provider with call counters and switchable failures."""

    def __init__(
        self,
        tree: Dict[str, List[ChildEntry]],
        attrs: Optional[Dict[str, dict]] = None,
        summaries: Optional[Dict[str, DatasetSummary]] = None,
        fail_children: Iterable[str] = (),
        fail_metadata: Iterable[str] = (),
        crash_children: Iterable[str] = (),
        open_error: Optional[Exception] = None,
    ) -> None:
        self.tree = tree
        self.attrs = attrs or {}
        self.summaries = summaries or {}
        self.fail_children = set(fail_children)
        self.fail_metadata = set(fail_metadata)
        # paths whose listing blows up with a non-ExplorerError, as h5py can
        self.crash_children = set(crash_children)
        self.open_error = open_error
        self.calls: Counter = Counter()
        self.closed = False

    def open(self, path):
        self.calls["open"] += 1
        if self.open_error is not None:
            raise self.open_error
        return {"path": path}

    def close(self, handle):
        self.closed = True

    def file_size(self, handle):
        return 45656

    def list_children(self, handle, path):
        self.calls[("list", path)] += 1
        if path in self.fail_children:
            raise ReadError(f"disk error while listing {path}")
        if path in self.crash_children:
            raise RuntimeError("component not found")
        return list(self.tree.get(path, []))

    def read_attributes(self, handle, path):
        self.calls[("attrs", path)] += 1
        if path in self.fail_metadata:
            raise ReadError(f"disk error while reading attributes of {path}")
        return dict(self.attrs.get(path, {}))

    def read_dataset_summary(self, handle, path):
        self.calls[("summary", path)] += 1
        if path in self.summaries:
            return self.summaries[path]
        return DatasetSummary(shape=(4,), type_name="int32", element_count=4, byte_size=16)


def scenario_tree() -> Dict[str, List[ChildEntry]]:
    return {
        "/": [G("entry1"), G("entry2")],
        "/entry1": [D("data"), D("description")],
        "/entry2": [D("title")],
    }


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider(
        scenario_tree(),
        attrs={
            "/entry1": {"NX_class": "NXentry"},
            "/entry1/description": {"units": "none", "long_name": "sample description"},
        },
    )


@pytest.fixture
def store(provider: FakeProvider) -> TreeStore:
    return TreeStore.open("scenario.nxs", provider)


def path_rows(store: TreeStore, rows) -> List[str]:
    return [store.node(row.node_id).path.lstrip("/") for row in rows]
