"""Contract for the hierarchical data reader consumed by the tree store.

The engine never touches h5py directly; it talks to a :class:`DataProvider`
so it can be driven by an in-memory fake in tests.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Dict, NamedTuple, Optional, Sequence, Tuple, Union


class NodeKind(Enum):
    GROUP = "group"
    DATASET = "dataset"
    DATATYPE = "datatype"  # committed (named) datatype
    BROKEN = "broken"  # link whose target cannot be resolved


class LinkKind(Enum):
    HARD = "hard"
    SOFT = "soft"
    EXTERNAL = "external"


AttrValue = Union[str, int, float, bool]


class ChildEntry(NamedTuple):
    """One immediate child of a group, in the order the file stores them."""

    name: str
    kind: NodeKind
    link: LinkKind = LinkKind.HARD
    # Canonical location the link resolves to; None means the child's own path.
    target: Optional[str] = None


class DatasetSummary(NamedTuple):
    shape: Tuple[int, ...]
    type_name: str
    element_count: int
    byte_size: int
    layout: str = "contiguous"
    chunk_shape: Optional[Tuple[int, ...]] = None
    filters: Tuple[str, ...] = ()


class DataProvider(ABC):
    """Reader interface. All calls are synchronous and may be slow.

    ``open`` raises :class:`~nexplore.errors.ReadError`,
    :class:`~nexplore.errors.UnsupportedFormatError` or
    :class:`~nexplore.errors.PermissionDeniedError`; the per-path reads raise
    :class:`~nexplore.errors.ReadError`.
    """

    @abstractmethod
    def open(self, path: str) -> Any:
        ...

    def close(self, handle: Any) -> None:
        pass

    def file_size(self, handle: Any) -> Optional[int]:
        return None

    @abstractmethod
    def list_children(self, handle: Any, path: str) -> Sequence[ChildEntry]:
        ...

    @abstractmethod
    def read_attributes(self, handle: Any, path: str) -> Dict[str, AttrValue]:
        ...

    @abstractmethod
    def read_dataset_summary(self, handle: Any, path: str) -> DatasetSummary:
        ...


def join_path(parent: str, name: str) -> str:
    if parent in ("", "/"):
        return "/" + name
    return parent.rstrip("/") + "/" + name


def base_name(path: str) -> str:
    if path in ("", "/"):
        return "/"
    return path.rstrip("/").rsplit("/", 1)[-1]
