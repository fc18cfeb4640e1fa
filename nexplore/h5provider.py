"""DataProvider backed by h5py."""

from __future__ import annotations

import os
import posixpath
import time
from typing import Any, Dict, List, Optional

import h5py
import numpy as np

from .debug import get_logger
from .errors import PermissionDeniedError, ReadError, UnsupportedFormatError
from .provider import AttrValue, ChildEntry, DataProvider, DatasetSummary, LinkKind, NodeKind, join_path

ARRAY_PREVIEW_THRESHOLD = 16

_LAYOUT_NAMES = {
    h5py.h5d.COMPACT: "compact",
    h5py.h5d.CONTIGUOUS: "contiguous",
    h5py.h5d.CHUNKED: "chunked",
    h5py.h5d.VIRTUAL: "virtual",
}


def attr_to_value(value: Any) -> AttrValue:
    """Convert an h5py attribute value into plain text or a Python scalar."""
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    if isinstance(value, (str, bool, int, float)):
        return value
    if isinstance(value, np.generic):
        return attr_to_value(value.item())
    if isinstance(value, np.ndarray):
        if value.size == 1:
            return attr_to_value(value.reshape(-1)[0])
        if value.dtype.kind in ("S", "O", "U"):
            items = [str(attr_to_value(v)) for v in value.reshape(-1)[:ARRAY_PREVIEW_THRESHOLD]]
            more = ", ..." if value.size > ARRAY_PREVIEW_THRESHOLD else ""
            return "[" + ", ".join(items) + more + "]"
        return np.array2string(value, threshold=ARRAY_PREVIEW_THRESHOLD, separator=", ")
    return str(value)


def _link_target(parent: str, link: Any) -> tuple:
    if isinstance(link, h5py.SoftLink):
        target = link.path
        if not target.startswith("/"):
            target = posixpath.join(parent, target)
        return LinkKind.SOFT, posixpath.normpath(target)
    if isinstance(link, h5py.ExternalLink):
        return LinkKind.EXTERNAL, f"{link.filename}:{link.path}"
    return LinkKind.HARD, None


class H5Provider(DataProvider):
    """Read-only access to an HDF5 (or NeXus) file through h5py."""

    def __init__(self) -> None:
        self.logr = get_logger("h5")

    def open(self, path: str) -> h5py.File:
        if not os.path.exists(path):
            raise ReadError(f"No such file: '{path}'")
        if os.path.isdir(path):
            raise ReadError(f"'{path}' is a directory")
        if not os.access(path, os.R_OK):
            raise PermissionDeniedError(f"Permission denied: '{path}'")
        try:
            is_hdf5 = h5py.is_hdf5(path)
        except PermissionError as exc:
            raise PermissionDeniedError(f"Permission denied: '{path}'") from exc
        except OSError as exc:
            raise ReadError(f"Unable to read '{path}': {exc}") from exc
        if not is_hdf5:
            raise UnsupportedFormatError(f"'{path}' is not an HDF5 file")
        try:
            handle = h5py.File(path, "r")
        except PermissionError as exc:
            raise PermissionDeniedError(f"Permission denied: '{path}'") from exc
        except OSError as exc:
            raise ReadError(f"Unable to open '{path}': {exc}") from exc
        self.logr.debug("open: path=%s", path)
        return handle

    def close(self, handle: h5py.File) -> None:
        try:
            handle.close()
        except Exception as exc:
            self.logr.debug("close failed: %s", exc)

    def file_size(self, handle: h5py.File) -> Optional[int]:
        try:
            return os.path.getsize(handle.filename)
        except OSError:
            return None

    def _get(self, handle: h5py.File, path: str) -> Any:
        try:
            return handle[path]
        except (KeyError, OSError, ValueError) as exc:
            raise ReadError(f"Unable to access '{path}': {exc}") from exc

    def list_children(self, handle: h5py.File, path: str) -> List[ChildEntry]:
        started = time.perf_counter()
        group = self._get(handle, path)
        if not isinstance(group, h5py.Group):
            raise ReadError(f"'{path}' is not a group")
        entries: List[ChildEntry] = []
        try:
            names = list(group.keys())
        except (OSError, RuntimeError) as exc:
            raise ReadError(f"Unable to list '{path}': {exc}") from exc
        for name in names:
            child_path = join_path(path, name)
            try:
                link = group.get(name, getlink=True)
            except (KeyError, OSError, RuntimeError, ValueError) as exc:
                self.logr.warning("list_children: unreadable link %s: %s", child_path, exc)
                link = None
            try:
                cls = group.get(name, getclass=True)
            except (KeyError, OSError, RuntimeError, ValueError, TypeError) as exc:
                # h5py raises here for dangling soft links and missing external files
                self.logr.warning("list_children: unresolvable link %s: %s", child_path, exc)
                cls = None
            if cls is None:
                kind = NodeKind.BROKEN
            elif issubclass(cls, h5py.Group):
                kind = NodeKind.GROUP
            elif issubclass(cls, h5py.Dataset):
                kind = NodeKind.DATASET
            else:
                kind = NodeKind.DATATYPE
            link_kind, target = _link_target(path, link)
            entries.append(ChildEntry(name, kind, link_kind, target))
        self.logr.debug(
            "list_children: path=%s count=%d elapsed=%.3fs",
            path,
            len(entries),
            time.perf_counter() - started,
        )
        return entries

    def read_attributes(self, handle: h5py.File, path: str) -> Dict[str, AttrValue]:
        obj = self._get(handle, path)
        attrs: Dict[str, AttrValue] = {}
        try:
            names = list(obj.attrs.keys())
        except (OSError, RuntimeError) as exc:
            raise ReadError(f"Unable to read attributes of '{path}': {exc}") from exc
        for name in names:
            try:
                attrs[name] = attr_to_value(obj.attrs[name])
            except (OSError, TypeError, ValueError) as exc:
                self.logr.debug("read_attributes: %s@%s unreadable: %s", path, name, exc)
                attrs[name] = f"<unreadable: {exc}>"
        return attrs

    def read_dataset_summary(self, handle: h5py.File, path: str) -> DatasetSummary:
        ds = self._get(handle, path)
        if not isinstance(ds, h5py.Dataset):
            raise ReadError(f"'{path}' is not a dataset")
        try:
            shape = tuple(int(n) for n in (ds.shape or ()))
            element_count = int(ds.size or 0)
            byte_size = element_count * int(ds.dtype.itemsize)
            layout = _LAYOUT_NAMES.get(ds.id.get_create_plist().get_layout(), "unknown")
            chunks = tuple(ds.chunks) if ds.chunks else None
            filters: List[str] = []
            if ds.compression:
                filters.append(str(ds.compression))
            if ds.shuffle:
                filters.append("shuffle")
            if ds.fletcher32:
                filters.append("fletcher32")
            if ds.scaleoffset is not None:
                filters.append("scaleoffset")
            return DatasetSummary(
                shape=shape,
                type_name=str(ds.dtype),
                element_count=element_count,
                byte_size=byte_size,
                layout=layout,
                chunk_shape=chunks,
                filters=tuple(filters),
            )
        except (OSError, RuntimeError, TypeError) as exc:
            raise ReadError(f"Unable to read dataset '{path}': {exc}") from exc
