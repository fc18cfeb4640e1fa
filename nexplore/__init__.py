"""Terminal explorer for HDF5 and NeXus files."""

from .version import __version__

__all__ = ["__version__"]
