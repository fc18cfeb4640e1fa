from __future__ import annotations

from typing import Optional, Sequence

from rich.filesize import decimal

from .provider import AttrValue

MAX_ATTR_PREVIEW = 200


def format_size(size: Optional[int]) -> str:
    """Human readable byte size (decimal units, as shown by most file managers)."""
    if size is None:
        return "?"
    return decimal(int(size))


def format_shape(shape: Sequence[int]) -> str:
    if not shape:
        return "scalar"
    return " × ".join(str(n) for n in shape)


def format_attr_value(value: AttrValue, limit: int = MAX_ATTR_PREVIEW) -> str:
    text = str(value)
    text = text.replace("\n", "\\n")
    if len(text) > limit:
        return text[: limit - 1] + "…"
    return text
