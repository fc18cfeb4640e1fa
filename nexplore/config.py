from __future__ import annotations

import os
from dataclasses import dataclass

from .debug import env_flag

DEFAULT_EXPAND_ALL_LIMIT = 5000


@dataclass
class ExplorerConfig:
    """Session options. CLI flags override the NEXPLORE_* environment."""

    search_attributes: bool = False
    ignore_case: bool = False
    expand_all_limit: int = DEFAULT_EXPAND_ALL_LIMIT
    debug: bool = False

    @classmethod
    def from_env(cls) -> "ExplorerConfig":
        limit_raw = os.environ.get("NEXPLORE_EXPAND_LIMIT", "").strip()
        try:
            limit = int(limit_raw) if limit_raw else DEFAULT_EXPAND_ALL_LIMIT
        except ValueError:
            limit = DEFAULT_EXPAND_ALL_LIMIT
        return cls(
            search_attributes=env_flag("NEXPLORE_SEARCH_ATTRS"),
            ignore_case=env_flag("NEXPLORE_IGNORE_CASE"),
            expand_all_limit=max(1, limit),
            debug=env_flag("NEXPLORE_DEBUG"),
        )
