"""
Dreamcup drink builder package.

The heart of the package is the cup-fill layer model in :mod:`dreamcup.layers`:
a fixed stack of coloured bands that ingredients are poured into and out of.
Sessions, the ingredient catalog and the HTTP control surface are built on top
of it.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union

from .ingredients import CAPACITY

__all__ = [
    "BuilderConfig",
    "CAPACITY",
]


class BuilderConfig:
    """Top level configuration for the builder service."""

    def __init__(
        self,
        capacity: int = CAPACITY,
        catalog_path: Optional[Union[str, Path]] = None,
        profile: str = "default",
        session_timeout: Optional[float] = 3600.0,
    ) -> None:
        if int(capacity) <= 0:
            raise ValueError("capacity must be positive")
        if session_timeout is not None and session_timeout <= 0:
            raise ValueError("session_timeout must be positive")
        self.capacity = int(capacity)
        self.catalog_path = catalog_path
        self.profile = profile
        self.session_timeout = session_timeout
