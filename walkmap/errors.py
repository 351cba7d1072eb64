"""Exceptions raised by Walkmap components."""

from __future__ import annotations

from typing import Optional


class WalkmapError(Exception):
    """Base class for Walkmap errors."""


class DataSourceUnavailable(WalkmapError):
    """Raised when the tile database or transport feature source cannot be reached or parsed.

    Caches record the first failure per plane (tiles) or globally (features) and
    re-raise it on later calls instead of contacting the source again.
    """

    def __init__(self, message: str, *, source: str, plane: Optional[int] = None) -> None:
        self.source = source
        self.plane = plane
        self.message = message
        where = f"{source} (plane {plane})" if plane is not None else source
        super().__init__(f"{where}: {message}")

    def replay(self) -> "DataSourceUnavailable":
        """Return a fresh copy of this error for re-raising a cached failure."""
        return DataSourceUnavailable(
            f"{self.message} [cached failure]", source=self.source, plane=self.plane
        )


__all__ = ["WalkmapError", "DataSourceUnavailable"]
