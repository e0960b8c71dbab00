"""
StarCatalog Errors

Failure taxonomy for the entity cache. Fetch failures are never raised to
callers of ``search`` or ``load_full``; they are captured on the owning
object and delivered through ``error`` events. The remaining classes signal
misuse of the routing and view layers.
"""

from typing import Optional


class CatalogError(Exception):
    """Base class for all StarCatalog errors."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.message = message
        self.cause = cause

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r})"


class TransportFailure(CatalogError):
    """Network or remote error during a listing or detail fetch."""


class ParseFailure(CatalogError):
    """A remote response did not have the expected shape."""


class RouterError(CatalogError):
    """Raised when the route synchronizer is misused."""


class BinderDisposed(CatalogError):
    """Raised when a disposed view binder is bound again."""


def as_fetch_failure(exc: BaseException) -> CatalogError:
    """
    Normalise an exception raised by a transport collaborator.

    Catalog errors pass through unchanged; anything else is treated
    opaquely as a transport failure with the original kept as ``cause``.
    """
    if isinstance(exc, CatalogError):
        return exc
    return TransportFailure(f"{exc.__class__.__name__}: {exc}", cause=exc)


__all__ = [
    "CatalogError",
    "TransportFailure",
    "ParseFailure",
    "RouterError",
    "BinderDisposed",
    "as_fetch_failure",
]
