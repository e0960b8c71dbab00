"""
StarCatalog Routing Module

Bidirectional binding between the URL fragment and application state.
"""

from .navigation import MemoryNavigation, Navigation, normalize_fragment
from .router import Route, RouteSynchronizer, RouterState

__all__ = [
    "Navigation",
    "MemoryNavigation",
    "normalize_fragment",
    "Route",
    "RouteSynchronizer",
    "RouterState",
]
