"""
StarCatalog Transport Module

Collaborators that reach the remote catalog. The entity cache depends only
on the ``Transport`` interface.
"""

from .base import Transport
from .memory import MemoryTransport
from .http import HttpTransport

__all__ = [
    "Transport",
    "MemoryTransport",
    "HttpTransport",
]
