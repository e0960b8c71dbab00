"""
StarCatalog Transport Layer - Base Classes

This module provides the abstract interface the entity cache uses to reach
the remote catalog. The core only ever calls these two coroutines and treats
any exception they raise opaquely.
"""

from abc import ABC, abstractmethod
from typing import Any, Mapping, Sequence


class Transport(ABC):
    """
    Abstract base class for catalog transports.

    Implementations return raw records (mappings of field name to value);
    interpreting those records is left to entities and projections.
    """

    @abstractmethod
    async def fetch_listing(self, term: str) -> Sequence[Mapping[str, Any]]:
        """
        Fetch the abbreviated records matching a search term.

        Args:
            term: Search term, not encoded

        Returns:
            Raw records in display order
        """
        pass

    @abstractmethod
    async def fetch_detail(self, entity_id: str) -> Mapping[str, Any]:
        """
        Fetch the full record for one identifier.

        Args:
            entity_id: Remote identifier

        Returns:
            Raw record with every field the remote provides
        """
        pass

    async def aclose(self) -> None:
        """Release any resources held by the transport."""
        pass
