"""
StarCatalog Transport Layer - Memory Backend

In-memory catalog transport for development and testing. Records every call
so tests can assert how many fetches were actually issued, and supports
per-term delays and injected failures.
"""

import asyncio
import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from ..errors import TransportFailure
from .base import Transport

logger = logging.getLogger(__name__)


class MemoryTransport(Transport):
    """
    In-memory transport.

    Listings are looked up by exact term first; when a term has no explicit
    listing and the transport was built from full records, titles are matched
    case-insensitively and the stub fields of each match are returned.
    """

    def __init__(
        self,
        listings: Optional[Mapping[str, Sequence[Mapping[str, Any]]]] = None,
        details: Optional[Mapping[str, Mapping[str, Any]]] = None,
        delay: float = 0.0,
    ):
        """
        Initialize the memory transport.

        Args:
            listings: Term -> records returned by ``fetch_listing``
            details: Identifier -> record returned by ``fetch_detail``
            delay: Seconds every call sleeps before answering
        """
        self.listings: Dict[str, List[Dict[str, Any]]] = {
            term: [dict(r) for r in records] for term, records in (listings or {}).items()
        }
        self.details: Dict[str, Dict[str, Any]] = {
            str(key): dict(record) for key, record in (details or {}).items()
        }
        self.delay = delay

        self.listing_calls: List[str] = []
        self.detail_calls: List[str] = []

        self._delays: Dict[str, float] = {}
        self._listing_failures: Dict[str, BaseException] = {}
        self._detail_failures: Dict[str, BaseException] = {}
        self._title_field: Optional[str] = None
        self._stub_fields: Sequence[str] = ()
        self._closed = False

    @classmethod
    def from_records(
        cls,
        records: Iterable[Mapping[str, Any]],
        id_attribute: str = "id",
        title_field: str = "title",
        stub_fields: Sequence[str] = (),
        delay: float = 0.0,
    ) -> "MemoryTransport":
        """Build a searchable transport from full records."""
        transport = cls(details={str(r[id_attribute]): r for r in records}, delay=delay)
        transport._title_field = title_field
        transport._stub_fields = tuple(stub_fields) or (id_attribute, title_field)
        return transport

    def add_listing(self, term: str, records: Sequence[Mapping[str, Any]], delay: Optional[float] = None) -> None:
        self.listings[term] = [dict(r) for r in records]
        if delay is not None:
            self._delays[term] = delay

    def add_detail(self, entity_id: str, record: Mapping[str, Any]) -> None:
        self.details[str(entity_id)] = dict(record)

    def set_delay(self, key: str, delay: float) -> None:
        """Delay answers for one term or identifier."""
        self._delays[key] = delay

    def fail_listing(self, term: str, exc: Optional[BaseException] = None) -> None:
        self._listing_failures[term] = exc or TransportFailure(f"Listing for '{term}' unavailable")

    def fail_detail(self, entity_id: str, exc: Optional[BaseException] = None) -> None:
        self._detail_failures[str(entity_id)] = exc or TransportFailure(f"Detail for {entity_id} unavailable")

    def clear_failures(self) -> None:
        self._listing_failures.clear()
        self._detail_failures.clear()

    async def fetch_listing(self, term: str) -> List[Dict[str, Any]]:
        self.listing_calls.append(term)
        await self._wait(term)

        if term in self._listing_failures:
            raise self._listing_failures[term]

        if term in self.listings:
            return [dict(r) for r in self.listings[term]]

        if self._title_field:
            needle = term.lower()
            return [
                {f: record[f] for f in self._stub_fields if f in record}
                for record in self.details.values()
                if needle in str(record.get(self._title_field, "")).lower()
            ]

        return []

    async def fetch_detail(self, entity_id: str) -> Dict[str, Any]:
        self.detail_calls.append(entity_id)
        await self._wait(entity_id)

        if entity_id in self._detail_failures:
            raise self._detail_failures[entity_id]

        record = self.details.get(entity_id)
        if record is None:
            raise TransportFailure(f"Unknown record {entity_id}")
        return dict(record)

    async def aclose(self) -> None:
        self._closed = True

    @property
    def closed(self) -> bool:
        return self._closed

    async def _wait(self, key: str) -> None:
        delay = self._delays.get(key, self.delay)
        if delay:
            await asyncio.sleep(delay)
        else:
            # Always suspend once so callers see a real async boundary
            await asyncio.sleep(0)
