"""
Entity Collection

An ordered, id-deduplicated set of entities bound to the last search term.
The collection owns the search lifecycle (replace-all) and delegates the
detail lifecycle (merge-one) to its members, re-emitting their ``change``
and ``error`` events tagged with the member id.

Events emitted on ``collection.events``:
- ``request(collection, term)`` when a search starts
- ``sync(collection)`` once the items have been replaced
- ``error(entity_id, failure)``; ``entity_id`` is None for search failures
- ``change(entity_id, entity, changes)`` bubbled from a member
- ``add(entity, collection)`` / ``remove(entity, collection)`` / ``reset(collection)``
"""

import logging
from enum import Enum
from typing import Any, Callable, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple, Type, TypeVar, Union

from ..errors import CatalogError, ParseFailure, TransportFailure, as_fetch_failure
from ..transport.base import Transport
from .entity import Entity, Materialization
from .events import EventBus, Listener

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SyncState(str, Enum):
    """Search lifecycle."""
    IDLE = "idle"
    LOADING = "loading"
    LOADED = "loaded"
    ERROR = "error"


class EntityCollection:
    """
    Collection of entities populated by searches.

    A search replaces the items wholesale, but an incoming record whose id is
    already cached refreshes the existing entity instead of replacing it, so
    detail that was already loaded survives a repeated or overlapping search.
    """

    def __init__(self, entity_class: Type[Entity] = Entity, transport: Optional[Transport] = None):
        """
        Initialize the collection.

        Args:
            entity_class: Entity subclass built from incoming records
            transport: Collaborator for listing and detail fetches
        """
        self.entity_class = entity_class
        self.transport = transport

        self.query_term: Optional[str] = None
        self.sync_state = SyncState.IDLE
        self.last_error: Optional[CatalogError] = None

        self._items: List[Entity] = []
        self._by_id: Dict[str, Entity] = {}
        self._child_listeners: Dict[str, Listener] = {}
        self._generation = 0
        self._events = EventBus(owner=self)

    @property
    def events(self) -> EventBus:
        return self._events

    @property
    def items(self) -> Tuple[Entity, ...]:
        return tuple(self._items)

    async def search(self, term: str) -> None:
        """
        Replace the items with the listing for ``term``.

        Failures leave the current items in place, set ``sync_state`` to
        ``ERROR`` and emit ``error``. A response that arrives after a newer
        search (or a reset) has started is discarded.
        """
        self._generation += 1
        generation = self._generation
        self.query_term = term
        self.sync_state = SyncState.LOADING
        self._events.trigger("request", self, term)

        try:
            if self.transport is None:
                raise TransportFailure("No transport bound to collection")
            response = await self.transport.fetch_listing(term)
            parsed = self._parse(response)
        except Exception as exc:
            if generation != self._generation:
                logger.debug(f"Discarding failed stale search for '{term}'")
                return
            failure = as_fetch_failure(exc)
            self.sync_state = SyncState.ERROR
            self.last_error = failure
            logger.warning(f"Search for '{term}' failed: {failure.message}")
            self._events.trigger("error", None, failure)
            return

        if generation != self._generation:
            logger.debug(f"Discarding stale search response for '{term}' (current: '{self.query_term}')")
            return

        self._replace(parsed)
        self.sync_state = SyncState.LOADED
        self.last_error = None
        logger.info(f"Search for '{term}' loaded {len(self._items)} item(s)")
        self._events.trigger("sync", self)

    def get(self, entity_id: Any) -> Optional[Entity]:
        return self._by_id.get(str(entity_id))

    def map(self, fn: Callable[[Entity], T]) -> List[T]:
        return [fn(entity) for entity in self._items]

    def ids(self) -> List[str]:
        return [entity.id for entity in self._items]

    def add(self, entries: Iterable[Union[Entity, Mapping[str, Any]]]) -> List[Entity]:
        """
        Append entities (or raw stub records) to the collection.

        Entries whose id is already present are merged into the existing
        entity instead of being added twice.

        Returns:
            The entities that were newly added
        """
        added: List[Entity] = []
        for entry in entries:
            if isinstance(entry, Entity):
                existing = self._by_id.get(entry.id)
                if existing is not None:
                    existing.merge(entry.attributes, entry.materialization)
                    continue
                if entry.transport is None:
                    entry.bind_transport(self.transport)
                entity = entry
            else:
                entity = self.entity_class.from_record(entry, Materialization.STUB, self.transport)
                existing = self._by_id.get(entity.id)
                if existing is not None:
                    existing.merge(entry)
                    continue

            self._items.append(entity)
            self._by_id[entity.id] = entity
            self._attach(entity)
            added.append(entity)
            self._events.trigger("add", entity, self)

        return added

    def remove(self, entity_or_id: Union[Entity, str]) -> Optional[Entity]:
        """Evict one entity and stop listening to it."""
        entity_id = entity_or_id.id if isinstance(entity_or_id, Entity) else str(entity_or_id)
        entity = self._by_id.pop(entity_id, None)
        if entity is None:
            return None

        self._items = [e for e in self._items if e.id != entity_id]
        self._detach(entity)
        self._events.trigger("remove", entity, self)
        return entity

    def reset(self) -> None:
        """Evict everything and forget the query term."""
        self._generation += 1
        for entity in self._items:
            self._detach(entity)
        self._items = []
        self._by_id = {}
        self.query_term = None
        self.sync_state = SyncState.IDLE
        self.last_error = None
        self._events.trigger("reset", self)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Entity]:
        return iter(tuple(self._items))

    def __contains__(self, item: Any) -> bool:
        entity_id = item.id if isinstance(item, Entity) else str(item)
        return entity_id in self._by_id

    def __repr__(self) -> str:
        return f"EntityCollection(term={self.query_term!r}, items={len(self._items)}, state={self.sync_state.value})"

    def _parse(self, response: Any) -> List[Tuple[str, Mapping[str, Any]]]:
        if isinstance(response, (str, bytes, Mapping)) or not isinstance(response, Iterable):
            raise ParseFailure(f"Listing response is {type(response).__name__}, expected a sequence of records")

        id_attribute = self.entity_class.id_attribute
        parsed = []
        for index, record in enumerate(response):
            if not isinstance(record, Mapping):
                raise ParseFailure(f"Listing record {index} is {type(record).__name__}, expected a mapping")
            raw_id = record.get(id_attribute)
            if raw_id is None or raw_id == "":
                raise ParseFailure(f"Listing record {index} has no '{id_attribute}' field")
            bad_keys = [key for key in record if not isinstance(key, str)]
            if bad_keys:
                raise ParseFailure(f"Listing record {index} has non-string field names: {bad_keys!r}")
            parsed.append((str(raw_id), record))
        return parsed

    def _replace(self, parsed: List[Tuple[str, Mapping[str, Any]]]) -> None:
        new_items: List[Entity] = []
        new_index: Dict[str, Entity] = {}

        for entity_id, record in parsed:
            if entity_id in new_index:
                # Duplicate within one response keeps the first position
                new_index[entity_id].merge(record, silent=True)
                continue

            entity = self._by_id.get(entity_id)
            if entity is None:
                entity = self.entity_class.from_record(record, Materialization.STUB, self.transport)
            else:
                entity.merge(record, Materialization.STUB, silent=True)

            new_items.append(entity)
            new_index[entity_id] = entity

        for entity in self._items:
            if entity.id not in new_index:
                self._detach(entity)

        previous = self._by_id
        self._items = new_items
        self._by_id = new_index

        for entity in new_items:
            if entity.id not in previous:
                self._attach(entity)

    def _attach(self, entity: Entity) -> None:
        listener = Listener()
        listener.listen_to(entity, "change", self._bubble_change)
        listener.listen_to(entity, "error", self._bubble_error)
        self._child_listeners[entity.id] = listener

    def _detach(self, entity: Entity) -> None:
        listener = self._child_listeners.pop(entity.id, None)
        if listener is not None:
            listener.stop_listening()

    def _bubble_change(self, entity: Entity, changes: Dict[str, Any]) -> None:
        self._events.trigger("change", entity.id, entity, changes)

    def _bubble_error(self, entity: Entity, failure: CatalogError) -> None:
        self._events.trigger("error", entity.id, failure)


__all__ = ["EntityCollection", "SyncState"]
