"""
Entity - One Cacheable Catalog Record

An entity starts as a stub (the abbreviated fields of a listing) and is
raised to full materialization by a detail fetch. Attributes are merged on
every successful fetch and never wholesale replaced, so a failed or partial
response can never erase data that is already displayed.
"""

import asyncio
import logging
from enum import Enum
from typing import Any, ClassVar, Dict, Mapping, Optional, TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, ValidationError

from ..errors import CatalogError, ParseFailure, TransportFailure, as_fetch_failure
from .events import EventBus

if TYPE_CHECKING:
    from ..transport.base import Transport

logger = logging.getLogger(__name__)


class Materialization(str, Enum):
    """How much of a record the entity holds."""
    STUB = "stub"
    FULL = "full"


class FetchState(str, Enum):
    """Detail fetch lifecycle."""
    IDLE = "idle"
    IN_FLIGHT = "in_flight"
    FAILED = "failed"


class Entity(BaseModel):
    """
    Base class for catalog entities.

    Subclasses name the remote identifier field with ``id_attribute`` and add
    getters over ``attributes``. Events emitted on ``entity.events``:

    - ``change(entity, changes)`` after a merge that changed anything
    - ``change:<key>(entity, value)`` for every changed attribute
    - ``request(entity)`` when a detail fetch starts
    - ``sync(entity)`` when a detail fetch has been merged
    - ``error(entity, failure)`` when a detail fetch fails
    """
    model_config = ConfigDict(arbitrary_types_allowed=True)

    id_attribute: ClassVar[str] = "id"

    id: str = Field(frozen=True)
    attributes: Dict[str, Any] = Field(default_factory=dict)
    materialization: Materialization = Materialization.STUB
    fetch_state: FetchState = FetchState.IDLE
    last_error: Optional[CatalogError] = None

    _events: EventBus = PrivateAttr(default=None)
    _transport: Any = PrivateAttr(default=None)
    _inflight: Optional[asyncio.Future] = PrivateAttr(default=None)

    @classmethod
    def __pydantic_init_subclass__(cls, **kwargs: Any) -> None:
        super().__pydantic_init_subclass__(**kwargs)
        if not isinstance(cls.id_attribute, str) or not cls.id_attribute:
            raise TypeError(f"{cls.__name__}.id_attribute must be a non-empty string")

    def model_post_init(self, __context: Any) -> None:
        self._events = EventBus(owner=self)

    @classmethod
    def from_record(
        cls,
        record: Mapping[str, Any],
        materialization: Materialization = Materialization.STUB,
        transport: Optional["Transport"] = None,
    ) -> "Entity":
        """
        Build an entity from a raw remote record.

        Args:
            record: Raw record; must contain ``id_attribute``
            materialization: Level the record represents
            transport: Collaborator used later by ``load_full``

        Raises:
            ParseFailure: if the record is not a mapping or has no identifier
        """
        if not isinstance(record, Mapping):
            raise ParseFailure(f"Expected a record mapping, got {type(record).__name__}")

        raw_id = record.get(cls.id_attribute)
        if raw_id is None or raw_id == "":
            raise ParseFailure(f"Record has no '{cls.id_attribute}' field")

        try:
            entity = cls(
                id=str(raw_id),
                attributes=dict(record),
                materialization=Materialization(materialization),
            )
        except ValidationError as e:
            raise ParseFailure(f"Record {raw_id} is not a valid {cls.__name__}", cause=e)
        entity.bind_transport(transport)
        return entity

    @property
    def events(self) -> EventBus:
        return self._events

    @property
    def transport(self) -> Optional["Transport"]:
        return self._transport

    def bind_transport(self, transport: Optional["Transport"]) -> None:
        self._transport = transport

    def get(self, key: str, default: Any = None) -> Any:
        return self.attributes.get(key, default)

    def has(self, key: str) -> bool:
        return self.attributes.get(key) is not None

    def is_full(self) -> bool:
        return self.materialization is Materialization.FULL

    def to_record(self) -> Dict[str, Any]:
        return dict(self.attributes)

    def merge(
        self,
        new_attributes: Mapping[str, Any],
        materialization: Materialization = Materialization.STUB,
        silent: bool = False,
    ) -> Dict[str, Any]:
        """
        Merge a payload into the attributes.

        Keys present in ``new_attributes`` overwrite, keys absent are kept.
        Materialization only ever moves from stub to full.

        Args:
            new_attributes: Payload to merge
            materialization: Level the payload represents
            silent: Suppress change events

        Returns:
            The attributes whose values changed
        """
        changes: Dict[str, Any] = {}
        for key, value in new_attributes.items():
            if key not in self.attributes or self.attributes[key] != value:
                changes[key] = value
            self.attributes[key] = value

        raised = (
            Materialization(materialization) is Materialization.FULL
            and self.materialization is not Materialization.FULL
        )
        if raised:
            self.materialization = Materialization.FULL

        if not silent:
            for key, value in changes.items():
                self._events.trigger(f"change:{key}", self, value)
            if changes or raised:
                self._events.trigger("change", self, changes)

        return changes

    async def load_full(self, force: bool = False) -> None:
        """
        Fetch and merge the full record.

        Does nothing when already full (unless ``force``). A call made while a
        detail fetch is in flight waits for that fetch instead of issuing
        another one. Failures are reported through the ``error`` event and
        ``last_error``; this coroutine never raises them.
        """
        if self._inflight is not None:
            logger.debug(f"Detail fetch for {self.id} already in flight, coalescing")
            await asyncio.shield(self._inflight)
            return

        if self.is_full() and not force:
            return

        if self._transport is None:
            self._fail(TransportFailure(f"No transport bound to entity {self.id}"))
            return

        self.fetch_state = FetchState.IN_FLIGHT
        self._inflight = asyncio.ensure_future(self._fetch_detail())
        self._events.trigger("request", self)
        await asyncio.shield(self._inflight)

    async def _fetch_detail(self) -> None:
        try:
            record = await self._transport.fetch_detail(self.id)
            if not isinstance(record, Mapping):
                raise ParseFailure(
                    f"Detail response for {self.id} is {type(record).__name__}, expected a mapping"
                )
        except asyncio.CancelledError:
            self._inflight = None
            self.fetch_state = FetchState.IDLE
            raise
        except Exception as exc:
            self._inflight = None
            self._fail(as_fetch_failure(exc))
            return

        self._inflight = None
        self.fetch_state = FetchState.IDLE
        self.last_error = None

        returned_id = record.get(self.id_attribute)
        if returned_id is not None and str(returned_id) != self.id:
            logger.warning(f"Detail response for {self.id} carries id {returned_id}")

        self.merge(record, Materialization.FULL)
        self._events.trigger("sync", self)

    def _fail(self, failure: CatalogError) -> None:
        self.fetch_state = FetchState.FAILED
        self.last_error = failure
        logger.warning(f"Detail fetch for {self.__class__.__name__} {self.id} failed: {failure.message}")
        self._events.trigger("error", self, failure)


__all__ = ["Entity", "FetchState", "Materialization"]
