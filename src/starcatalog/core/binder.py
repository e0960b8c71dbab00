"""
View Binders

Binders subscribe to a collection and derive presentation state from it.
They never mutate the cache, and every subscription they make is released
by ``dispose``.
"""

import logging
from typing import Any, Callable, Dict, Generic, Optional, Tuple, TypeVar

from ..errors import BinderDisposed
from .collection import EntityCollection
from .entity import Entity
from .events import EventBus, Listener

logger = logging.getLogger(__name__)

R = TypeVar("R")


class ViewBinder(Listener, Generic[R]):
    """
    Keeps an immutable snapshot of row view-models in sync with a collection.

    A ``sync`` or a membership change (``add``, ``remove``, ``reset``)
    re-projects every row; a bubbled ``change`` re-projects only the row of
    the entity that changed.
    """

    def __init__(
        self,
        project: Callable[[Entity], R],
        on_render: Optional[Callable[[Tuple[R, ...]], Any]] = None,
    ):
        """
        Initialize the binder.

        Args:
            project: Pure projection from an entity to a row view-model
            on_render: Sink called with every new snapshot
        """
        super().__init__()
        self.project = project
        self.on_render = on_render
        self.collection: Optional[EntityCollection] = None
        self.snapshot: Tuple[R, ...] = ()
        self.render_count = 0
        self._row_ids: Tuple[str, ...] = ()
        self._disposed = False

    @property
    def disposed(self) -> bool:
        return self._disposed

    def bind(self, collection: EntityCollection) -> "ViewBinder[R]":
        """Bind to a collection, releasing any previous binding."""
        if self._disposed:
            raise BinderDisposed("Cannot bind a disposed view binder")

        if self.collection is not None:
            self.stop_listening(self.collection)

        self.collection = collection
        self.listen_to(collection, "sync", self._on_sync)
        self.listen_to(collection, "change", self._on_change)
        for event_name in ("add", "remove", "reset"):
            self.listen_to(collection, event_name, self._on_membership)
        return self

    def render(self) -> Tuple[R, ...]:
        """Project every entity of the bound collection, in order."""
        if self.collection is None:
            rows, row_ids = (), ()
        else:
            rows = tuple(self.collection.map(self.project))
            row_ids = tuple(self.collection.ids())

        self._publish(rows, row_ids)
        return rows

    def refresh_row(self, entity_id: str) -> Tuple[R, ...]:
        """Re-project a single row of the current snapshot."""
        entity = self.collection.get(entity_id) if self.collection is not None else None
        if entity is None:
            return self.snapshot

        if entity_id not in self._row_ids:
            return self.render()

        index = self._row_ids.index(entity_id)
        rows = self.snapshot[:index] + (self.project(entity),) + self.snapshot[index + 1:]
        self._publish(rows, self._row_ids)
        return rows

    def dispose(self) -> None:
        released = self.stop_listening()
        self.collection = None
        self._disposed = True
        logger.debug(f"{self.__class__.__name__} disposed, released {released} subscription(s)")

    def _publish(self, rows: Tuple[R, ...], row_ids: Tuple[str, ...]) -> None:
        self.snapshot = rows
        self._row_ids = row_ids
        self.render_count += 1
        if self.on_render is not None:
            self.on_render(rows)

    def _on_sync(self, collection: EntityCollection) -> None:
        self.render()

    def _on_change(self, entity_id: str, entity: Entity, changes: Dict[str, Any]) -> None:
        self.refresh_row(entity_id)

    def _on_membership(self, *args: Any) -> None:
        self.render()


class SearchForm(Listener):
    """
    Search input state.

    Mirrors the collection's query term after every ``sync`` (so a deep link
    fills the input) and emits ``search(term)`` on submit.
    """

    def __init__(self):
        super().__init__()
        self.value = ""
        self.collection: Optional[EntityCollection] = None
        self._events = EventBus(owner=self)

    @property
    def events(self) -> EventBus:
        return self._events

    def bind(self, collection: EntityCollection) -> "SearchForm":
        if self.collection is not None:
            self.stop_listening(self.collection)
        self.collection = collection
        self.listen_to(collection, "sync", self._on_sync)
        return self

    def render(self) -> str:
        if self.collection is not None:
            self.value = self.collection.query_term or ""
        return self.value

    def submit(self, term: Optional[str] = None) -> bool:
        """
        Submit a search.

        Args:
            term: Term to submit (default: the current value)

        Returns:
            True if a ``search`` event was emitted
        """
        term = (self.value if term is None else term).strip()
        if not term:
            return False
        self.value = term
        self._events.trigger("search", term)
        return True

    def dispose(self) -> None:
        self.stop_listening()
        self._events.off()
        self.collection = None

    def _on_sync(self, collection: EntityCollection) -> None:
        self.render()


__all__ = ["ViewBinder", "SearchForm"]
