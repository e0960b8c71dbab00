"""
Catalog Application

Wires the entity cache, the view binders and the route synchronizer into
the search-and-detail flow:

    search form --search--> router.navigate("search/<term>", trigger=True)
    route "search/:term" --> collection.search(term) --sync--> results binder
    load_details(id) --> entity.load_full() --change--> results binder (one row)

Everything is constructed explicitly and passed around; nothing lives in a
module-level singleton.
"""

import logging
from typing import Any, Callable, ClassVar, Optional, Tuple, Type
from urllib.parse import quote

from .config import ApplicationConfig, get_config
from .logging_config import setup_logging_from_config
from .core.binder import SearchForm, ViewBinder
from .core.collection import EntityCollection
from .core.entity import Entity
from .movies import Movie, MovieRow, project_movie
from .routing.navigation import MemoryNavigation, Navigation
from .routing.router import RouteSynchronizer
from .transport.base import Transport
from .transport.http import HttpTransport

logger = logging.getLogger(__name__)


class CatalogApp:
    """
    Search-and-detail application.

    Lifecycle: construct once, ``start()`` once (which also restores the
    state encoded in the current fragment), ``shutdown()`` on exit.
    """

    def __init__(
        self,
        transport: Transport,
        navigation: Navigation,
        entity_class: Type[Entity] = Movie,
        project: Callable[[Entity], Any] = project_movie,
        route_prefix: str = "search",
        on_render: Optional[Callable[[Tuple[Any, ...]], Any]] = None,
    ):
        self.transport = transport
        self.route_prefix = route_prefix.strip("/")

        self.collection = EntityCollection(entity_class, transport)
        self.results = ViewBinder(project, on_render=on_render).bind(self.collection)
        self.search_form = SearchForm().bind(self.collection)
        self.router = RouteSynchronizer(navigation)

        self.router.route(f"{self.route_prefix}/:term", "search", self.collection.search)
        self.search_form.events.on("search", self._on_search_submitted)

    def start(self) -> bool:
        """Start routing; returns True if the current fragment matched a route."""
        return self.router.start()

    async def shutdown(self) -> None:
        self.router.stop()
        await self.settle()
        self.results.dispose()
        self.search_form.dispose()
        await self.transport.aclose()
        logger.info("Catalog application shut down")

    def search(self, term: str) -> bool:
        """Submit a search as if typed into the search form."""
        return self.search_form.submit(term)

    async def load_details(self, entity_id: str) -> Optional[Entity]:
        """Load the full record for one result row."""
        entity = self.collection.get(entity_id)
        if entity is None:
            logger.debug(f"No result with id {entity_id} to load")
            return None
        await entity.load_full()
        return entity

    async def settle(self) -> None:
        """Wait for searches started by route handlers to finish."""
        await self.router.events.wait_pending()

    @property
    def snapshot(self) -> Tuple[Any, ...]:
        return self.results.snapshot

    def _on_search_submitted(self, term: str) -> None:
        self.router.navigate(f"{self.route_prefix}/{quote(term, safe='')}", trigger=True)


def entity_class_for(id_attribute: str, base: Type[Movie] = Movie) -> Type[Movie]:
    """Get a movie entity class keyed on ``id_attribute``."""
    if id_attribute == base.id_attribute:
        return base
    return type(
        f"{base.__name__}By{id_attribute[:1].upper()}{id_attribute[1:]}",
        (base,),
        {
            "__module__": __name__,
            "__annotations__": {"id_attribute": ClassVar[str]},
            "id_attribute": id_attribute,
        },
    )


def create_app(
    config: Optional[ApplicationConfig] = None,
    transport: Optional[Transport] = None,
    navigation: Optional[Navigation] = None,
    on_render: Optional[Callable[[Tuple[MovieRow, ...]], Any]] = None,
    configure_logging: bool = True,
) -> CatalogApp:
    """
    Build a movie catalog application.

    Args:
        config: Application configuration (default: ``get_config()``)
        transport: Transport override (default: ``HttpTransport``)
        navigation: Navigation surface (default: ``MemoryNavigation``)
        on_render: Sink for result snapshots
        configure_logging: Apply ``config.logging`` (and ``config.debug``) to
            the package logger
    """
    config = config or get_config()
    if configure_logging:
        setup_logging_from_config(config.logging, debug=config.debug)
    return CatalogApp(
        transport=transport or HttpTransport(config.transport),
        navigation=navigation or MemoryNavigation(),
        entity_class=entity_class_for(config.catalog.id_attribute),
        project=project_movie,
        route_prefix=config.catalog.route_prefix,
        on_render=on_render,
    )


__all__ = ["CatalogApp", "create_app", "entity_class_for"]
