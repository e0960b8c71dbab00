"""
StarCatalog - Reactive Entity Cache for Catalog Search

Search a remote catalog, show abbreviated results, and lazily load full
detail for single results. Entities are cached with partial/full
materialization, views are kept in sync through events, and the search
term is bound to the URL fragment in both directions.
"""

from .core import (
    ALL_EVENTS,
    Entity,
    EntityCollection,
    EventBus,
    FetchState,
    Listener,
    Materialization,
    Observable,
    SearchForm,
    Subscription,
    SyncState,
    ViewBinder,
    stop_listening,
)
from .errors import BinderDisposed, CatalogError, ParseFailure, RouterError, TransportFailure
from .routing import MemoryNavigation, Navigation, Route, RouteSynchronizer, RouterState
from .transport import HttpTransport, MemoryTransport, Transport
from .config import ApplicationConfig, Environment, get_config, set_config
from .logging_config import setup_logging
from .movies import Movie, MovieRow, project_movie
from .app import CatalogApp, create_app

__all__ = [
    # Core
    'ALL_EVENTS',
    'EventBus',
    'Listener',
    'Observable',
    'Subscription',
    'stop_listening',
    'Entity',
    'FetchState',
    'Materialization',
    'EntityCollection',
    'SyncState',
    'ViewBinder',
    'SearchForm',

    # Errors
    'CatalogError',
    'TransportFailure',
    'ParseFailure',
    'RouterError',
    'BinderDisposed',

    # Routing
    'Navigation',
    'MemoryNavigation',
    'Route',
    'RouteSynchronizer',
    'RouterState',

    # Transport
    'Transport',
    'MemoryTransport',
    'HttpTransport',

    # Configuration
    'ApplicationConfig',
    'Environment',
    'get_config',
    'set_config',
    'setup_logging',

    # Movie catalog
    'Movie',
    'MovieRow',
    'project_movie',
    'CatalogApp',
    'create_app',
]
