"""
StarCatalog Core Module

The reactive entity cache: event bus, entities, collections and view
binders. Framework-agnostic; the only collaborator it calls is a transport.
"""

from .events import ALL_EVENTS, EventBus, Listener, Observable, Subscription, stop_listening
from .entity import Entity, FetchState, Materialization
from .collection import EntityCollection, SyncState
from .binder import SearchForm, ViewBinder

__all__ = [
    "ALL_EVENTS",
    "EventBus",
    "Listener",
    "Observable",
    "Subscription",
    "stop_listening",
    "Entity",
    "FetchState",
    "Materialization",
    "EntityCollection",
    "SyncState",
    "SearchForm",
    "ViewBinder",
]
