"""
Route Synchronizer - URL Fragment <-> Application State

Keeps the navigation surface and the application state consistent in both
directions: ``navigate`` writes the fragment (and optionally runs the
matching handler), while fragment changes made elsewhere are matched and
dispatched.

Route patterns are made of literal segments, ``:name`` captures (one or more
non-slash characters) and ``*name`` splats (any remainder). Captured values
are percent-decoded one by one. Routes are tried in registration order and
the first full match wins.
"""

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Pattern
from urllib.parse import quote, unquote

from ..core.events import EventBus
from ..errors import RouterError
from .navigation import Navigation, normalize_fragment

logger = logging.getLogger(__name__)

RouteHandler = Callable[..., Any]

_param_token = re.compile(r"([:*]\w+)")


class RouterState(Enum):
    """Outcome of the last dispatch"""
    IDLE = "idle"
    MATCHED = "matched"


@dataclass
class Route:
    """Route definition"""
    pattern: str
    name: str
    handler: Optional[RouteHandler] = None

    # Compiled route pattern
    _regex: Optional[Pattern] = field(default=None, init=False, repr=False)
    _param_names: List[str] = field(default_factory=list, init=False, repr=False)

    def __post_init__(self):
        """Compile route pattern after initialization"""
        self._compile_pattern()

    def _compile_pattern(self):
        """Compile the route pattern into an anchored regex"""
        parts = []
        param_names = []

        for token in _param_token.split(self.pattern):
            if not token:
                continue
            if token[0] == ":" and len(token) > 1:
                param_names.append(token[1:])
                parts.append(r"([^/]+)")
            elif token[0] == "*" and len(token) > 1:
                param_names.append(token[1:])
                parts.append(r"(.*)")
            else:
                parts.append(re.escape(token))

        self._regex = re.compile("".join(parts))
        self._param_names = param_names

    @property
    def param_names(self) -> List[str]:
        return list(self._param_names)

    def matches(self, path: str) -> Optional[List[str]]:
        """Match a full fragment; returns the decoded captures or None"""
        match = self._regex.fullmatch(path)
        if not match:
            return None
        return [unquote(value) if value is not None else "" for value in match.groups()]

    def generate_url(self, **params: Any) -> str:
        """Generate a fragment from the pattern, encoding each parameter"""
        missing = [name for name in self._param_names if name not in params]
        if missing:
            raise RouterError(f"Route '{self.name}' needs parameters: {missing}")

        def replace(match):
            token = match.group(1)
            value = str(params[token[1:]])
            return quote(value, safe="/" if token[0] == "*" else "")

        return _param_token.sub(replace, self.pattern)


class RouteSynchronizer:
    """
    Maps URL fragments to handlers and back.

    Construct one per application, call ``start()`` once, and ``stop()`` on
    shutdown. Handlers registered with ``route`` are subscribed to the
    ``route:<name>`` event, so further listeners can be attached through
    ``events``; the generic ``route(name, args)`` event fires for every
    match. Async handlers are scheduled on the running loop.
    """

    def __init__(self, navigation: Navigation):
        self.navigation = navigation
        self.routes: List[Route] = []
        self.route_map: Dict[str, Route] = {}
        self.current_path: Optional[str] = None
        self.state = RouterState.IDLE
        self._started = False
        self._unsubscribe: Optional[Callable[[], None]] = None
        self._events = EventBus(owner=self)

    @property
    def events(self) -> EventBus:
        return self._events

    @property
    def started(self) -> bool:
        return self._started

    def route(self, pattern: str, name: str, handler: Optional[RouteHandler] = None) -> Route:
        """
        Register a route.

        Args:
            pattern: Fragment pattern, e.g. ``"search/:term"``
            name: Route name, used for events and ``url_for``
            handler: Called with the decoded captures on a match
        """
        route = Route(pattern=normalize_fragment(pattern), name=name, handler=handler)
        self.routes.append(route)
        self.route_map.setdefault(name, route)
        if handler is not None:
            self._events.on(f"route:{name}", handler)
        return route

    def navigate(self, path: str, trigger: bool = False, replace: bool = False) -> bool:
        """
        Move to a fragment.

        The fragment and the navigation surface are always updated; with
        ``trigger`` the matching route's handler is invoked as well.

        Returns:
            True if a route was matched and dispatched
        """
        fragment = normalize_fragment(path)
        self.current_path = fragment
        self.navigation.set_fragment(fragment, replace=replace)

        if not trigger:
            return False
        return self._load(fragment)

    def start(self) -> bool:
        """
        Begin observing the navigation surface and dispatch the current
        fragment once, so a shared link restores its state.

        Raises:
            RouterError: if the synchronizer has already been started
        """
        if self._started:
            raise RouterError("Route synchronizer already started")

        self._started = True
        self._unsubscribe = self.navigation.subscribe(self._on_location_change)
        self.current_path = normalize_fragment(self.navigation.current_fragment())
        logger.info(f"Route synchronizer started at '{self.current_path}'")
        return self._load(self.current_path)

    def stop(self) -> None:
        """Stop observing the navigation surface."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        if self._started:
            logger.info("Route synchronizer stopped")

    def url_for(self, name: str, **params: Any) -> str:
        route = self.route_map.get(name)
        if route is None:
            raise RouterError(f"Unknown route '{name}'")
        return route.generate_url(**params)

    def match(self, path: str) -> Optional[tuple]:
        """Find the first route matching ``path`` without dispatching."""
        fragment = normalize_fragment(path)
        for route in self.routes:
            args = route.matches(fragment)
            if args is not None:
                return route, args
        return None

    def _on_location_change(self, fragment: str) -> None:
        fragment = normalize_fragment(fragment)
        if fragment == self.current_path:
            return
        self.current_path = fragment
        self._load(fragment)

    def _load(self, fragment: str) -> bool:
        found = self.match(fragment)
        if found is None:
            self.state = RouterState.IDLE
            logger.debug(f"No route matched '{fragment}'")
            return False

        route, args = found
        self.state = RouterState.MATCHED
        logger.debug(f"Fragment '{fragment}' matched route '{route.name}' with {args}")
        self._events.trigger(f"route:{route.name}", *args)
        self._events.trigger("route", route.name, args)
        return True


__all__ = ["Route", "RouteHandler", "RouteSynchronizer", "RouterState"]
