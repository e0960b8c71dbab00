"""
Event Bus - Pub/Sub Primitive

Synchronous publish/subscribe shared by entities, collections, binders and
the router. Nothing here holds business state; a bus only knows which
callbacks to invoke for which event name.

Key Features:
- Registration-ordered, synchronous dispatch on the triggering context
- Error isolation between subscribers
- Lifetime-bound subscriptions through ``Listener``
- Async callbacks scheduled on the running loop
- ``"all"`` catch-all subscriptions
"""

import asyncio
import inspect
import logging
import uuid
from collections import defaultdict
from typing import Any, Callable, Dict, List, Optional, Protocol, Set, Union, runtime_checkable

logger = logging.getLogger(__name__)

EventCallback = Callable[..., Any]

ALL_EVENTS = "all"


@runtime_checkable
class Observable(Protocol):
    """Anything that exposes an event bus as ``events``."""

    events: "EventBus"


class Subscription:
    """Handle for one registered callback."""

    def __init__(
        self,
        bus: "EventBus",
        event_name: str,
        callback: EventCallback,
        subscriber: Optional["Listener"] = None,
        once: bool = False,
    ):
        self.subscription_id = str(uuid.uuid4())
        self.bus = bus
        self.event_name = event_name
        self.callback = callback
        self.subscriber = subscriber
        self.once = once
        self.active = True
        self.calls = 0

    def cancel(self) -> bool:
        """
        Remove this subscription from its bus and from its subscriber index.

        Returns:
            True if the subscription was active, False if already cancelled
        """
        if not self.active:
            return False
        self.active = False
        self.bus._remove(self)
        if self.subscriber is not None:
            self.subscriber._forget(self)
        return True

    def __repr__(self) -> str:
        state = "active" if self.active else "cancelled"
        return f"Subscription({self.event_name!r}, {state})"


class EventBus:
    """
    In-process event bus for one emitter.

    Callbacks run synchronously, in registration order, on the caller of
    ``trigger``. A callback that raises is logged and the remaining
    callbacks still run. Callbacks returning an awaitable have it scheduled
    as a task on the running loop.
    """

    def __init__(self, owner: Any = None):
        """
        Initialize the event bus.

        Args:
            owner: Object the bus emits on behalf of (used in log messages)
        """
        self.owner = owner
        self._subscriptions: Dict[str, Dict[str, Subscription]] = defaultdict(dict)
        self._pending_tasks: Set[asyncio.Future] = set()

    def on(
        self,
        event_name: str,
        callback: EventCallback,
        subscriber: Optional["Listener"] = None,
    ) -> Subscription:
        """
        Register a callback for an event. The callback is not invoked now.

        Args:
            event_name: Event to listen for (``"all"`` receives every event)
            callback: Function called with the trigger arguments
            subscriber: Listener identity to index the subscription under

        Returns:
            Subscription handle
        """
        return self._add(event_name, callback, subscriber, once=False)

    def once(
        self,
        event_name: str,
        callback: EventCallback,
        subscriber: Optional["Listener"] = None,
    ) -> Subscription:
        """Register a callback that removes itself before its first call."""
        return self._add(event_name, callback, subscriber, once=True)

    def off(self, event_name: Optional[str] = None, callback: Optional[EventCallback] = None) -> int:
        """
        Remove subscriptions matching an event name and/or callback.

        Called without arguments it removes every subscription on this bus.

        Returns:
            Number of subscriptions removed
        """
        matching = [
            sub for subs in list(self._subscriptions.values()) for sub in list(subs.values())
            if (event_name is None or sub.event_name == event_name)
            and (callback is None or sub.callback == callback)
        ]
        for sub in matching:
            sub.cancel()
        return len(matching)

    def trigger(self, event_name: str, *args: Any) -> int:
        """
        Invoke every callback currently registered for ``event_name``.

        Returns:
            Number of callbacks invoked
        """
        delivered = 0
        for sub in list(self._subscriptions.get(event_name, {}).values()):
            delivered += self._invoke(sub, event_name, args)

        if event_name != ALL_EVENTS:
            for sub in list(self._subscriptions.get(ALL_EVENTS, {}).values()):
                delivered += self._invoke(sub, event_name, (event_name, *args))

        logger.debug(f"{self._describe()} triggered '{event_name}' to {delivered} callback(s)")
        return delivered

    def listeners(self, event_name: str) -> List[Subscription]:
        """Get the active subscriptions for an event, in dispatch order."""
        return list(self._subscriptions.get(event_name, {}).values())

    @property
    def subscriber_count(self) -> int:
        """Get the number of active subscriptions."""
        return sum(len(subs) for subs in self._subscriptions.values())

    @property
    def pending(self) -> int:
        """Number of scheduled async callbacks that have not finished."""
        return len(self._pending_tasks)

    async def wait_pending(self) -> None:
        """Wait until every scheduled async callback has finished."""
        while self._pending_tasks:
            await asyncio.gather(*list(self._pending_tasks), return_exceptions=True)

    def _add(
        self,
        event_name: str,
        callback: EventCallback,
        subscriber: Optional["Listener"],
        once: bool,
    ) -> Subscription:
        if not callable(callback):
            raise TypeError(f"Callback for '{event_name}' must be callable")
        if subscriber is not None and not isinstance(subscriber, Listener):
            raise TypeError("subscriber must be a Listener")

        sub = Subscription(self, event_name, callback, subscriber, once)
        self._subscriptions[event_name][sub.subscription_id] = sub
        if subscriber is not None:
            subscriber._track(sub)
        return sub

    def _remove(self, sub: Subscription) -> None:
        subs = self._subscriptions.get(sub.event_name)
        if not subs:
            return
        subs.pop(sub.subscription_id, None)
        if not subs:
            del self._subscriptions[sub.event_name]

    def _invoke(self, sub: Subscription, event_name: str, args: tuple) -> int:
        # Cancelled by an earlier callback of this same dispatch
        if not sub.active:
            return 0
        if sub.once:
            sub.cancel()

        sub.calls += 1
        try:
            result = sub.callback(*args)
        except Exception:
            logger.exception(f"Callback for '{event_name}' on {self._describe()} raised")
            return 1

        if inspect.isawaitable(result):
            self._schedule(result, event_name)
        return 1

    def _schedule(self, awaitable, event_name: str) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning(f"Async callback for '{event_name}' dropped: no running event loop")
            if inspect.iscoroutine(awaitable):
                awaitable.close()
            return

        task = asyncio.ensure_future(awaitable, loop=loop)
        self._pending_tasks.add(task)
        task.add_done_callback(self._task_done)

    def _task_done(self, task: asyncio.Future) -> None:
        self._pending_tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(f"Async callback on {self._describe()} raised: {exc!r}", exc_info=exc)

    def _describe(self) -> str:
        if self.owner is None:
            return "EventBus"
        return self.owner.__class__.__name__


class Listener:
    """
    Subscriber identity.

    Every subscription made through ``listen_to`` is indexed here, so a
    torn-down view (or a collection dropping a child) can release all of
    its callbacks at once with ``stop_listening``. Use it as a base class or
    hold an instance.
    """

    def __init__(self):
        self._listening: Dict[str, Subscription] = {}

    def listen_to(self, emitter: Union[EventBus, Observable], event_name: str,
                  callback: EventCallback) -> Subscription:
        """Subscribe to an event on another object under this identity."""
        return _bus_of(emitter).on(event_name, callback, subscriber=self)

    def listen_to_once(self, emitter: Union[EventBus, Observable], event_name: str,
                       callback: EventCallback) -> Subscription:
        """As ``listen_to``, removed after the first invocation."""
        return _bus_of(emitter).once(event_name, callback, subscriber=self)

    def stop_listening(self, emitter: Union[EventBus, Observable, None] = None) -> int:
        """
        Release subscriptions made under this identity.

        Args:
            emitter: Restrict the release to one emitter (default: all)

        Returns:
            Number of subscriptions released
        """
        bus = None if emitter is None else _bus_of(emitter)
        released = [sub for sub in self._listening.values() if bus is None or sub.bus is bus]
        for sub in released:
            sub.cancel()
        return len(released)

    @property
    def listening_count(self) -> int:
        return len(self._listening)

    def _track(self, sub: Subscription) -> None:
        self._listening[sub.subscription_id] = sub

    def _forget(self, sub: Subscription) -> None:
        self._listening.pop(sub.subscription_id, None)


def stop_listening(subscriber: Listener, emitter: Union[EventBus, Observable, None] = None) -> int:
    """Release every subscription registered under ``subscriber``."""
    return subscriber.stop_listening(emitter)


def _bus_of(emitter: Union[EventBus, Observable]) -> EventBus:
    if isinstance(emitter, EventBus):
        return emitter
    bus = getattr(emitter, "events", None)
    if isinstance(bus, EventBus):
        return bus
    raise TypeError(f"{emitter!r} does not expose an EventBus")


__all__ = [
    "ALL_EVENTS",
    "EventBus",
    "EventCallback",
    "Listener",
    "Observable",
    "Subscription",
    "stop_listening",
]
