"""
Navigation Surfaces

Abstraction over "the current URL fragment". The route synchronizer only
reads the fragment, writes it, and subscribes to changes made elsewhere
(back/forward buttons, a pasted link).
"""

import logging
import re
from abc import ABC, abstractmethod
from typing import Callable, List

logger = logging.getLogger(__name__)

FragmentCallback = Callable[[str], None]

_route_stripper = re.compile(r"^[#/]|\s+$")


def normalize_fragment(fragment: str) -> str:
    """Strip one leading ``#`` or ``/`` and trailing whitespace."""
    return _route_stripper.sub("", fragment or "")


class Navigation(ABC):
    """Abstract navigation surface."""

    @abstractmethod
    def current_fragment(self) -> str:
        """Get the fragment currently shown."""
        pass

    @abstractmethod
    def set_fragment(self, fragment: str, replace: bool = False) -> None:
        """
        Show a new fragment.

        Args:
            fragment: Fragment to show
            replace: Replace the current history entry instead of adding one
        """
        pass

    @abstractmethod
    def subscribe(self, callback: FragmentCallback) -> Callable[[], None]:
        """
        Be notified whenever the fragment changes.

        Returns:
            Function that removes the subscription
        """
        pass


class MemoryNavigation(Navigation):
    """
    In-memory navigation surface with a browser-like history stack.

    Every fragment change, including one made through ``set_fragment``,
    notifies subscribers; the router ignores notifications for the fragment
    it just set.
    """

    def __init__(self, initial: str = ""):
        self._history: List[str] = [normalize_fragment(initial)]
        self._index = 0
        self._subscribers: List[FragmentCallback] = []

    def current_fragment(self) -> str:
        return self._history[self._index]

    def set_fragment(self, fragment: str, replace: bool = False) -> None:
        fragment = normalize_fragment(fragment)
        if fragment == self.current_fragment():
            return

        if replace:
            self._history[self._index] = fragment
        else:
            del self._history[self._index + 1:]
            self._history.append(fragment)
            self._index += 1

        self._notify()

    def visit(self, fragment: str) -> None:
        """Simulate the user entering a URL."""
        self.set_fragment(fragment)

    def back(self) -> bool:
        if self._index == 0:
            return False
        self._index -= 1
        self._notify()
        return True

    def forward(self) -> bool:
        if self._index >= len(self._history) - 1:
            return False
        self._index += 1
        self._notify()
        return True

    @property
    def history(self) -> List[str]:
        return list(self._history)

    def subscribe(self, callback: FragmentCallback) -> Callable[[], None]:
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def _notify(self) -> None:
        fragment = self.current_fragment()
        for callback in list(self._subscribers):
            try:
                callback(fragment)
            except Exception:
                logger.exception(f"Navigation subscriber failed for '{fragment}'")
