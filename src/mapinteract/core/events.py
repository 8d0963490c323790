"""Event channels for decoupled communication between plugins and the host."""
from __future__ import annotations
from enum import Enum
from typing import Any, Callable, Generic, TypeVar

Callback = Callable[..., Any]
T = TypeVar('T', bound=Callback)


class EntityChangeStatus(Enum):
    """Kind of change reported on an entity store's change channel."""
    ADDED = "added"
    CHANGED = "changed"
    REMOVED = "removed"


class EventChannel(Generic[T]):
    """Ordered list of subscriber callbacks for one named event.

    Subscribers run synchronously in registration order. Dispatch iterates
    over a snapshot, so a subscriber may subscribe or unsubscribe callbacks
    (itself included) without affecting the dispatch in progress.
    """

    def __init__(self, name: str = "") -> None:
        self.name = name
        self._subscribers: list[T] = []

    def subscribe(self, callback: T) -> Callable[[], None]:
        """Add a callback and return a handle that removes exactly it.

        Subscribing the same callback twice is a no-op.
        """
        if callback not in self._subscribers:
            self._subscribers.append(callback)

        def unsubscribe() -> None:
            self.unsubscribe(callback)

        return unsubscribe

    def unsubscribe(self, callback: T) -> None:
        """Remove a callback."""
        try:
            self._subscribers.remove(callback)
        except ValueError:
            pass

    @property
    def subscribers(self) -> tuple[T, ...]:
        """Snapshot of the current subscribers."""
        return tuple(self._subscribers)

    def emit(self, *args: Any) -> None:
        """Invoke every subscriber once."""
        for callback in tuple(self._subscribers):
            callback(*args)

    def collect(self, *args: Any) -> list[Any]:
        """Invoke every subscriber once and return their results in order."""
        return [callback(*args) for callback in tuple(self._subscribers)]

    def vote(self, *args: Any) -> bool:
        """Return True if any subscriber approves the candidate.

        Every subscriber is asked, even after the first approval.
        """
        return any(result is True for result in self.collect(*args))

    def clear(self) -> None:
        """Remove all subscribers."""
        self._subscribers.clear()

    def __len__(self) -> int:
        return len(self._subscribers)

    def __contains__(self, callback: object) -> bool:
        return callback in self._subscribers

    def __repr__(self) -> str:
        return f"EventChannel({self.name!r}, subscribers={len(self._subscribers)})"


def allow_all(channel: EventChannel, *args: Any) -> bool:
    """Run an interception hook with veto semantics.

    Stops at the first subscriber returning False. A None return means the
    subscriber has no opinion.
    """
    for callback in channel.subscribers:
        if callback(*args) is False:
            return False
    return True
