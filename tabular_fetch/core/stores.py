"""
Observable stores.

A `Writable` holds a value and notifies its subscribers synchronously on every
`set`. Subscribing calls the subscriber immediately with the current value and
returns a handle to unsubscribe.
"""

from typing import Any, Callable, Generic, TypeVar

T = TypeVar("T")

Unsubscriber = Callable[[], None]


class Writable(Generic[T]):
    def __init__(self, value: T = None):
        self._value = value
        self._subscribers: dict[int, Callable[[T], Any]] = {}
        self._next_id = 0

    def get(self) -> T:
        return self._value

    def set(self, value: T) -> None:
        self._value = value
        # subscribers may unsubscribe while being notified
        for subscriber in list(self._subscribers.values()):
            subscriber(value)

    def update(self, updater: Callable[[T], T]) -> None:
        self.set(updater(self._value))

    def subscribe(self, subscriber: Callable[[T], Any]) -> Unsubscriber:
        key = self._next_id
        self._next_id += 1
        self._subscribers[key] = subscriber
        subscriber(self._value)

        def unsubscribe() -> None:
            self._subscribers.pop(key, None)

        return unsubscribe

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)


class Subscriptions:
    """Keeps unsubscribe handles so they can be disposed all at once."""

    def __init__(self):
        self._handles: list[Unsubscriber] = []

    def add(self, handle: Unsubscriber) -> None:
        self._handles.append(handle)

    def clear(self) -> None:
        handles, self._handles = self._handles, []
        for unsubscribe in handles:
            unsubscribe()

    def __len__(self) -> int:
        return len(self._handles)
