"""
Event Channel - explicit observer registration.

Subscribers register a callback and get a Subscription back; delivery stops
when the subscription is cancelled or its `with` block exits.
"""

from typing import Callable, Generic, TypeVar

from storefront.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class Subscription:
    """Handle returned by EventChannel.subscribe."""

    def __init__(self, channel: "EventChannel", callback: Callable) -> None:
        self._channel = channel
        self._callback = callback
        self.active = True

    def unsubscribe(self) -> None:
        if self.active:
            self._channel._remove(self._callback)
            self.active = False

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, *exc_info) -> None:
        self.unsubscribe()


class EventChannel(Generic[T]):
    """Synchronous publish/subscribe channel for a single event type."""

    def __init__(self, name: str) -> None:
        self.name = name
        self._subscribers: list[Callable[[T], None]] = []

    def subscribe(self, callback: Callable[[T], None]) -> Subscription:
        self._subscribers.append(callback)
        return Subscription(self, callback)

    def _remove(self, callback: Callable[[T], None]) -> None:
        try:
            self._subscribers.remove(callback)
        except ValueError:
            pass

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def publish(self, event: T) -> int:
        """
        Deliver event to every subscriber.

        A subscriber that raises is logged and skipped.

        Returns:
            Number of subscribers that handled the event
        """
        delivered = 0
        # Copy so callbacks may unsubscribe while handling
        for callback in list(self._subscribers):
            try:
                callback(event)
                delivered += 1
            except Exception:
                logger.exception(f"Subscriber failed on channel {self.name}")
        return delivered
