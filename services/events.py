"""
Event emitter used by the coordinators to notify observers.

Any number of observers can subscribe to a coordinator. Dispatch is
synchronous, in subscription order, on the thread that emits (the event
loop for coordinators). Coordinators never own their observers: every
subscription returns a handle that the observer cancels when it goes away.
"""

from collections import defaultdict
from typing import Any, Callable, Dict, List, Optional

from utils.logger import get_logger

logger = get_logger(__name__)

WILDCARD = "*"


class Subscription:
    """Handle for a registered listener. Cancel it to stop receiving events."""

    def __init__(self, emitter: "EventEmitter", event_type: str, callback: Callable[..., None]):
        self.emitter = emitter
        self.event_type = event_type
        self.callback = callback
        self.active = True

    def cancel(self) -> None:
        """Detach the listener. Safe to call more than once."""
        if self.active:
            self.emitter.off(self)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.cancel()

    def __repr__(self):
        return f"Subscription({self.event_type!r}, active={self.active})"


class EventEmitter:
    """Publish/subscribe channel with per-event listener lists."""

    def __init__(self, name: Optional[str] = None):
        self.name = name or type(self).__name__
        self.listeners: Dict[str, List[Subscription]] = defaultdict(list)

    def on(self, event_type: str, callback: Callable[..., None]) -> Subscription:
        """
        Register a listener for a specific event type.

        Args:
            event_type: The event to listen for, or "*" for every event.
                Wildcard listeners receive the event type as their first argument.
            callback: Called with the event's arguments.

        Returns:
            Subscription: Handle used to detach the listener.
        """
        subscription = Subscription(self, event_type, callback)
        self.listeners[event_type].append(subscription)
        return subscription

    def on_all(self, callback: Callable[..., None]) -> Subscription:
        """Register a listener for all events."""
        return self.on(WILDCARD, callback)

    def off(self, subscription: Subscription) -> None:
        """Remove a listener."""
        listeners = self.listeners.get(subscription.event_type, [])
        if subscription in listeners:
            listeners.remove(subscription)
        subscription.active = False

    def emit(self, event_type: str, *args: Any) -> None:
        """
        Notify listeners of an event.

        A listener that raises is logged and skipped; the remaining listeners
        still run.
        """
        # Copy so listeners may unsubscribe while being notified
        for subscription in list(self.listeners.get(event_type, [])):
            self._dispatch(subscription, event_type, args)
        for subscription in list(self.listeners.get(WILDCARD, [])):
            self._dispatch(subscription, event_type, (event_type,) + args)

    def _dispatch(self, subscription: Subscription, event_type: str, args: tuple) -> None:
        if not subscription.active:
            return
        try:
            subscription.callback(*args)
        except Exception as e:
            logger.error(f"Error in {self.name} listener for {event_type}: {e}", exc_info=True)

    def clear(self) -> None:
        """Detach every listener."""
        for listeners in self.listeners.values():
            for subscription in listeners:
                subscription.active = False
        self.listeners.clear()


class AuthEvents:
    RECEIVED = "auth.received"               # (Optional[Identity])
    ERROR = "auth.error"                     # (ApiError)


class PostEvents:
    RECEIVED = "posts.received"              # (PostFeed)
    ERROR = "posts.error"                    # (ApiError)
    CREATE_PROGRESS = "posts.create_progress"  # (float)
    CREATED = "posts.created"                # (Post)
    CREATE_FAILED = "posts.create_failed"    # (ApiError)
    PINNED = "posts.pinned"                  # (post_id, pinned)
    PIN_FAILED = "posts.pin_failed"          # (post_id, ApiError)
    DELETED = "posts.deleted"                # (post_id)
    DELETE_FAILED = "posts.delete_failed"    # (post_id, ApiError)


class RegistrationEvents:
    COMPLETED = "registration.completed"     # (username)
    FAILED = "registration.failed"           # (ApiError)
