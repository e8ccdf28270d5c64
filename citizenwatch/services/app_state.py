"""
Observable application state.

AppState holds an immutable StateSnapshot (current user plus incident feed)
and pushes every new snapshot to its subscribers.
"""
from dataclasses import dataclass, replace
from typing import Callable, List, Optional, Tuple
import logging
import threading

from citizenwatch.models import Incident, User

logger = logging.getLogger(__name__)

Subscriber = Callable[['StateSnapshot'], None]


@dataclass(frozen=True)
class StateSnapshot:
    """Point-in-time view of the client state"""

    current_user: Optional[User] = None
    incidents: Tuple[Incident, ...] = ()


class _Subscription:
    """One registration; identity distinguishes repeated subscriptions of a callable"""

    __slots__ = ('callback',)

    def __init__(self, callback: Subscriber):
        self.callback = callback


class AppState:
    """
    Snapshot container with ordered, isolated change notification.

    Every set_state call notifies each registered subscriber exactly once,
    synchronously, in registration order. A subscriber that raises is logged
    and skipped; later subscribers still receive the snapshot.
    """

    def __init__(self, initial: Optional[StateSnapshot] = None):
        self._snapshot = initial or StateSnapshot()
        self._subscriptions: List[_Subscription] = []
        self._lock = threading.RLock()

    @property
    def snapshot(self) -> StateSnapshot:
        return self._snapshot

    @property
    def current_user(self) -> Optional[User]:
        return self._snapshot.current_user

    @property
    def incidents(self) -> Tuple[Incident, ...]:
        return self._snapshot.incidents

    def set_state(self, **changes) -> StateSnapshot:
        """
        Shallow-merge ``changes`` into a new snapshot and notify subscribers.

        Args:
            **changes: StateSnapshot fields to replace (current_user, incidents)

        Returns:
            The new snapshot

        Raises:
            TypeError: If a field name is not part of StateSnapshot
        """
        if 'incidents' in changes:
            changes['incidents'] = tuple(changes['incidents'] or ())

        with self._lock:
            self._snapshot = replace(self._snapshot, **changes)
            snapshot = self._snapshot
            subscriptions = list(self._subscriptions)

        for subscription in subscriptions:
            try:
                subscription.callback(snapshot)
            except Exception:
                logger.exception(f"State subscriber {subscription.callback!r} failed")

        return snapshot

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """
        Register ``callback`` for change notifications.

        Returns:
            A function that removes this registration only. Subscribing the
            same callable twice yields two independent registrations.
        """
        subscription = _Subscription(callback)
        with self._lock:
            self._subscriptions.append(subscription)

        def unsubscribe():
            with self._lock:
                self._subscriptions = [s for s in self._subscriptions if s is not subscription]

        return unsubscribe

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)
