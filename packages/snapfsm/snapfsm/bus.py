"""In-memory per-state pub/sub with idempotent subscription handles."""
from __future__ import annotations

import itertools
import weakref
from typing import Callable

from snapfsm.types import Snapshot, StateId

Subscriber = Callable[[Snapshot], None]


class Subscription:
    """Handle returned by ``SubscriptionBus.subscribe``.

    ``unsubscribe`` may be called any number of times, including after the
    bus itself has been garbage collected.
    """

    __slots__ = ("id", "state", "callback", "_bus")

    def __init__(self, sub_id: int, state: StateId, callback: Subscriber, bus: SubscriptionBus) -> None:
        self.id = sub_id
        self.state = state
        self.callback = callback
        self._bus: weakref.ref[SubscriptionBus] | None = weakref.ref(bus)

    @property
    def active(self) -> bool:
        bus = self._bus() if self._bus is not None else None
        return bus is not None and bus._has(self.id)

    def unsubscribe(self) -> None:
        if self._bus is None:
            return
        bus = self._bus()
        self._bus = None
        if bus is not None:
            bus._remove(self.id)

    def __repr__(self) -> str:
        return f"Subscription(id={self.id}, state={self.state!r}, active={self.active})"


class SubscriptionBus:

    def __init__(self) -> None:
        self._subscriptions: dict[int, Subscription] = {}
        self._ids = itertools.count()

    def subscribe(self, state: StateId, callback: Subscriber) -> Subscription:
        subscription = Subscription(next(self._ids), state, callback, self)
        self._subscriptions[subscription.id] = subscription
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        subscription.unsubscribe()

    def notify(self, state: StateId, snapshot: Snapshot) -> None:
        """Call every subscriber of *state* in registration order.

        Callback exceptions propagate to the caller; remaining subscribers are
        not called.
        """
        for subscription in list(self._subscriptions.values()):
            if subscription.state == state and subscription.id in self._subscriptions:
                subscription.callback(snapshot)

    def subscribers(self, state: StateId) -> list[Subscription]:
        return [s for s in self._subscriptions.values() if s.state == state]

    def clear(self) -> None:
        for subscription in list(self._subscriptions.values()):
            subscription.unsubscribe()

    def _has(self, sub_id: int) -> bool:
        return sub_id in self._subscriptions

    def _remove(self, sub_id: int) -> None:
        self._subscriptions.pop(sub_id, None)

    def __len__(self) -> int:
        return len(self._subscriptions)
