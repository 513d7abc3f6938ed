"""StateMachine - rule lookup, guard, action, cache and notification."""
from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from snapfsm.bus import Subscriber, Subscription, SubscriptionBus
from snapfsm.cache import ResultCache
from snapfsm.config import MachineOptions
from snapfsm.diagnostics import Diagnostics, DiagnosticsLogger
from snapfsm.fingerprint import fingerprint
from snapfsm.rules import RuleTable, TransitionRule
from snapfsm.types import (
    DataItem,
    EventId,
    Outcome,
    Payload,
    Snapshot,
    StateId,
    SubscriptionDisabledError,
    TransitionResult,
    UninitializedMachineError,
)


class StateMachine:
    """Table-driven state machine over immutable snapshots.

    ``fire`` runs to completion without yielding: lookup, guard, action,
    cache write and subscriber notification happen in that order, and the
    snapshot is replaced in a single assignment. Nothing here is locked;
    callers that share one machine between threads must serialize access.

    Missing rules and rejecting guards are ordinary outcomes reported through
    the returned TransitionResult (and, in dev mode, a warning). Driving the
    machine before ``set_snapshot`` or using subscriptions while they are
    disabled raises a MachineUsageError subclass.
    """

    def __init__(
        self,
        rules: RuleTable | Mapping[StateId, Mapping[EventId, Any]],
        options: MachineOptions | Mapping[str, Any] | None = None,
        *,
        logger: DiagnosticsLogger | None = None,
    ) -> None:
        self._rules = rules if isinstance(rules, RuleTable) else RuleTable(rules)
        if options is None:
            options = MachineOptions()
        elif not isinstance(options, MachineOptions):
            options = MachineOptions.from_mapping(options)
        self._options = options
        self._diagnostics = Diagnostics(logger)
        self._cache = ResultCache()
        self._bus = SubscriptionBus()
        self._snapshot: Snapshot | None = None

    @property
    def rules(self) -> RuleTable:
        return self._rules

    @property
    def options(self) -> MachineOptions:
        return self._options

    @property
    def cache(self) -> ResultCache:
        return self._cache

    @property
    def snapshot(self) -> Snapshot:
        return self._require_snapshot()

    @property
    def initialized(self) -> bool:
        return self._snapshot is not None

    def get_snapshot(self) -> Snapshot:
        return self._require_snapshot()

    def set_snapshot(self, snapshot: Snapshot) -> None:
        """Replace the current snapshot and notify subscribers of its state."""
        self._snapshot = snapshot
        if self._options.subscription_mode:
            self._bus.notify(snapshot.state, snapshot)

    def fire(self, event: EventId, applied_data: Sequence[DataItem] | None = None) -> TransitionResult:
        """Evaluate *event* against the current state.

        With the cache enabled, a stored result for the event's fingerprint is
        adopted as-is: neither guard nor action runs. *applied_data* must be a
        sequence of items; a str or bytes value raises TypeError.
        """
        current = self._require_snapshot()
        payload = Payload(applied_data)
        rule = self._rules.lookup(current.state, event)
        if rule is None:
            if self._options.dev_mode:
                self._diagnostics.unhandled(current.state, event)
            return TransitionResult(Outcome.UNHANDLED, event, current, current)

        key: str | None = None
        if self._options.cache_enabled:
            key = self._fingerprint(current.state, event, payload)
            cached = self._cache.get(key)
            if cached is not None:
                self._commit(current, cached, event)
                return TransitionResult(Outcome.CACHED, event, current, cached)

        if not rule.permits(current.state, event):
            if self._options.dev_mode:
                self._diagnostics.guard_blocked(current.state, event)
            return TransitionResult(Outcome.BLOCKED, event, current, current)

        new = rule.action.apply(current, payload)
        if key is not None:
            self._cache.set(key, new)
        self._commit(current, new, event)
        return TransitionResult(Outcome.APPLIED, event, current, new)

    def can_fire(self, event: EventId) -> bool:
        """True if a rule exists for *event* from the current state.

        The guard is not evaluated; a guarded event may still be blocked by
        ``fire``. Dev mode warns about both the missing-rule case and the
        skipped guard.
        """
        current = self._require_snapshot()
        rule = self._rules.lookup(current.state, event)
        if rule is None:
            if self._options.dev_mode:
                self._diagnostics.cannot_fire(current.state, event)
            return False
        if rule.guard is not None and self._options.dev_mode:
            self._diagnostics.guard_not_consulted(current.state, event)
        return True

    def available_events(self) -> list[EventId]:
        """Events that have a rule from the current state, guards not evaluated."""
        return self._rules.events(self._require_snapshot().state)

    def rule_for(self, event: EventId) -> TransitionRule | None:
        return self._rules.lookup(self._require_snapshot().state, event)

    def subscribe(self, state: StateId, callback: Subscriber) -> Subscription:
        """Call *callback* with the new snapshot whenever the machine enters *state*."""
        self._require_subscriptions("subscribe")
        return self._bus.subscribe(state, callback)

    def unsubscribe(self, subscription: Subscription) -> None:
        self._require_subscriptions("unsubscribe")
        self._bus.unsubscribe(subscription)

    def clear_cache(self) -> None:
        self._cache.clear()

    # --- Internals ---

    def _commit(self, previous: Snapshot, new: Snapshot, event: EventId) -> None:
        self._snapshot = new
        if self._options.subscription_mode:
            self._bus.notify(new.state, new)
        if self._options.log_transitions:
            self._diagnostics.transition(previous.state, new.state, event)

    def _fingerprint(self, state: StateId, event: EventId, payload: Payload) -> str:
        return fingerprint(
            event,
            payload,
            payload_sensitive=self._options.payload_sensitive_cache,
            origin=state if self._options.state_scoped_cache else None,
        )

    def _require_snapshot(self) -> Snapshot:
        if self._snapshot is None:
            raise UninitializedMachineError(
                "No snapshot set; call set_snapshot() before driving the machine"
            )
        return self._snapshot

    def _require_subscriptions(self, operation: str) -> None:
        if not self._options.subscription_mode:
            raise SubscriptionDisabledError(
                f"{operation}() requires subscription_mode=True"
            )
