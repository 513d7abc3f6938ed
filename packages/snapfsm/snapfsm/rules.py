"""Transition rules and the immutable two-level rule table."""
from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Callable, Protocol, runtime_checkable

from snapfsm.guards import TransitionGuard, as_guard
from snapfsm.types import EventId, Payload, RuleTableError, Snapshot, StateId

ActionFn = Callable[[Snapshot, Payload], Snapshot]


@runtime_checkable
class TransitionAction(Protocol):
    """Pure, synchronous computation of the next snapshot."""

    def apply(self, snapshot: Snapshot, payload: Payload) -> Snapshot: ...


class FunctionAction:
    """Adapts a plain ``(snapshot, payload) -> Snapshot`` callable."""

    __slots__ = ("fn",)

    def __init__(self, fn: ActionFn) -> None:
        self.fn = fn

    def apply(self, snapshot: Snapshot, payload: Payload) -> Snapshot:
        return self.fn(snapshot, payload)

    def __repr__(self) -> str:
        return f"FunctionAction({getattr(self.fn, '__qualname__', self.fn)!r})"


class DefaultAction:
    """Moves to ``to``, carrying the payload's data or resetting it to empty."""

    __slots__ = ("to",)

    def __init__(self, to: StateId) -> None:
        self.to = to

    def apply(self, snapshot: Snapshot, payload: Payload) -> Snapshot:
        if payload.applied_data is not None:
            return Snapshot(self.to, tuple(payload.applied_data))
        return Snapshot(self.to, ())

    def __repr__(self) -> str:
        return f"DefaultAction(to={self.to!r})"


def as_action(action: TransitionAction | ActionFn) -> TransitionAction:
    """Return *action* as a TransitionAction, wrapping plain callables."""
    if isinstance(action, TransitionAction):
        return action
    if callable(action):
        return FunctionAction(action)
    raise TypeError(f"Action must be callable or define apply(), got {type(action).__name__}")


@dataclass(frozen=True, slots=True)
class TransitionRule:
    """The ``(action, guard?)`` pair governing one ``(state, event)`` transition.

    Plain callables are wrapped into strategy objects on construction. A
    missing guard means the transition is always permitted.
    """

    action: TransitionAction
    guard: TransitionGuard | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "action", as_action(self.action))
        if self.guard is not None:
            object.__setattr__(self, "guard", as_guard(self.guard))

    def permits(self, state: StateId, event: EventId) -> bool:
        return self.guard is None or self.guard.check(state, event)


def _coerce_rule(state: StateId, event: EventId, value: Any) -> TransitionRule:
    if isinstance(value, TransitionRule):
        return value
    try:
        if isinstance(value, Mapping):
            unknown = set(value) - {"action", "guard"}
            if unknown or "action" not in value:
                raise RuleTableError(
                    state, event,
                    f"Rule for ({state!r}, {event!r}) needs an 'action' key "
                    f"and allows only 'guard' besides it, got {sorted(map(str, value))}",
                )
            return TransitionRule(value["action"], value.get("guard"))
        return TransitionRule(value)
    except TypeError as exc:
        raise RuleTableError(state, event, f"Invalid rule for ({state!r}, {event!r}): {exc}") from exc


class RuleTable:
    """Read-only mapping ``state -> event -> TransitionRule``.

    Partial in both dimensions: a missing state or event means the event is a
    no-op from that state. Leaves may be given as TransitionRule instances,
    ``{"action": ..., "guard": ...}`` dicts, or bare action callables; all are
    validated and normalised here so lookups never have to.
    """

    __slots__ = ("_rules",)

    def __init__(self, rules: Mapping[StateId, Mapping[EventId, Any]] | None = None) -> None:
        table: dict[StateId, Mapping[EventId, TransitionRule]] = {}
        for state, events in (rules or {}).items():
            if not isinstance(events, Mapping):
                raise RuleTableError(
                    state, None,
                    f"Rules for state {state!r} must be a mapping of events, "
                    f"got {type(events).__name__}",
                )
            table[state] = MappingProxyType(
                {event: _coerce_rule(state, event, rule) for event, rule in events.items()}
            )
        self._rules: Mapping[StateId, Mapping[EventId, TransitionRule]] = MappingProxyType(table)

    def lookup(self, state: StateId, event: EventId) -> TransitionRule | None:
        """Return the rule for ``(state, event)`` or None if there is none."""
        events = self._rules.get(state)
        if events is None:
            return None
        return events.get(event)

    def states(self) -> list[StateId]:
        """States present in the table, in declaration order."""
        return list(self._rules)

    def events(self, state: StateId) -> list[EventId]:
        """Events with a rule from *state*, in declaration order."""
        return list(self._rules.get(state, ()))

    def as_mapping(self) -> Mapping[StateId, Mapping[EventId, TransitionRule]]:
        return self._rules

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, tuple) or len(key) != 2:
            return False
        return self.lookup(key[0], key[1]) is not None

    def __iter__(self) -> Iterator[tuple[StateId, EventId]]:
        for state, events in self._rules.items():
            for event in events:
                yield state, event

    def __len__(self) -> int:
        return sum(len(events) for events in self._rules.values())

    def __repr__(self) -> str:
        return f"RuleTable(states={len(self._rules)}, rules={len(self)})"
