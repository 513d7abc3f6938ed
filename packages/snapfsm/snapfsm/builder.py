"""RulesBuilder - fluent construction of a RuleTable from ``to`` descriptors."""
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from snapfsm.guards import GuardFn, TransitionGuard
from snapfsm.rules import ActionFn, DefaultAction, RuleTable, TransitionAction, TransitionRule
from snapfsm.types import EventId, StateId

_EDGE_KEYS = frozenset({"to", "action", "guard"})


@dataclass(frozen=True)
class Edge:
    """Shorthand for one outgoing transition: target state plus optional strategies."""

    to: StateId
    action: TransitionAction | ActionFn | None = None
    guard: TransitionGuard | GuardFn | None = None


def _as_edge(from_state: StateId, event: EventId, value: Edge | Mapping[str, Any]) -> Edge:
    if isinstance(value, Edge):
        return value
    if not isinstance(value, Mapping):
        raise ValueError(
            f"Transition ({from_state!r}, {event!r}) must be an Edge or a mapping, "
            f"got {type(value).__name__}"
        )
    unknown = set(value) - _EDGE_KEYS
    if unknown:
        raise ValueError(
            f"Transition ({from_state!r}, {event!r}) has unknown keys {sorted(map(str, unknown))}"
        )
    if "to" not in value:
        raise ValueError(f"Transition ({from_state!r}, {event!r}) is missing 'to'")
    return Edge(value["to"], value.get("action"), value.get("guard"))


class RulesBuilder:
    """Accumulates transitions per source state and produces RuleTables.

    Repeated ``add_transitions`` calls for the same source state merge event
    by event; the most recent entry for an event wins. ``build`` copies, so
    later calls never leak into a table that was already built.
    """

    def __init__(self) -> None:
        self._rules: dict[StateId, dict[EventId, TransitionRule]] = {}

    def add_transitions(
        self,
        from_state: StateId,
        event_map: Mapping[EventId, Edge | Mapping[str, Any]],
    ) -> RulesBuilder:
        """Declare transitions out of *from_state*. Returns self for chaining.

        When an entry has no ``action`` a DefaultAction is synthesized: it
        moves to ``to`` and carries the payload's ``applied_data``, or resets
        the data to empty when the payload has none.
        """
        edges = {event: _as_edge(from_state, event, value) for event, value in event_map.items()}
        events = self._rules.setdefault(from_state, {})
        for event, edge in edges.items():
            action = edge.action if edge.action is not None else DefaultAction(edge.to)
            events[event] = TransitionRule(action, edge.guard)
        return self

    def build(self) -> RuleTable:
        """Return a RuleTable holding a copy of everything added so far."""
        return RuleTable({state: dict(events) for state, events in self._rules.items()})
