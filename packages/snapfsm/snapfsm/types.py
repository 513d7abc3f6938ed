"""Shared types, results, and errors for the state machine engine."""
from __future__ import annotations

import enum
from collections.abc import Hashable, Sequence
from dataclasses import dataclass, field
from typing import Any

StateId = Hashable
EventId = Hashable
DataItem = Any


def _reject_text(owner: str, data: Any) -> None:
    # A string is a sequence of characters, never a list of data items.
    if isinstance(data, (str, bytes, bytearray)):
        raise TypeError(
            f"{owner}.applied_data must be a sequence of items, not {type(data).__name__}; "
            f"wrap a single value as [value]"
        )


@dataclass(frozen=True, slots=True)
class Snapshot:
    """Complete observable condition of a machine: current state plus data.

    ``applied_data`` is normalised to a tuple so a snapshot can never be
    mutated after it is published. Strings and bytes are rejected.
    """

    state: StateId
    applied_data: tuple[DataItem, ...] = field(default=())

    def __post_init__(self) -> None:
        _reject_text("Snapshot", self.applied_data)
        if not isinstance(self.applied_data, tuple):
            object.__setattr__(self, "applied_data", tuple(self.applied_data))


@dataclass(frozen=True, slots=True)
class Payload:
    """Argument handed to a transition action alongside the current snapshot."""

    applied_data: Sequence[DataItem] | None = None

    def __post_init__(self) -> None:
        _reject_text("Payload", self.applied_data)


class Outcome(enum.Enum):
    UNHANDLED = "unhandled"  # no rule for (state, event)
    BLOCKED = "blocked"  # guard rejected
    APPLIED = "applied"  # action ran
    CACHED = "cached"  # result replayed from the cache


@dataclass(frozen=True, slots=True)
class TransitionResult:
    """What a single ``fire`` call did."""

    outcome: Outcome
    event: EventId
    previous: Snapshot
    current: Snapshot

    @property
    def changed(self) -> bool:
        """True if the machine committed a new snapshot."""
        return self.outcome in (Outcome.APPLIED, Outcome.CACHED)


class MachineUsageError(RuntimeError):
    """Raised when the machine is used in a way its configuration forbids."""


class UninitializedMachineError(MachineUsageError):
    """Raised when the machine is driven before any snapshot has been set."""


class SubscriptionDisabledError(MachineUsageError):
    """Raised on subscribe/unsubscribe while subscription mode is off."""


class RuleTableError(ValueError):
    """Raised when a rule table cannot be built from the given mapping."""

    def __init__(self, state: StateId, event: EventId | None, message: str) -> None:
        self.state = state
        self.event = event
        super().__init__(message)
