"""snapfsm - Table-driven finite state machines over immutable snapshots."""
from __future__ import annotations

from snapfsm.builder import Edge, RulesBuilder
from snapfsm.bus import Subscription, SubscriptionBus
from snapfsm.cache import ResultCache
from snapfsm.config import MachineOptions
from snapfsm.diagnostics import configure_logging
from snapfsm.fingerprint import canonical_encoding, fingerprint, stable_hash
from snapfsm.guards import FunctionGuard, GuardRegistry, TransitionGuard
from snapfsm.machine import StateMachine
from snapfsm.rules import DefaultAction, FunctionAction, RuleTable, TransitionAction, TransitionRule
from snapfsm.types import (
    MachineUsageError,
    Outcome,
    Payload,
    RuleTableError,
    Snapshot,
    SubscriptionDisabledError,
    TransitionResult,
    UninitializedMachineError,
)

__all__ = [
    "DefaultAction",
    "Edge",
    "FunctionAction",
    "FunctionGuard",
    "GuardRegistry",
    "MachineOptions",
    "MachineUsageError",
    "Outcome",
    "Payload",
    "ResultCache",
    "RuleTable",
    "RuleTableError",
    "RulesBuilder",
    "Snapshot",
    "StateMachine",
    "Subscription",
    "SubscriptionBus",
    "SubscriptionDisabledError",
    "TransitionAction",
    "TransitionGuard",
    "TransitionResult",
    "TransitionRule",
    "UninitializedMachineError",
    "canonical_encoding",
    "configure_logging",
    "fingerprint",
    "stable_hash",
]
