"""Diagnostic records emitted by the state machine, and script-side logging setup."""
from __future__ import annotations

import logging
import sys
from typing import Any, Protocol, TextIO

from snapfsm.types import EventId, StateId

LOGGER_NAME = "snapfsm.machine"

UNHANDLED_EVENT = "Unhandled event %r for state %r"
GUARD_BLOCKED = "Guard blocked event %r for state %r"
TRANSITION = "Transition %r -> %r triggered by %r"
CANNOT_FIRE = "Cannot fire event %r from state %r"
GUARD_NOT_CONSULTED = "can_fire(%r) from state %r does not evaluate the guard"


class DiagnosticsLogger(Protocol):
    """Anything with logging-style ``warning`` and ``info`` methods."""

    def warning(self, msg: str, *args: Any, **kwargs: Any) -> None: ...

    def info(self, msg: str, *args: Any, **kwargs: Any) -> None: ...


def default_logger() -> logging.Logger:
    return logging.getLogger(LOGGER_NAME)


class Diagnostics:
    """Formats the machine's records and hands them to the injected logger."""

    __slots__ = ("logger",)

    def __init__(self, logger: DiagnosticsLogger | None = None) -> None:
        self.logger: DiagnosticsLogger = logger if logger is not None else default_logger()

    def unhandled(self, state: StateId, event: EventId) -> None:
        self.logger.warning(
            UNHANDLED_EVENT, event, state,
            extra={"fsm_event": event, "fsm_state": state},
        )

    def guard_blocked(self, state: StateId, event: EventId) -> None:
        self.logger.warning(
            GUARD_BLOCKED, event, state,
            extra={"fsm_event": event, "fsm_state": state},
        )

    def transition(self, from_state: StateId, to_state: StateId, event: EventId) -> None:
        self.logger.info(
            TRANSITION, from_state, to_state, event,
            extra={"fsm_event": event, "fsm_from": from_state, "fsm_to": to_state},
        )

    def cannot_fire(self, state: StateId, event: EventId) -> None:
        self.logger.warning(
            CANNOT_FIRE, event, state,
            extra={"fsm_event": event, "fsm_state": state},
        )

    def guard_not_consulted(self, state: StateId, event: EventId) -> None:
        self.logger.warning(
            GUARD_NOT_CONSULTED, event, state,
            extra={"fsm_event": event, "fsm_state": state},
        )


def configure_logging(level: int | str = logging.INFO, stream: TextIO | None = None) -> None:
    """Attach a console handler to the ``snapfsm`` logger. Meant for scripts."""
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)
    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    root = logging.getLogger("snapfsm")
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(level)
