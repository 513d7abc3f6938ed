"""StateMachine configuration dataclass."""
from __future__ import annotations

import dataclasses
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class MachineOptions:
    """Immutable feature switches for a StateMachine.

    Attributes:
        dev_mode: Warn about unhandled events, guard rejections, and
            ``can_fire`` calls that skip a guard.
        log_transitions: Emit an info record for every committed transition.
        cache_enabled: Replay previously computed snapshots for a fingerprint
            instead of running guard and action again.
        payload_sensitive_cache: Include a hash of the payload in the
            fingerprint.
        state_scoped_cache: Include the originating state in the fingerprint.
        subscription_mode: Enable ``subscribe``/``unsubscribe``.
    """

    dev_mode: bool = False
    log_transitions: bool = False
    cache_enabled: bool = False
    payload_sensitive_cache: bool = False
    state_scoped_cache: bool = True
    subscription_mode: bool = False

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> MachineOptions:
        """Build options from a plain mapping.

        Raises ValueError on unknown keys and on values that are not bools, so
        ``{"dev_mode": "false"}`` is an error rather than a truthy string.
        """
        known = {f.name for f in dataclasses.fields(cls)}
        unknown = set(values) - known
        if unknown:
            raise ValueError(
                f"Unknown machine options {sorted(unknown)}; expected a subset of {sorted(known)}"
            )
        invalid = sorted(name for name, value in values.items() if not isinstance(value, bool))
        if invalid:
            raise ValueError(f"Machine options {invalid} must be bool")
        return cls(**values)
