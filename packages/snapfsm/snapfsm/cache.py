"""ResultCache - unbounded memo of computed snapshots keyed by fingerprint."""
from __future__ import annotations

from snapfsm.types import Snapshot


class ResultCache:
    """Plain fingerprint -> Snapshot store.

    There is no eviction, TTL or size bound. Entries only go away through
    ``delete`` or ``clear``; call ``clear`` whenever the rules behind the
    cached results change.
    """

    def __init__(self) -> None:
        self._store: dict[str, Snapshot] = {}

    def has(self, key: str) -> bool:
        return key in self._store

    def get(self, key: str) -> Snapshot | None:
        return self._store.get(key)

    def set(self, key: str, snapshot: Snapshot) -> None:
        self._store[key] = snapshot

    def delete(self, key: str) -> None:
        """Remove one entry. Missing keys are ignored."""
        self._store.pop(key, None)

    def clear(self) -> None:
        self._store.clear()

    def keys(self) -> list[str]:
        return list(self._store)

    def __contains__(self, key: object) -> bool:
        return key in self._store

    def __len__(self) -> int:
        return len(self._store)
