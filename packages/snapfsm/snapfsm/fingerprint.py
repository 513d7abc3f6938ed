"""Cache-key derivation: canonical payload encoding plus a stable hash.

The canonical form is a JSON document with no whitespace, built from an
explicit primitive encoding:

- ``None``, ``bool``, ``int``, ``float`` and ``str`` map to themselves;
- lists and tuples map to JSON arrays (order preserved, so a list and a tuple
  with the same items encode identically);
- every other supported type maps to a single-key object naming its type:
  ``{"__enum__": "Color.RED"}``, ``{"__date__": "2024-01-02"}``,
  ``{"__datetime__": ...}``, ``{"__time__": ...}``, ``{"__decimal__": "1.50"}``,
  ``{"__set__": [...]}`` (items sorted by their own encoding),
  ``{"__map__": [[key, value], ...]}`` (pairs sorted by encoded key) and
  ``{"__dataclass__": "Point", "fields": [[name, value], ...]}``.

Plain values never encode to a JSON object, so a tagged value cannot collide
with a string, and mapping keys keep their type.

Anything else, self-referencing containers, and values nested deeper than
``MAX_DEPTH`` containers are unencodable. That case is detected while walking
the value and yields the fixed :data:`UNENCODABLE` suffix instead of a hash.
"""
from __future__ import annotations

import dataclasses
import enum
import hashlib
import json
from collections.abc import Mapping, Sequence
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any

from snapfsm.types import EventId, Payload, StateId

SEPARATOR = "::"
UNENCODABLE = "unencodable"
MAX_DEPTH = 100
_DIGEST_CHARS = 32


class _Unencodable:
    __slots__ = ()

    def __repr__(self) -> str:
        return "<unencodable>"


_MISSING = _Unencodable()


def _encode(value: Any, active: set[int]) -> Any:
    """Return the canonical primitive form of *value*, or ``_MISSING``.

    *active* holds the ids of the containers currently being walked; its size
    is the nesting depth.
    """
    if isinstance(value, enum.Enum):
        return {"__enum__": f"{type(value).__qualname__}.{value.name}"}
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    # datetime is a date subclass, so it is checked first.
    if isinstance(value, datetime):
        return {"__datetime__": value.isoformat()}
    if isinstance(value, date):
        return {"__date__": value.isoformat()}
    if isinstance(value, time):
        return {"__time__": value.isoformat()}
    if isinstance(value, Decimal):
        return {"__decimal__": str(value)}

    marker = id(value)
    if marker in active or len(active) >= MAX_DEPTH:
        return _MISSING
    active.add(marker)
    try:
        if dataclasses.is_dataclass(value) and not isinstance(value, type):
            fields = _encode_pairs(
                ((f.name, getattr(value, f.name)) for f in dataclasses.fields(value)), active
            )
            if fields is _MISSING:
                return _MISSING
            return {"__dataclass__": type(value).__qualname__, "fields": fields}
        if isinstance(value, Mapping):
            pairs = _encode_pairs(value.items(), active)
            if pairs is _MISSING:
                return _MISSING
            return {"__map__": pairs}
        if isinstance(value, (set, frozenset)):
            items = _encode_items(value, active)
            if items is _MISSING:
                return _MISSING
            return {"__set__": sorted(items, key=_dumps)}
        if isinstance(value, Sequence) and not isinstance(value, (bytes, bytearray)):
            return _encode_items(value, active)
        return _MISSING
    finally:
        active.discard(marker)


def _encode_items(values: Any, active: set[int]) -> Any:
    items = []
    for item in values:
        encoded = _encode(item, active)
        if encoded is _MISSING:
            return _MISSING
        items.append(encoded)
    return items


def _encode_pairs(pairs: Any, active: set[int]) -> Any:
    out = []
    for key, item in pairs:
        encoded_key = _encode(key, active)
        encoded_item = _encode(item, active)
        if encoded_key is _MISSING or encoded_item is _MISSING:
            return _MISSING
        out.append([encoded_key, encoded_item])
    out.sort(key=lambda pair: (_dumps(pair[0]), _dumps(pair[1])))
    return out


def _dumps(value: Any) -> str:
    return json.dumps(value, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def canonical_encoding(value: Any) -> str | None:
    """Deterministic text form of *value*, or None if it cannot be encoded."""
    encoded = _encode(value, set())
    if encoded is _MISSING:
        return None
    return _dumps(encoded)


def stable_hash(text: str) -> str:
    """Stable hex digest of *text*, identical across processes and platforms.

    Lone surrogates are hashed by their code point rather than rejected.
    """
    return hashlib.sha256(text.encode("utf-8", errors="surrogatepass")).hexdigest()[:_DIGEST_CHARS]


def _escape(text: str) -> str:
    return text.replace("\\", "\\\\").replace(":", "\\:").replace("#", "\\#")


def token(ident: StateId | EventId) -> str:
    """Unambiguous string form of a state or event identifier.

    Strings are used as-is with ``\\``, ``:`` and ``#`` backslash-escaped, so
    no token contains a bare separator. Other identifiers start with ``#``
    followed by their type: ``#Color.RED`` for enum members, ``#int=1`` for
    the integer 1, which keeps them apart from the string ``"1"``.
    """
    if isinstance(ident, str):
        return _escape(ident)
    if isinstance(ident, enum.Enum):
        return "#" + _escape(f"{type(ident).__qualname__}.{ident.name}")
    return "#" + _escape(f"{type(ident).__qualname__}={ident!r}")


def fingerprint(
    event: EventId,
    payload: Payload | None = None,
    *,
    payload_sensitive: bool = False,
    origin: StateId | None = None,
) -> str:
    """Derive the cache key for firing *event*.

    Without payload sensitivity the key is the event token alone. With it, the
    key is ``event::hash`` where the hash covers the canonical encoding of the
    payload's data; an unencodable payload gives ``event::unencodable``. When
    *origin* is given, its token is prepended so the same event fired from
    different states never shares a key.
    """
    key = token(event)
    if payload_sensitive:
        data = payload.applied_data if payload is not None else None
        encoded = canonical_encoding({"applied_data": data})
        key = f"{key}{SEPARATOR}{stable_hash(encoded) if encoded is not None else UNENCODABLE}"
    if origin is not None:
        key = f"{token(origin)}{SEPARATOR}{key}"
    return key
