"""Tests for canonical encoding and fingerprint derivation."""
import enum
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal

from snapfsm import Payload, canonical_encoding, fingerprint, stable_hash
from snapfsm.fingerprint import MAX_DEPTH, UNENCODABLE, token


class Event(enum.Enum):
    FETCH = "fetch"
    RETRY = "retry"


@dataclass
class Point:
    x: int
    y: int


def nested_list(depth):
    value = []
    for _ in range(depth):
        value = [value]
    return value


# --- canonical_encoding ---

def test_mapping_key_order_is_irrelevant():
    assert canonical_encoding({"a": 1, "b": [1, 2]}) == canonical_encoding({"b": [1, 2], "a": 1})


def test_encoding_has_no_whitespace():
    assert canonical_encoding({"a": [1, 2], "b": "x y"}) == '{"__map__":[["a",[1,2]],["b","x y"]]}'


def test_list_and_tuple_encode_identically():
    assert canonical_encoding([1, "a"]) == canonical_encoding((1, "a"))


def test_sequence_order_matters():
    assert canonical_encoding([1, 2]) != canonical_encoding([2, 1])


def test_set_order_is_irrelevant():
    assert canonical_encoding({3, 1, 2}) == canonical_encoding(frozenset([2, 3, 1]))
    assert canonical_encoding({1, 2}) != canonical_encoding([1, 2])


def test_bool_and_int_are_distinct():
    assert canonical_encoding(True) != canonical_encoding(1)


def test_enum_dataclass_date_decimal():
    encoded = canonical_encoding([Event.FETCH, Point(1, 2), date(2024, 1, 2), Decimal("1.50")])
    assert encoded == (
        '[{"__enum__":"Event.FETCH"},'
        '{"__dataclass__":"Point","fields":[["x",1],["y",2]]},'
        '{"__date__":"2024-01-02"},'
        '{"__decimal__":"1.50"}]'
    )


def test_tagged_values_differ_from_their_string_forms():
    assert canonical_encoding(Decimal("1.50")) != canonical_encoding("1.50")
    assert canonical_encoding(date(2024, 1, 2)) != canonical_encoding("2024-01-02")
    assert canonical_encoding(datetime(2024, 1, 2)) != canonical_encoding(date(2024, 1, 2))
    assert canonical_encoding(Event.FETCH) != canonical_encoding("Event.FETCH")


def test_mapping_keys_keep_their_type():
    assert canonical_encoding({1: "a"}) != canonical_encoding({"1": "a"})
    assert canonical_encoding({True: "a"}) != canonical_encoding({"true": "a"})


def test_mapping_with_int_and_str_key_keeps_both_entries():
    encoded = canonical_encoding({1: "a", "1": "b"})
    assert encoded == '{"__map__":[["1","b"],[1,"a"]]}'


def test_mapping_does_not_collide_with_tagged_value():
    assert canonical_encoding({"__decimal__": "1.50"}) != canonical_encoding(Decimal("1.50"))


def test_unencodable_object_returns_none():
    assert canonical_encoding([object()]) is None
    assert canonical_encoding({"k": b"bytes"}) is None


def test_self_reference_returns_none():
    loop = []
    loop.append(loop)
    assert canonical_encoding(loop) is None


def test_shared_reference_is_not_a_cycle():
    shared = [1, 2]
    assert canonical_encoding([shared, shared]) == "[[1,2],[1,2]]"


def test_nesting_up_to_max_depth_is_encodable():
    assert canonical_encoding(nested_list(MAX_DEPTH - 1)) is not None


def test_deep_nesting_returns_none():
    assert canonical_encoding(nested_list(5000)) is None


# --- stable_hash ---

def test_stable_hash_is_deterministic_hex():
    first = stable_hash("abc")
    assert first == stable_hash("abc")
    assert first != stable_hash("abd")
    assert len(first) == 32
    int(first, 16)


def test_stable_hash_accepts_lone_surrogate():
    digest = stable_hash("\ud800")
    assert len(digest) == 32
    assert digest != stable_hash("\ud801")


# --- token ---

def test_plain_string_token_is_unchanged():
    assert token("loading") == "loading"


def test_string_token_escapes_separator_characters():
    assert token("a::b") == "a\\:\\:b"
    assert token("#x") == "\\#x"
    assert token("a\\b") == "a\\\\b"


def test_non_string_tokens_carry_their_type():
    assert token(Event.FETCH) == "#Event.FETCH"
    assert token(1) == "#int=1"
    assert token(1) != token("1")
    assert token(Event.FETCH) != token("Event.FETCH")


# --- fingerprint ---

def test_event_only_by_default():
    assert fingerprint("fetch") == "fetch"
    assert fingerprint("fetch", Payload(["x"])) == "fetch"


def test_enum_event_token():
    assert fingerprint(Event.RETRY) == "#Event.RETRY"


def test_payload_sensitive_shape():
    key = fingerprint("success", Payload(["a"]), payload_sensitive=True)
    event, _, digest = key.partition("::")
    assert event == "success"
    assert len(digest) == 32


def test_payload_sensitive_distinguishes_payloads():
    a = fingerprint("success", Payload(["a"]), payload_sensitive=True)
    b = fingerprint("success", Payload(["b"]), payload_sensitive=True)
    none = fingerprint("success", Payload(), payload_sensitive=True)
    assert len({a, b, none}) == 3


def test_payload_sensitive_equal_values_equal_keys():
    a = fingerprint("s", Payload([{"x": 1, "y": 2}]), payload_sensitive=True)
    b = fingerprint("s", Payload(({"y": 2, "x": 1},)), payload_sensitive=True)
    assert a == b


def test_payload_sensitive_keeps_decimal_apart_from_string():
    a = fingerprint("s", Payload([Decimal("1.50")]), payload_sensitive=True)
    b = fingerprint("s", Payload(["1.50"]), payload_sensitive=True)
    assert a != b


def test_unencodable_payload_uses_sentinel():
    key = fingerprint("success", Payload([object()]), payload_sensitive=True)
    assert key == f"success::{UNENCODABLE}"


def test_deeply_nested_payload_uses_sentinel():
    key = fingerprint("success", Payload([nested_list(5000)]), payload_sensitive=True)
    assert key == f"success::{UNENCODABLE}"


def test_lone_surrogate_payload_is_hashed():
    key = fingerprint("success", Payload(["\udc80"]), payload_sensitive=True)
    assert key != f"success::{UNENCODABLE}"
    assert len(key.partition("::")[2]) == 32


def test_origin_prefix():
    assert fingerprint("fetch", origin="init") == "init::fetch"
    assert fingerprint("fetch", origin="init") != fingerprint("fetch", origin="loaded")


def test_separator_inside_identifiers_does_not_collide():
    assert fingerprint("c", origin="a::b") != fingerprint("b::c", origin="a")


def test_int_and_string_events_do_not_collide():
    assert fingerprint(1, origin="idle") != fingerprint("1", origin="idle")
