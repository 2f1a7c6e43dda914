"""Tests for stakeledger/state/snapshot.py."""

import re

import pytest

from stakeledger.core import engine
from stakeledger.core.config import LedgerConfig
from stakeledger.core.math import DAY
from stakeledger.core.state import initial_state
from stakeledger.state.snapshot import compute_state_root, encode_payload, root_prefix

CONFIG = LedgerConfig(base_asset="LEVR")


def test_root_format() -> None:
    assert re.fullmatch(r"0x[0-9a-f]{64}", compute_state_root(initial_state()))


def test_root_is_order_independent() -> None:
    a = engine.deposit(initial_state(), "alice", 10, 0, CONFIG)
    a = engine.deposit(a, "bob", 20, 0, CONFIG)
    b = engine.deposit(initial_state(), "bob", 20, 0, CONFIG)
    b = engine.deposit(b, "alice", 10, 0, CONFIG)
    assert compute_state_root(a) == compute_state_root(b)


def test_root_changes_with_state() -> None:
    a = engine.deposit(initial_state(), "alice", 10, 0, CONFIG)
    b = engine.deposit(initial_state(), "alice", 10, DAY, CONFIG)
    assert compute_state_root(a) != compute_state_root(b)


def test_encode_payload() -> None:
    assert encode_payload({"b": 1, "a": [2, None]}) == b'{"a":[2,null],"b":1}'
    with pytest.raises(TypeError):
        encode_payload({"a": 1.5})
    with pytest.raises(TypeError):
        encode_payload({1: 2})


def test_domain_separation() -> None:
    assert root_prefix("ledger_state", 1) == b"stakeledger:ledger_state:v1\x00"
    with pytest.raises(ValueError):
        root_prefix("bad\x00label")
