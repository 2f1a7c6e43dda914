"""
Deterministic ledger state root.

Used for audit logs, replay parity checks and as a cheap equality key between
two ledger instances. The payload is `state_to_dict()` encoded as compact,
key-sorted UTF-8 JSON; only None, bool, int, str, lists and str-keyed dicts
are accepted, so two encoders can never disagree on a value.
"""

from __future__ import annotations

import hashlib
import json
from typing import Any

from ..core.state import LedgerState, state_to_dict


STATE_ROOT_VERSION = 1


def _check_encodable(value: Any, path: str = "$") -> None:
    if value is None or isinstance(value, (bool, int)):
        return
    if isinstance(value, str):
        if any(0xD800 <= ord(ch) <= 0xDFFF for ch in value):
            raise TypeError(f"{path}: surrogate code point in string")
        return
    if isinstance(value, (list, tuple)):
        for i, item in enumerate(value):
            _check_encodable(item, f"{path}[{i}]")
        return
    if isinstance(value, dict):
        for k, v in value.items():
            if not isinstance(k, str):
                raise TypeError(f"{path}: non-str key {k!r}")
            _check_encodable(k, path)
            _check_encodable(v, f"{path}.{k}")
        return
    raise TypeError(f"{path}: {type(value).__name__} is not encodable")


def encode_payload(value: Any) -> bytes:
    _check_encodable(value)
    return json.dumps(value, sort_keys=True, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def root_prefix(label: str = "ledger_state", version: int = STATE_ROOT_VERSION) -> bytes:
    """NUL-terminated domain tag, e.g. ``b"stakeledger:ledger_state:v1\\x00"``."""
    if not label.isascii() or not label or "\x00" in label:
        raise ValueError(f"invalid domain label {label!r}")
    return f"stakeledger:{label}:v{version}".encode("ascii") + b"\x00"


def compute_state_root(state: LedgerState) -> str:
    """0x-prefixed SHA-256 over the encoded `state`."""
    digest = hashlib.sha256(root_prefix() + encode_payload(state_to_dict(state)))
    return "0x" + digest.hexdigest()
