from __future__ import annotations

import json
import logging
from typing import Any


def log_event(logger: logging.Logger, event: str, **fields: Any) -> None:
    """Emit one ledger event as a compact, key-sorted JSON line."""
    if not logger.isEnabledFor(logging.INFO):
        return
    payload = {"event": str(event)}
    payload.update(fields)
    logger.info(json.dumps(payload, sort_keys=True, separators=(",", ":"), default=str))
