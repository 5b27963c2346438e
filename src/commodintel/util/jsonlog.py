from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def utc_iso(ts: Optional[datetime] = None) -> str:
    """Second-resolution ISO-8601 in UTC with a trailing Z; naive input is taken as UTC."""
    ts = (ts or utc_now()).replace(microsecond=0)
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def log_json(logger: logging.Logger, payload: Dict[str, Any], level: int = logging.INFO) -> None:
    logger.log(level, json.dumps(payload, ensure_ascii=False, separators=(",", ":"), default=str))


def log_event(
    logger: logging.Logger,
    module: str,
    now: Optional[datetime] = None,
    event: Optional[str] = None,
    level: int = logging.INFO,
    **fields: Any,
) -> Dict[str, Any]:
    """One evidence line per cycle step: module, timestamp, optional event, then fields.

    Returns the payload that was logged.
    """

    payload: Dict[str, Any] = {"module": module, "timestamp": utc_iso(now)}
    if event is not None:
        payload["event"] = event
    payload.update(fields)
    log_json(logger, payload, level=level)
    return payload
