"""
Structured NDJSON event log.

One JSON object per line in `fsns-YYYY-MM-DD[.N].ndjson` under `log_dir()`.
Records carry a millisecond timestamp, a level, a dotted event name and an
optional `data` payload; while an HTTP request is being served its id is
attached automatically. Writing is best-effort and never raises.
"""

from __future__ import annotations

import json
import os
import threading
import time
from contextvars import ContextVar
from datetime import datetime, timedelta
from pathlib import Path, PurePath
from typing import Any, Optional

_lock = threading.Lock()

LOG_PREFIX = "fsns"
DEFAULT_MAX_BYTES = 50 * 1024 * 1024
DEFAULT_RETENTION_DAYS = 7

_MAX_STR = 600
_MAX_ITEMS = 80

current_request_id: ContextVar[Optional[str]] = ContextVar("fsns_request_id", default=None)


def _backend_dir() -> Path:
    # backend/fsns/logging/ndjson.py -> backend/
    return Path(__file__).resolve().parents[2]


def log_dir() -> Path:
    p = os.environ.get("FSNS_LOG_DIR")
    if p:
        return Path(p)
    return _backend_dir() / "data" / "logs"


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.environ.get(name, str(default)))
    except ValueError:
        return default


def _clip(text: str) -> str:
    if len(text) <= _MAX_STR:
        return text
    return text[:_MAX_STR] + f"...(+{len(text) - _MAX_STR} chars)"


def _render(v: Any) -> Any:
    """JSON-safe, size-bounded copy of a payload value."""
    if v is None or isinstance(v, (bool, int, float)):
        return v
    if isinstance(v, str):
        return _clip(v)
    if isinstance(v, (bytes, bytearray)):
        # Identifier bytes: hex is what you want when reading a trace.
        return _clip(bytes(v).hex())
    if isinstance(v, PurePath):
        return _clip(os.fspath(v))
    if isinstance(v, dict):
        out = {str(k): _render(vv) for k, vv in list(v.items())[:_MAX_ITEMS]}
        if len(v) > _MAX_ITEMS:
            out["_truncated_keys"] = len(v) - _MAX_ITEMS
        return out
    if isinstance(v, (list, tuple, set, frozenset)):
        seq = list(v)
        items = [_render(x) for x in seq[:_MAX_ITEMS]]
        if len(seq) > _MAX_ITEMS:
            items.append({"_truncated_items": len(seq) - _MAX_ITEMS})
        return items
    return _clip(str(v))


def _log_file_for(now: datetime) -> Path:
    """Today's file, or the first rotated sibling still under the size limit."""
    d = log_dir()
    d.mkdir(parents=True, exist_ok=True)
    stem = now.strftime(f"{LOG_PREFIX}-%Y-%m-%d")
    limit = _env_int("FSNS_LOG_MAX_BYTES", DEFAULT_MAX_BYTES)
    for i in range(1000):
        p = d / (f"{stem}.ndjson" if i == 0 else f"{stem}.{i}.ndjson")
        try:
            if p.stat().st_size < limit:
                return p
        except FileNotFoundError:
            return p
    return d / f"{stem}.ndjson"


def _prune_old_files(now: datetime) -> None:
    d = log_dir()
    if not d.is_dir():
        return
    cutoff = (now - timedelta(days=_env_int("FSNS_LOG_RETENTION_DAYS", DEFAULT_RETENTION_DAYS))).timestamp()
    for p in d.glob(f"{LOG_PREFIX}-*.ndjson"):
        try:
            if p.stat().st_mtime < cutoff:
                p.unlink()
        except OSError:
            continue


def init_logging() -> None:
    """
    Best-effort init: ensure log dir exists and prune old files.
    """
    with _lock:
        log_dir().mkdir(parents=True, exist_ok=True)
        _prune_old_files(datetime.now())


def log_event(
    *,
    level: str,
    event: str,
    data: Optional[dict[str, Any]] = None,
    requestId: Optional[str] = None,
) -> None:
    """
    Append a single structured NDJSON record.
    Callers pass paths and counts, never file contents.
    """
    now = time.time()
    rec: dict[str, Any] = {"ts": int(now * 1000), "level": level, "event": event}
    rid = requestId or current_request_id.get()
    if rid:
        rec["requestId"] = rid
    if data:
        rec["data"] = _render(data)

    with _lock:
        try:
            line = json.dumps(rec, ensure_ascii=False)
            stamp = datetime.fromtimestamp(now)
            _prune_old_files(stamp)
            with open(_log_file_for(stamp), "a", encoding="utf-8") as f:
                f.write(line + "\n")
        except Exception:  # noqa: BLE001
            # Best-effort: never crash the caller due to logging.
            pass
