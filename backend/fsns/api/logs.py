from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional

from fastapi import APIRouter, Query

from fsns.logging.ndjson import LOG_PREFIX, log_dir

router = APIRouter()

_TAIL_BYTES = 512 * 1024


def _read_tail_records(path: Path) -> list[dict[str, Any]]:
    """Decoded records from the last chunk of one log file. Unreadable lines are skipped."""
    try:
        size = path.stat().st_size
        with open(path, "rb") as f:
            f.seek(max(0, size - _TAIL_BYTES))
            buf = f.read(_TAIL_BYTES)
    except OSError:
        return []
    out: list[dict[str, Any]] = []
    for line in buf.decode("utf-8", errors="ignore").splitlines():
        if not line.strip():
            continue
        try:
            rec = json.loads(line)
        except ValueError:
            continue  # first line of a chunk is usually cut in half
        if isinstance(rec, dict):
            out.append(rec)
    return out


def _matches(rec: dict[str, Any], event: Optional[str], level: Optional[str]) -> bool:
    if event and not str(rec.get("event", "")).startswith(event):
        return False
    if level and rec.get("level") != level:
        return False
    return True


@router.get("/api/logs/tail")
def get_logs_tail(
    lines: int = Query(200, ge=1, le=2000),
    event: Optional[str] = Query(None, description="Event name prefix, e.g. 'ns.'"),
    level: Optional[str] = Query(None),
) -> dict[str, Any]:
    d = log_dir()
    # Newest file first; rotated files of one day share a date prefix, so order by mtime.
    files = sorted(d.glob(f"{LOG_PREFIX}-*.ndjson"), key=lambda p: p.stat().st_mtime, reverse=True)
    records: list[dict[str, Any]] = []
    for p in files:
        if len(records) >= lines:
            break
        chunk = [r for r in _read_tail_records(p) if _matches(r, event, level)]
        records = chunk + records
    records = records[-lines:]
    return {"dir": str(d), "records": records, "count": len(records)}
