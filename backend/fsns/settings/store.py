from __future__ import annotations

from pathlib import Path
from typing import Optional

from fsns.db import connect

HIDE_FILE_EXT_KEY = "HideFileExt"


def get_setting(key: str, default: Optional[str] = None, *, path: Optional[Path] = None) -> Optional[str]:
    conn = connect(path)
    try:
        row = conn.execute("SELECT value FROM settings WHERE key=?", (key,)).fetchone()
        return str(row["value"]) if row else default
    finally:
        conn.close()


def set_setting(key: str, value: str, *, path: Optional[Path] = None) -> None:
    conn = connect(path)
    try:
        conn.execute(
            "INSERT INTO settings(key, value) VALUES(?, ?) ON CONFLICT(key) DO UPDATE SET value=excluded.value",
            (key, value),
        )
        conn.commit()
    finally:
        conn.close()


def get_hide_file_ext(*, path: Optional[Path] = None) -> bool:
    # Extensions stay visible unless the user opted in.
    raw = get_setting(HIDE_FILE_EXT_KEY, "0", path=path) or "0"
    return raw.strip().lower() in ("1", "true", "yes")


def set_hide_file_ext(enabled: bool, *, path: Optional[Path] = None) -> None:
    set_setting(HIDE_FILE_EXT_KEY, "1" if enabled else "0", path=path)
