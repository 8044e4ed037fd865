from __future__ import annotations

import os
import sqlite3
from pathlib import Path
from typing import Optional


def db_path() -> Path:
    p = os.environ.get("FSNS_DB_PATH")
    if p:
        return Path(p)
    backend_dir = Path(__file__).resolve().parents[1]
    return backend_dir / "data" / "fsns.db"


def connect(path: Optional[Path] = None) -> sqlite3.Connection:
    p = path or db_path()
    p.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(p, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    # Good defaults for a local single-user registry.
    conn.execute("PRAGMA journal_mode=WAL;")
    conn.execute("PRAGMA synchronous=NORMAL;")
    conn.execute("PRAGMA foreign_keys=ON;")
    return conn


def init_db(path: Optional[Path] = None) -> None:
    conn = connect(path)
    try:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS schema_migrations (
              id TEXT PRIMARY KEY,
              applied_at TEXT NOT NULL
            );
            """
        )
        _apply_migrations(conn)
        conn.commit()
    finally:
        conn.close()


def _apply_migrations(conn: sqlite3.Connection) -> None:
    migrations: list[tuple[str, str]] = [
        ("001_file_types", _MIG_001_FILE_TYPES),
        ("002_settings", _MIG_002_SETTINGS),
        ("003_change_events", _MIG_003_CHANGE_EVENTS),
    ]
    applied = {row["id"] for row in conn.execute("SELECT id FROM schema_migrations")}
    for mid, sql in migrations:
        if mid in applied:
            continue
        conn.executescript(sql)
        conn.execute(
            "INSERT INTO schema_migrations(id, applied_at) VALUES(?, datetime('now'))",
            (mid,),
        )


# A class is either an extension (".txt") whose default_value names a programmatic
# id, or a programmatic id ("txtfile") carrying a friendly name and flags.
_MIG_001_FILE_TYPES = r"""
CREATE TABLE IF NOT EXISTS file_classes (
  name TEXT PRIMARY KEY COLLATE NOCASE,
  default_value TEXT,
  never_show_ext INTEGER NOT NULL DEFAULT 0
);

CREATE TABLE IF NOT EXISTS class_handlers (
  class_name TEXT NOT NULL COLLATE NOCASE,
  key TEXT NOT NULL COLLATE NOCASE,
  value TEXT NOT NULL,
  PRIMARY KEY (class_name, key)
);

CREATE TABLE IF NOT EXISTS blocked_handlers (
  clsid TEXT PRIMARY KEY COLLATE NOCASE,
  created_at TEXT NOT NULL
);
"""

_MIG_002_SETTINGS = r"""
CREATE TABLE IF NOT EXISTS settings (
  key TEXT PRIMARY KEY,
  value TEXT NOT NULL
);
"""

_MIG_003_CHANGE_EVENTS = r"""
CREATE TABLE IF NOT EXISTS change_events (
  id TEXT PRIMARY KEY,
  kind TEXT NOT NULL,
  old_path TEXT NOT NULL,
  new_path TEXT NOT NULL,
  created_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_change_events_created
ON change_events(created_at);
"""
