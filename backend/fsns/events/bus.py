from __future__ import annotations

import threading
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Optional
from uuid import uuid4

from fsns.db import connect, init_db
from fsns.logging.ndjson import log_event


class ChangeKind(str, Enum):
    RENAME_FOLDER = "rename_folder"
    RENAME_ITEM = "rename_item"


@dataclass
class ChangeEvent:
    id: str
    kind: ChangeKind
    old_path: str
    new_path: str
    created_at: str


Subscriber = Callable[[ChangeEvent], None]


class ChangeNotifier:
    """
    Sink for namespace change notifications.

    Events are persisted to SQLite, logged, then fanned out to in-process
    subscribers. A failing subscriber never fails the notifying operation.
    """

    def __init__(self, path: Optional[Path] = None):
        self.path = path
        self._subscribers: list[Subscriber] = []
        self._lock = threading.Lock()
        init_db(path)

    def subscribe(self, fn: Subscriber) -> Callable[[], None]:
        with self._lock:
            self._subscribers.append(fn)

        def unsubscribe() -> None:
            with self._lock:
                if fn in self._subscribers:
                    self._subscribers.remove(fn)

        return unsubscribe

    def _insert(self, kind: ChangeKind, old_path: str, new_path: str) -> ChangeEvent:
        eid = str(uuid4())
        conn = connect(self.path)
        try:
            conn.execute(
                "INSERT INTO change_events(id, kind, old_path, new_path, created_at) "
                "VALUES(?, ?, ?, ?, datetime('now'))",
                (eid, kind.value, old_path, new_path),
            )
            conn.commit()
            row = conn.execute("SELECT * FROM change_events WHERE id=?", (eid,)).fetchone()
            assert row is not None
            return _row_to_event(row)
        finally:
            conn.close()

    def notify(self, kind: ChangeKind, old_path: str, new_path: str) -> ChangeEvent:
        ev = self._insert(ChangeKind(kind), old_path, new_path)
        log_event(
            level="info",
            event="ns.change",
            data={"kind": ev.kind.value, "oldPath": old_path, "newPath": new_path},
        )
        with self._lock:
            subscribers = list(self._subscribers)
        for fn in subscribers:
            try:
                fn(ev)
            except Exception as e:  # noqa: BLE001
                log_event(level="warn", event="ns.change.subscriber_failed", data={"error": str(e)})
        return ev

    def recent(self, limit: int = 100) -> list[ChangeEvent]:
        conn = connect(self.path)
        try:
            rows = conn.execute(
                "SELECT * FROM change_events ORDER BY created_at DESC, rowid DESC LIMIT ?",
                (int(limit),),
            ).fetchall()
            return [_row_to_event(r) for r in rows]
        finally:
            conn.close()


def _row_to_event(row) -> ChangeEvent:  # type: ignore[no-untyped-def]
    return ChangeEvent(
        id=row["id"],
        kind=ChangeKind(row["kind"]),
        old_path=row["old_path"],
        new_path=row["new_path"],
        created_at=row["created_at"],
    )
