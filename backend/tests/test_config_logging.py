"""Tests for mount configuration, the registry database and the event log."""

import json
import os
from pathlib import Path

import pytest

from fsns.config import ConfigError, known_folder, load_mounts
from fsns.db import connect, init_db
from fsns.logging.ndjson import LOG_PREFIX, current_request_id, log_dir, log_event


def _records(state: Path) -> list[dict]:
    out = []
    for p in sorted((state / "logs").glob(f"{LOG_PREFIX}-*.ndjson")):
        out.extend(json.loads(line) for line in p.read_text(encoding="utf-8").splitlines() if line)
    return out


class TestMounts:
    def test_missing_config_means_no_mounts(self, isolated_env):
        assert load_mounts() == {}

    def test_relative_paths_and_flags(self, isolated_env):
        isolated_env.mkdir(parents=True, exist_ok=True)
        cfg = isolated_env / "mounts.json"
        cfg.write_text(
            json.dumps(
                {
                    "mounts": [
                        {"name": "work", "path": "work"},
                        {"name": "archive", "path": "/srv/archive", "readOnly": True},
                        {"name": "bad/name", "path": "x"},
                        {"name": "", "path": "y"},
                    ]
                }
            ),
            encoding="utf-8",
        )
        mounts = load_mounts()
        assert set(mounts) == {"work", "archive"}
        assert mounts["work"].root == (isolated_env / "work").resolve()
        assert mounts["archive"].read_only is True
        assert mounts["work"].read_only is False

    def test_malformed_config(self, isolated_env):
        isolated_env.mkdir(parents=True, exist_ok=True)
        (isolated_env / "mounts.json").write_text("{not json", encoding="utf-8")
        with pytest.raises(ConfigError):
            load_mounts()

    def test_known_folders(self):
        assert known_folder("Home") == Path.home()
        assert known_folder("nope") is None


class TestDatabase:
    def test_migrations_are_idempotent(self, isolated_env):
        init_db()
        init_db()
        conn = connect()
        try:
            ids = [r["id"] for r in conn.execute("SELECT id FROM schema_migrations ORDER BY id")]
        finally:
            conn.close()
        assert ids == ["001_file_types", "002_settings", "003_change_events"]


class TestEventLog:
    def test_log_dir_follows_env(self, isolated_env):
        assert log_dir() == isolated_env / "logs"

    def test_record_shape(self, isolated_env):
        log_event(level="info", event="ns.test", data={"raw": b"\x01\x02", "path": Path("/a/b")})
        (rec,) = _records(isolated_env)
        assert rec["level"] == "info"
        assert rec["event"] == "ns.test"
        assert rec["data"] == {"raw": "0102", "path": os.fspath(Path("/a/b"))}
        assert isinstance(rec["ts"], int)

    def test_long_values_are_clipped(self, isolated_env):
        log_event(level="info", event="ns.test", data={"s": "x" * 5000, "items": list(range(200))})
        (rec,) = _records(isolated_env)
        assert len(rec["data"]["s"]) < 700
        assert rec["data"]["items"][-1] == {"_truncated_items": 120}

    def test_request_id_from_context(self, isolated_env):
        token = current_request_id.set("req-1")
        try:
            log_event(level="info", event="ns.test")
        finally:
            current_request_id.reset(token)
        log_event(level="info", event="ns.test")
        first, second = _records(isolated_env)
        assert first["requestId"] == "req-1"
        assert "requestId" not in second

    def test_rotation_by_size(self, isolated_env, monkeypatch):
        monkeypatch.setenv("FSNS_LOG_MAX_BYTES", "10")
        log_event(level="info", event="ns.one")
        log_event(level="info", event="ns.two")
        files = list((isolated_env / "logs").glob(f"{LOG_PREFIX}-*.ndjson"))
        assert len(files) == 2

    def test_logging_never_raises(self, isolated_env, monkeypatch):
        blocker = isolated_env / "blocked"
        blocker.parent.mkdir(parents=True, exist_ok=True)
        blocker.write_text("file, not a directory", encoding="utf-8")
        monkeypatch.setenv("FSNS_LOG_DIR", str(blocker))
        log_event(level="info", event="ns.test", data={"x": 1})
