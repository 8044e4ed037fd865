"""
File-type associations: which handler identity owns a given extension and verb.

Lookups mirror the classic two-step scheme: first `<ext>\\<key>`, then the
extension's programmatic id, `<progid>\\<key>`. Every resolved identity is
checked against a block list before it is handed out.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from fsns.db import connect, init_db
from fsns.errors import AccessDenied, InvalidArgument, NotFound
from fsns.fs.desktop_ini import normalize_clsid
from fsns.fs.records import find_extension
from fsns.logging.ndjson import log_event
from fsns.settings.store import get_hide_file_ext, set_hide_file_ext
from fsns.shell.flags import CLSID_ZIP_FOLDER

KEY_CLSID = "CLSID"
KEY_DEFAULT_ICON = "DefaultIcon"
KEY_DROP_HANDLER = r"shellex\DropHandler"
KEY_ICON_HANDLER = r"shellex\IconHandler"


def _norm_ext(ext: str) -> str:
    ext = ext.strip()
    if not ext:
        raise InvalidArgument("Empty extension")
    return ext if ext.startswith(".") else "." + ext


class TypeRegistry:
    """SQLite-backed, process-wide file-type table. Read-mostly."""

    def __init__(self, path: Optional[Path] = None):
        self.path = path
        init_db(path)

    # -- writes -------------------------------------------------------------

    def register_extension(
        self,
        ext: str,
        prog_id: Optional[str] = None,
        *,
        friendly_name: Optional[str] = None,
        never_show_ext: bool = False,
    ) -> None:
        ext = _norm_ext(ext)
        conn = connect(self.path)
        try:
            conn.execute(
                "INSERT INTO file_classes(name, default_value, never_show_ext) VALUES(?, ?, 0) "
                "ON CONFLICT(name) DO UPDATE SET default_value=excluded.default_value",
                (ext, prog_id),
            )
            if prog_id:
                conn.execute(
                    "INSERT INTO file_classes(name, default_value, never_show_ext) VALUES(?, ?, ?) "
                    "ON CONFLICT(name) DO UPDATE SET default_value=COALESCE(excluded.default_value, default_value), "
                    "never_show_ext=excluded.never_show_ext",
                    (prog_id, friendly_name, 1 if never_show_ext else 0),
                )
            conn.commit()
        finally:
            conn.close()

    def set_handler(self, class_name: str, key: str, value: str) -> None:
        """Associate `value` with `<class_name>\\<key>`; class_name is an extension or a progid."""
        if key.strip().upper() == KEY_CLSID or key.lower().startswith("shellex"):
            if normalize_clsid(value) is None:
                raise InvalidArgument("Handler is not a class identity", value=value)
        conn = connect(self.path)
        try:
            conn.execute(
                "INSERT INTO class_handlers(class_name, key, value) VALUES(?, ?, ?) "
                "ON CONFLICT(class_name, key) DO UPDATE SET value=excluded.value",
                (class_name, key, value),
            )
            conn.commit()
        finally:
            conn.close()

    def block(self, clsid: str) -> None:
        canonical = normalize_clsid(clsid)
        if canonical is None:
            raise InvalidArgument("Not a class identity", value=clsid)
        conn = connect(self.path)
        try:
            conn.execute(
                "INSERT OR IGNORE INTO blocked_handlers(clsid, created_at) VALUES(?, datetime('now'))",
                (canonical,),
            )
            conn.commit()
        finally:
            conn.close()

    def set_hide_known_extensions(self, enabled: bool) -> None:
        set_hide_file_ext(enabled, path=self.path)

    # -- reads --------------------------------------------------------------

    def prog_id_for(self, ext: str) -> Optional[str]:
        conn = connect(self.path)
        try:
            row = conn.execute("SELECT default_value FROM file_classes WHERE name=?", (_norm_ext(ext),)).fetchone()
            return str(row["default_value"]) if row and row["default_value"] else None
        finally:
            conn.close()

    def _handler_value(self, class_name: str, key: str) -> Optional[str]:
        conn = connect(self.path)
        try:
            row = conn.execute(
                "SELECT value FROM class_handlers WHERE class_name=? AND key=?",
                (class_name, key),
            ).fetchone()
            return str(row["value"]) if row else None
        finally:
            conn.close()

    def lookup(self, ext: str, key: str) -> Optional[str]:
        """Raw `<ext>\\<key>` value, falling back to `<progid>\\<key>`."""
        if not ext:
            return None
        ext = _norm_ext(ext)
        value = self._handler_value(ext, key)
        if value is not None:
            return value
        prog_id = self.prog_id_for(ext)
        if not prog_id:
            return None
        return self._handler_value(prog_id, key)

    def is_blocked(self, clsid: str) -> bool:
        canonical = normalize_clsid(clsid) or clsid
        conn = connect(self.path)
        try:
            row = conn.execute("SELECT 1 FROM blocked_handlers WHERE clsid=?", (canonical,)).fetchone()
            return row is not None
        finally:
            conn.close()

    def clsid_for_file(self, name: str, key: str = KEY_CLSID) -> str:
        """
        Resolve the handler identity for a file name and verb key.

        NotFound when the type has no such entry, AccessDenied when the identity
        is blocked, InvalidArgument when the stored value is not a GUID.
        """
        ext = find_extension(name)
        value = self.lookup(ext, key) if ext else None
        if value is None:
            raise NotFound(f"No {key} handler registered for {name}", name=name, key=key)
        if self.is_blocked(value):
            log_event(level="warn", event="registry.blocked", data={"name": name, "key": key, "clsid": value})
            raise AccessDenied(f"Handler {value} is blocked", clsid=value)
        canonical = normalize_clsid(value)
        if canonical is None:
            raise InvalidArgument(f"Malformed handler identity {value!r}", value=value)
        return canonical

    def friendly_type_name(self, ext: str) -> Optional[str]:
        prog_id = self.prog_id_for(ext) if ext else None
        if not prog_id:
            return None
        conn = connect(self.path)
        try:
            row = conn.execute("SELECT default_value FROM file_classes WHERE name=?", (prog_id,)).fetchone()
            return str(row["default_value"]) if row and row["default_value"] else None
        finally:
            conn.close()

    def hide_known_extensions(self) -> bool:
        return get_hide_file_ext(path=self.path)

    def never_show_extension(self, ext: str) -> bool:
        prog_id = self.prog_id_for(ext) if ext else None
        if not prog_id:
            return False
        conn = connect(self.path)
        try:
            row = conn.execute("SELECT never_show_ext FROM file_classes WHERE name=?", (prog_id,)).fetchone()
            return bool(row and row["never_show_ext"])
        finally:
            conn.close()

    def should_hide_extension(self, name: str) -> bool:
        """True if the extension of `name` is hidden from normal display names."""
        if self.hide_known_extensions():
            return True
        ext = find_extension(name)
        return bool(ext) and self.never_show_extension(ext)


def seed_default_types(registry: TypeRegistry) -> None:
    """Register the built-in associations unless the user already defined them."""
    if registry.prog_id_for(".zip") is None:
        registry.register_extension(".zip", "CompressedFolder", friendly_name="Compressed (zipped) Folder")
        registry.set_handler("CompressedFolder", KEY_CLSID, CLSID_ZIP_FOLDER)
    if registry.prog_id_for(".lnk") is None:
        registry.register_extension(".lnk", "lnkfile", friendly_name="Shortcut", never_show_ext=True)
