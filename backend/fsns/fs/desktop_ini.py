from __future__ import annotations

import configparser
import os
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from fsns.logging.ndjson import log_event

DESKTOP_INI = "desktop.ini"
SHELL_CLASS_INFO = ".ShellClassInfo"


@dataclass(frozen=True)
class DirectoryOverride:
    clsid: Optional[str] = None
    clsid2: Optional[str] = None
    icon_file: Optional[str] = None
    icon_index: int = 0


def normalize_clsid(value: str) -> Optional[str]:
    """Canonical `{XXXXXXXX-...}` form, or None when `value` is not a GUID."""
    text = value.strip().strip("{}")
    try:
        return "{" + str(uuid.UUID(text)).upper() + "}"
    except ValueError:
        return None


def _read_text(path: Path) -> str:
    raw = path.read_bytes()
    if raw.startswith((b"\xff\xfe", b"\xfe\xff")):
        return raw.decode("utf-16")
    for encoding in ("utf-8-sig", "latin-1"):
        try:
            return raw.decode(encoding)
        except UnicodeDecodeError:
            continue
    return raw.decode("utf-8", errors="replace")


def read_directory_override(directory: str) -> Optional[DirectoryOverride]:
    """
    Read the `.ShellClassInfo` section of `<directory>/desktop.ini`.

    Best-effort: a missing, unreadable or malformed file means no override.
    """
    ini = Path(directory) / DESKTOP_INI
    try:
        if not ini.is_file():
            return None
        parser = configparser.ConfigParser(interpolation=None, strict=False)
        parser.read_string(_read_text(ini))
    except (OSError, configparser.Error, UnicodeDecodeError) as e:
        log_event(level="warn", event="ns.override.read_failed", data={"path": str(ini), "error": str(e)})
        return None
    if not parser.has_section(SHELL_CLASS_INFO):
        return None
    section = parser[SHELL_CLASS_INFO]

    icon_file = section.get("IconFile")
    try:
        icon_index = int(section.get("IconIndex", "0"))
    except ValueError:
        icon_index = 0
    return DirectoryOverride(
        clsid=normalize_clsid(section.get("CLSID", "")),
        clsid2=normalize_clsid(section.get("CLSID2", "")),
        icon_file=os.path.expandvars(icon_file) if icon_file else None,
        icon_index=icon_index,
    )


def clsid_for_directory(directory: str) -> Optional[str]:
    override = read_directory_override(directory)
    return override.clsid if override else None
