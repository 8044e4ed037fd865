from __future__ import annotations

import json
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Optional


@dataclass(frozen=True)
class Mount:
    name: str
    root: Path
    read_only: bool = False


class ConfigError(RuntimeError):
    pass


def backend_dir() -> Path:
    # backend/fsns/config.py -> backend/
    return Path(__file__).resolve().parents[1]


def mounts_config_path() -> Path:
    p = os.environ.get("FSNS_MOUNTS_CONFIG")
    if p:
        return Path(p)
    return backend_dir() / "config" / "mounts.json"


def load_mounts(cfg_path: Optional[Path] = None) -> dict[str, Mount]:
    """
    Read drive-root mounts from the JSON config.

    A missing file means no mounts; malformed JSON raises ConfigError.
    """
    cfg_path = cfg_path or mounts_config_path()
    if not cfg_path.exists():
        return {}
    try:
        raw = json.loads(cfg_path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        raise ConfigError(f"Cannot read mounts config {cfg_path}: {e}") from e
    mounts = raw.get("mounts") or []
    out: dict[str, Mount] = {}
    for m in mounts:
        name = str(m.get("name") or "").strip()
        if not name or "/" in name or "\\" in name:
            continue
        root = Path(str(m.get("path") or "")).expanduser()
        if not root.is_absolute():
            root = (cfg_path.parent / root).resolve()
        else:
            root = root.resolve()
        read_only = bool(m.get("readOnly", False))
        out[name] = Mount(name=name, root=root, read_only=read_only)
    return out


def default_mounts() -> dict[str, Mount]:
    """Mounts from config, or the host filesystem anchor when none are configured."""
    mounts = load_mounts()
    if mounts:
        return mounts
    anchor = Path(Path.cwd().anchor or "/")
    return {"system": Mount(name="system", root=anchor)}


def known_folder(name: str) -> Optional[Path]:
    home = Path.home()
    folders = {
        "home": home,
        "desktop": home / "Desktop",
        "documents": home / "Documents",
        "temp": Path(tempfile.gettempdir()),
    }
    return folders.get(name.strip().lower())
