from __future__ import annotations

from pathlib import Path

import pytest

from fsns.config import Mount
from fsns.folders.router import FolderRouter, default_router
from fsns.ids.idlist import ItemIdList


@pytest.fixture(autouse=True)
def isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the registry database, log directory and mounts config into tmp_path."""
    state = tmp_path / "state"
    monkeypatch.setenv("FSNS_DB_PATH", str(state / "fsns.db"))
    monkeypatch.setenv("FSNS_LOG_DIR", str(state / "logs"))
    monkeypatch.setenv("FSNS_MOUNTS_CONFIG", str(state / "mounts.json"))
    return state


@pytest.fixture
def data_root(tmp_path: Path) -> Path:
    """
    A small tree:

        data/
          docs/
            notes/
            a.txt
            B.md
          empty/
          .secret
          Doc.txt
          shortcut.lnk
          zz.bin
    """
    root = (tmp_path / "data").resolve()
    (root / "docs" / "notes").mkdir(parents=True)
    (root / "empty").mkdir()
    (root / "docs" / "a.txt").write_text("alpha", encoding="utf-8")
    (root / "docs" / "B.md").write_text("# b", encoding="utf-8")
    (root / ".secret").write_text("s", encoding="utf-8")
    (root / "Doc.txt").write_text("doc", encoding="utf-8")
    (root / "shortcut.lnk").write_bytes(b"L\x00\x00\x00")
    (root / "zz.bin").write_bytes(b"\x00" * 3000)
    return root


@pytest.fixture
def router(data_root: Path) -> FolderRouter:
    return default_router(mounts={"data": Mount(name="data", root=data_root)})


@pytest.fixture
def drive_folder(router: FolderRouter):  # type: ignore[no-untyped-def]
    """The filesystem folder bound at the `data` mount root."""
    root = router.root_folder()
    drive = root.drives()[0]
    return root.bind(ItemIdList([drive]))
