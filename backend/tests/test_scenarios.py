"""End-to-end walks through a small directory, exercising parse, bind, list and names together."""

import os

import pytest

from fsns.config import Mount
from fsns.errors import NotFound
from fsns.folders.router import default_router
from fsns.ids.codec import ItemKind
from fsns.ids.idlist import ItemIdList
from fsns.shell.bindctx import FILE_SYS_BIND_DATA, BindContext, FileSystemBindData
from fsns.shell.flags import Column, ContentFlags, DisplayFlags


@pytest.fixture
def small_dir(tmp_path):
    d = (tmp_path / "D").resolve()
    (d / "Sub").mkdir(parents=True)
    (d / "Doc.txt").write_bytes(b"0123456789")
    return d


@pytest.fixture
def folder(small_dir):
    router = default_router(mounts={"D": Mount(name="D", root=small_dir)})
    return router.bind_absolute(router.parse_path("D").idlist)


class TestSmallDirectory:
    def test_list_sort_and_name(self, folder, small_dir):
        items = list(folder.enumerate(ContentFlags.FOLDERS | ContentFlags.NONFOLDERS))
        expected = [e.name for e in os.scandir(small_dir)]
        assert [i.name for i in items] == expected

        sub = next(i for i in items if i.name == "Sub")
        doc = next(i for i in items if i.name == "Doc.txt")
        assert doc.size == 10
        assert folder.compare(Column.NAME, ItemIdList([sub]), ItemIdList([doc])) < 0

        folder.router.registry.register_extension(".txt", "txtfile", never_show_ext=True)
        assert folder.display_name(ItemIdList([doc]), DisplayFlags.NORMAL) == "Doc"

    def test_parse_through_speculative_segment(self, folder):
        ctx = BindContext()
        ctx.set_object_param(FILE_SYS_BIND_DATA, FileSystemBindData().add_placeholder("B"))
        with pytest.raises(NotFound):
            folder.parse("Sub\\B\\C", ctx)

        # Without the last segment the speculative one stands on its own.
        result = folder.parse("Sub\\B", ctx)
        assert [i.name for i in result.idlist] == ["Sub", "B"]
        assert result.idlist.last().kind == ItemKind.FILE

        result = folder.parse("Sub\\B\\", ctx)
        assert result.idlist.last().kind == ItemKind.FOLDER

    def test_parse_then_bind_reaches_the_same_place(self, folder, small_dir):
        (small_dir / "Sub" / "Deeper").mkdir()
        idl = folder.parse("Sub/Deeper").idlist
        current = folder
        for item in idl:
            current = current.bind(ItemIdList([item]))
        assert os.path.samefile(current.path, small_dir / "Sub" / "Deeper")

    def test_rename_to_same_name_touches_nothing(self, folder, small_dir):
        before = os.stat(small_dir / "Doc.txt")
        idl = folder.parse("Doc.txt").idlist
        again = folder.rename(idl, "Doc.txt", DisplayFlags.INFOLDER)
        assert again == idl
        after = os.stat(small_dir / "Doc.txt")
        assert (before.st_ino, before.st_mtime_ns) == (after.st_ino, after.st_mtime_ns)
