"""Tests for file-type lookups, per-directory overrides and column details."""

import os
import stat
import time

import pytest

from fsns.errors import AccessDenied, InvalidArgument, NotFound
from fsns.folders.details import attribute_letters, format_kb_size
from fsns.folders.fs_folder import FsFolder
from fsns.fs.desktop_ini import normalize_clsid, read_directory_override
from fsns.fs.records import FileAttributes
from fsns.registry.types import KEY_CLSID, KEY_DEFAULT_ICON, TypeRegistry
from fsns.shell.flags import CLSID_FS_FOLDER, CLSID_ZIP_FOLDER, Column

CUSTOM_CLSID = "{11111111-2222-3333-4444-555555555555}"


class TestTypeRegistry:
    def test_unknown_extension(self):
        registry = TypeRegistry()
        with pytest.raises(NotFound):
            registry.clsid_for_file("notes.xyz")

    def test_no_extension(self):
        with pytest.raises(NotFound):
            TypeRegistry().clsid_for_file("Makefile")

    def test_extension_key_wins_over_prog_id(self):
        registry = TypeRegistry()
        registry.register_extension(".foo", "FooFile")
        registry.set_handler("FooFile", KEY_CLSID, CLSID_FS_FOLDER)
        assert registry.clsid_for_file("a.foo") == CLSID_FS_FOLDER
        registry.set_handler(".foo", KEY_CLSID, CUSTOM_CLSID.lower())
        assert registry.clsid_for_file("a.FOO") == CUSTOM_CLSID

    def test_blocked_handler(self):
        registry = TypeRegistry()
        registry.register_extension(".foo", "FooFile")
        registry.set_handler("FooFile", KEY_CLSID, CUSTOM_CLSID)
        registry.block(CUSTOM_CLSID)
        with pytest.raises(AccessDenied):
            registry.clsid_for_file("a.foo")

    def test_malformed_stored_identity(self):
        registry = TypeRegistry()
        registry.register_extension(".foo", "FooFile")
        registry.set_handler("FooFile", KEY_DEFAULT_ICON, "shell32.dll,3")
        with pytest.raises(InvalidArgument):
            registry.clsid_for_file("a.foo", KEY_DEFAULT_ICON)

    def test_handler_keys_must_be_identities(self):
        with pytest.raises(InvalidArgument):
            TypeRegistry().set_handler("FooFile", KEY_CLSID, "not-a-guid")

    def test_zip_is_seeded(self, router):
        assert router.registry.clsid_for_file("pack.zip") == CLSID_ZIP_FOLDER
        assert router.registry.friendly_type_name(".zip") == "Compressed (zipped) Folder"

    def test_should_hide_extension(self):
        registry = TypeRegistry()
        registry.register_extension(".foo", "FooFile", never_show_ext=True)
        assert registry.should_hide_extension("a.foo")
        assert not registry.should_hide_extension("a.bar")
        registry.set_hide_known_extensions(True)
        assert registry.should_hide_extension("a.bar")


class TestDesktopIni:
    def test_normalize_clsid(self):
        assert normalize_clsid("11111111-2222-3333-4444-555555555555") == CUSTOM_CLSID
        assert normalize_clsid("{garbage}") is None

    def test_reads_shell_class_info(self, tmp_path):
        (tmp_path / "desktop.ini").write_text(
            "[.ShellClassInfo]\nCLSID={11111111-2222-3333-4444-555555555555}\nIconFile=icons.dll\nIconIndex=4\n",
            encoding="utf-8",
        )
        override = read_directory_override(str(tmp_path))
        assert override is not None
        assert override.clsid == CUSTOM_CLSID
        assert override.clsid2 is None
        assert override.icon_file == "icons.dll"
        assert override.icon_index == 4

    def test_utf16_file(self, tmp_path):
        text = "[.ShellClassInfo]\r\nCLSID2={11111111-2222-3333-4444-555555555555}\r\n"
        (tmp_path / "desktop.ini").write_bytes(text.encode("utf-16"))
        override = read_directory_override(str(tmp_path))
        assert override is not None and override.clsid2 == CUSTOM_CLSID

    def test_malformed_file_means_no_override(self, tmp_path):
        (tmp_path / "desktop.ini").write_text("no section header\n", encoding="utf-8")
        assert read_directory_override(str(tmp_path)) is None

    def test_missing_file(self, tmp_path):
        assert read_directory_override(str(tmp_path)) is None


class _CustomFolder(FsFolder):
    class_id = CUSTOM_CLSID


@pytest.fixture
def readonly_override_dir(data_root):
    special = data_root / "special"
    special.mkdir()
    (special / "desktop.ini").write_text(f"[.ShellClassInfo]\nCLSID={CUSTOM_CLSID}\n", encoding="utf-8")
    special.chmod(stat.S_IRUSR | stat.S_IXUSR | stat.S_IRGRP | stat.S_IXGRP)
    yield special
    special.chmod(stat.S_IRWXU)


class TestOverrideBinding:
    def test_registered_override_selects_class(self, router, drive_folder, readonly_override_dir):
        router.register(CUSTOM_CLSID, _CustomFolder)
        child = drive_folder.bind(drive_folder.parse("special").idlist)
        assert isinstance(child, _CustomFolder)
        assert child.path == str(readonly_override_dir)

    def test_unknown_override_keeps_filesystem_folder(self, drive_folder, readonly_override_dir):
        child = drive_folder.bind(drive_folder.parse("special").idlist)
        assert type(child) is FsFolder

    def test_writable_directory_ignores_desktop_ini(self, router, drive_folder, data_root):
        router.register(CUSTOM_CLSID, _CustomFolder)
        (data_root / "docs" / "desktop.ini").write_text(f"[.ShellClassInfo]\nCLSID={CUSTOM_CLSID}\n", encoding="utf-8")
        child = drive_folder.bind(drive_folder.parse("docs").idlist)
        assert type(child) is FsFolder


class TestDetails:
    def test_header_titles(self, drive_folder):
        assert drive_folder.details_of(None, Column.NAME) == "Name"
        assert drive_folder.details_of(None, Column.ATTRIBUTES) == "Attributes"
        assert drive_folder.default_column() == (0, 0)

    def test_file_columns(self, router, drive_folder, data_root):
        stamp = time.mktime((2024, 3, 5, 14, 30, 0, 0, 0, -1))
        os.utime(data_root / "zz.bin", (stamp, stamp))
        big = drive_folder.parse("zz.bin").idlist.first()
        assert drive_folder.details_of(big, Column.NAME) == "zz.bin"
        assert drive_folder.details_of(big, Column.COMMENTS) == ""
        assert drive_folder.details_of(big, Column.TYPE) == "BIN File"
        assert drive_folder.details_of(big, Column.SIZE) == "3 KB"
        assert drive_folder.details_of(big, Column.MODIFIED) == "2024-03-05 14:30"
        assert drive_folder.details_of(big, Column.ATTRIBUTES) == "A"

    def test_folder_and_registered_type(self, router, drive_folder):
        docs = drive_folder.parse("docs").idlist.first()
        lnk = drive_folder.parse("shortcut.lnk").idlist.first()
        assert drive_folder.details_of(docs, Column.TYPE) == "File Folder"
        assert drive_folder.details_of(docs, Column.SIZE) == ""
        assert drive_folder.details_of(lnk, Column.TYPE) == "Shortcut"

    def test_bad_column(self, drive_folder):
        with pytest.raises(InvalidArgument):
            drive_folder.details_of(None, 99)

    def test_extended_details_unsupported(self, drive_folder):
        from fsns.errors import NotImplementedOperation

        with pytest.raises(NotImplementedOperation):
            drive_folder.get_details_ex(drive_folder.parse("Doc.txt").idlist.first(), "System.Size")

    def test_helpers(self):
        assert format_kb_size(0) == "0 KB"
        assert format_kb_size(1) == "1 KB"
        assert format_kb_size(1024 * 1500) == "1,500 KB"
        assert attribute_letters(FileAttributes.READONLY | FileAttributes.HIDDEN | FileAttributes.ARCHIVE) == "RHA"
