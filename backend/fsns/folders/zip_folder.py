"""
Browsing the inside of a zip archive as a read-only namespace folder.

Archive members are identified by their own tag, so filesystem folders treat
them as foreign and bind here to interpret them. A folder inside the archive
is bound by its parsing name (`<archive path>/<inner path>`); the archive is
the longest prefix of that name that is a regular file.
"""

from __future__ import annotations

import os
import struct
import zipfile
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Sequence

from fsns.errors import InvalidArgument, NotFound, OperationFailed
from fsns.folders.base import FolderTargetInfo, NamespaceFolder, ParseResult
from fsns.folders.compare import compare_children, compare_details, sign
from fsns.folders.details import COLUMNS, check_column, format_kb_size
from fsns.fs.enumerator import IdEnumerator
from fsns.fs.paths import next_element
from fsns.fs.records import dos_to_datetime, find_extension
from fsns.ids.codec import ForeignItemId, ItemId, foreign_id
from fsns.ids.idlist import ItemIdList
from fsns.logging.ndjson import log_event
from fsns.shell.attributes import ItemAttributes, finish, requested_mask
from fsns.shell.bindctx import BindContext
from fsns.shell.flags import CLSID_ZIP_FOLDER, Column, ContentFlags, is_for_parsing, is_in_folder, sort_column

ZIP_ITEM_TAG = 0x7A
_ENTRY_FIELDS = struct.Struct("<BQHH")
_IS_DIR = 0x01

ENTRY_ATTRIBUTES = ItemAttributes.CANCOPY | ItemAttributes.CANLINK | ItemAttributes.READONLY


@dataclass(frozen=True)
class ZipEntry:
    name: str
    is_dir: bool
    size: int = 0
    date: int = 0
    time: int = 0

    @property
    def extension(self) -> str:
        return "" if self.is_dir else find_extension(self.name)

    def modified(self) -> Optional[datetime]:
        return dos_to_datetime(self.date, self.time) if self.date else None

    def to_id(self) -> ForeignItemId:
        body = _ENTRY_FIELDS.pack(_IS_DIR if self.is_dir else 0, self.size, self.date, self.time)
        return foreign_id(ZIP_ITEM_TAG, body + self.name.encode("utf-8") + b"\x00")


def entry_from_id(item: Optional[ItemId]) -> ZipEntry:
    if not isinstance(item, ForeignItemId) or item.tag != ZIP_ITEM_TAG:
        raise InvalidArgument("Identifier does not belong to a zip folder")
    payload = item.payload
    if len(payload) < _ENTRY_FIELDS.size + 1:
        raise InvalidArgument("Truncated zip entry identifier")
    flags, size, date, time = _ENTRY_FIELDS.unpack_from(payload)
    raw_name = payload[_ENTRY_FIELDS.size :]
    end = raw_name.find(b"\x00")
    if end < 0:
        raise InvalidArgument("Unterminated name in zip entry identifier")
    try:
        name = raw_name[:end].decode("utf-8")
    except UnicodeDecodeError as e:
        raise InvalidArgument(f"Zip entry name is not UTF-8: {e}") from e
    return ZipEntry(name=name, is_dir=bool(flags & _IS_DIR), size=size, date=date, time=time)


def _dos_stamp(date_time: tuple) -> tuple[int, int]:
    year, month, day, hour, minute, second = date_time
    date = ((max(year, 1980) - 1980) << 9) | (month << 5) | day
    time = (hour << 11) | (minute << 5) | (second // 2)
    return date, time


def _split_archive_path(path: str) -> tuple[str, str]:
    """Split `<archive>/<inner>` at the longest prefix that is a file on disk."""
    candidate = os.path.normpath(path)
    inner: list[str] = []
    while candidate and not os.path.isfile(candidate):
        head, tail = os.path.split(candidate)
        if not tail or head == candidate:
            raise NotFound(f"No archive in {path}", path=path)
        inner.insert(0, tail)
        candidate = head
    return candidate, "/".join(inner)


class ZipFolder(NamespaceFolder):
    class_id = CLSID_ZIP_FOLDER

    def __init__(self, router):  # type: ignore[no-untyped-def]
        super().__init__(router)
        self.archive: Optional[str] = None
        self.inner = ""

    def initialize(self, root: ItemIdList) -> None:
        path = self.router.path_from_idlist(root)
        if not path:
            raise OperationFailed("Cannot resolve the archive path")
        self.initialize_ex(None, root, FolderTargetInfo(parsing_name=path))

    def initialize_ex(
        self,
        bind_ctx: Optional[BindContext],
        root: ItemIdList,
        target: Optional[FolderTargetInfo] = None,
    ) -> None:
        _ = bind_ctx
        if target is None or not target.parsing_name:
            raise OperationFailed("A zip folder needs the archive's parsing name")
        archive, inner = _split_archive_path(target.parsing_name)
        self.root, self.archive, self.inner = root.clone(), archive, inner

    @property
    def parsing_path(self) -> str:
        if not self.inner:
            return self.archive or ""
        return os.path.join(self.archive or "", *self.inner.split("/"))

    def _children(self) -> list[ZipEntry]:
        if not self.archive:
            return []
        prefix = self.inner + "/" if self.inner else ""
        found: dict[str, ZipEntry] = {}
        try:
            with zipfile.ZipFile(self.archive) as zf:
                for info in zf.infolist():
                    name = info.filename
                    if not name.startswith(prefix) or name == prefix:
                        continue
                    head, sep, _ = name[len(prefix) :].partition("/")
                    if not head:
                        continue
                    if sep:
                        # Directories may exist only implicitly through their members.
                        found.setdefault(head, ZipEntry(name=head, is_dir=True))
                        continue
                    date, time = _dos_stamp(info.date_time)
                    found[head] = ZipEntry(name=head, is_dir=False, size=info.file_size, date=date, time=time)
        except (OSError, zipfile.BadZipFile) as e:
            raise OperationFailed(f"Cannot read archive {self.archive}: {e}", path=self.archive) from e
        return list(found.values())

    def _child_named(self, name: str) -> Optional[ZipEntry]:
        for entry in self._children():
            if entry.name == name:
                return entry
        return None

    def parse(self, text: Optional[str], bind_ctx: Optional[BindContext] = None, attributes: int = 0) -> ParseResult:
        if not text:
            raise InvalidArgument("Empty display name", consumed=0)
        segment, rest = next_element(text)
        if not segment or segment in (".", ".."):
            raise InvalidArgument(f"Invalid path segment {segment!r}", consumed=0)
        entry = self._child_named(segment)
        if entry is None:
            raise NotFound(f"{segment!r} is not in {self.parsing_path}", segment=segment)
        consumed = len(segment) + (0 if rest is None else 1)
        idlist = ItemIdList([entry.to_id()])
        if rest:
            sub = self.bind(idlist, bind_ctx).parse(rest, bind_ctx, attributes)
            return ParseResult(idlist.append(sub.idlist), consumed + sub.consumed, sub.attributes)
        attrs = self.attributes_of([idlist[0]], attributes) if attributes else 0
        return ParseResult(idlist, consumed, attrs)

    def enumerate(self, flags: int) -> IdEnumerator:
        mask = int(flags)
        items = []
        for entry in self._children():
            if entry.name.startswith(".") and not mask & ContentFlags.INCLUDEHIDDEN:
                continue
            wanted = ContentFlags.FOLDERS if entry.is_dir else ContentFlags.NONFOLDERS
            if mask & wanted:
                items.append(entry.to_id())
        log_event(
            level="info",
            event="ns.enumerate",
            data={"path": self.parsing_path, "flags": mask, "entries": len(items)},
        )
        return IdEnumerator(items)

    def bind(self, idlist: ItemIdList, bind_ctx: Optional[BindContext] = None) -> NamespaceFolder:
        entry = entry_from_id(idlist.first())
        if not entry.is_dir:
            raise InvalidArgument(f"{entry.name} is not a folder inside the archive")
        target = FolderTargetInfo(parsing_name=os.path.join(self.parsing_path, entry.name))
        return self.router.bind_to_folder(self.root, target, idlist, CLSID_ZIP_FOLDER, bind_ctx)

    def compare(self, sort_key: int, a: ItemIdList, b: ItemIdList) -> int:
        column = check_column(sort_column(sort_key))
        entry_a, entry_b = entry_from_id(a.first()), entry_from_id(b.first())
        if entry_a.is_dir != entry_b.is_dir:
            return -1 if entry_a.is_dir else 1

        if column == Column.NAME:
            name_a, name_b = entry_a.name.casefold(), entry_b.name.casefold()
            result = (name_a > name_b) - (name_a < name_b)
        elif column == Column.SIZE:
            result = entry_a.size - entry_b.size
        elif column == Column.MODIFIED:
            result = (entry_a.date - entry_b.date) or (entry_a.time - entry_b.time)
        else:
            return compare_details(self, sort_key, a, b)

        if result == 0:
            return compare_children(self, sort_key, a, b)
        return sign(result)

    def attributes_of(self, items: Sequence[ItemId], requested: int = 0) -> int:
        mask = requested_mask(requested)
        if not items:
            parent, last = self.router.bind_to_parent(self.root)
            return finish(parent.attributes_of([last], mask))
        for item in items:
            entry = entry_from_id(item)
            caps = ENTRY_ATTRIBUTES
            if entry.is_dir:
                caps |= ItemAttributes.FOLDER
            else:
                caps |= ItemAttributes.STREAM
            mask &= int(caps)
        return finish(mask)

    def display_name(self, idlist: ItemIdList, flags: int = 0) -> str:
        if len(idlist) > 1:
            return self.bind(ItemIdList([idlist[0]])).display_name(idlist.rest(), flags)
        item = idlist.first()
        for_parsing = is_for_parsing(flags) and not is_in_folder(flags)
        if item is None:
            if for_parsing:
                return self.parsing_path
            raise InvalidArgument("Only the parsing name of the folder itself is available")
        entry = entry_from_id(item)
        if for_parsing:
            return os.path.join(self.parsing_path, entry.name)
        return entry.name

    def details_of(self, item: Optional[ItemId], column: int) -> str:
        col = check_column(column)
        if item is None:
            return COLUMNS[col].title
        entry = entry_from_id(item)
        if col == Column.NAME:
            return entry.name
        if col == Column.TYPE:
            if entry.is_dir:
                return "File Folder"
            return f"{entry.extension[1:].upper()} File" if entry.extension else "File"
        if col == Column.SIZE:
            return "" if entry.is_dir else format_kb_size(entry.size)
        if col == Column.MODIFIED:
            stamp = entry.modified()
            return stamp.strftime("%Y-%m-%d %H:%M") if stamp else ""
        return ""
