"""Per-column detail text for filesystem items."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from fsns.errors import InvalidArgument
from fsns.fs.records import FileAttributes
from fsns.ids.codec import FsItemId, ItemId
from fsns.ids.idlist import ItemIdList
from fsns.shell.flags import COLUMN_COUNT, Column, DisplayFlags

if TYPE_CHECKING:
    from fsns.folders.base import NamespaceFolder


@dataclass(frozen=True)
class ColumnHeader:
    title: str
    align: str
    width: int
    on_by_default: bool
    is_date: bool = False


COLUMNS: tuple[ColumnHeader, ...] = (
    ColumnHeader("Name", "left", 15, True),
    ColumnHeader("Comments", "left", 0, False),
    ColumnHeader("Type", "left", 10, True),
    ColumnHeader("Size", "right", 10, True),
    ColumnHeader("Modified", "left", 12, True, is_date=True),
    ColumnHeader("Attributes", "left", 10, True),
)

_ATTRIBUTE_LETTERS = (
    (FileAttributes.READONLY, "R"),
    (FileAttributes.HIDDEN, "H"),
    (FileAttributes.SYSTEM, "S"),
    (FileAttributes.ARCHIVE, "A"),
    (FileAttributes.COMPRESSED, "C"),
)


def check_column(column: int) -> Column:
    if not 0 <= int(column) < COLUMN_COUNT:
        raise InvalidArgument(f"Unknown column {column}", column=int(column))
    return Column(int(column))


def column_header(column: int) -> ColumnHeader:
    return COLUMNS[check_column(column)]


def attribute_letters(attributes: int) -> str:
    return "".join(letter for bit, letter in _ATTRIBUTE_LETTERS if attributes & bit)


def format_kb_size(size: int) -> str:
    # Explorer style: whole kilobytes, rounded up, never "0 KB" for a non-empty file.
    kb = (int(size) + 1023) // 1024
    return f"{kb:,} KB"


def type_description(folder: "NamespaceFolder", item: FsItemId) -> str:
    if item.is_folder:
        return "File Folder"
    ext = item.extension
    if not ext:
        return "File"
    registry = getattr(folder.router, "registry", None)
    friendly = registry.friendly_type_name(ext) if registry is not None else None
    return friendly or f"{ext[1:].upper()} File"


def fs_details_of(folder: "NamespaceFolder", item: Optional[ItemId], column: int) -> str:
    col = check_column(column)
    if item is None:
        return COLUMNS[col].title
    if not isinstance(item, FsItemId):
        raise InvalidArgument("Not a filesystem item")
    if col == Column.NAME:
        return folder.display_name(ItemIdList([item]), DisplayFlags.NORMAL | DisplayFlags.INFOLDER)
    if col == Column.COMMENTS:
        return ""
    if col == Column.TYPE:
        return type_description(folder, item)
    if col == Column.SIZE:
        return "" if item.is_folder else format_kb_size(item.size)
    if col == Column.MODIFIED:
        return item.modified().strftime("%Y-%m-%d %H:%M")
    return attribute_letters(item.attributes)
