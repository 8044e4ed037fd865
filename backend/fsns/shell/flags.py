from __future__ import annotations

from enum import IntEnum, IntFlag


class ContentFlags(IntFlag):
    """Which children an enumeration returns."""

    NONE = 0
    FOLDERS = 0x20
    NONFOLDERS = 0x40
    INCLUDEHIDDEN = 0x80
    ALL = FOLDERS | NONFOLDERS | INCLUDEHIDDEN


class DisplayFlags(IntFlag):
    NORMAL = 0
    INFOLDER = 0x1
    FOREDITING = 0x1000
    FORADDRESSBAR = 0x4000
    FORPARSING = 0x8000


def is_for_parsing(flags: int) -> bool:
    return bool(flags & DisplayFlags.FORPARSING)


def is_in_folder(flags: int) -> bool:
    return bool(flags & DisplayFlags.INFOLDER)


class Column(IntEnum):
    NAME = 0
    COMMENTS = 1
    TYPE = 2
    SIZE = 3
    MODIFIED = 4
    ATTRIBUTES = 5


COLUMN_COUNT = len(Column)

# High bits of a sort argument are modifiers; the low word picks the column.
SORT_COLUMN_MASK = 0xFFFF
SORT_CANONICAL_ONLY = 0x10000000
SORT_ALL_FIELDS = 0x80000000


def sort_column(sort_key: int) -> int:
    return int(sort_key) & SORT_COLUMN_MASK


CLSID_FS_FOLDER = "{F3364BA0-65B9-11CE-A9BA-00AA004AE837}"
CLSID_ROOT_FOLDER = "{20D04FE0-3AEA-1069-A2D8-08002B30309D}"
CLSID_ZIP_FOLDER = "{E88DCCE0-B7B3-11D1-A9F0-00AA0060FA31}"

SHORTCUT_EXTENSION = ".lnk"
