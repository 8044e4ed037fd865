"""Capability bits for namespace items, derived from raw attributes and identifier shape."""

from __future__ import annotations

from enum import IntFlag
from typing import TYPE_CHECKING

from fsns.errors import NamespaceError
from fsns.fs.records import FileAttributes
from fsns.ids.codec import FsItemId, ItemId
from fsns.ids.idlist import ItemIdList
from fsns.shell.flags import SHORTCUT_EXTENSION, ContentFlags

if TYPE_CHECKING:
    from fsns.folders.base import NamespaceFolder


class ItemAttributes(IntFlag):
    NONE = 0
    CANCOPY = 0x1
    CANMOVE = 0x2
    CANLINK = 0x4
    STORAGE = 0x8
    CANRENAME = 0x10
    CANDELETE = 0x20
    HASPROPSHEET = 0x40
    DROPTARGET = 0x100
    LINK = 0x10000
    SHARE = 0x20000
    READONLY = 0x40000
    HIDDEN = 0x80000
    STREAM = 0x400000
    STORAGEANCESTOR = 0x800000
    VALIDATE = 0x1000000
    REMOVABLE = 0x2000000
    FILESYSANCESTOR = 0x10000000
    FOLDER = 0x20000000
    FILESYSTEM = 0x40000000
    HASSUBFOLDER = 0x80000000
    ALL = 0xFFFFFFFF


FS_COMMON = (
    ItemAttributes.CANCOPY
    | ItemAttributes.CANMOVE
    | ItemAttributes.CANLINK
    | ItemAttributes.CANRENAME
    | ItemAttributes.CANDELETE
    | ItemAttributes.HASPROPSHEET
    | ItemAttributes.DROPTARGET
    | ItemAttributes.FILESYSTEM
)

FS_FOLDER = (
    ItemAttributes.FOLDER
    | ItemAttributes.FILESYSANCESTOR
    | ItemAttributes.STORAGEANCESTOR
    | ItemAttributes.STORAGE
)


def requested_mask(requested: int) -> int:
    """Zero means "everything"."""
    requested = int(requested) & int(ItemAttributes.ALL)
    return int(ItemAttributes.ALL) if requested == 0 else requested


def has_folder_child(folder: "NamespaceFolder", item: ItemId) -> bool:
    """Bind to `item` and look for one folder child. Any failure counts as "no"."""
    try:
        child = folder.bind(ItemIdList([item]))
        enum = child.enumerate(ContentFlags.FOLDERS)
        return enum.skip(1)
    except (NamespaceError, OSError):
        return False


def fs_item_attributes(folder: "NamespaceFolder", item: FsItemId, requested: int) -> int:
    """
    Capabilities of one filesystem item, limited to `requested`.

    The link and has-subfolder bits are only computed when asked for;
    has-subfolder costs a bind and a scan.
    """
    requested = requested_mask(requested)
    raw = FileAttributes(item.attributes)
    caps = FS_COMMON
    if item.is_folder:
        caps |= FS_FOLDER
    else:
        caps |= ItemAttributes.STREAM
    if raw & FileAttributes.HIDDEN:
        caps |= ItemAttributes.HIDDEN
    if raw & FileAttributes.READONLY:
        caps |= ItemAttributes.READONLY

    if requested & ItemAttributes.LINK and item.extension.lower() == SHORTCUT_EXTENSION:
        caps |= ItemAttributes.LINK

    if item.is_folder and requested & ItemAttributes.HASSUBFOLDER and has_folder_child(folder, item):
        caps |= ItemAttributes.HASSUBFOLDER

    return int(caps) & requested


def finish(mask: int) -> int:
    """Callers may never force synchronous validation through an attribute query."""
    return int(mask) & ~int(ItemAttributes.VALIDATE) & int(ItemAttributes.ALL)


def describe(mask: int) -> list[str]:
    return [flag.name for flag in ItemAttributes if flag.name not in ("NONE", "ALL") and mask & flag]
