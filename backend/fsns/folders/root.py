from __future__ import annotations

import os
from typing import Optional, Sequence

from fsns.errors import InvalidArgument, NotFound
from fsns.folders.base import FolderTargetInfo, NamespaceFolder, ParseResult
from fsns.folders.compare import compare_children
from fsns.folders.details import COLUMNS, check_column
from fsns.fs.enumerator import IdEnumerator
from fsns.fs.paths import next_element
from fsns.ids.codec import DriveItemId, ItemId
from fsns.ids.idlist import ItemIdList
from fsns.logging.ndjson import log_event
from fsns.shell.attributes import ItemAttributes, finish, requested_mask
from fsns.shell.bindctx import BindContext
from fsns.shell.flags import CLSID_FS_FOLDER, CLSID_ROOT_FOLDER, Column, ContentFlags, is_for_parsing, sort_column

DRIVE_ATTRIBUTES = (
    ItemAttributes.HASPROPSHEET
    | ItemAttributes.STORAGEANCESTOR
    | ItemAttributes.FILESYSANCESTOR
    | ItemAttributes.FOLDER
    | ItemAttributes.FILESYSTEM
    | ItemAttributes.DROPTARGET
    | ItemAttributes.HASSUBFOLDER
    | ItemAttributes.CANLINK
)

ROOT_ATTRIBUTES = ItemAttributes.FOLDER | ItemAttributes.HASSUBFOLDER | ItemAttributes.FILESYSANCESTOR

ROOT_DISPLAY_NAME = "Computer"


class RootFolder(NamespaceFolder):
    """
    The namespace root. Its children are drive roots, one per configured mount.
    """

    class_id = CLSID_ROOT_FOLDER

    def initialize(self, root: ItemIdList) -> None:
        self.root = root.clone()

    def drives(self) -> list[DriveItemId]:
        return [
            DriveItemId(root=str(mount.root), name=mount.name)
            for mount in sorted(self.router.mounts.values(), key=lambda m: m.name.casefold())
        ]

    def _drive_named(self, name: str) -> Optional[DriveItemId]:
        for drive in self.drives():
            if drive.name.casefold() == name.casefold():
                return drive
        return None

    def parse(self, text: Optional[str], bind_ctx: Optional[BindContext] = None, attributes: int = 0) -> ParseResult:
        """
        Parse either `<mount name>[/rest]` or an absolute host path inside a mount.
        """
        if text is None:
            raise InvalidArgument("No display name to parse", consumed=0)
        if not text:
            raise InvalidArgument("Empty display name", consumed=0)

        if os.path.isabs(text):
            mount = self.router.mount_for_path(text)
            if mount is None:
                raise NotFound(f"{text} is not inside any mount", path=text)
            drive = DriveItemId(root=str(mount.root), name=mount.name)
            remainder = os.path.relpath(os.path.abspath(text), str(mount.root))
            if remainder == os.curdir:
                remainder = ""
            consumed = len(text) - len(remainder)
        else:
            segment, rest = next_element(text)
            found = self._drive_named(segment)
            if found is None:
                raise NotFound(f"Unknown mount {segment!r}", segment=segment)
            drive = found
            remainder = rest or ""
            consumed = len(text) - len(remainder)

        idlist = ItemIdList([drive])
        if remainder:
            child = self.bind(idlist, bind_ctx)
            sub = child.parse(remainder, bind_ctx, attributes)
            return ParseResult(idlist.append(sub.idlist), consumed + sub.consumed, sub.attributes)
        attrs = self.attributes_of([drive], attributes) if attributes else 0
        return ParseResult(idlist, consumed, attrs)

    def enumerate(self, flags: int) -> IdEnumerator:
        if not int(flags) & ContentFlags.FOLDERS:
            return IdEnumerator()
        drives = self.drives()
        log_event(level="info", event="ns.enumerate", data={"path": None, "flags": int(flags), "entries": len(drives)})
        return IdEnumerator(drives)

    def bind(self, idlist: ItemIdList, bind_ctx: Optional[BindContext] = None) -> NamespaceFolder:
        first = idlist.first()
        if not isinstance(first, DriveItemId):
            raise InvalidArgument("The namespace root only binds drive identifiers")
        target = FolderTargetInfo(parsing_name=first.root)
        return self.router.bind_to_folder(self.root, target, idlist, CLSID_FS_FOLDER, bind_ctx)

    def compare(self, sort_key: int, a: ItemIdList, b: ItemIdList) -> int:
        check_column(sort_column(sort_key))
        if not isinstance(a.first(), DriveItemId) or not isinstance(b.first(), DriveItemId):
            raise InvalidArgument("Can only compare drive identifiers")
        return compare_children(self, sort_key, a, b)

    def _is_read_only(self, drive: DriveItemId) -> bool:
        mount = self.router.mounts.get(drive.name)
        return bool(mount and mount.read_only)

    def attributes_of(self, items: Sequence[ItemId], requested: int = 0) -> int:
        mask = requested_mask(requested)
        if not items:
            return finish(mask & int(ROOT_ATTRIBUTES))
        for item in items:
            if not isinstance(item, DriveItemId):
                log_event(level="error", event="ns.attributes.unknown_id", data={"path": None})
                continue
            caps = DRIVE_ATTRIBUTES
            if self._is_read_only(item):
                caps |= ItemAttributes.READONLY
            else:
                caps |= ItemAttributes.CANRENAME
            mask &= int(caps)
        return finish(mask)

    def display_name(self, idlist: ItemIdList, flags: int = 0) -> str:
        if len(idlist) > 1:
            child = self.bind(ItemIdList([idlist[0]]))
            return child.display_name(idlist.rest(), flags)
        item = idlist.first()
        if item is None:
            return "::" + CLSID_ROOT_FOLDER if is_for_parsing(flags) else ROOT_DISPLAY_NAME
        if not isinstance(item, DriveItemId):
            raise InvalidArgument("Identifier does not belong to the namespace root")
        return item.root if is_for_parsing(flags) else item.name

    def details_of(self, item: Optional[ItemId], column: int) -> str:
        col = check_column(column)
        if item is None:
            return COLUMNS[col].title
        if not isinstance(item, DriveItemId):
            raise InvalidArgument("Not a drive identifier")
        if col == Column.NAME:
            return item.name
        if col == Column.TYPE:
            return "Read-only Mount" if self._is_read_only(item) else "Mount"
        return ""
