"""
The filesystem folder: one directory of the host filesystem seen as a
namespace folder.

Every folder owns its absolute identifier list (`root`) and the host path that
list resolves to (`path`). It only interprets identifiers it minted itself
(folder/file identifiers); when an operation reaches deeper than one level it
binds to the child folder and lets that folder, which may be a different
implementation, answer.
"""

from __future__ import annotations

import os
from typing import Optional, Sequence

from fsns.config import known_folder
from fsns.errors import AccessDenied, InvalidArgument, NotFound, OperationFailed, OutOfMemory
from fsns.events.bus import ChangeKind
from fsns.folders.base import FolderTargetInfo, NamespaceFolder, ParseResult
from fsns.folders.compare import compare_children, compare_details, sign
from fsns.folders.details import COLUMNS, ColumnHeader, check_column, fs_details_of
from fsns.fs.desktop_ini import clsid_for_directory
from fsns.fs.enumerator import DirectoryEnumerator
from fsns.fs.paths import add_separator, next_element, path_combine
from fsns.fs.records import FileAttributes, find_extension, remove_extension
from fsns.ids.codec import FsItemId, ItemId, from_path
from fsns.ids.idlist import ItemIdList
from fsns.logging.ndjson import log_event
from fsns.shell.attributes import finish, fs_item_attributes, requested_mask
from fsns.shell.bindctx import BindContext, bind_data_for
from fsns.shell.flags import (
    CLSID_FS_FOLDER,
    Column,
    DisplayFlags,
    is_for_parsing,
    is_in_folder,
    sort_column,
)


def _cmp(a, b) -> int:  # type: ignore[no-untyped-def]
    return (a > b) - (a < b)


class FsFolder(NamespaceFolder):
    class_id = CLSID_FS_FOLDER

    def __init__(self, router):  # type: ignore[no-untyped-def]
        super().__init__(router)
        self.path: Optional[str] = None

    @property
    def fs(self):  # type: ignore[no-untyped-def]
        return self.router.fs

    @property
    def registry(self):  # type: ignore[no-untyped-def]
        return self.router.registry

    # -- lifecycle ----------------------------------------------------------

    def initialize(self, root: ItemIdList) -> None:
        # Compute the new state completely before replacing the old one.
        new_root = root.clone()
        new_path = self.router.path_from_idlist(new_root)
        self.root, self.path = new_root, new_path

    def initialize_ex(
        self,
        bind_ctx: Optional[BindContext],
        root: ItemIdList,
        target: Optional[FolderTargetInfo] = None,
    ) -> None:
        """
        Initialize with an explicit target. The target's known folder wins over
        its parsing name, which wins over its target identifier list; without a
        target the path is derived from `root`. Raises OperationFailed, leaving
        the previous state in place, when no path can be resolved.
        """
        _ = bind_ctx
        new_root = root.clone()
        new_path: Optional[str] = None
        if target is None:
            new_path = self.router.path_from_idlist(new_root)
        elif target.known_folder:
            folder = known_folder(target.known_folder)
            new_path = str(folder) if folder is not None else None
        elif target.parsing_name:
            new_path = target.parsing_name
        elif target.target_folder is not None:
            new_path = self.router.path_from_idlist(target.target_folder)
        if not new_path:
            raise OperationFailed("Cannot resolve the folder's target path")
        self.root, self.path = new_root, new_path

    # -- parse --------------------------------------------------------------

    def parse(self, text: Optional[str], bind_ctx: Optional[BindContext] = None, attributes: int = 0) -> ParseResult:
        """
        Turn a relative path into identifiers, one segment per level.

        Pre-fetched metadata in `bind_ctx` for a segment is used instead of the
        disk, which lets callers name paths that do not exist yet; such a
        segment becomes a folder when more segments follow it. Segments after
        the first are parsed by the bound child folder.
        """
        if text is None:
            raise InvalidArgument("No display name to parse", consumed=0)
        if not text:
            raise InvalidArgument("Empty display name", consumed=0)

        segment, rest = next_element(text)
        if not segment or segment in (".", ".."):
            raise InvalidArgument(f"Invalid path segment {segment!r}", consumed=0)
        consumed = len(segment) + (0 if rest is None else 1)

        record = bind_data_for(bind_ctx, segment)
        if record is not None:
            item = from_path(segment, bind_data=record)
            if rest is not None:
                item = item.as_folder()
        else:
            if not self.path:
                raise NotFound(f"Cannot resolve {segment!r}: folder has no path", segment=segment)
            item = from_path(path_combine(self.path, segment), fs=self.fs)

        idlist = ItemIdList([item])
        if rest:
            child = self.bind(idlist, bind_ctx)
            sub = child.parse(rest, bind_ctx, attributes)
            return ParseResult(idlist.append(sub.idlist), consumed + sub.consumed, sub.attributes)

        attrs = self.attributes_of([item], attributes) if attributes else 0
        log_event(level="info", event="ns.parse", data={"folder": self.path, "segment": segment})
        return ParseResult(idlist, consumed, attrs)

    # -- enumerate ----------------------------------------------------------

    def enumerate(self, flags: int) -> DirectoryEnumerator:
        try:
            enum = DirectoryEnumerator(self.fs)
        except MemoryError as e:
            raise OutOfMemory("Cannot allocate enumerator") from e
        enum.initialize(self.path, flags)
        log_event(
            level="info",
            event="ns.enumerate",
            data={"path": self.path, "flags": int(flags), "entries": len(enum)},
        )
        return enum

    # -- bind ---------------------------------------------------------------

    def _clsid_for_child(self, item: FsItemId, target_path: str) -> str:
        if item.is_folder:
            clsid = CLSID_FS_FOLDER
            if item.attributes & (FileAttributes.SYSTEM | FileAttributes.READONLY):
                override = clsid_for_directory(target_path)
                if override and self.router.is_registered(override):
                    clsid = override
                elif override:
                    log_event(
                        level="warn",
                        event="ns.override.unknown_class",
                        data={"path": target_path, "clsid": override},
                    )
            return clsid
        # Files are containers only when their type names a handler.
        return self.registry.clsid_for_file(item.name)

    def bind(self, idlist: ItemIdList, bind_ctx: Optional[BindContext] = None) -> NamespaceFolder:
        first = idlist.first()
        if self.root.is_empty() or first is None:
            raise InvalidArgument("Bind needs an initialized folder and an identifier")
        if not isinstance(first, FsItemId):
            raise InvalidArgument("Identifier does not belong to this folder")
        target_path = path_combine(self.path, first.name)
        clsid = self._clsid_for_child(first, target_path)
        target = FolderTargetInfo(parsing_name=target_path)
        return self.router.bind_to_folder(self.root, target, idlist, clsid, bind_ctx)

    # -- compare ------------------------------------------------------------

    def compare(self, sort_key: int, a: ItemIdList, b: ItemIdList) -> int:
        """
        Order two relative lists under a column. Folders precede files for every
        column; ties fall through to identity and then to deeper levels.
        """
        column = sort_column(sort_key)
        item_a, item_b = a.first(), b.first()
        if not isinstance(item_a, FsItemId) or not isinstance(item_b, FsItemId):
            raise InvalidArgument("Can only compare filesystem items")
        check_column(column)

        if item_a.is_folder != item_b.is_folder:
            return -1 if item_a.is_folder else 1

        if column == Column.NAME:
            result = _cmp(item_a.name.casefold(), item_b.name.casefold())
        elif column == Column.COMMENTS:
            result = 0
        elif column == Column.TYPE:
            result = _cmp(item_a.extension.casefold(), item_b.extension.casefold())
        elif column == Column.SIZE:
            result = item_a.size - item_b.size
        elif column == Column.MODIFIED:
            result = item_a.date - item_b.date
            if result == 0:
                result = item_a.time - item_b.time
        else:
            return compare_details(self, sort_key, a, b)

        if result == 0:
            return compare_children(self, sort_key, a, b)
        return sign(result)

    # -- attributes ---------------------------------------------------------

    def attributes_of(self, items: Sequence[ItemId], requested: int = 0) -> int:
        mask = requested_mask(requested)
        if not items:
            # The folder itself: its parent owns the identifier that names it.
            if self.root.is_empty():
                log_event(level="error", event="ns.attributes.unknown_id", data={"path": self.path})
                return finish(mask)
            parent, last = self.router.bind_to_parent(self.root)
            return finish(parent.attributes_of([last], mask))

        for item in items:
            if isinstance(item, FsItemId):
                mask &= fs_item_attributes(self, item, mask)
            else:
                log_event(
                    level="error",
                    event="ns.attributes.unknown_id",
                    data={"path": self.path, "tag": getattr(item, "tag", None)},
                )
        return finish(mask)

    # -- display names ------------------------------------------------------

    def _extension_hidden(self, name: str, flags: int) -> bool:
        if is_for_parsing(flags):
            return False
        if not (is_in_folder(flags) or int(flags) == DisplayFlags.NORMAL):
            return False
        return not name.startswith(".") and self.registry.should_hide_extension(name)

    def display_name(self, idlist: ItemIdList, flags: int = 0) -> str:
        if len(idlist) > 1:
            child = self.bind(ItemIdList([idlist[0]]))
            return child.display_name(idlist.rest(), flags)

        item = idlist.first()
        for_parsing = is_for_parsing(flags) and not is_in_folder(flags)
        if item is None:
            if for_parsing and self.path:
                return self.path
            raise InvalidArgument("Only the parsing name of the folder itself is available")
        if not isinstance(item, FsItemId):
            raise InvalidArgument("Identifier does not belong to this folder")

        prefix = add_separator(self.path) if for_parsing and self.path else ""
        name = item.name
        if not item.is_folder and self._extension_hidden(name, flags):
            name = remove_extension(name)
        return prefix + name

    # -- rename -------------------------------------------------------------

    def rename(self, idlist: ItemIdList, new_name: str, flags: int = 0) -> ItemIdList:
        """
        Rename the item to `new_name` and return its new identifier.

        `new_name` is relative to this folder for normal/in-folder names and a
        full path otherwise. A hidden extension is carried over when the new
        name has none. Renaming onto the same path touches nothing.
        """
        item = idlist.first()
        if not isinstance(item, FsItemId) or not idlist.is_simple():
            raise InvalidArgument("Rename needs one filesystem identifier")
        if not new_name:
            raise InvalidArgument("New name is empty")

        src = path_combine(self.path, item.name)
        if int(flags) == DisplayFlags.NORMAL or is_in_folder(flags):
            dst = path_combine(self.path, new_name)
        else:
            dst = new_name

        if not item.is_folder and self._extension_hidden(item.name, flags):
            ext = find_extension(item.name)
            if ext and not find_extension(os.path.basename(dst)):
                dst += ext

        if src == dst:
            return ItemIdList([from_path(dst, fs=self.fs)])

        for path in (src, dst):
            mount = self.router.mount_for_path(path)
            if mount is not None and mount.read_only:
                raise AccessDenied(f"Mount {mount.name} is read-only", path=path)

        try:
            self.fs.rename(src, dst)
        except OSError as e:
            raise OperationFailed.from_os_error(f"Cannot rename {src} to {dst}", e, src=src, dst=dst) from e

        new_item = from_path(dst, fs=self.fs)
        kind = ChangeKind.RENAME_FOLDER if item.is_folder else ChangeKind.RENAME_ITEM
        self.router.notifier.notify(kind, src, dst)
        log_event(level="info", event="ns.rename", data={"from": src, "to": dst, "kind": kind.value})
        return ItemIdList([new_item])

    # -- columns ------------------------------------------------------------

    def details_of(self, item: Optional[ItemId], column: int) -> str:
        return fs_details_of(self, item, column)

    def default_column(self) -> tuple[int, int]:
        return int(Column.NAME), int(Column.NAME)

    def column_header(self, column: int) -> ColumnHeader:
        return COLUMNS[check_column(column)]
