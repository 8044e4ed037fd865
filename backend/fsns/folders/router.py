from __future__ import annotations

import os
from typing import Callable, Optional

from fsns.config import Mount, default_mounts
from fsns.errors import InvalidArgument, NotFound
from fsns.events.bus import ChangeNotifier
from fsns.folders.base import FolderTargetInfo, NamespaceFolder
from fsns.fs.desktop_ini import normalize_clsid
from fsns.fs.local import LocalFilesystem
from fsns.ids.codec import DriveItemId, FsItemId, ItemId
from fsns.ids.idlist import ItemIdList
from fsns.logging.ndjson import log_event
from fsns.registry.types import TypeRegistry
from fsns.shell.bindctx import BindContext
from fsns.shell.flags import CLSID_FS_FOLDER, CLSID_ROOT_FOLDER, CLSID_ZIP_FOLDER

FolderFactory = Callable[["FolderRouter"], NamespaceFolder]


class FolderRouter:
    """
    Constructs namespace folders by class identity and owns the shared services
    they consume (mounts, type registry, change notifier, filesystem).

    Folders decide *which* identity governs a child; the router only builds it.
    """

    def __init__(
        self,
        *,
        mounts: Optional[dict[str, Mount]] = None,
        registry: Optional[TypeRegistry] = None,
        notifier: Optional[ChangeNotifier] = None,
        fs: Optional[LocalFilesystem] = None,
    ):
        self.mounts = dict(mounts) if mounts is not None else default_mounts()
        self.registry = registry or TypeRegistry()
        self.notifier = notifier or ChangeNotifier()
        self.fs = fs or LocalFilesystem()
        self._factories: dict[str, FolderFactory] = {}

    # -- construction -------------------------------------------------------

    def register(self, clsid: str, factory: FolderFactory) -> None:
        canonical = normalize_clsid(clsid)
        if canonical is None:
            raise InvalidArgument("Not a class identity", value=clsid)
        self._factories[canonical] = factory

    def is_registered(self, clsid: str) -> bool:
        return (normalize_clsid(clsid) or clsid) in self._factories

    def create(self, clsid: str) -> NamespaceFolder:
        canonical = normalize_clsid(clsid) or clsid
        factory = self._factories.get(canonical)
        if factory is None:
            raise NotFound(f"Class {clsid} is not registered", clsid=clsid)
        return factory(self)

    def bind_to_folder(
        self,
        parent_root: ItemIdList,
        target: FolderTargetInfo,
        child: ItemIdList,
        clsid: str,
        bind_ctx: Optional[BindContext] = None,
    ) -> NamespaceFolder:
        """
        Build the folder for the first identifier of `child` (absolute list
        `parent_root + child[0]`), then walk any remaining identifiers through it.
        """
        first = child.first()
        if first is None:
            raise InvalidArgument("Nothing to bind")
        folder = self.create(clsid)
        folder.initialize_ex(bind_ctx, parent_root + first, target)
        log_event(
            level="info",
            event="ns.bind",
            data={"clsid": clsid, "provider": type(folder).__name__, "target": target.parsing_name},
        )
        rest = child.rest()
        if rest.is_empty():
            return folder
        return folder.bind(rest, bind_ctx)

    # -- absolute lists -----------------------------------------------------

    def root_folder(self) -> NamespaceFolder:
        folder = self.create(CLSID_ROOT_FOLDER)
        folder.initialize(ItemIdList())
        return folder

    def bind_absolute(self, idlist: ItemIdList, bind_ctx: Optional[BindContext] = None) -> NamespaceFolder:
        root = self.root_folder()
        if idlist.is_empty():
            return root
        return root.bind(idlist, bind_ctx)

    def bind_to_parent(self, idlist: ItemIdList) -> tuple[NamespaceFolder, ItemId]:
        last = idlist.last()
        if last is None:
            raise InvalidArgument("The namespace root has no parent")
        return self.bind_absolute(idlist.parent()), last

    def mount_for_path(self, path: str) -> Optional[Mount]:
        """The mount whose root is the longest prefix of `path`."""
        candidate = os.path.abspath(path)
        best: Optional[Mount] = None
        for mount in self.mounts.values():
            root = str(mount.root)
            try:
                common = os.path.commonpath([root, candidate])
            except ValueError:
                continue
            if os.path.normcase(common) != os.path.normcase(root):
                continue
            if best is None or len(root) > len(str(best.root)):
                best = mount
        return best

    def path_from_idlist(self, idlist: ItemIdList) -> Optional[str]:
        """Host path of an absolute list, or None if any part is not on disk."""
        path: Optional[str] = None
        for item in idlist:
            if isinstance(item, DriveItemId):
                if path is not None:
                    return None
                path = item.root
            elif isinstance(item, FsItemId) and path is not None:
                path = os.path.join(path, item.name)
            else:
                return None
        return path

    def parse_path(self, text: str, bind_ctx: Optional[BindContext] = None, attributes: int = 0):
        return self.root_folder().parse(text, bind_ctx, attributes)


def default_router(**kwargs) -> FolderRouter:  # type: ignore[no-untyped-def]
    from fsns.folders.fs_folder import FsFolder
    from fsns.folders.root import RootFolder
    from fsns.folders.zip_folder import ZipFolder
    from fsns.registry.types import seed_default_types

    router = FolderRouter(**kwargs)
    router.register(CLSID_FS_FOLDER, FsFolder)
    router.register(CLSID_ROOT_FOLDER, RootFolder)
    router.register(CLSID_ZIP_FOLDER, ZipFolder)
    seed_default_types(router.registry)
    return router
