from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional, Sequence

from fsns.errors import NotImplementedOperation
from fsns.fs.enumerator import IdEnumerator
from fsns.ids.codec import ItemId
from fsns.ids.idlist import ItemIdList
from fsns.shell.bindctx import BindContext

if TYPE_CHECKING:
    from fsns.folders.router import FolderRouter


@dataclass
class ParseResult:
    idlist: ItemIdList
    consumed: int
    attributes: int = 0


@dataclass
class FolderTargetInfo:
    """Where a folder's items live on disk, if not derivable from its identifier list."""

    parsing_name: Optional[str] = None
    target_folder: Optional[ItemIdList] = None
    known_folder: Optional[str] = None
    attributes: int = -1


class NamespaceFolder:
    """
    The capability set every namespace implementation offers.

    Folders never inspect each other's concrete type: a folder that reaches an
    identifier it does not own binds to the folder that does and delegates.
    Operations a variant does not support raise NotImplementedOperation.
    """

    class_id: str = ""

    def __init__(self, router: "FolderRouter"):
        self.router = router
        self.root = ItemIdList()

    def initialize(self, root: ItemIdList) -> None:
        raise NotImplementedOperation(f"{type(self).__name__}.initialize")

    def initialize_ex(
        self,
        bind_ctx: Optional[BindContext],
        root: ItemIdList,
        target: Optional[FolderTargetInfo] = None,
    ) -> None:
        _ = (bind_ctx, target)
        self.initialize(root)

    def get_cur_folder(self) -> ItemIdList:
        return self.root.clone()

    def parse(self, text: Optional[str], bind_ctx: Optional[BindContext] = None, attributes: int = 0) -> ParseResult:
        raise NotImplementedOperation(f"{type(self).__name__}.parse")

    def enumerate(self, flags: int) -> IdEnumerator:
        raise NotImplementedOperation(f"{type(self).__name__}.enumerate")

    def bind(self, idlist: ItemIdList, bind_ctx: Optional[BindContext] = None) -> "NamespaceFolder":
        raise NotImplementedOperation(f"{type(self).__name__}.bind")

    def bind_to_storage(self, idlist: ItemIdList, bind_ctx: Optional[BindContext] = None) -> object:
        _ = (idlist, bind_ctx)
        raise NotImplementedOperation("Storage binding is not supported")

    def compare(self, sort_key: int, a: ItemIdList, b: ItemIdList) -> int:
        raise NotImplementedOperation(f"{type(self).__name__}.compare")

    def attributes_of(self, items: Sequence[ItemId], requested: int = 0) -> int:
        raise NotImplementedOperation(f"{type(self).__name__}.attributes_of")

    def display_name(self, idlist: ItemIdList, flags: int = 0) -> str:
        raise NotImplementedOperation(f"{type(self).__name__}.display_name")

    def rename(self, idlist: ItemIdList, new_name: str, flags: int = 0) -> ItemIdList:
        _ = (idlist, new_name, flags)
        raise NotImplementedOperation(f"{type(self).__name__} items cannot be renamed")

    def details_of(self, item: Optional[ItemId], column: int) -> str:
        raise NotImplementedOperation(f"{type(self).__name__}.details_of")

    def get_details_ex(self, item: ItemId, property_key: str) -> object:
        _ = (item, property_key)
        raise NotImplementedOperation("Extended details are not supported")

    def __repr__(self) -> str:
        return f"{type(self).__name__}(depth={len(self.root)})"
