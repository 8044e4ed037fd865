from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from fsns.api.deps import get_folder_router, http_error
from fsns.errors import InvalidArgument, NamespaceError
from fsns.folders.router import FolderRouter
from fsns.ids.idlist import ItemIdList
from fsns.shell.attributes import ItemAttributes, describe
from fsns.shell.flags import Column, ContentFlags, DisplayFlags


router = APIRouter()

# Cheap bits only: the has-subfolder probe would bind and scan every child.
LIST_ATTRIBUTES = (
    ItemAttributes.FOLDER
    | ItemAttributes.STREAM
    | ItemAttributes.HIDDEN
    | ItemAttributes.READONLY
    | ItemAttributes.LINK
    | ItemAttributes.CANRENAME
    | ItemAttributes.FILESYSTEM
)


class ParseBody(BaseModel):
    path: str
    attributes: int = 0


class DisplayNameBody(BaseModel):
    id: str = ""
    flags: int = 0


class AttributesBody(BaseModel):
    ids: list[str] = Field(default_factory=list)
    mask: int = 0


class CompareBody(BaseModel):
    a: str
    b: str
    column: int = 0


class RenameBody(BaseModel):
    id: str
    newName: str
    flags: int = int(DisplayFlags.INFOLDER)


def _entry(folder, parent: ItemIdList, item) -> dict[str, Any]:  # type: ignore[no-untyped-def]
    relative = ItemIdList([item])
    attrs = folder.attributes_of([item], int(LIST_ATTRIBUTES))
    return {
        "id": (parent + item).to_token(),
        "name": folder.display_name(relative, DisplayFlags.NORMAL | DisplayFlags.INFOLDER),
        "kind": "folder" if attrs & ItemAttributes.FOLDER else "file",
        "type": folder.details_of(item, Column.TYPE),
        "size": folder.details_of(item, Column.SIZE),
        "modified": folder.details_of(item, Column.MODIFIED),
        "attributes": attrs,
    }


@router.post("/api/ns/parse")
def api_ns_parse(body: ParseBody, ns: FolderRouter = Depends(get_folder_router)) -> dict:
    try:
        result = ns.parse_path(body.path, None, body.attributes)
    except NamespaceError as e:
        raise http_error(e) from e
    return {"id": result.idlist.to_token(), "consumed": result.consumed, "attributes": result.attributes}


@router.get("/api/ns/list")
def api_ns_list(
    id: str = Query(""),
    mask: int = Query(int(ContentFlags.FOLDERS | ContentFlags.NONFOLDERS)),
    ns: FolderRouter = Depends(get_folder_router),
) -> dict:
    try:
        parent = ItemIdList.from_token(id)
        folder = ns.bind_absolute(parent)
        entries = [_entry(folder, parent, item) for item in folder.enumerate(mask)]
    except NamespaceError as e:
        raise http_error(e) from e
    return {"id": parent.to_token(), "entries": entries, "count": len(entries)}


@router.post("/api/ns/display-name")
def api_ns_display_name(body: DisplayNameBody, ns: FolderRouter = Depends(get_folder_router)) -> dict:
    try:
        idlist = ItemIdList.from_token(body.id)
        if idlist.is_empty():
            name = ns.root_folder().display_name(idlist, body.flags)
        else:
            folder, last = ns.bind_to_parent(idlist)
            name = folder.display_name(ItemIdList([last]), body.flags)
    except NamespaceError as e:
        raise http_error(e) from e
    return {"name": name}


@router.post("/api/ns/attributes")
def api_ns_attributes(body: AttributesBody, ns: FolderRouter = Depends(get_folder_router)) -> dict:
    try:
        lists = [ItemIdList.from_token(t) for t in body.ids]
        if not lists or any(idl.is_empty() for idl in lists):
            raise InvalidArgument("Attributes need at least one non-root identifier")
        parent = lists[0].parent()
        if any(idl.parent() != parent for idl in lists[1:]):
            raise InvalidArgument("Identifiers must share one parent folder")
        folder = ns.bind_absolute(parent)
        mask = folder.attributes_of([idl.last() for idl in lists], body.mask)
    except NamespaceError as e:
        raise http_error(e) from e
    return {"attributes": mask, "names": describe(mask)}


@router.post("/api/ns/compare")
def api_ns_compare(body: CompareBody, ns: FolderRouter = Depends(get_folder_router)) -> dict:
    try:
        a, b = ItemIdList.from_token(body.a), ItemIdList.from_token(body.b)
        result = ns.root_folder().compare(body.column, a, b)
    except NamespaceError as e:
        raise http_error(e) from e
    return {"result": result}


@router.post("/api/ns/rename")
def api_ns_rename(body: RenameBody, ns: FolderRouter = Depends(get_folder_router)) -> dict:
    try:
        idlist = ItemIdList.from_token(body.id)
        folder, last = ns.bind_to_parent(idlist)
        renamed = folder.rename(ItemIdList([last]), body.newName, body.flags)
    except NamespaceError as e:
        raise http_error(e) from e
    return {"id": (idlist.parent() + renamed).to_token()}


@router.get("/api/ns/changes")
def api_ns_changes(
    limit: int = Query(100, ge=1, le=1000),
    ns: FolderRouter = Depends(get_folder_router),
) -> dict:
    events = ns.notifier.recent(limit)
    return {
        "changes": [
            {
                "id": ev.id,
                "kind": ev.kind.value,
                "oldPath": ev.old_path,
                "newPath": ev.new_path,
                "createdAt": ev.created_at,
            }
            for ev in events
        ]
    }
