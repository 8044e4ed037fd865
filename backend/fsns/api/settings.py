from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from fsns.api.deps import get_folder_router, http_error
from fsns.errors import NamespaceError
from fsns.folders.router import FolderRouter
from fsns.registry.types import KEY_CLSID


router = APIRouter()


class SettingsResponse(BaseModel):
    hideFileExt: bool = Field(..., description="Hide extensions of registered file types")


class UpdateSettingsBody(BaseModel):
    hideFileExt: bool


class FileTypeBody(BaseModel):
    extension: str
    progId: str
    friendlyName: Optional[str] = None
    neverShowExt: bool = False
    clsid: Optional[str] = None


@router.get("/api/settings")
def get_settings(ns: FolderRouter = Depends(get_folder_router)) -> SettingsResponse:
    return SettingsResponse(hideFileExt=ns.registry.hide_known_extensions())


@router.put("/api/settings")
def put_settings(body: UpdateSettingsBody, ns: FolderRouter = Depends(get_folder_router)) -> SettingsResponse:
    ns.registry.set_hide_known_extensions(body.hideFileExt)
    return SettingsResponse(hideFileExt=body.hideFileExt)


@router.put("/api/settings/file-types")
def put_file_type(body: FileTypeBody, ns: FolderRouter = Depends(get_folder_router)) -> dict:
    try:
        ns.registry.register_extension(
            body.extension,
            body.progId,
            friendly_name=body.friendlyName,
            never_show_ext=body.neverShowExt,
        )
        if body.clsid:
            ns.registry.set_handler(body.progId, KEY_CLSID, body.clsid)
    except NamespaceError as e:
        raise http_error(e) from e
    return {
        "extension": body.extension,
        "progId": body.progId,
        "friendlyName": ns.registry.friendly_type_name(body.extension),
        "neverShowExt": ns.registry.never_show_extension(body.extension),
    }
