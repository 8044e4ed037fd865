from __future__ import annotations

from typing import Optional

from fastapi import HTTPException

from fsns.errors import NamespaceError
from fsns.folders.router import FolderRouter, default_router


STATUS_BY_CODE = {
    "invalid_argument": 400,
    "access_denied": 403,
    "not_found": 404,
    "not_implemented": 501,
    "out_of_memory": 507,
    "operation_failed": 500,
}

_router: Optional[FolderRouter] = None


def get_folder_router() -> FolderRouter:
    """Process-wide router, built on first use from the current environment."""
    global _router
    if _router is None:
        _router = default_router()
    return _router


def http_error(e: NamespaceError) -> HTTPException:
    return HTTPException(status_code=STATUS_BY_CODE.get(e.code, 500), detail=e.payload()["error"])
