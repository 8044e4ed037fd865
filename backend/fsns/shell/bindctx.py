from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from fsns.fs.records import FileAttributes, FileRecord

FILE_SYS_BIND_DATA = "File System Bind Data"


@dataclass
class FileSystemBindData:
    """
    Pre-fetched metadata for path segments that may not exist yet.

    Lookups are by segment name, case-insensitively.
    """

    records: dict[str, FileRecord] = field(default_factory=dict)

    def add(self, record: FileRecord) -> "FileSystemBindData":
        self.records[record.name.casefold()] = record
        return self

    def add_placeholder(self, name: str, *, folder: bool = False, size: int = 0, mtime: float = 0.0) -> "FileSystemBindData":
        attrs = FileAttributes.DIRECTORY if folder else FileAttributes.NORMAL
        return self.add(FileRecord(name=name, attributes=attrs, size=size, mtime=mtime))

    def find_data(self, segment: str) -> Optional[FileRecord]:
        return self.records.get(segment.casefold())


@dataclass
class BindContext:
    """Named parameters threaded through parse and bind calls."""

    params: dict[str, Any] = field(default_factory=dict)

    def set_object_param(self, key: str, value: Any) -> None:
        self.params[key] = value

    def get_object_param(self, key: str) -> Optional[Any]:
        return self.params.get(key)

    def revoke_object_param(self, key: str) -> None:
        self.params.pop(key, None)


def bind_data_for(ctx: Optional[BindContext], segment: str) -> Optional[FileRecord]:
    if ctx is None:
        return None
    data = ctx.get_object_param(FILE_SYS_BIND_DATA)
    if not isinstance(data, FileSystemBindData):
        return None
    return data.find_data(segment)
