"""
Binary item identifiers.

An identifier is `cb:uint16-LE | tag:uint8 | payload`, where `cb` counts every
byte including itself, so any reader can step over an identifier it does not
understand. Filesystem identifiers (folder/file) and drive roots are decoded
here; every other tag belongs to some other namespace and is kept as raw bytes.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass, replace
from enum import IntEnum
from typing import Optional, Union

from fsns.errors import InvalidArgument, NotFound, OutOfMemory
from fsns.fs.local import LocalFilesystem
from fsns.fs.records import FileAttributes, FileRecord, dos_date_time, dos_to_datetime, find_extension


class ItemKind(IntEnum):
    DRIVE = 0x2F
    FOLDER = 0x31
    FILE = 0x32


_HEADER = struct.Struct("<HB")
_FS_FIELDS = struct.Struct("<BQHHH")
MAX_ID_BYTES = 0xFFFF


@dataclass(frozen=True)
class FsItemId:
    kind: ItemKind
    name: str
    size: int = 0
    date: int = 0
    time: int = 0
    attributes: int = 0

    @property
    def is_folder(self) -> bool:
        return self.kind == ItemKind.FOLDER

    @property
    def is_file(self) -> bool:
        return self.kind == ItemKind.FILE

    @property
    def extension(self) -> str:
        return find_extension(self.name)

    @property
    def file_attributes(self) -> FileAttributes:
        return FileAttributes(self.attributes)

    def modified(self):
        return dos_to_datetime(self.date, self.time)

    def as_folder(self) -> "FsItemId":
        """Copy of this identifier with the folder kind (used for speculative parents)."""
        return replace(
            self,
            kind=ItemKind.FOLDER,
            size=0,
            attributes=self.attributes | FileAttributes.DIRECTORY,
        )

    def to_bytes(self) -> bytes:
        body = _FS_FIELDS.pack(0, self.size, self.date, self.time, self.attributes & 0xFFFF)
        body += _encode_str(self.name)
        return _frame(int(self.kind), body)


@dataclass(frozen=True)
class DriveItemId:
    root: str
    name: str

    kind = ItemKind.DRIVE

    def to_bytes(self) -> bytes:
        return _frame(int(ItemKind.DRIVE), _encode_str(self.root) + _encode_str(self.name))


@dataclass(frozen=True)
class ForeignItemId:
    raw: bytes

    @property
    def tag(self) -> int:
        return self.raw[2] if len(self.raw) > 2 else 0

    @property
    def payload(self) -> bytes:
        return self.raw[_HEADER.size :]

    def to_bytes(self) -> bytes:
        return self.raw


ItemId = Union[FsItemId, DriveItemId, ForeignItemId]


def _encode_str(value: str) -> bytes:
    data = value.encode("utf-8")
    if b"\x00" in data:
        raise InvalidArgument("Names may not contain NUL", name=value)
    return data + b"\x00"


def _frame(tag: int, body: bytes) -> bytes:
    cb = _HEADER.size + len(body)
    if cb > MAX_ID_BYTES:
        raise InvalidArgument("Identifier too large", size=cb)
    return _HEADER.pack(cb, tag) + body


def foreign_id(tag: int, body: bytes) -> ForeignItemId:
    """Frame raw bytes as an identifier owned by another namespace."""
    if tag in (int(k) for k in ItemKind):
        raise InvalidArgument("Tag is reserved for filesystem identifiers", tag=tag)
    return ForeignItemId(_frame(tag, body))


def _read_str(buf: bytes, offset: int) -> tuple[str, int]:
    end = buf.find(b"\x00", offset)
    if end < 0:
        raise InvalidArgument("Unterminated name in identifier")
    try:
        return buf[offset:end].decode("utf-8"), end + 1
    except UnicodeDecodeError as e:
        raise InvalidArgument(f"Identifier name is not UTF-8: {e}") from e


def decode_item(data: bytes, offset: int = 0) -> tuple[Optional[ItemId], int]:
    """
    Decode the identifier starting at `offset`.

    Returns `(item, next_offset)`; `item` is None on the zero-length terminator.
    """
    if len(data) - offset < 2:
        raise InvalidArgument("Truncated identifier header")
    (cb,) = struct.unpack_from("<H", data, offset)
    if cb == 0:
        return None, offset + 2
    if cb < _HEADER.size or offset + cb > len(data):
        raise InvalidArgument("Identifier length out of range", cb=cb, offset=offset)
    raw = bytes(data[offset : offset + cb])
    tag = raw[2]
    if tag in (ItemKind.FOLDER, ItemKind.FILE):
        if cb < _HEADER.size + _FS_FIELDS.size + 1:
            raise InvalidArgument("Truncated filesystem identifier")
        _pad, size, date, time, attrs = _FS_FIELDS.unpack_from(raw, _HEADER.size)
        name, _ = _read_str(raw, _HEADER.size + _FS_FIELDS.size)
        item: ItemId = FsItemId(ItemKind(tag), name, size, date, time, attrs)
    elif tag == ItemKind.DRIVE:
        root, pos = _read_str(raw, _HEADER.size)
        name, _ = _read_str(raw, pos)
        item = DriveItemId(root=root, name=name)
    else:
        item = ForeignItemId(raw)
    return item, offset + cb


def from_bytes(data: bytes) -> ItemId:
    item, end = decode_item(data)
    if item is None:
        raise InvalidArgument("Empty identifier")
    if end != len(data):
        raise InvalidArgument("Trailing bytes after identifier")
    return item


def from_file_record(record: FileRecord) -> FsItemId:
    try:
        date, time = dos_date_time(record.mtime)
        kind = ItemKind.FOLDER if record.is_dir else ItemKind.FILE
        return FsItemId(
            kind=kind,
            name=record.name,
            size=0 if record.is_dir else record.size,
            date=date,
            time=time,
            attributes=int(record.attributes) & 0xFFFF,
        )
    except MemoryError as e:
        raise OutOfMemory("Cannot allocate identifier") from e


def from_path(
    path: str,
    *,
    bind_data: Optional[FileRecord] = None,
    fs: Optional[LocalFilesystem] = None,
) -> FsItemId:
    """
    Build an identifier for `path`.

    With `bind_data` the identifier is synthesized from it (named after the
    path's last segment) and the filesystem is not consulted, so paths that do
    not exist yet can be referenced.
    """
    if bind_data is not None:
        name = path.replace("\\", "/").rstrip("/").rsplit("/", 1)[-1] or bind_data.name
        return from_file_record(replace(bind_data, name=name))
    fs = fs or LocalFilesystem()
    try:
        record = fs.stat(path)
    except FileNotFoundError as e:
        raise NotFound(f"No such file or directory: {path}", path=path) from e
    except OSError as e:
        raise NotFound(f"Cannot stat {path}: {e.strerror or e}", path=path) from e
    return from_file_record(record)


def is_fs_item(item: Optional[ItemId]) -> bool:
    return isinstance(item, FsItemId)


def is_folder(item: Optional[ItemId]) -> bool:
    return isinstance(item, FsItemId) and item.kind == ItemKind.FOLDER


def is_file(item: Optional[ItemId]) -> bool:
    return isinstance(item, FsItemId) and item.kind == ItemKind.FILE


def is_drive(item: Optional[ItemId]) -> bool:
    return isinstance(item, DriveItemId)
