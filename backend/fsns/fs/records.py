"""Raw directory-scan records and the attribute/timestamp encodings they carry."""

from __future__ import annotations

import os
import stat as stat_mod
from dataclasses import dataclass
from datetime import datetime
from enum import IntFlag


class FileAttributes(IntFlag):
    """Raw filesystem attribute bits, stored verbatim in identifiers."""

    NONE = 0
    READONLY = 0x1
    HIDDEN = 0x2
    SYSTEM = 0x4
    DIRECTORY = 0x10
    ARCHIVE = 0x20
    NORMAL = 0x80
    COMPRESSED = 0x800


@dataclass(frozen=True)
class FileRecord:
    """One directory-scan result: what a find-first/find-next pass reports."""

    name: str
    attributes: FileAttributes
    size: int
    mtime: float

    @property
    def is_dir(self) -> bool:
        return bool(self.attributes & FileAttributes.DIRECTORY)

    @property
    def is_hidden(self) -> bool:
        return bool(self.attributes & FileAttributes.HIDDEN)


def dos_date_time(ts: float) -> tuple[int, int]:
    """Split a POSIX timestamp into packed 16-bit DOS date and time fields."""
    dt = datetime.fromtimestamp(ts)
    year = min(max(dt.year, 1980), 2107)
    date = ((year - 1980) << 9) | (dt.month << 5) | dt.day
    time = (dt.hour << 11) | (dt.minute << 5) | (dt.second // 2)
    return date, time


def dos_to_datetime(date: int, time: int) -> datetime:
    year = 1980 + ((date >> 9) & 0x7F)
    month = max((date >> 5) & 0x0F, 1)
    day = max(date & 0x1F, 1)
    hour = (time >> 11) & 0x1F
    minute = (time >> 5) & 0x3F
    second = (time & 0x1F) * 2
    return datetime(year, month, day, hour, minute, min(second, 59))


def attributes_from_stat(name: str, st: os.stat_result) -> FileAttributes:
    """
    Derive raw attribute bits from a stat result.

    Windows reports them directly; elsewhere hidden means a leading dot and
    read-only means the owner write bit is clear.
    """
    native = getattr(st, "st_file_attributes", None)
    if native is not None:
        return FileAttributes(int(native) & 0xFFFF)

    attrs = FileAttributes.NONE
    if stat_mod.S_ISDIR(st.st_mode):
        attrs |= FileAttributes.DIRECTORY
    else:
        attrs |= FileAttributes.ARCHIVE
    if name.startswith(".") and name not in (".", ".."):
        attrs |= FileAttributes.HIDDEN
    if not st.st_mode & stat_mod.S_IWUSR:
        attrs |= FileAttributes.READONLY
    return attrs


def record_from_stat(name: str, st: os.stat_result) -> FileRecord:
    attrs = attributes_from_stat(name, st)
    size = 0 if attrs & FileAttributes.DIRECTORY else int(st.st_size)
    return FileRecord(name=name, attributes=attrs, size=size, mtime=float(st.st_mtime))


def record_from_dir_entry(entry: os.DirEntry) -> FileRecord:
    """Metadata of a scanned entry; links report their target, dangling links themselves."""
    try:
        st = entry.stat()
    except FileNotFoundError:
        st = entry.stat(follow_symlinks=False)
    return record_from_stat(entry.name, st)


def find_extension(name: str) -> str:
    """
    Return the extension of the last path component including its dot, or "".

    A name made only of a leading dot (".profile") has no extension.
    """
    leaf = name.replace("\\", "/").rsplit("/", 1)[-1]
    idx = leaf.rfind(".")
    if idx <= 0:
        return ""
    ext = leaf[idx:]
    if " " in ext:
        return ""
    return ext


def remove_extension(name: str) -> str:
    ext = find_extension(name)
    return name[: len(name) - len(ext)] if ext else name
