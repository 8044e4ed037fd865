from __future__ import annotations

import errno
import os
from typing import Iterator

from fsns.fs.records import FileRecord, record_from_dir_entry, record_from_stat


class LocalFilesystem:
    """
    The host filesystem as the namespace core consumes it.

    Every method raises OSError on failure; callers decide whether a failure is
    fatal or a best-effort miss.
    """

    def scan(self, directory: str) -> Iterator[FileRecord]:
        with os.scandir(directory) as entries:
            for entry in entries:
                try:
                    record = record_from_dir_entry(entry)
                except FileNotFoundError:
                    # Removed between the directory read and the stat.
                    continue
                yield record

    def stat(self, path: str) -> FileRecord:
        try:
            st = os.stat(path)
        except FileNotFoundError:
            st = os.stat(path, follow_symlinks=False)
        name = os.path.basename(os.path.normpath(path)) or path
        return record_from_stat(name, st)

    def exists(self, path: str) -> bool:
        return os.path.lexists(path)

    def rename(self, src: str, dst: str) -> None:
        # Refuse to clobber: rename semantics are "move to a free name".
        if os.path.lexists(dst) and os.path.normcase(os.path.abspath(src)) != os.path.normcase(os.path.abspath(dst)):
            raise FileExistsError(errno.EEXIST, os.strerror(errno.EEXIST), dst)
        os.rename(src, dst)

    def join(self, directory: str, name: str) -> str:
        return os.path.join(directory, name)
