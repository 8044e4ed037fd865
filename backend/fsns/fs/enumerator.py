"""Snapshot enumeration of a directory's immediate children as identifiers."""

from __future__ import annotations

from typing import Iterator, Optional, Sequence

from fsns.errors import InvalidArgument, OperationFailed, OutOfMemory
from fsns.fs.local import LocalFilesystem
from fsns.ids.codec import ItemId, from_file_record
from fsns.shell.flags import ContentFlags


class IdEnumerator:
    """
    Cursor over a fixed list of identifiers.

    Membership is decided when the enumerator is built; later changes on disk
    are not observed.
    """

    def __init__(self, items: Optional[Sequence[ItemId]] = None):
        self._items: list[ItemId] = list(items or ())
        self._pos = 0

    def next(self, count: int = 1) -> list[ItemId]:
        if count < 1:
            raise InvalidArgument("count must be positive", count=count)
        out = self._items[self._pos : self._pos + count]
        self._pos += len(out)
        return out

    def skip(self, count: int = 1) -> bool:
        """Advance the cursor; True only if `count` items were available."""
        available = len(self._items) - self._pos
        step = min(count, available)
        self._pos += step
        return step == count

    def reset(self) -> None:
        self._pos = 0

    def clone(self) -> "IdEnumerator":
        other = IdEnumerator(self._items)
        other._pos = self._pos
        return other

    def __iter__(self) -> Iterator[ItemId]:
        while self._pos < len(self._items):
            item = self._items[self._pos]
            self._pos += 1
            yield item

    def __len__(self) -> int:
        return len(self._items)


class DirectoryEnumerator(IdEnumerator):
    """Immediate children of a directory filtered by a content mask."""

    def __init__(self, fs: Optional[LocalFilesystem] = None):
        super().__init__()
        self._fs = fs or LocalFilesystem()
        self.path: Optional[str] = None
        self.flags = ContentFlags.NONE

    def initialize(self, path: Optional[str], flags: int) -> bool:
        """
        Scan `path` once and keep the matching children in scan order.

        Any scan failure discards what was collected so far and raises
        OperationFailed; an unset path yields False and an empty listing.
        """
        self._items = []
        self._pos = 0
        if not path:
            return False
        mask = ContentFlags(int(flags) & int(ContentFlags.ALL))
        collected: list[ItemId] = []
        try:
            for record in self._fs.scan(path):
                if record.is_hidden and not mask & ContentFlags.INCLUDEHIDDEN:
                    continue
                if record.is_dir:
                    if not mask & ContentFlags.FOLDERS or record.name in (".", ".."):
                        continue
                elif not mask & ContentFlags.NONFOLDERS:
                    continue
                collected.append(from_file_record(record))
        except MemoryError as e:
            raise OutOfMemory("Cannot allocate enumeration results", path=path) from e
        except OSError as e:
            raise OperationFailed.from_os_error(f"Cannot scan {path}", e, path=path) from e
        self._items = collected
        self.path = path
        self.flags = mask
        return True
