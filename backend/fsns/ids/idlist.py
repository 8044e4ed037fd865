from __future__ import annotations

import base64
from typing import Iterable, Iterator, Optional, Union

from fsns.errors import InvalidArgument
from fsns.ids.codec import ItemId, decode_item


class ItemIdList:
    """
    Ordered identifiers from a namespace root (or a folder) down to a leaf.

    The empty list denotes the root itself. Instances are mutable and owned by
    whoever built them; hand out `clone()` rather than sharing.
    """

    __slots__ = ("_items",)

    def __init__(self, items: Optional[Iterable[ItemId]] = None):
        self._items: list[ItemId] = list(items or ())

    @classmethod
    def from_bytes(cls, data: bytes) -> "ItemIdList":
        items: list[ItemId] = []
        offset = 0
        while offset < len(data):
            item, offset = decode_item(data, offset)
            if item is None:
                if offset != len(data):
                    raise InvalidArgument("Trailing bytes after identifier list terminator")
                return cls(items)
            items.append(item)
        # Tolerate a missing terminator.
        return cls(items)

    @classmethod
    def from_token(cls, token: str) -> "ItemIdList":
        if not token:
            return cls()
        try:
            raw = base64.urlsafe_b64decode(token + "=" * (-len(token) % 4))
        except (ValueError, TypeError) as e:
            raise InvalidArgument(f"Malformed identifier token: {e}") from e
        return cls.from_bytes(raw)

    def to_bytes(self) -> bytes:
        return b"".join(item.to_bytes() for item in self._items) + b"\x00\x00"

    def to_token(self) -> str:
        if not self._items:
            return ""
        return base64.urlsafe_b64encode(self.to_bytes()).decode("ascii").rstrip("=")

    def clone(self) -> "ItemIdList":
        # Items are frozen, so copying the sequence is a deep enough copy.
        return ItemIdList(self._items)

    def append(self, item: Union[ItemId, "ItemIdList"]) -> "ItemIdList":
        if isinstance(item, ItemIdList):
            self._items.extend(item._items)
        else:
            self._items.append(item)
        return self

    def remove_last(self) -> bool:
        if not self._items:
            return False
        self._items.pop()
        return True

    def first(self) -> Optional[ItemId]:
        return self._items[0] if self._items else None

    def last(self) -> Optional[ItemId]:
        return self._items[-1] if self._items else None

    def rest(self) -> "ItemIdList":
        """Everything after the first identifier, as a new list."""
        return ItemIdList(self._items[1:])

    def parent(self) -> "ItemIdList":
        return ItemIdList(self._items[:-1])

    def is_empty(self) -> bool:
        return not self._items

    def is_simple(self) -> bool:
        return len(self._items) == 1

    def __add__(self, other: Union[ItemId, "ItemIdList"]) -> "ItemIdList":
        return self.clone().append(other)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[ItemId]:
        return iter(self._items)

    def __getitem__(self, index: int) -> ItemId:
        return self._items[index]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ItemIdList):
            return NotImplemented
        return self.to_bytes() == other.to_bytes()

    def __repr__(self) -> str:
        return f"ItemIdList({self._items!r})"


def find_last_id(idlist: ItemIdList) -> Optional[ItemId]:
    return idlist.last()
