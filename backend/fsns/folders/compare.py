"""Generic comparators shared by namespace folders."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fsns.ids.codec import DriveItemId, FsItemId, ItemId
from fsns.ids.idlist import ItemIdList
from fsns.shell.flags import sort_column

if TYPE_CHECKING:
    from fsns.folders.base import NamespaceFolder


def sign(value: int) -> int:
    return (value > 0) - (value < 0)


def _cmp(a, b) -> int:  # type: ignore[no-untyped-def]
    return (a > b) - (a < b)


def _identity(item: ItemId) -> tuple:
    if isinstance(item, FsItemId):
        return (0, item.name.casefold(), item.name)
    if isinstance(item, DriveItemId):
        return (1, item.name.casefold(), item.root)
    return (2, "", item.to_bytes())


def compare_identity(a: ItemId, b: ItemId) -> int:
    return _cmp(_identity(a), _identity(b))


def compare_children(folder: "NamespaceFolder", sort_key: int, a: ItemIdList, b: ItemIdList) -> int:
    """
    Tie-breaker once the sort key says two lists are equal.

    The first identifiers are ordered by identity (name, then exact bytes). If
    they match, a list that ends first sorts first; otherwise the comparison
    continues one level down inside the folder both lists pass through.
    """
    first_a, first_b = a.first(), b.first()
    if first_a is None or first_b is None:
        return _cmp(first_a is not None, first_b is not None)
    result = compare_identity(first_a, first_b)
    if result:
        return result

    rest_a, rest_b = a.rest(), b.rest()
    if rest_a.is_empty() or rest_b.is_empty():
        return _cmp(not rest_a.is_empty(), not rest_b.is_empty())
    child = folder.bind(ItemIdList([first_a]))
    return sign(child.compare(sort_key, rest_a, rest_b))


def compare_details(folder: "NamespaceFolder", sort_key: int, a: ItemIdList, b: ItemIdList) -> int:
    """Order by the column's detail text, case-insensitively."""
    column = sort_column(sort_key)
    text_a = folder.details_of(a.first(), column).casefold()
    text_b = folder.details_of(b.first(), column).casefold()
    result = _cmp(text_a, text_b)
    if result:
        return result
    return compare_children(folder, sort_key, a, b)
