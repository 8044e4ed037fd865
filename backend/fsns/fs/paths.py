from __future__ import annotations

import os
from typing import Optional

SEPARATORS = ("\\", "/")


def next_element(text: str) -> tuple[str, Optional[str]]:
    """
    Split off the leading path segment.

    Returns `(segment, rest)`; `rest` is None when no separator followed the
    segment, and "" when the text ended with a separator.
    """
    for i, ch in enumerate(text):
        if ch in SEPARATORS:
            return text[:i], text[i + 1 :]
    return text, None


def path_combine(directory: Optional[str], name: str) -> str:
    if not directory:
        return name
    return os.path.join(directory, name)


def add_separator(path: str) -> str:
    if path.endswith(SEPARATORS):
        return path
    return path + os.sep
