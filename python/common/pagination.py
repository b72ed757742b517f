"""Prefix filter + lexicographic cursor + page limit, shared by every listing."""

from __future__ import annotations

from bisect import bisect_right
from typing import Iterable


def paginate(keys: Iterable[str], prefix: str = "", cursor: str = "", limit: int = 0) -> tuple[list[str], str]:
    """Select one page of keys.

    - keys not starting with `prefix` are dropped (empty prefix keeps all)
    - the rest are sorted; `cursor` (the last key of the previous page) is
      exclusive, so every key <= cursor is skipped
    - `limit` <= 0 means unlimited

    Returns (page, next_cursor); next_cursor is the last key of the page, or
    "" once the page reaches the end of the filtered set.
    """
    matched = sorted(k for k in keys if k.startswith(prefix or ""))
    start = bisect_right(matched, cursor) if cursor else 0
    end = len(matched)
    if limit > 0 and start + limit < end:
        end = start + limit
    page = matched[start:end]
    next_cursor = page[-1] if page and end < len(matched) else ""
    return page, next_cursor
