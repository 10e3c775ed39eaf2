from __future__ import annotations

from typing import Iterable

# Discord rejects message content above this many characters.
MESSAGE_LIMIT = 2000

_OPEN = "```text\n"
_CLOSE = "\n```"
_MORE = "..."


def code_pages(lines: Iterable[str], *, limit: int = MESSAGE_LIMIT) -> list[str]:
    """
    Split monospace lines into fenced code blocks, each at most `limit` chars.

    Lines are never broken across pages; a single line wider than a page is cut.
    Always returns at least one page.
    """
    budget = limit - len(_OPEN) - len(_CLOSE)
    pages: list[list[str]] = []
    current: list[str] = []
    size = 0

    for line in lines:
        line = line[:budget]
        if not current and not line.strip():
            continue
        extra = len(line) + (1 if current else 0)
        if current and size + extra > budget:
            pages.append(current)
            current, size = [], 0
            if not line.strip():
                continue
            extra = len(line)
        current.append(line)
        size += extra

    if current or not pages:
        pages.append(current)
    return [_OPEN + "\n".join(p).rstrip() + _CLOSE for p in pages]


def code_block(lines: Iterable[str], *, limit: int = MESSAGE_LIMIT) -> str:
    """One fenced block; whatever does not fit is dropped behind a '...' line."""
    lines = list(lines)
    pages = code_pages(lines, limit=limit)
    if len(pages) == 1:
        return pages[0]
    first = code_pages(lines, limit=limit - len(_MORE) - 1)[0]
    return first[: -len(_CLOSE)] + "\n" + _MORE + _CLOSE
