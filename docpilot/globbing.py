"""Glob matching for repository-relative paths."""

from __future__ import annotations

import re
from functools import lru_cache
from typing import Pattern


def normalize_path(path: str) -> str:
    """Return ``path`` with forward slashes and no leading ``./``."""
    normalized = path.replace("\\", "/")
    while normalized.startswith("./"):
        normalized = normalized[2:]
    return normalized


def glob_matches(pattern: str, path: str) -> bool:
    """Return True when ``path`` matches the glob ``pattern``.

    ``*`` and ``?`` stay within one path segment, ``**/`` spans zero or more
    directories and a trailing ``/**`` matches anything below a directory.
    Matching is case-sensitive.
    """
    return _compile(pattern).fullmatch(normalize_path(path)) is not None


@lru_cache(maxsize=256)
def _compile(pattern: str) -> Pattern[str]:
    return re.compile(_translate(normalize_path(pattern)))


def _translate(pattern: str) -> str:
    parts: list[str] = []
    index = 0
    length = len(pattern)
    while index < length:
        char = pattern[index]
        if pattern.startswith("**", index):
            after = index + 2
            if after < length and pattern[after] == "/":
                parts.append("(?:.*/)?")
                index = after + 1
            else:
                parts.append(".*")
                index = after
            continue
        if char == "*":
            parts.append("[^/]*")
        elif char == "?":
            parts.append("[^/]")
        elif char == "[":
            closing = pattern.find("]", index + 1)
            if closing == -1:
                parts.append(re.escape(char))
            else:
                body = pattern[index + 1 : closing]
                if body.startswith("!"):
                    body = "^" + body[1:]
                parts.append(f"[{body}]")
                index = closing
        else:
            parts.append(re.escape(char))
        index += 1
    return "".join(parts)


__all__ = ["glob_matches", "normalize_path"]
