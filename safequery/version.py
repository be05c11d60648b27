from __future__ import annotations

import re

_NUMERIC_PREFIX_RE = re.compile(r"^\s*(\d+(?:\.\d+)*)")


def _segments(version: str) -> list[int]:
    m = _NUMERIC_PREFIX_RE.match(version or "")
    if not m:
        return []
    return [int(part) for part in m.group(1).split(".")]


def version_at_least(actual: str, minimum: str) -> bool:
    """
    Compare dotted numeric versions segment by segment.

    Missing segments count as 0, so "12" >= "12.0.1" is False and
    "12.1" >= "12" is True. Anything after the numeric prefix
    ("16.2 (Debian 16.2-1)", "15beta1") is ignored.
    """
    a = _segments(actual)
    b = _segments(minimum)
    width = max(len(a), len(b))
    a += [0] * (width - len(a))
    b += [0] * (width - len(b))
    for x, y in zip(a, b):
        if x > y:
            return True
        if x < y:
            return False
    return True
