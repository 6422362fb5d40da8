"""
Version and timestamp ordering for exam banks.

Versions are compared segment by segment ("1.10" > "1.9"); numeric segments
compare as integers, anything else compares as text, and a number always sorts
before text in the same position. Missing trailing segments count as zero, so
"2" == "2.0".
"""

from __future__ import annotations

import re
from datetime import datetime, timezone

_SEGMENT_SPLIT = re.compile(r"[.\-_+]")


def _segments(version: str) -> list[tuple[int, int | str]]:
    parts = [p for p in _SEGMENT_SPLIT.split(version.strip().lstrip("vV")) if p != ""]
    key = []
    for part in parts:
        if part.isdigit():
            key.append((0, int(part)))
        else:
            key.append((1, part))
    # Trailing zeros carry no ordering weight
    while key and key[-1] == (0, 0):
        key.pop()
    return key


def compare_versions(a: str, b: str) -> int:
    """Return -1, 0 or 1 as ``a`` is older than, equal to, or newer than ``b``."""
    ka, kb = _segments(a), _segments(b)
    if ka == kb:
        return 0
    return 1 if ka > kb else -1


def as_utc(moment: datetime) -> datetime:
    """Treat naive datetimes as UTC so stored and incoming values compare."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp, accepting a trailing ``Z``."""
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    return as_utc(datetime.fromisoformat(text))


def format_timestamp(moment: datetime) -> str:
    return as_utc(moment).isoformat()


def is_newer(
    incoming_version: str,
    incoming_updated: datetime,
    existing_version: str,
    existing_updated: datetime,
) -> bool:
    """
    Decide whether an incoming bank supersedes the stored one.

    A strictly greater version always wins. An equal version wins only with a
    strictly more recent ``last_updated``. Everything else is stale or a duplicate.
    """
    order = compare_versions(incoming_version, existing_version)
    if order != 0:
        return order > 0
    return as_utc(incoming_updated) > as_utc(existing_updated)
