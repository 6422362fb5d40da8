"""
Array codec for storing ordered string lists in a single text column.

Elements are joined with ``||``. Inside an element, a backslash is written as
``\\\\`` and any pipe that could touch a delimiter (a pipe next to another pipe,
or at either end of the element) is written as ``\\|``. An isolated pipe such as
``"a|b"`` is stored as-is. An empty element is written as ``\\0`` so that
``[""]`` stays distinguishable from ``[]``, which encodes to the empty string.

Escaping the literal ``||`` alone is not enough for the stored text to decode
unambiguously: ``["a|", "b"]`` would join to ``"a|||b"``, and a backslash
written before an escaped pipe could not be told apart from the escape itself.
Stored text therefore also carries escaped backslashes, edge pipes and ``\\0``
markers. Decoding still returns every element exactly as given, so text
holding a lone backslash or a lone pipe comes back unchanged.

Examples:
    encode(["hello", "world"])         -> "hello||world"
    encode(["a||b", "a|b"])            -> "a\\|\\|b||a|b"
    encode([])                         -> ""
"""

from __future__ import annotations

from collections.abc import Sequence

DELIMITER = "||"
ESCAPE = "\\"
_EMPTY = ESCAPE + "0"


def _escape(element: str) -> str:
    if element == "":
        return _EMPTY

    last = len(element) - 1
    out = []
    for i, ch in enumerate(element):
        if ch == ESCAPE:
            out.append(ESCAPE + ESCAPE)
        elif ch == "|" and (
            i == 0 or i == last or element[i - 1] == "|" or element[i + 1] == "|"
        ):
            out.append(ESCAPE + "|")
        else:
            out.append(ch)
    return "".join(out)


def encode(items: Sequence[str]) -> str:
    """Join a list of strings into one delimited, escaped text value."""
    return DELIMITER.join(_escape(item) for item in items)


def decode(text: str | None) -> list[str]:
    """Reverse ``encode``. ``None`` and the empty string decode to ``[]``."""
    if not text:
        return []

    items: list[str] = []
    buf: list[str] = []
    i = 0
    n = len(text)
    while i < n:
        ch = text[i]
        if ch == ESCAPE and i + 1 < n:
            nxt = text[i + 1]
            if nxt != "0":
                buf.append(nxt)
            i += 2
        elif ch == "|" and i + 1 < n and text[i + 1] == "|":
            items.append("".join(buf))
            buf = []
            i += 2
        else:
            buf.append(ch)
            i += 1
    items.append("".join(buf))
    return items
