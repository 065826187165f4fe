"""
Minimal CSS scanner for rewriting ``url(...)`` and ``@import "..."`` references.

Comments and string literals are copied through untouched, so a ``url(`` that
only appears inside a comment or a ``content: "..."`` string is never
rewritten.
"""
from __future__ import annotations

from typing import Callable

Resolver = Callable[[str], "str | None"]

_QUOTES = "\"'"
_WHITESPACE = " \t\n\r\f"


def _is_ident_char(ch: str) -> bool:
    return ch.isalnum() or ch in "-_" or ord(ch) > 127


def _string_end(css: str, start: int) -> tuple[int, bool]:
    """Index just past the string starting at ``start`` and whether it was closed."""
    quote = css[start]
    i = start + 1
    while i < len(css):
        ch = css[i]
        if ch == "\\":
            i += 2
            continue
        if ch == quote:
            return i + 1, True
        if ch == "\n":
            return i, False
        i += 1
    return len(css), False


def _skip_ws(css: str, i: int) -> int:
    while i < len(css) and css[i] in _WHITESPACE:
        i += 1
    return i


def _scan_url(css: str, start: int) -> tuple[int, str, str] | None:
    """Parse ``url(...)`` at ``start``; returns (end, value, quote) or None."""
    i = _skip_ws(css, start + 4)
    if i >= len(css):
        return None

    if css[i] in _QUOTES:
        quote = css[i]
        end, closed = _string_end(css, i)
        if not closed:
            return None
        value = css[i + 1:end - 1]
        i = _skip_ws(css, end)
        if i < len(css) and css[i] == ")":
            return i + 1, value, quote
        return None

    j = i
    while j < len(css):
        ch = css[j]
        if ch == "\\":
            j += 2
            continue
        if ch == ")":
            return j + 1, css[i:j], ""
        if ch in _WHITESPACE:
            k = _skip_ws(css, j)
            if k < len(css) and css[k] == ")":
                return k + 1, css[i:j], ""
            return None
        if ch in _QUOTES or ch == "(":
            return None
        j += 1
    return None


def rewrite_urls(css: str, resolve: Resolver) -> str:
    """Replace every ``url()`` / ``@import`` target for which ``resolve`` returns a value.

    Quoted URLs keep their quote character; unquoted ones come back
    single-quoted.
    """
    out: list[str] = []
    i = 0
    n = len(css)
    while i < n:
        ch = css[i]

        if css.startswith("/*", i):
            end = css.find("*/", i + 2)
            end = n if end == -1 else end + 2
            out.append(css[i:end])
            i = end
            continue

        if ch in _QUOTES:
            end, _ = _string_end(css, i)
            out.append(css[i:end])
            i = end
            continue

        if ch == "\\":
            out.append(css[i:i + 2])
            i += 2
            continue

        if ch == "@" and css[i + 1:i + 7].lower() == "import" and not _is_ident_char(css[i + 7:i + 8] or " "):
            j = _skip_ws(css, i + 7)
            out.append(css[i:j])
            i = j
            if i < n and css[i] in _QUOTES:
                end, closed = _string_end(css, i)
                target = resolve(css[i + 1:end - 1]) if closed else None
                if target is None:
                    out.append(css[i:end])
                else:
                    out.append(f"{css[i]}{target}{css[i]}")
                i = end
            continue

        if ch in "uU" and css[i:i + 4].lower() == "url(" and (i == 0 or not _is_ident_char(css[i - 1])):
            scanned = _scan_url(css, i)
            if scanned is not None:
                end, value, quote = scanned
                target = resolve(value.strip())
                if target is None:
                    out.append(css[i:end])
                else:
                    q = quote or "'"
                    out.append(f"url({q}{target}{q})")
                i = end
                continue

        out.append(ch)
        i += 1

    return "".join(out)
