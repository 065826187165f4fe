from __future__ import annotations

from typing import Iterable

from sitedrop.errors import NoEntryPoint
from sitedrop.models import ArchiveEntry


def is_html(path: str) -> bool:
    return path.lower().endswith((".html", ".htm"))


def select_main(entries: Iterable[ArchiveEntry | str]) -> str:
    """Pick the page to show for a site.

    This is a heuristic: an ``index.html``/``index.htm`` anywhere in the tree
    wins (the shallowest one, then archive order), otherwise the first HTML
    file. It cannot know which page the author meant.
    """
    paths = [e.path if isinstance(e, ArchiveEntry) else e for e in entries]
    pages = [p for p in paths if is_html(p)]
    if not pages:
        raise NoEntryPoint("No HTML files found in ZIP archive")

    index_pages = [p for p in pages if "index.htm" in p.lower()]
    if index_pages:
        # min() keeps the first of equally short paths
        return min(index_pages, key=len)
    return pages[0]
