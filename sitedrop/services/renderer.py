"""
Renderer — places a rewritten site inside the viewer page.

The site goes into a brand-new ``<iframe srcdoc>`` on every call. The frame is
sandboxed without ``allow-same-origin``, so the site's scripts and styles run
in an opaque origin and cannot reach the viewer page (nor the other way round).
"""
from __future__ import annotations

from bs4 import BeautifulSoup

from sitedrop.errors import RenderTargetMissing

DEFAULT_TARGET_ID = "site-frame-host"
FRAME_ID = "siteFrame"
SANDBOX = "allow-scripts allow-forms allow-popups allow-modals"


def render(document: str, host_page: str, target_id: str = DEFAULT_TARGET_ID, title: str = "Hosted Site") -> str:
    """Return ``host_page`` with ``document`` loaded into the element ``#target_id``.

    Raises:
        RenderTargetMissing: the host page has no element with that id.
    """
    soup = BeautifulSoup(host_page, "html.parser")
    host = soup.find(id=target_id)
    if host is None:
        raise RenderTargetMissing(f"No element with id {target_id!r} in host page")

    host.clear()
    frame = soup.new_tag(
        "iframe",
        attrs={
            "id": FRAME_ID,
            "title": title,
            "sandbox": SANDBOX,
            "referrerpolicy": "no-referrer",
            "srcdoc": document,
        },
    )
    host.append(frame)
    return str(soup)
