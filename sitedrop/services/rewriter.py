"""
Reference rewriter — makes an uploaded page render from object storage.

The page's files no longer sit next to each other on a web server; they live
under ``<storage root>/<slug>/``. Every relative ``src``, stylesheet/icon
``href`` and CSS ``url()`` in the main document is turned into an absolute URL
under that asset base, and the result is wrapped in a fresh document shell
whose ``<base>`` points at the same place.

Absolute URLs, protocol-relative URLs, ``data:`` URIs, ``#fragment`` links and
other schemes (``mailto:``, ``javascript:`` ...) are never touched. Script
bodies pass through verbatim.
"""
from __future__ import annotations

import html
import re
from functools import partial

from bs4 import BeautifulSoup, Doctype, Tag
from bs4.dammit import EntitySubstitution
from bs4.element import Stylesheet
from bs4.formatter import HTMLFormatter

from sitedrop.services.css import rewrite_urls

_SCHEME_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.\-]*:")
_HREF_SUFFIXES = (".css", ".ico")
_WRAPPERS = ("html", "head", "body")

# Plain HTML output: void elements without "/>", only &, <, > escaped
_FORMATTER = HTMLFormatter(
    entity_substitution=EntitySubstitution.substitute_xml,
    void_element_close_prefix=None,
)

SHELL = (
    "<!DOCTYPE html>\n"
    "<html>\n"
    "<head>\n"
    '<base href="{base}">\n'
    '<meta charset="UTF-8">\n'
    '<meta name="viewport" content="width=device-width, initial-scale=1.0">\n'
    "</head>\n"
    "<body{body_attrs}>\n"
    "{body}\n"
    "</body>\n"
    "</html>\n"
)


def is_absolute(url: str) -> bool:
    return url.startswith("//") or url.lower().startswith(("http", "data:")) or bool(_SCHEME_RE.match(url))


def normalize(url: str) -> str:
    """Strip one leading ``./`` or ``/``."""
    if url.startswith("./"):
        return url[2:]
    if url.startswith("/"):
        return url[1:]
    return url


def resolve_reference(value: str, asset_base: str) -> str | None:
    """Absolute URL for a relative reference, or None when it must stay as is."""
    url = value.strip()
    if not url or url.startswith("#") or is_absolute(url):
        return None
    return asset_base + normalize(url)


def _is_asset_href(url: str) -> bool:
    path = re.split(r"[?#]", url.strip(), maxsplit=1)[0]
    return path.lower().endswith(_HREF_SUFFIXES)


def _rewrite_attributes(tag: Tag, resolve) -> None:
    src = tag.get("src")
    if isinstance(src, str):
        target = resolve(src)
        if target is not None:
            tag["src"] = target

    href = tag.get("href")
    if isinstance(href, str) and _is_asset_href(href):
        target = resolve(href)
        if target is not None:
            tag["href"] = target

    style = tag.get("style")
    if isinstance(style, str) and "url(" in style.lower():
        tag["style"] = rewrite_urls(style, resolve)


def _rewrite_style_block(tag: Tag, resolve) -> None:
    css = tag.string
    if not css:
        return
    rewritten = rewrite_urls(str(css), resolve)
    if rewritten != css:
        tag.string = Stylesheet(rewritten)


def _is_superseded_meta(tag: Tag) -> bool:
    if tag.has_attr("charset"):
        return True
    name = str(tag.get("name", "")).lower()
    equiv = str(tag.get("http-equiv", "")).lower()
    return name == "viewport" or equiv == "content-type"


def _format_attrs(attrs: dict) -> str:
    parts = []
    for key, value in attrs.items():
        if isinstance(value, list):
            value = " ".join(value)
        parts.append(f' {key}="{html.escape(value, quote=True)}"')
    return "".join(parts)


def rewrite(document: str, asset_base: str) -> str:
    """Rewrite a main document so it renders from ``asset_base``.

    The output only depends on the two arguments; running it over its own
    output does not prefix anything twice.
    """
    soup = BeautifulSoup(document, "html.parser")
    resolve = partial(resolve_reference, asset_base=asset_base)

    for tag in soup.find_all(True):
        _rewrite_attributes(tag, resolve)
        if tag.name == "style":
            _rewrite_style_block(tag, resolve)

    # The shell below provides these
    for node in list(soup.contents):
        if isinstance(node, Doctype):
            node.extract()
    for tag in soup.find_all("base"):
        tag.decompose()
    for tag in soup.find_all("meta"):
        if _is_superseded_meta(tag):
            tag.decompose()

    body = soup.find("body")
    body_attrs = dict(body.attrs) if body is not None else {}
    for name in _WRAPPERS:
        for tag in soup.find_all(name):
            tag.unwrap()

    inner = soup.decode(formatter=_FORMATTER).strip()
    return SHELL.format(
        base=html.escape(asset_base, quote=True),
        body_attrs=_format_attrs(body_attrs),
        body=inner,
    )
