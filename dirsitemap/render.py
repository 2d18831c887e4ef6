"""
Sitemap XML rendering for url-set and sitemap-index documents.

The byte layout is fixed (one entry per line, fixed attribute order) so the
output is written from templates rather than through ElementTree.
"""

from __future__ import annotations

import os
from html import escape
from typing import Iterable
from urllib.parse import quote

SITEMAP_NS = "http://www.sitemaps.org/schemas/sitemap/0.9"
XSI_NS = "http://www.w3.org/2001/XMLSchema-instance"
XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>'

# RFC 3986 pchar minus percent, plus the path separator.
PATH_SAFE = "/-._~!$&'()*+,;=:@"


def location(base_url: str, rel_path: str) -> str:
    # raw filesystem bytes, so names that are not valid UTF-8 still encode
    return f"{base_url}/{quote(os.fsencode(rel_path), safe=PATH_SAFE)}"


def _open_tag(root: str, schema: str) -> str:
    return (
        f'<{root} xmlns:xsi="{XSI_NS}" '
        f'xsi:schemaLocation="{SITEMAP_NS} {SITEMAP_NS}/{schema}" '
        f'xmlns="{SITEMAP_NS}">'
    )


def _render(root: str, child: str, schema: str, entries: Iterable[tuple[str, str]]) -> bytes:
    lines = [XML_DECLARATION, _open_tag(root, schema)]
    for loc, lastmod in entries:
        lines.append(
            f"    <{child}><loc>{escape(loc, quote=False)}</loc>"
            f"<lastmod>{escape(lastmod, quote=False)}</lastmod></{child}>"
        )
    lines.append(f"</{root}>")
    return ("\n".join(lines) + "\n").encode("utf-8")


def render_urlset(entries: Iterable[tuple[str, str]]) -> bytes:
    """Leaf document from ``(absolute URL, W3C lastmod)`` pairs, in the given order."""
    return _render("urlset", "url", "sitemap.xsd", entries)


def render_index(entries: Iterable[tuple[str, str]]) -> bytes:
    """Index document from ``(part URL, W3C lastmod)`` pairs, in the given order."""
    return _render("sitemapindex", "sitemap", "siteindex.xsd", entries)
