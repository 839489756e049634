"""Assemble rendered bodies into complete pages."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping

from .content import ContentDocument, RenderedPage
from .errors import UnknownLayout
from .layouts import LayoutLibrary

OUTPUT_SUFFIX = ".html"


def output_path_for(relative_path: Path) -> Path:
    """Mirror a source path under the output root (``about.md`` -> ``about.html``)."""
    return relative_path.with_suffix(OUTPUT_SUFFIX)


def build_context(
    document: ContentDocument,
    site: Mapping[str, Any] | None = None,
) -> dict[str, Any]:
    """Variables exposed to layouts alongside ``content``."""
    output_path = output_path_for(document.relative_path)
    page: dict[str, Any] = dict(document.front_matter)
    page["url"] = f"/{output_path.as_posix()}"
    page["path"] = document.relative_path.as_posix()
    page["comments"] = document.comments

    site_data = dict(site or {})
    return {
        "page": page,
        "title": document.title or site_data.get("title") or "",
        "site": site_data,
    }


def assemble_page(
    document: ContentDocument,
    body_html: str,
    layouts: LayoutLibrary,
    *,
    site: Mapping[str, Any] | None = None,
) -> RenderedPage:
    """Wrap ``body_html`` in the layout named by the document's front matter."""
    layout = document.layout
    if layout is None:
        raise UnknownLayout(None, path=document.path)
    html = layouts.render(layout, body_html, build_context(document, site))
    return RenderedPage(
        output_path=output_path_for(document.relative_path),
        html=html,
        source_path=document.path,
    )
