from __future__ import annotations

from pathlib import Path

import pytest

from pagesmith.content import ContentDocument
from pagesmith.errors import ConfigurationError, LayoutError, UnknownLayout
from pagesmith.layouts import LayoutLibrary
from pagesmith.pages import assemble_page, build_context, output_path_for


def _write_layouts(root: Path, layouts: dict[str, str]) -> Path:
    root.mkdir(parents=True, exist_ok=True)
    for name, text in layouts.items():
        target = root / f"{name}.html"
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(text, encoding="utf-8")
    return root


def _document(front_matter: dict[str, str], relative: str = "about.md") -> ContentDocument:
    return ContentDocument(
        path=Path("/content") / relative,
        relative_path=Path(relative),
        front_matter=front_matter,
        body="",
    )


def test_content_is_inserted_unescaped_and_context_is_escaped(tmp_path: Path) -> None:
    root = _write_layouts(
        tmp_path / "_layouts",
        {"page": "<title>{{ title }}</title>\n<main>{{ content }}</main>\n"},
    )
    library = LayoutLibrary(root)

    html = library.render("page", "<p>Body &amp; more</p>", {"title": "Q&A <draft>"})

    assert "<main><p>Body &amp; more</p></main>" in html
    assert "<title>Q&amp;A &lt;draft&gt;</title>" in html


def test_unknown_layout_raises(tmp_path: Path) -> None:
    library = LayoutLibrary(_write_layouts(tmp_path / "_layouts", {"page": "{{ content }}"}))

    with pytest.raises(UnknownLayout) as excinfo:
        library.render("missing", "<p>x</p>")

    assert excinfo.value.layout == "missing"
    assert excinfo.value.kind == "unknown-layout"
    assert not library.has("missing")
    assert library.has("page")


def test_missing_layouts_directory_is_a_configuration_error(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError):
        LayoutLibrary(tmp_path / "nope")


def test_layouts_can_nest_through_front_matter(tmp_path: Path) -> None:
    root = _write_layouts(
        tmp_path / "_layouts",
        {
            "default": "<html><body>{{ content }}</body></html>",
            "post": "---\nlayout: default\n---\n<article>{{ content }}</article>",
        },
    )
    library = LayoutLibrary(root)

    html = library.render("post", "<p>Hi</p>")

    assert html == "<html><body><article><p>Hi</p></article></body></html>"
    assert library.parent_of("post") == "default"
    assert library.parent_of("default") is None
    assert library.names() == ["default", "post"]


def test_layout_cycles_are_rejected(tmp_path: Path) -> None:
    root = _write_layouts(
        tmp_path / "_layouts",
        {
            "a": "---\nlayout: b\n---\n{{ content }}",
            "b": "---\nlayout: a\n---\n{{ content }}",
        },
    )

    with pytest.raises(LayoutError, match="loops back"):
        LayoutLibrary(root).render("a", "x")


def test_malformed_layout_front_matter_is_a_layout_error(tmp_path: Path) -> None:
    root = _write_layouts(tmp_path / "_layouts", {"page": "---\nlayout: x\n{{ content }}"})

    with pytest.raises(LayoutError):
        LayoutLibrary(root).render("page", "x")


def test_output_path_mirrors_source() -> None:
    assert output_path_for(Path("notes/about.md")) == Path("notes/about.html")
    assert output_path_for(Path("index.markdown")) == Path("index.html")


def test_build_context_exposes_page_and_site() -> None:
    document = _document({"layout": "page", "comments": "true"}, "notes/about.md")

    context = build_context(document, {"title": "Blog"})

    assert context["title"] == "Blog"
    assert context["page"]["url"] == "/notes/about.html"
    assert context["page"]["comments"] is True
    assert context["site"] == {"title": "Blog"}


def test_assemble_page_uses_named_layout(tmp_path: Path) -> None:
    library = LayoutLibrary(
        _write_layouts(tmp_path / "_layouts", {"page": "<h1>{{ page.title }}</h1>{{ content }}"})
    )
    document = _document({"layout": "page", "title": "About"})

    page = assemble_page(document, "<p>Hello</p>", library)

    assert page.output_path == Path("about.html")
    assert page.html == "<h1>About</h1><p>Hello</p>"
    assert page.source_path == document.path


def test_assemble_page_requires_layout(tmp_path: Path) -> None:
    library = LayoutLibrary(_write_layouts(tmp_path / "_layouts", {"page": "{{ content }}"}))

    with pytest.raises(UnknownLayout) as excinfo:
        assemble_page(_document({"title": "No layout"}), "<p>x</p>", library)

    assert excinfo.value.path == Path("/content/about.md")
