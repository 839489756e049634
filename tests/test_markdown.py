from types import GeneratorType

import pytest

from pagesmith.markdown import render_fragments, render_markdown, rewrite_content_link


def test_renders_one_fragment_per_top_level_block() -> None:
    text = "# Title\n\nFirst paragraph.\n\n- a\n- b\n"

    fragments = list(render_fragments(text))

    assert fragments[0] == "<h1>Title</h1>\n"
    assert fragments[1] == "<p>First paragraph.</p>\n"
    assert fragments[2].startswith("<ul>") and fragments[2].rstrip().endswith("</ul>")
    assert len(fragments) == 3


def test_fragments_are_lazy_and_restartable() -> None:
    text = "One.\n\nTwo.\n"

    fragments = render_fragments(text)

    assert isinstance(fragments, GeneratorType)
    assert list(render_fragments(text)) == list(render_fragments(text))
    assert "".join(fragments) == render_markdown(text)


def test_blank_body_renders_nothing() -> None:
    assert list(render_fragments("  \n\n")) == []
    assert render_markdown("") == ""


def test_fenced_code_escapes_only_markup_characters() -> None:
    text = '```cpp\nif (a < b && c > d) { puts("x\'y"); }\n```\n'

    html = render_markdown(text)

    assert html == (
        '<pre><code class="language-cpp">'
        'if (a &lt; b &amp;&amp; c &gt; d) { puts("x\'y"); }\n'
        "</code></pre>\n"
    )


def test_indented_code_block_is_escaped() -> None:
    html = render_markdown("Intro.\n\n    <tag> & \"quote\"\n")

    assert '<pre><code>&lt;tag&gt; &amp; "quote"\n</code></pre>' in html


def test_fence_without_language_has_no_class() -> None:
    html = render_markdown("```\nplain\n```\n")

    assert html == "<pre><code>plain\n</code></pre>\n"


def test_links_to_sources_point_at_rendered_pages() -> None:
    html = render_markdown(
        "See [next](other.md#top), [up](../index.markdown) and [home](https://example.com/readme.md)."
    )

    assert 'href="other.html#top"' in html
    assert 'href="../index.html"' in html
    assert 'href="https://example.com/readme.md"' in html


def test_footnotes_render_within_fragments() -> None:
    text = "Claim.[^1]\n\n[^1]: Source.\n"

    html = render_markdown(text)

    assert 'class="footnote-ref"' in html
    assert "Source." in html


@pytest.mark.parametrize(
    ("href", "expected"),
    [
        ("post.md", "post.html"),
        ("./post.md", "./post.html"),
        ("posts/post.MD?x=1#frag", "posts/post.html?x=1#frag"),
        ("#section", "#section"),
        ("mailto:someone@example.com", "mailto:someone@example.com"),
        ("//cdn.example.com/a.md", "//cdn.example.com/a.md"),
        ("image.png", "image.png"),
    ],
)
def test_rewrite_content_link(href: str, expected: str) -> None:
    assert rewrite_content_link(href) == expected
