"""Shared Markdown rendering helpers."""

from __future__ import annotations

from functools import lru_cache
from html import escape
from pathlib import PurePosixPath
from typing import Any, Iterable, Iterator, Sequence, cast
from urllib.parse import urlsplit, urlunsplit

from markdown_it import MarkdownIt
from markdown_it.rules_core import StateCore
from markdown_it.token import Token
from mdit_py_plugins.deflist import deflist_plugin
from mdit_py_plugins.footnote import footnote_plugin
from mdit_py_plugins.tasklists import tasklists_plugin

DEFAULT_LINK_SUFFIXES: tuple[str, ...] = (".md", ".markdown")
OUTPUT_SUFFIX = ".html"


def render_fragments(
    text: str,
    *,
    link_suffixes: Iterable[str] = DEFAULT_LINK_SUFFIXES,
) -> Iterator[str]:
    """Yield HTML for each top-level block of ``text``.

    Each call parses ``text`` afresh, so the iterator can be recreated at any
    time and always yields the same fragments.
    """
    if not text.strip():
        return
    md = _renderer(tuple(sorted(link_suffixes)))
    env: dict[str, Any] = {}
    tokens = md.parse(text, env)
    for group in _top_level_blocks(tokens):
        yield cast(str, md.renderer.render(group, md.options, env))


def render_markdown(text: str, *, link_suffixes: Iterable[str] = DEFAULT_LINK_SUFFIXES) -> str:
    """Render Markdown to HTML using the shared renderer."""
    return "".join(render_fragments(text, link_suffixes=link_suffixes))


def rewrite_content_link(href: str, suffixes: Sequence[str] = DEFAULT_LINK_SUFFIXES) -> str:
    """Point relative links at source documents to their rendered pages."""
    parts = urlsplit(href)
    if parts.scheme or parts.netloc or not parts.path:
        return href
    path = PurePosixPath(parts.path)
    if path.suffix.lower() not in suffixes:
        return href
    rewritten = str(path.with_suffix(OUTPUT_SUFFIX))
    if parts.path.startswith("./") and not rewritten.startswith("./"):
        rewritten = f"./{rewritten}"
    return urlunsplit(("", "", rewritten, parts.query, parts.fragment))


@lru_cache(maxsize=8)
def _renderer(link_suffixes: tuple[str, ...]) -> MarkdownIt:
    """Configure and cache a CommonMark-compliant renderer."""
    md = MarkdownIt("commonmark", {"html": True, "linkify": True, "typographer": True})
    md.enable("table").enable("strikethrough")
    md.use(deflist_plugin)
    md.use(footnote_plugin)
    md.use(tasklists_plugin, label=True)
    md.add_render_rule("fence", _render_fence)
    md.add_render_rule("code_block", _render_code_block)

    def rewrite_links(state: StateCore) -> None:
        for token in state.tokens:
            if token.type != "inline" or not token.children:
                continue
            for child in token.children:
                if child.type != "link_open":
                    continue
                href = child.attrGet("href")
                if isinstance(href, str):
                    child.attrSet("href", rewrite_content_link(href, link_suffixes))

    md.core.ruler.push("rewrite_content_links", rewrite_links)
    return md


def _top_level_blocks(tokens: Sequence[Token]) -> Iterator[list[Token]]:
    group: list[Token] = []
    depth = 0
    for token in tokens:
        group.append(token)
        depth += token.nesting
        if depth == 0 and token.nesting <= 0:
            yield group
            group = []
    if group:
        yield group


def _escape_code(content: str) -> str:
    # Only &, < and > are escaped; quotes pass through.
    return escape(content, quote=False)


def _render_fence(self: Any, tokens: Sequence[Token], idx: int, options: Any, env: Any) -> str:
    token = tokens[idx]
    info = token.info.strip()
    language = info.split(maxsplit=1)[0] if info else ""
    class_attr = f' class="language-{escape(language, quote=True)}"' if language else ""
    return f"<pre><code{class_attr}>{_escape_code(token.content)}</code></pre>\n"


def _render_code_block(self: Any, tokens: Sequence[Token], idx: int, options: Any, env: Any) -> str:
    return f"<pre><code>{_escape_code(tokens[idx].content)}</code></pre>\n"
