"""Layout templates that wrap rendered document bodies."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable, Mapping

from jinja2 import (
    Environment,
    FileSystemLoader,
    Template,
    TemplateError,
    TemplateNotFound,
    select_autoescape,
)
from markupsafe import Markup

from .content.parsers import split_front_matter
from .errors import ConfigurationError, LayoutError, MalformedFrontMatter, UnknownLayout

logger = logging.getLogger(__name__)

LAYOUT_SUFFIX = ".html"
MAX_LAYOUT_DEPTH = 16


class _LayoutLoader(FileSystemLoader):
    """File loader that strips and records each layout's front matter."""

    def __init__(self, searchpath: str) -> None:
        super().__init__(searchpath)
        self.front_matter: dict[str, dict[str, str]] = {}

    def get_source(
        self, environment: Environment, template: str
    ) -> tuple[str, str, Callable[[], bool] | None]:
        try:
            source, filename, uptodate = super().get_source(environment, template)
        except TemplateNotFound:
            raise
        except (OSError, UnicodeDecodeError) as exc:
            raise LayoutError(
                f"Layout '{template}' could not be read: {exc}",
                path=Path(self.searchpath[0]) / template,
            ) from exc
        try:
            data, body = split_front_matter(source)
        except MalformedFrontMatter as exc:
            raise LayoutError(f"Layout '{template}' has malformed front matter: {exc}", path=filename) from exc
        self.front_matter[template] = data
        return body, filename, uptodate


class LayoutLibrary:
    """Resolve layout names to templates under a single directory.

    A layout named ``page`` lives at ``<layouts_dir>/page.html``. Layouts may
    open with a front-matter block whose ``layout`` key names a parent layout;
    the rendered child is passed to the parent as ``content``.
    """

    def __init__(self, layouts_dir: Path) -> None:
        if not layouts_dir.is_dir():
            raise ConfigurationError(f"Layouts directory '{layouts_dir}' does not exist.")
        self._root = layouts_dir
        self._loader = _LayoutLoader(str(layouts_dir))
        self._environment = Environment(
            loader=self._loader,
            autoescape=select_autoescape(["html", "xml"]),
            trim_blocks=True,
            lstrip_blocks=True,
        )

    @property
    def root(self) -> Path:
        return self._root

    @property
    def environment(self) -> Environment:
        return self._environment

    def names(self) -> list[str]:
        """List every layout name available under the root."""
        return sorted(
            path.relative_to(self._root).with_suffix("").as_posix()
            for path in self._root.rglob(f"*{LAYOUT_SUFFIX}")
            if path.is_file()
        )

    def has(self, name: str) -> bool:
        try:
            self._template(name)
        except UnknownLayout:
            return False
        return True

    def parent_of(self, name: str) -> str | None:
        self._template(name)
        value = self._loader.front_matter.get(self._filename(name), {}).get("layout", "").strip()
        return value or None

    def render(self, name: str, content: str, context: Mapping[str, Any] | None = None) -> str:
        """Substitute ``content`` into the named layout and its parents."""
        base_context = dict(context or {})
        chain: list[str] = []
        current: str | None = name
        html = content
        while current:
            if current in chain:
                cycle = " -> ".join([*chain, current])
                raise LayoutError(f"Layout chain loops back on itself: {cycle}")
            if len(chain) >= MAX_LAYOUT_DEPTH:
                raise LayoutError(f"Layout chain for '{name}' exceeds {MAX_LAYOUT_DEPTH} levels.")
            chain.append(current)
            template = self._template(current)
            meta = self._loader.front_matter.get(self._filename(current), {})
            try:
                html = template.render({**base_context, "layout": meta, "content": Markup(html)})
            except TemplateError as exc:
                raise LayoutError(f"Layout '{current}' failed to render: {exc}") from exc
            current = meta.get("layout", "").strip() or None
        logger.debug("Applied layout chain %s", " -> ".join(chain))
        return html

    def _template(self, name: str) -> Template:
        try:
            return self._environment.get_template(self._filename(name))
        except TemplateNotFound as exc:
            raise UnknownLayout(name) from exc
        except TemplateError as exc:
            raise LayoutError(f"Layout '{name}' could not be loaded: {exc}") from exc

    @staticmethod
    def _filename(name: str) -> str:
        return f"{name.strip()}{LAYOUT_SUFFIX}"
