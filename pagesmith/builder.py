"""Walk a content root and write one page per source document."""

from __future__ import annotations

import fnmatch
import logging
import shutil
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, Iterable, Iterator

from .config import CONFIG_FILENAME, Config
from .content import RenderedPage, load_document
from .errors import ConfigurationError, IOFailure, PageBuildError
from .layouts import LayoutLibrary
from .markdown import render_fragments
from .pages import assemble_page, output_path_for

logger = logging.getLogger(__name__)


class SourceKind(str, Enum):
    """How a file under the content root is handled."""

    DOCUMENT = "document"
    STATIC = "static"


@dataclass(frozen=True, slots=True)
class BuildFailure:
    """A single source file that could not be built."""

    path: Path
    kind: str
    message: str


@dataclass(slots=True)
class BuildResult:
    """Aggregate outcome of a build or check run."""

    pages: list[Path] = field(default_factory=list)
    copied: list[Path] = field(default_factory=list)
    failures: list[BuildFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures

    @property
    def exit_code(self) -> int:
        return 0 if self.ok else 1


@dataclass(slots=True)
class _Outcome:
    source: Path
    kind: SourceKind
    written: Path | None = None
    failure: BuildFailure | None = None


class SiteBuilder:
    """Parse, render, assemble and write every document under a content root."""

    def __init__(self, config: Config, layouts: LayoutLibrary | None = None) -> None:
        if not config.content_dir.is_dir():
            raise ConfigurationError(f"Content directory '{config.content_dir}' does not exist.")
        self._config = config
        self._layouts = layouts or LayoutLibrary(config.resolved_layouts_dir)
        self._site = config.site.to_template_dict()

    @property
    def layouts(self) -> LayoutLibrary:
        return self._layouts

    def iter_sources(self) -> Iterator[tuple[Path, SourceKind]]:
        """Yield buildable files in a stable order with their handling."""
        root = self._config.content_dir
        directories = sorted(p for p in root.rglob("*") if p.is_dir() and not self._is_skipped(p))
        directories.insert(0, root)

        for directory in directories:
            for path in sorted(directory.iterdir()):
                if not path.is_file() or self._is_skipped(path):
                    continue
                if path.suffix.lower() in self._config.markdown_suffixes:
                    yield path, SourceKind.DOCUMENT
                elif self._config.copy_static:
                    yield path, SourceKind.STATIC

    def render_page(self, source: Path) -> RenderedPage:
        """Run parser, renderer and assembler for one source file."""
        document = load_document(source, self._config.content_dir)
        body_html = "".join(
            render_fragments(document.body, link_suffixes=self._config.markdown_suffixes)
        )
        return assemble_page(document, body_html, self._layouts, site=self._site)

    def build(self) -> BuildResult:
        """Write every page and static file, recording per-file failures."""
        self._config.output_dir.mkdir(parents=True, exist_ok=True)
        return self._run(self._build_one)

    def check(self) -> BuildResult:
        """Render every document without writing anything."""
        return self._run(self._check_one, documents_only=True)

    def _run(
        self,
        task: Callable[[Path, SourceKind], _Outcome],
        *,
        documents_only: bool = False,
    ) -> BuildResult:
        sources, outcomes = self._claim_destinations(
            (path, kind)
            for path, kind in self.iter_sources()
            if not documents_only or kind is SourceKind.DOCUMENT
        )
        workers = self._config.workers
        if workers > 1 and len(sources) > 1:
            with ThreadPoolExecutor(max_workers=workers) as executor:
                futures = [executor.submit(task, path, kind) for path, kind in sources]
                for future in as_completed(futures):
                    outcomes.append(future.result())
        else:
            outcomes.extend(task(path, kind) for path, kind in sources)

        result = BuildResult()
        for outcome in sorted(outcomes, key=lambda item: item.source):
            if outcome.failure is not None:
                result.failures.append(outcome.failure)
            elif outcome.kind is SourceKind.DOCUMENT:
                result.pages.append(outcome.written or outcome.source)
            elif outcome.written is not None:
                result.copied.append(outcome.written)
        return result

    def _destination(self, source: Path, kind: SourceKind) -> Path:
        relative = source.relative_to(self._config.content_dir)
        return output_path_for(relative) if kind is SourceKind.DOCUMENT else relative

    def _claim_destinations(
        self, sources: Iterable[tuple[Path, SourceKind]]
    ) -> tuple[list[tuple[Path, SourceKind]], list[_Outcome]]:
        """Give each output path to one source; later claimants become failures.

        Documents win over static files, then sources are taken in path order.
        """
        ordered = sorted(sources, key=lambda item: (item[1] is SourceKind.STATIC, item[0]))
        owners: dict[Path, Path] = {}
        accepted: list[tuple[Path, SourceKind]] = []
        rejected: list[_Outcome] = []
        for path, kind in ordered:
            destination = self._destination(path, kind)
            owner = owners.get(destination)
            if owner is None:
                owners[destination] = path
                accepted.append((path, kind))
                continue
            exc = IOFailure(
                f"Output path {destination.as_posix()} already produced by "
                f"{owner.relative_to(self._config.content_dir).as_posix()}.",
                path=path,
            )
            rejected.append(_Outcome(source=path, kind=kind, failure=self._failure(path, exc)))
        return accepted, rejected

    def _build_one(self, source: Path, kind: SourceKind) -> _Outcome:
        try:
            if kind is SourceKind.STATIC:
                written = self._copy_static(source)
            else:
                page = self.render_page(source)
                written = self._write(page)
        except PageBuildError as exc:
            return _Outcome(source=source, kind=kind, failure=self._failure(source, exc))
        logger.debug("Wrote %s", written)
        return _Outcome(source=source, kind=kind, written=written)

    def _check_one(self, source: Path, kind: SourceKind) -> _Outcome:
        try:
            self.render_page(source)
        except PageBuildError as exc:
            return _Outcome(source=source, kind=kind, failure=self._failure(source, exc))
        return _Outcome(source=source, kind=kind)

    def _write(self, page: RenderedPage) -> Path:
        destination = self._config.output_dir / page.output_path
        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            destination.write_text(page.html, encoding="utf-8")
        except OSError as exc:
            raise IOFailure(f"Unable to write {destination}: {exc}", path=page.source_path) from exc
        return destination

    def _copy_static(self, source: Path) -> Path:
        destination = self._config.output_dir / source.relative_to(self._config.content_dir)
        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(source, destination)
        except OSError as exc:
            raise IOFailure(f"Unable to copy {source} to {destination}: {exc}", path=source) from exc
        return destination

    def _failure(self, source: Path, exc: PageBuildError) -> BuildFailure:
        if exc.path is None:
            exc.path = source
        logger.warning("Failed to build %s: %s", source, exc.message)
        return BuildFailure(path=source, kind=exc.kind, message=exc.message)

    def _is_skipped(self, path: Path) -> bool:
        root = self._config.content_dir
        relative = path.relative_to(root)
        if any(part.startswith(("_", ".")) for part in relative.parts):
            return True
        if relative.as_posix() == CONFIG_FILENAME:
            return True
        if any(fnmatch.fnmatch(relative.as_posix(), pattern) for pattern in self._config.exclude):
            return True
        resolved = path.resolve()
        for generated in (self._config.output_dir, self._layouts.root):
            if resolved == generated.resolve() or generated.resolve() in resolved.parents:
                return True
        return False


def build_site(config: Config) -> BuildResult:
    """Build the site described by ``config``."""
    return SiteBuilder(config).build()
