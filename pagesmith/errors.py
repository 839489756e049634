"""Error taxonomy shared by the build pipeline."""

from __future__ import annotations

from pathlib import Path


class ConfigurationError(RuntimeError):
    """Raised when the build cannot start (missing roots, invalid config)."""


class PageBuildError(Exception):
    """Base class for failures confined to a single source file."""

    kind = "error"

    def __init__(self, message: str, *, path: str | Path | None = None) -> None:
        super().__init__(message)
        self.path = Path(path) if path is not None else None

    @property
    def message(self) -> str:
        return str(self.args[0]) if self.args else ""


class MalformedFrontMatter(PageBuildError, ValueError):
    """Raised when a front-matter block is unterminated or not a flat mapping."""

    kind = "malformed-front-matter"


class LayoutError(PageBuildError):
    """Raised when a layout template cannot be applied."""

    kind = "layout-error"


class UnknownLayout(LayoutError):
    """Raised when a document names a layout with no template."""

    kind = "unknown-layout"

    def __init__(self, layout: str | None, *, path: str | Path | None = None) -> None:
        if layout:
            message = f"Layout '{layout}' has no matching template."
        else:
            message = "Document does not declare a layout."
        super().__init__(message, path=path)
        self.layout = layout


class IOFailure(PageBuildError):
    """Raised when an input cannot be read or an output cannot be written."""

    kind = "io-failure"
