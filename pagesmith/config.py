"""Build configuration loaded from an optional ``pagesmith.yml``."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import ConfigurationError

CONFIG_FILENAME = "pagesmith.yml"
DEFAULT_LAYOUTS_DIRNAME = "_layouts"


class SiteMeta(BaseModel):
    """Site-wide values exposed to layouts as ``site``.

    Keys beyond the named fields (``author``, ``twitter``...) are kept and
    passed through to layouts unchanged.
    """

    model_config = ConfigDict(extra="allow")

    title: str = Field(default="")
    description: str | None = Field(default=None)
    base_url: str | None = Field(
        default=None,
        description="Canonical site URL (e.g. 'https://example.com') for absolute links.",
    )

    def to_template_dict(self) -> dict[str, Any]:
        return {
            **(self.model_extra or {}),
            "title": self.title,
            "description": self.description,
            "base_url": self.base_url,
        }


class Config(BaseModel):
    content_dir: Path = Field(default=Path("."))
    output_dir: Path = Field(default=Path("_site"))
    layouts_dir: Path | None = Field(
        default=None,
        description="Directory holding layout templates; defaults to '_layouts' under content_dir.",
    )
    site: SiteMeta = Field(default_factory=SiteMeta)
    markdown_suffixes: list[str] = Field(default_factory=lambda: [".md", ".markdown"])
    copy_static: bool = Field(
        default=True,
        description="Copy non-markdown files to the output root unchanged.",
    )
    exclude: list[str] = Field(
        default_factory=list,
        description="Glob patterns (relative to content_dir) skipped during the build.",
    )
    workers: int = Field(default=1, ge=1, le=64)

    @field_validator("content_dir", "output_dir", mode="before")
    def _ensure_path(cls, value: Any) -> Path:
        return Path(value)

    @field_validator("layouts_dir", mode="before")
    def _ensure_optional_path(cls, value: Any) -> Path | None:
        if value is None or value == "":
            return None
        return Path(value)

    @field_validator("markdown_suffixes")
    def _normalize_suffixes(cls, value: list[str]) -> list[str]:
        normalized: list[str] = []
        for suffix in value:
            text = suffix.strip().lower()
            if not text:
                continue
            if not text.startswith("."):
                text = f".{text}"
            normalized.append(text)
        if not normalized:
            raise ValueError("markdown_suffixes must name at least one suffix.")
        return normalized

    @property
    def resolved_layouts_dir(self) -> Path:
        if self.layouts_dir is not None:
            return self.layouts_dir
        return self.content_dir / DEFAULT_LAYOUTS_DIRNAME


def load_config(
    content_dir: str | Path,
    *,
    config_path: str | Path | None = None,
    **overrides: Any,
) -> Config:
    """Load configuration for a content root.

    ``config_path`` defaults to ``pagesmith.yml`` inside ``content_dir`` and may
    be absent. Relative paths in the file resolve against the file's
    directory; ``overrides`` (typically CLI options) win over file values and
    are resolved against the working directory. ``None`` overrides are ignored.
    """
    root = Path(content_dir)
    if not root.is_dir():
        raise ConfigurationError(f"Content directory '{root}' does not exist.")

    if config_path is None:
        candidate = root / CONFIG_FILENAME
        data = _read_yaml(candidate) if candidate.exists() else {}
        base_dir = root.resolve()
    else:
        candidate = Path(config_path)
        if not candidate.is_file():
            raise ConfigurationError(f"Config file '{candidate}' not found.")
        data = _read_yaml(candidate)
        base_dir = candidate.parent.resolve()

    data.pop("content_dir", None)
    try:
        cfg = Config(**data)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid configuration in {candidate}: {exc}") from exc

    def _abs(value: Path, anchor: Path) -> Path:
        return value if value.is_absolute() else (anchor / value).resolve()

    cfg.content_dir = root.resolve()
    cfg.output_dir = _abs(cfg.output_dir, base_dir)
    if cfg.layouts_dir is not None:
        cfg.layouts_dir = _abs(cfg.layouts_dir, base_dir)

    cwd = Path.cwd()
    for key, value in overrides.items():
        if value is None:
            continue
        if key not in Config.model_fields:
            raise ConfigurationError(f"Unknown configuration option '{key}'.")
        if key in {"output_dir", "layouts_dir"}:
            value = _abs(Path(value), cwd)
        setattr(cfg, key, value)

    if cfg.workers < 1:
        raise ConfigurationError("workers must be at least 1.")
    return cfg


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        with path.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle) or {}
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigurationError(f"Failed to read config {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config {path} must define a mapping at its root.")
    return data
