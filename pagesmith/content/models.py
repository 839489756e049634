"""Typed representations of source documents and rendered pages."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

TRUTHY_VALUES = {"1", "true", "yes", "on"}


class ContentDocument(BaseModel):
    """A parsed source file: front matter plus raw markdown body."""

    model_config = ConfigDict(frozen=True)

    path: Path = Field(description="Path to the source file.")
    relative_path: Path = Field(description="Source path relative to the content root.")
    front_matter: dict[str, str] = Field(default_factory=dict)
    body: str = Field(default="", description="Raw markdown body.")

    @property
    def layout(self) -> Optional[str]:
        value = self.front_matter.get("layout", "").strip()
        return value or None

    @property
    def title(self) -> Optional[str]:
        value = self.front_matter.get("title", "").strip()
        return value or None

    @property
    def comments(self) -> bool:
        """Whether comments are requested; carried for layouts only."""
        return self.front_matter.get("comments", "").strip().lower() in TRUTHY_VALUES


class RenderedPage(BaseModel):
    """Final HTML for one document, addressed relative to the output root."""

    output_path: Path = Field(description="Destination path relative to the output root.")
    html: str
    source_path: Optional[Path] = Field(default=None)
