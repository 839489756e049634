"""Build reporting helpers."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path

from pydantic import BaseModel, Field

from .builder import BuildResult
from .errors import IOFailure


class FailureEntry(BaseModel):
    path: str
    kind: str
    message: str


class BuildReport(BaseModel):
    content_dir: str
    output_dir: str
    generated_at: datetime
    duration_seconds: float
    pages: int
    static_files: int
    failures: list[FailureEntry] = Field(default_factory=list)

    @property
    def exit_code(self) -> int:
        return 1 if self.failures else 0


def assemble_report(
    result: BuildResult,
    *,
    content_dir: Path,
    output_dir: Path,
    duration_seconds: float,
) -> BuildReport:
    failures = [
        FailureEntry(path=_relative(failure.path, content_dir), kind=failure.kind, message=failure.message)
        for failure in result.failures
    ]
    return BuildReport(
        content_dir=content_dir.as_posix(),
        output_dir=output_dir.as_posix(),
        generated_at=datetime.now(timezone.utc),
        duration_seconds=duration_seconds,
        pages=len(result.pages),
        static_files=len(result.copied),
        failures=failures,
    )


def write_report(report: BuildReport, target: Path) -> Path:
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        with target.open("w", encoding="utf-8") as handle:
            json.dump(report.model_dump(mode="json"), handle, ensure_ascii=False, indent=2)
    except OSError as exc:
        raise IOFailure(f"Unable to write report {target}: {exc}", path=target) from exc
    return target


def _relative(path: Path, root: Path) -> str:
    try:
        return path.relative_to(root).as_posix()
    except ValueError:
        return path.as_posix()
