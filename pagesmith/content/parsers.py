"""Split source files into front matter and body."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping

import yaml

from ..errors import IOFailure, MalformedFrontMatter
from .models import ContentDocument

DELIMITER = "---"
BOM = "\ufeff"


def split_front_matter(text: str) -> tuple[dict[str, str], str]:
    """Return the front-matter mapping and the remaining body.

    Text that does not open with a ``---`` line is returned unchanged with an
    empty mapping. Values are kept as strings.
    """
    source = text[1:] if text.startswith(BOM) else text
    lines = source.splitlines(keepends=True)
    if not lines or lines[0].strip() != DELIMITER:
        return {}, text

    front_lines: list[str] = []
    for idx, line in enumerate(lines[1:], start=1):
        if line.strip() == DELIMITER:
            data = _parse_block("".join(front_lines))
            body = "".join(lines[idx + 1 :])
            return data, body
        front_lines.append(line)
    raise MalformedFrontMatter("Closing front matter delimiter '---' missing.")


def serialize_front_matter(data: Mapping[str, str]) -> str:
    """Render a mapping as a delimited front-matter block."""
    if not data:
        return f"{DELIMITER}\n{DELIMITER}\n"
    dumped = yaml.safe_dump(
        {str(key): str(value) for key, value in data.items()},
        default_flow_style=False,
        sort_keys=False,
        allow_unicode=True,
    )
    return f"{DELIMITER}\n{dumped}{DELIMITER}\n"


def load_document(path: str | Path, root: str | Path | None = None) -> ContentDocument:
    """Read a UTF-8 source file into a ``ContentDocument``."""
    source_path = Path(path)
    try:
        text = source_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise IOFailure(f"Unable to read {source_path}: {exc}", path=source_path) from exc

    try:
        front_matter, body = split_front_matter(text)
    except MalformedFrontMatter as exc:
        exc.path = source_path
        raise

    relative = source_path
    if root is not None:
        try:
            relative = source_path.relative_to(root)
        except ValueError:
            relative = Path(source_path.name)

    return ContentDocument(
        path=source_path,
        relative_path=relative,
        front_matter=front_matter,
        body=body,
    )


def _parse_block(raw: str) -> dict[str, str]:
    if not raw.strip():
        return {}
    try:
        data: Any = yaml.load(raw, Loader=yaml.BaseLoader)
    except yaml.YAMLError as exc:
        raise MalformedFrontMatter(f"Front matter is not valid 'key: value' data: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise MalformedFrontMatter("Front matter must be a mapping of 'key: value' lines.")

    parsed: dict[str, str] = {}
    for key, value in data.items():
        if not isinstance(value, str):
            raise MalformedFrontMatter(f"Front matter key '{key}' must have a scalar value.")
        parsed[str(key)] = value
    return parsed
