"""Run the pagesmith test suite with the project virtual environment when present."""

from __future__ import annotations

import os
import subprocess
import sys
from pathlib import Path


def _venv_python(root: Path) -> Path | None:
    override = os.environ.get("PAGESMITH_PYTHON")
    if override:
        return Path(override)
    scripts_dir = "Scripts" if os.name == "nt" else "bin"
    executable = "python.exe" if os.name == "nt" else "python"
    for venv in (".venv", "venv"):
        candidate = root / venv / scripts_dir / executable
        if candidate.exists():
            return candidate
    return None


def main(argv: list[str] | None = None) -> int:
    argv = [] if argv is None else argv
    root = Path(__file__).resolve().parents[1]
    python = str(_venv_python(root) or sys.executable)

    cmd = [python, "-m", "pytest", "-q", "tests", *argv]
    return subprocess.call(cmd, cwd=root)


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
