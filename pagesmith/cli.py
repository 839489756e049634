"""CLI entrypoints for pagesmith."""

import logging
import shutil
import time
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from .builder import BuildResult, SiteBuilder
from .config import CONFIG_FILENAME, Config, load_config
from .errors import ConfigurationError, IOFailure
from .markdown import DEFAULT_LINK_SUFFIXES
from .reporting import assemble_report, write_report

EXIT_OK = 0
EXIT_FILE_FAILURES = 1
EXIT_CONFIGURATION = 2

console = Console()
app = typer.Typer(help="pagesmith static page builder.")

ContentDirArgument = Annotated[
    Path,
    typer.Argument(..., help="Directory holding markdown sources."),
]
LayoutsOption = Annotated[
    Optional[Path],
    typer.Option("--layouts", "-l", help="Layouts directory (default: <content>/_layouts)."),
]
ConfigPathOption = Annotated[
    Optional[Path],
    typer.Option("--config", "-c", help="Path to configuration file (default: <content>/pagesmith.yml)."),
]


@app.callback()
def main(
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Log per-file progress."),
    ] = False,
) -> None:
    """Render markdown content into layout-wrapped HTML pages."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


@app.command()
def build(
    content_dir: ContentDirArgument,
    output_dir: Annotated[
        Path,
        typer.Argument(..., help="Directory receiving the rendered site."),
    ],
    layouts: LayoutsOption = None,
    config_path: ConfigPathOption = None,
    workers: Annotated[
        Optional[int],
        typer.Option("--workers", "-w", min=1, max=64, help="Render files on this many threads."),
    ] = None,
    static: Annotated[
        Optional[bool],
        typer.Option("--static/--no-static", help="Copy non-markdown files into the output."),
    ] = None,
    report_path: Annotated[
        Optional[Path],
        typer.Option("--report", "-r", help="Write a JSON build report to this path."),
    ] = None,
) -> None:
    """Build every content file into OUTPUT_DIR."""
    config = _load(
        content_dir,
        config_path,
        output_dir=output_dir,
        layouts_dir=layouts,
        workers=workers,
        copy_static=static,
    )
    start = time.perf_counter()
    result = _run(config, check_only=False)
    duration = time.perf_counter() - start

    _print_failures(result, config)
    console.print(
        "[bold green]Pages[/]: "
        f"rendered {len(result.pages)} page(s) into {_display_path(config.output_dir)}"
    )
    if result.copied:
        console.print(f"[bold green]Static files[/]: copied {len(result.copied)} file(s)")

    if report_path is not None:
        report = assemble_report(
            result,
            content_dir=config.content_dir,
            output_dir=config.output_dir,
            duration_seconds=duration,
        )
        try:
            target = write_report(report, report_path)
        except IOFailure as exc:
            console.print(f"[bold red]Failed to write report[/]: {exc}")
            raise typer.Exit(code=EXIT_FILE_FAILURES) from exc
        console.print(f"[bold green]Report[/]: {_display_path(target)} (duration {duration:.2f}s)")

    _finish(result)


@app.command()
def check(
    content_dir: ContentDirArgument,
    layouts: LayoutsOption = None,
    config_path: ConfigPathOption = None,
) -> None:
    """Parse and render every document without writing output."""
    config = _load(content_dir, config_path, layouts_dir=layouts)
    result = _run(config, check_only=True)
    _print_failures(result, config)
    if result.ok:
        console.print(f"[bold green]Check clean[/]: {len(result.pages)} document(s) render.")
    _finish(result)


@app.command()
def clean(
    output_dir: Annotated[
        Path,
        typer.Argument(..., help="Generated site directory to remove."),
    ],
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Remove the directory even if it holds content sources."),
    ] = False,
) -> None:
    """Remove a generated site directory."""
    if not output_dir.exists():
        console.print(f"[bold yellow]Skipping[/]: {_display_path(output_dir)} not found")
        raise typer.Exit()
    if not output_dir.is_dir():
        console.print(f"[bold red]Not a directory[/]: {_display_path(output_dir)}")
        raise typer.Exit(code=EXIT_CONFIGURATION)
    if not force:
        reason = _source_marker(output_dir)
        if reason is not None:
            console.print(
                f"[bold red]Refusing to remove[/]: {escape(_display_path(output_dir))} {reason}; "
                "pass --force to remove it anyway.",
                soft_wrap=True,
            )
            raise typer.Exit(code=EXIT_CONFIGURATION)
    shutil.rmtree(output_dir)
    console.print(f"[bold green]Removed[/]: {_display_path(output_dir)}")


def _load(content_dir: Path, config_path: Path | None, **overrides: object) -> Config:
    try:
        return load_config(content_dir, config_path=config_path, **overrides)
    except ConfigurationError as exc:
        console.print(f"[bold red]Configuration error[/]: {exc}")
        raise typer.Exit(code=EXIT_CONFIGURATION) from exc


def _run(config: Config, *, check_only: bool) -> BuildResult:
    try:
        builder = SiteBuilder(config)
        return builder.check() if check_only else builder.build()
    except ConfigurationError as exc:
        console.print(f"[bold red]Configuration error[/]: {exc}")
        raise typer.Exit(code=EXIT_CONFIGURATION) from exc
    except OSError as exc:
        console.print(f"[bold red]Cannot prepare output[/]: {exc}")
        raise typer.Exit(code=EXIT_CONFIGURATION) from exc


def _print_failures(result: BuildResult, config: Config) -> None:
    if not result.failures:
        return
    console.print(f"[bold red]Failures[/]: {len(result.failures)} file(s) could not be built.")
    for failure in result.failures:
        location = _display_path(failure.path, root=config.content_dir)
        console.print(
            f"[bold red]{failure.kind}[/] {escape(location)} - {escape(failure.message)}",
            soft_wrap=True,
        )


def _source_marker(directory: Path) -> str | None:
    """Describe why ``directory`` looks like a source tree rather than build output."""
    resolved = directory.resolve()
    if resolved in {Path.home().resolve(), Path.cwd().resolve()} or resolved.parent == resolved:
        return "is the home, working or root directory"
    if (directory / CONFIG_FILENAME).exists():
        return f"contains {CONFIG_FILENAME}"
    for path in directory.rglob("*"):
        if path.is_file() and path.suffix.lower() in DEFAULT_LINK_SUFFIXES:
            return f"contains markdown sources such as {path.relative_to(directory).as_posix()}"
    return None


def _finish(result: BuildResult) -> None:
    raise typer.Exit(code=EXIT_OK if result.ok else EXIT_FILE_FAILURES)


def _display_path(path: Path, root: Path | None = None) -> str:
    for anchor in (root, Path.cwd()):
        if anchor is None:
            continue
        try:
            return path.relative_to(anchor).as_posix()
        except ValueError:
            continue
    return path.as_posix()
