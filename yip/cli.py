"""Command line interface for yip."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Sequence

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from . import __version__
from .config import (
    Config,
    config_dir_context,
    config_file_path,
    load_config,
    remove_repository,
    set_repository,
)
from .errors import YipError
from .services.dependency_service import import_dependencies, update_dependencies
from .services.state_service import StateSummary, forget_files, has_state, summarize_state
from .state import StateDirectory
from .text import Messages, Styles
from .utils import format_path, resolve_directory

console = Console()
err_console = Console(stderr=True)

app = typer.Typer(
    help=Messages.APP_HELP,
    no_args_is_help=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _styled(text: str, style: str) -> str:
    return f"[{style}]{text}[/{style}]"


def _fail(message: str) -> typer.Exit:
    console.print(_styled(f"{Messages.ERROR_PREFIX}{message}", Styles.ERROR))
    return typer.Exit(code=1)


def _configure_logging(verbose: bool) -> None:
    handler = RichHandler(console=err_console, show_time=False, show_path=False)
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger = logging.getLogger("yip")
    logger.handlers = [handler]
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"yip v{__version__}")
        raise typer.Exit()


def _load_settings(ctx: typer.Context) -> Config:
    config_dir = (ctx.obj or {}).get("config_dir")
    with config_dir_context(config_dir):
        return load_config()


def _open_state(path: Path, config: Config) -> StateDirectory:
    directory = resolve_directory(path)
    return StateDirectory(directory, dir_name=config.state_dir_name)


@app.callback()
def main(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        "-v",
        callback=_version_callback,
        is_eager=True,
        help=Messages.HELP_VERSION,
    ),
    verbose: bool = typer.Option(False, "--verbose", help=Messages.HELP_VERBOSE),
    config_dir: Path | None = typer.Option(
        None,
        "--config-dir",
        help=Messages.HELP_CONFIG_DIR,
    ),
) -> None:
    """Global Typer callback for shared options."""
    _configure_logging(verbose)
    ctx.obj = {"config_dir": config_dir}


@app.command()
def status(
    ctx: typer.Context,
    path: Path = typer.Option(Path.cwd(), "--path", "-p", help=Messages.HELP_PROJECT_PATH),
    show_files: bool = typer.Option(False, "--files", help=Messages.HELP_STATUS_FILES),
) -> None:
    """Show what the build ledger knows about a project.

    A project without a state directory is reported as such and left alone.
    Opening an existing ledger validates it, which forgets tracked files when
    the project has moved.
    """
    try:
        config = _load_settings(ctx)
        directory = resolve_directory(path)
        if not has_state(directory, config.state_dir_name):
            console.print(
                _styled(
                    Messages.INFO_STATUS_NO_STATE.format(
                        path=directory / config.state_dir_name
                    ),
                    Styles.WARNING,
                )
            )
            _render_project_file(directory / config.project_file_name)
            return
        with _open_state(directory, config) as state:
            summary = summarize_state(
                state,
                include_files=show_files,
                project_file_name=config.project_file_name,
            )
    except (YipError, OSError) as exc:
        raise _fail(str(exc))
    _render_summary(summary, show_files=show_files)


@app.command("import")
def import_command(
    ctx: typer.Context,
    names: list[str] = typer.Argument(..., help=Messages.HELP_IMPORT_NAMES),
    path: Path = typer.Option(Path.cwd(), "--path", "-p", help=Messages.HELP_PROJECT_PATH),
) -> None:
    """Clone dependencies into the state directory (or reuse cached clones)."""
    try:
        config = _load_settings(ctx)
        with _open_state(path, config) as state:
            imported = import_dependencies(state, config, names)
    except (YipError, OSError) as exc:
        raise _fail(str(exc))
    for item in imported:
        message = Messages.INFO_IMPORT_CLONED if item.cloned else Messages.INFO_IMPORT_EXISTING
        style = Styles.SUCCESS if item.cloned else Styles.INFO
        console.print(_styled(message.format(name=item.name, path=item.path), style))


@app.command()
def update(
    ctx: typer.Context,
    path: Path = typer.Option(Path.cwd(), "--path", "-p", help=Messages.HELP_PROJECT_PATH),
) -> None:
    """Download the latest versions of every cached dependency."""
    try:
        config = _load_settings(ctx)
        with _open_state(path, config) as state:
            updates = update_dependencies(state)
    except (YipError, OSError) as exc:
        raise _fail(str(exc))
    if not updates:
        console.print(_styled(Messages.INFO_UPDATE_NONE, Styles.INFO))
        return
    for item in updates:
        name = item.url or item.path.name
        if item.changed:
            console.print(
                _styled(
                    Messages.INFO_UPDATE_CHANGED.format(
                        name=name,
                        before=_short_commit(item.previous_head),
                        after=_short_commit(item.head),
                    ),
                    Styles.SUCCESS,
                )
            )
        else:
            console.print(
                _styled(
                    Messages.INFO_UPDATE_CURRENT.format(name=name, head=_short_commit(item.head)),
                    Styles.INFO,
                )
            )


@app.command()
def forget(
    ctx: typer.Context,
    path: Path = typer.Option(Path.cwd(), "--path", "-p", help=Messages.HELP_PROJECT_PATH),
) -> None:
    """Discard tracked file records so every output is regenerated."""
    try:
        config = _load_settings(ctx)
        with _open_state(path, config) as state:
            removed = forget_files(state)
    except (YipError, OSError) as exc:
        raise _fail(str(exc))
    plural = "" if removed == 1 else "s"
    console.print(
        _styled(Messages.INFO_FORGET_DONE.format(count=removed, plural=plural), Styles.SUCCESS)
    )


@app.command()
def config(
    ctx: typer.Context,
    set_repo: list[str] | None = typer.Option(None, "--set-repo", help=Messages.HELP_SET_REPO),
    remove_repo: list[str] | None = typer.Option(
        None,
        "--remove-repo",
        help=Messages.HELP_REMOVE_REPO,
    ),
    show: bool = typer.Option(False, "--show", help=Messages.HELP_SHOW_CONFIG),
) -> None:
    """Manage repository aliases stored in config.json."""
    config_dir = (ctx.obj or {}).get("config_dir")
    pairs = [_parse_repo_assignment(value) for value in set_repo or ()]
    try:
        with config_dir_context(config_dir):
            for name, url in pairs:
                set_repository(name, url)
                console.print(
                    _styled(Messages.INFO_REPO_SET.format(name=name, url=url), Styles.SUCCESS)
                )
            for name in remove_repo or ():
                if remove_repository(name):
                    console.print(
                        _styled(Messages.INFO_REPO_REMOVED.format(name=name), Styles.SUCCESS)
                    )
                else:
                    console.print(
                        _styled(Messages.INFO_REPO_MISSING.format(name=name), Styles.WARNING)
                    )
            if show or not (pairs or remove_repo):
                _render_config(load_config(), config_file_path())
    except (YipError, OSError) as exc:
        raise _fail(str(exc))


def _parse_repo_assignment(value: str) -> tuple[str, str]:
    name, sep, url = value.partition("=")
    if not sep or not name.strip() or not url.strip():
        raise typer.BadParameter(Messages.ERROR_REPO_FORMAT.format(value=value))
    return name.strip(), url.strip()


def _flag_marker(value: bool) -> str:
    try:
        "✓✗".encode(console.encoding or "ascii")
    except (LookupError, UnicodeError):
        return _styled("yes", Styles.SUCCESS) if value else _styled("no", Styles.ERROR)
    return _styled("✓", Styles.SUCCESS) if value else _styled("✗", Styles.ERROR)


def _short_commit(value: str | None) -> str:
    if not value:
        return "-"
    return value[:10]


def _render_config(config: Config, config_file: Path) -> None:
    repos = ", ".join(f"{name}={url}" for name, url in sorted(config.repos.items()))
    console.print(
        _styled(
            Messages.INFO_CONFIG_SUMMARY.format(
                path=config_file,
                project_file=config.project_file_name,
                state_dir=config.state_dir_name,
                repos=repos or "none",
            ),
            Styles.INFO,
        )
    )


def _render_summary(summary: StateSummary, *, show_files: bool) -> None:
    if summary.resynced:
        console.print(_styled(Messages.INFO_RESYNCED, Styles.WARNING))
    console.print(
        _styled(Messages.INFO_STATUS_HEADER.format(path=summary.state_path), Styles.TITLE)
    )
    console.print(
        _styled(
            Messages.INFO_STATUS_SUMMARY.format(
                root=summary.project_root,
                version=summary.schema_version,
                files=summary.file_count,
            ),
            Styles.INFO,
        )
    )
    if summary.project_file is not None:
        _render_project_file(summary.project_file)
    flags = Table(
        title=Messages.TABLE_FLAGS_TITLE,
        show_header=True,
        header_style=Styles.TABLE_HEADER,
    )
    flags.add_column(Messages.TABLE_HEADER_FLAG)
    flags.add_column(Messages.TABLE_HEADER_VALUE, justify="center")
    for name, value in summary.flags.items():
        flags.add_row(name, _flag_marker(value))
    console.print(flags)
    if not show_files:
        return
    _render_files(summary)


def _render_project_file(project_file: Path) -> None:
    if project_file.is_file():
        state, style = Messages.PROJECT_FILE_FOUND, Styles.INFO
    else:
        state, style = Messages.PROJECT_FILE_MISSING, Styles.WARNING
    console.print(
        _styled(Messages.INFO_PROJECT_FILE.format(path=project_file, state=state), style)
    )


def _render_files(summary: StateSummary) -> None:
    table = Table(
        title=Messages.TABLE_FILES_TITLE,
        show_header=True,
        header_style=Styles.TABLE_HEADER,
    )
    table.add_column(Messages.TABLE_HEADER_PATH, overflow="fold")
    table.add_column(Messages.TABLE_HEADER_SIZE, justify="right")
    table.add_column(Messages.TABLE_HEADER_DIGEST)
    table.add_column(Messages.TABLE_HEADER_STATE)
    for item in summary.files:
        if not item.exists:
            state = _styled(Messages.FILE_STATE_MISSING, Styles.ERROR)
        elif item.modified:
            state = _styled(Messages.FILE_STATE_MODIFIED, Styles.WARNING)
        else:
            state = Messages.FILE_STATE_OK
        table.add_row(
            format_path(Path(item.record.path), summary.state_path),
            str(item.record.size),
            item.record.digest[:12],
            state,
        )
    console.print(table)
    if summary.missing_count or summary.modified_count:
        console.print(
            _styled(
                Messages.INFO_STATUS_DRIFT.format(
                    missing=summary.missing_count,
                    modified=summary.modified_count,
                ),
                Styles.WARNING,
            )
        )


def run(argv: Sequence[str] | None = None) -> None:
    """Entry point wrapper allowing optional argument override."""
    if argv is None:
        app()
    else:
        app(args=list(argv))


if __name__ == "__main__":  # pragma: no cover
    run(sys.argv[1:])
