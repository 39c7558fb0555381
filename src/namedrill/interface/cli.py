"""NameDrill CLI: root commands and subgroup registration."""

import json
import logging
import os
import sys
from pathlib import Path
from typing import Annotated

import typer

from namedrill.application.config import AppConfig, config_files
from namedrill.application.factory import get_deck_service
from namedrill.interface._common import _resolve_with_overrides, cli_errors

# ---------------------------------------------------------------------------
# Root app
# ---------------------------------------------------------------------------

app = typer.Typer(
    help="namedrill: learn the names that go with the faces.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s:%(name)s:%(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)

LOG_FILE_NAME = "namedrill.log"

_file_handler: logging.FileHandler | None = None


def verbosity_level(verbose: int) -> int:
    """0 is quiet (warnings only), 1 is INFO, 2 and up is DEBUG."""
    if verbose <= 0:
        return logging.WARNING
    if verbose == 1:
        return logging.INFO
    return logging.DEBUG


def setup_logging(config: AppConfig) -> None:
    """Apply the configured verbosity and mirror namedrill logs into log_dir."""
    global _file_handler

    root = logging.getLogger("namedrill")
    root.setLevel(verbosity_level(config.verbose))

    log_file = os.path.abspath(config.log_dir / LOG_FILE_NAME)
    if _file_handler is not None:
        if _file_handler.baseFilename == log_file:
            return
        root.removeHandler(_file_handler)
        _file_handler.close()
        _file_handler = None

    try:
        config.log_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        logger.warning(f"Cannot create log directory {config.log_dir}: {e}")
        return

    handler = logging.FileHandler(log_file, encoding="utf-8", delay=True)
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s:%(name)s:%(message)s"))
    root.addHandler(handler)
    _file_handler = handler


# ---------------------------------------------------------------------------
# Register subgroups
# ---------------------------------------------------------------------------

from namedrill.interface.deck_commands import deck_app, person_app  # noqa: E402
from namedrill.interface.study_commands import study  # noqa: E402

app.add_typer(deck_app, name="deck")
app.add_typer(person_app, name="person")
app.command("study")(study)

config_app = typer.Typer(help="Manage namedrill configuration.", no_args_is_help=True)
app.add_typer(config_app, name="config")


# ---------------------------------------------------------------------------
# Global callback
# ---------------------------------------------------------------------------


@app.callback()
def main_callback(
    ctx: typer.Context,
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose", "-v", count=True, help="Increase verbosity. Repeat for more detail."
        ),
    ] = 0,
    data_file: Annotated[
        Path | None, typer.Option("--data-file", help="Deck file to use instead of the default.")
    ] = None,
):
    """Global settings for namedrill."""
    ctx.ensure_object(dict)
    # Each -v adds to the INFO baseline; without the flag, env and TOML decide.
    ctx.obj["overrides"] = {
        "data_file": data_file,
        "verbose": 1 + verbose if verbose else None,
    }
    setup_logging(_resolve_with_overrides(ctx))


# ---------------------------------------------------------------------------
# Root commands
# ---------------------------------------------------------------------------


@app.command("export")
def export_cmd(
    ctx: typer.Context,
    output: Annotated[
        Path | None, typer.Option("--output", "-o", help="Write to a file instead of stdout.")
    ] = None,
):
    """Export every deck as a JSON backup."""
    service = get_deck_service(_resolve_with_overrides(ctx))
    with cli_errors():
        data = service.export_data()

    if output is None:
        typer.echo(data)
        return

    output.write_text(data, encoding="utf-8")
    typer.secho(f"Backup written to {output}", fg="green", err=True)


@app.command("import")
def import_cmd(
    ctx: typer.Context,
    path: Annotated[Path, typer.Argument(help="Backup file produced by 'namedrill export'.")],
    force: Annotated[bool, typer.Option("--force", "-f", help="Skip confirmation.")] = False,
):
    """Replace all decks with a JSON backup."""
    service = get_deck_service(_resolve_with_overrides(ctx))
    if not path.exists():
        typer.secho(f"No such file: {path}", fg="red", err=True)
        raise typer.Exit(1)

    if not force:
        typer.confirm("Importing replaces all existing decks. Continue?", abort=True)

    with cli_errors():
        count = service.import_data(path.read_text(encoding="utf-8"))
    typer.secho(f"Imported {count} deck(s).", fg="green")


@app.command()
def serve(
    ctx: typer.Context,
    port: Annotated[int | None, typer.Option(help="Port to bind the server to.")] = None,
    host: Annotated[str | None, typer.Option(help="Host to bind the server to.")] = None,
    reload: Annotated[bool, typer.Option(help="Enable auto-reload.")] = False,
):
    """Run the local companion API for front-ends."""
    import uvicorn

    config = _resolve_with_overrides(ctx, port=port, host=host)
    # The server process resolves its own config; hand the deck file over via env.
    os.environ["NAMEDRILL_DATA_FILE"] = str(config.data_file)

    uvicorn.run("namedrill.server:app", host=config.host, port=config.port, reload=reload)


@app.command()
def logs(ctx: typer.Context):
    """Open the log directory."""
    import subprocess

    config = _resolve_with_overrides(ctx)
    if not config.log_dir.exists():
        config.log_dir.mkdir(parents=True, exist_ok=True)

    if sys.platform == "darwin":
        subprocess.run(["open", str(config.log_dir)])
    elif sys.platform == "win32":
        os.startfile(str(config.log_dir))
    else:
        subprocess.run(["xdg-open", str(config.log_dir)])


# ---------------------------------------------------------------------------
# Config subgroup
# ---------------------------------------------------------------------------


@config_app.command("show")
def config_show(ctx: typer.Context):
    """Display final resolved configuration."""
    config = _resolve_with_overrides(ctx)
    d = {k: str(v) if isinstance(v, Path) else v for k, v in config.model_dump().items()}
    typer.echo(json.dumps(d, indent=2))


@config_app.command("open")
def config_open():
    """Open the config file in your default editor."""
    import subprocess

    cfg_path = config_files()[0]
    if not cfg_path.exists():
        cfg_path.parent.mkdir(parents=True, exist_ok=True)
        cfg_path.touch()

    if sys.platform == "darwin":
        subprocess.run(["open", str(cfg_path)])
    elif sys.platform == "win32":
        os.startfile(str(cfg_path))
    else:
        subprocess.run(["xdg-open", str(cfg_path)])


def main():
    app()


if __name__ == "__main__":
    main()
