import io
import logging
import typer
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import List, Optional

from xmlnorm.config import ConfigManager, NormalizerConfig, resolve_config_file
from xmlnorm.errors import NormalizeError
from xmlnorm.logging_utils import setup_logging
from xmlnorm.normalizer import Normalizer
from xmlnorm.testing import diff_xml

logger = logging.getLogger(__name__)

EXIT_DIFFERENT = 1
EXIT_ERROR = 2

app = typer.Typer(help="Normalize and compare XML documents.")


class LogLevel(str, Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


@dataclass
class GlobalOptions:
    log_level: LogLevel
    config_file: Optional[Path]
    override_configs: Optional[List[str]]


@app.callback()
def main_callback(
    ctx: typer.Context,
    log_level: LogLevel = typer.Option(LogLevel.WARNING, "--log-level", help="Set the log level for console output."),
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to the configuration TOML file. Defaults to config.toml in XDG config home or xmlnorm.toml in CWD."),
    override_configs: List[str] = typer.Option(None, "--set", help="Override configuration settings using path.to.key=value format. Can be used multiple times."),
):
    """xmlnorm CLI"""
    setup_logging(log_level.value)
    ctx.obj = GlobalOptions(log_level=log_level, config_file=config_file, override_configs=override_configs)


def _load_config(ctx: typer.Context, omit_whitespace: Optional[bool], omit_comments: Optional[bool]) -> NormalizerConfig:
    global_opts: GlobalOptions = ctx.obj
    try:
        manager = ConfigManager(resolve_config_file(global_opts.config_file))
        return manager.get_normalizer_config(
            global_opts.override_configs,
            omit_whitespace=omit_whitespace,
            omit_comments=omit_comments,
        )
    except ValueError as e:
        logger.error("%s", e)
        raise typer.Exit(code=EXIT_ERROR)


@app.command()
def normalize(
    ctx: typer.Context,
    input_file: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True, help="XML file to normalize."),
    output_file: Optional[Path] = typer.Option(None, "--output", "-o", help="Write the normalized XML to this file instead of stdout."),
    omit_whitespace: Optional[bool] = typer.Option(None, "--omit-whitespace/--keep-whitespace", help="Drop text that consists only of whitespace."),
    omit_comments: Optional[bool] = typer.Option(None, "--omit-comments/--keep-comments", help="Drop XML comments."),
):
    """Writes the normalized form of an XML file."""
    config = _load_config(ctx, omit_whitespace, omit_comments)
    buffer = io.BytesIO()
    try:
        with open(input_file, "rb") as source:
            Normalizer(config).normalize(buffer, source)
    except NormalizeError as e:
        logger.error("Could not normalize %s: %s", input_file, e)
        raise typer.Exit(code=EXIT_ERROR)

    if output_file is None:
        typer.echo(buffer.getvalue().decode("utf-8"))
    else:
        output_file.write_bytes(buffer.getvalue())
        logger.info("Wrote normalized XML to %s", output_file)


@app.command()
def compare(
    ctx: typer.Context,
    file_a: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True, help="First XML file."),
    file_b: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True, help="Second XML file."),
    show_diff: bool = typer.Option(False, "--diff", help="Print a diff of the normalized documents when they differ."),
    omit_whitespace: Optional[bool] = typer.Option(None, "--omit-whitespace/--keep-whitespace", help="Drop text that consists only of whitespace."),
    omit_comments: Optional[bool] = typer.Option(None, "--omit-comments/--keep-comments", help="Drop XML comments."),
):
    """Exits with 0 if both files normalize identically, 1 if not, 2 on errors."""
    config = _load_config(ctx, omit_whitespace, omit_comments)
    try:
        with open(file_a, "rb") as a, open(file_b, "rb") as b:
            equal = Normalizer(config).equal_xml(a, b)
        diff = "" if equal or not show_diff else diff_xml(file_a.read_bytes(), file_b.read_bytes(), config)
    except NormalizeError as e:
        logger.error("Could not compare %s and %s: %s", file_a, file_b, e)
        raise typer.Exit(code=EXIT_ERROR)

    if equal:
        typer.echo("equal")
        return
    typer.echo("different")
    if diff:
        typer.echo(diff)
    raise typer.Exit(code=EXIT_DIFFERENT)


if __name__ == "__main__":
    app()
