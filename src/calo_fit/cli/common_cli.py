"""Shared helpers for click-based `calo-fit` commands."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import click

EXIT_OK = 0
EXIT_INPUT_ERROR = 1
EXIT_FIT_FAILURE = 2

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class CaloFitCliError(click.ClickException):
    """Click exception with explicit exit-code control."""

    def __init__(self, message: str, *, exit_code: int = EXIT_INPUT_ERROR) -> None:
        super().__init__(message)
        self.exit_code = int(exit_code)


class ClickEchoHandler(logging.Handler):
    """Logging handler writing through ``click.echo`` to the current stderr."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            click.echo(self.format(record), err=True)
        except Exception:
            self.handleError(record)


def configure_logging(level: int, logger_name: str = "calo_fit") -> None:
    """Route library diagnostics to stderr at ``level``."""
    logger = logging.getLogger(logger_name)
    for handler in list(logger.handlers):
        if isinstance(handler, ClickEchoHandler):
            logger.removeHandler(handler)
    handler = ClickEchoHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    logger.setLevel(level)


def write_fit_payload(payload: dict[str, Any], out_path: Path | None) -> None:
    """Write a fit payload as sorted, indented JSON; ``None`` means stdout."""
    text = json.dumps(payload, sort_keys=True, indent=2)
    if out_path is None:
        click.echo(text)
        return
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(text + "\n", encoding="utf-8")


def load_cluster_document(path: Path) -> dict[str, Any]:
    """Read a cluster JSON document, turning I/O and syntax problems into CLI errors."""
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise CaloFitCliError(f"Cluster file not found: {path}") from exc
    except OSError as exc:
        raise CaloFitCliError(f"Cannot read cluster file {path}: {exc.strerror or exc}") from exc

    try:
        document = json.loads(text)
    except json.JSONDecodeError as exc:
        raise CaloFitCliError(
            f"Cluster file {path} is not valid JSON (line {exc.lineno}, column {exc.colno}): {exc.msg}"
        ) from exc

    if not isinstance(document, dict):
        raise CaloFitCliError(
            f"Cluster file {path} must hold a JSON object with a 'hits' list, got {type(document).__name__}"
        )
    return document


def resolve_fit_output_path(output_arg: str | None) -> Path | None:
    """Path for the fit payload, or ``None`` for stdout ('-' or empty)."""
    value = (output_arg or "").strip()
    if value in {"", "-"}:
        return None
    return Path(value)
