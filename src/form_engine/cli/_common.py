"""Shared helpers for CLI commands."""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import typer
from rich.logging import RichHandler

from form_engine.cli._console import console
from form_engine.runtime.registry import get_registry
from form_engine.runtime.schema_loader import SCHEMA_SUFFIXES, load_schema_file
from form_engine.schemas.form_schema import FormSchema
from form_engine.startup import ensure_initialized as _ensure_initialized

ENGINE_LOGGER = "form_engine"


def setup_logging(*, verbose: bool = False, quiet: bool = False) -> None:
    """Route engine logs to the stderr console.

    --verbose and --quiet pin the level; otherwise the configured
    ``log_level`` applies once block schemas are loaded.
    """
    handler = RichHandler(console=console, show_path=False, markup=False, rich_tracebacks=True)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(logging.INFO)

    engine_logger = logging.getLogger(ENGINE_LOGGER)
    if verbose:
        engine_logger.setLevel(logging.DEBUG)
    elif quiet:
        engine_logger.setLevel(logging.WARNING)
    else:
        engine_logger.setLevel(logging.NOTSET)


def ensure_initialized(ctx: typer.Context) -> None:
    """Load environment, settings and block schemas, then apply the configured log level."""
    state = _ensure_initialized()
    if not (ctx.obj["verbose"] or ctx.obj["quiet"]):
        logging.getLogger(ENGINE_LOGGER).setLevel(state.settings.log_level)


def resolve_schema(block: str, ctx: typer.Context) -> FormSchema:
    """Resolve a block argument: a schema file path, or a registered block type.

    Raises:
        SchemaError: If the file or a registered schema is invalid
        SettingsError: If the engine settings are invalid
        KeyError: If no such block type is registered
    """
    path = Path(block)
    if path.suffix.lower() in SCHEMA_SUFFIXES or path.exists():
        return load_schema_file(path)
    ensure_initialized(ctx)
    return get_registry().get(block)


def parse_values(values: Optional[str], values_file: Optional[str]) -> Dict[str, Any]:
    """Parse runtime values from inline JSON or a JSON file.

    Raises:
        ValueError: If the JSON is invalid or not an object
    """
    if values and values_file:
        raise ValueError("Use either --values or --values-file, not both")

    if values_file:
        try:
            with open(values_file, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            raise ValueError(f"Values file not found: {values_file}")
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in {values_file}: {e}")
    elif values:
        try:
            data = json.loads(values)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in --values: {e}")
    else:
        data = {}

    if not isinstance(data, dict):
        raise ValueError("Values must be a JSON object (field id -> value)")
    return data
