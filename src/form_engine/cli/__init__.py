"""CLI package: Typer-based command-line interface.

Usage:
    form-engine --help
    python -m form_engine.cli compile gmail --values '{"operation": "read"}'
"""

from form_engine.cli._app import app

# Register command modules (side-effect imports)
import form_engine.cli.cmd_validate  # noqa: F401
import form_engine.cli.cmd_compile  # noqa: F401

__all__ = ["app"]
