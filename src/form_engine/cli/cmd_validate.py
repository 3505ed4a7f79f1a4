"""Validate and blocks commands: load-time schema checks."""

from pathlib import Path
from typing import List

import typer

from form_engine.cli._app import app
from form_engine.cli._common import ensure_initialized
from form_engine.cli._console import console, output_table, print_err, print_ok, print_problems
from form_engine.config import SettingsError
from form_engine.errors import SchemaError
from form_engine.runtime.registry import get_registry
from form_engine.runtime.schema_loader import find_schema_files, load_schema_file


def _expand_paths(paths: List[Path]) -> List[Path]:
    files = []
    for path in paths:
        if path.is_dir():
            files.extend(find_schema_files(path))
        else:
            files.append(path)
    return files


@app.command("validate", help="Validate block schema files (files or directories).")
def validate_cmd(
    ctx: typer.Context,
    paths: List[Path] = typer.Argument(..., help="Schema files or directories to validate"),
):
    """Load each schema and report every problem found."""
    files = _expand_paths(paths)
    if not files:
        print_err("No schema files found")
        raise SystemExit(1)

    rows = []
    failed = 0
    for path in files:
        try:
            schema = load_schema_file(path)
        except SchemaError as e:
            failed += 1
            rows.append({"path": str(path), "block_type": e.block_type, "valid": False, "problems": e.problems})
            if not ctx.obj["json"]:
                print_err(f"{path}")
                print_problems(e.problems)
            continue

        rows.append({"path": str(path), "block_type": schema.block_type, "valid": True, "problems": []})
        if not ctx.obj["json"] and not ctx.obj["quiet"]:
            print_ok(f"{path} ({schema.block_type}, {len(schema.fields)} fields)")

    if ctx.obj["json"]:
        output_table(rows, ctx=ctx)
    elif not ctx.obj["quiet"]:
        console.print(f"\n{len(files) - failed}/{len(files)} schema(s) valid")

    if failed:
        raise SystemExit(1)


@app.command("blocks", help="List registered block types.")
def blocks_cmd(ctx: typer.Context):
    """Show block types loaded from bundled and configured schema directories."""
    try:
        ensure_initialized(ctx)
    except SchemaError as e:
        print_err("Block schemas failed to load")
        print_problems(e.problems)
        raise SystemExit(1)
    except SettingsError as e:
        print_err(str(e))
        raise SystemExit(1)

    registry = get_registry()
    rows = []
    for block_type in registry.block_types():
        schema = registry.get(block_type)
        rows.append({
            "block_type": block_type,
            "version": schema.version,
            "fields": len(schema.fields),
            "actions": ", ".join(sorted(schema.requirements)),
        })
    output_table(rows, ctx=ctx, title="Block schemas")
