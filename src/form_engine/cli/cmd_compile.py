"""Visible and compile commands: request-time evaluation of a block form."""

from typing import Optional

import typer

from form_engine.cli._app import app
from form_engine.cli._common import parse_values, resolve_schema
from form_engine.cli._console import output_result, output_violations, print_err, print_ok, print_problems
from form_engine.config import SettingsError
from form_engine.engine import compile_form, evaluate_form
from form_engine.errors import SchemaError, ValidationError
from form_engine.schemas.form_schema import FormSchema


def _load_inputs(ctx: typer.Context, block: str, values: Optional[str], values_file: Optional[str]):
    try:
        schema = resolve_schema(block, ctx)
    except SchemaError as e:
        print_err(f"Invalid schema: {block}")
        print_problems(e.problems)
        raise SystemExit(1)
    except SettingsError as e:
        print_err(str(e))
        raise SystemExit(1)
    except KeyError:
        print_err(f"Unknown block type: {block}")
        raise SystemExit(1)

    try:
        runtime_values = parse_values(values, values_file)
    except ValueError as e:
        print_err(str(e))
        raise SystemExit(1)
    return schema, runtime_values


def _state_summary(schema: FormSchema, runtime_values: dict) -> dict:
    state = evaluate_form(schema, runtime_values)
    return {
        "block_type": schema.block_type,
        "visible": [fid for fid in schema.field_order if fid in state.visible],
        "active": [fid for fid in schema.field_order if fid in state.active],
        "not_ready": {
            fid: signal.missing for fid, signal in state.not_ready.items() if fid in state.visible
        },
        "required": list(state.required),
        "canonical_values": dict(state.canonical_values),
    }


@app.command("visible", help="Show visible, active and unready fields for given values.")
def visible_cmd(
    ctx: typer.Context,
    block: str = typer.Argument(..., help="Block type or schema file path"),
    values: str = typer.Option(None, "--values", help="Runtime values as a JSON object"),
    values_file: str = typer.Option(None, "--values-file", help="JSON file with runtime values"),
):
    """Evaluate visibility and readiness of every field."""
    schema, runtime_values = _load_inputs(ctx, block, values, values_file)

    output_result(_state_summary(schema, runtime_values), ctx=ctx, title=f"{schema.block_type} form")


@app.command("compile", help="Compile runtime values into the selected action's payload.")
def compile_cmd(
    ctx: typer.Context,
    block: str = typer.Argument(..., help="Block type or schema file path"),
    values: str = typer.Option(None, "--values", help="Runtime values as a JSON object"),
    values_file: str = typer.Option(None, "--values-file", help="JSON file with runtime values"),
):
    """Select the action and validate/shape its payload; exits 1 when invalid."""
    schema, runtime_values = _load_inputs(ctx, block, values, values_file)

    result = compile_form(schema, runtime_values)

    if ctx.obj["json"]:
        output_result(result.to_dict(), ctx=ctx)
    elif result.ok:
        print_ok(f"Action '{result.action_id}' compiled")
        output_result(result.payload, ctx=ctx, title="payload")
    elif isinstance(result.error, ValidationError):
        print_err(f"Compilation failed for action '{result.action_id}'")
        output_violations(result.error.violations)
    else:
        print_err("Compilation failed")
        print_problems(result.error.messages)

    if not result.ok:
        raise SystemExit(1)
