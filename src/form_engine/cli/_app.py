"""Root Typer application: global output and logging options."""

import typer

from form_engine.cli._common import setup_logging

app = typer.Typer(
    help="Resolve block forms and compile backend action payloads.",
    no_args_is_help=True,
    pretty_exceptions_enable=False,
)


@app.callback()
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log visibility, precedence and compile decisions"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Only schema warnings and errors"),
    json_output: bool = typer.Option(False, "--json", help="Write results as JSON to stdout"),
):
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["json"] = json_output
    setup_logging(verbose=verbose, quiet=quiet)
