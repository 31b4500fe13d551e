import json
from pathlib import Path

import click

from .chain import Chain
from .config import get_settings
from .exceptions import ChainIOError, ChainyError
from .logging import get_logger


def report_error(ctx, e):
    """
    Print an error as text or JSON based on --json-output flag, then exit with status 1.
    """
    if isinstance(e, ChainyError):
        error_info = {
            "status": "error",
            "error": type(e).__name__,
            "message": str(e),
            "details": e.details,
        }
        if ctx.obj.get("JSON_OUTPUT"):
            click.echo(json.dumps(error_info, indent=2, default=str))
        else:
            click.echo(f"ERROR: {type(e).__name__}: {str(e)}", err=True)
            if e.details:
                click.echo(f"Details: {e.details}", err=True)
        ctx.exit(1)

    error_info = {
        "status": "error",
        "message": "An unexpected error occurred.",
        "details": str(e),
    }
    if ctx.obj.get("JSON_OUTPUT"):
        click.echo(json.dumps(error_info, indent=2))
    else:
        click.echo(f"UNEXPECTED ERROR: {str(e)}", err=True)
    if ctx.obj.get("VERBOSE"):
        import traceback

        click.echo("".join(traceback.format_exception(e)), err=True)
    ctx.exit(1)


# Helper function for consistent error handling and output
def handle_chain_call(ctx, func, success_message, *args, **kwargs):
    """
    Calls a chain operation, handles errors, and prints output based on --json-output flag.
    """
    try:
        result = func(*args, **kwargs)
    except Exception as e:
        report_error(ctx, e)
    if hasattr(result, "to_dict"):
        result = result.to_dict()
    if ctx.obj.get("JSON_OUTPUT"):
        click.echo(json.dumps({"status": "success", "result": result}, indent=2))
    else:
        click.echo(f"SUCCESS: {success_message}")
        if isinstance(result, (list, dict)):
            click.echo(json.dumps(result, indent=2))
    return result


@click.group(context_settings=dict(help_option_names=["-h", "--help"]))
@click.option(
    "--file",
    "-f",
    "chain_path",
    type=click.Path(dir_okay=False, path_type=Path),
    envvar="CHAINY_CHAIN_PATH",
    help="Chain file to operate on. Can also be set via CHAINY_CHAIN_PATH env var.",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--json-output", "-j", is_flag=True, help="Output results in JSON format.")
@click.pass_context
def cli(ctx, chain_path, verbose, json_output):
    """chainy Command Line Interface for a tamper-evident append-only log."""
    settings = get_settings()
    ctx.ensure_object(dict)
    ctx.obj["CHAIN_PATH"] = chain_path or settings.chain_path
    ctx.obj["VERBOSE"] = verbose
    ctx.obj["JSON_OUTPUT"] = json_output

    # Keep JSON output machine-readable
    level = "DEBUG" if verbose else ("WARNING" if json_output else settings.log_level)
    get_logger("chainy", level)


@cli.command("init")
@click.option("--force", is_flag=True, help="Overwrite an existing chain file.")
@click.pass_context
def init(ctx, force):
    """
    Create a new chain holding only the genesis block.

    Example:

        chainy-cli --file audit.json init
    """
    path = ctx.obj["CHAIN_PATH"]

    def create():
        if path.exists() and not force:
            raise ChainIOError(f"'{path}' already exists, use --force to overwrite", {"path": str(path)})
        chain = Chain.new()
        chain.store(path)
        return chain

    handle_chain_call(ctx, create, f"Created chain at '{path}'.")


@cli.command("entry")
@click.argument("data")
@click.pass_context
def entry(ctx, data):
    """
    Append DATA (at most 64 characters) as a new block.

    Example:

        chainy-cli entry "user alice logged in"
    """
    path = ctx.obj["CHAIN_PATH"]

    def append():
        chain = Chain.load(path)
        block = chain.entry(data)
        chain.store(path)
        return block

    handle_chain_call(ctx, append, "Block appended.")


@cli.command("validate")
@click.pass_context
def validate(ctx):
    """
    Load the chain file and verify every block hash and link.
    """
    path = ctx.obj["CHAIN_PATH"]

    def check():
        chain = Chain.load(path)
        return {"path": str(path), "blocks": len(chain), "tail": chain.tail.hash}

    handle_chain_call(ctx, check, "Chain is valid.")


@cli.command("show")
@click.option("--pretty", is_flag=True, help="Indent the JSON output.")
@click.pass_context
def show(ctx, pretty):
    """
    Print the validated chain as JSON.
    """
    path = ctx.obj["CHAIN_PATH"]
    if ctx.obj.get("JSON_OUTPUT"):
        handle_chain_call(ctx, Chain.load, f"Loaded '{path}'.", path)
        return
    try:
        chain = Chain.load(path)
    except Exception as e:
        report_error(ctx, e)
    click.echo(json.dumps(chain.to_dict(), indent=2) if pretty else str(chain))


if __name__ == "__main__":
    cli()
