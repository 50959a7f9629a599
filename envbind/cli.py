# envbind/cli.py

import dataclasses
import importlib
import json
import logging
from datetime import timedelta

import click

from .aws import AWSValuePreProcessor
from .builder import Builder
from .exceptions import SecretResolutionError
from .populate import DEFAULT_SLICE_DELIM, DEFAULT_STRUCT_DELIM


def _as_json(value):
    """Convert a bound record to JSON-ready data; unknown objects become their repr."""
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: _as_json(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, list):
        return [_as_json(item) for item in value]
    if isinstance(value, timedelta):
        return value.total_seconds()
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    return repr(value)


def _load_record_type(spec: str):
    """Resolve ``package.module:ClassName`` to a class."""
    module_name, sep, attr = spec.partition(":")
    if not sep or not module_name or not attr:
        raise click.BadParameter("expected MODULE:CLASS", param_hint="TARGET")
    try:
        obj = importlib.import_module(module_name)
    except ImportError as e:
        raise click.BadParameter(f"cannot import '{module_name}': {e}", param_hint="TARGET")
    for part in attr.split("."):
        try:
            obj = getattr(obj, part)
        except AttributeError:
            raise click.BadParameter(f"'{module_name}' has no attribute '{attr}'", param_hint="TARGET")
    return obj


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.option("-f", "--file", "files", multiple=True, help="KEY=VALUE file to merge (repeatable)")
@click.option("--toml", "toml_files", multiple=True, help="TOML file to merge (repeatable)")
@click.option("--dotenv", "dotenv_path", help="Path to a .env file to merge")
@click.option("--env/--no-env", "use_env", default=True, show_default=True,
              help="Merge the process environment last")
@click.option("--struct-delim", default=DEFAULT_STRUCT_DELIM, show_default=True,
              help="Delimiter between nested record keys")
@click.option("--slice-delim", default=DEFAULT_SLICE_DELIM, show_default=repr(DEFAULT_SLICE_DELIM),
              help="Delimiter between sequence elements")
@click.option("--aws", "use_aws", is_flag=True, help="Resolve sm:// and ssm:// values through AWS")
@click.option("-v", "--verbose", is_flag=True, help="Log debug output to stderr")
@click.pass_context
def cli(ctx, files, toml_files, dotenv_path, use_env, struct_delim, slice_delim, use_aws, verbose):
    """
    envbind CLI: merge flat config sources and inspect or bind the result.

    Sources merge in order TOML files, KEY=VALUE files, .env, environment;
    later sources override earlier ones. Subcommands:
      • get       KEY
      • dump      [--to json|toml] [--out FILE]
      • explain   KEY
      • bind      MODULE:CLASS
    """
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

    try:
        builder = Builder(struct_delim=struct_delim, slice_delim=slice_delim, track_provenance=True)
        if use_aws:
            builder.with_value_pre_processor(AWSValuePreProcessor.from_boto3())
        for path in toml_files:
            builder.from_toml(path)
        for path in files:
            builder.from_file(path)
        if dotenv_path:
            builder.from_dotenv(dotenv_path)
        if use_env:
            builder.from_env()
    except (OSError, RuntimeError, ValueError, SecretResolutionError) as e:
        click.secho(f"Error: {e}", fg="red", err=True)
        ctx.exit(1)

    ctx.obj = {"builder": builder}


@cli.command()
@click.argument("key")
@click.pass_context
def get(ctx, key):
    """Print the merged value of KEY (case-insensitive)."""
    value = ctx.obj["builder"].get(key)
    if value is None:
        click.secho(f"Key not found: {key}", fg="yellow", err=True)
        ctx.exit(1)
    click.echo(value)


@cli.command()
@click.option("--to", "fmt", type=click.Choice(["json", "toml"]), default="json",
              help="Output format")
@click.option("--out", "out_file", help="Write to file (instead of stdout)")
@click.pass_context
def dump(ctx, fmt, out_file):
    """Print the merged flat key/value map."""
    data = dict(sorted(ctx.obj["builder"].as_dict().items()))
    if fmt == "toml":
        import toml as _toml
        text = _toml.dumps(data)
    else:
        text = json.dumps(data, indent=2)

    if out_file:
        with open(out_file, "w") as f:
            f.write(text)
        click.secho(f"Wrote {fmt.upper()} to {out_file}", fg="green")
    else:
        click.echo(text)


@cli.command()
@click.argument("key")
@click.pass_context
def explain(ctx, key):
    """Show which sources set KEY, oldest first."""
    history = ctx.obj["builder"].provenance.get_history(key)
    if not history:
        click.secho(f"Key not found: {key}", fg="yellow", err=True)
        ctx.exit(1)
    for entry in history:
        click.echo(repr(entry))


@cli.command()
@click.argument("target")
@click.pass_context
def bind(ctx, target):
    """
    Bind the merged config onto the dataclass TARGET (MODULE:CLASS) and print
    it as JSON. Durations are printed in seconds; values JSON cannot hold
    (e.g. objects in ignored fields) are printed as their repr.
    """
    record_type = _load_record_type(target)
    try:
        record = ctx.obj["builder"].to(record_type)
    except TypeError as e:  # includes UnsupportedFieldError
        click.secho(f"Error: {e}", fg="red", err=True)
        ctx.exit(1)
    click.echo(json.dumps(_as_json(record), indent=2))
