import sys

import click
import yaml
from serde import to_dict

from assetlog import __version__
from assetlog.constants import ENV_VAR_CONFIG_FILE, ENV_VAR_ENVIRONMENT
from assetlog.exceptions import AssetLogError
from assetlog.logging.asset_log import new_logger_from_config_file
from assetlog.logging.config import load_config, resolve_environment
from assetlog.logging.context import RequestContext
from assetlog.logging.structured_logger import LogLevel, resolve_level

CONTEXT_SETTINGS = dict(help_option_names=["--help"])

LEVEL_NAMES = [level.name.lower() for level in LogLevel]


def log(msg: str):
    """Prints a message to stdout."""
    click.echo(msg, file=sys.stdout)


def elog(msg: str):
    """Prints a message to stderr."""
    click.echo(msg, file=sys.stderr)


def parse_fields(context: click.Context, param: click.Parameter, values):
    fields = {}
    for value in values:
        key, separator, field_value = value.partition("=")
        if not separator or not key:
            raise click.BadParameter(f"'{value}' is not in key=value form.")
        fields[key] = field_value
    return fields


config_option = click.option(
    "-c",
    "--config",
    "config_file",
    type=click.Path(),
    required=True,
    envvar=ENV_VAR_CONFIG_FILE,
    metavar="",
    help="Path to the logger config file.",
)
environment_option = click.option(
    "-e",
    "--env",
    "environment",
    required=True,
    envvar=ENV_VAR_ENVIRONMENT,
    metavar="",
    help="Environment whose entry is used (prod, test, anything else selects dev).",
)


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(__version__, prog_name="assetlog")
def cli():
    """Inspect logger config files and write test records"""


@cli.command()
@config_option
@environment_option
def check(config_file: str, environment: str):
    """Validate the config file entry for an environment"""
    try:
        resolved = resolve_environment(environment)
        config = load_config(resolved, config_file)
        resolve_level(config.level)
    except AssetLogError as e:
        elog(str(e))
        sys.exit(1)

    log(f"Environment: {resolved}")
    log(yaml.safe_dump(to_dict(config), sort_keys=False).rstrip())


@cli.command()
@config_option
@environment_option
@click.option(
    "-l",
    "--level",
    type=click.Choice(LEVEL_NAMES, case_sensitive=False),
    default="info",
    show_default=True,
    help="Level of the record.",
)
@click.option(
    "-f",
    "--field",
    "fields",
    multiple=True,
    callback=parse_fields,
    metavar="KEY=VALUE",
    help="Context value, may be repeated.",
)
@click.argument("message", nargs=-1, required=True)
def emit(config_file: str, environment: str, level: str, fields: dict, message: tuple):
    """Write one record through the logger of an environment"""
    try:
        logger = new_logger_from_config_file(environment, config_file)
    except AssetLogError as e:
        elog(str(e))
        sys.exit(1)

    with logger:
        getattr(logger, level.lower())(RequestContext(fields), " ".join(message))
