"""
Command-line interface for GPO management.

Usage:
    python -m gpomgr.cli get "PROD-*" --domain corp.example.com
    python -m gpomgr.cli get "Default Domain Policy" --server dc01 --credential dc-admin
    python -m gpomgr.cli credential put dc-admin --username CORP\\admin
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

import click
import yaml

from . import __version__
from .core.config import DEFAULT_CONFIG_FILE, GpoManagerConfig
from .core.engine import RetrievalEngine
from .core.errors import GpoError
from .core.models import Credentials, ExecutionMode, RetrievalResult
from .core.validator import Validator
from .plugins.directory import YamlDirectory
from .plugins.remote import LoopbackRemoteExecutor
from .plugins.secrets import FernetSecretStore


def _fail(message: str, code: int = 1) -> None:
    click.echo(click.style(message, fg="red"), err=True)
    sys.exit(code)


def build_engine(config: GpoManagerConfig) -> RetrievalEngine:
    """Wire the configured directory and remote hosts into an engine."""
    remote = LoopbackRemoteExecutor(
        {host: YamlDirectory(path) for host, path in config.hosts.items()}
    )
    return RetrievalEngine(directory=YamlDirectory(config.directory), remote=remote)


def render(result: RetrievalResult, output_format: str) -> str:
    if output_format == "json":
        return json.dumps([r.to_structured() for r in result.records], indent=2)
    if output_format == "yaml":
        return yaml.safe_dump(
            [r.to_structured() for r in result.records], sort_keys=False
        ).rstrip()

    lines = []
    for record in result.records:
        state = "enabled" if record.is_enabled else "disabled"
        lines.append(f"{record.to_display_string()}  {state}  owner={record.owner}")
    return "\n".join(lines)


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--config",
    "-c",
    "config_path",
    default=DEFAULT_CONFIG_FILE,
    help="Path to gpomgr config file",
    type=click.Path(dir_okay=False),
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, config_path: str, verbose: bool):
    """Group Policy Object management CLI."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    try:
        ctx.obj = GpoManagerConfig.from_yaml(config_path)
    except GpoError as e:
        _fail(f"Error: {e}")


@cli.command()
@click.argument("selectors", nargs=-1)
@click.option("--domain", "-d", help="Domain to query (defaults to config default_domain)")
@click.option("--server", "-s", help="Run the query on this remote host")
@click.option("--credential", help="Name of stored credentials for the remote host")
@click.option(
    "--format",
    "-f",
    "output_format",
    type=click.Choice(["text", "json", "yaml"]),
    default="text",
    help="Output format",
)
@click.pass_obj
def get(
    config: GpoManagerConfig,
    selectors: tuple,
    domain: str,
    server: str,
    credential: str,
    output_format: str,
):
    """Retrieve GPOs by name, wildcard pattern, or all when no SELECTORS are given."""
    if credential and not server:
        _fail("Error: --credential requires --server")

    engine = build_engine(config)
    mode = ExecutionMode.REMOTE if server else ExecutionMode.LOCAL

    try:
        credentials = (
            FernetSecretStore(config.secret_store).get(credential) if credential else None
        )
        result = engine.get(
            list(selectors),
            domain=domain or config.default_domain,
            mode=mode,
            host=server,
            credentials=credentials,
        )
    except GpoError as e:
        _fail(f"Error: {e}")

    output = render(result, output_format)
    if output:
        click.echo(output)

    if result.errors:
        click.echo(click.style(f"\n{len(result.errors)} error(s):", fg="red"), err=True)
        for error in result.errors:
            click.echo(f"  - {error.message}", err=True)
        sys.exit(2)


@cli.command()
@click.option(
    "--directory",
    "directory_path",
    help="Path to GPO directory data (defaults to config directory)",
    type=click.Path(),
)
@click.pass_obj
def validate(config: GpoManagerConfig, directory_path: str):
    """Validate GPO directory data files."""
    path = Path(directory_path) if directory_path else config.directory

    click.echo(f"Validating {path}...")
    all_errors = Validator().validate_directory(path)

    if all_errors:
        click.echo(click.style("\nValidation errors found:", fg="red"))
        for file_path, errors in all_errors.items():
            click.echo(f"\n{file_path}:")
            for error in errors:
                click.echo(f"  - {error}")
        sys.exit(1)
    else:
        click.echo(click.style("\nAll validations passed!", fg="green"))


@cli.group()
def credential():
    """Manage stored credentials for remote hosts."""
    pass


def _store(config: GpoManagerConfig) -> FernetSecretStore:
    try:
        return FernetSecretStore(config.secret_store)
    except GpoError as e:
        _fail(f"Error: {e}")


@credential.command("put")
@click.argument("name")
@click.option("--username", "-u", required=True, help="Account name")
@click.password_option(help="Account password")
@click.pass_obj
def credential_put(config: GpoManagerConfig, name: str, username: str, password: str):
    """Store credentials under NAME."""
    try:
        _store(config).put(name, Credentials(username=username, password=password))
    except GpoError as e:
        _fail(f"Error: {e}")
    click.echo(f"Stored credentials '{name}'")


@credential.command("show")
@click.argument("name")
@click.pass_obj
def credential_show(config: GpoManagerConfig, name: str):
    """Show the account name stored under NAME."""
    try:
        creds = _store(config).get(name)
    except GpoError as e:
        _fail(f"Error: {e}")
    click.echo(f"{name}: {creds.username}")


@credential.command("list")
@click.pass_obj
def credential_list(config: GpoManagerConfig):
    """List stored credential names."""
    try:
        names = _store(config).list()
    except GpoError as e:
        _fail(f"Error: {e}")
    for name in names:
        click.echo(name)


@credential.command("delete")
@click.argument("name")
@click.pass_obj
def credential_delete(config: GpoManagerConfig, name: str):
    """Delete the credentials stored under NAME."""
    try:
        _store(config).delete(name)
    except GpoError as e:
        _fail(f"Error: {e}")
    click.echo(f"Deleted credentials '{name}'")


if __name__ == "__main__":
    cli()
