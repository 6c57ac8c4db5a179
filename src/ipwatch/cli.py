"""CLI entry point for ipwatch."""

import json
from pathlib import Path
from typing import NoReturn

import click
import yaml

from ipwatch import __version__
from ipwatch.config import (
    Config,
    coerce_property,
    config_to_document,
    load_config,
    open_config_store,
    resolve_property,
)
from ipwatch.errors import IpWatchError
from ipwatch.ip_provider import DEFAULT_IP_SERVICE_URL, HttpIpProvider
from ipwatch.logging import setup_logging
from ipwatch.monitor import CheckStatus, IpMonitor
from ipwatch.notifier import EmailNotifier
from ipwatch.store import DocumentStore

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
SECRET_KEYS = {"emailPassword"}


def _fail(error: object) -> NoReturn:
    click.echo(f"Error: {error}", err=True)
    raise SystemExit(1)


def _setup(ctx: click.Context) -> Config:
    """Load the config and configure logging from it."""
    store: DocumentStore = ctx.obj["store"]
    try:
        config = load_config(store)
    except IpWatchError as e:
        _fail(e)
    try:
        setup_logging(config, level=ctx.obj["log_level"])
    except OSError as e:
        _fail(f"Cannot open log file {config.log_file}: {e}")
    return config


@click.group()
@click.version_option(__version__, prog_name="ipwatch")
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=False, dir_okay=False, path_type=Path),
    envvar="IPWATCH_CONFIG",
    default=None,
    help="Path to config file.",
)
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default=None,
    help="Override the configured log level.",
)
@click.pass_context
def main(ctx: click.Context, config: Path | None, log_level: str | None) -> None:
    """ipwatch - Email me when my public IP address changes."""
    ctx.ensure_object(dict)
    ctx.obj["store"] = open_config_store(config)
    ctx.obj["log_level"] = log_level


@main.command()
@click.option("--once", is_flag=True, help="Check a single time and exit.")
@click.option(
    "--ip-url",
    default=DEFAULT_IP_SERVICE_URL,
    show_default=True,
    help="Plain-text service that echoes the caller's IP.",
)
@click.pass_context
def run(ctx: click.Context, once: bool, ip_url: str) -> None:
    """Watch the public IP and send an email when it changes."""
    _setup(ctx)
    monitor = IpMonitor(
        store=ctx.obj["store"],
        ip_provider=HttpIpProvider(url=ip_url),
        notifier=EmailNotifier(),
    )

    try:
        if once:
            result = monitor.check_once()
            if result.status is CheckStatus.FAILED:
                _fail(f"IP lookup failed: {result.error}")
            click.echo(f"Public IP: {result.ip} ({result.status.value})")
        else:
            monitor.run()
    except KeyboardInterrupt:
        click.echo("\nStopped.")
    except IpWatchError as e:
        _fail(e)


@main.command("set")
@click.argument("name")
@click.argument("value")
@click.pass_context
def set_property(ctx: click.Context, name: str, value: str) -> None:
    """Set a config property.

    NAME is a field name (email_smtp_port), a document key (emailSMTPPort)
    or a nested key path (extra.servers[0].host). Use "null" to clear the
    username or log file.
    """
    store: DocumentStore = ctx.obj["store"]
    key = resolve_property(name)

    try:
        new_value = coerce_property(key, value)
        if any(c in key for c in ".[]"):
            store.set_path(key, new_value)
        else:
            store.set_key(key, new_value)
    except IpWatchError as e:
        _fail(e)

    shown = "********" if key in SECRET_KEYS else json.dumps(new_value, ensure_ascii=False)
    click.echo(f"Set {key} = {shown}")


@main.command("get")
@click.argument("name")
@click.pass_context
def get_property(ctx: click.Context, name: str) -> None:
    """Print the JSON value stored at a property name or key path."""
    store: DocumentStore = ctx.obj["store"]
    try:
        value = store.get_path(resolve_property(name))
    except IpWatchError as e:
        _fail(e)
    click.echo(json.dumps(value, indent=2, ensure_ascii=False))


@main.command()
@click.option("--show-secrets", is_flag=True, help="Print the password in clear text.")
@click.pass_context
def show(ctx: click.Context, show_secrets: bool) -> None:
    """Print the current configuration."""
    config = _setup(ctx)
    document = config_to_document(config)
    if not show_secrets:
        for key in SECRET_KEYS:
            if document.get(key):
                document[key] = "********"

    click.echo(f"# {ctx.obj['store'].path}")
    click.echo(yaml.safe_dump(document, sort_keys=False, allow_unicode=True), nl=False)


@main.command("test-email")
@click.pass_context
def test_email(ctx: click.Context) -> None:
    """Send a test email with the current settings."""
    config = _setup(ctx)
    try:
        EmailNotifier().send_test(config)
    except IpWatchError as e:
        _fail(e)
    click.echo(f"Test email sent to {config.recipient_address}")


@main.command()
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation.")
@click.pass_context
def reset(ctx: click.Context, yes: bool) -> None:
    """Restore the default configuration."""
    store: DocumentStore = ctx.obj["store"]
    if not yes and not click.confirm(f"Overwrite {store.path} with defaults?"):
        click.echo("Aborted.")
        return

    try:
        store.reset()
    except IpWatchError as e:
        _fail(e)
    click.echo(f"Reset {store.path}")


@main.command()
@click.pass_context
def path(ctx: click.Context) -> None:
    """Print the config file location."""
    click.echo(str(ctx.obj["store"].path))
