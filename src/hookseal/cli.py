"""hookseal CLI - Command line interface."""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime
from typing import Any

import click
import structlog
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from hookseal.core.config import ValidatorSettings, get_config, load_config_from_file
from hookseal.webhooks.profiles import get_profile

console = Console()

LOG_LEVELS = ["debug", "info", "warning", "error"]


def _configure_logging(log_level: str) -> None:
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, log_level.upper())
        ),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
    )


def _parse_header(value: str) -> tuple[str, str]:
    name, sep, header_value = value.partition(":")
    if not sep or not name.strip():
        raise click.BadParameter(f"Expected 'Name: value', got {value!r}")
    return name.strip(), header_value.strip()


def _load_settings(
    config_file: str | None,
    profile: str | None,
    **overrides: Any,
) -> ValidatorSettings:
    """Merge config file, profile and explicit options into ValidatorSettings.

    Precedence (lowest first): environment, config file, profile, options.
    """
    values: dict[str, Any] = {}
    if config_file:
        values.update(load_config_from_file(config_file))
    if profile:
        options = get_profile(profile).options()
        options["signature_encoding"] = options["signature_encoding"].value
        values.update(options)
    values.update({key: value for key, value in overrides.items() if value is not None})
    return ValidatorSettings(**values)


def _fail(message: str) -> None:
    console.print(f"[red]Error:[/red] {escape(message)}")
    sys.exit(1)


@click.group(invoke_without_command=True)
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default="warning",
    help="Log level (default: warning)",
)
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
@click.pass_context
def main(ctx: click.Context, log_level: str, verbose: bool):
    """hookseal - Authenticate HMAC-SHA256 signed webhooks.

    \b
    Examples:
      hookseal sign body.json --secret s3cr3t
      hookseal verify body.json -H "x-signature: ..." -H "x-timestamp: ..."
    """
    _configure_logging("debug" if verbose else log_level)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@main.command()
@click.argument("body", type=click.File("rb"))
@click.option("--secret", help="Shared secret (default: HOOKSEAL_SECRET)")
@click.option("--profile", help="Signature profile (default, cipp)")
@click.option(
    "--encoding",
    type=click.Choice(["base64", "hex"]),
    default=None,
    help="Signature encoding (default: base64)",
)
@click.option("--timestamp", help="Signing time as ISO-8601 (default: now)")
@click.option(
    "--config", "-c",
    "config_file",
    type=click.Path(exists=True),
    help="Path to YAML or TOML config file",
)
@click.option("--json", "json_output", is_flag=True, help="Output as JSON")
def sign(
    body,
    secret: str | None,
    profile: str | None,
    encoding: str | None,
    timestamp: str | None,
    config_file: str | None,
    json_output: bool,
):
    """Print the headers that authenticate BODY ('-' for stdin)."""
    from hookseal.webhooks.signer import WebhookSigner
    from hookseal.webhooks.verifier import parse_timestamp

    try:
        settings = _load_settings(
            config_file,
            profile,
            secret=secret,
            signature_encoding=encoding,
        )
        secret_bytes = settings.secret_bytes()
        if not secret_bytes:
            raise ValueError("No webhook secret configured (use --secret or HOOKSEAL_SECRET)")
        signer = WebhookSigner(
            secret_bytes,
            signature_header_name=settings.signature_header_name,
            timestamp_header_name=settings.timestamp_header_name,
            signature_encoding=settings.signature_encoding,
            signature_prefix=settings.signature_prefix,
        )
        signed_at: datetime | None = parse_timestamp(timestamp) if timestamp else None
    except (ValueError, FileNotFoundError) as e:
        _fail(str(e))
        return

    headers = signer.sign(body.read(), now=signed_at)

    if json_output:
        click.echo(json.dumps(headers, indent=2))
        return

    table = Table(title="Webhook headers")
    table.add_column("Header", style="cyan")
    table.add_column("Value")
    for name, value in headers.items():
        table.add_row(name, value)
    console.print(table)


@main.command()
@click.argument("body", type=click.File("rb"))
@click.option(
    "--header", "-H",
    "header_values",
    multiple=True,
    help="Request header as 'Name: value' (repeatable)",
)
@click.option("--secret", help="Shared secret (default: HOOKSEAL_SECRET)")
@click.option("--profile", help="Signature profile (default, cipp)")
@click.option("--max-age", type=float, default=None, help="Freshness window in seconds (default: 300)")
@click.option(
    "--encoding",
    type=click.Choice(["base64", "hex"]),
    default=None,
    help="Signature encoding (default: base64)",
)
@click.option(
    "--require-timestamp/--no-require-timestamp",
    default=None,
    help="Reject requests without a timestamp header (default: require)",
)
@click.option("--max-body-size", type=int, default=None, help="Maximum body size in bytes")
@click.option("--debug", is_flag=True, default=None, help="Log signatures and payload preview")
@click.option(
    "--config", "-c",
    "config_file",
    type=click.Path(exists=True),
    help="Path to YAML or TOML config file",
)
@click.option("--json", "json_output", is_flag=True, help="Output as JSON")
def verify(
    body,
    header_values: tuple[str, ...],
    secret: str | None,
    profile: str | None,
    max_age: float | None,
    encoding: str | None,
    require_timestamp: bool | None,
    max_body_size: int | None,
    debug: bool | None,
    config_file: str | None,
    json_output: bool,
):
    """Validate BODY ('-' for stdin) against the given headers.

    Exits with status 0 when accepted and 1 when rejected.
    """
    from hookseal.webhooks.verifier import SignatureValidator

    try:
        headers = dict(_parse_header(value) for value in header_values)
        settings = _load_settings(
            config_file,
            profile,
            secret=secret,
            max_age_seconds=max_age,
            signature_encoding=encoding,
            require_timestamp=require_timestamp,
            max_body_size=max_body_size,
            debug=debug or None,
        )
        validator = SignatureValidator.from_settings(settings)
    except (ValueError, FileNotFoundError) as e:
        _fail(str(e))
        return

    result = validator.validate(body.read(), headers)

    if json_output:
        if result:
            data = {
                "accepted": True,
                "age_seconds": result.age_seconds,
                "payload": result.payload,
            }
        else:
            data = {
                "accepted": False,
                "reason": result.reason.value,
                "http_status": result.reason.http_status,
                "age_seconds": result.age_seconds,
                "detail": result.detail,
            }
        click.echo(json.dumps(data, indent=2))
    elif result:
        console.print("[green]Accepted[/green]")
        if result.age_seconds is not None:
            console.print(f"[bold]Age:[/bold] {result.age_seconds:.1f}s")
    else:
        console.print(f"[red]Rejected:[/red] {result.reason.value}")
        console.print(f"[bold]HTTP status:[/bold] {result.reason.http_status}")
        if result.detail:
            console.print(f"[dim]{escape(result.detail)}[/dim]")

    if not result:
        sys.exit(1)


@main.command("config")
@click.option(
    "--config", "-c",
    "config_file",
    type=click.Path(exists=True),
    help="Path to YAML or TOML config file",
)
@click.option("--json", "json_output", is_flag=True, help="Output as JSON")
def show_config(config_file: str | None, json_output: bool):
    """Show the effective validator settings (secret masked).

    Without --config this is the process-wide configuration from the
    environment.
    """
    try:
        settings = _load_settings(config_file, None) if config_file else get_config()
    except (ValueError, FileNotFoundError) as e:
        _fail(str(e))
        return

    display = settings.to_display_dict()
    if json_output:
        click.echo(json.dumps(display, indent=2))
        return

    table = Table(title="Validator settings")
    table.add_column("Setting", style="cyan")
    table.add_column("Value")
    for key, value in display.items():
        table.add_row(key, str(value))
    console.print(table)


@main.command()
def version():
    """Show version information."""
    from hookseal import __version__

    console.print(f"[bold]Version:[/bold] {__version__}")
    console.print(f"[bold]Python:[/bold] {sys.version}")


if __name__ == "__main__":
    main()
