"""
SendPulse CLI

Command-line interface for SendPulse WhatsApp administration.

Commands:
- check-config: Validate SENDPULSE_* environment configuration
- list-bots: List WhatsApp bots (sending channels)
- send-test: Send a test message
- lookup-contact: Look up a contact by phone
- normalize-phone: Show the canonical form of a phone number
- encrypt-secret: Encrypt the app secret for SENDPULSE_APP_SECRET
"""

import asyncio
import dataclasses
from typing import Optional

import typer
from rich import print as rprint
from rich.console import Console
from rich.table import Table

from messaging_sendpulse.config.settings import encrypt_secret, load_settings
from messaging_sendpulse.config.validator import ConfigHealth, ConfigValidator, diagnostic_message
from messaging_sendpulse.log import setup_logging
from messaging_sendpulse.providers.base import SendPulseError
from messaging_sendpulse.providers.stub import StubSendPulseApi
from messaging_sendpulse.routing.phone import normalize_phone
from messaging_sendpulse.service.messaging import SendPulseMessaging, build_client

app = typer.Typer(
    name="sendpulse-cli",
    help="SendPulse WhatsApp client CLI",
)

console = Console()

HEALTH_STYLES = {
    ConfigHealth.HEALTHY: "green",
    ConfigHealth.DEGRADED: "yellow",
    ConfigHealth.UNHEALTHY: "red",
}


@app.callback()
def main(
    log_level: str = typer.Option("WARNING", "--log-level", help="Log level"),
):
    """SendPulse WhatsApp client administration."""
    setup_logging(log_level)


def get_client(stub: bool) -> tuple[SendPulseMessaging, StubSendPulseApi | None]:
    """Build a client from the environment, optionally against the stub API."""
    settings = load_settings()

    if not stub:
        return build_client(settings), None

    api = StubSendPulseApi()
    settings = dataclasses.replace(
        settings,
        app_id=settings.app_id or "stub_app_id",
        app_secret=settings.app_secret or "stub_app_secret",
        static_api_token=None,
    )
    return build_client(settings, transport=api.transport()), api


@app.command()
def check_config():
    """
    Validate SendPulse configuration.

    Exits with code 1 when the configuration is unusable.
    """
    validator = ConfigValidator(load_settings())
    result = validator.validate()
    status = validator.get_config_status()

    style = HEALTH_STYLES[status.health]
    rprint(f"[{style}]Health: {status.health.value}[/{style}] ({status.details})")

    table = Table(title="SendPulse Configuration")
    table.add_column("Setting", style="dim")
    table.add_column("Value")
    for key, value in result.config.items():
        table.add_row(key, "-" if value is None else str(value))
    console.print(table)

    for warning in result.warnings:
        rprint(f"[yellow]Warning: {warning}[/yellow]")

    if not result.valid:
        rprint(f"[red]{diagnostic_message(result)}[/red]")
        raise typer.Exit(1)


@app.command()
def list_bots(
    stub: bool = typer.Option(False, "--stub", help="Use the in-process stub API"),
):
    """
    List WhatsApp bots available to the account.
    """
    client, _ = get_client(stub)

    async def fetch():
        async with client:
            return await client.channels.list_channels()

    try:
        channels = asyncio.run(fetch())
    except SendPulseError as e:
        rprint(f"[red]Failed to list bots: {e}[/red]")
        raise typer.Exit(1)

    if not channels:
        rprint("[yellow]No bots found[/yellow]")
        raise typer.Exit(0)

    table = Table(title="SendPulse WhatsApp Bots")
    table.add_column("ID", style="dim")
    table.add_column("Name")
    table.add_column("Phone")
    table.add_column("Active")

    for channel in channels:
        table.add_row(
            channel.id,
            channel.display_name or "-",
            channel.phone_number or "-",
            "Yes" if channel.active else "No",
        )

    console.print(table)


@app.command()
def send_test(
    to: str = typer.Argument(..., help="Recipient phone number"),
    text: str = typer.Option("Hello from SendPulse!", help="Message text"),
    template: Optional[str] = typer.Option(None, help="Send this approved template instead of text"),
    stub: bool = typer.Option(False, "--stub", help="Use the in-process stub API"),
):
    """
    Send a test message.

    Free-form text only reaches contacts inside the 24h conversation
    window; use --template otherwise.
    """
    client, api = get_client(stub)

    async def send():
        async with client:
            if template:
                return await client.send_template_message(to, template)
            return await client.send_text_message(to, text)

    try:
        result = asyncio.run(send())
    except SendPulseError as e:
        rprint(f"[red]Failed to send message: {e}[/red]")
        raise typer.Exit(1)

    if result.success:
        rprint(f"[green]Message sent successfully![/green]")
        rprint(f"  Message ID: {result.provider_message_id}")
        rprint(f"  Attempts: {result.attempts}")
        if api is not None:
            rprint(f"  [dim]Stub recorded {len(api.sent_messages)} message(s)[/dim]")
    else:
        rprint(f"[red]Failed to send message[/red]")
        rprint(f"  Error: {result.error}")
        rprint(f"  Code: {result.error_code}")
        rprint(f"  Retryable: {result.retryable}")
        raise typer.Exit(1)


@app.command()
def lookup_contact(
    phone: str = typer.Argument(..., help="Contact phone number"),
    stub: bool = typer.Option(False, "--stub", help="Use the in-process stub API"),
):
    """
    Look up a SendPulse contact by phone.
    """
    client, _ = get_client(stub)

    async def fetch():
        async with client:
            return await client.contacts.get(phone)

    try:
        contact = asyncio.run(fetch())
    except SendPulseError as e:
        rprint(f"[red]Lookup failed: {e}[/red]")
        raise typer.Exit(1)

    if contact is None:
        rprint(f"[yellow]No contact found for {normalize_phone(phone)}[/yellow]")
        raise typer.Exit(0)

    window = "open" if contact.conversation_open else "closed"
    rprint(f"[green]Contact found:[/green]")
    rprint(f"  ID: {contact.id}")
    rprint(f"  Phone: {contact.phone}")
    rprint(f"  Name: {contact.name or '-'}")
    rprint(f"  Conversation window: {window}")
    if contact.tags:
        rprint(f"  Tags: {', '.join(contact.tags)}")


@app.command(name="normalize-phone")
def normalize_phone_cmd(
    phone: str = typer.Argument(..., help="Phone number in any format"),
    country_code: str = typer.Option("55", help="Country code for national numbers"),
):
    """
    Show the canonical international form of a phone number.
    """
    rprint(normalize_phone(phone, country_code))


@app.command(name="encrypt-secret")
def encrypt_secret_cmd(
    secret: str = typer.Argument(..., help="App secret to encrypt"),
    key: str = typer.Option(..., envvar="SENDPULSE_ENCRYPTION_KEY", help="Fernet key"),
):
    """
    Encrypt the app secret for storage in SENDPULSE_APP_SECRET.
    """
    try:
        typer.echo(encrypt_secret(secret, key))
    except ValueError as e:
        rprint(f"[red]Invalid encryption key: {e}[/red]")
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
