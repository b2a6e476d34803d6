"""Command line entry points for the subject registry's stream-side processes."""

from __future__ import annotations

import asyncio
import sys

import click
from dotenv import load_dotenv
from rich import box
from rich.console import Console
from rich.table import Table

from .application.billing import BillingAccountService
from .domain.exceptions import DecodeError
from .domain.models import ChangeEvent
from .infrastructure.config import NATSConnectionConfig
from .infrastructure.event_subscription import bind_event_consumer
from .infrastructure.factories import DefaultRegistryFactory, RegistrySettings
from .infrastructure.nats_provisioning import bind_billing_responder
from .infrastructure.serialization import decode_change_event

console = Console()


def _settings(nats_url: str | None) -> RegistrySettings:
    settings = RegistrySettings.from_env()
    if nats_url:
        overrides = {**settings.nats.model_dump(), "servers": [nats_url]}
        settings.nats = NATSConnectionConfig(**overrides)
    return settings


def _event_table(event: ChangeEvent) -> Table:
    table = Table(title="Change Event", box=box.ROUNDED)
    table.add_column("Field", style="bold")
    table.add_column("Value")
    for key, value in event.model_dump().items():
        table.add_row(key, str(value))
    return table


async def _serve_forever(factory: DefaultRegistryFactory, setup) -> None:
    adapter = await factory.create_nats_adapter()
    try:
        await setup(adapter)
        await asyncio.Event().wait()
    finally:
        await adapter.disconnect()


@click.group()
def main():
    """Subject registry stream tools.

    Settings come from the environment; a .env file in the working
    directory is loaded first.
    """
    load_dotenv()


@main.command()
@click.option("--nats-url", "-n", help="NATS server URL (default: NATS_URL or localhost)")
@click.option("--durable", "-d", default="analytics", help="Durable consumer name")
def consume(nats_url: str | None, durable: str):
    """Attach the tolerant consumer to the change event stream and print events."""
    factory = DefaultRegistryFactory(_settings(nats_url))

    async def show(event: ChangeEvent) -> None:
        console.print(
            f"[green]{event.event_type}[/green] {event.subject_id} "
            f"{event.name} <{event.email}>"
        )

    consumer = factory.create_consumer(handler=show)

    async def setup(adapter) -> None:
        await bind_event_consumer(adapter, consumer, durable=durable)
        console.print(f"[cyan]Consuming change events as '{durable}'...[/cyan]")

    try:
        asyncio.run(_serve_forever(factory, setup))
    except KeyboardInterrupt:
        console.print("[yellow]Stopped[/yellow]")


@main.command()
@click.option("--nats-url", "-n", help="NATS server URL (default: NATS_URL or localhost)")
def billing(nats_url: str | None):
    """Serve billing account provisioning requests."""
    factory = DefaultRegistryFactory(_settings(nats_url))
    service = BillingAccountService(logger=factory.logger)

    async def setup(adapter) -> None:
        await bind_billing_responder(adapter, service, logger=factory.logger)
        console.print("[cyan]Billing responder ready[/cyan]")

    try:
        asyncio.run(_serve_forever(factory, setup))
    except KeyboardInterrupt:
        console.print("[yellow]Stopped[/yellow]")


@main.command()
@click.argument("payload")
def decode(payload: str):
    """Decode a hex-encoded change event payload."""
    try:
        data = bytes.fromhex(payload)
    except ValueError:
        console.print("[red]✗ Payload is not valid hex[/red]")
        sys.exit(2)

    try:
        event = decode_change_event(data)
    except DecodeError as e:
        console.print(f"[red]✗ {e.message}[/red] ({len(data)} bytes)")
        sys.exit(1)

    console.print(_event_table(event))


if __name__ == "__main__":
    main()
