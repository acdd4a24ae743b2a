from __future__ import annotations

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from evparse.clients.rpc import RPC
from evparse.core.config import ParserConfig
from evparse.core.errors import ResolutionError
from evparse.core.logging import configure_logging
from evparse.core.models import DecodedValue, EventParserResult, ValueKind
from evparse.decoding.descriptor import EventDescriptor
from evparse.orchestration.parser import EventParser

console = Console()


def _format_value(v: DecodedValue) -> str:
    if v.kind in (ValueKind.ARRAY, ValueKind.TUPLE):
        inner = ", ".join(_format_value(child) for child in v.value)
        return f"[{inner}]" if v.kind is ValueKind.ARRAY else f"({inner})"
    if v.kind is ValueKind.DIGEST:
        return f"keccak:0x{v.value.hex()}"
    if isinstance(v.value, bytes):
        return "0x" + v.value.hex()
    return str(v.value)


def _print_results(results: list[EventParserResult], descriptor: EventDescriptor) -> None:
    if not results:
        console.print(f"[yellow]no {descriptor.name} events found[/]")
        return
    table = Table(title=escape(descriptor.signature))
    table.add_column("block", justify="right")
    table.add_column("tx")
    table.add_column("log", justify="right")
    table.add_column("address")
    for p in descriptor.params:
        table.add_column(escape(p.name) + (" (indexed)" if p.indexed else ""))
    for r in results:
        table.add_row(
            str(r.block_number),
            r.tx_hash,
            str(r.log_index),
            r.address,
            *(escape(_format_value(v)) for v in r.values),
        )
    console.print(table)
    console.print(f"[bold]done[/]: {len(results)} events")


def _build_config(event: str, address: str | None, anonymous: bool, bloom: bool) -> ParserConfig:
    try:
        return ParserConfig.for_signature(event, address=address, anonymous=anonymous, use_bloom_filter=bloom)
    except ValueError as e:
        raise click.BadParameter(str(e)) from e


def _event_options(f):
    f = click.option("--log-level", default="WARNING", show_default=True, help="Log level for stderr")(f)
    f = click.option("--anonymous", is_flag=True, default=False, help="Event is declared anonymous")(f)
    f = click.option("--address", default=None, help="Only accept logs emitted by this contract")(f)
    f = click.option("--event", required=True, help='Event signature, e.g. "Transfer(address indexed from, ...)"')(f)
    f = click.option("--rpc", required=True, help="RPC endpoint URL")(f)
    return f


@click.group()
def cli() -> None:
    """evparse: decode Ethereum event logs from transactions and blocks."""


@cli.command("tx")
@_event_options
@click.argument("tx_hash")
def tx_cmd(rpc: str, event: str, address: str | None, anonymous: bool, log_level: str, tx_hash: str) -> None:
    """Decode matching events emitted by one transaction."""
    configure_logging(log_level)
    config = _build_config(event, address, anonymous, True)
    with RPC(rpc) as provider:
        try:
            results = EventParser(config, provider).parse_transaction_by_hash(tx_hash)
        except ResolutionError as e:
            raise click.ClickException(str(e)) from e
    _print_results(results, config.descriptor)


@cli.command("block")
@_event_options
@click.option("--bloom/--no-bloom", default=True, show_default=True, help="Skip blocks/receipts ruled out by logs bloom")
@click.argument("number", type=int)
def block_cmd(
    rpc: str,
    event: str,
    address: str | None,
    anonymous: bool,
    log_level: str,
    bloom: bool,
    number: int,
) -> None:
    """Decode matching events from every transaction of a block."""
    configure_logging(log_level)
    config = _build_config(event, address, anonymous, bloom)
    with RPC(rpc) as provider:
        try:
            results = EventParser(config, provider).parse_block_by_number(number)
        except ResolutionError as e:
            raise click.ClickException(str(e)) from e
    _print_results(results, config.descriptor)


@cli.command("topic")
@click.argument("signature")
def topic_cmd(signature: str) -> None:
    """Print the canonical signature and topic0 of an event."""
    try:
        descriptor = EventDescriptor.from_signature(signature)
    except ValueError as e:
        raise click.BadParameter(str(e)) from e
    console.print(descriptor.signature, markup=False)
    console.print(descriptor.signature_hash, markup=False)
