"""
CLI interface for Soroban Fees.

Provides command-line access to the fee calculators and the simulation
normalizer. Inputs are local files; no network calls are made.
"""

import json
import logging
import sys
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from soroban_fees.config.loader import (
    default_schedule,
    load_fee_schedule,
    load_rent_changes,
    load_usage
)
from soroban_fees.core.costs import ContractCosts
from soroban_fees.core.errors import FeeError
from soroban_fees.core.rates import FeeSchedule
from soroban_fees.core.rent_fee import RentFeeBreakdown, rent_fee_breakdown
from soroban_fees.core.resource_fee import resource_fee_breakdown
from soroban_fees.core.simulation import (
    SimulationResult,
    SimulationStatus,
    simulate_contract_costs
)
from soroban_fees.core.trace import SimulationTrace
from soroban_fees.core.units import format_display_units, from_display_units
from soroban_fees.core.usage import ResourceUsage
from soroban_fees.sdk.stellar_codec import StellarXdrCodec

app = typer.Typer()
console = Console()

EXIT_CODE_PASS = 0
EXIT_CODE_FAIL = 1


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _load_schedule(rates: Optional[Path]) -> FeeSchedule:
    if rates is None:
        return default_schedule()
    return load_fee_schedule(str(rates))


def _read_envelope(value: str) -> str:
    """Envelope given inline, or as @path to a file holding it."""
    if value.startswith("@"):
        return Path(value[1:]).read_text(encoding="utf-8").strip()
    return value.strip()


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """Soroban Fees CLI."""
    _setup_logging(verbose)
    if ctx.invoked_subcommand is None:
        console.print("Soroban Fees - Use --help to see available commands")


@app.command()
def rates(
    rates_file: Optional[Path] = typer.Option(
        None, "--rates", "-r", help="YAML fee schedule (defaults to built-in rates)"
    ),
):
    """Show the active fee schedule."""
    try:
        schedule = _load_schedule(rates_file)
    except Exception as e:
        console.print(f"[red]Error loading fee schedule:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)

    table = Table(title=f"Fee schedule: {schedule.name}")
    table.add_column("Setting")
    table.add_column("Value", justify="right")
    for name, value in vars(schedule.rates).items():
        table.add_row(name, f"{value:,}")
    for name, value in vars(schedule.ttl).items():
        table.add_row(name, f"{value:,}")
    console.print(table)


@app.command()
def resource(
    cpu_instructions: int = typer.Option(0, "--cpu", help="CPU instructions"),
    entries_read: int = typer.Option(0, "--reads", help="Ledger entries read"),
    entries_written: int = typer.Option(0, "--writes", help="Ledger entries written"),
    bytes_read: int = typer.Option(0, "--read-bytes", help="Bytes read from the ledger"),
    bytes_written: int = typer.Option(0, "--write-bytes", help="Bytes written to the ledger"),
    txn_size: int = typer.Option(0, "--txn-size", help="Transaction size in bytes"),
    events_size: int = typer.Option(0, "--events-size", help="Events and return value size in bytes"),
    usage_file: Optional[Path] = typer.Option(
        None, "--usage", "-u", help="YAML mapping of usage counters (replaces the counter options)"
    ),
    rates_file: Optional[Path] = typer.Option(None, "--rates", "-r", help="YAML fee schedule"),
):
    """Compute the resource fee for explicit usage counters."""
    try:
        schedule = _load_schedule(rates_file)
        if usage_file is not None:
            usage = load_usage(str(usage_file))
        else:
            usage = ResourceUsage(
                cpu_instructions=cpu_instructions,
                ledger_entries_read=entries_read,
                ledger_entries_written=entries_written,
                bytes_read=bytes_read,
                bytes_written=bytes_written,
                transaction_size_bytes=txn_size,
                events_and_return_bytes=events_size,
            )
        breakdown = resource_fee_breakdown(usage, schedule.rates)
    except Exception as e:
        console.print(f"[red]Error:[/] {escape(str(e))}")
        sys.exit(EXIT_CODE_FAIL)

    table = Table(title="Resource Fee")
    table.add_column("Resource")
    table.add_column("Stroops", justify="right")
    for name, fee in breakdown.as_dict().items():
        table.add_row(name, f"{fee:,}")
    table.add_row("[bold]total[/bold]", f"[bold]{breakdown.total:,}[/bold]")
    console.print(table)
    console.print(f"Resource fee: {format_display_units(breakdown.total)} XLM")


@app.command()
def rent(
    changes_file: Path = typer.Option(..., "--changes", "-c", help="YAML list of rent changes"),
    ledger: Optional[int] = typer.Option(
        None, "--ledger", "-l", help="Current ledger sequence (overrides the file)"
    ),
    rates_file: Optional[Path] = typer.Option(None, "--rates", "-r", help="YAML fee schedule"),
):
    """Compute the rent fee for a batch of ledger entry changes."""
    try:
        schedule = _load_schedule(rates_file)
        changes, file_ledger = load_rent_changes(str(changes_file))
        current_ledger = ledger if ledger is not None else file_ledger
        if current_ledger is None:
            raise ValueError("Current ledger is required: pass --ledger or set current_ledger")
        breakdown = rent_fee_breakdown(changes, current_ledger, schedule.rates)
    except Exception as e:
        console.print(f"[red]Error:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)

    _display_rent_breakdown(breakdown)
    console.print(f"Rent fee: {format_display_units(breakdown.total)} XLM")


@app.command()
def simulate(
    response_file: Path = typer.Option(
        ..., "--response", help="JSON file holding a simulateTransaction response"
    ),
    transaction: str = typer.Option(
        ..., "--transaction", "-t", help="Base64 transaction envelope, or @file"
    ),
    inclusion_fee: int = typer.Option(
        0, "--inclusion-fee", help="Inclusion fee in stroops to add to the total"
    ),
    inclusion_fee_xlm: Optional[str] = typer.Option(
        None, "--inclusion-fee-xlm", help="Inclusion fee in XLM (instead of --inclusion-fee)"
    ),
    rates_file: Optional[Path] = typer.Option(None, "--rates", "-r", help="YAML fee schedule"),
    strict: bool = typer.Option(
        False, "--strict", "-s", help="Exit with error code if any entry was skipped"
    ),
):
    """
    Estimate fees from a saved simulation response.

    Normalizes the response, then computes resource and rent fees at the
    simulator's latest ledger.
    """
    try:
        schedule = _load_schedule(rates_file)
        if inclusion_fee_xlm is not None:
            if inclusion_fee:
                raise ValueError("Pass either --inclusion-fee or --inclusion-fee-xlm, not both")
            inclusion_fee = from_display_units(inclusion_fee_xlm)
        with open(response_file, 'r', encoding='utf-8') as f:
            response = json.load(f)
        codec = StellarXdrCodec()
        trace = SimulationTrace.from_rpc_response(response, _read_envelope(transaction), codec)
        result = simulate_contract_costs(
            trace=trace,
            codec=codec,
            schedule=schedule,
            inclusion_fee=inclusion_fee
        )
    except (FeeError, OSError, ValueError) as e:
        console.print(f"[red]Error:[/] {escape(str(e))}")
        sys.exit(EXIT_CODE_FAIL)

    _display_simulation_result(result)

    if strict and result.status == SimulationStatus.PARTIAL:
        sys.exit(EXIT_CODE_FAIL)
    sys.exit(EXIT_CODE_PASS)


def _display_rent_breakdown(breakdown: RentFeeBreakdown) -> None:
    """Display per-entry rent fees."""
    table = Table(title=f"Rent Fee at ledger {breakdown.current_ledger_seq:,}")
    table.add_column("#", justify="right")
    table.add_column("Entry")
    table.add_column("Durability")
    table.add_column("Extension ledgers", justify="right")
    table.add_column("Extension fee", justify="right")
    table.add_column("Growth fee", justify="right")

    for i, entry in enumerate(breakdown.entries, start=1):
        change = entry.change
        label = change.key or change.entry_type.value
        if entry.skipped:
            table.add_row(str(i), label, "-", "-", "[dim]deleted[/]", "-")
            continue
        table.add_row(
            str(i),
            label,
            "persistent" if change.is_persistent else "temporary",
            f"{entry.extension_ledgers:,}",
            f"{entry.extension_fee:,}",
            f"{entry.growth_fee:,}",
        )
    console.print(table)
    console.print(
        f"Extended entries: {breakdown.extended_entries} "
        f"(TTL write fee {breakdown.ttl_entry_write_fee:,}, "
        f"TTL bytes fee {breakdown.ttl_entry_bytes_fee:,})"
    )
    console.print(f"Total rent: {breakdown.total:,} stroops")


def _display_costs(costs: ContractCosts) -> None:
    table = Table(title="Contract Costs")
    table.add_column("Component")
    table.add_column("Stroops", justify="right")
    table.add_column("XLM", justify="right")
    summary = costs.summary()
    for label, stroops, key in (
        ("Resource fee", costs.resource_fee, "resource_fee"),
        ("Rent fee", costs.rent_fee, "rent_fee"),
        ("Inclusion fee", costs.inclusion_fee, "inclusion_fee"),
        ("Total", costs.total_fee, "total_fee"),
    ):
        table.add_row(label, f"{stroops:,}", summary[key])
    console.print(table)


def _display_simulation_result(result: SimulationResult) -> None:
    """Display usage, rent entries and fee totals of a simulation."""
    console.print("\n[bold]Soroban Fee Simulation Result[/bold]")
    console.print("-" * 40)

    usage = result.normalized.usage
    console.print(f"CPU instructions: {usage.cpu_instructions:,}")
    console.print(f"Memory bytes: {result.normalized.memory_bytes:,}")
    console.print(f"Ledger entries read: {usage.ledger_entries_read:,}")
    console.print(f"Ledger entries written: {usage.ledger_entries_written:,}")
    console.print(f"Bytes read: {usage.bytes_read:,}")
    console.print(f"Bytes written: {usage.bytes_written:,}")
    console.print(f"Events/return value size: {usage.events_and_return_bytes:,}")
    console.print(f"Transaction size: {usage.transaction_size_bytes:,}")
    console.print(f"Deleted entries: {result.normalized.deleted_entries}")

    _display_rent_breakdown(result.costs.rent)
    _display_costs(result.costs)

    if result.declared_resource_fee is not None:
        console.print(
            f"Simulator resource fee: {result.declared_resource_fee:,} stroops "
            f"(delta {result.resource_fee_delta:+,})"
        )

    for skip in result.normalized.skipped:
        console.print(
            f"[yellow]Skipped state change {skip.index}[/] ({skip.reason.value}): {escape(skip.detail)}"
        )
    console.print(f"\n[bold]Status:[/bold] {result.status.name}")


if __name__ == "__main__":
    app()
