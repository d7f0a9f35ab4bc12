"""Rich console formatter for one-shot supply fetches."""

from __future__ import annotations

from rich.columns import Columns
from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table

from ..domain import GlobalSupplySnapshot
from ..units import format_units


def _truncate_address(address: str) -> str:
    """Truncate address for display."""
    return f"{address[:10]}...{address[-4:]}"


def _format_raw(value: int) -> str:
    """Format a raw integer amount with comma separators."""
    return f"{value:,}"


def format_supply_table(
    snapshot: GlobalSupplySnapshot,
    token_address: str,
    excluded_addresses: list[str],
    console: Console | None = None,
) -> None:
    """Print a rich dashboard of a supply snapshot to stdout.

    Args:
        snapshot: The snapshot to format
        token_address: Token contract address
        excluded_addresses: Addresses excluded from circulating supply
        console: Console to print to, defaults to a new stdout console
    """
    console = console or Console()
    decimals = snapshot.decimals

    token_table = Table(show_header=False, box=None, padding=(0, 1))
    token_table.add_column("Key", style="dim")
    token_table.add_column("Value", style="cyan")
    token_table.add_row("Address", _truncate_address(token_address))
    token_table.add_row("Decimals", str(decimals))
    token_table.add_row("Chains", ", ".join(snapshot.chains))
    token_table.add_row("Excluded", str(len(excluded_addresses)))

    token_panel = Panel(token_table, title="[bold]Token[/]", border_style="blue")

    summary_table = Table(show_header=False, box=None, padding=(0, 1))
    summary_table.add_column("Key", style="dim")
    summary_table.add_column("Value", style="green")
    summary_table.add_row(
        "Circulating", format_units(snapshot.total_circulating, decimals)
    )
    summary_table.add_row("Total", format_units(snapshot.total_supply, decimals))
    summary_table.add_row("Policy", snapshot.total_supply_policy.value)
    summary_table.add_row("Fetched in", f"{snapshot.fetch_duration_ms}ms")

    summary_panel = Panel(summary_table, title="[bold]Summary[/]", border_style="green")

    top_row = Columns([token_panel, summary_panel], equal=True, expand=True)

    chain_table = Table(title=None, expand=True, show_lines=False)
    chain_table.add_column("Chain", style="cyan", no_wrap=True)
    chain_table.add_column("Total (raw)", justify="right", style="dim")
    chain_table.add_column("Total", justify="right")
    chain_table.add_column("Excluded", justify="right", style="yellow")
    chain_table.add_column("Circulating", justify="right", style="green")

    for name, chain in snapshot.chains.items():
        chain_table.add_row(
            name,
            _format_raw(chain.total_supply),
            format_units(chain.total_supply, decimals),
            format_units(chain.excluded_balance, decimals),
            format_units(chain.circulating_supply, decimals),
        )

    chain_table.add_row(
        "[bold]TOTAL[/]",
        "",
        f"[bold]{format_units(snapshot.total_supply, decimals)}[/]",
        f"[bold]{format_units(snapshot.total_excluded, decimals)}[/]",
        f"[bold]{format_units(snapshot.total_circulating, decimals)}[/]",
        style="bold",
    )

    chain_panel = Panel(
        chain_table,
        title="[bold]Chain Breakdown[/]",
        border_style="cyan",
    )

    outer_panel = Panel(
        Group(top_row, "", chain_panel),
        title=f"[bold white]Supply at {snapshot.timestamp.isoformat()}[/]",
        border_style="white",
        padding=(1, 2),
    )

    console.print()
    console.print(outer_panel)
    console.print()
