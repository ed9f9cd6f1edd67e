from __future__ import annotations

from typing import Optional, Sequence

from rich import box
from rich.console import Console
from rich.table import Table

from heartland_hooks.domain.models import WebhookResponse
from heartland_hooks.report_runner import ItemsNotSoldRow


def _fmt_optional(value: object) -> str:
    return "-" if value is None else str(value)


def print_check_report(response: WebhookResponse, console: Optional[Console] = None) -> None:
    """
    Render the per-strategy verdicts of a transaction webhook response.

    Checks that were not applicable are shown dimmed; the caption carries the
    overall verdict and the first passing strategy.
    """
    console = console or Console()

    if not response.checks:
        console.print("[yellow]No checks were evaluated.[/yellow]")
        return

    verdict = "[bold green]PASS[/bold green]" if response.check else "[bold red]FAIL[/bold red]"
    title = (
        f"Transaction {_fmt_optional(response.transaction_id)} "
        f"[dim]({response.transaction_kind}, type={_fmt_optional(response.transaction_type)})[/dim]"
    )
    table = Table(
        title=title,
        box=box.ROUNDED,
        caption=f"Overall: {verdict} │ completion strategy: {_fmt_optional(response.completion_strategy)}",
    )

    table.add_column("Strategy", style="cyan", no_wrap=True)
    table.add_column("Executed", justify="center")
    table.add_column("Passed", justify="center")

    for result in response.checks:
        if not result.executed:
            table.add_row(f"[dim]{result.name}[/dim]", "[dim]no[/dim]", "[dim]-[/dim]")
            continue
        passed = "[green]yes[/green]" if result.passed else "[red]no[/red]"
        table.add_row(result.name, "yes", passed)

    console.print(table)


def print_items_not_sold(
    rows: Sequence[ItemsNotSoldRow],
    department: str,
    days: int,
    console: Optional[Console] = None,
) -> None:
    """Render an items-not-sold page, most stale items first."""
    console = console or Console()

    if not rows:
        console.print(f"[yellow]No unsold items in {department} for {days}+ days.[/yellow]")
        return

    table = Table(
        title=f"{department}: in stock, not sold for {days}+ days",
        box=box.ROUNDED,
        caption="Sorted by days since last sold (descending, never sold first)",
    )
    table.add_column("Location", style="blue")
    table.add_column("Item", style="cyan", no_wrap=True)
    table.add_column("Description")
    table.add_column("Qty", justify="right", style="magenta")
    table.add_column("Last sold", justify="right", style="yellow")
    table.add_column("Days", justify="right", style="bold yellow")
    table.add_column("Last received", justify="right", style="green")

    # Never sold (None) sorts ahead of everything else.
    def sort_key(row: ItemsNotSoldRow) -> float:
        return float("inf") if row.days_since_last_sold is None else float(row.days_since_last_sold)

    for row in sorted(rows, key=sort_key, reverse=True):
        table.add_row(
            row.location_name,
            row.public_id,
            row.description,
            f"{row.qty_owned:g}",
            _fmt_optional(row.last_sold_date),
            _fmt_optional(row.days_since_last_sold),
            _fmt_optional(row.last_received_date),
        )

    console.print(table)
