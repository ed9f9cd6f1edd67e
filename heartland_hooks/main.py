from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path
from typing import Optional

import typer

from heartland_hooks.clients.errors import HeartlandHooksError
from heartland_hooks.clients.heartland import HeartlandApiClient
from heartland_hooks.config import get_settings
from heartland_hooks.handlers.item import handle_item_created_webhook
from heartland_hooks.handlers.transaction import handle_transaction_webhook
from heartland_hooks.orchestrator import available_strategies
from heartland_hooks.report_runner import HeartlandReportRunner, ItemsNotSoldResult
from heartland_hooks.reporter import print_check_report, print_items_not_sold
from heartland_hooks.secret_store import get_secret_cache
from heartland_hooks.utils.logging import configure_logging

app = typer.Typer(help="Heartland Retail webhook handlers CLI.")


def _setup_logging() -> None:
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)


def _read_body(source: str) -> str:
    """Webhook body from a file, or from stdin when `source` is ``-``."""
    if source == "-":
        return sys.stdin.read()
    try:
        return Path(source).read_text(encoding="utf-8")
    except OSError as exc:
        raise typer.BadParameter(f"cannot read {source}: {exc}") from exc


@app.command()
def info() -> None:
    """
    Show effective configuration values.
    """
    settings = get_settings()
    secret_source = (
        "inline" if settings.operational_secret else "file" if settings.operational_secret_file else "none"
    )
    typer.echo(
        f"env={settings.app_env} | heartland={settings.heartland_api_base_url or 'unset'} "
        f"secret={secret_source} groupme={'set' if settings.groupme_bot_id else 'unset'} | "
        f"discount_threshold={settings.high_discount_threshold_percent}% "
        f"excluded_items={sorted(settings.inventory_excluded_item_ids)} "
        f"timeout={settings.http_timeout_seconds}s"
    )


@app.command()
def strategies() -> None:
    """
    List the completion strategies the transaction webhook would run.
    """
    _setup_logging()
    typer.echo("Available strategies: " + ", ".join(available_strategies()))


@app.command()
def check(
    source: str = typer.Argument("-", help="Transaction JSON file, or '-' for stdin."),
) -> None:
    """
    Run the transaction webhook against a JSON body and print the verdicts.
    """
    _setup_logging()
    response = asyncio.run(handle_transaction_webhook(_read_body(source)))
    print_check_report(response)
    typer.echo(json.dumps(response.to_body(), indent=2))


@app.command()
def item(
    source: str = typer.Argument("-", help="item_created JSON file, or '-' for stdin."),
) -> None:
    """
    Run the item_created webhook (BrickLink enrichment) against a JSON body.
    """
    _setup_logging()
    result = asyncio.run(handle_item_created_webhook(_read_body(source)))
    typer.echo(json.dumps(result, indent=2))


async def _find_items_not_sold(
    base_url: str, token: str, timeout: float, department: str, days: int, end_date: Optional[str], page: int
) -> ItemsNotSoldResult:
    async with HeartlandApiClient(base_url, token, timeout=timeout) as client:
        runner = HeartlandReportRunner(client)
        return await runner.find_items_not_sold(department, days, end_date=end_date, page=page)


@app.command()
def undersold(
    department: str = typer.Option(..., "--department", "-d", help="Heartland custom department, e.g. 'Lego'."),
    days: int = typer.Option(60, "--days", min=1, help="Minimum days since the item last sold."),
    end_date: Optional[str] = typer.Option(None, "--end-date", help="Report end date (YYYY-MM-DD); default today."),
    page: int = typer.Option(1, "--page", min=1, help="Report page."),
) -> None:
    """
    List in-stock items of a department that have not sold for a number of days.
    """
    _setup_logging()
    settings = get_settings()
    secrets = get_secret_cache()
    if not settings.heartland_api_base_url or secrets is None:
        typer.echo("HEARTLAND_API_BASE_URL and OPERATIONAL_SECRET must be set.", err=True)
        raise typer.Exit(code=1)

    try:
        token = secrets.get().heartland_token
        result = asyncio.run(
            _find_items_not_sold(
                settings.heartland_api_base_url,
                token,
                settings.http_timeout_seconds,
                department,
                days,
                end_date,
                page,
            )
        )
    except HeartlandHooksError as exc:
        typer.echo(f"Report failed: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    print_items_not_sold(result.results, department, days)
    typer.echo(f"page {page} of {result.pages} ({result.total} rows total)")


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)


if __name__ == "__main__":
    main()
