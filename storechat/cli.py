"""
StoreChat CLI

Command-line interface for asking store analytics questions.

Usage:
    storechat ask --store-id <uuid> "What was my revenue last month?"
    storechat validate "SELECT * FROM orders WHERE store_id = $1"
    storechat suggestions
"""

import asyncio
import json
import sys
from typing import Any

import click
from rich.console import Console
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

from storechat.agents import SQLValidator
from storechat.config import get_settings
from storechat.connectors import ConnectorError, create_connector
from storechat.models import PipelineAnswer, PipelineError
from storechat.pipeline import QueryPipeline, get_suggestions

console = Console()

MAX_DISPLAY_ROWS = 50


# ============================================================================
# Helper Functions
# ============================================================================


def _format_cell(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def _build_rows_table(rows: list[dict[str, Any]], max_rows: int) -> Table:
    table = Table(show_header=True, header_style="bold cyan")
    if not rows:
        return table

    columns = list(rows[0].keys())
    for column in columns:
        table.add_column(column)
    for row in rows[:max_rows]:
        table.add_row(*(_format_cell(row.get(column)) for column in columns))
    return table


def _print_answer(answer: PipelineAnswer, max_rows: int) -> None:
    console.print(Panel(answer.answer or "No explanation returned", title="Answer"))
    console.print(Syntax(answer.query.sql, "sql", word_wrap=True))

    rows = answer.execution.rows
    if rows:
        console.print(_build_rows_table(rows, max_rows))
        if len(rows) > max_rows:
            console.print(f"[dim]... {len(rows) - max_rows} more rows[/dim]")
    else:
        console.print("[yellow]No rows returned[/yellow]")

    footer = f"{answer.execution.row_count} rows in {answer.execution.duration_ms:.0f}ms"
    if answer.execution.truncated:
        footer += " (truncated)"
    if answer.chart is not None:
        footer += f" | chart: {answer.chart.type}"
    console.print(f"[dim]{footer}[/dim]")


async def _run_ask(store_id: str, question: str, max_rows: int) -> PipelineAnswer:
    settings = get_settings()
    database = settings.database
    if not database.url:
        raise click.ClickException("DATABASE_URL is not configured")

    readonly_url = database.readonly_url or database.url
    context_connector = create_connector(
        database_url=database.url,
        pool_min_size=database.pool_min_size,
        pool_size=database.pool_max_size,
    )
    readonly_connector = create_connector(
        database_url=readonly_url,
        read_only=True,
        pool_min_size=database.pool_min_size,
        pool_size=database.pool_max_size,
        statement_timeout_ms=database.statement_timeout_ms,
    )

    try:
        pipeline = QueryPipeline.from_settings(settings, context_connector, readonly_connector)
    except ValueError as e:
        raise click.ClickException(str(e)) from e

    async with context_connector, readonly_connector:
        with console.status("[cyan]Processing query...[/cyan]", spinner="dots"):
            return await pipeline.ask_or_raise(store_id, question)


# ============================================================================
# Commands
# ============================================================================


@click.group()
@click.version_option(version="0.1.0", prog_name="StoreChat")
def cli():
    """StoreChat - Natural language analytics for e-commerce stores."""
    get_settings().logging.configure()


@cli.command()
@click.argument("question")
@click.option("--store-id", required=True, help="Store (tenant) UUID")
@click.option(
    "--max-rows",
    default=MAX_DISPLAY_ROWS,
    show_default=True,
    type=int,
    help="Rows to display",
)
def ask(question: str, store_id: str, max_rows: int):
    """Ask a single question about a store and exit."""
    try:
        answer = asyncio.run(_run_ask(store_id, question, max_rows))
    except PipelineError as e:
        console.print(f"[red]Error: {e.message}[/red]")
        sys.exit(1)
    except ConnectorError:
        # Driver messages can carry hosts and credentials
        console.print("[red]Error: The database is unavailable. Please try again later.[/red]")
        sys.exit(1)

    _print_answer(answer, max_rows)


@cli.command()
@click.argument("sql")
@click.option("--json", "as_json", is_flag=True, help="Print the validation result as JSON")
def validate(sql: str, as_json: bool):
    """Validate SQL offline with the tenant safety rules."""
    pipeline_settings = get_settings().pipeline
    validator = SQLValidator(
        allowed_tables=pipeline_settings.allowed_tables,
        tenant_column=pipeline_settings.tenant_column,
        default_limit=pipeline_settings.default_limit,
        max_limit=pipeline_settings.max_limit,
    )
    result = validator.validate(sql)

    if as_json:
        click.echo(json.dumps(result.model_dump(), indent=2))
    elif result.valid:
        console.print("[green]✓ SQL is valid[/green]")
        console.print(Syntax(result.sql, "sql", word_wrap=True))
    else:
        console.print("[red]✗ SQL rejected[/red]")
        for error in result.errors:
            console.print(f"  • {error}")

    if not result.valid:
        sys.exit(1)


@cli.command()
def suggestions():
    """Show starter questions."""
    for index, suggestion in enumerate(get_suggestions(), start=1):
        console.print(f"{index}. {suggestion}")


if __name__ == "__main__":
    cli()
