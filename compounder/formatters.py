"""Output formatters for table, JSON, and CSV."""

from __future__ import annotations

import csv
import io
import json

from rich import box
from rich.console import Console
from rich.table import Table

from compounder.models import (
    CalculationResponse,
    RateResult,
    TierSummary,
    rate_result_to_dict,
    response_to_dict,
)


def _fmt_pct(val: float) -> str:
    """Format a decimal rate as a percentage with 2 decimal places."""
    return f"{val * 100:.2f}%"


def _fmt_money(value: float) -> str:
    return f"{value:,.2f}"


def _fmt_signed(value: float) -> str:
    if value > 0:
        return f"+{_fmt_money(value)}"
    return _fmt_money(value)


def _fmt_bracket(summary: TierSummary) -> str:
    if summary.is_fallback:
        return "no tier"
    upper = "∞" if summary.max is None else _fmt_money(summary.max)
    return f"{_fmt_money(summary.min)} – {upper}"


def format_table(response: CalculationResponse) -> str:
    """Format a projection as a Rich table rendered to string."""
    buf = io.StringIO()
    rich_console = Console(file=buf, width=120, no_color=True)

    header = (
        f"Tiered Compound Interest Projection\n"
        f"===================================\n"
        f"Final balance:   {_fmt_money(response.total_balance)}\n"
        f"Net profit:      {_fmt_signed(response.total_net_profit)}\n"
        f"USD initial:     ${_fmt_money(response.usd_initial)}\n"
        f"USD final value: ${_fmt_money(response.usd_final_value)}\n"
        f"USD profit/loss: {_fmt_signed(response.usd_profit_loss)}\n"
    )

    table = Table(box=box.SIMPLE_HEAD, pad_edge=False)
    table.add_column("Tier", style="bold")
    table.add_column("Rate", justify="right")
    table.add_column("Days", justify="right")
    table.add_column("Interest", justify="right")

    for s in response.tier_summary:
        table.add_row(
            _fmt_bracket(s),
            _fmt_pct(s.rate),
            str(s.days_passed),
            _fmt_money(s.interest_earned),
        )

    rich_console.print(header, end="")
    rich_console.print(table)

    if any(s.is_fallback for s in response.tier_summary):
        rich_console.print("⚠ Some days matched no tier and earned no interest.")

    return buf.getvalue()


def format_json(response: CalculationResponse) -> str:
    """Format a projection as JSON in the camelCase wire form."""
    return json.dumps(response_to_dict(response), indent=2)


def format_csv(response: CalculationResponse) -> str:
    """Format the per-tier summary as CSV."""
    buf = io.StringIO()
    fields = ["min", "max", "rate", "days_passed", "interest_earned", "fallback"]

    writer = csv.DictWriter(buf, fieldnames=fields)
    writer.writeheader()

    for s in response.tier_summary:
        writer.writerow({
            "min": f"{s.min:.2f}",
            "max": "" if s.max is None else f"{s.max:.2f}",
            "rate": f"{s.rate:.4f}",
            "days_passed": s.days_passed,
            "interest_earned": f"{s.interest_earned:.2f}",
            "fallback": "yes" if s.is_fallback else "no",
        })

    return buf.getvalue()


def format_rate_table(result: RateResult, history_rows: int = 10) -> str:
    """Format a USD rate lookup, with the most recent history rows."""
    buf = io.StringIO()
    rich_console = Console(file=buf, width=120, no_color=True)

    header = (
        f"USD/TRY Rate\n"
        f"============\n"
        f"Current price:    {result.current_price:.4f}\n"
        f"Avg daily change: {result.avg_daily_change:+.6f}\n"
        f"30-day target:    {result.suggested_target_price:.4f}\n"
        f"Last update:      {result.last_update}\n"
    )
    rich_console.print(header, end="")

    if history_rows > 0 and result.history:
        table = Table(box=box.SIMPLE_HEAD, pad_edge=False)
        table.add_column("Date", style="bold")
        table.add_column("Close", justify="right")
        for point in result.history[:history_rows]:
            table.add_row(point.date, f"{point.price:.4f}")
        rich_console.print(table)

    rich_console.print("\nData source: Twelve Data")
    return buf.getvalue()


def format_rate_json(result: RateResult) -> str:
    return json.dumps(rate_result_to_dict(result), indent=2)
