"""CLI entry point for compounder."""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any, NoReturn

import click
import httpx

from compounder import cache, calculator, formatters, rates
from compounder.errors import CompounderError, ValidationError
from compounder.models import DEFAULT_TIERS, RateResult, tier_to_dict
from compounder.validation import parse_request

logger = logging.getLogger(__name__)

# CLI option -> wire field
_REQUIRED_FIELDS = {
    "--principal": "principal",
    "--days": "days",
    "--usd-start-rate": "usdStartRate",
    "--usd-end-rate": "usdEndRate",
}


def _load_json(path: Path, label: str) -> Any:
    try:
        return json.loads(path.read_text())
    except json.JSONDecodeError as exc:
        raise click.BadParameter(f"{label} file is not valid JSON: {exc}") from exc


async def _fetch_rate() -> RateResult:
    async with httpx.AsyncClient(timeout=30.0) as client:
        service = rates.RateService(client, cache.FileRateCache())
        return await service.get_usd_rate()


def _fail(message: str) -> NoReturn:
    click.echo(f"Error: {message}", err=True)
    sys.exit(1)


@click.group()
@click.option("--verbose", is_flag=True, help="Enable debug logging")
def main(verbose: bool) -> None:
    """Tiered Compound Interest Projector.

    Simulates day-by-day compounding over a tiered deposit rate table and
    converts the result to USD.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@main.command()
@click.option("--principal", type=float, help="Starting balance in local currency")
@click.option("--days", type=int, help="Number of days to simulate")
@click.option(
    "--withholding-tax",
    type=float,
    help="Withholding tax applied to interest as a fraction (0.15 = 15%)",
)
@click.option("--usd-start-rate", type=float, help="Local currency per 1 USD at start")
@click.option("--usd-end-rate", type=float, help="Local currency per 1 USD at end")
@click.option(
    "--tiers",
    "tiers_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="JSON file with the tier table (default: built-in table)",
)
@click.option(
    "--request",
    "request_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="JSON file with a full request; other options override its fields",
)
@click.option(
    "--live-rates",
    is_flag=True,
    help="Fill missing USD rates from the rate service (current and 30-day target)",
)
@click.option(
    "--output",
    "output_format",
    default="table",
    type=click.Choice(["table", "json", "csv"]),
    help="Output format",
)
def calculate(
    principal: float | None,
    days: int | None,
    withholding_tax: float | None,
    usd_start_rate: float | None,
    usd_end_rate: float | None,
    tiers_path: Path | None,
    request_path: Path | None,
    live_rates: bool,
    output_format: str,
) -> None:
    """Project a tiered compounding deposit."""
    payload: dict[str, Any] = {}
    if request_path is not None:
        loaded = _load_json(request_path, "Request")
        if not isinstance(loaded, dict):
            _fail("Request file must contain a JSON object.")
        payload.update(loaded)
    if tiers_path is not None:
        payload["tiers"] = _load_json(tiers_path, "Tiers")
    payload.setdefault("tiers", [tier_to_dict(t) for t in DEFAULT_TIERS])
    payload.setdefault("withholdingTax", 0.0)

    overrides = {
        "principal": principal,
        "days": days,
        "withholdingTax": withholding_tax,
        "usdStartRate": usd_start_rate,
        "usdEndRate": usd_end_rate,
    }
    payload.update({k: v for k, v in overrides.items() if v is not None})

    if live_rates and ("usdStartRate" not in payload or "usdEndRate" not in payload):
        try:
            rate = asyncio.run(_fetch_rate())
        except CompounderError as exc:
            _fail(str(exc))
        payload.setdefault("usdStartRate", rate.current_price)
        payload.setdefault("usdEndRate", rate.suggested_target_price)

    missing = [opt for opt, name in _REQUIRED_FIELDS.items() if name not in payload]
    if missing:
        _fail(f"Missing required options: {', '.join(missing)}")

    try:
        request = parse_request(payload)
    except ValidationError as exc:
        click.echo("Error: Invalid input data", err=True)
        for error in exc.errors:
            click.echo(f"  {error}", err=True)
        sys.exit(1)

    if request.withholding_tax > 1:
        logger.warning(
            "withholding tax %g is applied as a fraction; net interest will be negative",
            request.withholding_tax,
        )

    response = calculator.simulate(request)

    if output_format == "json":
        click.echo(formatters.format_json(response))
    elif output_format == "csv":
        click.echo(formatters.format_csv(response), nl=False)
    else:
        click.echo(formatters.format_table(response), nl=False)


@main.command(name="rates")
@click.option(
    "--output",
    "output_format",
    default="table",
    type=click.Choice(["table", "json"]),
    help="Output format",
)
@click.option(
    "--history",
    "history_rows",
    default=10,
    show_default=True,
    help="Number of history rows in the table",
)
def show_rates(output_format: str, history_rows: int) -> None:
    """Show the current USD/TRY rate and its 30-day trend target."""
    try:
        result = asyncio.run(_fetch_rate())
    except CompounderError as exc:
        _fail(str(exc))

    if output_format == "json":
        click.echo(formatters.format_rate_json(result))
    else:
        click.echo(formatters.format_rate_table(result, history_rows), nl=False)


@main.command(name="cache-status")
def cache_status() -> None:
    """Show cache file locations and freshness."""
    entries = cache.cache_status()
    if not entries:
        click.echo("No cache files found.")
        return
    click.echo("Cache files:")
    for e in entries:
        name = e["file"]
        size = e["size_bytes"]
        mod = e["modified"]
        click.echo(f"  {name:20s}  {size:>8d} bytes  modified {mod}")
    click.echo(f"\nCache directory: {cache.CACHE_DIR}")


@main.command(name="clear-cache")
def clear_cache() -> None:
    """Delete cached rate lookups."""
    count = cache.clear_cache()
    click.echo(f"Cleared {count} cache file(s).")


if __name__ == "__main__":
    main()
