"""Pure calculation functions for tiered daily compounding."""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from decimal import ROUND_HALF_UP, Decimal, localcontext

from compounder.models import (
    FALLBACK,
    CalculationRequest,
    CalculationResponse,
    DailyResult,
    Tier,
    TierKey,
    TierSummary,
)

DAYS_PER_YEAR = 365


def round_half_up(value: float, places: int = 2) -> float:
    """Round half away from zero on the decimal representation of value."""
    quantum = Decimal(1).scaleb(-places)
    exact = Decimal(repr(value))
    with localcontext() as ctx:
        # quantize needs room for every integer digit plus the decimals
        ctx.prec = max(ctx.prec, exact.adjusted() + places + 2)
        return float(exact.quantize(quantum, rounding=ROUND_HALF_UP))


def select_tier(tiers: Sequence[Tier], balance: float) -> Tier | None:
    """First tier in table order whose bracket contains balance.

    Both bounds are inclusive. Overlapping tiers resolve to the earlier one;
    None means no tier matched (the fallback bucket).
    """
    for tier in tiers:
        if balance >= tier.min and (tier.max is None or balance <= tier.max):
            return tier
    return None


def taxable_base(balance: float, exemption: float) -> float:
    """Interest-bearing base (matrah), never negative."""
    return max(0.0, balance - exemption)


def daily_gross_interest(base: float, annual_rate: float) -> float:
    return base * annual_rate / DAYS_PER_YEAR


def net_interest(gross: float, withholding_tax: float) -> float:
    """Gross interest after withholding.

    withholding_tax is applied as a fraction (0.15 = 15%) exactly as given.
    """
    return gross * (1 - withholding_tax)


def iter_days(request: CalculationRequest) -> Iterator[DailyResult]:
    """Yield one record per simulated day, feeding each day's balance forward."""
    balance = request.principal
    for day in range(1, request.days + 1):
        tier = select_tier(request.tiers, balance)
        if tier is None:
            exemption, rate, key = 0.0, 0.0, FALLBACK
        else:
            exemption, rate, key = tier.exempt, tier.rate, TierKey.of(tier)

        gross = daily_gross_interest(taxable_base(balance, exemption), rate)
        net = net_interest(gross, request.withholding_tax)
        yield DailyResult(
            day=day,
            balance=balance,
            gross_interest=gross,
            net_interest=net,
            exemption=exemption,
            tier=key,
        )
        balance += net


def simulate(request: CalculationRequest) -> CalculationResponse:
    """Run the day-by-day simulation and aggregate it by tier.

    Assumes the request already passed boundary validation.
    """
    balance = request.principal
    usd_initial = request.principal / request.usd_start_rate

    buckets: dict[TierKey, TierSummary] = {}
    for record in iter_days(request):
        balance = record.balance + record.net_interest
        summary = buckets.get(record.tier)
        if summary is None:
            key = record.tier
            summary = TierSummary(
                min=key.min, max=key.max, rate=key.rate, is_fallback=key.fallback
            )
            buckets[key] = summary
        summary.days_passed += 1
        summary.interest_earned += record.net_interest

    total_net_profit = balance - request.principal
    usd_final_value = balance / request.usd_end_rate
    usd_profit_loss = usd_final_value - usd_initial

    return CalculationResponse(
        total_balance=round_half_up(balance),
        total_net_profit=round_half_up(total_net_profit),
        usd_initial=round_half_up(usd_initial),
        usd_final_value=round_half_up(usd_final_value),
        usd_profit_loss=round_half_up(usd_profit_loss),
        tier_summary=list(buckets.values()),
    )
