"""Data models for tiered compounding projections and USD rate lookups."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(slots=True, frozen=True)
class Tier:
    min: float
    max: float | None  # None = unbounded
    rate: float  # annual nominal rate as a decimal (0.44 = 44%)
    exempt: float = 0.0


@dataclass(slots=True, frozen=True)
class TierKey:
    """Identity of an aggregation bucket.

    Real tiers are identified by (min, max, rate). The fallback bucket is
    its own variant so it never merges with a genuine {0, None, 0} tier.
    """

    min: float
    max: float | None
    rate: float
    fallback: bool = False

    @classmethod
    def of(cls, tier: Tier) -> TierKey:
        return cls(tier.min, tier.max, tier.rate)


FALLBACK = TierKey(0.0, None, 0.0, fallback=True)


@dataclass(slots=True)
class CalculationRequest:
    principal: float
    days: int
    withholding_tax: float
    usd_start_rate: float  # local currency per 1 USD
    usd_end_rate: float
    tiers: list[Tier] = field(default_factory=list)


@dataclass(slots=True, frozen=True)
class DailyResult:
    day: int
    balance: float  # at the start of the day
    gross_interest: float
    net_interest: float
    exemption: float
    tier: TierKey


@dataclass(slots=True)
class TierSummary:
    min: float
    max: float | None
    rate: float
    days_passed: int = 0
    interest_earned: float = 0.0
    is_fallback: bool = False


@dataclass(slots=True)
class CalculationResponse:
    total_balance: float
    total_net_profit: float
    usd_initial: float
    usd_final_value: float
    usd_profit_loss: float
    tier_summary: list[TierSummary] = field(default_factory=list)


@dataclass(slots=True, frozen=True)
class RatePoint:
    date: str
    price: float


@dataclass(slots=True, frozen=True)
class RateResult:
    current_price: float
    avg_daily_change: float
    suggested_target_price: float
    last_update: str
    history: tuple[RatePoint, ...] = ()


# --- Wire format (camelCase, as served to and cached for callers) ---

def tier_to_dict(tier: Tier) -> dict[str, Any]:
    return {"min": tier.min, "max": tier.max, "rate": tier.rate, "exempt": tier.exempt}


def response_to_dict(response: CalculationResponse) -> dict[str, Any]:
    return {
        "totalBalance": response.total_balance,
        "totalNetProfit": response.total_net_profit,
        "usdInitial": response.usd_initial,
        "usdFinalValue": response.usd_final_value,
        "usdProfitLoss": response.usd_profit_loss,
        "tierSummary": [
            {
                "min": s.min,
                "max": s.max,
                "rate": s.rate,
                "daysPassed": s.days_passed,
                "interestEarned": s.interest_earned,
                "fallback": s.is_fallback,
            }
            for s in response.tier_summary
        ],
    }


def rate_result_to_dict(result: RateResult) -> dict[str, Any]:
    return {
        "currentPrice": result.current_price,
        "avgDailyChange": result.avg_daily_change,
        "suggestedTargetPrice": result.suggested_target_price,
        "lastUpdate": result.last_update,
        "history": [{"date": p.date, "price": p.price} for p in result.history],
    }


def rate_result_from_dict(data: dict[str, Any]) -> RateResult:
    return RateResult(
        current_price=float(data["currentPrice"]),
        avg_daily_change=float(data["avgDailyChange"]),
        suggested_target_price=float(data["suggestedTargetPrice"]),
        last_update=data["lastUpdate"],
        history=tuple(
            RatePoint(date=p["date"], price=float(p["price"])) for p in data["history"]
        ),
    )


# --- Default tier table ---

def _build_default_tiers() -> list[Tier]:
    # (min, max, rate, exempt)
    rows = [
        (20_000, 250_000, 0.44, 20_000),
        (250_001, 500_000, 0.44, 40_000),
        (500_001, 1_000_000, 0.44, 75_000),
        (1_000_001, 1_500_000, 0.44, 150_000),
        (1_500_001, 2_000_000, 0.44, 175_000),
        (2_000_001, 3_000_000, 0.44, 250_000),
        (3_000_001, 4_000_000, 0.44, 350_000),
        (4_000_001, 5_000_000, 0.44, 450_000),
        (5_000_001, 7_500_000, 0.43, 600_000),
        (7_500_001, 10_000_000, 0.43, 900_000),
        (10_000_001, 15_000_000, 0.43, 1_500_000),
        (15_000_001, None, 0.41, 2_500_000),
    ]
    return [
        Tier(float(lo), None if hi is None else float(hi), rate, float(ex))
        for lo, hi, rate, ex in rows
    ]


DEFAULT_TIERS = _build_default_tiers()
