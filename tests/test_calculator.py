"""Tests for pure calculation functions."""

import math

import pytest

from compounder.calculator import (
    daily_gross_interest,
    iter_days,
    net_interest,
    round_half_up,
    select_tier,
    simulate,
    taxable_base,
)
from compounder.models import DEFAULT_TIERS, FALLBACK, CalculationRequest, Tier


def _request(
    principal: float,
    days: int,
    tiers: list[Tier],
    withholding_tax: float = 0.0,
    usd_start_rate: float = 1.0,
    usd_end_rate: float = 1.0,
) -> CalculationRequest:
    return CalculationRequest(
        principal=principal,
        days=days,
        withholding_tax=withholding_tax,
        usd_start_rate=usd_start_rate,
        usd_end_rate=usd_end_rate,
        tiers=tiers,
    )


class TestRoundHalfUp:
    def test_half_rounds_away_from_zero(self):
        # Built-in round() gives 2.67 here
        assert round_half_up(2.675) == 2.68
        assert round_half_up(-2.675) == -2.68

    def test_four_places(self):
        assert round_half_up(1.00005, 4) == 1.0001

    def test_already_rounded(self):
        assert round_half_up(20000.0) == 20000.0

    def test_values_beyond_default_decimal_precision(self):
        assert round_half_up(1e27) == 1e27
        assert round_half_up(1e28, 4) == 1e28
        assert round_half_up(-3.5e300) == -3.5e300


class TestSelectTier:
    def test_balance_equal_to_max_selects_that_tier(self):
        tiers = [Tier(0, 100, 0.1), Tier(100, None, 0.2)]
        assert select_tier(tiers, 100.0) is tiers[0]

    def test_balance_equal_to_min_selects_that_tier(self):
        tiers = [Tier(0, 99, 0.1), Tier(100, None, 0.2)]
        assert select_tier(tiers, 100.0) is tiers[1]

    def test_overlap_prefers_first_in_table_order(self):
        tiers = [Tier(0, None, 0.1), Tier(50, None, 0.2)]
        assert select_tier(tiers, 60.0) is tiers[0]

    def test_gap_matches_nothing(self):
        tiers = [Tier(0, 99, 0.1), Tier(100, None, 0.2)]
        assert select_tier(tiers, 99.5) is None

    def test_empty_table(self):
        assert select_tier([], 1000.0) is None


class TestDailyPieces:
    def test_taxable_base_never_negative(self):
        assert taxable_base(15000.0, 20000.0) == 0.0
        assert taxable_base(25000.0, 20000.0) == 5000.0

    def test_gross_interest_uses_365_days(self):
        assert daily_gross_interest(36500.0, 1.0) == pytest.approx(100.0)

    def test_net_interest_applies_withholding_as_fraction(self):
        assert net_interest(100.0, 0.15) == pytest.approx(85.0)
        assert net_interest(100.0, 0.0) == 100.0


class TestSimulate:
    def test_exemption_covers_whole_balance(self):
        request = _request(20000, 1, [Tier(0, None, 0.44, 20000)])
        response = simulate(request)
        assert response.total_balance == 20000.00
        assert response.total_net_profit == 0.00

    def test_one_year_approximates_continuous_compounding(self):
        request = _request(100000, 365, [Tier(0, None, 0.44, 0)])
        response = simulate(request)
        assert response.total_balance == pytest.approx(
            100000 * math.exp(0.44), rel=1e-3
        )

    def test_constant_tier_matches_daily_compounding(self):
        request = _request(100000, 365, [Tier(0, None, 0.44, 0)])
        response = simulate(request)
        expected = 100000 * (1 + 0.44 / 365) ** 365
        assert response.total_balance == pytest.approx(expected, abs=0.01)

    def test_withholding_tax(self):
        request = _request(100000, 1, [Tier(0, None, 0.365, 0)], withholding_tax=0.15)
        response = simulate(request)
        assert response.total_balance == 100085.00
        assert response.total_net_profit == 85.00

    def test_withholding_tax_above_one_is_applied_verbatim(self):
        # A value on the percentage scale is not divided by 100
        request = _request(100000, 1, [Tier(0, None, 0.365, 0)], withholding_tax=2)
        response = simulate(request)
        assert response.total_balance == 99900.00

    def test_usd_conversion(self):
        request = _request(
            100000, 10, [Tier(0, None, 0.0, 0)], usd_start_rate=40, usd_end_rate=50
        )
        response = simulate(request)
        assert response.usd_initial == 2500.00
        assert response.usd_final_value == 2000.00
        assert response.usd_profit_loss == -500.00

    def test_profit_identities(self):
        request = _request(
            1_234_567.89, 400, DEFAULT_TIERS, 0.15, usd_start_rate=34.5, usd_end_rate=41.2
        )
        response = simulate(request)
        assert response.total_net_profit == pytest.approx(
            response.total_balance - 1_234_567.89, abs=0.01
        )
        assert response.usd_profit_loss == pytest.approx(
            response.usd_final_value - response.usd_initial, abs=0.01
        )

    def test_days_passed_sum_to_days(self):
        request = _request(249_000, 365, DEFAULT_TIERS, 0.15)
        response = simulate(request)
        assert sum(s.days_passed for s in response.tier_summary) == 365
        assert len(response.tier_summary) >= 2

    def test_tier_crossing_mid_run(self):
        # 0.1% a day: 999 -> 999.999 -> 1000.998999, so day 3 is in the upper tier
        tiers = [Tier(0, 1000, 0.365, 0), Tier(1000, None, 0.73, 0)]
        response = simulate(_request(999, 5, tiers))

        by_rate = {s.rate: s for s in response.tier_summary}
        assert by_rate[0.365].days_passed == 2
        assert by_rate[0.73].days_passed == 3
        earned = sum(s.interest_earned for s in response.tier_summary)
        assert response.total_balance == pytest.approx(999 + earned, abs=0.01)

    def test_balance_below_first_tier_goes_to_fallback(self):
        response = simulate(_request(10000, 30, DEFAULT_TIERS))
        assert response.total_balance == 10000.00
        assert len(response.tier_summary) == 1
        summary = response.tier_summary[0]
        assert summary.is_fallback
        assert summary.days_passed == 30
        assert summary.interest_earned == 0.0
        assert (summary.min, summary.max, summary.rate) == (0.0, None, 0.0)

    def test_fractional_balance_in_table_gap_goes_to_fallback(self):
        # 250000.5 sits between the 250000 max and the 250001 min
        response = simulate(_request(250_000.5, 5, DEFAULT_TIERS))
        assert [s.is_fallback for s in response.tier_summary] == [True]
        assert response.total_balance == 250_000.50

    def test_fallback_does_not_merge_with_zero_tier(self):
        tiers = [Tier(0, 50, 0.0, 0), Tier(100, None, 0.365, 0)]
        response = simulate(_request(75, 3, tiers))
        assert [s.is_fallback for s in response.tier_summary] == [True]

        response = simulate(_request(25, 3, tiers))
        assert [s.is_fallback for s in response.tier_summary] == [False]

    def test_very_large_principal(self):
        response = simulate(_request(1e27, 1, [Tier(0, None, 0.44, 0)]))
        assert response.total_balance == pytest.approx(1e27 * (1 + 0.44 / 365))
        assert response.usd_initial == 1e27

    def test_tiny_usd_start_rate(self):
        response = simulate(_request(1e18, 1, [], usd_start_rate=1e-10))
        assert response.usd_initial == pytest.approx(1e28)
        assert response.usd_profit_loss == pytest.approx(1e18 - 1e28)

    def test_empty_table(self):
        response = simulate(_request(5000, 7, []))
        assert response.total_balance == 5000.00
        assert response.tier_summary[0].days_passed == 7

    def test_interest_earned_left_unrounded(self):
        response = simulate(_request(1000, 1, [Tier(0, None, 0.1, 0)]))
        assert response.tier_summary[0].interest_earned == pytest.approx(
            1000 * 0.1 / 365
        )


class TestIterDays:
    def test_one_record_per_day(self):
        records = list(iter_days(_request(50000, 10, DEFAULT_TIERS)))
        assert [r.day for r in records] == list(range(1, 11))
        assert records[0].balance == 50000

    def test_balance_feeds_forward(self):
        records = list(iter_days(_request(50000, 10, DEFAULT_TIERS, 0.15)))
        for prev, nxt in zip(records, records[1:]):
            assert nxt.balance == prev.balance + prev.net_interest
            assert nxt.balance >= prev.balance

    def test_records_exemption_and_tier(self):
        records = list(iter_days(_request(50000, 1, DEFAULT_TIERS)))
        assert records[0].exemption == 20000
        assert records[0].tier.rate == 0.44
        assert records[0].tier != FALLBACK
        assert records[0].gross_interest == pytest.approx(30000 * 0.44 / 365)
