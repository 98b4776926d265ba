"""浮动利率计划测试"""
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))

import logging
import pytest
from core.emi import monthly_rate_of
from core.exceptions import InvalidInputError
from core.floating_rate import (
    build_rate_map,
    calculate_adjusted_emi,
    calculate_average_rate,
    generate_floating_rate_schedule,
    generate_periodic_rate_changes,
    generate_scenario_comparison,
    get_rate_change_months,
)
from data_manager.schema import RateChange


class TestPeriodicRateChanges:
    def test_two_changes(self):
        changes = generate_periodic_rate_changes(8.5, 0.25, 12, 24)
        assert changes == [RateChange(12, 8.75), RateChange(24, 9.0)]

    def test_cumulative_steps(self):
        """第三次调整是三次累加，而不是第一次的三倍"""
        changes = generate_periodic_rate_changes(8.5, 0.25, 12, 36)
        assert [c.new_rate for c in changes] == [8.75, 9.0, 9.25]

    def test_negative_step(self):
        changes = generate_periodic_rate_changes(9, -0.1, 6, 18)
        assert [c.new_rate for c in changes] == [8.9, 8.8, 8.7]
        assert [c.from_month for c in changes] == [6, 12, 18]

    def test_zero_frequency_raises(self):
        with pytest.raises(InvalidInputError):
            generate_periodic_rate_changes(9, 0.25, 0, 240)


class TestRateMap:
    def test_replays_changes(self):
        rate_map = build_rate_map(8, [RateChange(4, 9), RateChange(7, 10)], 8)
        assert [rate_map[m] for m in range(1, 9)] == [8, 8, 8, 9, 9, 9, 10, 10]

    def test_unsorted_input(self):
        rate_map = build_rate_map(8, [RateChange(7, 10), RateChange(4, 9)], 8)
        assert rate_map[5] == 9
        assert rate_map[8] == 10

    def test_duplicate_month_last_wins(self, caplog):
        with caplog.at_level(logging.WARNING, logger="core.floating_rate"):
            rate_map = build_rate_map(8, [RateChange(5, 9), RateChange(5, 10)], 10)
        assert rate_map[5] == 10
        assert "duplicate rate change" in caplog.text


class TestAdjustedEMI:
    def test_degenerate(self):
        assert calculate_adjusted_emi(0, 9, 120) == 0
        assert calculate_adjusted_emi(100000, 9, 0) == 0

    def test_cents_precision(self):
        emi = calculate_adjusted_emi(4321987.65, 9.35, 187)
        assert emi == round(emi, 2)


class TestFloatingSchedule:
    def test_no_changes_keeps_emi(self):
        schedule = generate_floating_rate_schedule(5000000, 9, 20, [])
        assert len(schedule) == 240
        assert schedule.rows[-1].closing_balance == 0
        first_emi = schedule.rows[0].emi
        assert all(row.emi == pytest.approx(first_emi, abs=0.01) for row in schedule.rows[:-1])

    def test_tenure_held_constant(self):
        changes = generate_periodic_rate_changes(8.5, 0.5, 12, 240)
        schedule = generate_floating_rate_schedule(5000000, 8.5, 20, changes)
        assert len(schedule) == 240
        assert schedule.rows[-1].closing_balance == 0
        assert schedule.total_principal == pytest.approx(5000000, abs=0.01)

    def test_emi_recomputed_only_on_change(self):
        changes = [RateChange(13, 10)]
        schedule = generate_floating_rate_schedule(3000000, 9, 15, changes)
        rows = schedule.rows
        assert rows[11].emi == pytest.approx(rows[0].emi, abs=0.01)
        expected = calculate_adjusted_emi(rows[11].closing_balance, 10, 180 - 12)
        assert rows[12].emi == pytest.approx(expected, abs=0.05)
        assert rows[13].emi == pytest.approx(rows[12].emi, abs=0.01)

    def test_interest_uses_current_rate(self):
        changes = [RateChange(25, 11)]
        schedule = generate_floating_rate_schedule(3000000, 9, 15, changes)
        for row in schedule.rows[:30]:
            rate = 9 if row.month < 25 else 11
            assert row.interest == pytest.approx(row.opening_balance * monthly_rate_of(rate), abs=0.01)

    def test_monotonic_recompute_on_increases(self):
        """只有加息时，每次重算后的 EMI 不低于上一次"""
        changes = generate_periodic_rate_changes(8, 0.25, 12, 240)
        schedule = generate_floating_rate_schedule(6000000, 8, 20, changes)
        recompute_months = [1] + [c.from_month for c in changes if c.from_month < 240]
        emis = [schedule.rows[m - 1].emi for m in recompute_months]
        assert all(later >= earlier for earlier, later in zip(emis, emis[1:]))

    def test_degenerate_and_invalid(self):
        assert generate_floating_rate_schedule(0, 9, 20, []).is_empty
        with pytest.raises(InvalidInputError):
            generate_floating_rate_schedule(1000000, -2, 20, [])
        with pytest.raises(InvalidInputError):
            generate_floating_rate_schedule(1000000, 9, 60, [])
        with pytest.raises(InvalidInputError):
            generate_floating_rate_schedule(1000000, 9, 20, [RateChange(5, float("nan"))])

    def test_idempotent(self):
        changes = generate_periodic_rate_changes(8.5, 0.25, 12, 240)
        a = generate_floating_rate_schedule(5000000, 8.5, 20, changes)
        b = generate_floating_rate_schedule(5000000, 8.5, 20, changes)
        assert a == b


class TestAverageRate:
    def test_constant_rate(self):
        schedule = generate_floating_rate_schedule(5000000, 9, 20, [])
        assert calculate_average_rate(schedule.rows, [], 9) == 9

    def test_weighted_toward_early_balances(self):
        changes = generate_periodic_rate_changes(8, 0.5, 12, 240)
        schedule = generate_floating_rate_schedule(5000000, 8, 20, changes)
        average = calculate_average_rate(schedule.rows, changes, 8)
        simple_mean = sum(8 + 0.5 * (m // 12) for m in range(1, 241)) / 240
        assert 8 < average < simple_mean

    def test_empty_schedule(self):
        assert calculate_average_rate([], [], 9) == 9


class TestScenarioComparison:
    def test_ordering(self):
        result = generate_scenario_comparison(5000000, 9, 20, 12)
        assert result.optimistic.total_interest < result.realistic.total_interest
        assert result.realistic.total_interest < result.pessimistic.total_interest
        assert result.pessimistic.rate_changes[0].new_rate == 9.5
        assert result.optimistic.rate_changes[0].new_rate == 8.9

    def test_to_frame(self):
        df = generate_scenario_comparison(5000000, 9, 20, 12).to_frame()
        assert list(df["scenario"]) == ["optimistic", "realistic", "pessimistic"]

    def test_rate_change_months(self):
        changes = [RateChange(24, 9), RateChange(12, 8.75)]
        assert get_rate_change_months(changes) == [12, 24]
