"""固定利率还款计划测试"""
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))

import pytest
from config.constants import SCHEDULE_COLUMNS, YEARLY_SUMMARY_COLUMNS
from core.amortization import (
    compare_schedules,
    find_crossover_month,
    generate_amortization_schedule,
    generate_schedule_with_lump_sum,
    generate_yearly_summary,
    get_month_details,
    get_year_breakdown,
)
from core.emi import calculate_emi
from core.exceptions import InvalidInputError
from data_manager.schema import LumpSumPayment


class TestGenerateSchedule:
    def test_full_tenure(self, schedule):
        assert len(schedule) == 240
        assert schedule.rows[0].month == 1
        assert schedule.rows[-1].month == 240
        assert schedule.rows[-1].year == 20

    def test_fully_repaid(self, schedule):
        assert schedule.rows[-1].closing_balance == 0
        assert schedule.total_principal == pytest.approx(5000000, abs=0.01)

    def test_totals_consistent(self, schedule):
        assert schedule.total_amount == pytest.approx(
            schedule.total_interest + schedule.total_principal, abs=0.01)

    def test_row_invariants(self, schedule):
        emi = calculate_emi(5000000, 9, 20)
        assert schedule.rows[0].opening_balance == 5000000
        for prev, row in zip(schedule.rows, schedule.rows[1:]):
            assert row.opening_balance == pytest.approx(prev.closing_balance, abs=1)
        for row in schedule.rows:
            assert row.closing_balance >= 0
            assert abs(row.emi - (row.interest + row.principal)) <= 1
            assert abs(row.closing_balance - (row.opening_balance - row.principal)) <= 1
        # 最后一期之前月供不变
        assert all(row.emi == emi for row in schedule.rows[:-1])

    def test_degenerate_input_returns_empty(self):
        assert generate_amortization_schedule(0, 9, 20).is_empty
        assert generate_amortization_schedule(1000000, 9, 0).is_empty

    def test_negative_rate_or_extra_raises(self):
        with pytest.raises(InvalidInputError):
            generate_amortization_schedule(1000000, -1, 20)
        with pytest.raises(InvalidInputError):
            generate_amortization_schedule(1000000, 9, 20, extra_payment=-100)

    def test_extra_payment_ends_early(self, schedule):
        faster = generate_amortization_schedule(5000000, 9, 20, extra_payment=10000)
        assert len(faster) < len(schedule)
        assert faster.rows[-1].closing_balance == 0
        assert faster.total_interest < schedule.total_interest

    def test_zero_rate(self):
        result = generate_amortization_schedule(120000, 0, 1)
        assert len(result) == 12
        assert result.total_interest == 0
        assert result.rows[-1].closing_balance == 0

    def test_to_frame(self, schedule):
        df = schedule.to_frame()
        assert list(df.columns) == SCHEDULE_COLUMNS
        assert len(df) == 240


class TestLumpSum:
    def test_lump_sum_applied_in_month(self):
        base = generate_amortization_schedule(2000000, 8.5, 15)
        result = generate_schedule_with_lump_sum(2000000, 8.5, 15, [LumpSumPayment(12, 300000)])
        assert result.rows[11].principal > base.rows[11].principal + 299000
        assert len(result) < len(base)
        assert result.rows[-1].closing_balance == 0

    def test_same_month_payments_are_summed(self):
        split = generate_schedule_with_lump_sum(
            2000000, 8.5, 15, [LumpSumPayment(12, 100000), LumpSumPayment(12, 100000)])
        single = generate_schedule_with_lump_sum(2000000, 8.5, 15, [LumpSumPayment(12, 200000)])
        assert split.rows == single.rows

    def test_payment_larger_than_balance_is_clipped(self):
        result = generate_schedule_with_lump_sum(1000000, 9, 10, [LumpSumPayment(3, 5000000)])
        assert len(result) == 3
        assert result.rows[-1].closing_balance == 0
        assert result.total_principal == pytest.approx(1000000, abs=0.01)

    def test_negative_payment_raises(self):
        with pytest.raises(InvalidInputError):
            generate_schedule_with_lump_sum(1000000, 9, 10, [LumpSumPayment(3, -1)])


class TestYearlySummary:
    def test_one_row_per_year(self, schedule):
        yearly = generate_yearly_summary(schedule)
        assert list(yearly.columns) == YEARLY_SUMMARY_COLUMNS
        assert len(yearly) == 20
        assert list(yearly["year"]) == list(range(1, 21))

    def test_reduction_of_monthly_rows(self, schedule):
        yearly = generate_yearly_summary(schedule)
        first_year = schedule.rows[:12]
        assert yearly.iloc[0]["opening_balance"] == first_year[0].opening_balance
        assert yearly.iloc[0]["closing_balance"] == first_year[-1].closing_balance
        assert yearly.iloc[0]["total_interest"] == pytest.approx(sum(r.interest for r in first_year))
        assert yearly.iloc[-1]["closing_balance"] == 0

    def test_empty_schedule(self):
        yearly = generate_yearly_summary(generate_amortization_schedule(0, 9, 20))
        assert yearly.empty
        assert list(yearly.columns) == YEARLY_SUMMARY_COLUMNS


class TestCompareSchedules:
    def test_positive_when_b_is_better(self, schedule):
        faster = generate_amortization_schedule(5000000, 9, 20, extra_payment=10000)
        result = compare_schedules(schedule, faster)
        assert result.months_saved == len(schedule) - len(faster)
        assert result.interest_saved > 0
        assert result.total_saved > 0
        assert 0 < result.percentage_saved < 100

    def test_zero_interest_baseline(self):
        a = generate_amortization_schedule(120000, 0, 1)
        b = generate_amortization_schedule(120000, 0, 1, extra_payment=10000)
        assert compare_schedules(a, b).percentage_saved == 0


class TestScheduleLookups:
    def test_month_details(self, schedule):
        assert get_month_details(5000000, 9, 20, 13) == schedule.rows[12]
        assert get_month_details(5000000, 9, 20, 0) is None
        assert get_month_details(5000000, 9, 20, 241) is None

    def test_year_breakdown(self):
        breakdown = get_year_breakdown(5000000, 9, 20, 1)
        assert breakdown["year"] == 1
        assert breakdown["interest"] > breakdown["principal"]
        assert get_year_breakdown(5000000, 9, 20, 21) is None

    def test_crossover_month(self, schedule):
        month = find_crossover_month(5000000, 9, 20)
        row = schedule.rows[month - 1]
        assert row.principal > row.interest
        assert schedule.rows[month - 2].principal <= schedule.rows[month - 2].interest
