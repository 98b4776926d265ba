"""提前还款测试"""
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))

import pytest
from config.constants import PrepaymentType
from core.amortization import generate_amortization_schedule
from core.emi import calculate_emi
from core.exceptions import InvalidInputError
from core.prepayment import (
    analyze_prepayment,
    build_recurring_payments,
    compare_prepayment_amounts,
    generate_reduced_emi_schedule,
    payments_for,
)
from data_manager.schema import LumpSumPayment, PrepaymentInputs


class TestRecurringPayments:
    def test_yearly_expansion(self):
        payments = build_recurring_payments(1000, 1, 24, 12)
        assert [p.month for p in payments] == [1, 13]
        assert all(p.amount == 1000 for p in payments)

    def test_monthly_from_start_month(self):
        payments = build_recurring_payments(500, 10, 12)
        assert [p.month for p in payments] == [10, 11, 12]

    def test_invalid_frequency(self):
        with pytest.raises(InvalidInputError):
            build_recurring_payments(1000, 1, 24, 0)

    def test_payments_for_lump_sum(self):
        inputs = PrepaymentInputs(5000000, 9, 20, PrepaymentType.LUMP_SUM,
                                  prepayment_amount=500000, start_month=24)
        assert payments_for(inputs) == [LumpSumPayment(month=24, amount=500000)]

    def test_payments_for_explicit_list(self):
        explicit = (LumpSumPayment(12, 100000), LumpSumPayment(36, 200000))
        inputs = PrepaymentInputs(5000000, 9, 20, PrepaymentType.LUMP_SUM,
                                  lump_sum_payments=explicit)
        assert payments_for(inputs) == list(explicit)


class TestReduceTenure:
    def test_monthly_prepayment_shortens_loan(self):
        result = analyze_prepayment(PrepaymentInputs(
            5000000, 9, 20, PrepaymentType.MONTHLY, prepayment_amount=10000,
        ))
        assert result.months_saved > 0
        assert result.new_tenure_months == 240 - result.months_saved
        assert result.interest_saved > 0
        assert result.new_emi == calculate_emi(5000000, 9, 20)
        assert result.roi == pytest.approx(result.interest_saved / result.total_extra_paid * 100, abs=0.01)

    def test_extra_paid_stops_at_payoff(self):
        result = analyze_prepayment(PrepaymentInputs(
            5000000, 9, 20, PrepaymentType.MONTHLY, prepayment_amount=10000,
        ))
        assert result.total_extra_paid <= 10000 * result.new_tenure_months

    def test_yearly_prepayment(self):
        result = analyze_prepayment(PrepaymentInputs(
            5000000, 9, 20, PrepaymentType.YEARLY, prepayment_amount=100000, start_month=12,
        ))
        assert result.months_saved > 0
        assert result.prepaid_schedule.rows[-1].closing_balance == 0


class TestReduceEMI:
    def test_lump_sum_keeps_tenure_and_lowers_emi(self):
        result = analyze_prepayment(PrepaymentInputs(
            5000000, 9, 20, PrepaymentType.LUMP_SUM,
            prepayment_amount=500000, start_month=12, reduce_tenure=False,
        ))
        assert result.new_tenure_months == 240
        assert result.months_saved == 0
        assert result.new_emi < calculate_emi(5000000, 9, 20)
        assert result.interest_saved > 0

    def test_emi_recomputed_after_prepayment(self):
        schedule = generate_reduced_emi_schedule(5000000, 9, 20, [LumpSumPayment(12, 500000)])
        base_emi = calculate_emi(5000000, 9, 20)
        assert schedule.rows[10].emi == pytest.approx(base_emi, abs=0.01)
        # 第 12 期包含提前还款额
        assert schedule.rows[11].principal > 500000
        assert schedule.rows[12].emi < base_emi
        assert schedule.rows[-1].closing_balance == 0
        assert schedule.total_principal == pytest.approx(5000000, abs=0.01)

    def test_degenerate_returns_empty(self):
        assert generate_reduced_emi_schedule(0, 9, 20, []).is_empty


class TestValidation:
    def test_zero_amount_rejected(self):
        with pytest.raises(InvalidInputError):
            analyze_prepayment(PrepaymentInputs(5000000, 9, 20, PrepaymentType.MONTHLY))

    def test_amount_not_below_principal_rejected(self):
        with pytest.raises(InvalidInputError):
            analyze_prepayment(PrepaymentInputs(
                1000000, 9, 20, PrepaymentType.LUMP_SUM, prepayment_amount=1000000,
            ))

    def test_start_month_out_of_range(self):
        with pytest.raises(InvalidInputError):
            analyze_prepayment(PrepaymentInputs(
                5000000, 9, 20, PrepaymentType.MONTHLY, prepayment_amount=10000, start_month=241,
            ))


class TestAmountSweep:
    def test_more_prepayment_saves_more(self):
        table = compare_prepayment_amounts(5000000, 9, 20)
        assert list(table["amount"]) == [5000, 10000, 15000, 20000]
        assert table["interest_saved"].is_monotonic_increasing
        assert table["months_saved"].is_monotonic_increasing
        base = generate_amortization_schedule(5000000, 9, 20)
        assert (table["new_tenure_months"] == len(base) - table["months_saved"]).all()
