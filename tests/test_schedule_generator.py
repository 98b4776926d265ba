"""按贷款类型分派与方案对比测试"""
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))

import pytest
from config.constants import SCENARIO_COMPARISON_COLUMNS, LoanType
from core.amortization import generate_amortization_schedule
from core.comparison import calc_irr, compare_loan_scenarios
from core.exceptions import InvalidInputError
from core.floating_rate import generate_floating_rate_schedule
from core.hybrid_rate import generate_hybrid_rate_schedule, generate_scenario_comparison
from core.schedule_generator import default_rate_changes, generate_loan_schedule, summarize_loan
from data_manager.schema import AmortizationSchedule, LoanInputs, RateChange, Scenario


def make_inputs(**overrides):
    values = dict(
        property_value=6000000,
        down_payment=1000000,
        tenure_years=20,
        interest_rate=9,
    )
    values.update(overrides)
    return LoanInputs(**values)


class TestDispatch:
    def test_fixed(self):
        schedule = generate_loan_schedule(make_inputs())
        assert schedule == generate_amortization_schedule(5000000, 9, 20)

    def test_floating_with_explicit_changes(self):
        changes = [RateChange(12, 9.5)]
        schedule = generate_loan_schedule(make_inputs(loan_type=LoanType.FLOATING), changes)
        assert schedule == generate_floating_rate_schedule(5000000, 9, 20, changes)

    def test_floating_default_changes(self):
        inputs = make_inputs(loan_type=LoanType.FLOATING)
        changes = default_rate_changes(inputs)
        assert changes[0] == RateChange(12, 9.25)
        assert len(changes) == 20
        assert generate_loan_schedule(inputs) == generate_floating_rate_schedule(5000000, 9, 20, changes)

    def test_hybrid(self):
        inputs = make_inputs(interest_rate=8, loan_type=LoanType.HYBRID,
                             fixed_period_months=36, floating_rate=9)
        changes = default_rate_changes(inputs)
        # 按绝对月份累加，固定期内的调整丢弃
        assert changes[0] == RateChange(48, 10.0)
        assert all(36 < c.from_month <= 240 for c in changes)
        assert len(changes) == 17
        expected = generate_hybrid_rate_schedule(5000000, 8, 9, 36, 20, changes)
        assert generate_loan_schedule(inputs) == expected

    def test_hybrid_matches_realistic_scenario(self):
        inputs = make_inputs(interest_rate=8, loan_type=LoanType.HYBRID,
                             fixed_period_months=36, floating_rate=9)
        scenarios = generate_scenario_comparison(5000000, 8, 9, 36, 20, 12)
        assert default_rate_changes(inputs) == scenarios.realistic.rate_changes
        assert generate_loan_schedule(inputs) == scenarios.realistic.schedule

    def test_hybrid_missing_fields(self):
        with pytest.raises(InvalidInputError) as excinfo:
            generate_loan_schedule(make_inputs(loan_type=LoanType.HYBRID, floating_rate=9))
        assert excinfo.value.field == "fixed_period_months"
        with pytest.raises(InvalidInputError):
            generate_loan_schedule(make_inputs(loan_type=LoanType.HYBRID, fixed_period_months=36))

    def test_default_changes_need_hybrid_fields(self):
        with pytest.raises(InvalidInputError):
            default_rate_changes(make_inputs(loan_type=LoanType.HYBRID, floating_rate=9))

    def test_unknown_loan_type(self):
        with pytest.raises(InvalidInputError):
            generate_loan_schedule(make_inputs(loan_type="balloon"))

    def test_fixed_has_no_rate_changes(self):
        assert default_rate_changes(make_inputs()) == []


class TestSummary:
    def test_summary_without_fee(self):
        results = summarize_loan(make_inputs())
        schedule = generate_amortization_schedule(5000000, 9, 20)
        assert results.emi == schedule.rows[0].emi
        assert results.total_interest == schedule.total_interest
        assert results.tenure_months == 240
        assert results.effective_rate == 9

    def test_processing_fee_raises_effective_rate(self):
        results = summarize_loan(make_inputs(processing_fee=50000))
        assert results.effective_rate > 9


class TestIRR:
    def test_nominal_rate_compounds_monthly(self, schedule):
        # (1 + 0.09/12) ** 12 - 1
        assert calc_irr(5000000, schedule) == pytest.approx(9.38, abs=0.05)

    def test_empty_schedule(self):
        assert calc_irr(5000000, AmortizationSchedule()) == 0.0
        assert calc_irr(0, generate_amortization_schedule(5000000, 9, 20)) == 0.0

    def test_no_root_in_bracket(self):
        # 放款额远小于月供，月利率区间内 NPV 恒为正
        schedule = generate_amortization_schedule(1000000, 9, 20)
        assert calc_irr(1, schedule) == 0.0


class TestScenarioComparison:
    def test_best_and_worst(self):
        table, ranking = compare_loan_scenarios([
            Scenario("Bank A", make_inputs()),
            Scenario("Bank B", make_inputs(interest_rate=8.5)),
            Scenario("Bank C", make_inputs(loan_type=LoanType.FLOATING)),
        ])
        assert list(table.columns) == SCENARIO_COMPARISON_COLUMNS
        assert len(table) == 3
        assert ranking == {"best": "Bank B", "worst": "Bank C"}

    def test_floating_last_emi_differs(self):
        table, _ = compare_loan_scenarios([Scenario("Floating", make_inputs(loan_type=LoanType.FLOATING))])
        row = table.iloc[0]
        assert row["loan_type"] == "floating"
        assert row["last_emi"] != row["first_emi"]

    def test_no_scenarios(self):
        table, ranking = compare_loan_scenarios([])
        assert table.empty
        assert ranking == {}
