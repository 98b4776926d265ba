from dataclasses import dataclass, field, asdict
from typing import List, Optional

import pandas as pd

from config.constants import (
    LoanType, TaxRegime, PMAYCategory, PrepaymentType, SCHEDULE_COLUMNS,
)
from config.settings import (
    DEFAULT_FOIR_PERCENT,
    DEFAULT_RATE_INCREASE_PERCENT,
    DEFAULT_RATE_CHANGE_FREQUENCY_MONTHS,
)


@dataclass(frozen=True)
class AmortizationRow:
    month: int
    year: int
    opening_balance: float
    emi: float
    interest: float
    principal: float
    closing_balance: float
    cumulative_interest: float
    cumulative_principal: float


@dataclass
class AmortizationSchedule:
    rows: List[AmortizationRow] = field(default_factory=list)
    total_interest: float = 0.0
    total_principal: float = 0.0
    total_amount: float = 0.0

    def __len__(self) -> int:
        return len(self.rows)

    def __iter__(self):
        return iter(self.rows)

    @property
    def is_empty(self) -> bool:
        return not self.rows

    def to_frame(self) -> pd.DataFrame:
        """按月展开为 DataFrame"""
        return pd.DataFrame([asdict(r) for r in self.rows], columns=SCHEDULE_COLUMNS)


@dataclass(frozen=True)
class RateChange:
    from_month: int
    new_rate: float


@dataclass(frozen=True)
class LumpSumPayment:
    month: int
    amount: float


@dataclass
class ScheduleComparison:
    months_saved: int
    interest_saved: float
    total_saved: float
    percentage_saved: float


@dataclass
class ScenarioResult:
    schedule: AmortizationSchedule
    rate_changes: List[RateChange]
    total_interest: float
    average_rate: float


@dataclass
class ScenarioComparison:
    optimistic: ScenarioResult
    realistic: ScenarioResult
    pessimistic: ScenarioResult

    def to_frame(self) -> pd.DataFrame:
        rows = []
        for name in ("optimistic", "realistic", "pessimistic"):
            result = getattr(self, name)
            sch = result.schedule
            rows.append({
                "scenario": name,
                "first_emi": sch.rows[0].emi if sch.rows else 0.0,
                "max_emi": max((r.emi for r in sch.rows), default=0.0),
                "total_interest": result.total_interest,
                "total_amount": sch.total_amount,
                "average_rate": result.average_rate,
            })
        return pd.DataFrame(rows)


@dataclass
class HybridEMIDifference:
    fixed_emi: float
    floating_emi: float
    difference: float
    percentage_change: float


@dataclass(frozen=True)
class LoanInputs:
    property_value: float
    down_payment: float
    tenure_years: int
    interest_rate: float
    loan_type: LoanType = LoanType.FIXED
    rate_increase_percent: float = DEFAULT_RATE_INCREASE_PERCENT
    rate_change_frequency_months: int = DEFAULT_RATE_CHANGE_FREQUENCY_MONTHS
    fixed_period_months: Optional[int] = None
    floating_rate: Optional[float] = None
    processing_fee: float = 0.0

    @property
    def loan_amount(self) -> float:
        return self.property_value - self.down_payment


@dataclass
class CalculationResults:
    emi: float
    total_interest: float
    total_amount: float
    effective_rate: float
    tenure_months: int


@dataclass(frozen=True)
class Scenario:
    name: str
    inputs: LoanInputs


@dataclass(frozen=True)
class TaxInputs:
    annual_income: float
    principal_paid: float
    interest_paid: float
    is_first_time_buyer: bool = False
    property_value: float = 0.0
    tax_regime: TaxRegime = TaxRegime.OLD
    is_joint_loan: bool = False
    other_80c_investments: float = 0.0


@dataclass
class DeductionResult:
    deduction: float
    utilized: float


@dataclass
class TaxDeductions:
    section_80c: float
    section_24b: float
    section_80eea: float
    total: float


@dataclass
class TaxBreakdown:
    deductions: TaxDeductions
    tax_without_loan: float
    tax_with_loan: float
    tax_new_regime: float
    savings: float
    effective_tax_rate: float
    recommended_regime: TaxRegime


@dataclass
class JointLoanBenefits:
    primary_savings: float
    co_savings: float
    total_savings: float
    combined_deduction: float


@dataclass(frozen=True)
class AffordabilityInputs:
    monthly_income: float
    down_payment_available: float
    interest_rate: float
    tenure_years: int
    co_applicant_income: float = 0.0
    existing_emis: float = 0.0
    other_obligations: float = 0.0
    foir_percentage: float = DEFAULT_FOIR_PERCENT


@dataclass
class MonthlyBreakdown:
    gross_income: float
    max_emi: float
    existing_obligations: float
    disposable_income: float


@dataclass
class AffordabilityResult:
    max_affordable_emi: float
    max_loan_amount: float
    max_property_value: float
    down_payment_required: float
    ltv_ratio: float
    monthly_breakdown: MonthlyBreakdown
    recommendations: List[str]
    rbi_compliant: Optional[bool] = None


@dataclass
class AffordabilityScenario:
    scenario: str
    foir_percentage: float
    result: AffordabilityResult


@dataclass
class RequiredIncome:
    required_monthly_income: float
    required_annual_income: float
    emi: float
    loan_amount: float


@dataclass(frozen=True)
class PMAYInputs:
    annual_income: float
    loan_amount: float
    property_value: float
    interest_rate: float
    tenure_years: int
    is_first_time: bool


@dataclass
class PMAYResult:
    eligible: bool
    category: PMAYCategory
    subsidy_rate: float
    max_loan_for_subsidy: float
    eligible_loan: float
    subsidy_npv: float
    effective_rate: float
    savings_per_month: float
    total_savings: float
    reason: str = ""


@dataclass
class PMAYEligibility:
    eligible: bool
    category: Optional[PMAYCategory] = None
    reason: str = ""


@dataclass
class StampDutyBreakdown:
    stamp_duty: float
    registration_fee: float
    gst: float
    total_transaction_cost: float
    effective_rate: float
    state: str = ""


@dataclass
class PropertyCostBreakdown:
    property_value: float
    stamp_duty: float
    registration_fee: float
    gst: float
    legal_fees: float
    other_fees: float
    total_cost: float


@dataclass(frozen=True)
class PrepaymentInputs:
    principal: float
    annual_rate: float
    tenure_years: int
    prepayment_type: PrepaymentType
    prepayment_amount: float = 0.0
    start_month: int = 1
    lump_sum_payments: tuple = ()
    reduce_tenure: bool = True


@dataclass
class PrepaymentResult:
    new_tenure_months: int
    months_saved: int
    interest_saved: float
    total_interest_paid: float
    total_extra_paid: float
    roi: float
    new_emi: float
    base_schedule: AmortizationSchedule
    prepaid_schedule: AmortizationSchedule
