"""可负担性：按收入与 FOIR 反算最大贷款额和房价，并检查 LTV 合规"""
import logging
from typing import List, Tuple

from config.constants import LTV_LIMITS, FOIR_SCENARIOS
from config.settings import DEFAULT_FOIR_PERCENT, LOW_DISPOSABLE_INCOME, LOW_GROSS_INCOME
from core.emi import annuity_present_value, calculate_emi, monthly_rate_of
from data_manager.data_validator import ensure_finite, ensure_rate
from data_manager.schema import (
    AffordabilityInputs,
    AffordabilityResult,
    AffordabilityScenario,
    MonthlyBreakdown,
    RequiredIncome,
)

logger = logging.getLogger(__name__)


def check_ltv_compliance(property_value: float, ltv_ratio: float) -> Tuple[bool, str]:
    """按房价所在档位检查 LTV 上限，返回 (是否合规, 说明)"""
    for band in LTV_LIMITS:
        if property_value <= band.max_property_value:
            if ltv_ratio > band.max_ltv_percent:
                return False, f"LTV exceeds {band.max_ltv_percent:g}% limit for {band.label}"
            return True, ""
    return True, ""


def _recommendations(
    foir_percentage: float,
    ltv_ratio: float,
    rbi_compliant: bool,
    rbi_message: str,
    total_income: float,
    disposable_income: float,
) -> List[str]:
    recommendations = []

    if foir_percentage < 50:
        recommendations.append(
            "Very conservative approach - you have room for higher EMI if needed")
    elif foir_percentage >= 60:
        recommendations.append("High FOIR - ensure you have emergency funds")

    if ltv_ratio > 80:
        recommendations.append("Consider higher down payment to reduce LTV and get better rates")

    if not rbi_compliant:
        recommendations.append(rbi_message)

    if total_income < LOW_GROSS_INCOME:
        recommendations.append("Co-applicant can help increase loan eligibility")

    if disposable_income < LOW_DISPOSABLE_INCOME:
        recommendations.append("Low disposable income after EMI - budget carefully")

    return recommendations


def _zero_result(inputs: AffordabilityInputs, total_income: float, total_obligations: float,
                 recommendation: str) -> AffordabilityResult:
    """无可贷额度时的全零结果"""
    return AffordabilityResult(
        max_affordable_emi=0,
        max_loan_amount=0,
        max_property_value=0,
        down_payment_required=inputs.down_payment_available,
        ltv_ratio=0,
        monthly_breakdown=MonthlyBreakdown(
            gross_income=total_income,
            max_emi=0,
            existing_obligations=total_obligations,
            disposable_income=total_income - total_obligations,
        ),
        recommendations=[recommendation],
    )


def calculate_affordability(inputs: AffordabilityInputs) -> AffordabilityResult:
    """
    最大可负担 EMI = 总收入 × FOIR − 现有负债。

    可负担 EMI 不为正或期限不足一个月时返回全零结果并附说明，不抛错。
    """
    ensure_finite(monthly_income=inputs.monthly_income,
                  interest_rate=inputs.interest_rate,
                  tenure_years=inputs.tenure_years,
                  foir_percentage=inputs.foir_percentage)
    ensure_rate(inputs.interest_rate, field="interest_rate")

    total_income = inputs.monthly_income + inputs.co_applicant_income
    total_obligations = inputs.existing_emis + inputs.other_obligations
    max_allowed_emi = total_income * (inputs.foir_percentage / 100) - total_obligations

    if max_allowed_emi <= 0:
        logger.debug("no FOIR headroom: income %.2f, obligations %.2f",
                     total_income, total_obligations)
        return _zero_result(inputs, total_income, total_obligations,
                            "Your existing obligations exceed allowed FOIR. Consider reducing debts.")

    months = round(inputs.tenure_years * 12)
    if months <= 0:
        return _zero_result(inputs, total_income, total_obligations,
                            "Loan tenure must be at least one month to borrow against income.")
    max_loan_amount = annuity_present_value(
        max_allowed_emi, monthly_rate_of(inputs.interest_rate), months)
    max_property_value = max_loan_amount + inputs.down_payment_available
    ltv_ratio = max_loan_amount / max_property_value * 100

    rbi_compliant, rbi_message = check_ltv_compliance(max_property_value, ltv_ratio)
    disposable_income = total_income - total_obligations - max_allowed_emi

    return AffordabilityResult(
        max_affordable_emi=max_allowed_emi,
        max_loan_amount=max_loan_amount,
        max_property_value=max_property_value,
        down_payment_required=inputs.down_payment_available,
        ltv_ratio=ltv_ratio,
        monthly_breakdown=MonthlyBreakdown(
            gross_income=total_income,
            max_emi=max_allowed_emi,
            existing_obligations=total_obligations,
            disposable_income=disposable_income,
        ),
        recommendations=_recommendations(
            inputs.foir_percentage, ltv_ratio, rbi_compliant, rbi_message,
            total_income, disposable_income,
        ),
        rbi_compliant=rbi_compliant,
    )


def calculate_required_income(
    property_value: float,
    down_payment: float,
    interest_rate: float,
    tenure_years: int,
    foir_percentage: float = DEFAULT_FOIR_PERCENT,
    existing_emis: float = 0,
) -> RequiredIncome:
    """目标房价所需月收入 = (EMI + 现有月供) / FOIR"""
    loan_amount = property_value - down_payment
    emi = calculate_emi(loan_amount, interest_rate, tenure_years)
    required_monthly_income = (emi + existing_emis) / (foir_percentage / 100)

    return RequiredIncome(
        required_monthly_income=required_monthly_income,
        required_annual_income=required_monthly_income * 12,
        emi=emi,
        loan_amount=loan_amount,
    )


def compare_affordability_scenarios(base_inputs: AffordabilityInputs) -> List[AffordabilityScenario]:
    """FOIR 50/55/60 三档对比"""
    scenarios = []
    for name, foir in FOIR_SCENARIOS:
        inputs = AffordabilityInputs(
            monthly_income=base_inputs.monthly_income,
            down_payment_available=base_inputs.down_payment_available,
            interest_rate=base_inputs.interest_rate,
            tenure_years=base_inputs.tenure_years,
            co_applicant_income=base_inputs.co_applicant_income,
            existing_emis=base_inputs.existing_emis,
            other_obligations=base_inputs.other_obligations,
            foir_percentage=foir,
        )
        scenarios.append(AffordabilityScenario(
            scenario=name,
            foir_percentage=foir,
            result=calculate_affordability(inputs),
        ))
    return scenarios
