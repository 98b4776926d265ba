"""
PMAY 信贷挂钩补贴（CLSS）

按年收入划分 EWS/LIG/MIG1/MIG2 四档，补贴价值为市场利率与补贴利率
月供差额逐月折现（年折现率 8%）后的现值，补贴期最长 20 年。
"""
from typing import List, Optional

import numpy as np

from config.constants import PMAY_CRITERIA, PMAY_MAX_TENURE_YEARS, PMAYCategory
from config.settings import PMAY_DISCOUNT_RATE
from core.emi import calculate_emi
from data_manager.data_validator import ensure_finite
from data_manager.schema import PMAYEligibility, PMAYInputs, PMAYResult
from utils.formatters import fmt_amount


def classify_pmay_category(annual_income: float) -> PMAYCategory:
    """按年收入上限依次匹配档位，超过 MIG2 上限为 INELIGIBLE"""
    for category, criteria in PMAY_CRITERIA.items():
        if annual_income <= criteria.max_income:
            return category
    return PMAYCategory.INELIGIBLE


def _ineligible(inputs: PMAYInputs, category: PMAYCategory, reason: str) -> PMAYResult:
    criteria = PMAY_CRITERIA.get(category)
    return PMAYResult(
        eligible=False,
        category=category,
        subsidy_rate=criteria.subsidy_rate if criteria else 0,
        max_loan_for_subsidy=criteria.max_loan_for_subsidy if criteria else 0,
        eligible_loan=0,
        subsidy_npv=0,
        effective_rate=inputs.interest_rate,
        savings_per_month=0,
        total_savings=0,
        reason=reason,
    )


def discount_monthly_differential(monthly_diff: float, months: int,
                                  annual_discount_rate: float = PMAY_DISCOUNT_RATE) -> float:
    """逐月折现：sum(diff / (1 + d/12)^m), m = 1..months"""
    if months <= 0:
        return 0.0
    periods = np.arange(1, months + 1)
    factors = (1 + annual_discount_rate / 12) ** periods
    return float(np.sum(monthly_diff / factors))


def calculate_pmay_subsidy(inputs: PMAYInputs) -> PMAYResult:
    """
    计算 PMAY 补贴。

    不满足条件（收入超限、非首套、房价超限）时返回 eligible=False 并附 reason，不抛错。
    """
    ensure_finite(annual_income=inputs.annual_income, loan_amount=inputs.loan_amount,
                  property_value=inputs.property_value, interest_rate=inputs.interest_rate,
                  tenure_years=inputs.tenure_years)

    category = classify_pmay_category(inputs.annual_income)
    if category is PMAYCategory.INELIGIBLE:
        return _ineligible(inputs, category, "Annual income exceeds ₹18L (MIG2 limit)")

    criteria = PMAY_CRITERIA[category]
    if not inputs.is_first_time:
        return _ineligible(inputs, category, "PMAY subsidy only for first-time home buyers")

    if inputs.property_value > criteria.max_property_value:
        return _ineligible(
            inputs, category,
            f"Property value {fmt_amount(inputs.property_value)} exceeds limit "
            f"{fmt_amount(criteria.max_property_value)}",
        )

    eligible_loan = min(inputs.loan_amount, criteria.max_loan_for_subsidy)
    subsidy_tenure = min(inputs.tenure_years, PMAY_MAX_TENURE_YEARS)

    # 补贴利率不低于 0
    subsidized_rate = max(inputs.interest_rate - criteria.subsidy_rate, 0)
    emi_market = calculate_emi(eligible_loan, inputs.interest_rate, subsidy_tenure)
    emi_subsidized = calculate_emi(eligible_loan, subsidized_rate, subsidy_tenure)
    monthly_diff = emi_market - emi_subsidized

    subsidy_npv = discount_monthly_differential(monthly_diff, round(subsidy_tenure * 12))

    if inputs.loan_amount > 0:
        effective_rate = inputs.interest_rate - criteria.subsidy_rate * (eligible_loan / inputs.loan_amount)
    else:
        effective_rate = inputs.interest_rate
    total_savings = subsidy_npv * (subsidy_tenure / inputs.tenure_years) if inputs.tenure_years > 0 else 0

    return PMAYResult(
        eligible=True,
        category=category,
        subsidy_rate=criteria.subsidy_rate,
        max_loan_for_subsidy=criteria.max_loan_for_subsidy,
        eligible_loan=eligible_loan,
        subsidy_npv=subsidy_npv,
        effective_rate=effective_rate,
        savings_per_month=monthly_diff,
        total_savings=total_savings,
    )


def check_pmay_eligibility(annual_income: float, property_value: float,
                           is_first_time: bool) -> PMAYEligibility:
    """只判断资格，不计算补贴金额"""
    if not is_first_time:
        return PMAYEligibility(eligible=False, reason="Only for first-time home buyers")

    category = classify_pmay_category(annual_income)
    if category is PMAYCategory.INELIGIBLE:
        return PMAYEligibility(eligible=False, reason="Income exceeds ₹18L")

    criteria = PMAY_CRITERIA[category]
    if property_value > criteria.max_property_value:
        return PMAYEligibility(
            eligible=False,
            category=category,
            reason=f"Property value exceeds {fmt_amount(criteria.max_property_value)} "
                   f"for {category.value}",
        )
    return PMAYEligibility(eligible=True, category=category)


def compare_across_categories(
    loan_amount: float,
    interest_rate: float,
    tenure_years: int,
    property_value: float,
    categories: Optional[List[PMAYCategory]] = None,
) -> List[PMAYResult]:
    """以各档收入区间中点计算补贴，便于横向比较"""
    results = []
    for category in categories or list(PMAY_CRITERIA):
        criteria = PMAY_CRITERIA[category]
        results.append(calculate_pmay_subsidy(PMAYInputs(
            annual_income=(criteria.min_income + criteria.max_income) / 2,
            loan_amount=loan_amount,
            property_value=property_value,
            interest_rate=interest_rate,
            tenure_years=tenure_years,
            is_first_time=True,
        )))
    return results
