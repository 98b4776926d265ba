"""
房贷相关个税计算（新旧两种税制）

旧税制：80C（本金）、24(b)（利息）、80EEA（首套房额外利息）均可扣除。
新税制：除标准扣除外不允许任何扣除。
"""
from typing import Iterable, List, Dict

import pandas as pd

from config.constants import (
    CESS_RATE,
    PRE_EMI_DEDUCTION_YEARS,
    SECTION_24B_LIMIT_SELF_OCCUPIED,
    SECTION_80C_LIMIT,
    SECTION_80EEA_LIMIT,
    SECTION_80EEA_PROPERTY_VALUE_LIMIT,
    STANDARD_DEDUCTION,
    TAX_SLABS_NEW,
    TAX_SLABS_OLD,
    TaxRegime,
    TaxSlab,
)
from config.settings import TAX_SAVINGS_HORIZON_YEARS
from data_manager.schema import (
    DeductionResult,
    JointLoanBenefits,
    TaxBreakdown,
    TaxDeductions,
    TaxInputs,
)
from utils.rounding import round_amount


def calculate_slab_tax(taxable_income: float, slabs: Iterable[TaxSlab]) -> float:
    """逐档累计税额（未含附加税）"""
    tax = 0.0
    remaining = taxable_income
    for slab in slabs:
        if remaining <= 0:
            break
        slab_amount = min(remaining, slab.max - slab.min)
        tax += slab_amount * slab.rate
        remaining -= slab_amount
    return tax


def calculate_80c(principal_paid: float, other_80c_investments: float = 0) -> DeductionResult:
    """80C：与其他 80C 投资共享 15 万上限；utilized 为房贷本金实际占用的额度"""
    deduction = min(principal_paid + other_80c_investments, SECTION_80C_LIMIT)
    utilized = min(principal_paid, max(0, SECTION_80C_LIMIT - other_80c_investments))
    return DeductionResult(deduction=round_amount(deduction), utilized=round_amount(utilized))


def calculate_24b(interest_paid: float, is_let_out: bool = False) -> float:
    """24(b)：自住上限 20 万，出租无上限"""
    if is_let_out:
        return round_amount(interest_paid)
    return round_amount(min(interest_paid, SECTION_24B_LIMIT_SELF_OCCUPIED))


def calculate_80eea(
    is_first_time_buyer: bool,
    property_value: float,
    interest_paid: float,
    section_24b_used: float = 0,
) -> float:
    """80EEA：首套房且房价不超过 45 万卢比上限；只扣 24(b) 之外剩余的利息"""
    if not is_first_time_buyer:
        return 0
    if property_value > SECTION_80EEA_PROPERTY_VALUE_LIMIT:
        return 0

    remaining_interest = max(0, interest_paid - section_24b_used)
    return round_amount(min(remaining_interest, SECTION_80EEA_LIMIT))


def calculate_tax_old(income: float, deductions: float = 0) -> float:
    taxable_income = max(0, income - deductions - STANDARD_DEDUCTION)
    tax = calculate_slab_tax(taxable_income, TAX_SLABS_OLD)
    return round_amount(tax * (1 + CESS_RATE))


def calculate_tax_new(income: float) -> float:
    taxable_income = max(0, income - STANDARD_DEDUCTION)
    tax = calculate_slab_tax(taxable_income, TAX_SLABS_NEW)
    return round_amount(tax * (1 + CESS_RATE))


def calculate_tax_savings(inputs: TaxInputs) -> TaxBreakdown:
    """
    计算两种税制下的税额并推荐较低者。

    savings 是旧税制下"有房贷扣除"相对"没有房贷扣除"少交的税，
    不是两种税制之间的差额。
    """
    tax_new = calculate_tax_new(inputs.annual_income)

    section_80c = calculate_80c(inputs.principal_paid, inputs.other_80c_investments)
    section_24b = calculate_24b(inputs.interest_paid)
    section_80eea = calculate_80eea(
        inputs.is_first_time_buyer, inputs.property_value, inputs.interest_paid, section_24b)

    total_deductions = section_80c.deduction + section_24b + section_80eea
    tax_with_loan = calculate_tax_old(inputs.annual_income, total_deductions)
    tax_without_loan = calculate_tax_old(
        inputs.annual_income, min(inputs.other_80c_investments, SECTION_80C_LIMIT))

    recommended = TaxRegime.OLD if tax_with_loan < tax_new else TaxRegime.NEW

    return TaxBreakdown(
        deductions=TaxDeductions(
            section_80c=section_80c.utilized,
            section_24b=section_24b,
            section_80eea=section_80eea,
            total=section_80c.utilized + section_24b + section_80eea,
        ),
        tax_without_loan=tax_without_loan,
        tax_with_loan=tax_with_loan,
        tax_new_regime=tax_new,
        savings=tax_without_loan - tax_with_loan,
        effective_tax_rate=calculate_effective_tax_rate(inputs.annual_income, tax_with_loan),
        recommended_regime=recommended,
    )


def calculate_joint_loan_benefits(
    primary_income: float,
    co_income: float,
    principal_paid: float,
    interest_paid: float,
    split: float = 0.5,
    is_first_time_buyer: bool = False,
    property_value: float = 0,
) -> JointLoanBenefits:
    """共同借款人按份额各自享受全部扣除上限"""
    primary = calculate_tax_savings(TaxInputs(
        annual_income=primary_income,
        principal_paid=principal_paid * split,
        interest_paid=interest_paid * split,
        is_first_time_buyer=is_first_time_buyer,
        property_value=property_value,
        is_joint_loan=True,
    ))
    co = calculate_tax_savings(TaxInputs(
        annual_income=co_income,
        principal_paid=principal_paid * (1 - split),
        interest_paid=interest_paid * (1 - split),
        is_first_time_buyer=is_first_time_buyer,
        property_value=property_value,
        is_joint_loan=True,
    ))

    return JointLoanBenefits(
        primary_savings=primary.savings,
        co_savings=co.savings,
        total_savings=primary.savings + co.savings,
        combined_deduction=primary.deductions.total + co.deductions.total,
    )


def calculate_pre_emi_deduction(pre_emi_interest: float) -> float:
    """在建期利息，交房后分 5 年等额扣除"""
    return round_amount(pre_emi_interest / PRE_EMI_DEDUCTION_YEARS)


def calculate_effective_tax_rate(income: float, tax_paid: float) -> float:
    if income == 0:
        return 0
    return round_amount(tax_paid / income * 10000) / 100


def estimate_yearly_savings(inputs: TaxInputs, tenure_years: int) -> List[Dict[str, float]]:
    """按首年节税额粗估逐年节税，20 年后记为 0"""
    year_one = calculate_tax_savings(inputs).savings
    return [
        {"year": year, "savings": round_amount(year_one if year <= TAX_SAVINGS_HORIZON_YEARS else 0)}
        for year in range(1, tenure_years + 1)
    ]


def calculate_yearly_tax_savings(
    yearly_summary: pd.DataFrame,
    annual_income: float,
    is_first_time_buyer: bool = False,
    property_value: float = 0,
    other_80c_investments: float = 0,
) -> pd.DataFrame:
    """按还款计划的年度汇总逐年计算实际本金/利息对应的节税额"""
    records = []
    for _, row in yearly_summary.iterrows():
        breakdown = calculate_tax_savings(TaxInputs(
            annual_income=annual_income,
            principal_paid=float(row["total_principal"]),
            interest_paid=float(row["total_interest"]),
            is_first_time_buyer=is_first_time_buyer,
            property_value=property_value,
            other_80c_investments=other_80c_investments,
        ))
        records.append({
            "year": int(row["year"]),
            "principal_paid": float(row["total_principal"]),
            "interest_paid": float(row["total_interest"]),
            "deductions": breakdown.deductions.total,
            "savings": breakdown.savings,
            "recommended_regime": breakdown.recommended_regime.value,
        })
    return pd.DataFrame(records, columns=[
        "year", "principal_paid", "interest_paid", "deductions", "savings", "recommended_regime",
    ])
