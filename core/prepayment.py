"""提前还款计算：缩短期限（月供不变）或减少月供（期限不变）"""
import logging
from typing import Dict, Iterable, List, Sequence

import pandas as pd

from config.constants import PrepaymentType
from config.settings import PREPAYMENT_SWEEP_AMOUNTS
from core.amortization import (
    lump_sum_map,
    build_row,
    close_schedule,
    compare_schedules,
    generate_amortization_schedule,
    generate_schedule_with_lump_sum,
    settle_balance,
)
from core.emi import calculate_emi, monthly_rate_of
from core.exceptions import InvalidInputError
from core.floating_rate import calculate_adjusted_emi
from data_manager.data_validator import ensure_finite, ensure_rate, validate_prepayment
from data_manager.schema import (
    AmortizationSchedule,
    LumpSumPayment,
    PrepaymentInputs,
    PrepaymentResult,
)
from utils.rounding import round_cents

logger = logging.getLogger(__name__)

_FREQUENCY_MONTHS = {
    PrepaymentType.MONTHLY: 1,
    PrepaymentType.YEARLY: 12,
}


def build_recurring_payments(
    amount: float,
    start_month: int,
    total_months: int,
    frequency_months: int = 1,
) -> List[LumpSumPayment]:
    """周期性提前还款展开为逐笔一次性还款"""
    if frequency_months <= 0:
        raise InvalidInputError("Prepayment frequency must be positive", field="frequency_months")
    return [
        LumpSumPayment(month=month, amount=amount)
        for month in range(start_month, total_months + 1, frequency_months)
    ]


def payments_for(inputs: PrepaymentInputs) -> List[LumpSumPayment]:
    """按提前还款类型得到逐笔还款"""
    prepayment_type = PrepaymentType(inputs.prepayment_type)
    if prepayment_type == PrepaymentType.LUMP_SUM:
        if inputs.lump_sum_payments:
            return list(inputs.lump_sum_payments)
        return [LumpSumPayment(month=inputs.start_month, amount=inputs.prepayment_amount)]

    total_months = round(inputs.tenure_years * 12)
    return build_recurring_payments(inputs.prepayment_amount, inputs.start_month,
                                    total_months, _FREQUENCY_MONTHS[prepayment_type])


def generate_reduced_emi_schedule(
    principal: float,
    annual_rate: float,
    tenure_years: int,
    payments: Iterable[LumpSumPayment],
) -> AmortizationSchedule:
    """
    期限不变、减少月供：每次提前还款后按剩余本金和剩余期数重算 EMI。
    当月的提前还款计入当月本金。
    """
    ensure_finite(principal=principal, annual_rate=annual_rate, tenure_years=tenure_years)

    if principal <= 0 or tenure_years <= 0:
        return AmortizationSchedule()
    ensure_rate(annual_rate)

    lump_sums = lump_sum_map(payments)
    emi = calculate_emi(principal, annual_rate, tenure_years)
    r = monthly_rate_of(annual_rate)
    max_months = round(tenure_years * 12)

    rows = []
    balance = principal
    cum_interest = 0.0
    cum_principal = 0.0

    for month in range(1, max_months + 1):
        if balance <= 0:
            break

        opening = balance
        interest = balance * r
        principal_paid = emi - interest
        if principal_paid > balance or month == max_months:
            principal_paid = balance

        extra = min(lump_sums.get(month, 0.0), balance - principal_paid)
        principal_paid += extra
        closing = settle_balance(balance - principal_paid)

        cum_interest += interest
        cum_principal += principal_paid
        rows.append(build_row(month, opening, interest, principal_paid, closing,
                              cum_interest, cum_principal))
        balance = closing

        if extra > 0 and balance > 0:
            new_emi = calculate_adjusted_emi(balance, annual_rate, max_months - month)
            logger.debug("month %d: prepaid %.2f, EMI %.2f -> %.2f", month, extra, emi, new_emi)
            emi = new_emi

    return close_schedule(rows, cum_interest, cum_principal)


def _extra_paid(schedule: AmortizationSchedule, lump_sums: Dict[int, float]) -> float:
    """实际发生的提前还款额（结清之后的计划还款不计）"""
    return sum(amount for month, amount in lump_sums.items() if month <= len(schedule))


def _emi_after_last_prepayment(schedule: AmortizationSchedule, lump_sums: Dict[int, float]) -> float:
    """最后一笔提前还款的下一期月供；没有生效的提前还款时取首期"""
    if not schedule.rows:
        return 0
    applied = [month for month in lump_sums if month < len(schedule)]
    if not applied:
        return schedule.rows[0].emi
    return schedule.rows[max(applied)].emi


def analyze_prepayment(inputs: PrepaymentInputs) -> PrepaymentResult:
    """
    对比无提前还款的基准计划与提前还款后的计划。

    Raises:
        InvalidInputError: 输入未通过校验
    """
    ok, message = validate_prepayment(inputs)
    if not ok:
        raise InvalidInputError(message, field="prepayment")

    payments = payments_for(inputs)
    base = generate_amortization_schedule(inputs.principal, inputs.annual_rate, inputs.tenure_years)

    if inputs.reduce_tenure:
        prepaid = generate_schedule_with_lump_sum(
            inputs.principal, inputs.annual_rate, inputs.tenure_years, payments)
        new_emi = calculate_emi(inputs.principal, inputs.annual_rate, inputs.tenure_years)
    else:
        prepaid = generate_reduced_emi_schedule(
            inputs.principal, inputs.annual_rate, inputs.tenure_years, payments)
        new_emi = _emi_after_last_prepayment(prepaid, lump_sum_map(payments))

    comparison = compare_schedules(base, prepaid)
    total_extra = _extra_paid(prepaid, lump_sum_map(payments))
    roi = comparison.interest_saved / total_extra * 100 if total_extra > 0 else 0.0

    return PrepaymentResult(
        new_tenure_months=len(prepaid),
        months_saved=comparison.months_saved,
        interest_saved=comparison.interest_saved,
        total_interest_paid=prepaid.total_interest,
        total_extra_paid=round_cents(total_extra),
        roi=round_cents(roi),
        new_emi=new_emi,
        base_schedule=base,
        prepaid_schedule=prepaid,
    )


def compare_prepayment_amounts(
    principal: float,
    annual_rate: float,
    tenure_years: int,
    amounts: Sequence[float] = PREPAYMENT_SWEEP_AMOUNTS,
    start_month: int = 1,
) -> pd.DataFrame:
    """不同每月额外还款额下的节省利息与缩短月数"""
    base = generate_amortization_schedule(principal, annual_rate, tenure_years)
    total_months = round(tenure_years * 12)

    records = []
    for amount in amounts:
        payments = build_recurring_payments(amount, start_month, total_months)
        schedule = generate_schedule_with_lump_sum(principal, annual_rate, tenure_years, payments)
        comparison = compare_schedules(base, schedule)
        records.append({
            "amount": amount,
            "interest_saved": comparison.interest_saved,
            "months_saved": comparison.months_saved,
            "new_tenure_months": len(schedule),
        })
    return pd.DataFrame(records, columns=["amount", "interest_saved", "months_saved", "new_tenure_months"])
