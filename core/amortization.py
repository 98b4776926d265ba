"""固定利率还款计划：逐月明细、提前还款、年度汇总、计划对比"""
import logging
import math
from typing import Callable, Dict, Iterable, List, Optional

import pandas as pd

from config.constants import YEARLY_SUMMARY_COLUMNS
from config.settings import BALANCE_EPSILON
from core.emi import calculate_emi, monthly_rate_of
from core.exceptions import InvalidInputError
from data_manager.data_validator import ensure_finite, ensure_rate
from data_manager.schema import (
    AmortizationRow, AmortizationSchedule, LumpSumPayment, ScheduleComparison,
)
from utils.rounding import round_amount, round_cents

logger = logging.getLogger(__name__)


def build_row(
    month: int,
    opening_balance: float,
    interest: float,
    principal_paid: float,
    closing_balance: float,
    cumulative_interest: float,
    cumulative_principal: float,
    rounder: Callable[[float], float] = round_amount,
) -> AmortizationRow:
    """按给定取整方式生成一行；月供 = 利息 + 本金"""
    return AmortizationRow(
        month=month,
        year=math.ceil(month / 12),
        opening_balance=rounder(opening_balance),
        emi=rounder(interest + principal_paid),
        interest=rounder(interest),
        principal=rounder(principal_paid),
        closing_balance=rounder(closing_balance),
        cumulative_interest=rounder(cumulative_interest),
        cumulative_principal=rounder(cumulative_principal),
    )


def settle_balance(balance: float) -> float:
    """尾差小于半分视为结清"""
    return 0.0 if balance < BALANCE_EPSILON else balance


def close_schedule(
    rows: List[AmortizationRow],
    cumulative_interest: float,
    cumulative_principal: float,
) -> AmortizationSchedule:
    return AmortizationSchedule(
        rows=rows,
        total_interest=round_cents(cumulative_interest),
        total_principal=round_cents(cumulative_principal),
        total_amount=round_cents(cumulative_interest + cumulative_principal),
    )


def _amortize(
    principal: float,
    annual_rate: float,
    tenure_years: int,
    extra_for_month: Callable[[int], float],
) -> AmortizationSchedule:
    emi = calculate_emi(principal, annual_rate, tenure_years)
    r = monthly_rate_of(annual_rate)
    max_months = round(tenure_years * 12)

    rows = []
    balance = principal
    cum_interest = 0.0
    cum_principal = 0.0

    for month in range(1, max_months + 1):
        # 额外还款可能提前还清
        if balance <= 0:
            break

        opening = balance
        interest = balance * r
        principal_paid = emi - interest + extra_for_month(month)

        # 不超额还款；最后一期结清尾差
        if principal_paid > balance or month == max_months:
            principal_paid = balance

        closing = settle_balance(balance - principal_paid)
        cum_interest += interest
        cum_principal += principal_paid

        rows.append(build_row(month, opening, interest, principal_paid, closing,
                              cum_interest, cum_principal))
        balance = closing

    logger.debug("amortized %.2f at %.2f%% over %d months (%d rows)",
                 principal, annual_rate, max_months, len(rows))
    return close_schedule(rows, cum_interest, cum_principal)


def generate_amortization_schedule(
    principal: float,
    annual_rate: float,
    tenure_years: int,
    extra_payment: float = 0,
) -> AmortizationSchedule:
    """
    生成固定利率逐月还款计划。

    Args:
        principal: 贷款本金
        annual_rate: 年利率 (%)
        tenure_years: 贷款年限
        extra_payment: 每月额外还本金额，可使贷款提前结清

    Returns:
        AmortizationSchedule；本金或年限不为正时返回空计划
    """
    ensure_finite(principal=principal, annual_rate=annual_rate,
                  tenure_years=tenure_years, extra_payment=extra_payment)

    if principal <= 0 or tenure_years <= 0:
        return AmortizationSchedule()

    if annual_rate < 0 or extra_payment < 0:
        raise InvalidInputError(
            "Invalid input: Interest rate and extra payment cannot be negative")

    return _amortize(principal, annual_rate, tenure_years, lambda month: extra_payment)


def lump_sum_map(payments: Iterable[LumpSumPayment]) -> Dict[int, float]:
    """按月份汇总一次性还款，同月多笔相加"""
    mapping: Dict[int, float] = {}
    for p in payments:
        ensure_finite(month=p.month, amount=p.amount)
        if p.amount < 0:
            raise InvalidInputError("Invalid input: Prepayment amount cannot be negative",
                                    field="amount")
        mapping[p.month] = mapping.get(p.month, 0.0) + p.amount
    return mapping


def generate_schedule_with_lump_sum(
    principal: float,
    annual_rate: float,
    tenure_years: int,
    payments: Iterable[LumpSumPayment],
) -> AmortizationSchedule:
    """带一次性提前还款的计划；周期性还款由调用方展开为多笔"""
    ensure_finite(principal=principal, annual_rate=annual_rate, tenure_years=tenure_years)

    if principal <= 0 or tenure_years <= 0:
        return AmortizationSchedule()
    ensure_rate(annual_rate)

    lump_sums = lump_sum_map(payments)
    return _amortize(principal, annual_rate, tenure_years,
                     lambda month: lump_sums.get(month, 0.0))


def generate_yearly_summary(schedule: AmortizationSchedule) -> pd.DataFrame:
    """按年汇总月度计划：期初/期末余额 + 月供、利息、本金合计"""
    df = schedule.to_frame()
    if df.empty:
        return pd.DataFrame(columns=YEARLY_SUMMARY_COLUMNS)

    yearly = df.groupby("year", sort=True).agg(
        opening_balance=("opening_balance", "first"),
        closing_balance=("closing_balance", "last"),
        total_emi=("emi", "sum"),
        total_interest=("interest", "sum"),
        total_principal=("principal", "sum"),
    ).reset_index()

    for col in ["total_emi", "total_interest", "total_principal"]:
        yearly[col] = yearly[col].map(round_cents)
    return yearly[YEARLY_SUMMARY_COLUMNS]


def get_month_details(
    principal: float,
    annual_rate: float,
    tenure_years: int,
    month: int,
) -> Optional[AmortizationRow]:
    """指定月份的明细，超出范围返回 None"""
    if month < 1 or month > tenure_years * 12:
        return None
    schedule = generate_amortization_schedule(principal, annual_rate, tenure_years)
    return schedule.rows[month - 1] if month <= len(schedule.rows) else None


def get_year_breakdown(
    principal: float,
    annual_rate: float,
    tenure_years: int,
    year: int,
) -> Optional[Dict[str, float]]:
    if year < 1 or year > tenure_years:
        return None

    schedule = generate_amortization_schedule(principal, annual_rate, tenure_years)
    year_rows = [r for r in schedule.rows if r.year == year]
    if not year_rows:
        return None

    return {
        "year": year,
        "principal": round_cents(sum(r.principal for r in year_rows)),
        "interest": round_cents(sum(r.interest for r in year_rows)),
        "emi": round_cents(sum(r.emi for r in year_rows)),
    }


def find_crossover_month(principal: float, annual_rate: float, tenure_years: int) -> Optional[int]:
    """本金部分首次超过利息部分的月份"""
    schedule = generate_amortization_schedule(principal, annual_rate, tenure_years)
    for row in schedule.rows:
        if row.principal > row.interest:
            return row.month
    return None


def compare_schedules(a: AmortizationSchedule, b: AmortizationSchedule) -> ScheduleComparison:
    """对比两个计划；正值表示 b 更优"""
    months_saved = len(a.rows) - len(b.rows)
    interest_saved = a.total_interest - b.total_interest
    total_saved = a.total_amount - b.total_amount
    percentage_saved = interest_saved / a.total_interest * 100 if a.total_interest else 0.0

    return ScheduleComparison(
        months_saved=months_saved,
        interest_saved=round_cents(interest_saved),
        total_saved=round_cents(total_saved),
        percentage_saved=round_cents(percentage_saved),
    )
