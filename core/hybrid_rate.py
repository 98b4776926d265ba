"""
混合利率还款计划：先固定利率若干月，再转浮动利率

固定期的 EMI 按全部期限计算（转换时没有尾款），
转浮动时按剩余本金和剩余期数重算一次，之后遇到利率调整再重算。
"""
import logging
from typing import Iterable, List, Optional

import numpy as np

from config.settings import DEFAULT_RATE_INCREASE_PERCENT, DEFAULT_RATE_DECREASE_PERCENT
from core.amortization import build_row, close_schedule, settle_balance
from core.emi import calculate_emi, monthly_rate_of
from core.exceptions import InvalidInputError
from core.floating_rate import (
    amortize_with_rates,
    build_rate_map,
    calculate_adjusted_emi,
    generate_periodic_rate_changes,
)
from data_manager.data_validator import ensure_finite, ensure_rate
from data_manager.schema import (
    AmortizationRow,
    AmortizationSchedule,
    HybridEMIDifference,
    RateChange,
    ScenarioComparison,
    ScenarioResult,
)
from utils.rounding import round_cents, round_rate

logger = logging.getLogger(__name__)


def _check_fixed_period(fixed_period_months: int, total_months: int) -> None:
    if fixed_period_months <= 0 or fixed_period_months >= total_months:
        raise InvalidInputError(
            "Invalid fixed period: must be between 0 and total tenure",
            field="fixed_period_months",
        )


def to_floating_phase(rate_changes: Iterable[RateChange], fixed_period_months: int) -> List[RateChange]:
    """只保留固定期之后的调整，月份改为相对浮动期起点"""
    return [
        RateChange(from_month=c.from_month - fixed_period_months, new_rate=c.new_rate)
        for c in rate_changes
        if c.from_month > fixed_period_months
    ]


def generate_hybrid_rate_schedule(
    principal: float,
    fixed_rate: float,
    floating_rate: float,
    fixed_period_months: int,
    total_tenure_years: int,
    floating_rate_changes: Optional[Iterable[RateChange]] = None,
) -> AmortizationSchedule:
    """
    两阶段生成混合利率计划。

    Args:
        principal: 贷款本金
        fixed_rate: 固定期年利率 (%)
        floating_rate: 浮动期起始年利率 (%)
        fixed_period_months: 固定期月数
        total_tenure_years: 总年限
        floating_rate_changes: 浮动期利率调整，from_month 为相对放款起点的绝对月份

    Returns:
        AmortizationSchedule，月份连续编号
    """
    ensure_finite(principal=principal, fixed_rate=fixed_rate, floating_rate=floating_rate,
                  fixed_period_months=fixed_period_months, total_tenure_years=total_tenure_years)

    if principal <= 0 or total_tenure_years <= 0:
        return AmortizationSchedule()

    ensure_rate(floating_rate, field="floating_rate")
    total_months = round(total_tenure_years * 12)
    _check_fixed_period(fixed_period_months, total_months)

    # 第一阶段：固定利率，EMI 按全部期限计算
    fixed_emi = calculate_emi(principal, fixed_rate, total_tenure_years)
    r = monthly_rate_of(fixed_rate)

    rows: List[AmortizationRow] = []
    balance = principal
    cum_interest = 0.0
    cum_principal = 0.0

    for month in range(1, fixed_period_months + 1):
        if balance <= 0:
            break

        opening = balance
        interest = balance * r
        principal_paid = min(fixed_emi - interest, balance)
        closing = settle_balance(balance - principal_paid)

        cum_interest += interest
        cum_principal += principal_paid
        rows.append(build_row(month, opening, interest, principal_paid, closing,
                              cum_interest, cum_principal, rounder=round_cents))
        balance = closing

    # 第二阶段：浮动利率
    remaining_months = total_months - fixed_period_months
    logger.debug("hybrid transition at month %d: balance %.2f, %.2f%% -> %.2f%%",
                 fixed_period_months + 1, balance, fixed_rate, floating_rate)

    phase_changes = to_floating_phase(floating_rate_changes or [], fixed_period_months)
    rate_map = build_rate_map(floating_rate, phase_changes, remaining_months)
    floating_rows, cum_interest, cum_principal = amortize_with_rates(
        balance, rate_map, floating_rate,
        first_month=fixed_period_months + 1,
        carried_interest=cum_interest,
        carried_principal=cum_principal,
    )
    rows.extend(floating_rows)

    return close_schedule(rows, cum_interest, cum_principal)


def calculate_hybrid_emi_difference(
    principal: float,
    fixed_rate: float,
    floating_rate: float,
    fixed_period_months: int,
    total_tenure_years: int,
) -> HybridEMIDifference:
    """转浮动时 EMI 的变化"""
    total_months = total_tenure_years * 12
    fixed_emi = calculate_emi(principal, fixed_rate, total_tenure_years)

    r = monthly_rate_of(fixed_rate)
    balance = principal
    for _ in range(fixed_period_months):
        balance -= fixed_emi - balance * r

    floating_emi = calculate_adjusted_emi(balance, floating_rate, total_months - fixed_period_months)
    difference = floating_emi - fixed_emi
    percentage_change = difference / fixed_emi * 100 if fixed_emi else 0.0

    return HybridEMIDifference(
        fixed_emi=round_cents(fixed_emi),
        floating_emi=round_cents(floating_emi),
        difference=round_cents(difference),
        percentage_change=round_cents(percentage_change),
    )


def get_transition_month(fixed_period_months: int) -> int:
    """第一个浮动利率月份"""
    return fixed_period_months + 1


def calculate_hybrid_average_rate(
    schedule: List[AmortizationRow],
    fixed_rate: float,
    floating_rate: float,
    fixed_period_months: int,
) -> float:
    """
    按期初余额加权的平均利率。

    浮动期一律按起始 floating_rate 计，不反映浮动期内后续的利率调整；
    与计划实际利率可能不一致，属于已知的近似。
    """
    if not schedule:
        return fixed_rate

    rates = np.array([fixed_rate if r.month <= fixed_period_months else floating_rate
                      for r in schedule])
    weights = np.array([r.opening_balance for r in schedule])

    if weights.sum() <= 0:
        return fixed_rate
    return round_rate(float(np.average(rates, weights=weights)))


def generate_scenario_comparison(
    principal: float,
    fixed_rate: float,
    floating_rate: float,
    fixed_period_months: int,
    tenure_years: int,
    change_frequency_months: int,
    base_increase_percent: float = DEFAULT_RATE_INCREASE_PERCENT,
    decrease_percent: float = DEFAULT_RATE_DECREASE_PERCENT,
) -> ScenarioComparison:
    """三种情景，利率调整只作用于浮动期"""
    total_months = tenure_years * 12
    steps = {
        "optimistic": -decrease_percent,
        "realistic": base_increase_percent,
        "pessimistic": base_increase_percent * 2,
    }

    results = {}
    for name, step in steps.items():
        changes = [
            c for c in generate_periodic_rate_changes(
                floating_rate, step, change_frequency_months, total_months)
            if c.from_month > fixed_period_months
        ]
        schedule = generate_hybrid_rate_schedule(
            principal, fixed_rate, floating_rate, fixed_period_months, tenure_years, changes,
        )
        results[name] = ScenarioResult(
            schedule=schedule,
            rate_changes=changes,
            total_interest=schedule.total_interest,
            average_rate=calculate_hybrid_average_rate(
                schedule.rows, fixed_rate, floating_rate, fixed_period_months),
        )
    return ScenarioComparison(**results)
