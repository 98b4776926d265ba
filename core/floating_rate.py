"""
浮动利率还款计划

利率调整时总期限不变，按剩余本金和剩余期数重新计算 EMI。
"""
import logging
from typing import Dict, Iterable, List, Tuple

import numpy as np

from config.settings import (
    DEFAULT_RATE_INCREASE_PERCENT,
    DEFAULT_RATE_DECREASE_PERCENT,
    MAX_TENURE_YEARS,
)
from core.amortization import build_row, close_schedule, settle_balance
from core.emi import annuity_payment, monthly_rate_of
from core.exceptions import InvalidInputError
from data_manager.data_validator import ensure_finite, ensure_rate
from data_manager.schema import (
    AmortizationRow, AmortizationSchedule, RateChange, ScenarioComparison, ScenarioResult,
)
from utils.rounding import round_cents, round_rate

logger = logging.getLogger(__name__)


def generate_periodic_rate_changes(
    base_rate: float,
    increase_per_change: float,
    frequency_months: int,
    total_months: int,
) -> List[RateChange]:
    """
    每 frequency_months 个月调整一次利率，首次调整在第 frequency_months 月。
    涨幅逐次累加；increase_per_change 为负表示降息。
    """
    if frequency_months <= 0:
        raise InvalidInputError("Rate change frequency must be positive",
                                field="frequency_months")

    changes = []
    current_rate = base_rate
    for month in range(frequency_months, total_months + 1, frequency_months):
        current_rate += increase_per_change
        changes.append(RateChange(from_month=month, new_rate=round_rate(current_rate)))
    return changes


def calculate_adjusted_emi(outstanding_principal: float, new_rate: float, remaining_months: int) -> float:
    """按剩余本金、新利率、剩余期数重算 EMI（保留两位小数）"""
    if outstanding_principal <= 0 or remaining_months <= 0:
        return 0
    return round_cents(annuity_payment(outstanding_principal, monthly_rate_of(new_rate),
                                       remaining_months))


def build_rate_map(
    base_rate: float,
    rate_changes: Iterable[RateChange],
    total_months: int,
) -> Dict[int, float]:
    """
    逐月回放利率调整，得到 {月份: 当月利率}。
    同一月份出现多次调整时以最后一条为准。
    """
    by_month: Dict[int, float] = {}
    for change in sorted(rate_changes, key=lambda c: c.from_month):
        ensure_finite(from_month=change.from_month, new_rate=change.new_rate)
        if change.from_month in by_month:
            logger.warning("duplicate rate change at month %d, keeping %.2f%%",
                           change.from_month, change.new_rate)
        by_month[change.from_month] = change.new_rate

    rate_map = {}
    current_rate = base_rate
    for month in range(1, total_months + 1):
        current_rate = by_month.get(month, current_rate)
        rate_map[month] = current_rate
    return rate_map


def amortize_with_rates(
    principal: float,
    rate_map: Dict[int, float],
    initial_rate: float,
    first_month: int = 1,
    carried_interest: float = 0.0,
    carried_principal: float = 0.0,
) -> Tuple[List[AmortizationRow], float, float]:
    """
    按逐月利率生成计划行。EMI 只在首月和利率变化的月份重算，
    利息始终按当月期初余额和当月利率计算。

    rate_map 的键是本阶段内的相对月份 1..n；first_month 为其对应的绝对月份，
    carried_* 为前一阶段的累计利息和本金。返回 (rows, 累计利息, 累计本金)。
    """
    total_months = len(rate_map)
    rows: List[AmortizationRow] = []
    balance = principal
    cum_interest = carried_interest
    cum_principal = carried_principal
    current_emi = 0.0

    for month in range(1, total_months + 1):
        if balance <= 0:
            break

        opening = balance
        rate = rate_map[month]
        previous_rate = initial_rate if month == 1 else rate_map[month - 1]

        if month == 1 or rate != previous_rate:
            remaining = total_months - month + 1
            new_emi = calculate_adjusted_emi(balance, rate, remaining)
            logger.debug("month %d: rate %.2f%% -> EMI %.2f -> %.2f",
                         first_month + month - 1, rate, current_emi, new_emi)
            current_emi = new_emi

        interest = balance * monthly_rate_of(rate)
        principal_paid = current_emi - interest

        if principal_paid > balance or month == total_months:
            principal_paid = balance

        closing = settle_balance(balance - principal_paid)
        cum_interest += interest
        cum_principal += principal_paid

        rows.append(build_row(first_month + month - 1, opening, interest, principal_paid,
                              closing, cum_interest, cum_principal, rounder=round_cents))
        balance = closing

    return rows, cum_interest, cum_principal


def generate_floating_rate_schedule(
    principal: float,
    base_rate: float,
    tenure_years: int,
    rate_changes: Iterable[RateChange],
) -> AmortizationSchedule:
    """
    浮动利率逐月计划，总期限保持不变。

    Args:
        principal: 贷款本金
        base_rate: 初始年利率 (%)
        tenure_years: 总年限
        rate_changes: 利率调整列表 (from_month 为 1 起的绝对月份)
    """
    ensure_finite(principal=principal, base_rate=base_rate, tenure_years=tenure_years)

    if principal <= 0 or tenure_years <= 0:
        return AmortizationSchedule()
    ensure_rate(base_rate, field="base_rate")
    if tenure_years > MAX_TENURE_YEARS:
        raise InvalidInputError(
            f"Invalid input: Loan tenure cannot exceed {MAX_TENURE_YEARS} years",
            field="tenure_years")

    total_months = round(tenure_years * 12)
    rate_map = build_rate_map(base_rate, rate_changes, total_months)
    rows, cum_interest, cum_principal = amortize_with_rates(principal, rate_map, base_rate)
    return close_schedule(rows, cum_interest, cum_principal)


def calculate_average_rate(
    schedule: List[AmortizationRow],
    rate_changes: Iterable[RateChange],
    base_rate: float,
) -> float:
    """按期初余额加权的平均利率，余额越大的月份权重越高"""
    if not schedule:
        return base_rate

    last_month = max(r.month for r in schedule)
    rate_map = build_rate_map(base_rate, rate_changes, last_month)
    rates = np.array([rate_map[r.month] for r in schedule])
    weights = np.array([r.opening_balance for r in schedule])

    if weights.sum() <= 0:
        return base_rate
    return round_rate(float(np.average(rates, weights=weights)))


def _scenario(principal: float, base_rate: float, tenure_years: int,
              changes: List[RateChange]) -> ScenarioResult:
    schedule = generate_floating_rate_schedule(principal, base_rate, tenure_years, changes)
    return ScenarioResult(
        schedule=schedule,
        rate_changes=changes,
        total_interest=schedule.total_interest,
        average_rate=calculate_average_rate(schedule.rows, changes, base_rate),
    )


def generate_scenario_comparison(
    principal: float,
    base_rate: float,
    tenure_years: int,
    change_frequency_months: int,
    base_increase_percent: float = DEFAULT_RATE_INCREASE_PERCENT,
    decrease_percent: float = DEFAULT_RATE_DECREASE_PERCENT,
) -> ScenarioComparison:
    """乐观(每次降 decrease)、基准(每次涨 increase)、悲观(每次涨 2×increase) 三种情景"""
    total_months = tenure_years * 12
    steps = {
        "optimistic": -decrease_percent,
        "realistic": base_increase_percent,
        "pessimistic": base_increase_percent * 2,
    }
    results = {
        name: _scenario(
            principal, base_rate, tenure_years,
            generate_periodic_rate_changes(base_rate, step, change_frequency_months, total_months),
        )
        for name, step in steps.items()
    }
    return ScenarioComparison(**results)


def get_rate_change_months(rate_changes: Iterable[RateChange]) -> List[int]:
    """利率调整发生的月份（升序），用于图表标记"""
    return sorted(c.from_month for c in rate_changes)
