"""
还款计划生成入口

根据贷款类型（固定 / 浮动 / 混合）选择对应的计算引擎，
调用方只需提供一份 LoanInputs。
"""
import logging
from typing import Iterable, List, Optional

from config.constants import LoanType
from core.amortization import generate_amortization_schedule
from core.emi import calculate_effective_rate
from core.exceptions import InvalidInputError
from core.floating_rate import generate_floating_rate_schedule, generate_periodic_rate_changes
from core.hybrid_rate import generate_hybrid_rate_schedule
from data_manager.schema import (
    AmortizationSchedule,
    CalculationResults,
    LoanInputs,
    RateChange,
)

logger = logging.getLogger(__name__)


def _require_hybrid_fields(inputs: LoanInputs) -> None:
    if inputs.fixed_period_months is None or inputs.floating_rate is None:
        raise InvalidInputError("Hybrid loans need a fixed period and a floating rate",
                                field="fixed_period_months")


def default_rate_changes(inputs: LoanInputs) -> List[RateChange]:
    """
    未指定利率调整时，按 rate_increase_percent / rate_change_frequency_months 生成。
    混合贷款与情景对比一致：按绝对月份从第 frequency 月起生成，只保留浮动期内的调整。
    """
    loan_type = LoanType(inputs.loan_type)
    if loan_type == LoanType.FIXED:
        return []

    total_months = inputs.tenure_years * 12
    if loan_type == LoanType.FLOATING:
        return generate_periodic_rate_changes(
            inputs.interest_rate,
            inputs.rate_increase_percent,
            inputs.rate_change_frequency_months,
            total_months,
        )

    _require_hybrid_fields(inputs)
    changes = generate_periodic_rate_changes(
        inputs.floating_rate,
        inputs.rate_increase_percent,
        inputs.rate_change_frequency_months,
        total_months,
    )
    return [c for c in changes if c.from_month > inputs.fixed_period_months]


def generate_loan_schedule(
    inputs: LoanInputs,
    rate_changes: Optional[Iterable[RateChange]] = None,
) -> AmortizationSchedule:
    """
    按贷款类型生成还款计划。

    Args:
        inputs: 贷款参数
        rate_changes: 浮动/混合贷款的利率调整（绝对月份）；为 None 时按参数自动生成

    Returns:
        AmortizationSchedule
    """
    try:
        loan_type = LoanType(inputs.loan_type)
    except ValueError:
        raise InvalidInputError(f"Invalid loan type: {inputs.loan_type}", field="loan_type")

    principal = inputs.loan_amount
    logger.debug("generating %s schedule for %.2f over %d years",
                 loan_type.value, principal, inputs.tenure_years)

    if loan_type == LoanType.FIXED:
        return generate_amortization_schedule(principal, inputs.interest_rate, inputs.tenure_years)

    if loan_type == LoanType.HYBRID:
        _require_hybrid_fields(inputs)
    changes = list(rate_changes) if rate_changes is not None else default_rate_changes(inputs)

    if loan_type == LoanType.FLOATING:
        return generate_floating_rate_schedule(
            principal, inputs.interest_rate, inputs.tenure_years, changes)

    return generate_hybrid_rate_schedule(
        principal,
        inputs.interest_rate,
        inputs.floating_rate,
        inputs.fixed_period_months,
        inputs.tenure_years,
        changes,
    )


def summarize_loan(
    inputs: LoanInputs,
    rate_changes: Optional[Iterable[RateChange]] = None,
) -> CalculationResults:
    """首期月供、总利息、总还款、计入手续费的有效利率"""
    schedule = generate_loan_schedule(inputs, rate_changes)

    if inputs.processing_fee > 0:
        effective_rate = calculate_effective_rate(
            inputs.loan_amount, inputs.interest_rate, inputs.processing_fee, inputs.tenure_years)
    else:
        effective_rate = inputs.interest_rate

    return CalculationResults(
        emi=schedule.rows[0].emi if schedule.rows else 0,
        total_interest=schedule.total_interest,
        total_amount=schedule.total_amount,
        effective_rate=effective_rate,
        tenure_months=len(schedule),
    )
