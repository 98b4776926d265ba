"""印花税、登记费与期房 GST"""
import logging
from typing import Iterable, List

from config.constants import (
    DEFAULT_CONSTRUCTION_RATIO,
    DEFAULT_REGISTRATION_FEE,
    DEFAULT_STAMP_DUTY_RATE,
    GST_RATE,
    REGISTRATION_FEES,
    STAMP_DUTY_RATES,
    Gender,
)
from data_manager.schema import PropertyCostBreakdown, StampDutyBreakdown
from utils.rounding import round_amount

logger = logging.getLogger(__name__)

DEFAULT_LEGAL_FEES = 10000


def stamp_duty_rate(state: str, gender: Gender = Gender.MALE) -> float:
    """女性及联名购房使用女性税率；未收录的州按 5% 计并记录警告"""
    rates = STAMP_DUTY_RATES.get(state)
    if rates is None:
        logger.warning("stamp duty rates not found for state %r, using default %.0f%% rate",
                       state, DEFAULT_STAMP_DUTY_RATE * 100)
        return DEFAULT_STAMP_DUTY_RATE

    men_rate, women_rate = rates
    if Gender(gender) in (Gender.FEMALE, Gender.JOINT):
        return women_rate
    return men_rate


def calculate_stamp_duty(property_value: float, state: str, gender: Gender = Gender.MALE) -> float:
    return round_amount(property_value * stamp_duty_rate(state, gender))


def calculate_registration_fee(property_value: float, state: str) -> float:
    """按比例收取，封顶"""
    rate, cap = REGISTRATION_FEES.get(state, DEFAULT_REGISTRATION_FEE)
    return min(property_value * rate, cap)


def calculate_gst(property_value: float, is_under_construction: bool,
                  construction_ratio: float = DEFAULT_CONSTRUCTION_RATIO) -> float:
    """GST 只对期房的建筑部分征收，土地部分不征"""
    if not is_under_construction:
        return 0
    return round_amount(property_value * construction_ratio * GST_RATE)


def calculate_stamp_duty_breakdown(
    property_value: float,
    state: str,
    gender: Gender = Gender.MALE,
    is_under_construction: bool = False,
    construction_ratio: float = DEFAULT_CONSTRUCTION_RATIO,
) -> StampDutyBreakdown:
    stamp_duty = calculate_stamp_duty(property_value, state, gender)
    registration_fee = calculate_registration_fee(property_value, state)
    gst = calculate_gst(property_value, is_under_construction, construction_ratio)

    total = stamp_duty + registration_fee + gst
    return StampDutyBreakdown(
        stamp_duty=stamp_duty,
        registration_fee=registration_fee,
        gst=gst,
        total_transaction_cost=total,
        effective_rate=total / property_value if property_value > 0 else 0,
        state=state,
    )


def calculate_property_cost(
    property_value: float,
    state: str,
    gender: Gender = Gender.MALE,
    is_under_construction: bool = False,
    legal_fees: float = DEFAULT_LEGAL_FEES,
    other_fees: float = 0,
) -> PropertyCostBreakdown:
    """房价 + 交易税费 + 律师费 + 其他费用"""
    breakdown = calculate_stamp_duty_breakdown(property_value, state, gender, is_under_construction)
    return PropertyCostBreakdown(
        property_value=property_value,
        stamp_duty=breakdown.stamp_duty,
        registration_fee=breakdown.registration_fee,
        gst=breakdown.gst,
        legal_fees=legal_fees,
        other_fees=other_fees,
        total_cost=property_value + breakdown.total_transaction_cost + legal_fees + other_fees,
    )


def compare_stamp_duty_across_states(
    property_value: float,
    states: Iterable[str],
    gender: Gender = Gender.MALE,
) -> List[StampDutyBreakdown]:
    """按交易总成本升序排列，最便宜的州在前"""
    breakdowns = [calculate_stamp_duty_breakdown(property_value, state, gender) for state in states]
    return sorted(breakdowns, key=lambda b: b.total_transaction_cost)


def calculate_affordable_property_value(stamp_duty_budget: float, state: str,
                                        gender: Gender = Gender.MALE) -> float:
    """给定印花税预算反推可承受的房价"""
    return round_amount(stamp_duty_budget / stamp_duty_rate(state, gender))
