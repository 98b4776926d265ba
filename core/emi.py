"""核心计算：EMI、总利息、反算贷款额/期限、剩余本金、有效利率"""
import math

from config.settings import (
    EFFECTIVE_RATE_SEARCH_ITERATIONS,
    EFFECTIVE_RATE_UPPER_BOUND,
    EFFECTIVE_RATE_TOLERANCE,
)
from data_manager.data_validator import ensure_finite, ensure_rate, ensure_tenure
from utils.rounding import round_amount, round_rate


def monthly_rate_of(annual_rate: float) -> float:
    """年利率(%) -> 月利率"""
    return annual_rate / 12 / 100


def annuity_payment(principal: float, monthly_rate: float, months: int) -> float:
    """等额本息月供（未取整）：P·r·(1+r)^n / ((1+r)^n − 1)"""
    if monthly_rate == 0:
        return principal / months
    multiplier = (1 + monthly_rate) ** months
    return principal * monthly_rate * multiplier / (multiplier - 1)


def annuity_present_value(emi: float, monthly_rate: float, months: int) -> float:
    """月供反算本金（未取整）：EMI·((1+r)^n − 1) / (r·(1+r)^n)"""
    if monthly_rate == 0:
        return emi * months
    multiplier = (1 + monthly_rate) ** months
    return emi * (multiplier - 1) / (monthly_rate * multiplier)


def calculate_emi(principal: float, annual_rate: float, tenure_years: float) -> float:
    """月供，取整到元。calculate_emi(6400000, 9, 20) == 57582"""
    ensure_finite(principal=principal, annual_rate=annual_rate, tenure_years=tenure_years)

    if principal <= 0 or tenure_years <= 0:
        return 0
    ensure_rate(annual_rate)
    ensure_tenure(tenure_years)

    months = round(tenure_years * 12)
    return round_amount(annuity_payment(principal, monthly_rate_of(annual_rate), months))


def calculate_total_interest(principal: float, annual_rate: float, tenure_years: float) -> float:
    """总利息 = EMI·n − P"""
    emi = calculate_emi(principal, annual_rate, tenure_years)
    return round_amount(emi * tenure_years * 12 - principal)


def calculate_total_amount(principal: float, annual_rate: float, tenure_years: float) -> float:
    """总还款额 = EMI·n（与总利息分别取整，差额不超过 1 元）"""
    emi = calculate_emi(principal, annual_rate, tenure_years)
    return round_amount(emi * tenure_years * 12)


def calculate_loan_amount(emi: float, annual_rate: float, tenure_years: float) -> float:
    """按可负担月供反算最大贷款额"""
    ensure_finite(emi=emi, annual_rate=annual_rate, tenure_years=tenure_years)

    if emi <= 0 or tenure_years <= 0:
        return 0
    ensure_rate(annual_rate)

    months = round(tenure_years * 12)
    return round_amount(annuity_present_value(emi, monthly_rate_of(annual_rate), months))


def calculate_tenure(principal: float, emi: float, annual_rate: float) -> float:
    """
    给定本金与月供，求还清所需月数。

    月供不超过首月利息时永远无法还清，返回 math.inf 而不是抛错。
    """
    ensure_finite(principal=principal, emi=emi, annual_rate=annual_rate)

    if principal <= 0 or emi <= 0:
        return 0
    ensure_rate(annual_rate)

    r = monthly_rate_of(annual_rate)
    if r == 0:
        return math.ceil(principal / emi)

    if emi <= principal * r:
        return math.inf

    # n = ln(EMI / (EMI − P·r)) / ln(1 + r)
    months = math.log(emi / (emi - principal * r)) / math.log(1 + r)
    return int(round_amount(months))


def calculate_outstanding(
    principal: float,
    annual_rate: float,
    tenure_years: float,
    months_elapsed: int,
) -> float:
    """第 months_elapsed 期后的剩余本金"""
    total_months = tenure_years * 12
    if months_elapsed <= 0:
        return principal
    if months_elapsed >= total_months:
        return 0

    r = monthly_rate_of(annual_rate)
    if r == 0:
        return round_amount(principal - principal / total_months * months_elapsed)

    multiplier_total = (1 + r) ** total_months
    multiplier_elapsed = (1 + r) ** months_elapsed
    return round_amount(principal * (multiplier_total - multiplier_elapsed) / (multiplier_total - 1))


def calculate_effective_rate(
    principal: float,
    annual_rate: float,
    processing_fee: float,
    tenure_years: float,
) -> float:
    """
    计入手续费后的有效年利率。

    月供按全额本金计算，而到手金额为 principal − processing_fee；
    在 [0, 50]% 区间二分查找使到手金额产生相同月供的利率。
    固定 100 次迭代后区间宽度为 50 / 2^100，远小于 0.01%，
    实际在月供差小于 1 元时提前结束。
    """
    net_principal = principal - processing_fee
    emi = calculate_emi(principal, annual_rate, tenure_years)

    low, high = 0.0, EFFECTIVE_RATE_UPPER_BOUND
    effective_rate = annual_rate

    for _ in range(EFFECTIVE_RATE_SEARCH_ITERATIONS):
        mid = (low + high) / 2
        test_emi = calculate_emi(net_principal, mid, tenure_years)

        if abs(test_emi - emi) < EFFECTIVE_RATE_TOLERANCE:
            effective_rate = mid
            break

        if test_emi < emi:
            low = mid
        else:
            high = mid

    return round_rate(effective_rate)


def calculate_interest_percentage(principal: float, annual_rate: float, tenure_years: float) -> float:
    """总利息占本金的百分比"""
    if principal <= 0:
        return 0.0
    return calculate_total_interest(principal, annual_rate, tenure_years) / principal * 100


def calculate_interest_crossover_year(principal: float, annual_rate: float, tenure_years: int) -> int:
    """月供中本金首次超过利息所在的年份"""
    r = monthly_rate_of(annual_rate)
    emi = calculate_emi(principal, annual_rate, tenure_years)
    balance = principal

    for month in range(1, tenure_years * 12 + 1):
        interest = balance * r
        principal_paid = emi - interest
        if principal_paid > interest:
            return math.ceil(month / 12)
        balance -= principal_paid

    return tenure_years
