"""金额取整：四舍五入（half-up），与页面端 Math.round 一致"""
import math

from config.settings import AMOUNT_PRECISION, RATE_PRECISION


def round_half_up(value: float, ndigits: int = 0) -> float:
    """四舍五入到 ndigits 位小数，.5 向正无穷方向进位"""
    if not math.isfinite(value):
        return value
    factor = 10 ** ndigits
    return math.floor(value * factor + 0.5) / factor


def round_amount(value: float) -> float:
    """取整到元"""
    return round_half_up(value, 0)


def round_cents(value: float) -> float:
    """保留两位小数"""
    return round_half_up(value, AMOUNT_PRECISION)


def round_rate(value: float) -> float:
    return round_half_up(value, RATE_PRECISION)
