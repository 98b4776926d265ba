LAKH = 100000
CRORE = 10000000


def fmt_amount(value: float, unit: str = "₹") -> str:
    """格式化金额：12345678 -> ₹1.23 Cr, 1234567 -> ₹12.35 L"""
    if abs(value) >= CRORE:
        return f"{unit}{value / CRORE:,.2f} Cr"
    if abs(value) >= LAKH:
        return f"{unit}{value / LAKH:,.2f} L"
    return f"{unit}{value:,.2f}"


def fmt_rate(value: float) -> str:
    """格式化利率百分比：9.5 -> 9.50%"""
    return f"{value:.2f}%"


def fmt_months(months: float) -> str:
    """格式化月数为年月：30 -> 2y 6m"""
    if months == float("inf"):
        return "never"
    months = int(months)
    years = months // 12
    remain = months % 12
    if remain == 0:
        return f"{years}y"
    if years == 0:
        return f"{remain}m"
    return f"{years}y {remain}m"
