import math
from typing import Tuple

from config.constants import LoanType, PrepaymentType, VALIDATION_LIMITS
from config.settings import MAX_TENURE_YEARS
from core.exceptions import InvalidInputError
from data_manager.schema import LoanInputs, AffordabilityInputs, PrepaymentInputs


def ensure_finite(**values: float) -> None:
    """所有数值参数必须是有限数，否则抛出 InvalidInputError"""
    for name, value in values.items():
        if value is None or not math.isfinite(value):
            raise InvalidInputError(
                "Invalid input: All parameters must be finite numbers", field=name,
            )


def ensure_rate(annual_rate: float, field: str = "annual_rate") -> None:
    if annual_rate < 0:
        raise InvalidInputError("Invalid input: Interest rate cannot be negative", field=field)


def ensure_tenure(tenure_years: float) -> None:
    if tenure_years > MAX_TENURE_YEARS:
        raise InvalidInputError(
            f"Invalid input: Loan tenure cannot exceed {MAX_TENURE_YEARS} years",
            field="tenure_years",
        )


def _in_range(key: str, value: float) -> bool:
    low, high = VALIDATION_LIMITS[key]
    return low <= value <= high


def validate_loan_inputs(inputs: LoanInputs) -> Tuple[bool, str]:
    """校验贷款表单输入，返回 (是否合法, 错误信息)"""
    numbers = [
        inputs.property_value, inputs.down_payment,
        inputs.tenure_years, inputs.interest_rate,
    ]
    if not all(math.isfinite(v) for v in numbers):
        return False, "All amounts must be valid numbers"

    if not _in_range("property_value", inputs.property_value):
        low, high = VALIDATION_LIMITS["property_value"]
        return False, f"Property value must be between ₹{low:,.0f} and ₹{high:,.0f}"

    if not _in_range("down_payment", inputs.down_payment):
        return False, "Down payment cannot be negative"

    if inputs.down_payment >= inputs.property_value:
        return False, "Down payment must be less than the property value"

    if not _in_range("loan_tenure", inputs.tenure_years):
        low, high = VALIDATION_LIMITS["loan_tenure"]
        return False, f"Loan tenure must be between {low} and {high} years"

    if not _in_range("interest_rate", inputs.interest_rate):
        low, high = VALIDATION_LIMITS["interest_rate"]
        return False, f"Interest rate must be between {low}% and {high}%"

    if inputs.processing_fee < 0 or inputs.processing_fee >= inputs.loan_amount:
        return False, "Processing fee must be non-negative and below the loan amount"

    try:
        loan_type = LoanType(inputs.loan_type)
    except ValueError:
        return False, f"Invalid loan type: {inputs.loan_type}"

    if loan_type in (LoanType.FLOATING, LoanType.HYBRID):
        if inputs.rate_change_frequency_months <= 0:
            return False, "Rate change frequency must be at least 1 month"

    if loan_type == LoanType.HYBRID:
        total_months = inputs.tenure_years * 12
        if inputs.fixed_period_months is None or inputs.floating_rate is None:
            return False, "Hybrid loans need a fixed period and a floating rate"
        if not 0 < inputs.fixed_period_months < total_months:
            return False, "Fixed period must be between 1 month and the loan tenure"
        if not _in_range("interest_rate", inputs.floating_rate):
            return False, "Floating rate is out of range"

    return True, ""


def validate_affordability_inputs(inputs: AffordabilityInputs) -> Tuple[bool, str]:
    """校验可负担性表单输入"""
    if inputs.monthly_income <= 0:
        return False, "Monthly income must be greater than 0"

    if min(inputs.co_applicant_income, inputs.existing_emis,
           inputs.other_obligations, inputs.down_payment_available) < 0:
        return False, "Amounts cannot be negative"

    if not 0 < inputs.foir_percentage <= 100:
        return False, "FOIR must be between 0 and 100%"

    if not _in_range("loan_tenure", inputs.tenure_years):
        return False, "Loan tenure is out of range"

    if not _in_range("interest_rate", inputs.interest_rate):
        return False, "Interest rate is out of range"

    return True, ""


def validate_prepayment(inputs: PrepaymentInputs) -> Tuple[bool, str]:
    """校验提前还款输入"""
    if inputs.principal <= 0:
        return False, "Loan amount must be greater than 0"

    total_months = inputs.tenure_years * 12
    if inputs.prepayment_type == PrepaymentType.LUMP_SUM and inputs.lump_sum_payments:
        for payment in inputs.lump_sum_payments:
            if payment.amount <= 0:
                return False, "Prepayment amount must be greater than 0"
            if not 1 <= payment.month <= total_months:
                return False, f"Prepayment month must be between 1 and {total_months}"
        return True, ""

    if inputs.prepayment_amount <= 0:
        return False, "Prepayment amount must be greater than 0"

    if inputs.prepayment_amount >= inputs.principal:
        return False, "Prepayment must be less than the loan amount"

    if not 1 <= inputs.start_month <= total_months:
        return False, f"Start month must be between 1 and {total_months}"

    return True, ""
