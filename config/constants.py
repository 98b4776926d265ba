import math
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType


class LoanType(str, Enum):
    FIXED = "fixed"
    FLOATING = "floating"
    HYBRID = "hybrid"

    @property
    def label(self) -> str:
        return {
            "fixed": "Fixed Rate",
            "floating": "Floating Rate",
            "hybrid": "Hybrid (Fixed then Floating)",
        }[self.value]


class TaxRegime(str, Enum):
    OLD = "old"
    NEW = "new"


class PMAYCategory(str, Enum):
    EWS = "EWS"
    LIG = "LIG"
    MIG1 = "MIG1"
    MIG2 = "MIG2"
    INELIGIBLE = "INELIGIBLE"

    @property
    def label(self) -> str:
        return {
            "EWS": "Economically Weaker Section",
            "LIG": "Low Income Group",
            "MIG1": "Middle Income Group I",
            "MIG2": "Middle Income Group II",
            "INELIGIBLE": "Not eligible",
        }[self.value]


class Gender(str, Enum):
    MALE = "male"
    FEMALE = "female"
    JOINT = "joint"


class PrepaymentType(str, Enum):
    MONTHLY = "monthly"
    YEARLY = "yearly"
    LUMP_SUM = "lump-sum"


# 税率档位
@dataclass(frozen=True)
class TaxSlab:
    min: float
    max: float
    rate: float


TAX_SLABS_OLD = (
    TaxSlab(0, 250000, 0.0),
    TaxSlab(250000, 500000, 0.05),
    TaxSlab(500000, 1000000, 0.20),
    TaxSlab(1000000, math.inf, 0.30),
)

TAX_SLABS_NEW = (
    TaxSlab(0, 300000, 0.0),
    TaxSlab(300000, 600000, 0.05),
    TaxSlab(600000, 900000, 0.10),
    TaxSlab(900000, 1200000, 0.15),
    TaxSlab(1200000, 1500000, 0.20),
    TaxSlab(1500000, math.inf, 0.30),
)

STANDARD_DEDUCTION = 50000
CESS_RATE = 0.04  # Health & Education Cess

# 扣除上限 (FY 2024-25)
SECTION_80C_LIMIT = 150000
SECTION_24B_LIMIT_SELF_OCCUPIED = 200000
SECTION_80EEA_LIMIT = 150000
SECTION_80EEA_PROPERTY_VALUE_LIMIT = 4500000
PRE_EMI_DEDUCTION_YEARS = 5


# LTV bands, checked in order
@dataclass(frozen=True)
class LTVBand:
    max_property_value: float
    max_ltv_percent: float
    label: str


LTV_LIMITS = (
    LTVBand(3000000, 90, "properties ≤₹30L"),
    LTVBand(7500000, 80, "properties ₹30-75L"),
    LTVBand(math.inf, 75, "properties >₹75L"),
)

FOIR_SCENARIOS = (
    ("Conservative", 50),
    ("Moderate", 55),
    ("Aggressive", 60),
)


@dataclass(frozen=True)
class PMAYCriteria:
    min_income: float
    max_income: float
    max_property_value: float
    max_carpet_area: float  # sq meters
    subsidy_rate: float  # percent
    max_loan_for_subsidy: float


PMAY_CRITERIA = MappingProxyType({
    PMAYCategory.EWS: PMAYCriteria(0, 300000, 4500000, 30, 6.5, 600000),
    PMAYCategory.LIG: PMAYCriteria(300001, 600000, 4500000, 60, 6.5, 600000),
    PMAYCategory.MIG1: PMAYCriteria(600001, 1200000, 4500000, 160, 4, 900000),
    PMAYCategory.MIG2: PMAYCriteria(1200001, 1800000, 4500000, 200, 3, 1200000),
})

PMAY_MAX_TENURE_YEARS = 20


# Stamp duty rates by state: (men, women)
STAMP_DUTY_RATES = MappingProxyType({
    "Maharashtra": (0.06, 0.04),
    "Karnataka": (0.056, 0.056),
    "Delhi": (0.06, 0.04),
    "TamilNadu": (0.07, 0.07),
    "Telangana": (0.045, 0.045),
    "Gujarat": (0.049, 0.049),
    "UttarPradesh": (0.07, 0.06),
    "WestBengal": (0.065, 0.055),
    "Rajasthan": (0.06, 0.055),
    "MadhyaPradesh": (0.075, 0.075),
    "Haryana": (0.07, 0.05),
    "Punjab": (0.07, 0.07),
    "Kerala": (0.08, 0.07),
    "AndhraPradesh": (0.05, 0.05),
    "Odisha": (0.06, 0.06),
    "Jharkhand": (0.06, 0.06),
    "Chhattisgarh": (0.05, 0.05),
    "Assam": (0.075, 0.075),
    "Bihar": (0.06, 0.06),
    "Uttarakhand": (0.05, 0.05),
    "HimachalPradesh": (0.06, 0.06),
    "Goa": (0.05, 0.05),
})

DEFAULT_STAMP_DUTY_RATE = 0.05

# Registration fee by state: (rate, cap)
REGISTRATION_FEES = MappingProxyType({
    "Maharashtra": (0.01, 30000),
    "Karnataka": (0.01, 100000),
    "Delhi": (0.01, 25000),
    "TamilNadu": (0.01, 100000),
    "Telangana": (0.005, 50000),
    "Gujarat": (0.01, 30000),
    "UttarPradesh": (0.01, 50000),
    "WestBengal": (0.01, 50000),
})

DEFAULT_REGISTRATION_FEE = (0.01, 30000)

GST_RATE = 0.05  # on construction value of under-construction property
DEFAULT_CONSTRUCTION_RATIO = 0.7

# 表单校验范围
VALIDATION_LIMITS = MappingProxyType({
    "property_value": (100000, 100000000),
    "down_payment": (0, 100000000),
    "loan_tenure": (1, 30),
    "interest_rate": (1, 20),
    "annual_income": (0, 100000000),
})

# 列定义
SCHEDULE_COLUMNS = [
    "month", "year", "opening_balance", "emi", "interest", "principal",
    "closing_balance", "cumulative_interest", "cumulative_principal",
]

YEARLY_SUMMARY_COLUMNS = [
    "year", "opening_balance", "closing_balance",
    "total_emi", "total_interest", "total_principal",
]

SCENARIO_COMPARISON_COLUMNS = [
    "scenario", "loan_type", "loan_amount", "tenure_years", "first_emi",
    "last_emi", "total_interest", "total_amount", "interest_share", "irr",
]
