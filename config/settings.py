# 贷款上限
MAX_TENURE_YEARS = 50

# 默认 FOIR (%)
DEFAULT_FOIR_PERCENT = 50
LOW_DISPOSABLE_INCOME = 15000
LOW_GROSS_INCOME = 30000

# 浮动利率情景默认步长 (%)
DEFAULT_RATE_INCREASE_PERCENT = 0.25
DEFAULT_RATE_DECREASE_PERCENT = 0.1
DEFAULT_RATE_CHANGE_FREQUENCY_MONTHS = 12

# 有效利率二分搜索
EFFECTIVE_RATE_SEARCH_ITERATIONS = 100
EFFECTIVE_RATE_UPPER_BOUND = 50.0
EFFECTIVE_RATE_TOLERANCE = 1.0

# PMAY 补贴折现率 (年)
PMAY_DISCOUNT_RATE = 0.08

# 提前还款对比金额
PREPAYMENT_SWEEP_AMOUNTS = (5000, 10000, 15000, 20000)

# 金额精度
AMOUNT_PRECISION = 2
RATE_PRECISION = 2

# 余额低于此值视为已结清
BALANCE_EPSILON = 0.005

# 逐年节税估算的年限上限
TAX_SAVINGS_HORIZON_YEARS = 20
