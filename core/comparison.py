"""多方案对比计算"""
from typing import Dict, List, Tuple

import numpy as np
import pandas as pd
from scipy import optimize

from config.constants import SCENARIO_COMPARISON_COLUMNS, LoanType
from core.schedule_generator import generate_loan_schedule
from data_manager.schema import AmortizationSchedule, Scenario


def calc_irr(principal: float, schedule: AmortizationSchedule) -> float:
    """
    月度现金流（放款为负，逐期月供为正）的 IRR，按月复利折算为年化率 (%)。

    本金不为正或计划为空时直接返回 0；
    [-50%, 100%] 月利率区间内无根时 brentq 报错，同样返回 0。
    """
    if principal <= 0 or schedule.is_empty:
        return 0.0

    cash_flows = np.array([-principal] + [row.emi for row in schedule.rows])
    periods = np.arange(len(cash_flows))

    def npv(rate):
        return float(np.sum(cash_flows / (1 + rate) ** periods))

    try:
        monthly_irr = optimize.brentq(npv, -0.5, 1.0)
        annual_irr = (1 + monthly_irr) ** 12 - 1
        return round(annual_irr * 100, 4)
    except (ValueError, RuntimeError):
        return 0.0


def compare_loan_scenarios(scenarios: List[Scenario]) -> Tuple[pd.DataFrame, Dict[str, str]]:
    """
    对比多个贷款方案的关键指标。

    Returns:
        (对比表, {"best": 总利息最少的方案名, "worst": 总利息最多的方案名})
    """
    rows = []
    for scenario in scenarios:
        inputs = scenario.inputs
        schedule = generate_loan_schedule(inputs)
        if schedule.is_empty:
            continue

        total_amount = schedule.total_amount
        rows.append({
            "scenario": scenario.name,
            "loan_type": LoanType(inputs.loan_type).value,
            "loan_amount": inputs.loan_amount,
            "tenure_years": inputs.tenure_years,
            "first_emi": schedule.rows[0].emi,
            "last_emi": schedule.rows[-1].emi,
            "total_interest": schedule.total_interest,
            "total_amount": total_amount,
            "interest_share": round(schedule.total_interest / total_amount * 100, 2) if total_amount > 0 else 0,
            "irr": calc_irr(inputs.loan_amount, schedule),
        })

    table = pd.DataFrame(rows, columns=SCENARIO_COMPARISON_COLUMNS)
    if table.empty:
        return table, {}

    ranking = {
        "best": table.loc[table["total_interest"].idxmin(), "scenario"],
        "worst": table.loc[table["total_interest"].idxmax(), "scenario"],
    }
    return table, ranking
