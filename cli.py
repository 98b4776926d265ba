import functools
import logging

import click

from config.constants import Gender, LoanType, PrepaymentType, TaxRegime
from config.settings import (
    DEFAULT_FOIR_PERCENT,
    DEFAULT_RATE_CHANGE_FREQUENCY_MONTHS,
    DEFAULT_RATE_DECREASE_PERCENT,
    DEFAULT_RATE_INCREASE_PERCENT,
)
from core import floating_rate, hybrid_rate
from core.affordability import calculate_affordability, compare_affordability_scenarios
from core.amortization import generate_amortization_schedule, generate_yearly_summary
from core.emi import calculate_emi, calculate_total_amount, calculate_total_interest
from core.exceptions import LoanCalculationError
from core.pmay import calculate_pmay_subsidy
from core.prepayment import analyze_prepayment
from core.schedule_generator import generate_loan_schedule, summarize_loan
from core.stamp_duty import calculate_stamp_duty_breakdown, compare_stamp_duty_across_states
from core.tax import calculate_tax_savings
from data_manager.schema import (
    AffordabilityInputs,
    LoanInputs,
    PMAYInputs,
    PrepaymentInputs,
    TaxInputs,
)
from utils.formatters import fmt_amount, fmt_months, fmt_rate


def reports_errors(func):
    """Turn calculation errors into a clean CLI error instead of a traceback."""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except LoanCalculationError as exc:
            raise click.ClickException(str(exc)) from exc
    return wrapper


@click.group()
@click.option('--verbose', is_flag=True, help='Log schedule construction and EMI recomputes')
def cli(verbose):
    """A CLI for Indian home loan calculations."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@cli.command()
@click.option('--principal', type=float, required=True, help='Loan principal')
@click.option('--rate', type=float, required=True, help='Annual interest rate (%)')
@click.option('--years', type=int, required=True, help='Loan tenure in years')
@click.option('--processing-fee', type=float, default=0.0, help='Processing fee deducted at disbursal')
@reports_errors
def emi(principal, rate, years, processing_fee):
    """Calculates the EMI, total interest and total amount payable."""
    click.echo(f"EMI: {calculate_emi(principal, rate, years):,.0f}")
    click.echo(f"Total interest: {calculate_total_interest(principal, rate, years):,.0f}")
    click.echo(f"Total amount: {calculate_total_amount(principal, rate, years):,.0f}")
    if processing_fee > 0:
        results = summarize_loan(LoanInputs(
            property_value=principal, down_payment=0, tenure_years=years,
            interest_rate=rate, processing_fee=processing_fee,
        ))
        click.echo(f"Effective rate: {fmt_rate(results.effective_rate)}")


@cli.command()
@click.option('--principal', type=float, required=True, help='Loan principal')
@click.option('--rate', type=float, required=True, help='Annual interest rate (%)')
@click.option('--years', type=int, required=True, help='Loan tenure in years')
@click.option('--extra-payment', type=float, default=0.0, help='Extra principal paid every month')
@reports_errors
def schedule(principal, rate, years, extra_payment):
    """Generates a fixed-rate amortization schedule and outputs it as CSV."""
    result = generate_amortization_schedule(principal, rate, years, extra_payment)
    click.echo(result.to_frame().to_csv(index=False))


@cli.command()
@click.option('--principal', type=float, required=True, help='Loan principal')
@click.option('--rate', type=float, required=True, help='Annual interest rate (%)')
@click.option('--years', type=int, required=True, help='Loan tenure in years')
@click.option('--extra-payment', type=float, default=0.0, help='Extra principal paid every month')
@reports_errors
def yearly(principal, rate, years, extra_payment):
    """Outputs the year-by-year summary of a fixed-rate schedule as CSV."""
    result = generate_amortization_schedule(principal, rate, years, extra_payment)
    click.echo(generate_yearly_summary(result).to_csv(index=False))


@cli.command()
@click.option('--principal', type=float, required=True, help='Loan principal')
@click.option('--rate', type=float, required=True, help='Starting annual interest rate (%)')
@click.option('--years', type=int, required=True, help='Loan tenure in years')
@click.option('--increase', type=float, default=DEFAULT_RATE_INCREASE_PERCENT, help='Rate change per step (%)')
@click.option('--frequency', type=int, default=DEFAULT_RATE_CHANGE_FREQUENCY_MONTHS, help='Months between rate changes')
@reports_errors
def floating(principal, rate, years, increase, frequency):
    """Generates a floating-rate schedule and outputs it as CSV."""
    result = generate_loan_schedule(LoanInputs(
        property_value=principal, down_payment=0, tenure_years=years, interest_rate=rate,
        loan_type=LoanType.FLOATING, rate_increase_percent=increase,
        rate_change_frequency_months=frequency,
    ))
    click.echo(result.to_frame().to_csv(index=False))


@cli.command()
@click.option('--principal', type=float, required=True, help='Loan principal')
@click.option('--fixed-rate', type=float, required=True, help='Annual rate during the fixed period (%)')
@click.option('--floating-rate', type=float, required=True, help='Starting annual rate after the fixed period (%)')
@click.option('--fixed-months', type=int, required=True, help='Length of the fixed period in months')
@click.option('--years', type=int, required=True, help='Loan tenure in years')
@click.option('--increase', type=float, default=DEFAULT_RATE_INCREASE_PERCENT, help='Rate change per step (%)')
@click.option('--frequency', type=int, default=DEFAULT_RATE_CHANGE_FREQUENCY_MONTHS, help='Months between rate changes')
@reports_errors
def hybrid(principal, fixed_rate, floating_rate, fixed_months, years, increase, frequency):
    """Generates a hybrid (fixed then floating) schedule and outputs it as CSV."""
    result = generate_loan_schedule(LoanInputs(
        property_value=principal, down_payment=0, tenure_years=years, interest_rate=fixed_rate,
        loan_type=LoanType.HYBRID, rate_increase_percent=increase,
        rate_change_frequency_months=frequency, fixed_period_months=fixed_months,
        floating_rate=floating_rate,
    ))
    click.echo(result.to_frame().to_csv(index=False))


@cli.command()
@click.option('--principal', type=float, required=True, help='Loan principal')
@click.option('--rate', type=float, required=True, help='Starting floating rate (%)')
@click.option('--years', type=int, required=True, help='Loan tenure in years')
@click.option('--frequency', type=int, default=DEFAULT_RATE_CHANGE_FREQUENCY_MONTHS, help='Months between rate changes')
@click.option('--increase', type=float, default=DEFAULT_RATE_INCREASE_PERCENT, help='Realistic rate increase per step (%)')
@click.option('--decrease', type=float, default=DEFAULT_RATE_DECREASE_PERCENT, help='Optimistic rate decrease per step (%)')
@click.option('--fixed-rate', type=float, help='Fixed rate for a hybrid loan (%)')
@click.option('--fixed-months', type=int, help='Fixed period for a hybrid loan in months')
@reports_errors
def scenarios(principal, rate, years, frequency, increase, decrease, fixed_rate, fixed_months):
    """Compares optimistic, realistic and pessimistic rate paths."""
    if (fixed_rate is None) != (fixed_months is None):
        raise click.UsageError("--fixed-rate and --fixed-months must be given together")

    if fixed_rate is None:
        comparison = floating_rate.generate_scenario_comparison(
            principal, rate, years, frequency, increase, decrease)
    else:
        comparison = hybrid_rate.generate_scenario_comparison(
            principal, fixed_rate, rate, fixed_months, years, frequency, increase, decrease)
    click.echo(comparison.to_frame().to_string(index=False))


@cli.command()
@click.option('--income', type=float, required=True, help='Monthly income')
@click.option('--co-income', type=float, default=0.0, help='Co-applicant monthly income')
@click.option('--existing-emis', type=float, default=0.0, help='Existing monthly EMIs')
@click.option('--other-obligations', type=float, default=0.0, help='Other monthly obligations')
@click.option('--down-payment', type=float, default=0.0, help='Down payment available')
@click.option('--rate', type=float, required=True, help='Annual interest rate (%)')
@click.option('--years', type=int, required=True, help='Loan tenure in years')
@click.option('--foir', type=float, default=DEFAULT_FOIR_PERCENT, help='FOIR (%)')
@click.option('--compare', is_flag=True, help='Show conservative, moderate and aggressive FOIR')
@reports_errors
def affordability(income, co_income, existing_emis, other_obligations, down_payment,
                  rate, years, foir, compare):
    """Estimates the maximum loan and property value for an income."""
    inputs = AffordabilityInputs(
        monthly_income=income,
        down_payment_available=down_payment,
        interest_rate=rate,
        tenure_years=years,
        co_applicant_income=co_income,
        existing_emis=existing_emis,
        other_obligations=other_obligations,
        foir_percentage=foir,
    )

    if compare:
        for item in compare_affordability_scenarios(inputs):
            click.echo(f"{item.scenario} ({item.foir_percentage}%): "
                       f"max loan {fmt_amount(item.result.max_loan_amount)}, "
                       f"property {fmt_amount(item.result.max_property_value)}")
        return

    result = calculate_affordability(inputs)
    click.echo(f"Max EMI: {fmt_amount(result.max_affordable_emi)}")
    click.echo(f"Max loan: {fmt_amount(result.max_loan_amount)}")
    click.echo(f"Max property value: {fmt_amount(result.max_property_value)}")
    click.echo(f"LTV: {fmt_rate(result.ltv_ratio)}")
    if result.rbi_compliant is not None:
        click.echo(f"RBI compliant: {'yes' if result.rbi_compliant else 'no'}")
    for recommendation in result.recommendations:
        click.echo(f"- {recommendation}")


@cli.command()
@click.option('--income', type=float, required=True, help='Annual income')
@click.option('--principal-paid', type=float, required=True, help='Principal repaid this year')
@click.option('--interest-paid', type=float, required=True, help='Interest paid this year')
@click.option('--first-time', is_flag=True, help='First-time home buyer')
@click.option('--property-value', type=float, default=0.0, help='Property value')
@click.option('--other-80c', type=float, default=0.0, help='Other Section 80C investments')
@reports_errors
def tax(income, principal_paid, interest_paid, first_time, property_value, other_80c):
    """Compares tax under the old and new regimes with home loan deductions."""
    result = calculate_tax_savings(TaxInputs(
        annual_income=income,
        principal_paid=principal_paid,
        interest_paid=interest_paid,
        is_first_time_buyer=first_time,
        property_value=property_value,
        other_80c_investments=other_80c,
    ))
    d = result.deductions
    click.echo(f"80C: {d.section_80c:,.0f}  24(b): {d.section_24b:,.0f}  80EEA: {d.section_80eea:,.0f}")
    click.echo(f"Old regime tax without loan: {result.tax_without_loan:,.0f}")
    click.echo(f"Old regime tax with loan: {result.tax_with_loan:,.0f}")
    click.echo(f"New regime tax: {result.tax_new_regime:,.0f}")
    click.echo(f"Savings from loan: {result.savings:,.0f}")
    regime = "old" if result.recommended_regime == TaxRegime.OLD else "new"
    click.echo(f"Recommended regime: {regime}")


@cli.command()
@click.option('--income', type=float, required=True, help='Annual household income')
@click.option('--loan', type=float, required=True, help='Loan amount')
@click.option('--property-value', type=float, required=True, help='Property value')
@click.option('--rate', type=float, required=True, help='Annual interest rate (%)')
@click.option('--years', type=int, required=True, help='Loan tenure in years')
@click.option('--first-time/--not-first-time', default=True, help='First-time home buyer')
@reports_errors
def pmay(income, loan, property_value, rate, years, first_time):
    """Calculates the PMAY interest subsidy."""
    result = calculate_pmay_subsidy(PMAYInputs(
        annual_income=income,
        loan_amount=loan,
        property_value=property_value,
        interest_rate=rate,
        tenure_years=years,
        is_first_time=first_time,
    ))
    click.echo(f"Category: {result.category.value}")
    if not result.eligible:
        click.echo(f"Not eligible: {result.reason}")
        return
    click.echo(f"Subsidy rate: {fmt_rate(result.subsidy_rate)} on {fmt_amount(result.eligible_loan)}")
    click.echo(f"Subsidy (NPV): {fmt_amount(result.subsidy_npv)}")
    click.echo(f"Monthly saving: {fmt_amount(result.savings_per_month)}")
    click.echo(f"Effective rate: {fmt_rate(result.effective_rate)}")


@cli.command('stamp-duty')
@click.option('--property-value', type=float, required=True, help='Property value')
@click.option('--state', type=str, required=True, help='State, e.g. Maharashtra')
@click.option('--gender', type=click.Choice([g.value for g in Gender]), default=Gender.MALE.value)
@click.option('--under-construction', is_flag=True, help='Property is under construction (GST applies)')
@click.option('--compare', 'compare_states', multiple=True, help='Other states to compare against')
@reports_errors
def stamp_duty(property_value, state, gender, under_construction, compare_states):
    """Calculates stamp duty, registration fee and GST."""
    if compare_states:
        states = [state, *compare_states]
        for b in compare_stamp_duty_across_states(property_value, states, Gender(gender)):
            click.echo(f"{b.state}: {fmt_amount(b.total_transaction_cost)} ({b.effective_rate * 100:.2f}%)")
        return

    b = calculate_stamp_duty_breakdown(property_value, state, Gender(gender), under_construction)
    click.echo(f"Stamp duty: {fmt_amount(b.stamp_duty)}")
    click.echo(f"Registration fee: {fmt_amount(b.registration_fee)}")
    click.echo(f"GST: {fmt_amount(b.gst)}")
    click.echo(f"Total: {fmt_amount(b.total_transaction_cost)} ({b.effective_rate * 100:.2f}%)")


@cli.command()
@click.option('--principal', type=float, required=True, help='Loan principal')
@click.option('--rate', type=float, required=True, help='Annual interest rate (%)')
@click.option('--years', type=int, required=True, help='Loan tenure in years')
@click.option('--type', 'prepayment_type', type=click.Choice([t.value for t in PrepaymentType]),
              default=PrepaymentType.MONTHLY.value, help='How often the extra payment is made')
@click.option('--amount', type=float, required=True, help='Extra payment amount')
@click.option('--start-month', type=int, default=1, help='Month of the first extra payment')
@click.option('--reduce-emi', is_flag=True, help='Keep the tenure and lower the EMI instead')
@reports_errors
def prepayment(principal, rate, years, prepayment_type, amount, start_month, reduce_emi):
    """Shows the interest and time saved by prepaying."""
    result = analyze_prepayment(PrepaymentInputs(
        principal=principal,
        annual_rate=rate,
        tenure_years=years,
        prepayment_type=PrepaymentType(prepayment_type),
        prepayment_amount=amount,
        start_month=start_month,
        reduce_tenure=not reduce_emi,
    ))
    click.echo(f"New tenure: {fmt_months(result.new_tenure_months)} "
               f"({result.months_saved} months saved)")
    click.echo(f"Interest saved: {fmt_amount(result.interest_saved)}")
    click.echo(f"Extra paid: {fmt_amount(result.total_extra_paid)}")
    click.echo(f"Return on prepayment: {fmt_rate(result.roi)}")
    click.echo(f"EMI: {result.new_emi:,.0f}")


if __name__ == "__main__":
    cli()
