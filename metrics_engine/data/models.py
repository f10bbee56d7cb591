"""Canonical company model shared by every calculator."""

from __future__ import annotations

import datetime
from dataclasses import dataclass

import pandas as pd


@dataclass(frozen=True)
class Quote:
    """Market data and provider-supplied per-share figures.

    Attributes:
        symbol: Ticker symbol.
        price: Latest traded price.
        market_cap: Market capitalisation (price x shares when the
            provider omits it).
        beta: Provider beta against its reference index.
        pe: Provider trailing P/E, passed through when present.
        eps: Trailing twelve-month diluted EPS.
        forward_pe: Provider forward P/E.
        forward_eps: Consensus next-year EPS.
        dividend_rate: Annual dividend per share.
        dividend_yield: Provider dividend yield (fraction).
        shares_outstanding: Shares outstanding.
    """

    symbol: str
    price: float | None = None
    previous_close: float | None = None
    open: float | None = None
    day_high: float | None = None
    day_low: float | None = None
    volume: float | None = None
    average_volume: float | None = None
    market_cap: float | None = None
    beta: float | None = None
    pe: float | None = None
    eps: float | None = None
    forward_pe: float | None = None
    forward_eps: float | None = None
    dividend_rate: float | None = None
    dividend_yield: float | None = None
    shares_outstanding: float | None = None
    float_shares: float | None = None


@dataclass(frozen=True)
class IncomeStatement:
    """Trailing-period income statement."""

    revenue: float | None = None
    cost_of_revenue: float | None = None
    gross_profit: float | None = None
    operating_expenses: float | None = None
    operating_income: float | None = None
    ebitda: float | None = None
    ebit: float | None = None
    interest_expense: float | None = None
    pretax_income: float | None = None
    income_tax: float | None = None
    net_income: float | None = None


@dataclass(frozen=True)
class BalanceSheet:
    """Point-in-time balance sheet."""

    total_assets: float | None = None
    current_assets: float | None = None
    cash: float | None = None
    short_term_investments: float | None = None
    receivables: float | None = None
    inventory: float | None = None
    total_liabilities: float | None = None
    current_liabilities: float | None = None
    short_term_debt: float | None = None
    accounts_payable: float | None = None
    long_term_debt: float | None = None
    total_debt: float | None = None
    total_equity: float | None = None
    retained_earnings: float | None = None


@dataclass(frozen=True)
class CashFlowStatement:
    """Trailing-period cash flow statement.

    Capital expenditures and dividends paid are stored as positive
    magnitudes regardless of the sign convention of the source.
    """

    operating_cash_flow: float | None = None
    investing_cash_flow: float | None = None
    financing_cash_flow: float | None = None
    capital_expenditures: float | None = None
    free_cash_flow: float | None = None
    dividends_paid: float | None = None


@dataclass(frozen=True)
class MacroIndicators:
    """National macro indicators for "now". Rates are fractions."""

    gdp_growth_rate: float | None = None
    real_gdp: float | None = None
    nominal_gdp: float | None = None
    gdp_per_capita: float | None = None
    cpi: float | None = None
    ppi: float | None = None
    core_inflation: float | None = None
    federal_funds_rate: float | None = None
    treasury_10y: float | None = None
    treasury_2y: float | None = None
    treasury_3m: float | None = None
    usd_index: float | None = None
    unemployment_rate: float | None = None
    wage_growth: float | None = None
    labor_productivity: float | None = None
    consumer_confidence: float | None = None
    business_confidence: float | None = None


@dataclass(frozen=True)
class Peer:
    """One company in the industry peer list."""

    symbol: str
    revenue: float | None


@dataclass(frozen=True)
class IndustryProfile:
    """Industry aggregates and peer revenues."""

    industry_name: str | None = None
    sector_name: str | None = None
    industry_revenue: float | None = None
    industry_growth_rate: float | None = None
    market_size: float | None = None
    industry_pe: float | None = None
    industry_roic: float | None = None
    industry_gross_margin: float | None = None
    peers: tuple[Peer, ...] = ()


@dataclass(frozen=True, eq=False)
class CompanyData:
    """Central data contract consumed by all metric modules.

    Built once per calculation by ``build_company``; calculators read it
    and never modify it or its DataFrames.

    Attributes:
        symbol: Stock ticker symbol.
        company_name: Company name (falls back to the symbol).
        sector: Business sector.
        industry: Industry name.
        timestamp: Capture time of the raw bundle.
        quote: Market data.
        income: Trailing income statement.
        balance: Latest balance sheet.
        cash_flow: Trailing cash flow statement.
        macro: Macro indicators.
        industry_profile: Industry aggregates and peers.
        financials: Annual history, one row per period, oldest first.
            Columns: revenue, net_income, eps, dividends_per_share,
            free_cash_flow, gross_profit, operating_cash_flow,
            total_assets, long_term_debt, current_assets,
            current_liabilities, shares_outstanding.
        price_history: Daily bars sorted by date. Columns: date, open,
            high, low, close, volume.
        benchmark_history: Daily benchmark closes. Columns: date, close.
            Empty when no benchmark was supplied.
        effective_tax_rate: Tax rate override, else income tax / pretax
            income.
        working_capital: Current assets - current liabilities.
        invested_capital: Total debt + total equity - cash.
        net_debt: Total debt - cash.
        enterprise_value: Market cap + total debt - cash.
        average_total_assets: Mean of current and prior-period total
            assets, or current total assets when no prior is known.
    """

    symbol: str
    company_name: str
    sector: str | None
    industry: str | None
    timestamp: datetime.datetime
    quote: Quote
    income: IncomeStatement
    balance: BalanceSheet
    cash_flow: CashFlowStatement
    macro: MacroIndicators
    industry_profile: IndustryProfile
    financials: pd.DataFrame
    price_history: pd.DataFrame
    benchmark_history: pd.DataFrame
    effective_tax_rate: float | None
    working_capital: float | None
    invested_capital: float | None
    net_debt: float | None
    enterprise_value: float | None
    average_total_assets: float | None
