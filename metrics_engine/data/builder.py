"""Raw bundle normalisation into the canonical CompanyData model.

Provider naming differences (camelCase vs snake_case, alternative
spellings, sign conventions) are resolved here and nowhere else, so the
calculators only ever see one strict shape.
"""

from __future__ import annotations

import datetime
import logging
from collections.abc import Mapping, Sequence
from typing import Any

import numpy as np
import pandas as pd

from metrics_engine.config import Assumptions
from metrics_engine.data.models import (
    BalanceSheet,
    CashFlowStatement,
    CompanyData,
    IncomeStatement,
    IndustryProfile,
    MacroIndicators,
    Peer,
    Quote,
)
from metrics_engine.numeric import positive_divide, safe_add, safe_multiply, safe_subtract, to_float

logger = logging.getLogger(__name__)

# Accepted top-level keys for each required section, in lookup order.
SECTION_KEYS: dict[str, tuple[str, ...]] = {
    "market": ("market", "yahoo", "company"),
    "macro": ("macro", "fred"),
    "industry": ("industry",),
    "timestamp": ("timestamp",),
}

# Provider spellings that the snake_case/camelCase rule does not cover.
FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "price": ("currentPrice", "regularMarketPrice"),
    "volume": ("regularMarketVolume",),
    "average_volume": ("averageDailyVolume3Month",),
    "pe": ("trailingPE", "peRatio"),
    "eps": ("trailingEps", "trailingEPS"),
    "forward_pe": ("forwardPE",),
    "forward_eps": ("forwardEPS",),
    "revenue": ("totalRevenue",),
    "pretax_income": ("incomeBeforeTax",),
    "income_tax": ("incomeTaxExpense", "taxProvision"),
    "receivables": ("netReceivables", "accountsReceivable"),
    "total_equity": ("totalStockholderEquity", "stockholdersEquity"),
    "operating_cash_flow": (
        "cashFlowFromOps",
        "totalCashFromOperatingActivities",
        "netCashProvidedByOperatingActivities",
    ),
    "investing_cash_flow": ("totalCashflowsFromInvestingActivities",),
    "financing_cash_flow": ("totalCashFromFinancingActivities",),
    "capital_expenditures": ("capitalExpenditure", "capex"),
    "real_gdp": ("realGDP",),
    "nominal_gdp": ("nominalGDP",),
    "treasury_10y": ("treasury10Y",),
    "treasury_2y": ("treasury2Y",),
    "treasury_3m": ("treasury3M",),
    "industry_pe": ("industryPE",),
    "industry_roic": ("industryROIC",),
    "company_name": ("longName", "shortName"),
}

# Historical array key -> financials column.
HISTORY_ARRAYS: dict[str, str] = {
    "historicalRevenue": "revenue",
    "historicalNetIncome": "net_income",
    "historicalEPS": "eps",
    "historicalDividends": "dividends_per_share",
    "historicalFCF": "free_cash_flow",
}

# Columns read from per-period statement records in historicalFinancials.
STATEMENT_COLUMNS: tuple[str, ...] = (
    "revenue",
    "net_income",
    "gross_profit",
    "operating_cash_flow",
    "total_assets",
    "long_term_debt",
    "current_assets",
    "current_liabilities",
    "shares_outstanding",
)

FINANCIALS_COLUMNS: tuple[str, ...] = (
    "revenue",
    "net_income",
    "eps",
    "dividends_per_share",
    "free_cash_flow",
    "gross_profit",
    "operating_cash_flow",
    "total_assets",
    "long_term_debt",
    "current_assets",
    "current_liabilities",
    "shares_outstanding",
)

PRICE_COLUMNS: tuple[str, ...] = ("date", "open", "high", "low", "close", "volume")

# Resolved against the wall clock by pandas.
RELATIVE_TIMESTAMPS = frozenset({"now", "today", "tomorrow", "yesterday"})


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


def _lookup(record: Mapping[str, Any], name: str) -> Any:
    """Return the first non-None value among the accepted spellings of name."""
    for key in (name, _camel(name), *FIELD_ALIASES.get(name, ())):
        value = record.get(key)
        if value is not None:
            return value
    return None


def _number(record: Mapping[str, Any], name: str) -> float | None:
    return to_float(_lookup(record, name))


def _magnitude(value: float | None) -> float | None:
    return abs(value) if value is not None else None


def _text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _section(raw: Mapping[str, Any], section: str) -> Any:
    for key in SECTION_KEYS[section]:
        if raw.get(key) is not None:
            return raw[key]
    return None


def validate_raw_data(raw: object) -> list[str]:
    """List the structural problems of a raw bundle.

    Args:
        raw: Candidate raw bundle.

    Returns:
        Human-readable problems; empty when the bundle is structurally
        valid. Missing individual fields are never problems.
    """
    if not isinstance(raw, Mapping):
        return [f"raw bundle must be a mapping, got {type(raw).__name__}"]

    problems: list[str] = []
    for section in ("market", "macro", "industry"):
        value = _section(raw, section)
        if value is None:
            problems.append(f"missing required section {section!r}")
        elif not isinstance(value, Mapping):
            problems.append(
                f"section {section!r} must be a mapping, got {type(value).__name__}"
            )
    if _section(raw, "timestamp") is None:
        problems.append("missing required section 'timestamp'")
    return problems


def _require_sections(raw: object) -> None:
    if not isinstance(raw, Mapping):
        raise TypeError(f"raw bundle must be a mapping, got {type(raw).__name__}")
    for section in ("market", "macro", "industry"):
        value = _section(raw, section)
        if value is None:
            raise ValueError(f"raw bundle is missing required section {section!r}")
        if not isinstance(value, Mapping):
            raise TypeError(
                f"section {section!r} must be a mapping, got {type(value).__name__}"
            )
    if _section(raw, "timestamp") is None:
        raise ValueError("raw bundle is missing required section 'timestamp'")


def _parse_timestamp(value: Any) -> datetime.datetime:
    if isinstance(value, datetime.datetime):
        return value
    if isinstance(value, datetime.date):
        return datetime.datetime.combine(value, datetime.time())
    if isinstance(value, str):
        if value.strip().lower() in RELATIVE_TIMESTAMPS:
            raise ValueError(f"relative timestamp {value!r} is not allowed")
        try:
            parsed = pd.to_datetime(value, format="ISO8601")
        except ValueError as exc:
            raise ValueError(f"unparseable timestamp {value!r}") from exc
        if pd.isna(parsed):
            raise ValueError(f"unparseable timestamp {value!r}")
        return parsed.to_pydatetime()
    raise ValueError(
        f"timestamp must be a datetime or ISO-8601 string, got {type(value).__name__}"
    )


def _build_quote(market: Mapping[str, Any]) -> Quote:
    price = _number(market, "price")
    shares = _number(market, "shares_outstanding")
    market_cap = _number(market, "market_cap")
    if market_cap is None:
        market_cap = safe_multiply(price, shares)

    return Quote(
        symbol=_text(market.get("symbol")) or "",
        price=price,
        previous_close=_number(market, "previous_close"),
        open=_number(market, "open"),
        day_high=_number(market, "day_high"),
        day_low=_number(market, "day_low"),
        volume=_number(market, "volume"),
        average_volume=_number(market, "average_volume"),
        market_cap=market_cap,
        beta=_number(market, "beta"),
        pe=_number(market, "pe"),
        eps=_number(market, "eps"),
        forward_pe=_number(market, "forward_pe"),
        forward_eps=_number(market, "forward_eps"),
        dividend_rate=_number(market, "dividend_rate"),
        dividend_yield=_number(market, "dividend_yield"),
        shares_outstanding=shares,
        float_shares=_number(market, "float_shares"),
    )


def _build_income(market: Mapping[str, Any]) -> IncomeStatement:
    revenue = _number(market, "revenue")
    cost_of_revenue = _number(market, "cost_of_revenue")
    gross_profit = _number(market, "gross_profit")
    if gross_profit is None:
        gross_profit = safe_subtract(revenue, cost_of_revenue)

    return IncomeStatement(
        revenue=revenue,
        cost_of_revenue=cost_of_revenue,
        gross_profit=gross_profit,
        operating_expenses=_number(market, "operating_expenses"),
        operating_income=_number(market, "operating_income"),
        ebitda=_number(market, "ebitda"),
        ebit=_number(market, "ebit"),
        interest_expense=_magnitude(_number(market, "interest_expense")),
        pretax_income=_number(market, "pretax_income"),
        income_tax=_number(market, "income_tax"),
        net_income=_number(market, "net_income"),
    )


def _build_balance(market: Mapping[str, Any]) -> BalanceSheet:
    short_term_debt = _number(market, "short_term_debt")
    long_term_debt = _number(market, "long_term_debt")
    total_debt = _number(market, "total_debt")
    if total_debt is None:
        total_debt = safe_add(short_term_debt, long_term_debt)

    return BalanceSheet(
        total_assets=_number(market, "total_assets"),
        current_assets=_number(market, "current_assets"),
        cash=_number(market, "cash"),
        short_term_investments=_number(market, "short_term_investments"),
        receivables=_number(market, "receivables"),
        inventory=_number(market, "inventory"),
        total_liabilities=_number(market, "total_liabilities"),
        current_liabilities=_number(market, "current_liabilities"),
        short_term_debt=short_term_debt,
        accounts_payable=_number(market, "accounts_payable"),
        long_term_debt=long_term_debt,
        total_debt=total_debt,
        total_equity=_number(market, "total_equity"),
        retained_earnings=_number(market, "retained_earnings"),
    )


def _build_cash_flow(market: Mapping[str, Any]) -> CashFlowStatement:
    operating = _number(market, "operating_cash_flow")
    capex = _magnitude(_number(market, "capital_expenditures"))
    free_cash_flow = _number(market, "free_cash_flow")
    if free_cash_flow is None:
        free_cash_flow = safe_subtract(operating, capex)

    return CashFlowStatement(
        operating_cash_flow=operating,
        investing_cash_flow=_number(market, "investing_cash_flow"),
        financing_cash_flow=_number(market, "financing_cash_flow"),
        capital_expenditures=capex,
        free_cash_flow=free_cash_flow,
        dividends_paid=_magnitude(_number(market, "dividends_paid")),
    )


def _build_macro(macro: Mapping[str, Any]) -> MacroIndicators:
    return MacroIndicators(
        **{name: _number(macro, name) for name in MacroIndicators.__dataclass_fields__}
    )


def _build_industry(industry: Mapping[str, Any]) -> IndustryProfile:
    raw_peers = _lookup(industry, "competitor_revenues")
    if raw_peers is None:
        raw_peers = industry.get("peers")

    peers: list[Peer] = []
    if isinstance(raw_peers, Sequence) and not isinstance(raw_peers, str):
        for entry in raw_peers:
            if not isinstance(entry, Mapping):
                continue
            peers.append(
                Peer(
                    symbol=_text(entry.get("symbol")) or "",
                    revenue=_number(entry, "revenue"),
                )
            )

    return IndustryProfile(
        industry_name=_text(_lookup(industry, "industry_name")),
        sector_name=_text(_lookup(industry, "sector_name")),
        industry_revenue=_number(industry, "industry_revenue"),
        industry_growth_rate=_number(industry, "industry_growth_rate"),
        market_size=_number(industry, "market_size"),
        industry_pe=_number(industry, "industry_pe"),
        industry_roic=_number(industry, "industry_roic"),
        industry_gross_margin=_number(industry, "industry_gross_margin"),
        peers=tuple(peers),
    )


def _as_list(value: Any) -> list[Any]:
    if isinstance(value, Sequence) and not isinstance(value, str):
        return list(value)
    if isinstance(value, np.ndarray):
        return value.tolist()
    return []


def _build_financials(
    market: Mapping[str, Any],
    quote: Quote,
    income: IncomeStatement,
    balance: BalanceSheet,
    cash_flow: CashFlowStatement,
) -> pd.DataFrame:
    """Assemble the annual history, aligned on the most recent period.

    Historical arrays and per-period statement records may differ in
    length; shorter ones are padded at the oldest end. Where both supply
    a column, the arrays win. The latest row's gaps are filled from the
    trailing statements.
    """
    columns: dict[str, list[float | None]] = {}
    for key, column in HISTORY_ARRAYS.items():
        columns[column] = [to_float(v) for v in _as_list(market.get(key))]

    periods = [
        entry for entry in _as_list(_lookup(market, "historical_financials"))
        if isinstance(entry, Mapping)
    ]
    for column in STATEMENT_COLUMNS:
        values = [_number(entry, column) for entry in periods]
        if column in columns and not any(v is not None for v in values):
            continue
        if column in columns and columns[column]:
            # Historical arrays take precedence; statement records fill gaps.
            existing = columns[column]
            n = max(len(existing), len(values))
            existing = [None] * (n - len(existing)) + existing
            values = [None] * (n - len(values)) + values
            columns[column] = [e if e is not None else v for v, e in zip(values, existing)]
        else:
            columns[column] = values

    n = max([len(v) for v in columns.values()] + [1])
    data = {
        column: [None] * (n - len(columns.get(column, [])))
        + columns.get(column, [])
        for column in FINANCIALS_COLUMNS
    }
    frame = pd.DataFrame(data, columns=list(FINANCIALS_COLUMNS), dtype=float)

    current = {
        "revenue": income.revenue,
        "net_income": income.net_income,
        "eps": quote.eps,
        "dividends_per_share": quote.dividend_rate,
        "free_cash_flow": cash_flow.free_cash_flow,
        "gross_profit": income.gross_profit,
        "operating_cash_flow": cash_flow.operating_cash_flow,
        "total_assets": balance.total_assets,
        "long_term_debt": balance.long_term_debt,
        "current_assets": balance.current_assets,
        "current_liabilities": balance.current_liabilities,
        "shares_outstanding": quote.shares_outstanding,
    }
    last = n - 1
    for column, value in current.items():
        if value is not None and pd.isna(frame.at[last, column]):
            frame.at[last, column] = value
    return frame


def _empty_frame(columns: Sequence[str]) -> pd.DataFrame:
    return pd.DataFrame({c: pd.Series(dtype=float) for c in columns})


def _build_series(rows: Any, columns: Sequence[str]) -> pd.DataFrame:
    """Normalise a daily bar series to the given columns, sorted by date.

    Dates are converted to naive UTC so series with and without a zone
    offset join on the same key. Repeated dates keep their last row.
    """
    if isinstance(rows, pd.DataFrame):
        frame = rows.copy()
    else:
        records = [r for r in _as_list(rows) if isinstance(r, Mapping)]
        if not records:
            return _empty_frame(columns)
        frame = pd.DataFrame.from_records(records)

    for column in columns:
        if column not in frame.columns:
            frame[column] = np.nan
    frame = frame[list(columns)].copy()

    for column in columns:
        if column != "date":
            frame[column] = pd.to_numeric(frame[column], errors="coerce")
    numeric = [c for c in columns if c != "date"]
    frame[numeric] = frame[numeric].replace([np.inf, -np.inf], np.nan)
    frame = frame.dropna(subset=["close"]).copy()

    if not frame.empty:
        dates = _parse_dates(frame["date"])
        if dates.notna().all():
            frame["date"] = dates
            frame = frame.sort_values("date", kind="mergesort")
            frame = frame.drop_duplicates(subset="date", keep="last")
    return frame.reset_index(drop=True)


def _parse_dates(values: pd.Series) -> pd.Series:
    dates = pd.to_datetime(values, errors="coerce", utc=True, format="ISO8601")
    if dates.isna().any():
        dates = pd.to_datetime(values, errors="coerce", utc=True, format="mixed")
    return dates.dt.tz_localize(None)


def build_company(
    raw: Mapping[str, Any], assumptions: Assumptions | None = None
) -> CompanyData:
    """Normalise a raw financial bundle into CompanyData.

    Args:
        raw: Raw bundle with a market/company record, a macro record, an
            industry record and a capture timestamp.
        assumptions: Supplies the tax-rate override, if any.

    Returns:
        Fully populated CompanyData. Absent fields are carried as None.

    Raises:
        TypeError: If the bundle or a required section is not a mapping.
        ValueError: If a required section is absent or the timestamp
            cannot be parsed.
    """
    _require_sections(raw)
    assumptions = assumptions or Assumptions()

    market: Mapping[str, Any] = _section(raw, "market")
    macro_record: Mapping[str, Any] = _section(raw, "macro")
    industry_record: Mapping[str, Any] = _section(raw, "industry")
    timestamp = _parse_timestamp(_section(raw, "timestamp"))

    quote = _build_quote(market)
    income = _build_income(market)
    balance = _build_balance(market)
    cash_flow = _build_cash_flow(market)
    macro = _build_macro(macro_record)
    industry_profile = _build_industry(industry_record)

    financials = _build_financials(market, quote, income, balance, cash_flow)
    price_history = _build_series(_lookup(market, "price_history"), PRICE_COLUMNS)
    benchmark_history = _build_series(
        _lookup(market, "benchmark_history"), ("date", "close")
    )

    if assumptions.tax_rate is not None:
        effective_tax_rate: float | None = assumptions.tax_rate
    else:
        effective_tax_rate = positive_divide(income.income_tax, income.pretax_income)

    # Intermediates reused across calculators
    working_capital = safe_subtract(balance.current_assets, balance.current_liabilities)
    net_debt = safe_subtract(balance.total_debt, balance.cash)
    invested_capital = safe_add(balance.total_debt, balance.total_equity)
    invested_capital = safe_subtract(invested_capital, balance.cash)
    enterprise_value = safe_add(quote.market_cap, net_debt)

    average_total_assets = balance.total_assets
    if balance.total_assets is not None and len(financials) >= 2:
        prior_assets = to_float(financials["total_assets"].iloc[-2])
        if prior_assets is not None:
            average_total_assets = (balance.total_assets + prior_assets) / 2

    symbol = quote.symbol
    logger.debug(
        "%s: built canonical model (%d history periods, %d price bars)",
        symbol or "<unknown>", len(financials), len(price_history),
    )

    return CompanyData(
        symbol=symbol,
        company_name=_text(_lookup(market, "company_name")) or symbol,
        sector=industry_profile.sector_name or _text(market.get("sector")),
        industry=industry_profile.industry_name or _text(market.get("industry")),
        timestamp=timestamp,
        quote=quote,
        income=income,
        balance=balance,
        cash_flow=cash_flow,
        macro=macro,
        industry_profile=industry_profile,
        financials=financials,
        price_history=price_history,
        benchmark_history=benchmark_history,
        effective_tax_rate=effective_tax_rate,
        working_capital=working_capital,
        invested_capital=invested_capital,
        net_debt=net_debt,
        enterprise_value=enterprise_value,
        average_total_assets=average_total_assets,
    )
