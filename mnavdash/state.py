"""Dashboard state container: companies, market values, overrides, statuses.

One instance per session, owned by the application root and passed to
whatever needs it. Every mutation replaces a single key or field; derived
rows are recomputed on each read and never cached.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, Field

from .analysis._utils import check_number
from .analysis.formulas import calculate_all
from .analysis.resolver import field_state, resolve, resolve_source
from .models import (
    ApiStatus,
    CalculationInputs,
    Company,
    CompanyWithCalculations,
    DataSource,
    FieldState,
    SortConfig,
    SortDirection,
)
from .seed import initial_companies
from .snapshot import ImportResult, export_snapshot, validate_import

logger = logging.getLogger(__name__)

OverrideMap = dict[str, float | int | None]


def _field_lookup(model: type[BaseModel], exclude: tuple[str, ...] = ()) -> dict[str, str]:
    """Map wire name and attribute name to attribute name."""
    lookup: dict[str, str] = {}
    for attr, info in model.model_fields.items():
        if attr in exclude:
            continue
        lookup[attr] = attr
        if info.alias:
            lookup[info.alias] = attr
    return lookup


# id is immutable once created
_EDITABLE_FIELDS = _field_lookup(Company, exclude=("id",))
_SORT_FIELDS = _field_lookup(CompanyWithCalculations)


def _now() -> datetime:
    return datetime.now(UTC)


def sort_rows(
    rows: list[CompanyWithCalculations],
    key: str,
    direction: SortDirection | None,
) -> list[CompanyWithCalculations]:
    """Sort by a column. None values go last in both directions."""
    if not key or direction is None:
        return list(rows)
    attr = _SORT_FIELDS.get(key)
    if attr is None:
        raise ValueError(f"Unknown sort key: {key}")

    def sort_value(row: CompanyWithCalculations) -> Any:
        value = getattr(row, attr)
        return value.lower() if isinstance(value, str) else value

    present = [r for r in rows if getattr(r, attr) is not None]
    missing = [r for r in rows if getattr(r, attr) is None]
    present.sort(key=sort_value, reverse=direction == "desc")
    return present + missing


class DashboardState(BaseModel):
    """Everything the dashboard knows. Construct with DashboardState.initial()."""

    companies: list[Company] = Field(default_factory=list)

    bitcoin_price: float | int | None = None
    stock_prices: OverrideMap = Field(default_factory=dict)
    manual_stock_prices: OverrideMap = Field(default_factory=dict)
    api_shares_outstanding: OverrideMap = Field(default_factory=dict)
    manual_shares_outstanding: OverrideMap = Field(default_factory=dict)
    shares_outstanding_errors: dict[str, bool] = Field(default_factory=dict)

    btc_api_status: ApiStatus = "idle"
    stock_api_status: ApiStatus = "idle"
    shares_outstanding_api_status: ApiStatus = "idle"

    last_btc_update: datetime | None = None
    last_stock_update: datetime | None = None
    last_shares_update: datetime | None = None

    sort_config: SortConfig = Field(default_factory=SortConfig)

    @classmethod
    def initial(cls) -> DashboardState:
        return cls(companies=initial_companies())

    # Companies

    def _find(self, company_id: str) -> Company:
        for company in self.companies:
            if company.id == company_id:
                return company
        raise KeyError(company_id)

    def _check_ticker_free(self, ticker: str, exclude_id: str | None = None) -> None:
        for company in self.companies:
            if company.ticker == ticker and company.id != exclude_id:
                raise ValueError(f"Ticker {ticker} already belongs to company {company.id}")

    def tickers(self) -> list[str]:
        return [c.ticker for c in self.companies]

    def add_company(self, company: Company) -> None:
        if any(c.id == company.id for c in self.companies):
            raise ValueError(f"Company id {company.id} already exists")
        self._check_ticker_free(company.ticker)
        self.companies.append(company)

    def update_company(self, company_id: str, field: str, value: Any) -> None:
        """Set one field on one company. ``field`` may be a wire or attribute name."""
        attr = _EDITABLE_FIELDS.get(field)
        if attr is None:
            raise ValueError(f"Field {field!r} is not editable")
        company = self._find(company_id)

        if attr in ("name", "ticker"):
            if not isinstance(value, str):
                raise TypeError(f"{field} must be a string")
            if attr == "ticker":
                self._check_ticker_free(value, exclude_id=company_id)
        else:
            value = check_number(field, value)
        setattr(company, attr, value)

    # Market values

    def set_bitcoin_price(self, price: float | int) -> None:
        self.bitcoin_price = check_number("bitcoin_price", price)
        self.last_btc_update = _now()
        self.btc_api_status = "success"

    def set_stock_price(self, ticker: str, price: float | int) -> None:
        self.stock_prices[ticker] = check_number("stock_price", price)
        self.last_stock_update = _now()

    def set_manual_stock_price(self, ticker: str, price: float | int | None) -> None:
        """Override the API price. None clears the override."""
        price = check_number("stock_price", price)
        if price is None:
            self.manual_stock_prices.pop(ticker, None)
        else:
            self.manual_stock_prices[ticker] = price

    def clear_manual_stock_price(self, ticker: str) -> None:
        self.set_manual_stock_price(ticker, None)

    def set_api_shares_outstanding(self, ticker: str, shares: float | int) -> None:
        self.api_shares_outstanding[ticker] = check_number("shares_outstanding", shares)
        self.shares_outstanding_errors.pop(ticker, None)
        self.last_shares_update = _now()

    def set_manual_shares_outstanding(self, ticker: str, shares: float | int | None) -> None:
        """Override the API share count. None clears the override."""
        shares = check_number("shares_outstanding", shares)
        if shares is None:
            self.manual_shares_outstanding.pop(ticker, None)
        else:
            self.manual_shares_outstanding[ticker] = shares

    def clear_manual_shares_outstanding(self, ticker: str) -> None:
        self.set_manual_shares_outstanding(ticker, None)

    def set_shares_outstanding_error(self, ticker: str, has_error: bool = True) -> None:
        if has_error:
            self.shares_outstanding_errors[ticker] = True
        else:
            self.shares_outstanding_errors.pop(ticker, None)

    def clear_shares_outstanding_error(self, ticker: str) -> None:
        self.set_shares_outstanding_error(ticker, False)

    def set_btc_api_status(self, status: ApiStatus) -> None:
        self.btc_api_status = status

    def set_stock_api_status(self, status: ApiStatus) -> None:
        self.stock_api_status = status

    def set_shares_outstanding_api_status(self, status: ApiStatus) -> None:
        self.shares_outstanding_api_status = status

    def set_sort_config(self, key: str, direction: SortDirection | None) -> None:
        if key and key not in _SORT_FIELDS:
            raise ValueError(f"Unknown sort key: {key}")
        self.sort_config = SortConfig(key=key, direction=direction)

    # Import / reset / persistence

    def import_data(self, result: ImportResult) -> None:
        """Replace companies; merge whichever override maps the import carried."""
        tickers = [c.ticker for c in result.companies]
        if len(set(tickers)) != len(tickers):
            raise ValueError("Imported companies contain duplicate tickers")

        self.companies = [c.model_copy() for c in result.companies]
        if result.manual_shares_outstanding is not None:
            self.manual_shares_outstanding.update(result.manual_shares_outstanding)
        if result.manual_stock_prices is not None:
            self.manual_stock_prices.update(result.manual_stock_prices)
        logger.info("Imported %d companies (%s format)", len(self.companies), result.format)

    def reset_to_defaults(self) -> None:
        """Back to the seed list. The global BTC price is kept."""
        self.companies = initial_companies()
        self.stock_prices = {}
        self.manual_stock_prices = {}
        self.api_shares_outstanding = {}
        self.manual_shares_outstanding = {}
        self.shares_outstanding_errors = {}
        self.stock_api_status = "idle"
        self.shares_outstanding_api_status = "idle"
        self.last_stock_update = None
        self.last_shares_update = None
        self.sort_config = SortConfig()
        logger.info("Dashboard reset to %d seed companies", len(self.companies))

    def persisted_view(self) -> dict[str, Any]:
        """The part of the state that survives sessions, as a snapshot envelope."""
        return export_snapshot(
            self.companies,
            manual_shares_outstanding=self.manual_shares_outstanding,
            manual_stock_prices=self.manual_stock_prices,
        )

    @classmethod
    def restore(cls, persisted: Any) -> DashboardState:
        """Rebuild from persisted_view() output. Falls back to the seed list if invalid."""
        result = validate_import(persisted)
        if result is None:
            logger.warning("Persisted dashboard state is invalid; starting from seed list")
            return cls.initial()
        state = cls()
        state.import_data(result)
        return state

    # Read side

    def effective_stock_price(self, ticker: str) -> float | int | None:
        return resolve(ticker, self.manual_stock_prices, self.stock_prices)

    def stock_price_source(self, ticker: str) -> DataSource:
        return resolve_source(
            ticker,
            self.manual_stock_prices,
            self.stock_prices,
            api_status=self.stock_api_status,
        )

    def effective_shares_outstanding(self, ticker: str) -> float | int | None:
        return resolve(ticker, self.manual_shares_outstanding, self.api_shares_outstanding)

    def shares_source(self, ticker: str) -> DataSource:
        return self.shares_state(ticker).source

    def shares_state(self, ticker: str) -> FieldState:
        return field_state(
            ticker,
            self.manual_shares_outstanding,
            self.api_shares_outstanding,
            self.shares_outstanding_errors,
            self.shares_outstanding_api_status,
        )

    def companies_with_calculations(self) -> list[CompanyWithCalculations]:
        """Recompute every row from current inputs."""
        rows: list[CompanyWithCalculations] = []
        for company in self.companies:
            stock_price = self.effective_stock_price(company.ticker)
            shares = self.effective_shares_outstanding(company.ticker)
            if shares is None:
                shares = company.common_shares_outstanding

            inputs = CalculationInputs.for_company(
                company, stock_price, self.bitcoin_price, shares=shares
            )
            outputs = calculate_all(inputs)
            rows.append(
                CompanyWithCalculations(
                    **company.model_dump(exclude={"common_shares_outstanding"}),
                    common_shares_outstanding=shares,
                    stock_price=stock_price,
                    **outputs.model_dump(),
                )
            )
        return rows

    def sorted_companies(self) -> list[CompanyWithCalculations]:
        return sort_rows(
            self.companies_with_calculations(),
            self.sort_config.key,
            self.sort_config.direction,
        )
