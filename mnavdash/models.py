"""Core data models for the treasury dashboard.

Every displayed number is either:
- a raw Company field (manually maintained balance-sheet data)
- a resolved market value (manual override or API fetch, see FieldState)
- a ComputedValue / CalculationOutputs entry derived by the formula engine
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

ApiStatus = Literal["idle", "loading", "success", "error"]
DataSource = Literal["manual", "api", "error", "loading"]
SortDirection = Literal["asc", "desc"]

# Wire names of the nullable balance-sheet fields, in export order.
BALANCE_SHEET_FIELDS = (
    "commonSharesOutstanding",
    "bitcoin",
    "cash",
    "otherAssets",
    "longTermDebt",
    "otherDebt",
    "preferredStock",
)
COMPANY_FIELDS = ("id", "name", "ticker", *BALANCE_SHEET_FIELDS)


class Company(BaseModel):
    """One tracked treasury company. Null fields mean unknown, not zero.

    Strict like CalculationInputs: numeric strings, bools and non-finite
    floats are rejected rather than coerced.
    """

    model_config = ConfigDict(populate_by_name=True, strict=True, allow_inf_nan=False)

    id: str
    name: str
    ticker: str
    common_shares_outstanding: float | int | None = Field(
        default=None, alias="commonSharesOutstanding"
    )
    bitcoin: float | int | None = None
    cash: float | int | None = None
    other_assets: float | int | None = Field(default=None, alias="otherAssets")
    long_term_debt: float | int | None = Field(default=None, alias="longTermDebt")
    other_debt: float | int | None = Field(default=None, alias="otherDebt")
    preferred_stock: float | int | None = Field(default=None, alias="preferredStock")

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


class CalculationInputs(BaseModel):
    """Scalar inputs for one company's calculation pass.

    Strict: strings, bools and non-finite floats are rejected here rather
    than coerced.
    """

    model_config = ConfigDict(populate_by_name=True, strict=True, allow_inf_nan=False)

    common_shares_outstanding: float | int | None = Field(
        default=None, alias="commonSharesOutstanding"
    )
    bitcoin: float | int | None = None
    cash: float | int | None = None
    other_assets: float | int | None = Field(default=None, alias="otherAssets")
    long_term_debt: float | int | None = Field(default=None, alias="longTermDebt")
    other_debt: float | int | None = Field(default=None, alias="otherDebt")
    preferred_stock: float | int | None = Field(default=None, alias="preferredStock")
    stock_price: float | int | None = Field(default=None, alias="stockPrice")
    bitcoin_price: float | int | None = Field(default=None, alias="bitcoinPrice")

    @classmethod
    def for_company(
        cls,
        company: Company,
        stock_price: float | None,
        bitcoin_price: float | None,
        shares: float | None = None,
    ) -> CalculationInputs:
        """Combine a Company record with resolved market values.

        ``shares`` overrides the company's own share count when given.
        """
        return cls(
            common_shares_outstanding=(
                shares if shares is not None else company.common_shares_outstanding
            ),
            bitcoin=company.bitcoin,
            cash=company.cash,
            other_assets=company.other_assets,
            long_term_debt=company.long_term_debt,
            other_debt=company.other_debt,
            preferred_stock=company.preferred_stock,
            stock_price=stock_price,
            bitcoin_price=bitcoin_price,
        )


class CalculationOutputs(BaseModel):
    """Derived metrics. None means insufficient data."""

    model_config = ConfigDict(populate_by_name=True)

    market_cap: float | int | None = Field(default=None, alias="marketCap")
    bitcoin_assets: float | int | None = Field(default=None, alias="bitcoinAssets")
    assets: float | int | None = None
    debt: float | int | None = None
    enterprise_value: float | int | None = Field(default=None, alias="enterpriseValue")
    mnav: float | None = Field(default=None, alias="mNAV")
    market_cap_to_assets: float | None = Field(default=None, alias="marketCapToAssets")
    fair_stock_price: float | None = Field(default=None, alias="fairStockPrice")
    fair_btc_stock_price: float | None = Field(default=None, alias="fairBTCStockPrice")
    equilibrium_btc_price: float | None = Field(default=None, alias="equilibriumBTCPrice")


class CompanyWithCalculations(Company, CalculationOutputs):
    """Company + resolved stock price + derived metrics. Recomputed, never stored."""

    stock_price: float | int | None = Field(default=None, alias="stockPrice")


class ComputedValue(BaseModel):
    """A derived calculation with formula and its input components."""

    metric: str
    value: float | int | None
    unit: str
    formula: str  # e.g. "market_cap + debt + preferred_stock - cash"
    components: dict[str, Any] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)


# Per-field provenance as a tagged variant. Built by resolver.field_state().


class UnsetField(BaseModel):
    """Never fetched and never entered."""

    kind: Literal["unset"] = "unset"

    @property
    def value(self) -> float | None:
        return None

    @property
    def source(self) -> DataSource:
        return "api"


class LoadingField(BaseModel):
    """Fetch in flight with nothing cached yet."""

    kind: Literal["loading"] = "loading"

    @property
    def value(self) -> float | None:
        return None

    @property
    def source(self) -> DataSource:
        return "loading"


class ErrorField(BaseModel):
    """All fetch attempts failed. A previously fetched value is kept as ``stale``."""

    kind: Literal["error"] = "error"
    stale: float | int | None = None

    @property
    def value(self) -> float | None:
        return self.stale

    @property
    def source(self) -> DataSource:
        return "error"


class ResolvedField(BaseModel):
    """A usable value, either entered manually or fetched from the API."""

    kind: Literal["value"] = "value"
    manual: bool
    amount: float | int

    @property
    def value(self) -> float | None:
        return self.amount

    @property
    def source(self) -> DataSource:
        return "manual" if self.manual else "api"


FieldState = Annotated[
    Union[UnsetField, LoadingField, ErrorField, ResolvedField],
    Field(discriminator="kind"),
]


class SortConfig(BaseModel):
    """Column sort state. ``direction=None`` keeps insertion order."""

    key: str = ""
    direction: SortDirection | None = None
