"""Effective-value resolution: which of manual / API / nothing wins for a ticker.

All functions are pure. Tickers missing from every map resolve to None (or the
default "api" provenance) without raising.
"""

from __future__ import annotations

from collections.abc import Mapping

from ..models import (
    ApiStatus,
    DataSource,
    ErrorField,
    FieldState,
    LoadingField,
    ResolvedField,
    UnsetField,
)

ValueMap = Mapping[str, float | int | None]


def resolve(ticker: str, manual_map: ValueMap, api_map: ValueMap) -> float | int | None:
    """Manual override if set, else the last fetched API value, else None.

    A manual entry explicitly set to None counts as cleared.
    """
    manual = manual_map.get(ticker)
    if manual is not None:
        return manual
    return api_map.get(ticker)


def resolve_source(
    ticker: str,
    manual_map: ValueMap,
    api_map: ValueMap,
    error_flags: Mapping[str, bool] | None = None,
    api_status: ApiStatus = "idle",
) -> DataSource:
    """Provenance for display: manual > error > loading > api."""
    return field_state(ticker, manual_map, api_map, error_flags, api_status).source


def field_state(
    ticker: str,
    manual_map: ValueMap,
    api_map: ValueMap,
    error_flags: Mapping[str, bool] | None = None,
    api_status: ApiStatus = "idle",
) -> FieldState:
    """Collapse the parallel maps and flags into a single tagged state."""
    manual = manual_map.get(ticker)
    if manual is not None:
        return ResolvedField(manual=True, amount=manual)

    cached = api_map.get(ticker)
    if error_flags and error_flags.get(ticker):
        return ErrorField(stale=cached)
    if cached is None:
        if api_status == "loading":
            return LoadingField()
        return UnsetField()
    return ResolvedField(manual=False, amount=cached)
