"""mnavdash: mNAV and fair-value tracking for Bitcoin treasury companies."""

from .analysis import calculate_all, explain_all, field_state, resolve, resolve_source
from .engine import import_snapshot, refresh_dashboard
from .models import (
    CalculationInputs,
    CalculationOutputs,
    Company,
    CompanyWithCalculations,
    ComputedValue,
)
from .snapshot import ImportResult, export_snapshot, get_new_tickers, validate_import
from .state import DashboardState

__all__ = [
    "calculate_all",
    "explain_all",
    "field_state",
    "resolve",
    "resolve_source",
    "import_snapshot",
    "refresh_dashboard",
    "CalculationInputs",
    "CalculationOutputs",
    "Company",
    "CompanyWithCalculations",
    "ComputedValue",
    "ImportResult",
    "export_snapshot",
    "get_new_tickers",
    "validate_import",
    "DashboardState",
]
