"""Analysis modules: valuation formulas and effective-value resolution."""

from .formulas import calculate_all, explain_all
from .resolver import field_state, resolve, resolve_source

__all__ = ["calculate_all", "explain_all", "field_state", "resolve", "resolve_source"]
