"""
Core package — document schema, defaults, runtime settings, errors and shared
date/money utilities. No business logic lives here.
"""

from .schema import Model, Scenario, create_empty_model, create_empty_scenario
from .config import LedgerOptions
from .exceptions import FinsimError, ModelLoadError, StoreError
from .utils import format_currency, month_key, to_date

__all__ = [
    "Model",
    "Scenario",
    "create_empty_model",
    "create_empty_scenario",
    "LedgerOptions",
    "FinsimError",
    "ModelLoadError",
    "StoreError",
    "format_currency",
    "month_key",
    "to_date",
]
