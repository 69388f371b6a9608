"""
Data preparation — loading and saving model documents, validation, and the
editing session that sits between a front end and the engine.
"""

from .loader import (
    dump_full,
    dump_model,
    dump_scenario,
    load_model_file,
    load_scenario_file,
    parse_document,
    parse_model,
    parse_scenario,
)
from .store import ImportResult, JsonFileStore, MemoryStore, ModelStore, import_into
from .validators import ValidationResult, validate_model, validate_scenario
from .session import ModelSession

__all__ = [
    "dump_full",
    "dump_model",
    "dump_scenario",
    "load_model_file",
    "load_scenario_file",
    "parse_document",
    "parse_model",
    "parse_scenario",
    "ImportResult",
    "JsonFileStore",
    "MemoryStore",
    "ModelStore",
    "import_into",
    "ValidationResult",
    "validate_model",
    "validate_scenario",
    "ModelSession",
]
