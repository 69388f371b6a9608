"""
Reading and writing model / scenario documents as JSON.

Two document shapes are accepted on import:
  * a bare model                      {"meta": ..., "accounts": ..., ...}
  * a full export                     {"baseModel": {...}, "scenarioDraft": {...}}
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

from pydantic import ValidationError

from core.exceptions import ModelLoadError
from core.schema import Model, Scenario


def _describe(err: ValidationError) -> str:
    parts = []
    for e in err.errors():
        loc = ".".join(str(p) for p in e.get("loc", ()))
        parts.append(f"{loc}: {e.get('msg')}" if loc else str(e.get("msg")))
    return "; ".join(parts)


def parse_model(data: Dict[str, Any]) -> Model:
    """Dict (camelCase or snake_case keys) -> Model. Raises ModelLoadError."""
    if not isinstance(data, dict):
        raise ModelLoadError(f"Model document must be an object, got {type(data).__name__}")
    try:
        return Model.model_validate(data)
    except ValidationError as e:
        raise ModelLoadError(f"Invalid model: {_describe(e)}") from e


def parse_scenario(data: Dict[str, Any]) -> Scenario:
    if not isinstance(data, dict):
        raise ModelLoadError(f"Scenario document must be an object, got {type(data).__name__}")
    try:
        return Scenario.model_validate(data)
    except ValidationError as e:
        raise ModelLoadError(f"Invalid scenario: {_describe(e)}") from e


def parse_document(text: str) -> Tuple[Model, Optional[Scenario]]:
    """
    JSON text -> (model, scenario draft or None).

    Accepts either a bare model or a full export with `baseModel` and an
    optional `scenarioDraft`.
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ModelLoadError(f"Invalid JSON: {e}") from e

    if isinstance(data, dict) and "baseModel" in data:
        model = parse_model(data["baseModel"])
        draft = data.get("scenarioDraft")
        return model, parse_scenario(draft) if draft else None
    return parse_model(data), None


def read_json(path: Union[str, Path]) -> Any:
    path = Path(path)
    try:
        with path.open("r", encoding="utf-8") as fh:
            return json.load(fh)
    except FileNotFoundError as e:
        raise ModelLoadError(f"File not found: {path}") from e
    except json.JSONDecodeError as e:
        raise ModelLoadError(f"Invalid JSON in {path}: {e}") from e


def load_model_file(path: Union[str, Path]) -> Model:
    """Load a model from a JSON file; a full export's `baseModel` is used if present."""
    data = read_json(path)
    if isinstance(data, dict) and "baseModel" in data:
        data = data["baseModel"]
    return parse_model(data)


def load_scenario_file(path: Union[str, Path]) -> Scenario:
    data = read_json(path)
    if isinstance(data, dict) and "scenarioDraft" in data:
        data = data["scenarioDraft"] or {}
    return parse_scenario(data)


def dump_model(model: Model) -> str:
    return json.dumps(model.to_dict(), indent=2)


def dump_scenario(scenario: Scenario) -> str:
    return json.dumps(scenario.to_dict(), indent=2)


def dump_full(model: Optional[Model], scenario: Optional[Scenario] = None) -> str:
    """Full export: base model plus the scenario draft (null when none)."""
    return json.dumps(
        {
            "baseModel": model.to_dict() if model is not None else None,
            "scenarioDraft": scenario.to_dict() if scenario is not None else None,
        },
        indent=2,
    )
