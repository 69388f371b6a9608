import copy
import datetime as dt
import json
from pathlib import Path

from core.schema import Model

JAN_1 = dt.date(2024, 1, 1)
JAN_31 = dt.date(2024, 1, 31)


def write_json(tmp_path: Path, data: dict, filename: str = "model.json") -> Path:
    path = tmp_path / filename
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


def clone_dict(data: dict) -> dict:
    return copy.deepcopy(data)


def snapshot(model: Model) -> dict:
    return model.model_dump(mode="json")
