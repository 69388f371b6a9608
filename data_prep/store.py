"""
Persistence for the base model and the scenario draft.

ModelStore is the interface the editing session and the CLI depend on.
JsonFileStore keeps one JSON file per document in a data directory;
MemoryStore keeps documents in memory (tests, throwaway sessions).

Stores round-trip documents without loss and never run the engine.
"""

from __future__ import annotations

import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Protocol, Union

from core.exceptions import ModelLoadError, StoreError
from core.schema import Model, Scenario, touch_model
from core.settings import RuntimeSettings

from .loader import (
    dump_full,
    dump_model,
    dump_scenario,
    parse_document,
    parse_model,
    parse_scenario,
    read_json,
)
from .validators import validate_model

logger = logging.getLogger(__name__)


class ModelStore(Protocol):
    def load_model(self) -> Optional[Model]: ...

    def save_model(self, model: Model) -> bool: ...

    def load_scenario(self) -> Optional[Scenario]: ...

    def save_scenario(self, scenario: Scenario) -> bool: ...

    def clear_scenario(self) -> bool: ...


@dataclass
class ImportResult:
    success: bool
    message: str
    kind: Optional[str] = None  # "base" | "full"


def import_into(store: ModelStore, text: str) -> ImportResult:
    """Validate an exported JSON document and, if valid, save it into `store`."""
    try:
        model, scenario = parse_document(text)
    except ModelLoadError as e:
        return ImportResult(success=False, message=str(e))

    check = validate_model(model)
    if not check.is_valid:
        return ImportResult(success=False, message="Invalid model: " + ", ".join(check.errors))

    store.save_model(model)
    if scenario is not None:
        store.save_scenario(scenario)
        return ImportResult(success=True, message="Full export imported successfully", kind="full")
    return ImportResult(success=True, message="Base model imported successfully", kind="base")


class MemoryStore:
    """In-memory ModelStore; documents are deep-copied in and out."""

    def __init__(self, model: Optional[Model] = None, scenario: Optional[Scenario] = None):
        self._model = model.clone() if model is not None else None
        self._scenario = scenario.model_copy(deep=True) if scenario is not None else None

    def load_model(self) -> Optional[Model]:
        return self._model.clone() if self._model is not None else None

    def save_model(self, model: Model) -> bool:
        self._model = touch_model(model.clone())
        return True

    def load_scenario(self) -> Optional[Scenario]:
        return self._scenario.model_copy(deep=True) if self._scenario is not None else None

    def save_scenario(self, scenario: Scenario) -> bool:
        self._scenario = scenario.model_copy(deep=True)
        return True

    def clear_scenario(self) -> bool:
        self._scenario = None
        return True


class JsonFileStore:
    """
    ModelStore backed by JSON files in `directory`.

    Writes go to a temporary file in the same directory and are renamed into
    place, so a failed write never leaves a truncated document behind.
    """

    def __init__(
        self,
        directory: Union[str, Path],
        *,
        model_filename: str = "base_model.json",
        scenario_filename: str = "scenario_draft.json",
    ):
        self.directory = Path(directory).expanduser()
        self.model_path = self.directory / model_filename
        self.scenario_path = self.directory / scenario_filename

    @classmethod
    def from_settings(cls, settings: RuntimeSettings) -> "JsonFileStore":
        return cls(
            settings.data_dir,
            model_filename=settings.model_filename,
            scenario_filename=settings.scenario_filename,
        )

    # ---- low level ----

    def _write(self, path: Path, text: str) -> None:
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(dir=self.directory, prefix=f".{path.name}.", suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(text)
            os.replace(tmp, path)
        except OSError as e:
            raise StoreError(f"Could not write {path}: {e}") from e

    def _remove(self, path: Path) -> bool:
        try:
            path.unlink()
        except FileNotFoundError:
            return True
        except OSError as e:
            raise StoreError(f"Could not remove {path}: {e}") from e
        return True

    # ---- base model ----

    def has_model(self) -> bool:
        return self.model_path.exists()

    def load_model(self) -> Optional[Model]:
        """None when no model has been saved yet. Invalid documents raise ModelLoadError."""
        if not self.model_path.exists():
            return None
        model = parse_model(read_json(self.model_path))
        check = validate_model(model)
        if not check.is_valid:
            logger.warning("loaded base model has validation errors: %s", check.errors)
        return model

    def save_model(self, model: Model) -> bool:
        """Writes a copy stamped with a fresh updated_at; `model` itself is not modified."""
        self._write(self.model_path, dump_model(touch_model(model.clone())))
        logger.info("saved base model to %s", self.model_path)
        return True

    def clear_model(self) -> bool:
        return self._remove(self.model_path)

    # ---- scenario draft ----

    def has_scenario(self) -> bool:
        """True only for a saved draft with at least one operation."""
        scenario = self.load_scenario()
        return scenario is not None and len(scenario.ops) > 0

    def load_scenario(self) -> Optional[Scenario]:
        if not self.scenario_path.exists():
            return None
        return parse_scenario(read_json(self.scenario_path))

    def save_scenario(self, scenario: Scenario) -> bool:
        self._write(self.scenario_path, dump_scenario(scenario))
        return True

    def clear_scenario(self) -> bool:
        return self._remove(self.scenario_path)

    # ---- export / import ----

    def export_model_json(self) -> Optional[str]:
        model = self.load_model()
        return dump_model(model) if model is not None else None

    def export_full_json(self) -> str:
        model = self.load_model()
        scenario = self.load_scenario()
        return dump_full(model, scenario)

    def import_json(self, text: str) -> ImportResult:
        return import_into(self, text)

    def reset(self) -> bool:
        self.clear_model()
        self.clear_scenario()
        return True
