"""Runtime configuration read from the environment (FINSIM_* variables)."""

from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class RuntimeSettings(BaseSettings):
    """Process-level knobs for the CLI and the file store. Not part of any model."""

    model_config = SettingsConfigDict(
        env_prefix="FINSIM_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: str = "WARNING"
    log_json: bool = False
    data_dir: Path = Path.home() / ".finsim"
    model_filename: str = "base_model.json"
    scenario_filename: str = "scenario_draft.json"


def get_settings() -> RuntimeSettings:
    return RuntimeSettings()
