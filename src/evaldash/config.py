"""Experiment configuration.

Model identifiers, CoT category names and generation counts are external
inputs: they are never discovered from the documents. Paths can be
overridden through environment variables.
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import BaseModel, Field, field_validator

DEFAULT_MODELS: tuple[str, ...] = (
    "Bank",
    "Restaurant",
    "AddressBook",
    "PickupNet",
    "HotelManagement",
    "Football",
    "MyExpenses",
    "VideoClub",
    "VehicleRental",
    "Statemachine",
)

COT_CATEGORIES: tuple[str, ...] = ("baseline", "boundary", "complex", "edge", "invalid")

SIMPLE_GEN_COUNT = 30
COT_GEN_COUNT = 6

DEFAULT_EXPERIMENT_ID = "GPT4O-exp1"
DEFAULT_DATA_ROOT = Path("data/dataset") / DEFAULT_EXPERIMENT_ID
DEFAULT_DB_PATH = Path("data/evaldash.db")
DEFAULT_ARTIFACT_URL_PREFIX = "/data/dataset"
DEFAULT_DIAGRAM_URL_PREFIX = "/data/prompts"


class ExperimentConfig(BaseModel):
    """Configuration consumed by the assembler for one experiment."""

    experiment_id: str = DEFAULT_EXPERIMENT_ID
    data_root: Path = DEFAULT_DATA_ROOT
    models: list[str] = Field(default_factory=lambda: list(DEFAULT_MODELS))
    cot_categories: list[str] = Field(default_factory=lambda: list(COT_CATEGORIES))
    simple_generations: int = SIMPLE_GEN_COUNT
    cot_generations: int = COT_GEN_COUNT
    artifact_url_prefix: str = DEFAULT_ARTIFACT_URL_PREFIX
    diagram_url_prefix: str = DEFAULT_DIAGRAM_URL_PREFIX
    diagram_root: Path | None = None
    db_path: Path = DEFAULT_DB_PATH

    @field_validator("cot_categories")
    @classmethod
    def _fixed_categories(cls, value: list[str]) -> list[str]:
        if tuple(value) != COT_CATEGORIES:
            raise ValueError(f"cot_categories must be exactly {list(COT_CATEGORIES)}")
        return value

    @field_validator("simple_generations", "cot_generations")
    @classmethod
    def _non_negative(cls, value: int) -> int:
        if value < 0:
            raise ValueError("generation count must be non-negative")
        return value

    @field_validator("models")
    @classmethod
    def _unique_models(cls, value: list[str]) -> list[str]:
        cleaned = [name.strip() for name in value]
        if any(not name for name in cleaned):
            raise ValueError("model identifiers must be non-empty")
        if len({name.casefold() for name in cleaned}) != len(cleaned):
            raise ValueError("model identifiers must be unique")
        return cleaned

    @property
    def artifact_base_url(self) -> str:
        """URL prefix under which this experiment's artifacts are served."""
        return f"{self.artifact_url_prefix.rstrip('/')}/{self.experiment_id}"

    @classmethod
    def from_env(cls, **overrides) -> ExperimentConfig:
        """Build a config from EVALDASH_* environment variables.

        Explicit keyword overrides win over the environment.
        """
        values: dict = {}

        experiment_id = os.environ.get("EVALDASH_EXPERIMENT")
        if experiment_id:
            values["experiment_id"] = experiment_id

        data_root = os.environ.get("EVALDASH_DATA_ROOT")
        if data_root:
            values["data_root"] = Path(data_root)
        elif experiment_id:
            values["data_root"] = Path("data/dataset") / experiment_id

        models = os.environ.get("EVALDASH_MODELS")
        if models:
            values["models"] = [m for m in models.split(",") if m.strip()]

        db_path = os.environ.get("EVALDASH_DB_PATH")
        if db_path:
            values["db_path"] = Path(db_path)

        diagram_root = os.environ.get("EVALDASH_DIAGRAM_ROOT")
        if diagram_root:
            values["diagram_root"] = Path(diagram_root)

        values.update(overrides)
        return cls(**values)
