from __future__ import annotations

from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from liftcore.models import ProgramDefinition


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class HealthOut(BaseModel):
    status: str = "ok"


class CatalogEntryOut(_CamelModel):
    id: str
    name: str
    description: str
    author: str
    category: str
    version: int
    cycle_length: int
    total_workouts: int
    workouts_per_week: int
    exercise_count: int

    @classmethod
    def from_definition(cls, definition: ProgramDefinition) -> "CatalogEntryOut":
        return cls(
            id=definition.id,
            name=definition.name,
            description=definition.description,
            author=definition.author,
            category=definition.category,
            version=definition.version,
            cycle_length=definition.cycle_length,
            total_workouts=definition.total_workouts,
            workouts_per_week=definition.workouts_per_week,
            exercise_count=len(definition.exercises),
        )


class ProgramInput(_CamelModel):
    """Replay input: a preset id or an inline definition, plus the instance's data."""

    program_id: Optional[str] = None
    definition: Optional[dict[str, Any]] = None
    start_weights: dict[str, Union[float, str]] = Field(default_factory=dict)
    results: dict[str, dict[str, dict[str, Any]]] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _exactly_one_source(self):
        if (self.program_id is None) == (self.definition is None):
            raise ValueError("provide exactly one of programId or definition")
        return self


class SlotStateOut(_CamelModel):
    weight: float
    stage: int
    ever_changed: bool


class ReplayOut(_CamelModel):
    program_id: str
    rows: list[dict[str, Any]]
    final_states: dict[str, SlotStateOut]


class StatsOut(_CamelModel):
    program_id: str
    chart_data: dict[str, list[dict[str, Any]]]
    stats: dict[str, dict[str, Any]]
    volume: dict[str, Any]
    completion: dict[str, Any]
    personal_records: list[dict[str, Any]]
