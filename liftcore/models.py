"""Program definition model: the immutable description of a training program.

A definition is authored and stored elsewhere as a camelCase JSON blob and is
read-only input to the progression engine. Nothing in here knows how to
progress a slot; see ``liftcore.services.rules`` for that.
"""

from __future__ import annotations

from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from liftcore.errors import MalformedDefinition

DEFAULT_ROUNDING_STEP = 0.5

# Tier-to-role inference for presets that predate explicit roles.
TIER_ROLE_MAP: dict[str, str] = {
    "t1": "primary",
    "t2": "secondary",
    "t3": "primary",
}


class RuleKind(str, Enum):
    """Closed set of progression rule kinds.

    Adding a kind is a versioned schema change, not a runtime extension.
    """

    ADD_WEIGHT = "add_weight"
    ADVANCE_STAGE = "advance_stage"
    DELOAD_PERCENT = "deload_percent"
    ADD_WEIGHT_RESET_STAGE = "add_weight_reset_stage"
    NO_CHANGE = "no_change"
    ADVANCE_STAGE_ADD_WEIGHT = "advance_stage_add_weight"


RULE_KINDS = {kind.value for kind in RuleKind}


class _DefinitionModel(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


class ProgressionRule(_DefinitionModel):
    # Kept as a plain string so an unknown kind survives parsing and is
    # reported as UnknownRuleKind by the evaluator.
    type: str
    percent: Optional[float] = None
    amount: Optional[float] = None


class StageDefinition(_DefinitionModel):
    sets: int = Field(gt=0)
    reps: int = Field(gt=0)
    amrap: bool = False
    reps_max: Optional[int] = Field(default=None, gt=0)


class ExerciseSlot(_DefinitionModel):
    id: str = Field(min_length=1)
    exercise_id: str = Field(min_length=1)
    tier: str = Field(min_length=1)
    stages: tuple[StageDefinition, ...] = ()
    on_success: ProgressionRule
    on_final_stage_success: Optional[ProgressionRule] = None
    on_mid_stage_fail: ProgressionRule
    on_final_stage_fail: ProgressionRule
    start_weight_key: str = Field(min_length=1)
    start_weight_multiplier: Optional[float] = Field(default=None, gt=0)
    start_weight_offset: Optional[int] = None
    role: Optional[Literal["primary", "secondary", "accessory"]] = None
    notes: Optional[str] = None

    @property
    def max_stage(self) -> int:
        return len(self.stages) - 1

    @property
    def resolved_role(self) -> Optional[str]:
        if self.role is not None:
            return self.role
        return TIER_ROLE_MAP.get(self.tier)

    def rules(self) -> list[tuple[str, ProgressionRule]]:
        named = [
            ("onSuccess", self.on_success),
            ("onMidStageFail", self.on_mid_stage_fail),
            ("onFinalStageFail", self.on_final_stage_fail),
        ]
        if self.on_final_stage_success is not None:
            named.append(("onFinalStageSuccess", self.on_final_stage_success))
        return named


class ProgramDay(_DefinitionModel):
    name: str
    slots: tuple[ExerciseSlot, ...] = ()


class SelectOption(_DefinitionModel):
    label: str
    value: str


class ConfigField(_DefinitionModel):
    key: str = Field(min_length=1)
    label: str = ""
    type: Literal["weight", "select"] = "weight"
    min: Optional[float] = None
    step: Optional[float] = None
    options: tuple[SelectOption, ...] = ()
    group: Optional[str] = None


class ExerciseInfo(_DefinitionModel):
    name: str


class ProgramDefinition(_DefinitionModel):
    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    description: str = ""
    author: str = ""
    version: int = Field(default=1, ge=1)
    category: str = ""
    source: Literal["preset", "custom"] = "preset"
    cycle_length: int = Field(gt=0)
    total_workouts: int = Field(gt=0)
    workouts_per_week: int = Field(gt=0)
    days: tuple[ProgramDay, ...] = ()
    config_fields: tuple[ConfigField, ...] = ()
    weight_increments: dict[str, float] = Field(default_factory=dict)
    exercises: dict[str, ExerciseInfo] = Field(default_factory=dict)

    def day_for(self, workout_index: int) -> ProgramDay:
        if not self.days:
            raise MalformedDefinition(f"program {self.id} has no days")
        return self.days[workout_index % len(self.days)]

    def step_for(self, config_key: str) -> float:
        """Rounding granularity for weights seeded from ``config_key``."""
        for field in self.config_fields:
            if field.key == config_key and field.type == "weight" and field.step is not None:
                return field.step
        return DEFAULT_ROUNDING_STEP

    def increment_for(self, slot: ExerciseSlot) -> float:
        try:
            return self.weight_increments[slot.exercise_id]
        except KeyError:
            raise MalformedDefinition(
                f"weightIncrements has no entry for exercise {slot.exercise_id!r}",
                slot_id=slot.id,
            ) from None

    def exercise_name(self, exercise_id: str) -> str:
        info = self.exercises.get(exercise_id)
        return info.name if info is not None else exercise_id

    def unique_slots(self) -> list[ExerciseSlot]:
        seen: dict[str, ExerciseSlot] = {}
        for day in self.days:
            for slot in day.slots:
                seen.setdefault(slot.id, slot)
        return list(seen.values())


class SlotResult(_DefinitionModel):
    """One recorded outcome for one slot in one workout."""

    result: Optional[Literal["success", "fail"]] = None
    amrap_reps: Optional[int] = Field(default=None, ge=0)
    rpe: Optional[float] = Field(default=None, ge=0, le=10)
