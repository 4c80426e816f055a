"""Workout sequencer: replays a program's day rotation over the result log.

State is cumulative, so any question about a workout (its prescribed weight,
the current stage of a slot) is answered by replaying from workout 0. The
rule set can be corrected without migrating stored state because nothing
intermediate is ever persisted.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from typing import Any, Optional, Union

from liftcore.errors import MalformedDefinition
from liftcore.models import ExerciseSlot, ProgramDefinition, SlotResult
from liftcore.services.rules import SlotState, apply_result, check_rule, round_to_step

logger = logging.getLogger(__name__)

StartWeights = Mapping[str, Union[float, int, str]]
Results = Mapping[Union[str, int], Mapping[str, Union[SlotResult, Mapping[str, Any]]]]


@dataclass(frozen=True)
class SlotSnapshot:
    """A slot as prescribed for one workout, captured before its result is applied."""

    workout_index: int
    slot_id: str
    exercise_id: str
    exercise_name: str
    tier: str
    role: Optional[str]
    weight: float
    stage: int  # 1-based for display
    stages_count: int
    sets: int
    reps: int
    reps_max: Optional[int]
    is_amrap: bool
    result: Optional[str]
    amrap_reps: Optional[int]
    rpe: Optional[float]
    is_changed: bool
    is_deload: bool
    notes: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "workoutIndex": self.workout_index,
            "slotId": self.slot_id,
            "exerciseId": self.exercise_id,
            "exerciseName": self.exercise_name,
            "tier": self.tier,
            "role": self.role,
            "weight": self.weight,
            "stage": self.stage,
            "stagesCount": self.stages_count,
            "sets": self.sets,
            "reps": self.reps,
            "repsMax": self.reps_max,
            "isAmrap": self.is_amrap,
            "result": self.result,
            "amrapReps": self.amrap_reps,
            "rpe": self.rpe,
            "isChanged": self.is_changed,
            "isDeload": self.is_deload,
            "notes": self.notes,
        }


@dataclass(frozen=True)
class WorkoutRow:
    index: int
    day_name: str
    slots: tuple[SlotSnapshot, ...]

    @property
    def is_changed(self) -> bool:
        return any(s.is_changed for s in self.slots)

    @property
    def is_recorded(self) -> bool:
        return any(s.result is not None for s in self.slots)

    @property
    def is_complete(self) -> bool:
        return bool(self.slots) and all(s.result is not None for s in self.slots)

    def slot(self, slot_id: str) -> Optional[SlotSnapshot]:
        for snap in self.slots:
            if snap.slot_id == slot_id:
                return snap
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "index": self.index,
            "dayName": self.day_name,
            "isChanged": self.is_changed,
            "slots": [s.to_dict() for s in self.slots],
        }


def _start_weight(start_weights: StartWeights, slot: ExerciseSlot) -> float:
    if slot.start_weight_key not in start_weights:
        raise MalformedDefinition(
            f"start weights have no entry for {slot.start_weight_key!r}",
            slot_id=slot.id,
        )
    raw = start_weights[slot.start_weight_key]
    try:
        value = float(raw)
    except (TypeError, ValueError):
        raise MalformedDefinition(
            f"start weight {slot.start_weight_key!r} is not numeric: {raw!r}",
            slot_id=slot.id,
        ) from None
    if not math.isfinite(value):
        raise MalformedDefinition(
            f"start weight {slot.start_weight_key!r} is not a finite number: {raw!r}",
            slot_id=slot.id,
        )
    return value


def check_slot(definition: ProgramDefinition, slot: ExerciseSlot) -> None:
    """Fail fast on a slot the engine cannot progress."""
    if not slot.stages:
        raise MalformedDefinition(f"slot {slot.id} has no stages", slot_id=slot.id)
    definition.increment_for(slot)
    for _name, rule in slot.rules():
        check_rule(rule, slot_id=slot.id)


def seed_state(definition: ProgramDefinition, slot: ExerciseSlot, start_weights: StartWeights) -> SlotState:
    """Initial state of a slot on its first appearance in the rotation."""
    check_slot(definition, slot)
    step = definition.step_for(slot.start_weight_key)
    multiplier = slot.start_weight_multiplier if slot.start_weight_multiplier is not None else 1.0
    weight = round_to_step(_start_weight(start_weights, slot) * multiplier, step)
    if slot.start_weight_offset:
        weight = round_to_step(weight - slot.start_weight_offset * definition.increment_for(slot), step)
    return SlotState(weight=weight, stage=0)


def _workout_results(results: Results, index: int) -> Mapping[str, Any]:
    found = results.get(str(index))
    if found is None:
        found = results.get(index)
    return found or {}


def _slot_result(raw: Any) -> SlotResult:
    if raw is None:
        return SlotResult()
    if isinstance(raw, SlotResult):
        return raw
    return SlotResult.model_validate(raw)


def replay(
    definition: ProgramDefinition,
    start_weights: StartWeights,
    results: Results,
    states: Optional[dict[str, SlotState]] = None,
) -> Iterator[WorkoutRow]:
    """Yield one row per workout in ``[0, totalWorkouts)``.

    ``states`` is the per-slot accumulator. Pass a dict to read the
    post-replay state of every slot once the generator is exhausted.
    The generator cannot be resumed mid-stream from a saved position.
    """
    if states is None:
        states = {}
    if not definition.days:
        raise MalformedDefinition(f"program {definition.id} has no days")

    previous_weight: dict[str, float] = {}
    for index in range(definition.total_workouts):
        day = definition.day_for(index)
        workout = _workout_results(results, index)
        outcomes: list[tuple[ExerciseSlot, SlotResult]] = []
        snapshots: list[SlotSnapshot] = []

        for slot in day.slots:
            state = states.get(slot.id)
            if state is None:
                state = seed_state(definition, slot, start_weights)
                states[slot.id] = state
            outcome = _slot_result(workout.get(slot.id))
            stage_def = slot.stages[state.stage]

            prev = previous_weight.get(slot.exercise_id)
            is_deload = prev is not None and 0 < state.weight < prev
            if state.weight > 0:
                previous_weight[slot.exercise_id] = state.weight

            snapshots.append(
                SlotSnapshot(
                    workout_index=index,
                    slot_id=slot.id,
                    exercise_id=slot.exercise_id,
                    exercise_name=definition.exercise_name(slot.exercise_id),
                    tier=slot.tier,
                    role=slot.resolved_role,
                    weight=state.weight,
                    stage=state.stage + 1,
                    stages_count=len(slot.stages),
                    sets=stage_def.sets,
                    reps=stage_def.reps,
                    reps_max=stage_def.reps_max,
                    is_amrap=stage_def.amrap,
                    result=outcome.result,
                    amrap_reps=outcome.amrap_reps,
                    rpe=outcome.rpe,
                    is_changed=state.ever_changed,
                    is_deload=is_deload,
                    notes=slot.notes,
                )
            )
            outcomes.append((slot, outcome))

        yield WorkoutRow(index=index, day_name=day.name, slots=tuple(snapshots))

        for slot, outcome in outcomes:
            if outcome.result is None:
                continue
            states[slot.id] = apply_result(
                slot,
                states[slot.id],
                outcome.result,
                increment=definition.increment_for(slot),
                step=definition.step_for(slot.start_weight_key),
            )

    logger.debug(
        "replay_completed",
        extra={
            "ctx_program_id": definition.id,
            "ctx_workouts": definition.total_workouts,
            "ctx_slots": len(states),
        },
    )


def compute_program(
    definition: ProgramDefinition,
    start_weights: StartWeights,
    results: Results,
) -> list[WorkoutRow]:
    return list(replay(definition, start_weights, results))


def final_states(
    definition: ProgramDefinition,
    start_weights: StartWeights,
    results: Results,
) -> dict[str, SlotState]:
    """Post-update state of every slot after the full replay."""
    states: dict[str, SlotState] = {}
    for _row in replay(definition, start_weights, results, states):
        pass
    return states
