"""Builders for small program definitions used across the test-suite."""

from __future__ import annotations

from typing import Any, Optional

from liftcore.models import ProgramDefinition

GZCLP_START_WEIGHTS = {
    "squat": 60,
    "bench": 40,
    "deadlift": 80,
    "ohp": 30,
    "latpulldown": 30,
    "dbrow": 12.5,
}


def rule(kind: str, **params: Any) -> dict[str, Any]:
    return {"type": kind, **params}


def make_slot(
    slot_id: str = "squat-t1",
    exercise_id: str = "squat",
    *,
    tier: str = "t1",
    stages: tuple[tuple[int, int], ...] = ((5, 3),),
    on_success: Optional[dict] = None,
    on_mid_stage_fail: Optional[dict] = None,
    on_final_stage_fail: Optional[dict] = None,
    start_weight_key: Optional[str] = None,
    **extra: Any,
) -> dict[str, Any]:
    slot = {
        "id": slot_id,
        "exerciseId": exercise_id,
        "tier": tier,
        "stages": [{"sets": sets, "reps": reps} for sets, reps in stages],
        "onSuccess": on_success or rule("add_weight"),
        "onMidStageFail": on_mid_stage_fail or rule("advance_stage"),
        "onFinalStageFail": on_final_stage_fail or rule("deload_percent", percent=10),
        "startWeightKey": start_weight_key or exercise_id,
    }
    slot.update(extra)
    return slot


def make_payload(
    days: Optional[list[dict[str, Any]]] = None,
    *,
    total_workouts: Optional[int] = None,
    increments: Optional[dict[str, float]] = None,
    step: float = 2.5,
    program_id: str = "test-program",
) -> dict[str, Any]:
    days = days if days is not None else [{"name": "Day 1", "slots": [make_slot()]}]
    exercise_ids: dict[str, None] = {}
    for day in days:
        for slot in day["slots"]:
            exercise_ids.setdefault(slot["exerciseId"], None)
    start_keys: dict[str, None] = {}
    for day in days:
        for slot in day["slots"]:
            start_keys.setdefault(slot["startWeightKey"], None)
    return {
        "id": program_id,
        "name": "Test Program",
        "cycleLength": len(days),
        "totalWorkouts": total_workouts if total_workouts is not None else len(days) * 3,
        "workoutsPerWeek": 3,
        "days": days,
        "configFields": [
            {"key": key, "label": key.title(), "type": "weight", "min": 0, "step": step} for key in start_keys
        ],
        "weightIncrements": increments if increments is not None else {e: 5 for e in exercise_ids},
        "exercises": {e: {"name": e.replace("_", " ").title()} for e in exercise_ids},
    }


def make_definition(*args: Any, **kwargs: Any) -> ProgramDefinition:
    return ProgramDefinition.model_validate(make_payload(*args, **kwargs))


def results_for(slot_id: str, outcomes: list[Optional[str]]) -> dict[str, dict[str, dict[str, Any]]]:
    """Result log for a single-day program where ``slot_id`` appears every workout."""
    return {str(i): {slot_id: {"result": outcome}} for i, outcome in enumerate(outcomes) if outcome is not None}
