"""Adapter for the first-generation GZCLP tracker's result format.

Early versions stored results per workout as fixed tier columns
(``{"t1": "success", "t2": "fail", "t3Reps": 27, ...}``) instead of per slot
id. These helpers translate that log onto the GZCLP preset's slot ids and
run the generic engine; there is no separate GZCLP progression logic.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Optional

from liftcore.errors import MalformedDefinition
from liftcore.models import ProgramDefinition
from liftcore.services.catalog import get_program_definition
from liftcore.services.sequencer import SlotSnapshot, WorkoutRow, compute_program
from liftcore.services.stats import ChartPoint

GZCLP_PROGRAM_ID = "gzclp"
TIERS = ("t1", "t2", "t3")


@dataclass(frozen=True)
class LegacyWorkoutRow:
    index: int
    day_name: str
    t1: SlotSnapshot
    t2: SlotSnapshot
    t3: SlotSnapshot

    @property
    def is_changed(self) -> bool:
        return self.t1.is_changed or self.t2.is_changed


def gzclp_definition() -> ProgramDefinition:
    definition = get_program_definition(GZCLP_PROGRAM_ID)
    if definition is None:
        raise MalformedDefinition("GZCLP preset is not available in the catalog")
    return definition


def _tier_slot_ids(definition: ProgramDefinition) -> list[dict[str, str]]:
    mapping: list[dict[str, str]] = []
    for day in definition.days:
        by_tier = {slot.tier: slot.id for slot in day.slots}
        missing = [tier for tier in TIERS if tier not in by_tier]
        if missing:
            raise MalformedDefinition(f"GZCLP day {day.name!r} is missing tiers {missing}")
        mapping.append(by_tier)
    return mapping


def convert_legacy_results(
    results: Mapping[Any, Mapping[str, Any]],
    definition: Optional[ProgramDefinition] = None,
) -> dict[str, dict[str, dict[str, Any]]]:
    definition = definition or gzclp_definition()
    day_slots = _tier_slot_ids(definition)
    generic: dict[str, dict[str, dict[str, Any]]] = {}

    for raw_index, res in results.items():
        index = int(raw_index)
        slots = day_slots[index % len(day_slots)]
        workout: dict[str, dict[str, Any]] = {}
        if res.get("t1") is not None or res.get("t1Reps") is not None or res.get("rpe") is not None:
            workout[slots["t1"]] = {"result": res.get("t1"), "amrapReps": res.get("t1Reps"), "rpe": res.get("rpe")}
        if res.get("t2") is not None:
            workout[slots["t2"]] = {"result": res.get("t2")}
        if res.get("t3") is not None or res.get("t3Reps") is not None:
            workout[slots["t3"]] = {"result": res.get("t3"), "amrapReps": res.get("t3Reps")}
        if workout:
            generic[str(index)] = workout
    return generic


def _to_legacy_row(row: WorkoutRow) -> LegacyWorkoutRow:
    by_tier = {snap.tier: snap for snap in row.slots}
    try:
        return LegacyWorkoutRow(
            index=row.index,
            day_name=row.day_name,
            t1=by_tier["t1"],
            t2=by_tier["t2"],
            t3=by_tier["t3"],
        )
    except KeyError as exc:
        raise MalformedDefinition(f"GZCLP workout {row.index} is missing tier {exc.args[0]}") from None


def compute_legacy_program(
    start_weights: Mapping[str, Any],
    results: Mapping[Any, Mapping[str, Any]],
) -> list[LegacyWorkoutRow]:
    definition = gzclp_definition()
    rows = compute_program(definition, start_weights, convert_legacy_results(results, definition))
    return [_to_legacy_row(row) for row in rows]


def legacy_t1_chart_data(
    start_weights: Mapping[str, Any],
    results: Mapping[Any, Mapping[str, Any]],
) -> dict[str, list[ChartPoint]]:
    """Weight series of the four T1 lifts, the only chart the old tracker drew."""
    data: dict[str, list[ChartPoint]] = {}
    for row in compute_legacy_program(start_weights, results):
        t1 = row.t1
        data.setdefault(t1.exercise_id, []).append(
            ChartPoint(
                workout=row.index + 1,
                weight=t1.weight,
                stage=t1.stage,
                result=t1.result,
                amrap_reps=t1.amrap_reps,
            )
        )
    return data
