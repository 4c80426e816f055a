"""Training analytics over replayed workouts: volume, weekly summary, PRs, streaks.

Provides the profile and dashboard numbers that sit next to the per-exercise
charts:
- Tonnage (sets, reps, volume) of recorded work
- Weekly aggregates grouped by the program's workouts-per-week hint
- Personal records per exercise
- Completion streaks and overall completion
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

import pandas as pd

from liftcore.models import ProgramDefinition
from liftcore.services.rules import round_half_up
from liftcore.services.sequencer import SlotSnapshot, WorkoutRow

FRAME_COLUMNS = [
    "workout_index",
    "day_name",
    "slot_id",
    "exercise_id",
    "tier",
    "weight",
    "stage",
    "sets",
    "reps",
    "is_amrap",
    "result",
    "amrap_reps",
    "reps_done",
    "volume",
]
WEEKLY_COLUMNS = ["week", "workouts", "successes", "fails", "volume"]


def reps_done(snap: SlotSnapshot) -> int:
    """Reps performed for a recorded slot; an AMRAP last set counts its logged reps."""
    if snap.result is None:
        return 0
    if snap.is_amrap:
        last_set = snap.amrap_reps if snap.amrap_reps is not None else snap.reps
        return (snap.sets - 1) * snap.reps + last_set
    return snap.sets * snap.reps


# ---------------------------------------------------------------------------
# Tabular view
# ---------------------------------------------------------------------------

def rows_frame(rows: Sequence[WorkoutRow]) -> pd.DataFrame:
    """Flatten workout rows into one record per slot snapshot."""
    records = []
    for row in rows:
        for snap in row.slots:
            done = reps_done(snap)
            records.append({
                "workout_index": row.index,
                "day_name": row.day_name,
                "slot_id": snap.slot_id,
                "exercise_id": snap.exercise_id,
                "tier": snap.tier,
                "weight": snap.weight,
                "stage": snap.stage,
                "sets": snap.sets,
                "reps": snap.reps,
                "is_amrap": snap.is_amrap,
                "result": snap.result,
                "amrap_reps": snap.amrap_reps,
                "reps_done": done,
                "volume": done * snap.weight,
            })
    if not records:
        return pd.DataFrame(columns=FRAME_COLUMNS)
    return pd.DataFrame.from_records(records, columns=FRAME_COLUMNS)


# ---------------------------------------------------------------------------
# Volume
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class VolumeStats:
    total_volume: float
    total_sets: int
    total_reps: int


def volume_stats(rows: Sequence[WorkoutRow]) -> VolumeStats:
    df = rows_frame(rows)
    recorded = df[df["result"].notna()]
    if recorded.empty:
        return VolumeStats(total_volume=0.0, total_sets=0, total_reps=0)
    return VolumeStats(
        total_volume=round_half_up(float(recorded["volume"].sum()), 1),
        total_sets=int(recorded["sets"].sum()),
        total_reps=int(recorded["reps_done"].sum()),
    )


def weekly_summary(rows: Sequence[WorkoutRow], workouts_per_week: int) -> pd.DataFrame:
    """Aggregate recorded work into program weeks (1-based).

    Returns a DataFrame with columns: week, workouts, successes, fails, volume.
    """
    df = rows_frame(rows)
    d = df[df["result"].notna()].copy()
    if d.empty:
        return pd.DataFrame(columns=WEEKLY_COLUMNS)
    d["week"] = d["workout_index"] // max(1, int(workouts_per_week)) + 1
    d["success"] = (d["result"] == "success").astype(int)
    d["fail"] = (d["result"] == "fail").astype(int)
    out = d.groupby("week", as_index=False).agg(
        workouts=("workout_index", "nunique"),
        successes=("success", "sum"),
        fails=("fail", "sum"),
        volume=("volume", "sum"),
    )
    return out[WEEKLY_COLUMNS]


# ---------------------------------------------------------------------------
# Personal records
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PersonalRecord:
    exercise_id: str
    display_name: str
    weight: float
    start_weight: float
    workout_index: int  # -1 when no success has been recorded yet


def personal_records(definition: ProgramDefinition, rows: Sequence[WorkoutRow]) -> list[PersonalRecord]:
    start: dict[str, float] = {}
    best: dict[str, tuple[float, int]] = {}
    for row in rows:
        for snap in row.slots:
            if snap.exercise_id not in start:
                start[snap.exercise_id] = snap.weight
                best[snap.exercise_id] = (snap.weight, -1)
            if snap.result == "success" and snap.weight >= best[snap.exercise_id][0]:
                best[snap.exercise_id] = (snap.weight, row.index)

    order = [e for e in definition.exercises if e in start] + [e for e in start if e not in definition.exercises]
    return [
        PersonalRecord(
            exercise_id=exercise_id,
            display_name=definition.exercise_name(exercise_id),
            weight=best[exercise_id][0],
            start_weight=start[exercise_id],
            workout_index=best[exercise_id][1],
        )
        for exercise_id in order
    ]


# ---------------------------------------------------------------------------
# Streaks and completion
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class StreakInfo:
    current: int
    longest: int


def compute_streak(rows: Sequence[WorkoutRow]) -> StreakInfo:
    """Streak of fully recorded workouts.

    The current streak ends at the first workout with nothing recorded;
    a partially recorded workout resets it.
    """
    streak = 0
    longest = 0
    for row in rows:
        if row.is_complete:
            streak += 1
            longest = max(longest, streak)
        elif not row.is_recorded:
            return StreakInfo(current=streak, longest=longest)
        else:
            streak = 0
    return StreakInfo(current=streak, longest=longest)


@dataclass(frozen=True)
class CompletionStats:
    workouts_completed: int
    total_workouts: int
    completion_pct: int
    overall_success_rate: int
    total_weight_gained: float


def completion_stats(definition: ProgramDefinition, rows: Sequence[WorkoutRow]) -> CompletionStats:
    completed = sum(1 for row in rows if row.is_complete)
    marked = [snap for row in rows for snap in row.slots if snap.result is not None]
    successes = sum(1 for snap in marked if snap.result == "success")
    total = definition.total_workouts
    start: dict[str, float] = {}
    last_success: dict[str, float] = {}
    for row in rows:
        for snap in row.slots:
            start.setdefault(snap.exercise_id, snap.weight)
            if snap.result == "success":
                last_success[snap.exercise_id] = snap.weight
    # Only net gains count; an exercise sitting below its start after a deload adds nothing.
    gained = sum(max(0.0, weight - start[exercise_id]) for exercise_id, weight in last_success.items())
    return CompletionStats(
        workouts_completed=completed,
        total_workouts=total,
        completion_pct=int(round_half_up(completed / total * 100)) if total else 0,
        overall_success_rate=int(round_half_up(successes / len(marked) * 100)) if marked else 0,
        total_weight_gained=round_half_up(gained, 1),
    )
