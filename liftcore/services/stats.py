"""Chart series and summary statistics derived from a replay.

Series are grouped by exercise id rather than slot id: the same lift can
appear through several slots (e.g. as T1 on one day and T2 on another) and
the chart should show one continuous line for it.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Any, Optional

from liftcore.models import ProgramDefinition
from liftcore.services.rules import round_half_up
from liftcore.services.sequencer import WorkoutRow


@dataclass(frozen=True)
class ChartPoint:
    workout: int  # 1-based
    weight: float
    stage: int  # 1-based
    result: Optional[str]
    amrap_reps: Optional[int] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "workout": self.workout,
            "weight": self.weight,
            "stage": self.stage,
            "result": self.result,
            "amrapReps": self.amrap_reps,
        }


@dataclass(frozen=True)
class ExerciseStats:
    total: int
    successes: int
    fails: int
    rate: int
    current_weight: float
    start_weight: float
    gained: float
    current_stage: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "successes": self.successes,
            "fails": self.fails,
            "rate": self.rate,
            "currentWeight": self.current_weight,
            "startWeight": self.start_weight,
            "gained": self.gained,
            "currentStage": self.current_stage,
        }


def exercise_series(rows: Iterable[WorkoutRow], exercise_id: str) -> list[ChartPoint]:
    points: list[ChartPoint] = []
    for row in rows:
        for snap in row.slots:
            if snap.exercise_id != exercise_id:
                continue
            points.append(
                ChartPoint(
                    workout=row.index + 1,
                    weight=snap.weight,
                    stage=snap.stage,
                    result=snap.result,
                    amrap_reps=snap.amrap_reps,
                )
            )
    return points


def extract_chart_data(definition: ProgramDefinition, rows: Sequence[WorkoutRow]) -> dict[str, list[ChartPoint]]:
    """One series per exercise in the definition.

    Exercises never scheduled get an empty list; slots whose exercise is not
    listed in ``definition.exercises`` are left out.
    """
    data: dict[str, list[ChartPoint]] = {exercise_id: [] for exercise_id in definition.exercises}
    for row in rows:
        for snap in row.slots:
            series = data.get(snap.exercise_id)
            if series is None:
                continue
            series.append(
                ChartPoint(
                    workout=row.index + 1,
                    weight=snap.weight,
                    stage=snap.stage,
                    result=snap.result,
                    amrap_reps=snap.amrap_reps,
                )
            )
    return data


def calculate_stats(series: Sequence[ChartPoint]) -> ExerciseStats:
    marked = [p for p in series if p.result is not None]
    successes = sum(1 for p in marked if p.result == "success")
    fails = sum(1 for p in marked if p.result == "fail")
    total = len(marked)
    first = series[0] if series else None
    last = series[-1] if series else None

    start_weight = first.weight if first else 0
    current_weight = last.weight if last else 0
    return ExerciseStats(
        total=total,
        successes=successes,
        fails=fails,
        rate=int(round_half_up(successes / total * 100)) if total else 0,
        current_weight=current_weight,
        start_weight=start_weight,
        gained=round_half_up(current_weight - start_weight, 1) if series else 0,
        current_stage=last.stage if last else 1,
    )


def summarize_program(definition: ProgramDefinition, rows: Sequence[WorkoutRow]) -> dict[str, ExerciseStats]:
    return {
        exercise_id: calculate_stats(series)
        for exercise_id, series in extract_chart_data(definition, rows).items()
    }
