"""Definition hydrator: attach exercise names to a stored definition.

Stored definitions reference exercises by id only. Hydration resolves those
ids against the exercise catalogue. It reports failure as a status value
instead of raising, so a caller can still show progression with raw ids
when a name is missing.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from liftcore.models import ProgramDefinition
from liftcore.validators import validate_definition_payload

logger = logging.getLogger(__name__)


class HydrationStatus(str, Enum):
    OK = "ok"
    FAILED = "hydration_failed"


INVALID_DEFINITION = "INVALID_DEFINITION"
MISSING_EXERCISE_REFERENCE = "MISSING_EXERCISE_REFERENCE"
SCHEMA_VALIDATION_FAILED = "SCHEMA_VALIDATION_FAILED"


@dataclass(frozen=True)
class TemplateRow:
    """A stored program template: metadata columns plus the definition blob."""

    id: str
    name: str
    definition: Any
    description: str = ""
    author: str = ""
    version: int = 1
    category: str = ""
    source: str = "preset"


@dataclass(frozen=True)
class ExerciseRow:
    id: str
    name: str


@dataclass(frozen=True)
class HydrationResult:
    status: HydrationStatus
    definition: Optional[ProgramDefinition] = None
    error_code: Optional[str] = None
    missing_exercise_ids: tuple[str, ...] = ()
    messages: tuple[str, ...] = field(default_factory=tuple)

    @property
    def ok(self) -> bool:
        return self.status is HydrationStatus.OK


def _failed(code: str, *, definition: Optional[ProgramDefinition] = None, **kwargs: Any) -> HydrationResult:
    return HydrationResult(status=HydrationStatus.FAILED, definition=definition, error_code=code, **kwargs)


def referenced_exercise_ids(definition: Mapping[str, Any]) -> list[str]:
    """Exercise ids used by slots or listed in the definition's own exercise map, in first-seen order."""
    ids: dict[str, None] = {}
    days = definition.get("days")
    if isinstance(days, list):
        for day in days:
            if not isinstance(day, dict):
                continue
            slots = day.get("slots")
            if not isinstance(slots, list):
                continue
            for slot in slots:
                if isinstance(slot, dict) and isinstance(slot.get("exerciseId"), str):
                    ids.setdefault(slot["exerciseId"], None)
    exercises = definition.get("exercises")
    if isinstance(exercises, dict):
        for key in exercises:
            ids.setdefault(str(key), None)
    return list(ids)


def attach_exercise_names(
    slots: Sequence[Mapping[str, Any]],
    names: Mapping[str, str],
) -> tuple[HydrationStatus, list[dict[str, Any]]]:
    """Copy each slot with an ``exerciseName``; unresolved ids fall back to the id itself."""
    status = HydrationStatus.OK
    hydrated: list[dict[str, Any]] = []
    for slot in slots:
        exercise_id = str(slot.get("exerciseId", ""))
        name = names.get(exercise_id)
        if name is None:
            status = HydrationStatus.FAILED
            name = exercise_id
        hydrated.append({**slot, "exerciseName": name})
    return status, hydrated


def hydrate_program_definition(
    template: TemplateRow,
    exercise_rows: Iterable[ExerciseRow],
) -> HydrationResult:
    if not isinstance(template.definition, dict):
        logger.warning("hydration_failed", extra={"ctx_program_id": template.id, "ctx_code": INVALID_DEFINITION})
        return _failed(
            INVALID_DEFINITION,
            messages=(f"definition for program {template.id} is not a valid object",),
        )

    lookup = {row.id: row.name for row in exercise_rows}
    referenced = referenced_exercise_ids(template.definition)
    missing = tuple(exercise_id for exercise_id in referenced if exercise_id not in lookup)

    payload = {
        "id": template.id,
        "name": template.name,
        "description": template.description,
        "author": template.author,
        "version": template.version,
        "category": template.category,
        "source": template.source,
        **template.definition,
        "exercises": {
            exercise_id: {"name": lookup.get(exercise_id, exercise_id)} for exercise_id in referenced
        },
    }

    errors = validate_definition_payload(payload)
    if errors:
        logger.warning(
            "hydration_failed",
            extra={"ctx_program_id": template.id, "ctx_code": SCHEMA_VALIDATION_FAILED, "ctx_errors": len(errors)},
        )
        return _failed(SCHEMA_VALIDATION_FAILED, messages=tuple(errors))

    definition = ProgramDefinition.model_validate(payload)
    if missing:
        logger.warning(
            "hydration_failed",
            extra={"ctx_program_id": template.id, "ctx_code": MISSING_EXERCISE_REFERENCE, "ctx_missing": list(missing)},
        )
        return _failed(
            MISSING_EXERCISE_REFERENCE,
            definition=definition,
            missing_exercise_ids=missing,
            messages=tuple(f"exercise {exercise_id!r} not found" for exercise_id in missing),
        )
    return HydrationResult(status=HydrationStatus.OK, definition=definition)
