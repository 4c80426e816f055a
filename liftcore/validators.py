"""Load-time validation for program definitions, start weights and result logs.

Validation collects every problem it can find into a list of messages so an
author sees the whole picture at once. ``load_*`` helpers raise when the
list is not empty.
"""

from __future__ import annotations

import math
import re
from typing import Any

from pydantic import ValidationError

from liftcore.errors import MalformedDefinition, UnknownRuleKind
from liftcore.models import ProgramDefinition, SlotResult
from liftcore.services.rules import check_rule

MAX_TOTAL_WORKOUTS = 1000
_WORKOUT_INDEX_RE = re.compile(r"^\d{1,3}$")


def _format_validation_error(exc: ValidationError) -> list[str]:
    messages: list[str] = []
    for err in exc.errors():
        loc = ".".join(str(part) for part in err.get("loc", ()))
        messages.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return messages


def _structural_errors(definition: ProgramDefinition) -> list[str]:
    errors: list[str] = []
    if not definition.days:
        errors.append("days must contain at least one day")
    if definition.total_workouts < definition.cycle_length:
        errors.append(
            f"totalWorkouts ({definition.total_workouts}) must be >= cycleLength ({definition.cycle_length})"
        )
    if definition.total_workouts > MAX_TOTAL_WORKOUTS:
        errors.append(f"totalWorkouts must be <= {MAX_TOTAL_WORKOUTS}")

    config_keys = {field.key for field in definition.config_fields}
    for field in definition.config_fields:
        if field.type == "weight" and (field.step is None or field.step <= 0):
            errors.append(f"configFields.{field.key}: weight fields need a positive step")
        if field.type == "select" and not field.options:
            errors.append(f"configFields.{field.key}: select fields need at least one option")

    for d_idx, day in enumerate(definition.days):
        if not day.slots:
            errors.append(f"days.{d_idx}: day {day.name!r} has no slots")
        for s_idx, slot in enumerate(day.slots):
            path = f"days.{d_idx}.slots.{s_idx}"
            if not slot.stages:
                errors.append(f"{path}: slot {slot.id!r} has no stages")
            if slot.exercise_id not in definition.weight_increments:
                errors.append(f"{path}: weightIncrements has no entry for exercise {slot.exercise_id!r}")
            if slot.start_weight_key not in config_keys:
                errors.append(f"{path}: startWeightKey {slot.start_weight_key!r} is not a config field")
            for name, rule in slot.rules():
                try:
                    check_rule(rule, slot_id=slot.id)
                except MalformedDefinition as exc:
                    errors.append(f"{path}.{name}: {exc}")
    return errors


def validate_definition_payload(payload: Any) -> list[str]:
    """Return every structural problem in a definition payload (empty when valid)."""
    if not isinstance(payload, dict):
        return ["program definition must be a JSON object"]
    try:
        definition = ProgramDefinition.model_validate(payload)
    except ValidationError as exc:
        return _format_validation_error(exc)
    return _structural_errors(definition)


def load_definition(payload: Any) -> ProgramDefinition:
    """Parse and validate a definition payload.

    Raises UnknownRuleKind when a rule names an unsupported kind, and
    MalformedDefinition for any other structural problem.
    """
    if isinstance(payload, ProgramDefinition):
        definition = payload
    elif not isinstance(payload, dict):
        raise MalformedDefinition("program definition must be a JSON object")
    else:
        try:
            definition = ProgramDefinition.model_validate(payload)
        except ValidationError as exc:
            raise MalformedDefinition("; ".join(_format_validation_error(exc))) from exc

    for slot in definition.unique_slots():
        for _name, rule in slot.rules():
            try:
                check_rule(rule, slot_id=slot.id)
            except UnknownRuleKind:
                raise
            except MalformedDefinition:
                continue

    errors = _structural_errors(definition)
    if errors:
        raise MalformedDefinition("; ".join(errors))
    return definition


def parse_results(payload: Any) -> dict[str, dict[str, SlotResult]]:
    """Validate a result log keyed by workout index, then by slot id."""
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ValueError("results must be a JSON object")
    errors: list[str] = []
    parsed: dict[str, dict[str, SlotResult]] = {}
    for key, workout in payload.items():
        index = str(key)
        if not _WORKOUT_INDEX_RE.match(index):
            errors.append(f"results.{index}: workout index must be 1-3 digits")
            continue
        if not isinstance(workout, dict):
            errors.append(f"results.{index}: must be an object keyed by slot id")
            continue
        slots: dict[str, SlotResult] = {}
        for slot_id, raw in workout.items():
            try:
                slots[str(slot_id)] = raw if isinstance(raw, SlotResult) else SlotResult.model_validate(raw)
            except ValidationError as exc:
                errors.extend(f"results.{index}.{slot_id}.{msg}" for msg in _format_validation_error(exc))
        workout_key = str(int(index))
        if workout_key in parsed:
            errors.append(f"results.{index}: duplicates workout {workout_key}")
            continue
        parsed[workout_key] = slots
    if errors:
        raise ValueError("; ".join(errors))
    return parsed


def validate_start_weights(definition: ProgramDefinition, start_weights: Any) -> list[str]:
    """Check that every slot's start weight is present, finite and not below its field's min."""
    if not isinstance(start_weights, dict):
        return ["startWeights must be a JSON object"]
    errors: list[str] = []
    for key in sorted({slot.start_weight_key for slot in definition.unique_slots()}):
        if key not in start_weights:
            errors.append(f"startWeights.{key}: missing")
            continue
        try:
            value = float(start_weights[key])
        except (TypeError, ValueError):
            errors.append(f"startWeights.{key}: must be numeric")
            continue
        if not math.isfinite(value):
            errors.append(f"startWeights.{key}: must be a finite number")
            continue
        field = next((f for f in definition.config_fields if f.key == key), None)
        if field is not None and field.min is not None and value < field.min:
            errors.append(f"startWeights.{key}: must be >= {field.min}")
    return errors
