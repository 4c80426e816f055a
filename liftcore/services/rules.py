"""Rule evaluator: one slot, one workout outcome, one state transition.

Every function here is pure. A slot's next state depends only on its current
state, the recorded outcome, and the rule data in the slot definition.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Optional

from liftcore.errors import MalformedDefinition, UnknownRuleKind
from liftcore.models import DEFAULT_ROUNDING_STEP, ExerciseSlot, ProgressionRule, RuleKind

SUCCESS = "success"
FAIL = "fail"


@dataclass(frozen=True)
class SlotState:
    """Progression state of a single slot between workouts."""

    weight: float
    stage: int = 0
    ever_changed: bool = False


def round_half_up(value: float, ndigits: int = 0) -> float:
    """Round to ``ndigits`` decimals with ties away from zero."""
    exponent = Decimal(1).scaleb(-ndigits)
    return float(Decimal(str(value)).quantize(exponent, rounding=ROUND_HALF_UP))


def round_to_step(value: float, step: float = DEFAULT_ROUNDING_STEP) -> float:
    """Round ``value`` to the nearest multiple of ``step``; ties away from zero.

    Negative results clamp to 0: a plate system cannot load negative weight.
    """
    if step is None or not math.isfinite(step) or step <= 0:
        raise MalformedDefinition(f"rounding step must be positive, got {step!r}")
    if not math.isfinite(value):
        raise MalformedDefinition(f"weight must be a finite number, got {value!r}")
    d_step = Decimal(str(step))
    try:
        units = (Decimal(str(value)) / d_step).quantize(Decimal(1), rounding=ROUND_HALF_UP)
    except InvalidOperation:
        raise MalformedDefinition(f"weight {value!r} is out of range for step {step!r}") from None
    rounded = float(units * d_step)
    if rounded < 0:
        return 0.0
    return rounded


def rule_kind(rule: ProgressionRule, *, slot_id: Optional[str] = None) -> RuleKind:
    try:
        return RuleKind(rule.type)
    except ValueError:
        raise UnknownRuleKind(rule.type, slot_id=slot_id) from None


def check_rule(rule: ProgressionRule, *, slot_id: Optional[str] = None) -> RuleKind:
    """Resolve a rule's kind and verify its parameters are present."""
    kind = rule_kind(rule, slot_id=slot_id)
    if kind is RuleKind.DELOAD_PERCENT:
        if rule.percent is None:
            raise MalformedDefinition("deload_percent rule is missing 'percent'", slot_id=slot_id)
        if not 0 < rule.percent < 100:
            raise MalformedDefinition(
                f"deload_percent 'percent' must be between 0 and 100, got {rule.percent}",
                slot_id=slot_id,
            )
    elif kind is RuleKind.ADD_WEIGHT_RESET_STAGE:
        if rule.amount is None:
            raise MalformedDefinition("add_weight_reset_stage rule is missing 'amount'", slot_id=slot_id)
    return kind


def apply_rule(
    rule: ProgressionRule,
    state: SlotState,
    *,
    increment: float,
    step: float,
    max_stage: int,
    slot_id: Optional[str] = None,
) -> SlotState:
    kind = check_rule(rule, slot_id=slot_id)

    if kind is RuleKind.ADD_WEIGHT:
        return replace(state, weight=state.weight + increment)
    if kind is RuleKind.ADVANCE_STAGE:
        return replace(state, stage=min(state.stage + 1, max_stage))
    if kind is RuleKind.DELOAD_PERCENT:
        return replace(state, weight=round_to_step(state.weight * (1 - rule.percent / 100), step), stage=0)
    if kind is RuleKind.ADD_WEIGHT_RESET_STAGE:
        return replace(state, weight=state.weight + rule.amount, stage=0)
    if kind is RuleKind.NO_CHANGE:
        return state
    if kind is RuleKind.ADVANCE_STAGE_ADD_WEIGHT:
        return replace(state, weight=state.weight + increment, stage=min(state.stage + 1, max_stage))
    raise UnknownRuleKind(rule.type, slot_id=slot_id)


def select_rule(slot: ExerciseSlot, state: SlotState, result: Optional[str]) -> Optional[ProgressionRule]:
    """Pick the rule a recorded outcome triggers, or None for an absent result."""
    if result is None:
        return None
    on_final_stage = state.stage >= slot.max_stage
    if result == SUCCESS:
        if on_final_stage and slot.on_final_stage_success is not None:
            return slot.on_final_stage_success
        return slot.on_success
    if result == FAIL:
        return slot.on_final_stage_fail if on_final_stage else slot.on_mid_stage_fail
    raise ValueError(f"result must be 'success', 'fail' or None, got {result!r}")


def apply_result(
    slot: ExerciseSlot,
    state: SlotState,
    result: Optional[str],
    *,
    increment: float,
    step: float = DEFAULT_ROUNDING_STEP,
) -> SlotState:
    """Return the slot's state after one workout outcome.

    ``increment`` is the slot exercise's entry in ``weightIncrements`` and
    ``step`` the rounding granularity of its start-weight config field.
    An absent result leaves the state untouched.
    """
    if not slot.stages:
        raise MalformedDefinition(f"slot {slot.id} has no stages", slot_id=slot.id)
    rule = select_rule(slot, state, result)
    if rule is None:
        return state
    next_state = apply_rule(
        rule,
        state,
        increment=increment,
        step=step,
        max_stage=slot.max_stage,
        slot_id=slot.id,
    )
    if result == FAIL and rule_kind(rule) is not RuleKind.NO_CHANGE:
        next_state = replace(next_state, ever_changed=True)
    return next_state
