from __future__ import annotations

import logging
from dataclasses import asdict

from fastapi import APIRouter, HTTPException, status

from liftapi.schemas import CatalogEntryOut, HealthOut, ProgramInput, ReplayOut, SlotStateOut, StatsOut
from liftcore.errors import MalformedDefinition
from liftcore.models import ProgramDefinition
from liftcore.services.analytics import completion_stats, personal_records, volume_stats
from liftcore.services.catalog import get_program_definition, list_preset_programs
from liftcore.services.sequencer import replay
from liftcore.services.stats import calculate_stats, extract_chart_data
from liftcore.validators import load_definition, parse_results, validate_start_weights

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1")


def _resolve_definition(body: ProgramInput) -> ProgramDefinition:
    if body.program_id is not None:
        definition = get_program_definition(body.program_id)
        if definition is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"program {body.program_id!r} not found")
        return definition
    return load_definition(body.definition)


def _checked_start_weights(definition: ProgramDefinition, body: ProgramInput):
    errors = validate_start_weights(definition, body.start_weights)
    if errors:
        raise MalformedDefinition("; ".join(errors))
    return body.start_weights


def _parsed_results(body: ProgramInput):
    try:
        return parse_results(body.results)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc


@router.get("/health", response_model=HealthOut, tags=["ops"])
def health():
    return HealthOut()


@router.get("/catalog", response_model=list[CatalogEntryOut], tags=["catalog"])
def list_catalog():
    return [CatalogEntryOut.from_definition(d) for d in list_preset_programs()]


@router.get("/catalog/{program_id}", tags=["catalog"])
def get_catalog_program(program_id: str):
    definition = get_program_definition(program_id)
    if definition is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"program {program_id!r} not found")
    return definition.model_dump(by_alias=True, mode="json")


@router.post("/programs/replay", response_model=ReplayOut, tags=["progression"])
def replay_program(body: ProgramInput):
    definition = _resolve_definition(body)
    results = _parsed_results(body)
    start_weights = _checked_start_weights(definition, body)
    states = {}
    rows = [row.to_dict() for row in replay(definition, start_weights, results, states)]
    logger.info("program_replayed", extra={"ctx_program_id": definition.id, "ctx_recorded": len(results)})
    return ReplayOut(
        program_id=definition.id,
        rows=rows,
        final_states={
            slot_id: SlotStateOut(weight=s.weight, stage=s.stage, ever_changed=s.ever_changed)
            for slot_id, s in states.items()
        },
    )


@router.post("/programs/stats", response_model=StatsOut, tags=["progression"])
def program_stats(body: ProgramInput):
    definition = _resolve_definition(body)
    start_weights = _checked_start_weights(definition, body)
    rows = list(replay(definition, start_weights, _parsed_results(body)))
    chart_data = extract_chart_data(definition, rows)
    return StatsOut(
        program_id=definition.id,
        chart_data={ex: [p.to_dict() for p in series] for ex, series in chart_data.items()},
        stats={ex: calculate_stats(series).to_dict() for ex, series in chart_data.items()},
        volume=asdict(volume_stats(rows)),
        completion=asdict(completion_stats(definition, rows)),
        personal_records=[asdict(pr) for pr in personal_records(definition, rows)],
    )
