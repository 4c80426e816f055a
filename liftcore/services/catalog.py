"""Preset program catalog and the cache of hydrated definitions.

Bundled presets live as JSON files next to the package. An extra directory
can be layered on through PROGRAM_DEFINITIONS_PATH; a preset there with the
same id replaces the bundled one.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from pathlib import Path
from typing import Optional

from liftcore.cache_utils import TTLCache
from liftcore.config import get_settings
from liftcore.errors import MalformedDefinition
from liftcore.models import ProgramDefinition
from liftcore.services.hydration import ExerciseRow, HydrationResult, TemplateRow, hydrate_program_definition
from liftcore.validators import load_definition

logger = logging.getLogger(__name__)

BUNDLED_PROGRAMS_DIR = Path(__file__).resolve().parent.parent / "programs"

_PRESETS: Optional[dict[str, ProgramDefinition]] = None
_hydrated_cache = TTLCache(ttl_seconds=get_settings().catalog_cache_ttl_seconds)


def _definition_dirs() -> list[Path]:
    dirs = [BUNDLED_PROGRAMS_DIR]
    extra = get_settings().program_definitions_path
    if extra:
        dirs.append(Path(extra).expanduser())
    return dirs


def _load_presets() -> dict[str, ProgramDefinition]:
    presets: dict[str, ProgramDefinition] = {}
    for directory in _definition_dirs():
        if not directory.is_dir():
            continue
        for path in sorted(directory.glob("*.json")):
            try:
                definition = load_definition(json.loads(path.read_text()))
            except (OSError, json.JSONDecodeError, MalformedDefinition) as exc:
                logger.warning(
                    "preset_load_failed: %s",
                    exc,
                    extra={"ctx_path": str(path)},
                )
                continue
            presets[definition.id] = definition
    logger.debug("presets_loaded", extra={"ctx_count": len(presets)})
    return presets


def reload_presets() -> dict[str, ProgramDefinition]:
    global _PRESETS
    _PRESETS = _load_presets()
    return _PRESETS


def _presets() -> dict[str, ProgramDefinition]:
    if _PRESETS is None:
        return reload_presets()
    return _PRESETS


def list_preset_programs() -> list[ProgramDefinition]:
    return sorted(_presets().values(), key=lambda d: d.id)


def get_program_definition(program_id: str) -> Optional[ProgramDefinition]:
    return _presets().get(program_id)


def get_hydrated_definition(template: TemplateRow, exercise_rows: Iterable[ExerciseRow]) -> HydrationResult:
    """Hydrate a stored template, caching successful results by (id, version).

    Failed hydrations are not cached so a fixed exercise catalogue is picked
    up on the next call.
    """
    key = (template.id, template.version)
    cached = _hydrated_cache.get(key)
    if cached is not None:
        return cached
    result = hydrate_program_definition(template, exercise_rows)
    if result.ok:
        _hydrated_cache.set(key, result)
    return result


def invalidate_catalog_cache(program_id: Optional[str] = None) -> None:
    if program_id is None:
        _hydrated_cache.clear()
        return
    for key in [k for k in _hydrated_cache.keys() if k[0] == program_id]:
        _hydrated_cache.invalidate(key)


def catalog_cache_stats() -> dict[str, int]:
    return {
        "entries": len(_hydrated_cache),
        "hits": _hydrated_cache.counter.hits,
        "misses": _hydrated_cache.counter.misses,
    }
