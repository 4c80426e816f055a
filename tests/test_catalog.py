from __future__ import annotations

import json

import pytest

from liftcore.services import catalog
from liftcore.services.catalog import (
    catalog_cache_stats,
    get_hydrated_definition,
    get_program_definition,
    invalidate_catalog_cache,
    list_preset_programs,
    reload_presets,
)
from liftcore.services.hydration import ExerciseRow, TemplateRow
from tests.program_fixtures import make_payload


@pytest.fixture(autouse=True)
def _fresh_catalog(monkeypatch):
    monkeypatch.delenv("PROGRAM_DEFINITIONS_PATH", raising=False)
    reload_presets()
    invalidate_catalog_cache()
    yield
    monkeypatch.delenv("PROGRAM_DEFINITIONS_PATH", raising=False)
    reload_presets()
    invalidate_catalog_cache()


def test_bundled_gzclp_preset():
    definition = get_program_definition("gzclp")
    assert definition is not None
    assert definition.name == "GZCLP"
    assert definition.cycle_length == 4
    assert definition.total_workouts == 90
    assert [len(day.slots) for day in definition.days] == [3, 3, 3, 3]


def test_unknown_program_returns_none():
    assert get_program_definition("does-not-exist") is None


def test_list_is_sorted_by_id(tmp_path, monkeypatch):
    (tmp_path / "aaa.json").write_text(json.dumps(make_payload(program_id="aaa-first")))
    monkeypatch.setenv("PROGRAM_DEFINITIONS_PATH", str(tmp_path))
    reload_presets()
    ids = [d.id for d in list_preset_programs()]
    assert ids == sorted(ids)
    assert "aaa-first" in ids
    assert "gzclp" in ids


def test_extra_directory_overrides_bundled_preset(tmp_path, monkeypatch):
    payload = make_payload(program_id="gzclp")
    payload["name"] = "GZCLP (local)"
    (tmp_path / "gzclp.json").write_text(json.dumps(payload))
    monkeypatch.setenv("PROGRAM_DEFINITIONS_PATH", str(tmp_path))
    reload_presets()
    assert get_program_definition("gzclp").name == "GZCLP (local)"


def test_broken_presets_are_skipped(tmp_path, monkeypatch):
    (tmp_path / "broken.json").write_text("{not json")
    bad = make_payload(program_id="bad-rule")
    bad["days"][0]["slots"][0]["onSuccess"] = {"type": "double_it"}
    (tmp_path / "bad.json").write_text(json.dumps(bad))
    monkeypatch.setenv("PROGRAM_DEFINITIONS_PATH", str(tmp_path))

    presets = reload_presets()
    assert "bad-rule" not in presets
    assert "gzclp" in presets


def _template(version: int = 1) -> TemplateRow:
    payload = make_payload()
    definition = {k: v for k, v in payload.items() if k not in ("id", "name", "exercises")}
    return TemplateRow(id="custom-1", name="Custom", definition=definition, version=version)


def test_hydrated_definition_is_cached():
    rows = [ExerciseRow("squat", "Back Squat")]
    first = get_hydrated_definition(_template(), rows)
    second = get_hydrated_definition(_template(), rows)
    assert first.ok
    assert second is first
    stats = catalog_cache_stats()
    assert stats["entries"] == 1
    assert stats["hits"] == 1
    assert stats["misses"] == 1


def test_new_version_misses_cache():
    rows = [ExerciseRow("squat", "Back Squat")]
    get_hydrated_definition(_template(1), rows)
    get_hydrated_definition(_template(2), rows)
    assert catalog_cache_stats()["entries"] == 2


def test_failed_hydration_is_not_cached():
    result = get_hydrated_definition(_template(), [])
    assert not result.ok
    assert catalog_cache_stats()["entries"] == 0
    assert get_hydrated_definition(_template(), [ExerciseRow("squat", "Back Squat")]).ok


def test_invalidate_single_program():
    rows = [ExerciseRow("squat", "Back Squat")]
    get_hydrated_definition(_template(1), rows)
    get_hydrated_definition(_template(2), rows)
    other = TemplateRow(id="other", name="Other", definition=_template().definition)
    get_hydrated_definition(other, rows)

    invalidate_catalog_cache("custom-1")
    assert catalog_cache_stats()["entries"] == 1
    assert catalog._hydrated_cache.keys() == [("other", 1)]
