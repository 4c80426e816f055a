from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from liftapi.main import create_app
from liftcore.services.catalog import reload_presets
from tests.program_fixtures import GZCLP_START_WEIGHTS, make_payload, make_slot, rule


@pytest.fixture
def client(monkeypatch):
    monkeypatch.delenv("PROGRAM_DEFINITIONS_PATH", raising=False)
    reload_presets()
    with TestClient(create_app()) as c:
        yield c


def test_health(client):
    res = client.get("/api/v1/health")
    assert res.status_code == 200
    assert res.json() == {"status": "ok"}


def test_request_id_is_echoed(client):
    res = client.get("/api/v1/health", headers={"X-Request-ID": "trace-123"})
    assert res.headers["X-Request-ID"] == "trace-123"


def test_request_id_generated_when_absent(client):
    res = client.get("/api/v1/health")
    assert len(res.headers["X-Request-ID"]) == 32


def test_catalog_list(client):
    res = client.get("/api/v1/catalog")
    assert res.status_code == 200
    entries = {e["id"]: e for e in res.json()}
    gzclp = entries["gzclp"]
    assert gzclp["totalWorkouts"] == 90
    assert gzclp["cycleLength"] == 4
    assert gzclp["workoutsPerWeek"] == 3
    assert gzclp["exerciseCount"] == 6


def test_catalog_program(client):
    res = client.get("/api/v1/catalog/gzclp")
    assert res.status_code == 200
    body = res.json()
    assert len(body["days"]) == 4
    slot = body["days"][0]["slots"][0]
    assert slot["exerciseId"] == "squat"
    assert slot["onFinalStageFail"] == {"type": "deload_percent", "percent": 10.0, "amount": None}


def test_catalog_program_not_found(client):
    assert client.get("/api/v1/catalog/nope").status_code == 404


def test_replay_preset(client):
    res = client.post(
        "/api/v1/programs/replay",
        json={
            "programId": "gzclp",
            "startWeights": GZCLP_START_WEIGHTS,
            "results": {"0": {"d1-t1": {"result": "success"}, "d1-t2": {"result": "fail"}}},
        },
    )
    assert res.status_code == 200
    body = res.json()
    assert body["programId"] == "gzclp"
    assert len(body["rows"]) == 90

    first = body["rows"][0]
    assert first["dayName"] == "Day 1"
    assert first["slots"][0]["weight"] == 60
    assert first["slots"][0]["result"] == "success"

    again = body["rows"][4]["slots"]
    assert again[0]["weight"] == 65
    assert again[1]["stage"] == 2
    assert body["rows"][4]["isChanged"] is True

    assert body["finalStates"]["d1-t1"] == {"weight": 65.0, "stage": 0, "everChanged": False}
    assert body["finalStates"]["d1-t2"]["everChanged"] is True


def test_replay_inline_definition(client):
    res = client.post(
        "/api/v1/programs/replay",
        json={
            "definition": make_payload(total_workouts=3),
            "startWeights": {"squat": 60},
            "results": {"0": {"squat-t1": {"result": "success"}}, "1": {"squat-t1": {"result": "success"}}, "2": {"squat-t1": {"result": "fail"}}},
        },
    )
    assert res.status_code == 200
    assert [row["slots"][0]["weight"] for row in res.json()["rows"]] == [60, 65, 70]
    assert res.json()["finalStates"]["squat-t1"]["weight"] == 62.5


def test_replay_unknown_program(client):
    res = client.post("/api/v1/programs/replay", json={"programId": "nope", "startWeights": {}})
    assert res.status_code == 404


def test_replay_requires_exactly_one_source(client):
    res = client.post(
        "/api/v1/programs/replay",
        json={"programId": "gzclp", "definition": make_payload(), "startWeights": {}},
    )
    assert res.status_code == 422
    assert client.post("/api/v1/programs/replay", json={"startWeights": {}}).status_code == 422


def test_replay_unknown_rule_kind(client):
    payload = make_payload([{"name": "A", "slots": [make_slot(on_success=rule("double_it"))]}])
    res = client.post("/api/v1/programs/replay", json={"definition": payload, "startWeights": {"squat": 60}})
    assert res.status_code == 422
    assert res.json()["code"] == "UNKNOWN_RULE_KIND"


def test_replay_missing_start_weight(client):
    res = client.post("/api/v1/programs/replay", json={"programId": "gzclp", "startWeights": {"squat": 60}})
    assert res.status_code == 422
    assert res.json()["code"] == "MALFORMED_DEFINITION"


def test_replay_bad_results(client):
    res = client.post(
        "/api/v1/programs/replay",
        json={"programId": "gzclp", "startWeights": GZCLP_START_WEIGHTS, "results": {"0": {"d1-t1": {"result": "maybe"}}}},
    )
    assert res.status_code == 422


def test_program_stats(client):
    res = client.post(
        "/api/v1/programs/stats",
        json={
            "programId": "gzclp",
            "startWeights": GZCLP_START_WEIGHTS,
            "results": {"0": {"d1-t1": {"result": "success"}, "d1-t2": {"result": "success"}, "latpulldown-t3": {"result": "success", "amrapReps": 30}}},
        },
    )
    assert res.status_code == 200
    body = res.json()
    assert set(body["chartData"]) == {"squat", "bench", "deadlift", "ohp", "latpulldown", "dbrow"}
    squat = body["stats"]["squat"]
    assert squat["total"] == 1
    assert squat["successes"] == 1
    assert squat["rate"] == 100
    assert squat["startWeight"] == 60
    assert body["completion"]["workouts_completed"] == 1
    assert body["completion"]["total_workouts"] == 90
    assert body["volume"]["total_sets"] == 11
    assert [pr["exercise_id"] for pr in body["personalRecords"]][:2] == ["squat", "bench"]


def test_replay_non_finite_start_weight(client):
    res = client.post(
        "/api/v1/programs/replay",
        json={"definition": make_payload(total_workouts=3), "startWeights": {"squat": "nan"}},
    )
    assert res.status_code == 422
    assert res.json()["code"] == "MALFORMED_DEFINITION"
    assert "startWeights.squat: must be a finite number" in res.json()["detail"]


def test_replay_start_weight_below_min(client):
    weights = {**GZCLP_START_WEIGHTS, "squat": 1}
    res = client.post("/api/v1/programs/replay", json={"programId": "gzclp", "startWeights": weights})
    assert res.status_code == 422
    assert "startWeights.squat: must be >= 2.5" in res.json()["detail"]


def test_stats_checks_start_weights(client):
    res = client.post("/api/v1/programs/stats", json={"programId": "gzclp", "startWeights": {"squat": 60}})
    assert res.status_code == 422
    assert "startWeights.bench: missing" in res.json()["detail"]


def test_replay_duplicate_workout_keys(client):
    res = client.post(
        "/api/v1/programs/replay",
        json={
            "programId": "gzclp",
            "startWeights": GZCLP_START_WEIGHTS,
            "results": {"7": {"d4-t1": {"result": "success"}}, "007": {"d4-t1": {"result": "fail"}}},
        },
    )
    assert res.status_code == 422
    assert "duplicates workout 7" in res.json()["detail"]
