"""Tests for the HTTP surface."""

import json
from pathlib import Path

import pytest
import sse_starlette.sse as sse_module
from fastapi.testclient import TestClient

from cryonexus.api.main import create_app
from cryonexus.api.routers.analyze import get_analysis_service, get_recording_library
from cryonexus.api.routers.country_data import get_country_store
from cryonexus.api.services.analysis_service import AnalysisService
from cryonexus.models.events import EventName
from cryonexus.services.country_data import CountryDataStore
from cryonexus.services.replay import RecordingLibrary
from cryonexus.services.sse_codec import SSEDecoder
from tests.factories import SUEZ_SCENARIO

RECORDING = Path(__file__).resolve().parent.parent / "data" / "recordings" / "suez-heatwave.json"

COUNTRY_DATA = {
    "EGY": {
        "name": "Egypt",
        "economics": {"gdp": 395900000000, "population": 112700000},
        "risk": {"risk_score": 4.6},
        "displacement": {"refugees": 466000},
    }
}


@pytest.fixture
def app(settings, scripted_llm, fake_news, tmp_path):
    country_path = tmp_path / "countries.json"
    country_path.write_text(json.dumps(COUNTRY_DATA))

    app = create_app(settings)
    service = AnalysisService(settings, llm=scripted_llm, news=fake_news)
    app.dependency_overrides[get_analysis_service] = lambda: service
    app.dependency_overrides[get_country_store] = lambda: CountryDataStore(country_path)
    app.dependency_overrides[get_recording_library] = lambda: None
    return app


@pytest.fixture
def client(app):
    # sse_starlette keeps a process-wide exit event bound to the first loop
    app_status = getattr(sse_module, "AppStatus", None)
    if app_status is not None and hasattr(app_status, "should_exit_event"):
        app_status.should_exit_event = None
    with TestClient(app) as client:
        yield client


def decode(text: str):
    decoder = SSEDecoder()
    return decoder.feed(text) + decoder.close()


# ==========================================
#  HEALTH
# ==========================================


def test_root(client):
    response = client.get("/")
    assert response.status_code == 200
    assert response.json() == {"status": "running", "version": "1.0.0"}


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


# ==========================================
#  ANALYZE
# ==========================================


def test_analyze_streams_events(client):
    response = client.post("/api/analyze", json={"scenario": SUEZ_SCENARIO})

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/event-stream")
    assert response.headers["cache-control"] == "no-cache, no-transform"
    assert response.headers["x-accel-buffering"] == "no"
    assert "event: status\ndata: {" in response.text
    assert "\r\n" not in response.text

    events = decode(response.text)
    assert events[0].event == EventName.STATUS
    assert events[-1].event == EventName.COMPLETE
    assert events[-1].data == {"compound_risk_score": 100}


@pytest.mark.parametrize("body, message", [
    ({"scenario": ""}, "Scenario is required and must be a non-empty string"),
    ({"scenario": "x" * 501}, "Scenario must be 500 characters or less"),
    ({}, "Scenario is required and must be a non-empty string"),
    ({"scenario": 42}, "Scenario is required and must be a non-empty string"),
    ({"scenario": None}, "Scenario is required and must be a non-empty string"),
])
def test_analyze_rejects_invalid_scenario(client, body, message):
    response = client.post("/api/analyze", json=body)
    assert response.status_code == 400
    assert response.json() == {"error": message}


def test_analyze_rejects_malformed_json(client):
    response = client.post(
        "/api/analyze", content=b'{"scenario": ', headers={"content-type": "application/json"}
    )
    assert response.status_code == 400
    assert "error" in response.json()


def test_analyze_accepts_500_characters(client):
    response = client.post("/api/analyze", json={"scenario": "y" * 500})
    assert response.status_code == 200
    assert decode(response.text)[-1].event == EventName.COMPLETE


def test_analyze_replays_matching_recording(app, client, scripted_llm, tmp_path):
    library_dir = tmp_path / "recordings"
    library_dir.mkdir()
    (library_dir / "suez.json").write_text(RECORDING.read_text(encoding="utf-8"), encoding="utf-8")
    library = RecordingLibrary(library_dir)
    app.dependency_overrides[get_recording_library] = lambda: library

    response = client.post("/api/analyze", json={"scenario": "  suez canal BLOCKED + south asian heat wave "})

    events = decode(response.text)
    assert events[-1].data == {"compound_risk_score": 100}
    assert scripted_llm.prompts == []


# ==========================================
#  COUNTRY DATA
# ==========================================


def test_country_data_found_case_insensitive(client):
    response = client.get("/api/country-data", params={"iso3": "egy"})
    assert response.status_code == 200
    body = response.json()
    assert body["name"] == "Egypt"
    assert body["iso3"] == "EGY"
    assert body["economics"]["population"] == 112700000
    assert body["displacement"]["idps"] == 0


@pytest.mark.parametrize("params", [{}, {"iso3": ""}, {"iso3": "EG"}, {"iso3": "EGYP"}])
def test_country_data_bad_code(client, params):
    response = client.get("/api/country-data", params=params)
    assert response.status_code == 400
    assert "iso3" in response.json()["error"]


def test_country_data_unknown_code(client):
    response = client.get("/api/country-data", params={"iso3": "ZZZ"})
    assert response.status_code == 404
    assert response.json() == {"error": "No data found for country: ZZZ"}
