"""Tests for features/sessions/client.py without network calls."""
import json
from unittest.mock import Mock

import pytest
import requests

from trial_compass.errors import DecodeError, HTTPStatusError, InputInvalid, NetworkUnreachable
from trial_compass.features.health.models import HealthSnapshot
from trial_compass.features.health.payload import build_payload
from trial_compass.features.sessions.client import SessionApiClient


class FakeResponse:
    def __init__(self, status_code=200, body=""):
        self.status_code = status_code
        self.text = body if isinstance(body, str) else json.dumps(body)

    def json(self):
        return json.loads(self.text)


def _client(settings, response=None, error=None):
    http = Mock()
    if error is not None:
        http.request.side_effect = error
    else:
        http.request.return_value = response
    return SessionApiClient(settings=settings, http=http), http


STATE = {
    "session_id": "S1",
    "phase": "search",
    "profile_complete": True,
    "search_complete": False,
    "matching_complete": False,
    "report_generated": False,
}

TRIAL = {
    "nct_id": "NCT01234567",
    "brief_title": "Study of Drug X",
    "phase": "Phase 2",
    "overall_status": "RECRUITING",
    "fit_score": 82.5,
    "fit_summary": "Good fit",
    "plain_language_summary": "Tests drug X.",
    "interventions": ["Drug X"],
    "nearest_location": {"facility": "Mercy", "city": "Austin", "state": "TX", "distance_miles": 12.4},
}


def test_upload_posts_payload_to_session_resource(settings):
    client, http = _client(settings, FakeResponse(200, {"status": "ok", "vital_count": 1, "estimated_ecog": 1}))
    payload = build_payload(HealthSnapshot(weight=160.0))
    response = client.upload("S1", payload)

    assert response.status == "ok"
    assert response.vital_count == 1
    assert response.lab_count is None
    method, url = http.request.call_args.args
    assert method == "POST"
    assert url == "http://localhost:8100/api/sessions/S1/health-import-json"
    body = http.request.call_args.kwargs["json"]
    assert body["source_file"] == "ios-healthkit"
    assert body["vitals"][0]["type"] == "body_mass"
    assert http.request.call_args.kwargs["timeout"] == 2.0


def test_upload_empty_payload_succeeds(settings):
    client, http = _client(settings, FakeResponse(201, {"status": "ok"}))
    response = client.upload("S1", build_payload(HealthSnapshot()))
    assert response.status == "ok"
    body = http.request.call_args.kwargs["json"]
    assert body["lab_results"] == [] and body["vitals"] == [] and body["medications"] == []


def test_upload_server_error_exposes_code_and_body(settings):
    client, _ = _client(settings, FakeResponse(500, "server error"))
    with pytest.raises(HTTPStatusError) as excinfo:
        client.upload("S1", build_payload(HealthSnapshot()))
    assert excinfo.value.status_code == 500
    assert excinfo.value.body == "server error"
    assert str(excinfo.value) == "Server returned 500: server error"


def test_upload_malformed_success_body(settings):
    client, _ = _client(settings, FakeResponse(200, "<html>oops</html>"))
    with pytest.raises(DecodeError) as excinfo:
        client.upload("S1", build_payload(HealthSnapshot()))
    assert excinfo.value.raw_body == "<html>oops</html>"


def test_upload_body_missing_status_is_decode_error(settings):
    client, _ = _client(settings, FakeResponse(200, {"lab_count": 2}))
    with pytest.raises(DecodeError) as excinfo:
        client.upload("S1", build_payload(HealthSnapshot()))
    assert "status" in str(excinfo.value)


def test_network_error_maps_to_network_unreachable(settings):
    client, _ = _client(settings, error=requests.ConnectionError("connection refused"))
    with pytest.raises(NetworkUnreachable):
        client.fetch_session_state("S1")


def test_fetch_session_state(settings):
    client, http = _client(settings, FakeResponse(200, STATE))
    state = client.fetch_session_state("S1")
    assert state.phase == "search"
    assert state.profile_complete is True
    method, url = http.request.call_args.args
    assert (method, url) == ("GET", "http://localhost:8100/api/sessions/S1/state")


def test_fetch_session_state_http_error(settings):
    client, _ = _client(settings, FakeResponse(404, "not found"))
    with pytest.raises(HTTPStatusError) as excinfo:
        client.fetch_session_state("S1")
    assert excinfo.value.status_code == 404


def test_fetch_matched_trials(settings):
    client, http = _client(settings, FakeResponse(200, [TRIAL, dict(TRIAL, nct_id="NCT07654321", nearest_location=None)]))
    trials = client.fetch_matched_trials("S1")
    assert [t.nct_id for t in trials] == ["NCT01234567", "NCT07654321"]
    assert trials[0].nearest_location.distance_miles == 12.4
    assert trials[1].nearest_location is None
    assert http.request.call_args.args[1] == "http://localhost:8100/api/sessions/S1/matched-trials"


def test_fetch_matched_trials_wrong_shape(settings):
    client, _ = _client(settings, FakeResponse(200, {"trials": []}))
    with pytest.raises(DecodeError):
        client.fetch_matched_trials("S1")


def test_requests_use_current_base_url(settings):
    client, http = _client(settings, FakeResponse(200, STATE))
    client.fetch_session_state("S1")
    settings.set_base_url("https://staging.example.org/")
    client.fetch_session_state("S1")
    urls = [call.args[1] for call in http.request.call_args_list]
    assert urls == [
        "http://localhost:8100/api/sessions/S1/state",
        "https://staging.example.org/api/sessions/S1/state",
    ]


def test_session_id_is_path_escaped(settings):
    client, http = _client(settings, FakeResponse(200, dict(STATE, session_id="a/b")))
    client.fetch_session_state("a/b")
    assert http.request.call_args.args[1].endswith("/api/sessions/a%2Fb/state")


def test_empty_session_id_rejected(settings):
    client, http = _client(settings, FakeResponse(200, STATE))
    with pytest.raises(InputInvalid):
        client.fetch_session_state("  ")
    http.request.assert_not_called()


def test_report_url(settings):
    client, _ = _client(settings, FakeResponse(200, STATE))
    assert client.report_url("S1") == "http://localhost:8100/api/sessions/S1/report"


def test_unserializable_body_is_input_invalid(settings):
    error = requests.exceptions.InvalidJSONError("Out of range float values are not JSON compliant")
    client, _ = _client(settings, error=error)
    with pytest.raises(InputInvalid):
        client.upload("S1", build_payload(HealthSnapshot(weight=160.0)))
