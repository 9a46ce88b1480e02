from __future__ import annotations

import logging
from typing import Any, List, Optional, Type, TypeVar

import requests
from pydantic import BaseModel, TypeAdapter, ValidationError

from trial_compass.config.settings import BackendSettings, get_settings
from trial_compass.errors import DecodeError, HTTPStatusError, InputInvalid, NetworkUnreachable
from trial_compass.features.health.models import UploadPayload
from trial_compass.features.sessions.models import MatchedTrial, SessionState, UploadResponse

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

UPLOAD_PATH = "health-import-json"
STATE_PATH = "state"
MATCHED_TRIALS_PATH = "matched-trials"
REPORT_PATH = "report"

_TRIALS_ADAPTER = TypeAdapter(List[MatchedTrial])


class SessionApiClient:
    """Session-scoped calls against the Clinical Trial Compass backend.

    Every call is a single request: no retries, no caching. Failures raise
    NetworkUnreachable, HTTPStatusError, DecodeError or InputInvalid.
    """

    def __init__(
        self,
        settings: Optional[BackendSettings] = None,
        http: Optional[requests.Session] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.http = http or requests.Session()

    def upload(self, session_id: str, payload: UploadPayload) -> UploadResponse:
        url = self.settings.session_url(session_id, UPLOAD_PATH)
        logger.info(
            "Uploading health data: session=%s labs=%s vitals=%s medications=%s",
            session_id,
            len(payload.lab_results),
            len(payload.vitals),
            len(payload.medications),
        )
        response = self._send("POST", url, json=payload.to_wire())
        return _decode_model(response, UploadResponse, url)

    def fetch_session_state(self, session_id: str) -> SessionState:
        url = self.settings.session_url(session_id, STATE_PATH)
        response = self._send("GET", url)
        return _decode_model(response, SessionState, url)

    def fetch_matched_trials(self, session_id: str) -> List[MatchedTrial]:
        url = self.settings.session_url(session_id, MATCHED_TRIALS_PATH)
        response = self._send("GET", url)
        data = _json_body(response, url)
        try:
            return _TRIALS_ADAPTER.validate_python(data)
        except ValidationError as exc:
            raise DecodeError(response.text, detail=_validation_detail(exc), url=url) from exc

    def report_url(self, session_id: str) -> str:
        return self.settings.session_url(session_id, REPORT_PATH)

    def _send(self, method: str, url: str, **kwargs: Any) -> requests.Response:
        try:
            response = self.http.request(
                method,
                url,
                headers={"Accept": "application/json"},
                timeout=self.settings.http_timeout,
                **kwargs,
            )
        except requests.exceptions.InvalidJSONError as exc:
            logger.warning("%s %s body is not valid JSON: %s", method, url, exc)
            raise InputInvalid(f"Request body for {url} is not valid JSON: {exc}") from exc
        except requests.RequestException as exc:
            logger.warning("%s %s failed: %s", method, url, exc)
            raise NetworkUnreachable(f"Could not reach {url}: {exc}", url=url) from exc

        if not 200 <= response.status_code < 300:
            logger.warning("%s %s returned %s", method, url, response.status_code)
            raise HTTPStatusError(response.status_code, response.text, url=url)
        return response


def _json_body(response: requests.Response, url: str) -> Any:
    try:
        return response.json()
    except ValueError as exc:
        raise DecodeError(response.text, detail="body is not JSON", url=url) from exc


def _decode_model(response: requests.Response, model: Type[ModelT], url: str) -> ModelT:
    data = _json_body(response, url)
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise DecodeError(response.text, detail=_validation_detail(exc), url=url) from exc


def _validation_detail(exc: ValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return str(exc)
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ())) or "body"
    return f"{location}: {first.get('msg', 'invalid')}"
