"""Collect, upload and start tracking a session's health data."""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from trial_compass.config.settings import normalize_session_id
from trial_compass.errors import TrialCompassError
from trial_compass.features.health.models import HealthSnapshot, UploadPayload
from trial_compass.features.health.payload import build_payload
from trial_compass.features.health.performance import ecog_matches_server, estimate_ecog_from_steps
from trial_compass.features.health.records import HealthDataSource, collect_snapshot
from trial_compass.features.sessions.client import SessionApiClient
from trial_compass.features.sessions.models import UploadResponse
from trial_compass.features.sessions.tracker import SessionTracker
from trial_compass.observability.session_events import record_session_event

logger = logging.getLogger(__name__)


@dataclass
class HealthSyncResult:
    session_id: str
    snapshot: HealthSnapshot
    payload: UploadPayload
    response: UploadResponse
    local_ecog: Optional[int]
    ecog_agrees: bool


def upload_snapshot(
    snapshot: HealthSnapshot,
    session_id: str,
    client: SessionApiClient,
    tracker: Optional[SessionTracker] = None,
    now: Optional[datetime] = None,
) -> HealthSyncResult:
    """Upload a snapshot; tracking starts only after a successful upload."""
    session_id = normalize_session_id(session_id)
    payload = build_payload(snapshot, now=now)
    try:
        response = client.upload(session_id, payload)
    except TrialCompassError as exc:
        record_session_event(session_id, "upload_failed", error=str(exc))
        raise

    logger.info("Upload for session %s finished with status %s", session_id, response.status)
    record_session_event(
        session_id,
        "upload_succeeded",
        {
            "status": response.status,
            "lab_count": response.lab_count,
            "vital_count": response.vital_count,
            "medication_count": response.medication_count,
        },
    )
    local_ecog = None
    if snapshot.steps_per_day is not None:
        local_ecog = estimate_ecog_from_steps(snapshot.steps_per_day)
    agrees = ecog_matches_server(snapshot.steps_per_day, response.estimated_ecog)

    if tracker is not None:
        tracker.start_tracking(session_id)

    return HealthSyncResult(
        session_id=session_id,
        snapshot=snapshot,
        payload=payload,
        response=response,
        local_ecog=local_ecog,
        ecog_agrees=agrees,
    )


def sync_health_data(
    source: HealthDataSource,
    session_id: str,
    client: SessionApiClient,
    tracker: Optional[SessionTracker] = None,
    now: Optional[datetime] = None,
) -> HealthSyncResult:
    snapshot = collect_snapshot(source, now=now)
    return upload_snapshot(snapshot, session_id, client, tracker=tracker, now=now)
