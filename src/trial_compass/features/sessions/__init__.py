# Sessions: backend client and progress tracking
from trial_compass.features.sessions.client import SessionApiClient
from trial_compass.features.sessions.models import (
    MatchedTrial,
    SessionPhase,
    SessionState,
    SessionTrackingState,
    UploadResponse,
)
from trial_compass.features.sessions.tracker import SessionTracker

__all__ = [
    "SessionApiClient",
    "MatchedTrial",
    "SessionPhase",
    "SessionState",
    "SessionTrackingState",
    "UploadResponse",
    "SessionTracker",
]
