"""Wire models for the session endpoints and the local tracking state."""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class SessionPhase(str, Enum):
    INTAKE = "intake"
    SEARCH = "search"
    MATCHING = "matching"
    SELECTION = "selection"
    REPORT = "report"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["SessionPhase"]:
        """Map a backend phase string; unknown values map to None."""
        try:
            return cls(value)
        except ValueError:
            return None


PHASE_ORDER: List[SessionPhase] = list(SessionPhase)


class UploadResponse(BaseModel):
    """Backend answer to a health import. Omitted counts stay None."""

    status: str
    lab_count: Optional[int] = None
    vital_count: Optional[int] = None
    medication_count: Optional[int] = None
    estimated_ecog: Optional[int] = None
    steps_per_day: Optional[float] = None
    active_minutes_per_day: Optional[float] = None


class SessionState(BaseModel):
    session_id: str
    phase: str
    profile_complete: bool
    search_complete: bool
    matching_complete: bool
    report_generated: bool

    @property
    def phase_kind(self) -> Optional[SessionPhase]:
        return SessionPhase.parse(self.phase)


class TrialLocation(BaseModel):
    facility: str
    city: str
    state: str
    distance_miles: Optional[float] = None


class MatchedTrial(BaseModel):
    nct_id: str
    brief_title: str
    phase: str
    overall_status: str
    fit_score: float
    fit_summary: str
    plain_language_summary: str
    interventions: List[str] = Field(default_factory=list)
    nearest_location: Optional[TrialLocation] = None


class TrialsFetch(str, Enum):
    """One-shot marker for the matched-trials fetch."""

    NOT_ATTEMPTED = "not_attempted"
    RETAINED = "retained"
    RETRY_PENDING = "retry_pending"


class SessionTrackingState(BaseModel):
    """Read-only view of what a SessionTracker currently knows."""

    model_config = ConfigDict(frozen=True)

    session_id: str = ""
    phase: str = ""
    matching_complete: bool = False
    report_generated: bool = False
    matched_trials: List[MatchedTrial] = Field(default_factory=list)
    trials_fetch: TrialsFetch = TrialsFetch.NOT_ATTEMPTED
    is_polling: bool = False
    error: Optional[str] = None

    @property
    def phase_kind(self) -> Optional[SessionPhase]:
        return SessionPhase.parse(self.phase)
