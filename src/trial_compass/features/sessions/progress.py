"""Presentation helpers derived from a SessionTrackingState."""

from typing import List, Optional

from pydantic import BaseModel
from typing_extensions import Literal

from trial_compass.features.sessions.models import (
    PHASE_ORDER,
    MatchedTrial,
    SessionPhase,
    SessionTrackingState,
)

CLINICALTRIALS_STUDY_URL = "https://clinicaltrials.gov/study/{nct_id}"
TOP_TRIALS_LIMIT = 3

PHASE_LABELS = {
    SessionPhase.INTAKE: "Gathering profile",
    SessionPhase.SEARCH: "Searching trials",
    SessionPhase.MATCHING: "Analyzing eligibility",
    SessionPhase.SELECTION: "Selecting trials",
    SessionPhase.REPORT: "Generating report",
}


class PhaseStep(BaseModel):
    phase: SessionPhase
    label: str
    status: Literal["done", "active", "pending"]


def current_phase_index(phase: str) -> int:
    kind = SessionPhase.parse(phase)
    if kind is None:
        return -1
    return PHASE_ORDER.index(kind)


def build_phase_steps(state: SessionTrackingState) -> List[PhaseStep]:
    """One step per phase; the current one is done once the report exists."""
    current = current_phase_index(state.phase)
    steps: List[PhaseStep] = []
    for index, phase in enumerate(PHASE_ORDER):
        if index < current or (index == current and state.report_generated):
            status = "done"
        elif index == current:
            status = "active"
        else:
            status = "pending"
        steps.append(PhaseStep(phase=phase, label=PHASE_LABELS[phase], status=status))
    return steps


def top_trials(trials: List[MatchedTrial], limit: int = TOP_TRIALS_LIMIT) -> List[MatchedTrial]:
    # Backend returns trials ranked; keep the first occurrence of each NCT ID.
    seen = set()
    result: List[MatchedTrial] = []
    for trial in trials:
        if trial.nct_id in seen:
            continue
        seen.add(trial.nct_id)
        result.append(trial)
        if len(result) >= limit:
            break
    return result


def study_url(trial: MatchedTrial) -> str:
    return CLINICALTRIALS_STUDY_URL.format(nct_id=trial.nct_id)


def fit_score_band(score: float) -> Literal["high", "medium", "low"]:
    if score >= 70:
        return "high"
    if score >= 40:
        return "medium"
    return "low"


def format_location(trial: MatchedTrial) -> Optional[str]:
    location = trial.nearest_location
    if location is None:
        return None
    label = f"{location.facility}, {location.city}, {location.state}"
    if location.distance_miles is not None:
        label = f"{label} ({int(location.distance_miles)} mi)"
    return label
