"""Tests for features/sessions/progress.py"""
from trial_compass.features.sessions.models import MatchedTrial, SessionTrackingState, TrialLocation
from trial_compass.features.sessions.progress import (
    build_phase_steps,
    current_phase_index,
    fit_score_band,
    format_location,
    study_url,
    top_trials,
)


def _trial(nct_id, score=50.0, location=None):
    return MatchedTrial(
        nct_id=nct_id,
        brief_title="Title",
        phase="Phase 1",
        overall_status="RECRUITING",
        fit_score=score,
        fit_summary="",
        plain_language_summary="",
        nearest_location=location,
    )


def test_phase_index():
    assert current_phase_index("intake") == 0
    assert current_phase_index("report") == 4
    assert current_phase_index("") == -1
    assert current_phase_index("archived") == -1


def test_steps_while_matching():
    steps = build_phase_steps(SessionTrackingState(phase="matching"))
    assert [s.status for s in steps] == ["done", "done", "active", "pending", "pending"]
    assert steps[2].label == "Analyzing eligibility"


def test_steps_after_report():
    steps = build_phase_steps(SessionTrackingState(phase="report", report_generated=True))
    assert all(s.status == "done" for s in steps)


def test_steps_unknown_phase_all_pending():
    steps = build_phase_steps(SessionTrackingState(phase="archived"))
    assert all(s.status == "pending" for s in steps)


def test_top_trials_dedupes_and_limits():
    trials = [_trial("NCT1"), _trial("NCT1"), _trial("NCT2"), _trial("NCT3"), _trial("NCT4")]
    assert [t.nct_id for t in top_trials(trials)] == ["NCT1", "NCT2", "NCT3"]


def test_study_url_and_band():
    assert study_url(_trial("NCT05551234")) == "https://clinicaltrials.gov/study/NCT05551234"
    assert fit_score_band(70) == "high"
    assert fit_score_band(69.9) == "medium"
    assert fit_score_band(40) == "medium"
    assert fit_score_band(39) == "low"


def test_format_location():
    near = _trial("NCT1", location=TrialLocation(facility="Mercy", city="Austin", state="TX", distance_miles=12.7))
    unknown_distance = _trial("NCT2", location=TrialLocation(facility="Mercy", city="Austin", state="TX"))
    assert format_location(near) == "Mercy, Austin, TX (12 mi)"
    assert format_location(unknown_distance) == "Mercy, Austin, TX"
    assert format_location(_trial("NCT3")) is None
