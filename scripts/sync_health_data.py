#!/usr/bin/env python3
"""Upload a health snapshot JSON file to a session and follow its progress.

Usage: sync_health_data.py SESSION_ID SNAPSHOT.json [BACKEND_URL]
"""

import json
import logging
import sys
from pathlib import Path

root = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(root / "src"))

from trial_compass.config.settings import get_settings
from trial_compass.errors import TrialCompassError
from trial_compass.features.health.models import HealthSnapshot
from trial_compass.features.sessions.client import SessionApiClient
from trial_compass.features.sessions.progress import build_phase_steps, format_location, top_trials
from trial_compass.features.sessions.tracker import SessionTracker
from trial_compass.pipelines.health_sync import upload_snapshot

STATUS_MARKS = {"done": "[x]", "active": "[>]", "pending": "[ ]"}


def _print_phase(field: str, value: object) -> None:
    if field == "phase" and value:
        print(f"Phase: {value}")


def main() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    if len(sys.argv) < 3:
        print(__doc__.strip(), file=sys.stderr)
        sys.exit(2)

    session_id, snapshot_path = sys.argv[1], Path(sys.argv[2])
    settings = get_settings()
    try:
        if len(sys.argv) > 3:
            settings.set_base_url(sys.argv[3])
        snapshot = HealthSnapshot.model_validate(json.loads(snapshot_path.read_text(encoding="utf-8")))
    except (OSError, ValueError, TrialCompassError) as exc:
        print(str(exc), file=sys.stderr)
        sys.exit(1)

    client = SessionApiClient(settings=settings)
    tracker = SessionTracker(client)
    tracker.subscribe(_print_phase)

    print("Clinical Trial Compass – Health Upload")
    print("-" * 50)
    print(f"Backend: {settings.base_url}")
    try:
        result = upload_snapshot(snapshot, session_id, client, tracker=tracker)
    except TrialCompassError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)

    response = result.response
    print(f"Upload status: {response.status}")
    if result.local_ecog is not None:
        print(f"Estimated ECOG: {result.local_ecog} (server: {response.estimated_ecog})")

    try:
        tracker.wait_until_idle()
    except KeyboardInterrupt:
        tracker.stop_tracking()

    state = tracker.state
    for step in build_phase_steps(state):
        print(f"{STATUS_MARKS[step.status]} {step.label}")
    if state.error:
        print(f"Last error: {state.error}")
    for trial in top_trials(state.matched_trials):
        print(f"- {trial.nct_id} {trial.brief_title} ({int(trial.fit_score)}%)")
        location = format_location(trial)
        if location:
            print(f"  {location}")
    if tracker.report_url:
        print(f"Report: {tracker.report_url}")


if __name__ == "__main__":
    main()
