from __future__ import annotations

import os
import sys
import traceback


def _bootstrap_path() -> None:
    src_dir = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "src")
    if src_dir not in sys.path:
        sys.path.insert(0, src_dir)


def main() -> int:
    _bootstrap_path()
    try:
        from trial_compass.config.settings import BackendSettings
        from trial_compass.features.health.models import HealthSnapshot
        from trial_compass.features.health.payload import build_payload
        from trial_compass.features.health.performance import estimate_ecog_from_steps
        from trial_compass.features.sessions.models import SessionTrackingState
        from trial_compass.features.sessions.progress import build_phase_steps

        payload = build_payload(HealthSnapshot(weight=165.0, steps_per_day=5500.0))
        if len(payload.vitals) != 1 or payload.source_file != "ios-healthkit":
            raise RuntimeError("Payload builder produced unexpected vitals.")
        if estimate_ecog_from_steps(5500.0) != 1:
            raise RuntimeError("ECOG estimate out of contract.")
        settings = BackendSettings(base_url="http://localhost:8100/")
        if settings.session_url("S1", "state") != "http://localhost:8100/api/sessions/S1/state":
            raise RuntimeError("Session URL construction failed.")
        steps = build_phase_steps(SessionTrackingState(phase="matching"))
        if [step.status for step in steps][:3] != ["done", "done", "active"]:
            raise RuntimeError("Phase steps out of order.")
    except Exception:
        traceback.print_exc()
        return 1
    print("health_check: ok")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
