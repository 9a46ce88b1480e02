from __future__ import annotations

import logging
from typing import Optional

logger = logging.getLogger(__name__)

# (minimum steps per day, ECOG score), checked top-down.
ECOG_STEP_THRESHOLDS = (
    (7000, 0),  # fully active
    (4000, 1),  # restricted but ambulatory
    (1500, 2),  # ambulatory, capable of self-care
    (500, 3),  # limited self-care
)
ECOG_FLOOR = 4


def estimate_ecog_from_steps(steps_per_day: float) -> int:
    """Estimate ECOG performance status from average daily steps.

    Thresholds must stay identical to the backend's estimate_ecog_from_steps.
    """
    for minimum, score in ECOG_STEP_THRESHOLDS:
        if steps_per_day >= minimum:
            return score
    return ECOG_FLOOR


def ecog_matches_server(steps_per_day: Optional[float], server_ecog: Optional[int]) -> bool:
    if steps_per_day is None or server_ecog is None:
        return True
    local = estimate_ecog_from_steps(steps_per_day)
    if local != server_ecog:
        logger.warning(
            "ECOG mismatch: local=%s server=%s steps_per_day=%.1f",
            local,
            server_ecog,
            steps_per_day,
        )
        return False
    return True
