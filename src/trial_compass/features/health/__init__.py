# Health: snapshot collection, payload building, activity estimate
from trial_compass.features.health.models import HealthSnapshot, LabResultRecord, MedicationRecord, UploadPayload
from trial_compass.features.health.payload import build_payload
from trial_compass.features.health.performance import estimate_ecog_from_steps
from trial_compass.features.health.records import HealthDataSource, collect_snapshot

__all__ = [
    "HealthSnapshot",
    "LabResultRecord",
    "MedicationRecord",
    "UploadPayload",
    "build_payload",
    "estimate_ecog_from_steps",
    "HealthDataSource",
    "collect_snapshot",
]
