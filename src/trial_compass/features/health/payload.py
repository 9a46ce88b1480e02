"""Build the backend import payload from a health snapshot."""

from datetime import datetime, timezone
from typing import List, Optional

from trial_compass.features.health.models import (
    HealthSnapshot,
    LabResultEntry,
    MedicationEntry,
    UploadPayload,
    VitalEntry,
)

SOURCE_FILE = "ios-healthkit"

# (snapshot field, wire type tag, unit) in upload order.
VITAL_FIELDS = (
    ("weight", "body_mass", "lb"),
    ("height", "height", "in"),
    ("bmi", "bmi", "count"),
    ("heart_rate", "heart_rate", "bpm"),
    ("blood_pressure_systolic", "blood_pressure_systolic", "mmHg"),
    ("blood_pressure_diastolic", "blood_pressure_diastolic", "mmHg"),
)


def format_import_date(moment: datetime) -> str:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def build_payload(snapshot: HealthSnapshot, now: Optional[datetime] = None) -> UploadPayload:
    stamp = format_import_date(now or datetime.now(timezone.utc))

    labs = [
        LabResultEntry(
            test_name=lab.test_name,
            value=lab.value,
            unit=lab.unit,
            date=lab.date,
            source=lab.source,
        )
        for lab in snapshot.lab_results
    ]
    medications = [
        MedicationEntry(
            name=med.name,
            dose=med.dose,
            frequency=med.frequency,
            start_date=med.start_date,
            end_date=med.end_date,
            is_active=med.is_active,
        )
        for med in snapshot.medications
    ]

    return UploadPayload(
        lab_results=labs,
        vitals=build_vitals(snapshot, stamp),
        medications=medications,
        activity_steps_per_day=snapshot.steps_per_day,
        activity_active_minutes_per_day=snapshot.active_minutes_per_day,
        import_date=stamp,
        source_file=SOURCE_FILE,
    )


def build_vitals(snapshot: HealthSnapshot, stamp: str) -> List[VitalEntry]:
    # Vitals are snapshot-time facts and carry the import timestamp.
    vitals: List[VitalEntry] = []
    for field, type_tag, unit in VITAL_FIELDS:
        value = getattr(snapshot, field)
        if value is None:
            continue
        vitals.append(VitalEntry(type=type_tag, value=value, unit=unit, date=stamp))
    return vitals
