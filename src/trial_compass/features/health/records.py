"""Read a HealthSnapshot from a device health data source.

The source is any object implementing ``HealthDataSource``. Clinical records
carry an embedded FHIR resource; values are pulled out by key and records
whose resource is unusable are skipped rather than failing the batch.
"""

from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterable, List, Optional, Union

from typing_extensions import Protocol

from trial_compass.features.health.models import HealthSnapshot, LabResultRecord, MedicationRecord

logger = logging.getLogger(__name__)

ACTIVITY_WINDOW_DAYS = 30
FHIR_SOURCE_LABEL = "HealthKit-FHIR"

# Metric identifiers understood by HealthDataSource implementations.
STEP_COUNT = "step_count"
EXERCISE_MINUTES = "exercise_minutes"
LAB_RESULT_RECORD = "lab_result"
MEDICATION_RECORD = "medication"

# (snapshot field, quantity kind, unit)
LATEST_QUANTITIES = (
    ("weight", "body_mass", "lb"),
    ("height", "height", "in"),
    ("bmi", "body_mass_index", "count"),
    ("heart_rate", "heart_rate", "count/min"),
    ("blood_pressure_systolic", "blood_pressure_systolic", "mmHg"),
    ("blood_pressure_diastolic", "blood_pressure_diastolic", "mmHg"),
    ("temperature", "body_temperature", "degF"),
    ("respiratory_rate", "respiratory_rate", "count/min"),
    ("oxygen_saturation", "oxygen_saturation", "%"),
    ("blood_glucose", "blood_glucose", "mg/dL"),
    ("vo2_max", "vo2_max", "ml/kg/min"),
)


@dataclass
class DailyBucket:
    start: datetime
    value: Optional[float]


@dataclass
class ClinicalRecord:
    display_name: str
    payload: Union[bytes, str, Dict[str, Any], None]


class HealthDataSource(Protocol):
    def daily_sums(self, metric: str, start: datetime, end: datetime) -> List[DailyBucket]:
        ...

    def latest_quantity(self, kind: str, unit: str) -> Optional[float]:
        ...

    def clinical_records(self, kind: str) -> List[ClinicalRecord]:
        ...


def average_daily_buckets(buckets: Iterable[DailyBucket]) -> Optional[float]:
    """Average over days that have data; missing days are not zeros."""
    total = 0.0
    days = 0
    for bucket in buckets:
        value = _safe_float(bucket.value)
        if value is None:
            continue
        total += value
        days += 1
    if days == 0:
        return None
    return total / days


def parse_fhir_payload(payload: Union[bytes, str, Dict[str, Any], None]) -> Optional[Dict[str, Any]]:
    if payload is None:
        return None
    if isinstance(payload, dict):
        return payload
    try:
        if isinstance(payload, bytes):
            payload = payload.decode("utf-8")
        data = json.loads(payload)
    except (UnicodeDecodeError, json.JSONDecodeError, TypeError):
        return None
    if not isinstance(data, dict):
        return None
    return data


def extract_lab_result(record: ClinicalRecord) -> Optional[LabResultRecord]:
    resource = parse_fhir_payload(record.payload)
    if resource is None:
        return None
    quantity = resource.get("valueQuantity")
    if not isinstance(quantity, dict):
        return None
    value = _safe_float(quantity.get("value"))
    if value is None:
        return None
    return LabResultRecord(
        test_name=record.display_name,
        value=value,
        unit=_safe_str(quantity.get("unit")),
        date=_safe_str(resource.get("effectiveDateTime")),
        source=FHIR_SOURCE_LABEL,
    )


def extract_medication(record: ClinicalRecord) -> Optional[MedicationRecord]:
    resource = parse_fhir_payload(record.payload)
    if resource is None:
        return None
    return MedicationRecord(
        name=record.display_name,
        start_date=_safe_str(resource.get("authoredOn")),
        is_active=_safe_str(resource.get("status")) == "active",
    )


def collect_lab_results(records: Iterable[ClinicalRecord]) -> List[LabResultRecord]:
    results: List[LabResultRecord] = []
    skipped = 0
    for record in records:
        lab = extract_lab_result(record)
        if lab is None:
            skipped += 1
            continue
        results.append(lab)
    if skipped:
        logger.info("Skipped %s lab records without a usable FHIR value", skipped)
    return results


def collect_medications(records: Iterable[ClinicalRecord]) -> List[MedicationRecord]:
    results: List[MedicationRecord] = []
    skipped = 0
    for record in records:
        medication = extract_medication(record)
        if medication is None:
            skipped += 1
            continue
        results.append(medication)
    if skipped:
        logger.info("Skipped %s medication records with malformed FHIR payload", skipped)
    return results


def collect_snapshot(source: HealthDataSource, now: Optional[datetime] = None) -> HealthSnapshot:
    now = now or datetime.now(timezone.utc)
    start = now - timedelta(days=ACTIVITY_WINDOW_DAYS)

    values: Dict[str, Any] = {
        "steps_per_day": average_daily_buckets(source.daily_sums(STEP_COUNT, start, now)),
        "active_minutes_per_day": average_daily_buckets(
            source.daily_sums(EXERCISE_MINUTES, start, now)
        ),
    }
    for field, kind, unit in LATEST_QUANTITIES:
        values[field] = _safe_float(source.latest_quantity(kind, unit))

    values["lab_results"] = collect_lab_results(source.clinical_records(LAB_RESULT_RECORD))
    values["medications"] = collect_medications(source.clinical_records(MEDICATION_RECORD))

    snapshot = HealthSnapshot(**values)
    logger.info(
        "Collected snapshot: vitals=%s labs=%s medications=%s",
        sum(1 for field, _, _ in LATEST_QUANTITIES if values[field] is not None),
        len(snapshot.lab_results),
        len(snapshot.medications),
    )
    return snapshot


def _safe_float(value: object) -> Optional[float]:
    if isinstance(value, bool):
        return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(result):
        return None
    return result


def _safe_str(value: object) -> str:
    return value if isinstance(value, str) else ""
