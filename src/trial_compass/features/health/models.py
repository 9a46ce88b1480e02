"""Health snapshot and record models collected from the device health store."""

import uuid
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class LabResultRecord(BaseModel):
    """Lab observation extracted from a clinical record."""

    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    test_name: str
    value: float
    unit: str = ""
    date: str = ""
    source: str = ""


class MedicationRecord(BaseModel):
    """Medication order extracted from a clinical record."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    name: str
    dose: str = ""
    frequency: str = ""
    start_date: str = ""
    end_date: str = ""
    is_active: bool = False


class HealthSnapshot(BaseModel):
    """Health observations available at one point in time.

    Every field is optional; an empty snapshot is valid input.
    Units: weight lb, height in, heart rate bpm, blood pressure mmHg.
    """

    model_config = ConfigDict(allow_inf_nan=False)

    weight: Optional[float] = None
    height: Optional[float] = None
    bmi: Optional[float] = None
    heart_rate: Optional[float] = None
    blood_pressure_systolic: Optional[float] = None
    blood_pressure_diastolic: Optional[float] = None
    temperature: Optional[float] = None
    respiratory_rate: Optional[float] = None
    oxygen_saturation: Optional[float] = None
    blood_glucose: Optional[float] = None
    vo2_max: Optional[float] = None
    steps_per_day: Optional[float] = None
    active_minutes_per_day: Optional[float] = None
    lab_results: List[LabResultRecord] = Field(default_factory=list)
    medications: List[MedicationRecord] = Field(default_factory=list)


class VitalEntry(BaseModel):
    model_config = ConfigDict(allow_inf_nan=False)

    type: str
    value: float
    unit: str
    date: str


class LabResultEntry(BaseModel):
    model_config = ConfigDict(allow_inf_nan=False)

    test_name: str
    value: float
    unit: str
    date: str
    source: str


class MedicationEntry(BaseModel):
    name: str
    dose: str
    frequency: str
    start_date: str
    end_date: str
    is_active: bool


class UploadPayload(BaseModel):
    """Import payload accepted by the backend health-import endpoint."""

    model_config = ConfigDict(allow_inf_nan=False)

    lab_results: List[LabResultEntry] = Field(default_factory=list)
    vitals: List[VitalEntry] = Field(default_factory=list, max_length=6)
    medications: List[MedicationEntry] = Field(default_factory=list)
    activity_steps_per_day: Optional[float] = None
    activity_active_minutes_per_day: Optional[float] = None
    import_date: str
    source_file: str

    def to_wire(self) -> dict:
        return self.model_dump(mode="json")
