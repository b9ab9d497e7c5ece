# patient_monitor/seed.py
import logging

from .extensions import db
from .models import Patient
from .schemas import validate_patient

logger = logging.getLogger(__name__)

_DEFAULT_THRESHOLDS = {
    "heartRate": {"min": 60, "max": 100},
    "temperature": {"min": 36.5, "max": 37.5},
    "bloodPressure": {"min": 90, "max": 140},
    "oxygenSaturation": {"min": 95, "max": 100},
}

SAMPLE_PATIENTS = [
    {
        "patientId": "P001",
        "name": "John Doe",
        "age": 65,
        "gender": "Male",
        "condition": "Hypertension",
        "thingspeakChannelId": "1234567",
        "thingspeakReadApiKey": "SAMPLE_API_KEY_1",
        "vitalThresholds": _DEFAULT_THRESHOLDS,
    },
    {
        "patientId": "P002",
        "name": "Jane Smith",
        "age": 42,
        "gender": "Female",
        "condition": "Diabetes",
        "thingspeakChannelId": "7654321",
        "thingspeakReadApiKey": "SAMPLE_API_KEY_2",
        "vitalThresholds": _DEFAULT_THRESHOLDS,
    },
    {
        "patientId": "P003",
        "name": "Robert Johnson",
        "age": 78,
        "gender": "Male",
        "condition": "Heart Disease",
        "thingspeakChannelId": "2468135",
        "thingspeakReadApiKey": "SAMPLE_API_KEY_3",
        "vitalThresholds": {
            "heartRate": {"min": 55, "max": 90},
            "temperature": {"min": 36.5, "max": 37.5},
            "bloodPressure": {"min": 100, "max": 150},
            "oxygenSaturation": {"min": 92, "max": 100},
        },
    },
]


def add_patient(payload: dict) -> Patient:
    """Validate and stage a patient; raises ValueError on invalid input."""
    result = validate_patient(payload)
    if not result.ok:
        raise ValueError(f"Invalid patient {payload.get('patientId')!r}: {result.errors}")
    patient = Patient(**result.data)
    db.session.add(patient)
    return patient


def seed_sample_patients(samples=None) -> int:
    """Insert the sample patients when the directory is empty. Returns rows inserted."""
    if db.session.query(Patient.id).first() is not None:
        return 0
    samples = SAMPLE_PATIENTS if samples is None else samples
    for payload in samples:
        add_patient(payload)
    db.session.commit()
    logger.info("Sample patients created: %d", len(samples))
    return len(samples)
