import pytest

from patient_monitor.models import Patient
from patient_monitor.schemas import validate_patient, validate_reading
from patient_monitor.seed import SAMPLE_PATIENTS, add_patient, seed_sample_patients


def test_validate_patient_loads_snake_case():
    result = validate_patient(SAMPLE_PATIENTS[0])

    assert result.ok
    assert result.errors == {}
    assert result.data["patient_id"] == "P001"
    assert result.data["thingspeak_read_api_key"] == "SAMPLE_API_KEY_1"
    assert result.data["vital_thresholds"]["blood_pressure"] == {"min": 90.0, "max": 140.0}


def test_validate_patient_rejects_inverted_range():
    payload = dict(SAMPLE_PATIENTS[0], vitalThresholds={"heartRate": {"min": 120, "max": 60}})

    result = validate_patient(payload)

    assert not result.ok
    assert result.data is None
    assert "heartRate" in result.errors["vitalThresholds"]


def test_validate_patient_requires_identity():
    result = validate_patient({"age": 40})

    assert not result.ok
    assert set(result.errors) >= {"patientId", "name"}


def test_validate_reading():
    assert validate_reading({"patient_id": "P001", "heart_rate": 72.0, "is_alert": False}).ok

    nan = validate_reading({"patient_id": "P001", "heart_rate": float("nan"), "is_alert": False})
    assert not nan.ok
    assert "heart_rate" in nan.errors

    negative = validate_reading({"patient_id": "P001", "temperature": -1.0, "is_alert": True})
    assert negative.ok
    assert negative.data["temperature"] == -1.0

    assert "is_alert" in validate_reading({"patient_id": "P001"}).errors


def test_add_patient_rejects_invalid(app):
    with pytest.raises(ValueError):
        add_patient({"patientId": "P9"})


def test_seed_only_into_empty_directory(app):
    assert seed_sample_patients() == 3
    assert seed_sample_patients() == 0
    assert Patient.query.count() == 3
    assert Patient.query.filter_by(thingspeak_channel_id="2468135").one().name == "Robert Johnson"
