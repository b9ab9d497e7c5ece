# tests/conftest.py
from datetime import datetime, timedelta

import pytest

from patient_monitor import create_app
from patient_monitor.config import TestConfig
from patient_monitor.extensions import db
from patient_monitor.ingest import IngestionPipeline
from patient_monitor.seed import add_patient

CHANNEL = "1234567"

PATIENT = {
    "patientId": "P001",
    "name": "John Doe",
    "age": 65,
    "gender": "Male",
    "condition": "Hypertension",
    "thingspeakChannelId": CHANNEL,
    "thingspeakReadApiKey": "SAMPLE_API_KEY_1",
    "vitalThresholds": {
        "heartRate": {"min": 60, "max": 100},
        "temperature": {"min": 36.5, "max": 37.5},
        "bloodPressure": {"min": 90, "max": 140},
        "oxygenSaturation": {"min": 95, "max": 100},
    },
}


def topic(channel: str, field: str) -> str:
    return f"channels/{channel}/subscribe/fields/{field}"


class FakeClock:
    """Manually advanced replacement for utcnow()."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


class RecordingBroadcaster:
    def __init__(self):
        self.updates = []
        self.alerts = []

    def patient_update(self, patient_id, fields, timestamp, is_alert):
        self.updates.append(
            {"patientId": patient_id, "fields": fields, "timestamp": timestamp, "isAlert": is_alert}
        )

    def patient_alert(self, patient_id, name, fields, timestamp):
        self.alerts.append(
            {"patientId": patient_id, "name": name, "fields": fields, "timestamp": timestamp}
        )


@pytest.fixture
def app():
    app = create_app(TestConfig)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def patient(app):
    p = add_patient(PATIENT)
    db.session.commit()
    return p


@pytest.fixture
def clock():
    return FakeClock(datetime(2026, 1, 1, 12, 0, 0))


@pytest.fixture
def broadcaster():
    return RecordingBroadcaster()


@pytest.fixture
def pipeline(app, broadcaster, clock):
    return IngestionPipeline(broadcaster, window_seconds=60, clock=clock)
