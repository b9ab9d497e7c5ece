# patient_monitor/models.py
from datetime import datetime, timezone
from uuid import uuid4
from .extensions import db


def uid(prefix: str) -> str:
    """Generate a short unique id with a prefix."""
    return f"{prefix}_{uuid4().hex[:12]}"


def utcnow() -> datetime:
    """Current UTC time as a naive datetime (the form stored in the database)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Patient(db.Model):
    __tablename__ = "patients"

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    patient_id = db.Column(db.String, unique=True, nullable=False, index=True)
    name = db.Column(db.String, nullable=False)
    age = db.Column(db.Integer)
    gender = db.Column(db.String)
    condition = db.Column(db.String)
    thingspeak_channel_id = db.Column(db.String, index=True)
    thingspeak_read_api_key = db.Column(db.String)
    # {"heart_rate": {"min": 60, "max": 100}, "temperature": {...}, ...}
    vital_thresholds = db.Column(db.JSON, nullable=False, default=dict)
    last_updated = db.Column(db.DateTime, default=utcnow)

    def threshold_for(self, vital: str) -> dict:
        return (self.vital_thresholds or {}).get(vital) or {}


class Reading(db.Model):
    __tablename__ = "readings"
    __table_args__ = (
        db.Index("ix_readings_patient_id_timestamp", "patient_id", "timestamp"),
    )

    id = db.Column(db.String, primary_key=True, default=lambda: uid("rd"))
    # back-reference only, readings outlive their patient
    patient_id = db.Column(db.String, nullable=False)
    timestamp = db.Column(db.DateTime, nullable=False, default=utcnow)
    heart_rate = db.Column(db.Float)
    temperature = db.Column(db.Float)
    blood_pressure_systolic = db.Column(db.Float)
    blood_pressure_diastolic = db.Column(db.Float)
    oxygen_saturation = db.Column(db.Float)
    is_alert = db.Column(db.Boolean, nullable=False, default=False)
