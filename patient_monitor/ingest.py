# patient_monitor/ingest.py
"""
ThingSpeak telemetry ingestion.

Each MQTT message carries one field of one channel, e.g.

    channels/1234567/subscribe/fields/field1  ->  b"72.0"

The message is mapped to a patient and a vital, checked against that
patient's thresholds, merged into the patient's current reading (or a new
one) and then broadcast to connected viewers.
"""
from __future__ import annotations

import logging
import math
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional, Tuple

from .extensions import db
from .models import Patient, Reading, utcnow
from .schemas import validate_reading

logger = logging.getLogger(__name__)


class ReadingRejected(Exception):
    """Reading values failed validation and were not persisted."""

    def __init__(self, errors):
        super().__init__(f"Invalid reading: {errors}")
        self.errors = errors


@dataclass(frozen=True)
class VitalField:
    attr: str                  # Reading column
    key: str                   # key used in broadcast payloads
    threshold: Optional[str]   # key in Patient.vital_thresholds, None = never alerts

    def breaches(self, patient: Patient, value: float) -> bool:
        """True when value lies strictly outside the patient's range."""
        if self.threshold is None:
            return False
        bounds = patient.threshold_for(self.threshold)
        lo, hi = bounds.get("min"), bounds.get("max")
        return (lo is not None and value < lo) or (hi is not None and value > hi)


FIELD_MAP = {
    "field1": VitalField("heart_rate", "heartRate", "heart_rate"),
    "field2": VitalField("temperature", "temperature", "temperature"),
    "field3": VitalField("blood_pressure_systolic", "bloodPressureSystolic", "blood_pressure"),
    "field4": VitalField("blood_pressure_diastolic", "bloodPressureDiastolic", None),
    "field5": VitalField("oxygen_saturation", "oxygenSaturation", "oxygen_saturation"),
}

VITAL_ATTRS = tuple(v.attr for v in FIELD_MAP.values())


def parse_topic(topic: str) -> Optional[Tuple[str, str]]:
    """Split 'channels/<id>/subscribe/fields/<field>' into (channel_id, field)."""
    parts = topic.split("/")
    if (
        len(parts) == 5
        and parts[0] == "channels"
        and parts[2] == "subscribe"
        and parts[3] == "fields"
        and parts[1]
        and parts[4]
    ):
        return parts[1], parts[4]
    return None


def parse_value(payload) -> float:
    """Parse a decimal payload; raises ValueError for anything non-finite."""
    text = payload.decode("utf-8") if isinstance(payload, (bytes, bytearray)) else str(payload)
    value = float(text.strip())
    if not math.isfinite(value):
        raise ValueError(f"non-finite value: {text!r}")
    return value


class KeyedLock:
    """One mutex per key; serializes merge-or-create for a single patient."""

    def __init__(self):
        self._locks: dict[str, threading.Lock] = {}
        self._guard = threading.Lock()

    def _lock_for(self, key: str) -> threading.Lock:
        with self._guard:
            return self._locks.setdefault(key, threading.Lock())

    @contextmanager
    def hold(self, key: str):
        lock = self._lock_for(key)
        with lock:
            yield


class IngestionPipeline:
    def __init__(
        self,
        broadcaster,
        window_seconds: int = 60,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.broadcaster = broadcaster
        self.window = timedelta(seconds=window_seconds)
        self.clock = clock
        self.locks = KeyedLock()

    def handle(self, topic: str, payload) -> Optional[Reading]:
        """
        Process one telemetry message. Never raises; failures are logged
        and the message is dropped. Returns the persisted reading or None.
        """
        try:
            return self._process(topic, payload)
        except ReadingRejected as e:
            db.session.rollback()
            logger.warning("Dropped telemetry on %s: %s", topic, e.errors)
        except Exception:
            db.session.rollback()
            logger.exception("Error processing telemetry message on %s", topic)
        return None

    def _process(self, topic: str, payload) -> Optional[Reading]:
        parsed = parse_topic(topic)
        if parsed is None:
            logger.warning("Ignoring message on unexpected topic %s", topic)
            return None
        channel_id, field_name = parsed

        vital = FIELD_MAP.get(field_name)
        if vital is None:
            logger.debug("Ignoring unmapped field %s on channel %s", field_name, channel_id)
            return None

        patient = Patient.query.filter_by(thingspeak_channel_id=channel_id).first()
        if patient is None:
            logger.debug("No patient linked to channel %s", channel_id)
            return None

        try:
            value = parse_value(payload)
        except ValueError:
            logger.warning("Rejected non-numeric payload %r on %s", payload, topic)
            return None

        is_alert = vital.breaches(patient, value)
        with self.locks.hold(patient.patient_id):
            reading = self.merge_or_create(patient.patient_id, {vital.attr: value}, is_alert)

        fields = {vital.key: value}
        stamp = self.clock().isoformat() + "Z"
        self.broadcaster.patient_update(patient.patient_id, fields, stamp, is_alert)
        if is_alert:
            logger.info("Alert for patient %s: %s", patient.patient_id, fields)
            self.broadcaster.patient_alert(patient.patient_id, patient.name, fields, stamp)
        return reading

    def merge_or_create(self, patient_id: str, updates: dict, is_alert: bool) -> Reading:
        """
        Fold updates into the patient's newest reading inside the window, or
        start a new reading. The alert flag is OR-ed and never cleared.
        """
        now = self.clock()
        reading = (
            Reading.query
            .filter(Reading.patient_id == patient_id, Reading.timestamp >= now - self.window)
            .order_by(Reading.timestamp.desc())
            .first()
        )

        values = {attr: getattr(reading, attr) for attr in VITAL_ATTRS} if reading else {}
        values.update(updates)
        values["patient_id"] = patient_id
        values["is_alert"] = bool(reading is not None and reading.is_alert) or is_alert

        result = validate_reading(values)
        if not result.ok:
            raise ReadingRejected(result.errors)

        if reading is None:
            reading = Reading(patient_id=patient_id, timestamp=now)
            db.session.add(reading)
            logger.debug("New reading for patient %s", patient_id)
        for attr, value in updates.items():
            setattr(reading, attr, value)
        reading.is_alert = values["is_alert"]
        db.session.commit()
        return reading
