# patient_monitor/schemas.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from marshmallow import Schema, ValidationError, fields, validate, validates_schema


class UTCDateTime(fields.DateTime):
    """Naive UTC datetimes rendered as ISO8601 with a trailing 'Z'."""

    def _serialize(self, value, attr, obj, **kwargs):
        if value is None:
            return None
        return value.isoformat() + "Z"


class ThresholdSchema(Schema):
    min = fields.Float(allow_none=True)
    max = fields.Float(allow_none=True)

    @validates_schema
    def check_bounds(self, data, **kwargs):
        lo, hi = data.get("min"), data.get("max")
        if lo is not None and hi is not None and lo > hi:
            raise ValidationError("min must not exceed max", field_name="min")


class VitalThresholdsSchema(Schema):
    heart_rate = fields.Nested(ThresholdSchema, data_key="heartRate")
    temperature = fields.Nested(ThresholdSchema)
    blood_pressure = fields.Nested(ThresholdSchema, data_key="bloodPressure")
    oxygen_saturation = fields.Nested(ThresholdSchema, data_key="oxygenSaturation")


class PatientSchema(Schema):
    patient_id = fields.String(required=True, data_key="patientId", validate=validate.Length(min=1))
    name = fields.String(required=True, validate=validate.Length(min=1))
    age = fields.Integer(allow_none=True, validate=validate.Range(min=0, max=150))
    gender = fields.String(allow_none=True)
    condition = fields.String(allow_none=True)
    thingspeak_channel_id = fields.String(allow_none=True, data_key="thingspeakChannelId")
    thingspeak_read_api_key = fields.String(allow_none=True, data_key="thingspeakReadApiKey")
    vital_thresholds = fields.Nested(VitalThresholdsSchema, data_key="vitalThresholds")
    last_updated = UTCDateTime(dump_only=True, data_key="lastUpdated")


_vital = dict(allow_none=True)


class ReadingInSchema(Schema):
    """Values about to be written to a reading row."""
    patient_id = fields.String(required=True, validate=validate.Length(min=1))
    heart_rate = fields.Float(**_vital)
    temperature = fields.Float(**_vital)
    blood_pressure_systolic = fields.Float(**_vital)
    blood_pressure_diastolic = fields.Float(**_vital)
    oxygen_saturation = fields.Float(**_vital)
    is_alert = fields.Boolean(required=True)


class ReadingSchema(Schema):
    id = fields.String()
    patient_id = fields.String(data_key="patientId")
    timestamp = UTCDateTime()
    heart_rate = fields.Float(allow_none=True, data_key="heartRate")
    temperature = fields.Float(allow_none=True)
    blood_pressure_systolic = fields.Float(allow_none=True, data_key="bloodPressureSystolic")
    blood_pressure_diastolic = fields.Float(allow_none=True, data_key="bloodPressureDiastolic")
    oxygen_saturation = fields.Float(allow_none=True, data_key="oxygenSaturation")
    is_alert = fields.Boolean(data_key="isAlert")


@dataclass
class ValidationResult:
    ok: bool
    data: dict[str, Any] | None = None
    errors: dict[str, Any] = field(default_factory=dict)


def _validate(schema: Schema, payload: Any) -> ValidationResult:
    try:
        return ValidationResult(ok=True, data=schema.load(payload))
    except ValidationError as e:
        messages = e.messages if isinstance(e.messages, dict) else {"_schema": e.messages}
        return ValidationResult(ok=False, errors=messages)


def validate_patient(payload: Any) -> ValidationResult:
    """Validate a patient record in its JSON (camelCase) form."""
    return _validate(PatientSchema(), payload)


def validate_reading(payload: Any) -> ValidationResult:
    """
    Validate reading values before they are persisted.
    NaN and infinity are rejected by the Float fields.
    """
    return _validate(ReadingInSchema(), payload)


patient_schema = PatientSchema()
patients_schema = PatientSchema(many=True)
readings_schema = ReadingSchema(many=True)
