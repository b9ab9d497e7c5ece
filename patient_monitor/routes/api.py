# patient_monitor/routes/api.py
from __future__ import annotations
import logging
from flask import Blueprint, current_app, jsonify
from ..extensions import db
from ..models import Patient, Reading
from ..schemas import patient_schema, patients_schema, readings_schema

api_bp = Blueprint("api", __name__, url_prefix="/api")
logger = logging.getLogger(__name__)


def error(http: int, message: str):
    """Return a JSON error payload with HTTP status."""
    return {"error": message}, http


def db_error(e: Exception):
    """Roll back the failed session and surface the database error as a 500."""
    db.session.rollback()
    logger.exception("Database error")
    return error(500, str(e))


@api_bp.get("/patients")
def list_patients():
    """Return every patient in the directory."""
    try:
        patients = Patient.query.order_by(Patient.id).all()
    except Exception as e:
        return db_error(e)
    return jsonify(patients_schema.dump(patients)), 200


@api_bp.get("/patients/<patient_id>")
def get_patient(patient_id):
    """Return one patient by its external patient id."""
    try:
        patient = Patient.query.filter_by(patient_id=patient_id).first()
    except Exception as e:
        return db_error(e)
    if not patient:
        return error(404, "Patient not found")
    return patient_schema.dump(patient), 200


@api_bp.get("/readings/<patient_id>")
def get_readings(patient_id):
    """
    Most recent readings for a patient, newest first.
    Capped at READINGS_LIMIT (100 by default); no pagination.
    """
    try:
        readings = (
            Reading.query.filter_by(patient_id=patient_id)
            .order_by(Reading.timestamp.desc())
            .limit(current_app.config["READINGS_LIMIT"])
            .all()
        )
    except Exception as e:
        return db_error(e)
    return jsonify(readings_schema.dump(readings)), 200
