import logging

from . import create_app
from .extensions import db
from .seed import seed_sample_patients
from .telemetry import TelemetryClient

logger = logging.getLogger("patient_monitor")


def main():
    app = create_app()
    with app.app_context():
        db.create_all()
        if app.config["SEED_SAMPLE_DATA"]:
            seed_sample_patients()

    telemetry = None
    if app.config["TELEMETRY_ENABLED"]:
        telemetry = TelemetryClient(app, app.extensions["ingestion"])
        telemetry.start()

    socketio = app.extensions["socketio"]
    host, port = app.config["HOST"], app.config["PORT"]
    logger.info("Server running on %s:%s", host, port)
    try:
        socketio.run(app, host=host, port=port, allow_unsafe_werkzeug=True)
    finally:
        if telemetry is not None:
            telemetry.stop()


if __name__ == "__main__":
    main()
