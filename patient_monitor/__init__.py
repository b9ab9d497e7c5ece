import logging

import click
from flask import Flask, request
from flask_socketio import SocketIO
from .extensions import db, cors
from .config import Config
from .broadcast import Broadcaster
from .ingest import IngestionPipeline

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

logger = logging.getLogger(__name__)


def create_app(config_class: type = Config) -> Flask:
    app = Flask(__name__)
    app.config.from_object(config_class)

    logging.basicConfig(level=app.config["LOG_LEVEL"], format=LOG_FORMAT)

    db.init_app(app)
    cors.init_app(app, origins=app.config["CORS_ORIGINS"])

    socketio = SocketIO(app, cors_allowed_origins=app.config["CORS_ORIGINS"])
    broadcaster = Broadcaster(socketio)
    app.extensions["broadcaster"] = broadcaster
    app.extensions["ingestion"] = IngestionPipeline(
        broadcaster, window_seconds=app.config["READING_WINDOW_SECONDS"]
    )

    @app.before_request
    def _log_req():
        logger.debug("REQ: %s %s", request.method, request.path)

    @app.get("/health")
    def health():
        return {"status": "OK"}, 200

    # register blueprints
    from .routes.admin import admin_bp, init_db
    app.register_blueprint(admin_bp)

    from .routes.api import api_bp
    app.register_blueprint(api_bp)

    @app.cli.command("init-db")
    def init_db_command():
        """Create tables and seed sample patients."""
        seeded = init_db()
        click.echo(f"Database initialized, {seeded} sample patients created")

    return app
