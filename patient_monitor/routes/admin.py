import logging
from flask import Blueprint, request
from ..extensions import db
from ..seed import seed_sample_patients

admin_bp = Blueprint("admin", __name__, url_prefix="/admin")
logger = logging.getLogger(__name__)


def init_db() -> int:
    """Create tables and seed sample patients into an empty directory."""
    db.create_all()
    logger.info("Database initialized at %s", db.engine.url)
    return seed_sample_patients()


@admin_bp.route("/init-db", methods=["POST", "GET"])
def init_db_view():
    if request.method == "GET" and request.args.get("confirm") != "yes":
        return {"message": "Use POST or /admin/init-db?confirm=yes (local only)"}, 200
    seeded = init_db()
    return {"status": "initialized", "seeded": seeded}, 201
