# Overview: Flask API routes for health checks.

"""
System health endpoint.

Reports database reachability and basic table counts for deployment checks.
"""

import time
from flask import Blueprint, current_app, jsonify

from ..extensions import db
from ..models import Employee, Location, SessionToken, STATUS_CHECKED_IN
from ..time_utils import utcnow, to_utc_z


system_bp = Blueprint("system", __name__, url_prefix="/api")


def check_database_health() -> dict:
    start_time = time.time()
    try:
        employee_count = db.session.query(Employee).count()
        open_sessions = db.session.query(Location).filter_by(status=STATUS_CHECKED_IN).count()
        active_tokens = db.session.query(SessionToken).filter_by(is_revoked=False).count()

        return {
            "status": "healthy",
            "latency_ms": round((time.time() - start_time) * 1000, 2),
            "details": {
                "employees": employee_count,
                "open_sessions": open_sessions,
                "active_tokens": active_tokens,
            }
        }
    except Exception:
        current_app.logger.exception("Database health check failed")
        db.session.rollback()
        return {
            "status": "unhealthy",
            "latency_ms": round((time.time() - start_time) * 1000, 2),
            "error": "Database error"
        }


@system_bp.get("/health")
def health():
    database = check_database_health()
    healthy = database["status"] == "healthy"
    body = {
        "status": "ok" if healthy else "degraded",
        "time": to_utc_z(utcnow()),
        "checks": {"database": database},
    }
    return jsonify(body), 200 if healthy else 503
