"""Health check endpoint.

Provides health status information for load balancers and monitoring.
"""

from datetime import datetime, timezone
from typing import Literal

from flask import Blueprint, jsonify
from pydantic import BaseModel, ConfigDict

from yelp_camp.context import get_runtime

bp = Blueprint("health", __name__)


class HealthResponse(BaseModel):
    """Health check response model.

    Attributes:
        status: "healthy" when the database answers, "degraded" otherwise.
        version: Application version string.
        timestamp: UTC time of the check.
    """

    status: Literal["healthy", "degraded"]
    version: str
    timestamp: datetime

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "status": "healthy",
                "version": "0.1.0",
                "timestamp": "2026-01-14T12:00:00Z",
            }
        }
    )


@bp.get("/health")
def health_check():
    """Report application and database health.

    Returns:
        JSON body with status 200 when healthy, 503 when the database check
        fails.
    """
    runtime = get_runtime()
    db_ok = runtime.check_db()

    payload = HealthResponse(
        status="healthy" if db_ok else "degraded",
        version=runtime.settings.app_version,
        timestamp=datetime.now(timezone.utc),
    )
    return jsonify(payload.model_dump(mode="json")), 200 if db_ok else 503
