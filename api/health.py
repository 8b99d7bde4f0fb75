from datetime import datetime, timezone

from flask import Blueprint, current_app, g

from utils.decorators import jwt_optional
from .versioning import api_prefix, current_version, supported_versions

bp = Blueprint("health", __name__)


@bp.get("/health")
def health():
    """
    Health check
    ---
    tags:
      - Health
    responses:
      200:
        description: API is up
        schema:
          type: object
          properties:
            status:
              type: string
              example: OK
            apiVersion:
              type: string
              example: v1
    """
    return {
        "status": "OK",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": current_app.config["APP_ENV"],
        "apiVersion": g.get("api_version") or current_version(),
        "supportedVersions": supported_versions(),
        "apiPrefix": api_prefix() or "none",
    }, 200


@bp.get("/version")
@jwt_optional()
def version():
    """
    API version info. Reports the caller when a valid bearer token is sent.
    ---
    tags:
      - Health
    responses:
      200:
        description: Version info
    """
    user = g.current_user
    return {
        "currentVersion": current_version(),
        "requestedVersion": g.get("requested_api_version"),
        "supportedVersions": supported_versions(),
        "apiPrefix": api_prefix() or "none",
        "authenticated": user is not None,
        "userId": user.id if user is not None else None,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }, 200
