from __future__ import annotations

import logging
from functools import wraps

from flask import abort, current_app, g, request
from werkzeug.exceptions import HTTPException

from utils.access import (
    INSUFFICIENT_PERMISSIONS,
    OWN_RESOURCES_ONLY,
    AccessContext,
    authorize,
    has_role,
    is_admin_or_owner,
)
from utils.security import TokenError, TokenExpired

logger = logging.getLogger(__name__)

NO_TOKEN = "Access denied. No token provided."
TOKEN_REVOKED = "Token has been invalidated. Please login again."
INVALID_TOKEN = "Invalid token."
USER_NOT_FOUND = "Invalid token or user not found."


def bearer_token() -> str | None:
    """Token from an `Authorization: Bearer <token>` header, else None."""
    auth = request.headers.get("Authorization", "")
    if not auth.startswith("Bearer "):
        return None
    token = auth[len("Bearer "):].strip()
    return token or None


def authenticate_request():
    """
    Resolve the caller from the bearer token or abort with 401.

    Order matters: the ledger is consulted before the signature, since a
    validly signed token may still have been logged out.
    """
    token = bearer_token()
    if not token:
        abort(401, description=NO_TOKEN)

    ext = current_app.extensions
    if ext["revocation_ledger"].is_revoked(token):
        abort(401, description=TOKEN_REVOKED)

    try:
        decoded = ext["token_service"].decode(token)
    except TokenError as e:
        logger.debug("Rejected bearer token (%s): %s",
                     "expired" if isinstance(e, TokenExpired) else "invalid", e)
        abort(401, description=INVALID_TOKEN)

    user = ext["user_store"].get_active(decoded.user_id)
    if user is None:
        abort(401, description=USER_NOT_FOUND)

    g.current_user = user
    g.current_token = token
    return user


def jwt_required():
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            authenticate_request()
            return fn(*args, **kwargs)

        return wrapper

    return decorator


def jwt_optional():
    """Same checks as jwt_required, but any failure just leaves the caller anonymous."""
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            g.current_user = None
            g.current_token = None
            if bearer_token():
                try:
                    authenticate_request()
                except HTTPException:
                    g.current_user = None
                    g.current_token = None
            return fn(*args, **kwargs)

        return wrapper

    return decorator


def _access_context(owner_id=None) -> AccessContext:
    return AccessContext(identity=getattr(g, "current_user", None), resource_owner_id=owner_id)


def roles_required(role: str):
    """
    Allow access only if the caller's role is exactly `role`.
    Runs the auth gate first.
    """
    def decorator(fn):
        @wraps(fn)
        @jwt_required()
        def wrapper(*args, **kwargs):
            authorize(_access_context(), lambda ctx: has_role(ctx, role), INSUFFICIENT_PERMISSIONS)
            return fn(*args, **kwargs)

        return wrapper

    return decorator


def admin_or_owner(param: str = "user_id"):
    """
    Allow admins, or the user the route's `param` refers to.
    Without the route parameter the caller is checked against themselves.
    """
    def decorator(fn):
        @wraps(fn)
        @jwt_required()
        def wrapper(*args, **kwargs):
            authorize(_access_context(kwargs.get(param)), is_admin_or_owner, OWN_RESOURCES_ONLY)
            return fn(*args, **kwargs)

        return wrapper

    return decorator
