"""
Authorization predicates.

Each predicate is a pure function of an AccessContext; authorize() turns a
failed check into the right HTTP error. A missing identity is always 401,
never 403.
"""
from __future__ import annotations

import uuid
from typing import Any, Callable, NamedTuple, Optional

from flask import abort

from models.user import Role

AUTH_REQUIRED = "Authentication required"
INSUFFICIENT_PERMISSIONS = "Access denied. Insufficient permissions."
OWN_RESOURCES_ONLY = "Access denied. You can only access your own resources."


def canonical_id(value: Optional[str]) -> Optional[str]:
    """Lower-case hyphenated form of a UUID string. Anything else comes back unchanged."""
    if value is None:
        return None
    try:
        return str(uuid.UUID(str(value)))
    except ValueError:
        return value


class AccessContext(NamedTuple):
    """Resolved caller plus the id of the user the request is about."""
    identity: Optional[Any]
    resource_owner_id: Optional[str] = None

    @property
    def owner_id(self) -> Optional[str]:
        # No subject in the route means the caller is asking about themselves
        if self.resource_owner_id is not None:
            return canonical_id(self.resource_owner_id)
        return getattr(self.identity, "id", None)


def has_role(ctx: AccessContext, role: Role | str) -> bool:
    if ctx.identity is None:
        return False
    return Role(ctx.identity.role) == Role(role)


def is_admin(ctx: AccessContext) -> bool:
    return has_role(ctx, Role.ADMIN)


def is_admin_or_owner(ctx: AccessContext) -> bool:
    if ctx.identity is None:
        return False
    return is_admin(ctx) or ctx.identity.id == ctx.owner_id


def authorize(ctx: AccessContext, predicate: Callable[[AccessContext], bool], message: str) -> None:
    if ctx.identity is None:
        abort(401, description=AUTH_REQUIRED)
    if not predicate(ctx):
        abort(403, description=message)
