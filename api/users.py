from __future__ import annotations

import uuid
from typing import Tuple

from flask import Blueprint, request, g, abort, current_app

from models.schemas.user import (
    ProfileUpdateSchema,
    UserCreateSchema,
    UserOutSchema,
    UserUpdateSchema,
)
from models.user import Role
from utils.decorators import admin_or_owner, jwt_required, roles_required
from .errors import success_response

bp = Blueprint("users", __name__)

user_create_schema = UserCreateSchema()
profile_update_schema = ProfileUpdateSchema()
user_update_schema = UserUpdateSchema()
user_out_schema = UserOutSchema()
user_list_out_schema = UserOutSchema(many=True)


def _users():
    return current_app.extensions["user_store"]


def parse_pagination() -> Tuple[int, int]:
    cfg = current_app.config
    try:
        page = int(request.args.get("page", "1"))
        limit = int(request.args.get("limit", str(cfg["DEFAULT_PAGE_SIZE"])))
    except ValueError:
        abort(400, description="page and limit must be integers")
    page = max(page, 1)
    limit = max(1, min(limit, cfg["MAX_PAGE_SIZE"]))
    return page, limit


def parse_user_id(user_id: str) -> str:
    """Reject malformed ids up front instead of letting them reach the database."""
    try:
        return str(uuid.UUID(user_id))
    except (ValueError, TypeError):
        abort(400, description="Invalid user id")


def get_active_user_or_404(user_id: str):
    user = _users().get_active(parse_user_id(user_id))
    if not user:
        abort(404, description="User not found")
    return user


@bp.get("")
@roles_required("admin")
def list_users():
    """
    List active users (admin)
    ---
    tags:
      - Users
    security:
      - Bearer: []
    parameters:
      - in: query
        name: page
        type: integer
      - in: query
        name: limit
        type: integer
    responses:
      200: { description: OK }
      403: { description: Forbidden }
    """
    page, limit = parse_pagination()
    rows, total = _users().list_active(page, limit)
    total_pages = (total + limit - 1) // limit
    return success_response(
        "Users retrieved successfully",
        data={
            "users": user_list_out_schema.dump(rows),
            "pagination": {
                "currentPage": page,
                "totalPages": total_pages,
                "totalUsers": total,
                "hasNext": page * limit < total,
                "hasPrev": page > 1,
            },
        },
    )


@bp.post("")
@roles_required("admin")
def create_user():
    """
    Create a user (admin)
    ---
    tags:
      - Users
    security:
      - Bearer: []
    parameters:
      - in: body
        name: body
        schema:
          type: object
          properties:
            email: { type: string }
            password: { type: string }
            firstName: { type: string }
            lastName: { type: string }
            role: { type: string, enum: [admin, user] }
    responses:
      201: { description: Created }
      409: { description: Email already registered }
    """
    data = user_create_schema.load(request.get_json(silent=True) or {})
    users = _users()
    if users.find_by_email(data["email"]):
        abort(409, description="User with this email already exists")

    user = users.create(
        email=data["email"],
        password=data["password"],
        first_name=data["first_name"],
        last_name=data["last_name"],
        role=data["role"],
    )
    return success_response("User created successfully", data={"user": user_out_schema.dump(user)}, status=201)


@bp.get("/profile")
@jwt_required()
def get_profile():
    """
    Current user's profile
    ---
    tags:
      - Users
    security:
      - Bearer: []
    responses:
      200: { description: OK }
      401: { description: Unauthorized }
    """
    return success_response("Profile retrieved successfully", data={"user": user_out_schema.dump(g.current_user)})


@bp.put("/profile")
@jwt_required()
def update_profile():
    """
    Update the current user's names
    ---
    tags:
      - Users
    security:
      - Bearer: []
    parameters:
      - in: body
        name: body
        schema:
          type: object
          properties:
            firstName: { type: string }
            lastName: { type: string }
    responses:
      200: { description: OK }
    """
    data = profile_update_schema.load(request.get_json(silent=True) or {})
    user = _users().update(g.current_user, **data)
    return success_response("Profile updated successfully", data={"user": user_out_schema.dump(user)})


@bp.delete("/account")
@jwt_required()
def delete_account():
    """
    Deactivate the current user's account
    ---
    tags:
      - Users
    security:
      - Bearer: []
    responses:
      200: { description: Deactivated }
    """
    _users().deactivate(g.current_user)
    return success_response("Account deactivated successfully")


@bp.get("/<user_id>")
@admin_or_owner("user_id")
def get_user(user_id: str):
    """
    Get one user (admin, or the user themselves)
    ---
    tags:
      - Users
    security:
      - Bearer: []
    parameters:
      - in: path
        name: user_id
        type: string
        required: true
    responses:
      200: { description: OK }
      400: { description: Malformed id }
      403: { description: Forbidden }
      404: { description: Not found }
    """
    user = get_active_user_or_404(user_id)
    return success_response("User retrieved successfully", data={"user": user_out_schema.dump(user)})


@bp.put("/<user_id>")
@admin_or_owner("user_id")
def update_user(user_id: str):
    """
    Update a user (admin, or the user themselves). Only admins may change roles.
    ---
    tags:
      - Users
    security:
      - Bearer: []
    parameters:
      - in: path
        name: user_id
        type: string
        required: true
      - in: body
        name: body
        schema:
          type: object
          properties:
            firstName: { type: string }
            lastName: { type: string }
            role: { type: string, enum: [admin, user] }
    responses:
      200: { description: OK }
      404: { description: Not found }
    """
    data = user_update_schema.load(request.get_json(silent=True) or {})
    user = get_active_user_or_404(user_id)

    role = data.pop("role", None)
    if role and g.current_user.is_admin:
        data["role"] = Role(role)

    user = _users().update(user, **data)
    return success_response("User updated successfully", data={"user": user_out_schema.dump(user)})


@bp.delete("/<user_id>")
@roles_required("admin")
def delete_user(user_id: str):
    """
    Soft-delete a user (admin). Admins cannot delete themselves here.
    ---
    tags:
      - Users
    security:
      - Bearer: []
    parameters:
      - in: path
        name: user_id
        type: string
        required: true
    responses:
      200: { description: Deactivated }
      400: { description: Own account or malformed id }
      404: { description: Not found }
    """
    user = get_active_user_or_404(user_id)
    if user.id == g.current_user.id:
        abort(400, description="Cannot delete your own account")

    _users().deactivate(user)
    return success_response("User deleted successfully")
