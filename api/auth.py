"""
Authentication blueprint:
- POST /auth/register
- POST /auth/login
- POST /auth/verify-email
- POST /auth/forgot-password
- POST /auth/reset-password
- POST /auth/logout               (bearer token)
- POST /auth/change-password      (bearer token)
- POST /auth/resend-verification  (bearer token)

Login and forgot-password never reveal whether an email is registered.
"""
from __future__ import annotations

import logging

from flask import Blueprint, request, g, abort, current_app
from sqlalchemy.exc import IntegrityError

from models.schemas.user import (
    ChangePasswordSchema,
    EmailSchema,
    LoginSchema,
    RegisterSchema,
    ResetPasswordSchema,
    TokenSchema,
    UserOutSchema,
)
from utils.decorators import jwt_required
from utils.mailer import MailDeliveryError
from .errors import error_response, success_response

logger = logging.getLogger(__name__)

bp = Blueprint("auth", __name__)

register_schema = RegisterSchema()
login_schema = LoginSchema()
email_schema = EmailSchema()
token_schema = TokenSchema()
reset_password_schema = ResetPasswordSchema()
change_password_schema = ChangePasswordSchema()
user_out_schema = UserOutSchema()

INVALID_CREDENTIALS = "Invalid credentials"
RESET_LINK_SENT = "If the email exists, a password reset link has been sent"
EMAIL_TAKEN = "User with this email already exists"


def _services():
    ext = current_app.extensions
    return ext["user_store"], ext["token_service"], ext["mailer"]


def _body() -> dict:
    return request.get_json(silent=True) or {}


@bp.post("/register")
def register():
    """
    Register a new user.
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      - in: body
        name: body
        schema:
          type: object
          required: [email, password, firstName, lastName]
          properties:
            email: { type: string }
            password: { type: string }
            firstName: { type: string }
            lastName: { type: string }
    responses:
      201:
        description: Created (returns user and token)
      400:
        description: Validation error or email already registered
    """
    data = register_schema.load(_body())
    users, tokens, mailer = _services()

    if users.find_by_email(data["email"]):
        abort(400, description=EMAIL_TAKEN)

    try:
        user = users.create(
            email=data["email"],
            password=data["password"],
            first_name=data["first_name"],
            last_name=data["last_name"],
        )
    except IntegrityError:
        # A concurrent registration took the email after the lookup above
        abort(400, description=EMAIL_TAKEN)
    verification_token = users.issue_email_verification(user, current_app.config["EMAIL_VERIFICATION_EXPIRES"])

    try:
        mailer.send_verification_email(user, verification_token)
    except MailDeliveryError:
        # Registration stands; the user can ask for another link
        logger.exception("Error sending verification email to %s", user.email)

    return success_response(
        "User registered successfully. Please check your email to verify your account.",
        data={"user": user_out_schema.dump(user), "token": tokens.issue_access_token(user.id)},
        status=201,
    )


@bp.post("/login")
def login():
    """
    Login: return the user and a bearer token
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             email: { type: string }
             password: { type: string }
    responses:
      200:
        description: OK (returns token)
      401:
        description: Invalid credentials
    """
    data = login_schema.load(_body())
    users, tokens, _ = _services()

    user = users.find_by_email(data["email"])
    if not users.check_password(user, data["password"]) or not user.is_active:
        logger.info("Failed login for %s", data["email"])
        abort(401, description=INVALID_CREDENTIALS)

    users.record_login(user)
    return success_response(
        "Login successful",
        data={"user": user_out_schema.dump(user), "token": tokens.issue_access_token(user.id)},
    )


@bp.post("/verify-email")
def verify_email():
    """
    Verify an email address with the token from the verification mail
    ---
    tags:
      - Auth
    parameters:
      - in: body
        name: body
        schema:
          type: object
          properties:
            token: { type: string }
    responses:
      200: { description: Email verified }
      400: { description: Invalid or expired token }
    """
    data = token_schema.load(_body())
    users, _, _ = _services()

    user = users.find_by_verification_token(data["token"])
    if not user:
        abort(400, description="Invalid or expired verification token")

    users.mark_email_verified(user)
    return success_response("Email verified successfully")


@bp.post("/forgot-password")
def forgot_password():
    """
    Request a password reset link. Same answer whether or not the email exists.
    ---
    tags:
      - Auth
    parameters:
      - in: body
        name: body
        schema:
          type: object
          properties:
            email: { type: string }
    responses:
      200: { description: Generic acknowledgement }
      500: { description: Reset email could not be sent }
    """
    data = email_schema.load(_body())
    users, _, mailer = _services()

    user = users.find_by_email(data["email"])
    if user and user.is_active:
        reset_token = users.issue_password_reset(user, current_app.config["PASSWORD_RESET_EXPIRES"])
        try:
            mailer.send_password_reset_email(user, reset_token)
        except MailDeliveryError:
            logger.exception("Error sending reset email to %s", user.email)
            return error_response("Error sending password reset email", 500)

    return success_response(RESET_LINK_SENT)


@bp.post("/reset-password")
def reset_password():
    """
    Set a new password with the token from the reset mail
    ---
    tags:
      - Auth
    parameters:
      - in: body
        name: body
        schema:
          type: object
          properties:
            token: { type: string }
            password: { type: string }
    responses:
      200: { description: Password reset }
      400: { description: Invalid or expired token }
    """
    data = reset_password_schema.load(_body())
    users, _, _ = _services()

    user = users.find_by_reset_token(data["token"])
    if not user:
        abort(400, description="Invalid or expired reset token")

    users.reset_password(user, data["password"])
    return success_response("Password reset successfully")


@bp.post("/logout")
@jwt_required()
def logout():
    """
    Logout: blacklist the presented bearer token until it would have expired
    ---
    tags:
      - Auth
    security:
      - Bearer: []
    responses:
      200: { description: Logged out }
      401: { description: Unauthorized }
    """
    ext = current_app.extensions
    token = g.current_token
    ext["revocation_ledger"].record(
        token=token,
        user_id=g.current_user.id,
        expires_at=ext["token_service"].expiry_of(token),
        reason="logout",
    )
    return success_response("Logout successful")


@bp.post("/change-password")
@jwt_required()
def change_password():
    """
    Change the caller's password
    ---
    tags:
      - Auth
    security:
      - Bearer: []
    parameters:
      - in: body
        name: body
        schema:
          type: object
          properties:
            currentPassword: { type: string }
            newPassword: { type: string }
    responses:
      200: { description: Password changed }
      400: { description: Current password is incorrect }
    """
    data = change_password_schema.load(_body())
    users, _, _ = _services()
    user = g.current_user

    if not users.check_password(user, data["current_password"]):
        abort(400, description="Current password is incorrect")

    users.set_password(user, data["new_password"])
    return success_response("Password changed successfully")


@bp.post("/resend-verification")
@jwt_required()
def resend_verification():
    """
    Issue a fresh verification token and mail it
    ---
    tags:
      - Auth
    security:
      - Bearer: []
    responses:
      200: { description: Sent }
      400: { description: Already verified }
    """
    users, _, mailer = _services()
    user = g.current_user

    if user.is_email_verified:
        abort(400, description="Email is already verified")

    verification_token = users.issue_email_verification(user, current_app.config["EMAIL_VERIFICATION_EXPIRES"])
    try:
        mailer.send_verification_email(user, verification_token)
    except MailDeliveryError:
        logger.exception("Error sending verification email to %s", user.email)
        return error_response("Error sending verification email", 500)

    return success_response("Verification email sent successfully")
