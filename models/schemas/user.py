from marshmallow import Schema, fields, pre_load, validate, EXCLUDE

from models.user import Role

MIN_PASSWORD = 6
ROLE_CHOICES = validate.OneOf([r.value for r in Role], error="Role must be either admin or user")


def _norm_email(v):
    return v.strip().lower() if isinstance(v, str) else v


def _strip(v):
    return v.strip() if isinstance(v, str) else v


def _name_length(label):
    return validate.Length(min=2, max=50, error=f"{label} must be between 2 and 50 characters")


def _password(data_key=None, label="Password"):
    return fields.String(
        required=True,
        load_only=True,
        data_key=data_key,
        validate=validate.Length(min=MIN_PASSWORD, error=f"{label} must be at least {MIN_PASSWORD} characters long"),
    )


class _InputSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    @pre_load
    def normalize(self, data, **kwargs):
        if not isinstance(data, dict):
            return data
        data = dict(data)
        if "email" in data:
            data["email"] = _norm_email(data["email"])
        for key in ("firstName", "lastName"):
            if key in data:
                data[key] = _strip(data[key])
        return data


class RegisterSchema(_InputSchema):
    email = fields.Email(required=True, error_messages={"invalid": "Please provide a valid email"})
    password = _password()
    first_name = fields.String(required=True, data_key="firstName", validate=_name_length("First name"))
    last_name = fields.String(required=True, data_key="lastName", validate=_name_length("Last name"))


class UserCreateSchema(RegisterSchema):
    """Admin creating a user: registration fields plus an optional role."""
    role = fields.String(load_default=Role.USER.value, validate=ROLE_CHOICES)


class LoginSchema(_InputSchema):
    email = fields.Email(required=True, error_messages={"invalid": "Please provide a valid email"})
    password = fields.String(required=True, load_only=True, validate=validate.Length(min=1, error="Password is required"))


class EmailSchema(_InputSchema):
    email = fields.Email(required=True, error_messages={"invalid": "Please provide a valid email"})


class TokenSchema(_InputSchema):
    token = fields.String(required=True, validate=validate.Length(min=1, error="Token is required"))


class ResetPasswordSchema(TokenSchema):
    password = _password()


class ChangePasswordSchema(_InputSchema):
    current_password = fields.String(
        required=True, load_only=True, data_key="currentPassword",
        validate=validate.Length(min=1, error="Current password is required"),
    )
    new_password = _password(data_key="newPassword", label="New password")


class ProfileUpdateSchema(_InputSchema):
    first_name = fields.String(data_key="firstName", validate=_name_length("First name"))
    last_name = fields.String(data_key="lastName", validate=_name_length("Last name"))


class UserUpdateSchema(ProfileUpdateSchema):
    role = fields.String(validate=ROLE_CHOICES)


class UserOutSchema(Schema):
    id = fields.String()
    email = fields.String()
    first_name = fields.String(data_key="firstName")
    last_name = fields.String(data_key="lastName")
    role = fields.Method("get_role")
    is_email_verified = fields.Boolean(data_key="isEmailVerified")
    is_active = fields.Boolean(data_key="isActive")
    last_login_at = fields.DateTime(data_key="lastLoginAt", allow_none=True)
    created_at = fields.DateTime(data_key="createdAt")
    updated_at = fields.DateTime(data_key="updatedAt")

    def get_role(self, obj):
        role = getattr(obj, "role", None)
        return role.value if isinstance(role, Role) else role
