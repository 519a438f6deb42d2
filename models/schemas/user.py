from datetime import datetime

from marshmallow import Schema, fields, pre_load, validate, EXCLUDE

from models.base_model import utcnow
from models.user import ROLES, DEFAULT_ROLE

STATUSES = ("Active", "Away", "Inactive")
ACTIVE_WINDOW_SECONDS = 10 * 60
AWAY_WINDOW_SECONDS = 60 * 60

_not_blank = validate.Length(min=1, error="Field may not be blank.")


def _norm_email(v):
    return v.strip().lower() if isinstance(v, str) else v


def activity_status(last_active: datetime | None, now: datetime | None = None) -> str:
    """Active within 10 minutes, Away within an hour, otherwise Inactive."""
    if last_active is None:
        return "Inactive"
    elapsed = ((now or utcnow()) - last_active).total_seconds()
    if elapsed <= ACTIVE_WINDOW_SECONDS:
        return "Active"
    if elapsed <= AWAY_WINDOW_SECONDS:
        return "Away"
    return "Inactive"


def last_active_label(last_active: datetime | None, now: datetime | None = None) -> str:
    if last_active is None:
        return "Never"
    elapsed = max(((now or utcnow()) - last_active).total_seconds(), 0)
    if elapsed < 60:
        return "Just now"
    if elapsed < 3600:
        return f"{int(elapsed // 60)} mins ago"
    if elapsed < 86400:
        return f"{int(elapsed // 3600)} hours ago"
    return f"{int(elapsed // 86400)} days ago"


class UserLoginSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    email = fields.String(required=True, validate=_not_blank)
    password = fields.String(required=True, load_only=True, validate=_not_blank)

    @pre_load
    def normalize(self, data, **kwargs):
        if isinstance(data, dict) and "email" in data:
            data = dict(data, email=_norm_email(data["email"]))
        return data


class RefreshSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    refreshToken = fields.String(required=True, validate=_not_blank)


class UserCreateSchema(Schema):
    name = fields.String(required=True, validate=validate.Length(min=1, max=255))
    email = fields.Email(required=True)
    password = fields.String(
        required=True,
        load_only=True,
        validate=validate.Length(min=8, error="Password must be at least 8 characters long."),
    )
    role = fields.String(load_default=DEFAULT_ROLE, validate=validate.OneOf(ROLES))
    department = fields.String(allow_none=True, validate=validate.Length(max=100))

    @pre_load
    def normalize(self, data, **kwargs):
        if isinstance(data, dict) and "email" in data:
            data = dict(data, email=_norm_email(data["email"]))
        return data


class UserStatusSchema(Schema):
    status = fields.String(required=True, validate=validate.OneOf(STATUSES))


class UserOutSchema(Schema):
    id = fields.String()
    name = fields.String()
    email = fields.String()
    role = fields.String()
    department = fields.String(allow_none=True)


class UserListOutSchema(UserOutSchema):
    status = fields.Method("get_status")
    lastActive = fields.Method("get_last_active")
    lastActiveAt = fields.DateTime(attribute="last_active", allow_none=True)

    def get_status(self, obj):
        return activity_status(obj.last_active)

    def get_last_active(self, obj):
        return last_active_label(obj.last_active)
