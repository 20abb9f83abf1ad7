from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from marshmallow import ValidationError, fields, validate

from hundred_days.extensions import ma
from hundred_days.models.user import User

PASSWORD_MIN_LENGTH = 8


def validate_timezone(value):
    try:
        ZoneInfo(value)
    except (ZoneInfoNotFoundError, ValueError, OSError) as e:
        raise ValidationError(f"Unknown timezone: {value}") from e


class UserSchema(ma.SQLAlchemyAutoSchema):
    class Meta:
        model = User
        exclude = ("password_hash", "push_token", "provider_uid")


class RegisterSchema(ma.Schema):
    email = fields.Email(required=True)
    password = fields.String(required=True, load_only=True, validate=validate.Length(min=PASSWORD_MIN_LENGTH))
    display_name = fields.String(load_default=None, validate=validate.Length(min=2, max=150))
    timezone = fields.String(load_default="UTC", validate=validate_timezone)


class LoginSchema(ma.Schema):
    email = fields.Email(required=True)
    password = fields.String(required=True, load_only=True)


class FederatedSignInSchema(ma.Schema):
    provider = fields.String(required=True, validate=validate.OneOf(["google", "apple"]))
    id_token = fields.String(required=True)
    display_name = fields.String(load_default=None)


class UsernameSchema(ma.Schema):
    username = fields.String(required=True)


class TimezoneSchema(ma.Schema):
    timezone = fields.String(required=True, validate=validate_timezone)


user_schema = UserSchema()
register_schema = RegisterSchema()
login_schema = LoginSchema()
federated_sign_in_schema = FederatedSignInSchema()
username_schema = UsernameSchema()
timezone_schema = TimezoneSchema()
