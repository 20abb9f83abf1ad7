from marshmallow import fields, validate

from hundred_days.extensions import ma
from hundred_days.models.subscription import Subscription


class SubscriptionSchema(ma.SQLAlchemyAutoSchema):
    class Meta:
        model = Subscription
        exclude = ("user_id", "created_at")

    is_active = fields.Boolean(dump_only=True)
    days_remaining = fields.Integer(dump_only=True)


class ReceiptSchema(ma.Schema):
    receipt_data = fields.String(required=True, validate=validate.Length(min=1))


class AuthorizationSchema(ma.Schema):
    granted = fields.Boolean(required=True)
    push_token = fields.String(load_default=None, allow_none=True)


class ReminderTimeSchema(ma.Schema):
    hour = fields.Integer(required=True, validate=validate.Range(min=0, max=23))
    minute = fields.Integer(load_default=0, validate=validate.Range(min=0, max=59))


subscription_schema = SubscriptionSchema()
receipt_schema = ReceiptSchema()
authorization_schema = AuthorizationSchema()
reminder_time_schema = ReminderTimeSchema()
