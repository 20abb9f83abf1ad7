from marshmallow import fields, validate, pre_load

from hundred_days.extensions import ma
from hundred_days.models.challenge import Challenge
from hundred_days.models.check_in import CheckInRecord


class ChallengeSchema(ma.SQLAlchemyAutoSchema):
    class Meta:
        model = Challenge
        include_fk = True
        exclude = ("owner_id",)

    is_completed = fields.Boolean(dump_only=True)
    days_remaining = fields.Integer(dump_only=True)
    progress_percentage = fields.Float(dump_only=True)
    end_date = fields.Date(dump_only=True)


class CheckInSchema(ma.SQLAlchemyAutoSchema):
    class Meta:
        model = CheckInRecord
        include_fk = True
        exclude = ("user_id",)

    quote = fields.Method("get_quote")

    def get_quote(self, obj):
        return obj.quote.to_dict() if obj.quote else None


def _strip_title(data):
    if isinstance(data, dict) and isinstance(data.get("title"), str):
        data = dict(data, title=data["title"].strip())
    return data


class CreateChallengeSchema(ma.Schema):
    title = fields.String(required=True, validate=validate.Length(min=1, max=100))
    is_timed = fields.Boolean(load_default=False)

    @pre_load
    def strip_title(self, data, **kwargs):
        return _strip_title(data)


class UpdateChallengeSchema(ma.Schema):
    title = fields.String(required=True, validate=validate.Length(min=1, max=100))

    @pre_load
    def strip_title(self, data, **kwargs):
        return _strip_title(data)


class CheckInRequestSchema(ma.Schema):
    note = fields.String(load_default=None, allow_none=True, validate=validate.Length(max=2000))
    duration_minutes = fields.Integer(load_default=None, allow_none=True, validate=validate.Range(min=1, max=24 * 60))
    photo_url = fields.Url(load_default=None, allow_none=True)
    quote_id = fields.Integer(load_default=None, allow_none=True)
    prompt_shown = fields.String(load_default=None, allow_none=True, validate=validate.Length(max=255))


class UpdateNoteSchema(ma.Schema):
    note = fields.String(required=True, allow_none=True, validate=validate.Length(max=2000))


challenge_schema = ChallengeSchema()
challenges_schema = ChallengeSchema(many=True)
check_in_schema = CheckInSchema()
check_ins_schema = CheckInSchema(many=True)
create_challenge_schema = CreateChallengeSchema()
update_challenge_schema = UpdateChallengeSchema()
check_in_request_schema = CheckInRequestSchema()
update_note_schema = UpdateNoteSchema()


def dump_challenge(challenge, today):
    """Challenge payload including the day-relative flags."""
    data = challenge_schema.dump(challenge)
    data["is_completed_today"] = challenge.is_completed_today(today)
    data["has_streak_expired"] = challenge.has_streak_expired(today)
    data["is_streak_active"] = challenge.is_streak_active(today)
    return data


def dump_challenges(challenges, today):
    return [dump_challenge(c, today) for c in challenges]
