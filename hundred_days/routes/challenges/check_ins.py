from flask import jsonify, request

from hundred_days.context import current_context
from hundred_days.schemas.challenge import (
    check_in_request_schema,
    check_in_schema,
    check_ins_schema,
    dump_challenge,
    update_note_schema,
)
from hundred_days.services.check_in_service import CheckInService
from hundred_days.utils.decorators import login_required_user
from . import challenges_bp


@challenges_bp.route("/<challenge_id>/check-ins", methods=["POST"])
@login_required_user
def check_in(current_user, challenge_id):
    ctx = current_context()
    data = check_in_request_schema.load(request.get_json(silent=True) or {})
    strict = request.args.get("strict", "false").lower() in ("1", "true", "yes")
    result = CheckInService(ctx).check_in(challenge_id, strict=strict, **data)

    payload = {
        "created": result.created,
        "challenge": dump_challenge(result.challenge, ctx.today()),
        "check_in": check_in_schema.dump(result.record) if result.record else None,
        "milestone": result.milestone,
    }
    if not result.created:
        payload["msg"] = "You've already checked in today. Come back tomorrow!"
    return jsonify(payload), 201 if result.created else 200


@challenges_bp.route("/<challenge_id>/check-ins", methods=["GET"])
@login_required_user
def check_in_history(current_user, challenge_id):
    records = CheckInService(current_context()).history(challenge_id)
    return jsonify(check_ins_schema.dump(records)), 200


@challenges_bp.route("/<challenge_id>/check-ins/<check_in_id>", methods=["PATCH"])
@login_required_user
def update_check_in_note(current_user, challenge_id, check_in_id):
    data = update_note_schema.load(request.get_json(silent=True) or {})
    record = CheckInService(current_context()).update_note(challenge_id, check_in_id, data["note"])
    return jsonify(check_in_schema.dump(record)), 200
