from flask import jsonify, request

from hundred_days.context import current_context
from hundred_days.extensions import db
from hundred_days.schemas.user import timezone_schema, user_schema, username_schema
from hundred_days.services.username_service import UsernameService
from hundred_days.utils.decorators import login_required_user
from . import account_bp


@account_bp.route("/username/<username>", methods=["GET"])
@login_required_user
def username_availability(current_user, username):
    service = UsernameService(current_context())
    return jsonify({
        "username": username.lower(),
        "available": service.is_available(username),
        "cooldown_seconds": int(service.cooldown_remaining().total_seconds()),
    }), 200


@account_bp.route("/username", methods=["PUT"])
@login_required_user
def claim_username(current_user):
    data = username_schema.load(request.get_json(silent=True) or {})
    user = UsernameService(current_context()).claim(data["username"])
    return jsonify(user_schema.dump(user)), 200


@account_bp.route("/timezone", methods=["PUT"])
@login_required_user
def set_timezone(current_user):
    data = timezone_schema.load(request.get_json(silent=True) or {})
    current_user.timezone = data["timezone"]
    db.session.commit()
    return jsonify(user_schema.dump(current_user)), 200
