from flask import jsonify, request

from hundred_days.context import current_context
from hundred_days.schemas.challenge import (
    create_challenge_schema,
    dump_challenge,
    dump_challenges,
    update_challenge_schema,
)
from hundred_days.services.challenge_service import ChallengeService
from hundred_days.utils.decorators import login_required_user
from . import challenges_bp


# ---------------- API: List challenges ----------------
@challenges_bp.route("", methods=["GET"])
@login_required_user
def list_challenges(current_user):
    ctx = current_context()
    include_archived = request.args.get("include_archived", "false").lower() in ("1", "true", "yes")
    challenges = ChallengeService(ctx).list(include_archived=include_archived)
    return jsonify(dump_challenges(challenges, ctx.today())), 200


# ---------------- API: Dashboard ----------------
@challenges_bp.route("/dashboard", methods=["GET"])
@login_required_user
def dashboard(current_user):
    ctx = current_context()
    data = ChallengeService(ctx).dashboard()
    today = data["today"]
    urgent = data["most_urgent_challenge"]
    return jsonify({
        "today": today.isoformat(),
        "challenges": dump_challenges(data["challenges"], today),
        "max_streak": data["max_streak"],
        "most_urgent_challenge": dump_challenge(urgent, today) if urgent else None,
        "has_active_streaks": data["has_active_streaks"],
    }), 200


# ---------------- API: Create ----------------
@challenges_bp.route("", methods=["POST"])
@login_required_user
def create_challenge(current_user):
    ctx = current_context()
    data = create_challenge_schema.load(request.get_json(silent=True) or {})
    challenge = ChallengeService(ctx).create(data["title"], is_timed=data["is_timed"])
    return jsonify(dump_challenge(challenge, ctx.today())), 201


@challenges_bp.route("/<challenge_id>", methods=["GET"])
@login_required_user
def get_challenge(current_user, challenge_id):
    ctx = current_context()
    challenge = ChallengeService(ctx).get(challenge_id)
    return jsonify(dump_challenge(challenge, ctx.today())), 200


@challenges_bp.route("/<challenge_id>", methods=["PATCH", "PUT"])
@login_required_user
def update_challenge(current_user, challenge_id):
    ctx = current_context()
    data = update_challenge_schema.load(request.get_json(silent=True) or {})
    challenge = ChallengeService(ctx).rename(challenge_id, data["title"])
    return jsonify(dump_challenge(challenge, ctx.today())), 200


@challenges_bp.route("/<challenge_id>/archive", methods=["POST"])
@login_required_user
def archive_challenge(current_user, challenge_id):
    ctx = current_context()
    challenge = ChallengeService(ctx).archive(challenge_id)
    return jsonify(dump_challenge(challenge, ctx.today())), 200


@challenges_bp.route("/<challenge_id>/unarchive", methods=["POST"])
@login_required_user
def unarchive_challenge(current_user, challenge_id):
    ctx = current_context()
    challenge = ChallengeService(ctx).unarchive(challenge_id)
    return jsonify(dump_challenge(challenge, ctx.today())), 200


@challenges_bp.route("/<challenge_id>", methods=["DELETE"])
@login_required_user
def delete_challenge(current_user, challenge_id):
    confirm = request.args.get("confirm", "false").lower() in ("1", "true", "yes")
    ChallengeService(current_context()).delete(challenge_id, confirm=confirm)
    return jsonify({"msg": "Challenge deleted"}), 200
