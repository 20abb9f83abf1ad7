from flask import jsonify, request

from hundred_days.context import current_context
from hundred_days.models.challenge import Challenge
from hundred_days.services import stats_service
from hundred_days.utils.decorators import login_required_user, pro_required
from . import progress_bp


# ---------------- API: Progress stats ----------------
@progress_bp.route("/stats", methods=["GET"])
@login_required_user
def stats(current_user):
    ctx = current_context()
    return jsonify(stats_service.stats_for_user(current_user.id, ctx.today()).to_dict()), 200


# ---------------- API: Pro analytics ----------------
@progress_bp.route("/analytics", methods=["GET"])
@login_required_user
@pro_required("advanced_analytics")
def analytics(current_user):
    ctx = current_context()
    today = ctx.today()
    weeks = request.args.get("weeks", 12, type=int)
    weeks = max(1, min(weeks, 52))

    projections = []
    for c in Challenge.query.filter_by(owner_id=current_user.id, is_archived=False).all():
        projected = stats_service.projected_completion(c, today)
        projections.append({
            "challenge_id": c.id,
            "title": c.title,
            "days_completed": c.days_completed,
            "projected_completion": projected.isoformat() if projected else None,
        })

    return jsonify({
        "weekly_consistency": stats_service.consistency_by_week(current_user.id, today, weeks=weeks),
        "projections": projections,
    }), 200
