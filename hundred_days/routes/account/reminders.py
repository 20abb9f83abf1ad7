from flask import jsonify, request

from hundred_days.context import current_context
from hundred_days.schemas.account import authorization_schema, reminder_time_schema
from hundred_days.services.notification_service import NotificationService
from hundred_days.utils.decorators import login_required_user
from . import account_bp


# ---------------- Permission ----------------
@account_bp.route("/notifications/authorization", methods=["PUT"])
@login_required_user
def set_authorization(current_user):
    data = authorization_schema.load(request.get_json(silent=True) or {})
    granted = NotificationService(current_context()).set_authorization(data["granted"], data.get("push_token"))
    return jsonify({"notifications_authorized": granted}), 200


# ---------------- Reminders ----------------
@account_bp.route("/reminders", methods=["GET"])
@login_required_user
def list_reminders(current_user):
    reminders = NotificationService(current_context()).list_reminders()
    return jsonify([r.to_dict() for r in reminders]), 200


@account_bp.route("/reminders/daily", methods=["PUT"])
@login_required_user
def schedule_daily(current_user):
    data = request.get_json(silent=True) or {}
    service = NotificationService(current_context())
    if data:
        time = reminder_time_schema.load(data)
        reminder = service.schedule_daily_reminder(time["hour"], time["minute"])
    else:
        reminder = service.schedule_daily_reminder()
    return jsonify(reminder.to_dict()), 200


@account_bp.route("/reminders/streak", methods=["PUT"])
@login_required_user
def schedule_streak(current_user):
    reminder = NotificationService(current_context()).schedule_streak_reminder()
    if reminder is None:
        return jsonify({"msg": "Nothing at risk today", "scheduled": False}), 200
    return jsonify(dict(reminder.to_dict(), scheduled=True)), 200


@account_bp.route("/reminders/challenges/<challenge_id>", methods=["PUT"])
@login_required_user
def schedule_challenge(current_user, challenge_id):
    time = reminder_time_schema.load(request.get_json(silent=True) or {})
    reminder = NotificationService(current_context()).schedule_challenge_reminder(
        challenge_id, time["hour"], time["minute"]
    )
    return jsonify(reminder.to_dict()), 200


@account_bp.route("/reminders/challenges/<challenge_id>", methods=["DELETE"])
@login_required_user
def cancel_challenge(current_user, challenge_id):
    deleted = NotificationService(current_context()).cancel_challenge_reminder(challenge_id)
    return jsonify({"deleted": deleted}), 200


@account_bp.route("/reminders", methods=["DELETE"])
@login_required_user
def cancel_all(current_user):
    deleted = NotificationService(current_context()).cancel_all()
    return jsonify({"deleted": deleted}), 200


# ---------------- Inbox ----------------
@account_bp.route("/notifications", methods=["GET"])
@login_required_user
def list_notifications(current_user):
    unread_only = request.args.get("unread", "false").lower() in ("1", "true", "yes")
    notifications = NotificationService(current_context()).list_notifications(unread_only=unread_only)
    return jsonify([n.to_dict() for n in notifications]), 200


@account_bp.route("/notifications/<int:notification_id>/read", methods=["POST"])
@login_required_user
def mark_read(current_user, notification_id):
    notification = NotificationService(current_context()).mark_read(notification_id)
    return jsonify(notification.to_dict()), 200
