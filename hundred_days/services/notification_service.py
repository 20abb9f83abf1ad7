"""Daily, streak-risk and per-challenge reminders plus the delivered inbox.

Reminders are rows, not scheduler jobs. A single minute job
(``dispatch_due``) sends whatever is due.
"""
import logging

from sqlalchemy.exc import SQLAlchemyError

from hundred_days.errors import NotFoundError, NotificationsNotAuthorizedError
from hundred_days.events import MILESTONE_REACHED, NOTIFICATION_SENT, Event
from hundred_days.extensions import db
from hundred_days.models.challenge import Challenge
from hundred_days.models.notification import Notification
from hundred_days.models.reminder import Reminder
from hundred_days.models.user import User
from hundred_days.services import streaks
from hundred_days.services.base import Service
from hundred_days.services.subscription_service import SubscriptionGate

logger = logging.getLogger(__name__)

DAILY_TITLE = "Daily Check-In Reminder"
DAILY_BODY = "Time to check in for your 100-day challenge!"
STREAK_TITLE = "Don't Break Your Streak!"
CHALLENGE_TITLE = "Daily Check-in Reminder"


class NotificationService(Service):
    def __init__(self, ctx, gate=None):
        super().__init__(ctx)
        self.gate = gate or SubscriptionGate(ctx)

    # ---------------- permission ----------------
    def set_authorization(self, granted, push_token=None):
        user = self.user
        user.notifications_authorized = bool(granted)
        if push_token is not None:
            user.push_token = push_token
        if not granted:
            Reminder.query.filter_by(user_id=user.id).update({"is_enabled": False})
        self.commit()
        return user.notifications_authorized

    def _require_authorized(self):
        if not self.user.notifications_authorized:
            raise NotificationsNotAuthorizedError()

    # ---------------- scheduling ----------------
    def _find(self, kind, challenge_id=None):
        return Reminder.query.filter_by(user_id=self.user.id, kind=kind, challenge_id=challenge_id).first()

    def _upsert(self, kind, hour, minute, challenge_id=None):
        reminder = self._find(kind, challenge_id)
        if reminder is None:
            reminder = Reminder(user_id=self.user.id, kind=kind, challenge_id=challenge_id)
            db.session.add(reminder)
        reminder.hour = hour
        reminder.minute = minute
        reminder.is_enabled = True
        self.commit()
        return reminder

    def _default_time(self):
        return self.config.get("DEFAULT_REMINDER_HOUR", 20), self.config.get("DEFAULT_REMINDER_MINUTE", 0)

    def schedule_daily_reminder(self, hour=None, minute=None):
        self._require_authorized()
        default_hour, default_minute = self._default_time()
        hour = default_hour if hour is None else hour
        minute = default_minute if minute is None else minute
        if (hour, minute) != (default_hour, default_minute):
            self.gate.require_pro("custom_reminders")
        return self._upsert("daily", hour, minute)

    def update_reminder_time(self, hour, minute):
        self.gate.require_pro("custom_reminders")
        return self.schedule_daily_reminder(hour, minute)

    def schedule_streak_reminder(self, today=None):
        """Schedule the evening streak warning if anything is still unchecked today."""
        self._require_authorized()
        today = today or self.ctx.today()
        challenges = Challenge.query.filter_by(owner_id=self.user.id, is_archived=False).all()
        has_active = bool(challenges)
        checked_in_today = any(c.is_completed_today(today) for c in challenges)

        if not has_active or checked_in_today:
            existing = self._find("streak")
            if existing is not None and existing.is_enabled:
                existing.is_enabled = False
                self.commit()
            return None

        hour, minute = self._default_time()
        return self._upsert("streak", hour, minute)

    def schedule_challenge_reminder(self, challenge_id, hour, minute=0):
        self._require_authorized()
        self.gate.require_pro("custom_reminders")
        challenge = Challenge.query.filter_by(id=challenge_id, owner_id=self.user.id).first()
        if challenge is None:
            raise NotFoundError("Challenge not found")
        return self._upsert("challenge", hour, minute, challenge_id=challenge.id)

    def cancel_challenge_reminder(self, challenge_id):
        deleted = Reminder.query.filter_by(user_id=self.user.id, kind="challenge", challenge_id=challenge_id).delete()
        self.commit()
        return deleted

    def cancel_all(self):
        deleted = Reminder.query.filter_by(user_id=self.user.id).delete()
        self.commit()
        return deleted

    def list_reminders(self):
        return Reminder.query.filter_by(user_id=self.user.id).order_by(Reminder.hour, Reminder.minute).all()

    # ---------------- inbox ----------------
    def list_notifications(self, unread_only=False, limit=50):
        query = Notification.query.filter_by(user_id=self.user.id)
        if unread_only:
            query = query.filter_by(is_read=False)
        return query.order_by(Notification.sent_at.desc()).limit(limit).all()

    def mark_read(self, notification_id):
        notification = Notification.query.filter_by(id=notification_id, user_id=self.user.id).first()
        if notification is None:
            raise NotFoundError("Notification not found")
        if not notification.is_read:
            notification.mark_as_read(self.ctx.now())
            self.commit()
        return notification


# ---------------- delivery ----------------
def _compose(reminder, today):
    """Title, body and challenge id for a due reminder, or None to skip it."""
    if reminder.kind == "daily":
        return DAILY_TITLE, DAILY_BODY, None

    if reminder.kind == "streak":
        challenges = Challenge.query.filter_by(owner_id=reminder.user_id, is_archived=False).all()
        if not challenges or any(c.is_completed_today(today) for c in challenges):
            return None
        urgent = streaks.most_urgent_challenge(challenges, today)
        if urgent is not None and urgent.streak_count > 0:
            body = f"Check in to \"{urgent.title}\" to keep your {urgent.streak_count}-day streak alive!"
            return STREAK_TITLE, body, urgent.id
        return STREAK_TITLE, "Check in today to keep your streak alive!", None

    challenge = reminder.challenge
    if challenge is None or challenge.is_archived or challenge.is_completed or challenge.is_completed_today(today):
        return None
    return CHALLENGE_TITLE, f"Don't forget to check in for your challenge: {challenge.title}", challenge.id


NOTIFICATION_TYPES = {"daily": "daily_reminder", "streak": "streak_risk", "challenge": "challenge_reminder"}


def dispatch_due(now, bus, cutoff_hour=0):
    """Send every enabled reminder due at ``now`` (naive UTC). Returns the number sent.

    Reminder times are wall-clock times in each owner's timezone, so the
    comparison happens per user after converting ``now``.
    """
    candidates = (
        Reminder.query.join(User, Reminder.user_id == User.id)
        .filter(Reminder.is_enabled.is_(True), User.notifications_authorized.is_(True))
        .all()
    )

    sent = 0
    for reminder in candidates:
        local_now = streaks.local_time(now, reminder.user.timezone)
        if not reminder.is_due(local_now):
            continue
        try:
            composed = _compose(reminder, streaks.effective_check_in_date(local_now, cutoff_hour))
            reminder.last_sent_on = local_now.date()
            if composed is None:
                db.session.commit()
                continue
            title, body, challenge_id = composed
            notification = Notification(
                user_id=reminder.user_id,
                challenge_id=challenge_id,
                title=title,
                content=body,
                type=NOTIFICATION_TYPES[reminder.kind],
                sent_at=now,
            )
            db.session.add(notification)
            db.session.commit()
        except SQLAlchemyError as e:
            logger.error(f"Error dispatching reminder {reminder.id} for user {reminder.user_id}: {e}")
            db.session.rollback()
            continue

        sent += 1
        bus.publish(NOTIFICATION_SENT, notification.user_id, notification.to_dict())
    if sent:
        logger.info(f"Dispatched {sent} reminders at {now:%H:%M} UTC")
    return sent


class MilestoneNotifier:
    """Writes an inbox entry when a check-in lands on a milestone day."""

    def __init__(self, bus, clock):
        self.bus = bus
        self.clock = clock

    def __call__(self, event: Event):
        day = event.payload["day"]
        if event.payload.get("is_completed"):
            body = f"You finished all 100 days of \"{event.payload['title']}\"!"
        else:
            body = f"Day {day} of \"{event.payload['title']}\". Keep going!"
        notification = Notification(
            user_id=event.user_id,
            challenge_id=event.payload["challenge_id"],
            title=f"{day}-day milestone",
            content=body,
            type="milestone",
            sent_at=self.clock(),
        )
        db.session.add(notification)
        try:
            db.session.commit()
        except SQLAlchemyError as e:
            logger.error(f"Error saving milestone notification for user {event.user_id}: {e}")
            db.session.rollback()
            return
        self.bus.publish(NOTIFICATION_SENT, event.user_id, notification.to_dict())

    def register(self):
        self.bus.subscribe(MILESTONE_REACHED, self)
        return self
