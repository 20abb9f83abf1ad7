from hundred_days.context import utcnow
from hundred_days.extensions import db

REMINDER_KINDS = ("daily", "streak", "challenge")


class Reminder(db.Model):
    """A repeating local-time reminder. Dispatched by the minute job."""

    __tablename__ = "reminders"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    kind = db.Column(
        db.String(20),
        db.CheckConstraint("kind IN ('daily','streak','challenge')"),
        nullable=False,
    )
    challenge_id = db.Column(db.String(36), db.ForeignKey("challenges.id", ondelete="CASCADE"), nullable=True)
    hour = db.Column(db.Integer, nullable=False)
    minute = db.Column(db.Integer, nullable=False, default=0)
    is_enabled = db.Column(db.Boolean, nullable=False, default=True)
    last_sent_on = db.Column(db.Date, nullable=True)
    created_at = db.Column(db.DateTime, default=utcnow)

    user = db.relationship("User", back_populates="reminders")
    challenge = db.relationship("Challenge")

    __table_args__ = (
        db.CheckConstraint("hour BETWEEN 0 AND 23", name="ck_reminders_hour"),
        db.CheckConstraint("minute BETWEEN 0 AND 59", name="ck_reminders_minute"),
        db.UniqueConstraint("user_id", "kind", "challenge_id", name="uq_reminders_user_kind_challenge"),
        db.Index("idx_reminders_due", "is_enabled", "hour", "minute"),
    )

    @property
    def identifier(self):
        if self.kind == "challenge":
            return f"challenge-{self.challenge_id}"
        return {"daily": "dailyCheckInReminder", "streak": "streakReminder"}[self.kind]

    def is_due(self, now):
        """``now`` is the owner's local wall-clock time."""
        return (
            self.is_enabled
            and self.hour == now.hour
            and self.minute == now.minute
            and self.last_sent_on != now.date()
        )

    def to_dict(self):
        return {
            'id': self.id,
            'identifier': self.identifier,
            'kind': self.kind,
            'challenge_id': self.challenge_id,
            'time': f"{self.hour:02d}:{self.minute:02d}",
            'is_enabled': self.is_enabled,
            'last_sent_on': self.last_sent_on.isoformat() if self.last_sent_on else None,
        }
