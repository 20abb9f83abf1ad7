import uuid
from datetime import timedelta
from hundred_days.context import utcnow
from hundred_days.extensions import db

CHALLENGE_LENGTH_DAYS = 100


def _new_id():
    return str(uuid.uuid4())


class Challenge(db.Model):
    __tablename__ = "challenges"

    id = db.Column(db.String(36), primary_key=True, default=_new_id)
    owner_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title = db.Column(db.String(100), nullable=False)
    start_date = db.Column(db.Date, nullable=False)
    last_check_in_date = db.Column(db.Date, nullable=True)
    streak_count = db.Column(db.Integer, nullable=False, default=0)
    days_completed = db.Column(db.Integer, nullable=False, default=0)
    is_archived = db.Column(db.Boolean, nullable=False, default=False, index=True)
    is_timed = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    last_modified = db.Column(db.DateTime, nullable=False, default=utcnow)

    owner = db.relationship("User", back_populates="challenges")
    check_ins = db.relationship(
        "CheckInRecord",
        back_populates="challenge",
        lazy="dynamic",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        db.CheckConstraint("streak_count >= 0", name="ck_challenges_streak_non_negative"),
        db.CheckConstraint(f"days_completed BETWEEN 0 AND {CHALLENGE_LENGTH_DAYS}", name="ck_challenges_days_range"),
        db.Index("idx_challenges_owner_archived", "owner_id", "is_archived"),
    )

    # ------- derived state -------
    @property
    def is_completed(self):
        return self.days_completed >= CHALLENGE_LENGTH_DAYS

    @property
    def days_remaining(self):
        return max(0, CHALLENGE_LENGTH_DAYS - self.days_completed)

    @property
    def progress_percentage(self):
        return self.days_completed / CHALLENGE_LENGTH_DAYS

    @property
    def end_date(self):
        return self.start_date + timedelta(days=CHALLENGE_LENGTH_DAYS)

    def is_completed_today(self, today):
        return self.last_check_in_date == today

    def has_streak_expired(self, today):
        """True once the last check-in is a day or more behind ``today``."""
        if self.last_check_in_date is None:
            return True
        return (today - self.last_check_in_date).days >= 1

    def is_streak_active(self, today):
        if self.last_check_in_date is None:
            return False
        return (today - self.last_check_in_date).days <= 1

    def is_streak_broken(self, today):
        if self.last_check_in_date is None:
            return False
        return (today - self.last_check_in_date).days > 1

    def touch(self, now=None):
        self.last_modified = now or utcnow()

    def __repr__(self):
        return f"<Challenge {self.id} {self.title!r} streak={self.streak_count}>"
