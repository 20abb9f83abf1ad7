import uuid
from hundred_days.context import utcnow
from hundred_days.extensions import db


class CheckInRecord(db.Model):
    """A single daily completion event, owned by its challenge."""

    __tablename__ = "check_ins"

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    challenge_id = db.Column(db.String(36), db.ForeignKey("challenges.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    day_number = db.Column(db.Integer, nullable=False)
    date = db.Column(db.Date, nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    note = db.Column(db.Text, nullable=True)
    quote_id = db.Column(db.Integer, db.ForeignKey("quotes.id", ondelete="SET NULL"), nullable=True)
    prompt_shown = db.Column(db.String(255), nullable=True)
    photo_url = db.Column(db.String(512), nullable=True)
    duration_minutes = db.Column(db.Integer, nullable=True)

    challenge = db.relationship("Challenge", back_populates="check_ins")
    quote = db.relationship("Quote")

    __table_args__ = (
        db.UniqueConstraint("challenge_id", "date", name="uq_check_ins_challenge_date"),
        db.CheckConstraint("day_number BETWEEN 1 AND 100", name="ck_check_ins_day_number"),
        db.Index("idx_check_ins_user_date", "user_id", "date"),
    )
