from hundred_days.context import utcnow
from hundred_days.extensions import db


class UsernameReservation(db.Model):
    """One row per claimed username, keyed by its lowercase form."""

    __tablename__ = "usernames"

    username = db.Column(db.String(20), primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True, index=True)
    created_at = db.Column(db.DateTime, default=utcnow)

    user = db.relationship("User", back_populates="username_reservation")

    def is_owned_by(self, user_id):
        return self.user_id == user_id
