# ================================
# Delivered reminder inbox
# ================================

from hundred_days.context import utcnow
from hundred_days.extensions import db


class Notification(db.Model):
    __tablename__ = "notifications"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    challenge_id = db.Column(db.String(36), db.ForeignKey("challenges.id", ondelete="SET NULL"), nullable=True)

    title = db.Column(db.String(200), nullable=False)
    content = db.Column(db.Text, nullable=False)
    type = db.Column(
        db.String(20),
        db.CheckConstraint("type IN ('daily_reminder','streak_risk','challenge_reminder','milestone')"),
        nullable=False
    )

    # Status and timestamps
    sent_at = db.Column(db.DateTime, default=utcnow)
    read_at = db.Column(db.DateTime, nullable=True)
    is_read = db.Column(db.Boolean, default=False, index=True)

    user = db.relationship("User", back_populates="notifications")

    __table_args__ = (
        db.Index("idx_notifications_user_sent_at", "user_id", "sent_at"),
    )

    def mark_as_read(self, now=None):
        """Mark notification as read"""
        self.is_read = True
        self.read_at = now or utcnow()

    def to_dict(self):
        return {
            'id': self.id,
            'title': self.title,
            'content': self.content,
            'type': self.type,
            'challenge_id': self.challenge_id,
            'sent_at': self.sent_at.isoformat() if self.sent_at else None,
            'read_at': self.read_at.isoformat() if self.read_at else None,
            'is_read': bool(self.is_read),
        }
