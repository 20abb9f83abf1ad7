from hundred_days.context import utcnow
from hundred_days.extensions import db


class Subscription(db.Model):
    __tablename__ = "subscriptions"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = db.Column(db.String(120), nullable=False)
    original_transaction_id = db.Column(db.String(64), nullable=False, unique=True)

    # Status and lifecycle
    status = db.Column(
        db.String(20),
        db.CheckConstraint("status IN ('active','expired','canceled','pending')"),
        default="active",
        index=True,
    )
    purchased_at = db.Column(db.DateTime)
    expires_at = db.Column(db.DateTime)
    auto_renew = db.Column(db.Boolean, default=True)
    canceled_at = db.Column(db.DateTime)

    # Timestamps
    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    user = db.relationship("User", back_populates="subscriptions")

    __table_args__ = (
        db.Index("idx_subscription_user_status", "user_id", "status"),
        db.Index("idx_subscription_expires_at", "expires_at"),
    )

    def is_active_at(self, now):
        if self.status != "active":
            return False
        return self.expires_at is None or self.expires_at > now

    @property
    def is_active(self):
        return self.is_active_at(utcnow())

    @property
    def days_remaining(self):
        if self.expires_at:
            delta = self.expires_at - utcnow()
            return max(0, delta.days)
        return 0

    def apply_transaction(self, *, status, purchased_at, expires_at, auto_renew, now):
        """Mirror the store's view of the latest transaction."""
        self.status = status
        self.purchased_at = purchased_at
        self.expires_at = expires_at
        self.auto_renew = auto_renew
        if status == "canceled" and self.canceled_at is None:
            self.canceled_at = now
        self.updated_at = now
