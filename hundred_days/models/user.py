from hundred_days.context import utcnow
from werkzeug.security import generate_password_hash, check_password_hash
from hundred_days.extensions import db

USERS_TABLE = "users"


class User(db.Model):
    __tablename__ = USERS_TABLE

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(120), unique=True, nullable=False, index=True)
    display_name = db.Column(db.String(150), nullable=True)
    photo_url = db.Column(db.String(512), nullable=True)
    password_hash = db.Column(db.String(255), nullable=True)

    # Federated identity
    auth_provider = db.Column(
        db.String(20),
        db.CheckConstraint("auth_provider IN ('password','google','apple')"),
        nullable=False,
        default="password",
    )
    provider_uid = db.Column(db.String(255), nullable=True, index=True)

    # Username reservation mirror (lowercase)
    username = db.Column(db.String(20), unique=True, nullable=True, index=True)
    last_username_change_at = db.Column(db.DateTime, nullable=True)

    # Push notifications
    notifications_authorized = db.Column(db.Boolean, default=False, nullable=False)
    push_token = db.Column(db.String(255), nullable=True)

    # IANA zone name; calendar days and reminder times are evaluated in it
    timezone = db.Column(db.String(64), nullable=False, default="UTC")

    last_active = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, default=utcnow)

    challenges = db.relationship("Challenge", back_populates="owner", lazy="dynamic", cascade="all, delete-orphan")
    subscriptions = db.relationship("Subscription", back_populates="user", lazy="dynamic", cascade="all, delete-orphan")
    reminders = db.relationship("Reminder", back_populates="user", lazy="dynamic", cascade="all, delete-orphan")
    notifications = db.relationship("Notification", back_populates="user", lazy="dynamic", cascade="all, delete-orphan")
    username_reservation = db.relationship("UsernameReservation", back_populates="user", uselist=False, cascade="all, delete-orphan")

    __table_args__ = (
        db.UniqueConstraint("auth_provider", "provider_uid", name="uq_users_provider_uid"),
    )

    # Helpers
    def set_password(self, password: str):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password: str) -> bool:
        if not self.password_hash:
            return False
        return check_password_hash(self.password_hash, password)

    @property
    def has_username(self):
        return self.username is not None

    def __repr__(self):
        return f"<User {self.id} {self.email}>"
