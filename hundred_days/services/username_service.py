import logging
import re
from datetime import timedelta

from sqlalchemy.exc import IntegrityError

from hundred_days.errors import UsernameCooldownError, UsernameTakenError, ValidationError
from hundred_days.extensions import db
from hundred_days.models.username import UsernameReservation
from hundred_days.services.base import Service

logger = logging.getLogger(__name__)

USERNAME_PATTERN = re.compile(r"^[a-zA-Z0-9]{3,20}$")
FORMAT_MESSAGE = "Username must be 3-20 characters, letters and numbers only"


def validate_format(username):
    """Return the lowercase username or raise ``ValidationError``."""
    if not username:
        raise ValidationError("Username cannot be empty", code="invalid_username")
    if not USERNAME_PATTERN.match(username):
        raise ValidationError(FORMAT_MESSAGE, code="invalid_username")
    return username.lower()


class UsernameService(Service):

    def _reservation(self, username):
        return db.session.get(UsernameReservation, username)

    def is_available(self, username):
        """Free, or already reserved by the requesting user."""
        username = validate_format(username)
        reservation = self._reservation(username)
        if reservation is None:
            return True
        return self.ctx.user is not None and reservation.is_owned_by(self.ctx.user.id)

    def cooldown_remaining(self):
        last_change = self.user.last_username_change_at
        if last_change is None or self.user.username is None:
            return timedelta(0)
        cooldown = self.config.get("USERNAME_COOLDOWN", timedelta(hours=48))
        elapsed = self.ctx.now() - last_change
        return max(timedelta(0), cooldown - elapsed)

    def claim(self, username):
        username = validate_format(username)
        user = self.user

        if user.username == username:
            return user

        if not self.is_available(username):
            raise UsernameTakenError()

        remaining = self.cooldown_remaining()
        if remaining > timedelta(0):
            raise UsernameCooldownError(remaining)

        previous = self._reservation(user.username) if user.username else None
        if previous is not None:
            db.session.delete(previous)
            db.session.flush()

        db.session.add(UsernameReservation(username=username, user_id=user.id, created_at=self.ctx.now()))
        user.username = username
        user.last_username_change_at = self.ctx.now()

        try:
            db.session.commit()
        except IntegrityError:
            # lost the race for this name
            db.session.rollback()
            raise UsernameTakenError()

        logger.info(f"User {user.id} claimed username {username}")
        return user
