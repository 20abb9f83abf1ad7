import logging

from sqlalchemy.exc import SQLAlchemyError

from hundred_days.errors import AuthenticationError, BackendUnavailableError
from hundred_days.extensions import db

logger = logging.getLogger(__name__)


class Service:
    """Base for services bound to an ``AppContext``."""

    def __init__(self, ctx):
        self.ctx = ctx

    @property
    def user(self):
        if self.ctx.user is None:
            raise AuthenticationError()
        return self.ctx.user

    @property
    def config(self):
        return self.ctx.config

    def publish(self, topic, payload=None):
        return self.ctx.events.publish(topic, self.user.id, payload)

    def commit(self):
        try:
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error(f"Commit failed for user {self.ctx.user_id}: {e}")
            raise BackendUnavailableError() from e
