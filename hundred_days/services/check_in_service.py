"""Daily check-in recorder.

A check-in is recorded at most once per challenge per calendar day. A second
call on the same day returns the challenge untouched with ``created=False``.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from hundred_days.errors import (
    AlreadyCheckedInError,
    BackendUnavailableError,
    ChallengeArchivedError,
    ChallengeCompletedError,
    NotFoundError,
    ValidationError,
)
from hundred_days.events import CHALLENGES_UPDATED, CHECK_IN_RECORDED, MILESTONE_REACHED
from hundred_days.extensions import db
from hundred_days.models.challenge import CHALLENGE_LENGTH_DAYS, Challenge
from hundred_days.models.check_in import CheckInRecord
from hundred_days.models.quote import Quote
from hundred_days.services import streaks
from hundred_days.services.base import Service

logger = logging.getLogger(__name__)


@dataclass
class CheckInResult:
    challenge: Challenge
    record: Optional[CheckInRecord]
    created: bool
    milestone: Optional[int] = None


class CheckInService(Service):

    def _challenge(self, challenge_id):
        challenge = Challenge.query.filter_by(id=challenge_id, owner_id=self.user.id).first()
        if challenge is None:
            raise NotFoundError("Challenge not found")
        return challenge

    def _existing(self, challenge_id, day):
        return CheckInRecord.query.filter_by(challenge_id=challenge_id, date=day).first()

    def check_in(self, challenge_id, note=None, duration_minutes=None, photo_url=None,
                 quote_id=None, prompt_shown=None, strict=False):
        challenge = self._challenge(challenge_id)
        today = self.ctx.today()

        existing = self._existing(challenge.id, today)
        if existing is not None or challenge.is_completed_today(today):
            if strict:
                raise AlreadyCheckedInError()
            logger.info(f"User {self.user.id} already checked in to {challenge.id} on {today}")
            return CheckInResult(challenge=challenge, record=existing, created=False)

        if challenge.is_completed:
            raise ChallengeCompletedError()
        if challenge.is_archived:
            raise ChallengeArchivedError()
        if challenge.is_timed and not duration_minutes:
            raise ValidationError("Timed challenges need a session duration", code="duration_required")
        if quote_id is not None and db.session.get(Quote, quote_id) is None:
            raise ValidationError("Unknown quote", code="invalid_quote")

        now = self.ctx.now()
        record = CheckInRecord(
            challenge_id=challenge.id,
            user_id=self.user.id,
            day_number=challenge.days_completed + 1,
            date=today,
            created_at=now,
            note=note or None,
            duration_minutes=duration_minutes,
            photo_url=photo_url,
            quote_id=quote_id,
            prompt_shown=prompt_shown,
        )
        challenge.streak_count = streaks.next_streak_count(
            challenge.last_check_in_date, challenge.streak_count, today
        )
        challenge.days_completed += 1
        challenge.last_check_in_date = today
        challenge.touch(now)
        db.session.add(record)

        try:
            db.session.commit()
        except IntegrityError:
            # another request recorded this day first
            db.session.rollback()
            challenge = self._challenge(challenge_id)
            return CheckInResult(challenge=challenge, record=self._existing(challenge.id, today), created=False)
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error(f"Check-in failed for user {self.user.id}: {e}")
            raise BackendUnavailableError() from e

        milestone = challenge.days_completed if challenge.days_completed in self.config.get("MILESTONE_DAYS", ()) else None
        logger.info(f"User {self.user.id} checked in to {challenge.id}: day {record.day_number}, streak {challenge.streak_count}")

        self.publish(CHECK_IN_RECORDED, {
            "challenge_id": challenge.id,
            "check_in_id": record.id,
            "day_number": record.day_number,
            "streak_count": challenge.streak_count,
        })
        self.publish(CHALLENGES_UPDATED, {"challenge_id": challenge.id, "action": "checked_in"})
        if milestone:
            self.publish(MILESTONE_REACHED, {
                "challenge_id": challenge.id,
                "title": challenge.title,
                "day": milestone,
                "is_completed": milestone >= CHALLENGE_LENGTH_DAYS,
            })
        return CheckInResult(challenge=challenge, record=record, created=True, milestone=milestone)

    def is_checked_in_today(self, challenge_id):
        challenge = self._challenge(challenge_id)
        return challenge.is_completed_today(self.ctx.today())

    def history(self, challenge_id):
        challenge = self._challenge(challenge_id)
        return (
            challenge.check_ins.order_by(CheckInRecord.date.desc()).all()
        )

    def update_note(self, challenge_id, check_in_id, note):
        challenge = self._challenge(challenge_id)
        record = challenge.check_ins.filter_by(id=check_in_id).first()
        if record is None:
            raise NotFoundError("Check-in not found")
        record.note = note or None
        challenge.touch(self.ctx.now())
        self.commit()
        self.publish(CHALLENGES_UPDATED, {"challenge_id": challenge.id, "action": "note_updated"})
        return record
