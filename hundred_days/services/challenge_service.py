import logging

from hundred_days.errors import ChallengeLimitError, NotFoundError, ValidationError
from hundred_days.events import CHALLENGES_UPDATED
from hundred_days.extensions import db
from hundred_days.models.challenge import Challenge
from hundred_days.services import streaks
from hundred_days.services.base import Service
from hundred_days.services.subscription_service import SubscriptionGate

logger = logging.getLogger(__name__)


class ChallengeService(Service):
    def __init__(self, ctx, gate=None):
        super().__init__(ctx)
        self.gate = gate or SubscriptionGate(ctx)

    # ---------------- queries ----------------
    def _query(self):
        return Challenge.query.filter_by(owner_id=self.user.id)

    def list(self, include_archived=False):
        query = self._query()
        if not include_archived:
            query = query.filter_by(is_archived=False)
        return streaks.sort_for_display(query.all())

    def get(self, challenge_id):
        challenge = self._query().filter_by(id=challenge_id).first()
        if challenge is None:
            raise NotFoundError("Challenge not found")
        return challenge

    def active_count(self):
        return self._query().filter_by(is_archived=False).count()

    def dashboard(self):
        today = self.ctx.today()
        challenges = self._query().all()
        return {
            "today": today,
            "challenges": streaks.sort_for_display(challenges),
            "max_streak": streaks.max_streak(challenges),
            "most_urgent_challenge": streaks.most_urgent_challenge(challenges, today),
            "has_active_streaks": streaks.has_active_streaks(challenges),
        }

    # ---------------- mutations ----------------
    def _clean_title(self, title):
        title = (title or "").strip()
        max_length = self.config.get("CHALLENGE_TITLE_MAX_LENGTH", 100)
        if not title:
            raise ValidationError("Title is required")
        if len(title) > max_length:
            raise ValidationError(f"Title must be at most {max_length} characters")
        return title

    def _check_free_limit(self):
        limit = self.config.get("FREE_CHALLENGE_LIMIT", 2)
        if not self.gate.is_pro_user and self.active_count() >= limit:
            raise ChallengeLimitError(limit)

    def create(self, title, is_timed=False):
        title = self._clean_title(title)
        self._check_free_limit()

        now = self.ctx.now()
        challenge = Challenge(
            owner_id=self.user.id,
            title=title,
            is_timed=bool(is_timed),
            start_date=self.ctx.today(),
            created_at=now,
            last_modified=now,
        )
        db.session.add(challenge)
        self.commit()
        logger.info(f"User {self.user.id} created challenge {challenge.id}")
        self.publish(CHALLENGES_UPDATED, {"challenge_id": challenge.id, "action": "created"})
        return challenge

    def rename(self, challenge_id, title):
        challenge = self.get(challenge_id)
        challenge.title = self._clean_title(title)
        challenge.touch(self.ctx.now())
        self.commit()
        self.publish(CHALLENGES_UPDATED, {"challenge_id": challenge.id, "action": "updated"})
        return challenge

    def archive(self, challenge_id):
        challenge = self.get(challenge_id)
        if not challenge.is_archived:
            challenge.is_archived = True
            challenge.touch(self.ctx.now())
            self.commit()
            self.publish(CHALLENGES_UPDATED, {"challenge_id": challenge.id, "action": "archived"})
        return challenge

    def unarchive(self, challenge_id):
        challenge = self.get(challenge_id)
        if challenge.is_archived:
            self._check_free_limit()
            challenge.is_archived = False
            challenge.touch(self.ctx.now())
            self.commit()
            self.publish(CHALLENGES_UPDATED, {"challenge_id": challenge.id, "action": "unarchived"})
        return challenge

    def delete(self, challenge_id, confirm=False):
        """Hard delete. Without ``confirm`` callers are expected to archive."""
        challenge = self.get(challenge_id)
        if not confirm:
            raise ValidationError("Deleting a challenge removes all of its check-ins. Confirm to continue.", code="confirmation_required")
        db.session.delete(challenge)
        self.commit()
        logger.info(f"User {self.user.id} deleted challenge {challenge_id}")
        self.publish(CHALLENGES_UPDATED, {"challenge_id": challenge_id, "action": "deleted"})

    def reset_expired_streaks(self):
        """Zero the streak of every challenge that missed a full day."""
        today = self.ctx.today()
        reset = []
        for challenge in self._query().filter(Challenge.streak_count > 0).all():
            if challenge.is_streak_broken(today):
                challenge.streak_count = 0
                challenge.touch(self.ctx.now())
                reset.append(challenge)
        if reset:
            self.commit()
            self.publish(CHALLENGES_UPDATED, {"challenge_ids": [c.id for c in reset], "action": "streaks_reset"})
        return reset
