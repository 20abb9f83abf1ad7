"""Aggregate user statistics derived from the challenge store."""
import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Optional

from hundred_days.events import CHALLENGES_UPDATED, STATS_UPDATED, Event
from hundred_days.extensions import db
from hundred_days.models.challenge import CHALLENGE_LENGTH_DAYS, Challenge
from hundred_days.models.check_in import CheckInRecord
from hundred_days.services import streaks

logger = logging.getLogger(__name__)


@dataclass
class UserStats:
    total_challenges: int = 0
    active_challenges: int = 0
    completed_challenges: int = 0
    current_streak: int = 0
    longest_streak: int = 0
    overall_completion_percentage: float = 0.0
    last_check_in_date: Optional[date] = None
    active_challenge_id: Optional[str] = None

    @property
    def completion_percentage_formatted(self):
        return f"{self.overall_completion_percentage * 100:.0f}%"

    def to_dict(self):
        return {
            "total_challenges": self.total_challenges,
            "active_challenges": self.active_challenges,
            "completed_challenges": self.completed_challenges,
            "current_streak": self.current_streak,
            "longest_streak": self.longest_streak,
            "overall_completion_percentage": self.overall_completion_percentage,
            "completion_percentage_formatted": self.completion_percentage_formatted,
            "last_check_in_date": self.last_check_in_date.isoformat() if self.last_check_in_date else None,
            "active_challenge_id": self.active_challenge_id,
        }


def compute_stats(challenges, today) -> UserStats:
    challenges = list(challenges)
    check_in_dates = [c.last_check_in_date for c in challenges if c.last_check_in_date]
    active = streaks.active_challenge(challenges)
    return UserStats(
        total_challenges=len(challenges),
        active_challenges=sum(1 for c in challenges if not c.is_archived),
        completed_challenges=sum(1 for c in challenges if c.is_completed),
        current_streak=streaks.current_streak(challenges, today),
        longest_streak=streaks.longest_streak(challenges),
        overall_completion_percentage=streaks.overall_completion(challenges, CHALLENGE_LENGTH_DAYS),
        last_check_in_date=max(check_in_dates) if check_in_dates else None,
        active_challenge_id=active.id if active else None,
    )


def stats_for_user(user_id, today) -> UserStats:
    return compute_stats(Challenge.query.filter_by(owner_id=user_id).all(), today)


def consistency_by_week(user_id, today, weeks=12):
    """Check-ins per ISO week for the last ``weeks`` weeks, oldest first."""
    start = today - timedelta(weeks=weeks)
    rows = (
        db.session.query(CheckInRecord.date)
        .filter(CheckInRecord.user_id == user_id, CheckInRecord.date > start)
        .all()
    )
    buckets = {}
    for (day,) in rows:
        year, week, _ = day.isocalendar()
        key = f"{year}-W{week:02d}"
        buckets[key] = buckets.get(key, 0) + 1
    return [{"week": key, "check_ins": buckets[key]} for key in sorted(buckets)]


def projected_completion(challenge, today):
    """Projected finish date at one check-in per day from today."""
    if challenge.is_completed:
        return challenge.last_check_in_date
    remaining = challenge.days_remaining
    if challenge.is_completed_today(today):
        return today + timedelta(days=remaining)
    return today + timedelta(days=remaining - 1)


class StatsRefresher:
    """Recomputes stats when challenges change and republishes them."""

    def __init__(self, bus, today_provider):
        self.bus = bus
        self.today_provider = today_provider

    def __call__(self, event: Event):
        stats = stats_for_user(event.user_id, self.today_provider(event.user_id))
        logger.debug(f"Stats refreshed for user {event.user_id}")
        self.bus.publish(STATS_UPDATED, event.user_id, stats.to_dict())

    def register(self):
        self.bus.subscribe(CHALLENGES_UPDATED, self)
        return self
