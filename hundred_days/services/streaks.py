"""Streak and urgency calculations over in-memory challenges.

Nothing here touches the database. Every function takes the calendar day to
evaluate against so results are deterministic.
"""
from datetime import date, datetime, timedelta, timezone
from typing import Iterable, Optional
from zoneinfo import ZoneInfo

DEFAULT_TIMEZONE = "UTC"


def local_time(now: datetime, tz_name: Optional[str] = None) -> datetime:
    """Naive wall-clock time in ``tz_name`` for a naive UTC ``now``."""
    zone = ZoneInfo(tz_name or DEFAULT_TIMEZONE)
    return now.replace(tzinfo=timezone.utc).astimezone(zone).replace(tzinfo=None)


def effective_check_in_date(now: datetime, cutoff_hour: int = 0) -> date:
    """Calendar day a check-in made at ``now`` counts for.

    Before ``cutoff_hour`` the check-in still belongs to the previous day.
    """
    if cutoff_hour and now.hour < cutoff_hour:
        return (now - timedelta(days=1)).date()
    return now.date()


def next_streak_count(last_check_in_date: Optional[date], current_streak: int, check_in_date: date) -> int:
    """Streak after checking in on ``check_in_date``.

    Same day leaves the streak unchanged, the following day extends it by
    one, and anything else (first check-in or a gap) starts over at 1.
    """
    if last_check_in_date is None:
        return 1
    gap = (check_in_date - last_check_in_date).days
    if gap == 0:
        return current_streak
    if gap == 1:
        return current_streak + 1
    return 1


def max_streak(challenges: Iterable) -> int:
    return max((c.streak_count for c in challenges), default=0)


longest_streak = max_streak


def has_active_streaks(challenges: Iterable) -> bool:
    return any(c.streak_count > 0 for c in challenges if not c.is_archived)


def current_streak(challenges: Iterable, today: date) -> int:
    return max(
        (c.streak_count for c in challenges if not c.is_archived and c.is_streak_active(today)),
        default=0,
    )


def _urgency_key(challenge):
    # highest streak first, then earliest created, then id
    return (-challenge.streak_count, challenge.created_at or datetime.min, challenge.id or "")


def at_risk_challenges(challenges: Iterable, today: date) -> list:
    return [
        c for c in challenges
        if not c.is_archived
        and not c.is_completed
        and not c.is_completed_today(today)
        and c.has_streak_expired(today)
    ]


def most_urgent_challenge(challenges: Iterable, today: date):
    candidates = at_risk_challenges(challenges, today)
    if not candidates:
        return None
    return min(candidates, key=_urgency_key)


def overall_completion(challenges: Iterable, length_days: int = 100) -> float:
    challenges = list(challenges)
    if not challenges:
        return 0.0
    total_completed = sum(c.days_completed for c in challenges)
    return min(1.0, total_completed / (len(challenges) * length_days))


def sort_for_display(challenges: Iterable) -> list:
    """Active before archived, most recently modified first."""
    return sorted(challenges, key=lambda c: (c.is_archived, -c.last_modified.timestamp()))


def active_challenge(challenges: Iterable):
    active = [c for c in challenges if not c.is_archived]
    if not active:
        return None
    return max(active, key=lambda c: c.last_modified)
