from datetime import date, datetime

import pytest

from hundred_days.errors import (
    AlreadyCheckedInError,
    ChallengeArchivedError,
    ChallengeCompletedError,
    ValidationError,
)
from hundred_days.events import CHALLENGES_UPDATED, CHECK_IN_RECORDED, MILESTONE_REACHED, STATS_UPDATED
from hundred_days.extensions import db
from hundred_days.models import CheckInRecord, Notification
from hundred_days.services.challenge_service import ChallengeService
from hundred_days.services.check_in_service import CheckInService


@pytest.fixture
def challenge(ctx):
    return ChallengeService(ctx).create("Run every day")


def test_first_check_in_starts_streak(ctx, challenge):
    result = CheckInService(ctx).check_in(challenge.id, note="5k easy")

    assert result.created is True
    assert result.challenge.streak_count == 1
    assert result.challenge.days_completed == 1
    assert result.challenge.last_check_in_date == date(2026, 10, 18)
    assert result.record.day_number == 1
    assert result.record.note == "5k easy"


def test_second_check_in_same_day_is_a_no_op(ctx, challenge):
    service = CheckInService(ctx)
    service.check_in(challenge.id)
    result = service.check_in(challenge.id)

    assert result.created is False
    assert result.challenge.streak_count == 1
    assert result.challenge.days_completed == 1
    assert CheckInRecord.query.filter_by(challenge_id=challenge.id).count() == 1


def test_consecutive_days_extend_streak(ctx, challenge, clock):
    service = CheckInService(ctx)
    service.check_in(challenge.id)
    clock.advance(days=1)
    result = service.check_in(challenge.id)

    assert result.challenge.streak_count == 2
    assert result.record.day_number == 2


def test_early_morning_check_in_counts_for_previous_day(ctx, challenge, clock):
    service = CheckInService(ctx)
    service.check_in(challenge.id)
    clock.set(datetime(2026, 10, 19, 7, 30))

    result = service.check_in(challenge.id)

    assert result.created is False
    assert result.challenge.streak_count == 1


def test_calendar_day_follows_user_timezone(ctx, challenge, clock):
    ctx.user.timezone = "Asia/Tokyo"
    db.session.commit()
    service = CheckInService(ctx)

    # 15:00 and 18:00 on Oct 19 in Tokyo
    clock.set(datetime(2026, 10, 19, 6, 0))
    first = service.check_in(challenge.id)
    clock.set(datetime(2026, 10, 19, 9, 0))
    second = service.check_in(challenge.id)

    assert first.record.date == date(2026, 10, 19)
    assert second.created is False
    assert second.challenge.streak_count == 1


def test_grace_cutoff_applies_in_user_timezone(ctx, challenge, clock):
    ctx.user.timezone = "America/Los_Angeles"
    db.session.commit()

    # 07:00 on Oct 19 in Los Angeles still counts for Oct 18
    clock.set(datetime(2026, 10, 19, 14, 0))
    result = CheckInService(ctx).check_in(challenge.id)

    assert result.challenge.last_check_in_date == date(2026, 10, 18)


def test_gap_resets_streak_but_keeps_days(ctx, challenge, clock):
    service = CheckInService(ctx)
    service.check_in(challenge.id)
    clock.advance(days=1)
    service.check_in(challenge.id)
    clock.advance(days=3)
    result = service.check_in(challenge.id)

    assert result.challenge.streak_count == 1
    assert result.challenge.days_completed == 3


def test_completed_challenge_refuses_check_in(ctx, challenge, clock):
    challenge.days_completed = 100
    challenge.last_check_in_date = date(2026, 10, 1)

    with pytest.raises(ChallengeCompletedError):
        CheckInService(ctx).check_in(challenge.id)


def test_archived_challenge_refuses_check_in(ctx, challenge):
    ChallengeService(ctx).archive(challenge.id)

    with pytest.raises(ChallengeArchivedError):
        CheckInService(ctx).check_in(challenge.id)


def test_timed_challenge_needs_duration(ctx):
    timed = ChallengeService(ctx).create("Meditate", is_timed=True)
    service = CheckInService(ctx)

    with pytest.raises(ValidationError) as excinfo:
        service.check_in(timed.id)
    assert excinfo.value.code == "duration_required"

    result = service.check_in(timed.id, duration_minutes=15)
    assert result.record.duration_minutes == 15


def test_check_in_publishes_events(ctx, challenge, events):
    CheckInService(ctx).check_in(challenge.id)

    topics = [e.topic for e in events]
    assert CHECK_IN_RECORDED in topics
    assert CHALLENGES_UPDATED in topics
    assert STATS_UPDATED in topics
    stats = next(e for e in events if e.topic == STATS_UPDATED)
    assert stats.payload["current_streak"] == 1


def test_milestone_day_creates_notification(ctx, challenge, clock, events):
    challenge.days_completed = 6
    challenge.streak_count = 6
    challenge.last_check_in_date = date(2026, 10, 17)

    result = CheckInService(ctx).check_in(challenge.id)

    assert result.milestone == 7
    assert any(e.topic == MILESTONE_REACHED for e in events)
    notification = Notification.query.filter_by(user_id=ctx.user.id, type="milestone").one()
    assert "Day 7" in notification.content


def test_history_and_note_update(ctx, challenge, clock):
    service = CheckInService(ctx)
    first = service.check_in(challenge.id).record
    clock.advance(days=1)
    service.check_in(challenge.id)

    history = service.history(challenge.id)
    assert [r.day_number for r in history] == [2, 1]

    updated = service.update_note(challenge.id, first.id, "felt great")
    assert updated.note == "felt great"


def test_strict_mode_reports_repeat_check_in(ctx, challenge):
    service = CheckInService(ctx)
    service.check_in(challenge.id)

    with pytest.raises(AlreadyCheckedInError):
        service.check_in(challenge.id, strict=True)


def test_reset_expired_streaks(ctx, challenge, clock):
    CheckInService(ctx).check_in(challenge.id)
    service = ChallengeService(ctx)

    clock.advance(days=1)
    assert service.reset_expired_streaks() == []

    clock.advance(days=1)
    reset = service.reset_expired_streaks()
    assert [c.id for c in reset] == [challenge.id]
    assert challenge.streak_count == 0
    assert challenge.days_completed == 1
