from datetime import date, datetime

from hundred_days.models import Challenge
from hundred_days.services import streaks

TODAY = date(2026, 10, 18)


def challenge(id, streak=0, last=None, archived=False, days=0, created=datetime(2026, 1, 1), modified=None):
    return Challenge(
        id=id,
        title=f"Challenge {id}",
        start_date=date(2026, 9, 1),
        streak_count=streak,
        last_check_in_date=last,
        is_archived=archived,
        days_completed=days,
        created_at=created,
        last_modified=modified or created,
    )


def test_check_in_before_cutoff_counts_for_previous_day():
    assert streaks.effective_check_in_date(datetime(2026, 10, 19, 7, 59), 8) == date(2026, 10, 18)
    assert streaks.effective_check_in_date(datetime(2026, 10, 19, 8, 0), 8) == date(2026, 10, 19)
    assert streaks.effective_check_in_date(datetime(2026, 10, 19, 0, 30)) == date(2026, 10, 19)


def test_local_time_converts_from_utc():
    assert streaks.local_time(datetime(2026, 10, 19, 6, 0), "Asia/Tokyo") == datetime(2026, 10, 19, 15, 0)
    assert streaks.local_time(datetime(2026, 10, 19, 6, 0), None) == datetime(2026, 10, 19, 6, 0)
    # Standard time resumes in New York on Nov 1
    assert streaks.local_time(datetime(2026, 11, 2, 1, 0), "America/New_York") == datetime(2026, 11, 1, 20, 0)


def test_next_streak_count():
    assert streaks.next_streak_count(None, 0, TODAY) == 1
    assert streaks.next_streak_count(date(2026, 10, 17), 4, TODAY) == 5
    assert streaks.next_streak_count(TODAY, 4, TODAY) == 4
    assert streaks.next_streak_count(date(2026, 10, 15), 9, TODAY) == 1


def test_max_streak_and_active_streaks():
    items = [challenge("a", streak=3), challenge("b", streak=7, archived=True), challenge("c")]
    assert streaks.max_streak(items) == 7
    assert streaks.max_streak([]) == 0
    assert streaks.has_active_streaks(items) is True
    assert streaks.has_active_streaks([challenge("b", streak=7, archived=True)]) is False


def test_most_urgent_prefers_highest_streak_at_risk():
    yesterday = date(2026, 10, 17)
    items = [
        challenge("a", streak=3, last=yesterday),
        challenge("b", streak=10, last=yesterday),
        challenge("c", streak=20, last=TODAY),
    ]
    assert streaks.most_urgent_challenge(items, TODAY).id == "b"


def test_most_urgent_is_none_when_everything_is_checked_in():
    items = [challenge("a", streak=3, last=TODAY), challenge("b", streak=1, last=TODAY)]
    assert streaks.most_urgent_challenge(items, TODAY) is None


def test_most_urgent_tie_breaks_on_creation_then_id():
    yesterday = date(2026, 10, 17)
    items = [
        challenge("z", streak=5, last=yesterday, created=datetime(2026, 3, 1)),
        challenge("y", streak=5, last=yesterday, created=datetime(2026, 2, 1)),
        challenge("x", streak=5, last=yesterday, created=datetime(2026, 2, 1)),
    ]
    assert streaks.most_urgent_challenge(items, TODAY).id == "x"


def test_archived_and_completed_challenges_are_never_urgent():
    yesterday = date(2026, 10, 17)
    items = [
        challenge("a", streak=50, last=yesterday, archived=True),
        challenge("b", streak=99, last=yesterday, days=100),
    ]
    assert streaks.at_risk_challenges(items, TODAY) == []


def test_current_streak_ignores_broken_streaks():
    items = [
        challenge("a", streak=12, last=date(2026, 10, 10)),
        challenge("b", streak=4, last=date(2026, 10, 17)),
    ]
    assert streaks.current_streak(items, TODAY) == 4
    assert streaks.longest_streak(items) == 12


def test_overall_completion():
    items = [challenge("a", days=50), challenge("b", days=100)]
    assert streaks.overall_completion(items) == 0.75
    assert streaks.overall_completion([]) == 0.0


def test_sort_for_display_puts_archived_last():
    items = [
        challenge("old", modified=datetime(2026, 10, 1)),
        challenge("archived", archived=True, modified=datetime(2026, 10, 17)),
        challenge("new", modified=datetime(2026, 10, 15)),
    ]
    assert [c.id for c in streaks.sort_for_display(items)] == ["new", "old", "archived"]
    assert streaks.active_challenge(items).id == "new"


def test_streak_state_helpers():
    c = challenge("a", streak=2, last=date(2026, 10, 17))
    assert c.has_streak_expired(TODAY) is True
    assert c.is_streak_active(TODAY) is True
    assert c.is_streak_broken(TODAY) is False
    assert c.is_streak_broken(date(2026, 10, 19)) is True
    assert challenge("new").has_streak_expired(TODAY) is True
