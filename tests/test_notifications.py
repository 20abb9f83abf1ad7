from datetime import date, datetime

import pytest
from sqlalchemy.exc import OperationalError

from hundred_days.errors import NotificationsNotAuthorizedError, ProFeatureRequiredError
from hundred_days.events import MILESTONE_REACHED, NOTIFICATION_SENT, Event
from hundred_days.extensions import db
from hundred_days.models import Notification, Reminder
from hundred_days.services.challenge_service import ChallengeService
from hundred_days.services.check_in_service import CheckInService
from hundred_days.services.notification_service import MilestoneNotifier, NotificationService, dispatch_due


@pytest.fixture
def authorized(ctx):
    NotificationService(ctx).set_authorization(True, push_token="device-token")
    return ctx


def dispatch(app, clock):
    bus = app.extensions["event_bus"]
    return dispatch_due(clock(), bus, app.config.get("CHECK_IN_CUTOFF_HOUR", 0))


def test_scheduling_requires_authorization(ctx):
    with pytest.raises(NotificationsNotAuthorizedError):
        NotificationService(ctx).schedule_daily_reminder()


def test_daily_reminder_defaults_to_eight_pm(authorized):
    reminder = NotificationService(authorized).schedule_daily_reminder()
    assert (reminder.hour, reminder.minute) == (20, 0)
    assert reminder.identifier == "dailyCheckInReminder"


def test_custom_reminder_time_is_pro_only(authorized, pro_ctx):
    with pytest.raises(ProFeatureRequiredError):
        NotificationService(authorized).schedule_daily_reminder(6, 30)

    service = NotificationService(pro_ctx)
    service.set_authorization(True)
    reminder = service.update_reminder_time(6, 30)
    assert reminder.to_dict()["time"] == "06:30"


def test_rescheduling_replaces_daily_reminder(authorized):
    service = NotificationService(authorized)
    service.schedule_daily_reminder()
    service.schedule_daily_reminder()
    assert Reminder.query.filter_by(user_id=authorized.user.id, kind="daily").count() == 1


def test_streak_reminder_only_when_something_is_unchecked(authorized):
    service = NotificationService(authorized)
    assert service.schedule_streak_reminder() is None

    challenge = ChallengeService(authorized).create("Stretch")
    reminder = service.schedule_streak_reminder()
    assert reminder.identifier == "streakReminder"

    CheckInService(authorized).check_in(challenge.id)
    assert service.schedule_streak_reminder() is None
    assert reminder.is_enabled is False


def test_challenge_reminder_requires_pro(authorized):
    challenge = ChallengeService(authorized).create("Stretch")
    with pytest.raises(ProFeatureRequiredError):
        NotificationService(authorized).schedule_challenge_reminder(challenge.id, 7)


def test_revoking_permission_disables_reminders(authorized):
    service = NotificationService(authorized)
    reminder = service.schedule_daily_reminder()
    service.set_authorization(False)
    assert reminder.is_enabled is False


def test_dispatch_sends_due_daily_reminder_once(app, authorized, clock, events):
    NotificationService(authorized).schedule_daily_reminder()
    clock.set(datetime(2026, 10, 18, 20, 0))

    assert dispatch(app, clock) == 1
    assert dispatch(app, clock) == 0

    notification = Notification.query.filter_by(user_id=authorized.user.id).one()
    assert notification.type == "daily_reminder"
    assert any(e.topic == NOTIFICATION_SENT for e in events)


def test_dispatch_ignores_reminders_not_due(app, authorized, clock):
    NotificationService(authorized).schedule_daily_reminder()
    clock.set(datetime(2026, 10, 18, 19, 59))
    assert dispatch(app, clock) == 0


def test_streak_reminder_names_most_urgent_challenge(app, authorized, clock):
    challenge = ChallengeService(authorized).create("Stretch")
    challenge.streak_count = 5
    challenge.days_completed = 5
    challenge.last_check_in_date = date(2026, 10, 17)
    NotificationService(authorized).schedule_streak_reminder()
    clock.set(datetime(2026, 10, 18, 20, 0))

    assert dispatch(app, clock) == 1
    notification = Notification.query.filter_by(type="streak_risk").one()
    assert "5-day streak" in notification.content
    assert notification.challenge_id == challenge.id


def test_streak_reminder_skipped_after_check_in(app, authorized, clock):
    challenge = ChallengeService(authorized).create("Stretch")
    NotificationService(authorized).schedule_streak_reminder()
    CheckInService(authorized).check_in(challenge.id)
    clock.set(datetime(2026, 10, 18, 20, 0))

    assert dispatch(app, clock) == 0
    assert Notification.query.count() == 0


def test_inbox_endpoints(app, client, authorized, auth_headers, clock):
    NotificationService(authorized).schedule_daily_reminder()
    clock.set(datetime(2026, 10, 18, 20, 0))
    dispatch(app, clock)

    inbox = client.get("/api/account/notifications?unread=true", headers=auth_headers).get_json()
    assert len(inbox) == 1

    response = client.post(f"/api/account/notifications/{inbox[0]['id']}/read", headers=auth_headers)
    assert response.get_json()["is_read"] is True
    assert client.get("/api/account/notifications?unread=true", headers=auth_headers).get_json() == []


def test_reminder_endpoints(client, auth_headers):
    response = client.put("/api/account/reminders/daily", headers=auth_headers)
    assert response.status_code == 403

    client.put("/api/account/notifications/authorization", json={"granted": True}, headers=auth_headers)
    response = client.put("/api/account/reminders/daily", headers=auth_headers)
    assert response.status_code == 200
    assert response.get_json()["time"] == "20:00"

    response = client.put("/api/account/reminders/daily", json={"hour": 7}, headers=auth_headers)
    assert response.status_code == 402

    assert len(client.get("/api/account/reminders", headers=auth_headers).get_json()) == 1
    assert client.delete("/api/account/reminders", headers=auth_headers).get_json() == {"deleted": 1}


def test_reminders_fire_at_owner_local_time(app, authorized, clock):
    authorized.user.timezone = "America/New_York"
    db.session.commit()
    NotificationService(authorized).schedule_daily_reminder()

    clock.set(datetime(2026, 10, 18, 20, 0))
    assert dispatch(app, clock) == 0

    # 20:00 in New York is midnight UTC during daylight saving time
    clock.set(datetime(2026, 10, 19, 0, 0))
    assert dispatch(app, clock) == 1
    reminder = Reminder.query.filter_by(user_id=authorized.user.id, kind="daily").one()
    assert reminder.last_sent_on == date(2026, 10, 18)
    assert Notification.query.one().sent_at == datetime(2026, 10, 19, 0, 0)


def test_streak_reminder_uses_owner_calendar_day(app, authorized, clock):
    authorized.user.timezone = "Asia/Tokyo"
    db.session.commit()
    challenge = ChallengeService(authorized).create("Stretch")
    NotificationService(authorized).schedule_streak_reminder()

    # 08:00 JST on Oct 19 while it is still Oct 18 in UTC, then 20:00 JST
    clock.set(datetime(2026, 10, 18, 23, 0))
    CheckInService(authorized).check_in(challenge.id)
    clock.set(datetime(2026, 10, 19, 11, 0))

    assert dispatch(app, clock) == 0
    assert Notification.query.filter_by(type="streak_risk").count() == 0


def test_milestone_notifier_rolls_back_failed_commit(app, ctx, clock, monkeypatch):
    challenge = ChallengeService(ctx).create("Stretch")
    session = db.session()
    rolled_back = []
    real_rollback = session.rollback

    def failing_commit():
        raise OperationalError("INSERT INTO notifications", {}, Exception("database is locked"))

    def tracking_rollback():
        rolled_back.append(True)
        real_rollback()

    monkeypatch.setattr(session, "commit", failing_commit)
    monkeypatch.setattr(session, "rollback", tracking_rollback)
    sent = []
    bus = app.extensions["event_bus"]
    bus.subscribe(NOTIFICATION_SENT, sent.append)

    MilestoneNotifier(bus, clock)(Event(MILESTONE_REACHED, ctx.user.id, {
        "challenge_id": challenge.id, "title": challenge.title, "day": 7,
    }))
    monkeypatch.undo()

    assert rolled_back == [True]
    assert sent == []
    assert Notification.query.count() == 0


def test_deleting_challenge_cascades_to_reminders_and_inbox(pro_ctx, clock):
    service = NotificationService(pro_ctx)
    service.set_authorization(True)
    challenge = ChallengeService(pro_ctx).create("Stretch")
    service.schedule_challenge_reminder(challenge.id, 7)
    notification = Notification(
        user_id=pro_ctx.user.id, challenge_id=challenge.id, title="7-day milestone",
        content="Keep going!", type="milestone", sent_at=clock(),
    )
    db.session.add(notification)
    db.session.commit()

    ChallengeService(pro_ctx).delete(challenge.id, confirm=True)

    assert Reminder.query.filter_by(challenge_id=challenge.id).count() == 0
    assert db.session.get(Notification, notification.id).challenge_id is None
