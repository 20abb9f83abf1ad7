"""Per-request application context handed to service constructors."""
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Callable, Optional

from flask import current_app, g

from hundred_days.events import EventBus


def utcnow() -> datetime:
    """Naive UTC timestamp, the storage convention for every DateTime column."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


@dataclass
class AppContext:
    user: Optional["User"]
    events: EventBus
    config: dict = field(default_factory=dict)
    clock: Callable[[], datetime] = utcnow

    def now(self) -> datetime:
        return self.clock()

    @property
    def timezone(self) -> Optional[str]:
        return getattr(self.user, "timezone", None)

    def local_now(self) -> datetime:
        """Wall-clock time in the user's own timezone."""
        from hundred_days.services.streaks import local_time

        return local_time(self.now(), self.timezone)

    def today(self) -> date:
        """Calendar day check-ins currently count for, in the user's timezone."""
        from hundred_days.services.streaks import effective_check_in_date

        return effective_check_in_date(self.local_now(), self.config.get("CHECK_IN_CUTOFF_HOUR", 0))

    @property
    def user_id(self):
        return self.user.id if self.user else None


def get_event_bus() -> EventBus:
    return current_app.extensions["event_bus"]


def build_context(user=None) -> AppContext:
    return AppContext(
        user=user,
        events=get_event_bus(),
        config=current_app.config,
        clock=current_app.config.get("CLOCK") or utcnow,
    )


def current_context() -> AppContext:
    """Context for the signed-in user of this request, cached on ``g``."""
    ctx = g.get("app_context")
    if ctx is None:
        from hundred_days.utils.decorators import load_current_user

        ctx = build_context(load_current_user())
        g.app_context = ctx
    return ctx
