from .user import User
from .username import UsernameReservation
from .challenge import Challenge
from .check_in import CheckInRecord
from .quote import Quote
from .subscription import Subscription
from .reminder import Reminder
from .notification import Notification

__all__ = [
    "User", "UsernameReservation",
    "Challenge", "CheckInRecord", "Quote",
    "Subscription", "Reminder", "Notification",
]
