from flask import Blueprint

account_bp = Blueprint('account', __name__)

from . import profile, subscription, reminders  # noqa: E402,F401
