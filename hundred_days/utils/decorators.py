# hundred_days/utils/decorators.py
from functools import wraps

from flask import g
from flask_jwt_extended import get_jwt_identity, verify_jwt_in_request

from hundred_days.context import build_context, current_context
from hundred_days.errors import AuthenticationError
from hundred_days.extensions import db
from hundred_days.models.user import User
from hundred_days.services.subscription_service import SubscriptionGate


def load_current_user():
    """User for the JWT on this request, or None when there is none."""
    verify_jwt_in_request(optional=True)
    identity = get_jwt_identity()
    if not identity:
        return None
    return db.session.get(User, int(identity))


def login_required_user(view_func):
    """
    Requires a valid JWT and passes the signed-in user to the view as
    ``current_user``. The request context is built here as well.
    """
    @wraps(view_func)
    def wrapper(*args, **kwargs):
        verify_jwt_in_request()
        user = load_current_user()
        if user is None:
            raise AuthenticationError()
        g.app_context = build_context(user)
        kwargs['current_user'] = user
        return view_func(*args, **kwargs)
    return wrapper


def pro_required(feature):
    """Reject the request with an upsell unless the user is Pro."""
    def decorator(view_func):
        @wraps(view_func)
        def wrapper(*args, **kwargs):
            SubscriptionGate(current_context()).require_pro(feature)
            return view_func(*args, **kwargs)
        return wrapper
    return decorator
