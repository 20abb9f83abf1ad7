"""Error types surfaced to clients as human-readable messages.

Every error renders as ``{"msg": ..., "code": ...}``. Nothing here retries;
the client re-triggers the action.
"""
import logging

from flask import jsonify
from flask_jwt_extended.exceptions import JWTExtendedException
from marshmallow import ValidationError as SchemaValidationError
from sqlalchemy.exc import SQLAlchemyError

from hundred_days.extensions import db

logger = logging.getLogger(__name__)

BACKEND_UNAVAILABLE_MSG = "We couldn't reach the server. Please try again."


class AppError(Exception):
    status_code = 400
    code = "error"
    message = "Something went wrong"
    upsell = False

    def __init__(self, message=None, status_code=None, code=None):
        super().__init__(message or self.message)
        self.message = message or self.message
        if status_code is not None:
            self.status_code = status_code
        if code is not None:
            self.code = code

    def to_dict(self):
        payload = {"msg": self.message, "code": self.code}
        if self.upsell:
            payload["upsell"] = True
        return payload


# ---------------- Authentication ----------------
class AuthenticationError(AppError):
    status_code = 401
    code = "not_authenticated"
    message = "You must be signed in to continue"


# ---------------- Network / backend ----------------
class BackendUnavailableError(AppError):
    status_code = 503
    code = "backend_unavailable"
    message = BACKEND_UNAVAILABLE_MSG


class ExternalServiceError(AppError):
    status_code = 502
    code = "external_service_error"
    message = "An external service did not respond. Please try again."


# ---------------- Validation ----------------
class ValidationError(AppError):
    status_code = 400
    code = "invalid"


class NotFoundError(AppError):
    status_code = 404
    code = "not_found"
    message = "Not found"


class UsernameTakenError(ValidationError):
    status_code = 409
    code = "username_taken"
    message = "Username already taken"


class UsernameCooldownError(ValidationError):
    status_code = 429
    code = "username_cooldown"

    def __init__(self, remaining):
        hours = int(remaining.total_seconds()) // 3600
        minutes = int(remaining.total_seconds()) % 3600 // 60
        super().__init__(f"You can change your username again in {hours}h {minutes}m")
        self.remaining = remaining


class AlreadyCheckedInError(ValidationError):
    status_code = 409
    code = "already_checked_in"
    message = "You've already checked in today. Come back tomorrow!"


class ChallengeCompletedError(ValidationError):
    status_code = 409
    code = "challenge_completed"
    message = "This challenge is already complete"


class ChallengeArchivedError(ValidationError):
    status_code = 409
    code = "challenge_archived"
    message = "Archived challenges can't be checked in. Restore it first."


# ---------------- Entitlement ----------------
class ProFeatureRequiredError(AppError):
    status_code = 402
    code = "subscription_required"
    message = "This feature requires a Pro subscription"
    upsell = True


class ChallengeLimitError(ProFeatureRequiredError):
    code = "challenge_limit"

    def __init__(self, limit):
        super().__init__(f"Free accounts can run {limit} challenges at a time. Upgrade to Pro for unlimited challenges.")


class NotificationsNotAuthorizedError(AppError):
    status_code = 403
    code = "notifications_not_authorized"
    message = "Notifications not authorized"


def register_error_handlers(app):
    @app.errorhandler(AppError)
    def handle_app_error(error):
        app.logger.warning("%s: %s", error.code, error.message)
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(SchemaValidationError)
    def handle_schema_error(error):
        messages = error.normalized_messages()
        field, problems = next(iter(messages.items()))
        detail = problems[0] if isinstance(problems, list) else problems
        msg = f"{field}: {detail}" if field != "_schema" else str(detail)
        return jsonify({"msg": msg, "code": "invalid", "errors": messages}), 400

    @app.errorhandler(SQLAlchemyError)
    def handle_backend_error(error):
        app.logger.error(f"Backend error: {error}")
        db.session.rollback()
        return jsonify({"msg": BACKEND_UNAVAILABLE_MSG, "code": BackendUnavailableError.code}), 503

    @app.errorhandler(JWTExtendedException)
    def handle_jwt_error(error):
        return jsonify({"msg": str(error), "code": AuthenticationError.code}), 401

    @app.errorhandler(404)
    def handle_not_found(error):
        return jsonify({"msg": "Not found", "code": NotFoundError.code}), 404

    @app.errorhandler(415)
    def handle_unsupported_media_type(error):
        return jsonify({"msg": "Request body must be JSON", "code": "invalid"}), 415
