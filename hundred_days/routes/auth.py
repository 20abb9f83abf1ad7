from flask import Blueprint, current_app, jsonify, request
from flask_jwt_extended import create_access_token, unset_jwt_cookies

from hundred_days.context import utcnow
from hundred_days.errors import AuthenticationError, ValidationError
from hundred_days.extensions import db, limiter
from hundred_days.models.user import User
from hundred_days.schemas.user import (
    federated_sign_in_schema,
    login_schema,
    register_schema,
    user_schema,
)
from hundred_days.services.identity import sign_in_with_provider
from hundred_days.utils.decorators import login_required_user

auth_bp = Blueprint("auth", __name__)


def _session_payload(user, status=200):
    access_token = create_access_token(identity=str(user.id))
    return jsonify({"access_token": access_token, "user": user_schema.dump(user)}), status


@auth_bp.route("/register", methods=["POST"])
@limiter.limit("5 per hour")
def register():
    data = register_schema.load(request.get_json(silent=True) or {})
    email = data["email"].strip().lower()

    if User.query.filter_by(email=email).first():
        raise ValidationError("An account with this email already exists", status_code=409, code="email_in_use")

    new_user = User(
        email=email,
        display_name=data.get("display_name"),
        timezone=data["timezone"],
        auth_provider="password",
    )
    new_user.set_password(data["password"])
    new_user.last_active = utcnow()
    db.session.add(new_user)
    db.session.commit()

    return _session_payload(new_user, 201)


@auth_bp.route("/login", methods=["POST"])
@limiter.limit("10 per 15 minutes")
def login():
    if not request.is_json:
        return jsonify({"msg": "Missing JSON"}), 400

    data = login_schema.load(request.get_json(silent=True) or {})
    user = User.query.filter_by(email=data["email"].strip().lower()).first()
    if not user or not user.check_password(data["password"]):
        raise AuthenticationError("Invalid credentials")

    user.last_active = utcnow()
    db.session.commit()
    return _session_payload(user)


@auth_bp.route("/federated", methods=["POST"])
@limiter.limit("20 per hour")
def federated():
    data = federated_sign_in_schema.load(request.get_json(silent=True) or {})
    verifiers = current_app.extensions.get("identity_verifiers")
    user, created = sign_in_with_provider(
        current_app.config,
        data["provider"],
        data["id_token"],
        display_name=data.get("display_name"),
        verifiers=verifiers,
    )
    return _session_payload(user, 201 if created else 200)


@auth_bp.route("/logout", methods=["POST"])
def logout():
    response = jsonify({"msg": "Signed out"})
    unset_jwt_cookies(response)
    return response, 200


@auth_bp.route("/me", methods=["GET"])
@login_required_user
def me(current_user):
    return jsonify(user_schema.dump(current_user)), 200
