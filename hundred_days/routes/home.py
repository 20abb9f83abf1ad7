from flask import Blueprint, jsonify
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from hundred_days.extensions import db

home_bp = Blueprint('home', __name__)


@home_bp.route('/health')
def health():
    """Reachability check used by clients to tell offline from server trouble."""
    try:
        db.session.execute(text("SELECT 1"))
    except SQLAlchemyError:
        db.session.rollback()
        return jsonify({"status": "unavailable", "database": False}), 503
    return jsonify({"status": "ok", "database": True}), 200
