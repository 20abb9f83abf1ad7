import logging
import os

from flask import Flask, jsonify, request
from flask_cors import CORS
from flask_jwt_extended import decode_token
from flask_jwt_extended.exceptions import JWTExtendedException
from flask_socketio import join_room
from jwt import PyJWTError
from sqlalchemy.exc import SQLAlchemyError

from hundred_days.config import config
from hundred_days.context import build_context, utcnow
from hundred_days.errors import register_error_handlers
from hundred_days.events import EventBus, socketio_bridge, user_room
from hundred_days.extensions import db, jwt, limiter, ma, migrate, scheduler, socketio
from hundred_days.models import User


def configure_logging(app):
    level = getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO)
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    app.logger.setLevel(level)


def configure_events(app):
    from hundred_days.services.notification_service import MilestoneNotifier
    from hundred_days.services.stats_service import StatsRefresher

    bus = EventBus()
    app.extensions["event_bus"] = bus
    bus.subscribe("*", socketio_bridge(socketio))
    StatsRefresher(bus, lambda user_id: build_context(db.session.get(User, user_id)).today()).register()
    MilestoneNotifier(bus, lambda: (app.config.get("CLOCK") or utcnow)()).register()
    return bus


def configure_scheduler(app):
    """Register the reminder and streak jobs and start the scheduler once."""
    from hundred_days.services.challenge_service import ChallengeService
    from hundred_days.services.notification_service import dispatch_due

    if app.config.get('SCHEDULER_INITIALIZED', False):
        return

    scheduler.init_app(app)

    @scheduler.task('cron', id='dispatch_reminders', minute='*', replace_existing=True)
    def dispatch_reminders():
        with app.app_context():
            ctx = build_context()
            dispatch_due(ctx.now(), ctx.events, app.config.get("CHECK_IN_CUTOFF_HOUR", 0))

    # Hourly so every timezone passes its cutoff shortly before a run
    @scheduler.task('cron', id='reset_expired_streaks', hour='*', minute=5, replace_existing=True)
    def reset_expired_streaks():
        with app.app_context():
            app.logger.info(f"Running streak reset job at {utcnow()}...")
            for user in User.query.all():
                try:
                    ChallengeService(build_context(user)).reset_expired_streaks()
                except SQLAlchemyError as e:
                    app.logger.error(f"Error resetting streaks for user {user.id}: {e}")
                    db.session.rollback()

    scheduler.start()
    app.config['SCHEDULER_INITIALIZED'] = True


def register_socket_handlers():
    @socketio.on('connect')
    def on_connect(auth=None):
        token = (auth or {}).get('token') or request.args.get('token')
        if not token:
            return False
        try:
            identity = decode_token(token)["sub"]
        except (JWTExtendedException, PyJWTError):
            return False
        join_room(user_room(identity))
        return True


def create_app(config_name=None):
    app = Flask(__name__)
    config_name = config_name or os.getenv('FLASK_CONFIG', 'default')
    app.config.from_object(config[config_name])
    configure_logging(app)

    # Extensions
    db.init_app(app)
    ma.init_app(app)
    jwt.init_app(app)
    migrate.init_app(app, db)
    limiter.init_app(app)
    CORS(app, resources={r"/*": {
        "origins": app.config["CORS_ORIGINS"],
        "allow_headers": ["Content-Type", "Authorization"],
        "methods": ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]
    }}, supports_credentials=True)
    socketio.init_app(app, async_mode=app.config["SOCKETIO_ASYNC_MODE"])

    configure_events(app)
    register_error_handlers(app)

    @jwt.user_lookup_loader
    def user_lookup_callback(_jwt_header, jwt_data):
        return db.session.get(User, int(jwt_data["sub"]))

    @jwt.expired_token_loader
    def expired_token_callback(jwt_header, jwt_payload):
        return jsonify({"msg": "Session expired. Please sign in again.", "code": "token_expired"}), 401

    @jwt.invalid_token_loader
    def invalid_token_callback(error):
        return jsonify({"msg": "Invalid session token", "code": "not_authenticated"}), 401

    @jwt.unauthorized_loader
    def unauthorized_callback(error):
        return jsonify({"msg": "You must be signed in to continue", "code": "not_authenticated"}), 401

    # Blueprints
    from hundred_days.routes.account import account_bp
    from hundred_days.routes.auth import auth_bp
    from hundred_days.routes.challenges import challenges_bp, progress_bp
    from hundred_days.routes.home import home_bp
    from hundred_days.routes.quotes import quotes_bp

    app.register_blueprint(home_bp)
    app.register_blueprint(auth_bp, url_prefix="/api/auth")
    app.register_blueprint(challenges_bp, url_prefix="/api/challenges")
    app.register_blueprint(progress_bp, url_prefix="/api/progress")
    app.register_blueprint(account_bp, url_prefix="/api/account")
    app.register_blueprint(quotes_bp, url_prefix="/api/quotes")

    register_socket_handlers()

    @app.cli.command("seed-quotes")
    def seed_quotes_command():
        """Load the bundled motivational quotes."""
        from hundred_days.services.quote_service import seed_quotes

        print(f"Seeded {seed_quotes()} quotes")

    if app.config.get("SCHEDULER_ENABLED"):
        configure_scheduler(app)

    return app
