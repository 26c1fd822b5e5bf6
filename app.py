import logging

import click
from flask import Flask, jsonify
from flask_migrate import Migrate

from config import Config
from models import db
from routes import health_bp, booking_bp, admin_bp
from scheduling.clock import SystemClock
from scheduling.errors import BookingError
from scheduling.notifications import ResponderNotifier

logger = logging.getLogger(__name__)


def create_app(config_object=Config, clock=None, notifier=None):
    app = Flask(__name__)
    app.config.from_object(config_object)

    logging.basicConfig(
        level=app.config.get("LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Injected collaborators: "today" and outbound notifications
    app.extensions["booking_clock"] = clock or SystemClock()
    app.extensions["booking_notifier"] = notifier or ResponderNotifier()

    # Register routes
    app.register_blueprint(health_bp)
    app.register_blueprint(booking_bp)
    app.register_blueprint(admin_bp)

    # Database init
    db.init_app(app)

    # Migrations
    Migrate(app, db)

    @app.errorhandler(BookingError)
    def _booking_error(exc):
        if exc.status_code >= 500:
            logger.error("Booking request failed: %s", exc)
        return jsonify(error=exc.public_message), exc.status_code

    @app.after_request
    def add_security_headers(resp):
        resp.headers["X-Content-Type-Options"] = "nosniff"
        # Approve/deny URLs carry capability tokens; never leak them via Referer
        resp.headers["Referrer-Policy"] = "no-referrer"
        resp.headers["Permissions-Policy"] = "geolocation=(), microphone=(), camera=()"
        return resp


    register_cli(app)


    return app

#-------------------------
from models.booking_link import BookingLink
from models.calendar import Calendar
from models.time_slot_rule import TimeSlotRule
from security.admin_key import hash_admin_key

def register_cli(app):
    @app.cli.command("hash-admin-key")
    @click.argument("key")
    def hash_key(key):
        """Print the bcrypt hash to put in ADMIN_API_KEY_HASH."""
        print(hash_admin_key(key))

    @app.cli.command("seed-demo")
    def seed_demo():
        """Create a demo calendar with a Monday rule and an approval link (idempotent)."""
        calendar = Calendar.query.filter_by(name="Demo Calendar").first()
        if not calendar:
            calendar = Calendar(name="Demo Calendar", timezone="UTC")
            db.session.add(calendar)
            db.session.flush()
            db.session.add(TimeSlotRule(
                calendar_id=calendar.id, day_of_week=1,
                start_time="09:00", end_time="12:00",
                slot_duration=30, buffer_time=0, max_bookings=1,
            ))
            db.session.add(BookingLink(
                calendar_id=calendar.id, slug="intro-call", name="Intro Call",
                duration=30, auto_accept=False,
            ))
            db.session.commit()

        print(f"/book/{calendar.id}/intro-call")

#-------------------------




if __name__ == "__main__":
    app = create_app()
    # Run locally
    app.run(host="127.0.0.1", port=5002)
