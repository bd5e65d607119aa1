"""
Verification Service: Flask application
QR ticket validation and per-day entitlement check-in.
"""

import logging
import os
from datetime import datetime, timezone

from dotenv import load_dotenv
from flasgger import Swagger
from flask import Flask, jsonify
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from verification_service.extensions import db, jwt
from verification_service.models import Event, TicketType, Ticket, TicketDayEntitlement, ScanLog  # noqa: F401 register models
from verification_service.services.token_codec import TokenCodec

load_dotenv()

logger = logging.getLogger(__name__)


def _database_uri():
    if os.getenv("DATABASE_URL"):
        return os.environ["DATABASE_URL"]
    return (
        f"postgresql://{os.getenv('DB_USER', 'verification_svc_user')}"
        f":{os.getenv('DB_PASS', 'password')}"
        f"@{os.getenv('DB_HOST', 'tickets-db')}"
        f"/{os.getenv('DB_NAME', 'tickets_db')}"
    )


def create_app(test_config=None):
    app = Flask(__name__)

    # Configuration
    app.config["SQLALCHEMY_DATABASE_URI"] = _database_uri()
    app.config["SQLALCHEMY_TRACK_MODIFICATIONS"] = False
    app.config["JWT_SECRET_KEY"] = os.getenv("JWT_SECRET", "dev-secret-change-me")
    app.config["QR_SECRET"] = os.getenv("QR_SECRET", "default-secret-change-me")
    app.config["SCAN_TIMEZONE"] = os.getenv("SCAN_TIMEZONE") or None
    app.config["LOG_LEVEL"] = os.getenv("LOG_LEVEL", "INFO")
    if test_config:
        app.config.update(test_config)

    logging.basicConfig(
        level=app.config["LOG_LEVEL"],
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    # Initialize Extensions
    db.init_app(app)
    jwt.init_app(app)
    app.extensions["token_codec"] = TokenCodec(app.config["QR_SECRET"])

    Swagger(app, template={
        "securityDefinitions": {
            "Bearer": {"type": "apiKey", "name": "Authorization", "in": "header"}
        }
    })

    # Register Blueprints
    from verification_service.routes.scan_routes import scan_bp
    from verification_service.routes.ticket_routes import ticket_bp
    app.register_blueprint(scan_bp)
    app.register_blueprint(ticket_bp)

    # --- Storage faults are not scan outcomes: scanner must retry ------
    @app.errorhandler(SQLAlchemyError)
    def handle_store_fault(e):
        db.session.rollback()
        logger.exception("Entitlement store fault")
        return jsonify({
            "success": False,
            "error_code": "STORE_UNAVAILABLE",
            "message": "Ticket store unavailable, please retry the scan."
        }), 503

    # --- Health check ---------------------------------------------------
    @app.route("/health")
    def health():
        try:
            db.session.execute(text("SELECT 1"))
            return jsonify({
                "status": "healthy",
                "service": "verification-service",
                "timestamp": datetime.now(timezone.utc).isoformat(),
            }), 200
        except SQLAlchemyError as e:
            db.session.rollback()
            return jsonify({"status": "unhealthy", "service": "verification-service", "error": str(e)}), 503

    return app


if __name__ == "__main__":
    app = create_app()
    with app.app_context():
        db.create_all()
    app.run(host="0.0.0.0", port=5004, debug=True)
