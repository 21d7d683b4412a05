# backend/app.py
from __future__ import annotations

import os
from flask import Flask, jsonify, request
from werkzeug.exceptions import HTTPException
from werkzeug.middleware.proxy_fix import ProxyFix
from flask_cors import CORS
from sqlalchemy import event

from config import Config
from db import db, migrate
from services.errors import TicketingError

# Ensure models are imported so Flask-Migrate sees them
from models.user import User
from models.bus_route import BusRoute
from models.stop import Stop
from models.bus import Bus
from models.route_section import RouteSection
from models.section import Section
from models.ticket import Ticket, TicketCounter

# Blueprints
from routes.auth import auth_bp
from routes.fares import fares_bp
from routes.stops import stops_bp
from routes.tickets import tickets_bp
from routes.manager import manager_bp
from routes.fare_config import config_bp
from routes.bus_routes import routes_bp
from routes.buses import buses_bp
from routes.users import users_bp


def create_app(config_object=None) -> Flask:
    app = Flask(__name__)

    # Respect reverse proxy headers (scheme / host) for correct URL generation
    app.wsgi_app = ProxyFix(app.wsgi_app, x_proto=1, x_host=1)  # type: ignore[arg-type]

    # Load config + init extensions
    app.config.from_object(config_object or Config)
    origins = [o.strip() for o in str(app.config.get("CORS_ORIGINS") or "*").split(",") if o.strip()]
    CORS(app, resources={r"/*": {"origins": origins or "*"}})

    db.init_app(app)
    migrate.init_app(app, db)

    with app.app_context():
        # Ticket timestamps are naive UTC; keep MySQL sessions on UTC too
        if db.engine.dialect.name == "mysql":
            @event.listens_for(db.engine, "connect")
            def _set_utc(dbapi_conn, _):
                cur = dbapi_conn.cursor()
                try:
                    cur.execute("SET time_zone = '+00:00'")
                finally:
                    cur.close()

        # Touch models so Alembic/Flask-Migrate registers them
        _ = (User, BusRoute, Stop, Bus, RouteSection, Section, Ticket, TicketCounter)

    # Health check
    @app.route("/")
    def health_check():
        return jsonify(status="ok", name=app.config.get("APP_NAME")), 200

    @app.errorhandler(TicketingError)
    def handle_ticketing_error(e: TicketingError):
        if e.status >= 500:
            app.logger.error("[app] %s %s -> %s", request.method, request.path, e.message)
        return jsonify(e.to_dict()), e.status

    @app.errorhandler(404)
    def handle_404(e):
        return jsonify(error="Not Found", path=request.path), 404

    # Global error handler
    @app.errorhandler(Exception)
    def handle_any_error(e: Exception):
        if isinstance(e, HTTPException):
            return jsonify(error=e.description), e.code
        app.logger.exception("[app] unhandled error on %s %s", request.method, request.path)
        return jsonify(error="internal error"), 500

    # Register blueprints
    app.register_blueprint(auth_bp)
    app.register_blueprint(fares_bp)
    app.register_blueprint(stops_bp)
    app.register_blueprint(tickets_bp)
    app.register_blueprint(manager_bp)
    app.register_blueprint(config_bp)
    app.register_blueprint(routes_bp)
    app.register_blueprint(buses_bp)
    app.register_blueprint(users_bp)

    # CLI: demo data (route RT-001, fares, buses, users)
    @app.cli.command("seed-demo")
    def seed_demo_cmd():
        from seed import seed_demo
        seed_demo()
        print("Demo data seeded.")

    return app


# Optional local entrypoint (useful for quick dev runs)
if __name__ == "__main__":
    app = create_app()
    app.run(
        host=os.environ.get("HOST", "0.0.0.0"),
        port=int(os.environ.get("PORT", "5000")),
        debug=bool(os.environ.get("FLASK_DEBUG", "")),
    )
