import logging

import click
from flask import Flask, jsonify, request
from flask_migrate import Migrate
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException
from werkzeug.middleware.proxy_fix import ProxyFix

from config import Config
from models import db
from routes import auth_bp, health_bp, registration_bp
from security.errors import ApiError
from utils import account_store
from utils.auth_context import load_current_user
from utils.seed import SeedError, seed_owner

logger = logging.getLogger(__name__)


def create_app(config_object=Config):
    app = Flask(__name__)
    app.config.from_object(config_object)

    # Trust X-Forwarded-For only for the configured number of proxy hops
    hops = app.config.get("PROXY_FIX_X_FOR", 0)
    if hops:
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=hops)

    # Register routes
    app.register_blueprint(health_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(registration_bp)

    # Database init
    db.init_app(app)

    # Migrations
    Migrate(app, db)

    @app.before_request
    def _load_user():
        load_current_user()

    register_error_handlers(app)

    @app.after_request
    def add_security_headers(resp):
        resp.headers["X-Content-Type-Options"] = "nosniff"
        resp.headers["X-Frame-Options"] = "DENY"
        resp.headers["Referrer-Policy"] = "no-referrer"
        resp.headers["Permissions-Policy"] = "geolocation=(), microphone=(), camera=()"
        # JSON-only API
        resp.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none';"
        return resp

    @app.after_request
    def add_cors_headers(resp):
        origin = request.headers.get("Origin")
        if origin and origin in app.config.get("CORS_ALLOWED_ORIGINS", []):
            resp.headers["Access-Control-Allow-Origin"] = origin
            resp.headers["Access-Control-Allow-Methods"] = "GET, POST, PUT, DELETE, OPTIONS"
            resp.headers["Access-Control-Allow-Headers"] = "Authorization, Content-Type"
            resp.headers["Vary"] = "Origin"
        return resp

    register_cli(app)

    return app


def register_error_handlers(app):
    @app.errorhandler(ApiError)
    def _api_error(err):
        resp = jsonify(err.to_dict())
        retry_after = getattr(err, "retry_after", None)
        if retry_after:
            resp.headers["Retry-After"] = str(retry_after)
        return resp, err.status_code

    @app.errorhandler(SQLAlchemyError)
    def _db_error(err):
        db.session.rollback()
        logger.exception("Unhandled database error on %s %s ip=%s",
                         request.method, request.path, request.remote_addr)
        return jsonify(error="Unexpected failure"), 500

    @app.errorhandler(HTTPException)
    def _http_error(err):
        return jsonify(error=err.description), err.code

#-------------------------

def register_cli(app):
    @app.cli.command("seed-owner")
    def seed_owner_command():
        """Create the owner account from INITIAL_EMAIL / INITIAL_PASSWORD."""
        try:
            user, created = seed_owner(app.config.get("INITIAL_EMAIL"), app.config.get("INITIAL_PASSWORD"))
        except SeedError as exc:
            raise click.ClickException(str(exc))

        if created:
            click.echo(f"{user.email} created as owner")
        else:
            click.echo("Owner account already exists. Skipping creation.")

    @app.cli.command("set-active")
    @click.argument("email")
    @click.option("--active/--inactive", default=True)
    def set_active(email, active):
        """Enable or disable login for an account."""
        user = account_store.find_by_email(email)
        if not user:
            raise click.ClickException("User not found")

        user.is_active = active
        db.session.commit()
        click.echo(f"{user.email} is now {'active' if active else 'inactive'}")

#-------------------------


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    app = create_app()
    # Run locally
    app.run(host="127.0.0.1", port=5002)
