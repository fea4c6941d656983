import os
import logging
import secrets

import click
from flask import Flask, jsonify, request
from flask_wtf.csrf import CSRFError

from planboard.config import config_by_name
from planboard.errors import PlanningError
from planboard.extensions import db, migrate, login_manager, csrf, limiter

logger = logging.getLogger(__name__)


def create_app(config_name=None):
    """Application factory."""

    if config_name is None:
        config_name = os.environ.get("FLASK_ENV", "development")

    app = Flask(__name__)
    app.config.from_object(config_by_name[config_name])

    # --- Required env vars (TestConfig requires none) ---
    try:
        config_by_name[config_name].validate()
    except RuntimeError as e:
        app.logger.warning(f"Config validation: {e}")

    # --- Init extensions ---
    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)
    csrf.init_app(app)
    limiter.init_app(app)

    # --- Import models so Alembic can discover them ---
    with app.app_context():
        from planboard import models  # noqa: F401

    # --- Register blueprints ---
    from planboard.blueprints.planning import planning_bp

    app.register_blueprint(planning_bp)

    # --- CSRF: only cookie-authenticated writes need a token ---
    @app.before_request
    def check_csrf():
        if request.method in ("GET", "HEAD", "OPTIONS"):
            return
        if request.headers.get("Authorization", "").startswith("Bearer "):
            return
        if app.config.get("WTF_CSRF_ENABLED", True):
            csrf.protect()

    @app.route("/health")
    def health():
        return jsonify({"status": "ok"})

    register_error_handlers(app)

    # --- CLI commands ---
    register_cli(app)

    # --- Security headers ---
    @app.after_request
    def add_security_headers(response):
        """Add security headers to every response."""
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Content-Security-Policy"] = (
            "default-src 'none'; frame-ancestors 'none';"
        )
        if not app.debug:
            response.headers["Strict-Transport-Security"] = (
                "max-age=31536000; includeSubDomains"
            )
        return response

    # --- Logging ---
    if not app.debug:
        logging.basicConfig(level=app.config.get("LOG_LEVEL", "INFO"))

    return app


def register_error_handlers(app):
    """Render every error as JSON; the board client maps them back."""

    @app.errorhandler(PlanningError)
    def planning_error(e):
        db.session.rollback()
        if e.status_code >= 500:
            logger.error(f"{request.method} {request.path} failed: {e.message}")
        return jsonify(e.to_dict()), e.status_code

    @app.errorhandler(CSRFError)
    def csrf_error(e):
        return jsonify({"error": "csrf_failed", "message": e.description}), 400

    @app.errorhandler(404)
    def not_found(e):
        return jsonify({"error": "not_found", "message": "Not found."}), 404

    @app.errorhandler(405)
    def method_not_allowed(e):
        return jsonify({"error": "method_not_allowed", "message": "Method not allowed."}), 405

    @app.errorhandler(429)
    def rate_limited(e):
        return jsonify({"error": "rate_limited", "message": str(e.description)}), 429

    @app.errorhandler(500)
    def server_error(e):
        db.session.rollback()
        return jsonify({"error": "server_error", "message": "Internal server error."}), 500


def register_cli(app):
    """Register custom CLI commands with the Flask app."""

    @app.cli.command("seed-demo")
    @click.option("--email", default="creator@planboard.local", help="User email")
    @click.option("--preset", default="basicCreator", help="Preset workflow key")
    def seed_demo(email, preset):
        """Create a demo user + API token + preset workflow + sample ideas.

        Usage:
            flask seed-demo
            flask seed-demo --email me@example.com --preset simple
        """
        from planboard.models.user import User
        from planboard.models.idea import Idea, Series
        from planboard.services import card_service, workflow_service

        # --- 1. User ---
        user = User.query.filter_by(email=email).first()
        if user:
            click.echo(f"User already exists: {email}")
        else:
            user = User(
                email=email,
                full_name="Demo Creator",
                api_token=secrets.token_urlsafe(32),
            )
            db.session.add(user)
            db.session.flush()
            click.echo(f"Created user: {email}")

        # --- 2. Workflow ---
        workflow = workflow_service.get_workflow(user.id)
        if workflow is None:
            workflow = workflow_service.create_workflow(user.id, preset=preset)

        # --- 3. Series + ideas, 4. First card (only on a fresh user) ---
        has_samples = (
            Series.query.filter_by(user_id=user.id).first() is not None
            or Idea.query.filter_by(user_id=user.id).first() is not None
        )
        if has_samples:
            click.echo("Sample series and ideas already exist, skipping.")
        else:
            series = Series(user_id=user.id, name="Creator Tips", target_platform="youtube", total_items=5)
            db.session.add(series)
            db.session.flush()
            idea = Idea(
                user_id=user.id,
                title="How I plan a week of videos",
                raw_text="Walk through the planning board, column by column.",
                linked_series_id=series.id,
                target_platform="youtube",
                status="refined",
            )
            db.session.add(idea)
            db.session.flush()
            card_service.create_card_from_idea(user.id, idea.id, workflow.columns[0].id)

        db.session.commit()

        click.echo("")
        click.echo("=" * 60)
        click.echo("Seed data created successfully!")
        click.echo("=" * 60)
        click.echo(f"  User:      {user.email} (id: {user.id})")
        click.echo(f"  API token: {user.api_token}")
        click.echo(f"  Columns:   {', '.join(workflow.column_names)}")
        click.echo("=" * 60)

    @app.cli.command("show-board")
    @click.option("--email", required=True, help="User email")
    def show_board(email):
        """Print a user's board, grouped by column."""
        from planboard.board.controller import BoardController
        from planboard.board.gateway import ServiceGateway
        from planboard.models.user import User

        user = User.query.filter_by(email=email).first()
        if user is None:
            click.echo(f"No user with email {email}")
            return

        board = BoardController(ServiceGateway(user.id))
        if not board.load():
            click.echo("Workflow not configured yet.")
            return

        for column in board.columns:
            cards = board.cards_by_column()[column["id"]]
            click.echo(f"{column['name']} ({len(cards)})")
            for card in cards:
                mark = "x" if card.get("checked") else " "
                click.echo(f"  [{mark}] {card['order']:>3}  {card['title']}")
