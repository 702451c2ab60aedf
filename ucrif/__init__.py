from __future__ import annotations

import logging

import click
from flask import Flask, jsonify

from ucrif.core.auth import auth_bp
from ucrif.core.config import Config
from ucrif.core.extensions import db, login_manager, migrate
from ucrif.core.i18n import translate
from ucrif.core.models import Membership, Organization, User, seed_demo_data
from ucrif.core.paths import RecordContext, scope_for
from ucrif.core.tenancy import load_tenant_context
from ucrif.novedades import novedades_bp


def create_app(config_object: type[Config] | None = None) -> Flask:
    app = Flask(__name__)
    app.config.from_object(config_object or Config)
    configure_logging(app)

    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)

    # Path scheme is fixed for the lifetime of the app
    app.extensions["ucrif.record_scope"] = scope_for(app.config["RECORD_SCOPE"])

    app.before_request(load_tenant_context)

    app.register_blueprint(auth_bp)
    app.register_blueprint(novedades_bp)

    register_cli(app)
    register_error_handlers(app)
    return app


def configure_logging(app: Flask) -> None:
    level = getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO)
    logger = logging.getLogger("ucrif")
    logger.setLevel(level)
    if not logger.handlers and not logging.getLogger().handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
        logger.addHandler(handler)


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(401)
    def unauthorized(_error):
        return jsonify(ok=False, message=translate("auth.required")), 401

    @app.errorhandler(403)
    def forbidden(_error):
        return jsonify(ok=False, message=translate("auth.forbidden")), 403

    @app.errorhandler(404)
    def not_found(_error):
        return jsonify(ok=False, message=translate("status.not_found")), 404


def register_cli(app: Flask) -> None:
    @app.cli.command("seed-demo")
    @click.option("--reset", is_flag=True, help="Delete existing data before seed.")
    def seed_demo(reset: bool) -> None:
        """Seed demo organization and users."""
        if reset:
            db.drop_all()
            db.create_all()
        if not Organization.query.first():
            seed_demo_data(db.session)
            click.echo("Demo data seeded.")
        else:
            click.echo("Seed skipped: existing organizations found.")

    @app.cli.command("codes-audit")
    @click.option("--org-code", type=str, default=None, help="Optional organization code.")
    def codes_audit(org_code: str | None) -> None:
        """Report codigo values shared by several records of one group and year."""
        from ucrif.novedades.services import find_duplicate_codes

        query = Organization.query
        if org_code:
            query = query.filter_by(code=org_code)
        organizations = query.order_by(Organization.id.asc()).all()
        if not organizations:
            click.echo("No organizations found for code audit.")
            return

        scope = app.extensions["ucrif.record_scope"]
        for organization in organizations:
            if scope.name == "user":
                user_ids = [
                    str(m.user_id)
                    for m in Membership.query.filter_by(org_id=organization.id).order_by(Membership.id.asc())
                ]
            else:
                user_ids = [None]
            total = 0
            for user_id in user_ids:
                ctx = RecordContext(tenant_id=organization.code, user_id=user_id, scope=scope)
                for dup in find_duplicate_codes(ctx):
                    total += 1
                    owner = f" user={user_id}" if user_id else ""
                    click.echo(
                        f"[{organization.code}]{owner} grupo={dup.grupo} anio={dup.anio} "
                        f"codigo={dup.codigo} docs={','.join(dup.doc_ids)}"
                    )
            click.echo(f"[{organization.code}] duplicates={total}")


@login_manager.user_loader
def load_user(user_id: str) -> User | None:
    return db.session.get(User, int(user_id))
