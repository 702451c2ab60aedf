from __future__ import annotations

from flask import Blueprint, jsonify, request, session
from flask_login import current_user, login_required, login_user, logout_user
from werkzeug.security import check_password_hash

from ucrif.core.i18n import SUPPORTED_LANGS, translate
from ucrif.core.models import User

auth_bp = Blueprint("auth", __name__, url_prefix="/auth")


def _credentials() -> tuple[str, str]:
    payload = request.get_json(silent=True) or request.form
    email = (payload.get("email") or "").strip().lower()
    password = payload.get("password") or ""
    return email, password


@auth_bp.post("/login")
def login_post():
    email, password = _credentials()
    user = User.query.filter_by(email=email).first()
    if not user or not user.is_active or not check_password_hash(user.password_hash, password):
        return jsonify(ok=False, message=translate("auth.invalid_credentials")), 401
    login_user(user)
    return jsonify(ok=True, userId=str(user.id))


@auth_bp.get("/me")
@login_required
def me():
    return jsonify(ok=True, userId=str(current_user.id), email=current_user.email)


@auth_bp.post("/logout")
@login_required
def logout():
    logout_user()
    return jsonify(ok=True)


@auth_bp.post("/lang")
def set_lang():
    payload = request.get_json(silent=True) or request.form
    lang = payload.get("lang", "es")
    if lang not in SUPPORTED_LANGS:
        lang = "es"
    session["lang"] = lang
    return jsonify(ok=True, lang=lang)
