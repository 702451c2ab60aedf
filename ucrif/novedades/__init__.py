from __future__ import annotations

from flask import Blueprint

novedades_bp = Blueprint("novedades", __name__, url_prefix="/novedades")

from ucrif.novedades import routes  # noqa: E402,F401
