from __future__ import annotations

from functools import wraps

from flask import abort, current_app, g
from flask_login import current_user

from ucrif.core.models import Membership
from ucrif.core.paths import RecordContext


def load_tenant_context() -> None:
    """Resolve the tenant of the logged-in user and the record context for the request."""
    g.org = None
    g.membership = None
    g.record_ctx = None
    if not current_user.is_authenticated:
        return
    membership = (
        Membership.query.filter_by(user_id=current_user.id)
        .order_by(Membership.id.asc())
        .first()
    )
    if membership is None:
        abort(403)
    g.org = membership.organization
    g.membership = membership
    g.record_ctx = RecordContext(
        tenant_id=g.org.code or current_app.config["DEFAULT_APP_ID"],
        user_id=str(current_user.id),
        scope=current_app.extensions["ucrif.record_scope"],
    )


def record_context() -> RecordContext:
    ctx = getattr(g, "record_ctx", None)
    if ctx is None:
        # unauthenticated: protocol operations reject it themselves
        return RecordContext(
            tenant_id=current_app.config["DEFAULT_APP_ID"],
            user_id=None,
            scope=current_app.extensions["ucrif.record_scope"],
        )
    return ctx


def require_membership(fn):
    @wraps(fn)
    def wrapper(*args, **kwargs):
        if not current_user.is_authenticated:
            abort(401)
        if getattr(g, "org", None) is None:
            abort(403)
        return fn(*args, **kwargs)

    return wrapper
