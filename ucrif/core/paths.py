from __future__ import annotations

from dataclasses import dataclass

from ucrif.core.errors import NotAuthenticatedError

ROOT_COLLECTION = "artifacts"


class TenantScope:
    """All users of a tenant share ``artifacts/{tenant}/{collection}``."""

    name = "tenant"

    def root(self, tenant_id: str, user_id: str | None) -> str:
        return f"{ROOT_COLLECTION}/{tenant_id}"


class UserScope:
    """Each user owns ``artifacts/{tenant}/users/{user}/{collection}``."""

    name = "user"

    def root(self, tenant_id: str, user_id: str | None) -> str:
        if not user_id:
            raise NotAuthenticatedError()
        return f"{ROOT_COLLECTION}/{tenant_id}/users/{user_id}"


SCOPES = {"tenant": TenantScope(), "user": UserScope()}


def scope_for(name: str):
    scope = SCOPES.get((name or "").strip().lower())
    if scope is None:
        raise ValueError(f"Ambito de registros desconocido: {name}")
    return scope


@dataclass(frozen=True)
class RecordContext:
    tenant_id: str
    user_id: str | None
    scope: TenantScope | UserScope

    @property
    def authenticated(self) -> bool:
        return bool(self.user_id)


def require_user(ctx: RecordContext) -> None:
    if not ctx.authenticated:
        raise NotAuthenticatedError()


def collection_path(
    ctx: RecordContext,
    collection: str,
    *,
    parent_id: str | None = None,
    sub_collection: str | None = None,
) -> str:
    path = f"{ctx.scope.root(ctx.tenant_id, ctx.user_id)}/{collection}"
    if sub_collection:
        if not parent_id:
            raise ValueError("Falta el identificador del registro padre")
        path = f"{path}/{parent_id}/{sub_collection}"
    return path


def document_path(
    ctx: RecordContext,
    collection: str,
    doc_id: str,
    *,
    parent_id: str | None = None,
    sub_collection: str | None = None,
) -> str:
    base = collection_path(ctx, collection, parent_id=parent_id, sub_collection=sub_collection)
    return f"{base}/{doc_id}"
