from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from flask_login import UserMixin
from sqlalchemy import ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from werkzeug.security import generate_password_hash

from ucrif.core.extensions import db


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TaskEstado(str, Enum):
    PENDIENTE = "Pendiente"
    COMPLETADO = "Completado"


class Organization(db.Model):
    # Tenant: its code is the top-level namespace of every document path
    __tablename__ = "organization"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(db.String(120), unique=True, nullable=False)
    code: Mapped[str] = mapped_column(db.String(60), unique=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)

    memberships = relationship("Membership", back_populates="organization")


class User(UserMixin, db.Model):
    __tablename__ = "user_account"

    id: Mapped[int] = mapped_column(primary_key=True)
    email: Mapped[str] = mapped_column(db.String(255), unique=True, nullable=False)
    full_name: Mapped[str] = mapped_column(db.String(120), nullable=False)
    password_hash: Mapped[str] = mapped_column(db.String(255), nullable=False)
    is_active: Mapped[bool] = mapped_column(default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)

    memberships = relationship("Membership", back_populates="user")


class Membership(db.Model):
    __tablename__ = "membership"
    __table_args__ = (UniqueConstraint("user_id", "org_id", name="uq_membership_user_org"),)

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("user_account.id"), nullable=False)
    org_id: Mapped[int] = mapped_column(ForeignKey("organization.id"), nullable=False)
    role: Mapped[str] = mapped_column(db.String(30), nullable=False, default="admin")

    user = relationship("User", back_populates="memberships")
    organization = relationship("Organization", back_populates="memberships")


class Document(db.Model):
    # One row per stored document; child collections share the table and
    # are told apart by their collection_path ("<parent path>/<id>/<sub>").
    __tablename__ = "document"
    __table_args__ = (UniqueConstraint("collection_path", "doc_id", name="uq_document_path_id"),)

    id: Mapped[int] = mapped_column(primary_key=True)
    collection_path: Mapped[str] = mapped_column(db.String(500), nullable=False, index=True)
    doc_id: Mapped[str] = mapped_column(db.String(64), nullable=False)
    data: Mapped[dict[str, Any]] = mapped_column(db.JSON, nullable=False, default=dict)
    created_at: Mapped[datetime | None] = mapped_column(nullable=True)
    updated_at: Mapped[datetime | None] = mapped_column(nullable=True)


def seed_demo_data(session) -> None:
    org = Organization(name="UCRIF Demo", code="UCRIF")
    session.add(org)
    session.flush()

    admin = User(
        email="admin@ucrif.local",
        full_name="Admin UCRIF",
        password_hash=generate_password_hash("admin123"),
    )
    operario = User(
        email="operario@ucrif.local",
        full_name="Operario UCRIF",
        password_hash=generate_password_hash("operario123"),
    )
    session.add_all([admin, operario])
    session.flush()

    session.add_all(
        [
            Membership(user_id=admin.id, org_id=org.id, role="admin"),
            Membership(user_id=operario.id, org_id=org.id, role="operator"),
        ]
    )
    session.commit()
