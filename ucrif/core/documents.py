from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any
from uuid import uuid4

from sqlalchemy.exc import SQLAlchemyError

from ucrif.core.extensions import db
from ucrif.core.models import Document, utcnow

logger = logging.getLogger(__name__)


class _ServerTimestamp:
    def __repr__(self) -> str:
        return "SERVER_TIMESTAMP"


# Placeholder resolved to the write time by the store.
SERVER_TIMESTAMP = _ServerTimestamp()

TIMESTAMP_COLUMNS = {"createdAt": "created_at", "updatedAt": "updated_at"}


@dataclass
class DocumentSnapshot:
    id: str
    collection_path: str
    data: dict[str, Any] = field(default_factory=dict)
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_row(cls, row: Document) -> DocumentSnapshot:
        return cls(
            id=row.doc_id,
            collection_path=row.collection_path,
            data=dict(row.data or {}),
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    def to_dict(self) -> dict[str, Any]:
        body = dict(self.data)
        if self.created_at is not None:
            body["createdAt"] = self.created_at
        if self.updated_at is not None:
            body["updatedAt"] = self.updated_at
        return body

    def with_id(self) -> dict[str, Any]:
        return {"id": self.id, **self.to_dict()}


def _json_value(value: Any, now: datetime) -> Any:
    if value is SERVER_TIMESTAMP:
        return now.isoformat()
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Mapping):
        return {str(k): _json_value(v, now) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_json_value(v, now) for v in value]
    return value


def _matches(body: Mapping[str, Any], filters: Mapping[str, Any]) -> bool:
    for key, expected in filters.items():
        if key not in body:
            return False
        value = body[key]
        if isinstance(expected, (set, frozenset, tuple, list)):
            if value not in expected:
                return False
        elif value != expected:
            return False
    return True


class DocumentStore:
    """Document database over the ``document`` table.

    Collections are plain path strings; documents are JSON bodies with
    server-side ``createdAt``/``updatedAt`` timestamps. Equality filters are
    evaluated on the fetched collection, a tuple/set value meaning "any of".
    """

    def __init__(self, session=None) -> None:
        self.session = session or db.session

    def _row(self, collection_path: str, doc_id: str) -> Document | None:
        return (
            self.session.query(Document)
            .filter_by(collection_path=collection_path, doc_id=doc_id)
            .first()
        )

    def _write(self, row: Document, data: Mapping[str, Any], merge: bool) -> None:
        now = utcnow()
        body = dict(row.data or {}) if merge else {}
        for key, value in data.items():
            column = TIMESTAMP_COLUMNS.get(key)
            if column and value is SERVER_TIMESTAMP:
                setattr(row, column, now)
                continue
            body[key] = _json_value(value, now)
        # reassign so the JSON column is flagged dirty
        row.data = body

    def _commit(self) -> None:
        try:
            self.session.commit()
        except SQLAlchemyError:
            self.session.rollback()
            raise

    def add(self, collection_path: str, data: Mapping[str, Any]) -> str:
        doc_id = uuid4().hex
        row = Document(collection_path=collection_path, doc_id=doc_id, data={})
        self._write(row, data, merge=False)
        self.session.add(row)
        self._commit()
        logger.info("Document created %s/%s", collection_path, doc_id)
        return doc_id

    def set(self, collection_path: str, doc_id: str, data: Mapping[str, Any], merge: bool = False) -> None:
        row = self._row(collection_path, doc_id)
        if row is None:
            row = Document(collection_path=collection_path, doc_id=doc_id, data={})
            self.session.add(row)
        self._write(row, data, merge=merge)
        self._commit()
        logger.info("Document %s %s/%s", "merged" if merge else "set", collection_path, doc_id)

    def get(self, collection_path: str, doc_id: str) -> DocumentSnapshot | None:
        row = self._row(collection_path, doc_id)
        if row is None:
            return None
        return DocumentSnapshot.from_row(row)

    def stream(
        self,
        collection_path: str,
        filters: Mapping[str, Any] | None = None,
    ) -> list[DocumentSnapshot]:
        rows: Iterable[Document] = (
            self.session.query(Document)
            .filter(Document.collection_path == collection_path)
            .order_by(Document.id.asc())
            .all()
        )
        snapshots = [DocumentSnapshot.from_row(row) for row in rows]
        if not filters:
            return snapshots
        return [snap for snap in snapshots if _matches(snap.to_dict(), filters)]
