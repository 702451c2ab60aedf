from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any

from flask import session

from ucrif.novedades.groups import get_group

SESSION_KEY = "form_session"
VIEWS = ("menu", "specific", "operation", "statistics")


@dataclass
class FormSession:
    """Navigation state of the record form currently open for a user.

    ``current_doc_id`` is the create/update switch: ``None`` means the next
    save inserts a new record, any other value merge-updates that record.
    """

    current_view: str = "menu"
    current_group: str | None = None
    current_doc_id: str | None = None

    @classmethod
    def from_mapping(cls, raw: Any) -> FormSession:
        if not isinstance(raw, dict):
            return cls()
        view = raw.get("current_view")
        return cls(
            current_view=view if view in VIEWS else "menu",
            current_group=raw.get("current_group") or None,
            current_doc_id=raw.get("current_doc_id") or None,
        )

    def go_home(self) -> None:
        self.current_view = "menu"
        self.current_group = None
        self.current_doc_id = None

    def navigate(self, group_key: str) -> None:
        group = get_group(group_key)
        self.current_group = group.key
        self.current_doc_id = None
        if group.collection is None:
            self.current_view = "statistics"
        elif group.is_operation:
            self.current_view = "operation"
        else:
            self.current_view = "specific"

    def ensure_group(self, group_key: str) -> None:
        if self.current_group != group_key:
            self.navigate(group_key)

    def reset(self) -> None:
        self.current_doc_id = None

    def loaded(self, doc_id: str) -> None:
        self.current_doc_id = doc_id

    def saved(self, doc_id: str) -> None:
        self.current_doc_id = doc_id

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def load_form_session() -> FormSession:
    return FormSession.from_mapping(session.get(SESSION_KEY))


def store_form_session(form_session: FormSession) -> None:
    session[SESSION_KEY] = form_session.to_dict()
