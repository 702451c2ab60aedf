from __future__ import annotations

import math
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from ucrif.core.utils import format_date


@dataclass(frozen=True)
class DirectField:
    """Form value copied from ``payload[id]`` and coerced by ``kind``."""

    id: str
    kind: str = "text"


@dataclass(frozen=True)
class ComputedField:
    """Form value produced by ``getter(payload)``."""

    getter: Callable[[Mapping[str, Any]], Any]


FieldSpec = DirectField | ComputedField


def _coerce(value: Any, kind: str) -> Any:
    if value is None:
        return None if kind == "number" else ""
    if kind == "number":
        if isinstance(value, bool):
            raise ValueError(f"Numero invalido: {value}")
        if isinstance(value, int):
            return value
        if isinstance(value, float):
            if not math.isfinite(value):
                raise ValueError(f"Numero invalido: {value}")
            return value
        text = str(value).strip()
        if not text:
            return None
        try:
            return int(text)
        except ValueError:
            try:
                number = float(text)
            except ValueError as exc:
                raise ValueError(f"Numero invalido: {text}") from exc
            if not math.isfinite(number):
                raise ValueError(f"Numero invalido: {text}")
            return number
    text = str(value).strip()
    if kind == "date" and text:
        formatted = format_date(text)
        if not formatted:
            raise ValueError(f"Formato de fecha invalido: {text}")
        return formatted
    return text


@dataclass(frozen=True)
class ListField:
    value_field: str
    label: str
    kind: str = "text"
    options: tuple[str, ...] = ()


@dataclass(frozen=True)
class EmbeddedList:
    """Sub-items stored as an array on the parent document."""

    name: str
    fields: tuple[ListField, ...]

    def normalize(self, item: Mapping[str, Any]) -> dict[str, Any] | None:
        out: dict[str, Any] = {}
        filled = False
        for field in self.fields:
            value = _coerce(item.get(field.value_field), field.kind)
            if field.kind == "select" and value and field.options and value not in field.options:
                raise ValueError(f"Valor no permitido en {field.label}: {value}")
            out[field.value_field] = "" if value is None else value
            if out[field.value_field] not in ("", None):
                filled = True
        return out if filled else None

    def get_items(self, payload: Mapping[str, Any]) -> list[dict[str, Any]]:
        raw = payload.get(self.name) or []
        if isinstance(raw, Mapping):
            raw = [raw]
        items = []
        for item in raw:
            if not isinstance(item, Mapping):
                continue
            normalized = self.normalize(item)
            if normalized is not None:
                items.append(normalized)
        return items

    def add_item(self, items: list[dict[str, Any]], data: Mapping[str, Any]) -> list[dict[str, Any]]:
        normalized = self.normalize(data)
        if normalized is None:
            raise ValueError("El elemento esta vacio")
        return [*items, normalized]


def collect_form_data(
    mapping: Mapping[str, FieldSpec],
    payload: Mapping[str, Any],
    *,
    partial: bool = False,
) -> dict[str, Any]:
    """Map ``payload`` through the field descriptors.

    With ``partial`` only the fields present in the payload are returned, so a
    merge-update leaves the others untouched.
    """
    data: dict[str, Any] = {}
    for key, spec in mapping.items():
        match spec:
            case DirectField(id=field_id, kind=kind):
                if partial and field_id not in payload:
                    continue
                data[key] = _coerce(payload.get(field_id), kind)
            case ComputedField(getter=getter):
                if partial and key not in payload:
                    continue
                data[key] = getter(payload)
            case _:
                raise TypeError(f"Descriptor de campo no soportado: {spec!r}")
    return data
