from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any

from ucrif.core.documents import SERVER_TIMESTAMP, DocumentStore
from ucrif.core.i18n import translate
from ucrif.core.models import TaskEstado
from ucrif.core.paths import RecordContext, collection_path, require_user
from ucrif.core.utils import parse_date, sort_timestamp
from ucrif.novedades.fields import collect_form_data
from ucrif.novedades.forms import form_mapping, record_group_keys, required_fields
from ucrif.novedades.groups import (
    GLOBAL_TASKS_COLLECTION,
    GROUPS,
    OPERATIONS_COLLECTION,
    get_group,
    get_record_group,
)

logger = logging.getLogger(__name__)

CHRONOLOGY = "chronology"
PENDING_TASKS = "pendingTasks"
SUB_COLLECTIONS = (CHRONOLOGY, PENDING_TASKS)
SELECT_LABEL_MAX = 100
DEFAULT_STATS_DAYS = 7

SUB_COLLECTION_SORT: dict[str, Callable[[dict[str, Any]], Any]] = {
    CHRONOLOGY: lambda item: sort_timestamp(item.get("fecha") or item.get("createdAt")),
    PENDING_TASKS: lambda item: sort_timestamp(item.get("fechaLimite")),
}


@dataclass
class SelectOption:
    value: str
    label: str


@dataclass
class DuplicateCode:
    grupo: str
    anio: str
    codigo: int
    doc_ids: list[str] = field(default_factory=list)


def _store() -> DocumentStore:
    return DocumentStore()


def _year_values(year: int | str) -> tuple[int, str]:
    try:
        numeric = int(str(year).strip())
    except ValueError as exc:
        raise ValueError(f"Año invalido: {year}") from exc
    return numeric, str(numeric)


def _numeric_code(value: Any) -> int:
    try:
        return int(float(value or 0))
    except (TypeError, ValueError, OverflowError):
        return 0


# ---------------------------------------------------------------------------
# Record repository
# ---------------------------------------------------------------------------


def save_record(ctx: RecordContext, collection: str, data: Mapping[str, Any], doc_id: str | None = None) -> str:
    require_user(ctx)
    path = collection_path(ctx, collection)
    store = _store()
    if doc_id:
        store.set(path, doc_id, {**data, "updatedAt": SERVER_TIMESTAMP}, merge=True)
        return doc_id
    return store.add(path, {**data, "createdAt": SERVER_TIMESTAMP, "updatedAt": SERVER_TIMESTAMP})


def load_record(ctx: RecordContext, collection: str, doc_id: str) -> dict[str, Any] | None:
    require_user(ctx)
    snapshot = _store().get(collection_path(ctx, collection), doc_id)
    if snapshot is None:
        return None
    return snapshot.with_id()


def allocate_next_code(ctx: RecordContext, collection: str, group_name: str, year: int | str) -> int:
    """Return max(codigo)+1 within (group, year), or 1 for an empty partition.

    Read-then-write without a transaction: two callers that read before
    either saves get the same code (see the ``codes-audit`` command).
    """
    require_user(ctx)
    numeric, text = _year_values(year)
    snapshots = _store().stream(
        collection_path(ctx, collection),
        {"grupo": group_name, "anio": (numeric, text)},
    )
    codes = [_numeric_code(snap.data.get("codigo")) for snap in snapshots]
    return max(codes) + 1 if codes else 1


def save_group_record(
    ctx: RecordContext,
    group_key: str,
    payload: Mapping[str, Any],
    doc_id: str | None = None,
) -> tuple[str, dict[str, Any]]:
    require_user(ctx)
    group = get_record_group(group_key)
    # updates merge only what the payload carries
    partial = bool(doc_id)
    data = collect_form_data(form_mapping(group_key), payload, partial=partial)

    missing = [
        name
        for name in required_fields(group_key)
        if (name in data or not partial) and data.get(name) in (None, "")
    ]
    if missing:
        raise ValueError(translate("validation.missing_fields").format(fields=", ".join(missing)))

    if data.get("anio"):
        data["anio"] = _year_values(data["anio"])[1]
    elif data.get("fecha"):
        data["anio"] = str(parse_date(data["fecha"]).year)
    else:
        data.pop("anio", None)
    data["grupo"] = group.name

    if data.get("codigo") is None:
        data.pop("codigo", None)
        if not doc_id and group.coded:
            data["codigo"] = allocate_next_code(ctx, group.collection, group.name, data["anio"])

    saved_id = save_record(ctx, group.collection, data, doc_id)
    logger.info("Saved %s record %s (%s)", group.key, saved_id, "update" if doc_id else "create")
    return saved_id, data


def load_group_record(ctx: RecordContext, group_key: str, doc_id: str) -> dict[str, Any] | None:
    group = get_record_group(group_key)
    record = load_record(ctx, group.collection, doc_id)
    if record is not None and record.get("grupo") not in (None, group.name):
        # operations of grupo2 and grupo3 share one collection
        return None
    return record


# ---------------------------------------------------------------------------
# Selection lists
# ---------------------------------------------------------------------------


def _option_label(record: Mapping[str, Any], display1: str, display2: str | None) -> str:
    text = str(record.get(display1) or "Sin nombre")
    if display2 and record.get(display2):
        text += f" ({record[display2]})"
    if record.get("codigo"):
        text = f"{record['codigo']}/{record.get('anio', '')} - {text}"
    if len(text) > SELECT_LABEL_MAX:
        text = text[:SELECT_LABEL_MAX] + "…"
    return text


def list_for_select(
    ctx: RecordContext,
    collection: str,
    display1: str,
    display2: str | None = None,
    group_key: str | None = None,
) -> list[SelectOption]:
    require_user(ctx)
    filters = {"grupo": get_group(group_key).name} if group_key else None
    records = [snap.with_id() for snap in _store().stream(collection_path(ctx, collection), filters)]
    # sorted() is stable, so ties keep storage order
    records = sorted(records, key=lambda rec: sort_timestamp(rec.get("createdAt")), reverse=True)
    return [SelectOption(value=rec["id"], label=_option_label(rec, display1, display2)) for rec in records]


def group_select_options(ctx: RecordContext, group_key: str) -> list[SelectOption]:
    group = get_record_group(group_key)
    return list_for_select(ctx, group.collection, group.display_field, group.display_extra, group_key)


# ---------------------------------------------------------------------------
# Sub-collections of operations
# ---------------------------------------------------------------------------


def _check_sub_collection(sub_collection: str) -> None:
    if sub_collection not in SUB_COLLECTIONS:
        raise ValueError(f"Subcoleccion desconocida: {sub_collection}")


def _require_operation(ctx: RecordContext, op_id: str | None) -> None:
    if not op_id or load_record(ctx, OPERATIONS_COLLECTION, op_id) is None:
        raise ValueError(translate("validation.save_operation_first"))


def load_sub_collection(
    ctx: RecordContext,
    op_id: str,
    sub_collection: str,
    sort_key: Callable[[dict[str, Any]], Any] | None = None,
) -> list[dict[str, Any]]:
    require_user(ctx)
    _check_sub_collection(sub_collection)
    path = collection_path(ctx, OPERATIONS_COLLECTION, parent_id=op_id, sub_collection=sub_collection)
    items = [snap.with_id() for snap in _store().stream(path)]
    return sorted(items, key=sort_key or SUB_COLLECTION_SORT[sub_collection])


def add_related_item(ctx: RecordContext, op_id: str | None, sub_collection: str, data: Mapping[str, Any]) -> str:
    require_user(ctx)
    _check_sub_collection(sub_collection)
    _require_operation(ctx, op_id)
    path = collection_path(ctx, OPERATIONS_COLLECTION, parent_id=op_id, sub_collection=sub_collection)
    return _store().add(path, {**data, "createdAt": SERVER_TIMESTAMP})


def add_chronology_event(ctx: RecordContext, op_id: str | None, descripcion: str, fecha: str | None = None) -> str:
    descripcion = (descripcion or "").strip()
    if not descripcion:
        raise ValueError("La descripcion es obligatoria")
    when = parse_date(fecha) if fecha else None
    if fecha and when is None:
        raise ValueError(f"Formato de fecha invalido: {fecha}")
    return add_related_item(
        ctx,
        op_id,
        CHRONOLOGY,
        {"descripcion": descripcion, "fecha": when if when else SERVER_TIMESTAMP},
    )


def _task_payload(descripcion: str, fecha_limite: str | None) -> dict[str, Any]:
    descripcion = (descripcion or "").strip()
    if not descripcion:
        raise ValueError("La descripcion es obligatoria")
    limite = (fecha_limite or "").strip()
    if limite and parse_date(limite) is None:
        raise ValueError(f"Formato de fecha invalido: {limite}")
    return {"descripcion": descripcion, "fechaLimite": limite, "estado": TaskEstado.PENDIENTE.value}


def add_operation_pending_task(
    ctx: RecordContext,
    op_id: str | None,
    descripcion: str,
    fecha_limite: str | None = None,
) -> str:
    payload = _task_payload(descripcion, fecha_limite)
    payload["operationId"] = op_id
    return add_related_item(ctx, op_id, PENDING_TASKS, payload)


def add_global_pending_task(
    ctx: RecordContext,
    descripcion: str,
    fecha_limite: str | None = None,
    operation_id: str | None = None,
) -> str:
    require_user(ctx)
    payload = _task_payload(descripcion, fecha_limite)
    if operation_id:
        payload["operationId"] = operation_id
    return _store().add(
        collection_path(ctx, GLOBAL_TASKS_COLLECTION),
        {**payload, "createdAt": SERVER_TIMESTAMP},
    )


def complete_pending_task(ctx: RecordContext, task_id: str, op_id: str | None = None) -> None:
    require_user(ctx)
    if op_id:
        path = collection_path(ctx, OPERATIONS_COLLECTION, parent_id=op_id, sub_collection=PENDING_TASKS)
    else:
        path = collection_path(ctx, GLOBAL_TASKS_COLLECTION)
    store = _store()
    if store.get(path, task_id) is None:
        raise ValueError(translate("validation.task_not_found"))
    store.set(path, task_id, {"estado": TaskEstado.COMPLETADO.value}, merge=True)
    logger.info("Completed task %s at %s", task_id, path)


def fetch_global_pending_tasks(ctx: RecordContext) -> list[dict[str, Any]]:
    require_user(ctx)
    snapshots = _store().stream(
        collection_path(ctx, GLOBAL_TASKS_COLLECTION),
        {"estado": TaskEstado.PENDIENTE.value},
    )
    tasks = [snap.with_id() for snap in snapshots]
    return sorted(tasks, key=SUB_COLLECTION_SORT[PENDING_TASKS])


# ---------------------------------------------------------------------------
# Statistics and audits
# ---------------------------------------------------------------------------


def group_statistics(
    ctx: RecordContext,
    desde: date | None = None,
    hasta: date | None = None,
) -> dict[str, Any]:
    require_user(ctx)
    hasta = hasta or date.today()
    desde = desde or hasta - timedelta(days=DEFAULT_STATS_DAYS)
    if desde > hasta:
        raise ValueError("Rango de fechas invalido")

    store = _store()
    rows = []
    for key in record_group_keys():
        group = GROUPS[key]
        snapshots = store.stream(collection_path(ctx, group.collection), {"grupo": group.name})
        total = 0
        for snap in snapshots:
            fecha = parse_date(snap.data.get("fecha"))
            if fecha and desde <= fecha.date() <= hasta:
                total += 1
        rows.append({"key": key, "name": group.name, "total": total})
    return {
        "desde": desde.isoformat(),
        "hasta": hasta.isoformat(),
        "grupos": rows,
        "pendientesGlobales": len(fetch_global_pending_tasks(ctx)),
    }


def find_duplicate_codes(ctx: RecordContext) -> list[DuplicateCode]:
    store = _store()
    duplicates: list[DuplicateCode] = []
    seen_collections: set[str] = set()
    for key in record_group_keys():
        group = GROUPS[key]
        if not group.coded or group.collection in seen_collections:
            continue
        seen_collections.add(group.collection)
        buckets: dict[tuple[str, str, int], list[str]] = {}
        for snap in store.stream(collection_path(ctx, group.collection)):
            code = _numeric_code(snap.data.get("codigo"))
            if not code:
                continue
            bucket_key = (str(snap.data.get("grupo", "")), str(snap.data.get("anio", "")), code)
            buckets.setdefault(bucket_key, []).append(snap.id)
        for (grupo, anio, code), doc_ids in sorted(buckets.items()):
            if len(doc_ids) > 1:
                duplicates.append(DuplicateCode(grupo=grupo, anio=anio, codigo=code, doc_ids=doc_ids))
    return duplicates
