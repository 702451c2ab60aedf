from __future__ import annotations

import logging
from dataclasses import asdict
from functools import wraps

from flask import jsonify, request
from flask_login import current_user, login_required
from sqlalchemy.exc import SQLAlchemyError

from ucrif.core.errors import NotAuthenticatedError
from ucrif.core.extensions import db
from ucrif.core.i18n import translate
from ucrif.core.tenancy import record_context, require_membership
from ucrif.core.utils import parse_date
from ucrif.novedades import novedades_bp
from ucrif.novedades.forms import get_list
from ucrif.novedades.groups import GROUPS, get_record_group
from ucrif.novedades.services import (
    CHRONOLOGY,
    PENDING_TASKS,
    add_chronology_event,
    add_global_pending_task,
    add_operation_pending_task,
    allocate_next_code,
    complete_pending_task,
    fetch_global_pending_tasks,
    group_select_options,
    group_statistics,
    load_group_record,
    load_sub_collection,
    save_group_record,
)
from ucrif.novedades.session import load_form_session, store_form_session

logger = logging.getLogger(__name__)


def _payload() -> dict:
    data = request.get_json(silent=True)
    if isinstance(data, dict):
        return data
    return request.form.to_dict()


def _status(key: str, ok: bool = True, code: int = 200, **extra):
    return jsonify(ok=ok, message=translate(key), **extra), code


def protocol_call(fn):
    @wraps(fn)
    def wrapper(*args, **kwargs):
        try:
            return fn(*args, **kwargs)
        except NotAuthenticatedError:
            return _status("auth.required", ok=False, code=401)
        except ValueError as exc:
            return jsonify(ok=False, message=str(exc)), 400
        except SQLAlchemyError:
            logger.exception("Storage failure in %s", fn.__name__)
            db.session.rollback()
            return _status("status.storage_error", ok=False, code=503)

    return wrapper


def _operation_group(group_key: str):
    group = get_record_group(group_key)
    if not group.is_operation:
        raise ValueError(f"El grupo {group.name} no gestiona operaciones")
    return group


@novedades_bp.get("/grupos")
@login_required
@require_membership
def menu():
    form_session = load_form_session()
    form_session.go_home()
    store_form_session(form_session)
    groups = [
        {
            "key": group.key,
            "name": group.name,
            "icon": group.icon,
            "description": group.description,
            "collection": group.collection,
        }
        for group in GROUPS.values()
    ]
    return jsonify(ok=True, groups=groups, userId=str(current_user.id))


@novedades_bp.post("/<group_key>/abrir")
@login_required
@require_membership
@protocol_call
def open_group(group_key: str):
    form_session = load_form_session()
    form_session.navigate(group_key)
    store_form_session(form_session)
    return jsonify(ok=True, session=form_session.to_dict())


@novedades_bp.post("/<group_key>/nuevo")
@login_required
@require_membership
@protocol_call
def new_record(group_key: str):
    get_record_group(group_key)
    form_session = load_form_session()
    form_session.ensure_group(group_key)
    form_session.reset()
    store_form_session(form_session)
    return _status("status.new", session=form_session.to_dict())


@novedades_bp.get("/<group_key>/registros")
@login_required
@require_membership
@protocol_call
def record_options(group_key: str):
    options = group_select_options(record_context(), group_key)
    return jsonify(ok=True, options=[asdict(option) for option in options])


@novedades_bp.get("/<group_key>/registros/<doc_id>")
@login_required
@require_membership
@protocol_call
def load_record_view(group_key: str, doc_id: str):
    record = load_group_record(record_context(), group_key, doc_id)
    if record is None:
        return _status("status.not_found", ok=False, code=404)
    form_session = load_form_session()
    form_session.ensure_group(group_key)
    form_session.loaded(doc_id)
    store_form_session(form_session)
    return _status("status.loaded", record=record)


@novedades_bp.post("/<group_key>/guardar")
@login_required
@require_membership
@protocol_call
def save_record_view(group_key: str):
    form_session = load_form_session()
    form_session.ensure_group(group_key)
    doc_id, data = save_group_record(
        record_context(),
        group_key,
        _payload(),
        form_session.current_doc_id,
    )
    form_session.saved(doc_id)
    store_form_session(form_session)
    return _status("status.saved", docId=doc_id, codigo=data.get("codigo"))


@novedades_bp.get("/<group_key>/siguiente-codigo")
@login_required
@require_membership
@protocol_call
def next_code(group_key: str):
    group = get_record_group(group_key)
    year = request.args.get("anio", "").strip()
    if not year:
        raise ValueError("Indica un año valido")
    codigo = allocate_next_code(record_context(), group.collection, group.name, year)
    return jsonify(ok=True, codigo=codigo)


@novedades_bp.post("/<group_key>/listas/<list_name>")
@login_required
@require_membership
@protocol_call
def add_list_item(group_key: str, list_name: str):
    embedded = get_list(group_key, list_name)
    payload = _payload()
    items = embedded.get_items({list_name: payload.get("items") or []})
    items = embedded.add_item(items, payload.get("item") or {})
    return jsonify(ok=True, items=items)


@novedades_bp.get("/<group_key>/operaciones/<op_id>/<sub_collection>")
@login_required
@require_membership
@protocol_call
def sub_collection_items(group_key: str, op_id: str, sub_collection: str):
    _operation_group(group_key)
    items = load_sub_collection(record_context(), op_id, sub_collection)
    return jsonify(ok=True, items=items)


@novedades_bp.post("/<group_key>/operaciones/<op_id>/<sub_collection>")
@login_required
@require_membership
@protocol_call
def sub_collection_add(group_key: str, op_id: str, sub_collection: str):
    _operation_group(group_key)
    payload = _payload()
    ctx = record_context()
    if sub_collection == CHRONOLOGY:
        item_id = add_chronology_event(ctx, op_id, payload.get("descripcion", ""), payload.get("fecha"))
    elif sub_collection == PENDING_TASKS:
        item_id = add_operation_pending_task(ctx, op_id, payload.get("descripcion", ""), payload.get("fechaLimite"))
    else:
        raise ValueError(f"Subcoleccion desconocida: {sub_collection}")
    return _status("status.item_added", code=201, id=item_id)


@novedades_bp.post("/<group_key>/operaciones/<op_id>/pendingTasks/<task_id>/completar")
@login_required
@require_membership
@protocol_call
def complete_operation_task(group_key: str, op_id: str, task_id: str):
    _operation_group(group_key)
    complete_pending_task(record_context(), task_id, op_id=op_id)
    return _status("status.task_completed")


@novedades_bp.get("/pendientes")
@login_required
@require_membership
@protocol_call
def global_tasks():
    return jsonify(ok=True, tasks=fetch_global_pending_tasks(record_context()))


@novedades_bp.post("/pendientes")
@login_required
@require_membership
@protocol_call
def global_task_add():
    payload = _payload()
    task_id = add_global_pending_task(
        record_context(),
        payload.get("descripcion", ""),
        payload.get("fechaLimite"),
        payload.get("operationId") or None,
    )
    return _status("status.item_added", code=201, id=task_id)


@novedades_bp.post("/pendientes/<task_id>/completar")
@login_required
@require_membership
@protocol_call
def global_task_complete(task_id: str):
    complete_pending_task(record_context(), task_id)
    return _status("status.task_completed")


@novedades_bp.get("/estadisticas")
@login_required
@require_membership
@protocol_call
def statistics():
    form_session = load_form_session()
    form_session.navigate("estadistica")
    store_form_session(form_session)
    bounds = {}
    for name in ("desde", "hasta"):
        raw = request.args.get(name, "").strip()
        if raw:
            parsed = parse_date(raw)
            if parsed is None:
                raise ValueError(f"Formato de fecha invalido para {name}")
            bounds[name] = parsed.date()
    return jsonify(ok=True, stats=group_statistics(record_context(), **bounds))
