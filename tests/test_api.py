from __future__ import annotations

from ucrif.core.models import Document, User


def test_login_required_for_record_endpoints(client):
    response = client.get("/novedades/grupos")
    assert response.status_code == 401
    assert response.get_json()["ok"] is False


def test_bad_credentials_are_rejected(client):
    response = client.post("/auth/login", data={"email": "admin@ucrif.local", "password": "mal"})
    assert response.status_code == 401
    assert response.get_json()["message"] == "Credenciales inválidas"


def test_menu_lists_all_groups(client, login_admin):
    login_admin()
    response = client.get("/novedades/grupos")
    assert response.status_code == 200
    keys = [group["key"] for group in response.get_json()["groups"]]
    assert keys[0] == "grupo1"
    assert "estadistica" in keys
    assert len(keys) == 9


def test_save_creates_then_updates_through_form_session(app, client, login_admin):
    login_admin()
    client.post("/novedades/grupo1/abrir")

    created = client.post(
        "/novedades/grupo1/guardar",
        json={"fecha": "2024-01-10", "descripcionBreve": "test", "expulsados": [{"nombre": "Ana"}]},
    )
    assert created.status_code == 200
    body = created.get_json()
    assert body["message"] == "Guardado correctamente"
    assert body["codigo"] == 1
    doc_id = body["docId"]

    updated = client.post(
        "/novedades/grupo1/guardar",
        json={"fecha": "2024-01-11", "descripcionBreve": "test editado"},
    )
    assert updated.get_json()["docId"] == doc_id

    loaded = client.get(f"/novedades/grupo1/registros/{doc_id}")
    assert loaded.status_code == 200
    record = loaded.get_json()["record"]
    assert record["descripcionBreve"] == "test editado"
    assert record["codigo"] == 1

    client.post("/novedades/grupo1/nuevo")
    another = client.post("/novedades/grupo1/guardar", json={"fecha": "2024-01-12"})
    assert another.get_json()["docId"] != doc_id
    assert another.get_json()["codigo"] == 2

    with app.app_context():
        assert Document.query.count() == 2


def test_switching_group_starts_a_new_record(client, login_admin):
    login_admin()
    first = client.post("/novedades/cie/guardar", json={"fecha": "2024-01-10"}).get_json()["docId"]
    other = client.post("/novedades/puerto/guardar", json={"fecha": "2024-01-10"}).get_json()["docId"]
    assert first != other


def test_validation_failure_returns_status_message(client, login_admin):
    login_admin()
    response = client.post("/novedades/grupo2/guardar", json={"fecha": "2024-01-10"})
    assert response.status_code == 400
    assert "nombreOperacion" in response.get_json()["message"]

    unknown = client.post("/novedades/grupo99/guardar", json={"fecha": "2024-01-10"})
    assert unknown.status_code == 400


def test_out_of_range_code_is_rejected_and_saving_continues(client, login_admin):
    login_admin()
    rejected = client.post("/novedades/grupo1/guardar", json={"fecha": "2024-05-02", "codigo": "1e400"})
    assert rejected.status_code == 400

    saved = client.post("/novedades/grupo1/guardar", json={"fecha": "2024-05-02"})
    assert saved.status_code == 200
    assert saved.get_json()["codigo"] == 1


def test_update_over_http_keeps_unsent_fields(client, login_admin):
    login_admin()
    client.post("/novedades/grupo1/abrir")
    doc_id = client.post(
        "/novedades/grupo1/guardar",
        json={"fecha": "2024-05-02", "descripcionBreve": "uno", "expulsados": [{"nombre": "Ana"}]},
    ).get_json()["docId"]

    client.post("/novedades/grupo1/guardar", json={"fecha": "2024-05-03"})

    record = client.get(f"/novedades/grupo1/registros/{doc_id}").get_json()["record"]
    assert record["descripcionBreve"] == "uno"
    assert record["fecha"] == "2024-05-03"
    assert [item["nombre"] for item in record["expulsados"]] == ["Ana"]


def test_validation_messages_follow_session_language(client, login_admin):
    login_admin()
    client.post("/auth/lang", json={"lang": "ca"})

    missing = client.post("/novedades/grupo2/guardar", json={"fecha": "2024-01-10"})
    assert missing.get_json()["message"] == "Falten camps obligatoris: nombreOperacion"

    orphan = client.post("/novedades/grupo3/operaciones/sin-guardar/chronology", json={"descripcion": "x"})
    assert orphan.get_json()["message"] == "Desa l'operació abans d'afegir elements"

    unknown_task = client.post("/novedades/pendientes/no-existe/completar")
    assert unknown_task.status_code == 400
    assert unknown_task.get_json()["message"] == "Tasca no trobada"


def test_load_missing_record_is_404(client, login_admin):
    login_admin()
    response = client.get("/novedades/cie/registros/no-existe")
    assert response.status_code == 404
    assert response.get_json()["message"] == "Registro no encontrado"


def test_next_code_endpoint_does_not_reserve(client, login_admin):
    login_admin()
    client.post("/novedades/grupo4/guardar", json={"fecha": "2024-03-01"})
    first = client.get("/novedades/grupo4/siguiente-codigo?anio=2024").get_json()["codigo"]
    second = client.get("/novedades/grupo4/siguiente-codigo?anio=2024").get_json()["codigo"]
    assert first == second == 2
    assert client.get("/novedades/grupo4/siguiente-codigo").status_code == 400


def test_record_options_newest_first(client, login_admin):
    login_admin()
    client.post("/novedades/grupo2/guardar", json={"fecha": "2024-01-01", "nombreOperacion": "Op. Uno"})
    client.post("/novedades/grupo2/nuevo")
    client.post("/novedades/grupo2/guardar", json={"fecha": "2024-01-02", "nombreOperacion": "Op. Dos"})
    options = client.get("/novedades/grupo2/registros").get_json()["options"]
    assert [option["label"] for option in options] == ["2/2024 - Op. Dos", "1/2024 - Op. Uno"]


def test_operation_sub_collections_flow(client, login_admin):
    login_admin()
    op_id = client.post(
        "/novedades/grupo2/guardar",
        json={"fecha": "2024-01-01", "nombreOperacion": "Op. Ancla"},
    ).get_json()["docId"]

    added = client.post(
        f"/novedades/grupo2/operaciones/{op_id}/chronology",
        json={"descripcion": "Inicio de diligencias", "fecha": "2024-01-02"},
    )
    assert added.status_code == 201
    task = client.post(
        f"/novedades/grupo2/operaciones/{op_id}/pendingTasks",
        json={"descripcion": "Pedir oficio", "fechaLimite": "2024-02-01"},
    )
    task_id = task.get_json()["id"]

    chronology = client.get(f"/novedades/grupo2/operaciones/{op_id}/chronology").get_json()["items"]
    assert [event["descripcion"] for event in chronology] == ["Inicio de diligencias"]

    done = client.post(f"/novedades/grupo2/operaciones/{op_id}/pendingTasks/{task_id}/completar")
    assert done.get_json()["message"] == "Tarea completada"
    tasks = client.get(f"/novedades/grupo2/operaciones/{op_id}/pendingTasks").get_json()["items"]
    assert tasks[0]["estado"] == "Completado"


def test_related_item_before_parent_save_is_rejected(client, login_admin):
    login_admin()
    response = client.post(
        "/novedades/grupo3/operaciones/sin-guardar/chronology",
        json={"descripcion": "x"},
    )
    assert response.status_code == 400
    assert response.get_json()["message"] == "Guarda la operación antes de añadir elementos"

    not_operation = client.get("/novedades/cie/operaciones/x/chronology")
    assert not_operation.status_code == 400


def test_global_pending_tasks_endpoints(client, login_operator):
    login_operator()
    created = client.post("/novedades/pendientes", json={"descripcion": "Cuadrante", "fechaLimite": "2024-05-01"})
    assert created.status_code == 201
    task_id = created.get_json()["id"]

    tasks = client.get("/novedades/pendientes").get_json()["tasks"]
    assert [task["id"] for task in tasks] == [task_id]

    client.post(f"/novedades/pendientes/{task_id}/completar")
    assert client.get("/novedades/pendientes").get_json()["tasks"] == []


def test_list_item_endpoint_uses_group_registry(client, login_admin):
    login_admin()
    response = client.post(
        "/novedades/grupo1/listas/fletados",
        json={"items": [{"destino": "Dakar", "pax": "30"}], "item": {"destino": "Bogotá", "pax": "12"}},
    )
    assert response.get_json()["items"] == [
        {"destino": "Dakar", "pax": 30},
        {"destino": "Bogotá", "pax": 12},
    ]
    assert client.post("/novedades/cie/listas/fletados", json={"item": {}}).status_code == 400


def test_statistics_endpoint(client, login_admin):
    login_admin()
    client.post("/novedades/cie/guardar", json={"fecha": "2024-01-10"})
    response = client.get("/novedades/estadisticas?desde=2024-01-01&hasta=2024-01-31")
    stats = response.get_json()["stats"]
    totals = {row["key"]: row["total"] for row in stats["grupos"]}
    assert totals["cie"] == 1
    assert client.get("/novedades/estadisticas?desde=ayer").status_code == 400


def test_tenant_isolation(app, client, login_admin, second_org_login):
    login_admin()
    doc_id = client.post("/novedades/cie/guardar", json={"fecha": "2024-01-10"}).get_json()["docId"]
    client.post("/auth/logout")

    second_org_login()
    assert client.get(f"/novedades/cie/registros/{doc_id}").status_code == 404
    assert client.get("/novedades/cie/registros").get_json()["options"] == []


def test_user_scope_paths_over_http(user_scope_app):
    client = user_scope_app.test_client()
    client.post("/auth/login", data={"email": "admin@ucrif.local", "password": "admin123"})
    doc_id = client.post("/novedades/cie/guardar", json={"fecha": "2024-01-10"}).get_json()["docId"]

    with user_scope_app.app_context():
        admin = User.query.filter_by(email="admin@ucrif.local").first()
        row = Document.query.filter_by(doc_id=doc_id).first()
        assert row.collection_path == f"artifacts/UCRIF/users/{admin.id}/cie"

    client.post("/auth/logout")
    client.post("/auth/login", data={"email": "operario@ucrif.local", "password": "operario123"})
    assert client.get(f"/novedades/cie/registros/{doc_id}").status_code == 404
