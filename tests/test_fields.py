from __future__ import annotations

import pytest

from ucrif.novedades.fields import ComputedField, DirectField, EmbeddedList, ListField, collect_form_data
from ucrif.novedades.forms import form_mapping, get_list, group_lists, required_fields


def test_collect_form_data_dispatches_direct_and_computed_fields():
    mapping = {
        "fecha": DirectField("fecha", "date"),
        "nombre": DirectField("nombreInput"),
        "pax": DirectField("pax", "number"),
        "resumen": ComputedField(lambda payload: f"{payload['a']}-{payload['b']}"),
    }
    data = collect_form_data(
        mapping,
        {"fecha": "2024-01-10", "nombreInput": "  Op. Norte  ", "pax": "12", "a": "x", "b": "y"},
    )
    assert data == {"fecha": "2024-01-10", "nombre": "Op. Norte", "pax": 12, "resumen": "x-y"}


def test_collect_form_data_rejects_bad_values():
    with pytest.raises(ValueError):
        collect_form_data({"fecha": DirectField("fecha", "date")}, {"fecha": "10/01/2024"})
    with pytest.raises(ValueError):
        collect_form_data({"pax": DirectField("pax", "number")}, {"pax": "muchos"})


@pytest.mark.parametrize("value", ["1e400", "-1e400", "nan", float("inf")])
def test_number_fields_reject_non_finite_values(value):
    with pytest.raises(ValueError):
        collect_form_data({"codigo": DirectField("codigo", "number")}, {"codigo": value})


def test_partial_collect_skips_fields_missing_from_payload():
    mapping = form_mapping("grupo1")
    data = collect_form_data(mapping, {"fecha": "2024-05-03", "expulsados": []}, partial=True)
    assert data == {"fecha": "2024-05-03", "expulsados": []}

    full = collect_form_data(mapping, {"fecha": "2024-05-03"})
    assert full["descripcionBreve"] == ""
    assert full["expulsados"] == []


def test_embedded_list_trims_and_drops_empty_items():
    expulsados = EmbeddedList("expulsados", (ListField("nombre", "Nombre"), ListField("nacionalidad", "Nacionalidad")))
    items = expulsados.get_items(
        {
            "expulsados": [
                {"nombre": " Ana ", "nacionalidad": "MA"},
                {"nombre": "", "nacionalidad": "   "},
                {"nombre": "Luis"},
            ]
        }
    )
    assert items == [
        {"nombre": "Ana", "nacionalidad": "MA"},
        {"nombre": "Luis", "nacionalidad": ""},
    ]


def test_embedded_list_add_item_appends_and_validates_options():
    personas = get_list("grupo2", "otrasPersonas")
    items = personas.add_item([], {"filiacion": "X", "tipoVinculacion": "Testigo"})
    assert items[0]["tipoVinculacion"] == "Testigo"
    with pytest.raises(ValueError):
        personas.add_item(items, {"filiacion": "Y", "tipoVinculacion": "Jefe"})
    with pytest.raises(ValueError):
        personas.add_item(items, {})


def test_operation_groups_share_form_and_lists():
    assert set(group_lists("grupo2")) == set(group_lists("grupo3"))
    assert "detenidos" in group_lists("grupo2")
    assert required_fields("grupo3") == ("fecha", "nombreOperacion")
    assert required_fields("cie") == ("fecha",)


def test_form_mapping_includes_base_fields_and_list_getters():
    mapping = form_mapping("grupo1")
    assert isinstance(mapping["fecha"], DirectField)
    assert isinstance(mapping["expulsados"], ComputedField)
    with pytest.raises(ValueError):
        form_mapping("estadistica")
    with pytest.raises(ValueError):
        get_list("cie", "expulsados")
