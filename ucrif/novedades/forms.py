from __future__ import annotations

from ucrif.novedades.fields import ComputedField, DirectField, EmbeddedList, FieldSpec, ListField
from ucrif.novedades.groups import GROUPS, get_record_group

DESCRIPCION = ListField("descripcion", "Descripción", "textarea")
NOMBRE = ListField("nombre", "Nombre")
NACIONALIDAD = ListField("nacionalidad", "Nacionalidad")

GRUPO_PENDIENTES = EmbeddedList(
    "grupoPendientes",
    (DESCRIPCION, ListField("fecha", "Fecha límite", "date")),
)
DETENIDOS_FIELDS = (
    NOMBRE,
    ListField("fecha", "Fecha", "date"),
    ListField("delito", "Delito"),
    NACIONALIDAD,
)

# Dynamic lists per group. The form controller resolves "add" and "get"
# through this table instead of free-floating handlers.
LIST_REGISTRY: dict[str, dict[str, EmbeddedList]] = {
    "grupo1": {
        lst.name: lst
        for lst in (
            EmbeddedList("expulsados", (NOMBRE, NACIONALIDAD)),
            EmbeddedList("fletados", (ListField("destino", "Destino"), ListField("pax", "Pax", "number"))),
            EmbeddedList("conduccionesPositivas", (DESCRIPCION,)),
            EmbeddedList("conduccionesNegativas", (DESCRIPCION,)),
            GRUPO_PENDIENTES,
        )
    },
    "operation": {
        lst.name: lst
        for lst in (
            EmbeddedList(
                "diligenciasPreviasJuzgados",
                (ListField("fecha", "Fecha", "date"), ListField("juzgado", "Juzgado"), ListField("diligencia", "Diligencia")),
            ),
            EmbeddedList(
                "intervencionesTelefonicas",
                (ListField("telefono", "Teléfono"), ListField("titular", "Titular"), DESCRIPCION),
            ),
            EmbeddedList("entradasYRegistros", (ListField("fecha", "Fecha", "date"), DESCRIPCION)),
            EmbeddedList("detenidos", DETENIDOS_FIELDS),
            EmbeddedList("detenidosPrevistos", DETENIDOS_FIELDS),
            EmbeddedList(
                "otrasPersonas",
                (
                    ListField("filiacion", "Filiación"),
                    ListField(
                        "tipoVinculacion",
                        "Tipo de vinculación",
                        "select",
                        ("Investigado", "Testigo", "Víctima", "Otro"),
                    ),
                    NACIONALIDAD,
                    ListField("telefono", "Teléfono"),
                ),
            ),
            EmbeddedList(
                "colaboraciones",
                (ListField("fecha", "Fecha", "date"), ListField("grupo", "Grupo"), ListField("tipo", "Tipo")),
            ),
        )
    },
    "grupo4": {
        lst.name: lst
        for lst in (
            EmbeddedList("colaboracionesOtrosGrupos", (ListField("grupo", "Grupo"), DESCRIPCION)),
            EmbeddedList("detenidos", DETENIDOS_FIELDS),
            EmbeddedList("citados", (NOMBRE, NACIONALIDAD)),
            GRUPO_PENDIENTES,
        )
    },
    "puerto": {
        lst.name: lst
        for lst in (
            EmbeddedList(
                "actuaciones",
                (ListField("tipo", "Tipo", "select", ("Control", "Denegación", "Detención", "Otro")), DESCRIPCION),
            ),
            GRUPO_PENDIENTES,
        )
    },
    "cie": {
        lst.name: lst
        for lst in (
            EmbeddedList("incidencias", (DESCRIPCION,)),
            GRUPO_PENDIENTES,
        )
    },
    "gestion": {
        lst.name: lst
        for lst in (
            EmbeddedList("tramites", (ListField("tipo", "Tipo"), ListField("cantidad", "Cantidad", "number"))),
            GRUPO_PENDIENTES,
        )
    },
    "cecorex": {
        lst.name: lst
        for lst in (
            EmbeddedList("gestiones", (DESCRIPCION, ListField("resultado", "Resultado"))),
            GRUPO_PENDIENTES,
        )
    },
}

BASE_FIELDS: dict[str, FieldSpec] = {
    "fecha": DirectField("fecha", "date"),
    "anio": DirectField("anio"),
    "descripcionBreve": DirectField("descripcionBreve", "textarea"),
    "codigo": DirectField("codigo", "number"),
}

GROUP_FIELDS: dict[str, dict[str, FieldSpec]] = {
    "operation": {
        "nombreOperacion": DirectField("nombreOperacion"),
        "fechaInicio": DirectField("fechaInicio", "date"),
        "origen": DirectField("origen"),
        "tipologia": DirectField("tipologia"),
        "juzgadoInicial": DirectField("juzgadoInicial"),
        "diligenciasPoliciales": DirectField("diligenciasPoliciales", "textarea"),
        "resumen": DirectField("resumen", "textarea"),
    },
    "puerto": {
        "ferrys": DirectField("ferrys", "number"),
        "pasajeros": DirectField("pasajeros", "number"),
        "vehiculos": DirectField("vehiculos", "number"),
    },
    "cie": {
        "internos": DirectField("internos", "number"),
        "ingresos": DirectField("ingresos", "number"),
        "salidas": DirectField("salidas", "number"),
    },
    "gestion": {
        "entrevistasAsilo": DirectField("entrevistasAsilo", "number"),
        "cartasInvitacion": DirectField("cartasInvitacion", "number"),
    },
}

REQUIRED_FIELDS: dict[str, tuple[str, ...]] = {
    "operation": ("fecha", "nombreOperacion"),
}
DEFAULT_REQUIRED = ("fecha",)


def _form_key(group_key: str) -> str:
    return "operation" if get_record_group(group_key).is_operation else group_key


def group_lists(group_key: str) -> dict[str, EmbeddedList]:
    return LIST_REGISTRY.get(_form_key(group_key), {})


def get_list(group_key: str, list_name: str) -> EmbeddedList:
    embedded = group_lists(group_key).get(list_name)
    if embedded is None:
        raise ValueError(f"Lista desconocida: {list_name}")
    return embedded


def form_mapping(group_key: str) -> dict[str, FieldSpec]:
    form_key = _form_key(group_key)
    mapping: dict[str, FieldSpec] = dict(BASE_FIELDS)
    mapping.update(GROUP_FIELDS.get(form_key, {}))
    for name, embedded in LIST_REGISTRY.get(form_key, {}).items():
        mapping[name] = ComputedField(embedded.get_items)
    return mapping


def required_fields(group_key: str) -> tuple[str, ...]:
    return REQUIRED_FIELDS.get(_form_key(group_key), DEFAULT_REQUIRED)


def record_group_keys() -> list[str]:
    return [key for key, group in GROUPS.items() if group.collection]
