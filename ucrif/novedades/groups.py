from __future__ import annotations

from dataclasses import dataclass

OPERATIONS_COLLECTION = "operations"
GLOBAL_TASKS_COLLECTION = "pendingTasks"
OPERATION_GROUPS = frozenset({"grupo2", "grupo3"})


@dataclass(frozen=True)
class Group:
    key: str
    name: str
    icon: str
    description: str
    collection: str | None
    coded: bool = False
    display_field: str = "descripcionBreve"
    display_extra: str | None = "fecha"

    @property
    def is_operation(self) -> bool:
        return self.key in OPERATION_GROUPS


GROUPS: dict[str, Group] = {
    group.key: group
    for group in (
        Group("grupo1", "Grupo 1", "✈️", "Expulsiones, fletados y conducciones", "grupo1_expulsiones", coded=True),
        Group(
            "grupo2",
            "Grupo 2",
            "🕵️",
            "Investigación: operaciones",
            OPERATIONS_COLLECTION,
            coded=True,
            display_field="nombreOperacion",
            display_extra="fechaInicio",
        ),
        Group(
            "grupo3",
            "Grupo 3",
            "🔎",
            "Investigación: operaciones",
            OPERATIONS_COLLECTION,
            coded=True,
            display_field="nombreOperacion",
            display_extra="fechaInicio",
        ),
        Group("grupo4", "Grupo 4", "🚓", "Operativo: colaboraciones, detenidos y citados", "grupo4_operativo", coded=True),
        Group("puerto", "Puerto", "⚓", "Control de fronteras en puerto", "puerto"),
        Group("cie", "CIE", "🏢", "Centro de internamiento de extranjeros", "cie"),
        Group("gestion", "Gestión", "📋", "Asilo, cartas de invitación y trámites", "gestion"),
        Group("cecorex", "CECOREX", "📡", "Coordinación operativa", "cecorex"),
        Group("estadistica", "Estadística", "📊", "Resumen de actividad y pendientes", None),
    )
}


def get_group(group_key: str) -> Group:
    group = GROUPS.get(group_key)
    if group is None:
        raise ValueError(f"Grupo desconocido: {group_key}")
    return group


def get_record_group(group_key: str) -> Group:
    group = get_group(group_key)
    if not group.collection:
        raise ValueError(f"El grupo {group.name} no guarda registros")
    return group
