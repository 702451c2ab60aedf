from __future__ import annotations

from flask import has_request_context, session

SUPPORTED_LANGS = {"es", "ca"}

I18N: dict[str, dict[str, str]] = {
    "auth.invalid_credentials": {"es": "Credenciales inválidas", "ca": "Credencials invàlides"},
    "auth.required": {"es": "Usuario no autenticado", "ca": "Usuari no autenticat"},
    "auth.forbidden": {"es": "Acceso denegado", "ca": "Accés denegat"},
    "status.saved": {"es": "Guardado correctamente", "ca": "Desat correctament"},
    "status.loaded": {"es": "Registro cargado", "ca": "Registre carregat"},
    "status.new": {"es": "Formulario reiniciado", "ca": "Formulari reiniciat"},
    "status.not_found": {"es": "Registro no encontrado", "ca": "Registre no trobat"},
    "status.item_added": {"es": "Elemento añadido", "ca": "Element afegit"},
    "status.task_completed": {"es": "Tarea completada", "ca": "Tasca completada"},
    "validation.missing_fields": {
        "es": "Faltan campos obligatorios: {fields}",
        "ca": "Falten camps obligatoris: {fields}",
    },
    "validation.save_operation_first": {
        "es": "Guarda la operación antes de añadir elementos",
        "ca": "Desa l'operació abans d'afegir elements",
    },
    "validation.task_not_found": {"es": "Tarea no encontrada", "ca": "Tasca no trobada"},
    "status.storage_error": {
        "es": "Error al comunicar con la base de datos",
        "ca": "Error en comunicar amb la base de dades",
    },
}


def get_locale() -> str:
    if not has_request_context():
        return "es"
    lang = session.get("lang", "es")
    if lang not in SUPPORTED_LANGS:
        return "es"
    return lang


def translate(key: str) -> str:
    lang = get_locale()
    return I18N.get(key, {}).get(lang, key)
