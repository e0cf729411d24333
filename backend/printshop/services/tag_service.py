"""
Etiquetas: strings sueltos dentro de columnas lista (pedidos y gastos) más un
registro maestro en la tabla 'tags'.

El renombrado NO es atómico: primero el procedimiento reemplaza el texto en
pedidos y gastos, luego se actualiza el registro maestro. Si el segundo paso
falla sólo se registra una advertencia.
"""
import logging
from typing import Any, Dict, List

from printshop.core.notifications import Notifier
from printshop.core.store import DataStore, TAGGED_TABLES, StoreError

logger = logging.getLogger(__name__)


def list_tags(store: DataStore) -> List[Dict[str, Any]]:
    return store.query("tags", order_by="name")


def unique_tags(store: DataStore) -> List[str]:
    """Todas las etiquetas en uso o registradas, ordenadas"""
    found = set()
    for table in TAGGED_TABLES:
        for row in store.query(table):
            found.update(row.get("tags") or [])
    found.update(t["name"] for t in store.query("tags"))
    return sorted(found)


def create_tag(store: DataStore, name: str) -> Dict[str, Any]:
    cleaned = (name or "").strip()
    if not cleaned:
        raise ValueError("El nombre de la etiqueta es obligatorio")
    return store.insert("tags", [{"name": cleaned}])[0]


def delete_tag(store: DataStore, tag_id: str) -> None:
    # Sólo se quita del registro maestro; los registros conservan el texto
    store.delete("tags", {"id": tag_id})


def rename_tag(store: DataStore, old_tag: str, new_tag: str, notifier: Notifier) -> bool:
    """
    Returns:
        True si el renombrado masivo se aplicó

    Raises:
        ValueError: falta la etiqueta o el nuevo nombre
    """
    new_name = (new_tag or "").strip()
    if not old_tag or not new_name:
        raise ValueError("Selecciona una etiqueta y escribe el nuevo nombre")

    try:
        store.call_procedure("rename_tag", {"old_tag": old_tag, "new_tag": new_name})
    except StoreError as e:
        notifier.error("Error al renombrar etiqueta", e.message)
        return False

    try:
        updated = store.update("tags", {"name": new_name}, {"name": old_tag})
        if not updated:
            logger.warning("tag %r not found in master table", old_tag)
    except StoreError as e:
        logger.warning("error updating master tag %r: %s", old_tag, e.message)

    notifier.success(f'Etiqueta "{old_tag}" renombrada a "{new_name}"')
    return True
