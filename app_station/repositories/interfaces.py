# ==============================================================================
# INTERFAZ DEL ALMACÉN DE DOCUMENTOS
# ==============================================================================
#
# Contrato mínimo que cualquier backend debe cumplir. Los servicios solo
# hablan con Database (repositories/database.py), que a su vez solo usa
# estas operaciones. Cambiar JSON → MongoDB no toca los servicios.
#
# Todas las operaciones están indexadas por nombre de colección y los
# documentos son diccionarios con un "id" de tipo string.
# ==============================================================================

from typing import Any, Dict, List, Optional, Protocol, runtime_checkable


@runtime_checkable
class IDocumentStore(Protocol):
    """Operaciones CRUD genéricas por colección."""

    def all(self, collection: str) -> List[Dict[str, Any]]:
        """Todos los documentos de la colección (cada uno con su id)."""
        ...

    def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        """Un documento por id, o None si no existe."""
        ...

    def insert(self, collection: str, data: Dict[str, Any]) -> str:
        """Inserta un documento nuevo y devuelve el id asignado."""
        ...

    def update(self, collection: str, doc_id: str, fields: Dict[str, Any]) -> bool:
        """Mezcla campos en un documento. False si no existe."""
        ...

    def delete(self, collection: str, doc_id: str) -> bool:
        """Elimina un documento. False si no existía."""
        ...

    def increment(self, collection: str, doc_id: str, field: str, value: float) -> bool:
        """Suma value al campo numérico (0 si falta). False si no existe."""
        ...
