# ==============================================================================
# ALMACÉN BASE Y ALMACÉN JSON
# ==============================================================================
# BaseDocumentStore define la interfaz abstracta; JsonDocumentStore guarda
# cada colección en un archivo <colección>.json dentro de la carpeta de datos.
#
# Formato de cada archivo: {"<id>": {...documento sin id...}, ...}
# ==============================================================================

import json
import os
import threading
import uuid
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional


class BaseDocumentStore(ABC):
    """
    Clase base abstracta para los almacenes de documentos.

    Las subclases implementan la persistencia; esta clase solo fija la
    firma de las operaciones (ver interfaces.IDocumentStore).
    """

    @abstractmethod
    def all(self, collection: str) -> List[Dict[str, Any]]:
        pass

    @abstractmethod
    def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        pass

    @abstractmethod
    def insert(self, collection: str, data: Dict[str, Any]) -> str:
        pass

    @abstractmethod
    def update(self, collection: str, doc_id: str, fields: Dict[str, Any]) -> bool:
        pass

    @abstractmethod
    def delete(self, collection: str, doc_id: str) -> bool:
        pass

    @abstractmethod
    def increment(self, collection: str, doc_id: str, field: str, value: float) -> bool:
        pass

    @staticmethod
    def new_id() -> str:
        """Genera un id opaco de 20 caracteres."""
        return uuid.uuid4().hex[:20]


class JsonDocumentStore(BaseDocumentStore):
    """
    Almacén de documentos sobre archivos JSON locales.

    Usa un lock global para evitar escrituras concurrentes y escribe a un
    archivo temporal antes de reemplazar el original.
    """

    # Lock global para evitar escrituras concurrentes a archivos
    _file_lock = threading.RLock()

    def __init__(self, data_dir: str):
        """
        Inicializa el almacén.

        Args:
            data_dir: Carpeta donde viven los archivos <colección>.json
        """
        self.data_dir = data_dir
        os.makedirs(self.data_dir, exist_ok=True)

    def _path(self, collection: str) -> str:
        return os.path.join(self.data_dir, f'{collection}.json')

    def _read_raw(self, collection: str) -> Dict[str, Dict[str, Any]]:
        """
        Lee la colección completa.

        Returns:
            Diccionario {id: documento}. Vacío si el archivo no existe o
            está corrupto.
        """
        with self._file_lock:
            try:
                with open(self._path(collection), 'r', encoding='utf-8') as f:
                    data = json.load(f)
            except (json.JSONDecodeError, FileNotFoundError):
                return {}
            return data if isinstance(data, dict) else {}

    def _write_raw(self, collection: str, data: Dict[str, Dict[str, Any]]) -> None:
        """Escribe la colección completa (temporal + reemplazo)."""
        with self._file_lock:
            path = self._path(collection)
            temp_path = path + '.tmp'
            try:
                with open(temp_path, 'w', encoding='utf-8') as f:
                    json.dump(data, f, indent=2, ensure_ascii=False)
                os.replace(temp_path, path)
            except Exception:
                if os.path.exists(temp_path):
                    os.remove(temp_path)
                raise

    # =========================================================================
    # OPERACIONES
    # =========================================================================

    def all(self, collection: str) -> List[Dict[str, Any]]:
        data = self._read_raw(collection)
        return [{'id': doc_id, **doc} for doc_id, doc in data.items()]

    def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        doc = self._read_raw(collection).get(str(doc_id))
        if doc is None:
            return None
        return {'id': str(doc_id), **doc}

    def insert(self, collection: str, data: Dict[str, Any]) -> str:
        with self._file_lock:
            docs = self._read_raw(collection)
            doc_id = self.new_id()
            while doc_id in docs:
                doc_id = self.new_id()
            docs[doc_id] = {k: v for k, v in data.items() if k != 'id'}
            self._write_raw(collection, docs)
            return doc_id

    def update(self, collection: str, doc_id: str, fields: Dict[str, Any]) -> bool:
        with self._file_lock:
            docs = self._read_raw(collection)
            key = str(doc_id)
            if key not in docs:
                return False
            docs[key].update({k: v for k, v in fields.items() if k != 'id'})
            self._write_raw(collection, docs)
            return True

    def delete(self, collection: str, doc_id: str) -> bool:
        with self._file_lock:
            docs = self._read_raw(collection)
            removed = docs.pop(str(doc_id), None)
            if removed is not None:
                self._write_raw(collection, docs)
            return removed is not None

    def increment(self, collection: str, doc_id: str, field: str, value: float) -> bool:
        with self._file_lock:
            docs = self._read_raw(collection)
            doc = docs.get(str(doc_id))
            if doc is None:
                return False
            current = doc.get(field) or 0
            doc[field] = current + value
            self._write_raw(collection, docs)
            return True
