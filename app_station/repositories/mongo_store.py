# ==============================================================================
# ALMACÉN MONGODB
# ==============================================================================
# Backend para base de datos de documentos alojada (MongoDB Atlas u otra).
# Se activa con STATION_DB_BACKEND=mongo y MONGODB_URI.
#
# Los ids se guardan como string en el campo "_id" y se exponen como "id".
# ==============================================================================

from typing import Any, Dict, List, Optional

from pymongo import MongoClient
from pymongo.collection import Collection

from app_station.repositories.base import BaseDocumentStore


class MongoDocumentStore(BaseDocumentStore):
    """Almacén de documentos sobre MongoDB."""

    def __init__(self, uri: str, db_name: str, client: MongoClient = None):
        """
        Args:
            uri: Cadena de conexión de MongoDB
            db_name: Nombre de la base de datos
            client: Cliente ya creado (opcional, útil para tests)
        """
        if client is None and not uri:
            raise ValueError("MONGODB_URI no está configurado")
        self._client = client or MongoClient(uri)
        self._db = self._client[db_name]

    def _collection(self, name: str) -> Collection:
        return self._db[name]

    @staticmethod
    def _to_doc(row: Dict[str, Any]) -> Dict[str, Any]:
        out = dict(row)
        out['id'] = str(out.pop('_id'))
        return out

    def all(self, collection: str) -> List[Dict[str, Any]]:
        return [self._to_doc(row) for row in self._collection(collection).find({})]

    def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        row = self._collection(collection).find_one({'_id': str(doc_id)})
        return self._to_doc(row) if row else None

    def insert(self, collection: str, data: Dict[str, Any]) -> str:
        doc_id = self.new_id()
        doc = {k: v for k, v in data.items() if k != 'id'}
        doc['_id'] = doc_id
        self._collection(collection).insert_one(doc)
        return doc_id

    def update(self, collection: str, doc_id: str, fields: Dict[str, Any]) -> bool:
        changes = {k: v for k, v in fields.items() if k not in ('id', '_id')}
        if not changes:
            return self._collection(collection).count_documents({'_id': str(doc_id)}, limit=1) > 0
        result = self._collection(collection).update_one({'_id': str(doc_id)}, {'$set': changes})
        return result.matched_count > 0

    def delete(self, collection: str, doc_id: str) -> bool:
        result = self._collection(collection).delete_one({'_id': str(doc_id)})
        return result.deleted_count > 0

    def increment(self, collection: str, doc_id: str, field: str, value: float) -> bool:
        result = self._collection(collection).update_one(
            {'_id': str(doc_id)},
            {'$inc': {field: value}}
        )
        return result.matched_count > 0
