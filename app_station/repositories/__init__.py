# ==============================================================================
# CAPA DE REPOSITORIOS - Acceso a datos
# ==============================================================================
# JsonDocumentStore (archivos locales) y MongoDocumentStore (MongoDB)
# implementan IDocumentStore. Database expone el CRUD genérico y las
# consultas compuestas que usan los servicios.
# ==============================================================================

from .interfaces import IDocumentStore
from .base import BaseDocumentStore, JsonDocumentStore
from .database import Database

__all__ = [
    'IDocumentStore',
    'BaseDocumentStore',
    'JsonDocumentStore',
    'Database',
]
