# ==============================================================================
# DATABASE - CRUD genérico por colección + consultas compuestas
# ==============================================================================
# Fachada única de acceso a datos. Los servicios nunca tocan el almacén
# directamente: todas las lecturas y escrituras pasan por aquí.
#
# Las fechas (datetime) se convierten a milisegundos epoch antes de escribir,
# así cualquier backend guarda el mismo formato.
# ==============================================================================

from datetime import datetime
from typing import Any, Dict, List, Optional

from app_station import config
from app_station.errors import NotFoundError
from app_station.repositories.interfaces import IDocumentStore
from app_station.timeutils import datetime_to_millis, to_millis


def _sanitize(payload: Dict[str, Any]) -> Dict[str, Any]:
    """Copia el payload convirtiendo valores datetime a milisegundos."""
    clean = {}
    for key, value in payload.items():
        if isinstance(value, datetime):
            value = datetime_to_millis(value)
        clean[key] = value
    return clean


class Database:
    """
    CRUD genérico indexado por nombre de colección.

    Uso:
        db = Database(JsonDocumentStore('/ruta/data'))
        customer = db.create('customers', {'name': 'Ana', 'phone': '077'})
        db.update('customers', customer['id'], {'phone': '071'})
    """

    def __init__(self, store: IDocumentStore):
        """
        Args:
            store: Backend de persistencia (JSON o MongoDB)
        """
        self.store = store

    # =========================================================================
    # CRUD GENÉRICO
    # =========================================================================

    def get_all(self, collection: str) -> List[Dict[str, Any]]:
        return self.store.all(collection)

    def get_one(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        if not doc_id:
            return None
        return self.store.get(collection, doc_id)

    def create(self, collection: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        Crea un documento.

        Returns:
            {id, **payload} con las fechas ya convertidas
        """
        data = _sanitize(payload)
        data.pop('id', None)
        doc_id = self.store.insert(collection, data)
        return {'id': doc_id, **data}

    def update(self, collection: str, doc_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        Mezcla campos en un documento existente.

        Returns:
            {id, **payload} (solo los campos enviados)

        Raises:
            NotFoundError: Si el documento no existe
        """
        data = _sanitize(payload)
        data.pop('id', None)
        if not self.store.update(collection, doc_id, data):
            raise NotFoundError(f'Documento {doc_id} no encontrado en {collection}')
        return {'id': doc_id, **data}

    def remove(self, collection: str, doc_id: str) -> Dict[str, Any]:
        self.store.delete(collection, doc_id)
        return {'id': doc_id}

    def increment(self, collection: str, doc_id: str, field: str, value: float) -> Dict[str, Any]:
        """
        Suma value al campo indicado (un campo ausente cuenta como 0).

        Raises:
            NotFoundError: Si el documento no existe
        """
        if not self.store.increment(collection, doc_id, field, value):
            raise NotFoundError(f'Documento {doc_id} no encontrado en {collection}')
        return {'id': doc_id, 'success': True}

    # =========================================================================
    # CONSULTAS COMPUESTAS
    # =========================================================================

    def _map_by_id(self, collection: str) -> Dict[str, Dict[str, Any]]:
        return {doc['id']: doc for doc in self.get_all(collection)}

    def enrich_invoices(self, invoices: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """
        Agrega nombres de cliente, vehículo y empleado a cada factura.

        Args:
            invoices: Facturas tal como están guardadas

        Returns:
            Nuevas facturas con customerName, customerPhone,
            vehicleNumberPlate, vehicleMakeModel y employeeName
        """
        if not invoices:
            return []

        customers = self._map_by_id(config.CUSTOMERS)
        vehicles = self._map_by_id(config.VEHICLES)
        employees = self._map_by_id(config.EMPLOYEES)

        enriched = []
        for inv in invoices:
            customer = customers.get(inv.get('customerId')) or {}
            vehicle = vehicles.get(inv.get('vehicleId')) or {}
            employee = employees.get(inv.get('employeeId')) or {}

            make_model = ' '.join(
                part for part in (vehicle.get('make'), vehicle.get('model')) if part
            )

            enriched.append({
                **inv,
                'customerName': customer.get('name') or 'Unknown Customer',
                'customerPhone': customer.get('phone') or 'N/A',
                'vehicleNumberPlate': vehicle.get('numberPlate') or 'N/A',
                'vehicleMakeModel': make_model or 'N/A',
                'employeeName': employee.get('name') or 'N/A',
            })
        return enriched

    def get_all_customers_with_vehicles(self) -> List[Dict[str, Any]]:
        """
        Un par {customer, vehicle} por cada vehículo cuyo cliente existe.
        """
        customers = self._map_by_id(config.CUSTOMERS)
        pairs = []
        for vehicle in self.get_all(config.VEHICLES):
            customer = customers.get(vehicle.get('customerId'))
            if customer is not None:
                pairs.append({'customer': customer, 'vehicle': vehicle})
        return pairs

    def search_vehicles_by_plate(self, prefix: str, limit: int = None) -> List[Dict[str, Any]]:
        """
        Vehículos cuya placa empieza con el prefijo (en mayúsculas).

        Args:
            prefix: Texto buscado
            limit: Máximo de resultados (config.VEHICLE_SEARCH_LIMIT por defecto)
        """
        limit = limit or config.VEHICLE_SEARCH_LIMIT
        needle = (prefix or '').strip().upper()
        matches = [
            v for v in self.get_all(config.VEHICLES)
            if str(v.get('numberPlate') or '').upper().startswith(needle)
        ]
        matches.sort(key=lambda v: str(v.get('numberPlate') or ''))
        return matches[:limit]

    def get_invoices_page(
        self,
        start_after: Optional[int] = None,
        page_size: int = None
    ) -> List[Dict[str, Any]]:
        """
        Página de facturas ordenadas por fecha descendente.

        Args:
            start_after: Milisegundos de la última factura de la página
                anterior (se devuelven solo las más antiguas)
            page_size: Tamaño de página (config.INVOICE_PAGE_SIZE por defecto)
        """
        page_size = page_size or config.INVOICE_PAGE_SIZE
        rows = []
        for inv in self.get_all(config.INVOICES):
            millis = to_millis(inv.get('date'))
            if millis is None:
                continue
            if start_after is not None and millis >= start_after:
                continue
            rows.append({**inv, 'date': millis})
        rows.sort(key=lambda inv: inv['date'], reverse=True)
        return rows[:page_size]

    def get_in_date_range(
        self,
        collection: str,
        start_ms: int,
        end_ms: int,
        field: str = 'date'
    ) -> List[Dict[str, Any]]:
        """
        Documentos cuyo campo de fecha cae en [start_ms, end_ms].

        La fecha de cada documento devuelto queda normalizada a milisegundos;
        los documentos sin fecha interpretable se omiten.
        """
        rows = []
        for doc in self.get_all(collection):
            millis = to_millis(doc.get(field))
            if millis is None:
                continue
            if start_ms <= millis <= end_ms:
                rows.append({**doc, field: millis})
        return rows
