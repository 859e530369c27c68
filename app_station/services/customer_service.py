# ==============================================================================
# SERVICIO DE CLIENTES Y VEHÍCULOS
# ==============================================================================
# CRUD de clientes y vehículos, búsqueda por placa y la vista combinada
# cliente + vehículos que usa la pantalla de clientes y el POS.
# ==============================================================================

from typing import Any, Dict, List, Optional

from app_station import config
from app_station.errors import NotFoundError, ValidationFailed
from app_station.models import Customer, Vehicle
from app_station.repositories import Database
from app_station.schemas import (
    CustomerSchema,
    CustomerVehicleSchema,
    VehicleSchema,
    validate_partial,
)


class CustomerService:
    """
    Servicio para clientes y sus vehículos.

    Un cliente puede tener varios vehículos (vehicle.customerId).
    """

    def __init__(self, db: Database):
        """
        Args:
            db: Fachada de acceso a datos
        """
        self.db = db

    # =========================================================================
    # CLIENTES
    # =========================================================================

    def list_customers(self) -> List[Dict[str, Any]]:
        return self.db.get_all(config.CUSTOMERS)

    def create_customer(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        data = CustomerSchema.model_validate(payload).to_doc()
        return self.db.create(config.CUSTOMERS, Customer(**data).to_dict())

    def update_customer(self, doc_id: Optional[str], payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        Reemplaza los datos de un cliente.

        Raises:
            ValidationFailed: Si falta el id
            NotFoundError: Si el cliente no existe
        """
        if not doc_id:
            raise ValidationFailed('El ID es obligatorio para actualizar')
        data = CustomerSchema.model_validate(payload).to_doc()
        return self.db.update(config.CUSTOMERS, doc_id, Customer(**data).to_dict())

    def delete_customer(self, doc_id: Optional[str]) -> Dict[str, Any]:
        if not doc_id:
            raise ValidationFailed('El parámetro id es obligatorio')
        self.db.remove(config.CUSTOMERS, doc_id)
        return {'success': True, 'id': doc_id}

    def customers_overview(self, query: str = '') -> List[Dict[str, Any]]:
        """
        Clientes con la lista de sus vehículos, filtrados opcionalmente.

        Args:
            query: Texto buscado en nombre, teléfono o placa (sin distinguir
                mayúsculas)

        Returns:
            Lista de clientes, cada uno con 'vehicles'
        """
        vehicles_by_customer: Dict[str, List[Dict[str, Any]]] = {}
        for vehicle in self.db.get_all(config.VEHICLES):
            vehicles_by_customer.setdefault(vehicle.get('customerId'), []).append(vehicle)

        needle = (query or '').strip().lower()
        rows = []
        for customer in self.db.get_all(config.CUSTOMERS):
            vehicles = vehicles_by_customer.get(customer['id'], [])
            if needle:
                haystack = [customer.get('name') or '', customer.get('phone') or '']
                haystack += [v.get('numberPlate') or '' for v in vehicles]
                if not any(needle in text.lower() for text in haystack):
                    continue
            rows.append({**customer, 'vehicles': vehicles})
        rows.sort(key=lambda c: (c.get('name') or '').lower())
        return rows

    # =========================================================================
    # VEHÍCULOS
    # =========================================================================

    def list_vehicles(self) -> List[Dict[str, Any]]:
        return self.db.get_all(config.VEHICLES)

    def create_vehicle(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        data = VehicleSchema.model_validate(payload).to_doc()
        return self.db.create(config.VEHICLES, Vehicle.from_dict(data).to_dict())

    def update_vehicle(self, doc_id: Optional[str], fields: Dict[str, Any]) -> Dict[str, Any]:
        """Actualización parcial: solo se escriben los campos enviados."""
        if not doc_id:
            raise ValidationFailed('El ID es obligatorio para actualizar')
        existing = self.db.get_one(config.VEHICLES, doc_id)
        if existing is None:
            raise NotFoundError('Vehículo no encontrado')
        changes = validate_partial(VehicleSchema, existing, fields)
        if not changes:
            raise ValidationFailed('No hay campos para actualizar')
        return self.db.update(config.VEHICLES, doc_id, changes)

    def delete_vehicle(self, doc_id: Optional[str]) -> Dict[str, Any]:
        if not doc_id:
            raise ValidationFailed('El parámetro id es obligatorio')
        self.db.remove(config.VEHICLES, doc_id)
        return {'success': True, 'id': doc_id}

    def search_vehicles(self, query: Optional[str]) -> List[Dict[str, Any]]:
        """
        Búsqueda por prefijo de placa, con el cliente de cada vehículo.

        Raises:
            ValidationFailed: Si no se envía texto de búsqueda
        """
        if not query or not query.strip():
            raise ValidationFailed('El parámetro query es obligatorio')
        vehicles = self.db.search_vehicles_by_plate(query)
        customers = {c['id']: c for c in self.db.get_all(config.CUSTOMERS)}
        return [
            {**v, 'customer': customers.get(v.get('customerId'))}
            for v in vehicles
        ]

    # =========================================================================
    # CLIENTE + VEHÍCULO
    # =========================================================================

    def customers_with_vehicles(self) -> List[Dict[str, Any]]:
        return self.db.get_all_customers_with_vehicles()

    def save_customer_vehicle(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        Crea o actualiza un cliente y su vehículo en un solo paso.

        El vehículo queda enlazado al cliente (customerId).

        Returns:
            {'customer': {...}, 'vehicle': {...}}
        """
        data = CustomerVehicleSchema.model_validate(payload)
        customer_doc = Customer(**data.customer.to_doc()).to_dict()

        if data.customerId:
            customer = self.db.update(config.CUSTOMERS, data.customerId, customer_doc)
        else:
            customer = self.db.create(config.CUSTOMERS, customer_doc)

        vehicle_data = data.vehicle.to_doc()
        vehicle_data['customerId'] = customer['id']
        vehicle_doc = Vehicle.from_dict(vehicle_data).to_dict()

        if data.vehicleId:
            vehicle = self.db.update(config.VEHICLES, data.vehicleId, vehicle_doc)
        else:
            vehicle = self.db.create(config.VEHICLES, vehicle_doc)

        return {'customer': customer, 'vehicle': vehicle}
