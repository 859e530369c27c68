# ==============================================================================
# SERVICIO DE EMPLEADOS
# ==============================================================================

from typing import Any, Dict, List, Optional

from app_station import config
from app_station.errors import ValidationFailed
from app_station.models import Employee
from app_station.repositories import Database
from app_station.schemas import EmployeeSchema


class EmployeeService:
    """CRUD de empleados (mecánicos a los que se asignan las facturas)."""

    def __init__(self, db: Database):
        self.db = db

    def list_employees(self) -> List[Dict[str, Any]]:
        return self.db.get_all(config.EMPLOYEES)

    def create_employee(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        data = EmployeeSchema.model_validate(payload).to_doc()
        return self.db.create(config.EMPLOYEES, Employee(**data).to_dict())

    def update_employee(self, doc_id: Optional[str], payload: Dict[str, Any]) -> Dict[str, Any]:
        if not doc_id:
            raise ValidationFailed('El ID es obligatorio para actualizar')
        data = EmployeeSchema.model_validate(payload).to_doc()
        return self.db.update(config.EMPLOYEES, doc_id, Employee(**data).to_dict())

    def delete_employee(self, doc_id: Optional[str]) -> Dict[str, Any]:
        if not doc_id:
            raise ValidationFailed('El parámetro id es obligatorio')
        self.db.remove(config.EMPLOYEES, doc_id)
        return {'success': True, 'id': doc_id}
