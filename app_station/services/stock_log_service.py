# ==============================================================================
# SERVICIO DE LOG DE STOCK
# ==============================================================================
# Registra cada cambio manual de stock en la colección
# stock_adjustment_logs (ingresos, bajas y eliminaciones de productos).
# Las ventas NO se registran aquí: salen de las facturas.
# ==============================================================================

from typing import Any, Dict, List, Optional

from app_station import config
from app_station.models import StockAction, StockAdjustmentLog
from app_station.repositories import Database


class StockLogService:
    """
    Servicio de registro de ajustes de stock.

    Responsabilidades:
    - Crear la entrada de log para add / decrement / delete
    - Consultar los logs de un rango de fechas (reporte de stock)
    """

    ADD_REASON = 'Ingreso manual de stock desde "Agregar stock".'

    def __init__(self, db: Database):
        self.db = db

    def log(
        self,
        product: Dict[str, Any],
        action: str,
        reason: str,
        quantity: Optional[int] = None
    ) -> Dict[str, Any]:
        """
        Registra un ajuste de stock.

        Args:
            product: Documento del producto (antes del ajuste)
            action: add | decrement | delete
            reason: Motivo del ajuste
            quantity: Cantidad ajustada (None para delete)

        Returns:
            Documento de log creado
        """
        entry = StockAdjustmentLog(
            product_id=product['id'],
            product_name=product.get('name', ''),
            action=action,
            reason=reason,
            quantity=quantity if action != StockAction.DELETE.value else None,
        )
        return self.db.create(config.STOCK_LOGS, entry.to_dict())

    def log_addition(self, product: Dict[str, Any], quantity: int) -> Dict[str, Any]:
        return self.log(product, StockAction.ADD.value, self.ADD_REASON, quantity)

    def logs_between(self, start_ms: int, end_ms: int) -> List[Dict[str, Any]]:
        """Logs cuya fecha cae en [start_ms, end_ms]."""
        return self.db.get_in_date_range(config.STOCK_LOGS, start_ms, end_ms)
