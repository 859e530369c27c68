# ==============================================================================
# SERVICIO DE INVENTARIO
# ==============================================================================
# Centraliza toda la lógica de negocio relacionada con productos, servicios
# del catálogo y ajustes manuales de stock.
#
# Cada cambio manual de stock (ingreso, baja, eliminación) queda registrado
# en stock_adjustment_logs a través de StockLogService.
# ==============================================================================

from typing import Any, Dict, List, Optional

from app_station import config
from app_station.errors import BusinessRuleError, NotFoundError, ValidationFailed
from app_station.models import Product, StockAction
from app_station.repositories import Database
from app_station.schemas import (
    AddStockSchema,
    AdjustStockSchema,
    ProductSchema,
    ServiceSchema,
    validate_partial,
)
from app_station.services.stock_log_service import StockLogService


class InventoryService:
    """
    Servicio para gestión de inventario.

    Responsabilidades:
    - CRUD de productos y servicios
    - Ingreso de stock y ajustes manuales (con log)
    - Detección de stock bajo
    """

    def __init__(self, db: Database, stock_log_service: StockLogService):
        """
        Inicializa el servicio de inventario.

        Args:
            db: Fachada de acceso a datos
            stock_log_service: Servicio de log de ajustes de stock
        """
        self.db = db
        self.stock_log_service = stock_log_service

    # =========================================================================
    # PRODUCTOS
    # =========================================================================

    def list_products(self) -> List[Dict[str, Any]]:
        return self.db.get_all(config.PRODUCTS)

    def get_product(self, product_id: str) -> Optional[Dict[str, Any]]:
        return self.db.get_one(config.PRODUCTS, product_id)

    def create_product(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        data = ProductSchema.model_validate(payload).to_doc()
        return self.db.create(config.PRODUCTS, data)

    def update_product(self, product_id: Optional[str], fields: Dict[str, Any]) -> Dict[str, Any]:
        """
        Actualiza parcialmente un producto.

        La regla precio de venta >= costo se valida sobre el producto
        resultante, no solo sobre los campos enviados.

        Raises:
            ValidationFailed: Sin id, sin campos o datos inválidos
            NotFoundError: Si el producto no existe
        """
        if not product_id:
            raise ValidationFailed('Datos inválidos: el id es obligatorio')
        if not fields:
            raise ValidationFailed('No hay campos para actualizar')

        existing = self.get_product(product_id)
        if existing is None:
            raise NotFoundError('Producto no encontrado')

        changes = validate_partial(ProductSchema, existing, fields)
        if not changes:
            raise ValidationFailed('No hay campos para actualizar')
        return self.db.update(config.PRODUCTS, product_id, changes)

    def delete_product(self, product_id: Optional[str]) -> Dict[str, Any]:
        if not product_id:
            raise ValidationFailed('El parámetro id es obligatorio')
        self.db.remove(config.PRODUCTS, product_id)
        return {'success': True, 'id': product_id}

    def low_stock_products(self) -> List[Dict[str, Any]]:
        """Productos con stock en o por debajo del nivel de reposición."""
        return [
            p for p in self.list_products()
            if Product.from_dict(p).is_low_stock
        ]

    # =========================================================================
    # SERVICIOS DEL CATÁLOGO
    # =========================================================================

    def list_services(self) -> List[Dict[str, Any]]:
        return self.db.get_all(config.SERVICES)

    def get_service(self, service_id: str) -> Optional[Dict[str, Any]]:
        return self.db.get_one(config.SERVICES, service_id)

    def create_service(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        data = ServiceSchema.model_validate(payload).to_doc()
        return self.db.create(config.SERVICES, data)

    def update_service(self, service_id: Optional[str], payload: Dict[str, Any]) -> Dict[str, Any]:
        if not service_id:
            raise ValidationFailed('El ID es obligatorio para actualizar')
        data = ServiceSchema.model_validate(payload).to_doc()
        return self.db.update(config.SERVICES, service_id, data)

    def delete_service(self, service_id: Optional[str]) -> Dict[str, Any]:
        if not service_id:
            raise ValidationFailed('El parámetro id es obligatorio')
        self.db.remove(config.SERVICES, service_id)
        return {'success': True, 'id': service_id}

    # =========================================================================
    # MOVIMIENTOS DE STOCK
    # =========================================================================

    def add_stock(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        Ingresa stock a un producto y lo registra en el log.

        Args:
            payload: {productId, quantity}

        Returns:
            Producto actualizado
        """
        data = AddStockSchema.model_validate(payload)

        product = self.get_product(data.productId)
        if product is None:
            raise NotFoundError('Producto no encontrado')

        self.db.increment(config.PRODUCTS, data.productId, 'stock', data.quantity)
        self.stock_log_service.log_addition(product, data.quantity)

        return self.get_product(data.productId)

    def adjust_stock(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        Baja manual de stock o eliminación del producto.

        Args:
            payload: {productId, action: decrement|delete, quantity?, reason}

        Returns:
            {success, message}

        Raises:
            NotFoundError: Si el producto no existe
            BusinessRuleError: Cantidad ausente, no positiva o mayor al stock
        """
        data = AdjustStockSchema.model_validate(payload)

        product = self.get_product(data.productId)
        if product is None:
            raise NotFoundError('Producto no encontrado.')

        if data.action == StockAction.DECREMENT.value:
            if data.quantity is None or data.quantity <= 0:
                raise BusinessRuleError('Se requiere una cantidad positiva para la baja.')
            if (product.get('stock') or 0) < data.quantity:
                raise BusinessRuleError('La cantidad a ajustar no puede ser mayor al stock actual.')
            self.db.increment(config.PRODUCTS, data.productId, 'stock', -data.quantity)
        else:
            self.db.remove(config.PRODUCTS, data.productId)

        # El log se escribe después de aplicar la acción
        self.stock_log_service.log(product, data.action, data.reason, data.quantity)

        return {
            'success': True,
            'message': f"Acción '{data.action}' aplicada a '{product.get('name', '')}' y registrada.",
        }
