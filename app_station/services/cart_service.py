# ==============================================================================
# SERVICIO DE CARRITO (POS)
# ==============================================================================
# Centraliza toda la lógica del carrito del punto de venta.
# El carrito se almacena en la sesión de Flask:
#   session['pos_cart']      → lista de líneas (CartItem.to_dict())
#   session['pos_discount']  → descuento global en %
#
# compute_cart_totals() es una función pura: no depende de la sesión y es
# la que define los montos de la factura al cobrar.
# ==============================================================================

import uuid
from typing import Any, Dict, Iterable, List

from flask import session

from app_station.errors import BusinessRuleError, NotFoundError
from app_station.models import CartItem, ItemType, Product, Service
from app_station.schemas import (
    CartAddSchema,
    CartDiscountSchema,
    CartRemoveSchema,
    CartUpdateSchema,
    CheckoutSchema,
)
from app_station.services.inventory_service import InventoryService
from app_station.services.invoice_service import InvoiceService
from app_station.timeutils import now_millis, safe_round


def clamp_percent(value: Any) -> float:
    """Limita un porcentaje al rango [0, 100]."""
    try:
        pct = float(value or 0)
    except (TypeError, ValueError):
        return 0.0
    return min(100.0, max(0.0, pct))


def compute_cart_totals(items: Iterable[CartItem], global_discount_percent: float = 0.0) -> Dict[str, Any]:
    """
    Calcula los totales del carrito.

    Args:
        items: Líneas del carrito
        global_discount_percent: Descuento global en % (se limita a 0-100)

    Returns:
        Dict con subtotal, totalItemDiscount, globalDiscountPercent,
        globalDiscountAmount, totalDiscount, total e itemCount
    """
    items = list(items)
    pct = clamp_percent(global_discount_percent)

    subtotal = sum(i.unit_price * i.quantity for i in items)
    item_discount = sum(i.effective_discount * i.quantity for i in items)

    global_amount = safe_round((subtotal - item_discount) * pct / 100)
    total = safe_round(subtotal - item_discount - global_amount)

    return {
        'subtotal': safe_round(subtotal),
        'totalItemDiscount': safe_round(item_discount),
        'globalDiscountPercent': pct,
        'globalDiscountAmount': global_amount,
        'totalDiscount': safe_round(item_discount + global_amount),
        'total': total,
        'itemCount': sum(i.quantity for i in items),
    }


class CartService:
    """
    Servicio para gestión del carrito del POS.

    Responsabilidades:
    - Agregar productos, servicios y trabajos personalizados
    - Validar stock disponible
    - Calcular totales con descuentos
    - Convertir el carrito en factura (checkout)
    """

    CART_KEY = 'pos_cart'
    DISCOUNT_KEY = 'pos_discount'

    def __init__(self, inventory_service: InventoryService, invoice_service: InvoiceService):
        """
        Args:
            inventory_service: Para leer precios y stock del catálogo
            invoice_service: Para crear la factura al cobrar
        """
        self.inventory_service = inventory_service
        self.invoice_service = invoice_service

    def _get_items(self) -> List[CartItem]:
        return [CartItem.from_dict(d) for d in session.get(self.CART_KEY, [])]

    def _save_items(self, items: List[CartItem]) -> None:
        session[self.CART_KEY] = [i.to_dict() for i in items]
        session.modified = True

    def _find(self, items: List[CartItem], cart_id: str) -> CartItem:
        for item in items:
            if item.cart_id == cart_id:
                return item
        raise NotFoundError('Ítem no encontrado en el carrito')

    @staticmethod
    def _check_stock(item: CartItem, quantity: int) -> None:
        if quantity < 1:
            raise BusinessRuleError('La cantidad debe ser al menos 1')
        if item.stock is not None and quantity > item.stock:
            raise BusinessRuleError(
                f'Stock insuficiente para {item.name}. Disponible: {item.stock}'
            )

    # =========================================================================
    # CONSULTA
    # =========================================================================

    def get_cart(self) -> Dict[str, Any]:
        """
        Obtiene el carrito con totales calculados.

        Returns:
            Dict con items (incluye lineTotal) y totals
        """
        items = self._get_items()
        pct = session.get(self.DISCOUNT_KEY, 0.0)
        return {
            'items': [{**i.to_dict(), 'lineTotal': i.line_total} for i in items],
            'totals': compute_cart_totals(items, pct),
        }

    # =========================================================================
    # MODIFICACIÓN
    # =========================================================================

    def add_item(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        Agrega una línea al carrito.

        Un producto que ya está en el carrito suma cantidad a su línea; si la
        petición trae discountAmount, reemplaza el descuento de esa línea.
        """
        data = CartAddSchema.model_validate(payload)
        items = self._get_items()

        if data.type == ItemType.PRODUCT.value:
            doc = self.inventory_service.get_product(data.itemId)
            if doc is None:
                raise NotFoundError('Producto no encontrado')
            product = Product.from_dict(doc)

            for existing in items:
                if existing.type == ItemType.PRODUCT.value and existing.item_id == product.id:
                    existing.stock = product.stock
                    self._check_stock(existing, existing.quantity + data.quantity)
                    existing.quantity += data.quantity
                    if 'discountAmount' in data.model_fields_set:
                        existing.discount_amount = data.discountAmount
                    self._save_items(items)
                    return self.get_cart()

            item = CartItem(
                cart_id=uuid.uuid4().hex[:8],
                type=ItemType.PRODUCT.value,
                item_id=product.id,
                name=product.name,
                unit_price=product.selling_price,
                stock=product.stock,
                buy_price=product.actual_price,
            )
        elif data.type == ItemType.SERVICE.value:
            doc = self.inventory_service.get_service(data.itemId)
            if doc is None:
                raise NotFoundError('Servicio no encontrado')
            service = Service.from_dict(doc)
            item = CartItem(
                cart_id=uuid.uuid4().hex[:8],
                type=ItemType.SERVICE.value,
                item_id=service.id,
                name=service.name,
                unit_price=service.price,
            )
        else:
            cart_id = uuid.uuid4().hex[:8]
            item = CartItem(
                cart_id=cart_id,
                type=ItemType.CUSTOM.value,
                item_id=f'custom-{cart_id}',
                name=data.name,
                unit_price=data.unitPrice,
            )

        self._check_stock(item, data.quantity)
        item.quantity = data.quantity
        item.discount_amount = data.discountAmount
        items.append(item)
        self._save_items(items)
        return self.get_cart()

    def update_item(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Cambia cantidad, descuento o (solo en trabajos personalizados) nombre/precio."""
        data = CartUpdateSchema.model_validate(payload)
        items = self._get_items()
        item = self._find(items, data.cartId)

        if data.quantity is not None:
            if item.type == ItemType.PRODUCT.value:
                doc = self.inventory_service.get_product(item.item_id)
                if doc is None:
                    raise NotFoundError('Producto no encontrado')
                item.stock = Product.from_dict(doc).stock
            self._check_stock(item, data.quantity)
            item.quantity = data.quantity
        if data.discountAmount is not None:
            item.discount_amount = data.discountAmount
        if data.name is not None or data.unitPrice is not None:
            if item.type != ItemType.CUSTOM.value:
                raise BusinessRuleError('Solo los trabajos personalizados permiten cambiar nombre o precio')
            if data.name:
                item.name = data.name
            if data.unitPrice is not None:
                item.unit_price = data.unitPrice

        self._save_items(items)
        return self.get_cart()

    def remove_item(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        data = CartRemoveSchema.model_validate(payload)
        items = self._get_items()
        item = self._find(items, data.cartId)
        items.remove(item)
        self._save_items(items)
        return self.get_cart()

    def set_discount(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        data = CartDiscountSchema.model_validate(payload)
        session[self.DISCOUNT_KEY] = clamp_percent(data.percent)
        session.modified = True
        return self.get_cart()

    def clear(self) -> None:
        """Vacía el carrito y el descuento global."""
        session.pop(self.CART_KEY, None)
        session.pop(self.DISCOUNT_KEY, None)
        session.modified = True

    # =========================================================================
    # CHECKOUT
    # =========================================================================

    def build_invoice(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        Arma el cuerpo de la factura a partir del carrito.

        Args:
            payload: {customerId, vehicleId, employeeId, payments[]}
        """
        data = CheckoutSchema.model_validate(payload)
        items = self._get_items()
        if not items:
            raise BusinessRuleError('El carrito está vacío')

        totals = compute_cart_totals(items, session.get(self.DISCOUNT_KEY, 0.0))

        lines = []
        for item in items:
            line = {
                'itemId': item.item_id,
                'name': item.name,
                'quantity': item.quantity,
                'unitPrice': item.unit_price,
                'discount': item.effective_discount,
                'total': item.line_total,
                'type': item.type,
            }
            if item.buy_price is not None:
                line['buyPrice'] = item.buy_price
            lines.append(line)

        return {
            'invoiceNumber': self.invoice_service.next_invoice_number(),
            'customerId': data.customerId,
            'vehicleId': data.vehicleId,
            'employeeId': data.employeeId,
            'date': now_millis(),
            'items': lines,
            'subtotal': totals['subtotal'],
            'globalDiscountPercent': totals['globalDiscountPercent'],
            'globalDiscountAmount': totals['globalDiscountAmount'],
            'total': totals['total'],
            'payments': [p.to_doc() for p in data.payments],
        }

    def checkout(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        Cobra el carrito: crea la factura y vacía el carrito.

        Returns:
            Factura creada
        """
        invoice = self.invoice_service.create_invoice(self.build_invoice(payload))
        self.clear()
        return invoice
