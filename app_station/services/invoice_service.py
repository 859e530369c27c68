# ==============================================================================
# SERVICIO DE FACTURAS
# ==============================================================================
# Alta de facturas (descuenta stock y actualiza la última visita del
# vehículo), listado paginado y registro de pagos posteriores.
#
# La creación NO es transaccional: son varias escrituras independientes.
# Si algo falla después de descontar stock, se devuelve el stock ya
# descontado antes de propagar el error.
# ==============================================================================

import re
from typing import Any, Dict, List, Optional, Tuple

from app_station import config
from app_station.errors import BusinessRuleError, NotFoundError, StationError, ValidationFailed
from app_station.models import (
    Invoice,
    InvoiceItem,
    ItemType,
    Payment,
    PaymentStatus,
)
from app_station.performance_logger import log_error, profile_function
from app_station.repositories import Database
from app_station.schemas import AddPaymentSchema, InvoiceSchema
from app_station.timeutils import safe_round, to_millis

_INVOICE_NUMBER_RE = re.compile(r'^INV-(\d+)$')


class InvoiceService:
    """
    Servicio para facturas.

    Responsabilidades:
    - Listado paginado y enriquecido
    - Crear factura (validar stock, descontar, registrar visita)
    - Agregar pagos y recalcular el estado de pago
    """

    def __init__(self, db: Database):
        self.db = db

    # =========================================================================
    # CONSULTAS
    # =========================================================================

    def list_page(self, start_after: Optional[str] = None) -> Dict[str, Any]:
        """
        Página de facturas enriquecidas, de la más nueva a la más antigua.

        Args:
            start_after: Cursor (milisegundos de la última factura recibida)

        Returns:
            {'invoices': [...], 'hasMore': bool}
        """
        cursor = None
        if start_after not in (None, ''):
            try:
                cursor = int(float(start_after))
            except (TypeError, ValueError, OverflowError):
                raise ValidationFailed('startAfter debe ser un timestamp en milisegundos')

        page_size = config.INVOICE_PAGE_SIZE
        invoices = self.db.get_invoices_page(cursor, page_size)
        return {
            'invoices': self.db.enrich_invoices(invoices),
            'hasMore': len(invoices) == page_size,
        }

    def get_invoice(self, invoice_id: str) -> Dict[str, Any]:
        invoice = self.db.get_one(config.INVOICES, invoice_id)
        if invoice is None:
            raise NotFoundError('Factura no encontrada')
        invoice['date'] = to_millis(invoice.get('date'))
        return self.db.enrich_invoices([invoice])[0]

    def next_invoice_number(self) -> str:
        """Numeración incremental INV-0001, INV-0002 ..."""
        highest = 0
        for inv in self.db.get_all(config.INVOICES):
            match = _INVOICE_NUMBER_RE.match(str(inv.get('invoiceNumber') or ''))
            if match:
                highest = max(highest, int(match.group(1)))
        return f'INV-{highest + 1:04d}'

    # =========================================================================
    # CREACIÓN
    # =========================================================================

    def _product_lines(
        self,
        items: List[Dict[str, Any]],
        products: Dict[str, Dict[str, Any]]
    ) -> List[Dict[str, Any]]:
        """
        Líneas que corresponden a productos del inventario.

        Verifica que el stock alcance para TODAS antes de descontar nada.
        """
        lines = [item for item in items if item['itemId'] in products]

        needed: Dict[str, int] = {}
        for item in lines:
            needed[item['itemId']] = needed.get(item['itemId'], 0) + item['quantity']

        for product_id, quantity in needed.items():
            product = products[product_id]
            available = product.get('stock') or 0
            if available < quantity:
                raise BusinessRuleError(
                    f"Stock insuficiente para {product.get('name', product_id)}. "
                    f"Disponible: {available}, solicitado: {quantity}"
                )
        return lines

    def _restore_stock(self, applied: List[Tuple[str, int]]) -> None:
        for product_id, quantity in applied:
            try:
                self.db.increment(config.PRODUCTS, product_id, 'stock', quantity)
            except Exception as exc:
                log_error(f'Restaurar stock {product_id}', exc)

    @profile_function(name="Crear factura")
    def create_invoice(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        Crea una factura.

        Pasos:
        1. Validar el cuerpo y el stock de los productos
        2. Descontar stock de cada línea de producto
        3. Guardar la factura (estado de pago recalculado)
        4. Actualizar lastVisit del vehículo

        Returns:
            Factura creada (con id)

        Raises:
            BusinessRuleError: Stock insuficiente
            StationError: Fallo al descontar stock (500)
        """
        data = InvoiceSchema.model_validate(payload).to_doc()
        products = {p['id']: p for p in self.db.get_all(config.PRODUCTS)}
        product_lines = self._product_lines(data['items'], products)

        items = []
        for line in data['items']:
            product = products.get(line['itemId'])
            buy_price = line.get('buyPrice')
            if product is not None and buy_price is None:
                buy_price = product.get('actualPrice')
            items.append(InvoiceItem(
                item_id=line['itemId'],
                name=line['name'],
                quantity=line['quantity'],
                unit_price=line['unitPrice'],
                discount=line.get('discount', 0.0),
                total=line['total'],
                buy_price=buy_price,
                type=line.get('type') or (ItemType.PRODUCT.value if product else None),
            ))

        invoice = Invoice(
            invoice_number=data['invoiceNumber'],
            customer_id=data['customerId'],
            vehicle_id=data['vehicleId'],
            employee_id=data['employeeId'],
            date=data['date'],
            items=items,
            subtotal=data['subtotal'],
            global_discount_percent=data['globalDiscountPercent'],
            global_discount_amount=data['globalDiscountAmount'],
            total=data['total'],
            payments=[Payment.from_dict(p) for p in data['payments']],
        )
        invoice.apply_payment_summary()
        doc = invoice.to_dict()
        if data.get('status'):
            doc['status'] = data['status']

        applied: List[Tuple[str, int]] = []
        for line in product_lines:
            try:
                self.db.increment(config.PRODUCTS, line['itemId'], 'stock', -line['quantity'])
            except Exception as exc:
                log_error(f"Descontar stock {line['itemId']}", exc)
                self._restore_stock(applied)
                raise StationError(
                    f"No se pudo actualizar el stock de {line['name']}. Revise el inventario.",
                    500
                )
            applied.append((line['itemId'], line['quantity']))

        try:
            created = self.db.create(config.INVOICES, doc)
        except Exception:
            self._restore_stock(applied)
            raise

        try:
            self.db.update(config.VEHICLES, data['vehicleId'], {'lastVisit': data['date']})
        except NotFoundError as exc:
            log_error('Actualizar última visita', exc)

        return created

    # =========================================================================
    # PAGOS
    # =========================================================================

    def add_payments(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        Agrega pagos a una factura existente.

        Args:
            payload: {invoiceId, newPayments: [...]}

        Returns:
            Factura actualizada
        """
        data = AddPaymentSchema.model_validate(payload)

        existing = self.db.get_one(config.INVOICES, data.invoiceId)
        if existing is None:
            raise NotFoundError('Factura no encontrada')

        all_payments = list(existing.get('payments') or [])
        all_payments += [Payment.from_dict(p.to_doc()).to_dict() for p in data.newPayments]

        total_paid = safe_round(sum(float(p.get('amount') or 0) for p in all_payments))
        balance = safe_round(float(existing.get('total') or 0) - total_paid)
        status = PaymentStatus.PARTIAL.value
        change = 0.0

        if balance <= 0:
            change = abs(balance)
            balance = 0.0
            status = PaymentStatus.PAID.value

        changes = {
            'payments': all_payments,
            'amountPaid': total_paid,
            'balanceDue': balance,
            'paymentStatus': status,
            'changeGiven': safe_round(float(existing.get('changeGiven') or 0) + change),
        }
        self.db.update(config.INVOICES, data.invoiceId, changes)

        updated = {**existing, **changes}
        updated['date'] = to_millis(existing.get('date'))
        return updated
