# ==============================================================================
# ENTIDADES DEL DOMINIO - Definiciones de dataclasses
# ==============================================================================
# Cada entidad representa un concepto del negocio del taller.
# Los documentos se guardan con claves camelCase; to_dict/from_dict hacen
# la traducción y son independientes del backend (JSON o MongoDB).
# ==============================================================================

from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any
from enum import Enum

from app_station.timeutils import safe_round, now_millis


# ==============================================================================
# ENUMERACIONES - Estados y tipos válidos
# ==============================================================================

class PaymentMethod(str, Enum):
    """Métodos de pago aceptados."""
    CASH = "Cash"
    CARD = "Card"
    CHEQUE = "Cheque"

    @classmethod
    def normalize(cls, value: str) -> str:
        """Acepta 'Check' como sinónimo de 'Cheque'."""
        if value == 'Check':
            return cls.CHEQUE.value
        return cls(value).value


class PaymentStatus(str, Enum):
    """Estado de pago de una factura."""
    PAID = "Paid"
    PARTIAL = "Partial"
    UNPAID = "Unpaid"


class StockAction(str, Enum):
    """Acciones registradas en el log de ajustes de stock."""
    ADD = "add"
    DECREMENT = "decrement"
    DELETE = "delete"


class ItemType(str, Enum):
    """Tipo de línea en el carrito / factura."""
    PRODUCT = "product"
    SERVICE = "service"
    CUSTOM = "custom"


class FuelType(str, Enum):
    PETROL = "Petrol"
    DIESEL = "Diesel"
    HYBRID = "Hybrid"
    EV = "EV"


class Transmission(str, Enum):
    AUTO = "Auto"
    MANUAL = "Manual"


# Estados de factura excluidos de ganancias/pérdidas
EXCLUDED_INVOICE_STATUSES = frozenset(['cancelled', 'refunded'])


def _compact(d: Dict[str, Any]) -> Dict[str, Any]:
    """Quita claves con valor None (los campos opcionales no se guardan)."""
    return {k: v for k, v in d.items() if v is not None}


# ==============================================================================
# CLIENTES Y VEHÍCULOS
# ==============================================================================

@dataclass
class Customer:
    """
    Cliente del taller.

    Attributes:
        name: Nombre completo
        phone: Teléfono de contacto
        address: Dirección (opcional)
        nic: Documento de identidad / licencia (opcional)
    """
    name: str
    phone: str
    address: Optional[str] = None
    nic: Optional[str] = None
    id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return _compact({
            'name': self.name,
            'phone': self.phone,
            'address': self.address,
            'nic': self.nic,
        })

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Customer':
        return cls(
            id=data.get('id'),
            name=data.get('name', ''),
            phone=data.get('phone', ''),
            address=data.get('address'),
            nic=data.get('nic'),
        )


@dataclass
class Vehicle:
    """
    Vehículo de un cliente.

    Attributes:
        number_plate: Placa (siempre en mayúsculas)
        customer_id: ID del cliente dueño
        last_visit: Última visita en milisegundos epoch
    """
    number_plate: str
    customer_id: Optional[str] = None
    make: Optional[str] = None
    model: Optional[str] = None
    year: Optional[int] = None
    mileage: Optional[int] = None
    fuel_type: Optional[str] = None
    transmission: Optional[str] = None
    last_visit: Optional[int] = None
    id: Optional[str] = None

    def __post_init__(self):
        self.number_plate = (self.number_plate or '').strip().upper()

    def to_dict(self) -> Dict[str, Any]:
        return _compact({
            'numberPlate': self.number_plate,
            'customerId': self.customer_id,
            'make': self.make,
            'model': self.model,
            'year': self.year,
            'mileage': self.mileage,
            'fuelType': self.fuel_type,
            'transmission': self.transmission,
            'lastVisit': self.last_visit,
        })

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Vehicle':
        return cls(
            id=data.get('id'),
            number_plate=data.get('numberPlate', ''),
            customer_id=data.get('customerId'),
            make=data.get('make'),
            model=data.get('model'),
            year=data.get('year'),
            mileage=data.get('mileage'),
            fuel_type=data.get('fuelType'),
            transmission=data.get('transmission'),
            last_visit=data.get('lastVisit'),
        )


# ==============================================================================
# EMPLEADOS
# ==============================================================================

@dataclass
class Employee:
    """Empleado (mecánico) al que se asignan los trabajos."""
    name: str
    address: str
    mobile: str
    notes: Optional[str] = None
    id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return _compact({
            'name': self.name,
            'address': self.address,
            'mobile': self.mobile,
            'notes': self.notes,
        })


# ==============================================================================
# INVENTARIO
# ==============================================================================

@dataclass
class Product:
    """
    Producto del inventario.

    Attributes:
        stock: Unidades en inventario
        stock_threshold: Nivel de reposición (alerta de stock bajo)
        actual_price: Costo de compra
        selling_price: Precio de venta
    """
    name: str
    sku: str = ''
    category: str = ''
    stock: int = 0
    stock_threshold: int = 0
    actual_price: float = 0.0
    selling_price: float = 0.0
    id: Optional[str] = None

    @property
    def is_low_stock(self) -> bool:
        """Verifica si el stock está en o por debajo del nivel de reposición."""
        return self.stock <= self.stock_threshold

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Product':
        return cls(
            id=data.get('id'),
            name=data.get('name', ''),
            sku=data.get('sku', ''),
            category=data.get('category', ''),
            stock=int(data.get('stock') or 0),
            stock_threshold=int(data.get('stockThreshold') or 0),
            actual_price=float(data.get('actualPrice') or 0.0),
            selling_price=float(data.get('sellingPrice') or 0.0),
        )


@dataclass
class Service:
    """Servicio del catálogo (cambio de aceite, alineación, etc.)."""
    name: str
    price: float = 0.0
    description: Optional[str] = None
    vehicle_category: Optional[str] = None
    id: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Service':
        return cls(
            id=data.get('id'),
            name=data.get('name', ''),
            price=float(data.get('price') or 0.0),
            description=data.get('description'),
            vehicle_category=data.get('vehicleCategory'),
        )


@dataclass
class StockAdjustmentLog:
    """
    Registro de un cambio manual de stock.

    Attributes:
        action: add | decrement | delete
        quantity: Cantidad (None para delete)
        date: Milisegundos epoch del ajuste
    """
    product_id: str
    product_name: str
    action: str
    reason: str
    quantity: Optional[int] = None
    date: int = 0

    def __post_init__(self):
        if not self.date:
            self.date = now_millis()

    def to_dict(self) -> Dict[str, Any]:
        # quantity se guarda aunque sea None (delete)
        return {
            'productId': self.product_id,
            'productName': self.product_name,
            'date': self.date,
            'action': self.action,
            'quantity': self.quantity,
            'reason': self.reason,
        }


# ==============================================================================
# FACTURAS
# ==============================================================================

@dataclass
class InvoiceItem:
    """
    Línea de una factura.

    Attributes:
        item_id: ID del producto o servicio ('custom-...' para trabajos libres)
        unit_price: Precio unitario antes de descuento
        discount: Descuento por unidad
        total: Total de la línea ((unit_price - discount) * quantity)
        buy_price: Costo unitario al momento de la venta (solo productos)
    """
    item_id: str
    name: str
    quantity: int
    unit_price: float
    discount: float = 0.0
    total: float = 0.0
    buy_price: Optional[float] = None
    type: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return _compact({
            'itemId': self.item_id,
            'name': self.name,
            'quantity': self.quantity,
            'unitPrice': self.unit_price,
            'discount': self.discount,
            'total': self.total,
            'buyPrice': self.buy_price,
            'type': self.type,
        })


@dataclass
class Payment:
    """
    Pago registrado en una factura.

    Attributes:
        method: Cash | Card | Cheque
        amount: Monto (> 0)
    """
    method: str
    amount: float
    id: Optional[str] = None
    cheque_number: Optional[str] = None
    bank: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return _compact({
            'id': self.id,
            'method': self.method,
            'amount': safe_round(self.amount),
            'chequeNumber': self.cheque_number,
            'bank': self.bank,
        })

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Payment':
        return cls(
            id=data.get('id'),
            method=data.get('method', PaymentMethod.CASH.value),
            amount=float(data.get('amount') or 0.0),
            cheque_number=data.get('chequeNumber'),
            bank=data.get('bank'),
        )


def summarize_payments(total: float, payments: List[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Calcula el estado de pago de una factura.

    Args:
        total: Total de la factura
        payments: Lista de pagos ({amount, ...})

    Returns:
        Dict con amountPaid, balanceDue, paymentStatus, changeGiven
    """
    paid = safe_round(sum(float(p.get('amount') or 0) for p in payments))
    balance = safe_round(total - paid)

    if paid <= 0:
        status = PaymentStatus.UNPAID.value
    elif balance <= 0:
        status = PaymentStatus.PAID.value
    else:
        status = PaymentStatus.PARTIAL.value

    return {
        'amountPaid': paid,
        'balanceDue': max(0.0, balance),
        'paymentStatus': status,
        'changeGiven': max(0.0, -balance),
    }


@dataclass
class Invoice:
    """
    Factura emitida en el POS.

    Attributes:
        invoice_number: Número visible de la factura
        date: Fecha en milisegundos epoch
        subtotal: Suma de precios sin descuentos
        global_discount_percent: Descuento global (%)
        global_discount_amount: Monto del descuento global
        total: Total a pagar
    """
    invoice_number: str
    customer_id: str
    vehicle_id: str
    employee_id: str
    date: int
    items: List[InvoiceItem] = field(default_factory=list)
    subtotal: float = 0.0
    global_discount_percent: float = 0.0
    global_discount_amount: float = 0.0
    total: float = 0.0
    payments: List[Payment] = field(default_factory=list)
    amount_paid: float = 0.0
    balance_due: float = 0.0
    payment_status: str = PaymentStatus.UNPAID.value
    change_given: float = 0.0

    def apply_payment_summary(self) -> None:
        """Recalcula montos y estado de pago desde la lista de pagos."""
        summary = summarize_payments(self.total, [p.to_dict() for p in self.payments])
        self.amount_paid = summary['amountPaid']
        self.balance_due = summary['balanceDue']
        self.payment_status = summary['paymentStatus']
        self.change_given = summary['changeGiven']

    def to_dict(self) -> Dict[str, Any]:
        return {
            'invoiceNumber': self.invoice_number,
            'customerId': self.customer_id,
            'vehicleId': self.vehicle_id,
            'employeeId': self.employee_id,
            'date': self.date,
            'items': [i.to_dict() for i in self.items],
            'subtotal': self.subtotal,
            'globalDiscountPercent': self.global_discount_percent,
            'globalDiscountAmount': self.global_discount_amount,
            'total': self.total,
            'paymentStatus': self.payment_status,
            'payments': [p.to_dict() for p in self.payments],
            'amountPaid': self.amount_paid,
            'balanceDue': self.balance_due,
            'changeGiven': self.change_given,
        }


# ==============================================================================
# ENTIDADES DE CARRITO
# ==============================================================================

@dataclass
class CartItem:
    """
    Ítem en el carrito del POS (session-based).

    Attributes:
        cart_id: Identificador de la línea dentro del carrito
        type: product | service | custom
        item_id: ID del producto/servicio (o 'custom-<cart_id>')
        unit_price: Precio unitario (para productos/servicios viene del catálogo)
        discount_amount: Descuento por unidad
        stock: Stock del producto al agregarlo (None = sin límite)
        buy_price: Costo del producto (para ganancias)
    """
    cart_id: str
    type: str
    item_id: str
    name: str
    unit_price: float
    quantity: int = 1
    discount_amount: float = 0.0
    stock: Optional[int] = None
    buy_price: Optional[float] = None

    @property
    def effective_discount(self) -> float:
        """Descuento por unidad limitado a [0, precio unitario]."""
        return min(max(0.0, self.discount_amount), max(0.0, self.unit_price))

    @property
    def line_total(self) -> float:
        return safe_round(max(0.0, self.unit_price - self.effective_discount) * self.quantity)

    def to_dict(self) -> Dict[str, Any]:
        """Convierte a diccionario para session."""
        return {
            'cartId': self.cart_id,
            'type': self.type,
            'itemId': self.item_id,
            'name': self.name,
            'unitPrice': self.unit_price,
            'quantity': self.quantity,
            'discountAmount': self.discount_amount,
            'stock': self.stock,
            'buyPrice': self.buy_price,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CartItem':
        """Crea instancia desde diccionario de session."""
        return cls(
            cart_id=data.get('cartId', ''),
            type=data.get('type', ItemType.CUSTOM.value),
            item_id=data.get('itemId', ''),
            name=data.get('name', ''),
            unit_price=float(data.get('unitPrice') or 0.0),
            quantity=int(data.get('quantity') or 0),
            discount_amount=float(data.get('discountAmount') or 0.0),
            stock=data.get('stock'),
            buy_price=data.get('buyPrice'),
        )
