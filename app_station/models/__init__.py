# ==============================================================================
# CAPA DE MODELOS - Estructuras de datos del sistema
# ==============================================================================
# Entidades del dominio como dataclasses. El almacén guarda diccionarios;
# estas clases documentan la forma de cada documento y concentran los
# cálculos que dependen solo de la entidad (stock bajo, estado de pago).
# ==============================================================================

from .entities import (
    # Enumeraciones
    PaymentMethod,
    PaymentStatus,
    StockAction,
    ItemType,
    FuelType,
    Transmission,
    EXCLUDED_INVOICE_STATUSES,

    # Clientes
    Customer,
    Vehicle,
    Employee,

    # Inventario
    Product,
    Service,
    StockAdjustmentLog,

    # Facturas
    Invoice,
    InvoiceItem,
    Payment,
    summarize_payments,

    # Carrito
    CartItem,
)

__all__ = [
    'PaymentMethod',
    'PaymentStatus',
    'StockAction',
    'ItemType',
    'FuelType',
    'Transmission',
    'EXCLUDED_INVOICE_STATUSES',
    'Customer',
    'Vehicle',
    'Employee',
    'Product',
    'Service',
    'StockAdjustmentLog',
    'Invoice',
    'InvoiceItem',
    'Payment',
    'summarize_payments',
    'CartItem',
]
