# ==============================================================================
# CAPA DE SERVICIOS - Lógica de negocio
# ==============================================================================
# Los servicios reciben sus dependencias en el constructor (ver
# app_container.py) y lanzan errores de app_station.errors; las rutas solo
# traducen esos errores a respuestas HTTP.
# ==============================================================================

from .stock_log_service import StockLogService
from .customer_service import CustomerService
from .employee_service import EmployeeService
from .inventory_service import InventoryService
from .invoice_service import InvoiceService
from .cart_service import CartService, compute_cart_totals
from .report_service import ReportService
from .dashboard_service import DashboardService

__all__ = [
    'StockLogService',
    'CustomerService',
    'EmployeeService',
    'InventoryService',
    'InvoiceService',
    'CartService',
    'compute_cart_totals',
    'ReportService',
    'DashboardService',
]
