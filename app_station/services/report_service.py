# ==============================================================================
# SERVICIO DE REPORTES
# ==============================================================================
# Cierre del día, ganancias y pérdidas, movimientos de stock y trabajos por
# empleado.
#
# REGLAS:
# - Los días se cortan en la zona horaria del taller (config.TIME_ZONE)
# - Las facturas sin fecha interpretable se ignoran en todos los reportes
# - Facturas 'cancelled' / 'refunded' no cuentan en ganancias y pérdidas
# - Montos redondeados a 2 decimales (mitad hacia arriba)
# ==============================================================================

from collections import defaultdict
from operator import itemgetter
from typing import Any, Dict, List, Optional

from app_station import config
from app_station.errors import ValidationFailed
from app_station.models import EXCLUDED_INVOICE_STATUSES, PaymentMethod, StockAction
from app_station.performance_logger import profile_function
from app_station.repositories import Database
from app_station.services.stock_log_service import StockLogService
from app_station.timeutils import (
    DATE_RE,
    day_bounds,
    local_day_string,
    parse_day_lenient,
    range_bounds,
    safe_round,
    to_local,
    to_millis,
)


def _num(value: Any) -> float:
    try:
        return float(value or 0)
    except (TypeError, ValueError):
        return 0.0


def _payment_key(method: Any) -> str:
    try:
        return PaymentMethod.normalize(method)
    except ValueError:
        return str(method)


# Tipo y referencia de cada acción del log en el reporte de stock
_LOG_ROWS = {
    StockAction.ADD.value: ('Stock Addition', 'Stock Added'),
    StockAction.DECREMENT.value: ('Manual Adjustment', 'Manual Action'),
    StockAction.DELETE.value: ('Deletion', 'Manual Action'),
}


class ReportService:
    """
    Servicio para reportes de negocio.

    Todas las consultas leen colecciones completas y filtran en memoria,
    igual para el backend JSON y MongoDB.
    """

    def __init__(self, db: Database, stock_log_service: StockLogService):
        self.db = db
        self.stock_log_service = stock_log_service

    def _products_by_id(self) -> Dict[str, Dict[str, Any]]:
        return {p['id']: p for p in self.db.get_all(config.PRODUCTS)}

    # =========================================================================
    # CIERRE DEL DÍA
    # =========================================================================

    @profile_function(name="Reporte cierre del día")
    def day_end(self, date_param: Optional[str]) -> Dict[str, Any]:
        """
        Resumen de ventas de un día.

        Args:
            date_param: Día 'YYYY-MM-DD' (se acepta también un ISO completo)

        Returns:
            Dict con date, summary y breakdowns (products, services, payments)
        """
        if not date_param:
            raise ValidationFailed('El parámetro date es obligatorio')
        day = parse_day_lenient(date_param)
        if day is None:
            raise ValidationFailed('Formato de fecha inválido. Use YYYY-MM-DD.')

        start_ms, end_ms = day_bounds(day)
        invoices = self.db.get_in_date_range(config.INVOICES, start_ms, end_ms)
        products = self._products_by_id()

        total_revenue = sum(_num(inv.get('total')) for inv in invoices)
        total_cash = sum(_num(inv.get('amountPaid')) for inv in invoices)
        total_outstanding = sum(_num(inv.get('balanceDue')) for inv in invoices)

        total_cogs = 0.0
        products_sold: Dict[str, Dict[str, Any]] = {}
        services_rendered: Dict[str, Dict[str, Any]] = {}

        for invoice in invoices:
            for item in invoice.get('items') or []:
                item_id = item.get('itemId')
                quantity = item.get('quantity') or 0
                product = products.get(item_id)

                if product is not None:
                    total_cogs += _num(product.get('actualPrice')) * quantity
                    bucket = products_sold
                else:
                    bucket = services_rendered

                row = bucket.setdefault(item_id, {'name': item.get('name'), 'quantity': 0, 'revenue': 0.0})
                row['quantity'] += quantity
                row['revenue'] += _num(item.get('total'))

        payments = {m.value: 0.0 for m in PaymentMethod}
        for invoice in invoices:
            for payment in invoice.get('payments') or []:
                key = _payment_key(payment.get('method'))
                payments[key] = safe_round(payments.get(key, 0.0) + _num(payment.get('amount')))

        return {
            'date': to_local(start_ms).isoformat(),
            'summary': {
                'totalRevenue': safe_round(total_revenue),
                'netProfit': safe_round(total_revenue - total_cogs),
                'totalInvoices': len(invoices),
                'totalCogs': safe_round(total_cogs),
                'totalCashReceived': safe_round(total_cash),
                'totalOutstanding': safe_round(total_outstanding),
            },
            'breakdowns': {
                'products': sorted(products_sold.values(), key=itemgetter('revenue'), reverse=True),
                'services': sorted(services_rendered.values(), key=itemgetter('revenue'), reverse=True),
                'payments': payments,
            },
        }

    # =========================================================================
    # GANANCIAS Y PÉRDIDAS
    # =========================================================================

    @profile_function(name="Reporte ganancias y pérdidas")
    def profit_loss(
        self,
        start_date: Optional[str],
        end_date: Optional[str],
        product_id: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Ganancia por línea de producto vendida en un rango de días.

        El costo por unidad es el buyPrice guardado en la línea; si no
        existe se usa el costo actual del producto (isEstimateCost=True).

        Returns:
            {'items': [...], 'summary': {...}}
        """
        if not start_date or not end_date:
            raise ValidationFailed('startDate y endDate son obligatorios')
        start_day = parse_day_lenient(start_date)
        end_day = parse_day_lenient(end_date)
        if start_day is None or end_day is None:
            raise ValidationFailed('Formato de fecha inválido. Use YYYY-MM-DD.')

        start_ms, end_ms = range_bounds(start_day, end_day)
        invoices = self.db.get_in_date_range(config.INVOICES, start_ms, end_ms)
        products = self._products_by_id()

        rows: List[Dict[str, Any]] = []
        for invoice in invoices:
            if invoice.get('status') in EXCLUDED_INVOICE_STATUSES:
                continue
            for item in invoice.get('items') or []:
                item_id = item.get('itemId')
                if product_id and item_id != product_id:
                    continue
                product = products.get(item_id)
                if product is None:
                    continue

                is_estimate = item.get('buyPrice') is None
                cost_per_unit = _num(product.get('actualPrice') if is_estimate else item.get('buyPrice'))
                quantity = item.get('quantity') or 0

                cost = safe_round(quantity * cost_per_unit)
                revenue = safe_round(_num(item.get('total')))
                profit = safe_round(revenue - cost)
                margin = safe_round(profit / revenue * 100) if revenue != 0 else 0

                rows.append({
                    'id': f"{invoice['id']}-{item_id}",
                    'invoiceNumber': invoice.get('invoiceNumber'),
                    'date': invoice['date'],
                    'productName': item.get('name') or product.get('name') or 'Unknown Product',
                    'quantity': quantity,
                    'costOfGoods': cost,
                    'revenue': revenue,
                    'profit': profit,
                    'marginPercent': margin,
                    'isEstimateCost': is_estimate,
                })

        summary = {'totalRevenue': 0.0, 'totalCost': 0.0, 'totalProfit': 0.0, 'totalLoss': 0.0}
        for row in rows:
            summary['totalRevenue'] = safe_round(summary['totalRevenue'] + row['revenue'])
            summary['totalCost'] = safe_round(summary['totalCost'] + row['costOfGoods'])
            summary['totalProfit'] = safe_round(summary['totalProfit'] + row['profit'])
            if row['profit'] < 0:
                summary['totalLoss'] = safe_round(summary['totalLoss'] + abs(row['profit']))

        summary['netMargin'] = (
            safe_round(summary['totalProfit'] / summary['totalRevenue'] * 100)
            if summary['totalRevenue'] > 0 else 0
        )
        return {'items': rows, 'summary': summary}

    # =========================================================================
    # MOVIMIENTOS DE STOCK
    # =========================================================================

    @profile_function(name="Reporte de stock")
    def stock_ledger(self, start_param: Optional[str], end_param: Optional[str]) -> List[Dict[str, Any]]:
        """
        Movimientos de stock (ventas + ajustes manuales) en un rango.

        Args:
            start_param: Inicio en milisegundos epoch
            end_param: Fin en milisegundos epoch (inclusive)

        Returns:
            Lista de movimientos del más reciente al más antiguo
        """
        if not start_param or not end_param:
            raise ValidationFailed('startDate y endDate son obligatorios')
        try:
            start_ms = int(float(start_param))
            end_ms = int(float(end_param))
        except (TypeError, ValueError, OverflowError):
            raise ValidationFailed('startDate y endDate deben ser milisegundos epoch')

        product_ids = set(self._products_by_id())
        transactions: List[Dict[str, Any]] = []

        for invoice in self.db.get_in_date_range(config.INVOICES, start_ms, end_ms):
            for item in invoice.get('items') or []:
                if item.get('itemId') not in product_ids:
                    continue
                transactions.append({
                    'date': invoice['date'],
                    'productName': item.get('name'),
                    'type': 'Sale',
                    'quantityChange': -(item.get('quantity') or 0),
                    'reason': None,
                    'reference': invoice.get('invoiceNumber'),
                })

        for log in self.stock_log_service.logs_between(start_ms, end_ms):
            action = log.get('action')
            if action not in _LOG_ROWS:
                continue
            row_type, reference = _LOG_ROWS[action]
            if action == StockAction.ADD.value:
                change = log.get('quantity') or 0
            elif action == StockAction.DECREMENT.value:
                change = -(log.get('quantity') or 0)
            else:
                change = 0
            transactions.append({
                'date': log['date'],
                'productName': log.get('productName'),
                'type': row_type,
                'quantityChange': change,
                'reason': log.get('reason'),
                'reference': reference,
            })

        transactions.sort(key=lambda t: t['date'], reverse=True)
        return transactions

    # =========================================================================
    # TRABAJOS POR EMPLEADO
    # =========================================================================

    @profile_function(name="Reporte por empleado")
    def employee_jobs(self, date_param: Optional[str]) -> Dict[str, Any]:
        """
        Facturas atendidas por cada empleado en un día.

        Args:
            date_param: Día en formato estricto 'YYYY-MM-DD'

        Returns:
            {'report': [...], 'fullInvoices': {id: factura enriquecida}}
        """
        if not date_param or not DATE_RE.match(date_param):
            raise ValidationFailed('El parámetro date en formato YYYY-MM-DD es obligatorio')

        daily = []
        for invoice in self.db.get_all(config.INVOICES):
            millis = to_millis(invoice.get('date'))
            if not millis:
                continue
            if local_day_string(millis) == date_param:
                daily.append({**invoice, 'date': millis})

        jobs_by_employee: Dict[str, List[Dict[str, Any]]] = defaultdict(list)
        for invoice in daily:
            jobs_by_employee[invoice.get('employeeId')].append({
                'invoiceId': invoice['id'],
                'invoiceNumber': invoice.get('invoiceNumber'),
            })

        report = []
        for employee in self.db.get_all(config.EMPLOYEES):
            jobs = jobs_by_employee.get(employee['id'], [])
            report.append({
                'employeeId': employee['id'],
                'employeeName': employee.get('name'),
                'jobCount': len(jobs),
                'jobs': jobs,
            })
        report.sort(key=lambda row: row['jobCount'], reverse=True)

        enriched = self.db.enrich_invoices(daily)
        return {
            'report': report,
            'fullInvoices': {inv['id']: inv for inv in enriched},
        }
