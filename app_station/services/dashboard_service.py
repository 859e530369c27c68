# ==============================================================================
# SERVICIO DEL DASHBOARD
# ==============================================================================
# Tarjetas de estadísticas, gráfico de ingresos de los últimos días, stock
# bajo y facturas recientes.
# ==============================================================================

from datetime import timedelta
from typing import Any, Dict, List

from app_station import config
from app_station.models import Product
from app_station.performance_logger import profile_function
from app_station.repositories import Database
from app_station.timeutils import (
    day_bounds,
    format_currency,
    local_today,
    short_day_label,
    to_millis,
)


class DashboardService:
    """Datos procesados para la pantalla principal."""

    def __init__(self, db: Database):
        self.db = db

    @profile_function(name="Dashboard")
    def get_dashboard(self) -> Dict[str, Any]:
        """
        Returns:
            Dict con stats, revenueData, lowStockItems, recentInvoices
        """
        invoices = []
        for inv in self.db.get_all(config.INVOICES):
            millis = to_millis(inv.get('date'))
            if millis is not None:
                invoices.append({**inv, 'date': millis})

        products = self.db.get_all(config.PRODUCTS)
        vehicles = self.db.get_all(config.VEHICLES)
        customers = {c['id']: c for c in self.db.get_all(config.CUSTOMERS)}

        today = local_today()
        today_start, today_end = day_bounds(today)

        total_revenue = sum(float(inv.get('amountPaid') or 0) for inv in invoices)
        todays_revenue = sum(
            float(inv.get('amountPaid') or 0)
            for inv in invoices
            if today_start <= inv['date'] <= today_end
        )

        low_stock = [p for p in products if Product.from_dict(p).is_low_stock]
        total_customers = len({v.get('customerId') for v in vehicles if v.get('customerId')})

        stats = [
            {'title': 'Total Revenue', 'value': format_currency(total_revenue), 'icon': 'DollarSign'},
            {'title': "Today's Revenue", 'value': format_currency(todays_revenue), 'icon': 'DollarSign'},
            {'title': 'Low Stock Items', 'value': str(len(low_stock)), 'icon': 'Archive'},
            {'title': 'Total Customers', 'value': str(total_customers), 'icon': 'Users'},
        ]

        return {
            'stats': stats,
            'revenueData': self._revenue_by_day(invoices, today),
            'lowStockItems': [{**p, 'threshold': p.get('stockThreshold')} for p in low_stock],
            'recentInvoices': self._recent_invoices(invoices, customers),
        }

    def _revenue_by_day(self, invoices: List[Dict[str, Any]], today) -> List[Dict[str, Any]]:
        """Total facturado por día local, del más antiguo al más reciente."""
        rows = []
        for offset in range(config.REVENUE_CHART_DAYS - 1, -1, -1):
            day = today - timedelta(days=offset)
            start_ms, end_ms = day_bounds(day)
            revenue = sum(
                float(inv.get('total') or 0)
                for inv in invoices
                if start_ms <= inv['date'] <= end_ms
            )
            rows.append({'date': short_day_label(day), 'revenue': revenue})
        return rows

    def _recent_invoices(
        self,
        invoices: List[Dict[str, Any]],
        customers: Dict[str, Dict[str, Any]]
    ) -> List[Dict[str, Any]]:
        newest = sorted(invoices, key=lambda inv: inv['date'], reverse=True)
        rows = []
        for inv in newest[:config.RECENT_INVOICES_LIMIT]:
            customer = customers.get(inv.get('customerId')) or {}
            rows.append({
                'id': inv['id'],
                'invoiceNumber': inv.get('invoiceNumber'),
                'customerName': customer.get('name') or 'Unknown Customer',
                'date': inv['date'],
                'total': inv.get('total'),
                'paymentStatus': inv.get('paymentStatus'),
            })
        return rows
