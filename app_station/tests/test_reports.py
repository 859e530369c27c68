# -*- coding: utf-8 -*-
"""
Tests de reportes (cierre del día, ganancias, stock, empleados) y dashboard.
"""
import pytest

from app_station import config
from app_station.timeutils import local_today, now_millis, short_day_label

DAY_MS = 24 * 60 * 60 * 1000


def _invoice(db, number, date, items, total, payments=(), **extra):
    amount_paid = sum(p['amount'] for p in payments)
    doc = {
        'invoiceNumber': number,
        'customerId': extra.pop('customerId', 'c1'),
        'vehicleId': extra.pop('vehicleId', 'v1'),
        'employeeId': extra.pop('employeeId', 'e1'),
        'date': date,
        'items': items,
        'total': total,
        'payments': list(payments),
        'amountPaid': amount_paid,
        'balanceDue': max(0, total - amount_paid),
    }
    doc.update(extra)
    return db.create(config.INVOICES, doc)


# ==============================================================================
# CIERRE DEL DÍA
# ==============================================================================

@pytest.fixture
def day_invoices(db, product, service, local_ms):
    _invoice(db, 'INV-0001', local_ms(2024, 7, 5, 0, 10), [
        {'itemId': product['id'], 'name': product['name'], 'quantity': 2, 'total': 3000},
        {'itemId': service['id'], 'name': service['name'], 'quantity': 1, 'total': 2000},
    ], 5000, [{'method': 'Cash', 'amount': 3000}, {'method': 'Check', 'amount': 1000}])
    _invoice(db, 'INV-0002', local_ms(2024, 7, 5, 23, 50), [
        {'itemId': product['id'], 'name': product['name'], 'quantity': 1, 'total': 1500},
    ], 1500, [{'method': 'Card', 'amount': 1500}])
    # fuera del día local
    _invoice(db, 'INV-0003', local_ms(2024, 7, 6, 0, 30), [
        {'itemId': product['id'], 'name': product['name'], 'quantity': 1, 'total': 1500},
    ], 1500, [{'method': 'Cash', 'amount': 1500}])
    _invoice(db, 'INV-0004', local_ms(2024, 7, 4, 23, 59), [], 700)
    # sin fecha interpretable: ningún reporte la cuenta
    _invoice(db, 'INV-0009', 'garbage', [
        {'itemId': product['id'], 'name': product['name'], 'quantity': 4, 'total': 6000},
    ], 6000, [{'method': 'Cash', 'amount': 6000}])


def test_day_end_report(client, day_invoices):
    resp = client.get('/api/reports/day-end?date=2024-07-05')
    assert resp.status_code == 200
    body = resp.get_json()

    assert body['date'] == '2024-07-05T00:00:00+05:30'
    assert body['summary'] == {
        'totalRevenue': 6500,
        'netProfit': 3500,
        'totalInvoices': 2,
        'totalCogs': 3000,
        'totalCashReceived': 5500,
        'totalOutstanding': 1000,
    }

    breakdowns = body['breakdowns']
    assert breakdowns['products'] == [{'name': 'Aceite 5W-30', 'quantity': 3, 'revenue': 4500}]
    assert breakdowns['services'] == [{'name': 'Lavado completo', 'quantity': 1, 'revenue': 2000}]
    assert breakdowns['payments'] == {'Cash': 3000, 'Card': 1500, 'Cheque': 1000}


def test_day_end_empty_day(client):
    body = client.get('/api/reports/day-end?date=2024-01-01').get_json()
    assert body['summary']['totalInvoices'] == 0
    assert body['breakdowns']['payments'] == {'Cash': 0, 'Card': 0, 'Cheque': 0}


def test_day_end_requires_valid_date(client):
    assert client.get('/api/reports/day-end').status_code == 400
    assert client.get('/api/reports/day-end?date=ayer').status_code == 400


# ==============================================================================
# GANANCIAS Y PÉRDIDAS
# ==============================================================================

@pytest.fixture
def sales(db, product, service, local_ms):
    _invoice(db, 'INV-0001', local_ms(2024, 7, 1), [
        {'itemId': product['id'], 'name': 'Aceite 5W-30', 'quantity': 2, 'total': 3000, 'buyPrice': 900},
        {'itemId': service['id'], 'name': 'Lavado completo', 'quantity': 1, 'total': 2000},
    ], 5000)
    _invoice(db, 'INV-0002', local_ms(2024, 7, 3), [
        {'itemId': product['id'], 'name': 'Aceite 5W-30', 'quantity': 1, 'total': 800},
    ], 800)
    _invoice(db, 'INV-0003', local_ms(2024, 7, 2), [
        {'itemId': product['id'], 'name': 'Aceite 5W-30', 'quantity': 5, 'total': 7500, 'buyPrice': 900},
    ], 7500, status='cancelled')
    _invoice(db, 'INV-0009', 'garbage', [
        {'itemId': product['id'], 'name': 'Aceite 5W-30', 'quantity': 1, 'total': 1500, 'buyPrice': 900},
    ], 1500)


def test_profit_loss(client, sales):
    resp = client.get('/api/reports/profit-loss?startDate=2024-07-01&endDate=2024-07-03')
    assert resp.status_code == 200
    body = resp.get_json()

    rows = {row['invoiceNumber']: row for row in body['items']}
    assert set(rows) == {'INV-0001', 'INV-0002'}

    assert rows['INV-0001']['costOfGoods'] == 1800
    assert rows['INV-0001']['profit'] == 1200
    assert rows['INV-0001']['marginPercent'] == 40
    assert rows['INV-0001']['isEstimateCost'] is False

    assert rows['INV-0002']['costOfGoods'] == 1000
    assert rows['INV-0002']['profit'] == -200
    assert rows['INV-0002']['marginPercent'] == -25
    assert rows['INV-0002']['isEstimateCost'] is True

    assert body['summary'] == {
        'totalRevenue': 3800,
        'totalCost': 2800,
        'totalProfit': 1000,
        'totalLoss': 200,
        'netMargin': 26.32,
    }


def test_profit_loss_range_and_product_filter(client, sales, product):
    body = client.get('/api/reports/profit-loss?startDate=2024-07-01&endDate=2024-07-01').get_json()
    assert [row['invoiceNumber'] for row in body['items']] == ['INV-0001']

    body = client.get('/api/reports/profit-loss?startDate=2024-07-01&endDate=2024-07-03&productId=other').get_json()
    assert body['items'] == []
    assert body['summary']['netMargin'] == 0

    body = client.get(
        f"/api/reports/profit-loss?startDate=2024-07-01&endDate=2024-07-03&productId={product['id']}"
    ).get_json()
    assert len(body['items']) == 2


def test_profit_loss_requires_dates(client):
    assert client.get('/api/reports/profit-loss?startDate=2024-07-01').status_code == 400
    assert client.get('/api/reports/profit-loss?startDate=x&endDate=y').status_code == 400


# ==============================================================================
# MOVIMIENTOS DE STOCK
# ==============================================================================

def test_stock_ledger(client, db, product, service):
    _invoice(db, 'INV-0001', 2000, [
        {'itemId': product['id'], 'name': 'Aceite 5W-30', 'quantity': 2, 'total': 3000},
        {'itemId': service['id'], 'name': 'Lavado completo', 'quantity': 1, 'total': 2000},
    ], 5000)
    _invoice(db, 'INV-0009', 'garbage', [
        {'itemId': product['id'], 'name': 'Aceite 5W-30', 'quantity': 7, 'total': 10500},
    ], 10500)
    for date, action, quantity in ((1000, 'add', 5), (3000, 'decrement', 2), (4000, 'delete', None)):
        db.create(config.STOCK_LOGS, {
            'productId': product['id'], 'productName': 'Aceite 5W-30', 'date': date,
            'action': action, 'quantity': quantity, 'reason': 'Motivo de prueba',
        })

    resp = client.get('/api/reports/stock?startDate=0&endDate=5000')
    assert resp.status_code == 200
    rows = resp.get_json()
    assert [(r['type'], r['quantityChange']) for r in rows] == [
        ('Deletion', 0),
        ('Manual Adjustment', -2),
        ('Sale', -2),
        ('Stock Addition', 5),
    ]
    assert rows[2]['reference'] == 'INV-0001'
    assert rows[2]['reason'] is None
    assert rows[3]['reference'] == 'Stock Added'

    rows = client.get('/api/reports/stock?startDate=1500&endDate=2500').get_json()
    assert [r['type'] for r in rows] == ['Sale']


def test_stock_ledger_requires_range(client):
    assert client.get('/api/reports/stock?startDate=0').status_code == 400
    assert client.get('/api/reports/stock?startDate=a&endDate=b').status_code == 400
    assert client.get('/api/reports/stock?startDate=0&endDate=inf').status_code == 400


# ==============================================================================
# TRABAJOS POR EMPLEADO
# ==============================================================================

def test_employee_jobs(client, db, employee, customer_vehicle, local_ms):
    customer, vehicle = customer_vehicle
    idle = db.create(config.EMPLOYEES, {'name': 'Saman', 'address': 'Matara', 'mobile': '071'})
    ids = dict(customerId=customer['id'], vehicleId=vehicle['id'], employeeId=employee['id'])

    first = _invoice(db, 'INV-0001', local_ms(2024, 7, 5, 9), [], 1000, **ids)
    second = _invoice(db, 'INV-0002', local_ms(2024, 7, 5, 16), [], 2000, **ids)
    _invoice(db, 'INV-0003', local_ms(2024, 7, 6, 9), [], 3000, **ids)
    _invoice(db, 'INV-0009', 'garbage', [], 4000, **ids)

    resp = client.get('/api/reports/employee?date=2024-07-05')
    assert resp.status_code == 200
    body = resp.get_json()
    report = body['report']
    assert [row['employeeName'] for row in report] == ['Kamal', 'Saman']
    assert report[0]['jobCount'] == 2
    assert report[1] == {'employeeId': idle['id'], 'employeeName': 'Saman', 'jobCount': 0, 'jobs': []}

    assert set(body['fullInvoices']) == {first['id'], second['id']}
    assert body['fullInvoices'][first['id']]['customerName'] == 'Nimal Perera'


def test_employee_jobs_requires_strict_date(client):
    assert client.get('/api/reports/employee').status_code == 400
    assert client.get('/api/reports/employee?date=2024-7-5').status_code == 400


# ==============================================================================
# DASHBOARD
# ==============================================================================

def test_dashboard(client, db, product, customer_vehicle):
    customer, vehicle = customer_vehicle
    db.create(config.VEHICLES, {'numberPlate': 'SIN-DUEÑO'})
    low = db.create(config.PRODUCTS, {'name': 'Refrigerante', 'stock': 1, 'stockThreshold': 4})

    now = now_millis()
    _invoice(db, 'INV-0001', now - 10 * DAY_MS, [], 500, [{'method': 'Cash', 'amount': 500}])
    _invoice(db, 'INV-0002', now, [], 1500, [{'method': 'Cash', 'amount': 1000}],
             customerId=customer['id'], paymentStatus='Partial')
    _invoice(db, 'INV-0009', 'garbage', [], 900, [{'method': 'Cash', 'amount': 900}])

    resp = client.get('/api/dashboard')
    assert resp.status_code == 200
    body = resp.get_json()

    stats = {s['title']: s['value'] for s in body['stats']}
    assert stats == {
        'Total Revenue': 'Rs. 1,500.00',
        "Today's Revenue": 'Rs. 1,000.00',
        'Low Stock Items': '1',
        'Total Customers': '1',
    }

    revenue = body['revenueData']
    assert len(revenue) == 7
    assert revenue[-1] == {'date': short_day_label(local_today()), 'revenue': 1500}
    assert sum(r['revenue'] for r in revenue) == 1500

    assert [p['id'] for p in body['lowStockItems']] == [low['id']]
    assert body['lowStockItems'][0]['threshold'] == 4

    recent = body['recentInvoices']
    assert [r['invoiceNumber'] for r in recent] == ['INV-0002', 'INV-0001']
    assert recent[0]['customerName'] == 'Nimal Perera'
    assert recent[1]['customerName'] == 'Unknown Customer'
