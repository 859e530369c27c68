# -*- coding: utf-8 -*-
"""
Tests del carrito del POS: totales, stock y checkout.
"""
from app_station.models import CartItem
from app_station.services import compute_cart_totals


def _line(price, qty, discount=0.0):
    return CartItem(cart_id='x', type='custom', item_id='custom-x', name='Línea',
                    unit_price=price, quantity=qty, discount_amount=discount)


def test_compute_cart_totals():
    totals = compute_cart_totals([_line(1000, 2, 100), _line(500, 1)], 10)
    assert totals == {
        'subtotal': 2500,
        'totalItemDiscount': 200,
        'globalDiscountPercent': 10.0,
        'globalDiscountAmount': 230,
        'totalDiscount': 430,
        'total': 2070,
        'itemCount': 3,
    }


def test_global_discount_is_clamped():
    items = [_line(1000, 1)]
    assert compute_cart_totals(items, 150)['total'] == 0
    assert compute_cart_totals(items, -20)['total'] == 1000
    assert compute_cart_totals([], 10)['total'] == 0


def test_item_discount_never_exceeds_price():
    item = _line(300, 2, 500)
    assert item.line_total == 0
    assert compute_cart_totals([item])['totalItemDiscount'] == 600


def test_add_product_and_merge_lines(client, product):
    client.post('/api/pos/cart/add', json={'type': 'product', 'itemId': product['id'], 'quantity': 2})
    resp = client.post('/api/pos/cart/add', json={'type': 'product', 'itemId': product['id'], 'quantity': 3})
    assert resp.status_code == 200
    cart = resp.get_json()
    assert len(cart['items']) == 1
    assert cart['items'][0]['quantity'] == 5
    assert cart['items'][0]['unitPrice'] == 1500
    assert cart['totals']['total'] == 7500


def test_add_product_over_stock(client, product):
    resp = client.post('/api/pos/cart/add', json={'type': 'product', 'itemId': product['id'], 'quantity': 11})
    assert resp.status_code == 400
    assert client.get('/api/pos/cart').get_json()['items'] == []


def test_add_unknown_product(client):
    resp = client.post('/api/pos/cart/add', json={'type': 'product', 'itemId': 'ghost'})
    assert resp.status_code == 404


def test_custom_line_requires_name_and_price(client):
    resp = client.post('/api/pos/cart/add', json={'type': 'custom', 'name': 'Soldadura'})
    assert resp.status_code == 400

    resp = client.post('/api/pos/cart/add', json={'type': 'custom', 'name': 'Soldadura', 'unitPrice': 2500})
    assert resp.status_code == 200
    line = resp.get_json()['items'][0]
    assert line['itemId'].startswith('custom-')


def test_update_and_remove_line(client, service):
    cart = client.post('/api/pos/cart/add', json={'type': 'service', 'itemId': service['id']}).get_json()
    cart_id = cart['items'][0]['cartId']

    resp = client.post('/api/pos/cart/update', json={'cartId': cart_id, 'quantity': 2, 'discountAmount': 500})
    assert resp.get_json()['totals']['total'] == 3000

    resp = client.post('/api/pos/cart/update', json={'cartId': cart_id, 'unitPrice': 10})
    assert resp.status_code == 400

    resp = client.post('/api/pos/cart/remove', json={'cartId': cart_id})
    assert resp.get_json()['items'] == []

    resp = client.post('/api/pos/cart/remove', json={'cartId': cart_id})
    assert resp.status_code == 404


def test_update_rechecks_current_stock(client, product):
    cart = client.post('/api/pos/cart/add', json={'type': 'product', 'itemId': product['id']}).get_json()
    cart_id = cart['items'][0]['cartId']

    client.post('/api/products/adjust-stock', json={
        'productId': product['id'], 'action': 'decrement',
        'quantity': 8, 'reason': 'Unidades dañadas en bodega',
    })

    resp = client.post('/api/pos/cart/update', json={'cartId': cart_id, 'quantity': 5})
    assert resp.status_code == 400
    assert 'Disponible: 2' in resp.get_json()['error']

    resp = client.post('/api/pos/cart/update', json={'cartId': cart_id, 'quantity': 2})
    assert resp.get_json()['items'][0]['quantity'] == 2


def test_update_line_of_deleted_product(client, product):
    cart = client.post('/api/pos/cart/add', json={'type': 'product', 'itemId': product['id']}).get_json()
    client.delete(f"/api/products?id={product['id']}")

    resp = client.post('/api/pos/cart/update', json={'cartId': cart['items'][0]['cartId'], 'quantity': 2})
    assert resp.status_code == 404


def test_merge_applies_new_line_discount(client, product):
    client.post('/api/pos/cart/add', json={'type': 'product', 'itemId': product['id'], 'discountAmount': 100})
    cart = client.post('/api/pos/cart/add', json={'type': 'product', 'itemId': product['id']}).get_json()
    assert cart['items'][0]['discountAmount'] == 100

    cart = client.post('/api/pos/cart/add', json={
        'type': 'product', 'itemId': product['id'], 'discountAmount': 200,
    }).get_json()
    line = cart['items'][0]
    assert line['quantity'] == 3
    assert line['discountAmount'] == 200
    assert cart['totals']['total'] == 3900


def test_remove_requires_cart_id(client):
    resp = client.post('/api/pos/cart/remove', json={})
    assert resp.status_code == 400
    assert 'cartId' in resp.get_json()['error']


def test_discount_is_clamped(client, service):
    client.post('/api/pos/cart/add', json={'type': 'service', 'itemId': service['id']})
    resp = client.post('/api/pos/cart/discount', json={'percent': 150})
    totals = resp.get_json()['totals']
    assert totals['globalDiscountPercent'] == 100
    assert totals['total'] == 0


def test_clear_cart(client, service):
    client.post('/api/pos/cart/add', json={'type': 'service', 'itemId': service['id']})
    client.post('/api/pos/cart/discount', json={'percent': 5})
    cart = client.post('/api/pos/cart/clear').get_json()
    assert cart['items'] == []
    assert cart['totals']['globalDiscountPercent'] == 0


def test_checkout_creates_invoice(client, db, product, service, customer_vehicle, employee):
    customer, vehicle = customer_vehicle
    client.post('/api/pos/cart/add', json={'type': 'product', 'itemId': product['id'], 'quantity': 2})
    client.post('/api/pos/cart/add', json={'type': 'service', 'itemId': service['id']})

    resp = client.post('/api/pos/checkout', json={
        'customerId': customer['id'],
        'vehicleId': vehicle['id'],
        'employeeId': employee['id'],
        'payments': [{'method': 'Cash', 'amount': 5000}],
    })
    assert resp.status_code == 201
    invoice = resp.get_json()
    assert invoice['invoiceNumber'] == 'INV-0001'
    assert invoice['total'] == 5000
    assert invoice['paymentStatus'] == 'Paid'

    product_line = next(i for i in invoice['items'] if i['type'] == 'product')
    assert product_line['buyPrice'] == 1000

    assert db.get_one('products', product['id'])['stock'] == 8
    assert client.get('/api/pos/cart').get_json()['items'] == []


def test_checkout_empty_cart(client, customer_vehicle, employee):
    customer, vehicle = customer_vehicle
    resp = client.post('/api/pos/checkout', json={
        'customerId': customer['id'],
        'vehicleId': vehicle['id'],
        'employeeId': employee['id'],
    })
    assert resp.status_code == 400
    assert resp.get_json() == {'error': 'El carrito está vacío'}
