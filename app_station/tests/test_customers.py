# -*- coding: utf-8 -*-
"""
Tests de clientes, vehículos y empleados a través de la API.
"""


def test_create_customer_requires_name_and_phone(client):
    resp = client.post('/api/customers', json={'name': '  '})
    assert resp.status_code == 400
    errors = resp.get_json()['error']
    assert errors['name'] == ['El nombre completo es obligatorio']
    assert errors['phone'] == ['El teléfono es obligatorio']


def test_customer_crud(client, db):
    resp = client.post('/api/customers', json={'name': 'Ana Silva', 'phone': '0771112222'})
    assert resp.status_code == 201
    customer_id = resp.get_json()['id']

    resp = client.put('/api/customers', json={'id': customer_id, 'name': 'Ana S.', 'phone': '0771112222'})
    assert resp.status_code == 200
    assert resp.get_json()['name'] == 'Ana S.'

    resp = client.get('/api/customers')
    assert [c['name'] for c in resp.get_json()] == ['Ana S.']

    resp = client.delete(f'/api/customers?id={customer_id}')
    assert resp.get_json() == {'success': True, 'id': customer_id}
    assert db.get_all('customers') == []


def test_update_and_delete_without_id(client):
    resp = client.put('/api/customers', json={'name': 'Ana', 'phone': '077'})
    assert resp.status_code == 400

    resp = client.delete('/api/customers')
    assert resp.status_code == 400


def test_update_missing_customer_is_404(client):
    resp = client.put('/api/customers', json={'id': 'ghost', 'name': 'Ana', 'phone': '077'})
    assert resp.status_code == 404


def test_non_object_body_is_rejected(client):
    resp = client.post('/api/customers', json=['Ana'])
    assert resp.status_code == 400
    assert resp.get_json() == {'error': 'Payload inválido'}


def test_vehicle_plate_is_uppercased(client):
    resp = client.post('/api/vehicles', json={'numberPlate': ' cab-1234 ', 'mileage': ''})
    assert resp.status_code == 201
    body = resp.get_json()
    assert body['numberPlate'] == 'CAB-1234'
    assert 'mileage' not in body


def test_vehicle_rejects_bad_year_and_mileage(client):
    resp = client.post('/api/vehicles', json={'numberPlate': 'X-1', 'year': 1800, 'mileage': -5})
    assert resp.status_code == 400
    errors = resp.get_json()['error']
    assert 'year' in errors
    assert 'mileage' in errors


def test_vehicle_partial_update(client, customer_vehicle, db):
    _, vehicle = customer_vehicle
    resp = client.put('/api/vehicles', json={'id': vehicle['id'], 'mileage': 45000})
    assert resp.status_code == 200
    assert resp.get_json() == {'id': vehicle['id'], 'mileage': 45000}

    stored = db.get_one('vehicles', vehicle['id'])
    assert stored['mileage'] == 45000
    assert stored['numberPlate'] == 'CAB-1234'


def test_vehicle_update_ignores_unrelated_stored_fields(client, db):
    # vehículo antiguo: sin placa y con un año fuera de rango
    legacy = db.create('vehicles', {'make': 'Morris', 'year': 1850})

    resp = client.put('/api/vehicles', json={'id': legacy['id'], 'mileage': 120000})
    assert resp.status_code == 200
    assert db.get_one('vehicles', legacy['id'])['mileage'] == 120000

    resp = client.put('/api/vehicles', json={'id': legacy['id'], 'mileage': -1})
    assert resp.status_code == 400
    assert list(resp.get_json()['error']) == ['mileage']

    resp = client.put('/api/vehicles', json={'id': legacy['id'], 'numberPlate': ' '})
    assert resp.status_code == 400


def test_vehicle_update_null_clears_field(client, customer_vehicle, db):
    _, vehicle = customer_vehicle
    resp = client.put('/api/vehicles', json={'id': vehicle['id'], 'make': None})
    assert resp.status_code == 200
    assert resp.get_json() == {'id': vehicle['id'], 'make': None}

    stored = db.get_one('vehicles', vehicle['id'])
    assert stored['make'] is None
    assert stored['model'] == 'Axio'


def test_vehicle_search_attaches_customer(client, customer_vehicle):
    customer, _ = customer_vehicle
    resp = client.get('/api/vehicles/search?query=cab')
    assert resp.status_code == 200
    rows = resp.get_json()
    assert len(rows) == 1
    assert rows[0]['customer']['id'] == customer['id']


def test_vehicle_search_requires_query(client):
    assert client.get('/api/vehicles/search').status_code == 400
    assert client.get('/api/vehicles/search?query=%20').status_code == 400


def test_customers_overview_filter(client, customer_vehicle, db):
    db.create('customers', {'name': 'Bandara', 'phone': '0112223333'})

    rows = client.get('/api/customers/overview').get_json()
    assert [c['name'] for c in rows] == ['Bandara', 'Nimal Perera']
    assert rows[1]['vehicles'][0]['numberPlate'] == 'CAB-1234'

    by_plate = client.get('/api/customers/overview?q=cab-12').get_json()
    assert [c['name'] for c in by_plate] == ['Nimal Perera']

    by_phone = client.get('/api/customers/overview?q=0112').get_json()
    assert [c['name'] for c in by_phone] == ['Bandara']


def test_save_customer_vehicle_links_both(client):
    payload = {
        'customer': {'name': 'Ruwan', 'phone': '0765554444'},
        'vehicle': {'numberPlate': 'wp-9090', 'make': 'Honda', 'model': 'Fit', 'year': 2015},
    }
    resp = client.post('/api/customers-vehicles', json=payload)
    assert resp.status_code == 201
    body = resp.get_json()
    assert body['vehicle']['customerId'] == body['customer']['id']
    assert body['vehicle']['numberPlate'] == 'WP-9090'

    pairs = client.get('/api/customers-vehicles').get_json()
    assert len(pairs) == 1
    assert pairs[0]['customer']['name'] == 'Ruwan'

    payload['customerId'] = body['customer']['id']
    payload['vehicleId'] = body['vehicle']['id']
    payload['customer']['phone'] = '0700000000'
    resp = client.post('/api/customers-vehicles', json=payload)
    assert resp.get_json()['customer']['phone'] == '0700000000'
    assert len(client.get('/api/customers').get_json()) == 1


def test_save_customer_vehicle_requires_make(client):
    payload = {
        'customer': {'name': 'Ruwan', 'phone': '0765554444'},
        'vehicle': {'numberPlate': 'WP-9090', 'model': 'Fit', 'year': 2015},
    }
    resp = client.post('/api/customers-vehicles', json=payload)
    assert resp.status_code == 400


def test_employee_crud(client):
    resp = client.post('/api/employees', json={'name': 'Sunil', 'address': 'Galle', 'mobile': '0701234567'})
    assert resp.status_code == 201
    employee_id = resp.get_json()['id']

    resp = client.post('/api/employees', json={'name': 'Sunil'})
    assert resp.status_code == 400
    assert set(resp.get_json()['error']) == {'address', 'mobile'}

    resp = client.put('/api/employees', json={
        'id': employee_id, 'name': 'Sunil P.', 'address': 'Galle', 'mobile': '0701234567'
    })
    assert resp.get_json()['name'] == 'Sunil P.'

    client.delete(f'/api/employees?id={employee_id}')
    assert client.get('/api/employees').get_json() == []


def test_security_headers(client):
    resp = client.get('/api/customers')
    assert resp.headers['X-Frame-Options'] == 'DENY'
    assert resp.headers['X-Content-Type-Options'] == 'nosniff'
