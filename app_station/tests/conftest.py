# -*- coding: utf-8 -*-
"""
Fixtures comunes: cada test usa una carpeta de datos y de logs temporal.
"""
from datetime import datetime
from zoneinfo import ZoneInfo

import pytest

from app_station import config
from app_station.app_container import AppContainer, get_container
from app_station.main import app as flask_app


@pytest.fixture(autouse=True)
def container(tmp_path, monkeypatch):
    """Contenedor apuntando a archivos JSON en tmp_path."""
    monkeypatch.setattr(config, 'LOGS_DIR', str(tmp_path / 'logs'))
    monkeypatch.setattr(config, 'DB_BACKEND', 'json')
    AppContainer.reset_instance()
    c = get_container(str(tmp_path / 'data'))
    yield c
    AppContainer.reset_instance()


@pytest.fixture
def db(container):
    return container.db


@pytest.fixture
def client(container):
    flask_app.config['TESTING'] = True
    with flask_app.test_client() as c:
        yield c


def local_millis(year, month, day, hour=12, minute=0):
    """Milisegundos epoch de una hora local del taller."""
    dt = datetime(year, month, day, hour, minute, tzinfo=ZoneInfo(config.TIME_ZONE))
    return int(dt.timestamp() * 1000)


@pytest.fixture
def local_ms():
    return local_millis


@pytest.fixture
def product(db):
    return db.create(config.PRODUCTS, {
        'name': 'Aceite 5W-30',
        'sku': 'OIL-530',
        'category': 'Lubricantes',
        'stock': 10,
        'stockThreshold': 3,
        'actualPrice': 1000.0,
        'sellingPrice': 1500.0,
    })


@pytest.fixture
def service(db):
    return db.create(config.SERVICES, {
        'name': 'Lavado completo',
        'price': 2000.0,
        'vehicleCategory': 'Car',
    })


@pytest.fixture
def customer_vehicle(db):
    customer = db.create(config.CUSTOMERS, {'name': 'Nimal Perera', 'phone': '0771234567'})
    vehicle = db.create(config.VEHICLES, {
        'numberPlate': 'CAB-1234',
        'customerId': customer['id'],
        'make': 'Toyota',
        'model': 'Axio',
    })
    return customer, vehicle


@pytest.fixture
def employee(db):
    return db.create(config.EMPLOYEES, {'name': 'Kamal', 'address': 'Kandy', 'mobile': '0719999999'})
