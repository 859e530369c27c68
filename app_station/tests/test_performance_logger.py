# -*- coding: utf-8 -*-
"""
Tests del profiler y del log de errores.
"""
import os

from app_station import config
from app_station.performance_logger import (
    get_function_stats,
    log_error,
    profile_function,
    reset_stats,
)


def test_profile_function_collects_stats():
    reset_stats()

    @profile_function(name="Suma de prueba")
    def add(a, b):
        return a + b

    assert add(2, 3) == 5
    assert add(1, 1) == 2

    stats = get_function_stats()['Suma de prueba']
    assert stats['calls'] == 2
    assert stats['max_time'] >= 0


def test_log_error_writes_errors_log():
    try:
        raise RuntimeError('disco lleno')
    except RuntimeError as exc:
        log_error('POST /api/invoices', exc)

    with open(os.path.join(config.LOGS_DIR, 'errors.log'), encoding='utf-8') as f:
        content = f.read()
    assert 'POST /api/invoices' in content
    assert 'RuntimeError: disco lleno' in content


def test_routes_are_logged_by_name(client, monkeypatch):
    monkeypatch.setattr(config, 'ENABLE_PROFILING', True)
    client.get('/api/customers')

    with open(os.path.join(config.LOGS_DIR, 'performance.log'), encoding='utf-8') as f:
        content = f.read()
    assert 'Acción: Listar clientes' in content
    assert 'Estado: 200' in content


def test_unexpected_error_returns_fallback(client, container, monkeypatch):
    def boom():
        raise RuntimeError('sin conexión')

    monkeypatch.setattr(container.customer_service, 'list_customers', boom)
    resp = client.get('/api/customers')
    assert resp.status_code == 500
    assert resp.get_json() == {'error': 'No se pudieron obtener los clientes'}
    assert os.path.exists(os.path.join(config.LOGS_DIR, 'errors.log'))
