# ==============================================================================
# SISTEMA DE PROFILING Y LOG DE ERRORES
# ==============================================================================
# Mide rendimiento de rutas y funciones sin afectar la experiencia del usuario.
# Guarda logs legibles en /logs/ para análisis humano.
#
# ACTIVAR/DESACTIVAR: config.ENABLE_PROFILING (STATION_ENABLE_PROFILING)
# ==============================================================================

import os
import time
import threading
import traceback
from datetime import datetime
from functools import wraps
from collections import defaultdict

from app_station import config

# ═══════════════════════════════════════════════════════════════════════════
# CONFIGURACIÓN
# ═══════════════════════════════════════════════════════════════════════════

# Umbrales de tiempo (en milisegundos)
THRESHOLD_WARNING = 300   # Advertencia si supera 300ms
THRESHOLD_CRITICAL = 700  # Crítico si supera 700ms

PERFORMANCE_LOG = 'performance.log'
SLOW_ROUTES_LOG = 'slow_routes.log'
SLOW_FUNCTIONS_LOG = 'slow_functions.log'
ERRORS_LOG = 'errors.log'

# Mapeo de rutas a nombres legibles (para logs más humanos)
ROUTE_NAMES = {
    # Clientes y vehículos
    'GET /api/customers': 'Listar clientes',
    'POST /api/customers': 'Crear cliente',
    'PUT /api/customers': 'Editar cliente',
    'DELETE /api/customers': 'Eliminar cliente',
    'GET /api/customers/overview': 'Ver clientes con vehículos',
    'GET /api/vehicles': 'Listar vehículos',
    'POST /api/vehicles': 'Registrar vehículo',
    'PUT /api/vehicles': 'Editar vehículo',
    'DELETE /api/vehicles': 'Eliminar vehículo',
    'GET /api/vehicles/search': 'Buscar vehículo por placa',
    'GET /api/customers-vehicles': 'Listar clientes y vehículos',
    'POST /api/customers-vehicles': 'Registrar cliente con vehículo',

    # Empleados
    'GET /api/employees': 'Listar empleados',
    'POST /api/employees': 'Crear empleado',

    # Inventario
    'GET /api/products': 'Listar productos',
    'POST /api/products': 'Crear producto',
    'PUT /api/products': 'Editar producto',
    'DELETE /api/products': 'Eliminar producto',
    'GET /api/products/low-stock': 'Ver stock bajo',
    'POST /api/products/add-stock': 'Agregar stock',
    'POST /api/products/adjust-stock': 'Ajustar stock',
    'GET /api/services': 'Listar servicios',
    'POST /api/services': 'Crear servicio',

    # POS
    'GET /api/pos/cart': 'Ver carrito',
    'POST /api/pos/cart/add': 'Agregar al carrito',
    'POST /api/pos/cart/update': 'Modificar línea del carrito',
    'POST /api/pos/cart/remove': 'Quitar del carrito',
    'POST /api/pos/cart/clear': 'Vaciar carrito',
    'POST /api/pos/cart/discount': 'Descuento global',
    'POST /api/pos/checkout': 'Cobrar venta',

    # Facturas
    'GET /api/invoices': 'Listar facturas',
    'POST /api/invoices': 'Crear factura',
    'PUT /api/invoices': 'Registrar pago de factura',
    'GET /api/invoices/<invoice_id>': 'Ver factura',

    # Reportes
    'GET /api/dashboard': 'Ver panel principal',
    'GET /api/reports/day-end': 'Reporte de cierre del día',
    'GET /api/reports/profit-loss': 'Reporte de ganancias y pérdidas',
    'GET /api/reports/stock': 'Reporte de movimientos de stock',
    'GET /api/reports/employee': 'Reporte de trabajos por empleado',
}


# ═══════════════════════════════════════════════════════════════════════════
# ESTADÍSTICAS DE FUNCIONES (en memoria)
# ═══════════════════════════════════════════════════════════════════════════

# Estructura: {nombre_funcion: {calls: int, total_time: float, max_time: float}}
_function_stats = defaultdict(lambda: {'calls': 0, 'total_time': 0.0, 'max_time': 0.0})
_stats_lock = threading.Lock()
_write_lock = threading.Lock()


# ═══════════════════════════════════════════════════════════════════════════
# FUNCIONES DE LOGGING
# ═══════════════════════════════════════════════════════════════════════════

def _get_timestamp():
    """Obtiene timestamp legible"""
    return datetime.now().strftime('%Y-%m-%d %H:%M:%S')


def _log_path(filename):
    return os.path.join(config.LOGS_DIR, filename)


def _write_log(filename, content):
    """Escribe contenido a un archivo de log (thread-safe)"""
    try:
        with _write_lock:
            os.makedirs(config.LOGS_DIR, exist_ok=True)
            with open(_log_path(filename), 'a', encoding='utf-8') as f:
                f.write(content)
    except OSError as e:
        print(f"[ADVERTENCIA] No se pudo escribir {filename}: {e}")


def _get_route_name(method, path, rule=None):
    """
    Obtiene nombre legible para una ruta.
    Intenta hacer match con ROUTE_NAMES, si no, devuelve la ruta raw.
    """
    key = f"{method} {path}"
    if key in ROUTE_NAMES:
        return ROUTE_NAMES[key]

    if rule:
        rule_key = f"{method} {rule}"
        if rule_key in ROUTE_NAMES:
            return ROUTE_NAMES[rule_key]

    return f"{method} {path}"


# ═══════════════════════════════════════════════════════════════════════════
# 1️⃣ PROFILING DE RUTAS
# ═══════════════════════════════════════════════════════════════════════════

def log_route_performance(method, path, rule, time_ms, status=None):
    """
    Registra el rendimiento de una ruta en performance.log

    Args:
        method: GET, POST, etc.
        path: Ruta solicitada (/api/invoices)
        rule: Regla de Flask (/api/invoices/<invoice_id>)
        time_ms: Tiempo en milisegundos
        status: Código HTTP de la respuesta
    """
    if not config.ENABLE_PROFILING:
        return

    action_name = _get_route_name(method, path, rule)

    log_entry = f"""
════════════════════════════════════════
[PERFORMANCE] {_get_timestamp()}
────────────────────────────────────────
Acción: {action_name}
Ruta: {method} {path}
Estado: {status}
Tiempo: {time_ms:.0f} ms
"""

    _write_log(PERFORMANCE_LOG, log_entry)


def log_slow_route(method, path, rule, time_ms, level='WARNING'):
    """
    Registra una ruta lenta en slow_routes.log

    Args:
        level: 'WARNING' (>300ms) o 'CRITICAL' (>700ms)
    """
    if not config.ENABLE_PROFILING:
        return

    action_name = _get_route_name(method, path, rule)
    severity = 'LENTA' if level == 'WARNING' else 'MUY LENTA'
    threshold = THRESHOLD_WARNING if level == 'WARNING' else THRESHOLD_CRITICAL

    log_entry = f"""
[{level}] {_get_timestamp()}
────────────────────────────────────────
Ruta {severity}: {action_name}
Detalle: {method} {path}
Tiempo: {time_ms:.0f} ms (umbral: {threshold} ms)
────────────────────────────────────────
"""

    _write_log(SLOW_ROUTES_LOG, log_entry)


# ═══════════════════════════════════════════════════════════════════════════
# 2️⃣ LOG DE ERRORES
# ═══════════════════════════════════════════════════════════════════════════

def log_error(context, exc):
    """
    Registra un error inesperado en errors.log y en consola.

    Args:
        context: Dónde ocurrió (ej: "POST /api/invoices")
        exc: Excepción capturada
    """
    print(f"[ERROR] {context}: {type(exc).__name__}: {exc}")
    detail = ''.join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    log_entry = f"""
[ERROR] {_get_timestamp()}
────────────────────────────────────────
Contexto: {context}
Error: {type(exc).__name__}: {exc}
{detail}────────────────────────────────────────
"""
    _write_log(ERRORS_LOG, log_entry)


# ═══════════════════════════════════════════════════════════════════════════
# 3️⃣ HOOKS PARA FLASK (before/after request)
# ═══════════════════════════════════════════════════════════════════════════

def init_profiling(app):
    """
    Inicializa el sistema de profiling en una app Flask.
    Registra hooks before_request y after_request.

    Uso:
        from app_station.performance_logger import init_profiling
        init_profiling(app)
    """

    @app.before_request
    def _start_timer():
        from flask import g
        g.start_time = time.perf_counter()

    @app.after_request
    def _log_request(response):
        from flask import g, request

        if not config.ENABLE_PROFILING or not hasattr(g, 'start_time'):
            return response

        elapsed = (time.perf_counter() - g.start_time) * 1000  # ms

        method = request.method
        path = request.path
        rule = str(request.url_rule) if request.url_rule else path

        if path.startswith('/static'):
            return response

        log_route_performance(method, path, rule, elapsed, response.status_code)

        if elapsed >= THRESHOLD_CRITICAL:
            log_slow_route(method, path, rule, elapsed, 'CRITICAL')
        elif elapsed >= THRESHOLD_WARNING:
            log_slow_route(method, path, rule, elapsed, 'WARNING')

        return response


# ═══════════════════════════════════════════════════════════════════════════
# 4️⃣ DECORADOR PARA FUNCIONES CLAVE
# ═══════════════════════════════════════════════════════════════════════════

def profile_function(func=None, name=None):
    """
    Decorador para medir rendimiento de funciones críticas.

    Uso:
        @profile_function
        def mi_funcion():
            ...

        @profile_function(name="Crear factura")
        def create_invoice():
            ...
    """
    def decorator(fn):
        func_name = name or fn.__name__

        @wraps(fn)
        def wrapper(*args, **kwargs):
            if not config.ENABLE_PROFILING:
                return fn(*args, **kwargs)
            start = time.perf_counter()
            try:
                return fn(*args, **kwargs)
            finally:
                elapsed_ms = (time.perf_counter() - start) * 1000

                with _stats_lock:
                    stats = _function_stats[func_name]
                    stats['calls'] += 1
                    stats['total_time'] += elapsed_ms
                    if elapsed_ms > stats['max_time']:
                        stats['max_time'] = elapsed_ms

                if elapsed_ms >= THRESHOLD_WARNING:
                    _log_slow_function_call(func_name, elapsed_ms)

        return wrapper

    # Permitir uso sin paréntesis: @profile_function
    if func is not None:
        return decorator(func)
    return decorator


def _log_slow_function_call(func_name, time_ms):
    """Registra una llamada lenta a una función"""
    severity = 'CRÍTICO' if time_ms >= THRESHOLD_CRITICAL else 'LENTO'

    log_entry = f"""
[{severity}] {_get_timestamp()}
Función: {func_name}
Tiempo: {time_ms:.0f} ms
────────────────────────────────────────
"""

    _write_log(SLOW_FUNCTIONS_LOG, log_entry)


# ═══════════════════════════════════════════════════════════════════════════
# 5️⃣ REPORTE DE ESTADÍSTICAS
# ═══════════════════════════════════════════════════════════════════════════

def get_function_stats():
    """
    Obtiene estadísticas de todas las funciones perfiladas.

    Returns:
        dict: {nombre: {calls, avg_time, max_time}}
    """
    with _stats_lock:
        result = {}
        for func_name, stats in _function_stats.items():
            calls = stats['calls']
            avg = stats['total_time'] / calls if calls > 0 else 0
            result[func_name] = {
                'calls': calls,
                'avg_time': round(avg, 2),
                'max_time': round(stats['max_time'], 2)
            }
        return result


def reset_stats():
    """Reinicia todas las estadísticas (útil para testing)"""
    with _stats_lock:
        _function_stats.clear()


__all__ = [
    'init_profiling',
    'profile_function',
    'log_error',
    'get_function_stats',
    'reset_stats',
]
