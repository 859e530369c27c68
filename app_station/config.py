# ==============================================================================
# CONFIGURACIÓN DE LA APLICACIÓN
# ==============================================================================
# Todas las opciones se leen de variables de entorno con valores por defecto
# pensados para desarrollo local.
#
# Variables principales:
#   STATION_SECRET_KEY     → clave de sesión de Flask (obligatoria en producción)
#   STATION_DATA_DIR       → carpeta de los archivos JSON (backend "json")
#   STATION_DB_BACKEND     → "json" (archivos locales) o "mongo" (MongoDB)
#   MONGODB_URI            → cadena de conexión si el backend es "mongo"
#   STATION_TIME_ZONE      → zona horaria del taller (reportes por día)
# ==============================================================================

import os


def _env_bool(name: str, default: bool) -> bool:
    """Interpreta una variable de entorno como booleano."""
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on', 'si', 'sí')


def _env_int(name: str, default: int) -> int:
    """Interpreta una variable de entorno como entero."""
    try:
        return int(os.environ.get(name, default))
    except (TypeError, ValueError):
        return default


BASE = os.path.dirname(os.path.abspath(__file__))

# ═══════════════════════════════════════════════════════════════════════════════
# MODO PRODUCCIÓN
# ═══════════════════════════════════════════════════════════════════════════════
# True = exige STATION_SECRET_KEY y reduce mensajes de depuración
PRODUCTION_MODE = _env_bool('STATION_PRODUCTION_MODE', False)

_DEFAULT_SECRET = "app_station_dev_secret_key_change_in_production"
SECRET_KEY = os.environ.get('STATION_SECRET_KEY') or _DEFAULT_SECRET

# ═══════════════════════════════════════════════════════════════════════════════
# PERSISTENCIA
# ═══════════════════════════════════════════════════════════════════════════════
DATA_DIR = os.environ.get('STATION_DATA_DIR') or os.path.join(BASE, 'data')
DB_BACKEND = (os.environ.get('STATION_DB_BACKEND') or 'json').strip().lower()
MONGODB_URI = (os.environ.get('MONGODB_URI') or '').strip()
MONGODB_DB_NAME = (os.environ.get('MONGODB_DB_NAME') or 'service_station').strip()

# ═══════════════════════════════════════════════════════════════════════════════
# NEGOCIO
# ═══════════════════════════════════════════════════════════════════════════════
TIME_ZONE = os.environ.get('STATION_TIME_ZONE') or 'Asia/Colombo'
CURRENCY = os.environ.get('STATION_CURRENCY') or 'Rs.'
INVOICE_PAGE_SIZE = _env_int('STATION_INVOICE_PAGE_SIZE', 50)
VEHICLE_SEARCH_LIMIT = _env_int('STATION_VEHICLE_SEARCH_LIMIT', 10)
RECENT_INVOICES_LIMIT = 5
REVENUE_CHART_DAYS = 7

# ═══════════════════════════════════════════════════════════════════════════════
# PROFILING / LOGS
# ═══════════════════════════════════════════════════════════════════════════════
ENABLE_PROFILING = _env_bool('STATION_ENABLE_PROFILING', True)
LOGS_DIR = os.environ.get('STATION_LOGS_DIR') or os.path.join(BASE, 'logs')

# Nombres de las colecciones del almacén de documentos
CUSTOMERS = 'customers'
VEHICLES = 'vehicles'
EMPLOYEES = 'employees'
PRODUCTS = 'products'
SERVICES = 'services'
INVOICES = 'invoices'
STOCK_LOGS = 'stock_adjustment_logs'

COLLECTIONS = (CUSTOMERS, VEHICLES, EMPLOYEES, PRODUCTS, SERVICES, INVOICES, STOCK_LOGS)
