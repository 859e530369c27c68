# ==============================================================================
# UTILIDADES DE FECHA Y DINERO
# ==============================================================================
# Las fechas se guardan como milisegundos epoch (UTC). Los reportes agrupan
# por día en la zona horaria del taller (config.TIME_ZONE).
# ==============================================================================

import math
import re
import sys
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Optional, Tuple
from zoneinfo import ZoneInfo

from app_station import config

DATE_RE = re.compile(r'^\d{4}-\d{2}-\d{2}$')


def station_tz() -> ZoneInfo:
    """Zona horaria configurada para el taller."""
    return ZoneInfo(config.TIME_ZONE)


def safe_round(num: float) -> float:
    """Redondea a 2 decimales, mitad hacia arriba (5.005 -> 5.01)."""
    return math.floor((float(num) + sys.float_info.epsilon) * 100 + 0.5) / 100


def now_millis() -> int:
    return int(datetime.now(timezone.utc).timestamp() * 1000)


def datetime_to_millis(value: datetime) -> int:
    """Convierte un datetime a milisegundos epoch (naive = UTC)."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return int(value.timestamp() * 1000)


def to_millis(value: Any) -> Optional[int]:
    """
    Normaliza cualquier representación de fecha guardada a milisegundos.

    Acepta: int/float (millis), datetime, string ISO, o dict estilo
    timestamp {"seconds": ..., "nanoseconds": ...}.

    Returns:
        Milisegundos epoch o None si no se puede interpretar
    """
    if value is None or value == '':
        return None
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return int(value)
    if isinstance(value, datetime):
        return datetime_to_millis(value)
    if isinstance(value, dict) and 'seconds' in value:
        try:
            seconds = float(value.get('seconds') or 0)
            nanos = float(value.get('nanoseconds') or 0)
            return int(seconds * 1000 + nanos / 1_000_000)
        except (TypeError, ValueError):
            return None
    if isinstance(value, str):
        text = value.strip()
        if text.isdigit():
            return int(text)
        try:
            return datetime_to_millis(datetime.fromisoformat(text.replace('Z', '+00:00')))
        except ValueError:
            return None
    return None


def to_local(millis: int) -> datetime:
    """Milisegundos epoch -> datetime en la zona del taller."""
    return datetime.fromtimestamp(millis / 1000, tz=station_tz())


def parse_day(value: str) -> Optional[date]:
    """Parsea 'YYYY-MM-DD' estricto. None si el formato es inválido."""
    if not value or not DATE_RE.match(value):
        return None
    try:
        return datetime.strptime(value, '%Y-%m-%d').date()
    except ValueError:
        return None


def parse_day_lenient(value: str) -> Optional[date]:
    """Acepta 'YYYY-MM-DD' o un ISO completo y devuelve la fecha local."""
    day = parse_day(value)
    if day is not None:
        return day
    millis = to_millis(value)
    if millis is None:
        return None
    return to_local(millis).date()


def day_bounds(day: date) -> Tuple[int, int]:
    """
    Inicio y fin (inclusive) de un día local en milisegundos epoch.

    Args:
        day: Fecha en la zona del taller

    Returns:
        Tupla (inicio_ms, fin_ms)
    """
    tz = station_tz()
    start = datetime.combine(day, time.min, tzinfo=tz)
    end = start + timedelta(days=1)
    return datetime_to_millis(start), datetime_to_millis(end) - 1


def range_bounds(start_day: date, end_day: date) -> Tuple[int, int]:
    """Rango de días locales [start_day, end_day] en milisegundos."""
    start_ms, _ = day_bounds(start_day)
    _, end_ms = day_bounds(end_day)
    return start_ms, end_ms


def local_today() -> date:
    return datetime.now(station_tz()).date()


def local_day_string(millis: int) -> str:
    return to_local(millis).strftime('%Y-%m-%d')


def format_currency(amount: Any) -> str:
    """Formato de moneda: 'Rs. 1,234.50'."""
    if isinstance(amount, bool) or not isinstance(amount, (int, float)):
        return f'{config.CURRENCY} 0.00'
    return f'{config.CURRENCY} {amount:,.2f}'


def short_day_label(day: date) -> str:
    """Etiqueta corta para gráficos: 'Jul 5'."""
    return f"{day.strftime('%b')} {day.day}"
