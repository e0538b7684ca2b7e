"""
Utilidades para manejo de fechas y horas.
"""
from datetime import date, datetime, timezone
from typing import Callable, Optional


Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Retorna la hora actual en UTC, como datetime aware."""
    return datetime.now(timezone.utc)


def utc_today(clock: Clock = utc_now) -> date:
    """
    Fecha de calendario actual en UTC.
    La API de WB recibe la fecha en formato ISO (YYYY-MM-DD).
    """
    return clock().astimezone(timezone.utc).date()


def parse_iso_date(value: str) -> Optional[date]:
    """
    Convierte un string ISO 8601 (fecha o fecha-hora) a date.

    Returns:
        date o None si el string no es valido
    """
    text = value.strip()
    if not text:
        return None
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        return None
