"""
Normalizador de valores numericos y fechas.

La API de WB devuelve los montos como strings con coma decimal ("1234,56")
o un guion ("-") cuando no hay valor. Google Sheets (locale ru/es) espera
el mismo formato de vuelta, con dos decimales.

Funciones puras: no hacen I/O salvo el warning de loguru al descartar un valor.
"""
from __future__ import annotations

import math
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional, Union

from loguru import logger

from tariffs_sync.shared.utils.datetime_utils import parse_iso_date


NO_VALUE_MARKER = "-"

# Separadores de miles habituales en locale ru (espacio y espacio duro).
_THOUSAND_SEPARATORS = (" ", "\u00a0", "\u202f")


def parse_locale_number(raw: Union[str, int, float, None]) -> Optional[float]:
    """
    Convierte un string con coma decimal a float.

    Retorna None para None, string vacio o el marcador "-".
    Si el valor no es un numero valido, loguea un warning y retorna None.
    Nunca lanza excepciones.
    """
    if raw is None or isinstance(raw, bool):
        return None

    if isinstance(raw, (int, float)):
        return float(raw) if math.isfinite(raw) else None

    text = str(raw).strip()
    if not text or text == NO_VALUE_MARKER:
        return None

    for sep in _THOUSAND_SEPARATORS:
        text = text.replace(sep, "")

    try:
        parsed = float(text.replace(",", ".", 1))
    except ValueError:
        logger.warning(f"No se pudo convertir el valor a numero: {raw!r}")
        return None

    if not math.isfinite(parsed):
        logger.warning(f"Valor numerico no finito descartado: {raw!r}")
        return None

    return parsed


def format_money(value: Any) -> Optional[str]:
    """
    Formatea un numero con dos decimales y coma como separador decimal.
    Retorna None si el valor no es numerico.

    Ejemplo: 1234.5 -> "1234,50"
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, (int, float, Decimal)):
        number = float(value)
    else:
        try:
            number = float(str(value).strip())
        except ValueError:
            return None

    if not math.isfinite(number):
        return None

    return f"{number:.2f}".replace(".", ",")


def format_display_date(value: Union[date, datetime, str, None]) -> Optional[str]:
    """
    Formatea una fecha como DD.MM.YYYY.
    Acepta date, datetime o string ISO; retorna None para valores ausentes o invalidos.
    """
    if value is None:
        return None

    if isinstance(value, datetime):
        value = value.date()
    elif isinstance(value, str):
        value = parse_iso_date(value)
        if value is None:
            return None
    elif not isinstance(value, date):
        return None

    return f"{value.day:02d}.{value.month:02d}.{value.year:04d}"
