"""
Servicios de aplicacion.

Contiene la logica reutilizable (normalizacion de valores)
que no pertenece a un caso de uso especifico.
"""
from tariffs_sync.application.services.tariff_normalizer import (
    format_display_date,
    format_money,
    parse_locale_number,
)

__all__ = ["format_display_date", "format_money", "parse_locale_number"]
