"""
Repositorios de persistencia.
"""
from tariffs_sync.infrastructure.repositories.tariff_repository import TariffRepository

__all__ = ["TariffRepository"]
