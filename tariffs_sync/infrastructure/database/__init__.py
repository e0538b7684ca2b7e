"""
Configuración de base de datos.

Importa los modelos para que se registren con Base
antes de crear las tablas (tests) o autogenerar migraciones.
"""
from tariffs_sync.infrastructure.database.models import TariffModel
from tariffs_sync.infrastructure.database.session import (
    Base,
    close_db,
    create_engine,
    create_session_factory,
)

__all__ = ["Base", "TariffModel", "close_db", "create_engine", "create_session_factory"]
