"""
Gestión del engine y sesiones de base de datos.

El engine se crea una sola vez en el punto de entrada y se pasa
explícitamente a los casos de uso (no hay engine global).
"""
from typing import Any, Dict

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import declarative_base

from tariffs_sync.core.config import Settings


# Base para modelos de SQLAlchemy
Base = declarative_base()


def _create_engine_args(settings: Settings) -> Dict[str, Any]:
    """
    Construye los argumentos del engine segun el tipo de base de datos.
    PostgreSQL usa pool de conexiones, SQLite no lo soporta.
    """
    args: Dict[str, Any] = {
        "echo": settings.DB_ECHO,
        "future": True,
    }

    if settings.effective_database_url.startswith("postgresql"):
        args.update({
            "pool_size": settings.DB_POOL_SIZE,
            "max_overflow": settings.DB_MAX_OVERFLOW,
            "pool_pre_ping": True,  # Verifica conexion antes de usar
        })

    return args


def database_backend(settings: Settings) -> str:
    """Nombre del dialecto de la URL efectiva (postgresql, sqlite, ...)."""
    return make_url(settings.effective_database_url).get_backend_name()


def create_engine(settings: Settings) -> AsyncEngine:
    """Crea el engine async con pool a partir de la configuracion."""
    return create_async_engine(settings.effective_database_url, **_create_engine_args(settings))


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory; cada unidad de trabajo abre su propia sesion."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


async def close_db(engine: AsyncEngine) -> None:
    """Cierra las conexiones del pool."""
    await engine.dispose()
