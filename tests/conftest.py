"""
Configuración de fixtures para pytest.
"""
from typing import AsyncGenerator

import pytest
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from tariffs_sync.infrastructure.database import Base


# URL de base de datos de prueba
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture(scope="function")
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """
    Engine en memoria compartido por todas las sesiones del test
    (StaticPool: una sola conexion, la base vive mientras viva el engine).
    """
    test_engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield test_engine

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
    )


@pytest.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Sesion de base de datos para tests de repositorio."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def settings_kwargs() -> dict:
    """Valores minimos validos para construir Settings sin .env."""
    return {
        "_env_file": None,
        "DATABASE_USER": "postgres",
        "DATABASE_PASSWORD": "secret",
        "DATABASE_NAME": "wb_tariffs",
        "WB_API_KEY": "test-token",
        "GOOGLE_SHEETS_IDS": "sheet-one,sheet_two",
        "GOOGLE_API_CREDENTIALS_PATH": "/tmp/credentials.json",
    }
