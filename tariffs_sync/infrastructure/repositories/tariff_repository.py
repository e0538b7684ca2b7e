"""
Repositorio de tarifas.
Maneja las operaciones de base de datos para la tabla `tariffs`.

El UPSERT se resuelve con INSERT ... ON CONFLICT (warehouse_name, date) DO UPDATE,
soportado por PostgreSQL (produccion) y SQLite (tests).
"""
from datetime import date
from typing import Dict, Iterable, List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from tariffs_sync.domain.entities.tariff import NUMERIC_FIELDS, TariffRecord
from tariffs_sync.infrastructure.database.models import TariffModel
from tariffs_sync.shared.exceptions import ConfigurationError
from tariffs_sync.shared.utils.datetime_utils import utc_now


# Columnas que se pisan en conflicto. La clave (warehouse_name, date) no se toca.
UPDATABLE_COLUMNS = NUMERIC_FIELDS + ("updated_at",)

_INSERT_BY_DIALECT = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}
SUPPORTED_DIALECTS = tuple(_INSERT_BY_DIALECT)


def ensure_supported_dialect(dialect: str) -> None:
    """
    Verifica que el motor soporte INSERT ... ON CONFLICT.

    Raises:
        ConfigurationError: si el dialecto no es PostgreSQL ni SQLite
    """
    if dialect not in _INSERT_BY_DIALECT:
        raise ConfigurationError(
            f"UPSERT no soportado para el dialecto '{dialect}' "
            f"(soportados: {', '.join(SUPPORTED_DIALECTS)})",
            setting="DATABASE_URL",
        )


class TariffRepository:
    """Repositorio para gestionar tarifas en la base de datos."""

    def __init__(self, db: AsyncSession):
        self.db = db

    def _insert(self):
        dialect = self.db.get_bind().dialect.name
        ensure_supported_dialect(dialect)
        return _INSERT_BY_DIALECT[dialect](TariffModel)

    async def upsert_many(self, records: Iterable[TariffRecord]) -> int:
        """
        Inserta o actualiza tarifas por (warehouse_name, date).

        - Registros repetidos dentro del mismo lote: gana el ultimo
          (Postgres no permite afectar la misma fila dos veces en un statement).
        - updated_at se completa con la hora actual si viene vacio.

        No hace commit: el caller decide el limite de la transaccion.

        Returns:
            Numero de filas enviadas al UPSERT
        """
        unique: Dict[Tuple[str, date], dict] = {}
        for record in records:
            row = record.to_row()
            if row["updated_at"] is None:
                row["updated_at"] = utc_now()
            unique[(record.warehouse_name, record.date)] = row

        rows = list(unique.values())
        if not rows:
            return 0

        stmt = self._insert().values(rows)
        stmt = stmt.on_conflict_do_update(
            index_elements=[TariffModel.warehouse_name, TariffModel.date],
            set_={column: stmt.excluded[column] for column in UPDATABLE_COLUMNS},
        )
        await self.db.execute(stmt)
        return len(rows)

    async def list_ordered_by_delivery_liter(
        self,
        only_date: Optional[date] = None,
    ) -> List[TariffRecord]:
        """
        Obtiene tarifas ordenadas ascendentemente por delivery_liter.
        Las filas sin delivery_liter van al final.

        Args:
            only_date: si se indica, solo las tarifas de ese dia
        """
        query = select(TariffModel).order_by(
            TariffModel.delivery_liter.asc().nulls_last(),
            TariffModel.warehouse_name.asc(),
            TariffModel.date.asc(),
        ).execution_options(populate_existing=True)
        if only_date is not None:
            query = query.where(TariffModel.date == only_date)

        result = await self.db.execute(query)
        return [model.to_entity() for model in result.scalars().all()]

    async def get(self, warehouse_name: str, on_date: date) -> Optional[TariffRecord]:
        """Obtiene una tarifa por su clave natural."""
        result = await self.db.execute(
            select(TariffModel)
            .where(TariffModel.warehouse_name == warehouse_name)
            .where(TariffModel.date == on_date)
            .execution_options(populate_existing=True)
        )
        model = result.scalars().first()
        return model.to_entity() if model else None

    async def count(self, only_date: Optional[date] = None) -> int:
        query = select(func.count()).select_from(TariffModel)
        if only_date is not None:
            query = query.where(TariffModel.date == only_date)
        result = await self.db.execute(query)
        return int(result.scalar_one())
