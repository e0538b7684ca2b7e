"""
Modelos de base de datos (ORM).
"""
from sqlalchemy import Column, Date, DateTime, Integer, Numeric, String, UniqueConstraint
from sqlalchemy.sql import func

from tariffs_sync.domain.entities.tariff import TariffRecord
from tariffs_sync.infrastructure.database.session import Base


class TariffModel(Base):
    """
    Tarifas de cajas de WB: una fila por (bodega, fecha).
    El UNIQUE sobre (warehouse_name, date) es la clave del UPSERT.
    """

    __tablename__ = "tariffs"
    __table_args__ = (
        UniqueConstraint("warehouse_name", "date", name="uq_tariffs_warehouse_name_date"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    warehouse_name = Column(String(255), nullable=False)
    date = Column(Date, nullable=False, index=True)

    delivery_and_storage_expr = Column(Numeric(10, 2, asdecimal=False), nullable=True)
    delivery_base = Column(Numeric(10, 2, asdecimal=False), nullable=True)
    delivery_liter = Column(Numeric(10, 2, asdecimal=False), nullable=True)
    storage_base = Column(Numeric(10, 2, asdecimal=False), nullable=True)
    storage_liter = Column(Numeric(10, 2, asdecimal=False), nullable=True)

    updated_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def to_entity(self) -> TariffRecord:
        return TariffRecord(
            warehouse_name=self.warehouse_name,
            date=self.date,
            delivery_base=self.delivery_base,
            delivery_liter=self.delivery_liter,
            delivery_and_storage_expr=self.delivery_and_storage_expr,
            storage_base=self.storage_base,
            storage_liter=self.storage_liter,
            updated_at=self.updated_at,
        )

    def __repr__(self):
        return f"<Tariff(warehouse={self.warehouse_name}, date={self.date}, delivery_liter={self.delivery_liter})>"
