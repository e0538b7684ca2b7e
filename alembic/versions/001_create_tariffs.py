"""create_tariffs

Revision ID: 001
Revises:
Create Date: 2025-07-04 11:47:33.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    bind = op.get_bind()
    inspector = sa.inspect(bind)

    if not inspector.has_table('tariffs'):
        op.create_table('tariffs',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('warehouse_name', sa.String(length=255), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('delivery_and_storage_expr', sa.Numeric(precision=10, scale=2), nullable=True),
        sa.Column('delivery_base', sa.Numeric(precision=10, scale=2), nullable=True),
        sa.Column('delivery_liter', sa.Numeric(precision=10, scale=2), nullable=True),
        sa.Column('storage_base', sa.Numeric(precision=10, scale=2), nullable=True),
        sa.Column('storage_liter', sa.Numeric(precision=10, scale=2), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('warehouse_name', 'date', name='uq_tariffs_warehouse_name_date')
        )
        op.create_index(op.f('ix_tariffs_date'), 'tariffs', ['date'], unique=False)


def downgrade() -> None:
    """Downgrade schema."""
    bind = op.get_bind()
    inspector = sa.inspect(bind)

    if inspector.has_table('tariffs'):
        indexes = [idx['name'] for idx in inspector.get_indexes('tariffs')]
        if 'ix_tariffs_date' in indexes:
            op.drop_index(op.f('ix_tariffs_date'), table_name='tariffs')
        op.drop_table('tariffs')
