"""create_hotels_and_hotels_pictures

Revision ID: 3b9e2c7d41a0
Revises:
Create Date: 2026-10-19 10:12:41.503218

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3b9e2c7d41a0'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'hotels',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('address1', sa.String(length=500), nullable=False),
        sa.Column('address2', sa.String(length=500), nullable=True),
        sa.Column('zipcode', sa.String(length=20), nullable=False),
        sa.Column('city', sa.String(length=100), nullable=False),
        sa.Column('country', sa.String(length=100), nullable=False),
        sa.Column('lat', sa.Numeric(precision=10, scale=7), nullable=False),
        sa.Column('lng', sa.Numeric(precision=10, scale=7), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('max_capacity', sa.Integer(), nullable=False),
        sa.Column('price_per_night', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_hotels_id'), 'hotels', ['id'], unique=False)
    op.create_index(op.f('ix_hotels_name'), 'hotels', ['name'], unique=False)
    op.create_index(op.f('ix_hotels_city'), 'hotels', ['city'], unique=False)

    # Pictures are owned by one hotel and go away with it
    op.create_table(
        'hotels_pictures',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('hotel_id', sa.Integer(), nullable=False),
        sa.Column('filepath', sa.String(length=255), nullable=False),
        sa.Column('filesize', sa.Integer(), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['hotel_id'], ['hotels.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_hotels_pictures_id'), 'hotels_pictures', ['id'], unique=False)
    op.create_index(op.f('ix_hotels_pictures_hotel_id'), 'hotels_pictures', ['hotel_id'], unique=False)
    op.create_index(op.f('ix_hotels_pictures_position'), 'hotels_pictures', ['position'], unique=False)


def downgrade() -> None:
    op.drop_index(op.f('ix_hotels_pictures_position'), table_name='hotels_pictures')
    op.drop_index(op.f('ix_hotels_pictures_hotel_id'), table_name='hotels_pictures')
    op.drop_index(op.f('ix_hotels_pictures_id'), table_name='hotels_pictures')
    op.drop_table('hotels_pictures')

    op.drop_index(op.f('ix_hotels_city'), table_name='hotels')
    op.drop_index(op.f('ix_hotels_name'), table_name='hotels')
    op.drop_index(op.f('ix_hotels_id'), table_name='hotels')
    op.drop_table('hotels')
