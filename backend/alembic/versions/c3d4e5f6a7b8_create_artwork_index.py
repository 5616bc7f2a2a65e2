"""Create artwork index and final-record tables

Revision ID: c3d4e5f6a7b8
Revises:
Create Date: 2026-10-18 00:00:00.000000
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = 'c3d4e5f6a7b8'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'artists',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False, unique=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
    )

    op.create_table(
        'wallet_addresses',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('address', sa.String(100), nullable=False),
        sa.Column('blockchain', sa.String(20), nullable=False),
        sa.Column(
            'artist_id',
            sa.Integer(),
            sa.ForeignKey('artists.id', ondelete='SET NULL'),
            nullable=True,
        ),
        sa.Column('last_indexed', sa.DateTime(), nullable=True),
        sa.Column('enabled', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.UniqueConstraint('address', 'blockchain', name='uq_wallet_addresses_address_blockchain'),
    )
    op.create_index('ix_wallet_addresses_blockchain', 'wallet_addresses', ['blockchain'])
    op.create_index('ix_wallet_addresses_artist_id', 'wallet_addresses', ['artist_id'])

    op.create_table(
        'collections',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('slug', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('chain_identifier', sa.String(20), nullable=True),
    )
    op.create_index('ix_collections_slug', 'collections', ['slug'], unique=True)

    op.create_table(
        'artworks',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('title', sa.String(500), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('image_url', sa.Text(), nullable=True),
        sa.Column('animation_url', sa.Text(), nullable=True),
        sa.Column('generator_url', sa.Text(), nullable=True),
        sa.Column('thumbnail_url', sa.Text(), nullable=True),
        sa.Column('blockchain', sa.String(20), nullable=True),
        sa.Column('contract_address', sa.String(100), nullable=True),
        sa.Column('token_id', sa.String(100), nullable=True),
        sa.Column('mime', sa.String(100), nullable=True),
        sa.Column('token_standard', sa.String(20), nullable=True),
        sa.Column('mint_date', sa.DateTime(), nullable=True),
        sa.Column('attributes', postgresql.JSONB(), nullable=True),
        sa.Column(
            'collection_id',
            sa.Integer(),
            sa.ForeignKey('collections.id', ondelete='SET NULL'),
            nullable=True,
        ),
    )
    op.create_index('ix_artworks_contract_address', 'artworks', ['contract_address'])
    op.create_index('ix_artworks_collection_id', 'artworks', ['collection_id'])

    op.create_table(
        'artwork_wallet_addresses',
        sa.Column(
            'artwork_id',
            sa.Integer(),
            sa.ForeignKey('artworks.id', ondelete='CASCADE'),
            primary_key=True,
        ),
        sa.Column(
            'wallet_address_id',
            sa.Integer(),
            sa.ForeignKey('wallet_addresses.id', ondelete='CASCADE'),
            primary_key=True,
        ),
    )

    op.create_table(
        'settings',
        sa.Column('key', sa.String(100), primary_key=True),
        sa.Column('value', sa.Text(), nullable=False),
    )

    op.create_table(
        'artwork_index',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('nft_uid', sa.String(255), nullable=False),
        sa.Column('type', sa.String(10), nullable=False),
        sa.Column('blockchain', sa.String(20), nullable=False),
        sa.Column('data_source', sa.String(20), nullable=False),
        sa.Column('contract_address', sa.String(100), nullable=False),
        sa.Column('token_id', sa.String(100), nullable=False),
        sa.Column('raw_response', postgresql.JSONB(), nullable=True),
        sa.Column('normalized_data', postgresql.JSONB(), nullable=True),
        sa.Column('import_status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('error_message', sa.Text(), nullable=True),
        sa.Column(
            'artwork_id',
            sa.Integer(),
            sa.ForeignKey('artworks.id', ondelete='SET NULL'),
            nullable=True,
        ),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column('last_attempt', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint(
            'contract_address', 'token_id', name='uq_artwork_index_contract_token'
        ),
    )
    op.create_index('ix_artwork_index_import_status', 'artwork_index', ['import_status'])
    op.create_index('ix_artwork_index_blockchain', 'artwork_index', ['blockchain'])


def downgrade() -> None:
    op.drop_index('ix_artwork_index_blockchain', table_name='artwork_index')
    op.drop_index('ix_artwork_index_import_status', table_name='artwork_index')
    op.drop_table('artwork_index')
    op.drop_table('settings')
    op.drop_table('artwork_wallet_addresses')
    op.drop_index('ix_artworks_collection_id', table_name='artworks')
    op.drop_index('ix_artworks_contract_address', table_name='artworks')
    op.drop_table('artworks')
    op.drop_index('ix_collections_slug', table_name='collections')
    op.drop_table('collections')
    op.drop_index('ix_wallet_addresses_artist_id', table_name='wallet_addresses')
    op.drop_index('ix_wallet_addresses_blockchain', table_name='wallet_addresses')
    op.drop_table('wallet_addresses')
    op.drop_table('artists')
