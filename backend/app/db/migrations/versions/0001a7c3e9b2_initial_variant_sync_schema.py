"""initial variant sync schema

Revision ID: 0001a7c3e9b2
Revises:
Create Date: 2026-10-18 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '0001a7c3e9b2'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        'variant_products',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('shop', sa.String(length=255), nullable=False),
        sa.Column('base_shopify_product_id', sa.BigInteger(), nullable=False),
        sa.Column('variant_shopify_product_id', sa.BigInteger(), nullable=True),
        sa.Column('title', sa.String(length=255), nullable=True),
        sa.Column('sell_by_weight', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        sa.Column('weight_unit', sa.String(length=8), server_default=sa.text("'lb'"), nullable=False),
        sa.Column('price_label', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        sa.Column('additional_label', sa.String(length=75), nullable=True),
        sa.Column('price_string_metafield_id', sa.BigInteger(), nullable=True),
        sa.Column('price_label_metafield_id', sa.BigInteger(), nullable=True),
        sa.Column('additional_label_metafield_id', sa.BigInteger(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_variant_products'),
        sa.UniqueConstraint('shop', 'base_shopify_product_id', name='ux_variant_products_shop_base'),
    )
    op.create_index('ix_variant_products_shop', 'variant_products', ['shop'], unique=False)

    op.create_table(
        'variant_groups',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('modifier_kind', sa.String(length=8), nullable=False),
        sa.Column('position', sa.Integer(), server_default=sa.text('0'), nullable=False),
        sa.ForeignKeyConstraint(['product_id'], ['variant_products.id'], ondelete='CASCADE',
                                name='fk_variant_groups_product_id_variant_products'),
        sa.PrimaryKeyConstraint('id', name='pk_variant_groups'),
    )
    op.create_index('ix_variant_groups_product_id', 'variant_groups', ['product_id'], unique=False)

    op.create_table(
        'variant_options',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('group_id', sa.Integer(), nullable=False),
        sa.Column('label', sa.String(length=255), nullable=False),
        sa.Column('modifier_value', sa.Numeric(precision=12, scale=4), nullable=True),
        sa.Column('position', sa.Integer(), server_default=sa.text('0'), nullable=False),
        sa.ForeignKeyConstraint(['group_id'], ['variant_groups.id'], ondelete='CASCADE',
                                name='fk_variant_options_group_id_variant_groups'),
        sa.PrimaryKeyConstraint('id', name='pk_variant_options'),
    )
    op.create_index('ix_variant_options_group_id', 'variant_options', ['group_id'], unique=False)

    op.create_table(
        'synthesized_variants',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('shopify_product_id', sa.BigInteger(), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=True),
        sa.Column('option1', sa.String(length=255), nullable=True),
        sa.Column('option2', sa.String(length=255), nullable=True),
        sa.Column('option3', sa.String(length=255), nullable=True),
        sa.Column('option1_variant', sa.Integer(), nullable=True),
        sa.Column('option2_variant', sa.Integer(), nullable=True),
        sa.Column('option3_variant', sa.Integer(), nullable=True),
        sa.Column('price', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('weight', sa.Numeric(precision=12, scale=4), nullable=True),
        sa.Column('weight_unit', sa.String(length=8), nullable=True),
        sa.Column('to_multiply', sa.Numeric(precision=16, scale=8), server_default=sa.text('1'), nullable=False),
        sa.Column('to_add', sa.Numeric(precision=12, scale=4), server_default=sa.text('0'), nullable=False),
        sa.Column('taxable', sa.Boolean(), server_default=sa.text('true'), nullable=False),
        sa.Column('inventory_policy', sa.String(length=16), server_default=sa.text("'continue'"), nullable=False),
        sa.Column('shopify_variant_id', sa.BigInteger(), nullable=True),
        sa.Column('position', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_synthesized_variants'),
    )
    op.create_index('ix_synthesized_variants_product_position', 'synthesized_variants',
                    ['shopify_product_id', 'position'], unique=False)

    op.create_table(
        'update_statuses',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('product_name', sa.String(length=255), nullable=True),
        sa.Column('kind', sa.String(length=16), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('message', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_update_statuses'),
    )
    op.create_index('idx_update_statuses_status', 'update_statuses', ['status', 'created_at'], unique=False)

    op.create_table(
        'shop_access',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('shop', sa.String(length=255), nullable=False),
        sa.Column('oauth_token', sa.String(length=255), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_shop_access'),
    )
    op.create_index('ix_shop_access_shop', 'shop_access', ['shop'], unique=True)


def downgrade() -> None:
    op.drop_index('ix_shop_access_shop', table_name='shop_access')
    op.drop_table('shop_access')
    op.drop_index('idx_update_statuses_status', table_name='update_statuses')
    op.drop_table('update_statuses')
    op.drop_index('ix_synthesized_variants_product_position', table_name='synthesized_variants')
    op.drop_table('synthesized_variants')
    op.drop_index('ix_variant_options_group_id', table_name='variant_options')
    op.drop_table('variant_options')
    op.drop_index('ix_variant_groups_product_id', table_name='variant_groups')
    op.drop_table('variant_groups')
    op.drop_index('ix_variant_products_shop', table_name='variant_products')
    op.drop_table('variant_products')
