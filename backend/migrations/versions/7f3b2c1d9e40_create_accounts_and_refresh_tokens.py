"""create account tables and refresh_tokens

Revision ID: 7f3b2c1d9e40
Revises:
Create Date: 2026-10-18 00:00:00.000000
"""
import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = '7f3b2c1d9e40'
down_revision = None
branch_labels = None
depends_on = None

ACCOUNT_TABLES = ('users', 'admins', 'staff')


def upgrade():
    for table in ACCOUNT_TABLES:
        op.create_table(
            table,
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('email', sa.String(length=254), nullable=False),
            sa.Column('password_hash', sa.String(length=254), nullable=False),
            sa.Column('is_active', sa.Boolean(), server_default=sa.true(), nullable=False),
            sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
            sa.Column(
                'updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
            ),
            sa.PrimaryKeyConstraint('id', name=f'pk_{table}'),
            sa.UniqueConstraint('email', name=f'uq_{table}_email'),
        )

    op.create_table(
        'refresh_tokens',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('subject_type', sa.String(length=16), nullable=False),
        sa.Column('subject_id', sa.Integer(), nullable=False),
        sa.Column('token', sa.String(length=1024), nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column('revoked_reason', sa.String(length=32), nullable=True),
        sa.Column('revoked_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_refresh_tokens'),
    )
    op.create_index('ix_refresh_tokens_token', 'refresh_tokens', ['token'], unique=True)
    op.create_index(
        'ix_refresh_tokens_subject_active',
        'refresh_tokens',
        ['subject_type', 'subject_id', 'is_active'],
    )


def downgrade():
    op.drop_index('ix_refresh_tokens_subject_active', table_name='refresh_tokens')
    op.drop_index('ix_refresh_tokens_token', table_name='refresh_tokens')
    op.drop_table('refresh_tokens')
    for table in reversed(ACCOUNT_TABLES):
        op.drop_table(table)
