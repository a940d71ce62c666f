"""initial schema - create user_accounts

Revision ID: 001
Revises:
Create Date: 2026-10-19 12:00:00.000000

"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # One row per email; identity_hash is the session-resume lookup key
    op.create_table(
        'user_accounts',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('email', sa.String(320), nullable=False),
        sa.Column('identity_hash', sa.String(64), nullable=False),
        sa.Column('profile', sa.JSON(), nullable=False),
        sa.Column('progress_state', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    )
    op.create_index('ix_user_accounts_email', 'user_accounts', ['email'], unique=True)
    op.create_index('ix_user_accounts_identity_hash', 'user_accounts', ['identity_hash'])


def downgrade() -> None:
    op.drop_index('ix_user_accounts_identity_hash', table_name='user_accounts')
    op.drop_index('ix_user_accounts_email', table_name='user_accounts')
    op.drop_table('user_accounts')
