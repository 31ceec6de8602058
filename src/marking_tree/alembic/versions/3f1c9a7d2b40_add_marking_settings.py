"""add_marking_settings

This migration adds:
1. marking_settings: per-user display settings for courses and activities
2. marking_group_settings: per-group visibility inside one settings row

Revision ID: 3f1c9a7d2b40
Revises:
Create Date: 2026-10-18 09:12:41.207315

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '3f1c9a7d2b40'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema - add marking settings tables."""

    op.create_table('marking_settings',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('userid', sa.Integer(), nullable=False),
        sa.Column('tablename', sa.String(length=40), nullable=False),
        sa.Column('instanceid', sa.Integer(), nullable=False),
        sa.Column('display', sa.SmallInteger(), server_default=sa.text('1'), nullable=False),
        sa.Column('groupsdisplay', sa.SmallInteger(), server_default=sa.text('0'), nullable=False),
        sa.Column('showorphans', sa.SmallInteger(), nullable=True),
        sa.ForeignKeyConstraint(['userid'], ['users.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('marking_settings_scope_idx', 'marking_settings',
                    ['userid', 'tablename', 'instanceid'], unique=True)

    op.create_table('marking_group_settings',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('configid', sa.Integer(), nullable=False),
        sa.Column('groupid', sa.Integer(), nullable=False),
        sa.Column('display', sa.SmallInteger(), server_default=sa.text('1'), nullable=False),
        sa.ForeignKeyConstraint(['configid'], ['marking_settings.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['groupid'], ['groups.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('marking_group_settings_config_group_idx', 'marking_group_settings',
                    ['configid', 'groupid'], unique=True)


def downgrade() -> None:
    """Downgrade schema - drop marking settings tables."""
    op.drop_index('marking_group_settings_config_group_idx', table_name='marking_group_settings')
    op.drop_table('marking_group_settings')
    op.drop_index('marking_settings_scope_idx', table_name='marking_settings')
    op.drop_table('marking_settings')
