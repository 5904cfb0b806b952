"""Initial submissions schema

Revision ID: 001_initial
Revises: 
Create Date: 2026-10-19 12:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '001_initial'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # Create submissions table; language and results hold JSON documents
    op.create_table('submissions',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('language', sa.JSON(), nullable=False),
        sa.Column('source', sa.Text(), nullable=False),
        sa.Column('date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('status', sa.String(), nullable=False),
        sa.Column('total_time', sa.BigInteger(), nullable=True),
        sa.Column('max_memory', sa.BigInteger(), nullable=True),
        sa.Column('results', sa.JSON(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )


def downgrade() -> None:
    op.drop_table('submissions')
