"""create membership tables

Revision ID: a1b2c3d4e5f6
Revises:
Create Date: 2026-10-18 10:12:41.503217

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = 'a1b2c3d4e5f6'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table('organizations',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('name', sa.String(length=300), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name', name='uq_organizations_name'),
    )

    op.create_table('schools',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('name', sa.String(length=300), nullable=False),
        sa.Column('organization_id', sa.UUID(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('organization_id', 'name', name='uq_schools_organization_id_name'),
    )
    op.create_index('idx_schools_organization_id', 'schools', ['organization_id'])

    op.create_table('members',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('name', sa.String(length=300), nullable=False),
        sa.Column('school_id', sa.UUID(), nullable=False),
        sa.Column('organization_id', sa.UUID(), nullable=False),
        sa.Column('submission_url', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.ForeignKeyConstraint(['school_id'], ['schools.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('idx_members_school_id_name', 'members', ['school_id', 'name'])
    op.create_index('idx_members_organization_id', 'members', ['organization_id'])

    importsource = postgresql.ENUM('csv', 'json', name='importsource', create_type=False)
    importstatus = postgresql.ENUM('success', 'partial', 'failed', name='importstatus', create_type=False)
    importsource.create(op.get_bind(), checkfirst=True)
    importstatus.create(op.get_bind(), checkfirst=True)

    op.create_table('import_history',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('source', importsource, nullable=False),
        sa.Column('status', importstatus, nullable=False),
        sa.Column('original_filename', sa.String(length=255), nullable=False),
        sa.Column('duplicate_handling', sa.String(length=20), nullable=False, server_default='skip'),
        sa.Column('records_parsed', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('organizations_created', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('schools_created', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('members_created', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('duplicates_skipped', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('duplicates_updated', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('chunks_total', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('chunks_failed', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('error_message', sa.Text(), nullable=True),
        sa.Column('imported_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.PrimaryKeyConstraint('id'),
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table('import_history')
    op.execute("DROP TYPE IF EXISTS importstatus")
    op.execute("DROP TYPE IF EXISTS importsource")
    op.drop_index('idx_members_organization_id', table_name='members')
    op.drop_index('idx_members_school_id_name', table_name='members')
    op.drop_table('members')
    op.drop_index('idx_schools_organization_id', table_name='schools')
    op.drop_table('schools')
    op.drop_table('organizations')
