"""001: create extensions and shared trigger functions

Revision ID: 001
Revises: 
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # gen_random_uuid() for users.id on PostgreSQL < 13
    op.execute("CREATE EXTENSION IF NOT EXISTS pgcrypto;")
    op.execute("""
        CREATE OR REPLACE FUNCTION fn_update_timestamp()
        RETURNS TRIGGER AS $$
        BEGIN
            NEW.updated_at = NOW();
            RETURN NEW;
        END;
        $$ LANGUAGE plpgsql;
    """)
    # Settled rows are final; used by payments
    op.execute("""
        CREATE OR REPLACE FUNCTION fn_reject_settled_change()
        RETURNS TRIGGER AS $$
        BEGIN
            IF OLD.status = 'success' THEN
                RAISE EXCEPTION '% % is settled and cannot change', TG_TABLE_NAME, OLD.id;
            END IF;
            IF TG_OP = 'DELETE' THEN
                RETURN OLD;
            END IF;
            RETURN NEW;
        END;
        $$ LANGUAGE plpgsql;
    """)


def downgrade() -> None:
    op.execute("DROP FUNCTION IF EXISTS fn_reject_settled_change();")
    op.execute("DROP FUNCTION IF EXISTS fn_update_timestamp();")
