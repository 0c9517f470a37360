"""004: create listing_documents table

Revision ID: 004
Revises: 003
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "004"
down_revision: Union[str, None] = "003"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE listing_documents (
            id              VARCHAR(32)     PRIMARY KEY,
            listing_id      VARCHAR(32)     NOT NULL REFERENCES listings (id) ON DELETE CASCADE,
            doc_type        VARCHAR(16)     NOT NULL,
            name            VARCHAR(255)    NOT NULL,
            url             TEXT            NOT NULL,
            uploaded_at     TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_listing_documents_type CHECK (
                doc_type IN ('image', 'financial', 'itr', 'certificate', 'additional')
            )
        );
    """)
    op.execute("CREATE INDEX idx_listing_documents_listing ON listing_documents (listing_id);")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS listing_documents CASCADE;")
