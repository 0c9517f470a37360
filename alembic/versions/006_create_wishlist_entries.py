"""006: create wishlist_entries table

Revision ID: 006
Revises: 005
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "006"
down_revision: Union[str, None] = "005"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE wishlist_entries (
            id              VARCHAR(32)     PRIMARY KEY,
            buyer_id        UUID            NOT NULL REFERENCES users (id),
            listing_id      VARCHAR(32)     NOT NULL REFERENCES listings (id) ON DELETE CASCADE,
            seller_id       UUID            NOT NULL REFERENCES users (id),
            notes           TEXT            NOT NULL DEFAULT '',
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_wishlist_buyer_listing UNIQUE (buyer_id, listing_id)
        );
    """)
    op.execute("CREATE INDEX idx_wishlist_listing ON wishlist_entries (listing_id);")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS wishlist_entries CASCADE;")
