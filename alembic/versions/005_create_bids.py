"""005: create bids table

Revision ID: 005
Revises: 004
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "005"
down_revision: Union[str, None] = "004"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE bids (
            id              VARCHAR(32)     PRIMARY KEY,
            listing_id      VARCHAR(32)     NOT NULL REFERENCES listings (id) ON DELETE CASCADE,
            bidder_id       UUID            NOT NULL REFERENCES users (id),
            amount          BIGINT          NOT NULL,
            status          VARCHAR(16)     NOT NULL DEFAULT 'pending',
            is_won          BOOLEAN         NOT NULL DEFAULT FALSE,
            won_at          TIMESTAMPTZ,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_bids_amount   CHECK (amount > 0),
            CONSTRAINT ck_bids_status   CHECK (
                status IN ('pending', 'active', 'accepted', 'rejected', 'won', 'lost', 'paid')
            ),
            CONSTRAINT ck_bids_won_fields CHECK (
                (status IN ('accepted', 'won', 'paid') AND is_won = TRUE AND won_at IS NOT NULL)
                OR (status NOT IN ('accepted', 'won', 'paid') AND is_won = FALSE AND won_at IS NULL)
            )
        );
    """)
    op.execute("CREATE INDEX idx_bids_listing ON bids (listing_id, created_at DESC);")
    op.execute("CREATE INDEX idx_bids_bidder ON bids (bidder_id, created_at DESC);")
    op.execute("""
        CREATE INDEX idx_bids_listing_open
        ON bids (listing_id, amount DESC, created_at)
        WHERE status IN ('pending', 'active');
    """)
    # At most one winner per listing
    op.execute("""
        CREATE UNIQUE INDEX uq_bids_one_winner
        ON bids (listing_id)
        WHERE status IN ('won', 'accepted', 'paid');
    """)
    op.execute("""
        CREATE TRIGGER trg_bids_updated_at
            BEFORE UPDATE ON bids
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)
    op.execute("""
        ALTER TABLE listings
        ADD CONSTRAINT fk_listings_winning_bid
        FOREIGN KEY (winning_bid_id) REFERENCES bids (id) DEFERRABLE INITIALLY DEFERRED;
    """)


def downgrade() -> None:
    op.execute("ALTER TABLE listings DROP CONSTRAINT IF EXISTS fk_listings_winning_bid;")
    op.execute("DROP TABLE IF EXISTS bids CASCADE;")
