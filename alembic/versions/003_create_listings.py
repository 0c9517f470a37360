"""003: create listings table

Revision ID: 003
Revises: 002
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE listings (
            id                  VARCHAR(32)     PRIMARY KEY,
            seller_id           UUID            NOT NULL REFERENCES users (id),
            company_name        VARCHAR(255)    NOT NULL,
            cin                 VARCHAR(32)     NOT NULL,
            registration_number VARCHAR(64)     NOT NULL,
            description         TEXT,
            verified            BOOLEAN         NOT NULL DEFAULT FALSE,
            verified_by         UUID            REFERENCES users (id),
            verified_at         TIMESTAMPTZ,
            highest_bid         BIGINT          NOT NULL DEFAULT 0,
            highest_bidder_id   UUID            REFERENCES users (id),
            winning_bid_id      VARCHAR(32),
            resolved_at         TIMESTAMPTZ,
            starting_bid_amount BIGINT,
            auction_start_at    TIMESTAMPTZ,
            auction_end_at      TIMESTAMPTZ,
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_listings_highest_bid      CHECK (highest_bid >= 0),
            CONSTRAINT ck_listings_starting_bid     CHECK (
                starting_bid_amount IS NULL OR starting_bid_amount > 0
            ),
            CONSTRAINT ck_listings_auction_pair     CHECK (
                (auction_start_at IS NULL) = (auction_end_at IS NULL)
            ),
            CONSTRAINT ck_listings_auction_order    CHECK (
                auction_end_at IS NULL OR auction_end_at > auction_start_at
            ),
            CONSTRAINT ck_listings_verified_fields  CHECK (
                verified = FALSE OR verified_at IS NOT NULL
            )
        );
    """)
    op.execute("CREATE INDEX idx_listings_seller ON listings (seller_id, id DESC);")
    op.execute("CREATE INDEX idx_listings_verified ON listings (verified, id DESC);")
    op.execute("""
        CREATE INDEX idx_listings_auction_open
        ON listings (auction_end_at)
        WHERE resolved_at IS NULL AND verified = TRUE;
    """)
    op.execute("""
        CREATE TRIGGER trg_listings_updated_at
            BEFORE UPDATE ON listings
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)
    op.execute(
        "COMMENT ON COLUMN listings.highest_bid IS "
        "'Highest open bid snapshot; written only by the bidding engine';"
    )


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS listings CASCADE;")
