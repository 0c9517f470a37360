"""007: create payments table

Revision ID: 007
Revises: 006
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "007"
down_revision: Union[str, None] = "006"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE payments (
            id                  VARCHAR(32)     PRIMARY KEY,
            listing_id          VARCHAR(32)     NOT NULL REFERENCES listings (id) ON DELETE CASCADE,
            payer_id            UUID            NOT NULL REFERENCES users (id),
            bid_id              VARCHAR(32)     NOT NULL REFERENCES bids (id) ON DELETE CASCADE,
            amount              BIGINT          NOT NULL,
            status              VARCHAR(16)     NOT NULL DEFAULT 'pending',
            gateway_order_id    VARCHAR(64),
            gateway_payment_id  VARCHAR(64),
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_payments_amount   CHECK (amount > 0),
            CONSTRAINT ck_payments_status   CHECK (status IN ('pending', 'success', 'failed')),
            CONSTRAINT uq_payments_gateway_order UNIQUE (gateway_order_id)
        );
    """)
    op.execute("CREATE INDEX idx_payments_bid ON payments (bid_id, created_at DESC);")
    op.execute("""
        CREATE TRIGGER trg_payments_updated_at
            BEFORE UPDATE ON payments
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)
    op.execute("""
        CREATE TRIGGER trg_payments_settled
            BEFORE UPDATE OR DELETE ON payments
            FOR EACH ROW EXECUTE FUNCTION fn_reject_settled_change();
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS payments CASCADE;")
