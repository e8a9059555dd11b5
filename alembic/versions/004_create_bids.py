"""004: create bids table (one standing bid per post and bidder)

Revision ID: 004
Revises: 003
Create Date: 2026-10-12
"""
from typing import Sequence, Union
from alembic import op

revision: str = "004"
down_revision: Union[str, None] = "003"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE bids (
            id              VARCHAR(64)     PRIMARY KEY,
            post_id         VARCHAR(64)     NOT NULL REFERENCES posts(id) ON DELETE CASCADE,
            bidder_id       UUID            NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            amount          NUMERIC(12, 2)  NOT NULL,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at      TIMESTAMPTZ,
            CONSTRAINT uq_bids_post_bidder UNIQUE (post_id, bidder_id),
            CONSTRAINT ck_bids_amount_gt_0 CHECK (amount > 0)
        );
    """)
    # Leader lookup: highest amount, earliest first
    op.execute("""
        CREATE INDEX idx_bids_post_leader
            ON bids (post_id, amount DESC, created_at ASC, id ASC);
    """)
    op.execute("CREATE INDEX idx_bids_bidder_created ON bids (bidder_id, created_at DESC);")
    op.execute("COMMENT ON TABLE bids IS 'Standing bids; raising a bid updates the row in place';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS bids CASCADE;")
