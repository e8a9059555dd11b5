"""003: create posts table (artwork posts + their market fields)

Revision ID: 003
Revises: 002
Create Date: 2026-10-12
"""
from typing import Sequence, Union
from alembic import op

revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE posts (
            id              VARCHAR(64)     PRIMARY KEY,
            author_id       UUID            NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            title           VARCHAR(200)    NOT NULL,
            description     TEXT,
            image_url       TEXT,
            image_key       VARCHAR(255),
            category        VARCHAR(64),
            is_in_market    BOOLEAN         NOT NULL DEFAULT FALSE,
            starting_price  NUMERIC(12, 2),
            reserve_price   NUMERIC(12, 2),
            auction_end_at  TIMESTAMPTZ,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_posts_has_image CHECK (image_url IS NOT NULL OR image_key IS NOT NULL),
            CONSTRAINT ck_posts_market_fields CHECK (
                (is_in_market AND starting_price IS NOT NULL AND auction_end_at IS NOT NULL)
                OR (NOT is_in_market AND starting_price IS NULL
                    AND reserve_price IS NULL AND auction_end_at IS NULL)
            ),
            CONSTRAINT ck_posts_starting_price_gt_0 CHECK (starting_price IS NULL OR starting_price > 0),
            CONSTRAINT ck_posts_reserve_price_gte_0 CHECK (reserve_price IS NULL OR reserve_price >= 0)
        );
    """)
    op.execute("CREATE INDEX idx_posts_author ON posts (author_id);")
    op.execute("""
        CREATE INDEX idx_posts_market_end ON posts (auction_end_at, id)
        WHERE is_in_market;
    """)
    op.execute("""
        CREATE TRIGGER trg_posts_updated_at
            BEFORE UPDATE ON posts
            FOR EACH ROW EXECUTE FUNCTION fn_touch_updated_at();
    """)
    op.execute("COMMENT ON TABLE posts IS 'Artwork posts; market columns set only while listed';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS posts CASCADE;")
