"""003: create positions table

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
        CREATE TABLE positions (
            market_id   BIGINT          NOT NULL REFERENCES markets (id),
            user_id     VARCHAR(128)    NOT NULL,
            yes_bet     BIGINT          NOT NULL DEFAULT 0,
            no_bet      BIGINT          NOT NULL DEFAULT 0,
            claimed     BOOLEAN         NOT NULL DEFAULT FALSE,
            payout      BIGINT          NOT NULL DEFAULT 0,
            created_at  TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at  TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            PRIMARY KEY (market_id, user_id),
            CONSTRAINT ck_positions_yes_gte_0    CHECK (yes_bet >= 0),
            CONSTRAINT ck_positions_no_gte_0     CHECK (no_bet >= 0),
            CONSTRAINT ck_positions_payout_gte_0 CHECK (payout >= 0)
        );
    """)
    op.execute("CREATE INDEX idx_positions_user ON positions (user_id);")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS positions CASCADE;")
