"""004: create market_events audit table

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
        CREATE TABLE market_events (
            id          BIGSERIAL       PRIMARY KEY,
            market_id   BIGINT          REFERENCES markets (id),
            event_type  VARCHAR(32)     NOT NULL,
            actor       VARCHAR(128)    NOT NULL,
            payload     JSONB           NOT NULL DEFAULT '{}'::jsonb,
            created_at  TIMESTAMPTZ     NOT NULL DEFAULT NOW()
        );
    """)
    op.execute("CREATE INDEX idx_market_events_market ON market_events (market_id, id);")
    op.execute(
        "COMMENT ON TABLE market_events IS "
        "'Append-only audit trail; market_id is NULL for registry-level events';"
    )


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS market_events CASCADE;")
