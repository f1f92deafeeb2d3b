"""001: create registry_config singleton

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
    op.execute("""
        CREATE TABLE registry_config (
            id              SMALLINT        PRIMARY KEY,
            admin_id        VARCHAR(128)    NOT NULL,
            fee_recipient   VARCHAR(128)    NOT NULL,
            max_fee_bps     SMALLINT        NOT NULL,
            paused          BOOLEAN         NOT NULL DEFAULT FALSE,
            market_count    BIGINT          NOT NULL DEFAULT 0,
            updated_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_registry_config_singleton CHECK (id = 1),
            CONSTRAINT ck_registry_config_fee_cap CHECK (max_fee_bps >= 0 AND max_fee_bps <= 1000),
            CONSTRAINT ck_registry_config_count_gte_0 CHECK (market_count >= 0)
        );
    """)
    op.execute(
        "COMMENT ON TABLE registry_config IS "
        "'Global registry configuration; row id=1 is seeded at app startup';"
    )


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS registry_config CASCADE;")
