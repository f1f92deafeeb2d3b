"""002: create markets table

Revision ID: 002
Revises: 001
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE markets (
            id                      BIGINT          PRIMARY KEY,
            question                TEXT            NOT NULL,
            resolution_ts           TIMESTAMPTZ     NOT NULL,
            state                   VARCHAR(20)     NOT NULL DEFAULT 'ACTIVE',
            winning_outcome         VARCHAR(10)     NOT NULL DEFAULT 'NONE',
            yes_pool                BIGINT          NOT NULL DEFAULT 0,
            no_pool                 BIGINT          NOT NULL DEFAULT 0,
            creation_fee            BIGINT          NOT NULL DEFAULT 0,
            creator                 VARCHAR(128)    NOT NULL,
            snapshot_fee_recipient  VARCHAR(128)    NOT NULL,
            snapshot_max_fee_bps    SMALLINT        NOT NULL,
            created_at              TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            finalized_at            TIMESTAMPTZ,
            updated_at              TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_markets_id_positive        CHECK (id >= 1),
            CONSTRAINT ck_markets_question_not_empty CHECK (length(btrim(question)) > 0),
            CONSTRAINT ck_markets_yes_pool_gte_0     CHECK (yes_pool >= 0),
            CONSTRAINT ck_markets_no_pool_gte_0      CHECK (no_pool >= 0),
            CONSTRAINT ck_markets_fee_gte_0          CHECK (creation_fee >= 0),
            CONSTRAINT ck_markets_state CHECK (state IN ('ACTIVE', 'RESOLVED', 'CANCELLED')),
            CONSTRAINT ck_markets_outcome CHECK (winning_outcome IN ('NONE', 'YES', 'NO')),
            CONSTRAINT ck_markets_outcome_iff_resolved CHECK (
                (state = 'RESOLVED') = (winning_outcome <> 'NONE')
            ),
            CONSTRAINT ck_markets_resolved_two_sided CHECK (
                state <> 'RESOLVED' OR (yes_pool > 0 AND no_pool > 0)
            )
        );
    """)
    op.execute("CREATE INDEX idx_markets_state ON markets (state);")
    op.execute("COMMENT ON TABLE markets IS 'Pot markets: pools, lifecycle state, frozen fee snapshot';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS markets CASCADE;")
