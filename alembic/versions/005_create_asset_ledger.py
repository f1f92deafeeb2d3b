"""005: create asset_balances and asset_allowances

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
        CREATE TABLE asset_balances (
            owner_id    VARCHAR(128)    PRIMARY KEY,
            balance     BIGINT          NOT NULL DEFAULT 0,
            updated_at  TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_asset_balances_gte_0 CHECK (balance >= 0)
        );
    """)
    op.execute("""
        CREATE TABLE asset_allowances (
            owner_id    VARCHAR(128)    NOT NULL,
            spender_id  VARCHAR(128)    NOT NULL,
            amount      BIGINT          NOT NULL DEFAULT 0,
            updated_at  TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            PRIMARY KEY (owner_id, spender_id),
            CONSTRAINT ck_asset_allowances_gte_0 CHECK (amount >= 0)
        );
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS asset_allowances CASCADE;")
    op.execute("DROP TABLE IF EXISTS asset_balances CASCADE;")
