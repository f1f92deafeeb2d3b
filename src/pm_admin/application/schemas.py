"""Admin request/response schemas."""

from pydantic import BaseModel, field_validator


class ResolveRequest(BaseModel):
    outcome: str

    @field_validator("outcome")
    @classmethod
    def _upper(cls, v: str) -> str:
        return v.strip().upper()


class UpdateConfigRequest(BaseModel):
    fee_recipient: str
    max_fee_bps: int


class InvariantReport(BaseModel):
    ok: bool
    markets_checked: int
    violations: list[str]
