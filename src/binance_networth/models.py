from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

Strategy = Literal["unified", "per_account"]


class NetWorthSummary(BaseModel):
    """Quote-currency totals per account category plus the grand total.

    Numeric fields are always present (zero when unknown) so spreadsheet and
    dashboard consumers can read them even from an error response.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    spot_usdt: float = Field(default=0.0)
    futures_cross_usdt: float = Field(default=0.0)
    futures_isolated_usdt: float = Field(default=0.0)
    futures_total_usdt: float = Field(default=0.0)
    trading_bot_usdt: float = Field(default=0.0)
    total_usdt: float = Field(default=0.0)

    strategy: Optional[Strategy] = None
    as_of: Optional[datetime] = None
    error: Optional[str] = None

    @classmethod
    def zeroed(cls, error: str, *, as_of: datetime | None = None) -> "NetWorthSummary":
        return cls(error=error, as_of=as_of)


class ErrorResponse(BaseModel):
    error: str
