"""Trade event contracts."""

from datetime import datetime, timezone
from typing import Optional

from pydantic import Field

from suiroute.contracts.coins import CoinAmount, CoinType, RouterModel


class TradeEvent(RouterModel):
    """A historical trade executed through the router. Read-only."""

    txn_digest: str = Field(..., description="Digest of the executing transaction")
    timestamp: int = Field(..., ge=0, description="Execution time (ms since epoch)")
    type: str = Field(..., description="Move event type")
    coin_in: CoinAmount
    coin_out: CoinAmount
    trader: Optional[str] = None
    route_id: Optional[str] = None

    @property
    def executed_at(self) -> datetime:
        return datetime.fromtimestamp(self.timestamp / 1000, tz=timezone.utc)


class TradeEventsFilter(RouterModel):
    """Filter for the trade event stream. Owns cursor/offset semantics."""

    wallet_address: Optional[str] = None
    coin_in_type: Optional[CoinType] = None
    coin_out_type: Optional[CoinType] = None
    cursor: Optional[str] = Field(None, description="Resume after this event")
    limit: Optional[int] = Field(None, gt=0, description="Max events to deliver")
