"""Quote request bodies for the ``trade-route`` endpoint."""

from typing import Optional, Union

from pydantic import Field

from suiroute.contracts.coins import Balance, CoinType, RouterModel, Slippage
from suiroute.contracts.routes import ExternalFee


class TradeRouteRequestBase(RouterModel):
    """Inputs common to both quoting modes."""

    coin_in_type: CoinType = Field(..., min_length=1, description="Coin being given away")
    coin_out_type: CoinType = Field(..., min_length=1, description="Coin being received")
    referrer: Optional[str] = Field(None, description="Referrer address")
    external_fee: Optional[ExternalFee] = Field(None, description="Integrator fee")
    protocol_whitelist: Optional[list[str]] = Field(
        None, description="Only route through these protocols"
    )
    protocol_blacklist: Optional[list[str]] = Field(
        None, description="Never route through these protocols"
    )


class GivenAmountInRequest(TradeRouteRequestBase):
    """Fixed-input quote: spend exactly ``coin_in_amount``."""

    coin_in_amount: Balance = Field(..., description="Amount of coin being given away")


class GivenAmountOutRequest(TradeRouteRequestBase):
    """Fixed-output quote: receive ``coin_out_amount`` within ``slippage``."""

    coin_out_amount: Balance = Field(..., description="Amount of coin expected to receive")
    slippage: Slippage = Field(..., description="Max tolerated adverse movement (0.01 = 1%)")


TradeRouteRequest = Union[GivenAmountInRequest, GivenAmountOutRequest]
