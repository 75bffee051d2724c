"""Transaction composition contracts.

These bodies ask the backend for unsigned transactions. Nothing here is
signed or submitted.
"""

from typing import Optional

from pydantic import AliasChoices, Field

from suiroute.contracts.coins import RouterModel, Slippage
from suiroute.contracts.routes import CompleteTradeRoute
from suiroute.transactions import TransactionArgument


class TransactionForCompleteTradeRouteBody(RouterModel):
    """Request for a fresh, ready-to-sign trade transaction."""

    wallet_address: str = Field(..., min_length=1, description="Trader address")
    complete_route: CompleteTradeRoute = Field(..., description="Route selected from a quote")
    slippage: Slippage = Field(..., description="Max tolerated adverse movement")
    is_sponsored_tx: bool = Field(default=False, description="Gas paid by a sponsor")


class AddTransactionForCompleteTradeRouteBody(TransactionForCompleteTradeRouteBody):
    """Request to append a trade leg to an in-progress transaction."""

    serialized_tx: str = Field(..., description="Snapshot of the transaction to extend")
    coin_in_id: Optional[TransactionArgument] = Field(
        None, description="Coin produced earlier in the transaction to trade from"
    )


class AddTransactionForCompleteTradeRouteResponse(RouterModel):
    """Backend response for an appended trade leg."""

    tx: str = Field(
        ...,
        validation_alias=AliasChoices("tx", "serializedTx"),
        description="Serialized transaction including the new leg",
    )
    coin_out_id: TransactionArgument = Field(
        ..., description="Reference to the coin the appended leg produces"
    )
