"""Request and response contracts for the routing backend.

These Pydantic models define the wire interface. Bodies are camelCase JSON.
"""

from suiroute.contracts.coins import (
    Balance,
    CoinAmount,
    CoinType,
    RouterModel,
    Slippage,
)
from suiroute.contracts.routes import (
    CompleteTradeRoute,
    ExternalFee,
    RouteModel,
    RouterTradeCoin,
    RouterTradePath,
    RouterTradeRoute,
)
from suiroute.contracts.requests import (
    GivenAmountInRequest,
    GivenAmountOutRequest,
    TradeRouteRequest,
    TradeRouteRequestBase,
)
from suiroute.contracts.transactions import (
    AddTransactionForCompleteTradeRouteBody,
    AddTransactionForCompleteTradeRouteResponse,
    TransactionForCompleteTradeRouteBody,
)
from suiroute.contracts.events import TradeEvent, TradeEventsFilter

__all__ = [
    # Coin types
    "Balance",
    "CoinAmount",
    "CoinType",
    "RouterModel",
    "Slippage",
    # Route contracts
    "CompleteTradeRoute",
    "ExternalFee",
    "RouteModel",
    "RouterTradeCoin",
    "RouterTradePath",
    "RouterTradeRoute",
    # Quote requests
    "GivenAmountInRequest",
    "GivenAmountOutRequest",
    "TradeRouteRequest",
    "TradeRouteRequestBase",
    # Transaction contracts
    "AddTransactionForCompleteTradeRouteBody",
    "AddTransactionForCompleteTradeRouteResponse",
    "TransactionForCompleteTradeRouteBody",
    # Event contracts
    "TradeEvent",
    "TradeEventsFilter",
]
