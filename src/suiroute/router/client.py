"""Quote and read requests against the routing backend."""

import logging
from typing import Any, Optional
from urllib.parse import quote

from pydantic import ValidationError as PydanticValidationError

from suiroute.contracts.coins import CoinType
from suiroute.contracts.requests import GivenAmountInRequest, TradeRouteRequest
from suiroute.contracts.routes import CompleteTradeRoute
from suiroute.errors import RouteInvalidError, ServerError
from suiroute.router.builder import QuoteRequestBuilder
from suiroute.router.cancel import CancelToken
from suiroute.router.transport import RouterTransport

logger = logging.getLogger(__name__)


class RouteClient:
    """Read-only router operations: volume, supported coins and quotes.

    No call is retried; retry policy belongs to the caller.
    """

    def __init__(
        self,
        transport: RouterTransport,
        builder: Optional[QuoteRequestBuilder] = None,
    ):
        self.transport = transport
        self.builder = builder or QuoteRequestBuilder()

    # =========================================================================
    #  Inspections
    # =========================================================================

    async def get_volume_24hrs(self, cancel_token: Optional[CancelToken] = None) -> float:
        """Get total trade volume over the trailing 24 hours."""
        data = await self.transport.fetch_json("volume-24hrs", cancel_token=cancel_token)
        if isinstance(data, bool) or not isinstance(data, (int, float)):
            raise ServerError(f"Expected a number for 24h volume, got {type(data).__name__}")
        return float(data)

    async def get_supported_coins(
        self, cancel_token: Optional[CancelToken] = None
    ) -> list[CoinType]:
        """Get every coin type the router can trade."""
        data = await self.transport.fetch_json("supported-coins", cancel_token=cancel_token)
        return self._parse_coin_types(data)

    async def search_supported_coins(
        self,
        filter: str,
        cancel_token: Optional[CancelToken] = None,
    ) -> list[CoinType]:
        """Get supported coin types matching a substring filter.

        An empty filter returns the same set as ``get_supported_coins``.
        """
        if not filter.strip():
            return await self.get_supported_coins(cancel_token=cancel_token)

        data = await self.transport.fetch_json(
            f"supported-coins/{quote(filter, safe='')}",
            cancel_token=cancel_token,
        )
        coins = self._parse_coin_types(data)
        logger.debug(f"Coin search '{filter}' matched {len(coins)} coin(s)")
        return coins

    # =========================================================================
    #  Quotes
    # =========================================================================

    async def get_complete_trade_route(
        self,
        request: TradeRouteRequest,
        cancel_token: Optional[CancelToken] = None,
    ) -> CompleteTradeRoute:
        """Create a route across pools and protocols for best execution price.

        Args:
            request: Built quote request (see ``QuoteRequestBuilder``)
            cancel_token: Optional token aborting the request

        Returns:
            Routes, paths, and amounts of each smaller trade within the trade

        Raises:
            RouteInvalidError: If the backend refuses to route the request
            ServerError: If the backend fails or returns an inconsistent route
            TransportError: On network failure
            CancelledError: If ``cancel_token`` fires first
        """
        logger.info(f"Requesting trade route: {request.coin_in_type} -> {request.coin_out_type}")

        try:
            data = await self.transport.fetch_json(
                "trade-route", request.to_wire(), cancel_token=cancel_token
            )
        except ServerError as e:
            if e.is_rejection:
                raise RouteInvalidError.from_server_error(e) from e
            raise

        route = self._parse_route(data)

        if isinstance(request, GivenAmountInRequest):
            if route.coin_in.amount != request.coin_in_amount:
                raise ServerError(
                    f"Route input {route.coin_in.amount} does not match "
                    f"requested amount {request.coin_in_amount}"
                )
        elif route.slippage is None:
            route = route.model_copy(update={"slippage": request.slippage})

        logger.info(
            f"Got route: {route.coin_in.amount} {route.coin_in.type} -> "
            f"{route.coin_out.amount} {route.coin_out.type} "
            f"via {len(route.routes)} route(s) ({', '.join(route.protocols)})"
        )
        return route

    async def get_complete_trade_route_given_amount_in(
        self,
        coin_in_type: CoinType,
        coin_out_type: CoinType,
        coin_in_amount: int,
        cancel_token: Optional[CancelToken] = None,
        **options: Any,
    ) -> CompleteTradeRoute:
        """Quote spending exactly ``coin_in_amount``."""
        request = self.builder.build_given_amount_in(
            coin_in_type, coin_out_type, coin_in_amount, **options
        )
        return await self.get_complete_trade_route(request, cancel_token=cancel_token)

    async def get_complete_trade_route_given_amount_out(
        self,
        coin_in_type: CoinType,
        coin_out_type: CoinType,
        coin_out_amount: int,
        slippage: float,
        cancel_token: Optional[CancelToken] = None,
        **options: Any,
    ) -> CompleteTradeRoute:
        """Quote receiving ``coin_out_amount`` within ``slippage``."""
        request = self.builder.build_given_amount_out(
            coin_in_type, coin_out_type, coin_out_amount, slippage, **options
        )
        return await self.get_complete_trade_route(request, cancel_token=cancel_token)

    # =========================================================================
    #  Parsing
    # =========================================================================

    @staticmethod
    def _parse_coin_types(data: Any) -> list[CoinType]:
        if not isinstance(data, list) or not all(isinstance(c, str) for c in data):
            raise ServerError("Expected a list of coin types")
        return data

    @staticmethod
    def _parse_route(data: Any) -> CompleteTradeRoute:
        try:
            return CompleteTradeRoute.model_validate(data)
        except PydanticValidationError as e:
            logger.error(f"Backend returned an invalid trade route: {e}")
            raise ServerError(f"Invalid trade route: {e}") from e
