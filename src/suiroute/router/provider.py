"""Router provider: one object exposing every router operation.

Example:
    async with Router(SuiNetwork.MAINNET) as router:
        coins = await router.get_supported_coins()
        route = await router.get_complete_trade_route_given_amount_in(
            "0x2::sui::SUI", USDC, coin_in_amount=1_000_000_000
        )
"""

import logging
from typing import Any, AsyncIterator, Optional, Union

from suiroute.config import Settings, SuiNetwork, get_settings
from suiroute.contracts.coins import CoinType
from suiroute.contracts.events import TradeEvent, TradeEventsFilter
from suiroute.contracts.requests import TradeRouteRequest
from suiroute.contracts.routes import CompleteTradeRoute
from suiroute.router.builder import MAX_EXTERNAL_FEE_PERCENTAGE, QuoteRequestBuilder
from suiroute.router.cancel import CancelToken
from suiroute.router.client import RouteClient
from suiroute.router.composer import AddTradeResult, TransactionComposer
from suiroute.router.events import EventStream
from suiroute.router.transport import HttpTransport, RouterTransport
from suiroute.transactions import Transaction, TransactionArgument

logger = logging.getLogger(__name__)


class Router:
    """Client for the routing backend.

    Owns a single transport whose connection pool is released by
    ``aclose()`` or by leaving ``async with``.
    """

    constants = {
        # Max fee percentage that third parties can charge on router trades
        "max_external_fee_percentage": MAX_EXTERNAL_FEE_PERCENTAGE,
    }

    def __init__(
        self,
        network: Optional[SuiNetwork] = None,
        transport: Optional[RouterTransport] = None,
        settings: Optional[Settings] = None,
    ):
        """Initialize router client.

        Args:
            network: Sui network to use (defaults to settings)
            transport: Injected transport (an HttpTransport is created otherwise)
            settings: Settings override (defaults to get_settings())
        """
        self.settings = settings or get_settings()
        self.network = network or self.settings.network

        if transport is None:
            base_url = f"{self.settings.get_api_url(self.network)}/router"
            transport = HttpTransport(
                base_url,
                timeout=self.settings.request_timeout,
                stream_timeout=self.settings.stream_timeout,
            )
            logger.debug(f"Created HTTP transport for {self.network.value}: {base_url}")
        self.transport = transport

        self.builder = QuoteRequestBuilder()
        self.client = RouteClient(transport, self.builder)
        self.composer = TransactionComposer(transport, lock_timeout=self.settings.lock_timeout)
        self.events = EventStream(transport)

    async def aclose(self) -> None:
        await self.transport.aclose()

    async def __aenter__(self) -> "Router":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()
        return False

    # =========================================================================
    #  Inspections
    # =========================================================================

    async def get_volume_24hrs(self, cancel_token: Optional[CancelToken] = None) -> float:
        return await self.client.get_volume_24hrs(cancel_token=cancel_token)

    async def get_supported_coins(
        self, cancel_token: Optional[CancelToken] = None
    ) -> list[CoinType]:
        return await self.client.get_supported_coins(cancel_token=cancel_token)

    async def search_supported_coins(
        self, filter: str, cancel_token: Optional[CancelToken] = None
    ) -> list[CoinType]:
        return await self.client.search_supported_coins(filter, cancel_token=cancel_token)

    # =========================================================================
    #  Quotes
    # =========================================================================

    async def get_complete_trade_route(
        self,
        request: TradeRouteRequest,
        cancel_token: Optional[CancelToken] = None,
    ) -> CompleteTradeRoute:
        return await self.client.get_complete_trade_route(request, cancel_token=cancel_token)

    async def get_complete_trade_route_given_amount_in(
        self,
        coin_in_type: CoinType,
        coin_out_type: CoinType,
        coin_in_amount: int,
        cancel_token: Optional[CancelToken] = None,
        **options: Any,
    ) -> CompleteTradeRoute:
        return await self.client.get_complete_trade_route_given_amount_in(
            coin_in_type, coin_out_type, coin_in_amount, cancel_token=cancel_token, **options
        )

    async def get_complete_trade_route_given_amount_out(
        self,
        coin_in_type: CoinType,
        coin_out_type: CoinType,
        coin_out_amount: int,
        slippage: float,
        cancel_token: Optional[CancelToken] = None,
        **options: Any,
    ) -> CompleteTradeRoute:
        return await self.client.get_complete_trade_route_given_amount_out(
            coin_in_type,
            coin_out_type,
            coin_out_amount,
            slippage,
            cancel_token=cancel_token,
            **options,
        )

    # =========================================================================
    #  Transactions
    # =========================================================================

    async def get_transaction_for_complete_trade_route(
        self,
        complete_route: CompleteTradeRoute,
        wallet_address: str,
        slippage: float,
        is_sponsored_tx: bool = False,
        cancel_token: Optional[CancelToken] = None,
    ) -> Transaction:
        return await self.composer.get_transaction_for_complete_trade_route(
            complete_route,
            wallet_address,
            slippage,
            is_sponsored_tx=is_sponsored_tx,
            cancel_token=cancel_token,
        )

    async def add_transaction_for_complete_trade_route(
        self,
        tx: Transaction,
        complete_route: CompleteTradeRoute,
        wallet_address: str,
        slippage: float,
        coin_in_id: Optional[TransactionArgument] = None,
        is_sponsored_tx: bool = False,
        cancel_token: Optional[CancelToken] = None,
    ) -> AddTradeResult:
        return await self.composer.add_transaction_for_complete_trade_route(
            tx,
            complete_route,
            wallet_address,
            slippage,
            coin_in_id=coin_in_id,
            is_sponsored_tx=is_sponsored_tx,
            cancel_token=cancel_token,
        )

    # =========================================================================
    #  Events
    # =========================================================================

    def get_trade_events(
        self,
        filter: Optional[Union[TradeEventsFilter, dict]] = None,
        cancel_token: Optional[CancelToken] = None,
    ) -> AsyncIterator[TradeEvent]:
        return self.events.get_trade_events(filter, cancel_token=cancel_token)
