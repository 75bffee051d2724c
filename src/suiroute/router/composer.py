"""Transaction composition for selected trade routes.

Builds unsigned transactions for client-side signing. NO signing or
broadcasting happens here.
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional

from pydantic import ValidationError as PydanticValidationError

from suiroute.contracts.routes import CompleteTradeRoute
from suiroute.contracts.transactions import (
    AddTransactionForCompleteTradeRouteBody,
    AddTransactionForCompleteTradeRouteResponse,
    TransactionForCompleteTradeRouteBody,
)
from suiroute.errors import RouteInvalidError, ServerError, ValidationError
from suiroute.router.builder import check_external_fee, check_slippage
from suiroute.router.cancel import CancelToken
from suiroute.router.transport import RouterTransport
from suiroute.transactions import Transaction, TransactionArgument
from suiroute.utils.locks import TransactionLock, TransactionLockRegistry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AddTradeResult:
    """Outcome of appending a trade leg to a transaction."""

    tx: Transaction
    coin_out_id: TransactionArgument


class TransactionComposer:
    """Requests executable trade transactions from the backend.

    Neither protocol is retried: retrying an augmentation could append the
    same trade leg twice.
    """

    def __init__(self, transport: RouterTransport, lock_timeout: Optional[float] = 30.0):
        self.transport = transport
        self.lock_timeout = lock_timeout
        self._locks = TransactionLockRegistry()

    async def get_transaction_for_complete_trade_route(
        self,
        complete_route: CompleteTradeRoute,
        wallet_address: str,
        slippage: float,
        is_sponsored_tx: bool = False,
        cancel_token: Optional[CancelToken] = None,
    ) -> Transaction:
        """Build a fresh, ready-to-sign transaction for a route.

        Args:
            complete_route: Route (or sub-route) selected from a quote
            wallet_address: Trader address
            slippage: Max tolerated adverse movement (0.01 = 1%)
            is_sponsored_tx: Whether gas is paid by a sponsor
            cancel_token: Optional token aborting the request

        Returns:
            Unsigned transaction for the caller's wallet to sign

        Raises:
            RouteInvalidError: If the backend rejects the route as stale
        """
        self._check_trade(complete_route, slippage)
        body = self._build_body(
            TransactionForCompleteTradeRouteBody,
            complete_route=complete_route,
            wallet_address=wallet_address,
            slippage=slippage,
            is_sponsored_tx=is_sponsored_tx,
        )

        logger.info(
            f"Requesting trade transaction: {complete_route.coin_in.amount} "
            f"{complete_route.coin_in.type} -> {complete_route.coin_out.type}"
        )
        try:
            serialized = await self.transport.fetch_transaction(
                "transactions/trade", body, cancel_token=cancel_token
            )
        except ServerError as e:
            if e.is_rejection:
                logger.warning(f"Route rejected by backend: {e.message}")
                raise RouteInvalidError.from_server_error(e) from e
            raise

        return self._deserialize(serialized)

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
        """Append a trade leg to an in-progress transaction.

        The transaction is serialized, sent with the trade parameters, and the
        backend's extended transaction is deserialized into a new object. The
        caller's ``tx`` is never modified; it is locked against mutation until
        the call finishes.

        Args:
            tx: Transaction to extend
            complete_route: Route selected from a quote
            wallet_address: Trader address
            slippage: Max tolerated adverse movement (0.01 = 1%)
            coin_in_id: Coin produced earlier in ``tx`` to trade from
            is_sponsored_tx: Whether gas is paid by a sponsor
            cancel_token: Optional token aborting the request

        Returns:
            AddTradeResult with the extended transaction and the output coin

        Raises:
            ValidationError/FeeExceededError: Before any network call
            RouteInvalidError/ServerError: If the backend rejects the trade
            TransportError: On network failure
            CancelledError: If ``cancel_token`` fires first
            LockTimeoutError: If another augmentation of ``tx`` does not finish in time
        """
        self._check_trade(complete_route, slippage)

        async with TransactionLock(
            self._locks, tx, timeout=self.lock_timeout, operation="add-trade"
        ):
            body = self._build_body(
                AddTransactionForCompleteTradeRouteBody,
                complete_route=complete_route,
                wallet_address=wallet_address,
                slippage=slippage,
                is_sponsored_tx=is_sponsored_tx,
                serialized_tx=tx.serialize(),
                coin_in_id=coin_in_id,
            )

            logger.info(
                f"Adding trade to {tx!r}: {complete_route.coin_in.amount} "
                f"{complete_route.coin_in.type} -> {complete_route.coin_out.type}"
            )
            try:
                data = await self.transport.fetch_json(
                    "transactions/add-trade", body, cancel_token=cancel_token
                )
            except ServerError as e:
                if e.is_rejection:
                    logger.warning(f"Trade leg rejected by backend: {e.message}")
                    raise RouteInvalidError.from_server_error(e) from e
                raise

            try:
                response = AddTransactionForCompleteTradeRouteResponse.model_validate(data)
            except PydanticValidationError as e:
                raise ServerError(f"Invalid add-trade response: {e}") from e

            new_tx = self._deserialize(response.tx)

        logger.info(f"Trade added: {new_tx!r}, coin out {response.coin_out_id.model_dump()}")
        return AddTradeResult(tx=new_tx, coin_out_id=response.coin_out_id)

    @staticmethod
    def _check_trade(complete_route: CompleteTradeRoute, slippage: float) -> None:
        """Local checks shared by both protocols. Never touches the network."""
        if not isinstance(complete_route, CompleteTradeRoute):
            raise ValidationError("complete_route must be a CompleteTradeRoute")
        check_slippage(slippage)
        check_external_fee(complete_route.external_fee)

    @staticmethod
    def _build_body(model: type, **fields: Any) -> dict:
        try:
            return model(**fields).to_wire()
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid transaction request: {e}") from e

    @staticmethod
    def _deserialize(serialized: str) -> Transaction:
        try:
            return Transaction.from_serialized(serialized)
        except ValueError as e:
            raise ServerError(f"Backend returned an undecodable transaction: {e}") from e
