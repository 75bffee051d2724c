"""Tests for trade transaction composition."""

import asyncio
import json

import httpx
import pytest

from suiroute.contracts.routes import CompleteTradeRoute
from suiroute.errors import (
    CancelledError,
    FeeExceededError,
    LockTimeoutError,
    RouteInvalidError,
    ServerError,
    TransactionLockedError,
    TransportError,
    ValidationError,
)
from suiroute.router.cancel import CancelToken
from suiroute.transactions import Transaction, TransactionArgument

from tests.factories import WALLET, make_route_payload, make_tx_data

SPLIT_COMMAND = {"SplitCoins": {"coin": {"GasCoin": True}, "amounts": [{"Input": 0}]}}
SWAP_COMMAND = {
    "MoveCall": {
        "package": "0xrouter",
        "module": "router",
        "function": "swap_exact_in",
        "arguments": [{"Result": 0}],
    }
}


@pytest.fixture
def complete_route() -> CompleteTradeRoute:
    return CompleteTradeRoute.model_validate(
        make_route_payload(coin_in_amount=1_000_000, splits=[700_000, 300_000])
    )


@pytest.fixture
def tx() -> Transaction:
    """In-progress transaction with one split command."""
    tx = Transaction.from_serialized(json.dumps(make_tx_data()))
    tx.add_command(SPLIT_COMMAND)
    return tx


def add_trade_handler(backend, coin_out_id=None, key="tx"):
    """Mock backend that appends SWAP_COMMAND to the transaction it receives."""
    coin_out_id = coin_out_id or {"NestedResult": [1, 0]}

    def handler(request):
        body = backend.body_of(request)
        data = json.loads(body["serializedTx"])
        data["commands"].append(SWAP_COMMAND)
        return httpx.Response(200, json={key: json.dumps(data), "coinOutId": coin_out_id})

    return handler


class TestFreshBuild:
    """Tests for building a new trade transaction."""

    @pytest.mark.asyncio
    async def test_build_transaction(self, router, backend, complete_route):
        tx_data = make_tx_data([SPLIT_COMMAND, SWAP_COMMAND])
        backend.on("POST", "transactions/trade", json.dumps(tx_data))

        tx = await router.get_transaction_for_complete_trade_route(
            complete_route, WALLET, slippage=0.01
        )

        assert isinstance(tx, Transaction)
        assert tx.commands == [SPLIT_COMMAND, SWAP_COMMAND]
        assert tx.sender == WALLET

        body = backend.body_of(backend.calls("transactions/trade")[0])
        assert body["walletAddress"] == WALLET
        assert body["slippage"] == 0.01
        assert body["isSponsoredTx"] is False
        assert body["completeRoute"]["coinIn"]["amount"] == 1_000_000
        assert len(body["completeRoute"]["routes"]) == 2

    @pytest.mark.asyncio
    async def test_build_accepts_transaction_object(self, router, backend, complete_route):
        """Test the backend may return transaction data as an object."""
        backend.on("POST", "transactions/trade", make_tx_data([SWAP_COMMAND]))

        tx = await router.get_transaction_for_complete_trade_route(
            complete_route, WALLET, slippage=0.01
        )

        assert tx.commands == [SWAP_COMMAND]

    @pytest.mark.asyncio
    async def test_build_sub_route(self, router, backend, complete_route):
        """Test a slice of the route can be built on its own."""
        backend.on("POST", "transactions/trade", make_tx_data([SWAP_COMMAND]))

        partial = complete_route.sub_route([1])
        await router.get_transaction_for_complete_trade_route(partial, WALLET, slippage=0.01)

        body = backend.body_of(backend.calls("transactions/trade")[0])
        assert body["completeRoute"]["coinIn"]["amount"] == 300_000
        assert len(body["completeRoute"]["routes"]) == 1

    @pytest.mark.asyncio
    async def test_route_sent_back_with_unmodelled_fields(self, router, backend):
        """Test backend route fields survive the quote -> build round trip."""
        payload = make_route_payload(routeId="route-42")
        payload["routes"][0]["paths"][0]["extraPathData"] = {"tick": 17}
        route = CompleteTradeRoute.model_validate(payload)
        backend.on("POST", "transactions/trade", make_tx_data([SWAP_COMMAND]))
        backend.on("POST", "transactions/add-trade", handler=add_trade_handler(backend))

        await router.get_transaction_for_complete_trade_route(route, WALLET, slippage=0.01)
        await router.add_transaction_for_complete_trade_route(
            Transaction(sender=WALLET), route, WALLET, slippage=0.01
        )

        for path in ("transactions/trade", "transactions/add-trade"):
            sent = backend.body_of(backend.calls(path)[0])["completeRoute"]
            assert sent["routeId"] == "route-42"
            assert sent["routes"][0]["paths"][0]["extraPathData"] == {"tick": 17}
            assert sent["routes"][0]["portion"] == 1.0

    @pytest.mark.asyncio
    async def test_stale_route(self, router, backend, complete_route):
        backend.on(
            "POST", "transactions/trade", {"message": "pool state changed"}, status_code=409
        )

        with pytest.raises(RouteInvalidError, match="pool state changed"):
            await router.get_transaction_for_complete_trade_route(
                complete_route, WALLET, slippage=0.01
            )

    @pytest.mark.asyncio
    async def test_undecodable_transaction(self, router, backend, complete_route):
        backend.on("POST", "transactions/trade", "not a transaction")

        with pytest.raises(ServerError, match="undecodable"):
            await router.get_transaction_for_complete_trade_route(
                complete_route, WALLET, slippage=0.01
            )

    @pytest.mark.asyncio
    async def test_excessive_fee_never_reaches_network(self, router, backend):
        route = CompleteTradeRoute.model_validate(
            make_route_payload(externalFee={"recipient": WALLET, "feePercentage": 0.9})
        )

        with pytest.raises(FeeExceededError):
            await router.get_transaction_for_complete_trade_route(route, WALLET, slippage=0.01)

        assert backend.requests == []


class TestAugmentation:
    """Tests for appending a trade leg to an existing transaction."""

    @pytest.mark.asyncio
    async def test_round_trip(self, router, backend, complete_route, tx):
        """Test result holds the original commands plus the new trade leg."""
        backend.on("POST", "transactions/add-trade", handler=add_trade_handler(backend))

        result = await router.add_transaction_for_complete_trade_route(
            tx, complete_route, WALLET, slippage=0.01
        )

        expected = tx.copy()
        expected.add_command(SWAP_COMMAND)
        assert result.tx.is_equivalent(expected)
        assert result.tx.commands == [SPLIT_COMMAND, SWAP_COMMAND]
        assert result.coin_out_id == TransactionArgument.nested_result(1, 0)

    @pytest.mark.asyncio
    async def test_serialized_snapshot_sent(self, router, backend, complete_route, tx):
        backend.on("POST", "transactions/add-trade", handler=add_trade_handler(backend))

        await router.add_transaction_for_complete_trade_route(
            tx, complete_route, WALLET, slippage=0.005, is_sponsored_tx=True
        )

        body = backend.body_of(backend.calls("transactions/add-trade")[0])
        assert Transaction.from_serialized(body["serializedTx"]).is_equivalent(tx)
        assert body["walletAddress"] == WALLET
        assert body["slippage"] == 0.005
        assert body["isSponsoredTx"] is True
        assert "coinInId" not in body

    @pytest.mark.asyncio
    async def test_input_not_mutated(self, router, backend, complete_route, tx):
        before = tx.serialize()
        backend.on("POST", "transactions/add-trade", handler=add_trade_handler(backend))

        result = await router.add_transaction_for_complete_trade_route(
            tx, complete_route, WALLET, slippage=0.01
        )

        assert tx.serialize() == before
        assert result.tx is not tx
        assert not tx.is_locked

    @pytest.mark.asyncio
    async def test_serialized_tx_response_key(self, router, backend, complete_route, tx):
        """Test the response may name the transaction serializedTx."""
        backend.on(
            "POST",
            "transactions/add-trade",
            handler=add_trade_handler(backend, coin_out_id={"Result": 1}, key="serializedTx"),
        )

        result = await router.add_transaction_for_complete_trade_route(
            tx, complete_route, WALLET, slippage=0.01
        )

        assert result.coin_out_id == TransactionArgument.result(1)

    @pytest.mark.asyncio
    async def test_chaining_legs(self, router, backend, complete_route, tx):
        """Test a coin produced by one leg feeds the next leg."""
        backend.on(
            "POST",
            "transactions/add-trade",
            handler=add_trade_handler(backend, coin_out_id={"NestedResult": [1, 0]}),
        )

        first = await router.add_transaction_for_complete_trade_route(
            tx, complete_route, WALLET, slippage=0.01
        )
        second = await router.add_transaction_for_complete_trade_route(
            first.tx, complete_route, WALLET, slippage=0.01, coin_in_id=first.coin_out_id
        )

        body = backend.body_of(backend.calls("transactions/add-trade")[1])
        assert body["coinInId"] == {"NestedResult": [1, 0]}
        assert len(second.tx.commands) == 3

    @pytest.mark.asyncio
    async def test_rejection_leaves_tx_untouched(self, router, backend, complete_route, tx):
        before = tx.serialize()
        backend.on(
            "POST", "transactions/add-trade", {"message": "route expired"}, status_code=422
        )

        with pytest.raises(RouteInvalidError):
            await router.add_transaction_for_complete_trade_route(
                tx, complete_route, WALLET, slippage=0.01
            )

        assert tx.serialize() == before
        assert not tx.is_locked
        tx.add_command(SWAP_COMMAND)

    @pytest.mark.asyncio
    async def test_server_error_not_retried(self, router, backend, complete_route, tx):
        backend.on("POST", "transactions/add-trade", {"message": "boom"}, status_code=503)

        with pytest.raises(ServerError) as exc_info:
            await router.add_transaction_for_complete_trade_route(
                tx, complete_route, WALLET, slippage=0.01
            )

        assert exc_info.value.status_code == 503
        assert len(backend.calls("transactions/add-trade")) == 1

    @pytest.mark.asyncio
    async def test_transport_error(self, router, backend, complete_route, tx):
        def drop(request):
            raise httpx.ReadTimeout("read timed out", request=request)

        backend.on("POST", "transactions/add-trade", handler=drop)

        with pytest.raises(TransportError, match="read timed out"):
            await router.add_transaction_for_complete_trade_route(
                tx, complete_route, WALLET, slippage=0.01
            )
        assert len(backend.calls("transactions/add-trade")) == 1

    @pytest.mark.asyncio
    async def test_malformed_response(self, router, backend, complete_route, tx):
        backend.on("POST", "transactions/add-trade", {"tx": "{}"})

        with pytest.raises(ServerError, match="add-trade"):
            await router.add_transaction_for_complete_trade_route(
                tx, complete_route, WALLET, slippage=0.01
            )

    @pytest.mark.asyncio
    async def test_invalid_slippage(self, router, backend, complete_route, tx):
        with pytest.raises(ValidationError):
            await router.add_transaction_for_complete_trade_route(
                tx, complete_route, WALLET, slippage=1.2
            )
        assert backend.requests == []

    @pytest.mark.asyncio
    async def test_tx_locked_while_in_flight(self, router, backend, complete_route, tx):
        """Test the transaction rejects mutation until the backend answers."""
        started = asyncio.Event()
        release = asyncio.Event()
        inner = add_trade_handler(backend)

        async def gated(request):
            started.set()
            await release.wait()
            return inner(request)

        backend.on("POST", "transactions/add-trade", handler=gated)

        task = asyncio.create_task(
            router.add_transaction_for_complete_trade_route(
                tx, complete_route, WALLET, slippage=0.01
            )
        )
        await started.wait()

        assert tx.is_locked
        with pytest.raises(TransactionLockedError):
            tx.add_command(SWAP_COMMAND)

        release.set()
        result = await task

        assert not tx.is_locked
        assert len(result.tx.commands) == 2

    @pytest.mark.asyncio
    async def test_concurrent_augmentations_serialize(self, router, backend, complete_route, tx):
        """Test a second augmentation of the same tx waits for the first."""
        active = []
        overlaps = []
        inner = add_trade_handler(backend)

        async def tracked(request):
            if active:
                overlaps.append(True)
            active.append(True)
            await asyncio.sleep(0.02)
            active.pop()
            return inner(request)

        backend.on("POST", "transactions/add-trade", handler=tracked)

        results = await asyncio.gather(
            router.add_transaction_for_complete_trade_route(tx, complete_route, WALLET, 0.01),
            router.add_transaction_for_complete_trade_route(tx, complete_route, WALLET, 0.01),
        )

        assert overlaps == []
        assert all(len(r.tx.commands) == 2 for r in results)

    @pytest.mark.asyncio
    async def test_lock_timeout(self, router, backend, complete_route, tx):
        release = asyncio.Event()
        inner = add_trade_handler(backend)

        async def gated(request):
            await release.wait()
            return inner(request)

        backend.on("POST", "transactions/add-trade", handler=gated)
        router.composer.lock_timeout = 0.05

        first = asyncio.create_task(
            router.add_transaction_for_complete_trade_route(tx, complete_route, WALLET, 0.01)
        )
        await asyncio.sleep(0.01)

        with pytest.raises(LockTimeoutError):
            await router.add_transaction_for_complete_trade_route(
                tx, complete_route, WALLET, 0.01
            )

        release.set()
        await first
        assert len(backend.calls("transactions/add-trade")) == 1

    @pytest.mark.asyncio
    async def test_cancel_augmentation(self, router, backend, complete_route, tx):
        before = tx.serialize()
        started = asyncio.Event()

        async def slow(request):
            started.set()
            await asyncio.sleep(10)
            return httpx.Response(200, json={})

        backend.on("POST", "transactions/add-trade", handler=slow)
        token = CancelToken()

        task = asyncio.create_task(
            router.add_transaction_for_complete_trade_route(
                tx, complete_route, WALLET, slippage=0.01, cancel_token=token
            )
        )
        await started.wait()
        token.cancel()

        with pytest.raises(CancelledError):
            await task

        assert tx.serialize() == before
        assert not tx.is_locked
