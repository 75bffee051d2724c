"""Trade route contracts returned by the quoting endpoint."""

from decimal import ROUND_FLOOR, Decimal
from typing import Any, Optional, Sequence

from pydantic import ConfigDict, Field, model_validator

from suiroute.contracts.coins import Balance, CoinType, RouterModel, Slippage


class RouteModel(RouterModel):
    """Route contract that keeps backend fields it does not model.

    Routes are sent back verbatim when building transactions.
    """

    model_config = ConfigDict(extra="allow")


class ExternalFee(RouteModel):
    """Fee a third-party integrator levies on a trade."""

    recipient: str = Field(..., min_length=1, description="Address receiving the fee")
    fee_percentage: float = Field(..., ge=0, description="Fraction of the trade (0.01 = 1%)")


class RouterTradeCoin(RouteModel):
    """Coin leg of a route or path, including the fee charged on it."""

    type: CoinType
    amount: Balance
    trade_fee: Balance = 0


class RouterTradePath(RouteModel):
    """A single hop through one pool."""

    protocol_name: str
    pool_id: str
    coin_in: RouterTradeCoin
    coin_out: RouterTradeCoin
    spot_price: float
    pool_metadata: Optional[dict[str, Any]] = None


class RouterTradeRoute(RouteModel):
    """One path-set converting the input coin to the output coin."""

    paths: list[RouterTradePath] = Field(..., min_length=1)
    portion: Optional[float] = Field(
        default=None, ge=0, le=1, description="Share of the input routed here"
    )
    coin_in: RouterTradeCoin
    coin_out: RouterTradeCoin
    spot_price: float


class CompleteTradeRoute(RouteModel):
    """The full multi-route plan returned by a quote."""

    routes: list[RouterTradeRoute] = Field(..., min_length=1)
    coin_in: RouterTradeCoin
    coin_out: RouterTradeCoin
    spot_price: float
    net_trade_fee_percentage: float = 0.0
    referrer: Optional[str] = None
    external_fee: Optional[ExternalFee] = None
    slippage: Optional[Slippage] = None

    @model_validator(mode="after")
    def _check_route_amounts(self) -> "CompleteTradeRoute":
        routed_in = sum(route.coin_in.amount for route in self.routes)
        if routed_in != self.coin_in.amount:
            raise ValueError(
                f"route input amounts sum to {routed_in}, "
                f"expected aggregate input of {self.coin_in.amount}"
            )
        return self

    @property
    def coin_in_amount(self) -> int:
        return self.coin_in.amount

    @property
    def coin_out_amount(self) -> int:
        return self.coin_out.amount

    @property
    def protocols(self) -> list[str]:
        """Distinct protocols used across every path, in first-seen order."""
        seen: dict[str, None] = {}
        for route in self.routes:
            for path in route.paths:
                seen.setdefault(path.protocol_name, None)
        return list(seen)

    @property
    def min_amount_out(self) -> Optional[int]:
        """Minimum acceptable output under the route's slippage (advisory)."""
        if self.slippage is None:
            return None
        return self.min_amount_out_for(self.slippage)

    def sub_route(self, indices: Sequence[int]) -> "CompleteTradeRoute":
        """Keep only the routes at ``indices``, recomputing aggregate amounts."""
        selected = [self.routes[i] for i in indices]
        if not selected:
            raise ValueError("sub_route requires at least one route")

        coin_in = RouterTradeCoin(
            type=self.coin_in.type,
            amount=sum(r.coin_in.amount for r in selected),
            trade_fee=sum(r.coin_in.trade_fee for r in selected),
        )
        coin_out = RouterTradeCoin(
            type=self.coin_out.type,
            amount=sum(r.coin_out.amount for r in selected),
            trade_fee=sum(r.coin_out.trade_fee for r in selected),
        )
        return self.model_copy(
            update={"routes": selected, "coin_in": coin_in, "coin_out": coin_out}
        )

    def min_amount_out_for(self, slippage: float) -> int:
        """Minimum acceptable output for a given slippage, rounded down."""
        factor = Decimal(1) - Decimal(str(slippage))
        return int((Decimal(self.coin_out.amount) * factor).to_integral_value(ROUND_FLOOR))
