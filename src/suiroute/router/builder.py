"""Quote request validation.

Turns caller inputs into exactly one of the two quote shapes. Every check
here runs before any network call.
"""

import logging
from typing import Any, Optional, Sequence, Union

from pydantic import ValidationError as PydanticValidationError

from suiroute.contracts.requests import (
    GivenAmountInRequest,
    GivenAmountOutRequest,
    TradeRouteRequest,
)
from suiroute.contracts.routes import ExternalFee
from suiroute.errors import FeeExceededError, ValidationError

logger = logging.getLogger(__name__)

# Max fee percentage that third parties can charge on router trades
MAX_EXTERNAL_FEE_PERCENTAGE = 0.5  # 50%


def check_balance(name: str, value: Any) -> int:
    """Ensure ``value`` is a non-negative integer amount."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{name} must be an integer amount, got {type(value).__name__}")
    if value < 0:
        raise ValidationError(f"{name} must be non-negative, got {value}")
    return value


def check_slippage(value: Any) -> float:
    """Ensure ``value`` is a fraction in [0, 1)."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f"slippage must be a number, got {type(value).__name__}")
    if not 0 <= value < 1:
        raise ValidationError(f"slippage must be in [0, 1), got {value}")
    return float(value)


def check_external_fee(
    external_fee: Optional[Union[ExternalFee, dict]],
) -> Optional[ExternalFee]:
    """Normalise an external fee and enforce the protocol cap.

    Raises:
        ValidationError: If the fee is malformed
        FeeExceededError: If the fee percentage is above the cap
    """
    if external_fee is None:
        return None

    if isinstance(external_fee, dict):
        try:
            external_fee = ExternalFee.model_validate(external_fee)
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid external fee: {e}") from e

    if external_fee.fee_percentage > MAX_EXTERNAL_FEE_PERCENTAGE:
        logger.warning(
            f"Rejected external fee {external_fee.fee_percentage} "
            f"(max {MAX_EXTERNAL_FEE_PERCENTAGE})"
        )
        raise FeeExceededError(external_fee.fee_percentage, MAX_EXTERNAL_FEE_PERCENTAGE)
    return external_fee


class QuoteRequestBuilder:
    """Validates caller inputs into a fixed-input or fixed-output quote request."""

    def build(
        self,
        coin_in_type: str,
        coin_out_type: str,
        coin_in_amount: Optional[int] = None,
        coin_out_amount: Optional[int] = None,
        slippage: Optional[float] = None,
        external_fee: Optional[Union[ExternalFee, dict]] = None,
        referrer: Optional[str] = None,
        protocol_whitelist: Optional[Sequence[str]] = None,
        protocol_blacklist: Optional[Sequence[str]] = None,
    ) -> TradeRouteRequest:
        """Build a quote request.

        Exactly one of ``coin_in_amount`` or ``coin_out_amount`` must be given.
        A fixed-output request also requires ``slippage``.

        Returns:
            GivenAmountInRequest or GivenAmountOutRequest

        Raises:
            ValidationError: If the inputs do not form exactly one valid shape
            FeeExceededError: If the external fee is above the cap
        """
        if coin_in_amount is None and coin_out_amount is None:
            raise ValidationError("One of coin_in_amount or coin_out_amount is required")
        if coin_in_amount is not None and coin_out_amount is not None:
            raise ValidationError("coin_in_amount and coin_out_amount are mutually exclusive")
        if coin_out_amount is not None and slippage is None:
            raise ValidationError("slippage is required when coin_out_amount is given")

        if not coin_in_type or not coin_out_type:
            raise ValidationError("coin_in_type and coin_out_type are required")
        if coin_in_type == coin_out_type:
            raise ValidationError(f"Cannot trade {coin_in_type} for itself")
        if protocol_whitelist is not None and protocol_blacklist is not None:
            raise ValidationError("protocol_whitelist and protocol_blacklist are mutually exclusive")

        fee = check_external_fee(external_fee)

        common = {
            "coin_in_type": coin_in_type,
            "coin_out_type": coin_out_type,
            "referrer": referrer,
            "external_fee": fee,
            "protocol_whitelist": list(protocol_whitelist) if protocol_whitelist else None,
            "protocol_blacklist": list(protocol_blacklist) if protocol_blacklist else None,
        }

        try:
            if coin_in_amount is not None:
                request: TradeRouteRequest = GivenAmountInRequest(
                    coin_in_amount=check_balance("coin_in_amount", coin_in_amount),
                    **common,
                )
            else:
                request = GivenAmountOutRequest(
                    coin_out_amount=check_balance("coin_out_amount", coin_out_amount),
                    slippage=check_slippage(slippage),
                    **common,
                )
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid quote request: {e}") from e

        logger.debug(f"Built {type(request).__name__}: {coin_in_type} -> {coin_out_type}")
        return request

    def build_given_amount_in(
        self,
        coin_in_type: str,
        coin_out_type: str,
        coin_in_amount: int,
        **options: Any,
    ) -> GivenAmountInRequest:
        """Shortcut for a fixed-input quote request."""
        return self.build(
            coin_in_type, coin_out_type, coin_in_amount=coin_in_amount, **options
        )

    def build_given_amount_out(
        self,
        coin_in_type: str,
        coin_out_type: str,
        coin_out_amount: int,
        slippage: float,
        **options: Any,
    ) -> GivenAmountOutRequest:
        """Shortcut for a fixed-output quote request."""
        return self.build(
            coin_in_type,
            coin_out_type,
            coin_out_amount=coin_out_amount,
            slippage=slippage,
            **options,
        )
