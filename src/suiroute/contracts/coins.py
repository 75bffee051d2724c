"""Coin and amount types shared by all router contracts."""

from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field
from pydantic.alias_generators import to_camel

# Fully qualified Move type, e.g. "0x2::sui::SUI"
CoinType = str


def parse_balance(value: Any) -> int:
    """Parse a balance from the wire.

    Accepts ints and decimal strings; the backend suffixes bigint strings
    with ``n`` (e.g. ``"1000000n"``).
    """
    if isinstance(value, bool):
        raise ValueError("balance must be an integer, not a boolean")
    if isinstance(value, int):
        amount = value
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith("n"):
            text = text[:-1]
        if not text.isdigit():
            raise ValueError(f"invalid balance string: {value!r}")
        amount = int(text)
    else:
        raise ValueError(f"balance must be an integer, got {type(value).__name__}")

    if amount < 0:
        raise ValueError("balance must be non-negative")
    return amount


# Non-negative amount in the coin's smallest unit
Balance = Annotated[int, BeforeValidator(parse_balance)]

# Fraction in [0, 1)
Slippage = Annotated[float, Field(ge=0, lt=1)]


class RouterModel(BaseModel):
    """Base for router wire models: camelCase on the wire, immutable in Python."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    def to_wire(self) -> dict:
        """Dump as a JSON-ready camelCase body."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class CoinAmount(RouterModel):
    """A coin type together with an amount."""

    type: CoinType
    amount: Balance
