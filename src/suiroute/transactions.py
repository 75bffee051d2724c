"""Programmable transaction model for client-side composition.

A ``Transaction`` holds unsigned transaction data in the JSON layout used by
the routing backend (version 2). It is never signed or submitted here; the
caller's wallet is responsible for that.
"""

import copy
import json
import logging
from contextlib import contextmanager
from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_serializer, model_validator
from pydantic.alias_generators import to_camel

from suiroute.errors import TransactionLockedError

logger = logging.getLogger(__name__)

TRANSACTION_DATA_VERSION = 2


class TransactionArgument(BaseModel):
    """Reference to a value inside a transaction (input, command result, gas coin).

    Wire forms: ``{"GasCoin": true}``, ``{"Input": 0}``, ``{"Result": 2}``,
    ``{"NestedResult": [2, 0]}``.
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["GasCoin", "Input", "Result", "NestedResult"]
    index: Optional[int] = Field(default=None, ge=0)
    result_index: Optional[int] = Field(default=None, ge=0)

    @model_validator(mode="before")
    @classmethod
    def _from_wire(cls, value: Any) -> Any:
        if not isinstance(value, dict) or "kind" in value:
            return value

        data = {k: v for k, v in value.items() if k != "$kind"}
        if "GasCoin" in data:
            return {"kind": "GasCoin"}
        if "Input" in data:
            return {"kind": "Input", "index": data["Input"]}
        if "Result" in data:
            return {"kind": "Result", "index": data["Result"]}
        if "NestedResult" in data:
            nested = data["NestedResult"]
            if not isinstance(nested, (list, tuple)) or len(nested) != 2:
                raise ValueError("NestedResult must be a pair of indices")
            return {"kind": "NestedResult", "index": nested[0], "result_index": nested[1]}
        raise ValueError(f"Unrecognised transaction argument: {value!r}")

    @model_validator(mode="after")
    def _check_indices(self) -> "TransactionArgument":
        if self.kind != "GasCoin" and self.index is None:
            raise ValueError(f"{self.kind} argument requires an index")
        if self.kind == "NestedResult" and self.result_index is None:
            raise ValueError("NestedResult argument requires a result index")
        return self

    @model_serializer
    def _to_wire(self) -> dict:
        if self.kind == "GasCoin":
            return {"GasCoin": True}
        if self.kind == "NestedResult":
            return {"NestedResult": [self.index, self.result_index]}
        return {self.kind: self.index}

    @classmethod
    def gas_coin(cls) -> "TransactionArgument":
        return cls(kind="GasCoin")

    @classmethod
    def input(cls, index: int) -> "TransactionArgument":
        return cls(kind="Input", index=index)

    @classmethod
    def result(cls, index: int) -> "TransactionArgument":
        return cls(kind="Result", index=index)

    @classmethod
    def nested_result(cls, index: int, result_index: int) -> "TransactionArgument":
        return cls(kind="NestedResult", index=index, result_index=result_index)


class TransactionData(BaseModel):
    """Unsigned transaction data. Unknown fields are preserved across round trips."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )

    version: int = TRANSACTION_DATA_VERSION
    sender: Optional[str] = None
    expiration: Optional[Any] = None
    gas_data: dict[str, Any] = Field(default_factory=dict)
    inputs: list[dict[str, Any]] = Field(default_factory=list)
    commands: list[dict[str, Any]] = Field(default_factory=list)


class Transaction:
    """An in-progress, unsigned programmable transaction.

    Example:
        tx = Transaction(sender="0xabc...")
        coin = tx.add_command({"SplitCoins": {...}})
        serialized = tx.serialize()
        same_tx = Transaction.from_serialized(serialized)
    """

    def __init__(
        self,
        data: Optional[TransactionData] = None,
        sender: Optional[str] = None,
    ):
        self._data = data.model_copy(deep=True) if data else TransactionData()
        if sender is not None:
            self._data.sender = sender
        self._lock_depth = 0

    @classmethod
    def from_serialized(cls, serialized: Union[str, bytes]) -> "Transaction":
        """Rebuild a transaction from its serialized JSON form.

        Raises:
            ValueError: If the payload is not valid transaction data
        """
        if isinstance(serialized, bytes):
            serialized = serialized.decode("utf-8")
        data = TransactionData.model_validate_json(serialized)
        return cls(data)

    def serialize(self) -> str:
        """Serialize the transaction into its wire format."""
        return self._data.model_dump_json(by_alias=True, exclude_none=True)

    @property
    def data(self) -> TransactionData:
        """Copy of the underlying transaction data."""
        return self._data.model_copy(deep=True)

    @property
    def sender(self) -> Optional[str]:
        return self._data.sender

    @property
    def inputs(self) -> list[dict[str, Any]]:
        return copy.deepcopy(self._data.inputs)

    @property
    def commands(self) -> list[dict[str, Any]]:
        return copy.deepcopy(self._data.commands)

    @property
    def is_locked(self) -> bool:
        return self._lock_depth > 0

    def set_sender(self, sender: str) -> None:
        self._check_unlocked("set sender")
        self._data.sender = sender

    def set_gas_budget(self, budget: int) -> None:
        self._check_unlocked("set gas budget")
        self._data.gas_data = {**self._data.gas_data, "budget": str(budget)}

    def add_input(self, value: dict[str, Any]) -> TransactionArgument:
        """Append an input and return a reference to it."""
        self._check_unlocked("add input")
        self._data.inputs.append(copy.deepcopy(value))
        return TransactionArgument.input(len(self._data.inputs) - 1)

    def add_command(self, command: dict[str, Any]) -> TransactionArgument:
        """Append a command and return a reference to its result."""
        self._check_unlocked("add command")
        self._data.commands.append(copy.deepcopy(command))
        return TransactionArgument.result(len(self._data.commands) - 1)

    def copy(self) -> "Transaction":
        return Transaction(self._data)

    def is_equivalent(self, other: "Transaction") -> bool:
        """Check whether two transactions carry the same executable content.

        Compares canonical transaction data rather than serialized bytes, so key
        order and omitted optional fields do not matter.
        """
        return self._canonical() == other._canonical()

    @contextmanager
    def locked(self):
        """Reject mutations for the duration of the block."""
        self._lock_depth += 1
        try:
            yield self
        finally:
            self._lock_depth -= 1

    def _canonical(self) -> str:
        return json.dumps(
            self._data.model_dump(by_alias=True, exclude_none=True),
            sort_keys=True,
            separators=(",", ":"),
        )

    def _check_unlocked(self, operation: str) -> None:
        if self._lock_depth:
            logger.warning(f"Rejected '{operation}' on transaction with augmentation in flight")
            raise TransactionLockedError(
                f"Cannot {operation}: transaction is being augmented"
            )

    def __repr__(self) -> str:
        return (
            f"Transaction(sender={self._data.sender!r}, "
            f"inputs={len(self._data.inputs)}, commands={len(self._data.commands)})"
        )
