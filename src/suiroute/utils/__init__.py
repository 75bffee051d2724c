"""Utility modules for suiroute."""

from suiroute.utils.locks import TransactionLock, TransactionLockRegistry

__all__ = ["TransactionLock", "TransactionLockRegistry"]
