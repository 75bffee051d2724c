"""Concurrency control for transaction augmentation.

Provides per-transaction locking so an in-progress transaction is never
augmented twice at once, and cannot be mutated while its serialized snapshot
is with the backend.
"""

import asyncio
import logging
import weakref
from typing import Optional

from suiroute.errors import LockTimeoutError
from suiroute.transactions import Transaction

logger = logging.getLogger(__name__)


class TransactionLockRegistry:
    """Lock registry: transaction -> asyncio.Lock.

    Entries are weakly referenced and disappear with their transaction.
    """

    def __init__(self):
        self._locks: "weakref.WeakKeyDictionary[Transaction, asyncio.Lock]" = (
            weakref.WeakKeyDictionary()
        )
        self._registry_lock = asyncio.Lock()

    async def get_lock(self, tx: Transaction) -> asyncio.Lock:
        """Get or create the lock for a transaction."""
        async with self._registry_lock:
            lock = self._locks.get(tx)
            if lock is None:
                lock = asyncio.Lock()
                self._locks[tx] = lock
            return lock

    def __len__(self) -> int:
        return len(self._locks)


class TransactionLock:
    """Context manager for exclusive access to a transaction.

    While held, the transaction rejects mutations.

    Example:
        async with TransactionLock(registry, tx, operation="add-trade"):
            serialized = tx.serialize()
            ...
    """

    def __init__(
        self,
        registry: TransactionLockRegistry,
        tx: Transaction,
        timeout: Optional[float] = 30.0,
        operation: str = "augmentation",
    ):
        """Initialize the lock.

        Args:
            registry: Registry owning the per-transaction locks
            tx: Transaction to lock
            timeout: Maximum time to wait for lock (None = wait forever)
            operation: Description of the operation for logging
        """
        self.registry = registry
        self.tx = tx
        self.timeout = timeout
        self.operation = operation
        self._lock: Optional[asyncio.Lock] = None
        self._frozen = None
        self._acquired = False

    async def __aenter__(self) -> "TransactionLock":
        """Acquire the lock and freeze the transaction."""
        self._lock = await self.registry.get_lock(self.tx)

        try:
            if self.timeout:
                self._acquired = await asyncio.wait_for(
                    self._lock.acquire(),
                    timeout=self.timeout,
                )
            else:
                await self._lock.acquire()
                self._acquired = True
        except asyncio.TimeoutError:
            logger.warning(f"Lock timeout for {self.tx!r} after {self.timeout}s: {self.operation}")
            raise LockTimeoutError(
                f"Could not acquire transaction lock within {self.timeout}s"
            )

        self._frozen = self.tx.locked()
        self._frozen.__enter__()
        logger.debug(f"Lock acquired for {self.tx!r}: {self.operation}")
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Unfreeze the transaction and release the lock."""
        if self._frozen is not None:
            self._frozen.__exit__(None, None, None)
            self._frozen = None
        if self._acquired and self._lock:
            self._lock.release()
            self._acquired = False
            logger.debug(f"Lock released for {self.tx!r}: {self.operation}")
        return False
