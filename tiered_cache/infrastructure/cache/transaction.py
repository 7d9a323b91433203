"""
Cache Transaction Boundary

Lets the persistence layer tell the cache when the enclosing write
transaction commits or rolls back. While a transaction is bound to the
current task, cache population is queued instead of applied; the queue runs
on commit and is discarded on rollback, so a rolled-back write never becomes
visible through the cache.

Usage:
    async with transaction_scope() as tx:
        saved = await repository.save(entity)
        await cache.put(key, saved)      # queued
    # committed: both tiers now hold `saved`

The persistence layer may also drive a transaction explicitly with
``begin_transaction()``, ``commit()`` and ``rollback()``.
"""

from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from contextvars import ContextVar, Token
from enum import Enum

from tiered_cache.core.config.constants import Stage
from tiered_cache.core.logging.logger import get_logger, log_stage

logger = get_logger(__name__)

AfterCommit = Callable[[], Awaitable[None]]

_current_transaction: ContextVar["CacheTransaction | None"] = ContextVar(
    "cache_transaction", default=None
)


class TransactionState(str, Enum):
    ACTIVE = "active"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


class CacheTransaction:
    """Queue of cache writes waiting for a database commit."""

    def __init__(self):
        self._callbacks: list[AfterCommit] = []
        self._state = TransactionState.ACTIVE
        self._token: Token | None = None

    @property
    def state(self) -> TransactionState:
        return self._state

    @property
    def is_active(self) -> bool:
        return self._state is TransactionState.ACTIVE

    @property
    def pending(self) -> int:
        return len(self._callbacks)

    def after_commit(self, callback: AfterCommit) -> None:
        """Queue a coroutine function to run once the transaction commits."""
        if not self.is_active:
            raise RuntimeError(f"cannot register work on a {self._state.value} transaction")
        self._callbacks.append(callback)

    async def commit(self) -> None:
        """
        Mark committed and apply queued cache writes in order.

        A failing callback is logged and does not stop the others: the
        database write already succeeded and the cache is only an
        optimization.
        """
        if not self.is_active:
            raise RuntimeError(f"transaction already {self._state.value}")
        self._state = TransactionState.COMMITTED
        self._unbind()

        callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            try:
                await callback()
            except Exception as e:
                logger.error(
                    "After-commit cache write failed",
                    stage=Stage.TRANSACTION.value,
                    error=str(e),
                    error_type=type(e).__name__,
                )
        log_stage(logger, Stage.TRANSACTION, "Cache transaction committed",
                  level="debug", applied=len(callbacks))

    def rollback(self) -> None:
        """Mark rolled back and drop every queued cache write."""
        if not self.is_active:
            return
        dropped = len(self._callbacks)
        self._callbacks.clear()
        self._state = TransactionState.ROLLED_BACK
        self._unbind()
        log_stage(logger, Stage.TRANSACTION, "Cache transaction rolled back",
                  level="debug", dropped=dropped)

    def _bind(self) -> None:
        self._token = _current_transaction.set(self)

    def _unbind(self) -> None:
        if self._token is not None:
            try:
                _current_transaction.reset(self._token)
            except ValueError:
                # Token created in another context; just clear ours.
                _current_transaction.set(None)
            self._token = None


def current_transaction() -> CacheTransaction | None:
    """The active transaction bound to the current task, if any."""
    tx = _current_transaction.get()
    return tx if tx is not None and tx.is_active else None


def begin_transaction() -> CacheTransaction:
    """Start a transaction and bind it to the current task."""
    tx = CacheTransaction()
    tx._bind()
    return tx


@asynccontextmanager
async def transaction_scope() -> AsyncIterator[CacheTransaction]:
    """
    Bind a cache transaction for the duration of the block.

    Commits on normal exit, rolls back on any exception (cancellation
    included). Joins the enclosing transaction when one is already active.
    """
    outer = current_transaction()
    if outer is not None:
        yield outer
        return

    tx = begin_transaction()
    try:
        yield tx
    except BaseException:
        tx.rollback()
        raise
    if tx.is_active:
        await tx.commit()
