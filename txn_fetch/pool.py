"""SlotPool - growable table of CallState records keyed by session slot.

The embedding engine hands out dense slot numbers and a transaction id with
every call. A slot's record is reset the first time it is seen with a new
transaction id, so results never leak from one transaction into the next.
"""

from __future__ import annotations

import logging
from threading import Lock
from typing import Hashable

from txn_fetch.state import CallState

logger = logging.getLogger(__name__)

DEFAULT_INITIAL_SLOTS = 256


class SlotPool:
    """Owns one CallState per slot for the lifetime of the pool.

    Usage:
        pool = SlotPool()
        state = pool.acquire(slot=3, xid=100)

    The lock covers growth and the slot-to-record lookup (including the
    transaction-boundary reset). Once acquired, a record is used without
    locking by the worker that owns the slot for that transaction.
    """

    def __init__(self, initial_slots: int = DEFAULT_INITIAL_SLOTS) -> None:
        if initial_slots <= 0:
            raise ValueError(f"initial_slots must be positive, got {initial_slots}")
        self._lock = Lock()
        self._records: list[CallState] = [CallState() for _ in range(initial_slots)]

    @property
    def capacity(self) -> int:
        with self._lock:
            return len(self._records)

    def acquire(self, slot: int, xid: Hashable) -> CallState:
        """Return the record for `slot`, reset if it belonged to another transaction.

        Args:
            slot: Non-negative session slot number.
            xid: Transaction identifier of the caller.

        Returns:
            The slot's CallState with `xid` stored on it.

        Raises:
            ValueError: If slot is negative.
        """
        if slot < 0:
            raise ValueError(f"slot must be non-negative, got {slot}")

        with self._lock:
            self._grow_to(slot)
            state = self._records[slot]
            if state.xid != xid:
                logger.debug("Slot %d: new transaction %r, resetting", slot, xid)
                state.clear()
                state.xid = xid
            return state

    def reset(self, slot: int, xid: Hashable) -> CallState:
        """Force-clear a slot's record, keeping it owned by `xid`."""
        state = self.acquire(slot, xid)
        state.clear()
        state.xid = xid
        return state

    def _grow_to(self, slot: int) -> None:
        # Caller holds self._lock.
        size = len(self._records)
        if slot < size:
            return
        new_size = size
        while new_size <= slot:
            new_size *= 2
        self._records.extend(CallState() for _ in range(new_size - size))
        logger.info("Slot pool grown from %d to %d slots", size, new_size)

    def __len__(self) -> int:
        return self.capacity
