import logging
from collections import OrderedDict
from typing import Optional

from models import TxnState

logger = logging.getLogger(__name__)

# Increasing this trades memory for correctness on old disputes.
DEFAULT_CAPACITY = 1_000_000


class TransactionHistory:
    """
    Bounded transaction history for dispute lookups, keyed by transaction id.

    Once more than `capacity` entries are recorded the least recently used one
    is evicted. A dispute, resolve or chargeback that references an evicted id
    is indistinguishable from one that references an unknown id: it is ignored.
    This keeps memory bounded for arbitrarily long inputs at the cost of
    correctness on disputes older than the last `capacity` transactions.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY):
        if isinstance(capacity, bool) or not isinstance(capacity, int) or capacity < 1:
            raise ValueError(f"History capacity must be a positive integer, got {capacity!r}")
        self._capacity = capacity
        self._entries: "OrderedDict[int, TxnState]" = OrderedDict()
        self._evictions = 0

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def evictions(self) -> int:
        """Number of entries dropped so far to stay within capacity."""
        return self._evictions

    def record(self, transaction_id: int, state: TxnState) -> None:
        """Insert or overwrite the entry for transaction_id as the most recently used."""
        if transaction_id in self._entries:
            self._entries.move_to_end(transaction_id)
            self._entries[transaction_id] = state
            return

        if len(self._entries) >= self._capacity:
            evicted_id, _ = self._entries.popitem(last=False)
            self._evictions += 1
            logger.debug(f"Evicted tx {evicted_id} from history (capacity {self._capacity})")

        self._entries[transaction_id] = state

    def lookup(self, transaction_id: int) -> Optional[TxnState]:
        """
        Return the live entry for transaction_id and mark it most recently used.

        Callers mutate the returned state in place; the history keeps ownership.
        Returns None if the id was never recorded or has been evicted.
        """
        state = self._entries.get(transaction_id)
        if state is not None:
            self._entries.move_to_end(transaction_id)
        return state

    def peek(self, transaction_id: int) -> Optional[TxnState]:
        """Like lookup(), without touching recency."""
        return self._entries.get(transaction_id)

    def __contains__(self, transaction_id: object) -> bool:
        return transaction_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)
