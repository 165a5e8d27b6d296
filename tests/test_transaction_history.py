import sys
import os

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from amount import Amount
from models import TxnState, TxnStatus
from transaction_history import DEFAULT_CAPACITY, TransactionHistory


def make_state(client_id: int = 1, amount: str = "100") -> TxnState:
    return TxnState.healthy(client_id, Amount.parse(amount))


class TestTransactionHistory:
    def test_default_capacity(self):
        assert TransactionHistory().capacity == DEFAULT_CAPACITY == 1_000_000

    @pytest.mark.parametrize("capacity", [0, -1, 1.5, True])
    def test_rejects_invalid_capacity(self, capacity):
        with pytest.raises(ValueError):
            TransactionHistory(capacity)

    def test_record_and_lookup(self):
        history = TransactionHistory()
        state = make_state()
        history.record(1, state)
        assert history.lookup(1) is state
        assert 1 in history
        assert len(history) == 1

    def test_lookup_missing_returns_none(self):
        assert TransactionHistory().lookup(42) is None

    def test_lookup_returns_live_entry(self):
        history = TransactionHistory()
        history.record(1, make_state())
        history.lookup(1).status = TxnStatus.DISPUTED
        assert history.peek(1).status is TxnStatus.DISPUTED

    def test_record_overwrites(self):
        history = TransactionHistory()
        history.record(1, make_state(amount="1"))
        history.record(1, make_state(amount="2"))
        assert len(history) == 1
        assert history.peek(1).amount == Amount.parse("2")

    def test_evicts_least_recently_recorded(self):
        history = TransactionHistory(capacity=2)
        history.record(1, make_state())
        history.record(2, make_state())
        history.record(3, make_state())

        assert history.lookup(1) is None
        assert history.lookup(2) is not None
        assert history.lookup(3) is not None
        assert len(history) == 2
        assert history.evictions == 1

    def test_lookup_counts_as_use(self):
        history = TransactionHistory(capacity=2)
        history.record(1, make_state())
        history.record(2, make_state())
        history.lookup(1)
        history.record(3, make_state())

        assert 1 in history
        assert 2 not in history
        assert 3 in history

    def test_overwrite_counts_as_use(self):
        history = TransactionHistory(capacity=2)
        history.record(1, make_state())
        history.record(2, make_state())
        history.record(1, make_state(amount="5"))
        history.record(3, make_state())

        assert 1 in history
        assert 2 not in history
        assert history.evictions == 1

    def test_peek_does_not_count_as_use(self):
        history = TransactionHistory(capacity=2)
        history.record(1, make_state())
        history.record(2, make_state())
        history.peek(1)
        history.record(3, make_state())

        assert 1 not in history
        assert 2 in history

    def test_capacity_one(self):
        history = TransactionHistory(capacity=1)
        history.record(1, make_state())
        history.record(2, make_state())
        assert 1 not in history
        assert 2 in history
        assert len(history) == 1
