import logging
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple

from amount import Amount

logger = logging.getLogger(__name__)


class TransactionType(Enum):
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    DISPUTE = "dispute"
    RESOLVE = "resolve"
    CHARGEBACK = "chargeback"

    @property
    def moves_funds(self) -> bool:
        return self in (TransactionType.DEPOSIT, TransactionType.WITHDRAWAL)


@dataclass
class Transaction:
    transaction_type: TransactionType
    client_id: int
    transaction_id: int
    amount: Optional[Amount] = None

    def __repr__(self) -> str:
        return f"Transaction({self.transaction_type.value}, client={self.client_id}, tx={self.transaction_id}, amount={self.amount})"


class TxnStatus(Enum):
    """Status of a past deposit or withdrawal. Healthy unless a dispute is in flight."""

    HEALTHY = "healthy"
    DISPUTED = "disputed"
    # Failed its own validity check when first processed; never disputable.
    SKIPPED = "skipped"


@dataclass
class TxnState:
    """Cached replay state of one deposit or withdrawal.

    `amount` is signed: positive for deposits, negated for withdrawals, so a
    dispute always undoes a credit of `amount`.
    """

    client_id: int
    amount: Amount
    status: TxnStatus = TxnStatus.HEALTHY

    @classmethod
    def healthy(cls, client_id: int, amount: Amount) -> "TxnState":
        return cls(client_id, amount, TxnStatus.HEALTHY)

    @classmethod
    def skipped(cls, client_id: int, amount: Amount) -> "TxnState":
        return cls(client_id, amount, TxnStatus.SKIPPED)


class OperationResult(Enum):
    APPLIED = "applied"
    ACCOUNT_LOCKED = "account_locked"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    UNKNOWN_TRANSACTION = "unknown_transaction"
    INVALID_STATE = "invalid_state"
    CLIENT_MISMATCH = "client_mismatch"

    @property
    def succeeded(self) -> bool:
        return self is OperationResult.APPLIED


@dataclass
class ClientAccount:
    """
    One client's balances.

    Every operation checks `locked` first and leaves the account (and any
    history entry passed in) untouched when it is set. `total` always equals
    `available + held` after an operation returns.
    """

    client_id: int
    available: Amount = field(default_factory=Amount.zero)
    held: Amount = field(default_factory=Amount.zero)
    total: Amount = field(default_factory=Amount.zero)
    locked: bool = False

    def credit(self, amount: Amount) -> None:
        self.available += amount
        self.total += amount

    def debit(self, amount: Amount) -> None:
        self.available -= amount
        self.total -= amount

    def hold(self, amount: Amount) -> None:
        self.available -= amount
        self.held += amount

    def release_hold(self, amount: Amount) -> None:
        self.held -= amount
        self.available += amount

    def remove_held(self, amount: Amount) -> None:
        self.held -= amount
        self.total -= amount

    def deposit(self, amount: Amount) -> OperationResult:
        if self.locked:
            return OperationResult.ACCOUNT_LOCKED

        self.credit(amount)
        return OperationResult.APPLIED

    def withdraw(self, amount: Amount) -> OperationResult:
        if self.locked:
            return OperationResult.ACCOUNT_LOCKED

        if self.available < amount:
            return OperationResult.INSUFFICIENT_FUNDS

        self.debit(amount)
        return OperationResult.APPLIED

    def dispute(self, state: Optional[TxnState]) -> OperationResult:
        """Freeze the funds of a healthy transaction: available -> held."""
        rejection = self._check_entry(state, TxnStatus.HEALTHY)
        if rejection is not None:
            return rejection

        state.status = TxnStatus.DISPUTED
        self.hold(state.amount)
        return OperationResult.APPLIED

    def resolve(self, state: Optional[TxnState]) -> OperationResult:
        """Undo a dispute: held -> available."""
        rejection = self._check_entry(state, TxnStatus.DISPUTED)
        if rejection is not None:
            return rejection

        state.status = TxnStatus.HEALTHY
        self.release_hold(state.amount)
        return OperationResult.APPLIED

    def chargeback(self, state: Optional[TxnState]) -> OperationResult:
        """Finalize a dispute: the held funds leave the account and it is locked for good.

        The entry keeps its DISPUTED status; the lock makes any later record a no-op.
        """
        rejection = self._check_entry(state, TxnStatus.DISPUTED)
        if rejection is not None:
            return rejection

        self.remove_held(state.amount)
        self.locked = True
        return OperationResult.APPLIED

    def _check_entry(self, state: Optional[TxnState], expected: TxnStatus) -> Optional[OperationResult]:
        if self.locked:
            return OperationResult.ACCOUNT_LOCKED

        # Never applied, evicted from history, or never seen.
        if state is None:
            return OperationResult.UNKNOWN_TRANSACTION

        if state.client_id != self.client_id:
            logger.error(f"Client {self.client_id}: referenced transaction belongs to client {state.client_id}, ignoring")
            return OperationResult.CLIENT_MISMATCH

        if state.status is not expected:
            return OperationResult.INVALID_STATE

        return None

    def as_row(self) -> Tuple[str, str, str, str, str]:
        return (
            str(self.client_id),
            self.available.to_display(),
            self.held.to_display(),
            self.total.to_display(),
            str(self.locked).lower(),
        )


class ReplayStats:
    """Counters for a replay: how many records were applied and why the rest were rejected."""

    def __init__(self):
        self.applied = 0
        self.rejected = 0
        self.rejections: Counter = Counter()

    def record(self, result: OperationResult) -> None:
        if result.succeeded:
            self.applied += 1
        else:
            self.rejected += 1
            self.rejections[result] += 1

    @property
    def processed(self) -> int:
        return self.applied + self.rejected

    def summary(self) -> str:
        details = ", ".join(f"{result.value}={count}" for result, count in sorted(self.rejections.items(), key=lambda item: item[0].value))
        line = f"Processed: {self.processed}, Applied: {self.applied}, Rejected: {self.rejected}"
        return f"{line} ({details})" if details else line
