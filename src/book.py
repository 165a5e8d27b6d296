import csv
import logging
from typing import Dict, Iterable, List, Optional, TextIO

from amount import Amount, ParseError
from models import ClientAccount, OperationResult, ReplayStats, Transaction, TransactionType, TxnState
from transaction_history import DEFAULT_CAPACITY, TransactionHistory

logger = logging.getLogger(__name__)

OUTPUT_HEADER = ("id", "available", "held", "total", "locked")


class Book:
    """
    Replays transactions against client accounts, strictly in input order.

    Owns every account (created on first reference) and the bounded
    transaction history used to resolve disputes. A record that cannot be
    applied is absorbed and counted; it never aborts the replay.
    """

    def __init__(self, history_capacity: int = DEFAULT_CAPACITY):
        self._accounts: Dict[int, ClientAccount] = {}
        self._history = TransactionHistory(history_capacity)
        self._stats = ReplayStats()

    @property
    def history(self) -> TransactionHistory:
        return self._history

    @property
    def stats(self) -> ReplayStats:
        return self._stats

    @property
    def accounts(self) -> List[ClientAccount]:
        """All accounts, ordered by ascending client id."""
        return [self._accounts[client_id] for client_id in sorted(self._accounts)]

    def get_account(self, client_id: int) -> Optional[ClientAccount]:
        return self._accounts.get(client_id)

    def get_or_create_account(self, client_id: int) -> ClientAccount:
        account = self._accounts.get(client_id)
        if account is None:
            account = ClientAccount(client_id=client_id)
            self._accounts[client_id] = account
        return account

    def resolve(self, transaction: Transaction) -> OperationResult:
        """
        Apply a single record.

        Deposits and withdrawals are always recorded in history, as HEALTHY when
        applied and SKIPPED otherwise, so a later dispute can tell a failed
        transaction from an unknown one.

        Returns:
            The outcome of the account operation. Informational only: a rejected
            record leaves the account unchanged and the replay carries on.
        """
        if transaction.transaction_type.moves_funds and transaction.amount is None:
            raise ParseError(f"{transaction!r} carries no amount")

        account = self.get_or_create_account(transaction.client_id)

        match transaction.transaction_type:
            case TransactionType.DEPOSIT:
                result = account.deposit(transaction.amount)
                self._record(transaction, transaction.amount, result)
            case TransactionType.WITHDRAWAL:
                result = account.withdraw(transaction.amount)
                self._record(transaction, -transaction.amount, result)
            case TransactionType.DISPUTE:
                result = account.dispute(self._history.lookup(transaction.transaction_id))
            case TransactionType.RESOLVE:
                result = account.resolve(self._history.lookup(transaction.transaction_id))
            case TransactionType.CHARGEBACK:
                result = account.chargeback(self._history.lookup(transaction.transaction_id))
            case _:
                raise ParseError(f"Unsupported transaction type: {transaction.transaction_type!r}")

        self._stats.record(result)
        if not result.succeeded:
            logger.debug(f"Ignoring {transaction}: {result.value}")
        return result

    def resolve_all(self, transactions: Iterable[Transaction]) -> "Book":
        """Apply every record in order. Errors raised by the source propagate."""
        for transaction in transactions:
            self.resolve(transaction)
        logger.info(self._stats.summary())
        return self

    def write(self, sink: TextIO) -> "Book":
        """Write account state as CSV, one row per account by ascending client id."""
        writer = csv.writer(sink, lineterminator="\n")
        writer.writerow(OUTPUT_HEADER)
        for account in self.accounts:
            writer.writerow(account.as_row())
        sink.flush()
        return self

    def _record(self, transaction: Transaction, signed_amount: Amount, result: OperationResult) -> None:
        if result.succeeded:
            state = TxnState.healthy(transaction.client_id, signed_amount)
        else:
            state = TxnState.skipped(transaction.client_id, signed_amount)
        self._history.record(transaction.transaction_id, state)
