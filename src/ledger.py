import csv
import io
from typing import Dict, Iterable, Iterator, Optional

from amount import Amount, ParseError
from models import Transaction, TransactionType

MAX_CLIENT_ID = 2**16 - 1
MAX_TRANSACTION_ID = 2**32 - 1


def parse_row(row: Dict[Optional[str], object], line_number: Optional[int] = None) -> Transaction:
    """
    Parse a CSV row (as produced by csv.DictReader) into a Transaction.

    Raises ParseError for an unknown type, a bad client or tx id, or a
    deposit/withdrawal whose amount is missing or malformed. The amount column
    is ignored for dispute, resolve and chargeback.
    """
    where = f"line {line_number}" if line_number is not None else "row"
    # Surplus fields land under the None key as a list.
    normalized = {k.strip(): (v or "").strip() for k, v in row.items() if k is not None and not isinstance(v, list)}

    try:
        transaction_type_str = normalized["type"]
        client_str = normalized["client"]
        transaction_id_str = normalized["tx"]
    except KeyError as e:
        raise ParseError(f"{where}: missing column {e.args[0]!r}") from e

    try:
        transaction_type = TransactionType(transaction_type_str.lower())
    except ValueError as e:
        raise ParseError(f"{where}: unknown transaction type {transaction_type_str!r}") from e

    client_id = _parse_id(client_str, MAX_CLIENT_ID, "client", where)
    transaction_id = _parse_id(transaction_id_str, MAX_TRANSACTION_ID, "tx", where)

    amount = None
    if transaction_type.moves_funds:
        try:
            amount = Amount.parse(normalized.get("amount", ""))
        except ParseError as e:
            raise ParseError(f"{where}: {transaction_type.value} tx {transaction_id}: {e}") from e

    return Transaction(
        transaction_type=transaction_type,
        client_id=client_id,
        transaction_id=transaction_id,
        amount=amount,
    )


def _parse_id(text: str, maximum: int, column: str, where: str) -> int:
    try:
        value = int(text)
    except ValueError as e:
        raise ParseError(f"{where}: {column} {text!r} is not an integer") from e
    if not 0 <= value <= maximum:
        raise ParseError(f"{where}: {column} {value} is out of range 0..{maximum}")
    return value


def read_transactions(lines: Iterable[str]) -> Iterator[Transaction]:
    """Lazily parse CSV lines with a `type, client, tx, amount` header."""
    reader = csv.DictReader(lines, skipinitialspace=True)
    while True:
        try:
            row = next(reader)
        except StopIteration:
            return
        except (csv.Error, UnicodeDecodeError) as e:
            raise ParseError(f"unreadable record after line {reader.line_num}: {e}") from e
        yield parse_row(row, reader.line_num)


def read_ledger(filepath: str) -> Iterator[Transaction]:
    """Lazily read transactions from a CSV file, in file order."""
    with open(filepath, "r", encoding="utf-8", newline="") as f:
        yield from read_transactions(f)


def ledger_from_string(text: str) -> Iterator[Transaction]:
    """Lazily read transactions from CSV text held in memory."""
    yield from read_transactions(io.StringIO(text))
