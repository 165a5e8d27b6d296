import sys
import logging

from amount import AmountOverflowError, ParseError
from book import Book
from config import get_settings
from ledger import read_ledger

logger = logging.getLogger(__name__)


def main(argv=None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    if len(argv) != 1:
        print("Usage: python main.py <input.csv>", file=sys.stderr)
        return 1

    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )

    filepath = argv[0]
    book = Book(history_capacity=settings.history_capacity)
    try:
        book.resolve_all(read_ledger(filepath))
    except (ParseError, AmountOverflowError) as e:
        logger.error(f"Aborting replay of {filepath}: {e}")
        return 1
    except OSError as e:
        logger.error(f"Cannot read {filepath}: {e}")
        return 1

    try:
        book.write(sys.stdout)
    except OSError as e:
        logger.error(f"Cannot write account report: {e}")
        return 1

    logger.info(f"History evictions: {book.history.evictions}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
