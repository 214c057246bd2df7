"""
In-memory transaction ledger store.

Holds the ordered collection of transaction records for one consumer.
Records are immutable; the only changes allowed are appending new records
and replacing a Pending record with its Confirmed or Failed copy.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

from .models import Transaction, TransactionStatus
from wallet_ledger.core.history import TransactionFilter, filter_transactions
from wallet_ledger.core.tokens import TokenRuleTable, UnknownToken

logger = logging.getLogger(__name__)


class LedgerStoreError(RuntimeError):
    """Base class for ledger store misuse. Always a bug in the caller."""


class DuplicateId(LedgerStoreError):
    """Raised when appending a record whose id is already stored."""


class NotFound(LedgerStoreError):
    """Raised when replacing a record that does not exist."""


class InvalidTransition(LedgerStoreError):
    """Raised when a replacement is not a Pending -> terminal transition."""


@dataclass(frozen=True)
class SyncSummary:
    """What a history sync changed."""
    appended: int
    replaced: int
    unchanged: int


class TransactionLedgerStore:
    """Ordered, append-only collection of transactions.

    Insertion order is preserved. When a token rule table is given, records
    for tokens missing from it are rejected.
    """

    def __init__(self, rules: Optional[TokenRuleTable] = None):
        """Create an empty store.

        Args:
            rules: Optional token rule table used to check record tokens
        """
        self._rules = rules
        self._records: Dict[int, Transaction] = {}
        self._last_id = -1

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, transaction_id: object) -> bool:
        return transaction_id in self._records

    def records(self) -> Tuple[Transaction, ...]:
        """Snapshot of all records in insertion order."""
        return tuple(self._records.values())

    def get(self, transaction_id: int) -> Transaction:
        """Get a record by id.

        Raises:
            NotFound: If no record has this id
        """
        if transaction_id not in self._records:
            raise NotFound(f"Transaction {transaction_id} not found")
        return self._records[transaction_id]

    def next_id(self) -> int:
        """Next unused ordinal, greater than every id seen so far."""
        return self._last_id + 1

    def _check_new(self, record: Transaction) -> None:
        if record.id in self._records:
            logger.error("Rejected duplicate transaction id %s", record.id)
            raise DuplicateId(f"Transaction {record.id} already exists")
        if self._rules is not None and record.token not in self._rules:
            logger.error("Rejected transaction %s for unknown token %s", record.id, record.token)
            raise UnknownToken(record.token)

    def _insert(self, record: Transaction) -> None:
        self._records[record.id] = record
        self._last_id = max(self._last_id, record.id)
        logger.debug("Appended transaction %s (%s, %s)", record.id, record.kind.value, record.status.value)

    def append(self, record: Transaction) -> None:
        """Add a new record.

        Raises:
            DuplicateId: If a record with the same id exists
            UnknownToken: If the store has rules and the token is not in them
        """
        self._check_new(record)
        self._insert(record)

    def append_many(self, records: Iterable[Transaction]) -> None:
        """Add several records atomically.

        Every record is checked before any is inserted, so a failure leaves
        the store unchanged.
        """
        batch = list(records)
        seen = set()
        for record in batch:
            if record.id in seen:
                logger.error("Rejected batch with repeated transaction id %s", record.id)
                raise DuplicateId(f"Transaction {record.id} appears twice in batch")
            seen.add(record.id)
            self._check_new(record)
        for record in batch:
            self._insert(record)

    def replace(self, transaction_id: int, updated: Transaction) -> None:
        """Replace a Pending record with its Confirmed or Failed copy.

        Raises:
            NotFound: If no record has this id
            InvalidTransition: If the stored record is already terminal, the
                update is still Pending, or the ids differ
        """
        if transaction_id not in self._records:
            logger.error("Cannot replace missing transaction %s", transaction_id)
            raise NotFound(f"Transaction {transaction_id} not found")
        if updated.id != transaction_id:
            logger.error("Replacement id %s does not match %s", updated.id, transaction_id)
            raise InvalidTransition(
                f"Replacement for transaction {transaction_id} carries id {updated.id}"
            )

        current = self._records[transaction_id]
        if current.status.is_terminal or updated.status is TransactionStatus.PENDING:
            logger.error(
                "Invalid transition for transaction %s: %s -> %s",
                transaction_id, current.status.value, updated.status.value
            )
            raise InvalidTransition(
                f"Cannot transition transaction {transaction_id} from "
                f"{current.status.value} to {updated.status.value}"
            )

        self._records[transaction_id] = updated
        logger.debug(
            "Transaction %s %s -> %s", transaction_id, current.status.value, updated.status.value
        )

    def sync(self, records: Iterable[Transaction]) -> SyncSummary:
        """Merge a full history pull into the store.

        Unknown records are appended, Pending records that arrive in a
        terminal state are replaced and everything else is left alone.
        Only the first entry for an id in a pull is used; repeats count as
        unchanged. Every record is checked before the store is touched, so
        a failure leaves the store unchanged.

        Raises:
            UnknownToken: If the store has rules and a new record's token is
                not in them
        """
        new_records: List[Transaction] = []
        settled: List[Transaction] = []
        seen = set()
        unchanged = 0
        for record in records:
            if record.id in seen:
                unchanged += 1
                continue
            seen.add(record.id)

            current = self._records.get(record.id)
            if current is None:
                self._check_new(record)
                new_records.append(record)
            elif not current.status.is_terminal and record.status.is_terminal:
                settled.append(record)
            else:
                unchanged += 1

        # Ids are unique and each settled record is Pending -> terminal, so
        # nothing below can fail
        for record in new_records:
            self._insert(record)
        for record in settled:
            self.replace(record.id, record)

        summary = SyncSummary(appended=len(new_records), replaced=len(settled), unchanged=unchanged)
        logger.info(
            "History sync: %d appended, %d replaced, %d unchanged",
            summary.appended, summary.replaced, summary.unchanged
        )
        return summary

    def filter(self, filters: TransactionFilter) -> List[Transaction]:
        """Records matching all filter predicates, in insertion order."""
        return filter_transactions(self._records.values(), filters)
