"""
Transaction history views.

Filtering, pagination and statistics over an explicit list of records.
Every function here is pure: the same records and view state always give
the same output, so views can be recomputed on every state change.
"""

from dataclasses import dataclass, field, replace
from typing import Iterable, List, Optional, Sequence, Tuple

from wallet_ledger.storage.models import (
    Transaction,
    TransactionKind,
    TransactionStatus,
)

ALL = "All"
DEFAULT_PAGE_SIZE = 10
DEFAULT_RECENT_LIMIT = 5


@dataclass(frozen=True)
class TransactionFilter:
    """Filter predicates, combined with AND. None means "All".

    Raw UI values such as "All", "Send" or "Confirmed" are accepted for
    kind and status and coerced to their enum members.
    """
    kind: Optional[TransactionKind] = None
    token: Optional[str] = None
    status: Optional[TransactionStatus] = None
    search_query: str = ""

    def __post_init__(self):
        """Coerce raw filter values and reject unknown ones.

        Raises:
            ValueError: If a kind or status value is not recognised
        """
        kind = None if self.kind == ALL else self.kind
        if kind is not None and not isinstance(kind, TransactionKind):
            try:
                kind = TransactionKind(kind)
            except ValueError:
                valid = [ALL] + [k.value for k in TransactionKind]
                raise ValueError(f"Transaction type must be one of: {valid}")

        status = None if self.status == ALL else self.status
        if status is not None and not isinstance(status, TransactionStatus):
            try:
                status = TransactionStatus(status)
            except ValueError:
                valid = [ALL] + [s.value for s in TransactionStatus]
                raise ValueError(f"Transaction status must be one of: {valid}")

        if not isinstance(self.search_query, str):
            raise ValueError("search_query must be a string")

        object.__setattr__(self, "kind", kind)
        object.__setattr__(self, "token", None if self.token == ALL else self.token)
        object.__setattr__(self, "status", status)

    @classmethod
    def parse(
        cls,
        kind: str = ALL,
        token: str = ALL,
        status: str = ALL,
        search_query: str = ""
    ) -> "TransactionFilter":
        """Build a filter from raw UI values such as "All" or "Send".

        Raises:
            ValueError: If a kind or status value is not recognised
        """
        return cls(kind=kind, token=token, status=status, search_query=search_query)

    def matches(self, transaction: Transaction) -> bool:
        if self.kind is not None and transaction.kind is not self.kind:
            return False
        if self.token is not None and transaction.token != self.token:
            return False
        if self.status is not None and transaction.status is not self.status:
            return False
        return _matches_search(transaction, self.search_query)


def _matches_search(transaction: Transaction, query: str) -> bool:
    """Case-insensitive substring search over addresses, id and block index."""
    if not query.strip():
        return True
    term = query.lower()
    fields = [transaction.from_address, transaction.to_address, str(transaction.id)]
    if transaction.block_index is not None:
        fields.append(transaction.block_index)
    return any(term in value.lower() for value in fields)


@dataclass(frozen=True)
class TransactionStats:
    """Counts by status (and by kind) over a set of transactions."""
    total: int
    confirmed: int
    pending: int
    failed: int
    sends: int = 0
    receives: int = 0
    deposits: int = 0
    withdrawals: int = 0
    mints: int = 0

    def __post_init__(self):
        """Status counts must add up to the total."""
        if self.confirmed + self.pending + self.failed != self.total:
            raise ValueError("confirmed + pending + failed must equal total")


def filter_transactions(
    records: Iterable[Transaction],
    filters: TransactionFilter
) -> List[Transaction]:
    """Apply all filter predicates, preserving input order."""
    return [tx for tx in records if filters.matches(tx)]


def total_pages(count: int, page_size: int) -> int:
    """Number of pages needed for count items; never less than 1."""
    if page_size < 1:
        raise ValueError("page_size must be > 0")
    return max(1, -(-count // page_size))


def clamp_page(page: int, count: int, page_size: int) -> int:
    """Clamp a page number into [1, total_pages(count, page_size)]."""
    return min(max(page, 1), total_pages(count, page_size))


def paginate(
    filtered: Sequence[Transaction],
    page: int,
    page_size: int
) -> List[Transaction]:
    """Return the items of a 1-indexed page.

    Pages past the end are empty rather than an error.

    Raises:
        ValueError: If page or page_size is less than 1
    """
    if page < 1:
        raise ValueError("page must be >= 1")
    if page_size < 1:
        raise ValueError("page_size must be > 0")
    start = (page - 1) * page_size
    return list(filtered[start:start + page_size])


def transaction_stats(records: Iterable[Transaction]) -> TransactionStats:
    """Count transactions by status and kind."""
    status_counts = {status: 0 for status in TransactionStatus}
    kind_counts = {kind: 0 for kind in TransactionKind}
    for tx in records:
        status_counts[tx.status] += 1
        kind_counts[tx.kind] += 1

    return TransactionStats(
        total=sum(status_counts.values()),
        confirmed=status_counts[TransactionStatus.CONFIRMED],
        pending=status_counts[TransactionStatus.PENDING],
        failed=status_counts[TransactionStatus.FAILED],
        sends=kind_counts[TransactionKind.SEND],
        receives=kind_counts[TransactionKind.RECEIVE],
        deposits=kind_counts[TransactionKind.DEPOSIT],
        withdrawals=kind_counts[TransactionKind.WITHDRAW],
        mints=kind_counts[TransactionKind.MINT],
    )


def recent_transactions(
    records: Iterable[Transaction],
    limit: int = DEFAULT_RECENT_LIMIT,
    kinds: Optional[Iterable[TransactionKind]] = None
) -> List[Transaction]:
    """Most recent transactions, newest first.

    Ties on timestamp are broken by descending id.

    Args:
        records: Transactions to choose from
        limit: Maximum number of transactions to return
        kinds: Optional set of kinds to restrict to

    Returns:
        Up to `limit` transactions ordered by (timestamp, id) descending
    """
    if limit < 0:
        raise ValueError("limit must be >= 0")
    allowed = None if kinds is None else frozenset(kinds)
    candidates = [tx for tx in records if allowed is None or tx.kind in allowed]
    candidates.sort(key=lambda tx: (tx.timestamp, tx.id), reverse=True)
    return candidates[:limit]


def page_window(current: int, pages: int, radius: int = 1) -> List[Optional[int]]:
    """Page numbers to offer in a pager.

    Shows the first and last page plus `radius` pages around the current
    one. None marks a gap between non-consecutive pages.
    """
    shown = [
        page for page in range(1, pages + 1)
        if page == 1 or page == pages or abs(page - current) <= radius
    ]
    window: List[Optional[int]] = []
    for index, page in enumerate(shown):
        if index > 0 and page - shown[index - 1] > 1:
            window.append(None)
        window.append(page)
    return window


@dataclass(frozen=True)
class HistoryViewState:
    """Filter and pagination state held by a history consumer."""
    filters: TransactionFilter = field(default_factory=TransactionFilter)
    page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE

    def __post_init__(self):
        """Validate pagination values."""
        if self.page < 1:
            raise ValueError("page must be >= 1")
        if self.page_size < 1:
            raise ValueError("page_size must be > 0")

    def with_filters(self, **changes) -> "HistoryViewState":
        """Change filter predicates. The page always resets to 1.

        Values may be enum members or raw strings such as "Send" or "All".

        Raises:
            ValueError: If a kind or status value is not recognised
        """
        return replace(self, filters=replace(self.filters, **changes), page=1)

    def clear_filters(self) -> "HistoryViewState":
        return replace(self, filters=TransactionFilter(), page=1)

    def with_page(self, page: int, filtered_count: int) -> "HistoryViewState":
        """Move to a page, clamped to the pages available."""
        return replace(self, page=clamp_page(page, filtered_count, self.page_size))

    def with_page_size(self, page_size: int) -> "HistoryViewState":
        return replace(self, page_size=page_size, page=1)


@dataclass(frozen=True)
class HistoryPage:
    """Everything a history screen needs for one render."""
    items: Tuple[Transaction, ...]
    page: int
    total_pages: int
    filtered_count: int
    stats: TransactionStats
    window: Tuple[Optional[int], ...]


def render_history(
    records: Sequence[Transaction],
    state: HistoryViewState
) -> HistoryPage:
    """Compute the visible page for a view state.

    Statistics cover all records; items, counts and the page window cover
    the filtered set. The requested page is clamped to what exists.
    """
    filtered = filter_transactions(records, state.filters)
    pages = total_pages(len(filtered), state.page_size)
    page = clamp_page(state.page, len(filtered), state.page_size)
    return HistoryPage(
        items=tuple(paginate(filtered, page, state.page_size)),
        page=page,
        total_pages=pages,
        filtered_count=len(filtered),
        stats=transaction_stats(records),
        window=tuple(page_window(page, pages)),
    )
