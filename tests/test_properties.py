"""
Property-based tests for amounts, fees and history statistics.
"""

from hypothesis import assume, given, settings, strategies as st

from wallet_ledger.core.codec import to_decimal_string, to_smallest_units
from wallet_ledger.core.history import (
    HistoryViewState,
    TransactionFilter,
    paginate,
    render_history,
    total_pages,
    transaction_stats,
)
from wallet_ledger.core.tokens import OperationKind
from wallet_ledger.core.validator import calculate_max_available, validate_amount
from wallet_ledger.storage.models import Transaction, TransactionKind, TransactionStatus


@st.composite
def transactions(draw):
    """Generate lists of transactions with unique ids."""
    count = draw(st.integers(min_value=0, max_value=40))
    records = []
    for tx_id in range(count):
        status = draw(st.sampled_from(list(TransactionStatus)))
        records.append(Transaction(
            id=tx_id,
            kind=draw(st.sampled_from(list(TransactionKind))),
            token=draw(st.sampled_from(["ckTestBTC", "ckTestETH"])),
            amount=draw(st.integers(min_value=0, max_value=10 ** 12)),
            from_address="aaaaa-aa",
            to_address="2vxsx-fae",
            status=status,
            timestamp=draw(st.integers(min_value=0, max_value=10 ** 18)),
            block_index=None if status is TransactionStatus.PENDING else str(tx_id),
        ))
    return records


class TestCodecProperties:
    """Codec round-trip properties."""

    @given(
        units=st.integers(min_value=0, max_value=10 ** 30),
        decimals=st.integers(min_value=0, max_value=18),
    )
    @settings(max_examples=300)
    def test_round_trip(self, units, decimals):
        """Formatting then parsing returns the same units."""
        assert to_smallest_units(to_decimal_string(units, decimals), decimals) == units

    @given(units=st.integers(min_value=0, max_value=10 ** 20))
    def test_fixed_width_fraction(self, units):
        """Formatted amounts always carry exactly eight fractional digits."""
        assert len(to_decimal_string(units, 8).split(".")[1]) == 8


class TestFeeProperties:
    """Fee consistency between the maximum and validation."""

    @given(
        balance_units=st.integers(min_value=0, max_value=10 ** 16),
        operation=st.sampled_from(list(OperationKind)),
    )
    @settings(max_examples=300)
    def test_max_available_always_validates(self, balance_units, operation):
        """A non-zero maximum passes validation with fees included."""
        balance = to_decimal_string(balance_units, 8)
        maximum = calculate_max_available(balance, "ckTestBTC", operation)
        assume(to_smallest_units(maximum, 8) > 0)

        assert validate_amount(maximum, balance, "ckTestBTC", operation, True).valid

    @given(
        balance_units=st.integers(min_value=0, max_value=10 ** 16),
        operation=st.sampled_from(list(OperationKind)),
    )
    def test_one_more_unit_fails(self, balance_units, operation):
        """The maximum is tight: one more smallest unit is unaffordable."""
        balance = to_decimal_string(balance_units, 8)
        maximum = to_smallest_units(calculate_max_available(balance, "ckTestBTC", operation), 8)
        assume(maximum > 0)

        over = to_decimal_string(maximum + 1, 8)
        assert not validate_amount(over, balance, "ckTestBTC", operation, True).valid


class TestHistoryProperties:
    """Statistics and pagination invariants."""

    @given(records=transactions())
    def test_stats_invariant(self, records):
        """Status counts add up to the total, as do kind counts."""
        stats = transaction_stats(records)

        assert stats.confirmed + stats.pending + stats.failed == stats.total == len(records)
        assert (stats.sends + stats.receives + stats.deposits
                + stats.withdrawals + stats.mints) == stats.total

    @given(records=transactions(), page_size=st.integers(min_value=1, max_value=15))
    def test_pages_partition_records(self, records, page_size):
        """Concatenating every page yields the records in order."""
        pages = total_pages(len(records), page_size)
        joined = []
        for page in range(1, pages + 1):
            joined.extend(paginate(records, page, page_size))

        assert joined == records
        assert paginate(records, pages + 1, page_size) == []

    @given(
        records=transactions(),
        page=st.integers(min_value=1, max_value=10),
        query=st.sampled_from(["", "aaaaa", "1", "2vx"]),
    )
    def test_render_is_deterministic(self, records, page, query):
        """The same records and state always render the same page."""
        state = HistoryViewState(filters=TransactionFilter(search_query=query), page=page)

        first = render_history(records, state)
        second = render_history(list(records), state)

        assert first == second
        assert 1 <= first.page <= first.total_pages
