"""
Display formatting for amounts, addresses and timestamps.

Pure helpers; none of them parse or validate.
"""

from datetime import datetime, timezone
from typing import Optional

from .codec import to_decimal_string
from wallet_ledger.storage.models import Transaction

DISPLAY_DECIMALS = 8
DEFAULT_SEPARATOR = "..."


def format_amount(smallest_units: int, decimals: int = DISPLAY_DECIMALS) -> str:
    """Format smallest units with fixed precision, e.g. 1 -> "0.00000001"."""
    return to_decimal_string(smallest_units, decimals)


def format_signed_amount(transaction: Transaction, decimals: int = DISPLAY_DECIMALS) -> str:
    """Format a transaction amount with a direction sign and its token.

    Outgoing transactions (Send, Withdraw) are prefixed with "-", incoming
    ones (Receive, Deposit, Mint) with "+".
    """
    sign = "-" if transaction.is_outgoing else "+"
    return f"{sign}{to_decimal_string(transaction.amount, decimals)} {transaction.token}"


def truncate_middle(
    text: Optional[str],
    start_chars: int = 10,
    end_chars: int = 10,
    separator: str = DEFAULT_SEPARATOR
) -> str:
    """Shorten text to its first and last characters joined by a separator.

    Returns the text unchanged when it already fits in
    start_chars + end_chars characters.
    """
    if not text:
        return ""
    if start_chars < 0 or end_chars < 0:
        raise ValueError("start_chars and end_chars must be >= 0")
    if len(text) <= start_chars + end_chars:
        return text
    tail = text[len(text) - end_chars:]
    return f"{text[:start_chars]}{separator}{tail}"


def truncate_end(text: Optional[str], max_length: int, suffix: str = DEFAULT_SEPARATOR) -> str:
    """Cut text to max_length characters, the suffix included."""
    if not text:
        return ""
    if len(text) <= max_length:
        return text
    return text[:max(max_length - len(suffix), 0)] + suffix


def format_address_for_display(address: Optional[str], visible_chars: int = 20) -> str:
    """Truncate an address to a visible character budget.

    The budget is split evenly between the start and the end; the start
    gets the extra character when the budget is odd.
    """
    end_chars = visible_chars // 2
    start_chars = visible_chars - end_chars
    return truncate_middle(address, start_chars, end_chars)


def format_tx_hash_for_display(tx_hash: Optional[str], visible_chars: int = 16) -> str:
    return format_address_for_display(tx_hash, visible_chars)


def format_timestamp(timestamp_ns: int) -> str:
    """Format a nanosecond epoch timestamp as UTC ISO-8601 to the second."""
    seconds = timestamp_ns // 1_000_000_000
    return datetime.fromtimestamp(seconds, tz=timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")
