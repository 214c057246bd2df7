"""
Data models for the transaction ledger.

Defines the transaction record and its kind and status enums.
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Dict, Optional


class TransactionKind(Enum):
    """Kind of balance-affecting transaction."""
    SEND = "Send"
    RECEIVE = "Receive"
    DEPOSIT = "Deposit"
    WITHDRAW = "Withdraw"
    MINT = "Mint"


class TransactionStatus(Enum):
    """Lifecycle status. Confirmed and Failed are terminal."""
    PENDING = "Pending"
    CONFIRMED = "Confirmed"
    FAILED = "Failed"

    @property
    def is_terminal(self) -> bool:
        return self is not TransactionStatus.PENDING


OUTGOING_KINDS = frozenset({TransactionKind.SEND, TransactionKind.WITHDRAW})
INCOMING_KINDS = frozenset({TransactionKind.RECEIVE, TransactionKind.DEPOSIT, TransactionKind.MINT})


@dataclass(frozen=True)
class Transaction:
    """Immutable record of a single ledger transaction.

    Records are never modified. A status change is represented by a new
    record with the same id (see with_status).
    """
    id: int
    kind: TransactionKind
    token: str
    amount: int  # Smallest units
    from_address: str
    to_address: str
    status: TransactionStatus
    timestamp: int  # Nanoseconds since epoch
    block_index: Optional[str] = None

    def __post_init__(self):
        """Validate field types and the block index rule."""
        if isinstance(self.id, bool) or not isinstance(self.id, int) or self.id < 0:
            raise ValueError(f"id must be a non-negative integer, got {self.id!r}")
        if not isinstance(self.kind, TransactionKind):
            raise ValueError(f"kind must be a TransactionKind, got {self.kind!r}")
        if not isinstance(self.status, TransactionStatus):
            raise ValueError(f"status must be a TransactionStatus, got {self.status!r}")
        if isinstance(self.amount, bool) or not isinstance(self.amount, int):
            raise ValueError(f"amount must be an integer of smallest units, got {self.amount!r}")
        if self.amount < 0:
            raise ValueError("amount cannot be negative")
        if isinstance(self.timestamp, bool) or not isinstance(self.timestamp, int):
            raise ValueError(f"timestamp must be integer nanoseconds, got {self.timestamp!r}")
        if self.status is TransactionStatus.PENDING and self.block_index is not None:
            raise ValueError("Pending transactions cannot have a block index")

    @property
    def is_outgoing(self) -> bool:
        return self.kind in OUTGOING_KINDS

    @property
    def is_incoming(self) -> bool:
        return self.kind in INCOMING_KINDS

    def with_status(
        self,
        status: TransactionStatus,
        block_index: Optional[str] = None
    ) -> "Transaction":
        """Return a copy of this record carrying a new status."""
        return replace(self, status=status, block_index=block_index)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize using the backend's field names."""
        return {
            "id": self.id,
            "tx_type": self.kind.value,
            "token": self.token,
            "amount": str(self.amount),
            "from": self.from_address,
            "to": self.to_address,
            "status": self.status.value,
            "timestamp": self.timestamp,
            "block_index": self.block_index,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Transaction":
        """Build a record from a backend history entry.

        Amounts and timestamps may be integers or digit strings. Block
        indexes are kept as strings.

        Raises:
            ValueError: If a field is missing or malformed
        """
        required = ("id", "tx_type", "token", "amount", "from", "to", "status", "timestamp")
        missing = [key for key in required if key not in data]
        if missing:
            raise ValueError(f"Transaction entry missing fields: {missing}")

        try:
            kind = TransactionKind(data["tx_type"])
        except ValueError:
            valid_kinds = [k.value for k in TransactionKind]
            raise ValueError(f"'tx_type' must be one of: {valid_kinds}")
        try:
            status = TransactionStatus(data["status"])
        except ValueError:
            valid_statuses = [s.value for s in TransactionStatus]
            raise ValueError(f"'status' must be one of: {valid_statuses}")

        block_index = data.get("block_index")
        return cls(
            id=_as_int(data["id"], "id"),
            kind=kind,
            token=str(data["token"]),
            amount=_as_int(data["amount"], "amount"),
            from_address=str(data["from"]),
            to_address=str(data["to"]),
            status=status,
            timestamp=_as_int(data["timestamp"], "timestamp"),
            block_index=None if block_index is None else str(block_index),
        )


def _as_int(value: Any, name: str) -> int:
    if isinstance(value, bool):
        raise ValueError(f"'{name}' must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.isascii() and value.isdigit():
        return int(value)
    raise ValueError(f"'{name}' must be an integer or a string of digits, got {value!r}")
