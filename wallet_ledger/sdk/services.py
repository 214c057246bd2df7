"""
Contracts for the services the wallet core depends on.

Transfers and history retrieval happen outside this package. These
protocols describe what the core hands to them and what it expects back.
"""

import json
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Protocol

import yaml

from ..storage.models import Transaction


@dataclass(frozen=True)
class TransferOutcome:
    """Result of submitting a transfer, withdrawal or deposit."""
    success: bool
    transaction: Optional[Transaction] = None
    error: Optional[str] = None
    message: Optional[str] = None

    @classmethod
    def failed(cls, error: str) -> "TransferOutcome":
        return cls(success=False, error=error)


class TransferService(Protocol):
    """Submits validated requests to the ledger backend.

    Amounts are always integer smallest units. Implementations may be
    asynchronous at their own boundary; retries and cancellation are theirs.
    """

    def transfer(self, to: str, amount_units: int, token: str) -> TransferOutcome:
        ...

    def withdraw(self, address: str, amount_units: int, token: str) -> TransferOutcome:
        ...

    def deposit(self, amount_units: int, token: str) -> TransferOutcome:
        ...


class HistoryProvider(Protocol):
    """Supplies the complete transaction history on demand."""

    def fetch_history(self) -> List[Transaction]:
        ...


class FileHistoryProvider:
    """History provider reading backend transaction entries from a file.

    Accepts a JSON or YAML list of entries in the backend's format (see
    Transaction.from_dict). The file is read on every fetch.
    """

    def __init__(self, path: str):
        self.path = Path(path)

    def fetch_history(self) -> List[Transaction]:
        """Read and parse all entries.

        Raises:
            FileNotFoundError: If the file doesn't exist
            ValueError: If the content is not a list of valid entries
        """
        if not self.path.exists():
            raise FileNotFoundError(f"History file not found: {self.path}")

        with open(self.path, 'r', encoding='utf-8') as f:
            if self.path.suffix.lower() == ".json":
                entries = json.load(f)
            else:
                entries = yaml.safe_load(f)

        if entries is None:
            return []
        if not isinstance(entries, list):
            raise ValueError("History file must contain a list of transactions")

        transactions = []
        for i, entry in enumerate(entries):
            if not isinstance(entry, dict):
                raise ValueError(f"History entry at index {i} must be a mapping")
            try:
                transactions.append(Transaction.from_dict(entry))
            except ValueError as e:
                raise ValueError(f"History entry at index {i}: {e}")
        return transactions
