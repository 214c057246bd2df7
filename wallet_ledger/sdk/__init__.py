"""
SDK for the wallet ledger core.

Provides the wallet client and the contracts for the services it talks to.
"""

from .services import FileHistoryProvider, HistoryProvider, TransferOutcome, TransferService
from .wallet_client import WalletClient, build_wallet

__all__ = [
    "FileHistoryProvider",
    "HistoryProvider",
    "TransferOutcome",
    "TransferService",
    "WalletClient",
    "build_wallet",
]
