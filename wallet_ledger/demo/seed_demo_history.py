# wallet_ledger/demo/seed_demo_history.py

import sys
from datetime import datetime, timezone
from typing import List

import yaml

from wallet_ledger.storage.models import Transaction, TransactionKind, TransactionStatus

WALLET = "ryjl3-tyaaa-aaaaa-aaaba-cai"
PEER = "rrkah-fqaaa-aaaaa-aaaaq-cai"
MINTER = "aaaaa-aa"
BTC_ADDRESS = "tb1qw508d6qejxtdg4y5r3zarvary0c5xw7kxpjzsx"

_KIND_CYCLE = [
    TransactionKind.MINT,
    TransactionKind.SEND,
    TransactionKind.RECEIVE,
    TransactionKind.DEPOSIT,
    TransactionKind.WITHDRAW,
]


def build_demo_history(count: int = 25) -> List[Transaction]:
    """Build a deterministic history; the last two records are still Pending."""
    start = int(datetime(2024, 1, 1, tzinfo=timezone.utc).timestamp()) * 1_000_000_000
    transactions = []
    for i in range(count):
        kind = _KIND_CYCLE[i % len(_KIND_CYCLE)]
        sender, recipient = {
            TransactionKind.MINT: (MINTER, WALLET),
            TransactionKind.SEND: (WALLET, PEER),
            TransactionKind.RECEIVE: (PEER, WALLET),
            TransactionKind.DEPOSIT: (BTC_ADDRESS, WALLET),
            TransactionKind.WITHDRAW: (WALLET, BTC_ADDRESS),
        }[kind]

        if i >= count - 2:
            status, block_index = TransactionStatus.PENDING, None
        elif i % 7 == 6:
            status, block_index = TransactionStatus.FAILED, None
        else:
            status, block_index = TransactionStatus.CONFIRMED, str(1000 + i)

        transactions.append(Transaction(
            id=i,
            kind=kind,
            token="ckTestBTC",
            amount=(i + 1) * 100_000,
            from_address=sender,
            to_address=recipient,
            status=status,
            timestamp=start + i * 3600 * 1_000_000_000,
            block_index=block_index,
        ))
    return transactions


def write_demo_history(path: str, count: int = 25) -> None:
    """Write the demo history in the backend's entry format."""
    entries = [tx.to_dict() for tx in build_demo_history(count)]
    with open(path, 'w', encoding='utf-8') as f:
        yaml.safe_dump(entries, f, sort_keys=False)


if __name__ == "__main__":
    target = sys.argv[1] if len(sys.argv) > 1 else "demo_history.yaml"
    write_demo_history(target)
    print(f"Demo history written to {target}")
