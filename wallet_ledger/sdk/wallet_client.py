"""
Wallet client wrapper.

Validates transfers, withdrawals and deposits before they reach the transfer
service and records the resulting transactions in the ledger store.
"""

import logging
from typing import Optional

from ..core.tokens import DEFAULT_TOKEN_RULES, OperationKind, TokenRuleTable
from ..core.validator import TransferCheck, validate_deposit, validate_transfer
from ..storage.ledger_store import SyncSummary, TransactionLedgerStore
from .services import HistoryProvider, TransferOutcome, TransferService

logger = logging.getLogger(__name__)


class WalletClient:
    """Validating front for a transfer service.

    The service and the store are explicit handles owned by the caller;
    nothing is looked up from global state. Invalid requests never reach the
    service. Service failures are returned as-is and never retried.
    """

    def __init__(
        self,
        service: TransferService,
        store: TransactionLedgerStore,
        rules: TokenRuleTable = DEFAULT_TOKEN_RULES
    ):
        """Initialize the wallet client.

        Args:
            service: Transfer service handle (required)
            store: Ledger store that receives new transactions (required)
            rules: Token rule table used for validation

        Raises:
            ValueError: If service or store is missing
        """
        if service is None:
            raise ValueError("service is required")
        if store is None:
            raise ValueError("store is required")

        self.service = service
        self.store = store
        self.rules = rules

    def send(self, to: str, amount: str, balance: str, token: str) -> TransferOutcome:
        """Validate and submit an in-ledger transfer.

        Args:
            to: Recipient address
            amount: Amount as a decimal string
            balance: Sender balance as a decimal string
            token: Token identifier

        Returns:
            TransferOutcome; failed outcomes carry a readable error
        """
        check = self._check(to, amount, balance, token, OperationKind.TRANSFER)
        if not check.valid:
            return TransferOutcome.failed(check.result.error)

        logger.info("Submitting transfer of %d units of %s", check.amount_units, token)
        outcome = self.service.transfer(to, check.amount_units, token)
        return self._record(outcome, "Transfer")

    def withdraw(self, address: str, amount: str, balance: str, token: str) -> TransferOutcome:
        """Validate and submit a withdrawal to the external chain."""
        check = self._check(address, amount, balance, token, OperationKind.WITHDRAW)
        if not check.valid:
            return TransferOutcome.failed(check.result.error)

        logger.info("Submitting withdrawal of %d units of %s", check.amount_units, token)
        outcome = self.service.withdraw(address, check.amount_units, token)
        return self._record(outcome, "Withdrawal")

    def deposit(self, amount: str, token: str) -> TransferOutcome:
        """Validate and submit a deposit from the external chain.

        Deposits do not draw on the wallet balance, so no balance is needed.
        """
        check = validate_deposit(amount, token, rules=self.rules)
        if not check.valid:
            logger.info("Rejected deposit request: %s", check.result.error)
            return TransferOutcome.failed(check.result.error)

        logger.info("Submitting deposit of %d units of %s", check.amount_units, token)
        outcome = self.service.deposit(check.amount_units, token)
        return self._record(outcome, "Deposit")

    def refresh(self, provider: HistoryProvider) -> SyncSummary:
        """Pull the full history and merge it into the store."""
        return self.store.sync(provider.fetch_history())

    def _check(
        self,
        address: str,
        amount: str,
        balance: str,
        token: str,
        operation: OperationKind
    ) -> TransferCheck:
        check = validate_transfer(
            address, amount, balance, token,
            operation=operation,
            includes_fees=True,
            rules=self.rules,
        )
        if not check.valid:
            logger.info("Rejected %s request: %s", operation.value.lower(), check.result.error)
        return check

    def _record(self, outcome: TransferOutcome, label: str) -> TransferOutcome:
        if not outcome.success:
            error = outcome.error or f"{label} failed"
            logger.warning("%s failed: %s", label, error)
            return TransferOutcome(success=False, error=error, message=outcome.message)

        if outcome.transaction is not None:
            # Store errors signal a backend consistency bug and propagate
            self.store.append(outcome.transaction)
        return outcome


def build_wallet(
    service: TransferService,
    rules: Optional[TokenRuleTable] = None
) -> WalletClient:
    """Create a client with a fresh store checked against the same rules."""
    if rules is None:
        rules = DEFAULT_TOKEN_RULES
    return WalletClient(service, TransactionLedgerStore(rules), rules)
