"""
Amount and address validation.

Validates transfer, withdrawal and deposit requests against token rules and
computes fees and maximum sendable amounts.

Check Order:
1. Format - amount and balance must parse as decimal amounts, and the amount
   must not exceed MAX_SAFE_AMOUNT
2. Minimum - amount must be positive and at least the token's minimum transfer
3. Balance - amount plus fees (when included) must not exceed the balance

Validation never raises for bad input. Every rejection is returned as a
ValidationResult carrying a machine-readable reason and a message that can be
shown to the user as-is.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Optional

from .addresses import check_address
from .codec import (
    MAX_SAFE_AMOUNT,
    InvalidFormat,
    max_safe_units,
    to_decimal_string,
    to_smallest_units,
)
from .tokens import (
    DEFAULT_TOKEN_RULES,
    OperationKind,
    TokenRule,
    TokenRuleTable,
    UnknownToken,
)

logger = logging.getLogger(__name__)


class ValidationReason(Enum):
    """Why a validation failed."""
    INVALID_FORMAT = "InvalidFormat"
    BELOW_MINIMUM = "BelowMinimum"
    INSUFFICIENT_BALANCE = "InsufficientBalance"
    UNKNOWN_TOKEN = "UnknownToken"


@dataclass(frozen=True)
class ValidationResult:
    """Result of a validation check."""
    valid: bool
    error: Optional[str] = None
    reason: Optional[ValidationReason] = None
    details: Optional[str] = None

    @classmethod
    def ok(cls) -> "ValidationResult":
        return cls(valid=True)

    @classmethod
    def fail(
        cls,
        reason: ValidationReason,
        error: str,
        details: Optional[str] = None
    ) -> "ValidationResult":
        return cls(valid=False, error=error, reason=reason, details=details)


@dataclass(frozen=True)
class FeeQuote:
    """Fee for one operation on one token."""
    token: str
    operation: OperationKind
    base_fee: str
    multiplier: Decimal
    fee_units: int
    formatted_fee: str


@dataclass(frozen=True)
class TransferCheck:
    """Outcome of validating a complete transfer request."""
    result: ValidationResult
    amount_units: Optional[int] = None
    fee_units: Optional[int] = None
    remaining_units: Optional[int] = None

    @property
    def valid(self) -> bool:
        return self.result.valid


def _unknown_token(token: str) -> ValidationResult:
    return ValidationResult.fail(
        ValidationReason.UNKNOWN_TOKEN,
        f"Unsupported token: {token}",
    )


def validate_address(
    address: str,
    token: str,
    operation: OperationKind = OperationKind.TRANSFER,
    rules: TokenRuleTable = DEFAULT_TOKEN_RULES
) -> ValidationResult:
    """Check the structure of a destination address for a token.

    Withdrawals and deposits use the token's external chain scheme when one
    is configured; transfers use the ledger's own scheme.

    Args:
        address: Address exactly as entered (not trimmed)
        token: Token identifier
        operation: Operation the address is the destination of
        rules: Token rule table

    Returns:
        ValidationResult, INVALID_FORMAT or UNKNOWN_TOKEN on failure
    """
    try:
        rule = rules.lookup(token)
    except UnknownToken:
        return _unknown_token(token)

    if not isinstance(address, str) or not address:
        return ValidationResult.fail(ValidationReason.INVALID_FORMAT, "Address is required")
    if address != address.strip():
        return ValidationResult.fail(
            ValidationReason.INVALID_FORMAT,
            "Address cannot start or end with whitespace",
        )

    check = check_address(address, rule.address_scheme_for(operation))
    if not check.valid:
        return ValidationResult.fail(ValidationReason.INVALID_FORMAT, check.error, check.details)
    return ValidationResult.ok()


def calculate_fee(
    token: str,
    operation: OperationKind = OperationKind.TRANSFER,
    rules: TokenRuleTable = DEFAULT_TOKEN_RULES
) -> FeeQuote:
    """Quote the fee for an operation.

    Raises:
        UnknownToken: If the token is not supported
    """
    rule = rules.lookup(token)
    fee_units = rule.fee_units(operation)
    return FeeQuote(
        token=token,
        operation=operation,
        base_fee=rule.fee,
        multiplier=rule.fee_multipliers[operation],
        fee_units=fee_units,
        formatted_fee=f"{rule.format_units(fee_units)} {rule.symbol}",
    )


def _parse_amount(amount: str, rule: TokenRule) -> TransferCheck:
    """Format and upper bound checks; carries the parsed units on success."""
    try:
        amount_units = to_smallest_units(amount, rule.decimals)
    except InvalidFormat as e:
        return TransferCheck(ValidationResult.fail(
            ValidationReason.INVALID_FORMAT,
            f"Invalid amount: {e}",
            f"{rule.symbol} amounts are plain decimals with up to {rule.decimals} decimal places",
        ))
    if amount_units > max_safe_units(rule.decimals):
        return TransferCheck(ValidationResult.fail(
            ValidationReason.INVALID_FORMAT,
            f"Amount exceeds maximum safe value ({MAX_SAFE_AMOUNT})",
        ))
    return TransferCheck(ValidationResult.ok(), amount_units=amount_units)


def _check_minimum(amount_units: int, rule: TokenRule) -> ValidationResult:
    if amount_units <= 0:
        return ValidationResult.fail(
            ValidationReason.BELOW_MINIMUM,
            "Amount must be greater than 0",
        )
    if amount_units < rule.min_transfer_units:
        return ValidationResult.fail(
            ValidationReason.BELOW_MINIMUM,
            f"Minimum amount is {rule.min_transfer} {rule.symbol}",
            f"The minimum transfer amount for {rule.symbol} is {rule.min_transfer}",
        )
    return ValidationResult.ok()


def _check_amount(
    amount: str,
    balance: str,
    rule: TokenRule,
    operation: OperationKind,
    includes_fees: bool
) -> TransferCheck:
    """Run format, minimum and balance checks in order."""
    parsed = _parse_amount(amount, rule)
    if not parsed.valid:
        return parsed
    amount_units = parsed.amount_units
    try:
        balance_units = to_smallest_units(balance, rule.decimals)
    except InvalidFormat as e:
        return TransferCheck(ValidationResult.fail(
            ValidationReason.INVALID_FORMAT,
            f"Invalid balance: {e}",
        ))

    minimum = _check_minimum(amount_units, rule)
    if not minimum.valid:
        return TransferCheck(minimum)

    fee_units = rule.fee_units(operation) if includes_fees else 0
    required_units = amount_units + fee_units
    if required_units > balance_units:
        if includes_fees:
            error = "Insufficient balance (including fees)"
            details = (
                f"Required: {rule.format_units(required_units)} {rule.symbol} "
                f"(including {rule.format_units(fee_units)} fee), "
                f"available: {rule.format_units(balance_units)} {rule.symbol}"
            )
        else:
            error = "Amount exceeds available balance"
            details = f"Available: {rule.format_units(balance_units)} {rule.symbol}"
        return TransferCheck(ValidationResult.fail(
            ValidationReason.INSUFFICIENT_BALANCE, error, details
        ))

    return TransferCheck(
        ValidationResult.ok(),
        amount_units=amount_units,
        fee_units=fee_units,
        remaining_units=balance_units - required_units,
    )


def validate_amount(
    amount: str,
    balance: str,
    token: str,
    operation: OperationKind = OperationKind.TRANSFER,
    includes_fees: bool = True,
    rules: TokenRuleTable = DEFAULT_TOKEN_RULES
) -> ValidationResult:
    """Validate an amount against token rules and the available balance.

    Args:
        amount: Amount to send as a decimal string
        balance: Available balance as a decimal string
        token: Token identifier
        operation: Operation used to pick the fee multiplier
        includes_fees: Whether the fee must also be covered by the balance
        rules: Token rule table

    Returns:
        ValidationResult; invalid results carry a reason and a readable error
    """
    try:
        rule = rules.lookup(token)
    except UnknownToken:
        return _unknown_token(token)
    return _check_amount(amount, balance, rule, operation, includes_fees).result


def validate_transfer(
    address: str,
    amount: str,
    balance: str,
    token: str,
    operation: OperationKind = OperationKind.TRANSFER,
    includes_fees: bool = True,
    rules: TokenRuleTable = DEFAULT_TOKEN_RULES
) -> TransferCheck:
    """Validate a full request: address first, then amount.

    On success the converted amount, the fee charged and the balance left
    afterwards are returned in smallest units.
    """
    address_result = validate_address(address, token, operation, rules)
    if not address_result.valid:
        return TransferCheck(address_result)
    # Address check already resolved the token
    rule = rules.lookup(token)
    return _check_amount(amount, balance, rule, operation, includes_fees)


def validate_deposit(
    amount: str,
    token: str,
    rules: TokenRuleTable = DEFAULT_TOKEN_RULES
) -> TransferCheck:
    """Validate a deposit from the external chain into the wallet.

    Deposits do not draw on the wallet balance, so only the format, upper
    bound and minimum checks apply. The fee uses the DEPOSIT multiplier.
    """
    try:
        rule = rules.lookup(token)
    except UnknownToken:
        return TransferCheck(_unknown_token(token))

    parsed = _parse_amount(amount, rule)
    if not parsed.valid:
        return parsed
    minimum = _check_minimum(parsed.amount_units, rule)
    if not minimum.valid:
        return TransferCheck(minimum)
    return TransferCheck(
        ValidationResult.ok(),
        amount_units=parsed.amount_units,
        fee_units=rule.fee_units(OperationKind.DEPOSIT),
    )


def calculate_max_available(
    balance: str,
    token: str,
    operation: OperationKind = OperationKind.TRANSFER,
    rules: TokenRuleTable = DEFAULT_TOKEN_RULES
) -> str:
    """Largest amount that can be sent from a balance once fees are paid.

    The fee is the same ceiling-rounded fee validate_amount charges, so a
    non-zero result always validates with includes_fees=True. When the
    balance cannot cover the fee plus the token's minimum transfer, nothing
    is sendable and zero is returned. A zero result means "nothing
    sendable" and is never itself a valid amount. The result is capped at
    MAX_SAFE_AMOUNT.

    Args:
        balance: Available balance as a decimal string
        token: Token identifier
        operation: Operation used to pick the fee multiplier
        rules: Token rule table

    Returns:
        Decimal string formatted with the token's precision

    Raises:
        UnknownToken: If the token is not supported
    """
    rule = rules.lookup(token)
    zero = to_decimal_string(0, rule.decimals)
    try:
        balance_units = to_smallest_units(balance, rule.decimals)
    except InvalidFormat as e:
        logger.warning("Cannot compute max available for %s: %s", token, e)
        return zero

    max_units = min(balance_units - rule.fee_units(operation), max_safe_units(rule.decimals))
    if max_units <= 0 or max_units < rule.min_transfer_units:
        return zero
    return rule.format_units(max_units)
