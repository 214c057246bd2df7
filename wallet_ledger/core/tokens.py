"""
Token rules and fee calculations.

Holds the static per-token configuration (decimals, minimum transfer, fee and
fee multipliers) consumed by the codec and the validator.
"""

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation, ROUND_CEILING
from enum import Enum
from types import MappingProxyType
from typing import Dict, Iterator, Mapping, Optional

from .codec import InvalidFormat, to_decimal_string, to_smallest_units


class OperationKind(Enum):
    """Balance-affecting operations, each with its own fee multiplier."""
    TRANSFER = "TRANSFER"
    WITHDRAW = "WITHDRAW"
    DEPOSIT = "DEPOSIT"


DEFAULT_FEE_MULTIPLIERS: Mapping[OperationKind, Decimal] = MappingProxyType({
    OperationKind.TRANSFER: Decimal("1.0"),
    OperationKind.WITHDRAW: Decimal("1.5"),  # withdrawals pay the bridge too
    OperationKind.DEPOSIT: Decimal("0.0"),
})


class UnknownToken(KeyError):
    """Raised when a token is not present in the rule table."""

    def __init__(self, token: str):
        super().__init__(token)
        self.token = token

    def __str__(self) -> str:
        return f"Unsupported token: {self.token}"


@dataclass(frozen=True)
class TokenRule:
    """Immutable rules for a single token."""
    symbol: str
    decimals: int
    min_transfer: str  # Human-readable decimal string
    fee: str  # Flat fee, human-readable decimal string
    fee_multipliers: Mapping[OperationKind, Decimal] = field(default_factory=dict)
    address_scheme: str = "principal"
    external_address_scheme: Optional[str] = None
    name: str = ""
    network: str = ""
    description: str = ""

    def __post_init__(self):
        """Validate the rule and freeze its multiplier mapping."""
        if not self.symbol or not self.symbol.strip():
            raise ValueError("symbol is required and cannot be empty")
        if isinstance(self.decimals, bool) or not isinstance(self.decimals, int) or self.decimals < 0:
            raise ValueError(f"decimals for {self.symbol} must be a non-negative integer")

        try:
            to_smallest_units(self.min_transfer, self.decimals)
        except InvalidFormat as e:
            raise ValueError(f"min_transfer for {self.symbol} is invalid: {e}")
        try:
            to_smallest_units(self.fee, self.decimals)
        except InvalidFormat as e:
            raise ValueError(f"fee for {self.symbol} is invalid: {e}")

        multipliers = dict(DEFAULT_FEE_MULTIPLIERS)
        for operation, multiplier in self.fee_multipliers.items():
            if not isinstance(operation, OperationKind):
                raise ValueError(f"Unknown operation in fee multipliers for {self.symbol}: {operation!r}")
            if isinstance(multiplier, float):
                raise ValueError(
                    f"Fee multiplier for {self.symbol}/{operation.value} must be a Decimal, not a float"
                )
            try:
                multiplier = Decimal(multiplier)
            except (InvalidOperation, TypeError):
                raise ValueError(
                    f"Fee multiplier for {self.symbol}/{operation.value} is not a number: {multiplier!r}"
                )
            if not multiplier.is_finite() or multiplier < 0:
                raise ValueError(
                    f"Fee multiplier for {self.symbol}/{operation.value} must be >= 0"
                )
            multipliers[operation] = multiplier
        object.__setattr__(self, "fee_multipliers", MappingProxyType(multipliers))

    @property
    def min_transfer_units(self) -> int:
        """Minimum transfer amount in smallest units."""
        return to_smallest_units(self.min_transfer, self.decimals)

    @property
    def fee_base_units(self) -> int:
        """Flat fee in smallest units before any multiplier."""
        return to_smallest_units(self.fee, self.decimals)

    def fee_units(self, operation: OperationKind) -> int:
        """Fee for an operation in smallest units, rounded UP.

        The multiplier is applied with exact Decimal arithmetic and the result
        is rounded towards positive infinity, so a fractional smallest unit
        always costs one more unit rather than one less.
        """
        multiplier = self.fee_multipliers[operation]
        scaled = Decimal(self.fee_base_units) * multiplier
        return int(scaled.to_integral_value(rounding=ROUND_CEILING))

    def format_units(self, units: int) -> str:
        """Format smallest units with this token's precision."""
        return to_decimal_string(units, self.decimals)

    def address_scheme_for(self, operation: OperationKind) -> str:
        """Address scheme expected by an operation's destination."""
        if operation in (OperationKind.WITHDRAW, OperationKind.DEPOSIT) and self.external_address_scheme:
            return self.external_address_scheme
        return self.address_scheme


@dataclass(frozen=True)
class TokenRuleTable:
    """Read-only table of supported tokens."""
    rules: Mapping[str, TokenRule] = field(default_factory=dict)

    def __post_init__(self):
        """Check keys match rule symbols and freeze the mapping."""
        for key, rule in self.rules.items():
            if key != rule.symbol:
                raise ValueError(f"Rule key {key!r} does not match symbol {rule.symbol!r}")
        object.__setattr__(self, "rules", MappingProxyType(dict(self.rules)))

    def lookup(self, token: str) -> TokenRule:
        """Get the rules for a token.

        Args:
            token: Token identifier

        Returns:
            TokenRule for the token

        Raises:
            UnknownToken: If the token is not supported
        """
        if token not in self.rules:
            raise UnknownToken(token)
        return self.rules[token]

    @property
    def symbols(self) -> tuple:
        return tuple(self.rules)

    def requirements(self, token: str) -> str:
        """One-line description of a token's transfer requirements."""
        rule = self.lookup(token)
        network = f", Network: {rule.network}" if rule.network else ""
        return f"Minimum: {rule.min_transfer} {rule.symbol}, Fee: {rule.fee} {rule.symbol}{network}"

    def __contains__(self, token: object) -> bool:
        return token in self.rules

    def __iter__(self) -> Iterator[TokenRule]:
        return iter(self.rules.values())

    def __len__(self) -> int:
        return len(self.rules)


def build_table(*rules: TokenRule) -> TokenRuleTable:
    """Build a table from rules, rejecting duplicate symbols."""
    table: Dict[str, TokenRule] = {}
    for rule in rules:
        if rule.symbol in table:
            raise ValueError(f"Duplicate token rule: {rule.symbol}")
        table[rule.symbol] = rule
    return TokenRuleTable(table)


DEFAULT_TOKEN = "ckTestBTC"

# Fixed rule table - changing a rule means shipping new configuration
DEFAULT_TOKEN_RULES = build_table(
    TokenRule(
        symbol="ckTestBTC",
        decimals=8,
        min_transfer="0.00001",
        fee="0.00001",
        address_scheme="principal",
        external_address_scheme="testbtc",
        name="Chain-key Bitcoin Testnet",
        network="Bitcoin Testnet",
        description="ICRC-2 token representing Bitcoin testnet on Internet Computer",
    ),
)
