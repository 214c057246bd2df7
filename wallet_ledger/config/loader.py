"""
Configuration management and loading.

Loads the token rule table from YAML. Rules are read once at process start;
there is no reload path.
"""

import logging
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Dict

import yaml

from wallet_ledger.core.tokens import (
    OperationKind,
    TokenRule,
    TokenRuleTable,
    build_table,
)

logger = logging.getLogger(__name__)

ALLOWED_TOP_KEYS = {"tokens"}
REQUIRED_TOKEN_KEYS = {"decimals", "min_transfer", "fee"}
OPTIONAL_TOKEN_KEYS = {
    "fee_multipliers",
    "address_scheme",
    "external_address_scheme",
    "name",
    "network",
    "description",
}


def load_token_rules(path: str) -> TokenRuleTable:
    """Load and validate token rules from a YAML file.

    Strict validation ensures a typo in the rule file can never silently
    change fees or precision.

    Example:
        tokens:
          ckTestBTC:
            decimals: 8
            min_transfer: "0.00001"
            fee: "0.00001"
            fee_multipliers:
              WITHDRAW: "1.5"

    Args:
        path: Path to YAML configuration file

    Returns:
        Validated TokenRuleTable

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If YAML is invalid
        ValueError: If configuration is invalid
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Token rules file not found: {path}")

    with open(config_path, 'r', encoding='utf-8') as f:
        try:
            raw_config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise yaml.YAMLError(f"Invalid YAML in token rules file {path}: {e}")

    if not raw_config:
        raise ValueError("Configuration file is empty")
    if not isinstance(raw_config, dict):
        raise ValueError("Configuration must be a mapping")

    unknown_keys = set(raw_config.keys()) - ALLOWED_TOP_KEYS
    if unknown_keys:
        raise ValueError(f"Unknown configuration keys: {unknown_keys}")

    if 'tokens' not in raw_config:
        raise ValueError("Missing required 'tokens' section")

    tokens_data = raw_config['tokens']
    if not isinstance(tokens_data, dict) or not tokens_data:
        raise ValueError("'tokens' must be a non-empty dictionary")

    rules = []
    for symbol, token_data in tokens_data.items():
        if not isinstance(token_data, dict):
            raise ValueError(f"Token '{symbol}' must be a dictionary")
        rules.append(_parse_token_rule(str(symbol), token_data))

    table = build_table(*rules)
    logger.info("Loaded %d token rule(s) from %s", len(table), path)
    return table


def _parse_token_rule(symbol: str, data: Dict[str, Any]) -> TokenRule:
    """Parse and validate one token's rules.

    Args:
        symbol: Token identifier
        data: Token configuration data

    Returns:
        Validated TokenRule

    Raises:
        ValueError: If configuration is invalid
    """
    path = f"tokens.{symbol}"
    unknown_keys = set(data.keys()) - REQUIRED_TOKEN_KEYS - OPTIONAL_TOKEN_KEYS
    if unknown_keys:
        raise ValueError(f"Unknown keys in {path}: {unknown_keys}")

    for key in sorted(REQUIRED_TOKEN_KEYS):
        if key not in data:
            raise ValueError(f"Missing required '{key}' in {path}")

    decimals = data['decimals']
    if isinstance(decimals, bool) or not isinstance(decimals, int) or decimals < 0:
        raise ValueError(f"'decimals' in {path} must be a non-negative integer")

    # Amounts must be quoted: an unquoted 0.00001 would already be a float
    for key in ('min_transfer', 'fee'):
        if not isinstance(data[key], str):
            raise ValueError(f"'{key}' in {path} must be a quoted decimal string")

    fee_multipliers = _parse_fee_multipliers(data.get('fee_multipliers', {}), path)

    for key in ('address_scheme', 'external_address_scheme', 'name', 'network', 'description'):
        if key in data and not isinstance(data[key], str):
            raise ValueError(f"'{key}' in {path} must be a string")

    return TokenRule(
        symbol=symbol,
        decimals=decimals,
        min_transfer=data['min_transfer'],
        fee=data['fee'],
        fee_multipliers=fee_multipliers,
        address_scheme=data.get('address_scheme', 'principal'),
        external_address_scheme=data.get('external_address_scheme'),
        name=data.get('name', ''),
        network=data.get('network', ''),
        description=data.get('description', ''),
    )


def _parse_fee_multipliers(data: Any, path: str) -> Dict[OperationKind, Decimal]:
    """Parse operation -> multiplier overrides."""
    if not isinstance(data, dict):
        raise ValueError(f"'fee_multipliers' in {path} must be a dictionary")

    multipliers = {}
    for name, value in data.items():
        try:
            operation = OperationKind(str(name).upper())
        except ValueError:
            valid_operations = [op.value for op in OperationKind]
            raise ValueError(f"Unknown operation '{name}' in {path}.fee_multipliers, must be one of: {valid_operations}")

        if isinstance(value, bool) or not isinstance(value, (int, float, str)):
            raise ValueError(f"Multiplier for {name} in {path} must be a number")
        try:
            # str() keeps YAML floats like 1.5 at their written value
            multiplier = Decimal(str(value))
        except InvalidOperation:
            raise ValueError(f"Multiplier for {name} in {path} must be a number")
        if not multiplier.is_finite() or multiplier < 0:
            raise ValueError(f"Multiplier for {name} in {path} must be >= 0")
        multipliers[operation] = multiplier
    return multipliers
