"""
Address schemes and structural address checks.

Only the shape of an address is checked here: charset, length and checksum.
Whether the address exists or is funded is never looked up.
"""

import base64
import binascii
import re
import zlib
from dataclasses import dataclass
from typing import Callable, Dict, Optional

PRINCIPAL_MAX_BYTES = 29

_TESTBTC_PATTERNS = (
    ("testbtc-bech32", re.compile(r"tb1q[ac-hj-np-z02-9]{38,58}")),
    ("testbtc-p2sh", re.compile(r"2[1-9A-HJ-NP-Za-km-z]{33}")),
    ("testbtc-legacy", re.compile(r"[mn][1-9A-HJ-NP-Za-km-z]{33}")),
)


@dataclass(frozen=True)
class AddressCheck:
    """Outcome of a structural address check."""
    valid: bool
    address_type: Optional[str] = None
    error: Optional[str] = None
    details: Optional[str] = None


def check_principal(address: str) -> AddressCheck:
    """Check an Internet Computer textual principal.

    The text form is the lowercase base32 encoding of a CRC32 checksum
    followed by the principal bytes, split into groups of five characters.
    The checksum is verified and the text must be in canonical form.
    """
    invalid = AddressCheck(
        valid=False,
        error="Invalid Principal ID format",
        details="Must be a valid Internet Computer Principal ID (e.g. ryjl3-tyaaa-aaaaa-aaaba-cai)",
    )
    if address != address.lower():
        return invalid

    raw = address.replace("-", "")
    padding = "=" * (-len(raw) % 8)
    try:
        decoded = base64.b32decode(raw.upper() + padding)
    except (binascii.Error, ValueError):
        return invalid

    if len(decoded) < 4 or len(decoded) - 4 > PRINCIPAL_MAX_BYTES:
        return invalid

    checksum, body = decoded[:4], decoded[4:]
    if zlib.crc32(body).to_bytes(4, "big") != checksum:
        return invalid

    encoded = base64.b32encode(decoded).decode("ascii").lower().rstrip("=")
    canonical = "-".join(encoded[i:i + 5] for i in range(0, len(encoded), 5))
    if canonical != address:
        return invalid

    return AddressCheck(valid=True, address_type="principal")


def check_testbtc(address: str) -> AddressCheck:
    """Check a Bitcoin testnet address (bech32, P2SH or legacy)."""
    for address_type, pattern in _TESTBTC_PATTERNS:
        if pattern.fullmatch(address):
            return AddressCheck(valid=True, address_type=address_type)
    return AddressCheck(
        valid=False,
        error="Invalid TestBTC address format",
        details="Must be a valid Bitcoin testnet address: tb1q... (bech32), 2... (P2SH), or m.../n... (legacy)",
    )


ADDRESS_SCHEMES: Dict[str, Callable[[str], AddressCheck]] = {
    "principal": check_principal,
    "testbtc": check_testbtc,
}


def check_address(address: str, scheme: str) -> AddressCheck:
    """Check an address against a named scheme.

    Args:
        address: Address text exactly as entered
        scheme: Scheme name from ADDRESS_SCHEMES

    Returns:
        AddressCheck describing the outcome

    Raises:
        ValueError: If the scheme is not known (a configuration error)
    """
    if scheme not in ADDRESS_SCHEMES:
        raise ValueError(f"Unknown address scheme: {scheme}")
    return ADDRESS_SCHEMES[scheme](address)
