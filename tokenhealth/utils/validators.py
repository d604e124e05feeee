"""
Query and address validation.

EVM addresses are matched by pattern ('0x' + 40 hex chars). Solana mint
addresses use actual base58 decoding instead of regex for accuracy:
- base58 alphabet (no 0, O, I, l characters)
- decode to exactly 32 bytes
- typically 32-44 characters when encoded
"""

import re

import base58

EVM_ADDRESS_RE = re.compile(r"^0x[a-fA-F0-9]{40}$")

# Longest thing a user can reasonably mean: a 'network:address' pair
MAX_QUERY_LENGTH = 100


def is_evm_address(value: str) -> bool:
    """Check for a '0x' + 40 hex character contract address."""
    return bool(EVM_ADDRESS_RE.match(value))


def is_solana_address(value: str) -> bool:
    """
    Check for a Solana mint address.

    Performs actual base58 decoding: the value must decode to exactly
    32 bytes.

    Examples:
        >>> is_solana_address("So11111111111111111111111111111111111111112")
        True

        >>> is_solana_address("pendle")
        False
    """
    if len(value) < 32 or len(value) > 44:
        return False

    try:
        decoded = base58.b58decode(value)
    except ValueError:
        # base58 library raises ValueError for invalid characters
        return False

    return len(decoded) == 32


def validate_query(query: str) -> tuple[bool, str | None]:
    """
    Validate a raw scan query.

    Args:
        query: Symbol, name, contract address or 'network:address'

    Returns:
        Tuple of (is_valid, error_message)
        - (True, None) if the query can be scanned
        - (False, "error description") if not

    Examples:
        >>> validate_query("$PENDLE")
        (True, None)

        >>> validate_query("   ")
        (False, 'Query is empty')
    """
    stripped = query.strip()

    if not stripped or stripped == "$":
        return False, "Query is empty"

    if len(stripped) > MAX_QUERY_LENGTH:
        return False, f"Query too long: {len(stripped)} characters (max {MAX_QUERY_LENGTH})"

    if not all(c.isprintable() for c in stripped):
        return False, "Query contains non-printable characters"

    return True, None
