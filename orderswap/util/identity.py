"""
Caller identity helpers.
Identities are EVM-style 20-byte addresses, stored in checksum form.
"""

import logging
from typing import Any

from eth_utils import is_address, is_checksum_address, keccak, to_checksum_address

from orderswap.errors import InvalidCallerError

logger = logging.getLogger(__name__)

ZERO_ADDRESS = "0x" + "00" * 20


def is_valid_identity(value: Any) -> bool:
    """True for a well-formed, non-zero address. Mixed-case input must carry a valid checksum."""
    if not isinstance(value, str) or not is_address(value):
        return False
    body = value[2:] if value[:2].lower() == "0x" else value
    if body != body.lower() and body != body.upper() and not is_checksum_address(value):
        return False
    return int(value, 16) != 0


def normalize_identity(value: Any) -> str:
    """
    Validate a caller identity and return its checksum form.
    
    Raises:
        InvalidCallerError: value is None, not an address, or the zero address
    """
    if not is_valid_identity(value):
        raise InvalidCallerError(details={"caller": str(value)})
    return to_checksum_address(value)


def derive_address(label: str) -> str:
    """Deterministic address from a text label (last 20 bytes of keccak)."""
    digest = keccak(text=label)
    return to_checksum_address(digest[-20:])
