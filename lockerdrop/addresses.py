"""Delivery address digesting.

``delivery_address`` on a job holds a SHA-256 digest of the address,
computed exactly once when the job is created. The plaintext is kept in
a separate field that storage leaves out of default reads.
"""

import hashlib
import re
from typing import Optional, Tuple

# A digest is exactly 64 lowercase hex characters
ADDRESS_DIGEST_PATTERN = re.compile(r"^[a-f0-9]{64}$")


def is_address_digest(value: Optional[str]) -> bool:
    """Check whether a value already looks like an address digest."""
    return bool(value) and ADDRESS_DIGEST_PATTERN.match(value) is not None


def digest_address(address: str) -> str:
    """SHA-256 hex digest of an address.

    Idempotent: a value that is already a digest is returned unchanged,
    so re-saving a stored job never digests the digest.
    """
    if not address:
        raise ValueError("Address cannot be empty")
    if is_address_digest(address):
        return address
    return hashlib.sha256(address.encode("utf-8")).hexdigest()


def seal_delivery_address(address: str) -> Tuple[str, Optional[str]]:
    """Split an incoming address into (digest, plaintext).

    If the caller hands us something that is already a digest there is no
    plaintext to keep, so the second element is None.
    """
    if is_address_digest(address):
        return address, None
    return digest_address(address), address
