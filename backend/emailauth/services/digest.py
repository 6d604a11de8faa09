"""
Digest derivation: email nullifier, public key hash, email hash (account salt).

All three are pure functions of their inputs. The hash primitive can be
substituted per call; the module-level defaults come from hash_primitives.
"""

import binascii
from typing import Optional

from emailauth.errors import HashComputationFault, InvalidEncoding
from emailauth.services.field_element import AccountCode, field2hex, reverse_bytes
from emailauth.services.hash_primitives import (
    HashPrimitive,
    PaddedEmailAddr,
    SaltDeriver,
    account_salt_deriver,
    nullifier_hasher,
    public_key_hasher,
)

PUBLIC_KEY_PREFIX = "0x"


def email_nullifier(signature: bytes, hasher: Optional[HashPrimitive] = None) -> str:
    """Nullifier of a DKIM signature, as canonical hex."""
    hasher = hasher or nullifier_hasher
    reversed_signature = reverse_bytes(signature)
    try:
        nullifier = hasher.hash(reversed_signature)
    except Exception as exc:
        raise HashComputationFault(f"email_nullifier compute failed: {exc}") from exc
    return field2hex(nullifier)


def decode_public_key_hex(public_key_hex: str) -> bytes:
    """
    Strip the 0x prefix and hex-decode the rest.

    Raises:
        InvalidEncoding: missing prefix, empty, odd length or non-hex remainder.
    """
    if len(public_key_hex) < len(PUBLIC_KEY_PREFIX):
        raise InvalidEncoding(
            f"public key {public_key_hex!r} is shorter than the {PUBLIC_KEY_PREFIX!r} prefix"
        )
    if public_key_hex[:len(PUBLIC_KEY_PREFIX)] != PUBLIC_KEY_PREFIX:
        raise InvalidEncoding(
            f"public key must start with {PUBLIC_KEY_PREFIX!r}, got {public_key_hex[:2]!r}"
        )

    digits = public_key_hex[len(PUBLIC_KEY_PREFIX):]
    if not digits:
        raise InvalidEncoding("public key has no hex digits after the prefix")
    try:
        return binascii.unhexlify(digits)
    except (binascii.Error, ValueError) as exc:
        raise InvalidEncoding(f"the input string {public_key_hex} is invalid hex: {exc}") from exc


def public_key_hash(public_key_hex: str, hasher: Optional[HashPrimitive] = None) -> str:
    """Hash of a 0x-prefixed hex public key, as canonical hex."""
    hasher = hasher or public_key_hasher
    public_key = reverse_bytes(decode_public_key_hex(public_key_hex))
    try:
        digest = hasher.hash(public_key)
    except Exception as exc:
        raise HashComputationFault(f"public_key_hash compute failed: {exc}") from exc
    return field2hex(digest)


def email_hash(
    email_addr: str,
    account_code_hex: str,
    salt_deriver: Optional[SaltDeriver] = None,
) -> str:
    """Account salt binding ``email_addr`` to the account code, as canonical hex."""
    salt_deriver = salt_deriver or account_salt_deriver
    padded_email_addr = PaddedEmailAddr.from_email_addr(email_addr)
    account_code = AccountCode.from_hex(account_code_hex)
    try:
        account_salt = salt_deriver.derive(padded_email_addr.padded_bytes, account_code)
    except Exception as exc:
        raise HashComputationFault(f"AccountSalt failed: {exc}") from exc
    return field2hex(account_salt)
