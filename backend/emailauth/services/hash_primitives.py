"""
Field-element hash primitives.

Byte sequences are read as little-endian field elements, 31 bytes per
element so every chunk is below the BN254 modulus. The default backend maps
the element list into the field with domain-separated SHA-256 (reduced mod
p); it is an off-circuit reference backend, NOT Poseidon, so its digests
differ from the circuit and on-chain values. Anything implementing
HashPrimitive / SaltDeriver can be swapped in (e.g. a Poseidon binding) by
passing it to the digest functions.
"""

import hashlib
from dataclasses import dataclass
from typing import List, Protocol, Sequence

from emailauth.errors import InvalidEncoding
from emailauth.services.field_element import BN254_MODULUS, AccountCode, FieldElement

FIELD_CHUNK_BYTES = 31
MAX_EMAIL_ADDR_BYTES = 256

NULLIFIER_TAG = b"emailauth/email-nullifier/v1"
PUBLIC_KEY_TAG = b"emailauth/public-key-hash/v1"
ACCOUNT_SALT_TAG = b"emailauth/account-salt/v1"


class HashPrimitive(Protocol):
    def hash(self, data: bytes) -> FieldElement:
        ...


class SaltDeriver(Protocol):
    def derive(self, padded_addr: bytes, account_code: AccountCode) -> FieldElement:
        ...


def bytes_to_fields(data: bytes) -> List[FieldElement]:
    """Split ``data`` into 31-byte little-endian field elements."""
    return [
        FieldElement.from_le_bytes(data[i:i + FIELD_CHUNK_BYTES])
        for i in range(0, len(data), FIELD_CHUNK_BYTES)
    ]


def hash_fields(tag: bytes, fields: Sequence[FieldElement]) -> FieldElement:
    """
    Deterministically map a list of field elements to one field element.

    Each element is fed as a fixed-width 32-byte big-endian integer, after the
    domain tag and the element count, so different lengths never collide.
    """
    h = hashlib.sha256()
    h.update(tag)
    h.update(len(fields).to_bytes(8, "big"))
    for element in fields:
        h.update(element.value.to_bytes(32, "big"))
    return FieldElement(int.from_bytes(h.digest(), "big") % BN254_MODULUS)


class FieldHash:
    """HashPrimitive over bytes, separated by a domain tag."""

    def __init__(self, tag: bytes):
        self.tag = tag

    def hash(self, data: bytes) -> FieldElement:
        if not data:
            raise ValueError("cannot hash an empty byte sequence")
        return hash_fields(self.tag, bytes_to_fields(data))


@dataclass(frozen=True)
class PaddedEmailAddr:
    """An email address zero-filled to MAX_EMAIL_ADDR_BYTES."""

    padded_bytes: bytes
    addr_len: int

    @classmethod
    def from_email_addr(cls, email_addr: str) -> "PaddedEmailAddr":
        raw = email_addr.encode("utf-8")
        if len(raw) > MAX_EMAIL_ADDR_BYTES:
            raise InvalidEncoding(
                f"email address is {len(raw)} bytes, maximum is {MAX_EMAIL_ADDR_BYTES}"
            )
        return cls(
            padded_bytes=raw + b"\x00" * (MAX_EMAIL_ADDR_BYTES - len(raw)),
            addr_len=len(raw),
        )


class AccountSalt:
    """Binds a padded email address and an account code into one element."""

    def __init__(self, tag: bytes = ACCOUNT_SALT_TAG):
        self.tag = tag

    def derive(self, padded_addr: bytes, account_code: AccountCode) -> FieldElement:
        fields = bytes_to_fields(padded_addr)
        fields.append(account_code.element)
        fields.append(FieldElement(0))
        return hash_fields(self.tag, fields)


nullifier_hasher = FieldHash(NULLIFIER_TAG)
public_key_hasher = FieldHash(PUBLIC_KEY_TAG)
account_salt_deriver = AccountSalt()
