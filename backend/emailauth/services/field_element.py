"""
BN254 scalar field elements and their hex encoding.

Canonical hex is "0x" + 64 hex digits, most significant byte first. The raw
representation used by the hash primitives is little-endian, so bytes read
from hex are reversed before they are interpreted as an integer.
"""

import binascii
from dataclasses import dataclass

from emailauth.errors import InvalidFieldElement

BN254_MODULUS = 21888242871839275222246405745257275088548364400416034343698204186575808495617
FIELD_BYTES = 32
HEX_PREFIX = "0x"


def reverse_bytes(data: bytes) -> bytes:
    return bytes(data[::-1])


@dataclass(frozen=True)
class FieldElement:
    """An integer representative in [0, BN254_MODULUS)."""

    value: int

    def __post_init__(self):
        if not isinstance(self.value, int) or isinstance(self.value, bool):
            raise InvalidFieldElement(f"field element must be an int, got {type(self.value).__name__}")
        if not 0 <= self.value < BN254_MODULUS:
            raise InvalidFieldElement("value is outside the scalar field range")

    @classmethod
    def from_le_bytes(cls, data: bytes) -> "FieldElement":
        return cls(int.from_bytes(data, "little"))

    def to_le_bytes(self) -> bytes:
        return self.value.to_bytes(FIELD_BYTES, "little")


@dataclass(frozen=True)
class AccountCode:
    """Opaque account identifier; passed through unchanged."""

    element: FieldElement

    @classmethod
    def from_hex(cls, account_code_hex: str) -> "AccountCode":
        return cls(hex2field(account_code_hex))

    def to_hex(self) -> str:
        return field2hex(self.element)


def hex2field(input_hex: str) -> FieldElement:
    """
    Parse canonical hex into a FieldElement.

    Raises:
        InvalidFieldElement: missing prefix, odd length, non-hex characters,
            wrong width, or a value >= the field modulus.
    """
    if not isinstance(input_hex, str):
        raise InvalidFieldElement(f"expected a hex string, got {type(input_hex).__name__}")
    if not input_hex.startswith(HEX_PREFIX):
        raise InvalidFieldElement(f"{input_hex!r} does not start with {HEX_PREFIX!r}")

    digits = input_hex[len(HEX_PREFIX):]
    try:
        be_bytes = binascii.unhexlify(digits)
    except (binascii.Error, ValueError) as exc:
        raise InvalidFieldElement(f"{input_hex!r} is invalid hex: {exc}") from exc

    if len(be_bytes) != FIELD_BYTES:
        raise InvalidFieldElement(
            f"{input_hex!r} encodes {len(be_bytes)} bytes, expected {FIELD_BYTES}"
        )

    # Hex is big-endian, the field repr is little-endian.
    value = int.from_bytes(reverse_bytes(be_bytes), "little")
    if value >= BN254_MODULUS:
        raise InvalidFieldElement(f"{input_hex!r} is not less than the field modulus")
    return FieldElement(value)


def field2hex(field: FieldElement) -> str:
    return HEX_PREFIX + reverse_bytes(field.to_le_bytes()).hex()
