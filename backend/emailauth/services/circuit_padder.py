"""
Circuit input padding.

The circuit hashes the header with SHA-256 inside the proof, so the header is
given the standard SHA-256 message padding (0x80, zeros, 64-bit big-endian
bit length) and then zero-filled up to a fixed maximum. RSA integers are split
into little-endian limbs of CIRCOM_BIGINT_N bits, CIRCOM_BIGINT_K limbs each,
and emitted as decimal strings.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

from emailauth.errors import CircuitInputError

logger = logging.getLogger(__name__)

SHA256_BLOCK_BYTES = 64
SHA256_LENGTH_BYTES = 8
CIRCOM_BIGINT_N = 121
CIRCOM_BIGINT_K = 17


@dataclass(frozen=True)
class PaddedCircuitInputs:
    """Padder output; body fields are set only when the body hash is checked."""

    padded_header: List[int]
    padded_header_len: int
    signature: List[str]
    public_key: List[str]
    padded_body: Optional[List[int]] = None
    padded_body_len: Optional[int] = None


def sha256_pad(message: bytes, max_len: int) -> Tuple[bytes, int]:
    """
    Apply SHA-256 message padding and zero-fill to ``max_len`` bytes.

    Returns:
        (padded bytes of length max_len, length of the SHA-256 padded message)

    Raises:
        CircuitInputError: max_len is not a positive multiple of 64, or the
            padded message does not fit.
    """
    if max_len <= 0 or max_len % SHA256_BLOCK_BYTES != 0:
        raise CircuitInputError(
            f"maximum length {max_len} must be a positive multiple of {SHA256_BLOCK_BYTES}"
        )

    bit_len = len(message) * 8
    padded = bytearray(message)
    padded.append(0x80)
    while (len(padded) + SHA256_LENGTH_BYTES) % SHA256_BLOCK_BYTES != 0:
        padded.append(0)
    padded.extend(bit_len.to_bytes(SHA256_LENGTH_BYTES, "big"))

    padded_len = len(padded)
    if padded_len > max_len:
        raise CircuitInputError(
            f"padded length {padded_len} exceeds the maximum of {max_len} bytes"
        )

    padded.extend(b"\x00" * (max_len - padded_len))
    return bytes(padded), padded_len


def to_circom_bigint_limbs(
    value: int,
    n: int = CIRCOM_BIGINT_N,
    k: int = CIRCOM_BIGINT_K,
) -> List[str]:
    """Split ``value`` into ``k`` little-endian limbs of ``n`` bits."""
    if value < 0:
        raise CircuitInputError("cannot split a negative integer into limbs")
    if value.bit_length() > n * k:
        raise CircuitInputError(
            f"integer of {value.bit_length()} bits does not fit in {k} limbs of {n} bits"
        )

    mask = (1 << n) - 1
    limbs = []
    for _ in range(k):
        limbs.append(str(value & mask))
        value >>= n
    return limbs


def pad_circuit_inputs(
    header: bytes,
    signature: bytes,
    public_key: bytes,
    max_header_len: int,
    max_body_len: int,
    ignore_body_hash_check: bool = True,
    body: bytes = b"",
) -> PaddedCircuitInputs:
    """
    Lay out header, signature and public key for the circuit.

    signature and public_key are big-endian RSA integers. When
    ignore_body_hash_check is False the canonicalized body is padded to
    max_body_len as well.
    """
    if not signature:
        raise CircuitInputError("signature is empty")
    if not public_key:
        raise CircuitInputError("public key is empty")

    padded_header, padded_header_len = sha256_pad(header, max_header_len)

    padded_body = None
    padded_body_len = None
    if not ignore_body_hash_check:
        body_bytes, padded_body_len = sha256_pad(body, max_body_len)
        padded_body = list(body_bytes)

    logger.debug(
        "Padded header %d -> %d bytes (max %d)",
        len(header), padded_header_len, max_header_len,
    )

    return PaddedCircuitInputs(
        padded_header=list(padded_header),
        padded_header_len=padded_header_len,
        signature=to_circom_bigint_limbs(int.from_bytes(signature, "big")),
        public_key=to_circom_bigint_limbs(int.from_bytes(public_key, "big")),
        padded_body=padded_body,
        padded_body_len=padded_body_len,
    )
