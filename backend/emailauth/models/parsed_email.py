"""
Pydantic models for a parsed, DKIM-canonicalized email.

ParsedEmail is produced by the email parser and is read-only to the rest of
the pipeline. Byte ranges are offsets into canonicalized_header.
"""

from enum import Enum

from pydantic import BaseModel, Field


class FieldKind(str, Enum):
    """Semantic fields the circuit needs byte offsets for."""

    FROM_ADDR = "from_addr"
    DOMAIN = "domain"
    SUBJECT = "subject"
    ADDRESS = "address"
    PUBKEY = "pubkey"
    VALIDATOR = "validator"
    TIMESTAMP = "timestamp"


class FieldRange(BaseModel):
    """A (start, length) byte range."""

    model_config = {"frozen": True}

    start: int = Field(ge=0)
    length: int = Field(ge=0)

    @property
    def end(self) -> int:
        return self.start + self.length


class ParsedEmail(BaseModel):
    """
    Canonicalized header plus the DKIM material needed by the circuit.

    signature   RSA signature from the DKIM b= tag, big-endian bytes
    public_key  RSA modulus of the signing key, big-endian bytes
    """

    model_config = {"frozen": True}

    canonicalized_header: bytes
    signature: bytes
    public_key: bytes
    canonicalized_body: bytes = b""
    selector: str = ""
    domain: str = ""

    def locate(self, kind: FieldKind) -> FieldRange:
        """
        Return the byte range of ``kind`` in the canonicalized header.

        Raises:
            FieldNotFound: the field is not present.
        """
        from emailauth.services.field_locator import locate_field

        return locate_field(self.canonicalized_header, kind)
