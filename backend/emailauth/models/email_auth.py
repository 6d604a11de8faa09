"""
Pydantic models for the email-auth exchange.

Models:
  EmailAuthInput            circuit input produced by generateEmailInput
  ResponseEnvelope          {code, msg, data} returned by every operation
  GenerateEmailInputRequest / EmailNullifierRequest /
  PublicKeyHashRequest / EmailHashRequest
                            HTTP request bodies for the zkemail router
"""

from typing import List, Optional

from pydantic import BaseModel, Field

SUCCESS_CODE = 0
ERROR_CODE = 1


# ---------------------------------------------------------------------------
# Circuit input
# ---------------------------------------------------------------------------

class EmailAuthInput(BaseModel):
    """
    Inputs for the email-auth circuit.

    from_addr_idx, domain_idx and subject_idx are absolute offsets into
    padded_header. timestamp_idx, address_idx, pubkey_idx and validator_idx
    are relative to subject_idx; when the field is absent the offset is 0 and
    the matching *_present flag is False.
    """

    padded_header: List[int]
    public_key: List[str]
    signature: List[str]
    padded_header_len: int
    account_code: str
    from_addr_idx: int
    subject_idx: int
    domain_idx: int
    timestamp_idx: int
    address_idx: int
    pubkey_idx: int
    validator_idx: int
    timestamp_present: bool
    address_present: bool
    pubkey_present: bool
    validator_present: bool


# ---------------------------------------------------------------------------
# Response envelope
# ---------------------------------------------------------------------------

class ResponseEnvelope(BaseModel):
    """code 0 carries data; code 1 carries data=None and a diagnostic msg."""

    code: int = Field(ge=SUCCESS_CODE, le=ERROR_CODE)
    msg: str
    data: Optional[str] = None

    @classmethod
    def success(cls, operation: str, data: str) -> "ResponseEnvelope":
        return cls(code=SUCCESS_CODE, msg=f"{operation} succeeded", data=data)

    @classmethod
    def error(cls, operation: str, cause: Exception) -> "ResponseEnvelope":
        return cls(
            code=ERROR_CODE,
            msg=f"{operation} failed: {type(cause).__name__}: {cause}",
            data=None,
        )

    def to_json(self) -> str:
        return self.model_dump_json()


# ---------------------------------------------------------------------------
# Request bodies
# ---------------------------------------------------------------------------

class GenerateEmailInputRequest(BaseModel):
    raw_email: str
    account_code: str


class EmailNullifierRequest(BaseModel):
    """signature is the raw DKIM signature as a list of byte values."""
    signature: List[int]


class PublicKeyHashRequest(BaseModel):
    public_key: str


class EmailHashRequest(BaseModel):
    email_addr: str
    account_code: str
