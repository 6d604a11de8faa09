"""
Invocation boundary for host callers.

Every entry point takes host-native arguments, returns exactly one serialized
ResponseEnvelope and never raises:

  generate_email_input(raw_email, account_code)  -> data: EmailAuthInput JSON
  email_nullifier(signature)                     -> data: hex field element
  public_key_hash(public_key)                    -> data: hex field element
  email_hash(email_addr, account_code)           -> data: hex field element

Arguments are decoded first; a decoding failure answers immediately without
running any core logic. Core logic then runs inside _run_isolated, the single
place where unexpected exceptions are converted into RuntimeFault envelopes.

Entry points are synchronous. Asynchronous work (DKIM key lookup) runs on a
fresh event loop per call, closed before the call returns, so they must be
called from a thread without a running event loop.
"""

import asyncio
import logging
from typing import Callable, Optional

from emailauth.errors import DecodingError, EmailAuthError, InvalidEncoding, RuntimeFault
from emailauth.models.email_auth import ResponseEnvelope
from emailauth.services import digest
from emailauth.services.auth_input import generate_email_auth_input_json
from emailauth.services.email_parser import KeyResolver
from emailauth.services.field_element import AccountCode

logger = logging.getLogger(__name__)

GENERATE_EMAIL_INPUT = "generateEmailInput"
EMAIL_NULLIFIER = "emailNullifier"
PUBLIC_KEY_HASH = "publicKeyHash"
EMAIL_HASH = "emailHash"


# ---------------------------------------------------------------------------
# Host argument decoding
# ---------------------------------------------------------------------------

def _decode_text(value, name: str) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, (bytes, bytearray)):
        try:
            return bytes(value).decode("utf-8")
        except UnicodeDecodeError as exc:
            raise InvalidEncoding(f"can not get {name} from input: {exc}") from exc
    raise InvalidEncoding(f"can not get {name} from input: expected text, got {type(value).__name__}")


def _decode_bytes(value, name: str) -> bytes:
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    if isinstance(value, (list, tuple)):
        if not all(isinstance(b, int) and not isinstance(b, bool) and 0 <= b <= 255 for b in value):
            raise InvalidEncoding(f"can not get {name} from input: values must be bytes in 0..255")
        return bytes(value)
    raise InvalidEncoding(f"can not get {name} from input: expected bytes, got {type(value).__name__}")


def _decode_account_code(value) -> AccountCode:
    return AccountCode.from_hex(_decode_text(value, "account code"))


# ---------------------------------------------------------------------------
# Fault isolation
# ---------------------------------------------------------------------------

def _error(operation: str, exc: EmailAuthError) -> str:
    logger.warning("%s failed: %s", operation, exc)
    return ResponseEnvelope.error(operation, exc).to_json()


def _run_isolated(operation: str, call: Callable[[], str]) -> str:
    """Run ``call`` and wrap its outcome in an envelope; never raises."""
    try:
        data = call()
    except EmailAuthError as exc:
        return _error(operation, exc)
    except Exception as exc:
        logger.exception("%s aborted with an unexpected error", operation)
        fault = RuntimeFault(f"unexpected {type(exc).__name__}: {exc}")
        return ResponseEnvelope.error(operation, fault).to_json()
    return ResponseEnvelope.success(operation, data).to_json()


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------

def generate_email_input(
    raw_email,
    account_code,
    key_resolver: Optional[KeyResolver] = None,
) -> str:
    try:
        email = _decode_text(raw_email, "email")
        code = _decode_account_code(account_code)
    except DecodingError as exc:
        return _error(GENERATE_EMAIL_INPUT, exc)

    return _run_isolated(
        GENERATE_EMAIL_INPUT,
        lambda: asyncio.run(
            generate_email_auth_input_json(email, code, key_resolver=key_resolver)
        ),
    )


def email_nullifier(signature) -> str:
    try:
        signature_bytes = _decode_bytes(signature, "signature")
    except DecodingError as exc:
        return _error(EMAIL_NULLIFIER, exc)

    return _run_isolated(EMAIL_NULLIFIER, lambda: digest.email_nullifier(signature_bytes))


def public_key_hash(public_key) -> str:
    try:
        public_key_hex = _decode_text(public_key, "public key")
        digest.decode_public_key_hex(public_key_hex)
    except DecodingError as exc:
        return _error(PUBLIC_KEY_HASH, exc)

    return _run_isolated(PUBLIC_KEY_HASH, lambda: digest.public_key_hash(public_key_hex))


def email_hash(email_addr, account_code) -> str:
    try:
        addr = _decode_text(email_addr, "email address")
        code = _decode_account_code(account_code)
    except DecodingError as exc:
        return _error(EMAIL_HASH, exc)

    return _run_isolated(EMAIL_HASH, lambda: digest.email_hash(addr, code.to_hex()))
