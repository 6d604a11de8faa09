"""
EmailAuthInput assembly: parse -> pad -> normalize offsets.

Each stage either completes or raises; nothing partial is returned.
"""

import logging
from typing import Optional

from emailauth.config import CircuitSettings, get_circuit_settings
from emailauth.models.email_auth import EmailAuthInput
from emailauth.services.circuit_padder import pad_circuit_inputs
from emailauth.services.email_parser import KeyResolver, parse_raw_email
from emailauth.services.field_element import AccountCode
from emailauth.services.index_normalizer import normalize_indices

logger = logging.getLogger(__name__)


async def generate_email_auth_input(
    raw_email: str,
    account_code: AccountCode,
    settings: Optional[CircuitSettings] = None,
    key_resolver: Optional[KeyResolver] = None,
) -> EmailAuthInput:
    """
    Build the circuit input for ``raw_email``.

    Raises:
        EmailParseError: the email has no usable DKIM signature or key.
        CircuitInputError: the header does not fit settings.max_header_len.
        RequiredFieldMissing: from-address, domain or subject not found.
    """
    settings = settings or get_circuit_settings()

    parsed = await parse_raw_email(raw_email, key_resolver=key_resolver)

    padded = pad_circuit_inputs(
        parsed.canonicalized_header,
        parsed.signature,
        parsed.public_key,
        settings.max_header_len,
        settings.max_body_len,
        settings.ignore_body_hash_check,
        body=parsed.canonicalized_body,
    )

    offsets = normalize_indices(parsed)

    email_auth_input = EmailAuthInput(
        padded_header=padded.padded_header,
        public_key=padded.public_key,
        signature=padded.signature,
        padded_header_len=padded.padded_header_len,
        account_code=account_code.to_hex(),
        **offsets.as_indices(),
    )

    logger.info(
        "Generated email auth input for d=%s (header %d bytes, subject_idx=%d)",
        parsed.domain, padded.padded_header_len, email_auth_input.subject_idx,
    )
    return email_auth_input


async def generate_email_auth_input_json(
    raw_email: str,
    account_code: AccountCode,
    settings: Optional[CircuitSettings] = None,
    key_resolver: Optional[KeyResolver] = None,
) -> str:
    """Same as generate_email_auth_input, serialized to the exchange JSON."""
    email_auth_input = await generate_email_auth_input(
        raw_email, account_code, settings=settings, key_resolver=key_resolver
    )
    return email_auth_input.model_dump_json()
