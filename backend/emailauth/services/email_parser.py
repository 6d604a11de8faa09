"""
Raw email -> ParsedEmail, using dkimpy for header parsing and DKIM
canonicalization.

The canonicalized header is exactly the byte string the DKIM signature
covers: the headers listed in h= (canonicalized, bottom-up selection as in
RFC 6376 section 5.4.2) followed by the DKIM-Signature header itself with an
empty b= value and no trailing CRLF.

The signing key is fetched asynchronously through a key resolver. The
default resolver performs a DNS TXT lookup of <selector>._domainkey.<domain>
in a worker thread; tests and offline callers pass their own.
"""

import asyncio
import base64
import binascii
import logging
import re
from typing import Awaitable, Callable, Optional

import dkim
import dkim.crypto
import dkim.dnsplug
import dkim.util
from dkim.canonicalization import (
    CanonicalizationPolicy,
    InvalidCanonicalizationPolicyError,
)

from emailauth.config import get_dns_timeout
from emailauth.errors import EmailParseError
from emailauth.models.parsed_email import ParsedEmail

logger = logging.getLogger(__name__)

KeyResolver = Callable[[bytes, bytes], Awaitable[Optional[bytes]]]

_DKIM_SIGNATURE = b"dkim-signature"
_DEFAULT_CANONICALIZATION = b"simple/simple"

# b= tag value, including folding whitespace; group 1 keeps "b="
_BTAG_RE = re.compile(rb"([;\s]b[ \t]*=)(?:\r?\n[ \t]+|[ \t]|[A-Za-z0-9+/=])*")
_WHITESPACE_RE = re.compile(rb"\s+")


async def resolve_dkim_key_dns(selector: bytes, domain: bytes) -> Optional[bytes]:
    """Fetch the DKIM TXT record for ``selector``/``domain`` over DNS."""
    name = selector + b"._domainkey." + domain + b"."
    timeout = get_dns_timeout()
    logger.info("Resolving DKIM key %s", name.decode("ascii", errors="replace"))
    return await asyncio.to_thread(dkim.dnsplug.get_txt, name, timeout=timeout)


def _parse_signature_tags(value: bytes) -> dict:
    try:
        tags = dkim.util.parse_tag_value(value)
    except dkim.util.InvalidTagValueList as exc:
        raise EmailParseError(f"malformed DKIM-Signature: {exc}") from exc

    for required in (b"a", b"b", b"d", b"h", b"s"):
        if not tags.get(required):
            raise EmailParseError(
                f"DKIM-Signature is missing the {required.decode()}= tag"
            )
    if not tags[b"a"].lower().startswith(b"rsa-"):
        raise EmailParseError(
            f"unsupported DKIM algorithm {tags[b'a'].decode(errors='replace')!r}"
        )
    return tags


def _decode_signature(b_tag: bytes) -> bytes:
    try:
        return base64.b64decode(_WHITESPACE_RE.sub(b"", b_tag), validate=True)
    except (binascii.Error, ValueError) as exc:
        raise EmailParseError(f"DKIM b= tag is not valid base64: {exc}") from exc


def _public_key_modulus(record: bytes) -> bytes:
    """Extract the RSA modulus (big-endian bytes) from a DKIM key record."""
    try:
        tags = dkim.util.parse_tag_value(record)
    except dkim.util.InvalidTagValueList as exc:
        raise EmailParseError(f"malformed DKIM key record: {exc}") from exc

    key_type = tags.get(b"k", b"rsa").lower()
    if key_type != b"rsa":
        raise EmailParseError(f"unsupported DKIM key type {key_type.decode(errors='replace')!r}")

    p_tag = _WHITESPACE_RE.sub(b"", tags.get(b"p", b""))
    if not p_tag:
        raise EmailParseError("DKIM key record has an empty p= tag (key revoked)")

    # Key material comes from DNS; any ASN.1 decoding failure is a parse error
    try:
        key = dkim.crypto.parse_public_key(base64.b64decode(p_tag))
    except Exception as exc:
        raise EmailParseError(f"DKIM public key cannot be parsed: {exc}") from exc

    modulus = key["modulus"]
    return modulus.to_bytes((modulus.bit_length() + 7) // 8, "big")


def canonicalize_signed_header(headers: list, sig_header: tuple, tags: dict) -> bytes:
    """Return the header bytes covered by the DKIM signature."""
    try:
        policy = CanonicalizationPolicy.from_c_value(tags.get(b"c", _DEFAULT_CANONICALIZATION))
    except InvalidCanonicalizationPolicyError as exc:
        raise EmailParseError(f"invalid DKIM canonicalization: {exc}") from exc

    include_headers = [
        name.strip().lower() for name in tags[b"h"].split(b":") if name.strip()
    ]
    canonical = policy.canonicalize_headers(headers)
    signed = dkim.select_headers(canonical, include_headers)

    sig_name, sig_value = sig_header
    [(c_name, c_value)] = policy.canonicalize_headers(
        [(sig_name, _BTAG_RE.sub(rb"\1", sig_value))]
    )

    parts = [name + b":" + value for name, value in signed]
    parts.append(c_name + b":" + c_value.rstrip())
    return b"".join(parts)


async def parse_raw_email(
    raw_email: str,
    key_resolver: Optional[KeyResolver] = None,
) -> ParsedEmail:
    """
    Parse a raw RFC 822 email into a ParsedEmail.

    Uses the first DKIM-Signature header. Raises EmailParseError when the
    message has no usable signature or the signing key cannot be obtained.
    """
    resolver = key_resolver or resolve_dkim_key_dns
    message = raw_email.encode("utf-8")

    try:
        headers, body = dkim.rfc822_parse(message)
    except dkim.MessageFormatError as exc:
        raise EmailParseError(f"malformed email headers: {exc}") from exc

    sig_headers = [h for h in headers if h[0].lower() == _DKIM_SIGNATURE]
    if not sig_headers:
        raise EmailParseError("email has no DKIM-Signature header")

    sig_header = (sig_headers[0][0], sig_headers[0][1])
    tags = _parse_signature_tags(sig_header[1])
    signature = _decode_signature(tags[b"b"])
    header = canonicalize_signed_header(headers, sig_header, tags)

    policy = CanonicalizationPolicy.from_c_value(tags.get(b"c", _DEFAULT_CANONICALIZATION))
    canonical_body = policy.canonicalize_body(body)

    selector = tags[b"s"].strip()
    domain = tags[b"d"].strip()
    try:
        record = await resolver(selector, domain)
    except EmailParseError:
        raise
    except Exception as exc:
        raise EmailParseError(
            f"DKIM key lookup for {selector.decode(errors='replace')}"
            f"._domainkey.{domain.decode(errors='replace')} failed: {exc}"
        ) from exc
    if not record:
        raise EmailParseError(
            f"no DKIM key published for {selector.decode(errors='replace')}"
            f"._domainkey.{domain.decode(errors='replace')}"
        )

    public_key = _public_key_modulus(record)

    logger.debug(
        "Parsed email: %d header bytes, %d-bit key, d=%s s=%s",
        len(header), len(public_key) * 8, domain, selector,
    )

    return ParsedEmail(
        canonicalized_header=header,
        signature=signature,
        public_key=public_key,
        canonicalized_body=canonical_body,
        selector=selector.decode("ascii", errors="replace"),
        domain=domain.decode("ascii", errors="replace"),
    )
