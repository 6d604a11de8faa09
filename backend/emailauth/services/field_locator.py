"""
Semantic field localization over a canonicalized email header.

Every locator returns the byte range of a field *value* inside the header
bytes exactly as they are fed to the circuit:

  from_addr   the sender address in the From header ("alice@example.com")
  domain      the part of the sender address after "@"
  subject     the whole Subject header value
  timestamp   the digits of the DKIM-Signature t= tag
  address     0x + 40 hex digits following "address" in the subject
  pubkey      0x + hex digits following "pubkey" in the subject
  validator   0x + 40 hex digits following "validator" in the subject

Subject commands look like:

  subject:Register address 0x5aAe...cA54 pubkey 0x04ab...ff validator 0x1cE1...09Ba

Adding a field:
  1. Write a _locate_<field>(header: bytes) -> FieldRange function.
  2. Register it in _LOCATORS.
"""

import re
from typing import Callable

from emailauth.errors import FieldNotFound
from emailauth.models.parsed_email import FieldKind, FieldRange

# A header value may be folded onto continuation lines (simple canonicalization)
_VALUE = rb"(?:[^\r\n]|\r\n[ \t])*?"

_FROM_ADDR_RE = re.compile(
    rb"(?:^|\r\n)from:[ \t]*(?:[^\r\n<]*<)?"
    rb"([A-Za-z0-9!#$%&'*+/=?^_`{|}~.\-]+@[A-Za-z0-9.\-]+)",
    re.IGNORECASE,
)
_SUBJECT_RE = re.compile(
    rb"(?:^|\r\n)subject:[ \t]*((?:[^\r\n]|\r\n[ \t])+)", re.IGNORECASE
)
_TIMESTAMP_RE = re.compile(
    rb"(?:^|\r\n)dkim-signature:(?:" + _VALUE + rb";)?\s*t=(\d+)",
    re.IGNORECASE,
)

_SUBJECT_COMMAND_RES = {
    FieldKind.ADDRESS: re.compile(
        rb"\baddress[ \t]*[:=]?[ \t]*(0x[0-9a-f]{40})(?![0-9a-f])", re.IGNORECASE
    ),
    FieldKind.PUBKEY: re.compile(
        rb"\bpubkey[ \t]*[:=]?[ \t]*(0x[0-9a-f]+)", re.IGNORECASE
    ),
    FieldKind.VALIDATOR: re.compile(
        rb"\bvalidator[ \t]*[:=]?[ \t]*(0x[0-9a-f]{40})(?![0-9a-f])", re.IGNORECASE
    ),
}


def _group_range(match: re.Match, offset: int = 0) -> FieldRange:
    start, end = match.span(1)
    return FieldRange(start=offset + start, length=end - start)


# ---------------------------------------------------------------------------
# Header-level fields
# ---------------------------------------------------------------------------

def _locate_from_addr(header: bytes) -> FieldRange:
    match = _FROM_ADDR_RE.search(header)
    if match is None:
        raise FieldNotFound(FieldKind.FROM_ADDR.value, "no address in From header")
    return _group_range(match)


def _locate_domain(header: bytes) -> FieldRange:
    match = _FROM_ADDR_RE.search(header)
    if match is None:
        raise FieldNotFound(FieldKind.DOMAIN.value, "no address in From header")
    addr = match.group(1)
    at = addr.rindex(b"@")
    return FieldRange(start=match.start(1) + at + 1, length=len(addr) - at - 1)


def _locate_subject(header: bytes) -> FieldRange:
    match = _SUBJECT_RE.search(header)
    if match is None:
        raise FieldNotFound(FieldKind.SUBJECT.value, "no Subject header")
    return _group_range(match)


def _locate_timestamp(header: bytes) -> FieldRange:
    match = _TIMESTAMP_RE.search(header)
    if match is None:
        raise FieldNotFound(FieldKind.TIMESTAMP.value, "no t= tag in DKIM-Signature")
    return _group_range(match)


# ---------------------------------------------------------------------------
# Subject commands
# ---------------------------------------------------------------------------

def _subject_command_locator(kind: FieldKind) -> Callable[[bytes], FieldRange]:
    pattern = _SUBJECT_COMMAND_RES[kind]

    def locate(header: bytes) -> FieldRange:
        try:
            subject = _locate_subject(header)
        except FieldNotFound:
            raise FieldNotFound(kind.value, "no Subject header")
        match = pattern.search(header, subject.start, subject.end)
        if match is None:
            raise FieldNotFound(kind.value, "not present in subject")
        return _group_range(match)

    return locate


# ---------------------------------------------------------------------------
# Registry and dispatcher
# ---------------------------------------------------------------------------

_LOCATORS: dict[FieldKind, Callable[[bytes], FieldRange]] = {
    FieldKind.FROM_ADDR: _locate_from_addr,
    FieldKind.DOMAIN: _locate_domain,
    FieldKind.SUBJECT: _locate_subject,
    FieldKind.TIMESTAMP: _locate_timestamp,
    FieldKind.ADDRESS: _subject_command_locator(FieldKind.ADDRESS),
    FieldKind.PUBKEY: _subject_command_locator(FieldKind.PUBKEY),
    FieldKind.VALIDATOR: _subject_command_locator(FieldKind.VALIDATOR),
}


def locate_field(header: bytes, kind: FieldKind) -> FieldRange:
    """
    Find ``kind`` in the canonicalized header.

    Raises FieldNotFound when the field is absent and ValueError for an
    unknown field kind.
    """
    locator = _LOCATORS.get(FieldKind(kind))
    if locator is None:
        raise ValueError(f"No locator registered for field kind {kind!r}")
    return locator(header)
