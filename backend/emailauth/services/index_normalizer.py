"""
Offset normalization for the email-auth circuit.

The circuit reads two coordinate systems:

  Absolute          from_addr_idx, domain_idx, subject_idx
                    byte offsets from the start of the header
  RelativeTo(subj)  timestamp_idx, address_idx, pubkey_idx, validator_idx
                    byte offset minus subject_idx

Offsets stay tagged until the EmailAuthInput is built so the two systems
cannot be mixed up. Optional fields that cannot be located are None here and
become 0 with a *_present=False flag on the way out.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Protocol

from emailauth.errors import FieldNotFound, RequiredFieldMissing
from emailauth.models.parsed_email import FieldKind, FieldRange

logger = logging.getLogger(__name__)

ABSENT_OFFSET = 0


class LocatableEmail(Protocol):
    def locate(self, kind: FieldKind) -> FieldRange:
        ...


@dataclass(frozen=True)
class Absolute:
    offset: int

    @property
    def value(self) -> int:
        return self.offset


@dataclass(frozen=True)
class RelativeTo:
    """An absolute offset expressed relative to ``origin`` (the subject)."""

    offset: int
    origin: Absolute

    @property
    def value(self) -> int:
        return self.offset - self.origin.offset


@dataclass(frozen=True)
class NormalizedOffsets:
    from_addr: Absolute
    domain: Absolute
    subject: Absolute
    timestamp: Optional[RelativeTo]
    address: Optional[RelativeTo]
    pubkey: Optional[RelativeTo]
    validator: Optional[RelativeTo]

    def as_indices(self) -> dict:
        """Plain integers and presence flags, keyed as in EmailAuthInput."""
        indices = {
            "from_addr_idx": self.from_addr.value,
            "domain_idx": self.domain.value,
            "subject_idx": self.subject.value,
        }
        for name in ("timestamp", "address", "pubkey", "validator"):
            offset = getattr(self, name)
            indices[f"{name}_idx"] = ABSENT_OFFSET if offset is None else offset.value
            indices[f"{name}_present"] = offset is not None
        return indices


def _required_start(parsed: LocatableEmail, kind: FieldKind) -> Absolute:
    try:
        return Absolute(parsed.locate(kind).start)
    except FieldNotFound as exc:
        raise RequiredFieldMissing(kind.value, exc) from exc


def _optional_start(
    parsed: LocatableEmail,
    kind: FieldKind,
    subject: Absolute,
) -> Optional[RelativeTo]:
    try:
        field_range = parsed.locate(kind)
    except FieldNotFound as exc:
        logger.debug("Optional field %s absent: %s", kind.value, exc)
        return None
    return RelativeTo(offset=field_range.start, origin=subject)


def normalize_indices(parsed: LocatableEmail) -> NormalizedOffsets:
    """
    Compute the circuit offsets for ``parsed``.

    Raises:
        RequiredFieldMissing: from-address, domain or subject not found.
    """
    from_addr = _required_start(parsed, FieldKind.FROM_ADDR)
    domain = _required_start(parsed, FieldKind.DOMAIN)
    subject = _required_start(parsed, FieldKind.SUBJECT)

    return NormalizedOffsets(
        from_addr=from_addr,
        domain=domain,
        subject=subject,
        address=_optional_start(parsed, FieldKind.ADDRESS, subject),
        pubkey=_optional_start(parsed, FieldKind.PUBKEY, subject),
        validator=_optional_start(parsed, FieldKind.VALIDATOR, subject),
        timestamp=_optional_start(parsed, FieldKind.TIMESTAMP, subject),
    )
