"""
Error taxonomy for email-auth input generation and digest derivation.

Services raise these; only the invocation boundary turns them into
response envelopes.
"""


class EmailAuthError(Exception):
    """Base class for every structured failure the boundary reports."""


# ---------------------------------------------------------------------------
# Host input decoding
# ---------------------------------------------------------------------------

class DecodingError(EmailAuthError):
    """Malformed host input: bad hex, bad byte array, missing prefix."""


class InvalidEncoding(DecodingError):
    """Input text or bytes are not in the expected encoding."""


class InvalidFieldElement(DecodingError):
    """Hex does not decode to a canonical value inside the scalar field."""


# ---------------------------------------------------------------------------
# Email parsing and field localization
# ---------------------------------------------------------------------------

class EmailParseError(EmailAuthError):
    """The raw email could not be turned into a ParsedEmail."""


class FieldNotFound(EmailAuthError):
    """A semantic field could not be located in the canonicalized header."""

    def __init__(self, kind: str, reason: str = "no match in header"):
        self.kind = kind
        super().__init__(f"{kind} not found: {reason}")


class RequiredFieldMissing(EmailAuthError):
    """from-address, domain or subject could not be resolved."""

    def __init__(self, kind: str, cause: Exception | None = None):
        self.kind = kind
        message = f"required field {kind} is missing"
        if cause is not None:
            message = f"{message} ({cause})"
        super().__init__(message)


# ---------------------------------------------------------------------------
# Circuit inputs and hashing
# ---------------------------------------------------------------------------

class CircuitInputError(EmailAuthError):
    """Header/signature/public key cannot be laid out for the circuit."""


class HashComputationFault(EmailAuthError):
    """The underlying hash primitive failed."""


class RuntimeFault(EmailAuthError):
    """An unexpected exception intercepted at the invocation boundary."""
