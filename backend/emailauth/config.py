"""
Runtime configuration.

Values come from the environment (optionally seeded from a .env file) and
are read at call time so every request sees the current settings.
"""

import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()

DEFAULT_MAX_HEADER_LEN = 1024
DEFAULT_MAX_BODY_LEN = 64
DEFAULT_DNS_TIMEOUT = 5.0

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class CircuitSettings:
    """Limits handed to the circuit input padder."""

    max_header_len: int = DEFAULT_MAX_HEADER_LEN
    max_body_len: int = DEFAULT_MAX_BODY_LEN
    ignore_body_hash_check: bool = True


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}")
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {value}")
    return value


def _bool_env(name: str, default: bool) -> bool:
    raw = os.getenv(name, "").strip().lower()
    if not raw:
        return default
    if raw in _TRUTHY:
        return True
    if raw in _FALSY:
        return False
    raise ValueError(f"{name} must be a boolean, got {raw!r}")


def get_circuit_settings() -> CircuitSettings:
    """
    Build CircuitSettings from the environment.

    EMAILAUTH_MAX_HEADER_LEN          padded header size in bytes (default 1024)
    EMAILAUTH_MAX_BODY_LEN            padded body size in bytes (default 64)
    EMAILAUTH_IGNORE_BODY_HASH_CHECK  skip body padding (default true)
    """
    return CircuitSettings(
        max_header_len=_int_env("EMAILAUTH_MAX_HEADER_LEN", DEFAULT_MAX_HEADER_LEN),
        max_body_len=_int_env("EMAILAUTH_MAX_BODY_LEN", DEFAULT_MAX_BODY_LEN),
        ignore_body_hash_check=_bool_env("EMAILAUTH_IGNORE_BODY_HASH_CHECK", True),
    )


def get_dns_timeout() -> float:
    """Per-query timeout (seconds) for DKIM public key lookups."""
    raw = os.getenv("EMAILAUTH_DNS_TIMEOUT", "").strip()
    if not raw:
        return DEFAULT_DNS_TIMEOUT
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"EMAILAUTH_DNS_TIMEOUT must be a number, got {raw!r}")
    if value <= 0:
        raise ValueError(f"EMAILAUTH_DNS_TIMEOUT must be positive, got {value}")
    return value


def get_log_level() -> str:
    return os.getenv("LOG_LEVEL", "INFO").strip().upper() or "INFO"
