"""
Shared fixtures: a DKIM-signed sample email and an offline key resolver.

No test touches the network; DKIM key lookups are served from
SAMPLE_DKIM_RECORD.
"""

import pytest

SAMPLE_DKIM_PUBKEY_B64 = (
    "MIGfMA0GCSqGSIb3DQEBAQUAA4GNADCBiQKBgQDSYQVdSxMUPd67fAoZMTHfDH0MUfEPdbGl"
    "j7M/gZ/ZAcI34LJJA/3l6jCkw8GA8Nk4rlprGP40tSrtoeT3rYVfCMUIKJaDg1fws1PVzl/G"
    "ikTmyX+3MQPTw7V9mvpzNEu/tB+e6KVGoZOvt6rxV29XoXsF6QhE+teDms+zbemQ2QIDAQAB"
)
SAMPLE_MODULUS_HEX = (
    "D261055D4B13143DDEBB7C0A193131DF0C7D0C51F10F75B1A58FB33F819FD901C237E0B2"
    "4903FDE5EA30A4C3C180F0D938AE5A6B18FE34B52AEDA1E4F7AD855F08C5082896838357"
    "F0B353D5CE5FC68A44E6C97FB73103D3C3B57D9AFA73344BBFB41F9EE8A546A193AFB7AA"
    "F1576F57A17B05E90844FAD7839ACFB36DE990D9"
)
SAMPLE_DKIM_RECORD = ("v=DKIM1; k=rsa; p=" + SAMPLE_DKIM_PUBKEY_B64).encode()

SAMPLE_ADDRESS = "0x5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAed"
SAMPLE_VALIDATOR = "0x" + "1cE1" + "0" * 32 + "09Ba"
SAMPLE_SUBJECT = f"Register address {SAMPLE_ADDRESS} validator {SAMPLE_VALIDATOR}"

# b=AQIDBA== decodes to the 4-byte signature 01 02 03 04
SAMPLE_SIGNATURE = bytes([0x01, 0x02, 0x03, 0x04])

SAMPLE_SIG_VALUE = (
    "v=1; a=rsa-sha256; c=relaxed/relaxed; d=example.com; s=selector1; "
    "t=1700000000; h=from:subject:to; "
    "bh=47DEQpj8HBSa+/TImW+5JCeuQeRkm5NMpJWZG3hSuFU=; b="
)

SAMPLE_ACCOUNT_CODE = "0x01eb9b204cc24c3baee11accc37d253a9c53e92b1a2cc07763475c135d575b76"


def make_raw_email(
    subject: str = SAMPLE_SUBJECT,
    from_header: str = "Alice <alice@example.com>",
    dkim_header: str | None = None,
) -> str:
    """Build a raw email with a folded relaxed/relaxed DKIM-Signature."""
    if dkim_header is None:
        dkim_header = (
            "DKIM-Signature: v=1; a=rsa-sha256; c=relaxed/relaxed; d=example.com; s=selector1;\r\n"
            " t=1700000000; h=from:subject:to;\r\n"
            " bh=47DEQpj8HBSa+/TImW+5JCeuQeRkm5NMpJWZG3hSuFU=;\r\n"
            " b=AQIDBA==\r\n"
        )
    return (
        dkim_header
        + f"From: {from_header}\r\n"
        + "To: relayer@zk.example\r\n"
        + f"Subject: {subject}\r\n"
        + "Date: Tue, 14 Nov 2023 22:13:20 +0000\r\n"
        + "\r\n"
        + "Hello\r\n"
    )


def expected_canonical_header(subject: str = SAMPLE_SUBJECT) -> bytes:
    return (
        "from:Alice <alice@example.com>\r\n"
        f"subject:{subject}\r\n"
        "to:relayer@zk.example\r\n"
        f"dkim-signature:{SAMPLE_SIG_VALUE}"
    ).encode()


@pytest.fixture
def raw_email() -> str:
    return make_raw_email()


@pytest.fixture
def key_resolver():
    """Async resolver that serves the sample key and records lookups."""
    lookups = []

    async def resolve(selector: bytes, domain: bytes) -> bytes:
        lookups.append((selector, domain))
        return SAMPLE_DKIM_RECORD

    resolve.lookups = lookups
    return resolve
