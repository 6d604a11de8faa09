"""
Email parser tests (dkimpy canonicalization + key resolution).

The DKIM key is always served by an injected resolver or a patched DNS
function; no network access.
"""

import pytest

from conftest import (
    SAMPLE_DKIM_PUBKEY_B64,
    SAMPLE_DKIM_RECORD,
    SAMPLE_MODULUS_HEX,
    SAMPLE_SIGNATURE,
    expected_canonical_header,
    make_raw_email,
)
from emailauth.errors import EmailParseError
from emailauth.services.email_parser import parse_raw_email, resolve_dkim_key_dns


# ---------------------------------------------------------------------------
# Happy path
# ---------------------------------------------------------------------------

class TestParseRawEmail:

    @pytest.mark.asyncio
    async def test_canonicalized_header_matches_signed_bytes(self, raw_email, key_resolver):
        parsed = await parse_raw_email(raw_email, key_resolver=key_resolver)
        assert parsed.canonicalized_header == expected_canonical_header()

    @pytest.mark.asyncio
    async def test_header_has_no_trailing_crlf(self, raw_email, key_resolver):
        parsed = await parse_raw_email(raw_email, key_resolver=key_resolver)
        assert not parsed.canonicalized_header.endswith(b"\r\n")
        assert parsed.canonicalized_header.endswith(b"b=")

    @pytest.mark.asyncio
    async def test_signature_bytes_from_b_tag(self, raw_email, key_resolver):
        parsed = await parse_raw_email(raw_email, key_resolver=key_resolver)
        assert parsed.signature == SAMPLE_SIGNATURE

    @pytest.mark.asyncio
    async def test_public_key_is_rsa_modulus(self, raw_email, key_resolver):
        parsed = await parse_raw_email(raw_email, key_resolver=key_resolver)
        assert parsed.public_key == bytes.fromhex(SAMPLE_MODULUS_HEX)
        assert len(parsed.public_key) == 128

    @pytest.mark.asyncio
    async def test_key_resolved_for_selector_and_domain(self, raw_email, key_resolver):
        parsed = await parse_raw_email(raw_email, key_resolver=key_resolver)
        assert key_resolver.lookups == [(b"selector1", b"example.com")]
        assert parsed.selector == "selector1"
        assert parsed.domain == "example.com"

    @pytest.mark.asyncio
    async def test_lf_line_endings_are_accepted(self, raw_email, key_resolver):
        parsed = await parse_raw_email(raw_email.replace("\r\n", "\n"), key_resolver=key_resolver)
        assert parsed.canonicalized_header == expected_canonical_header()

    @pytest.mark.asyncio
    async def test_only_signed_headers_are_included(self, raw_email, key_resolver):
        parsed = await parse_raw_email(raw_email, key_resolver=key_resolver)
        assert b"date:" not in parsed.canonicalized_header

    @pytest.mark.asyncio
    async def test_relaxed_body_is_canonicalized(self, raw_email, key_resolver):
        parsed = await parse_raw_email(raw_email, key_resolver=key_resolver)
        assert parsed.canonicalized_body == b"Hello\r\n"

    @pytest.mark.asyncio
    async def test_simple_canonicalization_keeps_header_case(self, key_resolver):
        dkim_header = (
            "DKIM-Signature: v=1; a=rsa-sha256; c=simple/simple; d=example.com;"
            " s=selector1; t=1700000000; h=From:Subject; bh=abc=; b=AQIDBA==\r\n"
        )
        raw = make_raw_email(dkim_header=dkim_header)
        parsed = await parse_raw_email(raw, key_resolver=key_resolver)
        assert parsed.canonicalized_header.startswith(b"From: Alice <alice@example.com>\r\n")
        assert b"\r\nSubject: Register" in parsed.canonicalized_header
        assert parsed.canonicalized_header.endswith(b"b=")


# ---------------------------------------------------------------------------
# Failures
# ---------------------------------------------------------------------------

class TestParseRawEmailErrors:

    @pytest.mark.asyncio
    async def test_missing_dkim_signature(self, key_resolver):
        raw = "From: a@b.io\r\nSubject: hi\r\n\r\nbody\r\n"
        with pytest.raises(EmailParseError, match="no DKIM-Signature"):
            await parse_raw_email(raw, key_resolver=key_resolver)

    @pytest.mark.asyncio
    async def test_missing_required_tag(self, key_resolver):
        dkim_header = "DKIM-Signature: v=1; a=rsa-sha256; d=example.com; h=from; b=AQIDBA==\r\n"
        with pytest.raises(EmailParseError, match="s= tag"):
            await parse_raw_email(make_raw_email(dkim_header=dkim_header), key_resolver=key_resolver)

    @pytest.mark.asyncio
    async def test_non_rsa_algorithm(self, key_resolver):
        dkim_header = (
            "DKIM-Signature: v=1; a=ed25519-sha256; d=example.com; s=s1; h=from; b=AQIDBA==\r\n"
        )
        with pytest.raises(EmailParseError, match="unsupported DKIM algorithm"):
            await parse_raw_email(make_raw_email(dkim_header=dkim_header), key_resolver=key_resolver)

    @pytest.mark.asyncio
    async def test_bad_base64_signature(self, key_resolver):
        dkim_header = "DKIM-Signature: v=1; a=rsa-sha256; d=example.com; s=s1; h=from; b=%%%\r\n"
        with pytest.raises(EmailParseError, match="base64"):
            await parse_raw_email(make_raw_email(dkim_header=dkim_header), key_resolver=key_resolver)

    @pytest.mark.asyncio
    async def test_no_key_published(self, raw_email):
        async def resolve(selector, domain):
            return None

        with pytest.raises(EmailParseError, match="no DKIM key published"):
            await parse_raw_email(raw_email, key_resolver=resolve)

    @pytest.mark.asyncio
    async def test_key_lookup_failure_is_contextualized(self, raw_email):
        async def resolve(selector, domain):
            raise TimeoutError("dns timed out")

        with pytest.raises(EmailParseError, match="selector1._domainkey.example.com"):
            await parse_raw_email(raw_email, key_resolver=resolve)

    @pytest.mark.asyncio
    async def test_revoked_key(self, raw_email):
        async def resolve(selector, domain):
            return b"v=DKIM1; k=rsa; p="

        with pytest.raises(EmailParseError, match="revoked"):
            await parse_raw_email(raw_email, key_resolver=resolve)

    @pytest.mark.asyncio
    async def test_non_rsa_key_type(self, raw_email):
        async def resolve(selector, domain):
            return ("v=DKIM1; k=ed25519; p=" + SAMPLE_DKIM_PUBKEY_B64).encode()

        with pytest.raises(EmailParseError, match="unsupported DKIM key type"):
            await parse_raw_email(raw_email, key_resolver=resolve)

    @pytest.mark.asyncio
    async def test_garbage_key(self, raw_email):
        async def resolve(selector, domain):
            return b"v=DKIM1; k=rsa; p=AAAA"

        with pytest.raises(EmailParseError, match="cannot be parsed"):
            await parse_raw_email(raw_email, key_resolver=resolve)


# ---------------------------------------------------------------------------
# Default DNS resolver
# ---------------------------------------------------------------------------

class TestDnsResolver:

    @pytest.mark.asyncio
    async def test_queries_domainkey_name(self, mocker):
        get_txt = mocker.patch("dkim.dnsplug.get_txt", return_value=SAMPLE_DKIM_RECORD)
        record = await resolve_dkim_key_dns(b"selector1", b"example.com")
        assert record == SAMPLE_DKIM_RECORD
        get_txt.assert_called_once_with(b"selector1._domainkey.example.com.", timeout=5.0)

    @pytest.mark.asyncio
    async def test_timeout_from_environment(self, mocker, monkeypatch):
        monkeypatch.setenv("EMAILAUTH_DNS_TIMEOUT", "2.5")
        get_txt = mocker.patch("dkim.dnsplug.get_txt", return_value=SAMPLE_DKIM_RECORD)
        await resolve_dkim_key_dns(b"s", b"d.io")
        assert get_txt.call_args.kwargs["timeout"] == 2.5

    @pytest.mark.asyncio
    async def test_parse_uses_dns_by_default(self, mocker, raw_email):
        mocker.patch("dkim.dnsplug.get_txt", return_value=SAMPLE_DKIM_RECORD)
        parsed = await parse_raw_email(raw_email)
        assert parsed.public_key == bytes.fromhex(SAMPLE_MODULUS_HEX)
