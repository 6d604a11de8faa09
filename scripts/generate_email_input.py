#!/usr/bin/env python3
"""
Dev helper: generate email-auth circuit input for a raw .eml file.

By default the input is generated in-process through the invocation boundary
(the package must be installed, e.g. ``pip install -e .``). With --url the
request is POST-ed to a running API instead.

Usage
-----
# In-process, DKIM key fetched over DNS
python scripts/generate_email_input.py mail.eml --account-code 0x01eb...5b76

# Offline: take the DKIM key record from a file instead of DNS
python scripts/generate_email_input.py mail.eml --account-code 0x01eb...5b76 \\
    --dkim-record selector1.txt

# Against a running backend
python scripts/generate_email_input.py mail.eml --account-code 0x01eb...5b76 \\
    --url http://localhost:8000

Prints the response envelope ({"code", "msg", "data"}) and exits 0 when
code is 0.
"""

import argparse
import json
import logging
import sys
import textwrap
from pathlib import Path

import httpx


def _print_envelope(envelope_json: str) -> int:
    envelope = json.loads(envelope_json)
    data = envelope.get("data")
    if envelope.get("code") == 0 and data:
        # data is itself JSON for generateEmailInput; show it expanded
        envelope["data"] = json.loads(data)
    print(json.dumps(envelope, indent=2))
    return 0 if envelope.get("code") == 0 else 1


def _run_local(raw_email: str, account_code: str, dkim_record: Path | None) -> str:
    from emailauth.services import boundary

    key_resolver = None
    if dkim_record is not None:
        record = dkim_record.read_bytes()

        async def key_resolver(selector: bytes, domain: bytes) -> bytes:
            return record

    return boundary.generate_email_input(raw_email, account_code, key_resolver=key_resolver)


def _run_remote(raw_email: str, account_code: str, url: str) -> str:
    endpoint = f"{url.rstrip('/')}/api/zkemail/email-input"
    response = httpx.post(
        endpoint,
        json={"raw_email": raw_email, "account_code": account_code},
        timeout=60,
    )
    response.raise_for_status()
    return response.text


def main() -> int:
    parser = argparse.ArgumentParser(
        prog="generate_email_input.py",
        description="Generate ZK email-auth circuit input for a raw email.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""\
            Examples:
              python scripts/generate_email_input.py mail.eml --account-code 0x01eb...
              python scripts/generate_email_input.py mail.eml --account-code 0x01eb... --url http://localhost:8000
        """),
    )
    parser.add_argument("email", metavar="EML", help="Path to the raw email file")
    parser.add_argument(
        "--account-code",
        required=True,
        help="Account code as 0x-prefixed 32-byte hex",
    )
    parser.add_argument(
        "--dkim-record",
        default=None,
        metavar="PATH",
        help="File holding the DKIM TXT record (skips the DNS lookup)",
    )
    parser.add_argument(
        "--url",
        default=None,
        help="Backend base URL; when set the request goes over HTTP",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    email_path = Path(args.email)
    if not email_path.exists():
        print(f"ERROR: File not found: {email_path}", file=sys.stderr)
        return 1
    raw_email = email_path.read_text(encoding="utf-8")

    if args.url:
        if args.dkim_record:
            print("ERROR: --dkim-record cannot be combined with --url", file=sys.stderr)
            return 1
        try:
            envelope_json = _run_remote(raw_email, args.account_code, args.url)
        except httpx.HTTPError as exc:
            print(f"ERROR: {exc}", file=sys.stderr)
            return 1
    else:
        record_path = Path(args.dkim_record) if args.dkim_record else None
        envelope_json = _run_local(raw_email, args.account_code, record_path)

    return _print_envelope(envelope_json)


if __name__ == "__main__":
    sys.exit(main())
