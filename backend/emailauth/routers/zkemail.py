"""
ZK email router.

Exposes the invocation boundary over HTTP. Every endpoint answers 200 with the
response envelope; the envelope's code tells success (0) from failure (1).
Request bodies that do not match the schema are rejected by FastAPI (422).

Endpoints are plain ``def`` so FastAPI runs them in a worker thread, where the
boundary can start its own per-call event loop.

Endpoints:
  POST /email-input        generateEmailInput
  POST /nullifier          emailNullifier
  POST /public-key-hash    publicKeyHash
  POST /email-hash         emailHash

The digest endpoints use the default hash backend from hash_primitives, a
domain-tagged SHA-256 reduced into the field. Its values do not match the
Poseidon digests the on-chain verifier expects; deployments that need those
must pass a Poseidon HashPrimitive / SaltDeriver to the digest functions.
"""

import logging

from fastapi import APIRouter, Response

from emailauth.models.email_auth import (
    EmailHashRequest,
    EmailNullifierRequest,
    GenerateEmailInputRequest,
    PublicKeyHashRequest,
)
from emailauth.services import boundary

logger = logging.getLogger(__name__)

router = APIRouter()

_JSON = "application/json"


def _envelope_response(envelope_json: str) -> Response:
    return Response(content=envelope_json, media_type=_JSON)


@router.post("/email-input")
def generate_email_input(body: GenerateEmailInputRequest) -> Response:
    logger.info("generateEmailInput request (%d chars)", len(body.raw_email))
    return _envelope_response(
        boundary.generate_email_input(body.raw_email, body.account_code)
    )


@router.post("/nullifier")
def email_nullifier(body: EmailNullifierRequest) -> Response:
    return _envelope_response(boundary.email_nullifier(body.signature))


@router.post("/public-key-hash")
def public_key_hash(body: PublicKeyHashRequest) -> Response:
    return _envelope_response(boundary.public_key_hash(body.public_key))


@router.post("/email-hash")
def email_hash(body: EmailHashRequest) -> Response:
    return _envelope_response(boundary.email_hash(body.email_addr, body.account_code))
