"""
Email-auth input API
FastAPI application exposing circuit input generation and digest derivation.
"""

import logging

from fastapi import FastAPI

from emailauth.config import get_log_level
from emailauth.routers import zkemail

# Configure logging to output to console
logging.basicConfig(
    level=get_log_level(),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

logger = logging.getLogger(__name__)

__version__ = "0.1.0"

app = FastAPI(
    title="Email Auth Input API",
    description=(
        "ZK email-auth circuit inputs, nullifiers and account salts. "
        "Digests use a reference SHA-256 field hash, not Poseidon."
    ),
    version=__version__,
)

app.include_router(zkemail.router, prefix="/api/zkemail", tags=["zkemail"])


@app.on_event("startup")
async def log_startup() -> None:
    logger.info("Email Auth Input API %s started", __version__)


@app.get("/")
async def root():
    return {"message": "Email Auth Input API", "version": __version__}


@app.get("/health")
async def health():
    return {"status": "ok"}
