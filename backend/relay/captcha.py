# relay/captcha.py
# Turnstile / reCAPTCHA token relay.
from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional

import httpx
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from .config import Settings

logger = logging.getLogger("uvicorn.error")

TURNSTILE_VERIFY = "https://challenges.cloudflare.com/turnstile/v0/siteverify"
RECAPTCHA_VERIFY = "https://www.google.com/recaptcha/api/siteverify"

DEFAULT_TIMEOUT = 10.0


class VerificationError(Exception):
    """The provider could not be reached or answered with something unusable."""


@dataclass(frozen=True)
class VerificationOutcome:
    success: bool
    payload: Dict[str, Any] = field(default_factory=dict)

    @property
    def error_codes(self) -> list:
        return list(self.payload.get("error-codes") or [])


async def siteverify(
    secret: str,
    url: str,
    token: str,
    *,
    timeout: float = DEFAULT_TIMEOUT,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> VerificationOutcome:
    """
    POST secret + response to a siteverify endpoint and read back `success`.
    Raises VerificationError on transport errors or a non-object JSON body.
    """
    data = {"secret": secret, "response": token}
    try:
        async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:
            r = await client.post(url, data=data)
        body = r.json()
    except httpx.HTTPError as e:
        raise VerificationError(f"request to {url} failed: {e!r}") from e
    except ValueError as e:
        raise VerificationError(f"invalid JSON from {url}") from e
    if not isinstance(body, dict):
        raise VerificationError(f"unexpected body from {url}: {type(body).__name__}")
    return VerificationOutcome(success=bool(body.get("success")), payload=body)


Verifier = Callable[[str], Awaitable[JSONResponse]]


def make_verifier(
    secret: str,
    url: str,
    *,
    timeout: float = DEFAULT_TIMEOUT,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Verifier:
    """Bind siteverify to one secret/URL pair and map the outcome to a response."""

    async def verify(token: str) -> JSONResponse:
        try:
            outcome = await siteverify(secret, url, token, timeout=timeout, transport=transport)
        except Exception:
            logger.exception("Error verifying captcha token against %s", url)
            return JSONResponse({"error": "Internal server error"}, status_code=500)
        if outcome.success:
            return JSONResponse({"success": True})
        if outcome.error_codes:
            logger.info("captcha rejected by %s: %s", url, outcome.error_codes)
        return JSONResponse({"success": False}, status_code=400)

    return verify


async def _json_body(request: Request) -> Dict[str, Any]:
    # Any content type; an empty, malformed or non-object body reads as {}
    try:
        payload = await request.json()
    except ValueError:
        return {}
    return payload if isinstance(payload, dict) else {}


def _token_of(payload: Mapping[str, Any]) -> Optional[str]:
    token = payload.get("token")
    if isinstance(token, str) and token:
        return token
    return None


# -------- Routes -------------------------------------------------------------

def build_router(
    settings: Settings,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> APIRouter:
    router = APIRouter(tags=["captcha"])
    timeout = settings.VERIFY_TIMEOUT
    turnstile_secrets = settings.turnstile_secrets()
    recaptcha_secret = settings.RECAPTCHA_SECRET_KEY

    @router.post("/turnstile-check")
    async def turnstile_check(request: Request):
        payload = await _json_body(request)
        mode = payload.get("mode")
        secret = turnstile_secrets.get(mode) if isinstance(mode, str) else None
        if not secret:
            return JSONResponse({"error": "Invalid mode"}, status_code=400)
        token = _token_of(payload)
        if token is None:
            return JSONResponse({"error": "Missing token"}, status_code=400)
        verify = make_verifier(secret, TURNSTILE_VERIFY, timeout=timeout, transport=transport)
        return await verify(token)

    @router.post("/recaptcha")
    async def recaptcha(request: Request):
        payload = await _json_body(request)
        if not recaptcha_secret:
            return JSONResponse({"error": "Invalid secret key"}, status_code=400)
        token = _token_of(payload)
        if token is None:
            return JSONResponse({"error": "Missing token"}, status_code=400)
        verify = make_verifier(recaptcha_secret, RECAPTCHA_VERIFY, timeout=timeout, transport=transport)
        return await verify(token)

    return router
