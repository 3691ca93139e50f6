# relay/main.py
import os
import logging
from typing import Optional

import httpx
from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from . import __version__
from .captcha import build_router
from .config import Settings, get_settings
from .cors import FixedOriginCORSMiddleware

logger = logging.getLogger("uvicorn.error")


def create_app(
    settings: Optional[Settings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    """
    Build the relay app. `transport` is handed to every outbound httpx client
    (tests pass an httpx.MockTransport here).
    """
    settings = settings or get_settings()
    if settings.REQUIRE_SECRETS:
        settings.check_secrets()

    app = FastAPI(title="Captcha Relay", version=__version__)

    app.add_middleware(FixedOriginCORSMiddleware, origin=settings.CORS_ORIGIN)
    app.include_router(build_router(settings, transport=transport))

    @app.get("/health")
    def health():
        return {"ok": True, "version": __version__}

    # ------------- Startup report (logs only) -------------
    serve_static = os.path.isdir(settings.PUBLIC_DIR)

    @app.on_event("startup")
    def _startup_env_report():
        secrets = {
            "turnstile_normal": bool(settings.TURNSTILE_CHECK_SECRET_KEY),
            "turnstile_invisible": bool(settings.TURNSTILE_INVISIBLE_SECRET_KEY),
            "recaptcha": bool(settings.RECAPTCHA_SECRET_KEY),
        }
        logger.info("[startup] ENV=%s", settings.ENV)
        logger.info("[startup] CORS origin=%s", settings.CORS_ORIGIN)
        logger.info("[startup] secrets=%s", secrets)
        logger.info("[startup] static=%s", settings.PUBLIC_DIR if serve_static else None)
        missing = settings.missing_secrets()
        if missing:
            logger.warning("[startup] Missing secrets (requests will get 400): %s", ", ".join(missing))

    # Mounted last so API routes win over files of the same name
    if serve_static:
        app.mount("/", StaticFiles(directory=settings.PUBLIC_DIR), name="public")

    return app
