# relay/config.py
from __future__ import annotations
import os
from types import MappingProxyType
from typing import Mapping
from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict

# .env in the working directory; real environment variables take precedence
load_dotenv(os.getenv("ENV_FILE", ".env"))


class ConfigError(RuntimeError):
    """Raised at startup when REQUIRE_SECRETS is on and a secret is missing."""


class Settings(BaseModel):
    model_config = ConfigDict(frozen=True)

    ENV: str = os.getenv("ENV", "local")
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", "5183"))
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # --- Secrets -----------------------------------------------------------
    TURNSTILE_CHECK_SECRET_KEY: str = os.getenv("TURNSTILE_CHECK_SECRET_KEY", "")
    TURNSTILE_INVISIBLE_SECRET_KEY: str = os.getenv("TURNSTILE_INVISIBLE_SECRET_KEY", "")
    RECAPTCHA_SECRET_KEY: str = os.getenv("RECAPTCHA_SECRET_KEY", "")
    REQUIRE_SECRETS: bool = os.getenv("REQUIRE_SECRETS", "false").lower() == "true"

    # --- Outbound ----------------------------------------------------------
    VERIFY_TIMEOUT: float = float(os.getenv("VERIFY_TIMEOUT", "10.0"))

    # --- CORS / static -----------------------------------------------------
    CORS_ORIGIN: str = os.getenv("CORS_ORIGIN", "http://localhost:5173")
    PUBLIC_DIR: str = os.getenv("PUBLIC_DIR", "public")

    def turnstile_secrets(self) -> Mapping[str, str]:
        """Turnstile secrets keyed by widget mode (read-only)."""
        return MappingProxyType({
            "normal": self.TURNSTILE_CHECK_SECRET_KEY,
            "invisible": self.TURNSTILE_INVISIBLE_SECRET_KEY,
        })

    def missing_secrets(self) -> list[str]:
        names = ("TURNSTILE_CHECK_SECRET_KEY", "TURNSTILE_INVISIBLE_SECRET_KEY", "RECAPTCHA_SECRET_KEY")
        return [n for n in names if not getattr(self, n)]

    def check_secrets(self) -> None:
        missing = self.missing_secrets()
        if missing:
            raise ConfigError(f"Missing secrets: {', '.join(missing)}")


def get_settings() -> Settings:
    """Settings as read from the environment (and .env) at import time."""
    return Settings()
