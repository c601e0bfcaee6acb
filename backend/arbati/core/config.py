"""Application configuration.

Environment variables override all defaults. SECRET_KEY must be set in
production; a development default is used (with a warning) otherwise.
"""

import os
from pathlib import Path
from typing import List

from dotenv import load_dotenv

_BACKEND_DIR = Path(__file__).resolve().parents[2]
load_dotenv(dotenv_path=_BACKEND_DIR / ".env", override=False)


def _csv(value: str) -> List[str]:
    return [part.strip() for part in value.split(",") if part.strip()]


class Settings:
    # Database
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./arbati.db")

    # JWT
    SECRET_KEY: str = os.getenv("SECRET_KEY", None)
    if not SECRET_KEY:
        if os.getenv("ENVIRONMENT", "development") == "production":
            raise ValueError(
                "SECRET_KEY must be set in production environment. "
                "Generate with: python -c 'import secrets; print(secrets.token_urlsafe(32))'"
            )
        import warnings
        warnings.warn(
            "SECRET_KEY not set in environment. Using development default. "
            "Set SECRET_KEY in .env before deploying.",
            RuntimeWarning,
        )
        SECRET_KEY = "development-only-weak-default-change-in-production"

    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "480"))
    AUTH_COOKIE_NAME: str = "arbati_token"

    # CORS
    CORS_ORIGINS: List[str] = _csv(
        os.getenv("CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000")
    )

    # Hosts accepted by TrustedHostMiddleware
    ALLOWED_HOSTS: List[str] = _csv(os.getenv("ALLOWED_HOSTS", "localhost,127.0.0.1"))

    # Cookies
    SECURE_COOKIES: bool = os.getenv("ENVIRONMENT", "development") == "production"
    SAME_SITE_COOKIE: str = "strict"

    # Locales: Kurdish is the default, Kurdish and Arabic render right-to-left
    LOCALES: List[str] = ["ku", "en", "ar"]
    DEFAULT_LOCALE: str = os.getenv("DEFAULT_LOCALE", "ku")

    # Pagination
    DEFAULT_PAGE_SIZE: int = 20
    MAX_PAGE_SIZE: int = 100

    # UI preferences (root font size in percent)
    UI_FONT_SIZE: int = int(os.getenv("UI_FONT_SIZE", "90"))

    # Files and exports
    UPLOAD_DIR: str = os.getenv("UPLOAD_DIR", "./uploads")
    IMAGE_FETCH_TIMEOUT: float = float(os.getenv("IMAGE_FETCH_TIMEOUT", "10"))
    RTL_FONT_PATH: str = os.getenv("RTL_FONT_PATH", "")

    # Bootstrap account created on first start
    ADMIN_EMAIL: str = os.getenv("ADMIN_EMAIL", "admin@arbati.com")

    # Server (run_server.py)
    HOST: str = os.getenv("HOST", "127.0.0.1")
    PORT: int = int(os.getenv("PORT", "8000"))

    # Environment
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")
    DEBUG: bool = ENVIRONMENT == "development"
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")


settings = Settings()
