import base64
import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent.parent
ENV_PATH = BASE_DIR / ".env"


@dataclass
class Settings:
    database_url: str
    domain_url: str = "http://localhost:5173"
    stripe_secret_key: Optional[str] = None
    stripe_webhook_secret: Optional[str] = None
    jwt_secret: Optional[str] = None
    jwt_algorithm: str = "HS256"
    token_audience: Optional[str] = None
    currency: str = "usd"
    port: int = 3000
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        # Force-load .env (reload-safe)
        load_dotenv(dotenv_path=ENV_PATH)

        database_url = os.getenv("DATABASE_URL") or os.getenv("MONGODB_URI")
        if not database_url:
            raise RuntimeError("DATABASE_URL is not set. Check your .env file.")

        return cls(
            database_url=database_url,
            domain_url=os.getenv("DOMAIN_URL", "http://localhost:5173").rstrip("/"),
            stripe_secret_key=os.getenv("STRIPE_SECRET") or os.getenv("STRIPE_SECRET_KEY"),
            stripe_webhook_secret=os.getenv("STRIPE_WEBHOOK_SECRET"),
            jwt_secret=os.getenv("JWT_SECRET"),
            jwt_algorithm=os.getenv("JWT_ALGORITHM", "HS256"),
            token_audience=project_id_from_service_key(os.getenv("FB_SERVICE_KEY")),
            currency=os.getenv("CURRENCY", "usd").lower(),
            port=int(os.getenv("PORT", 3000)),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )


def project_id_from_service_key(encoded: Optional[str]) -> Optional[str]:
    """Extract ``project_id`` from a base64-encoded service-account JSON blob."""
    if not encoded:
        return None
    try:
        account = json.loads(base64.b64decode(encoded).decode("utf-8"))
    except (ValueError, UnicodeDecodeError) as exc:
        raise RuntimeError("FB_SERVICE_KEY is not valid base64-encoded JSON") from exc
    return account.get("project_id")
