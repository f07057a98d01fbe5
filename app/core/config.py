"""Central config. Values come from .env / environment; fallbacks live only here."""
import os
from dotenv import load_dotenv

load_dotenv()

DATABASE_URL = (os.getenv("DATABASE_URL") or "").strip() or "sqlite:///./realty.db"

JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "change-me-in-production")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

ADMIN_EMAIL = os.getenv("ADMIN_EMAIL", "admin@realty.local")
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "admin123")


def get_jwt_expire_minutes() -> int:
    """Token lifetime in minutes. Default one day."""
    try:
        return int(os.getenv("JWT_EXPIRE_MINUTES", "1440"))
    except ValueError:
        return 1440


def get_cors_origins() -> list[str]:
    """CORS_ORIGINS is comma separated; empty or unset means allow all."""
    raw = (os.getenv("CORS_ORIGINS") or "").strip()
    if not raw:
        return ["*"]
    return [o.strip() for o in raw.split(",") if o.strip()]
