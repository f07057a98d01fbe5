from fastapi import Depends, HTTPException
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.core.security import decode_token
from app.models.admin import Admin

security = HTTPBearer(auto_error=False)


def parse_id(raw, prefix: str, label: str = "Record") -> int:
    """Accept 12, "12" or "P12" style ids (frontend sends the prefixed form)."""
    value = str(raw).strip()
    if value.upper().startswith(prefix):
        value = value[len(prefix):]
    try:
        return int(value)
    except ValueError:
        raise HTTPException(status_code=404, detail=f"{label} not found")


def _subject(credentials: HTTPAuthorizationCredentials | None, token_type: str) -> int:
    """Numeric 'sub' of a valid token of the given type, else 401."""
    if not credentials:
        raise HTTPException(status_code=401, detail="Missing or invalid token")
    claims = decode_token(credentials.credentials) or {}
    if claims.get("type") != token_type:
        raise HTTPException(status_code=401, detail="Invalid or expired token")
    try:
        return int(claims["sub"])
    except (KeyError, TypeError, ValueError):
        raise HTTPException(status_code=401, detail="Invalid token")


def get_admin_from_token(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: Session = Depends(get_db),
) -> Admin:
    admin = db.get(Admin, _subject(credentials, "admin"))
    if admin is None:
        raise HTTPException(status_code=401, detail="Admin not found")
    if not admin.is_active:
        raise HTTPException(status_code=403, detail="Account disabled")
    return admin
