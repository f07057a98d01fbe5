from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.models.admin import Admin
from app.api.deps import get_admin_from_token
from app.core.security import verify_password, create_token
from app.schemas.auth import AdminLoginRequest, AdminLoginResponse

router = APIRouter(prefix="/api/auth", tags=["Auth"])


def _admin_out(admin: Admin) -> dict:
    return {
        "id": f"admin_{admin.id}",
        "email": admin.email,
        "name": admin.name or "Admin",
    }


@router.post("/admin/login", response_model=AdminLoginResponse)
def admin_login(data: AdminLoginRequest, db: Session = Depends(get_db)):
    admin = db.query(Admin).filter(Admin.email == data.email.strip().lower()).first()
    if not admin or not verify_password(data.password, admin.password_hash):
        raise HTTPException(status_code=401, detail="Invalid credentials")
    if not admin.is_active:
        raise HTTPException(status_code=403, detail="Account disabled")
    admin.last_login_at = datetime.now(timezone.utc)
    db.commit()
    token = create_token({"sub": str(admin.id), "type": "admin"})
    return {"token": token, "user": _admin_out(admin)}


@router.get("/me")
def me(admin=Depends(get_admin_from_token)):
    return {"user": _admin_out(admin)}
