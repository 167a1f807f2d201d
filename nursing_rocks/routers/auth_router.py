from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from pydantic import BaseModel

from nursing_rocks.database import get_db
from nursing_rocks.models.user import User

from nursing_rocks.auth import (
    authenticate_user,
    create_access_token,
    get_current_user,
    get_current_admin,
    verify_admin_pin,
)


router = APIRouter(prefix="/api/auth", tags=["Authentication"])


# ---------- Pydantic request models ----------

class LoginRequest(BaseModel):
    email: str
    password: str


class PinRequest(BaseModel):
    pin: str


# ------------------- LOGIN -------------------

@router.post("/login")
def login(payload: LoginRequest, db: Session = Depends(get_db)):
    user = authenticate_user(db, email=payload.email, password=payload.password)

    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
        )

    token = create_access_token({"sub": user.id, "admin": user.is_admin})

    return {
        "access_token": token,
        "token_type": "bearer",
        "is_admin": user.is_admin,
    }


# ------------------ ADMIN PIN ------------------

@router.post("/admin/verify-pin")
def verify_pin(payload: PinRequest, current_admin: User = Depends(get_current_admin)):
    if not verify_admin_pin(payload.pin):
        raise HTTPException(status_code=400, detail="Invalid PIN")

    return {"verified": True}


# -------------------- ME ---------------------

@router.get("/me")
def get_me(current_user: User = Depends(get_current_user)):
    return {
        "id": current_user.id,
        "email": current_user.email,
        "is_admin": current_user.is_admin,
    }
