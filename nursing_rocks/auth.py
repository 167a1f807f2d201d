import hmac
from datetime import datetime, timedelta
from typing import Optional

from fastapi import HTTPException, Depends
from fastapi.security import OAuth2PasswordBearer
from jose import jwt, JWTError
from sqlalchemy.orm import Session
import bcrypt

from nursing_rocks.config import settings
from nursing_rocks.database import get_db
from nursing_rocks.models.user import User


oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login")
optional_oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


# ============================================================
# PASSWORD HELPERS
# ============================================================

def hash_password(password: str) -> str:
    password_bytes = password.encode("utf-8")[:72]
    return bcrypt.hashpw(password_bytes, bcrypt.gensalt()).decode()


def verify_password(password: str, hashed: str) -> bool:
    password_bytes = password.encode("utf-8")[:72]
    return bcrypt.checkpw(password_bytes, hashed.encode())


def verify_admin_pin(pin: str) -> bool:
    return hmac.compare_digest(pin.encode(), settings.ADMIN_PIN.encode())


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


# ============================================================
# CREATE USER
# ============================================================

def create_user(db: Session, email: str, password: str, is_admin: bool = False) -> User:
    email = normalize_email(email)
    existing = db.query(User).filter(User.email == email).first()
    if existing:
        raise ValueError("Email already exists")

    user = User(
        email=email,
        hashed_password=hash_password(password),
        is_admin=is_admin,
    )

    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def ensure_admin_user(db: Session, email: str, password: str) -> Optional[User]:
    """
    Create the bootstrap admin from settings if it does not exist yet.
    An existing account with that email is promoted, never re-passworded.
    """
    if not email or not password:
        return None

    email = normalize_email(email)

    user = db.query(User).filter(User.email == email).first()
    if user:
        if not user.is_admin:
            user.is_admin = True
            db.commit()
        return user

    return create_user(db, email=email, password=password, is_admin=True)


# ============================================================
# LOGIN
# ============================================================

def authenticate_user(db: Session, email: str, password: str) -> Optional[User]:
    email = normalize_email(email)
    user = db.query(User).filter(User.email == email).first()
    if not user or not user.is_active:
        return None
    if not verify_password(password, user.hashed_password):
        return None
    return user


# ============================================================
# TOKEN CREATION
# ============================================================

def create_access_token(data: dict) -> str:
    to_encode = data.copy()
    expire = datetime.utcnow() + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    to_encode.update({"exp": expire})

    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


# ============================================================
# CURRENT USER
# ============================================================

def _user_from_token(token: str, db: Session) -> User:
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        user_id: str = payload.get("sub")

        if user_id is None:
            raise HTTPException(status_code=401, detail="Invalid token")

    except JWTError:
        raise HTTPException(status_code=401, detail="Invalid token")

    user = db.query(User).filter(User.id == user_id).first()

    # Token outlived its user (DB wiped or account removed)
    if not user or not user.is_active:
        raise HTTPException(status_code=401, detail="User not found")

    return user


def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> User:
    return _user_from_token(token, db)


def get_current_admin(current_user: User = Depends(get_current_user)) -> User:
    if not current_user.is_admin:
        raise HTTPException(status_code=403, detail="Admin access required")
    return current_user


def get_optional_admin(
    token: Optional[str] = Depends(optional_oauth2_scheme),
    db: Session = Depends(get_db),
) -> Optional[User]:
    """
    Admin user when a valid admin bearer token is sent, otherwise None.
    Used by public routes that show more to admins.
    """
    if not token:
        return None

    try:
        user = _user_from_token(token, db)
    except HTTPException:
        return None

    return user if user.is_admin else None
