from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt
from passlib.context import CryptContext

from renobook.core.config import settings

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=12)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def authenticate_admin(email: str, password: str) -> bool:
    """Check credentials against the single administrator account from settings."""
    if not settings.admin_email or not settings.admin_password_hash:
        return False
    if email.strip().lower() != settings.admin_email.strip().lower():
        return False
    return verify_password(password, settings.admin_password_hash)


def create_access_token(subject: str) -> str:
    expire = datetime.now(UTC) + timedelta(minutes=settings.access_token_expire_minutes)
    to_encode = {"sub": subject, "exp": expire, "type": "access", "role": "admin"}
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)


def decode_access_token(token: str) -> str | None:
    try:
        payload = jwt.decode(
            token, settings.secret_key, algorithms=[settings.algorithm]
        )
        if payload.get("type") != "access" or payload.get("role") != "admin":
            return None
        sub = payload.get("sub")
        return str(sub) if sub else None
    except JWTError:
        return None
