from datetime import datetime, timedelta, timezone

import bcrypt
import jwt

from socialnet.config import settings
from socialnet.exceptions import ValidationError

# bcrypt only uses the first 72 bytes and newer releases reject anything longer
BCRYPT_MAX_BYTES = 72


def hash_password(password: str) -> str:
    encoded = password.encode("utf-8")
    if len(encoded) > BCRYPT_MAX_BYTES:
        raise ValidationError(f"password must be at most {BCRYPT_MAX_BYTES} bytes")
    return bcrypt.hashpw(encoded, bcrypt.gensalt()).decode("utf-8")

def verify_password(password: str, hashed_password: str) -> bool:
    encoded = password.encode("utf-8")
    if len(encoded) > BCRYPT_MAX_BYTES:
        return False
    return bcrypt.checkpw(encoded, hashed_password.encode("utf-8"))

def create_access_token(data: dict, expires_minutes: int = None) -> str:
    """Sign ``data`` into a JWT that expires after ``expires_minutes``"""
    expires_minutes = expires_minutes or settings.ACCESS_TOKEN_EXPIRE_MINUTES
    now = datetime.now(timezone.utc)
    payload = dict(data)
    payload.update({"iat": now, "exp": now + timedelta(minutes=expires_minutes)})
    return jwt.encode(payload, settings.TOKEN_SECRET, algorithm=settings.TOKEN_ALGORITHM)

def verify_access_token(token: str):
    """Decode a JWT, returning its payload or None when invalid or expired"""
    try:
        return jwt.decode(token, settings.TOKEN_SECRET, algorithms=[settings.TOKEN_ALGORITHM])
    except jwt.ExpiredSignatureError:
        return None
    except jwt.InvalidTokenError:
        return None
