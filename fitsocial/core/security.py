from datetime import timedelta
from typing import Optional

import bcrypt
import jwt

from fitsocial.core.config import settings
from fitsocial.schemas.auth import SessionPayload
from fitsocial.utils.time import utcnow

AVATAR_URL_TEMPLATE = "https://api.dicebear.com/7.x/avataaars/svg?seed={seed}"


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against a hash."""
    try:
        return bcrypt.checkpw(plain_password.encode('utf-8'), hashed_password.encode('utf-8'))
    except ValueError:
        # Stored value is not a bcrypt hash
        return False


def get_password_hash(password: str) -> str:
    """Hash a password for storage."""
    salt = bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')


def default_avatar(username: str) -> str:
    return AVATAR_URL_TEMPLATE.format(seed=username)


def create_session_token(user_id: int, expires_delta: Optional[timedelta] = None) -> str:
    """Create the signed token stored in the session cookie."""
    if expires_delta is None:
        expires_delta = timedelta(seconds=settings.SESSION_MAX_AGE_SECONDS)

    expire = utcnow() + expires_delta
    to_encode = {"sub": str(user_id), "exp": expire}

    return jwt.encode(
        to_encode,
        settings.SECRET_KEY,
        algorithm=settings.JWT_ALGORITHM,
    )


def decode_session_token(token: str) -> Optional[int]:
    """Return the user id carried by a session token, or None when it is invalid or expired."""
    try:
        payload = jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM],
        )
    except jwt.PyJWTError:
        return None

    token_data = SessionPayload(**payload)
    if token_data.sub is None or not token_data.sub.isdigit():
        return None
    return int(token_data.sub)
