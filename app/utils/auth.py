import re
from datetime import timedelta
from typing import Optional

from passlib.context import CryptContext
from jose import jwt, JWTError

from app.core.config import JWTConfig, settings
from app.core.exceptions import InvalidTokenError
from app.db.base import utcnow

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=settings.bcrypt_rounds)

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
# Ghana numbers: +233XXXXXXXXX or 0XXXXXXXXX
GHANA_PHONE_RE = re.compile(r"^(\+233|0)[2-9]\d{8}$")
UNIVERSITY_ID_RE = re.compile(r"^\d{8}$")


def hash_password(password: str) -> str:
    """Used for both passwords and university PINs."""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(data: dict, config: Optional[JWTConfig] = None, expires_delta: Optional[timedelta] = None) -> str:
    config = config or settings.jwt
    now = utcnow()
    to_encode = data.copy()
    to_encode.update({
        "iat": now,
        "exp": now + (expires_delta or config.expires_in),
        "iss": config.issuer,
        "aud": config.audience,
    })
    return jwt.encode(to_encode, config.secret, algorithm=config.algorithm)


def decode_access_token(token: str, config: Optional[JWTConfig] = None) -> dict:
    """
    Verify signature, expiry, issuer and audience.
    Raises InvalidTokenError on any failure; never returns a partially trusted payload.
    """
    config = config or settings.jwt
    try:
        return jwt.decode(
            token,
            config.secret,
            algorithms=[config.algorithm],
            audience=config.audience,
            issuer=config.issuer,
        )
    except JWTError:
        raise InvalidTokenError("Invalid or expired token")


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization or not authorization.startswith("Bearer "):
        return None
    token = authorization[len("Bearer "):].strip()
    # Reject common invalid token values sent by frontends
    if not token or token.lower() in ("null", "undefined", "none"):
        return None
    return token


def is_valid_email(email: str) -> bool:
    return bool(email) and bool(EMAIL_RE.match(email))


def is_valid_ghana_phone(phone: str) -> bool:
    return bool(phone) and bool(GHANA_PHONE_RE.match(re.sub(r"\s", "", phone)))


def is_valid_university_id(university_id: str) -> bool:
    return bool(university_id) and bool(UNIVERSITY_ID_RE.match(university_id))


def sanitize_string(value: str) -> str:
    return value.strip().replace("<", "").replace(">", "")
