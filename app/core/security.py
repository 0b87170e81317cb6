from datetime import datetime, timedelta, timezone
from typing import Any

from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext

from app.core.config import get_settings

settings = get_settings()

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

ALGORITHM = "HS256"


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def create_access_token(
    subject: str | int,
    role: str,
    expires_delta_minutes: int | None = None,
    legacy: bool = False,
) -> str:
    """
    Create a JWT access token with subject (user id), role and expiry.

    Strict tokens also carry ``iss``/``aud``; ``legacy=True`` mints the older
    shape without them (still accepted when legacy tokens are allowed).
    """
    if expires_delta_minutes is None:
        expires_delta_minutes = settings.access_token_expire_minutes

    expire = datetime.now(timezone.utc) + timedelta(minutes=expires_delta_minutes)
    to_encode: dict[str, Any] = {
        "sub": str(subject),
        "role": role,
        "exp": expire,
    }
    if not legacy:
        to_encode["iss"] = settings.jwt_issuer
        to_encode["aud"] = settings.jwt_audience

    encoded_jwt = jwt.encode(to_encode, settings.secret_key, algorithm=ALGORITHM)
    return encoded_jwt


def decode_token(token: str) -> dict[str, Any]:
    """
    Decode and validate a JWT token.

    Strict verification (issuer + audience) is tried first. If that fails and
    legacy tokens are allowed, the token is re-checked without iss/aud; a
    legacy token must not carry a mismatching issuer or audience either.

    Raises ValueError with descriptive message if token is invalid or expired.
    """
    try:
        return jwt.decode(
            token,
            settings.secret_key,
            algorithms=[ALGORITHM],
            audience=settings.jwt_audience,
            issuer=settings.jwt_issuer,
        )
    except ExpiredSignatureError:
        raise ValueError("Token has expired. Please log in again.") from None
    except JWTError as exc:
        if not settings.jwt_allow_legacy_tokens:
            raise ValueError("Invalid token") from exc

    try:
        payload = jwt.decode(
            token,
            settings.secret_key,
            algorithms=[ALGORITHM],
            options={"verify_aud": False, "verify_iss": False},
        )
    except ExpiredSignatureError:
        raise ValueError("Token has expired. Please log in again.") from None
    except JWTError as exc:
        raise ValueError("Invalid token") from exc

    # Legacy tokens have no iss/aud at all; anything else is a foreign token
    if "iss" in payload or "aud" in payload:
        raise ValueError("Invalid token")
    return payload


def normalize_role(role: str | None) -> str:
    """Roles are compared case-insensitively everywhere."""
    return (role or "").strip().lower()
