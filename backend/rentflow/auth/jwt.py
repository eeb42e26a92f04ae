"""JWT token creation and decoding.

Access token claims:
  - sub:   user ID
  - role:  user role string
  - type:  "access"
  - exp:   expiry timestamp

Document token claims (short-lived links to private files):
  - sub:         storage path
  - visibility:  "private" | "public"
  - type:        "document"
  - exp:         expiry timestamp
"""

from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from rentflow.config import settings

ALGORITHM = settings.jwt_algorithm


def create_access_token(
    user_id: str,
    role: str,
    expires_delta: timedelta | None = None,
) -> str:
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )
    payload = {
        "sub": user_id,
        "role": role,
        "type": "access",
        "exp": expire,
    }
    return jwt.encode(payload, settings.secret_key, algorithm=ALGORITHM)


def create_document_token(path: str, visibility: str, ttl_seconds: int) -> str:
    expire = datetime.now(timezone.utc) + timedelta(seconds=ttl_seconds)
    payload = {
        "sub": path,
        "visibility": visibility,
        "type": "document",
        "exp": expire,
    }
    return jwt.encode(payload, settings.secret_key, algorithm=ALGORITHM)


def decode_token(token: str) -> dict:
    """Decode and validate a JWT. Returns empty dict on failure."""
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[ALGORITHM])
    except JWTError:
        return {}
