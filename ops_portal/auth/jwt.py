"""
Session Tokens (JWT)
=============================================================================
CONCEPT: A signed snapshot of "who is signed in"

After a successful login the portal issues a JWT:

    HEADER.PAYLOAD.SIGNATURE

    payload = {
      "sub":   "usr_1a2b3c",          <- userId
      "email": "tom@creooglobal.com",
      "role":  "Employee",
      "exp":   1792400000,            <- expiry (Unix time)
      "iat":   1792356800
    }

The signature (HS256 with `jwt_secret_key`) means a client cannot change
"Employee" to "Admin" without the server noticing. The payload is NOT
encrypted: never put a password or password hash in it.

The token is only a pointer. SessionContext.restore() (ops_portal/auth/
session.py) reloads the user from the record store on every request, so a
role change or deactivation takes effect immediately, not at token expiry.
=============================================================================
"""

from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from ops_portal.config import Settings, settings as default_settings
from ops_portal.domain.entities import User


def create_access_token(
    data: dict,
    expires_delta: timedelta | None = None,
    settings: Settings | None = None,
) -> str:
    """
    Sign `data` as a JWT with exp / iat claims added.

    `expires_delta` defaults to `jwt_access_token_expire_minutes`. Key and
    algorithm come from `settings` (the app's), else the process defaults.
    """
    settings = settings or default_settings
    to_encode = data.copy()
    now = datetime.now(timezone.utc)
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.jwt_access_token_expire_minutes)
    to_encode.update({"exp": now + expires_delta, "iat": now})
    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def create_session_token(
    user: User,
    expires_delta: timedelta | None = None,
    settings: Settings | None = None,
) -> str:
    return create_access_token(
        {"sub": user.user_id, "email": user.email, "role": user.role.value},
        expires_delta=expires_delta,
        settings=settings,
    )


def verify_token(token: str, settings: Settings | None = None) -> dict:
    """
    Validate signature and expiry, return the claims.

    Raises ValueError for an expired, tampered or malformed token, or one
    without a `sub` claim.
    """
    settings = settings or default_settings
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
        )
    except JWTError as e:
        raise ValueError(f"Could not validate token: {e}") from e

    if "sub" not in payload:
        raise ValueError("Token payload missing 'sub' claim")

    return payload
