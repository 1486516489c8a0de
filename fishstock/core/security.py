# fishstock/core/security.py

from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import jwt, JWTError, ExpiredSignatureError
from fastapi import HTTPException, status

from fishstock.core.config import (
    JWT_ACCESS_SECRET_KEY,
    JWT_ALGORITHM,
    ACCESS_TOKEN_EXPIRE_MINUTES,
)

# roles the auth service may put in a token
KNOWN_ROLES = frozenset({"admin", "inventory", "processing", "outlet"})


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


# =====================================================
# ISSUE (tests and local tooling; production tokens come from auth)
# =====================================================
def create_access_token(
    subject: str,
    role: str,
    expires_delta: Optional[timedelta] = None,
) -> str:
    issued_at = datetime.now(timezone.utc)
    lifetime = expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)

    claims = {
        "sub": subject,
        "role": role,
        "type": "access",
        "iat": issued_at,
        "exp": issued_at + lifetime,
    }
    return jwt.encode(claims, JWT_ACCESS_SECRET_KEY, algorithm=JWT_ALGORITHM)


# =====================================================
# VERIFY
# =====================================================
def decode_access_token(token: str) -> dict:
    """Verify signature and expiry, then check the claims this service relies on."""
    try:
        claims = jwt.decode(token, JWT_ACCESS_SECRET_KEY, algorithms=[JWT_ALGORITHM])
    except ExpiredSignatureError:
        raise _unauthorized("Token has expired")
    except JWTError:
        raise _unauthorized("Invalid token")

    if claims.get("type") != "access":
        raise _unauthorized("Invalid token type")

    if not claims.get("sub"):
        raise _unauthorized("Token has no subject")

    role = str(claims.get("role") or "").lower()
    if role not in KNOWN_ROLES:
        raise _unauthorized("Token carries an unknown role")

    claims["role"] = role
    return claims
