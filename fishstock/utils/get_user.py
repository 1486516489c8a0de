from fastapi import Header, HTTPException, status, Request
from pydantic import BaseModel

from fishstock.core.security import decode_access_token
from fishstock.utils.logger import get_logger

logger = get_logger("auth.guard")


class CurrentUser(BaseModel):
    """Identity asserted by the auth service's access token."""

    id: str
    role: str


async def get_current_user(
    request: Request,
    authorization: str | None = Header(None),
) -> CurrentUser:
    scheme, _, token = (authorization or "").partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        logger.warning("Rejected request without bearer token", extra={"path": request.url.path})
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing or malformed authorization header",
            headers={"WWW-Authenticate": "Bearer"},
        )

    claims = decode_access_token(token.strip())
    user = CurrentUser(id=str(claims["sub"]), role=claims["role"])

    # picked up by the access log
    request.state.user = user
    return user
