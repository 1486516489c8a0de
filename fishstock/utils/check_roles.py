from fastapi import Depends, HTTPException, status
from fishstock.utils.get_user import get_current_user, CurrentUser


def require_role(roles: list[str]):
    allowed = frozenset(r.lower() for r in roles)

    async def role_checker(user: CurrentUser = Depends(get_current_user)):
        if user.role not in allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Role '{user.role}' may not perform this action",
            )
        return user

    return role_checker
