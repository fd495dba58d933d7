from typing import Any, Callable, Dict
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer

from safeops.models.enums import Role


oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/token")


def get_container(request: Request):
    """The AppContainer built at startup."""
    return request.app.state.container


async def get_current_user(token: str = Depends(oauth2_scheme), container=Depends(get_container)) -> Dict[str, Any]:
    user = await container.auth.get_current_user(token)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


def require_role(*roles: Role) -> Callable:
    allowed = {r.value for r in roles}

    async def role_checker(user: Dict[str, Any] = Depends(get_current_user)) -> Dict[str, Any]:
        if user["role"] not in allowed:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Operation not permitted")
        return user

    return role_checker


def ensure_owner_or_admin(user: Dict[str, Any], owner_id: int) -> None:
    if user["id"] != owner_id and user["role"] != Role.ADMIN.value:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not owner")
