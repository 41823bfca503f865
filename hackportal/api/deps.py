# api/deps.py
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from hackportal.db.schemas.user import UserRead
from hackportal.errors import AuthRequired, PermissionDenied
from hackportal.services.user import UserService

bearer = HTTPBearer(auto_error=False)


async def get_token(credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer)) -> str:
    if credentials is None or not credentials.credentials:
        raise AuthRequired("Auth required")
    return credentials.credentials


async def current_user(token: str = Depends(get_token)) -> UserRead:
    user = await UserService().resolve_token(token)
    if user is None:
        raise AuthRequired("Auth required")
    return user


async def admin_user(user: UserRead = Depends(current_user)) -> UserRead:
    if not user.is_admin:
        raise PermissionDenied("Admin access required")
    return user


async def judge_user(user: UserRead = Depends(current_user)) -> UserRead:
    if not user.is_judge:
        raise PermissionDenied("Judge access required")
    return user
