# api/auth.py
from fastapi import APIRouter, Depends

from hackportal.api.deps import current_user, get_token
from hackportal.db.schemas._base import MessageRead
from hackportal.db.schemas.auth import LoginRequest, RegisterRequest, RegisterResponse, RegisteredUser, TokenRead
from hackportal.db.schemas.user import UserRead
from hackportal.services.user import UserService

router = APIRouter(tags=["auth"])


@router.post("/register", response_model=RegisterResponse, status_code=201)
async def register(payload: RegisterRequest):
    user = await UserService().register(payload)
    message = "Judge registered successfully" if user.is_judge else "User created successfully"
    return RegisterResponse(message=message, user=RegisteredUser(id=user.id, email=user.email))


@router.post("/login", response_model=TokenRead)
async def login(payload: LoginRequest):
    return TokenRead(token=await UserService().login(payload.email, payload.password))


@router.post("/logout", response_model=MessageRead)
async def logout(token: str = Depends(get_token)):
    await UserService().logout(token)
    return MessageRead(message="Logged out")


@router.get("/me", response_model=UserRead)
async def me(user: UserRead = Depends(current_user)):
    return user
