# api/users.py
from fastapi import APIRouter, Depends

from hackportal.api.deps import admin_user, current_user
from hackportal.db.schemas.auth import ArrivalUpdate, ProfileUpdate
from hackportal.db.schemas.user import JudgeRead, UserRead
from hackportal.services.user import UserService

router = APIRouter(tags=["users"])


@router.get("/users", response_model=list[UserRead])
async def list_users(_user: UserRead = Depends(current_user)):
    return await UserService().list_participants()


@router.get("/judges", response_model=list[JudgeRead])
async def list_judges(_user: UserRead = Depends(current_user)):
    judges = await UserService().list_judges()
    return [JudgeRead(id=j.id, name=j.name or "", email=j.email) for j in judges]


# declared before /users/{user_id} so "profile" is not parsed as an id
@router.patch("/users/profile", response_model=UserRead)
async def update_profile(payload: ProfileUpdate, user: UserRead = Depends(current_user)):
    return await UserService().update_profile(user, payload)


@router.patch("/users/{user_id}", response_model=UserRead)
async def set_arrival_state(user_id: int, payload: ArrivalUpdate, admin: UserRead = Depends(admin_user)):
    return await UserService().set_arrival_state(admin, user_id, payload.state)
