# api/router.py
from fastapi import APIRouter

from hackportal.api.admin import router as admin_router
from hackportal.api.auth import router as auth_router
from hackportal.api.invitations import router as invitations_router
from hackportal.api.judging import router as judging_router
from hackportal.api.teams import router as teams_router
from hackportal.api.users import router as users_router

# main.py applies the `/api` prefix
router = APIRouter()

router.include_router(auth_router)
router.include_router(users_router)
router.include_router(teams_router)
router.include_router(invitations_router)
router.include_router(judging_router)
router.include_router(admin_router)
