from fastapi import APIRouter

from campuscore.modules.auth import router as auth_router
from campuscore.modules.schools import router as schools_router
from campuscore.modules.tenants import router as tenants_router
from campuscore.modules.users.router import router as users_router

api_router = APIRouter()

api_router.include_router(auth_router, prefix="/auth", tags=["Authentication"])

api_router.include_router(tenants_router, prefix="/tenants", tags=["Tenants"])

api_router.include_router(schools_router, prefix="/schools", tags=["Schools"])

api_router.include_router(users_router, prefix="/users", tags=["Users"])
