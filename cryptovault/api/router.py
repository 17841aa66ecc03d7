from fastapi import APIRouter
from cryptovault.api.v1.health import router as health_router
from cryptovault.api.v1.auth import router as auth_router
from cryptovault.api.v1.withdraw import router as withdraw_router
from cryptovault.api.v1.admin import router as admin_router
from cryptovault.api.v1.maintenance import router as maintenance_router


api_router = APIRouter()
api_router.include_router(health_router, tags=["health"])
api_router.include_router(auth_router, tags=["auth"])
api_router.include_router(withdraw_router, tags=["withdraw"])
api_router.include_router(admin_router, tags=["admin"])
api_router.include_router(maintenance_router, tags=["maintenance"])
