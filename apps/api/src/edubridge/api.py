from fastapi import APIRouter

from edubridge.modules.applications.router import router as applications_router
from edubridge.modules.auth import router as auth_router
from edubridge.modules.payments.router import router as payments_router
from edubridge.modules.tuitions.router import router as tuitions_router
from edubridge.modules.users.router import router as users_router

api_router = APIRouter()

api_router.include_router(auth_router, prefix="/auth", tags=["Authentication"])

api_router.include_router(users_router)

api_router.include_router(tuitions_router, prefix="/tuitions", tags=["Tuitions"])

api_router.include_router(applications_router, prefix="/applications", tags=["Applications"])

api_router.include_router(payments_router)
