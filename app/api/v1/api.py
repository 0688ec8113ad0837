from fastapi import APIRouter
from app.api.v1.auth import routes as auth
from app.api.v1.prescriptions import routes as prescriptions

api_router = APIRouter()
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(prescriptions.router, prefix="/prescriptions", tags=["prescriptions"])
