from contextlib import asynccontextmanager
from datetime import datetime

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from app.core.config import settings
from app.core.exceptions import BaseCustomException, create_error_response
from app.api.v1.api import api_router
from app.domain.prescriptions.lookup import build_prescription_lookup
from app.infrastructure.database import connect_database


@asynccontextmanager
async def lifespan(app: FastAPI):
    database = await connect_database(settings.DATABASE_URL)
    if database and settings.DATABASE_CREATE_TABLES:
        await database.create_all()

    app.state.session_factory = database.session_factory if database else None
    app.state.prescription_lookup = build_prescription_lookup(app.state.session_factory)
    try:
        yield
    finally:
        if database:
            await database.dispose()


app = FastAPI(
    title=settings.PROJECT_NAME,
    openapi_url=f"{settings.API_PREFIX}/openapi.json",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# Set all CORS enabled origins
if settings.BACKEND_CORS_ORIGINS:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[str(origin).rstrip("/") for origin in settings.BACKEND_CORS_ORIGINS],
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "x-auth-token"],
    )


@app.exception_handler(BaseCustomException)
async def custom_exception_handler(request: Request, exc: BaseCustomException):
    return JSONResponse(status_code=exc.status_code, content=create_error_response(exc))


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(status_code=500, content={"message": "Internal server error"})


app.include_router(api_router, prefix=settings.API_PREFIX)


@app.get("/")
def root():
    return {"message": "PharmaMedizo API is running"}


@app.get("/health")
def health_check(request: Request):
    lookup = getattr(request.app.state, "prescription_lookup", None)
    return {
        "status": "ok",
        "timestamp": datetime.utcnow().isoformat(),
        "storeConnected": bool(lookup and lookup.is_persistent),
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.HOST, port=settings.PORT)
