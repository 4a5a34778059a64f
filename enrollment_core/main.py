"""
enrollment_core/main.py
FastAPI application for the enrollment eligibility & correlativities engine
"""
import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from enrollment_core.config.settings import settings
from enrollment_core.database import init_db, close_db
from enrollment_core.exceptions import EnrollmentCoreError
from enrollment_core.middleware.error_handler import (
    ErrorHandlerMiddleware,
    enrollment_error_handler,
    error_body,
)
from enrollment_core.routes import router

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler()]
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting application...")
    try:
        await init_db()
        logger.info("Database connected successfully")
    except Exception as e:
        logger.error(f"Database initialization failed: {e}")
        raise
    yield
    await close_db()
    logger.info("Application shut down")


app = FastAPI(
    title="Enrollment Eligibility & Correlativities API",
    version="1.0.0",
    lifespan=lifespan
)

origins = [
    "http://localhost:3000",
    "http://localhost:5173",
    "http://127.0.0.1:3000",
    "http://127.0.0.1:5173",
]

allowed_origins = os.getenv("ALLOWED_ORIGINS", "").split(",")
if allowed_origins and allowed_origins[0]:
    origins.extend(allowed_origins)

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)
app.add_middleware(ErrorHandlerMiddleware, debug=settings.DEBUG)

app.add_exception_handler(EnrollmentCoreError, enrollment_error_handler)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.warning(f"Validation error on {request.url.path}: {exc.errors()}")

    error_details = [
        {"loc": error.get("loc"), "msg": error.get("msg"), "type": error.get("type")}
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=422,
        content=error_body("VALIDATION_ERROR", "Invalid input data", {"errors": error_details})
    )


@app.get("/health", tags=["Health"])
async def health_check():
    return {"status": "healthy", "service": "enrollment-core", "version": app.version}


app.include_router(router, prefix="/api")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("enrollment_core.main:app", host="0.0.0.0", port=8000, reload=settings.DEBUG)
