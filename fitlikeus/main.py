import logging
import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException

# Load .env before settings are read (tests configure the environment themselves)
if "PYTEST_CURRENT_TEST" not in os.environ:
    load_dotenv()

from fitlikeus.core.config import cors_origins, settings, validate_config
from fitlikeus.core.errors import (
    AppError,
    app_error_handler,
    http_error_handler,
    request_validation_handler,
    unhandled_exception_handler,
)
from fitlikeus.core.logging import configure_logging
from fitlikeus.core.middleware.metrics import MetricsMiddleware
from fitlikeus.core.middleware.request_id import RequestIdMiddleware
from fitlikeus.core.store import init_store
from fitlikeus.core.validation import validate_env
from fitlikeus.api import admin, auth, fitness, health, journal, premium, realtime, resources, streaks, workouts

configure_logging(settings.ENV)
validate_env()
validate_config(strict=getattr(settings, "CONFIG_STRICT", False))


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger = logging.getLogger("fitlikeus")
    logger.info("Starting FitLikeUs backend...")
    init_store(app)
    try:
        yield
    finally:
        logger.info("Stopping FitLikeUs backend...")


app = FastAPI(title="FitLikeUs", lifespan=lifespan)

# Middlewares
app.add_middleware(MetricsMiddleware)
app.add_middleware(RequestIdMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(AppError, app_error_handler)
app.add_exception_handler(HTTPException, http_error_handler)
app.add_exception_handler(RequestValidationError, request_validation_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)

app.include_router(auth.router, tags=["auth"])
app.include_router(workouts.router, tags=["workouts"])
app.include_router(streaks.router, tags=["streaks"])
app.include_router(journal.router, tags=["journal"])
app.include_router(fitness.router, tags=["fitness"])
app.include_router(resources.router, tags=["resources"])
app.include_router(premium.router, tags=["premium"])
app.include_router(admin.router, tags=["admin"])
app.include_router(realtime.router, tags=["realtime"])
app.include_router(health.router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("fitlikeus.main:app", host="0.0.0.0", port=int(os.getenv("PORT", "8000")))
