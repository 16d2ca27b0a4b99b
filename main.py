from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from core.exceptions import PoolException

from db import Base, engine
from core.config import settings
from core.logging import logger

from models.profile import Profile  # noqa: F401
from models.game import Game  # noqa: F401
from models.box import Box  # noqa: F401
from models.quarter_result import QuarterResult  # noqa: F401

# ROUTES
from api.routers.auth import router as auth_router
from api.routers.games import router as games_router
from api.routers.admin import router as admin_router
from api.routers.cron import router as cron_router
from api.routers.websocket import router as websocket_router
from services.background_tasks import start_background_tasks, stop_background_tasks


app = FastAPI(title="Squares Pool API", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(PoolException)
async def pool_exception_handler(request: Request, exc: PoolException):
    content = {"detail": exc.detail, "type": "pool_error"}
    conflicting = getattr(exc, "box_ids", None)
    if conflicting is not None:
        content["box_ids"] = conflicting
    return JSONResponse(status_code=exc.status_code, content=content)


@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError):
    return JSONResponse(
        status_code=400,
        content={"detail": str(exc), "type": "validation_error"}
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception on {request.method} {request.url.path}", exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={
            "detail": "Internal server error",
            "type": type(exc).__name__,
        }
    )


@app.on_event("startup")
async def startup_event():
    logger.info("Starting up application...")
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created")

    if settings.enable_background_tasks:
        start_background_tasks()
        logger.info("Background tasks started (reservation sweeper, score poller)")


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Shutting down application...")
    await stop_background_tasks()


@app.get("/health")
async def health():
    return {"status": "ok"}


app.include_router(auth_router, tags=["Authentication"])
app.include_router(games_router)
app.include_router(admin_router)
app.include_router(cron_router)
app.include_router(websocket_router)
