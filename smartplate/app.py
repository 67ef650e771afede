# Copyright (c) 2025 Fernando Guerriero Cardoso da Silva.
# SPDX-License-Identifier: MIT
#

import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, HTTPException, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from smartplate.api.v1.endpoints import auth, discovery, food_requests, realtime, verification
from smartplate.config import settings
from smartplate.db.database import SessionLocal, get_db
from smartplate.logging_config import configure_logging
from smartplate.services.location import default_location_service
from smartplate.services.session_service import SessionServiceProvider

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(settings.log_level)
    app.state.session_provider = SessionServiceProvider(SessionLocal)
    app.state.location_service = default_location_service()
    logger.info("SmartPlate API starting up (%s). Database migrations are managed by Alembic.", settings.app_env)
    yield
    app.state.session_provider = None
    app.state.location_service = None
    logger.info("SmartPlate API shutting down.")


app = FastAPI(
    title="SmartPlate Backend API",
    description="API for connecting NGOs, donors and volunteers around surplus food.",
    version="0.1.0",
    lifespan=lifespan,
)

# Configure CORS
allowed_origins = [origin.strip() for origin in settings.allowed_origins.split(",") if origin.strip()]

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["*"],
)

app.include_router(auth.router, prefix="/api/v1")
app.include_router(verification.router, prefix="/api/v1")
app.include_router(food_requests.router, prefix="/api/v1")
app.include_router(discovery.router, prefix="/api/v1")
app.include_router(realtime.router, prefix="/api/v1")

app.mount("/files", StaticFiles(directory=settings.storage_root, check_dir=False), name="files")


@app.get("/")
async def read_root():
    return {"message": "Welcome to SmartPlate Backend API!"}


@app.get("/health")
def health_check(db: Session = Depends(get_db)):
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Database connection failed: {e}",
        )
    return {"status": "ok", "database_connection": "successful"}
