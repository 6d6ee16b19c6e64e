import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Depends
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .config import APP_NAME, APP_VERSION, CORS_ORIGINS
from .database import Base, get_db, check_database_connection
from .auth import auth_router
from .users import users_router
from .assignments import assignments_router
from .submissions import submissions_router
from .feedback import feedback_router
from .dashboard import dashboard_router
from .models import ExtractionStatus, FeedbackStatus, UserRole

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

ROUTERS = [
    auth_router,
    users_router,
    assignments_router,
    submissions_router,
    feedback_router,
    dashboard_router,
]
ENUMS = [UserRole, ExtractionStatus, FeedbackStatus]


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting {APP_NAME} {APP_VERSION}")
    # Test runs use their own database through dependency overrides
    if os.getenv("PYTEST_CURRENT_TEST") is None and not check_database_connection():
        raise RuntimeError("Cannot connect to database")
    yield
    logger.info(f"Stopping {APP_NAME}")


def create_app() -> FastAPI:
    application = FastAPI(
        title=APP_NAME,
        description="Assignments, submissions and AI-assisted feedback for students and professors",
        version=APP_VERSION,
        lifespan=lifespan,
    )
    application.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    for router in ROUTERS:
        application.include_router(router)
    return application


app = create_app()


@app.get("/")
async def root():
    return {"message": APP_NAME, "version": APP_VERSION}


@app.get("/health")
async def health_check(db: Session = Depends(get_db)):
    """Report whether the database answers."""
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error(f"Health check failed: {e}")
        return {"status": "unhealthy", "database": "disconnected", "error": str(e), "version": APP_VERSION}
    return {"status": "healthy", "database": "connected", "version": APP_VERSION}


@app.get("/models/info")
async def models_info():
    """Mapped models and the enums they use."""
    return {
        "models": sorted(mapper.class_.__name__ for mapper in Base.registry.mappers),
        "enums": [enum.__name__ for enum in ENUMS],
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
