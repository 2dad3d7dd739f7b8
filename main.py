import logging
from contextlib import asynccontextmanager
from typing import Any, Dict

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.orm import Session

from config.settings import get_settings
from src.core.logging_config import setup_logging
from src.db.database import get_db, init_db
from src.routers import assessment as assessment_router
from src.routers import auth as auth_router
from src.routers import reports as reports_router
from src.services.storage import check_connection

settings = get_settings()

# Configure logging VERY early
setup_logging(settings.log_level)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    # Load (or fall back) the phrase document before the first request
    config = assessment_router.get_phrase_config()
    logger.info(f"Phrase configuration {config.metadata.version} ready.")
    yield


app = FastAPI(title="Kinetic Style Assessment API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- Include Routers ---
app.include_router(auth_router.router)
app.include_router(assessment_router.router, prefix="/api/v1")
app.include_router(reports_router.router, prefix="/api/v1")


@app.get("/health", tags=["Health Check"])
async def health() -> Dict[str, Any]:
    """
    Basic liveness check.
    """
    return {"status": "ok", "message": "Kinetic Style Assessment is running."}


@app.get("/health/db", tags=["Health Check"])
def health_check_db(db: Session = Depends(get_db)) -> Dict[str, Any]:
    """
    Performs a database connection health check.
    """
    if not check_connection(db):
        # Raise 503 Service Unavailable if DB connection fails
        raise HTTPException(status_code=503, detail="Database connection error")
    return {"status": "ok", "db_check": 1}


if __name__ == "__main__":
    import uvicorn
    # Better to run with `uvicorn main:app --reload` from the project root directory
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
