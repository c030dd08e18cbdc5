# FastAPI entrypoint for the practice access-control API

import os
import sys
from datetime import datetime

import dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from auth.security_middleware import RequestLoggingMiddleware, SecurityHeadersMiddleware
from auth.user_routes import router as user_router
from practice.calendar_routes import router as calendar_router
from practice.case_routes import router as case_router
from practice.client_routes import router as client_router
from practice.database import DatabaseManager

dotenv.load_dotenv()


def configure_logging(level: str = None):
    """Replace loguru's default sink with one stderr sink at LOG_LEVEL."""
    level = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    logger.remove()
    logger.add(
        sys.stderr,
        level=level,
        format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}",
    )


configure_logging()

# Initialize FastAPI app
app = FastAPI(
    title="Practice Access API",
    description="Role-based access control and conflict detection for a legal practice",
    version="1.0.0"
)

# ==================== MIDDLEWARE ====================

app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(SecurityHeadersMiddleware)

FRONTEND_DOMAINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "http://localhost:5173,http://localhost:3000").split(",")
    if origin.strip()
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=FRONTEND_DOMAINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "Accept", "Origin"],
    max_age=86400,
)

# ==================== ROUTERS ====================

app.include_router(user_router)        # /api/users
app.include_router(client_router)      # /api/clients
app.include_router(calendar_router)    # /api/calendar
app.include_router(case_router)        # /api/cases, /api/documents


@app.get("/health")
async def health_check():
    """Health check endpoint for monitoring system status."""
    database_ok = DatabaseManager.health_check()
    return {
        "status": "healthy" if database_ok else "degraded",
        "database": "connected" if database_ok else "unavailable",
        "timestamp": datetime.utcnow().isoformat(),
    }


@app.on_event("startup")
async def startup_event():
    """Initialize on startup."""
    logger.info("Initializing practice database...")
    DatabaseManager.initialize()
    logger.info("✓ Practice API ready")


@app.on_event("shutdown")
async def shutdown_event():
    DatabaseManager.dispose()
    logger.info("Practice API stopped")


def main():
    import uvicorn

    uvicorn.run(
        "apps.api.main:app",
        host=os.getenv("API_HOST", "0.0.0.0"),
        port=int(os.getenv("API_PORT", "8000")),
    )


if __name__ == "__main__":
    main()
