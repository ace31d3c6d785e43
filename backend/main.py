"""
FleetLedger - Toll & Freight Reconciliation Backend
Main FastAPI Application
"""

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from sqlalchemy.exc import SQLAlchemyError
import logging

from config import settings
from database import init_db, DATABASE_URL
from routers import fleet, records, expenses, files, audit, users, preferences

# Configure logging
logging.basicConfig(
    level=logging.INFO if settings.debug else logging.WARNING,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup
    logger.info("Starting FleetLedger API")
    logger.info(f"Database: {DATABASE_URL.split('@')[-1]}")
    logger.info(f"CORS Origins: {settings.cors_origins_list}")

    await init_db()
    logger.info("Database initialized")

    yield

    # Shutdown
    logger.info("Shutting down FleetLedger API")


app = FastAPI(
    title="FleetLedger API",
    description="""
    Toll & freight document ledger for a trucking fleet

    - Reconciles extracted toll/freight movements against the fleet roster
    - Stores card statements and their toll expenses
    - Cascading deletion of everything extracted from a source file
    """,
    version="1.0.0",
    lifespan=lifespan
)

# CORS Middleware
# Allow all origins in debug mode, otherwise use configured origins
cors_origins = ["*"] if settings.debug else settings.cors_origins_list

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(SQLAlchemyError)
async def storage_error_handler(request: Request, exc: SQLAlchemyError):
    """Storage failures reach the client as a 500, never as a crash."""
    logger.error(f"Storage error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Storage operation failed"}
    )


# Include routers
app.include_router(fleet.router, prefix="/api/fleet", tags=["Fleet"])
app.include_router(records.router, prefix="/api/records", tags=["Records"])
app.include_router(expenses.router, prefix="/api/expenses", tags=["Expenses"])
app.include_router(files.router, prefix="/api/files", tags=["Files"])
app.include_router(audit.router, prefix="/api/audit", tags=["Audit"])
app.include_router(users.router, prefix="/api/users", tags=["Users"])
app.include_router(preferences.router, prefix="/api", tags=["Preferences"])


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "FleetLedger API",
        "version": "1.0.0",
        "docs": "/docs",
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}
