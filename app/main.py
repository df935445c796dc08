from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
import sys
from pathlib import Path
import logging
import os
from datetime import datetime
from fastapi.responses import JSONResponse
from dotenv import load_dotenv

# Load .env variables
load_dotenv()

# Configure base logging
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger("app")

# Add the parent directory to sys.path
sys.path.append(str(Path(__file__).parent.parent))

from app.routers import (
    auth,
    locations,
    availabilities,
    bookings,
    payments,
)
from app.database import engine, Base, SessionLocal
from app.init_db import create_initial_admin
from app.services.email import email_service
import uvicorn

# Create database tables
Base.metadata.create_all(bind=engine)

# Initialize academy admin
logger.info("Initializing database with academy admin...")
with SessionLocal() as db:
    create_initial_admin(db)

app = FastAPI(
    title="Airdrop Tennis Academy API",
    description="API for academy locations, availability windows, bookings and payments",
    version="1.0.0",
)


# Configure email error reporting
def _configure_email_error_reporting() -> bool:
    enable_emails = os.getenv("ENABLE_ERROR_EMAILS", "false").lower() in {
        "1",
        "true",
        "yes",
    }

    if not enable_emails:
        logger.info(
            "Email error reporting disabled (ENABLE_ERROR_EMAILS not set or false)"
        )
        return False

    if not email_service.is_configured():
        logger.warning("Email service not configured: missing SMTP settings")
        return False

    logger.info("Email error reporting configured successfully")
    return True


ERROR_EMAILS_ENABLED = _configure_email_error_reporting()

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        origin.strip()
        for origin in os.getenv("CORS_ORIGINS", "*").split(",")
        if origin.strip()
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(auth.router, prefix="/auth", tags=["authentication"])
app.include_router(locations.router, prefix="/locations", tags=["locations"])
app.include_router(
    availabilities.router, prefix="/availabilities", tags=["availabilities"]
)
app.include_router(bookings.router, prefix="/bookings", tags=["bookings"])
app.include_router(payments.router, prefix="/payments", tags=["payments"])


@app.get("/")
def read_root():
    return {"message": "Welcome to Airdrop Tennis Academy API"}


# Global unhandled exception handler -> logs ERROR and sends email
@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(
        "Unhandled error | path=%s | method=%s | client=%s",
        request.url.path,
        request.method,
        request.client.host if request.client else "unknown",
    )

    if ERROR_EMAILS_ENABLED:
        error_data = {
            "path": request.url.path,
            "method": request.method,
            "client": request.client.host if request.client else "unknown",
            "user": getattr(request.state, "user_email", "Anonymous"),
            "exception": exc,
            "timestamp": datetime.utcnow().strftime("%Y-%m-%d %H:%M:%S"),
        }
        email_service.send_error_email(error_data)

    return JSONResponse(status_code=500, content={"detail": "Internal Server Error"})


if __name__ == "__main__":
    uvicorn.run("app.main:app", host="0.0.0.0", port=5009, reload=True)
