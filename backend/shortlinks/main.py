import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from .database import engine, Base
from .api import links
from .api.links import limiter, redirect_to_url
from .config import settings
from .middleware.logging import LoggingMiddleware
from .utils.logging import initialize_logging

APP_NAME = "shortlinks"
APP_VERSION = "1.0.0"

initialize_logging()
logger = logging.getLogger(__name__)

# Create database tables
Base.metadata.create_all(bind=engine)

# Initialize FastAPI app
app = FastAPI(
    title="Short Links",
    description="URL shortening service with click analytics",
    version=APP_VERSION
)

# Setup rate limiter
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_middleware(SlowAPIMiddleware)

app.add_middleware(LoggingMiddleware)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(links.router, prefix="/api", tags=["links"])


# Health check endpoint
@app.get("/health")
def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "service": APP_NAME}


@app.get("/version")
def version():
    """Application name, version and environment"""
    return {"name": APP_NAME, "version": APP_VERSION, "environment": settings.ENVIRONMENT}


# Redirect endpoint (must be last to not conflict with other routes)
app.get("/{short_code}", tags=["redirect"])(redirect_to_url)

logger.info("Application started", extra={'environment': settings.ENVIRONMENT})


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
