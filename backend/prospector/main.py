"""Main FastAPI application."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging

from prospector.config import settings
from prospector.routers import enrich_routes

# Configure logging
logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title="Prospector Enrichment API",
    description="Company enrichment and ICP scoring for hiring-signal leads",
    version="1.0.0",
    redirect_slashes=False
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # In production, specify your frontend domain
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ============================================
# ROUTER REGISTRATION
# ============================================

app.include_router(enrich_routes.router)  # Already has /api/v1/enrich prefix


# ============================================
# HEALTH & ROOT ENDPOINTS
# ============================================

@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "version": "1.0.0",
        "environment": settings.ENVIRONMENT,
        "apollo_configured": settings.apollo_configured,
        "features": [
            "domain_resolution",
            "apollo_enrichment",
            "icp_scoring",
            "sse_progress",
        ]
    }


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "Prospector Enrichment API",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/health"
    }


# ============================================
# STARTUP & SHUTDOWN
# ============================================

@app.on_event("startup")
async def startup_event():
    """Run on application startup."""
    logger.info("Starting Prospector Enrichment API...")
    logger.info("=" * 50)
    logger.info("Registered Routes:")
    for route in app.routes:
        if hasattr(route, 'path'):
            logger.info(f"  {route.path}")
    logger.info("=" * 50)

    if not settings.apollo_configured:
        logger.warning("⚠️ APOLLO_API_KEY not set; requests must supply api_key")

    logger.info("Application started successfully!")


@app.on_event("shutdown")
async def shutdown_event():
    """Run on application shutdown."""
    logger.info("Shutting down Prospector Enrichment API...")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("prospector.main:app", host="0.0.0.0", port=8000, reload=True)
