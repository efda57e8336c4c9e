"""
Storefront - Backend API
Session and cart orchestration over the commerce backend
"""
import logging
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables
env_path = Path(__file__).parent.parent / '.env'
load_dotenv(env_path)

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from storefront.api import cart, session
from storefront.core.config import settings

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format='%(asctime)s %(levelname)s %(name)s: %(message)s'
)

ALLOWED_ORIGINS = settings.get_allowed_origins()

app = FastAPI(
    title=settings.API_TITLE,
    version=settings.API_VERSION,
    description=settings.API_DESCRIPTION
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)

# Include API routers
app.include_router(session.router, prefix="/api/v1/session", tags=["Session"])
app.include_router(cart.router, prefix="/api/v1/cart", tags=["Cart"])


@app.get("/")
async def root():
    """Root endpoint - API status"""
    return {
        "message": "Storefront API",
        "status": "online",
        "version": settings.API_VERSION,
    }


@app.get("/health")
async def health():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "service": "storefront-api",
        "version": settings.API_VERSION,
        "backend": settings.API_BASE_URL,
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("storefront.main:app", host="0.0.0.0", port=8000, reload=True)
