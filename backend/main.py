"""
Main FastAPI application entry point
"""
from clanchain.core.config import get_settings
from clanchain.main import app  # noqa: F401

if __name__ == "__main__":
    import uvicorn
    settings = get_settings()
    uvicorn.run(
        "main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.app_env == "development",
    )
