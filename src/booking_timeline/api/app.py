"""FastAPI application factory.

Creates and configures the FastAPI application with all routes.

## Usage

```python
from booking_timeline.api import create_app

app = create_app()

# Run with uvicorn
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
```

## Configuration

The app is configured via environment variables. See `booking_timeline.config`
for available settings.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI

from booking_timeline.config import get_settings
from booking_timeline.logging_config import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Handles startup and shutdown tasks:
    - Create the executor timelines are composed on
    - Shut it down on exit
    """
    settings = get_settings()

    logger.info(f"Starting {settings.app_name} v{settings.app_version}")

    app.state.compose_executor = ThreadPoolExecutor(
        max_workers=settings.composition_workers,
        thread_name_prefix="timeline-compose",
    )

    yield

    # Shutdown
    logger.info("Shutting down")
    app.state.compose_executor.shutdown(wait=True)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application
    """
    settings = get_settings()
    setup_logging(settings.log_level)

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Busy/free calendar timelines for room booking",
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
        lifespan=lifespan,
    )

    # Include routers
    from booking_timeline.api.routes import timeline

    app.include_router(timeline.router, prefix="/api/timeline", tags=["Timeline"])

    # Health check endpoint
    @app.get("/health", tags=["Health"])
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy", "version": settings.app_version}

    return app
