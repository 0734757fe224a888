"""
Census Atlas - FastAPI Application
Main entry point for the API server consumed by the map front end.

Run with:
    uvicorn censusatlas.app:app --reload --host 0.0.0.0 --port 8002
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from censusatlas import __version__, config
from censusatlas.api.routes import close_session, register_routes
from censusatlas.core.logging import configure_logging

configure_logging(secrets=[config.CENSUS_API_KEY])
logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Lifespan (startup / shutdown)
# ---------------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Validate configuration on startup; close outbound HTTP clients on shutdown."""
    warnings = config.validate_config()
    logger.info(
        "Census Atlas %s starting (ACS %s, %d config warning(s))",
        __version__, config.CENSUS_YEAR, len(warnings),
    )

    yield  # Application is running

    await close_session()
    logger.info("Census Atlas stopped.")


# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------

app = FastAPI(
    title="Census Atlas",
    version=__version__,
    description="US Census choropleth data: joined regions, ranges and colours",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_methods=["GET"],
    allow_headers=["*"],
)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={
            "detail": str(exc),
            "type": type(exc).__name__,
            "path": request.url.path,
        },
    )


register_routes(app)


# ---------------------------------------------------------------------------
# Development entry-point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    import uvicorn

    uvicorn.run("censusatlas.app:app", host="0.0.0.0", port=config.PORT, reload=True)
