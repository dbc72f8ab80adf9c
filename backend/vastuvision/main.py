"""
VastuVision Capture API

FastAPI application for multi-floor building capture and Vastu analysis.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from vastuvision.config import get_settings
from vastuvision.core.errors import CaptureError
from vastuvision.models.api import ErrorResponse, HealthResponse
from vastuvision.routes import analyze, canvas, render, search, sessions


# Get settings
settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="""
    **VastuVision Capture API** - Survey a building's floors and get a Vastu compliance report.

    ## Features
    - **Capture**: Record boundary corners and tagged rooms per floor, from GPS/compass or map clicks
    - **Canvas**: Pan/zoom projection of the active floor with click and drag editing
    - **Analyze**: Send the captured geometry for a structured compliance report
    - **Export**: Download the report as a PDF

    ## Workflow
    1. Create a session → `/api/v1/sessions`
    2. Begin capture and mark at least 3 corners per floor
    3. Move to room tagging → `/stage/rooms`, tag rooms
    4. Finalize → `/finalize`
    5. Export → `/report.pdf`
    """,
    docs_url="/docs",
    redoc_url="/redoc"
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(sessions.router, prefix=settings.api_prefix)
app.include_router(canvas.router, prefix=settings.api_prefix)
app.include_router(search.router, prefix=settings.api_prefix)
app.include_router(analyze.router, prefix=settings.api_prefix)
app.include_router(render.router, prefix=settings.api_prefix)


# ============ Error Handling ============

@app.exception_handler(CaptureError)
async def capture_error_handler(request: Request, exc: CaptureError) -> JSONResponse:
    """Every capture error is recoverable; report it and leave the session as is."""
    logger.info("%s on %s: %s", exc.error_code, request.url.path, exc.message)
    body = ErrorResponse(detail=exc.message, error_code=exc.error_code, context=exc.context)
    return JSONResponse(status_code=exc.status_code, content=body.model_dump(mode="json"))


# ============ Health Check ============

@app.get("/", response_model=HealthResponse, tags=["Health"])
async def root():
    """Root endpoint - health check."""
    return HealthResponse(
        status="ok",
        version=settings.app_version,
        message="VastuVision Capture API is running. Visit /docs for API documentation."
    )


@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check():
    """Health check endpoint."""
    return HealthResponse(
        status="ok",
        version=settings.app_version
    )


# ============ Run with Uvicorn ============

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "vastuvision.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug
    )
