"""
Tradeline Engine - FastAPI Application

Main entry point for the Tradeline Engine backend.

Architecture:
- Bureau text → Parser → ParseResult (SSOT #1)
- ParseResult → Quality gate → BureauEvaluation (SSOT #2)
- BureauAccounts → Merge engine → MergeResult (SSOT #3)
- Confirmed accounts → EV planner → Actions + Warnings
"""
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import CORS_ALLOW_ORIGINS, ENGINE_VERSION, LOG_LEVEL
from .routers import analysis_router

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title="Tradeline Engine",
    description="""
    Tradeline Engine - Credit Report Analysis

    Parses bureau report text, reconciles tradelines across bureaus and
    estimates the expected value of remediation actions.

    ## Pipeline
    1. **Parsing Layer**: Report text → ParseResult (SSOT #1)
    2. **Quality Gate**: ParseResult → BureauEvaluation (SSOT #2)
    3. **Merge Engine**: BureauAccounts → MergeResult (SSOT #3)
    4. **EV Planner**: Confirmed accounts → ranked actions

    ## Key Principles
    - Each SSOT is immutable once created
    - User corrections go through an overlay, never into parsed records
    - Every computation is deterministic (no LLMs)
    """,
    version=ENGINE_VERSION,
    docs_url="/docs",
    redoc_url="/redoc"
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(analysis_router)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Report malformed bodies as 400 invalid_request."""
    logger.warning(f"Invalid request body for {request.url.path}: {exc.errors()}")
    return JSONResponse(
        status_code=400,
        content={"detail": {"code": "invalid_request", "message": str(exc)}},
    )


@app.get("/")
async def root():
    """Root endpoint - API information."""
    return {
        "name": "Tradeline Engine",
        "version": ENGINE_VERSION,
        "description": "Credit Report Analysis",
        "docs": "/docs",
        "architecture": {
            "ssot_1": "ParseResult - Output of Parsing Layer",
            "ssot_2": "BureauEvaluation - Output of Quality Gate",
            "ssot_3": "MergeResult - Output of Merge Engine",
        }
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "version": ENGINE_VERSION}


# For running with: python -m tradeline_engine.main
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8001)
