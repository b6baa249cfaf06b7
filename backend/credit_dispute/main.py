"""
Credit Dispute Engine - FastAPI Application

Main entry point for the Credit Dispute Engine backend.

Architecture:
- Upload → TextSalvage → ReportParser → ReportModel (SSOT #1)
- ReportModel → IssueClassifier → Issue[] (SSOT #2)
- Issue[] → LetterTemplateResolver + LetterComposer → Letter[] (SSOT #3)
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import __version__
from .config import get_settings
from .routers import reports_router, letters_router
from .database import init_db

logging.basicConfig(
    level=getattr(logging, get_settings().log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize database on startup."""
    init_db()
    yield

# Create FastAPI app
app = FastAPI(
    lifespan=lifespan,
    title="Credit Dispute Engine",
    description="""
    Credit Dispute Engine - Report Analysis and Dispute Letter Generation

    ## Pipeline
    1. **Text Salvage**: PDF/HTML/text upload → best-effort report text
    2. **Parsing Layer**: text → ReportModel (SSOT #1)
    3. **Issue Classifier**: ReportModel → Issues with legal citations (SSOT #2)
    4. **Letter Composer**: Issues → dispute letters (SSOT #3)

    ## Key Principles
    - Extraction and composition degrade to fallbacks instead of failing
    - Issues are detected deterministically by declared rules
    - Every request for letters returns at least one complete letter
    """,
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc"
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(reports_router)
app.include_router(letters_router)


@app.get("/")
async def root():
    """Root endpoint - API information."""
    return {
        "name": "Credit Dispute Engine",
        "version": __version__,
        "description": "Credit Report Analysis and Dispute Letter Generation",
        "docs": "/docs",
        "architecture": {
            "ssot_1": "ReportModel - Output of Parsing Layer",
            "ssot_2": "Issue - Output of Issue Classifier",
            "ssot_3": "Letter - Output of Letter Composer",
        }
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "version": __version__}


# For running with: python -m credit_dispute.main
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8001)
