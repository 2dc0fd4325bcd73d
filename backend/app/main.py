"""
FastAPI application entry point
"""
import os
import logging
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables FIRST, before any other imports
# Explicitly look for .env in the backend directory (parent of app/)
backend_dir = Path(__file__).parent.parent
env_path = backend_dir / ".env"
load_dotenv(dotenv_path=env_path, override=True)

logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO").upper())
logging.getLogger("relay").setLevel(logging.INFO)
logging.getLogger("gateway").setLevel(logging.INFO)

from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from app.routes import chat, review
from app.services.gateway import API_KEY_ENV, get_api_key

log = logging.getLogger("relay")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown lifecycle: nothing to open, only report config."""
    # The key is still checked on every request; this is only a heads-up.
    if not get_api_key():
        log.warning(f"{API_KEY_ENV} is not set; /api/review and /api/chat will return 500")
    yield


app = FastAPI(
    title="OSBM Style Guide Editor API",
    description="Streams style-guide reviews and Q&A answers from a hosted model",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS middleware - allow frontend to communicate
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://localhost:3001"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Malformed request bodies are a plain 400, never a 422."""
    problems = []
    for err in exc.errors():
        field = ".".join(str(p) for p in err.get("loc", ()) if p != "body") or "body"
        problems.append(f"{field}: {err.get('msg', 'invalid')}")
    return JSONResponse(
        status_code=400,
        content={"detail": "Invalid request: " + "; ".join(problems)},
    )


# Include routers
app.include_router(review.router, prefix="/api", tags=["review"])
app.include_router(chat.router, prefix="/api", tags=["chat"])


@app.get("/")
async def root():
    """Root endpoint - API information"""
    return {
        "service": "OSBM Style Guide Editor API",
        "version": "1.0.0",
        "endpoints": {
            "health": "/health",
            "review": "/api/review (POST)",
            "chat": "/api/chat (POST)",
            "docs": "/docs",
        },
    }


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "ok", "service": "style-guide-editor-api"}
