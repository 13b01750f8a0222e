"""
backend/main.py
===============

FastAPI backend for the Shyam counselling assistant.

Provides REST API endpoints:
- POST /api/index - Rebuild the in-memory document index
- POST /api/chat  - Send a message and get a reply
- POST /api/book  - Store a booking request
- GET /health     - Index and provider status
- GET /           - Informational text

Run with:
    uvicorn backend.main:app --reload --port 3000

Or from project root:
    python -m backend.main
"""

import logging
from typing import Optional, Union

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel, Field

from config import ALLOWED_ORIGINS, LOG_LEVEL, PORT
from core.bookings import InputValidationError, PersistenceError
from core.service import ChatService
from core.vectorstore import IndexingError

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


# =============================================================================
# PYDANTIC MODELS
# =============================================================================

# JSON scalars are accepted and coerced to strings by the service layer
Scalar = Union[str, int, float, bool]


class ChatRequest(BaseModel):
    """Request model for chat endpoint."""
    message: Optional[Scalar] = Field(None, description="User's message")


class BookingLink(BaseModel):
    url: str = Field(..., description="Where the user can book a session")


class ChatResponse(BaseModel):
    """Response model for chat endpoint."""
    reply: str = Field(..., description="Reply text")
    emergency: Optional[bool] = Field(None, description="Present (true) for safety replies")
    booking: Optional[BookingLink] = Field(None, description="Present when the user asks to book")


class IndexResponse(BaseModel):
    ok: bool = True
    indexed: int = Field(..., description="Number of indexed documents")


class BookRequest(BaseModel):
    """Request model for booking endpoint."""
    name: Optional[Scalar] = None
    phone: Optional[Scalar] = None
    preferred: Optional[Scalar] = None
    notes: Optional[Scalar] = None
    source: Optional[Scalar] = None


class BookResponse(BaseModel):
    ok: bool = True
    ref: str = Field(..., description="Booking reference")


class HealthResponse(BaseModel):
    """Response model for health check."""
    status: str
    indexed_documents: int
    vocabulary_size: int
    providers: list[str]


# =============================================================================
# FASTAPI APP
# =============================================================================

app = FastAPI(
    title="Shyam API",
    description="Counselling assistant backend with document retrieval and provider failover",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Report malformed request bodies as client errors."""
    return JSONResponse(status_code=400, content={"detail": "Invalid request body"})


# Global service instance (initialized on first request)
_chat_service: Optional[ChatService] = None


def get_chat_service() -> ChatService:
    """Get or create the chat service instance."""
    global _chat_service
    if _chat_service is None:
        _chat_service = ChatService()
    return _chat_service


# =============================================================================
# ENDPOINTS
# =============================================================================

@app.get("/", response_class=PlainTextResponse, tags=["System"])
def root():
    return "Shyam backend up. POST /api/index to index, POST /api/chat to chat, POST /api/book to book."


@app.get("/health", response_model=HealthResponse, tags=["System"])
def health_check(service: ChatService = Depends(get_chat_service)):
    """
    Health check endpoint.

    Status is "degraded" until an index has been built.
    """
    stats = service.stats()
    return HealthResponse(
        status="healthy" if stats["indexed_documents"] else "degraded",
        **stats,
    )


@app.post("/api/index", response_model=IndexResponse, tags=["Index"])
def build_index(service: ChatService = Depends(get_chat_service)):
    """Rebuild the in-memory index from the knowledge folder."""
    try:
        indexed = service.index_documents()
    except IndexingError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception:
        logger.exception("Index build failed")
        raise HTTPException(status_code=500, detail="Index failed")
    return IndexResponse(indexed=indexed)


@app.post("/api/chat", response_model=ChatResponse, response_model_exclude_none=True, tags=["Chat"])
def chat(request: ChatRequest, service: ChatService = Depends(get_chat_service)):
    """
    Send a message and get a reply.

    The endpoint:
    1. Returns a safety message (emergency=true) for self-harm language
    2. Otherwise retrieves context and generates a reply via the providers
    3. Falls back to a demo reply when no provider succeeds
    """
    try:
        result = service.answer(request.message)
    except InputValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception:
        logger.exception("Chat handler failed")
        raise HTTPException(status_code=500, detail="Server error")

    response = ChatResponse(reply=result.reply)
    if result.emergency:
        response.emergency = True
    if result.booking_url is not None:
        response.booking = BookingLink(url=result.booking_url)
    return response


@app.post("/api/book", response_model=BookResponse, tags=["Booking"])
def book(request: BookRequest, service: ChatService = Depends(get_chat_service)):
    """Store a booking request and return its reference."""
    try:
        record = service.book(
            request.name,
            request.phone,
            preferred=request.preferred,
            notes=request.notes,
            source=request.source,
        )
    except InputValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except PersistenceError:
        logger.exception("Booking failed")
        raise HTTPException(status_code=500, detail="Booking failed")
    return BookResponse(ref=record.ref)


# =============================================================================
# MAIN
# =============================================================================

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=PORT)
