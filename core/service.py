"""
core/service.py - Main Service Layer
=====================================

This module provides the main API for the backend. The FastAPI app (or any
other frontend) should ONLY call methods of ChatService.

The key method is `ChatService.answer()` which:
1. Checks the message for emergency phrases
2. Retrieves relevant documents from the vector store
3. Builds a single prompt from the persona, documents and message
4. Generates a reply through the provider router
5. Falls back to a deterministic demo reply when no provider succeeds

ChatService owns the process-wide state (vector store, router cursor and
booking store), so tests can build isolated instances.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from config import (
    BOOKING_LINK,
    FALLBACK_KNOWLEDGE_FILE,
    KNOWLEDGE_DIR,
    MAX_PROVIDER_ATTEMPTS,
    TOP_K_RESULTS,
)
from core.bookings import BookingRecord, BookingStore, InputValidationError
from core.providers import ConfigurationError, build_providers
from core.router import ProviderRouter
from core.safety import SAFETY_MESSAGE, check_emergency, wants_booking
from core.vectorstore import Document, VectorStore, discover_documents

logger = logging.getLogger(__name__)

__all__ = ["ChatReply", "ChatService", "InputValidationError", "build_prompt", "demo_reply"]


# =============================================================================
# RESPONSE DATA STRUCTURE
# =============================================================================

@dataclass
class ChatReply:
    """
    Structured reply for one chat message.

    Attributes:
        reply: The text to show the user
        emergency: True when the safety message was returned
        booking_url: Booking link, set only when the message asks about booking
        sources: Ids of the retrieved documents
        provider: Provider that generated the reply (None for safety/demo replies)
    """
    reply: str
    emergency: bool = False
    booking_url: Optional[str] = None
    sources: tuple = ()
    provider: Optional[str] = None


# =============================================================================
# PROMPT TEMPLATES
# =============================================================================

PERSONA_PREAMBLE = (
    "You are Shyam, an empathetic Indian counselling assistant. "
    "Use person-centered language, validation, and culturally sensitive examples. "
    "Do NOT provide medical prescriptions. Use context below:"
)

CLOSING_INSTRUCTION = (
    "Respond warmly and ask permission before techniques. Keep reply concise."
)

# Documents included in a single prompt
MAX_PROMPT_DOCUMENTS = 3


def build_prompt(documents: list[Document], message: str) -> str:
    """
    Assemble the generation prompt.

    Example:
        >>> build_prompt([Document("a.txt", "Breathe.")], "hi").splitlines()[2]
        'Document (a.txt):'
    """
    context = "\n\n".join(
        f"Document ({document.id}):\n{document.text}"
        for document in documents[:MAX_PROMPT_DOCUMENTS]
    )
    return f"{PERSONA_PREAMBLE}\n\n{context}\n\nUser: {message}\n\n{CLOSING_INSTRUCTION}"


def demo_reply(message: str, documents: list[Document]) -> str:
    """Deterministic reply used when no provider produced an answer."""
    ids = ", ".join(document.id for document in documents) or "none"
    return f"[DEMO] I hear you said: '{message}'. Retrieved docs: {ids}."


# =============================================================================
# SERVICE
# =============================================================================

class ChatService:
    """Owns the index, the provider router and the booking store."""

    def __init__(self, vector_store: Optional[VectorStore] = None,
                 router: Optional[ProviderRouter] = None,
                 bookings: Optional[BookingStore] = None,
                 knowledge_dir: Path = KNOWLEDGE_DIR,
                 fallback_file: Path = FALLBACK_KNOWLEDGE_FILE,
                 booking_link: str = BOOKING_LINK,
                 top_k: int = TOP_K_RESULTS,
                 max_attempts: int = MAX_PROVIDER_ATTEMPTS):
        self.vector_store = vector_store if vector_store is not None else VectorStore()
        self.router = router if router is not None else ProviderRouter(build_providers())
        self.bookings = bookings if bookings is not None else BookingStore()
        self.knowledge_dir = Path(knowledge_dir)
        self.fallback_file = Path(fallback_file)
        self.booking_link = booking_link
        self.top_k = top_k
        self.max_attempts = max_attempts

    def index_documents(self) -> int:
        """
        Rebuild the vector store from the knowledge sources.

        Raises:
            IndexingError: If no documents are found; the previous index is kept
        """
        documents = discover_documents(self.knowledge_dir, self.fallback_file)
        return self.vector_store.build_index(documents)

    def answer(self, message: Any) -> ChatReply:
        """
        Process a user message and return a reply.

        Always returns a reply for a non-empty message: the safety message,
        a generated answer, or the demo fallback.

        Scalar messages (numbers) are coerced to strings.

        Raises:
            InputValidationError: If the message is missing or empty
        """
        if not message:
            raise InputValidationError("Provide message")
        message = str(message)

        # ---------------------------------------------------------------------
        # Step 1: Safety check
        # ---------------------------------------------------------------------
        matched = check_emergency(message)
        if matched is not None:
            logger.warning("Emergency phrase detected: %r", matched)
            return ChatReply(reply=SAFETY_MESSAGE, emergency=True)

        # ---------------------------------------------------------------------
        # Step 2: Retrieve and build the prompt
        # ---------------------------------------------------------------------
        documents = self.vector_store.retrieve_top_k(message, self.top_k)
        sources = tuple(document.id for document in documents)
        prompt = build_prompt(documents, message)
        booking_url = self.booking_link if wants_booking(message) else None

        # ---------------------------------------------------------------------
        # Step 3: Generate, falling back to the demo reply
        # ---------------------------------------------------------------------
        try:
            result = self.router.generate(prompt, self.max_attempts)
        except ConfigurationError:
            logger.info("No providers configured, using demo reply")
        else:
            if result.ok:
                return ChatReply(
                    reply=str(result.text).strip(),
                    booking_url=booking_url,
                    sources=sources,
                    provider=result.provider,
                )
            logger.error("Generation failed after trying %s: %s", result.tried, result.error)

        return ChatReply(
            reply=demo_reply(message, documents),
            booking_url=booking_url,
            sources=sources,
        )

    def book(self, name: Any, phone: Any, preferred: Any = None,
             notes: Any = None, source: Any = None) -> BookingRecord:
        """Store a booking request. See BookingStore.append."""
        return self.bookings.append(name, phone, preferred=preferred, notes=notes, source=source)

    def stats(self) -> dict:
        """Index and provider summary for health checks."""
        return {
            "indexed_documents": len(self.vector_store),
            "vocabulary_size": len(self.vector_store.vocabulary),
            "providers": [provider.name for provider in self.router.providers],
        }
