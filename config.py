"""
config.py - Configuration settings for the Shyam counselling backend
=====================================================================

This file centralizes all configuration values. Secrets (provider API keys)
and deployment-specific values come from environment variables, optionally
loaded from a .env file.
"""

import os
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables from .env file if it exists
load_dotenv()

# =============================================================================
# PATH CONFIGURATION
# =============================================================================

# Base directory (where this file lives)
BASE_DIR = Path(__file__).parent

# Knowledge sources: every .txt/.md file in KNOWLEDGE_DIR, or the single
# fallback file when the folder is empty or missing
KNOWLEDGE_DIR = Path(os.getenv("KNOWLEDGE_DIR", BASE_DIR / "knowledge"))
FALLBACK_KNOWLEDGE_FILE = BASE_DIR / "my_data.txt"
KNOWLEDGE_EXTENSIONS = (".txt", ".md")

# Booking requests are appended to this JSON file
BOOKINGS_FILE = Path(os.getenv("BOOKINGS_FILE", BASE_DIR / "bookings.json"))

# =============================================================================
# SERVER CONFIGURATION
# =============================================================================

PORT = int(os.getenv("PORT", "3000"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Comma separated; "*" allows any origin
ALLOWED_ORIGINS = [
    origin.strip()
    for origin in os.getenv("ALLOWED_ORIGINS", "*").split(",")
    if origin.strip()
]

# Link returned with chat replies that ask about booking a session
BOOKING_LINK = os.getenv("BOOKING_LINK", "")

# =============================================================================
# RETRIEVAL CONFIGURATION
# =============================================================================

# Maximum number of distinct terms kept in the vocabulary
MAX_VOCABULARY = 400

# Number of documents passed to the prompt for each message
TOP_K_RESULTS = 3

# =============================================================================
# PROVIDER CONFIGURATION
# =============================================================================

# A provider is only enabled when its key is set
GOOGLE_API_KEY = os.getenv("GOOGLE_API_KEY", "")
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY", "")
HUGGINGFACE_API_KEY = os.getenv("HUGGINGFACE_API_KEY", "")

GOOGLE_MODEL = os.getenv("GOOGLE_MODEL", "text-bison-001")
OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
HF_MODEL_NAME = os.getenv("HF_MODEL_NAME", "google/flan-t5-small")

GOOGLE_MAX_OUTPUT_TOKENS = 512
OPENAI_MAX_TOKENS = 400
HF_MAX_NEW_TOKENS = 256

# Upper bound for a single provider request, so one slow provider
# cannot stall the rotation
PROVIDER_TIMEOUT_SECONDS = float(os.getenv("PROVIDER_TIMEOUT_SECONDS", "30"))

# How many distinct providers a single chat message may try
MAX_PROVIDER_ATTEMPTS = 3

# =============================================================================
# SAFETY CONFIGURATION
# =============================================================================

# Used by core/safety.py. Matching is lowercase substring containment.
EMERGENCY_PHRASES = [
    "suicide",
    "kill myself",
    "hurt myself",
    "overdose",
    "i want to die",
    "self harm",
]

# Whole-word, case-insensitive triggers for attaching the booking link
BOOKING_KEYWORDS = ["book", "appointment", "session", "slot"]
