"""
core/safety.py - Emergency Detection
====================================

This module implements a simple keyword-based check that detects when a
user may be in danger of self-harm. When it triggers, the chat flow skips
retrieval and generation entirely and returns a fixed safety message with
helpline contacts.

IMPORTANT: Matching is plain substring containment on the lowercased
message, not word-boundary matching. It favours recall over precision, so
benign sentences that happen to contain a phrase (e.g. "a novel about
suicide prevention") also trigger it.

The module also decides whether a message asks about booking a session,
which controls whether the booking link is attached to the reply.
"""

import re
from typing import Optional

from config import BOOKING_KEYWORDS, EMERGENCY_PHRASES


# =============================================================================
# RESPONSE MESSAGES
# =============================================================================

SAFETY_MESSAGE = (
    "I care about your safety. I cannot provide emergency services. "
    "Please call local emergency services or helplines: "
    "Vandrevala 1860-266-2345, iCall 9152987821. "
    "Would you like me to request an urgent booking?"
)

_BOOKING_PATTERN = re.compile(
    r"\b(" + "|".join(re.escape(word) for word in BOOKING_KEYWORDS) + r")\b",
    re.IGNORECASE,
)


# =============================================================================
# CHECKS
# =============================================================================

def check_emergency(message: Optional[str]) -> Optional[str]:
    """
    Return the first emergency phrase contained in the message, if any.

    Args:
        message: The raw text input from the user

    Returns:
        The matched phrase (for logging), or None if safe to proceed

    Example:
        >>> check_emergency("Sometimes I feel like I want to die")
        'i want to die'
        >>> check_emergency("How do I calm down before exams?") is None
        True
    """
    normalized = str(message or "").lower()
    for phrase in EMERGENCY_PHRASES:
        if phrase in normalized:
            return phrase
    return None


def is_emergency(message: Optional[str]) -> bool:
    """True if the message contains any emergency phrase."""
    return check_emergency(message) is not None


def wants_booking(message: Optional[str]) -> bool:
    """True if the message mentions booking, an appointment, a session or a slot."""
    return bool(_BOOKING_PATTERN.search(str(message or "")))
