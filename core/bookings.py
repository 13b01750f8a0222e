"""
core/bookings.py - Booking Request Storage
==========================================

Booking requests are appended to a JSON file holding a list of records.
Each record gets a reference "BK<milliseconds>"; references are strictly
increasing even when two requests arrive within the same millisecond.
"""

import json
import logging
import threading
import time
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from config import BOOKINGS_FILE

logger = logging.getLogger(__name__)


class InputValidationError(ValueError):
    """A required request field is missing or empty."""


class PersistenceError(Exception):
    """The bookings file could not be read or written."""


@dataclass
class BookingRecord:
    ref: str
    name: str
    phone: str
    preferred: str = ""
    notes: str = ""
    source: str = ""
    created_at: str = ""


class BookingStore:
    """Append-only booking records persisted to a JSON file."""

    def __init__(self, path: Path = BOOKINGS_FILE):
        self.path = Path(path)
        self._lock = threading.Lock()
        self._last_ref_ms = 0

    def _next_ref(self) -> str:
        now_ms = int(time.time() * 1000)
        self._last_ref_ms = max(now_ms, self._last_ref_ms + 1)
        return f"BK{self._last_ref_ms}"

    def load(self) -> list[dict]:
        """Read all stored records (empty list if the file does not exist)."""
        if not self.path.exists():
            return []
        try:
            records = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise PersistenceError(f"Could not read {self.path}: {e}") from e
        if not isinstance(records, list):
            raise PersistenceError(f"{self.path} does not contain a list of bookings")
        return records

    def append(self, name: Any, phone: Any, preferred: Any = None,
               notes: Any = None, source: Any = None) -> BookingRecord:
        """
        Validate and store a booking request. Scalar values (e.g. a phone
        number sent as a JSON number) are stored as strings.

        Raises:
            InputValidationError: If name or phone is missing
            PersistenceError: If the bookings file cannot be read or written
        """
        if not name or not phone:
            raise InputValidationError("Provide name and phone")

        with self._lock:
            records = self.load()
            record = BookingRecord(
                ref=self._next_ref(),
                name=str(name),
                phone=str(phone),
                preferred=str(preferred or ""),
                notes=str(notes or ""),
                source=str(source or ""),
                created_at=datetime.now(timezone.utc).isoformat(),
            )
            records.append(asdict(record))
            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                self.path.write_text(json.dumps(records, indent=2, ensure_ascii=False), encoding="utf-8")
            except OSError as e:
                raise PersistenceError(f"Could not write {self.path}: {e}") from e

        logger.info("Booking stored: ref=%s source=%s", record.ref, record.source or "-")
        return record
