"""
core/router.py - Provider Rotation with Failover
================================================

The router keeps the configured providers in a fixed order and a cursor
that advances on every selection. Each generate() call starts wherever the
previous call left the cursor, which spreads load across providers, and
fails over to the next provider when one errors.
"""

import logging
import threading
from dataclasses import dataclass, field
from typing import Optional

from config import MAX_PROVIDER_ATTEMPTS
from core.providers import ConfigurationError, Provider, ProviderError

logger = logging.getLogger(__name__)


@dataclass
class GenerationResult:
    """
    Outcome of one generate() call.

    Attributes:
        text: Generated text, None if every attempt failed
        provider: Name of the provider that produced the text
        tried: Provider names attempted, in order
        errors: Errors recorded for the failed attempts
    """
    text: Optional[str] = None
    provider: Optional[str] = None
    tried: list[str] = field(default_factory=list)
    errors: list[ProviderError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.text is not None

    @property
    def error(self) -> Optional[Exception]:
        """The last recorded error, or a generic one when nothing was recorded."""
        if self.ok:
            return None
        if self.errors:
            return self.errors[-1]
        return ProviderError("router", "All providers failed")


class ProviderRouter:
    """Round-robin provider selection with failover."""

    def __init__(self, providers: list[Provider]):
        self._providers = tuple(providers)
        self._cursor = 0
        self._lock = threading.Lock()

    @property
    def providers(self) -> tuple:
        return self._providers

    @property
    def cursor(self) -> int:
        return self._cursor

    def next_provider(self) -> Optional[Provider]:
        """Return the provider under the cursor and advance the cursor."""
        if not self._providers:
            return None
        with self._lock:
            provider = self._providers[self._cursor % len(self._providers)]
            self._cursor += 1
        return provider

    def generate(self, prompt: str, max_attempts: int = MAX_PROVIDER_ATTEMPTS) -> GenerationResult:
        """
        Send the prompt to providers in rotation until one succeeds.

        At most min(max_attempts, number of providers) attempts are made and
        no provider is called twice in the same call. The cursor advances on
        every attempt, whether it succeeds or not.

        Raises:
            ConfigurationError: If no providers are configured
        """
        if not self._providers:
            raise ConfigurationError("No providers configured")

        result = GenerationResult()
        for _ in range(min(max_attempts, len(self._providers))):
            provider = self.next_provider()
            if provider.name in result.tried:
                continue
            result.tried.append(provider.name)

            try:
                text = provider.generate(prompt)
            except ProviderError as e:
                logger.warning("Provider %s failed: %s", provider.name, e)
                result.errors.append(e)
                continue
            except Exception as e:
                # Unexpected provider bugs fail over like transport errors
                logger.exception("Provider %s raised an unexpected error", provider.name)
                result.errors.append(ProviderError(provider.name, f"unexpected error: {e}"))
                continue

            result.text = text
            result.provider = provider.name
            return result

        return result
