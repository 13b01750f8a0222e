"""
core/providers.py - Text Generation Providers
==============================================

Each external text-generation service is a small Provider subclass with:
- name: identifier used by the router and in logs
- request(prompt): perform the HTTP exchange and return the decoded body
- extract_text(raw): pull the generated text out of the decoded body,
  falling back to the serialized body when the expected field is absent

Adding a provider means adding a subclass and registering it in
build_providers(); the router never branches on provider names.

All transport problems (network errors, timeouts, non-success statuses,
undecodable bodies) are raised as ProviderError so the router can fail over.
"""

import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Optional

import openai
import requests

from config import (
    GOOGLE_API_KEY,
    GOOGLE_MAX_OUTPUT_TOKENS,
    GOOGLE_MODEL,
    HF_MAX_NEW_TOKENS,
    HF_MODEL_NAME,
    HUGGINGFACE_API_KEY,
    OPENAI_API_KEY,
    OPENAI_MAX_TOKENS,
    OPENAI_MODEL,
    PROVIDER_TIMEOUT_SECONDS,
)

logger = logging.getLogger(__name__)

OPENAI_SYSTEM_PROMPT = "You are Shyam, an empathetic Indian counseling assistant."


class ProviderError(Exception):
    """A single provider call failed."""

    def __init__(self, provider: str, message: str):
        super().__init__(f"{provider} error: {message}")
        self.provider = provider


class ConfigurationError(Exception):
    """No generation provider is configured."""


def _serialize(raw: Any) -> str:
    return json.dumps(raw, ensure_ascii=False)


def _as_text(value: Any) -> str:
    """Return strings unchanged and serialize anything else."""
    return value if isinstance(value, str) else _serialize(value)


# =============================================================================
# BASE CLASS
# =============================================================================

class Provider(ABC):
    """Base class for text generation providers."""

    name: str = ""

    def __init__(self, api_key: str, timeout: float = PROVIDER_TIMEOUT_SECONDS):
        self.api_key = api_key
        self.timeout = timeout

    @abstractmethod
    def request(self, prompt: str) -> Any:
        """
        Send the prompt to the service.

        Returns:
            The decoded JSON response body

        Raises:
            ProviderError: On network failure, timeout or non-success status
        """

    @abstractmethod
    def extract_text(self, raw: Any) -> str:
        """Extract the generated text from a decoded response body."""

    def generate(self, prompt: str) -> str:
        return self.extract_text(self.request(prompt))

    def _post_json(self, url: str, payload: dict, headers: Optional[dict] = None,
                   params: Optional[dict] = None) -> Any:
        """POST a JSON payload with requests and decode the JSON reply."""
        try:
            response = requests.post(
                url,
                json=payload,
                headers=headers,
                params=params,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise ProviderError(self.name, str(e)) from e

        if not response.ok:
            raise ProviderError(self.name, f"HTTP {response.status_code}: {response.text}")

        try:
            return response.json()
        except ValueError as e:
            raise ProviderError(self.name, f"invalid JSON response: {e}") from e

    def __repr__(self):
        return f"{type(self).__name__}(name={self.name!r})"


# =============================================================================
# PROVIDERS
# =============================================================================

class GoogleProvider(Provider):
    """Google Generative Language text model (PaLM-style generate endpoint)."""

    name = "google"

    def __init__(self, api_key: str, model: str = GOOGLE_MODEL,
                 max_output_tokens: int = GOOGLE_MAX_OUTPUT_TOKENS,
                 timeout: float = PROVIDER_TIMEOUT_SECONDS):
        super().__init__(api_key, timeout)
        self.model = model
        self.max_output_tokens = max_output_tokens

    @property
    def url(self) -> str:
        return f"https://generativelanguage.googleapis.com/v1beta2/models/{self.model}:generate"

    def request(self, prompt: str) -> Any:
        payload = {"prompt": {"text": prompt}, "maxOutputTokens": self.max_output_tokens}
        return self._post_json(self.url, payload, params={"key": self.api_key})

    def extract_text(self, raw: Any) -> str:
        if isinstance(raw, dict):
            candidates = raw.get("candidates") or []
            if candidates and isinstance(candidates[0], dict) and candidates[0].get("output"):
                return _as_text(candidates[0]["output"])
            if raw.get("output"):
                return _as_text(raw["output"])
        return _serialize(raw)


class OpenAIProvider(Provider):
    """
    OpenAI chat completions through the official SDK.

    A client can be injected (tests); otherwise one is created lazily with
    the provider's API key and timeout.
    """

    name = "openai"

    def __init__(self, api_key: str, model: str = OPENAI_MODEL,
                 max_tokens: int = OPENAI_MAX_TOKENS,
                 timeout: float = PROVIDER_TIMEOUT_SECONDS, client=None):
        super().__init__(api_key, timeout)
        self.model = model
        self.max_tokens = max_tokens
        self._client = client

    @property
    def client(self):
        if self._client is None:
            self._client = openai.OpenAI(api_key=self.api_key, timeout=self.timeout)
        return self._client

    def request(self, prompt: str) -> Any:
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": OPENAI_SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
                max_tokens=self.max_tokens,
            )
        except openai.OpenAIError as e:
            raise ProviderError(self.name, str(e)) from e
        return response.model_dump()

    def extract_text(self, raw: Any) -> str:
        if isinstance(raw, dict):
            choices = raw.get("choices") or []
            if choices and isinstance(choices[0], dict) and choices[0].get("message"):
                return _as_text(choices[0]["message"].get("content") or "")
        return _serialize(raw)


class HuggingFaceProvider(Provider):
    """Hugging Face hosted inference API for text generation models."""

    name = "huggingface"

    def __init__(self, api_key: str, model: str = HF_MODEL_NAME,
                 max_new_tokens: int = HF_MAX_NEW_TOKENS,
                 timeout: float = PROVIDER_TIMEOUT_SECONDS):
        super().__init__(api_key, timeout)
        self.model = model
        self.max_new_tokens = max_new_tokens

    @property
    def url(self) -> str:
        return f"https://api-inference.huggingface.co/models/{self.model}"

    def request(self, prompt: str) -> Any:
        payload = {"inputs": prompt, "parameters": {"max_new_tokens": self.max_new_tokens}}
        headers = {"Authorization": f"Bearer {self.api_key}"}
        return self._post_json(self.url, payload, headers=headers)

    def extract_text(self, raw: Any) -> str:
        if isinstance(raw, list) and raw and isinstance(raw[0], dict) and raw[0].get("generated_text"):
            return _as_text(raw[0]["generated_text"])
        if isinstance(raw, dict) and raw.get("generated_text"):
            return _as_text(raw["generated_text"])
        return _serialize(raw)


# =============================================================================
# FACTORY
# =============================================================================

def build_providers(google_api_key: str = GOOGLE_API_KEY,
                    openai_api_key: str = OPENAI_API_KEY,
                    huggingface_api_key: str = HUGGINGFACE_API_KEY,
                    hf_model_name: str = HF_MODEL_NAME) -> list[Provider]:
    """
    Create the configured providers in declaration order.

    A provider is included only when its API key is non-empty.
    """
    providers = []
    if google_api_key:
        providers.append(GoogleProvider(google_api_key))
    if openai_api_key:
        providers.append(OpenAIProvider(openai_api_key))
    if huggingface_api_key:
        providers.append(HuggingFaceProvider(huggingface_api_key, model=hf_model_name))

    logger.info("Configured providers: %s", [p.name for p in providers] or "none")
    return providers
