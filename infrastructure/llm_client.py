"""Chat-completion client used to tag and describe captured pages.

The backend family is inferred once from the endpoint URL. A local Ollama
server gets `stream: false` and no auth header; everything else is treated
as an OpenAI-compatible API with a `max_tokens` cap and bearer auth.
"""

from __future__ import annotations

from enum import Enum
import os
import re
from typing import Any

from loguru import logger
import requests

from core.errors import LLMRequestError
from core.services.interfaces import ServiceStatus

DEFAULT_API_URL = "http://localhost:11434/api/chat"
DEFAULT_MODEL = "llama3.1:latest"
DEFAULT_TIMEOUT = 20.0
LOCAL_CHECK_TIMEOUT = 5.0
MODELS_CHECK_TIMEOUT = 10.0
MAX_TOKENS = 500
API_KEY_ENV = "LLM_API_KEY"

TAGS_PREAMBLE = re.compile(r"^(Tags:|Output:|Response:|Here are the tags:)\s*", re.IGNORECASE)
DESCRIPTION_PREAMBLE = re.compile(
    r"^(Description:|Output:|Response:|Here is the description:)\s*", re.IGNORECASE
)
_SURROUNDING_QUOTES = re.compile(r"^[\"'\s]+|[\"'\s]+$")


class Provider(str, Enum):
    """Request/response family of an LLM endpoint."""

    LOCAL = "local"
    OPENAI_COMPATIBLE = "openai_compatible"


# URL marker -> vendor label (logging only; all share the OpenAI shape)
_CLOUD_VENDORS = {
    "deepseek.com": "deepseek",
    "mistral.ai": "mistral",
    "openai.com": "openai",
}


def detect_provider(api_url: str) -> tuple[Provider, str]:
    """Return the provider family and a vendor label for `api_url`."""
    lowered = (api_url or "").strip().lower()
    if ":11434" in lowered or "ollama" in lowered:
        return Provider.LOCAL, "ollama"
    for marker, vendor in _CLOUD_VENDORS.items():
        if marker in lowered:
            return Provider.OPENAI_COMPATIBLE, vendor
    return Provider.OPENAI_COMPATIBLE, "generic"


def normalize_endpoint(provider: Provider, api_url: str) -> str:
    """Standardize local endpoints to `/api/chat`; leave others untouched."""
    url = (api_url or "").strip()
    if provider != Provider.LOCAL or url.endswith("/api/chat"):
        return url
    base = url.rstrip("/")
    if "/api/" in base:
        return re.sub(r"/api/.*$", "/api/chat", base)
    return f"{base}/api/chat"


def build_request_body(provider: Provider, model: str, prompt: str) -> dict[str, Any]:
    """Chat request body for `provider`."""
    body: dict[str, Any] = {
        "model": model,
        "messages": [{"role": "user", "content": prompt}],
    }
    if provider == Provider.LOCAL:
        body["stream"] = False
    else:
        body["max_tokens"] = MAX_TOKENS
    return body


def build_headers(provider: Provider, api_key: str | None) -> dict[str, str]:
    """Request headers; bearer auth only for non-local providers with a key."""
    headers = {"Content-Type": "application/json"}
    if api_key and provider != Provider.LOCAL:
        headers["Authorization"] = f"Bearer {api_key}"
    return headers


def extract_response_text(data: Any) -> str:
    """Pull the reply text out of a chat, OpenAI-style or legacy response."""
    if not isinstance(data, dict):
        return ""
    message = data.get("message")
    if isinstance(message, dict) and message.get("content"):
        return str(message["content"])
    choices = data.get("choices")
    if isinstance(choices, list) and choices:
        first = choices[0]
        if isinstance(first, dict):
            msg = first.get("message")
            if isinstance(msg, dict) and msg.get("content"):
                return str(msg["content"])
    if data.get("response"):
        return str(data["response"])
    return ""


def clean_reply(text: str, preamble: re.Pattern[str]) -> str:
    """Strip surrounding quotes/whitespace and a leading preamble."""
    cleaned = _SURROUNDING_QUOTES.sub("", text or "")
    return preamble.sub("", cleaned)


def tags_prompt(url: str, content: str) -> str:
    """Prompt asking for 5-8 comma-separated tags."""
    return (
        f"Analyze the following website content from URL {url} and generate a concise list "
        "of 5-8 relevant tags, separated by commas. Focus on specific keywords, technologies, "
        "topics, and concepts. Avoid generic terms unless highly relevant.\n\n"
        f"Website Content Snippet:\n---\n{content}\n---\n\n"
        'Output only the comma-separated tags. Example: "AI, Machine Learning, Python, '
        'Data Science, API"'
    )


def description_prompt(url: str, content: str) -> str:
    """Prompt asking for a 100-150 word description."""
    return (
        f"Based on the following website content from URL {url}, write a concise and "
        "informative description (around 100-150 words). Highlight key features, purpose, "
        "and target audience. Use relevant keywords for searchability. Avoid overly "
        "promotional language.\n\n"
        f"Website Content Snippet:\n---\n{content}\n---\n\n"
        "Output only the description text."
    )


class LLMClient:
    """Generate tags and descriptions through a configurable chat endpoint."""

    def __init__(
        self,
        api_url: str = DEFAULT_API_URL,
        model: str = DEFAULT_MODEL,
        api_key: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self.raw_api_url = (api_url or DEFAULT_API_URL).strip()
        self.model = (model or DEFAULT_MODEL).strip()
        self.api_key = api_key or None
        self.timeout = float(timeout or DEFAULT_TIMEOUT)
        self.provider, self.vendor = detect_provider(self.raw_api_url)
        self.api_url = normalize_endpoint(self.provider, self.raw_api_url)
        if self.vendor == "generic":
            logger.warning(
                "LLM URL {} not recognized; assuming an OpenAI-compatible API", self.raw_api_url
            )
        logger.info(
            "LLM client initialized | provider={} vendor={} model={} url={}",
            self.provider.value,
            self.vendor,
            self.model,
            self.api_url,
        )

    @classmethod
    def from_settings(cls, settings: Any) -> LLMClient:
        """Build a client from `llm.*` settings; the key may come from `LLM_API_KEY`."""
        api_key = settings.get("llm.api_key", "") or os.environ.get(API_KEY_ENV, "")
        try:
            timeout = float(settings.get("llm.timeout_seconds", DEFAULT_TIMEOUT) or DEFAULT_TIMEOUT)
        except (TypeError, ValueError):
            timeout = DEFAULT_TIMEOUT
        return cls(
            api_url=settings.get("llm.api_url", DEFAULT_API_URL) or DEFAULT_API_URL,
            model=settings.get("llm.model", DEFAULT_MODEL) or DEFAULT_MODEL,
            api_key=api_key or None,
            timeout=timeout,
        )

    def _headers(self) -> dict[str, str]:
        return build_headers(self.provider, self.api_key)

    def _call(self, prompt: str) -> str:
        """POST `prompt` and return the stripped reply text.

        Raises:
            LLMRequestError: network failure, timeout, non-200 status or a
                body that is not JSON.
        """
        body = build_request_body(self.provider, self.model, prompt)
        logger.debug("LLM request to {} with model {}", self.api_url, self.model)
        try:
            response = requests.post(
                self.api_url, json=body, headers=self._headers(), timeout=self.timeout
            )
        except requests.Timeout as ex:
            raise LLMRequestError(f"Request to {self.api_url} timed out") from ex
        except requests.RequestException as ex:
            raise LLMRequestError(f"Could not connect to {self.api_url}") from ex

        if response.status_code != 200:
            raise LLMRequestError(
                f"API request failed with status {response.status_code}: {response.text[:200]}"
            )
        try:
            data = response.json()
        except ValueError as ex:
            raise LLMRequestError(f"API returned a non-JSON body from {self.api_url}") from ex
        return extract_response_text(data).strip()

    def generate_tags(self, url: str, content: str) -> str:
        """Return 5-8 comma-separated tags for `content`, or "" on any failure."""
        try:
            tags = clean_reply(self._call(tags_prompt(url, content)), TAGS_PREAMBLE)
        except LLMRequestError as ex:
            logger.error("Error generating tags for {}: {}", url, ex.message)
            return ""
        return tags[:-1] if tags.endswith(".") else tags

    def generate_description(self, url: str, content: str) -> str:
        """Return a 100-150 word description of `content`, or "" on any failure."""
        try:
            return clean_reply(self._call(description_prompt(url, content)), DESCRIPTION_PREAMBLE)
        except LLMRequestError as ex:
            logger.error("Error generating description for {}: {}", url, ex.message)
            return ""

    def check_service(self) -> ServiceStatus:
        """Probe the endpoint; never raises."""
        if self.provider == Provider.LOCAL:
            check_url = re.sub(r"/api/chat$", "", self.api_url)
            method, kwargs = "HEAD", {"timeout": LOCAL_CHECK_TIMEOUT}
        else:
            check_url = self.api_url.split("/v1")[0].rstrip("/") + "/v1/models"
            method, kwargs = "GET", {"headers": self._headers(), "timeout": MODELS_CHECK_TIMEOUT}

        try:
            response = requests.request(method, check_url, **kwargs)
        except requests.RequestException as ex:
            logger.error("Service check failed for {}: {}", self.api_url, ex)
            return ServiceStatus(False, details=check_url, error=f"Could not connect: {ex}")

        if not 200 <= response.status_code < 300:
            error = f"HTTP {response.status_code} {response.reason or ''}".strip()
            logger.error("Service check failed for {}: {}", self.api_url, error)
            return ServiceStatus(False, details=check_url, error=error)

        if self.provider == Provider.LOCAL:
            return ServiceStatus(True, details=f"Ollama base URL reachable at {check_url}")

        try:
            payload = response.json()
        except ValueError:
            payload = None
        models = payload.get("data", payload) if isinstance(payload, dict) else payload
        count = len(models) if isinstance(models, list) else ("Available" if models else "No Data")
        return ServiceStatus(True, details=f"API available, models: {count}")
