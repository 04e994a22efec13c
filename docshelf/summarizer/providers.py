"""Hosted LLM providers used for summaries, all spoken to over plain HTTP."""
import logging
from typing import Any, Dict, List, Optional, Tuple

import httpx

from docshelf.config import Settings

logger = logging.getLogger(__name__)


class ProviderError(Exception):
    """A provider could not produce a usable completion."""


class HostedProvider:
    """
    One summarization backend. Subclasses describe the request and how to
    read the answer; transport and error handling are shared.
    """

    name = "base"

    def __init__(
        self,
        api_key: Optional[str],
        model: str,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        self._transport = transport

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def _request(self, prompt: str, max_tokens: int) -> Tuple[str, Dict[str, str], Dict[str, Any]]:
        raise NotImplementedError

    def _parse(self, data: Dict[str, Any]) -> str:
        raise NotImplementedError

    async def complete(self, prompt: str, max_output_chars: int) -> str:
        if not self.configured:
            raise ProviderError(f"{self.name} is not configured")

        # ~4 characters per token
        max_tokens = max(64, max_output_chars // 4)
        url, headers, payload = self._request(prompt, max_tokens)

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                resp = await client.post(url, headers=headers, json=payload)
        except httpx.HTTPError as e:
            raise ProviderError(f"{self.name} request failed: {e}") from e

        if resp.status_code >= 400:
            raise ProviderError(f"{self.name} returned HTTP {resp.status_code}: {resp.text[:300]}")

        try:
            text = self._parse(resp.json())
        except (KeyError, IndexError, TypeError, ValueError, AttributeError) as e:
            raise ProviderError(f"{self.name} returned a malformed payload: {e}") from e
        if text is not None and not isinstance(text, str):
            raise ProviderError(f"{self.name} returned a non-text completion: {type(text).__name__}")

        text = (text or "").strip()[:max_output_chars].strip()
        if not text:
            raise ProviderError(f"{self.name} returned an empty summary")
        return text

    def describe(self) -> Dict[str, Any]:
        return {"name": self.name, "model": self.model, "configured": self.configured}


class AnthropicProvider(HostedProvider):
    name = "anthropic"
    endpoint = "https://api.anthropic.com/v1/messages"

    def _request(self, prompt, max_tokens):
        headers = {
            "x-api-key": self.api_key,
            "anthropic-version": "2023-06-01",
            "content-type": "application/json",
        }
        payload = {
            "model": self.model,
            "max_tokens": max_tokens,
            "messages": [{"role": "user", "content": prompt}],
        }
        return self.endpoint, headers, payload

    def _parse(self, data):
        return "".join(block["text"] for block in data["content"] if block.get("type") == "text")


class DeepSeekProvider(HostedProvider):
    name = "deepseek"

    def __init__(self, *args, base_url: str = "https://api.deepseek.com", **kwargs):
        super().__init__(*args, **kwargs)
        self.base_url = base_url.rstrip("/")

    def _request(self, prompt, max_tokens):
        headers = {"Authorization": f"Bearer {self.api_key}", "Content-Type": "application/json"}
        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": "You are a helpful assistant."},
                {"role": "user", "content": prompt},
            ],
            "max_tokens": max_tokens,
            "stream": False,
        }
        return f"{self.base_url}/chat/completions", headers, payload

    def _parse(self, data):
        return data["choices"][0]["message"]["content"]


class GeminiProvider(HostedProvider):
    name = "gemini"
    base_url = "https://generativelanguage.googleapis.com/v1beta"

    def _request(self, prompt, max_tokens):
        url = f"{self.base_url}/models/{self.model}:generateContent"
        headers = {"x-goog-api-key": self.api_key, "Content-Type": "application/json"}
        payload = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {"maxOutputTokens": max_tokens},
        }
        return url, headers, payload

    def _parse(self, data):
        parts = data["candidates"][0]["content"]["parts"]
        return "".join(p.get("text", "") for p in parts)


def build_provider_chain(
    settings: Settings,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> List[HostedProvider]:
    """Providers in priority order; unconfigured ones stay in the list and are skipped."""
    timeout = settings.provider_timeout_seconds
    return [
        AnthropicProvider(settings.anthropic_api_key, settings.anthropic_model, timeout, transport),
        DeepSeekProvider(
            settings.deepseek_api_key, settings.deepseek_model, timeout, transport,
            base_url=settings.deepseek_base_url,
        ),
        GeminiProvider(settings.google_generative_ai_api_key, settings.gemini_model, timeout, transport),
    ]
