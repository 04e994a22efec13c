import asyncio
import json

import httpx
import pytest

from docshelf.config import Settings
from docshelf.models.schemas import SummarizeRequest
from docshelf.summarizer.content import fetch_source_text, placeholder_text
from docshelf.summarizer.providers import (
    AnthropicProvider,
    DeepSeekProvider,
    GeminiProvider,
    HostedProvider,
    ProviderError,
    build_provider_chain,
)
from docshelf.summarizer.summarizer import DocumentSummarizer

TEXT = "The cat sat. The dog ran fast. The cat and dog played."


class FakeProvider(HostedProvider):
    def __init__(self, name, answer=None, api_key="k", calls=None):
        super().__init__(api_key, f"{name}-model")
        self.name = name
        self.answer = answer
        self.calls = calls if calls is not None else []

    async def complete(self, prompt, max_output_chars):
        self.calls.append(self.name)
        if self.answer is None:
            raise ProviderError(f"{self.name} down")
        return self.answer


def _summarize(summarizer, **kwargs):
    kwargs.setdefault("name", "pets.txt")
    return asyncio.run(summarizer.summarize(SummarizeRequest(**kwargs)))


# ---------- provider chain ----------
def test_no_providers_uses_local():
    result = _summarize(DocumentSummarizer(providers=[]), inline_text=TEXT)
    assert result.source == "local"
    assert result.model == "local-extractive"
    assert result.summary == "The dog ran fast. The cat and dog played."


def test_unconfigured_chain_uses_local():
    settings = Settings(anthropic_api_key="", deepseek_api_key="", google_generative_ai_api_key="")
    result = _summarize(DocumentSummarizer(settings=settings), inline_text="Just one line")
    assert result.source == "local"
    assert result.summary == "Just one line"


def test_first_failure_falls_through_to_next():
    calls = []
    chain = [FakeProvider("a", None, calls=calls), FakeProvider("b", "from b", calls=calls)]
    result = _summarize(DocumentSummarizer(providers=chain), inline_text=TEXT)
    assert calls == ["a", "b"]
    assert (result.summary, result.source, result.model) == ("from b", "b", "b-model")


def test_unconfigured_provider_is_skipped():
    calls = []
    chain = [FakeProvider("a", "nope", api_key=None, calls=calls), FakeProvider("b", "yes", calls=calls)]
    result = _summarize(DocumentSummarizer(providers=chain), inline_text=TEXT)
    assert calls == ["b"]
    assert result.source == "b"


def test_all_failing_falls_back_to_local_once_each():
    calls = []
    chain = [FakeProvider("a", calls=calls), FakeProvider("b", calls=calls), FakeProvider("c", calls=calls)]
    result = _summarize(DocumentSummarizer(providers=chain), inline_text=TEXT)
    assert calls == ["a", "b", "c"]
    assert result.source == "local"


def test_local_summary_never_empty_for_placeholder():
    result = _summarize(DocumentSummarizer(providers=[]), name="scan.png", type="image/png")
    assert result.source == "local"
    assert "scan" in result.summary and "image/png" in result.summary


def test_chain_order():
    chain = build_provider_chain(Settings())
    assert [p.name for p in chain] == ["anthropic", "deepseek", "gemini"]


# ---------- provider wire formats ----------
def _transport(status, body, seen):
    def handler(request):
        seen.append(request)
        return httpx.Response(status, json=body)
    return httpx.MockTransport(handler)


def test_anthropic_request_and_parse():
    seen = []
    p = AnthropicProvider("key", "claude-x", transport=_transport(
        200, {"content": [{"type": "text", "text": " A summary. "}]}, seen))
    assert asyncio.run(p.complete("hi", 1200)) == "A summary."
    req = seen[0]
    assert req.headers["x-api-key"] == "key"
    assert req.headers["anthropic-version"] == "2023-06-01"
    assert json.loads(req.content)["max_tokens"] == 300


def test_deepseek_request_and_parse():
    seen = []
    p = DeepSeekProvider("key", "deepseek-chat", base_url="https://ds.test/", transport=_transport(
        200, {"choices": [{"message": {"content": "DS summary"}}]}, seen))
    assert asyncio.run(p.complete("hi", 100)) == "DS summary"
    assert str(seen[0].url) == "https://ds.test/chat/completions"
    assert seen[0].headers["authorization"] == "Bearer key"


def test_gemini_request_and_parse():
    seen = []
    p = GeminiProvider("key", "gemini-1.5-flash", transport=_transport(
        200, {"candidates": [{"content": {"parts": [{"text": "G "}, {"text": "summary"}]}}]}, seen))
    assert asyncio.run(p.complete("hi", 100)) == "G summary"
    assert seen[0].url.path.endswith("/models/gemini-1.5-flash:generateContent")


def test_output_is_truncated():
    p = DeepSeekProvider("key", "m", transport=_transport(
        200, {"choices": [{"message": {"content": "x" * 50}}]}, []))
    assert asyncio.run(p.complete("hi", 10)) == "x" * 10


@pytest.mark.parametrize("status,body", [
    (500, {"error": "boom"}),
    (200, {"unexpected": True}),
    (200, {"choices": [{"message": {"content": "   "}}]}),
])
def test_bad_responses_raise_provider_error(status, body):
    p = DeepSeekProvider("key", "m", transport=_transport(status, body, []))
    with pytest.raises(ProviderError):
        asyncio.run(p.complete("hi", 100))


@pytest.mark.parametrize("provider_cls,body", [
    (AnthropicProvider, {"content": ["oops"]}),
    (AnthropicProvider, {"content": [{"type": "text", "text": 42}]}),
    (DeepSeekProvider, {"choices": [{"message": {"content": {"text": "nested"}}}]}),
    (DeepSeekProvider, {"choices": ["oops"]}),
    (GeminiProvider, {"candidates": [{"content": {"parts": ["oops"]}}]}),
])
def test_wrong_shape_raises_provider_error(provider_cls, body):
    p = provider_cls("key", "m", transport=_transport(200, body, []))
    with pytest.raises(ProviderError):
        asyncio.run(p.complete("hi", 100))


def test_wrong_shape_reply_falls_back_to_local():
    anthropic = AnthropicProvider("key", "m", transport=_transport(200, {"content": ["oops"]}, []))
    result = _summarize(DocumentSummarizer(providers=[anthropic]), inline_text=TEXT)
    assert result.source == "local"
    assert result.model == "local-extractive"
    assert result.summary == "The dog ran fast. The cat and dog played."


def test_transport_error_raises_provider_error():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)
    p = AnthropicProvider("key", "m", transport=httpx.MockTransport(handler))
    with pytest.raises(ProviderError):
        asyncio.run(p.complete("hi", 100))


def test_hosted_failure_then_local_over_http():
    def handler(request):
        return httpx.Response(503, json={"error": "overloaded"})
    settings = Settings(anthropic_api_key="k", deepseek_api_key="", google_generative_ai_api_key="")
    chain = build_provider_chain(settings, transport=httpx.MockTransport(handler))
    result = _summarize(DocumentSummarizer(providers=chain, settings=settings), inline_text=TEXT)
    assert result.source == "local"


# ---------- source text ----------
def _fetch(handler, url="http://files.test/doc", name="doc.txt", file_type="text/plain"):
    return asyncio.run(fetch_source_text(url, name, file_type, transport=httpx.MockTransport(handler)))


def test_fetch_textual_verbatim():
    text = _fetch(lambda r: httpx.Response(200, text="hello there", headers={"content-type": "text/plain"}))
    assert text == "hello there"


def test_fetch_http_error_gives_placeholder():
    text = _fetch(lambda r: httpx.Response(404, text="missing"))
    assert text == placeholder_text("doc.txt", "text/plain")


def test_fetch_unknown_binary_gives_placeholder():
    text = _fetch(
        lambda r: httpx.Response(200, content=b"\x89PNG", headers={"content-type": "image/png"}),
        name="pic.png", file_type="image/png",
    )
    assert text == "Document: pic.png\nType: image/png"


def test_fetch_broken_pdf_gives_placeholder():
    text = _fetch(
        lambda r: httpx.Response(200, content=b"not a pdf", headers={"content-type": "application/pdf"}),
        name="x.pdf", file_type=None,
    )
    assert text == "Document: x.pdf\nType: unknown"


def test_no_url_gives_placeholder():
    assert asyncio.run(fetch_source_text(None, "a.txt", "text/plain")) == placeholder_text("a.txt", "text/plain")


def test_summarizer_fetches_when_no_inline_text():
    transport = httpx.MockTransport(
        lambda r: httpx.Response(200, text=TEXT, headers={"content-type": "text/plain; charset=utf-8"})
    )
    summarizer = DocumentSummarizer(providers=[], fetch_transport=transport)
    result = _summarize(summarizer, url="http://files.test/pets.txt")
    assert result.summary == "The dog ran fast. The cat and dog played."
