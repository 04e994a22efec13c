"""Document summarization: hosted providers in priority order, local extractive fallback."""

import logging
from typing import List, Optional

import httpx

from docshelf.config import Settings, settings as default_settings
from docshelf.models.schemas import SummarizeRequest, SummaryResult
from docshelf.summarizer.content import fetch_source_text
from docshelf.summarizer.extractive import extractive_summary
from docshelf.summarizer.providers import HostedProvider, ProviderError, build_provider_chain

logger = logging.getLogger(__name__)

LOCAL_SOURCE = "local"
LOCAL_MODEL = "local-extractive"


class DocumentSummarizer:
    """
    Produces a short synopsis of one document.

    Each configured provider gets exactly one attempt, in order. The first
    non-empty answer wins. If none is configured or all of them fail, a local
    extractive summary is returned, so `summarize` always yields a result.
    """

    def __init__(
        self,
        providers: Optional[List[HostedProvider]] = None,
        settings: Settings = default_settings,
        fetch_transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings
        self.providers = providers if providers is not None else build_provider_chain(settings)
        self._fetch_transport = fetch_transport

    # ---------------------------
    # Public API
    # ---------------------------

    async def summarize(self, ref: SummarizeRequest) -> SummaryResult:
        text = await self.resolve_text(ref)

        prompt = self._create_prompt(ref.name, ref.type, text)
        for provider in self.providers:
            if not provider.configured:
                logger.debug(f"Provider {provider.name} not configured, skipping")
                continue
            try:
                summary = await provider.complete(prompt, self.settings.summary_max_output_chars)
            except ProviderError as e:
                logger.warning(f"Summary provider {provider.name} unavailable: {e}")
                continue
            logger.info(f"Summarized {ref.name} with {provider.name} ({provider.model})")
            return SummaryResult(summary=summary, source=provider.name, model=provider.model)

        logger.info(f"No hosted provider produced a summary for {ref.name}; using local extractive summary")
        return SummaryResult(
            summary=extractive_summary(text, self.settings.summary_sentences),
            source=LOCAL_SOURCE,
            model=LOCAL_MODEL,
        )

    async def resolve_text(self, ref: SummarizeRequest) -> str:
        if ref.inline_text and ref.inline_text.strip():
            return ref.inline_text
        return await fetch_source_text(
            ref.url,
            ref.name,
            ref.type,
            timeout=self.settings.fetch_timeout_seconds,
            transport=self._fetch_transport,
        )

    def get_provider(self, name: str) -> Optional[HostedProvider]:
        return next((p for p in self.providers if p.name == name), None)

    # ---------------------------
    # Prompt
    # ---------------------------

    def _create_prompt(self, name: str, file_type: Optional[str], text: str) -> str:
        excerpt = text[: self.settings.summary_prompt_chars]
        return (
            f'Please write a concise summary of the document "{name}" '
            f"(type: {file_type or 'unknown'}).\n"
            "Respond with 2-3 sentences that capture its main points, and nothing else.\n\n"
            f"<document>\n{excerpt}\n</document>"
        )


# Global summarizer instance
_summarizer_instance: Optional[DocumentSummarizer] = None


def get_summarizer() -> DocumentSummarizer:
    """Get or create the global summarizer instance."""
    global _summarizer_instance
    if _summarizer_instance is None:
        _summarizer_instance = DocumentSummarizer()
    return _summarizer_instance
