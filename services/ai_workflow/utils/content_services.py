"""
content_services.py
Prose backends for narrative dashboards, and the merge of their output.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, Sequence, Tuple

import requests

from services.ai_workflow.data_model import Citation
from services.ai_workflow.utils.openai_utils import ChatCompletion
from services.constants import (
    CONTENT_API_TIMEOUT,
    HF_API_KEY,
    HF_CHAT_URL,
    HF_LLM_MODEL,
    NARRATIVE_TEMPERATURE,
    PERPLEXITY_API_KEY,
    PERPLEXITY_MODEL,
    PERPLEXITY_URL,
)
from services.errors import TransientBackendError

logger = logging.getLogger(__name__)

# Shorter contributions from the small HF model are usually noise
MIN_SUPPLEMENT_CHARS = 50
SECTION_SEPARATOR = "\n\n---\n\n"

RESEARCH_SYSTEM_PROMPT = (
    "You are a knowledgeable research assistant. Provide comprehensive, well-structured information "
    "with specific facts and current data. Use markdown headings for sections and '-' bullet points "
    "for lists."
)


@dataclass
class ContentResult:
    content: str
    sources: List[Citation] = field(default_factory=list)


class ContentBackend(Protocol):
    name: str
    heading: str

    def is_available(self) -> bool:
        ...

    def generate(self, query: str) -> ContentResult:
        ...


class OpenAIContentBackend:
    name = "openai"
    heading = "Comprehensive Overview"

    def __init__(self, chat: Optional[ChatCompletion]):
        self.chat = chat

    def is_available(self) -> bool:
        return self.chat is not None and self.chat.is_available()

    def generate(self, query: str) -> ContentResult:
        messages = [
            {"role": "system", "content": RESEARCH_SYSTEM_PROMPT},
            {"role": "user", "content": query},
        ]
        content = self.chat.complete(
            messages,
            intent="generation",
            response_format="text",
            temperature=NARRATIVE_TEMPERATURE,
        )
        return ContentResult(content=content.strip())


def _post_chat(
    session: requests.Session,
    url: str,
    api_key: str,
    payload: Dict[str, Any],
    timeout: float,
) -> Dict[str, Any]:
    '''
        POST an OpenAI-compatible chat request and return the decoded body.
    '''
    try:
        resp = session.post(
            url,
            json=payload,
            headers={"Authorization": f"Bearer {api_key}", "Content-Type": "application/json"},
            timeout=timeout,
        )
        resp.raise_for_status()
        return resp.json()
    except (requests.RequestException, ValueError) as e:
        raise TransientBackendError(f"Request to {url} failed: {e}") from e


def _message_content(body: Dict[str, Any]) -> str:
    try:
        return (body["choices"][0]["message"]["content"] or "").strip()
    except (KeyError, IndexError, TypeError):
        return ""


def _parse_perplexity_sources(body: Dict[str, Any]) -> List[Citation]:
    '''
        Perplexity returns either `search_results` records or a bare
        `citations` list of URLs, depending on the API version.
    '''
    sources: List[Citation] = []
    for item in body.get("search_results") or body.get("citations") or []:
        if isinstance(item, str):
            sources.append(Citation(title="External Source", url=item))
        elif isinstance(item, dict):
            sources.append(Citation(
                title=item.get("title") or "External Source",
                url=item.get("url") or "#",
                snippet=item.get("snippet") or None,
            ))
    return sources


class PerplexityContentBackend:
    name = "perplexity"
    heading = "Research & Current Information"

    def __init__(
        self,
        api_key: str = PERPLEXITY_API_KEY,
        model: str = PERPLEXITY_MODEL,
        url: str = PERPLEXITY_URL,
        timeout: float = CONTENT_API_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        self.api_key = api_key
        self.model = model
        self.url = url
        self.timeout = timeout
        self.session = session or requests.Session()

    def is_available(self) -> bool:
        return bool(self.api_key)

    def generate(self, query: str) -> ContentResult:
        body = _post_chat(
            self.session,
            self.url,
            self.api_key,
            {
                "model": self.model,
                "messages": [
                    {"role": "system", "content": RESEARCH_SYSTEM_PROMPT},
                    {"role": "user", "content": query},
                ],
                "temperature": NARRATIVE_TEMPERATURE,
            },
            self.timeout,
        )
        return ContentResult(content=_message_content(body), sources=_parse_perplexity_sources(body))


class HuggingFaceContentBackend:
    name = "huggingface"
    heading = "Additional Insights"

    def __init__(
        self,
        api_key: str = HF_API_KEY,
        model: str = HF_LLM_MODEL,
        url: str = HF_CHAT_URL,
        timeout: float = CONTENT_API_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        self.api_key = api_key
        self.model = model
        self.url = url
        self.timeout = timeout
        self.session = session or requests.Session()

    def is_available(self) -> bool:
        return bool(self.api_key)

    def generate(self, query: str) -> ContentResult:
        body = _post_chat(
            self.session,
            self.url,
            self.api_key,
            {
                "model": self.model,
                "messages": [{"role": "user", "content": f"Give a short informative overview of: {query}"}],
                "max_tokens": 500,
                "temperature": NARRATIVE_TEMPERATURE,
            },
            self.timeout,
        )
        content = _message_content(body)
        if len(content) <= MIN_SUPPLEMENT_CHARS:
            content = ""
        return ContentResult(content=content)


def gather_content(query: str, backends: Sequence[ContentBackend]) -> Tuple[str, List[Citation]]:
    """
    Ask every available backend in turn and merge what comes back.

    Each contribution goes under its backend's heading, separated by
    horizontal rules. A failing backend is skipped.

    Returns:
        (merged markdown, citations), merged is "" when nothing was produced
    """
    sections: List[str] = []
    sources: List[Citation] = []

    for backend in backends:
        if not backend.is_available():
            logger.info(f"[Content] Backend '{backend.name}' not configured, skipping")
            continue
        try:
            result = backend.generate(query)
        except Exception as e:
            logger.warning(f"[Content] Backend '{backend.name}' failed: {e}")
            continue

        if result.content:
            sections.append(f"# {backend.heading}\n\n{result.content}")
            sources.extend(result.sources)

    logger.info(f"[Content] Merged {len(sections)} contributions, {len(sources)} sources")
    return SECTION_SEPARATOR.join(sections), sources
