"""
synthesizer.py
Turns the query, its classification and the retrieved context into a draft
dashboard.

Chart kinds go through an AI chart generator, textual kinds through the
multi-backend narrative generator. Both chains end in deterministic providers
so synthesis always produces an output.
"""

import json
import logging
import re
from typing import Any, Dict, List, Optional, Sequence, Tuple

from services.ai_workflow.agents.validator import (
    clamp_title,
    coerce_dashboard_output,
    ensure_sublink_context,
    parse_json_payload,
)
from services.ai_workflow.data_model import (
    Classification,
    ContextBundle,
    DashboardOutput,
    VisualizationKind,
)
from services.ai_workflow.providers import AlwaysAvailable, run_provider_chain
from services.ai_workflow.utils import canned_responses
from services.ai_workflow.utils.content_services import ContentBackend, gather_content
from services.ai_workflow.utils.openai_utils import ChatCompletion
from services.constants import (
    HEADING_MAX_CHARS,
    OVERVIEW_EXCERPT_CHARS,
    SUMMARY_EXCERPT_CHARS,
    SYNTHESIS_TEMPERATURE,
)

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

HEADING_PATTERN = re.compile(r"^#{1,6}\s*(.+?)\s*#*$")
BULLET_PATTERN = re.compile(r"^(?:[-*•]|\d+\.)\s+")
RULE_PATTERN = re.compile(r"^(?:-{3,}|\*{3,}|_{3,})$")
MIN_SUMMARY_PARAGRAPH_CHARS = 20


# :::::: Text helpers :::::: #

def build_context_string(bundle: Optional[ContextBundle]) -> str:
    if bundle is None or not (bundle.chunks or bundle.user_context):
        return "No additional context available."
    parts = [f"Chunk {i}: {chunk.text}" for i, chunk in enumerate(bundle.chunks, start=1)]
    if bundle.user_context:
        parts.append(f"User Context:\n{bundle.user_context}")
    return "\n\n".join(parts)


def make_narrative_title(query: str) -> str:
    cleaned = query.strip()
    return clamp_title(cleaned[:1].upper() + cleaned[1:])


def extract_bullet_points(text: str) -> List[str]:
    '''
        Lines starting with -, *, • or "1." become bullets, marker stripped.
    '''
    bullets = []
    for line in text.splitlines():
        stripped = line.strip()
        if BULLET_PATTERN.match(stripped):
            bullets.append(BULLET_PATTERN.sub("", stripped, count=1))
    return bullets


def _build_section(heading: str, body_lines: List[str]) -> Optional[Dict[str, Any]]:
    body = "\n".join(body_lines).strip()
    if not body:
        return None

    section: Dict[str, Any] = {"heading": heading}
    bullets = extract_bullet_points(body)
    if bullets:
        section["bullets"] = bullets
    description = "\n".join(
        line for line in body.splitlines() if line.strip() and not BULLET_PATTERN.match(line.strip())
    ).strip()
    if description:
        section["description"] = description
    return section


def parse_sections(content: str) -> List[Dict[str, Any]]:
    """
    Split markdown-ish prose into {heading, description, bullets} sections.

    A short `#` line starts a new section. Text before the first heading goes
    into an "Overview" section. Without any usable structure the result is a
    single "Overview" section holding an excerpt of the content.
    """
    sections: List[Dict[str, Any]] = []
    heading = "Overview"
    body: List[str] = []

    for line in content.splitlines():
        stripped = line.strip()
        if RULE_PATTERN.match(stripped):
            continue
        match = HEADING_PATTERN.match(stripped)
        if match and len(match.group(1)) < HEADING_MAX_CHARS:
            section = _build_section(heading, body)
            if section:
                sections.append(section)
            heading, body = match.group(1), []
        else:
            body.append(line)

    section = _build_section(heading, body)
    if section:
        sections.append(section)

    if not sections:
        return [{"heading": "Overview", "description": content.strip()[:OVERVIEW_EXCERPT_CHARS]}]
    return sections


def summarize_content(content: str) -> str:
    '''
        First real paragraph of the content, else its first 200 characters.
    '''
    for paragraph in content.split("\n\n"):
        paragraph = paragraph.strip()
        if not paragraph or paragraph.startswith("#") or RULE_PATTERN.match(paragraph):
            continue
        if len(paragraph) > MIN_SUMMARY_PARAGRAPH_CHARS:
            return paragraph
        break

    excerpt = content[:SUMMARY_EXCERPT_CHARS].strip()
    return excerpt + ("..." if len(content) > SUMMARY_EXCERPT_CHARS else "")


def compose_research_query(query: str, bundle: Optional[ContextBundle]) -> str:
    '''
        The query plus grounding context, skipping the degraded placeholder.
    '''
    if bundle is None:
        return query
    research_query = query
    if bundle.strategy != "degraded" and bundle.chunks:
        context = "\n".join(f"- {chunk.text}" for chunk in bundle.chunks)
        research_query = f"{research_query}\n\nRelevant context:\n{context}"
    if bundle.user_context:
        research_query = f"{research_query}\n\n## User Context:\n{bundle.user_context}"
    return research_query


def get_chart_system_prompt(kind: VisualizationKind) -> str:
    """System prompt for the chart synthesis agent."""
    return f"""
You are the Dashboard Synthesis Agent. Build the data for a {kind.value} visualization answering the user query.
Ground the numbers in the provided context where possible, otherwise use realistic estimates.

Return ONLY valid JSON:
{{
  "type": "{kind.value}",
  "title": "short descriptive title (5-120 characters)",
  "data": [{{"label": "category", "value": 42}}],
  "summary": "2-3 sentence explanation of what the data shows",
  "config": {{"x_axis": "...", "y_axis": "...", "unit": "..."}},
  "sublinks": [{{"label": "drill-down label", "route": "/dashboard/...", "context": {{"focus": "..."}}}}]
}}

Rules:
1. Provide between 3 and 12 data points, each with a label and a numeric value.
2. Provide 1-3 sublinks; every sublink needs a non-empty context object.
"""


# :::::: Providers :::::: #

class NarrativeProvider:
    name = "narrative"

    def __init__(self, backends: Sequence[ContentBackend]):
        self.backends = list(backends)

    def is_available(self) -> bool:
        return any(backend.is_available() for backend in self.backends)

    def produce(self, query: str, bundle: ContextBundle, classification: Classification) -> Optional[DashboardOutput]:
        merged, sources = gather_content(compose_research_query(query, bundle), self.backends)
        if not merged:
            return None

        citations = sources + list(bundle.citations if bundle else [])
        return DashboardOutput(
            visualization_kind=classification.visualization_kind,
            title=make_narrative_title(query),
            data=parse_sections(merged),
            summary=summarize_content(merged),
            citations=citations or None,
        )


class CannedTopicProvider(AlwaysAvailable):
    name = "canned"

    def produce(self, query: str, bundle: ContextBundle, classification: Classification) -> Optional[DashboardOutput]:
        return canned_responses.find_canned_response(query)


class OfflineNarrativeProvider(AlwaysAvailable):
    name = "offline_narrative"

    def produce(self, query: str, bundle: ContextBundle, classification: Classification) -> DashboardOutput:
        return DashboardOutput(
            visualization_kind=classification.visualization_kind,
            title=make_narrative_title(query) or "Narrative Overview",
            data=canned_responses.offline_narrative_sections(query),
            summary=f"Overview of {query}, generated in offline mode.",
            citations=list(bundle.citations) if bundle and bundle.citations else None,
        )


class AIChartProvider:
    name = "ai_chart"

    def __init__(self, chat: Optional[ChatCompletion]):
        self.chat = chat

    def is_available(self) -> bool:
        return self.chat is not None and self.chat.is_available()

    def produce(self, query: str, bundle: ContextBundle, classification: Classification) -> DashboardOutput:
        kind = classification.visualization_kind
        messages = [
            {"role": "system", "content": get_chart_system_prompt(kind)},
            {"role": "user", "content": json.dumps({
                "query": query,
                "complexity": classification.complexity.value,
                "context": build_context_string(bundle),
            })},
        ]
        raw = self.chat.complete(
            messages,
            intent="summarization",
            response_format="json",
            temperature=SYNTHESIS_TEMPERATURE,
        )
        return coerce_dashboard_output(parse_json_payload(raw), kind, provenance={"query": query})


class MockChartProvider(AlwaysAvailable):
    name = "mock"

    def produce(self, query: str, bundle: ContextBundle, classification: Classification) -> DashboardOutput:
        kind = classification.visualization_kind
        return DashboardOutput(
            visualization_kind=kind,
            title=clamp_title(f"Preview for: {query}"),
            data=canned_responses.mock_chart_data(kind),
            summary=canned_responses.PLACEHOLDER_SUMMARY,
            sublinks=canned_responses.placeholder_sublinks(kind, query),
        )


# :::::: Stage :::::: #

class SynthesisStage:
    """Builds the draft dashboard through the chain matching the visualization kind."""

    def __init__(
        self,
        chat: Optional[ChatCompletion] = None,
        content_backends: Sequence[ContentBackend] = (),
    ):
        self.narrative_providers = [
            NarrativeProvider(content_backends),
            CannedTopicProvider(),
            OfflineNarrativeProvider(),
        ]
        self.chart_providers = [
            AIChartProvider(chat),
            CannedTopicProvider(),
            MockChartProvider(),
        ]

    def synthesize_with_provider(
        self,
        query: str,
        bundle: ContextBundle,
        classification: Classification,
    ) -> Tuple[DashboardOutput, str]:
        kind = classification.visualization_kind
        providers = self.narrative_providers if kind.is_textual else self.chart_providers

        output, provider = run_provider_chain("Synthesizer", providers, query, bundle, classification)

        output = self._finalize(output, query, bundle, classification)
        logger.info(
            f"[Synthesizer] {provider}: kind={output.visualization_kind.value}, "
            f"data={len(output.data)}, sublinks={len(output.sublinks or [])}"
        )
        return output, provider

    def synthesize(self, query: str, bundle: ContextBundle, classification: Classification) -> DashboardOutput:
        output, _ = self.synthesize_with_provider(query, bundle, classification)
        return output

    @staticmethod
    def _finalize(
        output: DashboardOutput,
        query: str,
        bundle: ContextBundle,
        classification: Classification,
    ) -> DashboardOutput:
        '''
            Enforce the output invariants on whatever the provider returned.
        '''
        output.title = clamp_title(output.title)

        if output.sublinks:
            provenance = {"query": query, "visualization_kind": classification.visualization_kind.value}
            output.sublinks = [ensure_sublink_context(sublink, provenance) for sublink in output.sublinks]

        if output.citations is None and bundle is not None and bundle.citations:
            output.citations = list(bundle.citations)

        if classification.requires_image and not output.image_prompt:
            output.image_prompt = f"An informative illustration for: {query}"

        return output
