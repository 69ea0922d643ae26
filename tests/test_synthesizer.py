"""
Unit tests for dashboard synthesis: narrative parsing, content merging and fallbacks.
"""

import json

import pytest
import requests
from conftest import FakeChat, FakeContentBackend

from services.ai_workflow.agents.synthesizer import (
    SynthesisStage,
    compose_research_query,
    parse_sections,
    summarize_content,
)
from services.ai_workflow.data_model import (
    Citation,
    Classification,
    Complexity,
    ContextBundle,
    ContextChunk,
    VisualizationKind,
)
from services.ai_workflow.utils.content_services import (
    PerplexityContentBackend,
    gather_content,
)
from services.errors import TransientBackendError


def _classification(kind: VisualizationKind, image: bool = False) -> Classification:
    return Classification(
        visualization_kind=kind,
        complexity=Complexity.SIMPLE,
        requires_memory=False,
        requires_external=False,
        requires_image=image,
    )


class FakeResponse:
    def __init__(self, body, status_code=200):
        self.body = body
        self.status_code = status_code

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self):
        return self.body


class FakeSession:
    def __init__(self, response: FakeResponse):
        self.response = response
        self.requests = []

    def post(self, url, json=None, headers=None, timeout=None):
        self.requests.append({"url": url, "json": json, "headers": headers, "timeout": timeout})
        return self.response


class TestParseSections:
    """Tests for parse_sections() and summarize_content()."""

    def test_headings_bullets_and_descriptions(self) -> None:
        content = (
            "# Comprehensive Overview\n\n"
            "## Background\n"
            "Solar power converts sunlight into electricity.\n\n"
            "## Benefits\n"
            "- Renewable\n"
            "* Low running cost\n"
            "1. Quiet\n"
            "\n---\n\n"
            "# Research & Current Information\n\n"
            "Adoption grew quickly last year."
        )
        sections = parse_sections(content)

        assert [s["heading"] for s in sections] == ["Background", "Benefits", "Research & Current Information"]
        assert sections[0]["description"] == "Solar power converts sunlight into electricity."
        assert sections[1]["bullets"] == ["Renewable", "Low running cost", "Quiet"]
        assert "description" not in sections[1]

    def test_unstructured_text_goes_to_overview(self) -> None:
        sections = parse_sections("Just a plain paragraph of text.")
        assert sections == [{"heading": "Overview", "description": "Just a plain paragraph of text."}]

    def test_empty_content_has_overview(self) -> None:
        assert parse_sections("# Only\n# Headings") == [{"heading": "Overview", "description": "# Only\n# Headings"}]

    def test_summary_skips_headings(self) -> None:
        content = "# Comprehensive Overview\n\nThe first real paragraph is long enough.\n\nSecond."
        assert summarize_content(content) == "The first real paragraph is long enough."

    def test_summary_excerpt_when_no_paragraph(self) -> None:
        content = "short\n\n" + "x" * 300
        summary = summarize_content(content)
        assert summary.endswith("...")
        assert len(summary) <= 203


class TestGatherContent:
    """Tests for gather_content() and the HTTP content backends."""

    def test_merges_under_headings_and_skips_failures(self) -> None:
        backends = [
            FakeContentBackend("openai", "Comprehensive Overview", content="Overview text."),
            FakeContentBackend("perplexity", "Research & Current Information", error=TransientBackendError("down")),
            FakeContentBackend("huggingface", "Additional Insights", available=False, content="never used"),
        ]
        merged, sources = gather_content("solar power", backends)
        assert merged == "# Comprehensive Overview\n\nOverview text."
        assert sources == []
        assert backends[2].queries == []

    def test_nothing_available(self) -> None:
        assert gather_content("q", []) == ("", [])

    def test_perplexity_parses_content_and_sources(self) -> None:
        session = FakeSession(FakeResponse({
            "choices": [{"message": {"content": "Fresh findings."}}],
            "search_results": [{"title": "Report", "url": "https://example.com/r", "snippet": "s"}],
        }))
        backend = PerplexityContentBackend(api_key="pplx-test", session=session)
        result = backend.generate("solar power")

        assert result.content == "Fresh findings."
        assert result.sources == [Citation(title="Report", url="https://example.com/r", snippet="s")]
        assert session.requests[0]["headers"]["Authorization"] == "Bearer pplx-test"

    def test_perplexity_url_citations(self) -> None:
        session = FakeSession(FakeResponse({
            "choices": [{"message": {"content": "x"}}],
            "citations": ["https://example.com/a"],
        }))
        result = PerplexityContentBackend(api_key="k", session=session).generate("q")
        assert result.sources == [Citation(title="External Source", url="https://example.com/a")]

    def test_perplexity_http_error(self) -> None:
        session = FakeSession(FakeResponse({}, status_code=500))
        with pytest.raises(TransientBackendError):
            PerplexityContentBackend(api_key="k", session=session).generate("q")

    def test_unconfigured_backend(self) -> None:
        assert PerplexityContentBackend(api_key="").is_available() is False


class TestSynthesisStage:
    """Tests for SynthesisStage.synthesize()."""

    def test_mock_chart_when_offline(self) -> None:
        stage = SynthesisStage(FakeChat(available=False))
        output, provider = stage.synthesize_with_provider(
            "Show sales by region", ContextBundle(), _classification(VisualizationKind.BAR_CHART),
        )
        assert provider == "mock"
        assert output.visualization_kind == VisualizationKind.BAR_CHART
        assert len(output.data) >= 3
        assert len(output.sublinks) == 2
        assert all(s.context for s in output.sublinks)

    def test_ai_chart_output(self) -> None:
        chat = FakeChat({"summarization": json.dumps({
            "type": "pie_chart",
            "title": "T" * 300,
            "data": [{"label": "A", "value": 60}, {"label": "B", "value": 40}],
            "summary": "A leads.",
            "sublinks": [{"label": "More on A", "route": "details/a", "context": {}}],
        })})
        stage = SynthesisStage(chat)
        output, provider = stage.synthesize_with_provider(
            "market share", ContextBundle(chunks=[ContextChunk("A has 60%")]), _classification(VisualizationKind.PIE_CHART),
        )

        assert provider == "ai_chart"
        assert len(output.title) == 120
        assert output.title.endswith("...")
        assert output.sublinks[0].route == "/details/a"
        assert output.sublinks[0].context
        assert "A has 60%" in chat.calls[0]["messages"][1]["content"]

    def test_invalid_ai_chart_falls_back_to_mock(self) -> None:
        chat = FakeChat({"summarization": json.dumps({"title": "Sales", "data": "nope"})})
        _, provider = SynthesisStage(chat).synthesize_with_provider(
            "Show sales", ContextBundle(), _classification(VisualizationKind.BAR_CHART),
        )
        assert provider == "mock"

    def test_canned_topic(self) -> None:
        stage = SynthesisStage(FakeChat(available=False))
        output, provider = stage.synthesize_with_provider(
            "Compare Formula 1 teams", ContextBundle(), _classification(VisualizationKind.BAR_CHART),
        )
        assert provider == "canned"
        assert output.visualization_kind == VisualizationKind.COMPARISON
        assert [s["heading"] for s in output.data] == ["F1 in 2000", "F1 in 2025"]

    def test_narrative_from_content_backends(self) -> None:
        backend = FakeContentBackend(
            "perplexity", "Research & Current Information",
            content="## History\nThe Roman Empire lasted for centuries in the west.\n- Founded 27 BC",
            sources=[Citation("Rome", "https://example.com/rome")],
        )
        stage = SynthesisStage(FakeChat(available=False), [backend])
        bundle = ContextBundle(chunks=[ContextChunk("User asked about Rome before")], strategy="memory")
        output, provider = stage.synthesize_with_provider(
            "roman empire", bundle, _classification(VisualizationKind.TEXT),
        )

        assert provider == "narrative"
        assert output.title == "Roman empire"
        assert output.data[0]["heading"] == "History"
        assert output.data[0]["bullets"] == ["Founded 27 BC"]
        assert output.citations[0].url == "https://example.com/rome"
        assert "User asked about Rome before" in backend.queries[0]

    def test_offline_narrative(self) -> None:
        stage = SynthesisStage(FakeChat(available=False), [])
        output, provider = stage.synthesize_with_provider(
            "explain photosynthesis", ContextBundle(), _classification(VisualizationKind.TEXT),
        )
        assert provider == "offline_narrative"
        assert output.visualization_kind == VisualizationKind.TEXT
        assert output.data

    def test_image_prompt(self) -> None:
        stage = SynthesisStage(FakeChat(available=False))
        output = stage.synthesize("water cycle", ContextBundle(), _classification(VisualizationKind.TEXT, image=True))
        assert output.image_prompt
        assert "water cycle" in output.image_prompt

    def test_bundle_citations_attached(self) -> None:
        bundle = ContextBundle(citations=[Citation("Memory", "#user-memory", "snippet...")], strategy="memory")
        output = SynthesisStage(None).synthesize("sales by region", bundle, _classification(VisualizationKind.BAR_CHART))
        assert output.citations == bundle.citations


class TestUserContext:
    """The user's memory context reaches the synthesis prompts."""

    USER_CONTEXT = "## Recent Conversation Context:\nUser asked: budgets: I prefer bar charts"

    def test_research_query_carries_user_context(self) -> None:
        bundle = ContextBundle(
            chunks=[ContextChunk("Budget grew 4%")], strategy="memory", user_context=self.USER_CONTEXT,
        )
        research_query = compose_research_query("team budget", bundle)
        assert research_query.startswith("team budget\n\nRelevant context:\n- Budget grew 4%")
        assert research_query.endswith(f"## User Context:\n{self.USER_CONTEXT}")

    def test_degraded_chunks_skipped_but_user_context_kept(self) -> None:
        bundle = ContextBundle(
            chunks=[ContextChunk("Retrieval temporarily unavailable.")], strategy="degraded",
            user_context=self.USER_CONTEXT,
        )
        research_query = compose_research_query("team budget", bundle)
        assert "Retrieval temporarily unavailable" not in research_query
        assert self.USER_CONTEXT in research_query

    def test_plain_query_without_context(self) -> None:
        assert compose_research_query("team budget", ContextBundle()) == "team budget"

    def test_chart_prompt_carries_user_context(self) -> None:
        chat = FakeChat({"summarization": json.dumps({
            "type": "bar_chart",
            "title": "Team budget by quarter",
            "data": [{"label": "Q1", "value": 10}, {"label": "Q2", "value": 12}],
        })})
        bundle = ContextBundle(strategy="memory", user_context=self.USER_CONTEXT)
        SynthesisStage(chat).synthesize("team budget", bundle, _classification(VisualizationKind.BAR_CHART))
        context = json.loads(chat.calls[0]["messages"][1]["content"])["context"]
        assert context == f"User Context:\n{self.USER_CONTEXT}"
