"""
Unit tests for query classification: heuristic rules, AI path and fallback.
"""

import json

import pytest
from conftest import FakeChat

from services.ai_workflow.agents.classifier import ClassificationStage, estimate_confidence, heuristic_classify
from services.ai_workflow.data_model import Complexity, VisualizationKind
from services.errors import TransientBackendError


class TestHeuristicClassify:
    """Tests for heuristic_classify()."""

    @pytest.mark.parametrize("query,kind", [
        ("Show me the market share breakdown of smartphone brands", VisualizationKind.PIE_CHART),
        ("Compare sales between regions", VisualizationKind.BAR_CHART),
        ("Revenue growth over time", VisualizationKind.LINE_CHART),
        ("Project roadmap milestones", VisualizationKind.TIMELINE),
        ("Pros and cons of remote work", VisualizationKind.COMPARISON),
        ("List all employees with details", VisualizationKind.TABLE),
        ("Make an infographic about sleep", VisualizationKind.INFOGRAPHIC),
        ("Explain photosynthesis", VisualizationKind.TEXT),
    ])
    def test_visualization_kind(self, query, kind) -> None:
        assert heuristic_classify(query).visualization_kind == kind

    def test_priority_order(self) -> None:
        # Both proportion and comparison words: proportion wins
        assert heuristic_classify("Compare the budget share").visualization_kind == VisualizationKind.PIE_CHART

    def test_scenario_market_share(self) -> None:
        result = heuristic_classify("Show me the market share breakdown of smartphone brands")
        assert result.complexity == Complexity.SIMPLE
        assert not result.requires_memory
        assert not result.requires_external
        assert not result.requires_image

    def test_scenario_conversation_history(self) -> None:
        result = heuristic_classify("Analyze my recent conversation history and show patterns in topics I discuss")
        assert result.requires_memory
        assert result.requires_external
        assert result.visualization_kind.is_textual

    def test_image_flag(self) -> None:
        assert heuristic_classify("Draw a diagram of the water cycle").requires_image

    def test_complexity(self) -> None:
        assert heuristic_classify("Build a comprehensive dashboard of sales").complexity == Complexity.DASHBOARD
        assert heuristic_classify("Sales and costs").complexity == Complexity.MULTI_CHART
        assert heuristic_classify(" ".join(["word"] * 21)).complexity == Complexity.MULTI_CHART
        assert heuristic_classify("Visual guide to sourdough").complexity == Complexity.MULTI_CHART
        assert heuristic_classify("Explain gravity").complexity == Complexity.SIMPLE

    def test_deterministic(self) -> None:
        query = "What are the latest trends in my team's spending?"
        assert {heuristic_classify(query) for _ in range(5)} == {heuristic_classify(query)}


class TestClassificationStage:
    """Tests for ClassificationStage with AI backends."""

    def test_offline_uses_heuristic(self) -> None:
        stage = ClassificationStage(FakeChat(available=False))
        classification, provider = stage.classify_with_provider("Compare sales between regions")
        assert provider == "heuristic"
        assert classification.visualization_kind == VisualizationKind.BAR_CHART

    def test_no_chat_client(self) -> None:
        assert ClassificationStage(None).classify("Explain gravity").visualization_kind == VisualizationKind.TEXT

    def test_ai_result_is_used(self) -> None:
        chat = FakeChat({"classification": json.dumps({
            "type": "line_chart",
            "complexity": "dashboard",
            "requiresRAG": False,
            "requiresExternal": True,
            "requiresImage": False,
        })})
        stage = ClassificationStage(chat)
        classification, provider = stage.classify_with_provider("Explain gravity")

        assert provider == "ai"
        assert classification.visualization_kind == VisualizationKind.LINE_CHART
        assert classification.complexity == Complexity.DASHBOARD
        assert classification.requires_external
        assert chat.calls[0]["response_format"] == "json"
        assert chat.calls[0]["temperature"] == 0.1

    @pytest.mark.parametrize("response", [
        "not json at all",
        json.dumps({"visualization_kind": "radar_chart", "complexity": "simple",
                    "requires_memory": False, "requires_external": False, "requires_image": False}),
        json.dumps({"visualization_kind": "pie_chart", "complexity": "simple"}),
        TransientBackendError("timeout"),
    ])
    def test_bad_ai_output_falls_back(self, response) -> None:
        stage = ClassificationStage(FakeChat({"classification": response}))
        classification, provider = stage.classify_with_provider("Explain gravity")
        assert provider == "heuristic"
        assert classification.visualization_kind == VisualizationKind.TEXT

    def test_confidence_heuristic(self) -> None:
        stage = ClassificationStage(FakeChat(available=False))
        _, confidence, reasoning = stage.classify_with_confidence("Explain gravity")
        assert confidence == pytest.approx(0.3)
        assert "heuristic" in reasoning.lower()

    def test_confidence_ai(self) -> None:
        chat = FakeChat({"classification": json.dumps({
            "visualization_kind": "bar_chart", "complexity": "simple",
            "requires_memory": False, "requires_external": False, "requires_image": False,
        })})
        stage = ClassificationStage(chat)
        _, confidence, _ = stage.classify_with_confidence("Show a chart of sales by region")
        assert confidence == pytest.approx(0.9)
        _, confidence, _ = stage.classify_with_confidence("sales")
        assert confidence == pytest.approx(0.5)

    @pytest.mark.parametrize("query,provider,expected", [
        ("Explain gravity", "heuristic", 0.3),
        ("Explain gravity in detail", "ai", 0.7),
        ("Plot rainfall by month", "ai", 0.9),
        ("chart", "ai", 0.7),
        ("sales", "ai", 0.5),
    ])
    def test_estimate_confidence(self, query, provider, expected) -> None:
        confidence, reasoning = estimate_confidence(query, heuristic_classify(query), provider)
        assert confidence == pytest.approx(expected)
        assert reasoning
