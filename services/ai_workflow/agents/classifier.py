"""
classifier.py
Decides the visualization kind, complexity and data-source needs of a query.
"""

import json
import logging
import re
from typing import Optional, Tuple

from services.ai_workflow.agents.validator import coerce_classification, parse_json_payload
from services.ai_workflow.data_model import Classification, Complexity, VisualizationKind
from services.ai_workflow.providers import AlwaysAvailable, run_provider_chain
from services.ai_workflow.utils.openai_utils import ChatCompletion
from services.constants import (
    CLASSIFIER_TEMPERATURE,
    DASHBOARD_COMPLEXITY_PATTERN,
    DEFAULT_VISUALIZATION_KIND,
    MULTI_CHART_WORD_COUNT,
    MULTI_CONCEPT_PATTERN,
    REQUIRES_EXTERNAL_PATTERN,
    REQUIRES_IMAGE_PATTERN,
    REQUIRES_MEMORY_PATTERN,
    VISUALIZATION_KEYWORD_GROUPS,
)

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

VISUAL_INTENT_PATTERN = r"\b(chart|graph|plot|visualize|show|display)\b"


def get_classifier_system_prompt() -> str:
    """System prompt for the classification agent."""
    kinds = ", ".join(f'"{kind.value}"' for kind in VisualizationKind)
    return f"""
You are the Visualization Classifier Agent of a dashboard generation system.
Analyze the user query and decide how its answer should be displayed.

Visualization kinds (choose ONE): {kinds}
- pie_chart: proportions, percentages, market share, budget breakdown
- bar_chart: comparisons between categories, rankings, performance
- line_chart: trends over time, growth, forecasts
- table: detailed listings, structured records
- text: explanations and concepts without quantitative data
- timeline: chronological events, schedules, history
- comparison: side-by-side analysis, pros/cons
- infographic: visual summaries mixing charts and text

Complexity: "simple" (one view), "multi_chart" (several related views), "dashboard" (comprehensive multi-panel display).

Data requirements:
- requires_memory: the query refers to the user's own data or past conversations ("my", "our company")
- requires_external: the query needs current information ("latest", "recent news")
- requires_image: the query asks for a diagram or illustration

Return ONLY valid JSON:
{{
  "visualization_kind": "...",
  "complexity": "...",
  "requires_memory": true/false,
  "requires_external": true/false,
  "requires_image": true/false
}}
"""


def _matches(pattern: str, text: str) -> bool:
    return re.search(pattern, text, flags=re.IGNORECASE) is not None


def detect_visualization_kind(query: str) -> VisualizationKind:
    '''
        First keyword group that matches decides the kind, text otherwise.
    '''
    for kind, pattern in VISUALIZATION_KEYWORD_GROUPS:
        if _matches(pattern, query):
            return VisualizationKind(kind)
    return VisualizationKind(DEFAULT_VISUALIZATION_KIND)


def detect_complexity(query: str, kind: VisualizationKind) -> Complexity:
    if _matches(DASHBOARD_COMPLEXITY_PATTERN, query):
        return Complexity.DASHBOARD
    if kind == VisualizationKind.INFOGRAPHIC:
        return Complexity.MULTI_CHART
    if len(query.split()) > MULTI_CHART_WORD_COUNT or _matches(MULTI_CONCEPT_PATTERN, query):
        return Complexity.MULTI_CHART
    return Complexity.SIMPLE


def heuristic_classify(query: str) -> Classification:
    '''
        Deterministic keyword classification, used whenever the AI classifier
        is unavailable or returns something unusable.
    '''
    kind = detect_visualization_kind(query)
    return Classification(
        visualization_kind=kind,
        complexity=detect_complexity(query, kind),
        requires_memory=_matches(REQUIRES_MEMORY_PATTERN, query),
        requires_external=_matches(REQUIRES_EXTERNAL_PATTERN, query),
        requires_image=_matches(REQUIRES_IMAGE_PATTERN, query),
    )


class AIClassificationProvider:
    name = "ai"

    def __init__(self, chat: Optional[ChatCompletion]):
        self.chat = chat

    def is_available(self) -> bool:
        return self.chat is not None and self.chat.is_available()

    def produce(self, query: str) -> Classification:
        messages = [
            {"role": "system", "content": get_classifier_system_prompt()},
            {"role": "user", "content": json.dumps({"query": query})},
        ]
        raw = self.chat.complete(
            messages,
            intent="classification",
            response_format="json",
            temperature=CLASSIFIER_TEMPERATURE,
        )
        return coerce_classification(parse_json_payload(raw))


class HeuristicClassificationProvider(AlwaysAvailable):
    name = "heuristic"

    def produce(self, query: str) -> Classification:
        return heuristic_classify(query)


def estimate_confidence(query: str, classification: Classification, provider: str) -> Tuple[float, str]:
    '''
        Rough confidence in [0.1, 1.0] and a one-line reasoning, for monitoring.
        The heuristic is always 0.3. AI results start at 0.7.
    '''
    if provider == "heuristic":
        return 0.3, (
            f"Keyword heuristic classification. Type: {classification.visualization_kind.value}, "
            f"Complexity: {classification.complexity.value}"
        )

    confidence = 0.7
    if _matches(VISUAL_INTENT_PATTERN, query):
        confidence += 0.2
    if len(query.split()) < 3:
        confidence -= 0.2

    reasoning = (
        f"Classification based on query patterns and visualization requirements. "
        f"Type: {classification.visualization_kind.value}, Complexity: {classification.complexity.value}"
    )
    return round(min(max(confidence, 0.1), 1.0), 2), reasoning


class ClassificationStage:
    """AI classification with a keyword heuristic behind it."""

    def __init__(self, chat: Optional[ChatCompletion] = None):
        self.providers = [AIClassificationProvider(chat), HeuristicClassificationProvider()]

    def classify_with_provider(self, query: str) -> Tuple[Classification, str]:
        classification, provider = run_provider_chain("Classifier", self.providers, query)
        logger.info(
            f"[Classifier] {provider}: kind={classification.visualization_kind.value}, "
            f"complexity={classification.complexity.value}, memory={classification.requires_memory}, "
            f"external={classification.requires_external}, image={classification.requires_image}"
        )
        return classification, provider

    def classify(self, query: str) -> Classification:
        classification, _ = self.classify_with_provider(query)
        return classification

    def classify_with_confidence(self, query: str) -> Tuple[Classification, float, str]:
        '''
            Classification plus a rough confidence score, for monitoring.

            Returns:
                (classification, confidence in [0.1, 1.0], reasoning)
        '''
        classification, provider = self.classify_with_provider(query)
        confidence, reasoning = estimate_confidence(query, classification, provider)
        return classification, confidence, reasoning
