"""
external_knowledge.py
Generic external-knowledge source for the retrieval stage.

The static source answers from a small topic table. It stands in for a web or
document search backend with the same lookup() interface.
"""

import re
from typing import List, Protocol, Tuple

from services.ai_workflow.data_model import Citation, Classification, ContextBundle, ContextChunk


class KnowledgeSource(Protocol):
    def lookup(self, query: str, classification: Classification) -> ContextBundle:
        ...


# (topic pattern, chunks as (text, source, relevance), citations as (title, url, snippet))
TOPIC_KNOWLEDGE: List[Tuple[str, List[Tuple[str, str, float]], List[Tuple[str, str, str]]]] = [
    (
        r"\b(market|stock|stocks|financial|finance|economy)\b",
        [
            ("Current market analysis shows significant volatility in technology sectors with emerging "
             "opportunities in AI and renewable energy markets.", "Financial Data Provider", 0.9),
            ("Global economic indicators suggest continued growth with careful monitoring of inflation "
             "rates and employment statistics.", "Economic Research Institute", 0.8),
        ],
        [
            ("Market Analysis Report", "https://example-financial-data.com/market-report",
             "Comprehensive analysis of current market conditions..."),
        ],
    ),
    (
        r"\b(climate|environment|environmental|sustainability)\b",
        [
            ("Climate change data indicates rising global temperatures with significant impacts on "
             "weather patterns and ecosystem stability.", "Environmental Research Center", 0.95),
            ("Renewable energy adoption rates have increased by 15% globally, with solar and wind "
             "leading the transition.", "Energy Statistics Bureau", 0.88),
        ],
        [
            ("Global Climate Report", "https://example-climate-org.com/report",
             "Annual assessment of global climate conditions and trends..."),
        ],
    ),
    (
        r"\b(technology|tech|ai|innovation)\b",
        [
            ("Artificial Intelligence development continues to accelerate with major breakthroughs in "
             "natural language processing and computer vision.", "Technology Research Institute", 0.92),
            ("Innovation in quantum computing and edge AI is creating new possibilities for distributed "
             "computing architectures.", "Computing Innovation Lab", 0.85),
        ],
        [
            ("AI Innovation Trends", "https://example-tech-research.com/ai-trends",
             "Analysis of emerging AI technologies and their applications..."),
        ],
    ),
]

GENERAL_KNOWLEDGE_RELEVANCE = 0.6


class StaticKnowledgeSource:
    """Topic-table knowledge source, no network access."""

    name = "static"

    def lookup(self, query: str, classification: Classification) -> ContextBundle:
        for pattern, chunks, citations in TOPIC_KNOWLEDGE:
            if re.search(pattern, query, flags=re.IGNORECASE):
                return ContextBundle(
                    chunks=[ContextChunk(text, source, relevance) for text, source, relevance in chunks],
                    citations=[Citation(title, url, snippet) for title, url, snippet in citations],
                    strategy="external",
                )

        return ContextBundle(
            chunks=[
                ContextChunk(
                    text=(
                        f"General knowledge context for {query}: This topic encompasses multiple aspects "
                        f"that can be analyzed from various perspectives including historical context, "
                        f"current trends, and future implications."
                    ),
                    source="Knowledge Base",
                    relevance=GENERAL_KNOWLEDGE_RELEVANCE,
                )
            ],
            citations=[],
            strategy="external",
        )
