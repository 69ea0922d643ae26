# ------------------------------
# Module: canned_responses.py
# Description: Hand-authored dashboards and offline placeholder data
# ------------------------------

import re
from typing import Any, Callable, Dict, List, Optional, Tuple

from services.ai_workflow.data_model import DashboardOutput, Sublink, VisualizationKind

# :::::: Canned topics :::::: #

def build_f1_comparison(query: str) -> DashboardOutput:
    return DashboardOutput(
        visualization_kind=VisualizationKind.COMPARISON,
        title="Comparative Analysis of F1 Teams",
        summary=(
            "F1 teams are professional motorsport organizations that design, build, and race Formula 1 "
            "cars in the championship, managing drivers, engineers, and strategy to compete for the "
            "Constructors' and Drivers' titles. This narrative is an offline preview for the query "
            f"\"{query}\"."
        ),
        data=[
            {
                "heading": "F1 in 2000",
                "bullets": [
                    "Ferrari: dominant powerhouse led by Michael Schumacher, known for fast cars and strategic excellence.",
                    "McLaren: strong contender with Mika Häkkinen and David Coulthard, famed for speed and innovation.",
                    "Williams: experienced British team with powerful BMW engines and competitive aerodynamics.",
                    "Benetton: mid-field team with a focus on driver development and clever engineering.",
                    "Jordan: known for bold strategies and punching above its weight in midfield battles.",
                    "Sauber: consistent midfield performer with solid engineering and occasional points finishes.",
                ],
            },
            {
                "heading": "F1 in 2025",
                "bullets": [
                    "Red Bull Racing: cutting-edge aerodynamics, Max Verstappen as lead driver and multiple championships.",
                    "Mercedes-AMG Petronas: technological powerhouse known for efficiency and driver talent.",
                    "Ferrari: resurgent contender focusing on strategy and power unit improvements.",
                    "McLaren: innovative squad emphasizing aerodynamics and a balanced driver lineup.",
                    "Aston Martin: ambitious team investing in facilities and veteran experience.",
                    "Williams: rebuilding era with renewed investment and data-driven strategy.",
                ],
            },
        ],
        sublinks=[
            Sublink(
                label="View full motorsport timeline",
                route="/dashboard/motorsport-timeline",
                context={"type": "timeline", "category": "motorsport", "teams": 8},
            ),
        ],
    )


# Checked in order, the first matching pattern wins
CANNED_TOPICS: List[Tuple[str, Callable[[str], DashboardOutput]]] = [
    (r"\bf1\b|formula 1|formula one", build_f1_comparison),
]


def find_canned_response(query: str) -> Optional[DashboardOutput]:
    for pattern, builder in CANNED_TOPICS:
        if re.search(pattern, query, flags=re.IGNORECASE):
            return builder(query)
    return None


# :::::: Offline placeholders :::::: #

MOCK_CHART_DATA: Dict[VisualizationKind, List[Dict[str, Any]]] = {
    VisualizationKind.PIE_CHART: [
        {"label": "Category A", "value": 40},
        {"label": "Category B", "value": 30},
        {"label": "Category C", "value": 20},
        {"label": "Category D", "value": 10},
    ],
    VisualizationKind.BAR_CHART: [
        {"label": "Category A", "value": 45},
        {"label": "Category B", "value": 30},
        {"label": "Category C", "value": 25},
        {"label": "Category D", "value": 15},
    ],
    VisualizationKind.LINE_CHART: [
        {"label": "Jan", "value": 12},
        {"label": "Feb", "value": 18},
        {"label": "Mar", "value": 15},
        {"label": "Apr", "value": 22},
        {"label": "May", "value": 27},
        {"label": "Jun", "value": 31},
    ],
    VisualizationKind.TABLE: [
        {"label": "Item A", "value": 120, "category": "Group 1"},
        {"label": "Item B", "value": 95, "category": "Group 1"},
        {"label": "Item C", "value": 80, "category": "Group 2"},
        {"label": "Item D", "value": 60, "category": "Group 2"},
    ],
}

PLACEHOLDER_SUMMARY = (
    "This is a placeholder visualization. Configure the OpenAI and Pinecone credentials to see "
    "live results tailored to your data."
)


def mock_chart_data(kind: VisualizationKind) -> List[Dict[str, Any]]:
    return [dict(point) for point in MOCK_CHART_DATA.get(kind, MOCK_CHART_DATA[VisualizationKind.BAR_CHART])]


def placeholder_sublinks(kind: VisualizationKind, query: str) -> List[Sublink]:
    return [
        Sublink(
            label="Explore detailed breakdown",
            route="/dashboard/details",
            context={"query": query, "visualization_kind": kind.value, "view": "details"},
        ),
        Sublink(
            label="Connect data sources",
            route="/dashboard/setup",
            context={
                "action": "setup",
                "data_sources_needed": ["OpenAI", "Pinecone"],
                "current_status": "placeholder",
            },
        ),
    ]


def offline_narrative_sections(query: str) -> List[Dict[str, Any]]:
    return [
        {
            "heading": f"About {query}",
            "description": f"This is an overview of {query}. Content generation is currently running in offline mode.",
            "bullets": [
                f"This offline preview outlines the main aspects related to \"{query}\".",
                "Configure an OpenAI, Perplexity or Hugging Face API key to replace it with live content.",
                "Past conversations are used as context once the vector store is configured.",
            ],
        },
        {
            "heading": "What to do next",
            "bullets": [
                "Add your domain documents to the retrieval pipeline.",
                "Ask follow-up questions to drill into a specific aspect.",
                "Use the links below the dashboard to explore related views.",
            ],
        },
    ]
