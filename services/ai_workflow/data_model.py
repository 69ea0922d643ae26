"""
data_model.py
Data models for dashboard generation and user memory.
"""

import copy
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import List, Dict, Any, Optional

class VisualizationKind(str, Enum):
    PIE_CHART = "pie_chart"
    BAR_CHART = "bar_chart"
    LINE_CHART = "line_chart"
    TABLE = "table"
    TEXT = "text"
    TIMELINE = "timeline"
    COMPARISON = "comparison"
    INFOGRAPHIC = "infographic"

    @property
    def is_textual(self) -> bool:
        return self in TEXTUAL_KINDS

    @property
    def display_name(self) -> str:
        return self.value.replace("_", " ").title()

TEXTUAL_KINDS = frozenset({
    VisualizationKind.TEXT,
    VisualizationKind.COMPARISON,
    VisualizationKind.TIMELINE,
    VisualizationKind.INFOGRAPHIC,
})

class Complexity(str, Enum):
    SIMPLE = "simple"
    MULTI_CHART = "multi_chart"
    DASHBOARD = "dashboard"

class AgentPhase(str, Enum):
    CLASSIFICATION = "classification"
    RETRIEVAL = "retrieval"
    SYNTHESIS = "synthesis"
    VALIDATION = "validation"
    COMPLETED = "completed"
    ERROR = "error"

@dataclass(frozen=True)
class Classification:
    """What to draw for a query and which context sources it needs."""
    visualization_kind: VisualizationKind
    complexity: Complexity
    requires_memory: bool
    requires_external: bool
    requires_image: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "visualization_kind": self.visualization_kind.value,
            "complexity": self.complexity.value,
            "requires_memory": self.requires_memory,
            "requires_external": self.requires_external,
            "requires_image": self.requires_image,
        }

@dataclass
class ContextChunk:
    """One retrieved piece of context."""
    text: str
    source: Optional[str] = None
    relevance: Optional[float] = None

@dataclass
class Citation:
    title: str
    url: str
    snippet: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        result = {"title": self.title, "url": self.url}
        if self.snippet is not None:
            result["snippet"] = self.snippet
        return result

@dataclass
class ContextBundle:
    """Context gathered by the retrieval stage for synthesis."""
    chunks: List[ContextChunk] = field(default_factory=list)
    citations: List[Citation] = field(default_factory=list)
    strategy: str = "none"
    # "label: content" lines of the user's relevant and recent memories
    user_context: str = ""

@dataclass
class Sublink:
    """A drill-down link. The context map carries provenance for the target view."""
    label: str
    route: str
    context: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {"label": self.label, "route": self.route, "context": dict(self.context)}

@dataclass
class DashboardOutput:
    """The single artifact handed to the presentation layer."""
    visualization_kind: VisualizationKind
    title: str
    data: List[Dict[str, Any]] = field(default_factory=list)
    config: Optional[Dict[str, Any]] = None
    sublinks: Optional[List[Sublink]] = None
    summary: Optional[str] = None
    citations: Optional[List[Citation]] = None
    image_url: Optional[str] = None
    image_prompt: Optional[str] = None

    def copy(self) -> "DashboardOutput":
        return copy.deepcopy(self)

    def to_dict(self) -> Dict[str, Any]:
        kind = self.visualization_kind
        result: Dict[str, Any] = {
            "type": kind.value if isinstance(kind, VisualizationKind) else kind,
            "title": self.title,
            "data": self.data,
        }
        if self.config is not None:
            result["config"] = self.config
        if self.sublinks is not None:
            result["sublinks"] = [s.to_dict() for s in self.sublinks]
        if self.summary is not None:
            result["summary"] = self.summary
        if self.citations is not None:
            result["citations"] = [c.to_dict() for c in self.citations]
        if self.image_url is not None:
            result["imageUrl"] = self.image_url
        if self.image_prompt is not None:
            result["imagePrompt"] = self.image_prompt
        return result

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "DashboardOutput":
        '''
            Lenient conversion from a raw mapping. Nothing is validated here,
            malformed fields are kept as-is for the validator to report.
        '''
        kind = raw.get("type", raw.get("visualization_kind"))
        try:
            kind = VisualizationKind(kind)
        except ValueError:
            pass

        sublinks = raw.get("sublinks")
        if isinstance(sublinks, list):
            sublinks = [
                Sublink(
                    label=s.get("label", ""),
                    route=s.get("route", ""),
                    context=s.get("context") or {},
                ) if isinstance(s, dict) else s
                for s in sublinks
            ]

        citations = raw.get("citations")
        if isinstance(citations, list):
            citations = [
                Citation(title=c.get("title", ""), url=c.get("url", ""), snippet=c.get("snippet"))
                if isinstance(c, dict) else c
                for c in citations
            ]

        return cls(
            visualization_kind=kind,
            title=raw.get("title", ""),
            data=raw.get("data", []),
            config=raw.get("config"),
            sublinks=sublinks,
            summary=raw.get("summary"),
            citations=citations,
            image_url=raw.get("imageUrl", raw.get("image_url")),
            image_prompt=raw.get("imagePrompt", raw.get("image_prompt")),
        )

@dataclass
class ValidationResult:
    is_valid: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    suggestions: List[str] = field(default_factory=list)
    corrected_output: Optional[DashboardOutput] = None

@dataclass
class MemoryMetadata:
    query_type: Optional[str] = None
    entities: List[str] = field(default_factory=list)
    keywords: List[str] = field(default_factory=list)
    topic: Optional[str] = None

@dataclass(frozen=True)
class MemoryEntry:
    """One side of one conversational turn, as stored in the vector store."""
    id: str
    user_id: str
    content: str
    context_label: str
    timestamp: str
    importance: int
    metadata: MemoryMetadata
    session_id: Optional[str] = None

    def to_vector_metadata(self) -> Dict[str, Any]:
        '''
            Flatten the entry into vector-store metadata. Pinecone rejects null
            values, so missing optional fields are dropped or sent as "".
        '''
        record = {
            "userId": self.user_id,
            "content": self.content,
            "context": self.context_label,
            "timestamp": self.timestamp,
            "sessionId": self.session_id or "",
            "importance": self.importance,
            "entities": list(self.metadata.entities),
            "keywords": list(self.metadata.keywords),
        }
        if self.metadata.query_type:
            record["queryType"] = self.metadata.query_type
        if self.metadata.topic:
            record["topic"] = self.metadata.topic
        return record

@dataclass
class MemorySearchResult:
    id: str
    content: str
    context_label: str
    similarity: float
    timestamp: str
    metadata: MemoryMetadata

@dataclass
class ExecutionMetadata:
    started_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    start_time: float = field(default_factory=time.perf_counter)
    phase_timings: Dict[str, float] = field(default_factory=dict)   # phase -> milliseconds
    phase_status: Dict[str, str] = field(default_factory=dict)      # phase -> "completed" | "skipped" | "failed"
    decisions: Dict[str, Any] = field(default_factory=dict)

@dataclass
class ExecutionState:
    """State of a single pipeline run."""
    query: str
    user_id: str
    phase: AgentPhase = AgentPhase.CLASSIFICATION
    classification: Optional[Classification] = None
    context_bundle: Optional[ContextBundle] = None
    dashboard_output: Optional[DashboardOutput] = None
    validation_result: Optional[ValidationResult] = None
    error: Optional[str] = None
    metadata: ExecutionMetadata = field(default_factory=ExecutionMetadata)
