"""
validator.py
Dashboard validation and AI-response coercion.

Everything that turns untyped AI output into canonical types lives here, so the
other stages only ever handle Classification and DashboardOutput objects.
"""

import json
import logging
from collections.abc import Mapping
from typing import Any, Dict, List, Optional, Union
from urllib.parse import urlparse

from services.ai_workflow.data_model import (
    Citation,
    Classification,
    Complexity,
    DashboardOutput,
    Sublink,
    ValidationResult,
    VisualizationKind,
)
from services.constants import TITLE_MAX_LENGTH, TITLE_MIN_LENGTH
from services.errors import SchemaViolationError

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

MAX_DATA_POINTS = 100
LONG_TITLE_CHARS = 100
LONG_SUMMARY_CHARS = 2000
LONG_SNIPPET_CHARS = 500

CHART_KINDS_NEEDING_VALUES = {
    VisualizationKind.PIE_CHART,
    VisualizationKind.BAR_CHART,
    VisualizationKind.LINE_CHART,
}
CHART_KINDS_NEEDING_LABELS = {VisualizationKind.PIE_CHART, VisualizationKind.BAR_CHART}


# :::::: Shared helpers :::::: #

def clamp_title(title: str, max_length: int = TITLE_MAX_LENGTH) -> str:
    '''
        Keep a title within display bounds. Over-long titles are cut with a
        trailing ellipsis, very short ones get a suffix. Empty stays empty so
        the validator can report it.
    '''
    title = (title or "").strip()
    if not title:
        return ""
    if len(title) > max_length:
        return title[:max_length - 3].rstrip() + "..."
    if len(title) < TITLE_MIN_LENGTH:
        return f"{title} Overview"
    return title


def ensure_sublink_context(sublink: Sublink, provenance: Dict[str, Any]) -> Sublink:
    '''
        Sublink context must never be empty, fill it with provenance if it is.
    '''
    if sublink.context:
        return sublink
    context = {k: v for k, v in provenance.items() if v not in (None, "")}
    if not context:
        context = {"source": "dashboard"}
    return Sublink(label=sublink.label, route=sublink.route, context=context)


def parse_json_payload(raw: str) -> Dict[str, Any]:
    '''
        Parse an AI response that should be a JSON object. Markdown code
        fences are tolerated.
    '''
    text = (raw or "").strip()
    if text.startswith("```"):
        text = text.strip("`")
        if text.lower().startswith("json"):
            text = text[4:]
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as e:
        raise SchemaViolationError(f"Response is not valid JSON: {e}") from e

    if not isinstance(payload, dict):
        raise SchemaViolationError(f"Expected a JSON object, got {type(payload).__name__}")
    return payload


def _pick(payload: Mapping, *keys: str) -> Any:
    for key in keys:
        if key in payload:
            return payload[key]
    return None


def _require_bool(payload: Mapping, *keys: str) -> bool:
    value = _pick(payload, *keys)
    if not isinstance(value, bool):
        raise SchemaViolationError(f"{keys[0]}: expected a boolean, got {value!r}")
    return value


# :::::: Coercion :::::: #

def coerce_classification(payload: Mapping) -> Classification:
    '''
        Map an AI classification payload onto Classification.
        Both snake_case and the camelCase keys models tend to emit are accepted.
    '''
    if not isinstance(payload, Mapping):
        raise SchemaViolationError("Classification payload must be an object")

    kind = _pick(payload, "visualization_kind", "visualizationKind", "type")
    try:
        kind = VisualizationKind(kind)
    except ValueError:
        raise SchemaViolationError(f"visualization_kind: unsupported value {kind!r}")

    complexity = _pick(payload, "complexity")
    try:
        complexity = Complexity(complexity)
    except ValueError:
        raise SchemaViolationError(f"complexity: unsupported value {complexity!r}")

    return Classification(
        visualization_kind=kind,
        complexity=complexity,
        requires_memory=_require_bool(payload, "requires_memory", "requiresMemory", "requiresRAG"),
        requires_external=_require_bool(payload, "requires_external", "requiresExternal"),
        requires_image=_require_bool(payload, "requires_image", "requiresImage"),
    )


def _coerce_sublinks(raw: Any, provenance: Dict[str, Any]) -> Optional[List[Sublink]]:
    if raw is None:
        return None
    if not isinstance(raw, list):
        raise SchemaViolationError("sublinks: expected a list")

    sublinks = []
    for index, item in enumerate(raw):
        if not isinstance(item, Mapping):
            raise SchemaViolationError(f"sublinks[{index}]: expected an object")
        label, route = item.get("label"), item.get("route")
        if not isinstance(label, str) or not label.strip():
            raise SchemaViolationError(f"sublinks[{index}].label: required")
        if not isinstance(route, str) or not route.strip():
            raise SchemaViolationError(f"sublinks[{index}].route: required")
        context = item.get("context") or {}
        if not isinstance(context, Mapping):
            raise SchemaViolationError(f"sublinks[{index}].context: expected an object")
        if not route.startswith("/"):
            route = f"/{route}"
        sublinks.append(ensure_sublink_context(Sublink(label.strip(), route, dict(context)), provenance))
    return sublinks


def _coerce_citations(raw: Any) -> Optional[List[Citation]]:
    if raw is None:
        return None
    if not isinstance(raw, list):
        raise SchemaViolationError("citations: expected a list")

    citations = []
    for index, item in enumerate(raw):
        if not isinstance(item, Mapping):
            raise SchemaViolationError(f"citations[{index}]: expected an object")
        title, url = item.get("title"), item.get("url")
        if not isinstance(title, str) or not isinstance(url, str) or not url:
            raise SchemaViolationError(f"citations[{index}]: title and url are required")
        snippet = item.get("snippet")
        citations.append(Citation(title=title, url=url, snippet=snippet if isinstance(snippet, str) else None))
    return citations


def coerce_dashboard_output(
    payload: Mapping,
    default_kind: VisualizationKind,
    provenance: Optional[Dict[str, Any]] = None,
) -> DashboardOutput:
    '''
        Map an AI dashboard payload onto DashboardOutput.

        The title is clamped and every sublink gets a non-empty context, so the
        result already satisfies the output invariants.
    '''
    if not isinstance(payload, Mapping):
        raise SchemaViolationError("Dashboard payload must be an object")

    provenance = provenance or {}

    kind = _pick(payload, "type", "visualization_kind", "visualizationKind")
    if kind is None:
        kind = default_kind
    try:
        kind = VisualizationKind(kind)
    except ValueError:
        raise SchemaViolationError(f"type: unsupported value {kind!r}")

    title = payload.get("title")
    if not isinstance(title, str) or not title.strip():
        raise SchemaViolationError("title: required")

    data = payload.get("data")
    if not isinstance(data, list) or not data:
        raise SchemaViolationError("data: expected a non-empty list of records")
    if len(data) > MAX_DATA_POINTS:
        raise SchemaViolationError(f"data: at most {MAX_DATA_POINTS} records allowed, got {len(data)}")
    if any(not isinstance(point, Mapping) for point in data):
        raise SchemaViolationError("data: every item must be an object")

    config = payload.get("config")
    if config is not None and not isinstance(config, Mapping):
        raise SchemaViolationError("config: expected an object")

    summary = payload.get("summary")
    if summary is not None and not isinstance(summary, str):
        raise SchemaViolationError("summary: expected a string")

    image_url = _pick(payload, "imageUrl", "image_url")
    image_prompt = _pick(payload, "imagePrompt", "image_prompt")

    return DashboardOutput(
        visualization_kind=kind,
        title=clamp_title(title),
        data=[dict(point) for point in data],
        config=dict(config) if config is not None else None,
        sublinks=_coerce_sublinks(payload.get("sublinks"), {**provenance, "visualization_kind": kind.value}),
        summary=summary,
        citations=_coerce_citations(payload.get("citations")),
        image_url=image_url if isinstance(image_url, str) else None,
        image_prompt=image_prompt if isinstance(image_prompt, str) else None,
    )


# :::::: Validation :::::: #

def _is_url(value: str) -> bool:
    parsed = urlparse(value)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def _kind_name(kind: Any) -> str:
    if isinstance(kind, VisualizationKind):
        return kind.display_name
    if isinstance(kind, str) and kind.strip():
        return kind.replace("_", " ").title()
    return "Dashboard"


def _validate_title(output: DashboardOutput, errors: List[str], warnings: List[str]) -> None:
    title = output.title
    if not isinstance(title, str) or not title.strip():
        errors.append("title: Dashboard title is required")
    elif len(title) > TITLE_MAX_LENGTH:
        warnings.append(f"title: longer than {TITLE_MAX_LENGTH} characters and will be truncated")
    elif len(title) > LONG_TITLE_CHARS:
        warnings.append("title: quite long, consider shortening for better display")


def _validate_data(output: DashboardOutput, errors: List[str], warnings: List[str], suggestions: List[str]) -> None:
    data, kind = output.data, output.visualization_kind

    if not isinstance(data, list):
        errors.append(f"data: expected a list of records, got {type(data).__name__}")
        return

    bad_items = [i for i, point in enumerate(data) if not isinstance(point, Mapping)]
    if bad_items:
        errors.append(f"data: items {bad_items} are not records")
        return

    if not data and kind != VisualizationKind.TEXT:
        warnings.append("data: Dashboard has no data points")

    if kind in CHART_KINDS_NEEDING_VALUES:
        if any(not isinstance(point.get("value"), (int, float)) or isinstance(point.get("value"), bool) for point in data):
            warnings.append(f"data: {kind.value} expects a numeric 'value' in every data point")
        if any(not point.get("label") and not point.get("category") for point in data):
            warnings.append(f"data: {kind.value} expects a 'label' or 'category' in every data point")
    elif kind == VisualizationKind.TIMELINE:
        suggestions.append("Consider adding date/time information in data points")
    elif kind == VisualizationKind.COMPARISON and len(data) < 2:
        warnings.append("data: comparison works best with multiple data sections")
    elif kind == VisualizationKind.TEXT and not data and not output.summary:
        warnings.append("Text visualization should have either summary or data content")


def _validate_sublinks(output: DashboardOutput, errors: List[str], warnings: List[str], suggestions: List[str]) -> None:
    sublinks = output.sublinks
    if not sublinks:
        suggestions.append("Consider adding sublinks for better user exploration")
        return
    if not isinstance(sublinks, list):
        errors.append("sublinks: expected a list")
        return

    routes = []
    for index, sublink in enumerate(sublinks, start=1):
        label = getattr(sublink, "label", None)
        route = getattr(sublink, "route", None)
        context = getattr(sublink, "context", None)

        if not isinstance(label, str) or not label.strip():
            errors.append(f"sublinks: Sublink {index} label is required")
        if not isinstance(route, str) or not route.strip():
            errors.append(f"sublinks: Sublink {index} route is required")
        else:
            routes.append(route)
            if not route.startswith("/"):
                warnings.append(f"sublinks: Sublink {index} route should start with '/'")
        if not context:
            warnings.append(f"sublinks: Sublink {index} context is empty")

    duplicates = sorted({route for route in routes if routes.count(route) > 1})
    if duplicates:
        warnings.append(f"sublinks: duplicate routes {', '.join(duplicates)}")


def _validate_citations(output: DashboardOutput, errors: List[str], warnings: List[str]) -> None:
    citations = output.citations
    if not citations:
        return
    if not isinstance(citations, list):
        errors.append("citations: expected a list")
        return

    for index, citation in enumerate(citations, start=1):
        title = getattr(citation, "title", None)
        url = getattr(citation, "url", None) or ""
        snippet = getattr(citation, "snippet", None)

        if not isinstance(title, str) or not title.strip():
            errors.append(f"citations: Citation {index} title is required")
        if not isinstance(url, str):
            errors.append(f"citations: Citation {index} url must be a string")
            continue
        # In-app anchors like "#user-memory" are allowed alongside web URLs
        if not (url.startswith("#") or url.startswith("/") or _is_url(url)):
            warnings.append(f"citations: Citation {index} has an invalid URL")
        if isinstance(snippet, str) and len(snippet) > LONG_SNIPPET_CHARS:
            warnings.append(f"citations: Citation {index} snippet is quite long")


def _auto_correct(output: DashboardOutput) -> Optional[DashboardOutput]:
    '''
        Return a corrected copy, or None when nothing needed correcting.
        The input is never mutated.
    '''
    corrected = output.copy()
    changed = False

    if not isinstance(corrected.title, str) or not corrected.title.strip():
        corrected.title = f"{_kind_name(corrected.visualization_kind)} Analysis"
        changed = True
    elif len(corrected.title) > TITLE_MAX_LENGTH:
        corrected.title = clamp_title(corrected.title)
        changed = True

    if corrected.visualization_kind in CHART_KINDS_NEEDING_LABELS and isinstance(corrected.data, list):
        for index, point in enumerate(corrected.data):
            if isinstance(point, dict) and not point.get("label"):
                corrected.data[index] = {**point, "label": f"Item {index + 1}"}
                changed = True

    if corrected.sublinks and isinstance(corrected.sublinks, list):
        provenance = {"source": "validator", "title": corrected.title}
        fixed = []
        for sublink in corrected.sublinks:
            if not isinstance(sublink, Sublink):
                fixed.append(sublink)
                continue
            route = sublink.route
            if isinstance(route, str) and route.strip() and not route.startswith("/"):
                sublink = Sublink(sublink.label, f"/{route}", sublink.context)
                changed = True
            if not sublink.context:
                sublink = ensure_sublink_context(sublink, provenance)
                changed = True
            fixed.append(sublink)
        corrected.sublinks = fixed

    return corrected if changed else None


def validate_dashboard(
    output: Union[DashboardOutput, Mapping],
    classification: Classification,
) -> ValidationResult:
    """
    Check a draft dashboard for structural problems and try to auto-correct it.

    Errors make the output invalid; warnings and suggestions are advisory.
    Malformed input is reported, never raised.
    """
    if isinstance(output, Mapping):
        output = DashboardOutput.from_dict(dict(output))

    errors: List[str] = []
    warnings: List[str] = []
    suggestions: List[str] = []

    kind = output.visualization_kind
    if not isinstance(kind, VisualizationKind):
        errors.append(f"visualization_kind: unsupported value {kind!r}")
    elif kind != classification.visualization_kind:
        warnings.append(
            f"visualization_kind: output type '{kind.value}' doesn't match classified type "
            f"'{classification.visualization_kind.value}'"
        )

    _validate_title(output, errors, warnings)
    _validate_data(output, errors, warnings, suggestions)
    _validate_sublinks(output, errors, warnings, suggestions)
    _validate_citations(output, errors, warnings)

    if output.config is None:
        suggestions.append("Consider adding configuration for better visualization control")
    elif not isinstance(output.config, Mapping):
        errors.append("config: expected an object")

    summary = output.summary
    if summary is not None and not isinstance(summary, str):
        errors.append("summary: expected a string")
    elif summary and len(summary) > LONG_SUMMARY_CHARS:
        warnings.append("summary: very long, consider breaking into sections")

    if output.image_url is not None and not _is_url(str(output.image_url)):
        errors.append("image_url: invalid URL format")

    corrected_output = _auto_correct(output)

    result = ValidationResult(
        is_valid=not errors,
        errors=errors,
        warnings=warnings,
        suggestions=suggestions,
        corrected_output=corrected_output,
    )

    logger.info(
        f"[Validator] valid={result.is_valid} errors={len(errors)} warnings={len(warnings)} "
        f"suggestions={len(suggestions)} auto_corrected={corrected_output is not None}"
    )
    return result


class ValidationStage:
    """Advisory validation of the synthesized dashboard."""

    def validate(
        self,
        output: Union[DashboardOutput, Mapping],
        classification: Classification,
    ) -> ValidationResult:
        return validate_dashboard(output, classification)
