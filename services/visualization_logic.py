from typing import Any, Dict, List, Optional
import plotly.graph_objects as go

from services.ai_workflow.data_model import DashboardOutput, VisualizationKind

NUMERIC_TYPES = (int, float)


def _label_of(point: Dict[str, Any], index: int) -> str:
    return str(point.get("label") or point.get("category") or point.get("name") or f"Item {index + 1}")


def _value_of(point: Dict[str, Any]) -> Optional[float]:
    value = point.get("value")
    if isinstance(value, bool) or not isinstance(value, NUMERIC_TYPES):
        return None
    return float(value)


def _table_columns(data: List[Dict[str, Any]]) -> List[str]:
    '''
        Union of record keys, in first-seen order.
    '''
    columns: Dict[str, None] = {}
    for point in data:
        for key in point:
            columns.setdefault(key, None)
    return list(columns)


class ChartBuilder:
    """Handles all visualization logic"""

    @staticmethod
    def create_pie(data: List[Dict[str, Any]], title: str) -> go.Figure:
        points = [(_label_of(p, i), _value_of(p)) for i, p in enumerate(data)]
        points = [(label, value) for label, value in points if value is not None]
        fig = go.Figure(
            go.Pie(
                labels=[label for label, _ in points],
                values=[value for _, value in points],
                hovertemplate='%{label}<br>Value: %{value:,.2f}<br>%{percent}<extra></extra>'
            )
        )
        fig.update_layout(title_text=title, showlegend=True)
        return fig

    @staticmethod
    def create_bar(data: List[Dict[str, Any]], title: str, config: Dict[str, Any]) -> go.Figure:
        fig = go.Figure(
            go.Bar(
                x=[_label_of(p, i) for i, p in enumerate(data)],
                y=[_value_of(p) for p in data],
                hovertemplate='%{x}<br>Value: %{y:,.2f}<extra></extra>'
            )
        )
        fig.update_layout(title_text=title)
        fig.update_xaxes(title_text=config.get("x_axis", ""))
        fig.update_yaxes(title_text=config.get("y_axis", ""))
        return fig

    @staticmethod
    def create_line(data: List[Dict[str, Any]], title: str, config: Dict[str, Any]) -> go.Figure:
        fig = go.Figure(
            go.Scatter(
                x=[_label_of(p, i) for i, p in enumerate(data)],
                y=[_value_of(p) for p in data],
                mode='lines+markers',
                hovertemplate='%{x}<br>Value: %{y:,.2f}<extra></extra>'
            )
        )
        fig.update_layout(title_text=title, hovermode='x unified')
        fig.update_xaxes(title_text=config.get("x_axis", ""), tickangle=-45)
        fig.update_yaxes(title_text=config.get("y_axis", ""))
        return fig

    @staticmethod
    def create_table(data: List[Dict[str, Any]], title: str) -> go.Figure:
        columns = _table_columns(data)
        fig = go.Figure(
            go.Table(
                header=dict(values=[c.replace("_", " ").title() for c in columns], align='left'),
                cells=dict(values=[[p.get(c, "") for p in data] for c in columns], align='left')
            )
        )
        fig.update_layout(title_text=title)
        return fig


def build_figure(output: DashboardOutput) -> Optional[go.Figure]:
    """
    Plotly figure for a chart dashboard.

    Returns None for textual kinds, which are rendered as sections instead, and
    for outputs without usable data.
    """
    data = output.data if isinstance(output.data, list) else []
    data = [point for point in data if isinstance(point, dict)]
    if not data:
        return None

    config = output.config if isinstance(output.config, dict) else {}
    kind = output.visualization_kind

    if kind == VisualizationKind.PIE_CHART:
        return ChartBuilder.create_pie(data, output.title)
    if kind == VisualizationKind.BAR_CHART:
        return ChartBuilder.create_bar(data, output.title, config)
    if kind == VisualizationKind.LINE_CHART:
        return ChartBuilder.create_line(data, output.title, config)
    if kind == VisualizationKind.TABLE:
        return ChartBuilder.create_table(data, output.title)
    return None
