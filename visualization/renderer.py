"""
Rendering side of the pipeline: turns visualization descriptors into
render props and Plotly figures.
"""

from typing import Dict, List, Any, Optional
import plotly.graph_objects as go
import plotly.express as px
import pandas as pd
import json
import base64
import logging

from config import VIZ_CONFIG
from visualization.chart_templates import (
    ChartTemplateRegistry,
    ChartType,
    VisualizationData,
    chart_registry,
)

logger = logging.getLogger(__name__)

CURRENCY_WORDS = ['revenue', 'mrr', 'arr', 'profit', 'amount', 'price', 'cost', 'value', 'spend']
PERCENT_WORDS = ['percent', 'rate', 'churn', 'growth', 'adoption', 'risk', 'margin']


def get_visualization_props(
    viz: VisualizationData,
    registry: Optional[ChartTemplateRegistry] = None
) -> Optional[Dict[str, Any]]:
    """Component props for a chart widget, with defaults filled in."""
    registry = registry or chart_registry
    keys = registry.resolve_keys(viz)
    colors = (viz.config.colors if viz.config and viz.config.colors else None) or registry.get_palette(viz.type)

    if viz.type in (ChartType.BAR, ChartType.LINE, ChartType.AREA):
        return {
            "chartType": viz.type.value,
            "data": viz.data,
            "xKey": keys["x_key"],
            "yKey": keys["y_key"],
            "colors": colors,
        }
    elif viz.type == ChartType.PIE:
        return {
            "chartType": "pie",
            "data": viz.data,
            "nameKey": keys["x_key"],
            "dataKey": keys["data_key"],
            "colors": colors,
        }
    elif viz.type == ChartType.TABLE:
        return {
            "chartType": "table",
            "data": viz.data,
            "columns": list(viz.data[0].keys()) if viz.data else [],
        }
    elif viz.type == ChartType.METRIC:
        return {
            "chartType": "metric",
            "data": viz.data[:VIZ_CONFIG["max_metrics"]],
        }
    return None


class VisualizationRenderer:
    """
    Renders descriptors as Plotly figures (or metric card payloads).
    Output is plain JSON so it can go straight into an API response.
    """

    def __init__(self, registry: Optional[ChartTemplateRegistry] = None):
        self.registry = registry or chart_registry

    def render(self, viz: VisualizationData, include_image: bool = False) -> Dict[str, Any]:
        """
        Render one descriptor.
        Raises ValueError when the descriptor's keys are not present in its data.
        """
        if viz.type == ChartType.METRIC:
            result = self.render_metric_cards(viz)
        else:
            if viz.type == ChartType.TABLE:
                fig = self.render_table(viz)
            elif viz.type == ChartType.PIE:
                fig = self.render_pie_chart(viz)
            else:
                fig = self.render_xy_chart(viz)
            result = self._fig_to_dict(fig, include_image)

        result["id"] = viz.id
        result["chart_type"] = viz.type.value
        return result

    def render_xy_chart(self, viz: VisualizationData) -> go.Figure:
        """Bar, line and area charts share the same x/y handling."""
        keys = self.registry.resolve_keys(viz)
        x_key, y_key = keys["x_key"], keys["y_key"]
        df = self._frame(viz, [x_key, y_key])
        df[y_key] = pd.to_numeric(df[y_key], errors="coerce")
        colors = self._colors(viz)

        labels = {x_key: x_key.replace('_', ' ').title(), y_key: y_key.replace('_', ' ').title()}
        if viz.type == ChartType.BAR:
            fig = px.bar(df, x=x_key, y=y_key, title=viz.title, labels=labels)
            fig.update_traces(marker_color=colors[0])
        elif viz.type == ChartType.LINE:
            fig = px.line(df, x=x_key, y=y_key, title=viz.title, markers=True, labels=labels)
            fig.update_traces(line=dict(color=colors[0], width=3))
        else:
            fig = px.area(df, x=x_key, y=y_key, title=viz.title, labels=labels)
            fig.update_traces(line=dict(color=colors[0]))

        fig.update_layout(**self.registry.get_chart_config(viz.type, viz.title))
        return fig

    def render_pie_chart(self, viz: VisualizationData) -> go.Figure:
        keys = self.registry.resolve_keys(viz)
        name_key, data_key = keys["x_key"], keys["data_key"]
        df = self._frame(viz, [name_key, data_key])
        df[data_key] = pd.to_numeric(df[data_key], errors="coerce")

        fig = px.pie(
            df,
            names=name_key,
            values=data_key,
            title=viz.title,
            color_discrete_sequence=self._colors(viz)
        )
        fig.update_layout(**self.registry.get_chart_config(ChartType.PIE, viz.title))
        fig.update_traces(textposition='inside', textinfo='percent+label')
        return fig

    def render_table(self, viz: VisualizationData) -> go.Figure:
        """Grid view; columns are the keys of the first row."""
        columns = list(viz.data[0].keys()) if viz.data else []
        df = pd.DataFrame(viz.data, columns=columns)
        colors = self._colors(viz)

        fig = go.Figure(data=[go.Table(
            header=dict(values=columns, fill_color=colors[-1], align="left"),
            cells=dict(values=[df[col].tolist() for col in columns], align="left")
        )])
        fig.update_layout(**self.registry.get_chart_config(ChartType.TABLE, viz.title))
        return fig

    def render_metric_cards(self, viz: VisualizationData) -> Dict[str, Any]:
        """Label/value/trend cards, at most six."""
        cards = []
        for metric in viz.data[:VIZ_CONFIG["max_metrics"]]:
            label = str(metric.get("label", ""))
            value = metric.get("value")
            cards.append({
                "label": label,
                "value": value,
                "formatted_value": self._format_value(value, label),
                "trend": metric.get("trend"),
            })

        return {
            "type": "metric_card",
            "title": viz.title,
            "cards": cards,
            "colors": self._colors(viz),
        }

    def _frame(self, viz: VisualizationData, required: List[str]) -> pd.DataFrame:
        df = pd.DataFrame(viz.data)
        missing = [key for key in required if key not in df.columns]
        if missing:
            raise ValueError(f"{viz.type.value} chart '{viz.title}' has no column(s) {missing}")
        return df

    def _colors(self, viz: VisualizationData) -> List[str]:
        if viz.config and viz.config.colors:
            return viz.config.colors
        return self.registry.get_palette(viz.type)

    def _fig_to_dict(self, fig: go.Figure, include_image: bool = False) -> Dict[str, Any]:
        """Convert Plotly figure to a JSON-serializable dictionary."""
        fig_dict = json.loads(fig.to_json())

        result = {
            "type": "plotly",
            "figure": fig_dict,
            "layout": fig_dict.get('layout', {}),
            "data": fig_dict.get('data', [])
        }

        if include_image:
            # Static export needs the kaleido extra
            img_bytes = fig.to_image(format="png", width=800, height=400)
            result["image_base64"] = base64.b64encode(img_bytes).decode('utf-8')

        return result

    def _format_value(self, value, label: str) -> str:
        """Format value based on hints in the metric label."""
        if value is None or (isinstance(value, float) and pd.isna(value)):
            return "N/A"
        if not isinstance(value, (int, float)):
            return str(value)

        label_lower = label.lower()

        if any(currency_word in label_lower for currency_word in CURRENCY_WORDS):
            return f"${value:,.2f}"
        elif any(percent_word in label_lower for percent_word in PERCENT_WORDS):
            # Extracted percentages are already in percent units
            return f"{value:.1f}%"
        elif isinstance(value, int) or float(value).is_integer():
            return f"{int(value):,}"
        else:
            return f"{value:,.2f}"


# Shared renderer instance
renderer = VisualizationRenderer()
