"""
Chart types, visualization descriptors and the fixed styling registry.
"""

from typing import Dict, List, Any, Optional
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field


class ChartType(str, Enum):
    """Supported visualization types."""
    METRIC = "metric"
    BAR = "bar"
    LINE = "line"
    AREA = "area"
    PIE = "pie"
    TABLE = "table"


class VisualizationConfig(BaseModel):
    """Rendering hints. Serialized with camelCase keys (xKey, yKey, dataKey)."""
    model_config = ConfigDict(populate_by_name=True)

    x_key: Optional[str] = Field(None, alias="xKey")
    y_key: Optional[str] = Field(None, alias="yKey")
    data_key: Optional[str] = Field(None, alias="dataKey")
    colors: Optional[List[str]] = None
    format: Optional[str] = None


class VisualizationData(BaseModel):
    """
    A fully configured visualization descriptor.
    This is the only thing handed to the rendering layer.
    """
    id: str
    type: ChartType
    title: str
    data: List[Dict[str, Any]] = Field(default_factory=list)
    config: Optional[VisualizationConfig] = None

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class ChartTemplateRegistry:
    """
    Fixed palettes and layout defaults per chart type.
    Deterministic - the same chart type always gets the same colors.
    """

    def __init__(self):
        self.palettes = self._initialize_palettes()
        self.default_keys = {
            ChartType.BAR: {"x_key": "name", "y_key": "value"},
            ChartType.LINE: {"x_key": "name", "y_key": "value"},
            ChartType.AREA: {"x_key": "name", "y_key": "value"},
            ChartType.PIE: {"x_key": "name", "data_key": "value"},
        }

    def _initialize_palettes(self) -> Dict[ChartType, List[str]]:
        """Initialize color palettes."""
        return {
            ChartType.METRIC: ["#3b82f6", "#10b981", "#f59e0b"],
            ChartType.BAR: ["#3b82f6", "#1e40af", "#60a5fa"],
            ChartType.LINE: ["#8b5cf6", "#6d28d9", "#a78bfa"],
            ChartType.AREA: ["#10b981", "#047857", "#6ee7b7"],
            ChartType.PIE: ["#3b82f6", "#8b5cf6", "#ec4899", "#f59e0b", "#10b981", "#06b6d4"],
            ChartType.TABLE: ["#64748b", "#94a3b8", "#e2e8f0"],
        }

    def get_palette(self, chart_type: ChartType) -> List[str]:
        """Return a copy so descriptors never share a mutable list."""
        return list(self.palettes[chart_type])

    def build_config(
        self,
        chart_type: ChartType,
        x_key: Optional[str] = None,
        y_key: Optional[str] = None,
        data_key: Optional[str] = None,
        format: Optional[str] = None
    ) -> VisualizationConfig:
        """Create the config attached to a descriptor."""
        return VisualizationConfig(
            x_key=x_key,
            y_key=y_key,
            data_key=data_key,
            colors=self.get_palette(chart_type),
            format=format
        )

    def resolve_keys(self, viz: VisualizationData) -> Dict[str, str]:
        """Config keys with renderer defaults filled in."""
        defaults = self.default_keys.get(viz.type, {})
        config = viz.config or VisualizationConfig()
        return {
            "x_key": config.x_key or defaults.get("x_key", "name"),
            "y_key": config.y_key or defaults.get("y_key", "value"),
            "data_key": config.data_key or defaults.get("data_key", "value"),
        }

    def get_chart_config(self, chart_type: ChartType, title: str) -> Dict[str, Any]:
        """Plotly layout for a specific chart type."""
        layout = {
            "title": title,
            "template": "plotly_white",
            "margin": dict(l=50, r=50, t=50, b=50),
            "height": 400,
        }

        if chart_type == ChartType.BAR:
            layout["xaxis"] = {"type": "category"}
            layout["barmode"] = "group"
        elif chart_type in (ChartType.LINE, ChartType.AREA):
            # Time labels like "Q1 2024" are not calendar dates
            layout["xaxis"] = {"type": "category"}
        elif chart_type == ChartType.TABLE:
            layout["height"] = 300

        return layout


# Global registry instance
chart_registry = ChartTemplateRegistry()
