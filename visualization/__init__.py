"""
Visualization package for deterministic chart selection and rendering.
Rule-based chart selection - no LLM involvement.
"""

from visualization.chart_templates import (
    ChartType,
    VisualizationConfig,
    VisualizationData,
    ChartTemplateRegistry,
    chart_registry
)

from visualization.generator import (
    VisualizationGenerator,
    generate_visualizations
)

from visualization.pipeline import (
    parse_response_for_visualizations,
    collect_response,
    acollect_response,
    visualize_stream
)

from visualization.renderer import (
    VisualizationRenderer,
    get_visualization_props
)

__all__ = [
    'ChartType',
    'VisualizationConfig',
    'VisualizationData',
    'ChartTemplateRegistry',
    'chart_registry',
    'VisualizationGenerator',
    'generate_visualizations',
    'parse_response_for_visualizations',
    'collect_response',
    'acollect_response',
    'visualize_stream',
    'VisualizationRenderer',
    'get_visualization_props'
]

__version__ = "1.0.0"
