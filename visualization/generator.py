# visualization/generator.py

"""
Deterministic chart selection for extracted response data.
No LLM involvement - pure rule-based chart selection.
"""

from typing import Dict, List, Any, Optional
import hashlib
import logging

from config import VIZ_CONFIG
from response_extractor.models import ExtractedData, ListGroup, Table
from response_extractor.patterns import (
    BARE_NUMBER_PATTERN,
    LIST_LABELED_VALUE_PATTERN,
    LIST_PAREN_VALUE_PATTERN,
    coerce_number,
    looks_temporal,
    parse_number,
)
from visualization.chart_templates import (
    ChartTemplateRegistry,
    ChartType,
    VisualizationData,
    chart_registry,
)

logger = logging.getLogger(__name__)


class VisualizationGenerator:
    """
    Turns ExtractedData into an ordered list of visualization descriptors.
    Rules (applied independently, output in this order):
    - Any metrics = one metric card group (first 6)
    - Each table = bar (+ pie if balanced) or area + line if time-ordered,
      always followed by a raw table view
    - Two or more unique time points across the text = area + line
    - Each list with 1-9 numeric items = bar (+ pie if balanced)
    """

    def __init__(
        self,
        registry: Optional[ChartTemplateRegistry] = None,
        settings: Optional[Dict[str, Any]] = None
    ):
        self.registry = registry or chart_registry
        self.settings = {**VIZ_CONFIG, **(settings or {})}

    def generate_visualizations(
        self,
        extracted: ExtractedData,
        conversation_context: str = ""
    ) -> List[VisualizationData]:
        """
        Main method: select and configure charts.
        Same extracted data ALWAYS produces the same visualizations.
        conversation_context is accepted for callers but does not affect selection.
        """
        pass_hash = self._generate_deterministic_hash(extracted)
        visualizations: List[VisualizationData] = []

        if extracted.metrics:
            visualizations.append(self._metric_visualization(extracted, pass_hash))

        for idx, table in enumerate(extracted.tables):
            visualizations.extend(self._table_visualizations(table, idx, pass_hash))

        visualizations.extend(self._time_series_visualizations(extracted, pass_hash))

        for idx, group in enumerate(extracted.lists):
            visualizations.extend(self._list_visualizations(group, idx, pass_hash))

        logger.debug(
            f"Generated {len(visualizations)} visualizations: "
            f"{[viz.type.value for viz in visualizations]}"
        )
        return visualizations

    # ------------------------------------------------------------------
    # Rule 1: metrics
    # ------------------------------------------------------------------

    def _metric_visualization(self, extracted: ExtractedData, pass_hash: str) -> VisualizationData:
        metrics = extracted.metrics[:self.settings["max_metrics"]]
        return VisualizationData(
            id=f"metrics-0-{pass_hash}",
            type=ChartType.METRIC,
            title="Key Metrics",
            data=[metric.model_dump(mode="json", exclude_none=True) for metric in metrics],
            config=self.registry.build_config(ChartType.METRIC)
        )

    # ------------------------------------------------------------------
    # Rule 2: tables
    # ------------------------------------------------------------------

    def _table_visualizations(self, table: Table, idx: int, pass_hash: str) -> List[VisualizationData]:
        if not table.rows:
            return []

        visualizations = []
        headers = table.headers
        is_numeric = any(
            coerce_number(cell) is not None for row in table.rows for cell in row
        )

        # A chart needs a label column and a value column
        if is_numeric and len(headers) >= 2:
            x_key, y_key = headers[0], headers[1]
            data = [self._chart_row(headers, row) for row in table.rows]
            first_column = " ".join(row[0] for row in table.rows if row)

            if looks_temporal(first_column):
                for chart_type, label in ((ChartType.AREA, "Area"), (ChartType.LINE, "Line")):
                    visualizations.append(VisualizationData(
                        id=f"table-{chart_type.value}-{idx}-{pass_hash}",
                        type=chart_type,
                        title=f"{y_key} Over Time ({label} Chart)",
                        data=data,
                        config=self.registry.build_config(chart_type, x_key=x_key, y_key=y_key)
                    ))
            else:
                visualizations.append(VisualizationData(
                    id=f"table-bar-{idx}-{pass_hash}",
                    type=ChartType.BAR,
                    title=f"{y_key} by {x_key} (Bar Chart)",
                    data=data,
                    config=self.registry.build_config(ChartType.BAR, x_key=x_key, y_key=y_key)
                ))

                if len(table.rows) <= self.settings["pie_max_rows"]:
                    values = [coerce_number(row[1]) if len(row) > 1 else None for row in table.rows]
                    if self._is_balanced(values):
                        visualizations.append(VisualizationData(
                            id=f"table-pie-{idx}-{pass_hash}",
                            type=ChartType.PIE,
                            title=f"{y_key} by {x_key} (Pie Chart)",
                            data=data,
                            config=self.registry.build_config(
                                ChartType.PIE, x_key=x_key, data_key=y_key
                            )
                        ))

        # The raw grid is always offered
        visualizations.append(VisualizationData(
            id=f"table-{idx}-{pass_hash}",
            type=ChartType.TABLE,
            title="Detailed Data",
            data=[dict(zip(headers, row)) for row in table.rows],
            config=self.registry.build_config(ChartType.TABLE, format="table")
        ))
        return visualizations

    @staticmethod
    def _chart_row(headers: List[str], row: List[str]) -> Dict[str, Any]:
        """Map header -> cell, turning value columns into numbers where they parse."""
        obj = {}
        for i, (header, cell) in enumerate(zip(headers, row)):
            number = coerce_number(cell) if i > 0 else None
            obj[header] = number if number is not None else cell
        return obj

    def _is_balanced(self, values: List[Optional[float]]) -> bool:
        """
        Pie guard: no single wedge may hold the threshold share (80%) or more.
        Negative or all-zero columns never get a pie.
        """
        numbers = [value for value in values if value is not None]
        if not numbers or any(value < 0 for value in numbers):
            return False
        total = sum(numbers)
        if total <= 0:
            return False
        return max(numbers) / total < self.settings["pie_dominance_threshold"]

    # ------------------------------------------------------------------
    # Rule 3: global time series
    # ------------------------------------------------------------------

    def _time_series_visualizations(self, extracted: ExtractedData, pass_hash: str) -> List[VisualizationData]:
        unique_points = {}
        for point in extracted.time_series:
            # First occurrence per date wins; dict keeps encounter order
            unique_points.setdefault(point.date, point)

        if len(unique_points) < self.settings["min_time_series_points"]:
            return []

        data = [point.model_dump(exclude_none=True) for point in unique_points.values()]
        return [
            VisualizationData(
                id=f"timeseries-area-0-{pass_hash}",
                type=ChartType.AREA,
                title="Time Series Overview",
                data=data,
                config=self.registry.build_config(ChartType.AREA, x_key="date", y_key="value")
            ),
            VisualizationData(
                id=f"timeseries-line-0-{pass_hash}",
                type=ChartType.LINE,
                title="Time Series Trend",
                data=data,
                config=self.registry.build_config(ChartType.LINE, x_key="date", y_key="value")
            ),
        ]

    # ------------------------------------------------------------------
    # Rule 4: lists
    # ------------------------------------------------------------------

    def _list_visualizations(self, group: ListGroup, idx: int, pass_hash: str) -> List[VisualizationData]:
        items = []
        for position, item in enumerate(group.items, start=1):
            parsed = self._list_item_value(item, position)
            if parsed is not None:
                items.append(parsed)

        if not 0 < len(items) < self.settings["list_max_items"]:
            return []

        visualizations = [VisualizationData(
            id=f"list-bar-{idx}-{pass_hash}",
            type=ChartType.BAR,
            title="Data Breakdown (Bar Chart)",
            data=items,
            config=self.registry.build_config(
                ChartType.BAR, x_key="name", y_key="value", data_key="value"
            )
        )]

        if self._is_balanced([item["value"] for item in items]):
            visualizations.append(VisualizationData(
                id=f"list-pie-{idx}-{pass_hash}",
                type=ChartType.PIE,
                title="Data Breakdown (Pie Chart)",
                data=items,
                config=self.registry.build_config(ChartType.PIE, x_key="name", data_key="value")
            ))
        return visualizations

    def _list_item_value(self, item: str, position: int) -> Optional[Dict[str, Any]]:
        """
        Pull a (name, value) pair out of one list item. Tries, in order:
        "Label: 12" / "Label - 12", then "Label (12)", then the first bare number.
        """
        match = LIST_LABELED_VALUE_PATTERN.match(item)
        if match:
            name, raw = match.group(1), match.group(2)
        else:
            # The label must be non-empty, so the number cannot open the item
            match = LIST_PAREN_VALUE_PATTERN.search(item, 1)
            name, raw = (item[:match.start()], match.group(1)) if match else ("", None)

        if raw is not None:
            value = parse_number(raw)
            if value is not None:
                return {"name": name.strip() or f"Item {position}", "value": value}

        match = BARE_NUMBER_PATTERN.search(item)
        if not match:
            return None
        value = parse_number(match.group(0))
        if value is None:
            return None

        max_length = self.settings["list_label_max_length"]
        label = item.replace(match.group(0), "", 1).strip() or f"Item {position}"
        if len(label) > max_length:
            label = label[:max_length] + "..."
        return {"name": label, "value": value}

    def _generate_deterministic_hash(self, extracted: ExtractedData) -> str:
        """
        Hash of the extraction pass, used to suffix descriptor ids.
        Ids stay unique within a pass because every prefix/index pair differs.
        """
        input_str = extracted.model_dump_json(by_alias=True)
        return hashlib.md5(input_str.encode()).hexdigest()[:8]


# Shared generator instance
_generator = VisualizationGenerator()


def generate_visualizations(
    extracted: ExtractedData,
    conversation_context: str = ""
) -> List[VisualizationData]:
    """Generate visualizations for extracted data."""
    return _generator.generate_visualizations(extracted, conversation_context)
