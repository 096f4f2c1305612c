"""
Rule-based extractor for AI chat responses.
Scans free text for metrics, markdown tables, lists and time-indexed values.
No LLM involvement - a pipeline of independent regex recognizers whose
candidates are unioned and deduplicated by composite key.
"""

import logging
import re
from typing import List, Optional, Set

from response_extractor.models import (
    ExtractedData,
    ListGroup,
    Metric,
    Table,
    TimeSeriesPoint,
)
from response_extractor.patterns import (
    BULLET_LINE_PATTERN,
    CURRENCY_METRIC_PATTERN,
    ENTITY_METRIC_PATTERN,
    NUMBERED_LINE_PATTERN,
    PERCENT_METRIC_PATTERN,
    TABLE_PATTERN,
    TIME_SERIES_PATTERNS,
    UNIT_METRIC_PATTERN,
    entity_name,
    parse_number,
)

logger = logging.getLogger(__name__)

MIN_LABEL_LENGTH = 3
MAX_LABEL_LENGTH = 30


class ResponseExtractor:
    """
    Extracts structured signals from a block of response text.
    Stateless: every call builds its own accumulators, so one instance can be
    shared freely.
    """

    def extract(self, text: Optional[str]) -> ExtractedData:
        """
        Extract metrics, tables, lists and time series from text.
        Never raises; text without signals yields empty collections.
        """
        if not text or not text.strip():
            return ExtractedData()

        text = text.replace("\r\n", "\n")

        seen_metrics: Set[str] = set()
        metrics: List[Metric] = []
        self._extract_labeled_metrics(text, metrics, seen_metrics)

        tables = self._extract_tables(text)
        lists = self._extract_lists(text)
        for group in lists:
            self._extract_entity_metrics(group, metrics, seen_metrics)

        time_series = self._extract_time_series(text)

        logger.debug(
            f"Extracted {len(metrics)} metrics, {len(tables)} tables, "
            f"{len(lists)} lists, {len(time_series)} time points"
        )

        return ExtractedData(
            metrics=metrics,
            tables=tables,
            lists=lists,
            time_series=time_series,
        )

    # ------------------------------------------------------------------
    # Metrics
    # ------------------------------------------------------------------

    def _extract_labeled_metrics(self, text: str, metrics: List[Metric], seen: Set[str]):
        """Apply the percentage, currency and unit patterns, in that order."""
        for match in PERCENT_METRIC_PATTERN.finditer(text):
            self._add_metric(metrics, seen, match.group(1), parse_number(match.group(2)))

        for match in CURRENCY_METRIC_PATTERN.finditer(text):
            value = parse_number(match.group(2), match.group(3))
            self._add_metric(metrics, seen, match.group(1), value)

        for match in UNIT_METRIC_PATTERN.finditer(text):
            label = self._clean_label(match.group(1))
            value = parse_number(match.group(2))
            if not self._valid_label(label):
                continue
            self._add_metric(metrics, seen, f"{label} ({match.group(3)})", value, check_label=False)

    def _extract_entity_metrics(self, group: ListGroup, metrics: List[Metric], seen: Set[str]):
        """Per-entity call-outs inside bullets, e.g. "Acme Corp (Churn: 35%)"."""
        for item in group.items:
            match = ENTITY_METRIC_PATTERN.search(item)
            if not match:
                continue
            value = parse_number(match.group(1), match.group(2))
            name = entity_name(item[:match.start()])
            self._add_metric(metrics, seen, name, value, check_label=False)

    def _add_metric(
        self,
        metrics: List[Metric],
        seen: Set[str],
        label: str,
        value,
        check_label: bool = True,
    ):
        label = self._clean_label(label)
        if value is None or not label:
            return
        if check_label and not self._valid_label(label):
            return
        metric = Metric(label=label, value=value)
        if metric.key in seen:
            return
        seen.add(metric.key)
        metrics.append(metric)

    @staticmethod
    def _clean_label(label: str) -> str:
        # Only the line the colon sits on belongs to the label
        return label.strip().split("\n")[-1].strip()

    @staticmethod
    def _valid_label(label: str) -> bool:
        return MIN_LABEL_LENGTH <= len(label) <= MAX_LABEL_LENGTH

    # ------------------------------------------------------------------
    # Tables
    # ------------------------------------------------------------------

    def _extract_tables(self, text: str) -> List[Table]:
        """Markdown pipe tables, in document order."""
        tables = []
        for match in TABLE_PATTERN.finditer(text):
            headers = self._split_row(match.group("header"))
            if not headers:
                continue
            rows = [
                self._fit_row(self._split_row(line), len(headers))
                for line in match.group("body").split("\n")
                if line.strip()
            ]
            tables.append(Table(headers=headers, rows=rows))
        return tables

    @staticmethod
    def _split_row(line: str) -> List[str]:
        cells = [cell.strip() for cell in line.strip().split("|")]
        if cells and cells[0] == "":
            cells = cells[1:]
        if cells and cells[-1] == "":
            cells = cells[:-1]
        return cells

    @staticmethod
    def _fit_row(cells: List[str], width: int) -> List[str]:
        """Clamp extra cells and pad short rows with empty strings."""
        return cells[:width] + [""] * (width - len(cells))

    # ------------------------------------------------------------------
    # Lists
    # ------------------------------------------------------------------

    def _extract_lists(self, text: str) -> List[ListGroup]:
        """
        Contiguous runs of bullet lines or of numbered lines.
        A run ends at the first line that is not a list line of the same kind.
        """
        groups: List[ListGroup] = []
        kind = None
        items: List[str] = []
        context = ""
        last_text_line = ""

        def flush():
            cleaned = [item for item in items if item]
            if cleaned:
                groups.append(ListGroup(items=cleaned, context=context))

        for line in text.split("\n"):
            line_kind, item = self._classify_line(line)
            if line_kind is None:
                flush()
                kind, items = None, []
                if line.strip():
                    last_text_line = line
                continue

            if line_kind != kind:
                flush()
                kind, items = line_kind, []
                context = self._clean_context(last_text_line)
            items.append(item)

        flush()
        return groups

    @staticmethod
    def _classify_line(line: str):
        match = BULLET_LINE_PATTERN.match(line)
        if match:
            return "bullet", match.group("item").strip()
        match = NUMBERED_LINE_PATTERN.match(line)
        if match:
            return "numbered", match.group("item").strip()
        return None, None

    @staticmethod
    def _clean_context(line: str) -> str:
        line = re.sub(r"^[#>\s]+", "", line)
        return line.strip().strip("*_").strip().rstrip(":").strip()

    # ------------------------------------------------------------------
    # Time series
    # ------------------------------------------------------------------

    def _extract_time_series(self, text: str) -> List[TimeSeriesPoint]:
        """
        Every family runs over the whole text and appends every match.
        Points are not merged across families here; the chart selector
        deduplicates by date string.
        """
        points = []
        for family, pattern, normalize in TIME_SERIES_PATTERNS:
            for match in pattern.finditer(text):
                value = parse_number(match.group("value"), match.group("suffix"))
                if value is None:
                    continue
                points.append(
                    TimeSeriesPoint(
                        date=normalize(match.group("token")),
                        value=value,
                        label=family.value,
                    )
                )
        return points


_extractor = ResponseExtractor()


def extract_data_from_response(text: str) -> ExtractedData:
    """Extract structured data from an AI response."""
    return _extractor.extract(text)
