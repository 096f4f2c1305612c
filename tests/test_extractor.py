"""
Tests for response extraction.
"""

import time
import pytest
from response_extractor.extractor import ResponseExtractor, extract_data_from_response
from response_extractor.models import ExtractedData, Metric, TimeFamily
from response_extractor.patterns import coerce_number, looks_temporal, parse_number


def _metric_map(extracted: ExtractedData):
    return {metric.label: metric.value for metric in extracted.metrics}


class TestNumberParsing:
    """Test numeric literal handling."""

    def test_commas_are_stripped(self):
        assert parse_number("1,250") == 1250
        assert parse_number("12,345.5") == 12345.5

    def test_suffix_scaling(self):
        assert parse_number("2.5", "K") == 2500
        assert parse_number("1.2", "m") == 1200000
        assert parse_number("3", "B") == 3000000000

    def test_integral_values_are_ints(self):
        value = parse_number("10.0")
        assert value == 10
        assert isinstance(value, int)

    def test_invalid_input(self):
        assert parse_number("abc") is None
        assert parse_number("") is None
        assert parse_number("NaN") is None

    def test_cell_coercion(self):
        assert coerce_number("1,200") == 1200
        assert coerce_number("$2.5K") == 2500
        assert coerce_number("12.5%") == 12.5
        assert coerce_number("-3") == -3
        assert coerce_number("East") is None
        assert coerce_number("Q1") is None

    def test_cell_leading_number(self):
        assert coerce_number("10 customers") == 10
        assert coerce_number(" 1,250 accounts ") == 1250
        assert coerce_number("$3.5M ARR") == 3500000

    def test_lowercase_suffix_is_not_a_scale(self):
        assert coerce_number("12m") == 12
        assert coerce_number("9k") == 9
        assert coerce_number("12M") == 12000000


class TestMetricExtraction:
    """Test labeled metric patterns."""

    def test_duplicate_metrics_collapse(self):
        extracted = extract_data_from_response("Churn: 10%\nChurn: 10%")

        assert extracted.metrics == [Metric(label="Churn", value=10)]

    def test_currency_normalization(self):
        extracted = extract_data_from_response("Revenue: $2.5K")

        assert len(extracted.metrics) == 1
        assert extracted.metrics[0].label == "Revenue"
        assert extracted.metrics[0].value == 2500

    def test_currency_millions(self):
        extracted = extract_data_from_response("ARR: $1.2M")

        assert _metric_map(extracted) == {"ARR": 1200000}

    def test_unit_metric_label(self):
        extracted = extract_data_from_response("Active accounts: 1,250 customers")

        assert _metric_map(extracted) == {"Active accounts (customers)": 1250}

    def test_unit_must_be_on_same_line(self):
        extracted = extract_data_from_response("Total: 40\nsomething else")

        assert extracted.metrics == []

    def test_short_label_rejected(self):
        extracted = extract_data_from_response("Up: 5%")

        assert extracted.metrics == []

    def test_label_stops_at_line_break(self):
        extracted = extract_data_from_response("Summary\nNPS Score: 74%")

        assert _metric_map(extracted) == {"NPS Score": 74}

    def test_pattern_order(self):
        text = "Expansion: $47K\nChurn Rate: 1.8%\nNew customers: 120 accounts"
        extracted = extract_data_from_response(text)

        assert [metric.label for metric in extracted.metrics] == [
            "Churn Rate",
            "Expansion",
            "New customers (accounts)",
        ]

    def test_entity_metrics_in_list_items(self):
        text = (
            "At-risk accounts:\n"
            "- Acme Corp (Churn: 35%)\n"
            "- Beta Industries (Risk: 72%)\n"
            "- Gamma LLC (Value: $12K)\n"
        )
        metrics = _metric_map(extract_data_from_response(text))

        assert metrics["Acme Corp"] == 35
        assert metrics["Beta Industries"] == 72
        assert metrics["Gamma LLC"] == 12000

    def test_entity_name_is_run_before_callout(self):
        text = "- #1 Acme & Sons   (Risk: 40%)\n- (Score: 5)\n"
        metrics = _metric_map(extract_data_from_response(text))

        assert metrics["Acme & Sons"] == 40
        assert "" not in metrics


class TestTableExtraction:
    """Test markdown table parsing."""

    TABLE = (
        "| Region | Customers |\n"
        "|---|---|\n"
        "| East | 10 |\n"
        "| West | 20 |\n"
    )

    def test_simple_table(self):
        extracted = extract_data_from_response(self.TABLE)

        assert len(extracted.tables) == 1
        table = extracted.tables[0]
        assert table.headers == ["Region", "Customers"]
        assert table.rows == [["East", "10"], ["West", "20"]]

    def test_table_without_trailing_newline(self):
        extracted = extract_data_from_response(self.TABLE.rstrip("\n"))

        assert extracted.tables[0].rows[-1] == ["West", "20"]

    def test_multiple_tables_in_order(self):
        text = (
            "First:\n" + self.TABLE +
            "\nSecond:\n"
            "| Plan | Price |\n"
            "|:---|---:|\n"
            "| Pro | 49 |\n"
        )
        extracted = extract_data_from_response(text)

        assert [table.headers[0] for table in extracted.tables] == ["Region", "Plan"]

    def test_ragged_rows_are_clamped_and_padded(self):
        text = "| A | B |\n|---|---|\n| x | 1 | extra |\n| y |\n"
        table = extract_data_from_response(text).tables[0]

        assert table.rows == [["x", "1"], ["y", ""]]

    def test_interior_empty_cells_kept(self):
        text = "| A | B | C |\n|---|---|---|\n| a |  | c |\n"
        table = extract_data_from_response(text).tables[0]

        assert table.rows == [["a", "", "c"]]

    def test_pipes_without_separator_are_not_a_table(self):
        extracted = extract_data_from_response("| a | b |\n| c | d |\n")

        assert extracted.tables == []


class TestListExtraction:
    """Test bulleted and numbered list detection."""

    def test_bullets_and_context(self):
        text = "**Top features:**\n- Analytics: 92%\n- Reports: 71%\n"
        lists = extract_data_from_response(text).lists

        assert len(lists) == 1
        assert lists[0].items == ["Analytics: 92%", "Reports: 71%"]
        assert lists[0].context == "Top features"

    def test_numbered_list(self):
        lists = extract_data_from_response("1. First step\n2. Second step\n").lists

        assert lists[0].items == ["First step", "Second step"]

    def test_bullet_and_numbered_runs_are_separate(self):
        lists = extract_data_from_response("- alpha\n1. beta\n").lists

        assert [group.items for group in lists] == [["alpha"], ["beta"]]

    def test_non_list_line_ends_run(self):
        lists = extract_data_from_response("- one\n   detail\n- two\n").lists

        assert [group.items for group in lists] == [["one"], ["two"]]

    def test_bullet_symbols(self):
        lists = extract_data_from_response("• Alpha\n• Beta\n* Gamma\n").lists

        assert lists[0].items == ["Alpha", "Beta", "Gamma"]

    def test_markers_need_whitespace(self):
        lists = extract_data_from_response("-5% decline\n**bold**\n").lists

        assert lists == []


class TestTimeSeriesExtraction:
    """Test the temporal pattern families."""

    def test_month_names(self):
        points = extract_data_from_response("Jan: 100\nFeb: 120\nMar: 130").time_series

        assert [(p.date, p.value) for p in points] == [("Jan", 100), ("Feb", 120), ("Mar", 130)]
        assert all(p.label == TimeFamily.MONTH.value for p in points)

    def test_full_month_names_abbreviated(self):
        points = extract_data_from_response("January: 1,200\nFebruary: 1,350").time_series

        assert [(p.date, p.value) for p in points] == [("Jan", 1200), ("Feb", 1350)]

    def test_words_starting_with_month_names_ignored(self):
        points = extract_data_from_response("Marketing: 5\nDecrease: 3").time_series

        assert points == []

    def test_quarter_also_matches_bare_year(self):
        points = extract_data_from_response("Q1 2024: 50\nQ2 2024: 75").time_series

        assert [(p.date, p.value) for p in points[:2]] == [("Q1 2024", 50), ("Q2 2024", 75)]
        assert ("2024", 50) in [(p.date, p.value) for p in points]

    def test_week_numbers(self):
        points = extract_data_from_response("Week 1: 78\nWeek 2: 80").time_series

        assert [(p.date, p.value) for p in points] == [("Week 1", 78), ("Week 2", 80)]

    def test_weekdays(self):
        points = extract_data_from_response("Mon: 5\nTuesday: 7").time_series

        assert [(p.date, p.value) for p in points] == [("Mon", 5), ("Tue", 7)]

    def test_iso_date(self):
        points = extract_data_from_response("2024-01-15: 100").time_series

        assert [(p.date, p.value, p.label) for p in points] == [("2024-01-15", 100, "date")]

    def test_us_date_also_matches_year(self):
        points = extract_data_from_response("01/15/2024: 100").time_series

        assert {(p.date, p.label) for p in points} == {("2024", "year"), ("01/15/2024", "date")}

    def test_month_year_with_currency(self):
        points = extract_data_from_response("May 2025: $68,500 MRR").time_series
        month_year = [p for p in points if p.label == TimeFamily.MONTH_YEAR.value]

        assert [(p.date, p.value) for p in month_year] == [("May 2025", 68500)]

    def test_lowercase_suffix_keeps_value(self):
        points = extract_data_from_response("Mon: 30m\nTue: 25m\nWed: 2K").time_series

        assert [(p.date, p.value) for p in points] == [("Mon", 30), ("Tue", 25), ("Wed", 2000)]

    def test_temporal_token_detection(self):
        assert looks_temporal("Jan Feb Mar")
        assert looks_temporal("Q1 Q2")
        assert looks_temporal("2023 2024")
        assert not looks_temporal("East West North")


class TestExtractorProperties:
    """Totality and determinism."""

    def test_empty_input(self):
        extracted = extract_data_from_response("")

        assert extracted.model_dump(by_alias=True) == {
            "metrics": [], "tables": [], "lists": [], "timeSeries": []
        }
        assert extracted.is_empty()

    @pytest.mark.parametrize("text", [
        "   \n\t ",
        "|" * 1000,
        ":" * 500 + "%",
        "- " * 200,
        "a" * 5000 + ": 5%",
        "| a |\n|---|\n" + "| |\n" * 50,
        "$$$: $K",
        "Q5: 10\nWeek : 3\n99/99/9999: 1",
    ])
    def test_never_raises(self, text):
        assert isinstance(extract_data_from_response(text), ExtractedData)

    @pytest.mark.parametrize("text", [
        "- x" + " " * 3000 + "y",
        "- Acme" + " " * 3000 + "(Churn: 5%)",
        "- x" + " " * 3000 + "(Churn: 5%",
        "| A | B |\n|---|---|\n| a | 10" + " " * 3000 + "x |\n",
        "Revenue" + " " * 3000 + ": 5 units",
    ])
    def test_long_whitespace_runs_stay_fast(self, text):
        start = time.perf_counter()
        extract_data_from_response(text)

        assert time.perf_counter() - start < 1.0

    def test_none_input(self):
        assert ResponseExtractor().extract(None) == ExtractedData()

    def test_deterministic(self):
        text = (
            "Churn Rate: 12.5%\nRevenue: $2.5K\n"
            "| Month | MRR |\n|---|---|\n| Jan | 100 |\n| Feb | 110 |\n"
            "- Acme (Risk: 40%)\n- Beta (Risk: 20%)\nQ1: 5\nQ2: 6"
        )

        assert extract_data_from_response(text) == extract_data_from_response(text)

    def test_windows_line_endings(self):
        text = "| Region | Customers |\r\n|---|---|\r\n| East | 10 |\r\n"

        assert extract_data_from_response(text).tables[0].rows == [["East", "10"]]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
