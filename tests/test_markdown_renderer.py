"""Tests for the Markdown report renderer and threshold evaluation."""

from __future__ import annotations

import math

import pytest

from flowcov.reporters.markdown import (
    TABLE_HEADER,
    TABLE_SEPARATOR,
    ThresholdParseError,
    format_delta,
    parse_threshold,
    render,
    round_delta,
    round_half_up,
    round_total,
    threshold_bound,
)


class TestParseThreshold:
    @pytest.mark.parametrize(("text", "expected"), [("2", 2.0), (" 1.5 ", 1.5), ("-3", -3.0)])
    def test_numeric(self, text: str, expected: float) -> None:
        assert parse_threshold(text) == expected

    @pytest.mark.parametrize(
        ("text", "expected"),
        [("2%", 2.0), ("2abc", 2.0), ("2 points", 2.0), (".5x", 0.5), ("1e1%", 10.0)],
    )
    def test_leading_number_wins(self, text: str, expected: float) -> None:
        assert parse_threshold(text) == expected

    @pytest.mark.parametrize("text", ["", "abc", "nan", None])
    def test_non_numeric_raises(self, text: str | None) -> None:
        with pytest.raises(ThresholdParseError):
            parse_threshold(text)


class TestThresholdBound:
    @pytest.mark.parametrize(
        ("text", "expected"), [("2", 2.0), (" -3 ", 3.0), ("+1.5", 1.5), ("1e1", 10.0)]
    )
    def test_whole_number(self, text: str, expected: float) -> None:
        assert threshold_bound(text) == expected

    @pytest.mark.parametrize("text", ["2%", "2abc", "2 points"])
    def test_trailing_text_is_nan(self, text: str) -> None:
        assert math.isnan(threshold_bound(text))

    def test_blank_is_zero(self) -> None:
        assert threshold_bound("  ") == 0.0


class TestRounding:
    @pytest.mark.parametrize("value", [-5, 0, 3, 42])
    def test_integers_unchanged(self, value: int) -> None:
        assert round_delta(float(value)) == value
        assert round_total(float(value)) == value

    @pytest.mark.parametrize(
        ("delta", "expected"),
        [(2.5, 3), (-2.5, -2), (0.49, 0), (-0.4, 0), (1.6, 2), (-1.6, -2)],
    )
    def test_round_half_up(self, delta: float, expected: int) -> None:
        assert round_delta(delta) == expected

    @pytest.mark.parametrize(
        ("value", "expected"),
        [(0.49999999999999994, 0), (0.5, 1), (-0.5, 0), (-0.5000000000000001, -1), (99.5, 100)],
    )
    def test_round_half_up_is_exact(self, value: float, expected: int) -> None:
        assert round_half_up(value) == expected

    def test_total_just_below_half(self) -> None:
        assert round_total(66.49999999999999) == 66

    def test_negative_zero_is_plain_zero(self) -> None:
        assert format_delta(round_delta(-0.3)) == "+0"


class TestFormatDelta:
    @pytest.mark.parametrize(("rounded", "text"), [(0, "+0"), (-5, "-5"), (7, "+7")])
    def test_sign(self, rounded: int, text: str) -> None:
        assert format_delta(rounded) == text


class TestRender:
    def test_header_and_separator(self) -> None:
        report = render({}, {}, "")
        assert report.table == f"{TABLE_HEADER}\n{TABLE_SEPARATOR}"
        assert report.passes_threshold

    def test_drop_past_threshold_fails(self) -> None:
        report = render({"a.js": -3.0}, {"a.js": 77.0}, "2")

        assert report.table.splitlines()[2] == "| a.js | -3% | 77%"
        assert report.passes_threshold is False

    def test_unchanged_file_passes(self) -> None:
        report = render({"b.js": 0.0}, {"b.js": 50.0}, "5")

        assert report.table.splitlines()[2] == "| b.js | +0% | 50%"
        assert report.passes_threshold is True

    def test_added_file_row(self) -> None:
        report = render({"c.js": "added"}, {"c.js": 90.0}, "0")

        assert report.table.splitlines()[2] == "| c.js | added | 90%"
        assert report.passes_threshold is True

    def test_label_total_is_not_rounded(self) -> None:
        report = render({"c.js": "added"}, {"c.js": 90.5}, "")
        assert report.rows[0].total_text == "90.5"

    def test_label_without_head_sample(self) -> None:
        report = render({"gone.js": "removed"}, {}, "1")
        assert report.table.splitlines()[2] == "| gone.js | removed | n/a%"

    def test_nan_delta_renders_as_label(self) -> None:
        report = render({"a.js": float("nan")}, {"a.js": None}, "1")

        assert report.table.splitlines()[2] == "| a.js | NaN | n/a%"
        assert report.passes_threshold is True

    def test_numeric_total_is_rounded(self) -> None:
        report = render({"a.js": 1.4}, {"a.js": 66.5}, "")
        assert report.rows[0].delta_text == "+1%"
        assert report.rows[0].total_text == "67"

    def test_drop_equal_to_threshold_fails(self) -> None:
        assert render({"a.js": -2.0}, {"a.js": 10.0}, "2").passes_threshold is False

    def test_drop_within_threshold_passes(self) -> None:
        assert render({"a.js": -1.0}, {"a.js": 10.0}, "2").passes_threshold is True

    def test_threshold_sign_is_ignored(self) -> None:
        assert render({"a.js": -1.0}, {"a.js": 10.0}, "-2").passes_threshold is True

    def test_drop_rounding_to_zero_is_not_checked(self) -> None:
        assert render({"a.js": -0.4}, {"a.js": 10.0}, "0").passes_threshold is True

    def test_gains_never_fail(self) -> None:
        assert render({"a.js": 40.0}, {"a.js": 90.0}, "0").passes_threshold is True

    def test_failure_is_sticky(self) -> None:
        report = render(
            {"bad.js": -10.0, "good.js": 5.0, "fine.js": 0.0},
            {"bad.js": 10.0, "good.js": 20.0, "fine.js": 30.0},
            "1",
        )

        assert report.passes_threshold is False
        assert len(report.rows) == 3
        assert report.table.splitlines()[4] == "| fine.js | +0% | 30%"

    @pytest.mark.parametrize("threshold", ["abc", "", "nan"])
    def test_non_numeric_threshold_always_passes(self, threshold: str) -> None:
        report = render({"a.js": -90.0}, {"a.js": 10.0}, threshold)

        assert report.passes_threshold is True
        assert report.rows[0].delta_text == "-90%"

    def test_labels_never_checked(self) -> None:
        report = render({"x.js": "removed", "y.js": "renamed"}, {}, "0")
        assert report.passes_threshold is True

    def test_rows_follow_mapping_order(self) -> None:
        deltas = {"z.js": 1.0, "a.js": "added", "m.js": -1.0}
        report = render(deltas, {"z.js": 1.0, "a.js": 2.0, "m.js": 3.0}, "")
        assert [row.filename for row in report.rows] == ["z.js", "a.js", "m.js"]

    @pytest.mark.parametrize("threshold", ["2%", "2abc", "2 points"])
    def test_threshold_with_trailing_text_fails_any_drop(self, threshold: str) -> None:
        report = render({"a.js": -1.0}, {"a.js": 10.0}, threshold)
        assert report.passes_threshold is False

    def test_threshold_with_trailing_text_passes_without_drop(self) -> None:
        report = render({"a.js": 0.0, "b.js": 3.0}, {"a.js": 10.0, "b.js": 20.0}, "2%")
        assert report.passes_threshold is True

    def test_label_total_keeps_printed_text(self) -> None:
        report = render({"c.js": "added"}, {"c.js": "83.30"}, "")

        assert report.rows[0].total_text == "83.30"
        assert report.table.splitlines()[2] == "| c.js | added | 83.30%"

    def test_numeric_row_rounds_printed_total(self) -> None:
        report = render({"a.js": 2.0}, {"a.js": "90.00"}, "1")
        assert report.table.splitlines()[2] == "| a.js | +2% | 90%"
