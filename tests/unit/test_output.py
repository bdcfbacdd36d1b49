"""
Unit tests for tabular output: measure names, long-format tables, the
commented header and file writing.
"""

from __future__ import annotations

import io

import pandas as pd
import pytest

from zebu.lassie import estimate
from zebu.measures import Measure
from zebu.output import format_lassie, generate_comments, measure_name, write_lassie
from zebu.significance import chisqtest, permtest
from zebu.version import __version__


@pytest.mark.unit
class TestMeasureName:
    """measure_name() resolves results, enum members and identifiers."""

    def test_from_result(self, two_by_two_rows):
        assert measure_name(estimate(two_by_two_rows, measure="pmi")) == (
            "Pointwise Mutual Information"
        )

    def test_from_identifier(self):
        assert measure_name("z") == "Ducher's Z"
        assert measure_name(Measure.CHISQ) == "Chi-squared Residuals"


@pytest.mark.unit
class TestFormatLassie:
    """Long-format table layout."""

    def test_columns_without_test(self, two_by_two_rows):
        frame = format_lassie(estimate(two_by_two_rows))
        assert list(frame.columns) == ["V1", "V2", "local", "obs", "exp"]
        assert len(frame) == 4

    def test_rows_sorted_by_local(self, two_by_two_rows):
        frame = format_lassie(estimate(two_by_two_rows, measure="d"))
        assert frame["local"].is_monotonic_decreasing

    def test_labels_match_values(self, two_by_two_rows):
        frame = format_lassie(estimate(two_by_two_rows, measure="d"))
        row = frame[(frame["V1"] == "a1") & (frame["V2"] == "b0")].iloc[0]
        assert row["obs"] == pytest.approx(0.1)
        assert row["exp"] == pytest.approx(0.2)
        assert row["local"] == pytest.approx(-0.1)

    def test_local_p_column_after_test(self, two_by_two_rows):
        result = permtest(estimate(two_by_two_rows), nb=20, seed=0)
        frame = format_lassie(result)
        assert list(frame.columns) == ["V1", "V2", "local", "obs", "exp", "local_p"]

    def test_three_variables(self, independent_rows_3d):
        frame = format_lassie(estimate(independent_rows_3d), what=("local",))
        assert list(frame.columns) == ["V1", "V2", "V3", "local"]
        assert len(frame) == 8


@pytest.mark.unit
class TestGenerateComments:
    """Commented header lines."""

    def test_without_test(self, two_by_two_rows):
        result = estimate(two_by_two_rows, measure="d")
        lines = generate_comments(result).split("\n")
        assert lines[0].startswith(f"# File generated by zebu {__version__}")
        assert "# Name of association measure: Lewontin's D" in lines
        assert f"# Global association value: {result.global_value}" in lines
        assert all(line.startswith("#") for line in lines)
        assert not any("p-value" in line for line in lines)

    def test_with_permutation_test(self, two_by_two_rows):
        result = permtest(estimate(two_by_two_rows), nb=30, p_adjust="holm", seed=1)
        header = generate_comments(result)
        assert "# Permutation test parameters" in header
        assert "# Number of iterations: 30" in header
        assert "# P-value adjustment method: holm" in header
        assert f"# Global association p-value: {result.global_p}" in header

    def test_with_chisq_test(self, two_by_two_rows):
        result = chisqtest(estimate(two_by_two_rows, measure="chisq"))
        header = generate_comments(result)
        assert "# Chi-squared test parameters" in header
        assert "# Degrees of freedom: 1" in header


@pytest.mark.unit
class TestWriteLassie:
    """write_lassie() to streams and files."""

    def test_to_stream(self, two_by_two_rows):
        buffer = io.StringIO()
        write_lassie(estimate(two_by_two_rows), buffer)
        text = buffer.getvalue()
        assert text.startswith("# File generated by zebu")
        assert "V1,V2,local,obs,exp" in text

    def test_to_file_round_trip(self, two_by_two_rows, tmp_path):
        out = tmp_path / "nested" / "result.tsv"
        write_lassie(estimate(two_by_two_rows, measure="d"), out, sep="\t")
        frame = pd.read_csv(out, sep="\t", comment="#")
        assert list(frame.columns) == ["V1", "V2", "local", "obs", "exp"]
        assert frame["obs"].sum() == pytest.approx(1.0)
