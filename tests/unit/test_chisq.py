"""
Unit tests for the analytic chi-squared residual test.
"""

from __future__ import annotations

import numpy as np
import pytest
from scipy.stats import chi2_contingency, norm

from zebu.errors import UnsupportedArityError, UnsupportedMeasureError
from zebu.lassie import SignificanceState, estimate
from zebu.significance.chisq import chisqtest


def _counts_to_rows(counts):
    rows = []
    for i, row in enumerate(counts):
        for j, n in enumerate(row):
            rows.extend([(f"a{i}", f"b{j}")] * n)
    return rows


@pytest.mark.unit
class TestChisqtest:
    """chisqtest() p-values and validation."""

    def test_cell_p_values_are_two_sided_normal(self, two_by_two_rows):
        result = chisqtest(estimate(two_by_two_rows, measure="chisq"), p_adjust="none")
        expected = 2 * norm.sf(np.abs(result.local))
        np.testing.assert_allclose(result.local_p, expected)
        assert result.significance_state is SignificanceState.ANALYTIC

    def test_cell_p_values_are_adjusted(self, two_by_two_rows):
        raw = chisqtest(estimate(two_by_two_rows, measure="chisq"), p_adjust="none").local_p
        adjusted = chisqtest(
            estimate(two_by_two_rows, measure="chisq"), p_adjust="bonferroni"
        ).local_p
        np.testing.assert_allclose(adjusted, np.minimum(raw * 4, 1.0))

    def test_global_matches_pearson_chi_squared(self):
        counts = np.array([[30, 10, 20], [15, 25, 20]])
        result = chisqtest(estimate(_counts_to_rows(counts), measure="chisq"))
        statistic, p_value, dof, _ = chi2_contingency(counts, correction=False)
        assert result.global_value == pytest.approx(statistic)
        assert result.global_p == pytest.approx(p_value)
        assert result.significance_params == {"method": "chisqtest", "p_adjust": "BH", "dof": dof}

    def test_rejects_other_measures(self, two_by_two_rows):
        with pytest.raises(UnsupportedMeasureError, match="chisq"):
            chisqtest(estimate(two_by_two_rows, measure="z"))

    def test_rejects_more_than_two_variables(self, independent_rows_3d):
        with pytest.raises(UnsupportedArityError, match="requires exactly 2 variables, got 3"):
            chisqtest(estimate(independent_rows_3d, measure="chisq"))

    def test_unknown_p_adjust(self, two_by_two_rows):
        result = estimate(two_by_two_rows, measure="chisq")
        with pytest.raises(ValueError):
            chisqtest(result, p_adjust="magic")
        assert result.significance_state is SignificanceState.NONE
