"""
Unit tests for estimate(), lassie() and lassie_get().
"""

from __future__ import annotations

import numpy as np
import pandas as pd
import pytest

from zebu.errors import (
    FieldNotAvailableError,
    InsufficientDataError,
    InvalidMeasureError,
    InvalidVariableError,
    UnsupportedArityError,
)
from zebu.lassie import LassieResult, SignificanceState, estimate, lassie, lassie_get
from zebu.measures import Measure

# ---------------------------------------------------------------------------
# estimate()
# ---------------------------------------------------------------------------


@pytest.mark.unit
class TestEstimate:
    """estimate() on rows of labels."""

    def test_result_fields(self, two_by_two_rows):
        result = estimate(two_by_two_rows)
        assert isinstance(result, LassieResult)
        assert result.measure is Measure.Z
        assert result.variables == ["V1", "V2"]
        assert result.levels == [("a0", "a1"), ("b0", "b1")]
        assert result.n_obs == 10
        assert result.n_variables == 2
        assert result.shape == (2, 2)
        assert result.codes.shape == (10, 2)
        assert result.significance_state is SignificanceState.NONE
        assert result.local_p is None
        assert result.global_p is None

    def test_arrays_share_shape(self, random_rows):
        result = estimate(random_rows([2, 3, 4]), measure="d")
        for arr in (
            result.observed,
            result.expected,
            result.theoretical_min,
            result.theoretical_max,
            result.local,
        ):
            assert arr.shape == (2, 3, 4)
        assert [m.size for m in result.margins] == [2, 3, 4]

    def test_custom_variable_names(self, two_by_two_rows):
        result = estimate(two_by_two_rows, variables=["smoker", "cancer"])
        assert result.variables == ["smoker", "cancer"]

    def test_variable_name_count_mismatch(self, two_by_two_rows):
        with pytest.raises(InvalidVariableError):
            estimate(two_by_two_rows, variables=["only_one"])

    def test_unknown_measure_raised_before_data_checks(self):
        with pytest.raises(InvalidMeasureError):
            estimate([], measure="foo")

    def test_npmi_with_three_variables(self, independent_rows_3d):
        with pytest.raises(UnsupportedArityError):
            estimate(independent_rows_3d, measure="npmi")

    def test_unobserved_declared_level(self, two_by_two_rows):
        with pytest.raises(InsufficientDataError):
            estimate(two_by_two_rows, levels=[["a0", "a1", "a2"], ["b0", "b1"]])

    def test_single_category_variable(self):
        with pytest.raises(InvalidVariableError):
            estimate([("a", "x"), ("a", "y"), ("a", "x")])

    def test_declared_levels_reorder_axes(self, two_by_two_rows):
        result = estimate(two_by_two_rows, levels=[["a1", "a0"], ["b0", "b1"]], measure="d")
        np.testing.assert_allclose(result.observed, [[0.1, 0.4], [0.3, 0.2]])


# ---------------------------------------------------------------------------
# lassie()
# ---------------------------------------------------------------------------


@pytest.mark.unit
class TestLassie:
    """lassie() on DataFrames."""

    def test_all_columns_with_continuous_age(self, survey_frame):
        result = lassie(survey_frame)
        assert result.variables == ["smoker", "cancer", "age"]
        assert result.shape == (2, 2, 4)
        assert result.n_obs == 300
        assert result.levels[0] == ("no", "yes")

    def test_select_by_name(self, survey_frame):
        result = lassie(survey_frame, select=["smoker", "cancer"], measure="chisq")
        assert result.variables == ["smoker", "cancer"]
        # smokers were simulated with a higher cancer rate
        assert result.local[1, 1] > 0

    def test_select_by_position(self, survey_frame):
        by_position = lassie(survey_frame, select=[0, 1])
        by_name = lassie(survey_frame, select=["smoker", "cancer"])
        assert by_position.variables == by_name.variables
        np.testing.assert_array_equal(by_position.local, by_name.local)

    def test_missing_column(self, survey_frame):
        with pytest.raises(InvalidVariableError, match="not found"):
            lassie(survey_frame, select=["smoker", "weight"])

    def test_position_out_of_range(self, survey_frame):
        with pytest.raises(InvalidVariableError, match="out of range"):
            lassie(survey_frame, select=[0, 7])

    def test_rows_with_missing_values_are_dropped(self):
        df = pd.DataFrame({"a": ["x", "y", None, "x"], "b": ["u", "v", "u", "v"]})
        result = lassie(df)
        assert result.n_obs == 3

    def test_custom_breaks(self, survey_frame):
        result = lassie(
            survey_frame, select=["smoker", "age"], breaks={"age": [20, 50, 80]}
        )
        assert result.shape == (2, 2)

    def test_breaks_override_raw_values(self):
        df = pd.DataFrame({"x": [1.0, 9.0] * 10, "y": ["a", "a", "b", "b"] * 5})
        result = lassie(df, breaks={"x": [0, 5, 10]})
        assert len(result.levels[0]) == 2
        assert result.levels[0] != ("1.0", "9.0")

    def test_default_breaks(self, survey_frame):
        result = lassie(survey_frame, select=["cancer", "age"], default_breaks=3)
        assert result.shape == (2, 3)


# ---------------------------------------------------------------------------
# lassie_get()
# ---------------------------------------------------------------------------


@pytest.mark.unit
class TestLassieGet:
    """Field access on results."""

    def test_fields_and_aliases(self, two_by_two_rows):
        result = estimate(two_by_two_rows)
        np.testing.assert_array_equal(lassie_get(result), result.local)
        np.testing.assert_array_equal(lassie_get(result, "obs"), result.observed)
        np.testing.assert_array_equal(lassie_get(result, "observed"), result.observed)
        np.testing.assert_array_equal(lassie_get(result, "exp"), result.expected)
        np.testing.assert_array_equal(lassie_get(result, "expected"), result.expected)

    def test_unknown_field(self, two_by_two_rows):
        result = estimate(two_by_two_rows)
        with pytest.raises(ValueError, match="Invalid field"):
            lassie_get(result, "global")

    def test_local_p_before_test(self, two_by_two_rows):
        result = estimate(two_by_two_rows)
        with pytest.raises(FieldNotAvailableError):
            lassie_get(result, "local_p")

    def test_local_p_after_attach(self, two_by_two_rows):
        result = estimate(two_by_two_rows)
        p = np.full((2, 2), 0.5)
        returned = result.attach_significance(
            SignificanceState.PERMUTATION, local_p=p, global_p=0.5, params={"nb": 10}
        )
        assert returned is result
        np.testing.assert_array_equal(lassie_get(result, "local_p"), p)
        assert result.significance_params == {"nb": 10}
