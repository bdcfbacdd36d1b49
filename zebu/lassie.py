# File: zebu/lassie.py
# Location: zebu/zebu/lassie.py
"""
Local association estimation.

``estimate()`` turns rows of category labels into a LassieResult holding the
observed and expected joint probabilities, the local association array and
the global association value for one measure. ``lassie()`` does the same for
a pandas DataFrame, discretizing continuous columns first. Significance
tests (zebu.significance) attach p-values to an existing result.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Sequence

import numpy as np
import pandas as pd

from zebu.errors import FieldNotAvailableError, InvalidVariableError
from zebu.measures import (
    Measure,
    global_association,
    local_association,
    resolve_measure,
    validate_measure,
)
from zebu.preprocess import discretize
from zebu.probability import (
    check_bounds,
    encode_rows,
    estimate_joint,
    estimate_marginals,
    expected_probability,
    theoretical_max_probability,
    theoretical_min_probability,
)

logger = logging.getLogger("zebu")


class SignificanceState(str, Enum):
    """Which significance test, if any, produced the p-value fields of a result."""

    NONE = "none"
    PERMUTATION = "permtest"
    ANALYTIC = "chisqtest"


@dataclass
class LassieResult:
    """
    Local association analysis of M categorical variables.

    Fields
    ------
    variables : list of str
        Variable names, one per array axis.
    levels : list of tuple
        Ordered category labels of each variable.
    measure : Measure
        Local association measure.
    n_obs : int
        Number of observations.
    margins : list of np.ndarray
        Marginal probability vector of each variable.
    observed, expected : np.ndarray
        Observed and independence joint probabilities.
    theoretical_min, theoretical_max : np.ndarray
        Elementwise bounds on joint probability given the margins.
    local : np.ndarray
        Local association values.
    global_value : float
        Global association value.
    codes : np.ndarray
        Integer-coded data of shape (n_obs, M); the permutation test shuffles
        its columns.
    significance_state : SignificanceState
        NONE until a significance test has run.
    local_p : np.ndarray | None
        Adjusted p-value of every cell.
    global_p : float | None
        p-value of the global association value.
    global_perm : np.ndarray | None
        Global values of the permuted datasets (permutation test only).
    significance_params : dict
        Test parameters (method, nb, p_adjust, seed).
    """

    variables: list[str]
    levels: list[tuple]
    measure: Measure
    n_obs: int
    margins: list[np.ndarray]
    observed: np.ndarray
    expected: np.ndarray
    theoretical_min: np.ndarray
    theoretical_max: np.ndarray
    local: np.ndarray
    global_value: float
    codes: np.ndarray = field(repr=False)
    significance_state: SignificanceState = SignificanceState.NONE
    local_p: np.ndarray | None = field(default=None, repr=False)
    global_p: float | None = None
    global_perm: np.ndarray | None = field(default=None, repr=False)
    significance_params: dict[str, Any] = field(default_factory=dict)

    @property
    def n_variables(self) -> int:
        """Number of variables (M)."""
        return len(self.variables)

    @property
    def shape(self) -> tuple[int, ...]:
        """Shape of every joint array."""
        return tuple(len(lv) for lv in self.levels)

    def attach_significance(
        self,
        state: SignificanceState,
        local_p: np.ndarray,
        global_p: float,
        params: dict[str, Any],
        global_perm: np.ndarray | None = None,
    ) -> LassieResult:
        """Record the output of a significance test and return self."""
        self.significance_state = state
        self.local_p = local_p
        self.global_p = global_p
        self.global_perm = global_perm
        self.significance_params = dict(params)
        return self


def estimate(
    rows: Iterable[Sequence[Any]],
    levels: Sequence[Sequence[Any]] | None = None,
    measure: str | Measure = "z",
    variables: Sequence[str] | None = None,
) -> LassieResult:
    """
    Estimate local and global association from rows of category labels.

    Parameters
    ----------
    rows : iterable of sequences
        N rows of M category labels each (already discretized).
    levels : sequence of sequences, optional
        Ordered category labels per variable; defaults to the sorted distinct
        labels of each column.
    measure : str or Measure
        One of d, z, pmi, npmi, npmi2, chisq. Default: z.
    variables : sequence of str, optional
        Variable names. Defaults to V1..VM.

    Returns
    -------
    LassieResult

    Raises
    ------
    InvalidMeasureError
        Unknown measure.
    InvalidVariableError
        Fewer than two variables, a variable with fewer than two categories,
        or a label outside its variable's levels.
    InsufficientDataError
        No rows, or a declared category is never observed.
    UnsupportedArityError
        npmi with M != 2.
    """
    resolved = resolve_measure(measure)
    codes, level_tuples = encode_rows(rows, levels)
    n_obs, n_vars = codes.shape

    if variables is None:
        variables = [f"V{i + 1}" for i in range(n_vars)]
    variables = [str(v) for v in variables]
    if len(variables) != n_vars:
        raise InvalidVariableError(
            f"Got {len(variables)} variable names for {n_vars} variables.",
            {"variables": variables},
        )
    validate_measure(resolved, n_vars)

    cardinalities = [len(lv) for lv in level_tuples]
    margins = estimate_marginals(codes, cardinalities, variables)
    observed = estimate_joint(codes, cardinalities)
    expected = expected_probability(margins)
    tmax = theoretical_max_probability(margins)
    tmin = theoretical_min_probability(margins)
    check_bounds(observed, expected, tmin, tmax)

    local = local_association(resolved, observed, expected, tmin, tmax, margins, n_obs)
    global_value = global_association(resolved, local, observed)

    logger.info(
        f"Local association ({resolved.value}) of {variables} on {n_obs} observations: "
        f"{observed.size} cells, global value {global_value:.6g}"
    )
    return LassieResult(
        variables=variables,
        levels=level_tuples,
        measure=resolved,
        n_obs=n_obs,
        margins=margins,
        observed=observed,
        expected=expected,
        theoretical_min=tmin,
        theoretical_max=tmax,
        local=local,
        global_value=global_value,
        codes=codes,
    )


def lassie(
    data: pd.DataFrame,
    select: Sequence[str | int] | None = None,
    measure: str | Measure = "z",
    continuous: Sequence[str] | None = None,
    breaks: dict[str, Any] | None = None,
    default_breaks: int = 4,
) -> LassieResult:
    """
    Estimate local association between columns of a DataFrame.

    Continuous columns are discretized first (see zebu.preprocess.discretize).
    Rows with a missing value in any selected column are dropped.

    Parameters
    ----------
    data : pd.DataFrame
        Input table.
    select : sequence of str or int, optional
        Column names or positions to analyse. Default: all columns.
    measure : str or Measure
        Local association measure. Default: z.
    continuous : sequence of str, optional
        Columns to discretize. Default: every numeric column with more
        distinct values than its number of bins.
    breaks : dict, optional
        Per-column number of bins or explicit bin edges.
    default_breaks : int
        Number of equal-width bins when a column has no entry in ``breaks``.

    Returns
    -------
    LassieResult

    Raises
    ------
    InvalidVariableError
        If a selected column does not exist.
    """
    if select is None:
        columns = list(data.columns)
    else:
        columns = []
        for col in select:
            if isinstance(col, int) and col not in data.columns:
                if not 0 <= col < data.shape[1]:
                    raise InvalidVariableError(
                        f"Column position {col} is out of range.", {"variable": col}
                    )
                col = data.columns[col]
            if col not in data.columns:
                raise InvalidVariableError(
                    f"Variable '{col}' not found. Available columns: {list(data.columns)}",
                    {"variable": col},
                )
            columns.append(col)

    df = data[columns]
    n_before = len(df)
    df = df.dropna()
    if len(df) < n_before:
        logger.warning(f"Dropped {n_before - len(df)} rows with missing values")

    df = discretize(df, continuous=continuous, breaks=breaks, default_breaks=default_breaks)
    n_binned = len(df)
    df = df.dropna()
    if len(df) < n_binned:
        logger.warning(f"Dropped {n_binned - len(df)} rows with values outside the bin edges")

    levels = []
    for col in df.columns:
        used = df[col].cat.remove_unused_categories()
        n_unused = len(df[col].cat.categories) - len(used.cat.categories)
        if n_unused:
            logger.debug(f"Variable '{col}': dropping {n_unused} empty categories")
        levels.append(tuple(used.cat.categories))

    rows = df.astype(str).itertuples(index=False, name=None)
    return estimate(rows, levels=levels, measure=measure, variables=[str(c) for c in df.columns])


_FIELD_ALIASES = {
    "local": "local",
    "obs": "observed",
    "observed": "observed",
    "exp": "expected",
    "expected": "expected",
    "local_p": "local_p",
}


def lassie_get(result: LassieResult, what: str = "local") -> np.ndarray:
    """
    Return one array of a LassieResult.

    Parameters
    ----------
    result : LassieResult
        Estimation result.
    what : str
        'local' (default), 'obs'/'observed', 'exp'/'expected', or 'local_p'
        (only after permtest or chisqtest).

    Raises
    ------
    ValueError
        Unknown field name.
    FieldNotAvailableError
        'local_p' requested before a significance test was run.
    """
    name = _FIELD_ALIASES.get(what)
    if name is None:
        raise ValueError(
            f"Invalid field '{what}': choose one from 'local', 'obs', 'exp', 'local_p'."
        )
    if name == "local_p" and result.significance_state is SignificanceState.NONE:
        raise FieldNotAvailableError(
            "'local_p' is only available after running permtest or chisqtest.",
            {"field": what},
        )
    return getattr(result, name)
