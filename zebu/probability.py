# File: zebu/probability.py
# Location: zebu/zebu/probability.py
"""
Marginal, joint and bound probabilities for categorical variables.

Provides:
- encode_rows(): map rows of category labels to integer codes
- estimate_marginals(): one probability vector per variable (count / N)
- estimate_joint(): M-dimensional observed joint probability array
- expected_probability(): joint array under full mutual independence
- theoretical_max_probability() / theoretical_min_probability(): elementwise
  bounds on any joint probability compatible with the marginals
- check_bounds(): verify tmin <= expected, observed <= tmax

All arrays are indexed in variable order with one axis per variable; axis i
has the length of the i-th variable's level tuple.
"""

from __future__ import annotations

import logging
from functools import reduce
from typing import Any, Iterable, Sequence

import numpy as np

from zebu.errors import InsufficientDataError, InvalidVariableError, ZebuError

logger = logging.getLogger("zebu")

# Float tolerance for the bound invariant.
_BOUND_ATOL = 1e-12


def _default_levels(column: Sequence[Any]) -> tuple:
    distinct = set(column)
    try:
        return tuple(sorted(distinct))
    except TypeError:
        # mixed label types
        return tuple(sorted(distinct, key=str))


def encode_rows(
    rows: Iterable[Sequence[Any]],
    levels: Sequence[Sequence[Any]] | None = None,
) -> tuple[np.ndarray, list[tuple]]:
    """
    Map rows of category labels to an integer code matrix.

    Parameters
    ----------
    rows : iterable of sequences
        N rows, each holding the labels of the M selected variables.
    levels : sequence of sequences, optional
        Ordered category labels per variable. Defaults to the sorted distinct
        labels of each column.

    Returns
    -------
    tuple of (np.ndarray, list of tuple)
        Integer codes of shape (N, M) and the level tuple of each variable.

    Raises
    ------
    InsufficientDataError
        If there are no rows.
    InvalidVariableError
        If rows are ragged, fewer than two variables are given, a variable has
        fewer than two levels, or a label is not among its variable's levels.
    """
    table = [tuple(row) for row in rows]
    if not table:
        raise InsufficientDataError("No observations: at least one row is required.", {"n_obs": 0})

    n_vars = len(table[0])
    if any(len(row) != n_vars for row in table):
        raise InvalidVariableError("All rows must hold one label per variable.")
    if n_vars < 2:
        raise InvalidVariableError(
            f"At least two variables are required, got {n_vars}.", {"n_variables": n_vars}
        )

    columns = list(zip(*table))
    if levels is None:
        levels = [_default_levels(col) for col in columns]
    elif len(levels) != n_vars:
        raise InvalidVariableError(
            f"Got levels for {len(levels)} variables but rows hold {n_vars}.",
            {"n_variables": n_vars},
        )

    level_tuples = [tuple(lv) for lv in levels]
    codes = np.empty((len(table), n_vars), dtype=np.intp)
    for j, (col, lv) in enumerate(zip(columns, level_tuples)):
        if len(set(lv)) != len(lv):
            raise InvalidVariableError(f"Variable {j} has duplicated levels.", {"variable": j})
        index = {label: i for i, label in enumerate(lv)}
        try:
            codes[:, j] = [index[label] for label in col]
        except KeyError as e:
            raise InvalidVariableError(
                f"Label {e.args[0]!r} of variable {j} is not one of its levels {list(lv)}.",
                {"variable": j, "label": e.args[0]},
            ) from None

    check_cardinalities([len(lv) for lv in level_tuples])
    return codes, level_tuples


def check_cardinalities(cardinalities: Sequence[int], names: Sequence[str] | None = None) -> None:
    """Raise InvalidVariableError unless every variable has at least two categories."""
    for i, k in enumerate(cardinalities):
        if k < 2:
            name = names[i] if names is not None else i
            raise InvalidVariableError(
                f"Variable {name!r} has {k} categories; at least 2 are required.",
                {"variable": name, "cardinality": k},
            )


def estimate_marginals(
    codes: np.ndarray,
    cardinalities: Sequence[int],
    names: Sequence[str] | None = None,
) -> list[np.ndarray]:
    """
    Estimate the marginal probability vector of every variable.

    Parameters
    ----------
    codes : np.ndarray
        Integer codes of shape (N, M).
    cardinalities : sequence of int
        Number of categories of each variable.
    names : sequence of str, optional
        Variable names, used in error messages.

    Returns
    -------
    list of np.ndarray
        One vector per variable, each summing to 1.

    Raises
    ------
    InsufficientDataError
        If N is 0 or a category is never observed.
    """
    n_obs = codes.shape[0]
    if n_obs == 0:
        raise InsufficientDataError("No observations: at least one row is required.", {"n_obs": 0})
    check_cardinalities(cardinalities, names)

    margins = []
    for j, k in enumerate(cardinalities):
        counts = np.bincount(codes[:, j], minlength=k)
        if (counts == 0).any():
            name = names[j] if names is not None else j
            missing = np.flatnonzero(counts == 0).tolist()
            raise InsufficientDataError(
                f"Variable {name!r} has unobserved categories at positions {missing}; "
                "their marginal probability would be 0.",
                {"variable": name, "unobserved": missing},
            )
        margins.append(counts / n_obs)
    return margins


def estimate_joint(codes: np.ndarray, cardinalities: Sequence[int]) -> np.ndarray:
    """
    Estimate the observed joint probability array from co-occurrence counts.

    Parameters
    ----------
    codes : np.ndarray
        Integer codes of shape (N, M).
    cardinalities : sequence of int
        Number of categories of each variable.

    Returns
    -------
    np.ndarray
        Array of shape ``tuple(cardinalities)`` summing to 1.
    """
    n_obs = codes.shape[0]
    if n_obs == 0:
        raise InsufficientDataError("No observations: at least one row is required.", {"n_obs": 0})
    shape = tuple(int(k) for k in cardinalities)
    flat = np.ravel_multi_index(tuple(codes.T), shape)
    counts = np.bincount(flat, minlength=int(np.prod(shape)))
    return counts.reshape(shape) / n_obs


def expected_probability(margins: Sequence[np.ndarray]) -> np.ndarray:
    """Joint probabilities under mutual independence: outer product of all margins."""
    return reduce(np.multiply.outer, margins)


def theoretical_max_probability(margins: Sequence[np.ndarray]) -> np.ndarray:
    """Upper bound on joint probability: min_i p(x_i) broadcast to the full shape."""
    return reduce(np.minimum.outer, margins)


def theoretical_min_probability(margins: Sequence[np.ndarray]) -> np.ndarray:
    """
    Lower bound on joint probability: max(0, sum_i p(x_i) - (M - 1)).

    Follows from inclusion-exclusion (Frechet lower bound) and holds for any
    joint distribution with the given marginals.
    """
    n_vars = len(margins)
    out = reduce(np.add.outer, margins) - (n_vars - 1)
    out[out < 0] = 0.0
    return out


def check_bounds(
    observed: np.ndarray,
    expected: np.ndarray,
    tmin: np.ndarray,
    tmax: np.ndarray,
    atol: float = _BOUND_ATOL,
) -> None:
    """
    Verify that tmin <= expected <= tmax and tmin <= observed <= tmax.

    Raises
    ------
    ZebuError
        On violation. This can only happen through a computation defect, so
        it is not one of the user-facing error categories.
    """
    for label, arr in (("expected", expected), ("observed", observed)):
        below = arr < tmin - atol
        above = arr > tmax + atol
        if below.any() or above.any():
            raise ZebuError(
                f"{label} probabilities violate their theoretical bounds "
                f"({int(below.sum())} cells below minimum, {int(above.sum())} above maximum).",
                {"array": label},
            )
    logger.debug(f"Bounds verified on {observed.size} cells")
