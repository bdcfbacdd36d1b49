# File: zebu/measures.py
# Location: zebu/zebu/measures.py
"""
Local and global association measures.

Each measure maps the observed joint probabilities O, the expected
probabilities E under independence, the theoretical bounds Tmin/Tmax, the
margins and the number of observations N to one value per category
combination (the local association array). Positive values indicate
co-occurrence, negative values mutual exclusivity, zero independence.

Measures
--------
d      : Lewontin's D, O - E
z      : Ducher's Z, D normalized by the distance to the bound in its direction
pmi    : pointwise mutual information, log(O / E)
npmi   : PMI normalized by -log(O) (Bouma 2009), two variables only
npmi2  : multivariate normalized PMI
chisq  : chi-squared residuals, sqrt(N) * (O - E) / sqrt(E)

Global values are the observed-probability weighted sum of the local values,
except for chisq where the sum of squared residuals (the chi-squared
statistic) is used.

Degenerate cells never raise: zero denominators resolve to 0, and cells with
O = 0 take the limit of the measure (-inf for pmi, -1 for npmi and npmi2).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from functools import reduce
from typing import Callable, Sequence

import numpy as np

from zebu.errors import InsufficientDataError, InvalidMeasureError, UnsupportedArityError

logger = logging.getLogger("zebu")


class Measure(str, Enum):
    """Local association measure identifiers."""

    D = "d"
    Z = "z"
    PMI = "pmi"
    NPMI = "npmi"
    NPMI2 = "npmi2"
    CHISQ = "chisq"


@dataclass(frozen=True)
class MeasureSpec:
    """
    Dispatch entry for one measure.

    Fields
    ------
    formula : callable
        (observed, expected, tmin, tmax, margins, n_obs) -> local array.
    display_name : str
        Full measure name used in outputs.
    arity : int | None
        Required number of variables, or None for any M >= 2.
    global_kind : str
        "weighted" (sum of O * local) or "sum_of_squares" (sum of local**2).
    """

    formula: Callable[..., np.ndarray]
    display_name: str
    arity: int | None = None
    global_kind: str = "weighted"


def _lewontin_d(observed, expected, tmin, tmax, margins, n_obs):
    return observed - expected


def _ducher_z(observed, expected, tmin, tmax, margins, n_obs):
    diff = observed - expected
    out = np.zeros_like(diff)
    upper = tmax - expected
    lower = expected - tmin
    # bound equal to E leaves the cell at 0
    pos = (diff > 0) & (upper > 0)
    neg = (diff < 0) & (lower > 0)
    out[pos] = diff[pos] / upper[pos]
    out[neg] = diff[neg] / lower[neg]
    return np.clip(out, -1.0, 1.0)


def _pmi(observed, expected, tmin, tmax, margins, n_obs):
    ratio = np.divide(observed, expected, out=np.zeros_like(observed), where=expected > 0)
    with np.errstate(divide="ignore"):
        return np.log(ratio)


def _self_information(p: np.ndarray) -> np.ndarray:
    with np.errstate(divide="ignore"):
        return -np.log(p)


def _npmi(observed, expected, tmin, tmax, margins, n_obs):
    pmi = _pmi(observed, expected, tmin, tmax, margins, n_obs)
    h_obs = _self_information(observed)
    out = np.zeros_like(observed)
    valid = (observed > 0) & (h_obs > 0)
    out[valid] = pmi[valid] / h_obs[valid]
    out[observed == 0] = -1.0
    return np.clip(out, -1.0, 1.0)


def _npmi_multivariate(observed, expected, tmin, tmax, margins, n_obs):
    pmi = _pmi(observed, expected, tmin, tmax, margins, n_obs)
    h_obs = _self_information(observed)
    h_margins = [_self_information(m) for m in margins]
    sum_h = reduce(np.add.outer, h_margins)
    min_h = reduce(np.minimum.outer, h_margins)

    out = np.zeros_like(observed)
    # positive branch: PMI over its largest attainable value given the margins
    span = sum_h - min_h
    pos = (pmi > 0) & (span > 0)
    out[pos] = pmi[pos] / span[pos]
    neg = (pmi < 0) & (observed > 0) & (h_obs > 0)
    out[neg] = pmi[neg] / h_obs[neg]
    out[observed == 0] = -1.0
    return np.clip(out, -1.0, 1.0)


def _chisq_residuals(observed, expected, tmin, tmax, margins, n_obs):
    out = np.zeros_like(observed)
    valid = expected > 0
    out[valid] = np.sqrt(n_obs) * (observed[valid] - expected[valid]) / np.sqrt(expected[valid])
    return out


_MEASURE_REGISTRY: dict[Measure, MeasureSpec] = {
    Measure.D: MeasureSpec(_lewontin_d, "Lewontin's D"),
    Measure.Z: MeasureSpec(_ducher_z, "Ducher's Z"),
    Measure.PMI: MeasureSpec(_pmi, "Pointwise Mutual Information"),
    Measure.NPMI: MeasureSpec(
        _npmi, "Normalized Pointwise Mutual Information (Bouma)", arity=2
    ),
    Measure.NPMI2: MeasureSpec(
        _npmi_multivariate, "Normalized Pointwise Mutual Information (Multivariate)"
    ),
    Measure.CHISQ: MeasureSpec(
        _chisq_residuals, "Chi-squared Residuals", global_kind="sum_of_squares"
    ),
}


def available_measures() -> list[str]:
    """Identifiers of all registered measures."""
    return [m.value for m in _MEASURE_REGISTRY]


def resolve_measure(measure: str | Measure) -> Measure:
    """
    Resolve a measure identifier.

    Raises
    ------
    InvalidMeasureError
        If the identifier is not registered. The message lists the available
        measures.
    """
    if isinstance(measure, Measure):
        return measure
    try:
        return Measure(str(measure).strip().lower())
    except ValueError:
        raise InvalidMeasureError(str(measure), available_measures()) from None


def get_measure_spec(measure: str | Measure) -> MeasureSpec:
    """Dispatch table entry of a measure."""
    return _MEASURE_REGISTRY[resolve_measure(measure)]


def validate_measure(measure: str | Measure, n_variables: int) -> Measure:
    """
    Resolve a measure and check that it supports ``n_variables`` variables.

    Raises
    ------
    InvalidMeasureError
        Unknown identifier.
    UnsupportedArityError
        The measure requires a fixed number of variables (npmi: 2).
    """
    resolved = resolve_measure(measure)
    arity = _MEASURE_REGISTRY[resolved].arity
    if arity is not None and n_variables != arity:
        raise UnsupportedArityError(f"measure '{resolved.value}'", arity, n_variables)
    return resolved


def local_association(
    measure: str | Measure,
    observed: np.ndarray,
    expected: np.ndarray,
    tmin: np.ndarray,
    tmax: np.ndarray,
    margins: Sequence[np.ndarray],
    n_obs: int,
) -> np.ndarray:
    """
    Compute the local association array of a measure.

    Parameters
    ----------
    measure : str or Measure
        Measure identifier.
    observed, expected, tmin, tmax : np.ndarray
        Observed and expected joint probabilities and their theoretical
        bounds, all with the same shape.
    margins : sequence of np.ndarray
        Marginal probability vectors, one per axis.
    n_obs : int
        Number of observations (used by chisq).

    Returns
    -------
    np.ndarray
        Local association values, same shape as ``observed``.
    """
    resolved = validate_measure(measure, observed.ndim)
    return _MEASURE_REGISTRY[resolved].formula(observed, expected, tmin, tmax, margins, n_obs)


def global_association(
    measure: str | Measure, local: np.ndarray, observed: np.ndarray
) -> float:
    """
    Aggregate a local association array into its global value.

    Weighted measures use sum(O * local) over cells with O > 0 (cells never
    observed carry zero weight, the 0 * log 0 = 0 convention). chisq uses
    sum(local ** 2).

    Raises
    ------
    InsufficientDataError
        If any aggregated term is not finite.
    """
    spec = get_measure_spec(measure)
    if spec.global_kind == "sum_of_squares":
        terms = local**2
    else:
        weighted = observed > 0
        terms = observed[weighted] * local[weighted]

    if not np.all(np.isfinite(terms)):
        n_bad = int(np.count_nonzero(~np.isfinite(terms)))
        raise InsufficientDataError(
            f"Global association is undefined: {n_bad} non-finite local values "
            f"for measure '{resolve_measure(measure).value}'.",
            {"non_finite_cells": n_bad},
        )
    return float(terms.sum())
