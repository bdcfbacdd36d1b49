# File: zebu/significance/chisq.py
# Location: zebu/zebu/significance/chisq.py
"""
Analytic significance test for chi-squared residuals.

Under independence each residual sqrt(N)(O - E)/sqrt(E) of a two-way table is
approximately standard normal, so the two-sided cell p-value is
2 * (1 - Phi(|r|)). The global value (the chi-squared statistic) is tested
against a chi-squared distribution with (K1 - 1)(K2 - 1) degrees of freedom.
"""

from __future__ import annotations

import logging

import numpy as np
from scipy.stats import chi2, norm

from zebu.errors import UnsupportedArityError, UnsupportedMeasureError
from zebu.lassie import LassieResult, SignificanceState
from zebu.measures import Measure
from zebu.significance.correction import apply_correction, resolve_method

logger = logging.getLogger("zebu")


def chisqtest(result: LassieResult, p_adjust: str = "BH") -> LassieResult:
    """
    Normal-approximation test of chi-squared residuals.

    Parameters
    ----------
    result : LassieResult
        Result estimated with measure 'chisq' on exactly two variables.
    p_adjust : str
        Multiple testing correction across all cells. Default: "BH".

    Returns
    -------
    LassieResult
        The same object with local_p, global_p and significance_params
        attached.

    Raises
    ------
    UnsupportedMeasureError
        If the result was not estimated with 'chisq'.
    UnsupportedArityError
        If the result does not have exactly two variables.
    ValueError
        If p_adjust is unknown.
    """
    if result.measure is not Measure.CHISQ:
        raise UnsupportedMeasureError(
            f"chisqtest requires measure 'chisq', got '{result.measure.value}'. "
            "Use permtest for other measures.",
            {"measure": result.measure.value},
        )
    if result.n_variables != 2:
        raise UnsupportedArityError("chisqtest", 2, result.n_variables)
    resolve_method(p_adjust)

    raw_p = 2.0 * norm.sf(np.abs(result.local))
    local_p = apply_correction(raw_p, p_adjust)

    dof = int(np.prod([k - 1 for k in result.shape]))
    global_p = float(chi2.sf(result.global_value, dof))

    logger.info(
        f"Chi-squared test: statistic {result.global_value:.4g} on {dof} df, "
        f"global p = {global_p:.4g}"
    )
    params = {
        "method": SignificanceState.ANALYTIC.value,
        "p_adjust": p_adjust,
        "dof": dof,
    }
    return result.attach_significance(
        SignificanceState.ANALYTIC, local_p=local_p, global_p=global_p, params=params
    )
