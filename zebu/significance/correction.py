# File: zebu/significance/correction.py
# Location: zebu/zebu/significance/correction.py
"""
Multiple testing correction for local association p-values.

Provides apply_correction(), a wrapper around statsmodels multipletests that
accepts p-value arrays of any shape: the cells are adjusted jointly as one
flat family and the input shape is restored. Method names follow R's
p.adjust (BH, BY, bonferroni, holm, hochberg, hommel, none; fdr is an alias
of BH) and are matched case-insensitively.
"""

from __future__ import annotations

import logging

import numpy as np
import statsmodels.stats.multitest as smm

logger = logging.getLogger("zebu")

# p.adjust name -> statsmodels method (None = no adjustment)
_CORRECTION_METHODS: dict[str, str | None] = {
    "bh": "fdr_bh",
    "fdr": "fdr_bh",
    "by": "fdr_by",
    "bonferroni": "bonferroni",
    "holm": "holm",
    "hochberg": "simes-hochberg",
    "hommel": "hommel",
    "none": None,
}


def available_methods() -> list[str]:
    """Accepted correction method names."""
    return ["BH", "fdr", "BY", "bonferroni", "holm", "hochberg", "hommel", "none"]


def resolve_method(method: str) -> str | None:
    """
    Map a p.adjust method name to its statsmodels identifier.

    Raises
    ------
    ValueError
        If the method is unknown. The message lists all accepted names.
    """
    key = str(method).strip().lower()
    if key not in _CORRECTION_METHODS:
        raise ValueError(
            f"Correction method '{method}' is not available. "
            f"Available methods: {', '.join(available_methods())}"
        )
    return _CORRECTION_METHODS[key]


def apply_correction(pvals: list[float] | np.ndarray, method: str = "BH") -> np.ndarray:
    """
    Apply multiple testing correction to an array of p-values.

    Parameters
    ----------
    pvals : array-like of float
        Raw p-values in [0, 1], any shape.
    method : str
        Correction method (see module docstring). Default: "BH"
        (Benjamini-Hochberg).

    Returns
    -------
    np.ndarray
        Corrected p-values with the shape of the input.

    Raises
    ------
    ValueError
        If the method is unknown.
    """
    sm_method = resolve_method(method)
    pvals_array = np.asarray(pvals, dtype=float)

    if pvals_array.size == 0 or sm_method is None:
        return pvals_array.copy()

    corrected: np.ndarray = smm.multipletests(pvals_array.ravel(), method=sm_method)[1]
    logger.debug(f"Applied {method} correction to {pvals_array.size} p-values")
    return corrected.reshape(pvals_array.shape)
