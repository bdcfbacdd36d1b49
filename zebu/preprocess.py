# File: zebu/preprocess.py
# Location: zebu/zebu/preprocess.py
"""
Discretization of input columns into category labels.

Continuous columns are binned with pandas.cut, either into equal-width
intervals or along explicit edges; every other column is converted to string
labels. The result holds one pandas Categorical per column whose category
order is the level order used by the estimator (interval order for binned
columns, existing order for categorical columns, sorted labels otherwise).
"""

from __future__ import annotations

import logging
from typing import Any, Sequence

import pandas as pd

from zebu.errors import InvalidVariableError

logger = logging.getLogger("zebu")


def _n_bins(spec: Any) -> int:
    if isinstance(spec, int):
        return spec
    return max(len(spec) - 1, 0)


def _is_continuous(series: pd.Series, n_bins: int) -> bool:
    if pd.api.types.is_bool_dtype(series) or not pd.api.types.is_numeric_dtype(series):
        return False
    return series.nunique(dropna=True) > n_bins


def discretize(
    df: pd.DataFrame,
    continuous: Sequence[str] | None = None,
    breaks: dict[str, Any] | None = None,
    default_breaks: int = 4,
) -> pd.DataFrame:
    """
    Convert every column of a DataFrame to categorical labels.

    Parameters
    ----------
    df : pd.DataFrame
        Input table.
    continuous : sequence of str, optional
        Columns to bin. Default: numeric (non-boolean) columns having more
        distinct values than bins. Columns named in ``breaks`` are binned in
        either case.
    breaks : dict, optional
        Column name -> number of equal-width bins or explicit bin edges.
    default_breaks : int
        Number of equal-width bins for continuous columns missing from
        ``breaks``. Default: 4.

    Returns
    -------
    pd.DataFrame
        Same index and columns; every column is a Categorical of strings.
        Values outside explicit edges become missing.

    Raises
    ------
    InvalidVariableError
        If a column named in ``continuous`` or ``breaks`` does not exist, or
        is not numeric.
    """
    breaks = dict(breaks or {})
    for col in list(breaks) + list(continuous or []):
        if col not in df.columns:
            raise InvalidVariableError(
                f"Variable '{col}' not found. Available columns: {list(df.columns)}",
                {"variable": col},
            )

    if continuous is None:
        continuous = [
            col
            for col in df.columns
            if _is_continuous(df[col], _n_bins(breaks.get(col, default_breaks)))
        ]
    # columns with explicit breaks are always binned
    continuous = set(continuous) | set(breaks)

    out = {}
    for col in df.columns:
        values = df[col]
        if col in continuous:
            if not pd.api.types.is_numeric_dtype(values):
                raise InvalidVariableError(
                    f"Variable '{col}' is not numeric and cannot be discretized.",
                    {"variable": col},
                )
            spec = breaks.get(col, default_breaks)
            binned = pd.cut(values, bins=spec, include_lowest=True)
            binned = binned.cat.rename_categories([str(c) for c in binned.cat.categories])
            n_outside = int(binned.isna().sum() - values.isna().sum())
            if n_outside:
                logger.warning(f"Variable '{col}': {n_outside} values fall outside the bin edges")
            logger.debug(f"Variable '{col}' discretized into {len(binned.cat.categories)} bins")
            out[col] = binned
        elif isinstance(values.dtype, pd.CategoricalDtype):
            out[col] = values.cat.rename_categories([str(c) for c in values.cat.categories])
        else:
            labels = values.astype(str).where(values.notna())
            categories = None
            if pd.api.types.is_numeric_dtype(values) and not pd.api.types.is_bool_dtype(values):
                # numeric order, not lexicographic
                categories = [str(v) for v in sorted(values.dropna().unique())]
            out[col] = pd.Series(pd.Categorical(labels, categories=categories), index=df.index)

    return pd.DataFrame(out, index=df.index, columns=df.columns)
