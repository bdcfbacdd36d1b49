# File: zebu/output.py
# Location: zebu/zebu/output.py
"""
Tabular output of local association results.

Turns a LassieResult into a long-format DataFrame (one row per category
combination) and writes it as delimited text preceded by a commented header
describing the measure, the global value and the significance test.
"""

from __future__ import annotations

import datetime
import logging
from pathlib import Path
from typing import IO, Sequence

import pandas as pd

from zebu.lassie import LassieResult, SignificanceState, lassie_get
from zebu.measures import Measure, get_measure_spec
from zebu.version import __version__

logger = logging.getLogger("zebu")

_DEFAULT_FIELDS = ("local", "obs", "exp", "local_p")


def measure_name(measure: LassieResult | Measure | str) -> str:
    """Full name of the measure of a result (or of a measure identifier)."""
    if isinstance(measure, LassieResult):
        measure = measure.measure
    return get_measure_spec(measure).display_name


def format_lassie(
    result: LassieResult, what: Sequence[str] = _DEFAULT_FIELDS
) -> pd.DataFrame:
    """
    Long-format table of a result.

    Parameters
    ----------
    result : LassieResult
        Estimation result.
    what : sequence of str
        Value columns to include among 'local', 'obs', 'exp', 'local_p'.
        'local_p' is left out when no significance test has been run.

    Returns
    -------
    pd.DataFrame
        One column per variable holding the category labels, then one column
        per requested field; rows sorted by decreasing local association.
    """
    index = pd.MultiIndex.from_product(result.levels, names=result.variables)
    frame = index.to_frame(index=False)
    for name in what:
        if name == "local_p" and result.significance_state is SignificanceState.NONE:
            continue
        # product order matches C-order ravel
        frame[name] = lassie_get(result, name).ravel()

    if "local" in frame.columns:
        frame = frame.sort_values("local", ascending=False, kind="stable").reset_index(drop=True)
    return frame


def generate_comments(result: LassieResult) -> str:
    """Commented header describing a result, one '#' line per item."""
    lines = [
        f"# File generated by zebu {__version__} ({datetime.datetime.now().isoformat(timespec='seconds')})",
        "#",
        f"# Name of association measure: {measure_name(result)}",
        f"# Global association value: {result.global_value}",
    ]
    if result.significance_state is not SignificanceState.NONE:
        params = result.significance_params
        lines.append("#")
        if result.significance_state is SignificanceState.PERMUTATION:
            lines.append("# Permutation test parameters")
            lines.append(f"# Number of iterations: {params.get('nb')}")
        else:
            lines.append("# Chi-squared test parameters")
            lines.append(f"# Degrees of freedom: {params.get('dof')}")
        lines.append(f"# P-value adjustment method: {params.get('p_adjust')}")
        lines.append(f"# Global association p-value: {result.global_p}")
    lines.append("#")
    return "\n".join(lines)


def write_lassie(
    result: LassieResult,
    path: str | Path | IO[str],
    sep: str = ",",
    what: Sequence[str] = _DEFAULT_FIELDS,
) -> None:
    """
    Write a result as delimited text with a commented header.

    Parameters
    ----------
    result : LassieResult
        Estimation result.
    path : str, Path or text stream
        Output file, or an open text stream (e.g. sys.stdout).
    sep : str
        Field delimiter. Default: ",".
    what : sequence of str
        Value columns, see format_lassie().
    """
    frame = format_lassie(result, what)
    header = generate_comments(result) + "\n"

    if hasattr(path, "write"):
        path.write(header)
        frame.to_csv(path, sep=sep, index=False)
        return

    out_path = Path(path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    with open(out_path, "w", encoding="utf-8", newline="") as out_f:
        out_f.write(header)
        frame.to_csv(out_f, sep=sep, index=False)
    logger.info(f"Wrote {len(frame)} rows to {out_path}")
