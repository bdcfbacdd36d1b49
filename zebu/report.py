# File: zebu/report.py
# Location: zebu/zebu/report.py
"""
HTML report of a local association result, rendered with jinja2.

The report lists the run summary, the strongest positive and negative
category combinations and, for two variables, the full local association
table with cells shaded by value.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List

import numpy as np
from jinja2 import Environment, FileSystemLoader

from zebu.lassie import LassieResult, SignificanceState
from zebu.output import format_lassie, measure_name
from zebu.version import __version__

logger = logging.getLogger("zebu")


def _cell_colour(value: float, scale: float) -> str:
    """Red for co-occurrence, blue for exclusivity, white at independence."""
    if not np.isfinite(value):
        return "rgb(0, 0, 255)" if value < 0 else "rgb(255, 0, 0)"
    if scale <= 0:
        return "rgb(255, 255, 255)"
    strength = min(abs(value) / scale, 1.0)
    fade = int(round(255 * (1.0 - strength)))
    if value > 0:
        return f"rgb(255, {fade}, {fade})"
    return f"rgb({fade}, {fade}, 255)"


def _contingency_table(result: LassieResult) -> Dict[str, Any]:
    finite = result.local[np.isfinite(result.local)]
    scale = float(np.abs(finite).max()) if finite.size else 0.0
    rows = []
    for i, row_label in enumerate(result.levels[0]):
        cells = []
        for j in range(len(result.levels[1])):
            value = float(result.local[i, j])
            cell = {"value": value, "colour": _cell_colour(value, scale)}
            if result.local_p is not None:
                cell["p"] = float(result.local_p[i, j])
            cells.append(cell)
        rows.append({"label": row_label, "cells": cells})
    return {
        "row_variable": result.variables[0],
        "column_variable": result.variables[1],
        "columns": list(result.levels[1]),
        "rows": rows,
    }


def generate_html_report(result: LassieResult, output_path: str, top: int = 20) -> None:
    """
    Write an HTML report of a local association result.

    Parameters
    ----------
    result : LassieResult
        Estimation result, with or without significance test.
    output_path : str
        Path of the HTML file to write.
    top : int
        Number of strongest positive and negative combinations to list.

    Returns
    -------
    None
    """
    table = format_lassie(result)
    records: List[Dict[str, Any]] = table.to_dict(orient="records")
    positive = [r for r in records if r["local"] > 0][:top]
    negative = [r for r in reversed(records) if r["local"] < 0][:top]

    templates_dir = Path(__file__).parent / "templates"
    if not templates_dir.exists():
        raise FileNotFoundError(f"Templates directory not found at: {templates_dir}")

    env = Environment(loader=FileSystemLoader(str(templates_dir)), autoescape=True)
    template = env.get_template("report.html")

    html_content = template.render(
        version=__version__,
        measure=measure_name(result),
        global_value=result.global_value,
        n_obs=result.n_obs,
        variables=result.variables,
        levels=result.levels,
        tested=result.significance_state is not SignificanceState.NONE,
        global_p=result.global_p,
        params=result.significance_params,
        value_columns=[c for c in table.columns if c not in result.variables],
        positive=positive,
        negative=negative,
        contingency=_contingency_table(result) if result.n_variables == 2 else None,
    )

    out_path = Path(output_path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    with open(out_path, "w", encoding="utf-8") as out_f:
        out_f.write(html_content)
    logger.info(f"HTML report written to {out_path}")
