# File: zebu/significance/permutation.py
# Location: zebu/zebu/significance/permutation.py
"""
Permutation test for local and global association.

Each iteration shuffles the rows of every variable's column except the first,
which keeps all margins (and therefore the expected probabilities and the
theoretical bounds) unchanged while destroying the joint structure. The
observed joint array, local array and global value are recomputed on the
shuffled data. For every cell

    p = #{iterations with |permuted local| > |observed local|} / nb

where magnitudes equal up to float rounding count as ties, not exceedances,
and the global p-value is obtained the same way from the permuted global
values. Cell p-values are then adjusted jointly; the global p-value is a
family of one and is reported as is.

Every iteration draws from its own child of ``numpy.random.SeedSequence(seed)``
so a given seed yields the same p-values whatever the number of workers.
With ``workers != 1`` iterations are dispatched in chunks to a
ProcessPoolExecutor; each chunk returns private exceedance counts that are
summed in the parent.
"""

from __future__ import annotations

import concurrent.futures
import logging
import os
from typing import Sequence

import numpy as np

from zebu.errors import UnsupportedArityError, UnsupportedMeasureError
from zebu.lassie import LassieResult, SignificanceState
from zebu.measures import Measure, global_association, local_association, validate_measure
from zebu.probability import estimate_joint
from zebu.significance.correction import apply_correction, resolve_method

logger = logging.getLogger("zebu")

# Iteration chunks submitted per worker process.
_CHUNKS_PER_WORKER = 4

# Permuted magnitudes within this distance of the observed one are ties.
_TIE_RTOL = 1e-10
_TIE_ATOL = 1e-12


def _worker_initializer() -> None:
    """Request single-threaded BLAS in worker processes.

    The variables only take effect for libraries loaded after this runs, so
    forked workers that inherit an initialised numpy keep its thread pools.
    """
    os.environ["OPENBLAS_NUM_THREADS"] = "1"
    os.environ["MKL_NUM_THREADS"] = "1"
    os.environ["OMP_NUM_THREADS"] = "1"


def _exceeds(values: np.ndarray, reference: np.ndarray) -> np.ndarray:
    """Elementwise |values| > |reference| beyond float rounding."""
    reference = np.abs(reference)
    return np.abs(values) > reference + np.maximum(_TIE_RTOL * reference, _TIE_ATOL)


def _run_permutation_chunk(
    args: tuple,
) -> tuple[np.ndarray, int, np.ndarray]:
    """Run a chunk of permutation iterations.

    Module-level so ProcessPoolExecutor can pickle it.

    Parameters
    ----------
    args : tuple
        (codes, margins, expected, tmin, tmax, measure, local, global_value,
        seeds) where ``seeds`` holds one SeedSequence per iteration.

    Returns
    -------
    tuple
        (cell exceedance counts, global exceedance count, permuted global
        values in iteration order)
    """
    codes, margins, expected, tmin, tmax, measure, local, global_value, seeds = args
    cardinalities = [len(m) for m in margins]
    n_obs, n_vars = codes.shape

    counts = np.zeros(local.shape, dtype=np.int64)
    global_values = np.empty(len(seeds), dtype=float)

    permuted = codes.copy()
    for i, seed in enumerate(seeds):
        rng = np.random.default_rng(seed)
        for j in range(1, n_vars):
            permuted[:, j] = codes[rng.permutation(n_obs), j]
        observed = estimate_joint(permuted, cardinalities)
        perm_local = local_association(measure, observed, expected, tmin, tmax, margins, n_obs)
        global_values[i] = global_association(measure, perm_local, observed)
        counts += _exceeds(perm_local, local)

    global_count = int(np.count_nonzero(_exceeds(global_values, np.asarray(global_value))))
    return counts, global_count, global_values


def _chunk(seeds: Sequence[np.random.SeedSequence], n_chunks: int) -> list[list]:
    n_chunks = max(1, min(n_chunks, len(seeds)))
    bounds = np.linspace(0, len(seeds), n_chunks + 1).astype(int)
    return [list(seeds[lo:hi]) for lo, hi in zip(bounds[:-1], bounds[1:]) if hi > lo]


def permtest(
    result: LassieResult,
    nb: int = 1000,
    p_adjust: str = "BH",
    seed: int | None = None,
    workers: int = 1,
) -> LassieResult:
    """
    Permutation test of every local association value and the global value.

    Parameters
    ----------
    result : LassieResult
        Output of zebu.lassie.estimate() or zebu.lassie.lassie().
    nb : int
        Number of permutation iterations. Default: 1000.
    p_adjust : str
        Multiple testing correction across all cells. Default: "BH".
    seed : int, optional
        Seed for reproducible permutations.
    workers : int
        Worker processes. 1 (default) runs sequentially, -1 uses
        os.cpu_count().

    Returns
    -------
    LassieResult
        The same object with local_p, global_p, global_perm and
        significance_params attached.

    Raises
    ------
    ValueError
        If nb < 1 or p_adjust is unknown.
    UnsupportedMeasureError
        If the measure of the result does not support its number of variables.
    """
    if isinstance(nb, bool) or not isinstance(nb, (int, np.integer)) or nb < 1:
        raise ValueError(f"nb must be a positive integer, got {nb!r}")
    nb = int(nb)
    resolve_method(p_adjust)
    try:
        measure: Measure = validate_measure(result.measure, result.n_variables)
    except UnsupportedArityError as e:
        raise UnsupportedMeasureError(
            f"Permutation test is not available for measure '{result.measure.value}' "
            f"with {result.n_variables} variables: {e}",
            e.details,
        ) from e

    seeds = np.random.SeedSequence(seed).spawn(nb)
    shared = (
        result.codes,
        result.margins,
        result.expected,
        result.theoretical_min,
        result.theoretical_max,
        measure,
        result.local,
        result.global_value,
    )

    n_workers = (os.cpu_count() or 1) if workers == -1 else max(1, int(workers))
    # Don't over-provision workers for small iteration counts
    if nb < n_workers * 2:
        n_workers = max(1, nb // 2)

    logger.info(
        f"Permutation test: {nb} iterations on {result.local.size} cells "
        f"({measure.value}, {n_workers} worker{'s' if n_workers > 1 else ''})"
    )

    counts = np.zeros(result.local.shape, dtype=np.int64)
    global_count = 0
    global_chunks: list[np.ndarray] = []

    if n_workers == 1:
        chunk_counts, global_count, global_values = _run_permutation_chunk((*shared, seeds))
        counts += chunk_counts
        global_chunks.append(global_values)
    else:
        chunks = _chunk(seeds, n_workers * _CHUNKS_PER_WORKER)
        args_list = [(*shared, chunk) for chunk in chunks]
        with concurrent.futures.ProcessPoolExecutor(
            max_workers=n_workers,
            initializer=_worker_initializer,
        ) as executor:
            for i, (chunk_counts, chunk_global, global_values) in enumerate(
                executor.map(_run_permutation_chunk, args_list)
            ):
                counts += chunk_counts
                global_count += chunk_global
                global_chunks.append(global_values)
                logger.debug(f"Permutation chunk {i + 1}/{len(chunks)} merged")

    raw_p = counts / nb
    local_p = apply_correction(raw_p, p_adjust)
    global_p = global_count / nb

    n_sig = int(np.count_nonzero(local_p < 0.05))
    logger.info(
        f"Permutation test complete: global p = {global_p:.4g}, "
        f"{n_sig}/{local_p.size} cells with adjusted p < 0.05"
    )

    params = {
        "method": SignificanceState.PERMUTATION.value,
        "nb": nb,
        "p_adjust": p_adjust,
        "seed": seed,
        "workers": n_workers,
    }
    return result.attach_significance(
        SignificanceState.PERMUTATION,
        local_p=local_p,
        global_p=global_p,
        params=params,
        global_perm=np.concatenate(global_chunks),
    )
