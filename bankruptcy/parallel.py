"""
Parallel Backend Configuration

Grid search runs candidate fits in joblib worker processes. Each worker would
otherwise start its own OpenMP/BLAS thread pool (XGBoost, LightGBM, NumPy),
so native threads are limited to one per worker before the heavy libraries
spin up.
"""

import logging
import os
from typing import Optional

logger = logging.getLogger(__name__)

_THREAD_LIMITS = {
    "OMP_NUM_THREADS": "1",
    "OPENBLAS_NUM_THREADS": "1",
    "MKL_NUM_THREADS": "1",
    "VECLIB_MAXIMUM_THREADS": "1",
    "NUMEXPR_NUM_THREADS": "1",
}


def limit_native_threads() -> None:
    """
    Limit native thread pools to one thread each.

    Existing environment values win, so a user can still opt into
    multi-threaded BLAS by exporting the variables before launching.
    """
    for key, value in _THREAD_LIMITS.items():
        os.environ.setdefault(key, value)


def resolve_n_jobs(n_jobs: Optional[int]) -> int:
    """
    Translate an n_jobs setting into a concrete worker count.

    Args:
        n_jobs: -1 or None for all cores, otherwise a positive count

    Returns:
        Number of workers
    """
    if n_jobs is None or n_jobs == -1:
        return os.cpu_count() or 1
    if n_jobs == 0 or n_jobs < -1:
        raise ValueError(f"n_jobs must be -1 or a positive integer, got {n_jobs}")
    return int(n_jobs)


def parallel_backend(n_jobs: Optional[int] = -1, backend: str = "loky"):
    """
    Context manager declaring the joblib backend used by grid search.

    Usage:
        with parallel_backend(n_jobs=4):
            trainer.train_model(...)
    """
    # deferred: joblib loads numpy, which must start after limit_native_threads()
    from joblib import parallel_config

    workers = resolve_n_jobs(n_jobs)
    logger.info(f"Using joblib backend '{backend}' with {workers} workers")
    return parallel_config(backend=backend, n_jobs=workers)
