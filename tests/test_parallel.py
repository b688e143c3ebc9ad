"""Tests for the parallel backend helpers."""

from __future__ import annotations

import os
import subprocess
import sys
from pathlib import Path

import pytest
from joblib import Parallel, delayed

from bankruptcy.parallel import limit_native_threads, parallel_backend, resolve_n_jobs


def test_resolve_n_jobs() -> None:
    assert resolve_n_jobs(-1) == (os.cpu_count() or 1)
    assert resolve_n_jobs(None) == (os.cpu_count() or 1)
    assert resolve_n_jobs(3) == 3
    with pytest.raises(ValueError):
        resolve_n_jobs(0)
    with pytest.raises(ValueError):
        resolve_n_jobs(-4)


def test_limit_native_threads_keeps_user_values(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("OMP_NUM_THREADS", "4")
    monkeypatch.delenv("MKL_NUM_THREADS", raising=False)
    limit_native_threads()
    assert os.environ["OMP_NUM_THREADS"] == "4"
    assert os.environ["MKL_NUM_THREADS"] == "1"


def test_parallel_backend_context() -> None:
    with parallel_backend(n_jobs=2, backend="threading"):
        squares = Parallel()(delayed(pow)(i, 2) for i in range(4))
    assert squares == [0, 1, 4, 9]


def run_fresh(code: str) -> str:
    env = {k: v for k, v in os.environ.items() if not k.endswith("_NUM_THREADS")}
    env.pop("VECLIB_MAXIMUM_THREADS", None)
    root = Path(__file__).resolve().parent.parent
    env["PYTHONPATH"] = os.pathsep.join(filter(None, [str(root), env.get("PYTHONPATH")]))
    out = subprocess.run([sys.executable, "-c", code], env=env, cwd=root,
                         capture_output=True, text=True, check=True)
    return out.stdout.strip()


def test_thread_limits_precede_numpy() -> None:
    code = (
        "import sys, importlib.util\n"
        "spec = importlib.util.spec_from_file_location('p', 'bankruptcy/parallel.py')\n"
        "module = importlib.util.module_from_spec(spec)\n"
        "spec.loader.exec_module(module)\n"
        "print('numpy' in sys.modules)"
    )
    assert run_fresh(code) == "False"


def test_package_import_sets_thread_limits() -> None:
    assert run_fresh("import os, bankruptcy; print(os.environ['OMP_NUM_THREADS'])") == "1"
