# dispatch.py
# ----------------
# Routes a single Layer or a MultiLayerRaster to scale_layer, one call per layer,
# either sequentially or fanned out over a worker pool.
#
# Exposes:
#   - ExecutionMode
#   - select_execution_mode(n_layers, executor, workers)
#   - scale_raster(x, power_of, max_out, round_output, do_scaling, executor, workers)
#
# Dependencies: numpy (via scaling); concurrent.futures for the pool

# region Imports
from __future__ import annotations
import logging
import warnings
from concurrent.futures import Executor, ProcessPoolExecutor
from concurrent.futures.process import BrokenProcessPool
from concurrent.futures.thread import BrokenThreadPool
from enum import Enum
from functools import partial
from typing import Callable, Dict, List, Optional, Sequence, Union

from raster_scaler.config import DEFAULT_MAX_OUT, DEFAULT_POWER_OF
from raster_scaler.errors import ParallelBackendUnavailableWarning
from raster_scaler.models import Layer, MultiLayerRaster
from raster_scaler.scaling import (
    check_parameters,
    emit_diagnostics,
    scale_layer,
    scale_layer_with_diagnostics,
)
# endregion

logger = logging.getLogger(__name__)

_BROKEN_POOL = (BrokenProcessPool, BrokenThreadPool)


# region Execution Mode
class ExecutionMode(Enum):
    SEQUENTIAL = "sequential"
    PARALLEL = "parallel"


def select_execution_mode(
    n_layers: int,
    executor: Optional[Executor] = None,
    workers: int = 1,
) -> ExecutionMode:
    if n_layers <= 1:
        return ExecutionMode.SEQUENTIAL
    if executor is None and workers <= 1:
        return ExecutionMode.SEQUENTIAL
    return ExecutionMode.PARALLEL
# endregion


# region Runners
def _run_sequential(task: Callable, layers: Sequence[Layer]) -> list:
    return [task(lyr) for lyr in layers]


def _fallback(reason: str) -> None:
    message = f"worker pool unavailable ({reason}); running scaling sequentially"
    logger.warning(message)
    warnings.warn(
        message,
        ParallelBackendUnavailableWarning,
        stacklevel=4,
    )


def _run_in_pool(task: Callable, layers: Sequence[Layer], pool: Executor) -> Optional[list]:
    """Ordered results, or None if the pool could not take or finish the work."""
    futures = []
    try:
        for lyr in layers:
            futures.append(pool.submit(task, lyr))
    except RuntimeError as exc:  # shut down, or broken before submit
        for fut in futures:
            fut.cancel()
        _fallback(str(exc))
        return None

    try:
        return [fut.result() for fut in futures]
    except _BROKEN_POOL as exc:
        _fallback(str(exc))
        return None


def _run_parallel(
    task: Callable,
    layers: Sequence[Layer],
    executor: Optional[Executor],
    workers: int,
) -> Optional[list]:
    if executor is not None:
        return _run_in_pool(task, layers, executor)

    try:
        pool = ProcessPoolExecutor(max_workers=min(workers, len(layers)))
    except (OSError, NotImplementedError, ImportError) as exc:
        _fallback(str(exc))
        return None
    with pool:
        return _run_in_pool(task, layers, pool)
# endregion


# region Public Entry Point
def scale_raster(
    x: Union[Layer, MultiLayerRaster],
    power_of: float = DEFAULT_POWER_OF,
    max_out: float = DEFAULT_MAX_OUT,
    round_output: bool = True,
    do_scaling: bool = True,
    executor: Optional[Executor] = None,
    workers: int = 1,
    on_degenerate: str = "fallback",
) -> Union[Layer, float, MultiLayerRaster, Dict[str, float]]:
    """
    Scale a layer, or every layer of a multi-layer raster, by the largest power of
    power_of that keeps max(|min|, |max|) within max_out.

    Returns:
      Layer / float for a single Layer (scaled layer, or its factor when do_scaling is False);
      MultiLayerRaster / {name: factor} for a MultiLayerRaster, in input layer order.

    executor: optional concurrent.futures.Executor used for multi-layer inputs (not shut down).
    workers:  if > 1 and no executor is given, a process pool of this size is used for the call.
    """
    check_parameters(power_of, max_out, on_degenerate)

    if isinstance(x, Layer):
        return scale_layer(x, power_of, max_out, round_output, do_scaling, on_degenerate)
    if not isinstance(x, MultiLayerRaster):
        raise TypeError(
            f"scale_raster expects a Layer or MultiLayerRaster, got {type(x).__name__}"
        )

    # workers return their warnings; they are re-emitted here, in layer order
    task = partial(
        scale_layer_with_diagnostics,
        power_of=power_of,
        max_out=max_out,
        round_output=round_output,
        do_scaling=do_scaling,
        on_degenerate=on_degenerate,
    )
    layers: List[Layer] = x.unstack()
    mode = select_execution_mode(len(layers), executor, workers)
    logger.debug("scaling %d layer(s), mode=%s", len(layers), mode.value)

    outputs = None
    if mode is ExecutionMode.PARALLEL:
        outputs = _run_parallel(task, layers, executor, workers)
    if outputs is None:
        outputs = _run_sequential(task, layers)

    results = []
    for result, notes in outputs:
        emit_diagnostics(notes, stacklevel=2)
        results.append(result)

    if do_scaling:
        return MultiLayerRaster.stack(results, profile=x.profile)
    return {lyr.name: factor for lyr, factor in zip(layers, results)}
# endregion
