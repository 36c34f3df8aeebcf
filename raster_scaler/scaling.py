# scaling.py
# ----------------
# Per-layer scale factor computation.
#
# Exposes:
#   - check_parameters(power_of, max_out, on_degenerate)
#   - compute_scale_factor(layer_max, power_of, max_out)
#   - apply_scale_factor(layer, scale_factor, round_output)
#   - scale_layer(layer, ...)   (factor only, or the scaled Layer)
#   - scale_layer_with_diagnostics(layer, ...)   (same, warnings returned instead of raised)
#
# Dependencies: numpy

# region Imports
from __future__ import annotations
import logging
import math
import sys
import warnings
from typing import List, Tuple, Type, Union

import numpy as np

from raster_scaler.config import (
    DEFAULT_MAX_OUT,
    DEFAULT_POWER_OF,
    DEGENERATE_POLICIES,
    DEGENERATE_SCALE_FACTOR,
)
from raster_scaler.errors import (
    DegenerateLayer,
    DegenerateLayerWarning,
    InvalidParameter,
    MissingStatisticsWarning,
)
from raster_scaler.models import Layer
# endregion

logger = logging.getLogger(__name__)


# region Validation
def check_parameters(power_of: float, max_out: float, on_degenerate: str = "fallback") -> None:
    if not power_of > 1:
        raise InvalidParameter(f"power_of must be greater than 1, got {power_of!r}")
    if not max_out > 0:
        raise InvalidParameter(f"max_out must be greater than 0, got {max_out!r}")
    if on_degenerate not in DEGENERATE_POLICIES:
        raise InvalidParameter(
            f"on_degenerate must be one of {DEGENERATE_POLICIES}, got {on_degenerate!r}"
        )


def is_degenerate(layer_max: float, max_out: float) -> bool:
    """True when no power of the base can be derived from layer_max."""
    if not (math.isfinite(layer_max) and layer_max > 0):
        return True
    ratio = max_out / layer_max
    # ratio must be a normal float for log() and base ** k to be representable
    return not (math.isfinite(ratio) and ratio >= sys.float_info.min)
# endregion


# region Scale Factor
def compute_scale_factor(layer_max: float, power_of: float, max_out: float) -> float:
    """
    Largest power_of ** k (k integer, possibly negative) with layer_max * f <= max_out.

    math.log can land one ulp below an exact power (log(1000, 10) -> 2.9999999999999996),
    so the floored exponent is checked against the bound and nudged by one step.
    """
    base = float(power_of)
    exponent = math.floor(math.log(max_out / layer_max, base))
    try:
        next_fits = layer_max * base ** (exponent + 1) <= max_out
    except OverflowError:
        next_fits = False
    if next_fits:
        exponent += 1
    elif layer_max * base ** exponent > max_out:
        exponent -= 1
    return base ** exponent


def apply_scale_factor(layer: Layer, scale_factor: float, round_output: bool = True) -> Layer:
    """New layer with every cell multiplied (and optionally rounded); NaN cells stay NaN."""
    values = layer.values * scale_factor
    if round_output:
        values = np.rint(values)  # round half to even

    vmin = vmax = None
    if layer.has_min_max:
        # f > 0 and rint are monotone, so the scaled extremes are the extremes of the output
        vmin = layer.min_value * scale_factor
        vmax = layer.max_value * scale_factor
        if round_output:
            vmin, vmax = float(np.rint(vmin)), float(np.rint(vmax))

    return Layer(
        name=layer.name,
        values=values,
        min_value=vmin,
        max_value=vmax,
        scale_factor=scale_factor,
    )
# endregion


# region Layer Scaling
Diagnostic = Tuple[Type[Warning], str]


def emit_diagnostics(notes: List[Diagnostic], stacklevel: int = 2) -> None:
    """Log and warn each recorded diagnostic, in order."""
    for category, message in notes:
        logger.warning(message)
        warnings.warn(message, category, stacklevel=stacklevel + 1)


def scale_layer_with_diagnostics(
    layer: Layer,
    power_of: float = DEFAULT_POWER_OF,
    max_out: float = DEFAULT_MAX_OUT,
    round_output: bool = True,
    do_scaling: bool = True,
    on_degenerate: str = "fallback",
) -> Tuple[Union[Layer, float], List[Diagnostic]]:
    """
    scale_layer without side channels: recoverable conditions are returned as
    (category, message) pairs, so a worker process can hand them back to the caller.
    """
    check_parameters(power_of, max_out, on_degenerate)
    notes: List[Diagnostic] = []

    if not layer.has_min_max:
        notes.append((
            MissingStatisticsWarning,
            f"layer {layer.name!r}: no stored minimum and maximum values - computing them",
        ))
        layer = layer.with_min_max()

    lo, hi = layer.min_value, layer.max_value
    if math.isnan(lo) or math.isnan(hi):
        layer_max = float("nan")
    else:
        layer_max = max(abs(lo), abs(hi))

    if is_degenerate(layer_max, max_out):
        if on_degenerate == "raise":
            raise DegenerateLayer(layer.name, layer_max)
        notes.append((
            DegenerateLayerWarning,
            f"layer {layer.name!r}: maximum magnitude is {layer_max!r}, "
            f"using scale factor {DEGENERATE_SCALE_FACTOR}",
        ))
        scale_factor = DEGENERATE_SCALE_FACTOR
    else:
        scale_factor = compute_scale_factor(layer_max, power_of, max_out)

    logger.debug("layer %r: layer_max=%r scale_factor=%r", layer.name, layer_max, scale_factor)

    if not do_scaling:
        return scale_factor, notes
    return apply_scale_factor(layer, scale_factor, round_output), notes


def scale_layer(
    layer: Layer,
    power_of: float = DEFAULT_POWER_OF,
    max_out: float = DEFAULT_MAX_OUT,
    round_output: bool = True,
    do_scaling: bool = True,
    on_degenerate: str = "fallback",
) -> Union[Layer, float]:
    result, notes = scale_layer_with_diagnostics(
        layer, power_of, max_out, round_output, do_scaling, on_degenerate
    )
    emit_diagnostics(notes)
    return result
# endregion
