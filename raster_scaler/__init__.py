"""Integer power-of-N scale factors for raster layers."""

from raster_scaler.dispatch import ExecutionMode, scale_raster, select_execution_mode
from raster_scaler.errors import (
    DegenerateLayer,
    DegenerateLayerWarning,
    InvalidParameter,
    MissingStatisticsWarning,
    ParallelBackendUnavailableWarning,
    ScalingError,
    ScalingWarning,
)
from raster_scaler.models import Layer, MultiLayerRaster
from raster_scaler.raster_io import read_raster, write_raster
from raster_scaler.scaling import compute_scale_factor, scale_layer

__version__ = "0.1.0"

__all__ = [
    "DegenerateLayer",
    "DegenerateLayerWarning",
    "ExecutionMode",
    "InvalidParameter",
    "Layer",
    "MissingStatisticsWarning",
    "MultiLayerRaster",
    "ParallelBackendUnavailableWarning",
    "ScalingError",
    "ScalingWarning",
    "compute_scale_factor",
    "read_raster",
    "scale_layer",
    "scale_raster",
    "select_execution_mode",
    "write_raster",
]
