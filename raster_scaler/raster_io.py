# raster_io.py
# ----------------
# GeoTIFF <-> MultiLayerRaster.
#
# Exposes:
#   - read_raster(path, bands=None)
#   - write_raster(raster, path, dtype="int16", nodata=None)
#
# Dependencies: numpy, rasterio

from __future__ import annotations
import logging
from pathlib import Path
from typing import Optional, Sequence
import numpy as np
import rasterio

from raster_scaler.config import DEFAULT_OUTPUT_DTYPE, OUTPUT_DTYPES, STATS_MAX_TAG, STATS_MIN_TAG
from raster_scaler.models import Layer, MultiLayerRaster

logger = logging.getLogger(__name__)


# -----------------------------
# Utilities
# -----------------------------

def _tag_float(tags: dict, key: str) -> Optional[float]:
    """Parse a GDAL statistics tag; None when absent or unparsable."""
    raw = tags.get(key)
    if raw is None:
        return None
    try:
        return float(raw)
    except (TypeError, ValueError):
        logger.debug("ignoring unparsable %s=%r", key, raw)
        return None

def default_nodata(dtype: str) -> int:
    info = np.iinfo(np.dtype(dtype))
    return int(info.min) if info.min < 0 else int(info.max)

def _check_fits(raster: MultiLayerRaster, dtype: str, nodata: int) -> None:
    info = np.iinfo(np.dtype(dtype))
    for lyr in raster:
        present = lyr.values[~np.isnan(lyr.values)]
        if present.size == 0:
            continue
        lo, hi = float(np.min(present)), float(np.max(present))
        if lo < info.min or hi > info.max:
            raise ValueError(
                f"Layer {lyr.name!r} spans [{lo}, {hi}], which does not fit {dtype} "
                f"[{info.min}, {info.max}]. Scale it first or pick a wider dtype."
            )
        if np.any(present != np.rint(present)):
            raise ValueError(
                f"Layer {lyr.name!r} has non-integer values, which {dtype} would truncate. "
                "Scale it with rounding first."
            )
        if np.any(present == nodata):
            logger.warning(
                "layer %r contains the nodata value %d; those cells will read back as missing",
                lyr.name, nodata,
            )


# -----------------------------
# Reader
# -----------------------------

def read_raster(path, bands: Optional[Sequence[int]] = None) -> MultiLayerRaster:
    """
    Load bands of a raster file as float64 layers.

    Args:
      path:  any file rasterio can open.
      bands: 1-based band indexes (None = all bands, in file order).

    Returns:
      MultiLayerRaster; nodata cells are NaN, names come from band descriptions,
      and GDAL cached statistics (if any) populate min/max.
    """
    path = Path(path)
    with rasterio.open(path) as ds:
        indexes = list(bands) if bands else list(ds.indexes)
        for b in indexes:
            if b not in ds.indexes:
                raise ValueError(f"{path} has bands {list(ds.indexes)}, band {b} requested.")

        profile = ds.profile.copy()
        layers = []
        for b in indexes:
            arr = ds.read(b).astype(np.float64)

            nodata = ds.nodatavals[b - 1]
            if nodata is not None and not np.isnan(nodata):
                arr = np.where(arr == nodata, np.nan, arr)

            name = ds.descriptions[b - 1] or f"{path.stem}_{b}"
            tags = ds.tags(b)
            layers.append(Layer(
                name=name,
                values=arr,
                min_value=_tag_float(tags, STATS_MIN_TAG),
                max_value=_tag_float(tags, STATS_MAX_TAG),
            ))

    logger.debug("read %d band(s) from %s", len(layers), path)
    return MultiLayerRaster(layers, profile=profile)


# -----------------------------
# Writer
# -----------------------------

def write_raster(
    raster: MultiLayerRaster,
    path,
    dtype: str = DEFAULT_OUTPUT_DTYPE,
    nodata: Optional[int] = None,
) -> Path:
    """
    Write a (scaled) raster as an integer GeoTIFF.

    NaN cells are written as nodata. Each band gets its layer name as description,
    STATISTICS_* tags, and scale = 1 / scale_factor so readers applying band scales
    recover the original units.
    """
    if dtype not in OUTPUT_DTYPES:
        raise ValueError(f"dtype must be one of {OUTPUT_DTYPES}, got {dtype!r}")
    if nodata is None:
        nodata = default_nodata(dtype)
    _check_fits(raster, dtype, nodata)

    H, W = raster.shape
    profile = dict(raster.profile or {})
    profile.update(
        driver="GTiff",
        height=H,
        width=W,
        count=len(raster),
        dtype=dtype,
        nodata=nodata,
    )

    path = Path(path)
    with rasterio.open(path, "w", **profile) as dst:
        for b, lyr in enumerate(raster, start=1):
            out = np.where(np.isnan(lyr.values), nodata, lyr.values).astype(dtype)
            dst.write(out, b)
            dst.set_band_description(b, lyr.name)
            if lyr.has_min_max and np.isfinite([lyr.min_value, lyr.max_value]).all():
                dst.update_tags(b, **{
                    STATS_MIN_TAG: repr(lyr.min_value),
                    STATS_MAX_TAG: repr(lyr.max_value),
                })
        dst.scales = tuple(
            1.0 / lyr.scale_factor if lyr.scale_factor else 1.0 for lyr in raster
        )

    logger.debug("wrote %d band(s) to %s as %s", len(raster), path, dtype)
    return path
