"""Shared test fixtures."""

from __future__ import annotations

import numpy as np
import pytest
import rasterio
from rasterio.crs import CRS
from rasterio.transform import from_origin

from raster_scaler.models import Layer, MultiLayerRaster


def make_layer(name, values, stats=True):
    values = np.asarray(values, dtype=np.float64)
    if not stats:
        return Layer(name, values)
    return Layer(name, values).with_min_max()


@pytest.fixture
def example_layer() -> Layer:
    # worked example: |values| peak at 150.2 -> factor 100 under max_out=32767
    return make_layer("elev", [[-150.2, 98.7, 12.345], [0.0, np.nan, 1.005]])


@pytest.fixture
def stack() -> MultiLayerRaster:
    rng = np.random.default_rng(7)
    temp = rng.normal(12.0, 8.0, (6, 5))
    temp[0, 0] = np.nan
    precip = rng.uniform(0.0, 2400.0, (6, 5))
    ndvi = rng.uniform(-0.2, 0.93, (6, 5))
    ndvi[2, 3] = np.nan
    return MultiLayerRaster(
        [
            make_layer("temp", temp),
            make_layer("precip", precip),
            make_layer("ndvi", ndvi),
        ],
        profile={"crs": CRS.from_epsg(4326), "transform": from_origin(10.0, 50.0, 0.1, 0.1)},
    )


@pytest.fixture
def float_tif(tmp_path):
    """Two-band float32 GeoTIFF with descriptions and nodata=-9999, no statistics."""
    path = tmp_path / "input.tif"
    band1 = np.array([[-150.2, 98.7, 3.0], [-9999.0, 0.5, 7.25]], dtype=np.float32)
    band2 = np.array([[0.012, 0.3, -0.0042], [0.25, -9999.0, 0.1]], dtype=np.float32)
    profile = dict(
        driver="GTiff",
        height=2,
        width=3,
        count=2,
        dtype="float32",
        nodata=-9999.0,
        crs=CRS.from_epsg(4326),
        transform=from_origin(10.0, 50.0, 0.5, 0.5),
    )
    with rasterio.open(path, "w", **profile) as dst:
        dst.write(band1, 1)
        dst.write(band2, 2)
        dst.set_band_description(1, "elevation")
        dst.set_band_description(2, "slope")
    return path
