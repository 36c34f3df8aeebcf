"""Tests for GeoTIFF reading and writing."""

import numpy as np
import pytest
import rasterio

from raster_scaler.dispatch import scale_raster
from raster_scaler.models import MultiLayerRaster
from raster_scaler.raster_io import default_nodata, read_raster, write_raster
from tests.conftest import make_layer


def test_read_uses_descriptions_and_nodata(float_tif):
    raster = read_raster(float_tif)
    assert raster.names == ["elevation", "slope"]
    assert raster.shape == (2, 3)
    assert np.isnan(raster["elevation"].values[1, 0])
    assert np.isnan(raster["slope"].values[1, 1])
    assert raster["elevation"].values.dtype == np.float64
    assert raster.profile["crs"].to_epsg() == 4326


def test_read_without_statistics_leaves_cache_empty(float_tif):
    raster = read_raster(float_tif)
    assert not any(lyr.has_min_max for lyr in raster)


def test_read_picks_up_cached_statistics(float_tif):
    with rasterio.open(float_tif, "r+") as ds:
        ds.update_tags(1, STATISTICS_MINIMUM="-150.2", STATISTICS_MAXIMUM="98.7")
    raster = read_raster(float_tif)
    assert raster["elevation"].min_value == -150.2
    assert raster["elevation"].max_value == 98.7
    assert not raster["slope"].has_min_max


def test_read_selected_bands(float_tif):
    raster = read_raster(float_tif, bands=[2])
    assert raster.names == ["slope"]
    with pytest.raises(ValueError, match="band 3"):
        read_raster(float_tif, bands=[3])


def test_read_falls_back_to_stem_names(tmp_path):
    path = tmp_path / "dem.tif"
    with rasterio.open(path, "w", driver="GTiff", height=1, width=2, count=1, dtype="float32") as dst:
        dst.write(np.array([[1.0, 2.0]], dtype=np.float32), 1)
    assert read_raster(path).names == ["dem_1"]


def test_scaled_round_trip(float_tif, tmp_path):
    raster = read_raster(float_tif)
    scaled = scale_raster(raster)
    out = write_raster(scaled, tmp_path / "scaled.tif")

    with rasterio.open(out) as ds:
        assert ds.dtypes == ("int16", "int16")
        assert ds.nodata == -32768
        assert ds.descriptions == ("elevation", "slope")
        assert ds.scales == pytest.approx((1 / 100.0, 1 / 100000.0))
        assert float(ds.tags(1)["STATISTICS_MAXIMUM"]) == 9870.0

    back = read_raster(out)
    assert back.names == ["elevation", "slope"]
    assert back["elevation"].min_value == -15020.0
    np.testing.assert_array_equal(back["elevation"].values, scaled["elevation"].values)
    np.testing.assert_array_equal(np.isnan(back["slope"].values), np.isnan(raster["slope"].values))


def test_write_uint16(tmp_path):
    raster = MultiLayerRaster([make_layer("pos", [[0.0, 650.0], [np.nan, 12.0]])])
    scaled = scale_raster(raster, max_out=65535)
    out = write_raster(scaled, tmp_path / "u16.tif", dtype="uint16")
    with rasterio.open(out) as ds:
        assert ds.nodata == 65535
        assert ds.read(1)[1, 0] == 65535
        assert ds.read(1)[0, 1] == 65000


def test_write_rejects_values_outside_dtype(tmp_path):
    raster = MultiLayerRaster([make_layer("big", [[-150.2, 40000.0]])])
    with pytest.raises(ValueError, match="does not fit int16"):
        write_raster(raster, tmp_path / "big.tif")
    assert not (tmp_path / "big.tif").exists()


def test_write_rejects_float_dtype(stack, tmp_path):
    with pytest.raises(ValueError, match="dtype"):
        write_raster(stack, tmp_path / "f.tif", dtype="float32")


def test_default_nodata():
    assert default_nodata("int16") == -32768
    assert default_nodata("uint16") == 65535
    assert default_nodata("int32") == -2147483648


def test_write_rejects_unrounded_values(tmp_path):
    raster = MultiLayerRaster([make_layer("frac", [[1.7, -1.7, 150.2]])])
    scaled = scale_raster(raster, max_out=327, round_output=False)
    with pytest.raises(ValueError, match="non-integer"):
        write_raster(scaled, tmp_path / "frac.tif")
    assert not (tmp_path / "frac.tif").exists()
