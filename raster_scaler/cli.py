# cli.py - raster-scale command line entry point
# deps: pip install numpy rasterio

from __future__ import annotations
import argparse
import logging
import sys
import warnings
from typing import List, Optional

from rasterio.errors import RasterioError

from raster_scaler.config import (
    DEFAULT_MAX_OUT,
    DEFAULT_OUTPUT_DTYPE,
    DEFAULT_POWER_OF,
    LOG_LEVEL,
    OUTPUT_DTYPES,
)
from raster_scaler.dispatch import scale_raster
from raster_scaler.errors import ScalingError, ScalingWarning
from raster_scaler.raster_io import read_raster, write_raster

logger = logging.getLogger("raster_scaler")


def format_factor(factor: float) -> str:
    """Exact text for a factor: integers without a fraction, the rest via repr."""
    if factor.is_integer():
        return str(int(factor))
    return repr(factor)


def _band_list(text: str) -> List[int]:
    try:
        bands = [int(b) for b in text.split(",") if b.strip()]
    except ValueError:
        raise argparse.ArgumentTypeError(f"bands must be comma-separated integers, got {text!r}")
    if not bands or any(b < 1 for b in bands):
        raise argparse.ArgumentTypeError("bands are 1-based, e.g. --bands 1,3")
    return bands


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="raster-scale",
        description="Scale each band by the highest power of N that keeps |values| <= max-out, "
                    "so it can be stored as a 16-bit integer raster.",
    )
    p.add_argument("input", help="Path to the input raster.")
    p.add_argument("output", nargs="?", help="Path to the output GeoTIFF (not needed with --factors-only).")
    p.add_argument("--power-of", type=float, default=DEFAULT_POWER_OF,
                   help="Base of the scale factor (default: %(default)s).")
    p.add_argument("--max-out", type=float, default=DEFAULT_MAX_OUT,
                   help="Largest absolute value allowed after scaling (default: %(default)s).")
    p.add_argument("--no-round", dest="round_output", action="store_false",
                   help="Do not round scaled values (integer outputs then reject fractional cells).")
    p.add_argument("--factors-only", action="store_true",
                   help="Print the scale factor of each band instead of writing a raster.")
    p.add_argument("--workers", type=int, default=1,
                   help="Worker processes for multi-band rasters (default: %(default)s).")
    p.add_argument("--dtype", choices=OUTPUT_DTYPES, default=DEFAULT_OUTPUT_DTYPE,
                   help="Output integer type (default: %(default)s).")
    p.add_argument("--bands", type=_band_list, default=None,
                   help="Comma-separated 1-based band indexes (default: all).")
    p.add_argument("--log-level", default=LOG_LEVEL,
                   choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                   type=str.upper, help="Logging level (default: %(default)s).")
    return p


def _run(args):
    raster = read_raster(args.input, bands=args.bands)
    result = scale_raster(
        raster,
        power_of=args.power_of,
        max_out=args.max_out,
        round_output=args.round_output,
        do_scaling=not args.factors_only,
        workers=args.workers,
    )
    if not args.factors_only:
        write_raster(result, args.output, dtype=args.dtype)
        logger.info("wrote %d band(s) to %s", len(result), args.output)
    return result


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.factors_only and not args.output:
        parser.error("output is required unless --factors-only is given")

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        with warnings.catch_warnings():
            # scaling diagnostics are logged by the library
            warnings.simplefilter("ignore", ScalingWarning)
            result = _run(args)
    except (ScalingError, ValueError, RasterioError, OSError) as e:
        print(f"raster-scale: error: {e}", file=sys.stderr)
        return 1

    if args.factors_only:
        for name, factor in result.items():
            print(f"{name}\t{format_factor(factor)}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
