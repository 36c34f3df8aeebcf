# config.py
DEFAULT_POWER_OF = 10
DEFAULT_MAX_OUT = 32767  # largest Int16 ("INT2S") value

# Factor returned for all-zero / all-missing / non-finite layers
DEGENERATE_SCALE_FACTOR = 1.0
DEGENERATE_POLICIES = ("fallback", "raise")

# Integer dtypes a scaled raster may be written as
OUTPUT_DTYPES = ("int16", "uint16", "int32")
DEFAULT_OUTPUT_DTYPE = "int16"

# GDAL band statistics tags (cached min/max)
STATS_MIN_TAG = "STATISTICS_MINIMUM"
STATS_MAX_TAG = "STATISTICS_MAXIMUM"

LOG_LEVEL = "WARNING"
