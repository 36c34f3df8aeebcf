# errors.py
class ScalingError(Exception):
    """Base class for errors raised while scaling a raster."""


class InvalidParameter(ScalingError, ValueError):
    """power_of, max_out or a policy argument is out of range."""


class DegenerateLayer(ScalingError):
    """Layer has no usable magnitude (all zero, all missing, or non-finite)."""

    def __init__(self, name: str, layer_max: float):
        super().__init__(f"layer {name!r} has degenerate maximum magnitude {layer_max!r}")
        self.name = name
        self.layer_max = layer_max


# region Warnings
class ScalingWarning(UserWarning):
    pass


class MissingStatisticsWarning(ScalingWarning):
    pass


class ParallelBackendUnavailableWarning(ScalingWarning):
    pass


class DegenerateLayerWarning(ScalingWarning):
    pass
# endregion
