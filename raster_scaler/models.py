# models.py
from __future__ import annotations
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterator, List, Optional, Sequence, Union
import numpy as np


# region Layer
@dataclass
class Layer:
    name: str
    values: np.ndarray                 # (H,W) float, NaN = missing cell
    min_value: Optional[float] = None
    max_value: Optional[float] = None
    scale_factor: Optional[float] = None

    def __post_init__(self):
        self.values = np.asarray(self.values, dtype=np.float64)

    @property
    def shape(self):
        return self.values.shape

    @property
    def has_min_max(self) -> bool:
        return self.min_value is not None and self.max_value is not None

    def with_min_max(self) -> "Layer":
        """Copy of this layer with min/max from one scan; cell values are shared."""
        vmin, vmax = nan_min_max(self.values)
        return replace(self, min_value=vmin, max_value=vmax)


def nan_min_max(values: np.ndarray):
    present = values[~np.isnan(values)]
    if present.size == 0:
        return float("nan"), float("nan")
    return float(np.min(present)), float(np.max(present))
# endregion


# region Multi-layer container
@dataclass
class MultiLayerRaster:
    layers: List[Layer]
    profile: Optional[Dict[str, Any]] = field(default=None)  # rasterio profile, passed through

    def __post_init__(self):
        self.layers = list(self.layers)
        if not self.layers:
            raise ValueError("MultiLayerRaster needs at least one layer.")
        names = [lyr.name for lyr in self.layers]
        dupes = sorted({n for n in names if names.count(n) > 1})
        if dupes:
            raise ValueError(f"Layer names must be unique, got duplicates: {dupes}")
        shape = self.layers[0].shape
        for lyr in self.layers[1:]:
            if lyr.shape != shape:
                raise ValueError(
                    f"Layer {lyr.name!r} has shape {lyr.shape}, expected {shape}."
                )

    @classmethod
    def stack(cls, layers: Sequence[Layer], profile: Optional[Dict[str, Any]] = None):
        return cls(list(layers), profile=profile)

    def unstack(self) -> List[Layer]:
        return list(self.layers)

    @property
    def names(self) -> List[str]:
        return [lyr.name for lyr in self.layers]

    @property
    def shape(self):
        return self.layers[0].shape

    def __len__(self) -> int:
        return len(self.layers)

    def __iter__(self) -> Iterator[Layer]:
        return iter(self.layers)

    def __getitem__(self, key: Union[int, str]) -> Layer:
        if isinstance(key, str):
            for lyr in self.layers:
                if lyr.name == key:
                    return lyr
            raise KeyError(key)
        return self.layers[key]
# endregion
