import math
import numpy as np

from em_viz.physim.constants import (
    MATERIAL_STEEPNESS,
    REFERENCE_CELL_SIZE,
    TILE_DENSITY,
)
from em_viz.utils.types import Numerical


def smooth_step(t: Numerical) -> float:
    """Cubic Hermite step: 0 below 0, 1 above 1 and 3t^2 - 2t^3 in between."""
    if t <= 0:
        return 0.0
    if t >= 1:
        return 1.0
    return 3 * t * t - 2 * t * t * t


def smooth_step_array(t: np.ndarray) -> np.ndarray:
    t = np.clip(t, 0.0, 1.0)
    return 3 * t * t - 2 * t * t * t


def round_half_up(value: Numerical) -> int:
    """Round to the nearest integer, halves going towards +inf (2.5 -> 3, -2.5 -> -2)."""
    return math.floor(value + 0.5)


def round_half_up_array(values: np.ndarray) -> np.ndarray:
    return np.floor(values + 0.5)


def map_material(value: Numerical) -> float:
    """Map a raw material value (permittivity or permeability) to (-1, 1).

    The logistic curve 2 / (1 + exp(-k (v - 1))) - 1 is centered on the vacuum value 1,
    so that vacuum is invisible and strong materials tend to 1. It is evaluated as
    tanh(k (v - 1) / 2), which is the same curve without overflow for large |v|.

    Args:
        value (Numerical): raw material value, usually in [1, 100]

    Returns:
        float: mapped value in (-1, 1)
    """
    return math.tanh(0.5 * MATERIAL_STEEPNESS * (value - 1))


def map_material_array(values: np.ndarray) -> np.ndarray:
    return np.tanh(0.5 * MATERIAL_STEEPNESS * (values - 1))


def field_brightness(cell_size: Numerical) -> float:
    "Brightness factor of the field energy, larger for finer grids"
    return (REFERENCE_CELL_SIZE * REFERENCE_CELL_SIZE) / (cell_size * cell_size)


def energy_scale(cell_size: Numerical) -> float:
    """Factor applied to the sum of squared field components, the squared brightness.

    Returns inf when the cell size is so small that the factor is not representable.
    """
    if cell_size * cell_size == 0:
        return math.inf
    brightness = field_brightness(cell_size)
    return brightness * brightness


def tile_factor(nb_cells: int, nb_pixels: int) -> float:
    """Scale applied to grid coordinates before tiling them with material circles.

    Roughly one circle is drawn every TILE_DENSITY grid cells, and never more than one
    per grid unit. When the raster is so fine that the number of cells per tile
    rounds to zero, the factor saturates to 1.

    Args:
        nb_cells (int): number of grid cells along the axis
        nb_pixels (int): number of output pixels along the axis

    Returns:
        float: tile factor in (0, 1]
    """
    assert nb_pixels > 0, f"Expected a positive number of pixels. Get {nb_pixels}"
    nb_tiles = round_half_up(TILE_DENSITY * nb_cells / nb_pixels)
    if nb_tiles == 0:
        return 1.0
    return min(1.0, 1.0 / nb_tiles)
