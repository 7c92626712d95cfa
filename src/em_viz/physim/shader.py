"""Per pixel shading of an electromagnetic field snapshot.

Every output pixel (px, py) is mapped to the grid position
    x = gx * px / width,   y = gy * (1 - py / height)
(raster row 0 is the top of the image, grid row 0 is its bottom) where the field energy
and the materials are sampled and blended into an RGB color :
    red   = background + electric energy + permittivity circles
    green = background + electric energy + magnetic energy
    blue  = background + magnetic energy + permeability circles
Channels are clipped to 1 from above only.

Two coordinate resolution modes exist. CONTINUOUS samples the fields at the fractional
position and reads the magnetic field half a cell away (staggered grid). SNAPPED rounds
the position to the nearest cell before sampling and reads the magnetic field on the
same cell. Material circles are always drawn from the unrounded position, in both modes.
"""
import enum
import math
import numpy as np

from em_viz.physim.constants import (
    CONDUCTIVITY_SCALE,
    MAGNETIC_OFFSET,
    MATERIAL_GAIN,
    MATERIAL_THRESHOLD,
    SQRT_2PI,
)
from em_viz.physim.maths import (
    energy_scale,
    map_material,
    map_material_array,
    round_half_up,
    round_half_up_array,
    smooth_step,
    smooth_step_array,
    tile_factor,
)
from em_viz.physim.sampler import sample_field, sample_field_array
from em_viz.physim.snapshot import FieldSnapshot
from em_viz.utils.errors import OutOfBoundsError, ResolutionError, UnknownShadingMode
from em_viz.utils.types import Color
from typing import Tuple, Union


class ShadingMode(enum.Enum):
    CONTINUOUS = "continuous"
    SNAPPED = "snapped"

    @classmethod
    def from_name(cls, mode: Union[str, "ShadingMode"]) -> "ShadingMode":
        if isinstance(mode, cls):
            return mode
        try:
            return cls(str(mode).lower())
        except ValueError as exception:
            raise UnknownShadingMode(
                f"Unknown shading mode {mode}. Expected one of {[m.value for m in cls]}"
            ) from exception


def check_output_size(output_size: Tuple[int, int]) -> Tuple[int, int]:
    """Validate the (width, height) of the output raster.

    Raises:
        ResolutionError: if the size is not a pair of integers >= 1
    """
    try:
        width, height = output_size
    except (TypeError, ValueError) as exception:
        raise ResolutionError(
            f"Expected the output size to be a (width, height) pair. Get {output_size}"
        ) from exception
    for name, value in (("width", width), ("height", height)):
        if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
            raise ResolutionError(f"Expected the output {name} to be an int. Get {type(value)}")
        if value < 1:
            raise ResolutionError(f"Expected the output {name} to be >= 1. Get {value}")
    return int(width), int(height)


def _material_background(value: float, dx: float, dy: float) -> float:
    # Filled disc inside a material, faint dark halo outside
    bg = -smooth_step((dx * dx + dy * dy) * SQRT_2PI)
    return 1 + bg if value >= MATERIAL_THRESHOLD else bg


def evaluate_pixel(
    px: int, py: int, snapshot: FieldSnapshot, width: int, height: int, snapped: bool
) -> Color:
    """Color of pixel (px, py) on a (width, height) raster, without argument checks.

    The raster size is expected to come from check_output_size and the pixel to lie on it.
    """
    gx, gy = snapshot.grid_size
    fx = gx * px / width
    fy = gy * (1 - py / height)
    if snapped:
        x, y = round_half_up(fx), round_half_up(fy)
        mx, my = x, y
    else:
        x, y = fx, fy
        mx, my = x - MAGNETIC_OFFSET, y - MAGNETIC_OFFSET

    scale = energy_scale(snapshot.cell_size)
    e_energy = scale * sum(
        sample_field(component, gx, gy, x, y) ** 2 for component in snapshot.electric_field
    )
    m_energy = scale * sum(
        sample_field(component, gx, gy, mx, my) ** 2 for component in snapshot.magnetic_field
    )

    permittivity = map_material(sample_field(snapshot.permittivity, gx, gy, x, y))
    permeability = map_material(sample_field(snapshot.permeability, gx, gy, x, y))

    # Permeability circles are shifted by half a tile to sit between permittivity ones
    tile_x = tile_factor(gx, width) * fx
    tile_y = tile_factor(gy, height) * fy
    bg_permittivity = _material_background(
        permittivity, math.fmod(tile_x, 1) - 0.5, math.fmod(tile_y, 1) - 0.5
    )
    bg_permeability = _material_background(
        permeability, math.fmod(tile_x + 0.5, 1) - 0.5, math.fmod(tile_y + 0.5, 1) - 0.5
    )

    background = sample_field(snapshot.conductivity, gx, gy, x, y) / CONDUCTIVITY_SCALE
    return (
        min(1.0, background + e_energy + MATERIAL_GAIN * bg_permittivity * permittivity),
        min(1.0, background + e_energy + m_energy),
        min(1.0, background + m_energy + MATERIAL_GAIN * bg_permeability * permeability),
    )


def shade_pixel(
    px: int,
    py: int,
    snapshot: FieldSnapshot,
    output_size: Tuple[int, int],
    mode: Union[str, ShadingMode] = ShadingMode.CONTINUOUS,
) -> Color:
    """Compute the color of one output pixel.

    Args:
        px (int): column of the pixel, 0 <= px < width
        py (int): row of the pixel from the top, 0 <= py < height
        snapshot (FieldSnapshot): fields to render
        output_size (Tuple[int, int]): (width, height) of the output raster
        mode (Union[str, ShadingMode], optional): coordinate resolution mode. Defaults to ShadingMode.CONTINUOUS.

    Raises:
        OutOfBoundsError: if the pixel lies outside of the output raster

    Returns:
        Color: (red, green, blue), each channel <= 1
    """
    mode = ShadingMode.from_name(mode)
    width, height = check_output_size(output_size)
    if not (0 <= px < width and 0 <= py < height):
        raise OutOfBoundsError(f"Pixel {(px, py)} is outside of the output raster {(width, height)}")
    return evaluate_pixel(px, py, snapshot, width, height, mode is ShadingMode.SNAPPED)


def shade_pixel_continuous(
    px: int, py: int, snapshot: FieldSnapshot, output_size: Tuple[int, int]
) -> Color:
    return shade_pixel(px, py, snapshot, output_size, ShadingMode.CONTINUOUS)


def shade_pixel_snapped(
    px: int, py: int, snapshot: FieldSnapshot, output_size: Tuple[int, int]
) -> Color:
    return shade_pixel(px, py, snapshot, output_size, ShadingMode.SNAPPED)


def column_positions(gx: int, width: int) -> np.ndarray:
    "Unrounded grid x position of every raster column"
    return gx * np.arange(width, dtype=float) / width


def row_positions(gy: int, height: int) -> np.ndarray:
    "Unrounded grid y position of every raster row, row 0 being the top of the image"
    return gy * (1 - np.arange(height, dtype=float) / height)


def sample_positions(positions: np.ndarray, snapped: bool) -> Tuple[np.ndarray, np.ndarray]:
    """Positions where the electric / material fields and the magnetic field are sampled.

    Args:
        positions (np.ndarray): unrounded grid positions along one axis
        snapped (bool): round the positions to the nearest cell

    Returns:
        Tuple[np.ndarray, np.ndarray]: electric and material positions, magnetic positions
    """
    if snapped:
        rounded = round_half_up_array(positions)
        return rounded, rounded
    return positions, positions - MAGNETIC_OFFSET


def cell_indices(positions: np.ndarray, nb_cells: int) -> np.ndarray:
    "Index of the cell holding each position, -1 outside of [0, nb_cells)"
    inside = (positions >= 0) & (positions < nb_cells)
    return np.where(inside, np.floor(np.where(inside, positions, 0)), -1).astype(np.int64)


def tile_offsets(positions: np.ndarray, factor: float) -> Tuple[np.ndarray, np.ndarray]:
    "Offsets to the permittivity and permeability tile centers, from unrounded positions"
    tiles = factor * positions
    return np.fmod(tiles, 1) - 0.5, np.fmod(tiles + 0.5, 1) - 0.5


def shade_frame(
    snapshot: FieldSnapshot,
    output_size: Tuple[int, int],
    mode: Union[str, ShadingMode] = ShadingMode.CONTINUOUS,
) -> np.ndarray:
    """Vectorized shading of the whole output raster.

    Returns:
        np.ndarray: (height, width, 3) array where [py, px] is the color of pixel (px, py)
    """
    mode = ShadingMode.from_name(mode)
    width, height = check_output_size(output_size)
    gx, gy = snapshot.grid_size
    snapped = mode is ShadingMode.SNAPPED

    fx, fy = column_positions(gx, width), row_positions(gy, height)
    x, mx = sample_positions(fx, snapped)
    y, my = sample_positions(fy, snapped)
    x, y = np.broadcast_arrays(x[None, :], y[:, None])
    mx, my = np.broadcast_arrays(mx[None, :], my[:, None])

    scale = energy_scale(snapshot.cell_size)
    e_energy = scale * sum(
        sample_field_array(component, x, y) ** 2 for component in snapshot.electric_field
    )
    m_energy = scale * sum(
        sample_field_array(component, mx, my) ** 2 for component in snapshot.magnetic_field
    )

    permittivity = map_material_array(sample_field_array(snapshot.permittivity, x, y))
    permeability = map_material_array(sample_field_array(snapshot.permeability, x, y))

    dx_permittivity, dx_permeability = tile_offsets(fx, tile_factor(gx, width))
    dy_permittivity, dy_permeability = tile_offsets(fy, tile_factor(gy, height))
    bg_permittivity = _material_background_array(
        permittivity, dx_permittivity[None, :], dy_permittivity[:, None]
    )
    bg_permeability = _material_background_array(
        permeability, dx_permeability[None, :], dy_permeability[:, None]
    )

    background = sample_field_array(snapshot.conductivity, x, y) / CONDUCTIVITY_SCALE
    red = background + e_energy + MATERIAL_GAIN * bg_permittivity * permittivity
    green = background + e_energy + m_energy
    blue = background + m_energy + MATERIAL_GAIN * bg_permeability * permeability
    return np.minimum(1.0, np.stack([red, green, blue], axis=-1))


def _material_background_array(values: np.ndarray, dx: np.ndarray, dy: np.ndarray) -> np.ndarray:
    bg = -smooth_step_array((dx * dx + dy * dy) * SQRT_2PI)
    return np.where(values >= MATERIAL_THRESHOLD, 1 + bg, bg)
