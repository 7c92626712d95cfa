import logging
import numpy as np
import taichi as ti
import taichi.math as tm

from em_viz.physim.constants import (
    CONDUCTIVITY_SCALE,
    MATERIAL_GAIN,
    MATERIAL_THRESHOLD,
    SQRT_2PI,
)
from em_viz.physim.maths import energy_scale, tile_factor
from em_viz.physim.shader import (
    ShadingMode,
    cell_indices,
    check_output_size,
    column_positions,
    row_positions,
    sample_positions,
    tile_offsets,
)
from em_viz.physim.snapshot import COMPONENT_NAMES, FieldSnapshot
from em_viz.taichi.maths import map_material, smooth_step
from em_viz.utils.errors import ConfigurationError, ResolutionError, ShapeError

from typing import Tuple, Union

# Index of each field in the stacked taichi field
EX, EY, EZ, MX, MY, MZ, PERMITTIVITY, PERMEABILITY, CONDUCTIVITY = range(len(COMPONENT_NAMES))
F32_MAX = float(np.finfo(np.float32).max)


@ti.data_oriented
class FieldRenderer:
    """Data parallel renderer of field snapshots, one taichi task per output pixel.

    The grid size, the output size and the shading mode are fixed at construction so
    that the kernel is compiled once and reused for every frame. The taichi runtime has
    to be initialised by the caller (ti.init) before the renderer is created.

    Grid positions only depend on the pixel column or row. They are resolved once on the
    host in double precision, into the sampled cell index of every column and row and
    their offsets to the material tile centers, so that rounding in single precision
    never moves a pixel to a neighbouring cell.
    """

    def __init__(
        self,
        grid_size: Tuple[int, int],
        output_size: Tuple[int, int],
        mode: Union[str, ShadingMode] = ShadingMode.CONTINUOUS,
    ) -> None:
        gx, gy = grid_size
        if not all(isinstance(g, (int, np.integer)) and g > 0 for g in (gx, gy)):
            raise ResolutionError(f"Expected the grid size to be positive integers. Get {grid_size}")
        self.grid_x, self.grid_y = int(gx), int(gy)
        self.width, self.height = check_output_size(output_size)
        self.mode = ShadingMode.from_name(mode)

        self.tile_factor_x = tile_factor(self.grid_x, self.width)
        self.tile_factor_y = tile_factor(self.grid_y, self.height)

        self._components = ti.field(
            dtype=ti.f32, shape=(len(COMPONENT_NAMES), self.grid_y, self.grid_x)
        )
        # Cell index sampled by each column / row, -1 outside of the grid
        self._columns = ti.field(dtype=ti.i32, shape=self.width)
        self._magnetic_columns = ti.field(dtype=ti.i32, shape=self.width)
        self._rows = ti.field(dtype=ti.i32, shape=self.height)
        self._magnetic_rows = ti.field(dtype=ti.i32, shape=self.height)
        # Offsets to the (permittivity, permeability) tile centers
        self._column_tiles = ti.Vector.field(2, dtype=ti.f32, shape=self.width)
        self._row_tiles = ti.Vector.field(2, dtype=ti.f32, shape=self.height)
        self.pixels = ti.Vector.field(3, dtype=ti.f32, shape=(self.height, self.width))
        self._init_positions()
        logging.debug(
            f"Taichi renderer for grid {(self.grid_x, self.grid_y)} to raster {(self.width, self.height)} in {self.mode.value} mode"
        )

    ## Public methods
    def render(self, snapshot: FieldSnapshot) -> np.ndarray:
        """Render a snapshot on the output raster.

        Args:
            snapshot (FieldSnapshot): fields to render, on the grid of the renderer

        Raises:
            ShapeError: if the snapshot grid differs from the renderer grid
            ConfigurationError: if the field energy scale of the cell size overflows single precision

        Returns:
            np.ndarray: (height, width, 3) array where [py, px] is the color of pixel (px, py)
        """
        assert isinstance(snapshot, FieldSnapshot), f"Expected a FieldSnapshot. Get {type(snapshot)}"
        if snapshot.grid_size != (self.grid_x, self.grid_y):
            raise ShapeError(
                f"Expected a snapshot on the grid {(self.grid_x, self.grid_y)}. Get {snapshot.grid_size}"
            )
        scale = energy_scale(snapshot.cell_size)
        if scale > F32_MAX:
            raise ConfigurationError(
                f"Expected a field energy scale below {F32_MAX} for single precision rendering. Get {scale} for cell_size {snapshot.cell_size}"
            )
        self._components.from_numpy(snapshot.stack(np.float32))
        self._render(scale)
        return self.pixels.to_numpy()

    ## Private methods
    def _init_positions(self):
        snapped = self.mode is ShadingMode.SNAPPED
        fx = column_positions(self.grid_x, self.width)
        fy = row_positions(self.grid_y, self.height)
        x, mx = sample_positions(fx, snapped)
        y, my = sample_positions(fy, snapped)

        self._columns.from_numpy(cell_indices(x, self.grid_x).astype(np.int32))
        self._magnetic_columns.from_numpy(cell_indices(mx, self.grid_x).astype(np.int32))
        self._rows.from_numpy(cell_indices(y, self.grid_y).astype(np.int32))
        self._magnetic_rows.from_numpy(cell_indices(my, self.grid_y).astype(np.int32))
        self._column_tiles.from_numpy(
            np.stack(tile_offsets(fx, self.tile_factor_x), axis=-1).astype(np.float32)
        )
        self._row_tiles.from_numpy(
            np.stack(tile_offsets(fy, self.tile_factor_y), axis=-1).astype(np.float32)
        )

    ### Taichi kernels
    @ti.kernel
    def _render(self, scale: ti.f32):
        for py, px in self.pixels:
            self.pixels[py, px] = self._shade(px, py, scale)

    @ti.func
    def _shade(self, px, py, scale):
        col, row = self._columns[px], self._rows[py]
        mcol, mrow = self._magnetic_columns[px], self._magnetic_rows[py]

        e_energy = scale * (
            self._sample(EX, row, col) ** 2
            + self._sample(EY, row, col) ** 2
            + self._sample(EZ, row, col) ** 2
        )
        m_energy = scale * (
            self._sample(MX, mrow, mcol) ** 2
            + self._sample(MY, mrow, mcol) ** 2
            + self._sample(MZ, mrow, mcol) ** 2
        )

        permittivity = map_material(self._sample(PERMITTIVITY, row, col))
        permeability = map_material(self._sample(PERMEABILITY, row, col))

        dx, dy = self._column_tiles[px], self._row_tiles[py]
        bg_permittivity = self._material_background(permittivity, dx[0], dy[0])
        bg_permeability = self._material_background(permeability, dx[1], dy[1])

        background = self._sample(CONDUCTIVITY, row, col) / CONDUCTIVITY_SCALE
        return tm.vec3(
            ti.min(1.0, background + e_energy + MATERIAL_GAIN * bg_permittivity * permittivity),
            ti.min(1.0, background + e_energy + m_energy),
            ti.min(1.0, background + m_energy + MATERIAL_GAIN * bg_permeability * permeability),
        )

    @ti.func
    def _sample(self, component: ti.template(), row, col):
        value = 0.0
        if row >= 0 and col >= 0:
            value = self._components[component, row, col]
        return value

    @ti.func
    def _material_background(self, value, dx, dy):
        bg = -smooth_step((dx * dx + dy * dy) * SQRT_2PI)
        return ti.select(value >= MATERIAL_THRESHOLD, 1.0 + bg, bg)

    def __repr__(self) -> str:
        return f"{__class__.__name__}(grid_size={(self.grid_x, self.grid_y)}, output_size={(self.width, self.height)}, mode={self.mode.value})"
