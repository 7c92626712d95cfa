import logging
import math
import numpy as np

from em_viz.physim.maths import energy_scale
from em_viz.utils.errors import ConfigurationError, ResolutionError, ShapeError
from em_viz.utils.types import ArrayLike, Numerical
from typing import Optional, Sequence, Tuple

COMPONENT_NAMES = (
    "electric_x",
    "electric_y",
    "electric_z",
    "magnetic_x",
    "magnetic_y",
    "magnetic_z",
    "permittivity",
    "permeability",
    "conductivity",
)


class FieldSnapshot:
    """Read-only bundle of the fields of one simulation step.

    Holds the three electric components, the three magnetic components and the three
    material fields (permittivity, permeability, conductivity) of a 2D grid, together
    with the physical size of one cell. All fields are row-major : field[y, x].
    Shapes and cell size are validated once at construction, so that renderers can
    rely on a consistent snapshot.
    """

    def __init__(
        self,
        electric_field: Sequence[ArrayLike],
        magnetic_field: Sequence[ArrayLike],
        permittivity: ArrayLike,
        permeability: ArrayLike,
        conductivity: ArrayLike,
        cell_size: Numerical,
        grid_size: Optional[Tuple[int, int]] = None,
    ) -> None:
        if len(electric_field) != 3 or len(magnetic_field) != 3:
            raise ShapeError(
                f"Expected 3 components for the electric and magnetic fields. Get {len(electric_field)} and {len(magnetic_field)}"
            )
        fields = [*electric_field, *magnetic_field, permittivity, permeability, conductivity]
        # Copies as float, the caller's arrays are never modified
        fields = [np.array(field, dtype=float) for field in fields]

        for name, field in zip(COMPONENT_NAMES, fields):
            if field.ndim != 2:
                raise ShapeError(f"Expected {name} to be a 2D field. Get {field.ndim}D")
        shape = fields[0].shape
        for name, field in zip(COMPONENT_NAMES, fields):
            if field.shape != shape:
                raise ShapeError(
                    f"Expected all fields to share the shape {shape} of {COMPONENT_NAMES[0]}. Get {field.shape} for {name}"
                )
        if shape[0] == 0 or shape[1] == 0:
            raise ResolutionError(f"Expected a non empty grid. Get fields of shape {shape}")
        if grid_size is not None and tuple(grid_size) != (shape[1], shape[0]):
            raise ShapeError(
                f"Expected fields of shape (gy, gx) = {(grid_size[1], grid_size[0])} for the grid size {tuple(grid_size)}. Get {shape}"
            )
        self._check_cell_size(cell_size)

        for name, field in zip(COMPONENT_NAMES, fields):
            field.flags.writeable = False
            setattr(self, name, field)
        self.cell_size = float(cell_size)
        logging.debug(f"New field snapshot on a grid {self.grid_size} with cell size {self.cell_size}")

    ## Factories
    @classmethod
    def zeros(cls, gx: int, gy: int, cell_size: Numerical = 0.02) -> "FieldSnapshot":
        "Snapshot where every field, materials included, is 0"
        cls._check_grid_size(gx, gy)
        return cls(
            [np.zeros((gy, gx)) for _ in range(3)],
            [np.zeros((gy, gx)) for _ in range(3)],
            np.zeros((gy, gx)),
            np.zeros((gy, gx)),
            np.zeros((gy, gx)),
            cell_size,
        )

    @classmethod
    def vacuum(cls, gx: int, gy: int, cell_size: Numerical = 0.02) -> "FieldSnapshot":
        "Snapshot of an empty grid : no field, relative permittivity and permeability of 1, no conductivity"
        cls._check_grid_size(gx, gy)
        return cls(
            [np.zeros((gy, gx)) for _ in range(3)],
            [np.zeros((gy, gx)) for _ in range(3)],
            np.ones((gy, gx)),
            np.ones((gy, gx)),
            np.zeros((gy, gx)),
            cell_size,
        )

    def replace(self, **fields: ArrayLike) -> "FieldSnapshot":
        """Return a new snapshot where the given components are replaced.

        Keyword arguments are component names (see COMPONENT_NAMES) or cell_size.
        """
        cell_size = fields.pop("cell_size", self.cell_size)
        unknown = set(fields) - set(COMPONENT_NAMES)
        if unknown:
            raise KeyError(f"Unknown field components {sorted(unknown)}. Expected one of {COMPONENT_NAMES}")
        values = {name: fields.get(name, getattr(self, name)) for name in COMPONENT_NAMES}
        return FieldSnapshot(
            [values["electric_x"], values["electric_y"], values["electric_z"]],
            [values["magnetic_x"], values["magnetic_y"], values["magnetic_z"]],
            values["permittivity"],
            values["permeability"],
            values["conductivity"],
            cell_size,
        )

    ## Properties
    @property
    def shape(self) -> Tuple[int, int]:
        "Shape (gy, gx) of every field"
        return self.electric_x.shape

    @property
    def grid_size(self) -> Tuple[int, int]:
        "Number of cells (gx, gy) along x and y"
        return self.shape[1], self.shape[0]

    @property
    def electric_field(self) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        return self.electric_x, self.electric_y, self.electric_z

    @property
    def magnetic_field(self) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        return self.magnetic_x, self.magnetic_y, self.magnetic_z

    @property
    def components(self) -> Tuple[np.ndarray, ...]:
        return tuple(getattr(self, name) for name in COMPONENT_NAMES)

    def stack(self, dtype=np.float32) -> np.ndarray:
        "All components stacked in a (9, gy, gx) array, in the order of COMPONENT_NAMES"
        return np.stack(self.components).astype(dtype)

    ## Private methods
    @staticmethod
    def _check_cell_size(cell_size: Numerical):
        if not isinstance(cell_size, (int, float, np.integer, np.floating)) or isinstance(cell_size, bool):
            raise ConfigurationError(f"Expected cell_size to be a number. Get {type(cell_size)}")
        if not math.isfinite(cell_size) or cell_size <= 0:
            raise ConfigurationError(f"Expected cell_size to be a finite positive number. Get {cell_size}")
        if not math.isfinite(energy_scale(float(cell_size))):
            raise ConfigurationError(
                f"Expected cell_size to give a finite field energy scale. Get {cell_size}, too small"
            )

    @staticmethod
    def _check_grid_size(gx: int, gy: int):
        if not all(isinstance(g, (int, np.integer)) and g > 0 for g in (gx, gy)):
            raise ResolutionError(f"Expected the grid size to be positive integers. Get {(gx, gy)}")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FieldSnapshot):
            return NotImplemented
        return self.cell_size == other.cell_size and all(
            np.array_equal(a, b) for a, b in zip(self.components, other.components)
        )

    def __repr__(self) -> str:
        return f"{__class__.__name__}(grid_size={self.grid_size}, cell_size={self.cell_size})"
