import numpy as np

from em_viz.utils.types import ArrayLike, Numerical


def sample_field(
    field: ArrayLike, shape_x: int, shape_y: int, x: Numerical, y: Numerical
) -> float:
    """Look up the value of a row-major field at position (x, y).

    Fractional positions are truncated toward the stored index. Positions outside of
    the grid are not an error : the field is extended by zeros.

    Args:
        field (ArrayLike): 2D field indexed as field[y][x]
        shape_x (int): number of columns of the field
        shape_y (int): number of rows of the field
        x (Numerical): position along the x axis, in cells
        y (Numerical): position along the y axis, in cells

    Returns:
        float: field[y][x] if (x, y) lies on the grid, 0 otherwise
    """
    if x < 0 or x >= shape_x or y < 0 or y >= shape_y:
        return 0
    return field[int(y)][int(x)]


def sample_field_array(field: np.ndarray, x: np.ndarray, y: np.ndarray) -> np.ndarray:
    """Vectorized version of sample_field over arrays of positions of the same shape."""
    shape_y, shape_x = field.shape
    x, y = np.broadcast_arrays(np.asarray(x, dtype=float), np.asarray(y, dtype=float))
    inside = (x >= 0) & (x < shape_x) & (y >= 0) & (y < shape_y)
    values = np.zeros(x.shape, dtype=field.dtype)
    values[inside] = field[y[inside].astype(int), x[inside].astype(int)]
    return values
