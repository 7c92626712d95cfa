import enum
import logging
import numpy as np

from em_viz.physim.shader import (
    ShadingMode,
    check_output_size,
    evaluate_pixel,
    shade_frame,
)
from em_viz.physim.snapshot import FieldSnapshot
from em_viz.utils.errors import UnknownBackend
from em_viz.utils.types import Color

from typing import Iterator, Tuple, Union

_logger = logging.getLogger(__name__)


class Backend(enum.Enum):
    PYTHON = "python"
    NUMPY = "numpy"
    TAICHI = "taichi"

    @classmethod
    def from_name(cls, backend: Union[str, "Backend"]) -> "Backend":
        if isinstance(backend, cls):
            return backend
        try:
            return cls(str(backend).lower())
        except ValueError as exception:
            raise UnknownBackend(
                f"Unknown backend {backend}. Expected one of {[b.value for b in cls]}"
            ) from exception


def iter_pixels(
    snapshot: FieldSnapshot,
    output_size: Tuple[int, int],
    mode: Union[str, ShadingMode] = ShadingMode.CONTINUOUS,
) -> Iterator[Tuple[int, int, Color]]:
    """Shade the output raster pixel by pixel, in raster order.

    Preconditions are checked before the first pixel is yielded. Closing the generator
    abandons the frame, every pixel already yielded stays valid.

    Yields:
        Tuple[int, int, Color]: px, py and the color of the pixel
    """
    mode = ShadingMode.from_name(mode)
    width, height = check_output_size(output_size)
    return _iter_pixels(snapshot, width, height, mode is ShadingMode.SNAPPED)


def _iter_pixels(snapshot: FieldSnapshot, width: int, height: int, snapped: bool):
    for py in range(height):
        for px in range(width):
            yield px, py, evaluate_pixel(px, py, snapshot, width, height, snapped)


def render_frame(
    snapshot: FieldSnapshot,
    output_size: Tuple[int, int],
    mode: Union[str, ShadingMode] = ShadingMode.CONTINUOUS,
    backend: Union[str, Backend] = Backend.NUMPY,
) -> np.ndarray:
    """Render one frame of a field snapshot.

    Args:
        snapshot (FieldSnapshot): fields to render
        output_size (Tuple[int, int]): (width, height) of the output raster
        mode (Union[str, ShadingMode], optional): coordinate resolution mode, used for the whole frame.
            Defaults to ShadingMode.CONTINUOUS.
        backend (Union[str, Backend], optional): execution backend. The taichi backend expects
            the taichi runtime to be initialised. Defaults to Backend.NUMPY.

    Returns:
        np.ndarray: (height, width, 3) array where [py, px] is the color of pixel (px, py)
    """
    assert isinstance(snapshot, FieldSnapshot), f"Expected a FieldSnapshot. Get {type(snapshot)}"
    mode = ShadingMode.from_name(mode)
    backend = Backend.from_name(backend)
    width, height = check_output_size(output_size)
    _logger.debug(
        f"Rendering {snapshot} on a {width}x{height} raster with the {backend.value} backend in {mode.value} mode"
    )

    if backend is Backend.NUMPY:
        return shade_frame(snapshot, (width, height), mode)
    if backend is Backend.PYTHON:
        frame = np.zeros((height, width, 3))
        for px, py, color in iter_pixels(snapshot, (width, height), mode):
            frame[py, px] = color
        return frame
    # Deferred so that numpy rendering does not need taichi
    from em_viz.taichi.renderer import FieldRenderer

    renderer = FieldRenderer(snapshot.grid_size, (width, height), mode)
    return renderer.render(snapshot)
