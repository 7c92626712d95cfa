import numpy as np

from em_viz.physim.snapshot import FieldSnapshot
from em_viz.utils.types import Numerical


def gaussian_pulse(gx: int, gy: int, center: tuple, width: Numerical, amplitude: Numerical = 1.0) -> np.ndarray:
    "Gaussian bump of a (gy, gx) grid, centered on the (x, y) cell center"
    Y, X = np.ogrid[:gy, :gx]
    dist_sq = (X - center[0]) ** 2 + (Y - center[1]) ** 2
    return amplitude * np.exp(-dist_sq / (2 * width**2))


def demo_snapshot(gx: int = 100, gy: int = 100, cell_size: Numerical = 0.02) -> FieldSnapshot:
    """Synthetic snapshot with a field pulse and one region of each material.

    The electric field is a Gaussian pulse along z in the lower left quarter, the magnetic
    field its spatial gradient. A dielectric disc sits in the upper left quarter, a magnetic
    block in the upper right quarter and a conductive strip along the right edge.
    """
    assert gx > 0 and gy > 0, f"Expected a positive grid size. Get {(gx, gy)}"
    electric_z = gaussian_pulse(gx, gy, (gx / 4, gy / 4), width=max(gx, gy) / 20)
    d_dy, d_dx = np.gradient(electric_z)
    # Curl of (0, 0, Ez) up to the time integration
    magnetic_x, magnetic_y = 5 * d_dy, -5 * d_dx

    Y, X = np.ogrid[:gy, :gx]
    permittivity = np.ones((gy, gx))
    disc = (X - gx / 4) ** 2 + (Y - 3 * gy / 4) ** 2 <= (min(gx, gy) / 8) ** 2
    permittivity[disc] = 20.0

    permeability = np.ones((gy, gx))
    permeability[gy // 2 + gy // 8 : gy - gy // 8, gx // 2 + gx // 8 : gx - gx // 8] = 30.0

    conductivity = np.zeros((gy, gx))
    conductivity[:, gx - max(1, gx // 10) :] = 500.0

    return FieldSnapshot(
        [np.zeros((gy, gx)), np.zeros((gy, gx)), electric_z],
        [magnetic_x, magnetic_y, np.zeros((gy, gx))],
        permittivity,
        permeability,
        conductivity,
        cell_size,
    )
