"""Numeric constants of the field shading pipeline."""
import math

# Cell size at which field energy is displayed with unit brightness
REFERENCE_CELL_SIZE = 0.02
# Slope of the logistic curve mapping raw material values to (-1, 1)
MATERIAL_STEEPNESS = 0.5
# Mapped material value from which a material disc is drawn filled
MATERIAL_THRESHOLD = 0.1
MATERIAL_GAIN = 0.8
CONDUCTIVITY_SCALE = 2000.0
# Grid cells covered by one material tile
TILE_DENSITY = 2
SQRT_2PI = math.sqrt(2 * math.pi)
# Half cell offset of the magnetic field on the staggered grid
MAGNETIC_OFFSET = 0.5
