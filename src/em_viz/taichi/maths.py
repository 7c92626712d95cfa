import taichi as ti

from em_viz.physim.constants import MATERIAL_STEEPNESS


@ti.func
def smooth_step(t):
    value = 3 * t * t - 2 * t * t * t
    if t <= 0.0:
        value = 0.0
    elif t >= 1.0:
        value = 1.0
    return value


@ti.func
def map_material(value):
    # Same curve as 2 / (1 + exp(-k (v - 1))) - 1, without overflow
    return ti.tanh(0.5 * MATERIAL_STEEPNESS * (value - 1.0))
