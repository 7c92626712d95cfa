from em_viz.physim import FieldSnapshot, ShadingMode, shade_pixel, shade_frame, sample_field, smooth_step
from em_viz.render import Backend, render_frame, iter_pixels

__version__ = "0.1.0"
