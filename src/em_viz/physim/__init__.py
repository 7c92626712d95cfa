from .snapshot import FieldSnapshot
from .sampler import sample_field, sample_field_array
from .maths import smooth_step, map_material, tile_factor
from .shader import ShadingMode, shade_pixel, shade_pixel_continuous, shade_pixel_snapped, shade_frame
from .scenes import demo_snapshot
