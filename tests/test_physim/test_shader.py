from em_viz.physim.shader import (
    ShadingMode,
    cell_indices,
    check_output_size,
    column_positions,
    evaluate_pixel,
    row_positions,
    sample_positions,
    shade_frame,
    shade_pixel,
    shade_pixel_continuous,
    shade_pixel_snapped,
    tile_offsets,
)
from em_viz.physim.maths import map_material, round_half_up
from em_viz.physim.snapshot import FieldSnapshot
from em_viz.utils.errors import OutOfBoundsError, ResolutionError, UnknownShadingMode

import numpy as np
import pytest


def random_snapshot(gx, gy, seed=0, cell_size=0.02, magnetic=True):
    rng = np.random.default_rng(seed)
    electric = [0.5 * rng.random((gy, gx)) for _ in range(3)]
    if magnetic:
        magnetic_field = [0.5 * rng.random((gy, gx)) for _ in range(3)]
    else:
        magnetic_field = [np.zeros((gy, gx)) for _ in range(3)]
    permittivity = rng.uniform(1, 50, (gy, gx))
    permeability = rng.uniform(1, 50, (gy, gx))
    conductivity = rng.uniform(0, 100, (gy, gx))
    return FieldSnapshot(electric, magnetic_field, permittivity, permeability, conductivity, cell_size)


class TestShadingMode:
    def test_from_name(self):
        assert ShadingMode.from_name("continuous") is ShadingMode.CONTINUOUS
        assert ShadingMode.from_name("SNAPPED") is ShadingMode.SNAPPED
        assert ShadingMode.from_name(ShadingMode.SNAPPED) is ShadingMode.SNAPPED
        with pytest.raises(UnknownShadingMode):
            ShadingMode.from_name("bilinear")


class TestPreconditions:
    snapshot = FieldSnapshot.vacuum(10, 10)

    def test_output_size(self):
        assert check_output_size((3, 4)) == (3, 4)
        assert check_output_size(np.array([3, 4])) == (3, 4)
        for output_size in [(0, 10), (10, 0), (-1, 5), (2.5, 3), (3,), 12, (True, 3)]:
            with pytest.raises(ResolutionError):
                check_output_size(output_size)

    def test_shade_pixel(self):
        with pytest.raises(ResolutionError):
            shade_pixel(0, 0, self.snapshot, (0, 10))
        with pytest.raises(ResolutionError):
            shade_frame(self.snapshot, (10, 0))
        for px, py in [(-1, 0), (0, -1), (10, 0), (0, 10)]:
            with pytest.raises(OutOfBoundsError):
                shade_pixel(px, py, self.snapshot, (10, 10))


class TestShadePixel:
    gx, gy = 10, 10
    output_size = (10, 10)
    vacuum = FieldSnapshot.vacuum(gx, gy)

    def test_vacuum_is_black(self):
        # Row 0 maps to y = gy, outside of the grid
        for mode in ShadingMode:
            for py in range(1, self.gy):
                for px in range(self.gx):
                    assert shade_pixel(px, py, self.vacuum, self.output_size, mode) == (0, 0, 0)

    def test_zero_materials(self):
        # A raw material value of 0 maps below vacuum and draws faint halos
        zeros = FieldSnapshot.zeros(self.gx, self.gy)
        for py in range(self.gy):
            for px in range(self.gx):
                red, green, blue = shade_pixel(px, py, zeros, self.output_size)
                assert green == 0
                assert red >= 0 and blue >= 0

    def test_permittivity_circles(self):
        value = 14.0
        mapped = map_material(value)
        assert mapped >= 0.1
        snapshot = self.vacuum.replace(permittivity=np.full((self.gy, self.gx), value))
        for mode in ShadingMode:
            # Tile center : x = 3 and y = 7 are odd, the tile factor is 0.5
            red, green, blue = shade_pixel(3, 3, snapshot, self.output_size, mode)
            assert np.isclose(red, 0.8 * mapped)
            assert green == 0 and blue == 0
            # Tile corner, the disc mask is saturated
            red, green, blue = shade_pixel(2, 2, snapshot, self.output_size, mode)
            assert np.isclose(red, 0)

    def test_permeability_circles(self):
        value = 30.0
        snapshot = self.vacuum.replace(permeability=np.full((self.gy, self.gx), value))
        # Permeability tiles are shifted by half a tile : centers on even coordinates
        red, green, blue = shade_pixel(2, 2, snapshot, self.output_size)
        assert np.isclose(blue, 0.8 * map_material(value))
        assert red == 0 and green == 0
        red, green, blue = shade_pixel(3, 3, snapshot, self.output_size)
        assert np.isclose(blue, 0)

    def test_no_lower_clamp(self):
        # Weak material (mapped value < 0.1) far from a tile center gives a negative red
        snapshot = self.vacuum.replace(permittivity=np.full((self.gy, self.gx), 1.2))
        red, _, _ = shade_pixel(2, 2, snapshot, self.output_size)
        assert red < 0
        assert np.isclose(red, -0.8 * map_material(1.2))

    def test_upper_clamp(self):
        snapshot = random_snapshot(self.gx, self.gy, cell_size=0.005)
        snapshot = snapshot.replace(conductivity=np.full((self.gy, self.gx), 1e5))
        for mode in ShadingMode:
            frame = shade_frame(snapshot, (23, 17), mode)
            assert frame.max() <= 1
            # Pixels sampling inside the grid are saturated, the last column snaps to x = gx
            assert np.all(frame[1:, :-1] == 1)

    def test_conductivity_background(self):
        snapshot = self.vacuum.replace(conductivity=np.full((self.gy, self.gx), 500.0))
        for mode in ShadingMode:
            color = shade_pixel(4, 5, snapshot, self.output_size, mode)
            assert np.allclose(color, 0.25)

    def test_energy_scaling(self):
        electric_x = np.full((self.gy, self.gx), 0.1)
        fine = self.vacuum.replace(electric_x=electric_x, cell_size=0.02)
        coarse = self.vacuum.replace(electric_x=electric_x, cell_size=0.04)
        for mode in ShadingMode:
            _, green_fine, _ = shade_pixel(4, 5, fine, self.output_size, mode)
            _, green_coarse, _ = shade_pixel(4, 5, coarse, self.output_size, mode)
            assert np.isclose(green_fine, 0.01)
            assert np.isclose(green_coarse, green_fine / 2**4)

    def test_magnetic_staggering(self):
        # A single magnetic cell is read half a cell away in continuous mode only
        magnetic_z = np.zeros((self.gy, self.gx))
        magnetic_z[5, 4] = 0.5
        snapshot = self.vacuum.replace(magnetic_z=magnetic_z)
        # Pixel (4, 5) maps to x = 4, y = 5
        _, green, _ = shade_pixel_snapped(4, 5, snapshot, self.output_size)
        assert np.isclose(green, 0.25)
        _, green, _ = shade_pixel_continuous(4, 5, snapshot, self.output_size)
        assert green == 0
        # x - 0.5 = 4.5 and y - 0.5 = 5.5 fall in cell (4, 5)
        _, green, _ = shade_pixel_snapped(5, 4, snapshot, self.output_size)
        assert green == 0
        _, green, _ = shade_pixel_continuous(5, 4, snapshot, self.output_size)
        assert np.isclose(green, 0.25)


class TestSnapping:
    gx, gy = 16, 16

    def test_direct_indexing(self):
        for px in range(self.gx):
            assert round_half_up(self.gx * px / self.gx) == px
        rng = np.random.default_rng(1)
        electric_x = 0.5 * rng.random((self.gy, self.gx))
        snapshot = FieldSnapshot.vacuum(self.gx, self.gy).replace(electric_x=electric_x)
        for py in range(1, self.gy):
            for px in range(self.gx):
                _, green, _ = shade_pixel_snapped(px, py, snapshot, (self.gx, self.gy))
                assert np.isclose(green, electric_x[self.gy - py, px] ** 2)

    def test_matching_resolution(self):
        snapshot = random_snapshot(self.gx, self.gy, magnetic=False)
        continuous = shade_frame(snapshot, (self.gx, self.gy), ShadingMode.CONTINUOUS)
        snapped = shade_frame(snapshot, (self.gx, self.gy), ShadingMode.SNAPPED)
        assert np.allclose(continuous, snapped)

    def test_tiling_uses_unrounded_position(self):
        # Two pixels snapped on the same cell still get different material circles
        snapshot = FieldSnapshot.vacuum(4, 4).replace(permittivity=np.full((4, 4), 20.0))
        output_size = (16, 16)
        colors = [shade_pixel_snapped(px, 8, snapshot, output_size) for px in (4, 5)]
        assert round_half_up(4 * 4 / 16) == round_half_up(4 * 5 / 16)
        assert not np.isclose(colors[0][0], colors[1][0])


class TestShadeFrame:
    def test_matches_pixels(self):
        snapshot = random_snapshot(12, 9, seed=3)
        output_size = (31, 17)
        for mode in ShadingMode:
            frame = shade_frame(snapshot, output_size, mode)
            assert frame.shape == (17, 31, 3)
            expected = np.array(
                [[shade_pixel(px, py, snapshot, output_size, mode) for px in range(31)] for py in range(17)]
            )
            assert np.allclose(frame, expected)

    def test_coarse_output(self):
        snapshot = random_snapshot(40, 30, seed=4)
        for mode in ShadingMode:
            frame = shade_frame(snapshot, (7, 5), mode)
            assert frame.shape == (5, 7, 3)
            assert np.all(np.isfinite(frame))
            assert frame.max() <= 1

    def test_tiny_cell_size(self):
        snapshot = FieldSnapshot.vacuum(5, 3, cell_size=1e-10)
        snapshot = snapshot.replace(electric_x=np.full((3, 5), 0.1))
        for mode in ShadingMode:
            frame = shade_frame(snapshot, (11, 7), mode)
            assert np.all(np.isfinite(frame))
            # Top row lies outside of the grid and stays black
            assert np.all(frame[0, :, 1] == 0)
            assert np.allclose(frame[2:, :-2, 1], 1)


class TestEvaluatePixel:
    def test_matches_shade_pixel(self):
        snapshot = random_snapshot(7, 5, seed=5)
        for mode in ShadingMode:
            snapped = mode is ShadingMode.SNAPPED
            for py in range(9):
                for px in range(13):
                    assert evaluate_pixel(px, py, snapshot, 13, 9, snapped) == shade_pixel(
                        px, py, snapshot, (13, 9), mode
                    )


class TestAxisPositions:
    def test_positions(self):
        assert np.allclose(column_positions(4, 8), np.arange(8) / 2)
        assert np.allclose(row_positions(4, 8), 4 - np.arange(8) / 2)
        assert row_positions(4, 8)[0] == 4

    def test_sample_positions(self):
        positions = np.array([0.0, 0.4, 0.5, 2.5, 3.9])
        x, mx = sample_positions(positions, snapped=False)
        assert np.array_equal(x, positions)
        assert np.allclose(mx, positions - 0.5)
        x, mx = sample_positions(positions, snapped=True)
        assert np.array_equal(x, [0, 0, 1, 3, 4])
        assert np.array_equal(mx, x)

    def test_cell_indices(self):
        positions = np.array([-0.5, -1e-9, 0.0, 0.99, 2.5, 3.0, 7.0])
        assert np.array_equal(cell_indices(positions, 3), [-1, -1, 0, 0, 2, -1, -1])

    def test_double_precision_rounding(self):
        # 3 * (1 - 5 / 6) is just below 0.5 in double precision and rounds to row 0
        y, _ = sample_positions(row_positions(3, 6), snapped=True)
        assert cell_indices(y, 3)[5] == 0

    def test_tile_offsets(self):
        permittivity, permeability = tile_offsets(np.array([0.0, 0.5, 1.25]), 1.0)
        assert np.allclose(permittivity, [-0.5, 0.0, -0.25])
        assert np.allclose(permeability, [0.0, -0.5, 0.25])
