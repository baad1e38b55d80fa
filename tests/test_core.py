#!/usr/bin/env python3
"""
Unit tests for the visualdiff comparison engine
"""

import unittest
from unittest import mock
import tempfile
import json
import os
import numpy as np
from PIL import Image
import shutil

from visualdiff.core import (
    ComparisonMode,
    VisualDiffConfig,
    VisualDiffCLI,
    compute_canvas_size,
    normalize_images,
    skip_factor_for,
    compute_difference,
    safe_difference,
    extract_palette,
    palette_stride,
    split_position,
    composite_slider,
    side_by_side,
    DifferenceResult,
)
from visualdiff.errors import (
    ConfigError,
    ComputationError,
    DegenerateInputError,
    DimensionMismatchError,
)

RED = (255, 0, 0, 255)
BLUE = (0, 0, 255, 255)


def solid(width, height, color):
    buf = np.zeros((height, width, 4), dtype=np.uint8)
    buf[:, :] = color
    return buf


class TestVisualDiffConfig(unittest.TestCase):
    """Test configuration handling"""

    def test_default_config(self):
        """Test default configuration values"""
        config = VisualDiffConfig()
        self.assertEqual(config.threshold, 30)
        self.assertEqual(config.max_pixels, 200000)
        self.assertEqual(config.fast_step, 2)
        self.assertEqual(config.yield_every, 5000)
        self.assertAlmostEqual(config.outer_timeout, 15.0)
        self.assertAlmostEqual(config.inner_timeout, 10.0)
        self.assertEqual((config.max_canvas_width, config.max_canvas_height), (600, 400))
        self.assertEqual(config.palette_size, 10)

    def test_config_serialization(self):
        """Test saving and loading configuration"""
        with tempfile.NamedTemporaryFile(mode='w', suffix='.json', delete=False) as f:
            config_path = f.name

        try:
            config = VisualDiffConfig(threshold=12, max_pixels=5000)
            config.to_json(config_path)

            loaded_config = VisualDiffConfig.from_json(config_path)
            self.assertEqual(loaded_config.threshold, 12)
            self.assertEqual(loaded_config.max_pixels, 5000)
        finally:
            os.unlink(config_path)

    def test_invalid_values_rejected(self):
        with self.assertRaises(ConfigError):
            VisualDiffConfig(max_pixels=0).validate()
        with self.assertRaises(ConfigError):
            VisualDiffConfig(threshold=-1).validate()

    def test_unknown_key_in_file(self):
        with tempfile.NamedTemporaryFile(mode='w', suffix='.json', delete=False) as f:
            json.dump({'not_a_setting': 1}, f)
            config_path = f.name
        try:
            with self.assertRaises(ConfigError):
                VisualDiffConfig.from_json(config_path)
        finally:
            os.unlink(config_path)


class TestCanvasNormalization(unittest.TestCase):
    """Test shared canvas sizing"""

    def test_equal_aspect_uses_height_branch(self):
        """
        Equal aspect ratios take the height-bounded branch.

        The width branch needs A strictly wider than B, so 800x600 against
        400x300 gives 533x400 rather than 600x450.
        """
        self.assertEqual(compute_canvas_size((800, 600), (400, 300)), (533, 400))

    def test_wider_first_image(self):
        self.assertEqual(compute_canvas_size((1200, 400), (400, 400)), (600, 200))

    def test_wider_second_image_is_not_width_bounded(self):
        """The height branch scales width by B's aspect ratio without a width cap"""
        self.assertEqual(compute_canvas_size((400, 400), (1200, 400)), (1200, 400))

    def test_small_images_keep_size(self):
        self.assertEqual(compute_canvas_size((100, 50), (80, 40)), (100, 50))

    def test_zero_size_rejected(self):
        with self.assertRaises(DegenerateInputError):
            compute_canvas_size((0, 10), (10, 10))

    def test_normalize_images_stretches_both(self):
        img_a = Image.new('RGB', (800, 600), color=(10, 20, 30))
        img_b = Image.new('RGBA', (400, 300), color=(40, 50, 60, 255))

        buf_a, buf_b = normalize_images(img_a, img_b)

        self.assertEqual(buf_a.shape, (400, 533, 4))
        self.assertEqual(buf_b.shape, (400, 533, 4))
        self.assertEqual(buf_a.dtype, np.uint8)
        self.assertEqual(tuple(buf_a[0, 0]), (10, 20, 30, 255))
        self.assertEqual(img_a.size, (800, 600))


class TestPixelDifference(unittest.TestCase):
    """Test sampling and classification"""

    def test_identical_buffers(self):
        rng = np.random.default_rng(7)
        buf = rng.integers(0, 256, (10, 20, 4), dtype=np.uint8)

        result, diff = compute_difference(buf, buf.copy())

        self.assertEqual(result.different_pixels, 0)
        self.assertEqual(result.percentage, 0.0)
        self.assertEqual(result.total_pixels, 200)
        self.assertIsNone(result.error)
        self.assertTrue((diff[:, :, 3] == 255).all())

    def test_red_vs_blue(self):
        """4x4 red vs blue is entirely different and the diff image is solid red"""
        result, diff = compute_difference(solid(4, 4, RED), solid(4, 4, BLUE))

        self.assertEqual(result.different_pixels, 16)
        self.assertEqual(result.total_pixels, 16)
        self.assertEqual(result.percentage, 100.0)
        self.assertEqual(result.sampling_factor, 1)
        self.assertTrue((diff == np.array(RED, dtype=np.uint8)).all())

    def test_threshold_is_exclusive(self):
        a = solid(2, 1, (100, 100, 100, 255))
        b = a.copy()
        b[0, 0] = (110, 110, 110, 255)  # distance 30
        b[0, 1] = (110, 110, 111, 255)  # distance 31

        result, diff = compute_difference(a, b)

        self.assertEqual(result.different_pixels, 1)
        self.assertEqual(tuple(diff[0, 0]), (100, 100, 100, 255))
        self.assertEqual(tuple(diff[0, 1]), RED)

    def test_alpha_ignored(self):
        a = solid(3, 3, (0, 0, 0, 0))
        b = solid(3, 3, (0, 0, 0, 255))
        result, _ = compute_difference(a, b)
        self.assertEqual(result.different_pixels, 0)

    def test_gray_rounds_to_nearest(self):
        a = solid(1, 1, (10, 20, 31, 255))
        _, diff = compute_difference(a, a.copy())
        self.assertEqual(tuple(diff[0, 0]), (20, 20, 20, 255))

        a = solid(1, 1, (1, 1, 0, 255))
        _, diff = compute_difference(a, a.copy())
        self.assertEqual(tuple(diff[0, 0]), (1, 1, 1, 255))

    def test_skip_factor(self):
        self.assertEqual(skip_factor_for(200000, 200000), 1)
        self.assertEqual(skip_factor_for(200001, 200000), 2)
        self.assertEqual(skip_factor_for(1000000, 200000), 5)

    def test_large_buffer_is_sampled(self):
        a = solid(500, 500, RED)
        b = solid(500, 500, BLUE)

        result, diff = compute_difference(a, b)

        self.assertEqual(result.sampling_factor, 2)
        self.assertEqual(result.total_pixels, 250000)
        self.assertEqual(result.different_pixels, 250000)
        self.assertAlmostEqual(result.percentage, 100.0)
        self.assertTrue((diff == np.array(RED, dtype=np.uint8)).all())

    def test_stride_paints_following_pixels(self):
        """Skipped pixels take the sample's classification, trailing remainder stays empty"""
        config = VisualDiffConfig(max_pixels=2)
        a = solid(5, 1, (50, 50, 50, 255))
        b = a.copy()
        b[0, 0] = (200, 200, 200, 255)

        result, diff = compute_difference(a, b, config=config)

        self.assertEqual(result.sampling_factor, 3)
        self.assertEqual(result.different_pixels, 3)
        self.assertAlmostEqual(result.percentage, 60.0)
        for x in range(3):
            self.assertEqual(tuple(diff[0, x]), RED)
        for x in (3, 4):
            self.assertEqual(tuple(diff[0, x]), (0, 0, 0, 0))

    def test_fast_mode_fixed_stride(self):
        a = solid(4, 4, (90, 90, 90, 255))
        b = a.copy()
        b[:, :2] = (0, 0, 0, 255)

        result, diff = compute_difference(a, b, mode=ComparisonMode.FAST)

        self.assertEqual(result.sampling_factor, 2)
        self.assertEqual(result.different_pixels, 8)
        self.assertEqual(result.total_pixels, 16)
        self.assertAlmostEqual(result.percentage, 50.0)
        for row in range(4):
            self.assertEqual(tuple(diff[row, 0]), RED)
            self.assertEqual(tuple(diff[row, 1]), RED)
            self.assertEqual(tuple(diff[row, 2]), (90, 90, 90, 255))
            self.assertEqual(tuple(diff[row, 3]), (90, 90, 90, 255))

    def test_fast_mode_odd_pixel_count(self):
        result, _ = compute_difference(solid(3, 1, RED), solid(3, 1, BLUE), mode=ComparisonMode.FAST)
        self.assertAlmostEqual(result.percentage, 100.0)

    def test_fast_percentage_counts_examined_samples(self):
        """3 pixels give samples at 0 and 2; one different sample is 50%"""
        a = solid(3, 1, RED)
        b = a.copy()
        b[0, 2] = BLUE

        result, _ = compute_difference(a, b, mode=ComparisonMode.FAST)

        self.assertEqual(result.different_pixels, 2)
        self.assertAlmostEqual(result.percentage, 50.0)

    def test_percentage_bounds(self):
        rng = np.random.default_rng(3)
        for shape in [(7, 13, 4), (1, 1, 4), (450, 600, 4)]:
            a = rng.integers(0, 256, shape, dtype=np.uint8)
            b = rng.integers(0, 256, shape, dtype=np.uint8)
            result, _ = compute_difference(a, b)
            self.assertGreaterEqual(result.percentage, 0.0)
            self.assertLessEqual(result.percentage, 100.0)
            self.assertLessEqual(result.different_pixels, result.total_pixels)

    def test_dimension_mismatch(self):
        with self.assertRaises(DimensionMismatchError):
            compute_difference(solid(4, 4, RED), solid(5, 4, RED))

    def test_degenerate_input(self):
        empty = np.zeros((0, 5, 4), dtype=np.uint8)
        with self.assertRaises(DegenerateInputError):
            compute_difference(empty, empty.copy())

    def test_unreadable_buffer(self):
        rgb = np.zeros((4, 4, 3), dtype=np.uint8)
        with self.assertRaises(ComputationError):
            compute_difference(rgb, rgb.copy())

    def test_safe_difference_reports_error(self):
        result, diff = safe_difference(solid(4, 4, RED), solid(2, 2, RED))

        self.assertIsNone(diff)
        self.assertIn("Dimension mismatch", result.error)
        self.assertEqual(result.percentage, 0.0)
        self.assertEqual(result.different_pixels, 0)
        self.assertFalse(result.ok)

    def test_status(self):
        self.assertEqual(DifferenceResult(0, 100, 1.5).status, "Nearly Identical")
        self.assertEqual(DifferenceResult(5, 100, 5.0).status, "Some Differences")
        self.assertEqual(DifferenceResult(50, 100, 50.0).status, "Significantly Different")


class TestColorPalette(unittest.TestCase):
    """Test dominant color extraction"""

    def test_stride(self):
        config = VisualDiffConfig()
        self.assertEqual(palette_stride(64, config), 16)
        self.assertEqual(palette_stride(600 * 450 * 4, config), 27)

    def test_solid_color(self):
        palette = extract_palette(solid(4, 4, (10, 20, 30, 255)))

        self.assertEqual(len(palette), 1)
        self.assertEqual(palette[0].color, (10, 20, 30))
        self.assertEqual(palette[0].count, 4)
        self.assertEqual(palette[0].css, "rgb(10,20,30)")

    def test_transparent_buffer(self):
        self.assertEqual(extract_palette(solid(8, 8, (10, 20, 30, 0))), [])

    def test_alpha_cutoff(self):
        buf = solid(8, 1, (10, 20, 30, 127))
        buf[0, 4] = (40, 50, 60, 128)
        palette = extract_palette(buf)
        self.assertEqual([p.color for p in palette], [(40, 50, 60)])

    def test_ordering_and_ties(self):
        """Sampled pixels are 0, 4, 8 and 12 of a 16x1 row"""
        buf = solid(16, 1, (0, 0, 0, 255))
        buf[0, 0] = (0, 0, 255, 255)
        buf[0, 4] = (255, 0, 0, 255)
        buf[0, 8] = (255, 0, 0, 255)
        buf[0, 12] = (0, 0, 255, 255)

        palette = extract_palette(buf)

        self.assertEqual([(p.color, p.count) for p in palette], [((0, 0, 255), 2), ((255, 0, 0), 2)])

        buf[0, 0] = (0, 255, 0, 255)
        buf[0, 12] = (255, 255, 255, 255)
        palette = extract_palette(buf)
        self.assertEqual([p.color for p in palette], [(255, 0, 0), (0, 255, 0), (255, 255, 255)])

    def test_top_ten(self):
        buf = solid(48, 1, (0, 0, 0, 255))
        for i in range(12):
            buf[0, i * 4] = (i, 0, 0, 255)

        palette = extract_palette(buf)

        self.assertEqual(len(palette), 10)
        self.assertEqual([p.color[0] for p in palette], list(range(10)))

    def test_failure_returns_empty(self):
        self.assertEqual(extract_palette(None), [])


class TestSliderCompositor(unittest.TestCase):
    """Test slider and side-by-side previews"""

    def test_split_position(self):
        self.assertEqual(split_position(50, 4), 2)
        self.assertEqual(split_position(37.5, 4), 2)
        self.assertEqual(split_position(0, 4), 0)
        self.assertEqual(split_position(100, 4), 4)
        with self.assertRaises(ValueError):
            split_position(101, 4)
        with self.assertRaises(ValueError):
            split_position(-0.5, 4)

    def test_composite(self):
        a = solid(4, 3, RED)
        b = solid(4, 3, BLUE)

        out = composite_slider(a, b, 50)

        self.assertTrue((out[:, :2] == np.array(RED, dtype=np.uint8)).all())
        self.assertTrue((out[:, 2:] == np.array(BLUE, dtype=np.uint8)).all())
        self.assertTrue((a == np.array(RED, dtype=np.uint8)).all())

    def test_composite_extremes(self):
        a = solid(4, 3, RED)
        b = solid(4, 3, BLUE)
        self.assertTrue((composite_slider(a, b, 0) == b).all())
        self.assertTrue((composite_slider(a, b, 100) == a).all())

    def test_side_by_side(self):
        out = side_by_side(solid(4, 3, RED), solid(4, 3, BLUE))
        self.assertEqual(out.shape, (3, 8, 4))
        self.assertEqual(tuple(out[0, 4]), BLUE)


class TestCLI(unittest.TestCase):
    """Test command line commands"""

    @classmethod
    def setUpClass(cls):
        """Create test images"""
        cls.test_dir = tempfile.mkdtemp()

        cls.image_a = os.path.join(cls.test_dir, 'a.png')
        Image.new('RGB', (64, 48), color=(100, 150, 200)).save(cls.image_a)

        img_b = Image.new('RGB', (64, 48), color=(100, 150, 200))
        pixels = img_b.load()
        for i in range(16):
            for j in range(16):
                pixels[i, j] = (250, 10, 10)
        cls.image_b = os.path.join(cls.test_dir, 'b.png')
        img_b.save(cls.image_b)

    @classmethod
    def tearDownClass(cls):
        """Clean up test images"""
        shutil.rmtree(cls.test_dir)

    def test_compare_writes_report_and_diff(self):
        out = os.path.join(self.test_dir, 'report.json')
        diff_out = os.path.join(self.test_dir, 'diff.png')

        code = VisualDiffCLI().run(['compare', '--image-a', self.image_a, '--image-b', self.image_b,
                                    '--out', out, '--diff-out', diff_out])

        self.assertEqual(code, 0)
        with open(out, 'r') as f:
            report = json.load(f)
        pixel_difference = report['visual']['pixel_difference']
        self.assertEqual(report['canvas'], [64, 48])
        self.assertEqual(pixel_difference['total_pixels'], 64 * 48)
        self.assertEqual(pixel_difference['different_pixels'], 256)
        self.assertEqual(len(report['visual']['color_analysis']['palette_a']), 1)
        with Image.open(diff_out) as diff:
            self.assertEqual(diff.size, (64, 48))
            self.assertEqual(diff.getpixel((0, 0)), RED)

    def test_compare_fast(self):
        out = os.path.join(self.test_dir, 'fast.json')
        code = VisualDiffCLI().run(['compare', '--image-a', self.image_a, '--image-b', self.image_a,
                                    '--out', out, '--fast'])
        self.assertEqual(code, 0)
        with open(out, 'r') as f:
            report = json.load(f)
        self.assertEqual(report['mode'], 'fast')
        self.assertEqual(report['visual']['pixel_difference']['sampling_factor'], 2)
        self.assertEqual(report['visual']['pixel_difference']['percentage'], 0.0)

    def test_compare_reports_difference_error(self):
        """A failed difference still writes the report but no diff image, exit code 2"""
        out = os.path.join(self.test_dir, 'failed.json')
        diff_out = os.path.join(self.test_dir, 'failed.png')
        failing = mock.AsyncMock(side_effect=ComputationError("buffer went away"))

        with mock.patch('visualdiff.core.generate_difference', new=failing):
            code = VisualDiffCLI().run(['compare', '--image-a', self.image_a, '--image-b', self.image_b,
                                        '--out', out, '--diff-out', diff_out])

        self.assertEqual(code, 2)
        with open(out, 'r') as f:
            report = json.load(f)
        pixel_difference = report['visual']['pixel_difference']
        self.assertEqual(pixel_difference['error'],
                         "Failed to analyze pixel differences: buffer went away")
        self.assertNotIn('status', pixel_difference)
        self.assertEqual(len(report['visual']['color_analysis']['palette_b']), 2)
        self.assertFalse(os.path.exists(diff_out))

    def test_missing_image(self):
        code = VisualDiffCLI().run(['compare', '--image-a', 'nonexistent.png', '--image-b', self.image_b])
        self.assertEqual(code, 1)

    def test_slider(self):
        out = os.path.join(self.test_dir, 'slider.png')
        code = VisualDiffCLI().run(['slider', '--image-a', self.image_b, '--image-b', self.image_a,
                                    '--ratio', '25', '--out', out])
        self.assertEqual(code, 0)
        with Image.open(out) as img:
            self.assertEqual(img.size, (64, 48))
            self.assertEqual(img.getpixel((0, 0))[:3], (250, 10, 10))
            self.assertEqual(img.getpixel((16, 0))[:3], (100, 150, 200))

    def test_palette(self):
        out = os.path.join(self.test_dir, 'palette.json')
        code = VisualDiffCLI().run(['palette', '--image', self.image_a, '--out', out])
        self.assertEqual(code, 0)
        with open(out, 'r') as f:
            palette = json.load(f)
        self.assertEqual(palette[0]['color'], [100, 150, 200])

    def test_config(self):
        out = os.path.join(self.test_dir, 'config.json')
        code = VisualDiffCLI().run(['config', '--out', out])
        self.assertEqual(code, 0)
        self.assertEqual(VisualDiffConfig.from_json(out), VisualDiffConfig())

    def test_no_command(self):
        self.assertEqual(VisualDiffCLI().run([]), 1)


if __name__ == '__main__':
    unittest.main(verbosity=2)
