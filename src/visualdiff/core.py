"""
visualdiff - Sampled pixel difference and palette analysis for image pairs
Normalizes two images onto a shared canvas, classifies sampled pixels by RGB
distance and paints a difference image, extracts dominant colors and builds
slider / side-by-side previews.
Notes:
- Large canvases are sampled with a stride; skipped pixels inherit the
  classification of the sample in front of them.
- Difference counts are estimates (samples times stride), totals are exact.
- Full comparisons run under two independent deadlines and yield to the
  event loop while looping over pixels.
- Palette colors are exact RGB triples, no bucketing.
"""

import argparse
import asyncio
import json
import logging
import math
import sys
import time
from dataclasses import dataclass, asdict, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

import numpy as np
from PIL import Image
from tabulate import tabulate

from .errors import (
    ComparisonError,
    ComparisonInProgressError,
    ComparisonTimeoutError,
    ComputationError,
    ConfigError,
    DegenerateInputError,
    DimensionMismatchError,
)
from .ocr import TextRecognizer, recognize_buffer
from .textdiff import OCRTextComparison, compare_ocr_results
from .timeouts import Deadline, cooperative_yield, race

logger = logging.getLogger(__name__)

# Constants
DEFAULT_THRESHOLD = 30
DEFAULT_MAX_PIXELS = 200000
DEFAULT_FAST_STEP = 2
DEFAULT_YIELD_EVERY = 5000
DEFAULT_OUTER_TIMEOUT = 15.0
DEFAULT_INNER_TIMEOUT = 10.0
DEFAULT_MAX_CANVAS_WIDTH = 600
DEFAULT_MAX_CANVAS_HEIGHT = 400
DEFAULT_PALETTE_SIZE = 10
DEFAULT_PALETTE_MIN_STRIDE = 16
DEFAULT_PALETTE_SAMPLE_DIVISOR = 40000
DEFAULT_ALPHA_CUTOFF = 128
DEFAULT_SLIDER_RATIO = 50.0
VERSION = "1.0.0"

DIFF_COLOR = (255, 0, 0, 255)


class ComparisonMode(Enum):
    FAST = "fast"
    FULL = "full"


class ViewMode(Enum):
    SIDE_BY_SIDE = "side-by-side"
    SLIDER = "slider"
    DIFF = "diff"


@dataclass
class VisualDiffConfig:
    """Configuration for image comparison"""
    threshold: int = DEFAULT_THRESHOLD
    max_pixels: int = DEFAULT_MAX_PIXELS
    fast_step: int = DEFAULT_FAST_STEP
    yield_every: int = DEFAULT_YIELD_EVERY
    outer_timeout: float = DEFAULT_OUTER_TIMEOUT  # seconds, whole comparison
    inner_timeout: float = DEFAULT_INNER_TIMEOUT  # seconds, pixel difference only
    max_canvas_width: int = DEFAULT_MAX_CANVAS_WIDTH
    max_canvas_height: int = DEFAULT_MAX_CANVAS_HEIGHT
    palette_size: int = DEFAULT_PALETTE_SIZE
    palette_min_stride: int = DEFAULT_PALETTE_MIN_STRIDE
    palette_sample_divisor: int = DEFAULT_PALETTE_SAMPLE_DIVISOR
    alpha_cutoff: int = DEFAULT_ALPHA_CUTOFF

    def validate(self) -> 'VisualDiffConfig':
        for name, value in asdict(self).items():
            if name == 'threshold':
                if value < 0:
                    raise ConfigError(f"threshold must be >= 0, got {value}")
            elif value <= 0:
                raise ConfigError(f"{name} must be positive, got {value}")
        return self

    @classmethod
    def from_json(cls, path: str) -> 'VisualDiffConfig':
        """Load configuration from JSON file"""
        try:
            with open(path, 'r') as f:
                data = json.load(f)
            return cls(**data).validate()
        except ConfigError:
            raise
        except Exception as e:
            raise ConfigError(f"Failed to load config from {path}: {e}")

    def to_json(self, path: str):
        """Save configuration to JSON file"""
        with open(path, 'w') as f:
            json.dump(asdict(self), f, indent=2)


@dataclass(frozen=True)
class DifferenceResult:
    different_pixels: int
    total_pixels: int
    percentage: float
    sampling_factor: int = 1
    error: Optional[str] = None

    @classmethod
    def failed(cls, message: str) -> 'DifferenceResult':
        return cls(different_pixels=0, total_pixels=0, percentage=0.0, sampling_factor=1, error=message)

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def status(self) -> str:
        if self.percentage > 10:
            return "Significantly Different"
        if self.percentage > 2:
            return "Some Differences"
        return "Nearly Identical"

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        if self.ok:
            data.pop('error')
            data['status'] = self.status
        return data


@dataclass(frozen=True)
class PaletteEntry:
    color: Tuple[int, int, int]
    count: int

    @property
    def css(self) -> str:
        r, g, b = self.color
        return f"rgb({r},{g},{b})"

    def to_dict(self) -> Dict[str, Any]:
        return {'color': list(self.color), 'css': self.css, 'count': self.count}


@dataclass(frozen=True)
class SamplingPlan:
    """How many pixels to examine and how far apart"""
    stride: int
    samples: int


# ---------------------------------------------------------------------------
# Canvas normalization
# ---------------------------------------------------------------------------

def compute_canvas_size(size_a: Tuple[int, int], size_b: Tuple[int, int],
                        max_width: int = DEFAULT_MAX_CANVAS_WIDTH,
                        max_height: int = DEFAULT_MAX_CANVAS_HEIGHT) -> Tuple[int, int]:
    """
    Pick one (width, height) shared by both images.

    The wider-aspect image keeps its aspect ratio and the other one is
    stretched to fit. This is a plain heuristic, not letterboxing.
    Fractional sizes truncate.
    """
    wa, ha = size_a
    wb, hb = size_b
    if min(wa, ha, wb, hb) <= 0:
        raise DegenerateInputError(f"Cannot normalize {wa}x{ha} and {wb}x{hb} images")

    aspect_a = wa / ha
    aspect_b = wb / hb
    if aspect_a > aspect_b:
        width = min(max_width, max(wa, wb))
        height = width * ha / wa
    else:
        height = min(max_height, max(ha, hb))
        width = height * wb / hb

    width, height = int(width), int(height)
    if width == 0 or height == 0:
        raise DegenerateInputError(f"Shared canvas collapsed to {width}x{height}")
    return width, height


def to_rgba_buffer(image: Image.Image, size: Optional[Tuple[int, int]] = None) -> np.ndarray:
    """Decode an image into an (H, W, 4) uint8 buffer, stretched to size if given"""
    rgba = image.convert('RGBA')
    if size is not None and rgba.size != tuple(size):
        rgba = rgba.resize(size, Image.Resampling.BILINEAR)
    return np.array(rgba, dtype=np.uint8)


def normalize_images(image_a: Image.Image, image_b: Image.Image,
                     config: Optional[VisualDiffConfig] = None) -> Tuple[np.ndarray, np.ndarray]:
    """Resample both images onto the shared canvas"""
    config = config or VisualDiffConfig()
    size = compute_canvas_size(image_a.size, image_b.size, config.max_canvas_width, config.max_canvas_height)
    logger.debug(f"Canvas {size[0]}x{size[1]} for {image_a.size} and {image_b.size}")
    return to_rgba_buffer(image_a, size), to_rgba_buffer(image_b, size)


# ---------------------------------------------------------------------------
# Pixel difference
# ---------------------------------------------------------------------------

def skip_factor_for(total_pixels: int, max_pixels: int) -> int:
    if total_pixels > max_pixels:
        return math.ceil(total_pixels / max_pixels)
    return 1


def plan_sampling(total_pixels: int, mode: ComparisonMode, config: VisualDiffConfig) -> SamplingPlan:
    if mode is ComparisonMode.FAST:
        stride = config.fast_step
        return SamplingPlan(stride=stride, samples=math.ceil(total_pixels / stride))
    stride = skip_factor_for(total_pixels, config.max_pixels)
    # pixels after the last whole stride are never sampled
    return SamplingPlan(stride=stride, samples=total_pixels // stride)


def _check_buffers(buffer_a: np.ndarray, buffer_b: np.ndarray) -> Tuple[int, int]:
    for buf in (buffer_a, buffer_b):
        if not isinstance(buf, np.ndarray) or buf.ndim != 3 or buf.shape[2] != 4:
            raise ComputationError(f"Expected an (H, W, 4) RGBA buffer, got {getattr(buf, 'shape', type(buf))}")
    if buffer_a.shape != buffer_b.shape:
        raise DimensionMismatchError(f"Dimension mismatch: {buffer_a.shape[1]}x{buffer_a.shape[0]} "
                                     f"vs {buffer_b.shape[1]}x{buffer_b.shape[0]}")
    height, width = buffer_a.shape[:2]
    if width == 0 or height == 0:
        raise DegenerateInputError(f"Invalid canvas dimensions: {width}x{height}")
    return width, height


def _paint_samples(pixels_a: np.ndarray, pixels_b: np.ndarray, out: np.ndarray,
                   start: int, stop: int, stride: int, threshold: int) -> int:
    """Classify samples [start, stop) and paint their strides into out, returns how many differ"""
    total = pixels_a.shape[0]
    offsets = np.arange(start, stop, dtype=np.int64) * stride
    rgb_a = pixels_a[offsets, :3].astype(np.int16)
    rgb_b = pixels_b[offsets, :3].astype(np.int16)

    different = np.abs(rgb_a - rgb_b).sum(axis=1) > threshold
    # (r + g + b) / 3 rounded to nearest
    gray = (rgb_a.sum(axis=1) + 1) // 3

    colors = np.empty((len(offsets), 4), dtype=np.uint8)
    colors[:, 0] = np.where(different, DIFF_COLOR[0], gray)
    colors[:, 1] = np.where(different, DIFF_COLOR[1], gray)
    colors[:, 2] = np.where(different, DIFF_COLOR[2], gray)
    colors[:, 3] = 255

    targets = (offsets[:, None] + np.arange(stride, dtype=np.int64)).ravel()
    painted = np.repeat(colors, stride, axis=0)
    inside = targets < total
    out[targets[inside]] = painted[inside]
    return int(np.count_nonzero(different))


def _summarize(plan: SamplingPlan, different_samples: int, total_pixels: int,
               mode: ComparisonMode) -> DifferenceResult:
    """
    FAST percentages divide by the samples actually examined rather than the
    total, which keeps them inside [0, 100] when the pixel count is odd.
    """
    different_pixels = different_samples * plan.stride
    if mode is ComparisonMode.FAST:
        percentage = different_samples / plan.samples * 100
    else:
        percentage = different_pixels / total_pixels * 100
    return DifferenceResult(
        different_pixels=different_pixels,
        total_pixels=total_pixels,
        percentage=percentage,
        sampling_factor=plan.stride,
    )


def compute_difference(buffer_a: np.ndarray, buffer_b: np.ndarray,
                       mode: ComparisonMode = ComparisonMode.FULL,
                       config: Optional[VisualDiffConfig] = None) -> Tuple[DifferenceResult, np.ndarray]:
    """
    Compare two equally sized RGBA buffers in one pass.

    Returns the DifferenceResult and an (H, W, 4) difference image where
    differing strides are red and matching strides are image A in grayscale.
    Raises ComparisonError subclasses for unusable input.
    """
    config = config or VisualDiffConfig()
    width, height = _check_buffers(buffer_a, buffer_b)
    total = width * height
    plan = plan_sampling(total, mode, config)

    pixels_a = buffer_a.reshape(total, 4)
    pixels_b = buffer_b.reshape(total, 4)
    diff = np.zeros((total, 4), dtype=np.uint8)
    different = _paint_samples(pixels_a, pixels_b, diff, 0, plan.samples, plan.stride, config.threshold)

    result = _summarize(plan, different, total, mode)
    logger.debug(f"{mode.value} difference: {plan.samples} samples, {different} different, "
                 f"{result.percentage:.2f}%")
    return result, diff.reshape(height, width, 4)


async def generate_difference(buffer_a: np.ndarray, buffer_b: np.ndarray,
                              mode: ComparisonMode = ComparisonMode.FULL,
                              config: Optional[VisualDiffConfig] = None) -> Tuple[DifferenceResult, np.ndarray]:
    """Same output as compute_difference, yielding to the event loop every config.yield_every samples"""
    config = config or VisualDiffConfig()
    width, height = _check_buffers(buffer_a, buffer_b)
    total = width * height
    plan = plan_sampling(total, mode, config)
    logger.debug(f"Processing settings: total_pixels={total}, stride={plan.stride}, samples={plan.samples}")

    pixels_a = buffer_a.reshape(total, 4)
    pixels_b = buffer_b.reshape(total, 4)
    diff = np.zeros((total, 4), dtype=np.uint8)
    different = 0
    for start in range(0, plan.samples, config.yield_every):
        stop = min(plan.samples, start + config.yield_every)
        different += _paint_samples(pixels_a, pixels_b, diff, start, stop, plan.stride, config.threshold)
        if stop % config.yield_every == 0:
            logger.debug(f"Processed {stop} samples...")
            await cooperative_yield()

    result = _summarize(plan, different, total, mode)
    logger.info(f"Pixel processing complete: {plan.samples} samples, {different} different "
                f"({result.percentage:.2f}%)")
    return result, diff.reshape(height, width, 4)


def safe_difference(buffer_a: np.ndarray, buffer_b: np.ndarray,
                    mode: ComparisonMode = ComparisonMode.FULL,
                    config: Optional[VisualDiffConfig] = None) -> Tuple[DifferenceResult, Optional[np.ndarray]]:
    """compute_difference that reports failures in DifferenceResult.error instead of raising"""
    try:
        return compute_difference(buffer_a, buffer_b, mode, config)
    except ComparisonError as e:
        logger.error(f"Pixel difference rejected input: {e}")
        return DifferenceResult.failed(f"Failed to analyze pixel differences: {e}"), None
    except Exception as e:
        logger.exception("Error generating pixel difference")
        return DifferenceResult.failed(f"Failed to analyze pixel differences: {e}"), None


# ---------------------------------------------------------------------------
# Palette
# ---------------------------------------------------------------------------

def palette_stride(buffer_length: int, config: VisualDiffConfig) -> int:
    return max(config.palette_min_stride, buffer_length // config.palette_sample_divisor)


def extract_palette(buffer: np.ndarray, config: Optional[VisualDiffConfig] = None) -> List[PaletteEntry]:
    """
    Most frequent exact RGB colors in a sampled buffer.

    The stride is in bytes over the flat RGBA data and is not rounded to a
    pixel boundary, so four consecutive bytes starting at each offset are
    read as (r, g, b, a). Samples with alpha below the cutoff are ignored.
    Ties keep the order colors were first seen.
    """
    config = config or VisualDiffConfig()
    try:
        flat = np.ascontiguousarray(buffer, dtype=np.uint8).reshape(-1)
        stride = palette_stride(flat.size, config)
        offsets = np.arange(0, flat.size, stride, dtype=np.int64)
        offsets = offsets[offsets + 3 < flat.size]

        opaque = offsets[flat[offsets + 3] >= config.alpha_cutoff]
        if opaque.size == 0:
            return []
        keys = ((flat[opaque].astype(np.int64) << 16)
                | (flat[opaque + 1].astype(np.int64) << 8)
                | flat[opaque + 2].astype(np.int64))

        unique, first_seen, counts = np.unique(keys, return_index=True, return_counts=True)
        order = np.lexsort((first_seen, -counts))[:config.palette_size]
        return [
            PaletteEntry(color=(int(k >> 16) & 0xFF, int(k >> 8) & 0xFF, int(k) & 0xFF), count=int(c))
            for k, c in zip(unique[order], counts[order])
        ]
    except Exception as e:
        logger.error(f"Error extracting color palette: {e}")
        return []


# ---------------------------------------------------------------------------
# Previews
# ---------------------------------------------------------------------------

def split_position(ratio: float, width: int) -> int:
    """Column where image B starts, ratio/100 * width rounded half up"""
    if not 0 <= ratio <= 100:
        raise ValueError(f"Split ratio must be within [0, 100], got {ratio}")
    return min(width, int(math.floor(ratio / 100.0 * width + 0.5)))


def composite_slider(buffer_a: np.ndarray, buffer_b: np.ndarray, ratio: float = DEFAULT_SLIDER_RATIO) -> np.ndarray:
    """Left of the split comes from A, the rest from B"""
    width, _ = _check_buffers(buffer_a, buffer_b)
    split = split_position(ratio, width)
    out = buffer_b.copy()
    out[:, :split] = buffer_a[:, :split]
    return out


def side_by_side(buffer_a: np.ndarray, buffer_b: np.ndarray) -> np.ndarray:
    _check_buffers(buffer_a, buffer_b)
    return np.concatenate([buffer_a, buffer_b], axis=1)


# ---------------------------------------------------------------------------
# Sessions and reports
# ---------------------------------------------------------------------------

@dataclass
class ComparisonReport:
    mode: str
    timestamp: str
    canvas: Optional[List[int]]
    pixel_difference: DifferenceResult
    palette_a: List[PaletteEntry] = field(default_factory=list)
    palette_b: List[PaletteEntry] = field(default_factory=list)
    text: Optional[OCRTextComparison] = None
    type: str = "image"

    def to_dict(self) -> Dict[str, Any]:
        report = {
            'type': self.type,
            'mode': self.mode,
            'timestamp': self.timestamp,
            'canvas': self.canvas,
            'visual': {
                'pixel_difference': self.pixel_difference.to_dict(),
                'color_analysis': {
                    'palette_a': [p.to_dict() for p in self.palette_a],
                    'palette_b': [p.to_dict() for p in self.palette_b],
                },
            },
        }
        if self.text is not None:
            report['text'] = self.text.to_dict()
        return report


@dataclass
class ComparisonSession:
    """State of one comparison run, handed from stage to stage"""
    mode: ComparisonMode
    buffer_a: Optional[np.ndarray] = None
    buffer_b: Optional[np.ndarray] = None
    difference: Optional[DifferenceResult] = None
    diff_buffer: Optional[np.ndarray] = None
    palette_a: Optional[List[PaletteEntry]] = None
    palette_b: Optional[List[PaletteEntry]] = None
    text: Optional[OCRTextComparison] = None
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def canvas_size(self) -> Optional[Tuple[int, int]]:
        if self.buffer_a is None:
            return None
        height, width = self.buffer_a.shape[:2]
        return width, height

    def to_report(self) -> ComparisonReport:
        size = self.canvas_size
        return ComparisonReport(
            mode=self.mode.value,
            timestamp=self.started_at.isoformat().replace('+00:00', 'Z'),
            canvas=list(size) if size else None,
            pixel_difference=self.difference or DifferenceResult.failed("Comparison did not run"),
            palette_a=self.palette_a or [],
            palette_b=self.palette_b or [],
            text=self.text,
        )


def render_view(session: ComparisonSession, view: ViewMode, ratio: float = DEFAULT_SLIDER_RATIO) -> np.ndarray:
    """Image for the selected preview"""
    if session.buffer_a is None or session.buffer_b is None:
        raise ComparisonError("Session has no normalized images")
    if view is ViewMode.SIDE_BY_SIDE:
        return side_by_side(session.buffer_a, session.buffer_b)
    elif view is ViewMode.SLIDER:
        return composite_slider(session.buffer_a, session.buffer_b, ratio)
    elif view is ViewMode.DIFF:
        if session.diff_buffer is None:
            raise ComparisonError("No difference image available")
        return session.diff_buffer
    raise ValueError(f"Unknown view mode: {view}")


class ImageComparator:
    """Runs comparisons, one at a time"""

    def __init__(self, config: Optional[VisualDiffConfig] = None, recognizer: Optional[TextRecognizer] = None):
        self.config = (config or VisualDiffConfig()).validate()
        self.recognizer = recognizer
        self._active = False

    @property
    def busy(self) -> bool:
        return self._active

    async def compare(self, image_a: Image.Image, image_b: Image.Image,
                      mode: ComparisonMode = ComparisonMode.FULL) -> ComparisonSession:
        """
        Compare two decoded images.

        Never raises for bad images or timeouts: the session's difference
        carries the error message and palettes are still extracted whenever
        normalization succeeded. Raises ComparisonInProgressError if this
        comparator is already running a comparison.

        Decoding and resampling onto the canvas run synchronously before the
        first suspension point, so the outer deadline cannot cut them short.
        """
        if self._active:
            raise ComparisonInProgressError("A comparison is already running on this comparator")
        self._active = True
        session = ComparisonSession(mode=mode)
        outer = Deadline(self.config.outer_timeout,
                         f"Analysis timed out after {self.config.outer_timeout:g} seconds")
        start_time = time.time()
        logger.info(f"Starting {mode.value} image comparison")
        try:
            await race(self._run(session, image_a, image_b), outer)
        except ComparisonTimeoutError as e:
            logger.error(f"Comparison failed: {e}")
            if session.difference is None:
                session.difference = DifferenceResult.failed(f"Comparison failed: {e}")
        finally:
            self._active = False

        self._extract_palettes(session)
        logger.info(f"Comparison finished in {time.time() - start_time:.2f}s")
        return session

    def compare_sync(self, image_a: Image.Image, image_b: Image.Image,
                     mode: ComparisonMode = ComparisonMode.FULL) -> ComparisonSession:
        return asyncio.run(self.compare(image_a, image_b, mode))

    async def _run(self, session: ComparisonSession, image_a: Image.Image, image_b: Image.Image):
        try:
            session.buffer_a, session.buffer_b = normalize_images(image_a, image_b, self.config)
        except Exception as e:
            logger.error(f"Failed to set up canvases: {e}")
            session.difference = DifferenceResult.failed(f"Failed to set up canvases: {e}")
            return

        if session.mode is ComparisonMode.FULL:
            await self._recognize_text(session)
            inner = Deadline(self.config.inner_timeout, "Pixel difference analysis timed out")
            session.difference, session.diff_buffer = await self._difference(session, inner)
        else:
            session.difference, session.diff_buffer = await self._difference(session)

        self._extract_palettes(session)

    async def _difference(self, session: ComparisonSession,
                          *deadlines: Deadline) -> Tuple[DifferenceResult, Optional[np.ndarray]]:
        work = generate_difference(session.buffer_a, session.buffer_b, session.mode, self.config)
        try:
            return await race(work, *deadlines)
        except ComparisonTimeoutError as e:
            logger.error(f"Visual analysis failed: {e}")
            return DifferenceResult.failed(f"Visual analysis failed: {e}"), None
        except ComparisonError as e:
            logger.error(f"Pixel difference rejected input: {e}")
            return DifferenceResult.failed(f"Failed to analyze pixel differences: {e}"), None
        except Exception as e:
            logger.exception("Error generating pixel difference")
            return DifferenceResult.failed(f"Failed to analyze pixel differences: {e}"), None

    async def _recognize_text(self, session: ComparisonSession):
        if self.recognizer is None:
            return
        result_a, result_b = await asyncio.gather(
            recognize_buffer(self.recognizer, session.buffer_a),
            recognize_buffer(self.recognizer, session.buffer_b),
        )
        if result_a is not None and result_b is not None:
            session.text = compare_ocr_results(result_a, result_b)

    def _extract_palettes(self, session: ComparisonSession):
        if session.buffer_a is None or session.buffer_b is None:
            return
        if session.palette_a is None:
            session.palette_a = extract_palette(session.buffer_a, self.config)
        if session.palette_b is None:
            session.palette_b = extract_palette(session.buffer_b, self.config)


# ---------------------------------------------------------------------------
# Command line
# ---------------------------------------------------------------------------

def load_image(path: str) -> Image.Image:
    """Open and fully decode an image file"""
    with Image.open(path) as img:
        img.load()
        return img.copy()


def save_buffer(buffer: np.ndarray, path: str):
    Image.fromarray(buffer).save(path)


class VisualDiffCLI:
    """Command-line interface for visualdiff"""

    def __init__(self):
        self.parser = self._create_parser()

    def _create_parser(self) -> argparse.ArgumentParser:
        parser = argparse.ArgumentParser(
            description='visualdiff - Pixel difference and palette comparison for image pairs',
            formatter_class=argparse.RawDescriptionHelpFormatter
        )
        parser.add_argument('--version', action='version', version=f'visualdiff v{VERSION}')

        subparsers = parser.add_subparsers(dest='command', help='Available commands')

        # Compare command
        cmp_parser = subparsers.add_parser('compare', help='Compare two images')
        cmp_parser.add_argument('--image-a', required=True, help='Path to first image')
        cmp_parser.add_argument('--image-b', required=True, help='Path to second image')
        cmp_parser.add_argument('--out', help='Output path for the JSON report')
        cmp_parser.add_argument('--diff-out', help='Output path for the difference PNG')
        cmp_parser.add_argument('--fast', action='store_true', help='Fixed stride, no OCR or inner deadline')
        cmp_parser.add_argument('--config', help='Path to configuration file')
        cmp_parser.add_argument('--verbose', action='store_true', help='Enable verbose logging')

        # Slider command
        slider_parser = subparsers.add_parser('slider', help='Write a slider composite of two images')
        slider_parser.add_argument('--image-a', required=True, help='Path to left image')
        slider_parser.add_argument('--image-b', required=True, help='Path to right image')
        slider_parser.add_argument('--ratio', type=float, default=DEFAULT_SLIDER_RATIO,
                                   help='Percentage of the width showing the first image (0-100)')
        slider_parser.add_argument('--out', required=True, help='Output path for the composite PNG')
        slider_parser.add_argument('--config', help='Path to configuration file')
        slider_parser.add_argument('--verbose', action='store_true', help='Enable verbose logging')

        # Palette command
        palette_parser = subparsers.add_parser('palette', help='Extract the dominant colors of an image')
        palette_parser.add_argument('--image', required=True, help='Path to input image')
        palette_parser.add_argument('--out', help='Output path for the palette JSON')
        palette_parser.add_argument('--config', help='Path to configuration file')
        palette_parser.add_argument('--verbose', action='store_true', help='Enable verbose logging')

        # Config command
        config_parser = subparsers.add_parser('config', help='Generate default configuration file')
        config_parser.add_argument('--out', required=True, help='Output path for configuration file')

        return parser

    def run(self, args=None):
        args = self.parser.parse_args(args)

        if not args.command:
            self.parser.print_help()
            return 1

        if getattr(args, 'verbose', False):
            logging.getLogger().setLevel(logging.DEBUG)

        try:
            if args.command == 'compare':
                return self._compare(args)
            elif args.command == 'slider':
                return self._slider(args)
            elif args.command == 'palette':
                return self._palette(args)
            elif args.command == 'config':
                return self._generate_config(args)
        except Exception as e:
            logger.error(f"Error: {e}")
            return 1

    @staticmethod
    def _load_config(args) -> VisualDiffConfig:
        if getattr(args, 'config', None):
            return VisualDiffConfig.from_json(args.config)
        return VisualDiffConfig()

    def _compare(self, args) -> int:
        comparator = ImageComparator(self._load_config(args))
        mode = ComparisonMode.FAST if args.fast else ComparisonMode.FULL
        image_a = load_image(args.image_a)
        image_b = load_image(args.image_b)

        session = comparator.compare_sync(image_a, image_b, mode)
        report = session.to_report()
        diff = report.pixel_difference

        if args.out:
            with open(args.out, 'w') as f:
                json.dump(report.to_dict(), f, indent=2)
            logger.info(f"Report saved to {args.out}")
        if args.diff_out and session.diff_buffer is not None:
            save_buffer(session.diff_buffer, args.diff_out)
            logger.info(f"Difference image saved to {args.diff_out}")

        if not diff.ok:
            logger.warning(f"✗ {diff.error}")
            return 2

        rows = [
            ["Canvas", f"{report.canvas[0]}x{report.canvas[1]}"],
            ["Difference", f"{diff.percentage:.2f}%"],
            ["Different pixels", f"{diff.different_pixels:,} / {diff.total_pixels:,}"],
            ["Status", diff.status],
        ]
        if diff.sampling_factor > 1:
            rows.append(["Sampling", f"{diff.sampling_factor}x"])
        print(tabulate(rows, tablefmt="simple"))
        print()
        print(tabulate(self._palette_rows(report.palette_a, report.palette_b),
                       headers=["#", "Palette A", "Count", "Palette B", "Count"]))
        return 0

    @staticmethod
    def _palette_rows(palette_a: List[PaletteEntry], palette_b: List[PaletteEntry]) -> List[List[Any]]:
        rows = []
        for i in range(max(len(palette_a), len(palette_b))):
            a = palette_a[i] if i < len(palette_a) else None
            b = palette_b[i] if i < len(palette_b) else None
            rows.append([
                i + 1,
                a.css if a else "", a.count if a else "",
                b.css if b else "", b.count if b else "",
            ])
        return rows

    def _slider(self, args) -> int:
        config = self._load_config(args)
        buffer_a, buffer_b = normalize_images(load_image(args.image_a), load_image(args.image_b), config)
        save_buffer(composite_slider(buffer_a, buffer_b, args.ratio), args.out)
        logger.info(f"Slider composite at {args.ratio:g}% saved to {args.out}")
        return 0

    def _palette(self, args) -> int:
        config = self._load_config(args)
        palette = extract_palette(to_rgba_buffer(load_image(args.image)), config)
        if args.out:
            with open(args.out, 'w') as f:
                json.dump([p.to_dict() for p in palette], f, indent=2)
            logger.info(f"Palette saved to {args.out}")
        print(tabulate([[p.css, p.count] for p in palette], headers=["Color", "Count"]))
        return 0

    def _generate_config(self, args) -> int:
        config = VisualDiffConfig()
        config.to_json(args.out)
        logger.info(f"Default configuration saved to {args.out}")
        return 0


def main():
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    cli = VisualDiffCLI()
    sys.exit(cli.run())


if __name__ == '__main__':
    main()
