"""Image color extraction for logos and brand imagery."""

import io
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple, Union

from PIL import Image, ImageOps, UnidentifiedImageError

from .color_utils import color_distance, get_perceived_brightness, get_saturation, hex_to_rgb, is_light_color
from .config import get_config
from .contrast import ColorContrastManager
from .exceptions import DecodeError, EmptyImageError
from .logging_config import get_logger
from .models import (
    ColorFrequency,
    ExtractedColors,
    ImageAnalysis,
    ImageAnalysisOptions,
    PixelBuffer,
    RGBColor,
    WHITE,
)

logger = get_logger(__name__)

NEAR_BLACK = hex_to_rgb('#111827')
NEAR_WHITE = hex_to_rgb('#F9FAFB')
# Palette entries below this HSL saturation are treated as neutrals
VIBRANT_MIN_SATURATION = 0.1
# Candidate groups kept while merging, per requested palette slot
GROUPS_PER_SLOT = 8


class _Bucket:
    """Running sum of the pixels that fell into one quantization cell."""

    __slots__ = ('count', 'r', 'g', 'b')

    def __init__(self):
        self.count = 0
        self.r = 0
        self.g = 0
        self.b = 0

    def add(self, r: int, g: int, b: int, weight: int = 1) -> None:
        self.count += weight
        self.r += r * weight
        self.g += g * weight
        self.b += b * weight

    def absorb(self, other: '_Bucket') -> None:
        self.count += other.count
        self.r += other.r
        self.g += other.g
        self.b += other.b

    @property
    def color(self) -> RGBColor:
        return RGBColor(r=self.r / self.count, g=self.g / self.count, b=self.b / self.count)


def decode_image(data: bytes, max_dimension: Optional[int] = None) -> PixelBuffer:
    """
    Decode raster bytes (PNG, JPEG, WebP, GIF first frame, ...) into RGBA pixels.

    Args:
        data: Encoded image bytes
        max_dimension: Longest side after thumbnailing; keeps analysis cheap

    Returns:
        PixelBuffer in row-major order

    Raises:
        DecodeError: if Pillow cannot identify or read the bytes
    """
    if not isinstance(data, (bytes, bytearray)) or not data:
        raise DecodeError("No image bytes provided")

    max_dimension = max_dimension or get_config().image.max_dimension
    try:
        image = Image.open(io.BytesIO(data))
        image.load()
        source_format = (image.format or "unknown").lower()
        image = ImageOps.exif_transpose(image)
        if image.mode != 'RGBA':
            image = image.convert('RGBA')
        image.thumbnail((max_dimension, max_dimension))
    except (UnidentifiedImageError, Image.DecompressionBombError) as e:
        raise DecodeError("Unsupported image format", cause=e)
    except (OSError, ValueError) as e:
        raise DecodeError("Corrupt image data", cause=e)

    raw = image.tobytes()
    pixels = tuple(zip(raw[0::4], raw[1::4], raw[2::4], raw[3::4]))
    logger.debug(f"Decoded {source_format} image to {image.width}x{image.height}")
    return PixelBuffer(width=image.width, height=image.height, pixels=pixels, format=source_format)


class ImageAnalyzer:
    """Extract a ranked palette and brightness statistics from a pixel buffer."""

    def __init__(self, options: Optional[ImageAnalysisOptions] = None, max_repair_steps: Optional[int] = None):
        self.options = options or ImageAnalysisOptions()
        if max_repair_steps is None:
            max_repair_steps = get_config().generator.max_darken_steps
        self.contrast = ColorContrastManager(level="AA", max_steps=max_repair_steps)

    def analyze_bytes(self, data: bytes) -> ImageAnalysis:
        """Decode and analyze encoded image bytes."""
        return self.analyze(decode_image(data, self.options.max_dimension))

    def analyze(self, buffer: PixelBuffer) -> ImageAnalysis:
        """
        Analyze a decoded image.

        Args:
            buffer: Decoded RGBA pixels

        Returns:
            ImageAnalysis with palette, dominant color and a readable fg/bg pair

        Raises:
            EmptyImageError: if the image has no rows or columns
            DecodeError: if the pixel count does not match the dimensions
        """
        if buffer.width <= 0 or buffer.height <= 0:
            raise EmptyImageError(buffer.width, buffer.height)
        if len(buffer.pixels) != buffer.width * buffer.height:
            raise DecodeError(
                "Pixel buffer does not match its dimensions",
                context={'expected': buffer.width * buffer.height, 'actual': len(buffer.pixels)}
            )

        buckets, sampled, brightness_sum = self._sample(buffer)
        palette = self._build_palette(buckets, sampled)

        if palette:
            dominant = palette[0].color
            average_brightness = brightness_sum / sampled
        else:
            logger.warning(f"No opaque pixels in {buffer.width}x{buffer.height} image; using neutral palette")
            dominant = WHITE
            average_brightness = get_perceived_brightness(dominant)

        colors = self.extracted_colors(dominant, palette)
        average_brightness = max(0.0, min(1.0, average_brightness))

        logger.info(
            f"Image {buffer.width}x{buffer.height} | sampled={sampled} | "
            f"dominant={dominant.hex} | palette={', '.join(c.hex for c in palette)}"
        )
        return ImageAnalysis(
            colors=colors,
            average_brightness=average_brightness,
            is_light_image=average_brightness > 0.5,
            width=buffer.width,
            height=buffer.height,
            sampled_pixels=sampled,
            format=buffer.format,
        )

    def _sample(self, buffer: PixelBuffer) -> Tuple[Dict[Tuple[int, int, int], _Bucket], int, float]:
        """Walk the grid at the configured stride and bucket opaque pixels."""
        stride = self.options.sample_stride
        width = self.options.bucket_width
        alpha_threshold = self.options.alpha_threshold

        buckets: Dict[Tuple[int, int, int], _Bucket] = {}
        sampled = 0
        brightness_sum = 0.0
        for y in range(0, buffer.height, stride):
            row = y * buffer.width
            for x in range(0, buffer.width, stride):
                r, g, b, a = buffer.pixels[row + x]
                if a <= alpha_threshold:
                    continue
                key = (r // width, g // width, b // width)
                bucket = buckets.get(key)
                if bucket is None:
                    bucket = buckets[key] = _Bucket()
                bucket.add(r, g, b)
                sampled += 1
                # Inlined get_perceived_brightness
                brightness_sum += (0.299 * r + 0.587 * g + 0.114 * b) / 255.0
        return buckets, sampled, brightness_sum

    def _build_palette(self, buckets: Dict[Tuple[int, int, int], _Bucket], sampled: int) -> List[ColorFrequency]:
        """Merge neighbouring buckets and rank them by pixel count."""
        ordered = sorted(buckets.items(), key=lambda item: (-item[1].count, item[0]))
        groups = merge_buckets([bucket for _, bucket in ordered], self.options.merge_distance,
                               self.options.max_palette_size * GROUPS_PER_SLOT)
        groups.sort(key=lambda group: -group.count)
        return [
            ColorFrequency(color=group.color, count=group.count, percentage=group.count / sampled * 100.0)
            for group in groups[:self.options.max_palette_size]
        ]

    def extracted_colors(self, dominant: RGBColor, palette: List[ColorFrequency]) -> ExtractedColors:
        foreground = self.contrast.repair(NEAR_BLACK if is_light_color(dominant) else NEAR_WHITE, dominant)
        return ExtractedColors(
            dominant=dominant,
            palette=palette,
            suggested_foreground=foreground,
            suggested_background=dominant,
            vibrant=find_vibrant(palette),
        )


def merge_buckets(buckets: Sequence[_Bucket], merge_distance: float, max_groups: int) -> List[_Bucket]:
    """
    Greedily fold buckets (largest first) into groups of similar color.

    A bucket joins the first group whose mean color lies within
    `merge_distance`; otherwise it starts a new group while fewer than
    `max_groups` exist. Tail buckets that fit nowhere are dropped from the
    palette but were still counted in the sample.
    """
    groups: List[_Bucket] = []
    for bucket in buckets:
        color = bucket.color
        target = None
        if merge_distance > 0:
            for group in groups:
                if color_distance(color, group.color) <= merge_distance:
                    target = group
                    break
        if target is not None:
            target.absorb(bucket)
        elif len(groups) < max_groups:
            group = _Bucket()
            group.absorb(bucket)
            groups.append(group)
    return groups


def find_vibrant(palette: Sequence[ColorFrequency]) -> Optional[RGBColor]:
    """Most frequent palette color with noticeable saturation."""
    for entry in palette:
        if get_saturation(entry.color) > VIBRANT_MIN_SATURATION:
            return entry.color
    return None


# Utility functions for external use
def analyze_image(buffer: PixelBuffer, options: Optional[ImageAnalysisOptions] = None) -> ImageAnalysis:
    return ImageAnalyzer(options).analyze(buffer)


def analyze_image_bytes(data: bytes, options: Optional[ImageAnalysisOptions] = None) -> ImageAnalysis:
    return ImageAnalyzer(options).analyze_bytes(data)


def analyze_image_file(path: Union[str, Path], options: Optional[ImageAnalysisOptions] = None) -> ImageAnalysis:
    """Read and analyze an image file from disk."""
    return analyze_image_bytes(Path(path).read_bytes(), options)


def aggregate_image_analyses(
    analyses: Sequence[ImageAnalysis],
    options: Optional[ImageAnalysisOptions] = None
) -> ExtractedColors:
    """
    Combine several image palettes into one by summing similar colors.

    Args:
        analyses: Results for the individual images
        options: Palette size and merge distance to apply

    Returns:
        ExtractedColors for the combined palette
    """
    analyzer = ImageAnalyzer(options)
    entries: List[_Bucket] = []
    for analysis in analyses:
        for entry in analysis.colors.palette:
            bucket = _Bucket()
            bucket.add(*entry.color.as_tuple(), weight=entry.count)
            entries.append(bucket)

    entries.sort(key=lambda bucket: -bucket.count)
    groups = merge_buckets(entries, analyzer.options.merge_distance,
                           analyzer.options.max_palette_size * GROUPS_PER_SLOT)
    groups.sort(key=lambda group: -group.count)
    total = sum(group.count for group in groups)
    palette = [
        ColorFrequency(color=group.color, count=group.count, percentage=group.count / total * 100.0)
        for group in groups[:analyzer.options.max_palette_size]
    ]
    dominant = palette[0].color if palette else WHITE
    logger.info(f"Aggregated {len(analyses)} images into {len(palette)} colors")
    return analyzer.extracted_colors(dominant, palette)
