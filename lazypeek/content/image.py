"""Image metadata and half-block terminal previews.

Raster decoding is delegated to Pillow and SVG drawing to cairosvg. Each
preview character packs two vertically stacked source pixels into one ``▀``
glyph: foreground is the upper sample, background the lower. Sampling is
nearest-neighbor without averaging.
"""

from __future__ import annotations

import io
import logging
import re
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from .types import ImageContent, RenderedPreview

logger = logging.getLogger(__name__)

HALF_BLOCK = "▀"
PREVIEW_MIN_SIZE_HINT = 15
PREVIEW_HEADER_ROWS = 4
PREVIEW_PADDING_COLS = 4
PREVIEW_MIN_COLS = 20
SVG_DEFAULT_SIZE = 256
SVG_PROBE_BYTES = 512
SVG_RENDER_SCALE = 10
SVG_MAX_RENDER_PX = 1024

_SVG_WIDTH_RE = re.compile(r'(?<![-\w])width="([^"]*)"')
_SVG_HEIGHT_RE = re.compile(r'(?<![-\w])height="([^"]*)"')
_SVG_VIEWBOX_RE = re.compile(r'viewBox="([^"]*)"')
_SIXTEEN_BIT_MODES = frozenset({"I;16", "I;16B", "I;16L", "I;16N"})
_HEADER_ERRORS = (UnidentifiedImageError, ValueError, SyntaxError, Image.DecompressionBombError)
_DECODE_ERRORS = (OSError, ValueError, SyntaxError, Image.DecompressionBombError)


@dataclass(frozen=True)
class DecodedImage:
    """Decoded pixel grid; ``pixel`` returns ``(r, g, b)`` at ``channel_bits`` depth."""

    width: int
    height: int
    pixel: Callable[[int, int], tuple[int, int, int]]
    channel_bits: int = 8


def _decoded_from_pillow(img: Image.Image) -> DecodedImage:
    if img.mode in _SIXTEEN_BIT_MODES:
        gray = img.copy().load()

        def gray_pixel(x: int, y: int) -> tuple[int, int, int]:
            value = int(gray[x, y])
            return value, value, value

        return DecodedImage(width=img.width, height=img.height, pixel=gray_pixel, channel_bits=16)

    rgb = img.convert("RGB")
    access = rgb.load()

    def rgb_pixel(x: int, y: int) -> tuple[int, int, int]:
        r, g, b = access[x, y]
        return r, g, b

    return DecodedImage(width=rgb.width, height=rgb.height, pixel=rgb_pixel)


def decode_pixel_grid(path: Path) -> DecodedImage:
    """Fully decode the image at ``path``; raises on unreadable or invalid data."""
    with Image.open(Path(path)) as img:
        img.load()
        return _decoded_from_pillow(img)


def _target_pixels(source_width: int, source_height: int, max_char_width: int, max_char_height: int) -> tuple[int, int]:
    """Return ``(width_px, height_px)`` fitting the bounds with aspect preserved."""
    aspect = source_width / source_height
    effective_max_height = max_char_height * 2
    if aspect > max_char_width / effective_max_height:
        target_width = max_char_width
        target_height = int(max_char_width / aspect)
    else:
        target_height = effective_max_height
        target_width = int(effective_max_height * aspect)

    if target_height % 2:
        target_height -= 1
    target_height = max(2, target_height)
    target_width = max(1, min(max_char_width, target_width))
    return target_width, target_height


def _to_8bit(value: int, channel_bits: int) -> int:
    if channel_bits > 8:
        value >>= channel_bits - 8
    return max(0, min(255, value))


def render_preview(image: DecodedImage, max_char_width: int, max_char_height: int) -> RenderedPreview:
    """Downsample ``image`` into at most ``max_char_width`` x ``max_char_height`` cells.

    Rows are strings of 24-bit colored half-block glyphs, each followed by an
    SGR reset. Degenerate bounds or an empty image give an empty preview.
    """
    if max_char_width <= 0 or max_char_height <= 0 or image.width <= 0 or image.height <= 0:
        return RenderedPreview(char_width=0, char_height=0, rows=())

    target_width, target_height = _target_pixels(image.width, image.height, max_char_width, max_char_height)
    char_width = target_width
    char_height = target_height // 2
    x_scale = image.width / target_width
    y_scale = image.height / target_height
    last_x = image.width - 1
    last_y = image.height - 1
    bits = image.channel_bits

    rows: list[str] = []
    for row in range(char_height):
        y1 = min(last_y, int((row * 2) * y_scale))
        y2 = min(last_y, int((row * 2 + 1) * y_scale))
        cells: list[str] = []
        for col in range(char_width):
            x = min(last_x, int(col * x_scale))
            r1, g1, b1 = (_to_8bit(channel, bits) for channel in image.pixel(x, y1))
            r2, g2, b2 = (_to_8bit(channel, bits) for channel in image.pixel(x, y2))
            cells.append(f"\x1b[38;2;{r1};{g1};{b1};48;2;{r2};{g2};{b2}m{HALF_BLOCK}\x1b[0m")
        rows.append("".join(cells))
    return RenderedPreview(char_width=char_width, char_height=char_height, rows=tuple(rows))


def preview_bounds(size_hint: int, width_hint: int) -> tuple[int, int] | None:
    """Map request hints to ``(max_char_width, max_char_height)`` or ``None`` when too small."""
    if size_hint <= PREVIEW_MIN_SIZE_HINT:
        return None
    return max(PREVIEW_MIN_COLS, width_hint - PREVIEW_PADDING_COLS), size_hint - PREVIEW_HEADER_ROWS


def _parse_svg_length(text: str) -> int | None:
    try:
        return int(text)
    except ValueError:
        return None


def extract_svg_dimensions(svg_text: str) -> tuple[int, int]:
    """Read width/height attributes, letting a ``viewBox`` override them."""
    width = height = SVG_DEFAULT_SIZE
    match = _SVG_WIDTH_RE.search(svg_text)
    parsed = _parse_svg_length(match.group(1)) if match else None
    if parsed is not None:
        width = parsed
    match = _SVG_HEIGHT_RE.search(svg_text)
    parsed = _parse_svg_length(match.group(1)) if match else None
    if parsed is not None:
        height = parsed
    match = _SVG_VIEWBOX_RE.search(svg_text)
    if match:
        parts = match.group(1).split()
        if len(parts) >= 4:
            try:
                width = int(float(parts[2]))
                height = int(float(parts[3]))
            except ValueError:
                pass
    return width, height


def looks_like_svg(path: Path) -> bool:
    try:
        with Path(path).open("rb") as handle:
            sample = handle.read(SVG_PROBE_BYTES)
    except OSError:
        return False
    lowered = sample.decode("utf-8", errors="replace").lower()
    return "<?xml" in lowered and ("<svg" in lowered or 'xmlns="http://www.w3.org/2000/svg"' in lowered)


def svg_render_size(width: int, height: int, max_char_width: int, max_char_height: int) -> tuple[int, int]:
    """Pixel size to rasterize an SVG at before downsampling into preview cells.

    Drawings far larger than ten pixels per preview cell are scaled down to
    that density, and neither side exceeds ``SVG_MAX_RENDER_PX``.
    """
    width = max(1, width)
    height = max(1, height)
    if height > max_char_height * SVG_RENDER_SCALE or width > max_char_width * SVG_RENDER_SCALE:
        aspect = width / height
        if aspect > max_char_width / max_char_height:
            width = max_char_width * SVG_RENDER_SCALE
            height = int(width / aspect)
        else:
            height = max_char_height * SVG_RENDER_SCALE
            width = int(height * aspect)
    if width > SVG_MAX_RENDER_PX or height > SVG_MAX_RENDER_PX:
        scale = SVG_MAX_RENDER_PX / max(width, height)
        width = int(width * scale)
        height = int(height * scale)
    return max(1, width), max(1, height)


def rasterize_svg(data: bytes, width: int, height: int) -> bytes:
    """Render SVG source to PNG bytes of exactly ``width`` x ``height`` pixels."""
    # cairosvg loads the native cairo library on import.
    import cairosvg

    return cairosvg.svg2png(bytestring=data, output_width=width, output_height=height)


def read_svg_info(
    path: Path,
    size_bytes: int,
    max_preview_height: int = 0,
    max_preview_width: int = 0,
) -> tuple[ImageContent | None, str | None, bool]:
    """SVG metadata plus, when space allows, a preview of the rasterized drawing.

    A drawing that fails to parse or render keeps its metadata and reports
    ``preview_error``.
    """
    try:
        data = Path(path).read_bytes()
    except OSError as exc:
        return None, str(exc), False
    width, height = extract_svg_dimensions(data.decode("utf-8", errors="replace"))

    bounds = preview_bounds(max_preview_height, max_preview_width)
    preview = None
    preview_error = None
    if bounds is not None:
        render_width, render_height = svg_render_size(width, height, bounds[0], bounds[1])
        try:
            png = rasterize_svg(data, render_width, render_height)
            with Image.open(io.BytesIO(png)) as img:
                img.load()
                decoded = _decoded_from_pillow(img)
        except _DECODE_ERRORS as exc:
            logger.warning("svg render failed for %s: %s", path, exc)
            preview_error = f"svg render failed: {exc}"
        else:
            preview = render_preview(decoded, bounds[0], bounds[1])

    content = ImageContent(
        format="svg",
        width=width,
        height=height,
        size_bytes=size_bytes,
        preview=preview,
        preview_error=preview_error,
    )
    return content, None, False


def read_image_info(
    path: Path,
    max_preview_height: int,
    max_preview_width: int,
) -> tuple[ImageContent | None, str | None, bool]:
    """Read image metadata and, when space allows, a half-block preview.

    Returns ``(content, error, is_decode_error)``. A header that cannot be
    parsed fails the whole request. When the header parses but the full
    decode fails, the metadata is still returned with ``preview_error`` set.
    """
    path = Path(path)
    try:
        size_bytes = path.stat().st_size
    except OSError as exc:
        return None, str(exc), False

    if path.suffix.lower() == ".svg" or (not path.suffix and looks_like_svg(path)):
        return read_svg_info(path, size_bytes, max_preview_height, max_preview_width)

    try:
        with Image.open(path) as img:
            image_format = (img.format or "unknown").lower()
            width, height = img.size
    except _HEADER_ERRORS as exc:
        logger.debug("image header read failed for %s: %s", path, exc)
        return None, f"not a valid image: {exc}", True
    except OSError as exc:
        return None, str(exc), False

    bounds = preview_bounds(max_preview_height, max_preview_width)
    preview = None
    preview_error = None
    if bounds is not None:
        try:
            decoded = decode_pixel_grid(path)
        except _DECODE_ERRORS as exc:
            logger.warning("image decode failed for %s: %s", path, exc)
            preview_error = f"decode failed: {exc}"
        else:
            preview = render_preview(decoded, bounds[0], bounds[1])

    content = ImageContent(
        format=image_format,
        width=width,
        height=height,
        size_bytes=size_bytes,
        preview=preview,
        preview_error=preview_error,
    )
    return content, None, False
