"""Pillow rasterizer for bingo cards.

This is the default rendering collaborator: it turns a BingoCard plus styling into
an RGBA image the exporters can consume.
"""

from __future__ import annotations

import io
import logging
import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from PIL import Image, ImageDraw, ImageFont

from .errors import InvalidFileTypeError, ParseError
from .generator import BingoCard
from .layout import CARD_PADDING, calculate_card_dimensions
from .units import SizeConfig

logger = logging.getLogger(__name__)

LOGO_MEDIA_TYPES = {"image/png", "image/jpeg", "image/svg+xml"}
LOGO_ADVISORY_LIMIT = 5 * 1024 * 1024

CELL_BACKGROUND = "#FFFFFF"
LOGO_RESERVED_HEIGHT = 60
LOGO_BOTTOM_OFFSET = 10
LOGO_MAX_WIDTH = 100
LOGO_MAX_HEIGHT = 50

_HEX_COLOR = re.compile(r"^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")
_NAMED_COLORS: Dict[str, str] = {
    "white": "#FFFFFF",
    "black": "#000000",
    "transparent": "transparent",
    "gray": "#808080",
    "red": "#FF0000",
    "blue": "#0000FF",
    "green": "#008000",
}

FONT_CANDIDATES = [
    "DejaVuSans-Bold.ttf",
    "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf",
    "/usr/share/fonts/TTF/DejaVuSans-Bold.ttf",
    "/System/Library/Fonts/Helvetica.ttc",
    "arialbd.ttf",
]


@dataclass
class StylingConfig:
    outer_border: int = 3
    outer_border_color: str = "#1F2937"
    show_grid_lines: bool = True
    grid_line_thickness: int = 1
    grid_line_color: str = "#D1D5DB"
    cell_padding: int = 8
    font_color: str = "#1F2937"
    background_color: str = "#FFFFFF"
    rounded_corners: int = 8


@dataclass
class LogoConfig:
    image: Optional[Image.Image] = None
    size: int = 20  # percent of card width, 5..40
    show_on_cards: bool = False

    def __post_init__(self) -> None:
        self.size = max(5, min(40, int(self.size)))


@dataclass
class RenderOptions:
    styling: StylingConfig = field(default_factory=StylingConfig)
    size: SizeConfig = field(default_factory=SizeConfig)
    logo: LogoConfig = field(default_factory=LogoConfig)
    scale: int = 2


def normalize_color(color: str) -> str:
    """Reduce a colour to a hex string (or 'transparent').

    CSS functions and variables are not modelled and collapse to black.
    """
    value = (color or "").strip()
    if value.startswith("#"):
        return value if _HEX_COLOR.match(value) else "#000000"
    return _NAMED_COLORS.get(value.lower(), "#000000")


def _rgba(color: str) -> Tuple[int, int, int, int]:
    normalized = normalize_color(color)
    if normalized == "transparent":
        return (0, 0, 0, 0)
    digits = normalized[1:]
    if len(digits) == 3:
        digits = "".join(ch * 2 for ch in digits)
    return (int(digits[0:2], 16), int(digits[2:4], 16), int(digits[4:6], 16), 255)


def cell_font_size(grid_size: int) -> int:
    return max(10, 20 - grid_size * 2)


def load_font(size: int) -> ImageFont.ImageFont:
    for path in FONT_CANDIDATES:
        try:
            return ImageFont.truetype(path, size)
        except OSError:
            continue
    logger.debug("No TrueType font found, using Pillow default font")
    return ImageFont.load_default(size=size)


def load_logo(data: bytes, media_type: str) -> Image.Image:
    if media_type not in LOGO_MEDIA_TYPES:
        raise InvalidFileTypeError("Please upload a PNG, JPG, or SVG file")
    if len(data) > LOGO_ADVISORY_LIMIT:
        logger.warning("Logo is %.1f MB, larger than the advised 5 MB", len(data) / 1024 / 1024)
    try:
        if media_type == "image/svg+xml":
            import cairosvg

            data = cairosvg.svg2png(bytestring=data)
        with Image.open(io.BytesIO(data)) as img:
            return img.convert("RGBA")
    except Exception as e:
        raise ParseError(f"Could not read logo: {e}") from e


def _text_width(draw: ImageDraw.ImageDraw, text: str, font: ImageFont.ImageFont) -> float:
    return draw.textlength(text, font=font)


def wrap_text(
    draw: ImageDraw.ImageDraw, text: str, font: ImageFont.ImageFont, max_width: float
) -> List[str]:
    """Greedy word wrap; words wider than the cell are broken by character."""
    lines: List[str] = []
    current = ""
    for token in text.split():
        candidate = f"{current} {token}" if current else token
        if _text_width(draw, candidate, font) <= max_width:
            current = candidate
            continue
        if current:
            lines.append(current)
            current = ""
        while _text_width(draw, token, font) > max_width and len(token) > 1:
            cut = len(token) - 1
            while cut > 1 and _text_width(draw, token[:cut], font) > max_width:
                cut -= 1
            lines.append(token[:cut])
            token = token[cut:]
        current = token
    if current:
        lines.append(current)
    return lines or [text]


def _draw_cell_text(
    draw: ImageDraw.ImageDraw,
    box: Tuple[float, float, float, float],
    text: str,
    font: ImageFont.ImageFont,
    padding: float,
    fill: Tuple[int, int, int, int],
) -> None:
    x0, y0, x1, y1 = box
    max_width = max(1.0, (x1 - x0) - padding * 2)
    lines = wrap_text(draw, text, font, max_width)
    ascent, descent = font.getmetrics() if hasattr(font, "getmetrics") else (getattr(font, "size", 10), 0)
    line_height = ascent + descent
    total = line_height * len(lines)
    y = y0 + ((y1 - y0) - total) / 2
    for line in lines:
        w = _text_width(draw, line, font)
        draw.text((x0 + ((x1 - x0) - w) / 2, y), line, font=font, fill=fill)
        y += line_height


def render_card(card: BingoCard, options: Optional[RenderOptions] = None) -> Image.Image:
    opts = options or RenderOptions()
    styling = opts.styling
    scale = max(1, int(opts.scale))
    width_px, height_px = opts.size.pixels()
    w, h = width_px * scale, height_px * scale

    img = Image.new("RGBA", (w, h), (255, 255, 255, 0))
    draw = ImageDraw.Draw(img)

    border = styling.outer_border * scale
    draw.rounded_rectangle(
        (0, 0, w - 1, h - 1),
        radius=styling.rounded_corners * scale,
        fill=_rgba(styling.background_color),
        outline=_rgba(styling.outer_border_color) if border > 0 else None,
        width=max(border, 0),
    )

    logo = opts.logo
    show_logo = logo.show_on_cards and logo.image is not None
    padding = CARD_PADDING * scale
    gap = styling.grid_line_thickness * scale
    reserved = LOGO_RESERVED_HEIGHT * scale if show_logo else 0

    g = card.grid_size
    dims = calculate_card_dimensions(g, w, h - reserved, padding=padding, border=border, spacing=gap)
    cell_w, cell_h = dims.cell_width, dims.cell_height
    grid_x0 = grid_y0 = border + padding
    font = load_font(cell_font_size(g) * scale)
    text_fill = _rgba(styling.font_color)
    line_color = _rgba(styling.grid_line_color)

    for index, word in enumerate(card.words):
        r, c = divmod(index, g)
        x0 = grid_x0 + c * (cell_w + gap)
        y0 = grid_y0 + r * (cell_h + gap)
        box = (x0, y0, x0 + cell_w, y0 + cell_h)
        draw.rectangle(
            box,
            fill=_rgba(CELL_BACKGROUND),
            outline=line_color if styling.show_grid_lines else None,
            width=gap if styling.show_grid_lines else 0,
        )
        _draw_cell_text(draw, box, word, font, styling.cell_padding * scale, text_fill)

    if show_logo:
        _paste_logo(img, logo, scale)
    return img


def _paste_logo(img: Image.Image, logo: LogoConfig, scale: int) -> None:
    w, h = img.size
    max_w = min(w * 0.3, LOGO_MAX_WIDTH * scale, w * logo.size / 100)
    max_h = min(LOGO_MAX_HEIGHT * scale, h - LOGO_BOTTOM_OFFSET * scale)
    mark = logo.image.copy()
    mark.thumbnail((max(1, int(max_w)), max(1, int(max_h))), Image.LANCZOS)
    x = (w - mark.width) // 2
    y = max(0, h - LOGO_BOTTOM_OFFSET * scale - mark.height)
    img.alpha_composite(mark.convert("RGBA"), (x, y))


def render_cards(
    cards: Iterable[BingoCard], options: Optional[RenderOptions] = None
) -> Iterator[Image.Image]:
    """Lazily render cards one at a time, in order."""
    for card in cards:
        logger.debug("Rendering %s", card.id)
        yield render_card(card, options)
