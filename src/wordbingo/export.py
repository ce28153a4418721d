"""Export rendered cards as a PDF, PNG files, or a ZIP of PNG files.

Rasters are pulled from the input iterable one at a time and released before the
next is requested, so a lazy renderer never holds more than one card in memory.
Every exporter builds its output fully in memory and either returns complete
bytes or raises ExportError.
"""

from __future__ import annotations

import io
import logging
import zipfile
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable, Iterator, List, Optional, Tuple

from PIL import Image
from reportlab.lib.units import mm
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from .errors import ExportCancelledError, ExportError
from .units import MM, PRESETS_MM, Dimensions, resolve_preset

logger = logging.getLogger(__name__)

PAGE_MARGIN_MM = 10.0
GRID_GUTTER_MM = 5.0
GRID_COLUMNS = 2
GRID_ROWS = 2
CARDS_PER_GRID_PAGE = GRID_COLUMNS * GRID_ROWS

DOCUMENT_NAME = "bingo-cards.pdf"
BUNDLE_NAME = "bingo-cards.zip"

CancelCheck = Callable[[], bool]


class LayoutMode(str, Enum):
    ONE_PER_PAGE = "one-per-page"
    GRID_PER_PAGE = "grid-per-page"


class ExportFormat(str, Enum):
    PDF = "pdf"
    PNG = "png"
    ZIP = "zip"


@dataclass(frozen=True)
class Slot:
    """Area reserved for one card, in mm from the page's top-left corner."""

    page: int
    position: int
    x: float
    y: float
    width: float
    height: float


def page_size_mm(page: str) -> Dimensions:
    if page not in PRESETS_MM:
        raise ExportError(f"Unsupported page preset for PDF export: {page!r}")
    return resolve_preset(page, MM)


def slot_for(index: int, layout_mode: LayoutMode, page: Dimensions) -> Slot:
    margin = PAGE_MARGIN_MM
    if layout_mode == LayoutMode.ONE_PER_PAGE:
        return Slot(
            page=index,
            position=0,
            x=margin,
            y=margin,
            width=page.width - margin * 2,
            height=page.height - margin * 2,
        )
    position = index % CARDS_PER_GRID_PAGE
    row, col = divmod(position, GRID_COLUMNS)
    cell_w = (page.width - margin * 2 - GRID_GUTTER_MM * (GRID_COLUMNS - 1)) / GRID_COLUMNS
    cell_h = (page.height - margin * 2 - GRID_GUTTER_MM * (GRID_ROWS - 1)) / GRID_ROWS
    return Slot(
        page=index // CARDS_PER_GRID_PAGE,
        position=position,
        x=margin + col * (cell_w + GRID_GUTTER_MM),
        y=margin + row * (cell_h + GRID_GUTTER_MM),
        width=cell_w,
        height=cell_h,
    )


def plan_layout(count: int, layout_mode: LayoutMode | str, page: Dimensions) -> List[Slot]:
    mode = LayoutMode(layout_mode)
    return [slot_for(i, mode, page) for i in range(count)]


def fit_into(slot: Slot, image_width: int, image_height: int) -> Tuple[float, float, float, float]:
    """Largest aspect-preserving box inside the slot, centred; (x, y, w, h) in mm."""
    if image_width <= 0 or image_height <= 0:
        raise ValueError("image has no pixels")
    scale = min(slot.width / image_width, slot.height / image_height)
    w = image_width * scale
    h = image_height * scale
    return slot.x + (slot.width - w) / 2, slot.y + (slot.height - h) / 2, w, h


def _rasters(rendered: Iterable[Image.Image], cancel: Optional[CancelCheck]) -> Iterator[Tuple[int, Image.Image]]:
    iterator = iter(rendered)
    index = 0
    while True:
        if cancel is not None and cancel():
            raise ExportCancelledError(f"Export cancelled after {index} card(s)")
        try:
            image = next(iterator)
        except StopIteration:
            return
        yield index, image
        del image
        index += 1


def _guarded(label: str, build: Callable[[], object]):
    try:
        return build()
    except ExportError:
        raise
    except Exception as e:
        raise ExportError(f"{label} export failed: {e}") from e


def encode_png(image: Image.Image) -> bytes:
    buf = io.BytesIO()
    image.save(buf, format="PNG")
    return buf.getvalue()


def image_filename(index: int) -> str:
    return f"card-{index + 1}.png"


def export_document(
    rendered: Iterable[Image.Image],
    layout_mode: LayoutMode | str = LayoutMode.ONE_PER_PAGE,
    *,
    page: str = "A4",
    cancel: Optional[CancelCheck] = None,
) -> bytes:
    mode = LayoutMode(layout_mode)

    def build() -> bytes:
        size = page_size_mm(page)
        buf = io.BytesIO()
        c = canvas.Canvas(buf, pagesize=(size.width * mm, size.height * mm))
        c.setTitle("Bingo Cards")
        current_page = 0
        count = 0
        for index, image in _rasters(rendered, cancel):
            slot = slot_for(index, mode, size)
            if slot.page != current_page:
                c.showPage()
                current_page = slot.page
            x, y, w, h = fit_into(slot, image.width, image.height)
            reader = ImageReader(image)
            del image
            # reportlab's origin is bottom-left
            c.drawImage(reader, x * mm, (size.height - y - h) * mm, width=w * mm, height=h * mm, mask="auto")
            del reader
            count += 1
            logger.debug("Placed card %d on page %d (slot %d)", index + 1, slot.page + 1, slot.position)
        if count == 0:
            raise ExportError("No cards to export")
        c.showPage()
        c.save()
        logger.info("PDF export: %d card(s) on %d page(s), layout %s", count, current_page + 1, mode.value)
        return buf.getvalue()

    return _guarded("PDF", build)


def _iter_pngs(rendered: Iterable[Image.Image], cancel: Optional[CancelCheck]) -> Iterator[Tuple[str, bytes]]:
    for index, image in _rasters(rendered, cancel):
        data = encode_png(image)
        del image
        yield image_filename(index), data


def export_discrete_images(
    rendered: Iterable[Image.Image], *, cancel: Optional[CancelCheck] = None
) -> List[Tuple[str, bytes]]:
    def build() -> List[Tuple[str, bytes]]:
        files = list(_iter_pngs(rendered, cancel))
        if not files:
            raise ExportError("No cards to export")
        logger.info("PNG export: %d file(s)", len(files))
        return files

    return _guarded("PNG", build)


def export_bundle(rendered: Iterable[Image.Image], *, cancel: Optional[CancelCheck] = None) -> bytes:
    def build() -> bytes:
        buf = io.BytesIO()
        count = 0
        with zipfile.ZipFile(buf, "w", compression=zipfile.ZIP_DEFLATED) as zf:
            for name, data in _iter_pngs(rendered, cancel):
                zf.writestr(name, data)
                count += 1
        if count == 0:
            raise ExportError("No cards to export")
        logger.info("ZIP export: %d entr%s", count, "y" if count == 1 else "ies")
        return buf.getvalue()

    return _guarded("ZIP", build)


@dataclass
class ExportJob:
    """One export request; ``run`` returns the (filename, bytes) outputs to write."""

    rendered: Iterable[Image.Image]
    format: ExportFormat = ExportFormat.PDF
    layout_mode: LayoutMode = LayoutMode.ONE_PER_PAGE
    page: str = "A4"
    cancel: Optional[CancelCheck] = None

    def run(self) -> List[Tuple[str, bytes]]:
        fmt = ExportFormat(self.format)
        if fmt == ExportFormat.PDF:
            data = export_document(self.rendered, self.layout_mode, page=self.page, cancel=self.cancel)
            return [(DOCUMENT_NAME, data)]
        if fmt == ExportFormat.PNG:
            return export_discrete_images(self.rendered, cancel=self.cancel)
        return [(BUNDLE_NAME, export_bundle(self.rendered, cancel=self.cancel))]
