from __future__ import annotations

import gc
import io
import re
import weakref
import zipfile

import pytest
from PIL import Image

from wordbingo.errors import ExportCancelledError, ExportError
from wordbingo.export import (
    ExportFormat,
    ExportJob,
    LayoutMode,
    export_bundle,
    export_discrete_images,
    export_document,
    fit_into,
    plan_layout,
)
from wordbingo.units import resolve_preset

A4 = resolve_preset("A4", "mm")


def rasters(n: int, size=(60, 80)):
    return [Image.new("RGBA", size, (255, 255, i * 20 % 256, 255)) for i in range(n)]


def page_count(pdf: bytes) -> int:
    return len(re.findall(rb"/Type\s*/Page\b", pdf))


def test_grid_layout_five_cards_two_pages_in_order():
    slots = plan_layout(5, "grid-per-page", A4)
    assert [s.page for s in slots] == [0, 0, 0, 0, 1]
    assert [s.position for s in slots] == [0, 1, 2, 3, 0]
    # top-left, top-right, bottom-left, bottom-right
    assert slots[0].x < slots[1].x and slots[0].y == slots[1].y
    assert slots[2].y > slots[0].y and slots[2].x == slots[0].x


def test_grid_slots_respect_margins_and_gutters():
    s = plan_layout(4, LayoutMode.GRID_PER_PAGE, A4)
    assert s[0].x == 10 and s[0].y == 10
    assert s[1].x - (s[0].x + s[0].width) == pytest.approx(5)
    assert s[3].x + s[3].width == pytest.approx(A4.width - 10)
    assert s[3].y + s[3].height == pytest.approx(A4.height - 10)


def test_one_per_page_fills_width_and_centres_vertically():
    slot = plan_layout(1, "one-per-page", A4)[0]
    x, y, w, h = fit_into(slot, 600, 800)
    assert x == pytest.approx(10)
    assert w == pytest.approx(190)
    assert h == pytest.approx(190 * 800 / 600)
    assert y + h / 2 == pytest.approx(A4.height / 2)


def test_fit_keeps_tall_images_on_the_page():
    slot = plan_layout(1, "one-per-page", A4)[0]
    _, y, w, h = fit_into(slot, 100, 1000)
    assert h == pytest.approx(slot.height)
    assert y == pytest.approx(10)


def test_pdf_pages_per_layout():
    one = export_document(rasters(3), "one-per-page")
    assert one.startswith(b"%PDF")
    assert page_count(one) == 3
    grid = export_document(rasters(5), "grid-per-page")
    assert page_count(grid) == 2


def test_pdf_accepts_letter_but_not_custom_pages():
    assert export_document(rasters(1), page="Letter").startswith(b"%PDF")
    with pytest.raises(ExportError):
        export_document(rasters(1), page="Custom")


def test_discrete_images_are_named_sequentially():
    files = export_discrete_images(rasters(3))
    assert [name for name, _ in files] == ["card-1.png", "card-2.png", "card-3.png"]
    with Image.open(io.BytesIO(files[0][1])) as img:
        assert img.format == "PNG"
        assert img.size == (60, 80)


def test_bundle_entries_match_discrete_names():
    data = export_bundle(rasters(2))
    with zipfile.ZipFile(io.BytesIO(data)) as zf:
        assert zf.namelist() == ["card-1.png", "card-2.png"]
        assert zf.read("card-2.png").startswith(b"\x89PNG")


@pytest.mark.parametrize("export", [export_document, export_discrete_images, export_bundle])
def test_empty_export_fails(export):
    with pytest.raises(ExportError, match="No cards"):
        export([])


def test_rasterization_failure_aborts_with_cause():
    def failing():
        yield Image.new("RGBA", (10, 10))
        raise RuntimeError("render crashed")

    with pytest.raises(ExportError) as exc:
        export_bundle(failing())
    assert isinstance(exc.value.__cause__, RuntimeError)


def test_rasters_are_pulled_one_at_a_time():
    pulled = []

    def lazy():
        for i in range(3):
            pulled.append(i)
            yield Image.new("RGBA", (10, 10))

    it = lazy()
    files = export_discrete_images(it)
    assert pulled == [0, 1, 2]
    assert len(files) == 3


@pytest.mark.parametrize(
    "export",
    [
        lambda it: export_document(it, LayoutMode.ONE_PER_PAGE),
        lambda it: export_document(it, LayoutMode.GRID_PER_PAGE),
        lambda it: export_discrete_images(it),
        lambda it: export_bundle(it),
    ],
)
def test_previous_raster_released_before_next_is_rendered(export):
    refs = []
    live_before_render = []

    def make():
        image = Image.new("RGBA", (60, 80), (200, 10, 10, 255))
        refs.append(weakref.ref(image))
        return image

    def lazy():
        for _ in range(3):
            gc.collect()
            live_before_render.append(sum(1 for ref in refs if ref() is not None))
            yield make()

    export(lazy())
    assert live_before_render == [0, 0, 0]


def test_cancellation_at_card_boundary():
    calls = {"n": 0}

    def cancel():
        calls["n"] += 1
        return calls["n"] > 2

    with pytest.raises(ExportCancelledError):
        export_document(rasters(5), cancel=cancel)


def test_export_job_dispatch():
    assert [n for n, _ in ExportJob(rasters(2), ExportFormat.PNG).run()] == ["card-1.png", "card-2.png"]
    assert ExportJob(rasters(1), "pdf").run()[0][0] == "bingo-cards.pdf"
    assert ExportJob(rasters(1), ExportFormat.ZIP).run()[0][0] == "bingo-cards.zip"


def test_unknown_layout_mode():
    with pytest.raises(ValueError):
        plan_layout(1, "three-per-page", A4)
