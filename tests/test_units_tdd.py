from __future__ import annotations

import pytest
from hypothesis import given, strategies as st

from wordbingo.units import PX_PER_MM, SizeConfig, convert, resolve_preset


def test_a4_preset_in_both_units():
    mm = resolve_preset("A4", "millimeter")
    assert (mm.width, mm.height) == (210, 297)
    px = resolve_preset("A4", "pixel")
    assert (px.width, px.height) == (794, 1123)


def test_letter_preset():
    assert resolve_preset("Letter", "mm") == resolve_preset("Letter", "millimetre")
    px = resolve_preset("Letter", "px")
    assert (px.width, px.height) == (816, 1054)


def test_custom_and_unknown_fall_back_to_600x800():
    for name in ("Custom", "B5", ""):
        dims = resolve_preset(name, "px")
        assert (dims.width, dims.height) == (600, 800)
    assert resolve_preset("Custom", "mm").width == 600


def test_convert_rounds_half_up():
    assert convert(10, "mm", "px") == 38  # 37.795...
    assert convert(100, "px", "mm") == 26  # 26.458...
    assert convert(42.5, "px", "px") == 42.5


@given(st.integers(min_value=0, max_value=10_000))
def test_px_mm_round_trip_is_close_but_lossy(v):
    back = convert(convert(v, "px", "mm"), "mm", "px")
    # half a millimetre lost to the first rounding, half a pixel to the second
    assert abs(back - v) <= PX_PER_MM / 2 + 0.5


@given(st.integers(min_value=0, max_value=2_000))
def test_mm_px_round_trip_within_one_unit(v):
    assert abs(convert(convert(v, "mm", "px"), "px", "mm") - v) <= 1


def test_round_trip_not_identity():
    assert convert(convert(5, "px", "mm"), "mm", "px") != 5


def test_unknown_unit():
    with pytest.raises(ValueError):
        convert(1, "in", "px")


def test_size_config_conversion_is_explicit():
    size = SizeConfig.from_preset("A4", "mm")
    assert (size.width, size.height, size.unit) == (210, 297, "mm")
    assert size.pixels() == (794, 1123)
    assert size.unit == "mm"
    with pytest.raises(ValueError):
        SizeConfig(width=0, height=10)
