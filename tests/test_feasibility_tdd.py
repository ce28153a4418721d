from __future__ import annotations

from hypothesis import given, strategies as st

from wordbingo.feasibility import check_feasibility, required_word_count, sufficient_words


@given(
    n=st.integers(min_value=0, max_value=200),
    g=st.sampled_from([3, 4, 5, 6]),
    cards=st.integers(min_value=1, max_value=100),
)
def test_sufficiency_ignores_card_count(n, g, cards):
    assert sufficient_words(n, g, cards) == (n >= g * g)
    assert sufficient_words(n, g, cards) == sufficient_words(n, g, 1)


def test_required_word_count_is_cells_times_cards():
    assert required_word_count(5, 4) == 100
    assert required_word_count(3, 1) == 9


def test_twenty_words_not_enough_for_five_by_five():
    for cards in (1, 2, 50):
        assert sufficient_words(20, 5, cards) is False
    result = check_feasibility(pool_size=20, grid_size=5, num_cards=3)
    assert result.feasible is False
    assert result.available == 20
    assert result.required == 75
    assert result.reasons


def test_feasible_with_cross_card_reuse_note():
    result = check_feasibility(pool_size=30, grid_size=5, num_cards=2)
    assert result.feasible is True
    assert any("repeat" in r for r in result.reasons)
    assert check_feasibility(pool_size=50, grid_size=5, num_cards=2).reasons == []
