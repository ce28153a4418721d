from __future__ import annotations

from hypothesis import given, strategies as st

from wordbingo.tables import Table
from wordbingo.words import extract_column, merge_words, process_words


def test_case_insensitive_dedup_keeps_first_spelling():
    assert process_words("Apple, apple, Banana\nCherry") == ["Apple", "Banana", "Cherry"]


def test_separator_runs_collapse_and_blanks_are_dropped():
    assert process_words("one,,two\n\n\nthree,\n ,  four  ") == ["one", "two", "three", "four"]


def test_empty_and_non_text_inputs():
    assert process_words("") == []
    assert process_words(" , \n ") == []
    assert process_words(None) == []  # type: ignore[arg-type]


def test_inner_spaces_are_kept():
    assert process_words("New York, new york,Los Angeles") == ["New York", "Los Angeles"]


word_text = st.text(
    alphabet=st.characters(blacklist_characters=",\n", blacklist_categories=("Cs",)),
    max_size=12,
)


@given(st.lists(word_text, max_size=30))
def test_dedup_is_idempotent(parts):
    raw = ",".join(parts)
    once = process_words(raw)
    assert process_words(", ".join(once)) == once


@given(st.lists(word_text, max_size=30))
def test_output_words_are_trimmed_unique_and_non_empty(parts):
    out = process_words("\n".join(parts))
    keys = [w.casefold() for w in out]
    assert len(keys) == len(set(keys))
    assert all(w and w == w.strip() for w in out)


def test_extract_column_keeps_repeats_and_skips_short_rows():
    table = Table(
        columns=["Column 1", "Column 2"],
        rows=[["cat", " Dog "], ["cat", ""], ["bird"], ["", "fish"], ["Cat", "dog"]],
    )
    assert extract_column(table, 0) == ["cat", "cat", "bird", "Cat"]
    assert extract_column(table, 1) == ["Dog", "fish", "dog"]
    assert extract_column(table, 5) == []


def test_merge_words_dedupes_across_sources():
    manual = process_words("Apple, Pear")
    tabular = ["pear", "Plum", "plum", " "]
    assert merge_words(manual, tabular) == ["Apple", "Pear", "Plum"]
