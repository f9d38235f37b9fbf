# tests/test_corpus.py
"""
Tests for corpus loading: caps, blank lines, malformed-line policy.

Run: pytest -v
"""

from __future__ import annotations

import io

import pytest

from sharedfactor.corpus import Corpus, load_corpus, read_corpus, write_corpus
from sharedfactor.utility import AllocationFailure, MalformedInput, parse_decimal


def _read(text: str, **kw) -> list[int]:
    return list(read_corpus(io.StringIO(text), **kw))


# ---------- parsing -------------------------------------------------------------


def test_reads_one_decimal_per_line():
    assert _read("15\n21\n35\n") == [15, 21, 35]


def test_no_trailing_newline_and_crlf():
    assert _read("15\r\n21\r\n35") == [15, 21, 35]


def test_blank_lines_and_whitespace_are_ignored():
    assert _read("\n  15  \n\n\t21\n   \n") == [15, 21]


def test_huge_values_round_trip_exactly():
    big = 3**2000
    assert _read(f"{big}\n7\n") == [big, 7]


def test_values_wider_than_the_int_str_guard():
    # 5001 digits, past the 4300-digit default of int(str)
    text = "1" + "0" * 4999 + "3"
    assert _read(text + "\n7\n") == [10**5000 + 3, 7]
    assert _read(text + "\n7\n", on_malformed="skip") == [10**5000 + 3, 7]
    assert parse_decimal(text) == 10**5000 + 3


@pytest.mark.parametrize("text", ["+7", "-7", "1_000", "0x1f", "12a", "1.5", "٣", "1 2"])
def test_parse_decimal_rejects(text):
    with pytest.raises(ValueError):
        parse_decimal(text)


def test_parse_decimal_accepts_leading_zeros():
    assert parse_decimal(" 007 ") == 7


# ---------- cap -----------------------------------------------------------------


def test_max_count_truncates():
    assert _read("1\n2\n3\n4\n", max_count=2) == [1, 2]


def test_lines_past_the_cap_are_never_parsed():
    assert _read("1\n2\nnot a number\n", max_count=2) == [1, 2]


def test_hitting_the_cap_is_logged(caplog):
    with caplog.at_level("WARNING", logger="sharedfactor.corpus"):
        assert _read("1\n2\n\n3\n4\n", max_count=2) == [1, 2]
    assert "capped at 2 numbers" in caplog.text
    assert "line 4" in caplog.text


def test_cap_not_reached_is_silent(caplog):
    with caplog.at_level("WARNING", logger="sharedfactor.corpus"):
        assert _read("1\n2\n\n", max_count=2) == [1, 2]
        assert _read("1\n", max_count=5) == [1]
    assert caplog.text == ""


def test_max_count_zero_and_none():
    assert _read("1\n2\n", max_count=0) == []
    assert _read("1\n2\n", max_count=None) == [1, 2]


def test_negative_cap_is_an_allocation_failure():
    with pytest.raises(AllocationFailure) as ei:
        _read("1\n", max_count=-1)
    assert ei.value.phase == "load"


# ---------- malformed lines -----------------------------------------------------


def test_malformed_line_aborts_with_line_number():
    with pytest.raises(MalformedInput) as ei:
        _read("15\n\n21x\n35\n")
    assert ei.value.index == 3
    assert ei.value.phase == "load"
    assert str(ei.value).startswith("load failed at line 3")


def test_malformed_input_names_the_line():
    err = MalformedInput("bad", phase="load", index=7)
    assert str(err) == "load failed at line 7: bad"
    assert str(AllocationFailure("full", phase="batch", index=7)) == "batch failed at index 7: full"


def test_malformed_line_can_be_skipped(caplog):
    with caplog.at_level("WARNING", logger="sharedfactor.corpus"):
        values = _read("15\n21x\n35\n", on_malformed="skip")
    assert values == [15, 35]
    assert "line 2" in caplog.text


def test_unknown_policy():
    with pytest.raises(ValueError):
        _read("1\n", on_malformed="ignore")


# ---------- files ---------------------------------------------------------------


def test_write_then_load(tmp_path):
    path = tmp_path / "nested" / "corpus.txt"
    assert write_corpus([15, 21, 35], path) == 3
    assert path.read_text(encoding="utf-8") == "15\n21\n35\n"
    corpus = load_corpus(path)
    assert isinstance(corpus, Corpus)
    assert list(corpus) == [15, 21, 35]
    assert corpus[1] == 21
    assert len(corpus) == 3


def test_write_values_wider_than_the_int_str_guard(tmp_path):
    path = tmp_path / "wide.txt"
    assert write_corpus([10**5000 + 3, 7], path) == 2
    assert path.read_text(encoding="utf-8") == "1" + "0" * 4999 + "3\n7\n"
    assert list(load_corpus(path)) == [10**5000 + 3, 7]


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_corpus(tmp_path / "nope.txt")


def test_corpus_is_read_only():
    c = Corpus.from_iterable([1, 2, 3])
    with pytest.raises(AttributeError):
        c.values = (4,)
    with pytest.raises(TypeError):
        c[0] = 9
