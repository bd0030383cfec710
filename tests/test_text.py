"""Tests for bilingual text normalization."""

import pytest

from aqar_mcp.search.text import normalize_text


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("Café Olaya", "cafe olaya"),
        ("RIYADH", "riyadh"),
        ("  Al   Malqa ", "al malqa"),
        ("الرِّياض", "الرياض"),
        ("مَسْبَح", "مسبح"),
        ("أحمد", "احمد"),
        ("إسكان", "اسكان"),
        ("آمنة", "امنه"),
        ("مدرسة", "مدرسه"),
        ("مستشفى", "مستشفي"),
        ("شـــقة", "شقه"),
        ("Straße", "strasse"),
    ],
)
def test_normalize_text(raw, expected):
    assert normalize_text(raw) == expected


@pytest.mark.parametrize("raw", [None, "", "   "])
def test_normalize_empty(raw):
    assert normalize_text(raw) == ""


def test_mixed_script():
    assert normalize_text("فيلا VILLA") == "فيلا villa"
