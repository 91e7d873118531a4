import pytest

from app.modules.leads.phone import normalize_phone


@pytest.mark.parametrize(
    "raw",
    [
        "11981598027",
        "(11) 98159-8027",
        "+55 11 98159-8027",
        "5511981598027",
        "55 (11) 98159 8027",
        "5511981598027@s.whatsapp.net",
    ],
)
def test_formatting_variants_share_one_key(raw):
    assert normalize_phone(raw) == "5511981598027"


def test_landline_without_country_code_gets_prefix():
    assert normalize_phone("(11) 4647-1234") == "551146471234"


def test_other_lengths_are_kept_as_digits():
    assert normalize_phone("+1 415 555 0100 22") == "1415555010022"


def test_custom_country_code():
    assert normalize_phone("2025550123", country_code="1") == "12025550123"


@pytest.mark.parametrize("raw", [None, "", "sem telefone", "+--"])
def test_nothing_digit_like_is_none(raw):
    assert normalize_phone(raw) is None
