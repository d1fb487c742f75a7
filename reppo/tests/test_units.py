import pytest

from reppo.scripts.units import format_units, parse_units


def test_parse_units_scales_decimals():
    assert parse_units("1", 18) == 10**18
    assert parse_units("0.000001", 6) == 1
    assert parse_units(" 12.5 ", 6) == 12_500_000


def test_parse_units_rejects_excess_precision():
    with pytest.raises(ValueError):
        parse_units("0.0000001", 6)


def test_parse_units_rejects_non_numbers():
    for bad in ("", "abc", "1e", "Infinity"):
        with pytest.raises(ValueError):
            parse_units(bad, 18)


def test_format_units_strips_trailing_zeros():
    assert format_units(10**18, 18) == "1"
    assert format_units(1_500_000, 6) == "1.5"
    assert format_units(1, 18) == "0.000000000000000001"
    assert format_units(0, 18) == "0"
    assert format_units(-2_500_000, 6) == "-2.5"


def test_format_units_keeps_large_values_exact():
    raw = 123456789012345678901234567890
    assert format_units(raw, 18) == "123456789012.34567890123456789"
