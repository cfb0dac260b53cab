"""Tests for colour normalisation."""

import pytest

from storefront.domain.colors import default_color, normalize_color
from storefront.domain.schemas import CartLineItem


def test_missing_color_becomes_default():
    assert normalize_color(None) == {"name": "Default", "code": "#000000"}
    assert normalize_color("") == default_color()
    assert normalize_color([]) == default_color()


def test_plain_name():
    assert normalize_color("Black") == {"name": "Black", "code": "#000000"}


def test_hex_string_is_both_name_and_code():
    assert normalize_color("#1A1A1A") == {"name": "#1a1a1a", "code": "#1a1a1a"}


def test_mapping_with_alternative_keys():
    assert normalize_color({"colorName": "Tan", "hex": "#D2B48C"}) == {"name": "Tan", "code": "#d2b48c"}
    assert normalize_color({"name": "Tan"}) == {"name": "Tan", "code": "#000000"}


def test_list_takes_first_element():
    assert normalize_color([{"name": "Red", "code": "#ff0000"}, "Blue"]) == {"name": "Red", "code": "#ff0000"}


def test_invalid_hex_in_mapping_rejected():
    with pytest.raises(ValueError):
        normalize_color({"name": "Red", "code": "red"})


def test_unsupported_shape_rejected():
    with pytest.raises(ValueError):
        normalize_color(42)


def test_schema_normalizes_color_at_boundary():
    line = CartLineItem(product_id=1, quantity=1, price="10.00", color=["Olive"])
    assert line.color.name == "Olive"
    assert line.color.code == "#000000"

    assert CartLineItem(product_id=1, quantity=1).color.name == "Default"
