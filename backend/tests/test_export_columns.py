import random

import pytest

from arbati.services.export_service import PRODUCT_COLUMNS, ColumnSelection


def test_default_selection_is_full_catalogue_in_order():
    assert ColumnSelection().selected() == list(PRODUCT_COLUMNS)


def test_select_none_then_all_restores_default_order():
    columns = ColumnSelection()
    default = columns.selected()
    columns.deselect_all()
    assert columns.selected() == []
    columns.select_all()
    assert columns.selected() == default


def test_toggling_in_any_order_keeps_catalogue_order():
    columns = ColumnSelection()
    default = columns.selected()
    columns.deselect_all()
    shuffled = list(PRODUCT_COLUMNS)
    random.Random(7).shuffle(shuffled)
    for column in shuffled:
        columns.toggle(column)
    assert columns.selected() == default


def test_partial_selection_follows_catalogue_order():
    columns = ColumnSelection()
    columns.deselect_all()
    for column in ("stock_quantity", "name", "image"):
        columns.toggle(column)
    assert columns.selected() == ["image", "name", "stock_quantity"]


def test_toggle_twice_is_a_no_op():
    columns = ColumnSelection()
    columns.toggle("sku")
    assert not columns.is_selected("sku")
    columns.toggle("sku")
    assert columns.selected() == list(PRODUCT_COLUMNS)


def test_initial_subset_is_reordered():
    assert ColumnSelection(selected=["sku", "id"]).selected() == ["id", "sku"]


def test_unknown_columns_are_rejected():
    with pytest.raises(ValueError):
        ColumnSelection(selected=["name", "password"])
    with pytest.raises(ValueError):
        ColumnSelection().toggle("password")


def test_empty_selection_is_rejected():
    with pytest.raises(ValueError, match="at least one column"):
        ColumnSelection(selected=[])
